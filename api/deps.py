"""
FastAPI dependency providers.

Provides the TunerConfig singleton so it is read from the environment once
and reused across requests. Tests override ``get_tuner_config`` through
``app.dependency_overrides``.
"""

from core.config import TunerConfig

_tuner_config: TunerConfig | None = None


def get_tuner_config() -> TunerConfig:
    """
    Return a cached ``TunerConfig`` built from ``TUNER_*`` variables.

    The config is created on first call and reused thereafter.
    """
    global _tuner_config
    if _tuner_config is None:
        _tuner_config = TunerConfig.from_env()
    return _tuner_config
