"""
Configuration dataclasses for the pitch analysis pipeline.

These immutable config objects decouple tuning policy from function signatures,
making it easy to define instrument presets and reuse them across the live
loop, the offline file analyser and the HTTP API.
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass

# Environment variable → (field name, parser)
_ENV_FIELDS: dict[str, tuple[str, type]] = {
    "TUNER_HARMONICS": ("harmonics", int),
    "TUNER_MIN_FREQUENCY_HZ": ("min_frequency_hz", float),
    "TUNER_MIN_OCTAVE": ("min_octave", int),
    "TUNER_MAX_OCTAVE": ("max_octave", int),
    "TUNER_IN_TUNE_CENTS": ("in_tune_cents", float),
    "TUNER_FFT_SIZE": ("fft_size", int),
    "TUNER_FRAME_RATE_HZ": ("frame_rate_hz", float),
}


def _is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


@dataclass(frozen=True)
class TunerConfig:
    """
    Configuration for one pitch analysis pipeline.

    Immutable configuration object shared by analyze_frame(), AnalysisLoop
    and the API. Holds the HPS depth plus the policy gates that keep noise
    from being displayed as notes.

    Attributes:
        harmonics: Number of harmonic orders multiplied by the Harmonic
            Product Spectrum. Defaults to 5. Must be >= 2.
        min_frequency_hz: Estimates at or below this floor are treated as
            "no pitch". Defaults to 50 Hz, below which mains hum and
            room rumble dominate.
        min_octave: Lowest octave reported as a note (C0 = octave 0).
        max_octave: Highest octave reported as a note.
        in_tune_cents: Half-width of the "in tune" band in cents.
            Defaults to 10.
        fft_size: Samples per analysis block. Must be a power of two.
        frame_rate_hz: Analysis ticks per second (display refresh rate).

    Example:
        >>> config = TunerConfig(harmonics=4, min_frequency_hz=70.0)
        >>> analysis = analyze_frame(frame, config=config)
    """

    harmonics: int = 5
    min_frequency_hz: float = 50.0
    min_octave: int = 0
    max_octave: int = 8
    in_tune_cents: float = 10.0
    fft_size: int = 4096
    frame_rate_hz: float = 60.0

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if isinstance(self.harmonics, bool) or not isinstance(self.harmonics, int):
            raise ValueError(f"harmonics must be an integer, got {self.harmonics!r}")
        if self.harmonics < 2:
            raise ValueError(f"harmonics must be >= 2, got {self.harmonics}")
        if not math.isfinite(self.min_frequency_hz) or self.min_frequency_hz < 0:
            raise ValueError(
                f"min_frequency_hz must be finite and non-negative, got {self.min_frequency_hz}"
            )
        if self.min_octave < 0:
            raise ValueError(f"min_octave must be non-negative, got {self.min_octave}")
        if self.max_octave < self.min_octave:
            raise ValueError(
                f"max_octave ({self.max_octave}) must be >= min_octave ({self.min_octave})"
            )
        if not (math.isfinite(self.in_tune_cents) and 0 < self.in_tune_cents <= 50):
            raise ValueError(f"in_tune_cents must be in (0, 50], got {self.in_tune_cents}")
        if not _is_power_of_two(self.fft_size):
            raise ValueError(f"fft_size must be a power of two, got {self.fft_size}")
        if self.fft_size < self.harmonics:
            raise ValueError(
                f"fft_size ({self.fft_size}) must be >= harmonics ({self.harmonics})"
            )
        if not math.isfinite(self.frame_rate_hz) or self.frame_rate_hz <= 0:
            raise ValueError(f"frame_rate_hz must be finite and positive, got {self.frame_rate_hz}")

    @property
    def tick_interval_sec(self) -> float:
        """Seconds between two analysis ticks."""
        return 1.0 / self.frame_rate_hz

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        base: TunerConfig | None = None,
    ) -> TunerConfig:
        """Build a config from ``TUNER_*`` environment variables.

        Unset variables fall back to the values of ``base`` (DEFAULT_CONFIG
        when omitted).

        Raises:
            ValueError: A variable cannot be parsed or the result is invalid.
        """
        env = os.environ if environ is None else environ
        values = dict(vars(base if base is not None else cls()))
        for var, (field_name, parser) in _ENV_FIELDS.items():
            raw = env.get(var)
            if raw is None or raw.strip() == "":
                continue
            try:
                values[field_name] = parser(raw)
            except ValueError as exc:
                raise ValueError(f"Invalid value for {var}: {raw!r}") from exc
        return cls(**values)


# Pre-defined configurations for common instruments

DEFAULT_CONFIG = TunerConfig()
"""General purpose: 5 harmonics, 50 Hz floor, octaves 0–8."""

GUITAR_CONFIG = TunerConfig(min_frequency_hz=70.0, min_octave=2, max_octave=6)
"""Standard-tuned guitar: low E2 (82.4 Hz) up to the 24th fret."""

BASS_CONFIG = TunerConfig(harmonics=4, min_frequency_hz=30.0, min_octave=0, max_octave=4, fft_size=8192)
"""Four/five string bass. Larger FFT for finer low-end bin spacing."""

VOICE_CONFIG = TunerConfig(harmonics=3, min_frequency_hz=70.0, min_octave=2, max_octave=6)
"""Singing voice. Fewer harmonics, formants make upper partials unreliable."""
