"""
core/pitch/tuning.py — Flat / in tune / sharp classification.
"""

from __future__ import annotations

from core.pitch.types import TuningStatus

DEFAULT_TOLERANCE_CENTS: float = 10.0
"""±10 cents is about the smallest deviation most listeners notice on sustained notes."""


def classify_tuning(
    cents: float,
    tolerance_cents: float = DEFAULT_TOLERANCE_CENTS,
) -> TuningStatus:
    """Classify a cents deviation against a symmetric in-tune band.

    The band edges are inclusive: exactly ±tolerance counts as in tune.

    Raises:
        ValueError: If tolerance_cents is negative.
    """
    if tolerance_cents < 0:
        raise ValueError(f"tolerance_cents must be non-negative, got {tolerance_cents}")
    if cents < -tolerance_cents:
        return TuningStatus.FLAT
    if cents > tolerance_cents:
        return TuningStatus.SHARP
    return TuningStatus.IN_TUNE
