"""
core/pitch/analysis.py — One analysis tick: spectrum → note or silence.

    SpectrumFrame
        │
        ├─ estimate_fundamental()   [hps.py]
        │       ↓ frequency_hz
        ├─ floor gate               [config.min_frequency_hz]
        │       ↓
        ├─ frequency_to_note()      [notes.py, config octave range]
        │       ↓ NoteReading | None
        └─ classify_tuning()        [tuning.py]

Stateless: each call depends only on its own frame and config. Smoothing
across ticks belongs to the display sink.
"""

from __future__ import annotations

from core.config import DEFAULT_CONFIG, TunerConfig
from core.pitch.hps import estimate_fundamental
from core.pitch.notes import frequency_to_note
from core.pitch.tuning import classify_tuning
from core.pitch.types import FrameAnalysis, SpectrumFrame


def analyze_frame(frame: SpectrumFrame, config: TunerConfig = DEFAULT_CONFIG) -> FrameAnalysis:
    """Estimate the pitch of one frame and map it to a note.

    Args:
        frame: Linear-amplitude spectrum for this tick.
        config: HPS depth and gating policy.

    Returns:
        FrameAnalysis. ``reading`` is None when the estimate is at or below
        ``config.min_frequency_hz`` or maps outside the configured octaves.
    """
    frequency_hz = estimate_fundamental(frame, config.harmonics)
    if frequency_hz <= config.min_frequency_hz:
        return FrameAnalysis(frequency_hz=frequency_hz)

    reading = frequency_to_note(
        frequency_hz,
        min_octave=config.min_octave,
        max_octave=config.max_octave,
    )
    if reading is None:
        return FrameAnalysis(frequency_hz=frequency_hz)

    return FrameAnalysis(
        frequency_hz=frequency_hz,
        reading=reading,
        tuning=classify_tuning(reading.cents_deviation, config.in_tune_cents),
    )
