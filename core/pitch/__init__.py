"""
core/pitch — Pure monophonic pitch analysis.

Estimates the fundamental of a magnitude spectrum with the Harmonic
Product Spectrum and maps it to the nearest equal-tempered note.
All functions are pure: no I/O, no state carried between frames. Audio
capture lives in ingestion/spectrum_sources.py.

Public API:
    Types:      SpectrumFrame, MagnitudeScale, NoteReading, FrameAnalysis,
                TuningStatus
    Estimation: estimate_fundamental, hps_spectrum
    Notes:      frequency_to_note, note_frequency, A4_HZ, C0_HZ, NOTE_NAMES
    Tuning:     classify_tuning
    Spectrum:   magnitude_spectrum, frame_blocks
    Tick:       analyze_frame
"""

from core.pitch.analysis import analyze_frame
from core.pitch.hps import estimate_fundamental, hps_spectrum
from core.pitch.notes import A4_HZ, C0_HZ, NOTE_NAMES, frequency_to_note, note_frequency
from core.pitch.spectrum import frame_blocks, magnitude_spectrum
from core.pitch.tuning import classify_tuning
from core.pitch.types import (
    FrameAnalysis,
    MagnitudeScale,
    NoteReading,
    SpectrumFrame,
    TuningStatus,
)

__all__ = [
    "A4_HZ",
    "C0_HZ",
    "NOTE_NAMES",
    "FrameAnalysis",
    "MagnitudeScale",
    "NoteReading",
    "SpectrumFrame",
    "TuningStatus",
    "analyze_frame",
    "classify_tuning",
    "estimate_fundamental",
    "frame_blocks",
    "frequency_to_note",
    "hps_spectrum",
    "magnitude_spectrum",
    "note_frequency",
]
