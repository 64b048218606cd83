"""
core/pitch/types.py — Frozen data types for pitch analysis.

All types are frozen dataclasses — immutable value objects that can be
safely handed from the capture thread to the analysis tick and on to a
display sink.

Design principles:
    - No I/O, no state, no side effects.
    - SpectrumFrame validates at construction: a frame is either a valid
      linear-amplitude spectrum or it does not exist. Decibel data must go
      through SpectrumFrame.from_decibels(), so the scale mistake fails
      loudly instead of collapsing the HPS product to zero.
    - NoteReading stores rounded values; the string renderings are
      computed properties to avoid duplicate storage.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

import numpy as np


class MagnitudeScale(str, enum.Enum):
    """Scale of the magnitudes handed in by a spectrum source."""

    LINEAR = "linear"
    DECIBEL = "decibel"


class TuningStatus(str, enum.Enum):
    """Where a reading sits relative to the in-tune band."""

    FLAT = "flat"
    IN_TUNE = "in_tune"
    SHARP = "sharp"


def _is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


@dataclass(frozen=True, eq=False)
class SpectrumFrame:
    """One linear-amplitude magnitude spectrum and its sampling rate.

    Invariants:
        magnitudes is 1-D, read-only, float64
        len(magnitudes) is a power of two (N)
        every magnitude is finite and >= 0
        sample_rate > 0
        bin i ↔ i * sample_rate / N Hz
    """

    magnitudes: np.ndarray
    """Linear amplitude per frequency bin. Never decibels."""

    sample_rate: float
    """Sampling rate of the captured audio in Hz."""

    def __post_init__(self) -> None:
        if not np.isfinite(self.sample_rate) or self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive and finite, got {self.sample_rate}")

        mags = np.array(self.magnitudes, dtype=np.float64, copy=True)
        if mags.ndim != 1:
            raise ValueError(f"Spectrum must be 1-D, got shape {mags.shape}")
        if mags.size == 0:
            raise ValueError("Spectrum is empty")
        if not _is_power_of_two(mags.size):
            raise ValueError(f"Spectrum length must be a power of two, got {mags.size}")
        if not np.all(np.isfinite(mags)):
            raise ValueError("Spectrum contains non-finite magnitudes")
        if np.any(mags < 0):
            raise ValueError(
                "Spectrum contains negative magnitudes — decibel data must be "
                "converted with SpectrumFrame.from_decibels()"
            )

        mags.setflags(write=False)
        object.__setattr__(self, "magnitudes", mags)

    @classmethod
    def from_decibels(cls, decibels: Any, sample_rate: float) -> SpectrumFrame:
        """Build a frame from log-magnitude data: amplitude = 10 ** (dB / 20).

        ``-inf`` dB (silent bin) maps to amplitude 0.
        """
        db = np.asarray(decibels, dtype=np.float64)
        if np.any(np.isnan(db)) or np.any(db == np.inf):
            raise ValueError("Decibel spectrum contains NaN or +inf values")
        return cls(np.power(10.0, db / 20.0), sample_rate)

    @classmethod
    def from_magnitudes(
        cls,
        values: Any,
        sample_rate: float,
        *,
        scale: MagnitudeScale | str = MagnitudeScale.LINEAR,
    ) -> SpectrumFrame:
        """Build a frame from magnitudes in the given scale."""
        if MagnitudeScale(scale) is MagnitudeScale.DECIBEL:
            return cls.from_decibels(values, sample_rate)
        return cls(values, sample_rate)

    @property
    def size(self) -> int:
        """Number of bins N."""
        return int(self.magnitudes.size)

    @property
    def bin_width_hz(self) -> float:
        """Frequency spacing between adjacent bins."""
        return self.sample_rate / self.size

    def bin_frequency(self, index: int) -> float:
        """Centre frequency of bin ``index`` in Hz."""
        return index * self.sample_rate / self.size


@dataclass(frozen=True)
class NoteReading:
    """The nearest equal-tempered note for a measured frequency.

    Invariants:
        note_name in NOTE_NAMES
        octave within the mapper's octave range
        -50 <= cents_deviation <= 50
        frequency_hz and cents_deviation are rounded to 2 decimals
    """

    note_name: str
    """Pitch class, e.g. 'A', 'C#'."""

    octave: int
    """Octave number in scientific pitch notation (C4 = middle C)."""

    frequency_hz: float
    """Measured frequency, rounded to 2 decimals."""

    cents_deviation: float
    """Signed distance from the note's exact frequency. Positive = sharp."""

    @property
    def label(self) -> str:
        """Scientific pitch label, e.g. 'A4', 'C#5'."""
        return f"{self.note_name}{self.octave}"

    @property
    def frequency_text(self) -> str:
        return f"{self.frequency_hz:.2f}"

    @property
    def cents_text(self) -> str:
        return f"{self.cents_deviation:+.2f}"

    def as_dict(self) -> dict[str, Any]:
        return {
            "note": self.note_name,
            "octave": self.octave,
            "label": self.label,
            "frequency_hz": self.frequency_hz,
            "cents": self.cents_deviation,
        }


@dataclass(frozen=True)
class FrameAnalysis:
    """Result of analysing one spectrum frame.

    ``reading`` is None when the tick produced no stable note (silence,
    noise below the floor, or a frequency outside the octave range).
    ``tuning`` is None exactly when ``reading`` is None.
    """

    frequency_hz: float
    """Raw HPS estimate in Hz, before any gating. 0.0 for silent input."""

    reading: NoteReading | None = None
    tuning: TuningStatus | None = None

    @property
    def is_silent(self) -> bool:
        return self.reading is None
