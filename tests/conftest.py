"""
Shared fixtures for the test suite.

Centralizes synthetic spectra and signals so individual test files don't
need to repeat the numpy boilerplate.

The reference rate 40960 Hz with 4096-bin frames gives a bin width of
exactly 10 Hz, so A4 = 440 Hz lands on bin 44 with no leakage.
"""

from collections.abc import Callable, Sequence

import numpy as np
import pytest

from core.pitch.types import SpectrumFrame

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SAMPLE_RATE: int = 40960
"""Test sample rate. 40960 / 4096 = 10 Hz per bin."""

FFT_SIZE: int = 4096

DEFAULT_PARTIALS: tuple[float, ...] = (0.5, 1.0, 0.8, 0.6, 0.4)
"""Partial amplitudes with a 2nd harmonic louder than the fundamental —
the case where naive peak-picking reports the wrong octave."""


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def harmonic_magnitudes(
    fundamental_bin: int,
    *,
    size: int = FFT_SIZE,
    partials: Sequence[float] = DEFAULT_PARTIALS,
    floor: float = 0.0,
) -> np.ndarray:
    """Magnitude array with spikes at fundamental_bin · (1, 2, 3, …)."""
    mags = np.full(size, floor, dtype=np.float64)
    for order, amplitude in enumerate(partials, start=1):
        index = fundamental_bin * order
        if index < size:
            mags[index] = amplitude
    return mags


def tone(
    frequency_hz: float,
    *,
    sample_rate: int = SAMPLE_RATE,
    n_samples: int = FFT_SIZE,
    partials: Sequence[float] = DEFAULT_PARTIALS,
) -> np.ndarray:
    """Time-domain harmonic tone."""
    t = np.arange(n_samples) / sample_rate
    y = np.zeros(n_samples, dtype=np.float64)
    for order, amplitude in enumerate(partials, start=1):
        y += amplitude * np.sin(2 * np.pi * frequency_hz * order * t)
    return y


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_frame() -> Callable[..., SpectrumFrame]:
    """Factory: ``make_frame(fundamental_bin, **kwargs)`` → SpectrumFrame at SAMPLE_RATE."""

    def _make(fundamental_bin: int, *, sample_rate: float = SAMPLE_RATE, **kwargs) -> SpectrumFrame:
        return SpectrumFrame(harmonic_magnitudes(fundamental_bin, **kwargs), sample_rate)

    return _make


@pytest.fixture()
def a4_frame() -> SpectrumFrame:
    """Harmonic spectrum with its fundamental on bin 44 (440 Hz)."""
    return SpectrumFrame(harmonic_magnitudes(44), SAMPLE_RATE)


@pytest.fixture()
def silent_frame() -> SpectrumFrame:
    return SpectrumFrame(np.zeros(FFT_SIZE), SAMPLE_RATE)
