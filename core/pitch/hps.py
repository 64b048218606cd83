"""
core/pitch/hps.py — Fundamental frequency estimation via Harmonic Product Spectrum.

HPS multiplies the magnitude spectrum with copies of itself downsampled by
2, 3, …, H. A periodic tone has energy at f0, 2·f0, 3·f0, …, so bin f0 of
every downsampled copy lines up with a harmonic and the product reinforces
there. Isolated peaks (a loud 2nd harmonic, a noise spike) only line up in
some of the copies and get multiplied by near-zero bins in the others.

Why HPS over raw FFT peak-picking:
    - Peak-picking locks onto whichever partial is loudest; on many
      instruments that is the 2nd or 3rd harmonic, giving octave errors.
    - HPS is a handful of vector multiplies per frame, cheap enough to run
      at display refresh rate.

Usage:
    from core.pitch.hps import estimate_fundamental
    f0 = estimate_fundamental(frame, harmonics=5)

Input scale:
    SpectrumFrame only holds linear amplitude. Feeding decibel values
    (mostly negative numbers) would make the product meaningless, which
    is why the frame type refuses negative magnitudes.
"""

from __future__ import annotations

import numpy as np

from core.pitch.types import SpectrumFrame

DEFAULT_HARMONICS: int = 5
"""HPS depth used when the caller does not choose one."""


def _validate_harmonics(harmonics: int, size: int) -> int:
    if isinstance(harmonics, bool) or not isinstance(harmonics, (int, np.integer)):
        raise ValueError(f"harmonics must be an integer, got {harmonics!r}")
    if harmonics < 2:
        raise ValueError(f"harmonics must be >= 2, got {harmonics}")
    downsampled_length = size // int(harmonics)
    if downsampled_length == 0:
        raise ValueError(
            f"Spectrum of {size} bins is too short for {harmonics} harmonics"
        )
    return downsampled_length


def hps_spectrum(frame: SpectrumFrame, harmonics: int = DEFAULT_HARMONICS) -> np.ndarray:
    """Compute the Harmonic Product Spectrum accumulator.

    Only the first D = N // harmonics bins are kept, so that the highest
    index touched, (D - 1) * harmonics, stays inside the spectrum.

    Args:
        frame: Linear-amplitude spectrum.
        harmonics: Highest harmonic order multiplied in. Must be >= 2.

    Returns:
        Array of length D where element i is
        spectrum[i] * spectrum[2i] * … * spectrum[harmonics·i].

    Raises:
        ValueError: If harmonics < 2, is not an integer, or the spectrum is
            shorter than ``harmonics`` bins.
    """
    spectrum = frame.magnitudes
    length = _validate_harmonics(harmonics, spectrum.size)

    accumulator = spectrum[:length].copy()
    for order in range(2, int(harmonics) + 1):
        # indices 0, order, 2·order, …, (length - 1)·order
        accumulator *= spectrum[: length * order : order]
    return accumulator


def estimate_fundamental(frame: SpectrumFrame, harmonics: int = DEFAULT_HARMONICS) -> float:
    """Estimate the fundamental frequency of one spectrum frame.

    Pipeline:
        1. hps_spectrum() → accumulator of length N // harmonics
        2. argmax → winning bin (first occurrence wins ties, so the lowest
           frequency is preferred)
        3. bin → Hz via index * sample_rate / N

    Args:
        frame: Linear-amplitude spectrum with its sample rate.
        harmonics: HPS depth (default 5).

    Returns:
        Frequency in Hz, >= 0. An all-zero spectrum returns 0.0; callers
        gate low estimates (see TunerConfig.min_frequency_hz) as "no pitch".

    Raises:
        ValueError: On an invalid ``harmonics`` value.
    """
    accumulator = hps_spectrum(frame, harmonics)
    peak_index = int(np.argmax(accumulator))
    return frame.bin_frequency(peak_index)
