"""
core/pitch/spectrum.py — Time-domain blocks → linear magnitude spectra.

Design:
    - All functions are pure: (samples, sr) → SpectrumFrame.
    - numpy and scipy are treated as pure computation libraries (no I/O).
    - The frame keeps the full two-sided FFT magnitude so that bin i sits
      at exactly i * sr / N with N = len(frame). For fundamentals below
      sr / (2 · harmonics) every harmonic HPS reads lies in the lower
      half, so the mirrored upper half does not affect tuner ranges.
"""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np
from scipy import signal as scipy_signal

from core.pitch.types import SpectrumFrame

DEFAULT_WINDOW: str = "hann"
"""Tapering window applied before the FFT to limit spectral leakage."""


def _to_mono(y: np.ndarray) -> np.ndarray:
    """Average a (C, N) or (N, C) multi-channel block down to mono."""
    if y.ndim == 1:
        return y
    # sounddevice delivers (frames, channels); librosa delivers (channels, frames)
    axis = 1 if y.shape[0] > y.shape[1] else 0
    return np.mean(y, axis=axis)


def magnitude_spectrum(
    samples: np.ndarray,
    sample_rate: float,
    *,
    window: str | None = DEFAULT_WINDOW,
) -> SpectrumFrame:
    """Window one block of samples and return its magnitude spectrum.

    Args:
        samples: Audio block, mono (N,) or multi-channel. N must be a
            power of two.
        sample_rate: Sample rate in Hz.
        window: scipy window name, or None for a rectangular window.

    Returns:
        SpectrumFrame of N linear-amplitude bins.

    Raises:
        ValueError: If the block is empty, not a power of two long, or
            sample_rate is not a positive finite number.
    """
    if not np.isfinite(sample_rate) or sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive and finite, got {sample_rate}")
    block = _to_mono(np.asarray(samples, dtype=np.float64))
    if block.size == 0:
        raise ValueError("Audio block is empty")

    if window is not None:
        block = block * scipy_signal.get_window(window, block.size)

    magnitudes = np.abs(np.fft.fft(block))
    return SpectrumFrame(magnitudes, sample_rate)


def frame_blocks(
    y: np.ndarray,
    fft_size: int,
    hop_length: int,
) -> Iterator[np.ndarray]:
    """Yield consecutive blocks of ``fft_size`` samples, ``hop_length`` apart.

    A trailing partial block is dropped.

    Raises:
        ValueError: If fft_size or hop_length is not positive.
    """
    if fft_size <= 0:
        raise ValueError(f"fft_size must be positive, got {fft_size}")
    if hop_length <= 0:
        raise ValueError(f"hop_length must be positive, got {hop_length}")
    mono = _to_mono(np.asarray(y))
    starts = range(0, mono.size - fft_size + 1, hop_length)
    return (mono[start : start + fft_size] for start in starts)
