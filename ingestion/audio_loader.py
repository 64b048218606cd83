"""
ingestion/audio_loader.py — File I/O boundary for offline pitch analysis.

This is the ONLY module in the pitch pipeline that reads files from disk.
FileSpectrumSource hands the loaded (y, sr) pair to the pure framing and
FFT helpers in core/pitch/spectrum.py — they never see file paths.

Usage:
    from ingestion.audio_loader import load_audio
    y, sr = load_audio("/path/to/open_a_string.wav", duration=10.0)
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

# Supported audio file extensions (must be loadable by librosa / soundfile)
AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {".mp3", ".wav", ".flac", ".aiff", ".aif", ".ogg", ".m4a", ".opus"}
)

# Tuning takes are short; cap the load so a long recording cannot OOM the tuner
DEFAULT_DURATION: float = 60.0


def load_audio(
    path: str | Path,
    *,
    duration: float | None = DEFAULT_DURATION,
    sr: int | None = None,
    mono: bool = True,
    min_samples: int = 0,
) -> tuple[np.ndarray, int]:
    """Load an audio file and return (y, sr).

    Args:
        path: Path to an audio file (mp3, wav, flac, aiff, ogg, m4a, opus).
        duration: Maximum seconds to load. None loads the whole file.
        sr: Target sample rate in Hz. None preserves the native rate, which
            keeps bin spacing faithful to the recording.
        mono: Mix down to mono when True (default).
        min_samples: Reject recordings shorter than this many samples, e.g.
            one FFT block, which would otherwise yield no frames at all.

    Returns:
        (y, sr) — float32 numpy array of samples and the sample rate.

    Raises:
        FileNotFoundError: File does not exist at the given path.
        ValueError: File extension is not a supported audio format, or the
            decoded recording is shorter than ``min_samples``.
        RuntimeError: librosa/soundfile could not decode the file.
    """
    import librosa  # deferred to allow testing without audio backend

    file_path = Path(path)

    if not file_path.exists():
        raise FileNotFoundError(f"Audio file not found: {file_path}")

    if file_path.suffix.lower() not in AUDIO_EXTENSIONS:
        raise ValueError(
            f"Unsupported audio format {file_path.suffix!r}. "
            f"Supported: {sorted(AUDIO_EXTENSIONS)}"
        )

    try:
        y, loaded_sr = librosa.load(file_path, sr=sr, mono=mono, duration=duration)
    except Exception as exc:
        raise RuntimeError(
            f"Failed to decode audio file {file_path.name!r}: {exc}"
        ) from exc

    n_samples = y.shape[-1]
    if n_samples < min_samples:
        raise ValueError(
            f"{file_path.name!r} is too short to analyse: {n_samples} samples "
            f"({n_samples / loaded_sr:.3f}s), need at least {min_samples}"
        )

    return y, int(loaded_sr)
