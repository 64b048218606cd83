"""
ingestion/spectrum_sources.py — Where spectrum frames come from.

A spectrum source hands AnalysisLoop one linear-amplitude SpectrumFrame per
tick. Three implementations:

    ArraySpectrumSource       in-memory signal, framed with a fixed hop
    FileSpectrumSource        ArraySpectrumSource fed by load_audio()
    MicrophoneSpectrumSource  live input through sounddevice

The microphone source is the only one with a second thread: sounddevice
calls _callback() from its audio thread, which writes into a ring buffer
under a lock. read_frame() copies the buffer out, so every frame handed to
the analysis tick is an independent, immutable value.

sounddevice is imported lazily (or injected) so tests never need a
PortAudio backend.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import numpy as np

from core.pitch.spectrum import DEFAULT_WINDOW, frame_blocks, magnitude_spectrum
from core.pitch.types import SpectrumFrame
from ingestion.audio_loader import DEFAULT_DURATION, load_audio

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE: int = 44100
DEFAULT_FFT_SIZE: int = 4096


@runtime_checkable
class SpectrumSource(Protocol):
    """Anything that can produce one spectrum frame per analysis tick."""

    @property
    def sample_rate(self) -> float: ...

    def read_frame(self) -> SpectrumFrame | None:
        """Return the next frame, or None when no full frame is available."""
        ...


# ---------------------------------------------------------------------------
# In-memory and file sources
# ---------------------------------------------------------------------------


class ArraySpectrumSource:
    """Frames a pre-loaded signal block by block.

    Attributes:
        exhausted: True once the last full block has been returned.
    """

    def __init__(
        self,
        y: np.ndarray,
        sample_rate: float,
        *,
        fft_size: int = DEFAULT_FFT_SIZE,
        hop_length: int | None = None,
        window: str | None = DEFAULT_WINDOW,
    ) -> None:
        if not np.isfinite(sample_rate) or sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive and finite, got {sample_rate}")
        self._sample_rate = float(sample_rate)
        self._fft_size = fft_size
        self._hop_length = hop_length if hop_length is not None else fft_size // 4
        self._window = window
        self._blocks: Iterator[np.ndarray] = frame_blocks(y, fft_size, self._hop_length)
        self.frames_read = 0
        self.exhausted = False

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def hop_length(self) -> int:
        return self._hop_length

    def read_frame(self) -> SpectrumFrame | None:
        block = next(self._blocks, None)
        if block is None:
            self.exhausted = True
            return None
        self.frames_read += 1
        return magnitude_spectrum(block, self._sample_rate, window=self._window)

    def time_of_frame(self, index: int) -> float:
        """Start time in seconds of the ``index``-th frame."""
        return index * self._hop_length / self._sample_rate


class FileSpectrumSource(ArraySpectrumSource):
    """ArraySpectrumSource over the samples of an audio file."""

    def __init__(self, path: str | Path, y: np.ndarray, sample_rate: float, **kwargs: Any) -> None:
        super().__init__(y, sample_rate, **kwargs)
        self.path = Path(path)

    @classmethod
    def open(
        cls,
        path: str | Path,
        *,
        fft_size: int = DEFAULT_FFT_SIZE,
        hop_length: int | None = None,
        duration: float | None = DEFAULT_DURATION,
        sr: int | None = None,
        window: str | None = DEFAULT_WINDOW,
    ) -> FileSpectrumSource:
        """Load ``path`` and wrap its samples.

        Raises:
            FileNotFoundError, ValueError, RuntimeError: See load_audio().
                A recording shorter than one ``fft_size`` block is a ValueError.
        """
        y, loaded_sr = load_audio(
            path, duration=duration, sr=sr, mono=True, min_samples=fft_size
        )
        logger.info(
            "Loaded %s: %.2fs at %d Hz", Path(path).name, len(y) / loaded_sr, loaded_sr
        )
        return cls(
            path,
            y,
            loaded_sr,
            fft_size=fft_size,
            hop_length=hop_length,
            window=window,
        )


# ---------------------------------------------------------------------------
# Live microphone source
# ---------------------------------------------------------------------------


class MicrophoneSpectrumSource:
    """Live input via a sounddevice InputStream and a ring buffer.

    Example:
        with MicrophoneSpectrumSource(sample_rate=48000) as source:
            frame = source.read_frame()   # None until the buffer fills
    """

    exhausted = False

    def __init__(
        self,
        *,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        fft_size: int = DEFAULT_FFT_SIZE,
        device: int | str | None = None,
        channels: int = 1,
        window: str | None = DEFAULT_WINDOW,
        sounddevice: Any = None,
    ) -> None:
        """Configure the source. Nothing is opened until start().

        Args:
            sample_rate: Capture rate in Hz.
            fft_size: Samples per frame. Must be a power of two.
            device: sounddevice input device id or name. None = default.
            channels: Capture channels; mixed down to mono.
            window: scipy window name applied before the FFT.
            sounddevice: Injected sounddevice module. Pass a MagicMock in
                tests. None = import lazily on start().
        """
        if not np.isfinite(sample_rate) or sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive and finite, got {sample_rate}")
        if fft_size <= 0 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two, got {fft_size}")
        self._sample_rate = sample_rate
        self._fft_size = fft_size
        self._device = device
        self._channels = channels
        self._window = window
        self._sd = sounddevice

        self._lock = threading.Lock()
        self._buffer = np.zeros(fft_size, dtype=np.float64)
        self._write_index = 0
        self._filled = 0
        self._stream: Any = None

    def _get_sounddevice(self) -> Any:
        if self._sd is None:
            import sounddevice as _sd  # deferred — allows testing without PortAudio

            self._sd = _sd
        return self._sd

    @property
    def sample_rate(self) -> float:
        return float(self._sample_rate)

    @property
    def is_running(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        """Open the input stream and begin filling the ring buffer.

        Raises:
            RuntimeError: The audio device could not be opened.
        """
        if self._stream is not None:
            return
        sd = self._get_sounddevice()
        try:
            stream = sd.InputStream(
                samplerate=self._sample_rate,
                channels=self._channels,
                device=self._device,
                dtype="float32",
                callback=self._callback,
            )
            stream.start()
        except Exception as exc:
            raise RuntimeError(f"Failed to open audio input: {exc}") from exc
        self._stream = stream
        logger.info(
            "Microphone capture started (device=%s, %d Hz, fft_size=%d)",
            self._device,
            self._sample_rate,
            self._fft_size,
        )

    def stop(self) -> None:
        """Stop and close the stream. Safe to call more than once."""
        stream, self._stream = self._stream, None
        if stream is None:
            return
        stream.stop()
        stream.close()
        logger.info("Microphone capture stopped")

    def __enter__(self) -> MicrophoneSpectrumSource:
        self.start()
        return self

    def __exit__(self, *_: object) -> None:
        self.stop()

    def _callback(self, indata: np.ndarray, frames: int, time_info: Any, status: Any) -> None:
        """sounddevice callback — runs on the audio thread."""
        if status:
            logger.warning("Audio input status: %s", status)
        samples = np.asarray(indata, dtype=np.float64)
        if samples.ndim > 1:
            samples = samples.mean(axis=1)
        self._write(samples)

    def _write(self, samples: np.ndarray) -> None:
        size = self._fft_size
        if samples.size >= size:
            samples = samples[-size:]
        n = samples.size
        with self._lock:
            end = self._write_index + n
            if end <= size:
                self._buffer[self._write_index : end] = samples
            else:
                first = size - self._write_index
                self._buffer[self._write_index :] = samples[:first]
                self._buffer[: end - size] = samples[first:]
            self._write_index = end % size
            self._filled = min(size, self._filled + n)

    def read_frame(self) -> SpectrumFrame | None:
        """Return a spectrum of the most recent ``fft_size`` samples.

        Returns None until the ring buffer has been filled once.
        """
        with self._lock:
            if self._filled < self._fft_size:
                return None
            # oldest sample first
            block = np.roll(self._buffer, -self._write_index)
        return magnitude_spectrum(block, self._sample_rate, window=self._window)
