"""
ingestion/sinks.py — Display sinks for analysis events.

A sink is any callable taking a NoteEvent. AnalysisLoop dispatches exactly
one event per tick: a note, or silence (``event.analysis.reading is None``).

Temporal smoothing lives here, not in core/pitch: the analysis is
stateless per frame, and SmoothingSink decays the displayed values the way
a needle on a hardware tuner settles.
"""

from __future__ import annotations

import dataclasses
import sys
from dataclasses import dataclass
from typing import Protocol, TextIO

from core.pitch.tuning import DEFAULT_TOLERANCE_CENTS, classify_tuning
from core.pitch.types import FrameAnalysis, NoteReading, TuningStatus

_STATUS_TEXT: dict[TuningStatus, str] = {
    TuningStatus.FLAT: "flat",
    TuningStatus.IN_TUNE: "in tune",
    TuningStatus.SHARP: "sharp",
}


@dataclass(frozen=True)
class NoteEvent:
    """One tick's outcome as seen by a display sink."""

    tick: int
    """0-based tick counter of the loop that produced the event."""

    timestamp: float
    """Clock reading (seconds) when the frame was analysed."""

    analysis: FrameAnalysis

    @property
    def reading(self) -> NoteReading | None:
        return self.analysis.reading

    @property
    def is_silent(self) -> bool:
        return self.analysis.is_silent


class NoteSink(Protocol):
    def __call__(self, event: NoteEvent) -> None: ...


# ---------------------------------------------------------------------------
# Collecting
# ---------------------------------------------------------------------------


class CollectingSink:
    """Keeps every event. Used for offline reports and tests."""

    def __init__(self) -> None:
        self.events: list[NoteEvent] = []

    def __call__(self, event: NoteEvent) -> None:
        self.events.append(event)

    def __len__(self) -> int:
        return len(self.events)

    @property
    def readings(self) -> list[NoteReading]:
        """Non-silent readings in tick order."""
        return [e.reading for e in self.events if e.reading is not None]


# ---------------------------------------------------------------------------
# Smoothing
# ---------------------------------------------------------------------------


class ExponentialSmoother:
    """Exponential moving average: s = alpha·x + (1 - alpha)·s.

    The first value after construction or reset() is passed through as-is.
    """

    def __init__(self, alpha: float = 0.3) -> None:
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        self.alpha = alpha
        self.value: float | None = None

    def update(self, x: float) -> float:
        if self.value is None:
            self.value = x
        else:
            self.value = self.alpha * x + (1.0 - self.alpha) * self.value
        return self.value

    def reset(self) -> None:
        self.value = None


class SmoothingSink:
    """Smooths frequency and cents of consecutive readings of the same note.

    Silence or a change of note resets the averages, so a new note is shown
    immediately rather than gliding in from the previous one.
    """

    def __init__(
        self,
        inner: NoteSink,
        *,
        alpha: float = 0.3,
        tolerance_cents: float = DEFAULT_TOLERANCE_CENTS,
    ) -> None:
        self._inner = inner
        self._tolerance_cents = tolerance_cents
        self._frequency = ExponentialSmoother(alpha)
        self._cents = ExponentialSmoother(alpha)
        self._label: str | None = None

    def _reset(self) -> None:
        self._frequency.reset()
        self._cents.reset()
        self._label = None

    def __call__(self, event: NoteEvent) -> None:
        reading = event.reading
        if reading is None:
            self._reset()
            self._inner(event)
            return

        if reading.label != self._label:
            self._reset()
            self._label = reading.label

        cents = round(self._cents.update(reading.cents_deviation), 2) + 0.0
        smoothed = dataclasses.replace(
            reading,
            frequency_hz=round(self._frequency.update(reading.frequency_hz), 2),
            cents_deviation=cents,
        )
        analysis = dataclasses.replace(
            event.analysis,
            reading=smoothed,
            tuning=classify_tuning(cents, self._tolerance_cents),
        )
        self._inner(dataclasses.replace(event, analysis=analysis))


# ---------------------------------------------------------------------------
# Console
# ---------------------------------------------------------------------------


def format_event(event: NoteEvent) -> str:
    """Render an event as one fixed-width text line.

    Examples:
        'A4     440.00 Hz    +0.00 cents  in tune'
        '-           - Hz        - cents'
    """
    reading = event.reading
    if reading is None:
        return f"{'-':<4} {'-':>10} Hz {'-':>8} cents"
    status = _STATUS_TEXT[event.analysis.tuning] if event.analysis.tuning else ""
    return (
        f"{reading.label:<4} {reading.frequency_text:>10} Hz "
        f"{reading.cents_text:>8} cents  {status}"
    ).rstrip()


class ConsoleSink:
    """Writes one line per event to a text stream.

    With ``overwrite=True`` each line replaces the previous one in place
    (carriage return, no newline), like a tuner display.
    """

    def __init__(self, stream: TextIO | None = None, *, overwrite: bool = True) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._overwrite = overwrite
        self._last_width = 0

    def __call__(self, event: NoteEvent) -> None:
        line = format_event(event)
        if self._overwrite:
            padding = " " * max(0, self._last_width - len(line))
            self._stream.write(f"\r{line}{padding}")
            self._last_width = len(line)
        else:
            self._stream.write(f"{line}\n")
        self._stream.flush()
