"""
ingestion/analysis_loop.py — Fixed-cadence driver for the pitch pipeline.

AnalysisLoop wires a spectrum source to a display sink:

    SpectrumSource.read_frame()      [ingestion/spectrum_sources.py — capture]
            ↓ SpectrumFrame
    analyze_frame()                  [core/pitch/analysis.py — pure DSP]
            ↓ FrameAnalysis
    NoteSink(NoteEvent)              [ingestion/sinks.py — display]

One tick = one frame = one event (note or silence). The loop keeps no
analysis state between ticks; only the tick counter survives. Pacing is
done with an injectable clock and sleep so tests run instantly.

Usage:
    with MicrophoneSpectrumSource() as source:
        loop = AnalysisLoop(source, ConsoleSink(), GUITAR_CONFIG)
        loop.run()          # Ctrl-C or loop.stop() from another thread
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from core.config import DEFAULT_CONFIG, TunerConfig
from core.pitch.analysis import analyze_frame
from infrastructure.metrics import LatencyTimer, record_tick
from ingestion.sinks import NoteEvent, NoteSink
from ingestion.spectrum_sources import SpectrumSource

logger = logging.getLogger(__name__)


class AnalysisLoop:
    """Pulls frames at a fixed rate, analyses them and dispatches events.

    Attributes:
        ticks_dispatched: Number of events sent to the sink so far.
    """

    def __init__(
        self,
        source: SpectrumSource,
        sink: NoteSink,
        config: TunerConfig = DEFAULT_CONFIG,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._source = source
        self._sink = sink
        self._config = config
        self._clock = clock
        self._sleep = sleep
        self._running = False
        self._stop_requested = threading.Event()
        self.ticks_dispatched = 0

    @property
    def config(self) -> TunerConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._running

    def tick(self) -> NoteEvent | None:
        """Run one analysis tick.

        Returns:
            The dispatched NoteEvent, or None when the source had no frame
            (buffer still filling, or exhausted). Nothing is dispatched then.
        """
        frame = self._source.read_frame()
        if frame is None:
            return None

        with LatencyTimer() as timer:
            analysis = analyze_frame(frame, self._config)

        event = NoteEvent(
            tick=self.ticks_dispatched,
            timestamp=self._clock(),
            analysis=analysis,
        )
        self.ticks_dispatched += 1

        reading = analysis.reading
        record_tick(
            note_name=reading.note_name if reading is not None else None,
            latency_seconds=timer.elapsed,
        )
        if reading is None:
            logger.debug("tick %d: silence (f=%.2f Hz)", event.tick, analysis.frequency_hz)
        else:
            logger.debug(
                "tick %d: %s %s Hz %s cents",
                event.tick,
                reading.label,
                reading.frequency_text,
                reading.cents_text,
            )

        self._sink(event)
        return event

    def run(self, max_ticks: int | None = None, *, paced: bool = True) -> int:
        """Tick until stopped, ``max_ticks`` iterations ran, or the source is exhausted.

        Args:
            max_ticks: Upper bound on loop iterations (including iterations
                where the source had no frame). None = unbounded.
            paced: Sleep between ticks to hold ``config.frame_rate_hz``.
                Offline sources pass False to run as fast as possible.

        Returns:
            Number of events dispatched during this run.
        """
        if max_ticks is not None and max_ticks < 0:
            raise ValueError(f"max_ticks must be non-negative, got {max_ticks}")

        interval = self._config.tick_interval_sec
        dispatched_before = self.ticks_dispatched
        iterations = 0
        self._running = True
        logger.info(
            "Analysis loop started (%.1f ticks/s, harmonics=%d)",
            self._config.frame_rate_hz,
            self._config.harmonics,
        )
        try:
            while not self._stop_requested.is_set():
                if max_ticks is not None and iterations >= max_ticks:
                    break
                iterations += 1

                started = self._clock()
                event = self.tick()
                if event is None and getattr(self._source, "exhausted", False):
                    logger.info("Spectrum source exhausted")
                    break

                if paced:
                    remaining = interval - (self._clock() - started)
                    if remaining > 0:
                        self._sleep(remaining)
        finally:
            self._running = False
            self._stop_requested.clear()

        dispatched = self.ticks_dispatched - dispatched_before
        logger.info("Analysis loop stopped after %d events", dispatched)
        return dispatched

    def stop(self) -> None:
        """Ask the loop to exit after the current tick.

        A stop requested while no run is active (e.g. from another thread
        racing the start-up) applies to the next run(), which then returns
        without ticking.
        """
        self._stop_requested.set()
