"""
Tests for ingestion/analysis_loop.py — fixed-cadence driver.

Strategy:
    - A scripted FakeSource returns frames (or None) in order.
    - clock and sleep are injected so pacing is checked without waiting.
    - CollectingSink records what the loop dispatched.
"""

from __future__ import annotations

import threading

import pytest

from conftest import FFT_SIZE, SAMPLE_RATE, tone
from core.config import TunerConfig
from core.pitch.types import SpectrumFrame
from ingestion.analysis_loop import AnalysisLoop
from ingestion.sinks import CollectingSink
from ingestion.spectrum_sources import ArraySpectrumSource


class FakeSource:
    """Returns scripted frames; None entries simulate a filling buffer."""

    def __init__(self, frames: list[SpectrumFrame | None], *, exhaust: bool = True) -> None:
        self._frames = list(frames)
        self._exhaust = exhaust
        self.exhausted = False
        self.sample_rate = float(SAMPLE_RATE)

    def read_frame(self) -> SpectrumFrame | None:
        if self._frames:
            return self._frames.pop(0)
        self.exhausted = self._exhaust
        return None


class FakeClock:
    def __init__(self, step: float = 0.0) -> None:
        self.now = 0.0
        self.step = step
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        self.now += self.step
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


# ---------------------------------------------------------------------------
# tick()
# ---------------------------------------------------------------------------


class TestTick:
    def test_note_event_dispatched(self, a4_frame):
        sink = CollectingSink()
        loop = AnalysisLoop(FakeSource([a4_frame]), sink)

        event = loop.tick()

        assert event is sink.events[0]
        assert event.tick == 0
        assert event.reading.label == "A4"

    def test_silence_event_dispatched(self, silent_frame):
        sink = CollectingSink()
        event = AnalysisLoop(FakeSource([silent_frame]), sink).tick()
        assert event.is_silent
        assert len(sink) == 1

    def test_no_frame_dispatches_nothing(self):
        sink = CollectingSink()
        loop = AnalysisLoop(FakeSource([None]), sink)
        assert loop.tick() is None
        assert len(sink) == 0
        assert loop.ticks_dispatched == 0

    def test_ticks_are_numbered(self, a4_frame, silent_frame):
        sink = CollectingSink()
        loop = AnalysisLoop(FakeSource([a4_frame, None, silent_frame]), sink)
        for _ in range(3):
            loop.tick()
        assert [e.tick for e in sink.events] == [0, 1]

    def test_timestamp_from_clock(self, a4_frame):
        clock = FakeClock(step=0.5)
        event = AnalysisLoop(FakeSource([a4_frame]), CollectingSink(), clock=clock).tick()
        assert event.timestamp == pytest.approx(0.5)

    def test_config_is_applied(self, a4_frame):
        loop = AnalysisLoop(FakeSource([a4_frame]), CollectingSink(), TunerConfig(max_octave=3))
        assert loop.tick().is_silent

    def test_each_tick_independent(self, a4_frame, silent_frame):
        """A silent tick between two identical frames leaves the result unchanged."""
        sink = CollectingSink()
        loop = AnalysisLoop(FakeSource([a4_frame, silent_frame, a4_frame]), sink)
        for _ in range(3):
            loop.tick()
        assert sink.events[0].analysis == sink.events[2].analysis


# ---------------------------------------------------------------------------
# run()
# ---------------------------------------------------------------------------


class TestRun:
    def test_runs_until_source_exhausted(self):
        y = tone(440.0, n_samples=FFT_SIZE * 4)
        source = ArraySpectrumSource(y, SAMPLE_RATE, fft_size=FFT_SIZE, hop_length=FFT_SIZE)
        sink = CollectingSink()

        dispatched = AnalysisLoop(source, sink).run(paced=False)

        assert dispatched == 4
        assert all(r.label == "A4" for r in sink.readings)

    def test_max_ticks_bounds_iterations(self, a4_frame):
        """Iterations without a frame count towards max_ticks."""
        sink = CollectingSink()
        source = FakeSource([None, a4_frame, a4_frame, a4_frame], exhaust=False)
        dispatched = AnalysisLoop(source, sink).run(max_ticks=3, paced=False)
        assert dispatched == 2

    def test_unfilled_source_does_not_end_run(self, a4_frame):
        source = FakeSource([None, None, a4_frame], exhaust=True)
        sink = CollectingSink()
        AnalysisLoop(source, sink).run(paced=False)
        assert len(sink) == 1

    def test_paced_sleeps_remaining_interval(self, a4_frame):
        clock = FakeClock(step=0.0)
        loop = AnalysisLoop(
            FakeSource([a4_frame, a4_frame], exhaust=False),
            CollectingSink(),
            TunerConfig(frame_rate_hz=50.0),
            clock=clock,
            sleep=clock.sleep,
        )
        loop.run(max_ticks=2)
        assert clock.sleeps == [pytest.approx(0.02), pytest.approx(0.02)]

    def test_no_sleep_when_tick_overruns(self, a4_frame):
        clock = FakeClock(step=1.0)
        loop = AnalysisLoop(
            FakeSource([a4_frame], exhaust=False),
            CollectingSink(),
            clock=clock,
            sleep=clock.sleep,
        )
        loop.run(max_ticks=1)
        assert clock.sleeps == []

    def test_stop_from_sink(self, a4_frame):
        """stop() ends the run after the current tick."""
        sink = CollectingSink()
        source = FakeSource([a4_frame] * 10, exhaust=False)
        loop = AnalysisLoop(source, lambda event: (sink(event), loop.stop()))

        assert loop.run(paced=False) == 1
        assert not loop.is_running

    def test_stop_before_run_is_honoured(self, a4_frame):
        """A stop issued before run() starts is not lost."""
        sink = CollectingSink()
        loop = AnalysisLoop(FakeSource([a4_frame] * 4, exhaust=False), sink)
        loop.stop()

        assert loop.run(paced=False) == 0
        assert len(sink) == 0
        assert not loop.is_running

    def test_stop_request_is_consumed_by_one_run(self, a4_frame):
        loop = AnalysisLoop(FakeSource([a4_frame] * 4, exhaust=False), CollectingSink())
        loop.stop()
        loop.run(max_ticks=2, paced=False)
        assert loop.run(max_ticks=2, paced=False) == 2

    def test_stop_from_another_thread(self, a4_frame):
        source = FakeSource([a4_frame] * 1000, exhaust=False)
        loop = AnalysisLoop(source, CollectingSink())
        stopper = threading.Timer(0.05, loop.stop)
        stopper.start()
        try:
            dispatched = loop.run()
        finally:
            stopper.cancel()
        assert 0 < dispatched < 1000
        assert not loop.is_running

    def test_counts_accumulate_across_runs(self, a4_frame):
        loop = AnalysisLoop(FakeSource([a4_frame] * 4, exhaust=False), CollectingSink())
        assert loop.run(max_ticks=2, paced=False) == 2
        assert loop.run(max_ticks=2, paced=False) == 2
        assert loop.ticks_dispatched == 4

    def test_negative_max_ticks_raises(self, a4_frame):
        loop = AnalysisLoop(FakeSource([a4_frame]), CollectingSink())
        with pytest.raises(ValueError, match="max_ticks"):
            loop.run(max_ticks=-1)

    def test_running_flag_cleared_on_error(self, a4_frame):
        def failing_sink(event):
            raise RuntimeError("display gone")

        loop = AnalysisLoop(FakeSource([a4_frame]), failing_sink)
        with pytest.raises(RuntimeError, match="display gone"):
            loop.run(paced=False)
        assert not loop.is_running
