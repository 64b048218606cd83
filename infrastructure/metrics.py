"""Prometheus metrics for the live pitch analyser.

Exposes tuner outcomes in metrics so dashboards show how often a session
produced stable notes versus silence, not just generic HTTP stats.

Metrics:
    tuner_ticks_total                  Counter by outcome (note/silence)
    tuner_notes_total                  Counter by detected pitch class
    tuner_tick_latency_seconds         Histogram of per-tick analysis time
    tuner_api_requests_total           Counter by endpoint and status

Usage::

    from infrastructure.metrics import LatencyTimer, record_tick

    with LatencyTimer() as t:
        analysis = analyze_frame(frame, config)
    record_tick(note_name=..., latency_seconds=t.elapsed)
"""

from __future__ import annotations

import logging
import time

logger = logging.getLogger(__name__)

# Lazy import — prometheus_client is optional. If not installed, all calls
# are no-ops and /metrics returns an empty body.
_registry_available = False
try:
    from prometheus_client import (
        CONTENT_TYPE_LATEST,
        CollectorRegistry,
        Counter,
        Histogram,
        generate_latest,
    )

    _REGISTRY = CollectorRegistry()

    ticks_total = Counter(
        "tuner_ticks_total",
        "Analysis ticks by outcome",
        ["outcome"],
        registry=_REGISTRY,
    )

    notes_total = Counter(
        "tuner_notes_total",
        "Stable notes detected, by pitch class",
        ["note"],
        registry=_REGISTRY,
    )

    tick_latency_seconds = Histogram(
        "tuner_tick_latency_seconds",
        "Time spent analysing one spectrum frame",
        buckets=[0.0005, 0.001, 0.0025, 0.005, 0.01, 0.0167, 0.033, 0.1],
        registry=_REGISTRY,
    )

    api_requests_total = Counter(
        "tuner_api_requests_total",
        "Pitch API requests by endpoint and status",
        ["endpoint", "status"],
        registry=_REGISTRY,
    )

    _registry_available = True
    logger.info("Prometheus metrics registry initialized")

except ImportError:
    logger.info("prometheus_client not installed — metrics disabled")
    _REGISTRY = None  # type: ignore[assignment]


# ---------------------------------------------------------------------------
# Public helpers — all are no-ops when prometheus_client is not installed
# ---------------------------------------------------------------------------


def record_tick(*, note_name: str | None, latency_seconds: float) -> None:
    """Record one completed analysis tick.

    Args:
        note_name: Pitch class of the reading, or None for a silent tick.
        latency_seconds: Wall-clock analysis time for the frame.
    """
    if not _registry_available:
        return
    if note_name is None:
        ticks_total.labels(outcome="silence").inc()
    else:
        ticks_total.labels(outcome="note").inc()
        notes_total.labels(note=note_name).inc()
    tick_latency_seconds.observe(latency_seconds)


def record_api_request(endpoint: str, status: str) -> None:
    """Increment the API request counter.

    Args:
        endpoint: Route name, e.g. "frame" or "note".
        status: "note", "silence" or "rejected".
    """
    if _registry_available:
        api_requests_total.labels(endpoint=endpoint, status=status).inc()


def get_metrics_response() -> tuple[bytes, str]:
    """Generate Prometheus text exposition format.

    Returns:
        Tuple of (body_bytes, content_type_string).
        Returns empty bytes if prometheus_client is not available.
    """
    if not _registry_available:
        return b"", "text/plain"
    return generate_latest(_REGISTRY), CONTENT_TYPE_LATEST


class LatencyTimer:
    """Context manager for measuring latency.

    Usage::

        with LatencyTimer() as t:
            analysis = analyze_frame(frame)
        record_tick(note_name=None, latency_seconds=t.elapsed)
    """

    def __init__(self) -> None:
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> LatencyTimer:
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_: object) -> None:
        self.elapsed = time.perf_counter() - self._start
