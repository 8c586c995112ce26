"""Prometheus metrics for the waveform analysis service.

Metrics:
    wfa_analysis_runs_total          Counter by status (completed/stale/failed)
    wfa_analysis_latency_seconds     Histogram of whole-signal analysis time
    wfa_segments_analyzed_total      Counter of segments run through the FFT
    wfa_render_calls_total           Counter by mode (spectral/peaks/placeholder)

Usage::

    from infrastructure.metrics import LatencyTimer, record_analysis

    with LatencyTimer() as t:
        analysis = analyze_signal(signal)
    record_analysis(status="completed", segments=len(analysis), latency_seconds=t.elapsed)
"""

from __future__ import annotations

import logging
import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

ANALYSIS_STATUSES: frozenset[str] = frozenset({"completed", "stale", "failed"})
RENDER_MODES: frozenset[str] = frozenset({"spectral", "peaks", "placeholder"})

_REGISTRY = CollectorRegistry()

analysis_runs_total = Counter(
    "wfa_analysis_runs_total",
    "Whole-signal analysis passes by outcome",
    ["status"],
    registry=_REGISTRY,
)

analysis_latency_seconds = Histogram(
    "wfa_analysis_latency_seconds",
    "Wall-clock time of one whole-signal analysis pass",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
    registry=_REGISTRY,
)

segments_analyzed_total = Counter(
    "wfa_segments_analyzed_total",
    "Segments run through the FFT engine",
    registry=_REGISTRY,
)

render_calls_total = Counter(
    "wfa_render_calls_total",
    "Render invocations by mode",
    ["mode"],
    registry=_REGISTRY,
)

logger.debug("Prometheus metrics registry initialized")


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def record_analysis(*, status: str, segments: int = 0, latency_seconds: float = 0.0) -> None:
    """Record a finished analysis pass.

    Args:
        status: One of "completed", "stale", "failed".
        segments: Number of segments analyzed (counted for every status;
            stale passes did the work even though the result is dropped).
        latency_seconds: Wall-clock time of the pass in seconds.

    Raises:
        ValueError: If status is not a known analysis status.
    """
    if status not in ANALYSIS_STATUSES:
        raise ValueError(f"Unknown analysis status {status!r}, valid: {sorted(ANALYSIS_STATUSES)}")
    analysis_runs_total.labels(status=status).inc()
    if segments:
        segments_analyzed_total.inc(segments)
    if status != "failed":
        analysis_latency_seconds.observe(latency_seconds)


def record_render(mode: str) -> None:
    """Increment the render counter for `mode`.

    Args:
        mode: One of "spectral", "peaks", "placeholder".
    """
    if mode not in RENDER_MODES:
        raise ValueError(f"Unknown render mode {mode!r}, valid: {sorted(RENDER_MODES)}")
    render_calls_total.labels(mode=mode).inc()


def get_metrics_response() -> tuple[bytes, str]:
    """Generate Prometheus text exposition format.

    Returns:
        Tuple of (body_bytes, content_type_string).
    """
    return generate_latest(_REGISTRY), CONTENT_TYPE_LATEST


class LatencyTimer:
    """Context manager for measuring latency.

    Usage::

        with LatencyTimer() as t:
            analysis = analyze_signal(signal)
        record_analysis(status="completed", latency_seconds=t.elapsed)
    """

    def __init__(self) -> None:
        """Initialize timer."""
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> LatencyTimer:
        """Start timing."""
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_: object) -> None:
        """Stop timing and record elapsed."""
        self.elapsed = time.perf_counter() - self._start
