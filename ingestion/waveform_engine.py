"""
ingestion/waveform_engine.py — Background analysis and file-level orchestration.

Two entry points wire the pure core/waveform pipeline to the outside world:

    WaveformSession   — one interactive view. Loads a Signal (or Peaks),
                        analyzes it on a background worker, and renders on
                        demand without ever blocking on the analysis.

    WaveformEngine    — stateless, file-based. Decodes a file and returns
                        analysis, draw commands, or peaks (used by the API).

Stale-result protection:
    Every load bumps a generation token under a lock. A finished analysis is
    only published if its generation still matches; otherwise it is dropped
    and counted as "stale". No other shared mutable state exists, so no other
    locking is needed.

Configuration (environment, read at construction time):
    WAVEFORM_SEGMENT_WORKERS   Threads for per-segment FFT work (default 0 =
                               analyze segments sequentially on the worker).
    WAVEFORM_MAX_DURATION      Seconds decoded per file (default 600).
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from core.config import (
    DEFAULT_RENDER_POLICY,
    DEFAULT_SEGMENTER_CONFIG,
    RenderPolicy,
    SegmenterConfig,
)
from core.waveform.features import analyze_signal
from core.waveform.peaks import DEFAULT_MIN_SAMPLES_PER_PEAK, Peaks, compute_peaks
from core.waveform.render import (
    progress_at,
    render_peaks,
    render_placeholder,
    render_waveform,
)
from core.waveform.types import (
    DrawCommand,
    RenderState,
    SegmentFeatures,
    Signal,
    WaveformAnalysis,
)
from infrastructure.metrics import LatencyTimer, record_analysis, record_render
from ingestion.audio_loader import load_peaks, load_signal

logger = logging.getLogger(__name__)

NO_SOURCE_MESSAGE = "No audio loaded"
ANALYZING_MESSAGE = "Loading..."


def _segment_workers_from_env() -> int:
    workers = int(os.environ.get("WAVEFORM_SEGMENT_WORKERS", "0"))
    if workers < 0:
        raise ValueError(f"WAVEFORM_SEGMENT_WORKERS must be >= 0, got {workers}")
    return workers


def _max_duration_from_env() -> float:
    duration = float(os.environ.get("WAVEFORM_MAX_DURATION", "600"))
    if duration <= 0:
        raise ValueError(f"WAVEFORM_MAX_DURATION must be positive, got {duration}")
    return duration


def _segment_pool(workers: int) -> ThreadPoolExecutor | None:
    if workers <= 0:
        return None
    return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="waveform-fft")


# ---------------------------------------------------------------------------
# WaveformSession
# ---------------------------------------------------------------------------


class WaveformSession:
    """Interactive waveform view state with background analysis.

    Args:
        config: Segmentation bounds for analysis.
        policy: Visual policy for rendering.
        segment_workers: Threads for per-segment FFT work. None reads
            WAVEFORM_SEGMENT_WORKERS; 0 analyzes sequentially.
        on_seek: Callback receiving a progress fraction in [0, 1] when the
            user seeks (click/tap on the waveform).

    Example::

        with WaveformSession(on_seek=player.seek) as session:
            session.load_signal(signal)
            commands = session.render(RenderState(width=800, height=60))
            # ... later, after analysis has finished:
            commands = session.render(RenderState(width=800, height=60, progress=0.25))
    """

    def __init__(
        self,
        config: SegmenterConfig = DEFAULT_SEGMENTER_CONFIG,
        policy: RenderPolicy = DEFAULT_RENDER_POLICY,
        *,
        segment_workers: int | None = None,
        on_seek: Callable[[float], None] | None = None,
    ) -> None:
        """Initialise an empty session."""
        self._config = config
        self._policy = policy
        self._on_seek = on_seek

        workers = _segment_workers_from_env() if segment_workers is None else segment_workers
        self._runner = ThreadPoolExecutor(max_workers=1, thread_name_prefix="waveform-analysis")
        self._segment_pool = _segment_pool(workers)

        self._lock = threading.Lock()
        self._generation = 0
        self._signal: Signal | None = None
        self._analysis: WaveformAnalysis | None = None
        self._peaks: Peaks | None = None
        self._pending: Future[WaveformAnalysis | None] | None = None

        logger.debug("WaveformSession created (segment_workers=%d)", workers)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_signal(self, signal: Signal) -> Future[WaveformAnalysis | None]:
        """Replace the current source with `signal` and start analyzing it.

        Any analysis still running for a previous source becomes stale and
        its result will be discarded.

        Returns:
            Future resolving to the WaveformAnalysis, or None if the result
            was superseded by a later load before it could be published.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._signal = signal
            self._analysis = None
            self._peaks = None
            future = self._runner.submit(self._analyze, signal, generation)
            self._pending = future
        logger.debug(
            "Analysis queued (generation=%d, samples=%d, sr=%d)",
            generation,
            len(signal),
            signal.sample_rate,
        )
        return future

    def load_peaks(self, peaks: Peaks) -> None:
        """Replace the current source with amplitude-only peaks.

        Invalidates any in-flight analysis. Rendering falls back to
        single-color bars.
        """
        with self._lock:
            self._generation += 1
            self._signal = None
            self._analysis = None
            self._peaks = peaks
            self._pending = None

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _analyze(self, signal: Signal, generation: int) -> WaveformAnalysis | None:
        if not self._is_current(generation):
            logger.info("Skipping superseded analysis (generation=%d)", generation)
            record_analysis(status="stale")
            return None

        try:
            with LatencyTimer() as timer:
                analysis = analyze_signal(signal, self._config, executor=self._segment_pool)
        except Exception:
            logger.exception("Waveform analysis failed (generation=%d)", generation)
            record_analysis(status="failed")
            raise

        with self._lock:
            current = generation == self._generation
            if current:
                self._analysis = analysis

        if not current:
            logger.info(
                "Discarding stale analysis (generation=%d, %d segments)",
                generation,
                len(analysis),
            )
            record_analysis(status="stale", segments=len(analysis), latency_seconds=timer.elapsed)
            return None

        record_analysis(status="completed", segments=len(analysis), latency_seconds=timer.elapsed)
        logger.debug(
            "Analysis published (generation=%d, %d segments, fft=%d, %.3fs)",
            generation,
            len(analysis),
            analysis.fft_size,
            timer.elapsed,
        )
        return analysis

    def wait(self, timeout: float | None = None) -> WaveformAnalysis | None:
        """Block until the pending analysis finishes and return it.

        Intended for scripts and tests; interactive callers should poll
        `features` or rely on `render()` showing a placeholder.

        Raises:
            concurrent.futures.TimeoutError: If the analysis is not done in time.
            Exception: Whatever the analysis itself raised.
        """
        with self._lock:
            pending = self._pending
        if pending is None:
            return self.analysis
        return pending.result(timeout=timeout)

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def signal(self) -> Signal | None:
        with self._lock:
            return self._signal

    @property
    def analysis(self) -> WaveformAnalysis | None:
        with self._lock:
            return self._analysis

    @property
    def features(self) -> tuple[SegmentFeatures, ...] | None:
        """Per-segment features, or None until analysis of the current source finishes."""
        analysis = self.analysis
        return analysis.features if analysis is not None else None

    @property
    def peaks(self) -> Peaks | None:
        with self._lock:
            return self._peaks

    @property
    def duration_sec(self) -> float:
        """Duration of the current source; 0.0 when nothing is loaded."""
        with self._lock:
            if self._signal is not None:
                return self._signal.duration_sec
            if self._peaks is not None:
                return self._peaks.duration_sec
            return 0.0

    @property
    def is_analyzing(self) -> bool:
        with self._lock:
            return self._pending is not None and not self._pending.done()

    # ------------------------------------------------------------------
    # Rendering and interaction
    # ------------------------------------------------------------------

    def render(self, state: RenderState) -> tuple[DrawCommand, ...]:
        """Draw commands for the current source. Never waits for analysis."""
        with self._lock:
            analysis = self._analysis
            peaks = self._peaks
            has_signal = self._signal is not None

        if analysis is not None:
            record_render("spectral")
            return render_waveform(
                analysis.features,
                state,
                duration_sec=analysis.duration_sec,
                policy=self._policy,
            )
        if peaks is not None:
            record_render("peaks")
            return render_peaks(peaks, state, policy=self._policy)

        record_render("placeholder")
        message = ANALYZING_MESSAGE if has_signal else NO_SOURCE_MESSAGE
        return render_placeholder(state, message, policy=self._policy)

    def seek(self, fraction: float) -> float:
        """Clamp `fraction` to [0, 1] and forward it to the seek callback."""
        fraction = min(1.0, max(0.0, fraction))
        if self._on_seek is not None:
            self._on_seek(fraction)
        return fraction

    def seek_at(self, x: float, state: RenderState) -> float:
        """Seek to the position under viewport pixel `x`."""
        return self.seek(progress_at(x, state))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Stop the workers. Queued analyses are cancelled; a running one finishes."""
        with self._lock:
            self._generation += 1
        self._runner.shutdown(wait=True, cancel_futures=True)
        if self._segment_pool is not None:
            self._segment_pool.shutdown(wait=True)
        logger.debug("WaveformSession closed")

    def __enter__(self) -> WaveformSession:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# WaveformEngine
# ---------------------------------------------------------------------------


class WaveformEngine:
    """File-level orchestrator: decode, analyze, render.

    All DSP is delegated to pure functions in core/waveform. This class only
    adds the I/O boundary and operational settings.

    Example:
        engine = WaveformEngine()
        analysis = engine.analyze_file("/path/to/loop.wav")
        commands = engine.render_file("/path/to/loop.wav", RenderState(width=800, height=60))
    """

    def __init__(
        self,
        config: SegmenterConfig = DEFAULT_SEGMENTER_CONFIG,
        policy: RenderPolicy = DEFAULT_RENDER_POLICY,
        *,
        max_duration: float | None = None,
        segment_workers: int | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: Segmentation bounds.
            policy: Visual policy for rendering.
            max_duration: Seconds decoded per file. None reads WAVEFORM_MAX_DURATION.
            segment_workers: Threads for per-segment FFT work. None reads
                WAVEFORM_SEGMENT_WORKERS.
        """
        self.config = config
        self.policy = policy
        self.max_duration = _max_duration_from_env() if max_duration is None else max_duration
        workers = _segment_workers_from_env() if segment_workers is None else segment_workers
        self._segment_pool = _segment_pool(workers)

    def load(self, path: str | Path, *, duration: float | None = None) -> Signal:
        """Decode `path` into a Signal, capped at `duration` (or max_duration) seconds."""
        limit = self.max_duration if duration is None else min(duration, self.max_duration)
        return load_signal(path, duration=limit)

    def analyze(self, signal: Signal) -> WaveformAnalysis:
        """Analyze an already-decoded signal, recording metrics."""
        try:
            with LatencyTimer() as timer:
                analysis = analyze_signal(signal, self.config, executor=self._segment_pool)
        except Exception:
            record_analysis(status="failed")
            raise
        record_analysis(status="completed", segments=len(analysis), latency_seconds=timer.elapsed)
        return analysis

    def analyze_file(self, path: str | Path, *, duration: float | None = None) -> WaveformAnalysis:
        """Decode and analyze an audio file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file extension is not a supported format.
            RuntimeError: If the audio cannot be decoded.
        """
        return self.analyze(self.load(path, duration=duration))

    def render_file(
        self,
        path: str | Path,
        state: RenderState,
        *,
        duration: float | None = None,
    ) -> tuple[DrawCommand, ...]:
        """Decode, analyze and render an audio file in one call."""
        analysis = self.analyze_file(path, duration=duration)
        record_render("spectral")
        return render_waveform(
            analysis.features, state, duration_sec=analysis.duration_sec, policy=self.policy
        )

    def peaks_for_file(
        self,
        path: str | Path,
        *,
        duration: float | None = None,
        min_samples_per_peak: int = DEFAULT_MIN_SAMPLES_PER_PEAK,
    ) -> Peaks:
        """Amplitude-only peaks for an audio file (no spectral analysis)."""
        return compute_peaks(self.load(path, duration=duration), min_samples_per_peak)

    def render_peaks_file(self, path: str | Path, state: RenderState) -> tuple[DrawCommand, ...]:
        """Render a pre-computed peaks JSON file."""
        peaks = load_peaks(path)
        record_render("peaks")
        return render_peaks(peaks, state, policy=self.policy)

    def close(self) -> None:
        if self._segment_pool is not None:
            self._segment_pool.shutdown(wait=True)
