"""
core/waveform/features.py — Per-segment spectral features for a whole signal.

For every segment produced by the segmenter:

    raw samples ──► amp_min / amp_max            (unwindowed, real span only)
         │
         └─► Hann window + zero pad ──► FFT ──► |X[k]|, k ≥ 1
                                                   │
                     ┌─────────────────────────────┼──────────────────┐
                     ▼                             ▼                  ▼
              energy < 1e-6 ?               band energy ratios   spectral centroid
              → silence sentinel            (<1100 / <2000 / ≥)  Σ f·|X| / Σ |X|

Design:
    - All functions are pure: (Signal, config) → frozen results.
    - The DC bin is excluded from every aggregate.
    - Segments are independent; `analyze_signal` can fan them out over any
      `concurrent.futures.Executor`. `Executor.map` yields results in input
      order, so the feature list is always in segment-index order.
"""

from __future__ import annotations

from concurrent.futures import Executor

import numpy as np

from core.config import DEFAULT_SEGMENTER_CONFIG, SegmenterConfig
from core.waveform.fft import bin_frequencies, forward, hann_window
from core.waveform.segmenter import plan_segments
from core.waveform.types import (
    SILENCE_CENTROID_HZ,
    SILENCE_SENTINEL,
    SegmentFeatures,
    SegmentSpec,
    Signal,
    WaveformAnalysis,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

LOW_BAND_MAX_HZ: float = 1100.0  # low band: f < 1100 Hz
HIGH_BAND_MIN_HZ: float = 2000.0  # high band: f >= 2000 Hz; mid is in between
ENERGY_THRESHOLD: float = 1e-6  # total spectral energy below this is silence


# ---------------------------------------------------------------------------
# Per-segment extraction
# ---------------------------------------------------------------------------


def windowed_buffer(samples: np.ndarray, start: int, fft_size: int) -> np.ndarray:
    """Hann-windowed copy of ``samples[start : start + fft_size]``, zero-padded.

    Args:
        samples:  Full mono signal.
        start:    First sample of the window.
        fft_size: Window length (power of two).

    Returns:
        np.ndarray of shape (fft_size,), float64.
    """
    buffer = np.zeros(fft_size, dtype=np.float64)
    chunk = samples[start : start + fft_size]
    buffer[: chunk.shape[0]] = chunk
    return buffer * hann_window(fft_size)


def spectral_features(
    magnitudes: np.ndarray,
    fft_size: int,
    sample_rate: int,
) -> tuple[float, float, float, float] | None:
    """Band energy ratios and centroid from a magnitude spectrum.

    Args:
        magnitudes:  Output of the FFT engine, shape (fft_size // 2,).
        fft_size:    Transform length the spectrum came from.
        sample_rate: Sample rate in Hz.

    Returns:
        (centroid_hz, low, mid, high), or None when the total energy is
        below ENERGY_THRESHOLD.
    """
    mags = magnitudes[1:]
    freqs = bin_frequencies(fft_size, sample_rate)[1:]
    power = mags * mags

    total_energy = float(np.sum(power))
    if total_energy < ENERGY_THRESHOLD:
        return None

    low_mask = freqs < LOW_BAND_MAX_HZ
    high_mask = freqs >= HIGH_BAND_MIN_HZ
    mid_mask = ~(low_mask | high_mask)

    low = float(np.sum(power[low_mask])) / total_energy
    mid = float(np.sum(power[mid_mask])) / total_energy
    high = float(np.sum(power[high_mask])) / total_energy

    total_mag = float(np.sum(mags))
    centroid = float(np.sum(freqs * mags)) / total_mag if total_mag > 0 else SILENCE_CENTROID_HZ

    return centroid, low, mid, high


def extract_segment_features(
    samples: np.ndarray,
    segment: SegmentSpec,
    sample_rate: int,
) -> SegmentFeatures:
    """Compute the features of one segment.

    The amplitude envelope covers the analysis window's real samples
    (``[start, min(start + fft_size, len))``); the spectrum covers the same
    window after Hann tapering and zero padding.

    Returns:
        SegmentFeatures, or the silence sentinel for near-silent segments.
    """
    span = samples[segment.start : segment.start + segment.fft_size]
    magnitudes = forward(
        windowed_buffer(samples, segment.start, segment.fft_size), segment.fft_size, sample_rate
    )

    result = spectral_features(magnitudes, segment.fft_size, sample_rate)
    if result is None:
        return SILENCE_SENTINEL

    centroid, low, mid, high = result
    return SegmentFeatures(
        amp_min=float(np.min(span)),
        amp_max=float(np.max(span)),
        centroid_hz=centroid,
        low_energy=low,
        mid_energy=mid,
        high_energy=high,
    )


# ---------------------------------------------------------------------------
# Whole-signal pass
# ---------------------------------------------------------------------------


def analyze_signal(
    signal: Signal,
    config: SegmenterConfig = DEFAULT_SEGMENTER_CONFIG,
    *,
    num_segments: int | None = None,
    executor: Executor | None = None,
) -> WaveformAnalysis:
    """Run segmentation, FFT and feature extraction over a whole signal.

    Args:
        signal:       Decoded mono audio.
        config:       Segmentation bounds.
        num_segments: Optional explicit segment count (see plan_segments).
        executor:     Optional executor for per-segment work. Results are
                      reassembled in segment order regardless of completion
                      order.

    Returns:
        WaveformAnalysis with one SegmentFeatures per planned segment.
        An empty signal yields an empty feature tuple.
    """
    plan = plan_segments(len(signal), config, num_segments=num_segments)
    samples = signal.samples
    sr = signal.sample_rate

    def _extract(segment: SegmentSpec) -> SegmentFeatures:
        return extract_segment_features(samples, segment, sr)

    if executor is None or len(plan) < 2:
        features = tuple(_extract(s) for s in plan.segments)
    else:
        features = tuple(executor.map(_extract, plan.segments))

    return WaveformAnalysis(
        features=features,
        sample_rate=sr,
        num_samples=len(signal),
        samples_per_segment=plan.samples_per_segment,
        fft_size=plan.fft_size,
    )
