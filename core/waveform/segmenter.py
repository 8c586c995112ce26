"""
core/waveform/segmenter.py — Partition a signal into analysis segments.

Segment count scales with signal length (one segment per
`min_samples_per_segment` samples) and is capped at `max_segments`. A single
FFT size is chosen per pass: the largest power of two not exceeding the
segment length, bounded to [min_fft_size, max_fft_size].
"""

from __future__ import annotations

from core.config import DEFAULT_SEGMENTER_CONFIG, SegmenterConfig
from core.waveform.types import SegmentPlan, SegmentSpec


def segment_count(length: int, config: SegmenterConfig = DEFAULT_SEGMENTER_CONFIG) -> int:
    """Number of segments for a signal of `length` samples.

    Always at least 1, even for an empty signal; the plan itself will then
    contain no segments because the first start offset is already past the end.
    """
    n = length // config.min_samples_per_segment
    return max(1, min(n, config.max_segments))


def choose_fft_size(
    samples_per_segment: int,
    config: SegmenterConfig = DEFAULT_SEGMENTER_CONFIG,
) -> int:
    """Halve the FFT size from the maximum until it fits the segment.

    Stops at `min_fft_size`, so very short segments are zero-padded.
    """
    fft_size = config.max_fft_size
    while fft_size > samples_per_segment and fft_size > config.min_fft_size:
        fft_size //= 2
    return fft_size


def plan_segments(
    length: int,
    config: SegmenterConfig = DEFAULT_SEGMENTER_CONFIG,
    *,
    num_segments: int | None = None,
) -> SegmentPlan:
    """Lay out ordered, non-overlapping segments over `length` samples.

    Args:
        length:       Number of samples in the signal.
        config:       Segmentation bounds.
        num_segments: Explicit segment count overriding the length-based
                      heuristic. Must be >= 1; clamped to `length`.

    Returns:
        SegmentPlan whose segments partition the signal left to right.
        Samples past `num_segments * samples_per_segment` are not covered.

    Raises:
        ValueError: If length is negative or num_segments < 1.
    """
    if length < 0:
        raise ValueError(f"length must be non-negative, got {length}")
    if num_segments is None:
        count = segment_count(length, config)
    elif num_segments < 1:
        raise ValueError(f"num_segments must be >= 1, got {num_segments}")
    else:
        # never more segments than samples, so every span is non-empty
        count = min(num_segments, max(length, 1))

    samples_per_segment = length // count
    fft_size = choose_fft_size(samples_per_segment, config)

    segments: list[SegmentSpec] = []
    for index in range(count):
        start = index * samples_per_segment
        if start >= length:
            break
        stop = min(start + samples_per_segment, length)
        segments.append(SegmentSpec(index=index, start=start, stop=stop, fft_size=fft_size))

    return SegmentPlan(
        num_segments=count,
        samples_per_segment=samples_per_segment,
        fft_size=fft_size,
        segments=tuple(segments),
    )
