"""
Tests for core/waveform/segmenter.py — segment count, FFT size and layout.
"""

from __future__ import annotations

import pytest

from core.config import SegmenterConfig
from core.waveform.segmenter import choose_fft_size, plan_segments, segment_count

SR = 44100


class TestSegmentCount:
    def test_one_second(self):
        """44100 samples / 256 → 172 segments."""
        assert segment_count(SR) == 172

    def test_capped_at_max_segments(self):
        assert segment_count(SR * 60) == 2000

    def test_short_signal_gets_one_segment(self):
        assert segment_count(100) == 1

    def test_empty_signal_still_counts_one(self):
        assert segment_count(0) == 1

    def test_custom_config(self):
        config = SegmenterConfig(max_segments=500)
        assert segment_count(SR * 60, config) == 500


class TestChooseFftSize:
    @pytest.mark.parametrize(
        "samples_per_segment,expected",
        [(5000, 2048), (2048, 2048), (1323, 1024), (256, 256), (255, 128), (10, 128), (0, 128)],
    )
    def test_largest_power_of_two_within_bounds(self, samples_per_segment, expected):
        assert choose_fft_size(samples_per_segment) == expected

    def test_respects_custom_bounds(self):
        config = SegmenterConfig(min_fft_size=64, max_fft_size=512)
        assert choose_fft_size(100, config) == 64
        assert choose_fft_size(10_000, config) == 512


class TestPlanSegments:
    def test_one_second_plan(self):
        """1 s at 44.1 kHz → 172 segments of 256 samples, FFT 256."""
        plan = plan_segments(SR)
        assert plan.num_segments == 172
        assert plan.samples_per_segment == 256
        assert plan.fft_size == 256
        assert len(plan) == 172

    def test_long_signal_plan(self):
        """60 s → capped at 2000 segments, FFT halves down to 1024."""
        plan = plan_segments(SR * 60)
        assert len(plan) == 2000
        assert plan.samples_per_segment == SR * 60 // 2000
        assert plan.fft_size == 1024

    def test_segments_are_contiguous_and_ordered(self):
        plan = plan_segments(SR)
        assert plan.segments[0].start == 0
        for prev, cur in zip(plan.segments, plan.segments[1:]):
            assert cur.index == prev.index + 1
            assert cur.start == prev.stop

    def test_segments_stay_within_signal(self):
        length = SR * 3 + 17
        plan = plan_segments(length)
        for seg in plan.segments:
            assert 0 <= seg.start < seg.stop <= length
            assert seg.fft_size == plan.fft_size

    def test_remainder_is_not_covered(self):
        """Samples past num_segments * samples_per_segment are dropped."""
        plan = plan_segments(SR)
        assert plan.covered_samples == 172 * 256
        assert plan.covered_samples < SR

    def test_short_signal_zero_pads(self):
        """A 100-sample signal gets one segment with the minimum FFT size."""
        plan = plan_segments(100)
        assert len(plan) == 1
        assert plan.segments[0].length == 100
        assert plan.fft_size == 128

    def test_empty_signal_has_no_segments(self):
        plan = plan_segments(0)
        assert plan.num_segments == 1
        assert len(plan) == 0

    def test_negative_length_raises(self):
        with pytest.raises(ValueError, match="non-negative"):
            plan_segments(-1)


class TestSegmentOverride:
    def test_explicit_count(self):
        plan = plan_segments(1000, num_segments=10)
        assert len(plan) == 10
        assert plan.samples_per_segment == 100
        assert plan.segments[-1].stop == 1000

    def test_count_clamped_to_length(self):
        """Never more segments than samples."""
        plan = plan_segments(5, num_segments=10)
        assert len(plan) == 5
        assert all(seg.length == 1 for seg in plan.segments)

    def test_zero_count_raises(self):
        with pytest.raises(ValueError, match="num_segments must be >= 1"):
            plan_segments(1000, num_segments=0)
