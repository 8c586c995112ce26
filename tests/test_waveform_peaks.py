"""
Tests for core/waveform/peaks.py — amplitude-only peaks parsing and extraction.
"""

from __future__ import annotations

import numpy as np
import pytest

from core.waveform.peaks import Peaks, compute_peaks
from core.waveform.types import Signal


class TestPeaksType:
    def test_odd_length_raises(self):
        with pytest.raises(ValueError, match="pairs"):
            Peaks(data=(0.1, 0.2, 0.3))

    def test_zero_channels_raises(self):
        with pytest.raises(ValueError, match="channels"):
            Peaks(data=(), channels=0)

    def test_pairs(self):
        peaks = Peaks(data=(-0.1, 0.2, -0.3, 0.4))
        assert peaks.num_bars == 2
        assert peaks.pairs == [(-0.1, 0.2), (-0.3, 0.4)]

    def test_duration_from_header(self):
        peaks = Peaks(data=(0.0, 0.0) * 100, sample_rate=44100, samples_per_pixel=441.0)
        assert peaks.duration_sec == pytest.approx(1.0)

    def test_duration_unknown_without_header(self):
        assert Peaks(data=(0.0, 0.1)).duration_sec == 0.0

    def test_scaled(self):
        peaks = Peaks(data=(-0.2, 0.4), sample_rate=8000).scaled(0.5)
        assert peaks.data == pytest.approx((-0.1, 0.2))
        assert peaks.sample_rate == 8000


class TestFromDict:
    def test_bare_list(self):
        peaks = Peaks.from_dict([-0.5, 0.5, -0.2, 0.3])
        assert peaks.num_bars == 2
        assert peaks.sample_rate == 0

    def test_peaks_wrapper(self):
        peaks = Peaks.from_dict({"peaks": [-0.5, 0.5]})
        assert peaks.data == (-0.5, 0.5)

    def test_full_structure(self):
        payload = {
            "sample_rate": 48000,
            "samples_per_pixel": 512,
            "channels": 2,
            "data": [-0.1, 0.1, -0.2, 0.2],
        }
        peaks = Peaks.from_dict(payload)
        assert peaks.sample_rate == 48000
        assert peaks.samples_per_pixel == 512.0
        assert peaks.channels == 2
        assert peaks.num_bars == 2

    def test_eight_bit_data_normalized(self):
        peaks = Peaks.from_dict({"bits": 8, "data": [-128, 64]})
        assert peaks.data == pytest.approx((-1.0, 0.5))
        assert peaks.bits == 8

    def test_sixteen_bit_data_normalized(self):
        peaks = Peaks.from_dict({"bits": 16, "data": [-32768, 16384]})
        assert peaks.data == pytest.approx((-1.0, 0.5))

    def test_missing_data_raises(self):
        with pytest.raises(ValueError, match="no 'data' or 'peaks'"):
            Peaks.from_dict({"sample_rate": 44100})

    def test_non_numeric_raises(self):
        with pytest.raises(ValueError, match="numeric"):
            Peaks.from_dict({"data": ["a", "b"]})

    def test_string_payload_raises(self):
        with pytest.raises(ValueError, match="Unsupported peaks payload"):
            Peaks.from_dict("not peaks")  # type: ignore[arg-type]

    def test_to_dict(self):
        peaks = Peaks(data=(-0.5, 0.5), sample_rate=44100, samples_per_pixel=32.0)
        out = peaks.to_dict()
        assert out == {
            "sample_rate": 44100,
            "samples_per_pixel": 32.0,
            "channels": 1,
            "length": 1,
            "data": [-0.5, 0.5],
        }

    def test_to_dict_keeps_bits(self):
        assert Peaks.from_dict({"bits": 8, "data": [0, 0]}).to_dict()["bits"] == 8


class TestComputePeaks:
    def test_min_max_per_slice(self):
        y = np.concatenate([np.linspace(-1.0, 0.5, 32), np.linspace(-0.25, 0.75, 32)])
        peaks = compute_peaks(Signal(samples=y, sample_rate=8000), 32)
        assert peaks.pairs == [
            (pytest.approx(-1.0), pytest.approx(0.5)),
            (pytest.approx(-0.25), pytest.approx(0.75)),
        ]
        assert peaks.samples_per_pixel == 32.0
        assert peaks.sample_rate == 8000

    def test_short_signal_gets_one_pair(self):
        y = np.array([0.1, -0.4, 0.3])
        peaks = compute_peaks(Signal(samples=y, sample_rate=8000))
        assert peaks.pairs == [(pytest.approx(-0.4), pytest.approx(0.3))]

    def test_every_sample_covered(self):
        """The global extremes always appear in some pair."""
        rng = np.random.default_rng(5)
        y = rng.uniform(-1.0, 1.0, 1000)
        peaks = compute_peaks(Signal(samples=y, sample_rate=8000), 32)
        assert peaks.num_bars == 1000 // 32
        assert min(peaks.data) == pytest.approx(y.min())
        assert max(peaks.data) == pytest.approx(y.max())

    def test_empty_signal(self):
        peaks = compute_peaks(Signal(samples=np.zeros(0), sample_rate=8000))
        assert peaks.num_bars == 0

    def test_invalid_slice_size_raises(self):
        with pytest.raises(ValueError, match="min_samples_per_peak"):
            compute_peaks(Signal(samples=np.zeros(10), sample_rate=8000), 0)
