"""
tests/test_waveform_features.py — Per-segment spectral features.

Signal conventions:
    - Mono, float64, SR = 44100
    - Tones sit exactly on an FFT bin of the 256-point transform used for
      1-second signals, so the Hann main lobe covers bins k-1, k, k+1 and
      leakage elsewhere is negligible.
    - TestReferenceTone uses an off-bin 1000 Hz tone with 2048-point windows.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from core.config import SegmenterConfig
from core.waveform.colors import color_for
from core.waveform.features import (
    ENERGY_THRESHOLD,
    analyze_signal,
    extract_segment_features,
    spectral_features,
    windowed_buffer,
)
from core.waveform.fft import magnitude_spectrum
from core.waveform.segmenter import plan_segments
from core.waveform.types import SILENCE_SENTINEL, Signal

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SR = 44100
N = SR  # one second
FFT = 256
BIN_HZ = SR / FFT


def _sine(freq_hz: float, amplitude: float = 0.5, sr: int = SR, n: int = N) -> np.ndarray:
    """Generate a mono sine wave."""
    t = np.arange(n) / sr
    return (amplitude * np.sin(2.0 * np.pi * freq_hz * t)).astype(np.float64)


def _bin_sine(k: int, amplitude: float = 0.5) -> np.ndarray:
    """Sine exactly on bin k of the 256-point transform."""
    return _sine(k * BIN_HZ, amplitude)


def _signal(y: np.ndarray) -> Signal:
    return Signal(samples=y, sample_rate=SR)


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


class TestWindowedBuffer:
    def test_zero_pads_past_end(self):
        samples = np.ones(100)
        buf = windowed_buffer(samples, 50, 128)
        assert buf.shape == (128,)
        assert np.all(buf[50:] == 0.0)

    def test_applies_hann_taper(self):
        buf = windowed_buffer(np.ones(256), 0, 256)
        assert buf[0] == pytest.approx(0.0)
        assert buf[128] == pytest.approx(1.0, abs=1e-3)


class TestSpectralFeatures:
    def test_below_threshold_returns_none(self):
        assert spectral_features(np.zeros(128), 256, SR) is None

    def test_dc_bin_is_ignored(self):
        """Energy only in bin 0 counts as silence."""
        mags = np.zeros(128)
        mags[0] = 10.0
        assert spectral_features(mags, 256, SR) is None

    def test_single_bin_centroid(self):
        mags = np.zeros(128)
        mags[4] = 1.0
        centroid, low, mid, high = spectral_features(mags, 256, SR)
        assert centroid == pytest.approx(4 * BIN_HZ)
        assert (low, mid, high) == pytest.approx((1.0, 0.0, 0.0))

    def test_centroid_is_magnitude_weighted(self):
        """Two equal bins → centroid halfway between them."""
        mags = np.zeros(128)
        mags[2] = 1.0
        mags[10] = 1.0
        centroid, *_ = spectral_features(mags, 256, SR)
        assert centroid == pytest.approx(6 * BIN_HZ)

    def test_band_boundaries(self):
        """1100 Hz is mid (not low); 2000 Hz is high (not mid)."""
        mags = np.zeros(2048)
        mags[1100] = 1.0  # fft 4096 at sr 4096 → 1 Hz bins
        _, low, mid, high = spectral_features(mags, 4096, 4096)
        assert (low, mid, high) == pytest.approx((0.0, 1.0, 0.0))

        mags = np.zeros(2048)
        mags[2000] = 1.0
        _, low, mid, high = spectral_features(mags, 4096, 4096)
        assert (low, mid, high) == pytest.approx((0.0, 0.0, 1.0))


# ---------------------------------------------------------------------------
# Per-segment extraction
# ---------------------------------------------------------------------------


class TestExtractSegmentFeatures:
    def test_tone_near_1khz(self):
        """Bin-6 tone (≈1034 Hz): centroid within 50 Hz of the tone."""
        y = _bin_sine(6)
        seg = plan_segments(N).segments[10]
        feats = extract_segment_features(y, seg, SR)
        assert abs(feats.centroid_hz - 6 * BIN_HZ) < 50.0

    def test_low_tone_is_low_band(self):
        """≈689 Hz: main lobe entirely below 1100 Hz."""
        seg = plan_segments(N).segments[10]
        feats = extract_segment_features(_bin_sine(4), seg, SR)
        assert feats.low_energy > 0.95
        assert feats.high_energy < 0.01

    def test_mid_tone_is_mid_band(self):
        """≈1550 Hz: main lobe entirely in [1100, 2000)."""
        seg = plan_segments(N).segments[10]
        feats = extract_segment_features(_bin_sine(9), seg, SR)
        assert feats.mid_energy > 0.95

    def test_high_tone_is_high_band(self):
        """≈5168 Hz: main lobe entirely above 2000 Hz."""
        seg = plan_segments(N).segments[10]
        feats = extract_segment_features(_bin_sine(30), seg, SR)
        assert feats.high_energy > 0.95
        assert feats.centroid_hz > 4000.0

    def test_band_energies_sum_to_one(self):
        rng = np.random.default_rng(7)
        y = 0.3 * rng.standard_normal(N)
        seg = plan_segments(N).segments[0]
        feats = extract_segment_features(y, seg, SR)
        total = feats.low_energy + feats.mid_energy + feats.high_energy
        assert total == pytest.approx(1.0)

    def test_amplitude_envelope_uses_raw_samples(self):
        """amp_min/amp_max are taken before windowing."""
        y = _bin_sine(4, amplitude=0.8)
        seg = plan_segments(N).segments[3]
        feats = extract_segment_features(y, seg, SR)
        span = y[seg.start : seg.start + seg.fft_size]
        assert feats.amp_min == pytest.approx(float(np.min(span)))
        assert feats.amp_max == pytest.approx(float(np.max(span)))
        assert feats.amp_min < 0.0 < feats.amp_max

    def test_silence_returns_sentinel(self):
        seg = plan_segments(N).segments[0]
        assert extract_segment_features(np.zeros(N), seg, SR) is SILENCE_SENTINEL

    def test_near_silence_returns_sentinel(self):
        """Total energy below threshold → sentinel even with non-zero samples."""
        y = _bin_sine(4, amplitude=1e-5)
        seg = plan_segments(N).segments[0]
        mags = magnitude_spectrum(windowed_buffer(y, seg.start, seg.fft_size), seg.fft_size)
        assert float(np.sum(mags[1:] ** 2)) < ENERGY_THRESHOLD
        assert extract_segment_features(y, seg, SR) == SILENCE_SENTINEL


# ---------------------------------------------------------------------------
# Whole-signal analysis
# ---------------------------------------------------------------------------


class TestAnalyzeSignal:
    def test_one_second_tone(self):
        analysis = analyze_signal(_signal(_bin_sine(6)))
        assert len(analysis) == 172
        assert analysis.fft_size == 256
        assert analysis.samples_per_segment == 256
        assert analysis.sample_rate == SR
        assert analysis.duration_sec == pytest.approx(1.0)

    def test_centroids_near_tone(self):
        analysis = analyze_signal(_signal(_bin_sine(6)))
        centroids = np.array([f.centroid_hz for f in analysis.features])
        assert np.all(np.abs(centroids - 6 * BIN_HZ) < 50.0)

    def test_silent_signal_is_all_sentinels(self):
        analysis = analyze_signal(_signal(np.zeros(N)))
        assert all(f.is_silent for f in analysis.features)

    def test_empty_signal(self):
        analysis = analyze_signal(_signal(np.zeros(0)))
        assert analysis.features == ()
        assert analysis.num_samples == 0

    def test_deterministic(self):
        """Same input → identical features."""
        rng = np.random.default_rng(3)
        signal = _signal(0.2 * rng.standard_normal(N))
        assert analyze_signal(signal).features == analyze_signal(signal).features

    def test_executor_preserves_segment_order(self):
        """Parallel analysis yields exactly the sequential result."""
        rng = np.random.default_rng(11)
        y = np.concatenate([_bin_sine(4)[: N // 2], 0.3 * rng.standard_normal(N // 2)])
        signal = _signal(y)
        sequential = analyze_signal(signal)
        with ThreadPoolExecutor(max_workers=4) as pool:
            parallel = analyze_signal(signal, executor=pool)
        assert parallel.features == sequential.features

    def test_num_segments_override(self):
        analysis = analyze_signal(_signal(_bin_sine(4)), num_segments=10)
        assert len(analysis) == 10
        assert analysis.samples_per_segment == N // 10

    def test_custom_config(self):
        analysis = analyze_signal(_signal(_bin_sine(4)), SegmenterConfig(max_segments=50))
        assert len(analysis) == 50


class TestReferenceTone:
    """1000 Hz pure tone at 44.1 kHz analyzed with 2048-point windows."""

    @pytest.fixture()
    def analysis(self):
        return analyze_signal(_signal(_sine(1000.0)), num_segments=10)

    def test_uses_2048_point_fft(self, analysis):
        assert analysis.fft_size == 2048

    def test_centroid_near_1khz(self, analysis):
        for feats in analysis.features:
            assert 950.0 <= feats.centroid_hz <= 1050.0

    def test_energy_in_low_band(self, analysis):
        """1000 Hz is below the 1100 Hz low/mid boundary."""
        for feats in analysis.features:
            assert feats.low_energy == pytest.approx(1.0, abs=0.01)
            assert feats.high_energy == pytest.approx(0.0, abs=0.01)

    def test_color_is_teal(self, analysis):
        rgb = color_for(analysis.features[0].centroid_hz)
        assert rgb.g > rgb.r and rgb.b > rgb.r
