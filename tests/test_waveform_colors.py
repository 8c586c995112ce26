"""
Tests for core/waveform/colors.py — frequency→color gradient and legend.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from core.waveform.colors import (
    COLOR_STOPS,
    FREQUENCY_LEGEND,
    MAX_COLOR_HZ,
    MIN_COLOR_HZ,
    band_index,
    color_for,
    legend,
)
from core.waveform.types import RGB


class TestColorStops:
    def test_twenty_two_stops(self):
        assert len(COLOR_STOPS) == 22

    def test_frequencies_strictly_increasing(self):
        freqs = [s.frequency_hz for s in COLOR_STOPS]
        assert all(b > a for a, b in zip(freqs, freqs[1:]))

    def test_range(self):
        assert COLOR_STOPS[0].frequency_hz == 50.0
        assert COLOR_STOPS[-1].frequency_hz == 10000.0

    @pytest.mark.parametrize("stop", COLOR_STOPS, ids=lambda s: f"{s.frequency_hz:g}Hz")
    def test_anchor_returns_exact_color(self, stop):
        assert color_for(stop.frequency_hz) == stop.color


class TestColorFor:
    def test_teal_at_800hz(self):
        assert color_for(800.0) == RGB(50, 160, 170)

    def test_midpoint_interpolation(self):
        """75 Hz is halfway between the 50 Hz and 100 Hz stops."""
        assert color_for(75.0) == RGB(85, 65, 125)

    def test_rounds_half_up(self):
        """1350 Hz: green channel 162.5 rounds to 163, not to even."""
        assert color_for(1350.0) == RGB(100, 163, 130)

    def test_clamps_below_range(self):
        assert color_for(10.0) == COLOR_STOPS[0].color
        assert color_for(0.0) == COLOR_STOPS[0].color
        assert color_for(-100.0) == COLOR_STOPS[0].color

    def test_above_last_stop_returns_last_color(self):
        last = COLOR_STOPS[-1].color
        assert color_for(11000.0) == last
        assert color_for(MAX_COLOR_HZ) == last
        assert color_for(50000.0) == last

    def test_nan_maps_to_lowest_color(self):
        assert color_for(math.nan) == color_for(MIN_COLOR_HZ)

    def test_channels_in_range_over_sweep(self):
        for freq in np.geomspace(1.0, 20000.0, 500):
            rgb = color_for(float(freq))
            assert 0 <= rgb.r <= 255
            assert 0 <= rgb.g <= 255
            assert 0 <= rgb.b <= 255

    def test_continuous_between_stops(self):
        """1 Hz steps never jump a channel by more than a few levels."""
        prev = color_for(50.0)
        for freq in range(51, 10001):
            cur = color_for(float(freq))
            assert abs(cur.r - prev.r) <= 2
            assert abs(cur.g - prev.g) <= 2
            assert abs(cur.b - prev.b) <= 2
            prev = cur

    def test_hex(self):
        assert color_for(800.0).hex == "#32a0aa"


class TestLegend:
    def test_seven_bands(self):
        assert len(legend()) == 7
        assert legend() is FREQUENCY_LEGEND

    def test_bands_are_contiguous(self):
        bands = legend()
        assert bands[0].min_hz == 0.0
        for prev, cur in zip(bands, bands[1:]):
            assert cur.min_hz == prev.max_hz
        assert math.isinf(bands[-1].max_hz)

    @pytest.mark.parametrize(
        "freq,expected",
        [(20.0, 0), (149.9, 0), (150.0, 1), (800.0, 2), (1500.0, 3), (3000.0, 4), (8000.0, 5), (15000.0, 6)],
    )
    def test_band_index(self, freq, expected):
        assert band_index(freq) == expected

    def test_band_names(self):
        assert [b.name for b in legend()] == [
            "Bass",
            "Low",
            "Mid",
            "Upper",
            "Presence",
            "High",
            "V.High",
        ]
