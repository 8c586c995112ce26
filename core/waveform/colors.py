"""
core/waveform/colors.py — Continuous frequency→color mapping.

A spectral centroid is mapped to RGB by piecewise-linear interpolation over
fixed anchor stops running purple (sub-bass) → teal → green → yellow →
orange → pink → magenta (upper treble).

Design:
    - `COLOR_STOPS` is an immutable, import-time constant; it is validated
      once (strictly increasing frequencies) and never reinitialized.
    - Input is clamped to [50, 12000] Hz. Above the last stop (10 kHz) the
      last anchor color is returned unchanged.
    - Channel rounding is half away from zero, so 0.5 rounds up as it does
      in the browser and native renderers (Python's round() would round to
      even).
"""

from __future__ import annotations

import math
from bisect import bisect_left

from core.waveform.types import RGB, ColorStop, LegendBand

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MIN_COLOR_HZ: float = 50.0
MAX_COLOR_HZ: float = 12000.0

COLOR_STOPS: tuple[ColorStop, ...] = (
    ColorStop(50.0, RGB(80, 60, 120)),  # sub-bass, dark purple
    ColorStop(100.0, RGB(90, 70, 130)),
    ColorStop(200.0, RGB(100, 80, 140)),  # bass, purple
    ColorStop(400.0, RGB(70, 120, 160)),
    ColorStop(600.0, RGB(50, 150, 170)),
    ColorStop(800.0, RGB(50, 160, 170)),  # teal
    ColorStop(1000.0, RGB(50, 165, 170)),
    ColorStop(1200.0, RGB(55, 170, 165)),
    ColorStop(1300.0, RGB(70, 165, 150)),
    ColorStop(1400.0, RGB(130, 160, 110)),
    ColorStop(1500.0, RGB(200, 195, 85)),  # yellow emerging
    ColorStop(1580.0, RGB(220, 200, 80)),  # yellow
    ColorStop(1800.0, RGB(235, 195, 75)),
    ColorStop(2000.0, RGB(250, 180, 90)),
    ColorStop(2400.0, RGB(250, 170, 100)),  # orange
    ColorStop(2800.0, RGB(250, 150, 120)),
    ColorStop(3200.0, RGB(248, 135, 150)),
    ColorStop(3800.0, RGB(245, 120, 170)),  # pink
    ColorStop(4500.0, RGB(240, 100, 185)),
    ColorStop(5500.0, RGB(230, 85, 195)),
    ColorStop(7000.0, RGB(220, 80, 200)),  # magenta
    ColorStop(10000.0, RGB(200, 60, 220)),
)

_STOP_FREQS: tuple[float, ...] = tuple(s.frequency_hz for s in COLOR_STOPS)

if any(b <= a for a, b in zip(_STOP_FREQS, _STOP_FREQS[1:])):
    raise RuntimeError("COLOR_STOPS frequencies must be strictly increasing")

# Legend bands shown next to the waveform (representative, not interpolated)
FREQUENCY_LEGEND: tuple[LegendBand, ...] = (
    LegendBand("Bass", "<150Hz", 0.0, 150.0, RGB(138, 100, 168)),
    LegendBand("Low", "150-400Hz", 150.0, 400.0, RGB(80, 180, 190)),
    LegendBand("Mid", "400-1kHz", 400.0, 1000.0, RGB(120, 190, 90)),
    LegendBand("Upper", "1-2.5kHz", 1000.0, 2500.0, RGB(220, 200, 80)),
    LegendBand("Presence", "2.5-5kHz", 2500.0, 5000.0, RGB(230, 150, 80)),
    LegendBand("High", "5-10kHz", 5000.0, 10000.0, RGB(220, 120, 150)),
    LegendBand("V.High", ">10kHz", 10000.0, math.inf, RGB(200, 130, 200)),
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _channel(c1: int, c2: int, t: float) -> int:
    return min(255, max(0, _round_half_up(c1 + (c2 - c1) * t)))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def color_for(freq_hz: float) -> RGB:
    """Interpolated color for a frequency in Hz.

    Args:
        freq_hz: Frequency, typically a spectral centroid. Clamped to
                 [50, 12000]; NaN is treated as the lower bound.

    Returns:
        RGB with every channel in [0, 255]. Exact anchor frequencies return
        the anchor color.
    """
    freq = MIN_COLOR_HZ if math.isnan(freq_hz) else min(max(freq_hz, MIN_COLOR_HZ), MAX_COLOR_HZ)

    # first stop with frequency >= freq; the interval is (stops[i-1], stops[i]]
    i = bisect_left(_STOP_FREQS, freq)
    if i >= len(COLOR_STOPS):
        return COLOR_STOPS[-1].color
    if i == 0:
        return COLOR_STOPS[0].color

    lo, hi = COLOR_STOPS[i - 1], COLOR_STOPS[i]
    t = (freq - lo.frequency_hz) / (hi.frequency_hz - lo.frequency_hz)
    return RGB(
        _channel(lo.color.r, hi.color.r, t),
        _channel(lo.color.g, hi.color.g, t),
        _channel(lo.color.b, hi.color.b, t),
    )


def band_index(freq_hz: float) -> int:
    """Index into FREQUENCY_LEGEND of the band containing `freq_hz`."""
    for i, band in enumerate(FREQUENCY_LEGEND):
        if freq_hz < band.max_hz:
            return i
    return len(FREQUENCY_LEGEND) - 1


def legend() -> tuple[LegendBand, ...]:
    """Legend bands, lowest first."""
    return FREQUENCY_LEGEND
