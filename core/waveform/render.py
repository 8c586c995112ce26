"""
core/waveform/render.py — Turn features plus view state into draw commands.

The renderer is a pure function of (features, RenderState, RenderPolicy) and
returns an ordered tuple of FillRect / Line / Text commands that any canvas
(browser, native, image export) can replay back to front:

    background ─► center line ─► selection ─► bars ─► progress mask ─► playhead

Width policy:
    Clips shorter than `reference_duration` occupy a proportional share of
    the width, so bar density stays roughly constant across clip lengths.

Bar policy (per segment):
    amplitude = max(|amp_min|, |amp_max|) * scale_y
    skip if amplitude < amplitude_threshold
    half-height = amplitude * (height / 2) * margin; skip if < min_pixel_half_height
    high_energy > high_energy_threshold → halo bar + inner bar at
        half-height * max(inner_ratio_floor, inner_ratio_base - high_energy)
    otherwise → one bar in the centroid color

Viewport:
    `zoom` magnifies horizontally and `scroll` selects the left edge as a
    fraction of the content width. Bars fully outside the viewport are culled.
"""

from __future__ import annotations

from collections.abc import Sequence

from core.config import DEFAULT_RENDER_POLICY, RenderPolicy
from core.waveform.colors import color_for
from core.waveform.peaks import Peaks
from core.waveform.types import (
    DrawCommand,
    FillRect,
    Line,
    Paint,
    RenderState,
    SegmentFeatures,
    Text,
)

DEFAULT_PLACEHOLDER_MESSAGE = "Loading..."
_PLACEHOLDER_TEXT_RGB = (102, 102, 102)


# ---------------------------------------------------------------------------
# Geometry helpers
# ---------------------------------------------------------------------------


def duration_ratio(duration_sec: float, reference_duration: float | None) -> float:
    """Share of the width a clip of `duration_sec` occupies, in [0, 1]."""
    if reference_duration is None:
        return 1.0
    return min(1.0, max(0.0, duration_sec / reference_duration))


def to_screen_x(content_x: float, state: RenderState) -> float:
    """Map an x coordinate at zoom 1 to the zoomed, scrolled viewport."""
    return (content_x - state.scroll * state.width) * state.zoom


def progress_at(x: float, state: RenderState) -> float:
    """Progress fraction under viewport pixel `x`, clamped to [0, 1].

    Inverse of the viewport mapping used for the progress mask, so clicking
    the mask edge seeks to the current position.
    """
    fraction = state.scroll + (x / state.width) / state.zoom
    return min(1.0, max(0.0, fraction))


def _visible(x: float, w: float, state: RenderState) -> bool:
    return x + w > 0.0 and x < state.width


# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------


def _frame(state: RenderState, policy: RenderPolicy) -> list[DrawCommand]:
    mid = state.half_height
    return [
        FillRect(
            0.0, 0.0, state.width, state.height, Paint.from_rgb(policy.background_rgb), "background"
        ),
        Line(0.0, mid, state.width, mid, Paint.from_rgb(policy.center_line_rgb), 1.0, "center"),
    ]


def _selection(state: RenderState, policy: RenderPolicy) -> list[DrawCommand]:
    if state.selection is None:
        return []
    start, end = state.selection
    if end <= start:
        return []
    x0 = to_screen_x(start * state.width, state)
    x1 = to_screen_x(end * state.width, state)
    border = Paint.from_rgba(policy.selection_border_rgba)
    return [
        FillRect(x0, 0.0, x1 - x0, state.height, Paint.from_rgba(policy.selection_rgba), "selection"),
        Line(x0, 0.0, x0, state.height, border, 1.0, "selection"),
        Line(x1, 0.0, x1, state.height, border, 1.0, "selection"),
    ]


def _overlays(state: RenderState, policy: RenderPolicy) -> list[DrawCommand]:
    out: list[DrawCommand] = []
    if state.progress > 0:
        px = min(state.width, max(0.0, to_screen_x(state.progress * state.width, state)))
        if px < state.width:
            out.append(
                FillRect(
                    px,
                    0.0,
                    state.width - px,
                    state.height,
                    Paint.from_rgba(policy.progress_mask_rgba),
                    "mask",
                )
            )
    if state.playhead:
        px = to_screen_x(state.progress * state.width, state)
        if 0.0 <= px <= state.width:
            out.append(
                Line(
                    px,
                    0.0,
                    px,
                    state.height,
                    Paint.from_rgb(policy.playhead_rgb),
                    policy.playhead_width,
                    "playhead",
                )
            )
    return out


def _segment_bars(
    features: Sequence[SegmentFeatures],
    state: RenderState,
    duration_sec: float,
    policy: RenderPolicy,
) -> list[DrawCommand]:
    n = len(features)
    if n == 0:
        return []

    used_width = state.width * duration_ratio(duration_sec, state.reference_duration)
    segment_width = used_width / n
    bar_width = (segment_width + policy.bar_overlap) * state.zoom
    mid = state.half_height
    halo = Paint.from_rgb(policy.halo_rgb)

    bars: list[DrawCommand] = []
    for i, seg in enumerate(features):
        amplitude = seg.peak_amplitude * state.scale_y
        if amplitude < policy.amplitude_threshold:
            continue
        total_height = amplitude * mid * policy.margin
        if total_height < policy.min_pixel_half_height:
            continue

        x = to_screen_x(i * segment_width, state)
        if not _visible(x, bar_width, state):
            continue

        color = Paint.from_rgb(color_for(seg.centroid_hz))
        if seg.high_energy > policy.high_energy_threshold:
            bars.append(FillRect(x, mid - total_height, bar_width, total_height * 2, halo, "halo"))
            ratio = max(policy.inner_ratio_floor, policy.inner_ratio_base - seg.high_energy)
            inner = total_height * ratio
            bars.append(FillRect(x, mid - inner, bar_width, inner * 2, color, "bar"))
        else:
            bars.append(FillRect(x, mid - total_height, bar_width, total_height * 2, color, "bar"))
    return bars


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_waveform(
    features: Sequence[SegmentFeatures],
    state: RenderState,
    *,
    duration_sec: float,
    policy: RenderPolicy = DEFAULT_RENDER_POLICY,
) -> tuple[DrawCommand, ...]:
    """Draw commands for a frequency-colored waveform.

    Args:
        features:     Per-segment features in segment order.
        state:        Caller-supplied view state for this draw.
        duration_sec: Duration of the analyzed signal (drives the width policy).
        policy:       Visual thresholds and colors.

    Returns:
        Ordered draw commands. Empty features render only the background
        and the center line (plus overlays).
    """
    commands = _frame(state, policy)
    commands += _selection(state, policy)
    commands += _segment_bars(features, state, duration_sec, policy)
    commands += _overlays(state, policy)
    return tuple(commands)


def render_peaks(
    peaks: Peaks,
    state: RenderState,
    *,
    policy: RenderPolicy = DEFAULT_RENDER_POLICY,
) -> tuple[DrawCommand, ...]:
    """Single-color bars for amplitude-only peaks data.

    Bars span the full width (no duration scaling): each pair (min, max)
    becomes a bar from ``mid - max * mid`` extending ``(max - min) * mid``
    pixels down.
    """
    commands = _frame(state, policy)
    commands += _selection(state, policy)

    num_bars = peaks.num_bars
    if num_bars:
        mid = state.half_height
        slot = state.width / num_bars
        bar_width = (slot - policy.peaks_bar_gap) * state.zoom
        paint = Paint.from_rgba(policy.peaks_rgba)
        for i, (lo, hi) in enumerate(peaks.pairs):
            x = to_screen_x(i * slot, state)
            if not _visible(x, bar_width, state):
                continue
            lo *= state.scale_y
            hi *= state.scale_y
            bar_height = ((hi - lo) / 2.0) * mid
            if bar_height <= 0:
                continue
            commands.append(FillRect(x, mid - hi * mid, bar_width, bar_height * 2, paint, "peak"))

    commands += _overlays(state, policy)
    return tuple(commands)


def render_placeholder(
    state: RenderState,
    message: str = DEFAULT_PLACEHOLDER_MESSAGE,
    *,
    policy: RenderPolicy = DEFAULT_RENDER_POLICY,
) -> tuple[DrawCommand, ...]:
    """Background, center line and a centered message while analysis runs."""
    commands = _frame(state, policy)
    if message:
        commands.append(
            Text(message, state.width / 2.0, state.half_height, Paint.from_rgb(_PLACEHOLDER_TEXT_RGB))
        )
    return tuple(commands)
