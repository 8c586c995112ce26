"""
api/routes/waveform.py — Spectral waveform endpoints.

Endpoints:
    POST /waveform/analyze — per-segment features (centroid, band energies, color)
    POST /waveform/render  — draw commands for a frequency-colored waveform
    POST /waveform/peaks   — amplitude-only min/max peaks
    GET  /waveform/color   — color for a single frequency
    GET  /waveform/legend  — legend bands for UI display

File-based endpoints accept a path on the server filesystem and delegate
to WaveformEngine in ingestion/waveform_engine.py.
"""

from __future__ import annotations

import logging
import math
from typing import NoReturn

from fastapi import APIRouter, HTTPException, Query

from api.schemas.waveform import (
    ColorResponse,
    DrawCommandOut,
    LegendBandOut,
    LegendResponse,
    PaintOut,
    PeaksRequest,
    PeaksResponse,
    SegmentFeaturesOut,
    WaveformAnalyzeRequest,
    WaveformAnalyzeResponse,
    WaveformRenderRequest,
    WaveformRenderResponse,
)
from core.waveform.colors import color_for, legend
from core.waveform.types import DrawCommand, FillRect, Line, Paint, RenderState
from ingestion.waveform_engine import WaveformEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/waveform", tags=["waveform"])

# Shared engine instance; librosa is imported lazily on first decode
_engine: WaveformEngine | None = None


def _get_engine() -> WaveformEngine:
    global _engine
    if _engine is None:
        _engine = WaveformEngine()
    return _engine


def _paint_out(paint: Paint) -> PaintOut:
    return PaintOut(r=paint.r, g=paint.g, b=paint.b, a=paint.a, css=paint.css())


def _command_out(cmd: DrawCommand) -> DrawCommandOut:
    if isinstance(cmd, FillRect):
        return DrawCommandOut(
            kind="rect",
            role=cmd.role,
            paint=_paint_out(cmd.paint),
            x=cmd.x,
            y=cmd.y,
            width=cmd.width,
            height=cmd.height,
        )
    if isinstance(cmd, Line):
        return DrawCommandOut(
            kind="line",
            role=cmd.role,
            paint=_paint_out(cmd.paint),
            x0=cmd.x0,
            y0=cmd.y0,
            x1=cmd.x1,
            y1=cmd.y1,
            stroke_width=cmd.stroke_width,
        )
    return DrawCommandOut(
        kind="text", role=cmd.role, paint=_paint_out(cmd.paint), x=cmd.x, y=cmd.y, text=cmd.text
    )


def _raise_for(exc: Exception) -> NoReturn:
    """Translate engine exceptions into HTTP errors."""
    if isinstance(exc, (FileNotFoundError, ValueError)):
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    logger.error("Waveform analysis failed: %s", exc)
    raise HTTPException(status_code=500, detail=f"Waveform analysis failed: {exc}") from exc


# ---------------------------------------------------------------------------
# POST /waveform/analyze
# ---------------------------------------------------------------------------


@router.post("/analyze", response_model=WaveformAnalyzeResponse)
def analyze_waveform(request: WaveformAnalyzeRequest) -> WaveformAnalyzeResponse:
    """Decode an audio file and return per-segment spectral features.

    Raises:
        422: file_path does not exist or extension not supported.
        500: Audio decoding failure.
    """
    engine = _get_engine()
    try:
        analysis = engine.analyze_file(request.file_path, duration=request.duration)
    except (FileNotFoundError, ValueError, RuntimeError) as exc:
        _raise_for(exc)

    return WaveformAnalyzeResponse(
        sample_rate=analysis.sample_rate,
        duration_sec=analysis.duration_sec,
        num_segments=len(analysis),
        samples_per_segment=analysis.samples_per_segment,
        fft_size=analysis.fft_size,
        features=[
            SegmentFeaturesOut(
                amp_min=f.amp_min,
                amp_max=f.amp_max,
                centroid_hz=f.centroid_hz,
                low_energy=f.low_energy,
                mid_energy=f.mid_energy,
                high_energy=f.high_energy,
                color=color_for(f.centroid_hz).hex,
            )
            for f in analysis.features
        ],
    )


# ---------------------------------------------------------------------------
# POST /waveform/render
# ---------------------------------------------------------------------------


@router.post("/render", response_model=WaveformRenderResponse)
def render_waveform_file(request: WaveformRenderRequest) -> WaveformRenderResponse:
    """Render an audio file as frequency-colored draw commands.

    Raises:
        422: Invalid view state, missing file, or unsupported format.
        500: Audio decoding failure.
    """
    selection = None
    if request.selection_start is not None and request.selection_end is not None:
        selection = (request.selection_start, request.selection_end)

    try:
        state = RenderState(
            width=request.width,
            height=request.height,
            progress=request.progress,
            scale_y=request.scale_y,
            zoom=request.zoom,
            scroll=request.scroll,
            reference_duration=request.reference_duration,
            selection=selection,
            playhead=request.playhead,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    engine = _get_engine()
    try:
        commands = engine.render_file(request.file_path, state, duration=request.duration)
    except (FileNotFoundError, ValueError, RuntimeError) as exc:
        _raise_for(exc)

    return WaveformRenderResponse(
        width=state.width,
        height=state.height,
        commands=[_command_out(c) for c in commands],
    )


# ---------------------------------------------------------------------------
# POST /waveform/peaks
# ---------------------------------------------------------------------------


@router.post("/peaks", response_model=PeaksResponse)
def waveform_peaks(request: PeaksRequest) -> PeaksResponse:
    """Compute amplitude-only peaks for an audio file."""
    engine = _get_engine()
    try:
        peaks = engine.peaks_for_file(
            request.file_path,
            duration=request.duration,
            min_samples_per_peak=request.min_samples_per_peak,
        )
    except (FileNotFoundError, ValueError, RuntimeError) as exc:
        _raise_for(exc)

    return PeaksResponse(**peaks.to_dict())


# ---------------------------------------------------------------------------
# GET /waveform/color, GET /waveform/legend
# ---------------------------------------------------------------------------


@router.get("/color", response_model=ColorResponse)
def waveform_color(freq_hz: float = Query(..., gt=0.0)) -> ColorResponse:
    """Color assigned to a frequency (clamped to the 50 Hz – 12 kHz gradient)."""
    rgb = color_for(freq_hz)
    return ColorResponse(freq_hz=freq_hz, r=rgb.r, g=rgb.g, b=rgb.b, hex=rgb.hex)


@router.get("/legend", response_model=LegendResponse)
def waveform_legend() -> LegendResponse:
    """Named frequency bands with representative colors."""
    return LegendResponse(
        bands=[
            LegendBandOut(
                name=band.name,
                label=band.label,
                min_hz=band.min_hz,
                max_hz=None if math.isinf(band.max_hz) else band.max_hz,
                hex=band.color.hex,
            )
            for band in legend()
        ]
    )
