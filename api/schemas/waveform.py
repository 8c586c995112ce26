"""
api/schemas/waveform.py — Pydantic request/response schemas for waveform endpoints.

Covers:
    /waveform/analyze  — WaveformAnalyzeRequest / WaveformAnalyzeResponse
    /waveform/render   — WaveformRenderRequest / WaveformRenderResponse
    /waveform/peaks    — PeaksRequest / PeaksResponse
    /waveform/color    — ColorResponse
    /waveform/legend   — LegendResponse
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

# ---------------------------------------------------------------------------
# Shared sub-schemas
# ---------------------------------------------------------------------------


class SegmentFeaturesOut(BaseModel):
    """Spectral summary of one segment."""

    amp_min: float
    amp_max: float
    centroid_hz: float = Field(..., gt=0.0)
    low_energy: float = Field(..., ge=0.0)
    mid_energy: float = Field(..., ge=0.0)
    high_energy: float = Field(..., ge=0.0)
    color: str
    """Hex color of the centroid, e.g. '#32a0aa'."""


class PaintOut(BaseModel):
    r: int = Field(..., ge=0, le=255)
    g: int = Field(..., ge=0, le=255)
    b: int = Field(..., ge=0, le=255)
    a: float = Field(1.0, ge=0.0, le=1.0)
    css: str


class DrawCommandOut(BaseModel):
    """One draw instruction. Geometry fields depend on `kind`."""

    kind: Literal["rect", "line", "text"]
    role: str
    paint: PaintOut
    x: float | None = None
    y: float | None = None
    width: float | None = None
    height: float | None = None
    x0: float | None = None
    y0: float | None = None
    x1: float | None = None
    y1: float | None = None
    stroke_width: float | None = None
    text: str | None = None


# ---------------------------------------------------------------------------
# /waveform/analyze
# ---------------------------------------------------------------------------


class WaveformAnalyzeRequest(BaseModel):
    file_path: str = Field(..., min_length=1)
    duration: float | None = Field(None, gt=0.0, le=3600.0)
    """Maximum seconds to decode. None uses the server limit."""


class WaveformAnalyzeResponse(BaseModel):
    sample_rate: int
    duration_sec: float
    num_segments: int
    samples_per_segment: int
    fft_size: int
    features: list[SegmentFeaturesOut]


# ---------------------------------------------------------------------------
# /waveform/render
# ---------------------------------------------------------------------------


class WaveformRenderRequest(BaseModel):
    file_path: str = Field(..., min_length=1)
    width: float = Field(800.0, gt=0.0, le=20000.0)
    height: float = Field(60.0, gt=0.0, le=4000.0)
    progress: float = Field(0.0, ge=0.0, le=1.0)
    scale_y: float = Field(1.0, ge=0.0)
    zoom: float = Field(1.0, ge=1.0, le=50.0)
    scroll: float = Field(0.0, ge=0.0, le=1.0)
    reference_duration: float | None = Field(10.0, gt=0.0)
    selection_start: float | None = Field(None, ge=0.0, le=1.0)
    selection_end: float | None = Field(None, ge=0.0, le=1.0)
    playhead: bool = False
    duration: float | None = Field(None, gt=0.0, le=3600.0)

    @model_validator(mode="after")
    def _check_selection(self) -> "WaveformRenderRequest":
        if (self.selection_start is None) != (self.selection_end is None):
            raise ValueError("selection_start and selection_end must be given together")
        if self.selection_start is not None and self.selection_start > self.selection_end:
            raise ValueError("selection_start must not exceed selection_end")
        return self


class WaveformRenderResponse(BaseModel):
    width: float
    height: float
    commands: list[DrawCommandOut]


# ---------------------------------------------------------------------------
# /waveform/peaks
# ---------------------------------------------------------------------------


class PeaksRequest(BaseModel):
    file_path: str = Field(..., min_length=1)
    min_samples_per_peak: int = Field(32, ge=1, le=1_000_000)
    duration: float | None = Field(None, gt=0.0, le=3600.0)


class PeaksResponse(BaseModel):
    sample_rate: int
    samples_per_pixel: float
    channels: int
    length: int
    data: list[float]


# ---------------------------------------------------------------------------
# /waveform/color and /waveform/legend
# ---------------------------------------------------------------------------


class ColorResponse(BaseModel):
    freq_hz: float
    r: int = Field(..., ge=0, le=255)
    g: int = Field(..., ge=0, le=255)
    b: int = Field(..., ge=0, le=255)
    hex: str


class LegendBandOut(BaseModel):
    name: str
    label: str
    min_hz: float
    max_hz: float | None
    """Upper edge in Hz; None for the open-ended top band."""

    hex: str


class LegendResponse(BaseModel):
    bands: list[LegendBandOut]
