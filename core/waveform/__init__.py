"""
core/waveform — Frequency-colored waveform analysis and rendering.

Deterministic pipeline from decoded PCM to draw commands:

    Signal ─► plan_segments ─► FFT ─► SegmentFeatures ─► color_for ─► render_waveform

All functions are pure: no I/O, no logging, no mutable module state beyond
the immutable color table and cached FFT tables. Decoding lives in
ingestion/audio_loader.py; background analysis with stale-result protection
lives in ingestion/waveform_engine.py.

Public API:
    Types:      Signal, SegmentSpec, SegmentPlan, SegmentFeatures,
                WaveformAnalysis, RGB, RenderState, FillRect, Line, Text, Peaks
    Segmenter:  plan_segments, choose_fft_size, segment_count
    FFT:        forward, spectrum, magnitude_spectrum, hann_window, FFTContractError
    Features:   analyze_signal, extract_segment_features
    Colors:     color_for, COLOR_STOPS, legend
    Render:     render_waveform, render_peaks, render_placeholder, progress_at
    Peaks:      compute_peaks
"""

from core.waveform.colors import COLOR_STOPS, color_for, legend
from core.waveform.features import analyze_signal, extract_segment_features
from core.waveform.fft import (
    FFTContractError,
    forward,
    hann_window,
    magnitude_spectrum,
    spectrum,
)
from core.waveform.peaks import Peaks, compute_peaks
from core.waveform.render import progress_at, render_peaks, render_placeholder, render_waveform
from core.waveform.segmenter import choose_fft_size, plan_segments, segment_count
from core.waveform.types import (
    RGB,
    SILENCE_SENTINEL,
    FillRect,
    Line,
    RenderState,
    SegmentFeatures,
    SegmentPlan,
    SegmentSpec,
    Signal,
    Text,
    WaveformAnalysis,
)

__all__ = [
    "COLOR_STOPS",
    "FFTContractError",
    "FillRect",
    "Line",
    "Peaks",
    "RGB",
    "RenderState",
    "SILENCE_SENTINEL",
    "SegmentFeatures",
    "SegmentPlan",
    "SegmentSpec",
    "Signal",
    "Text",
    "WaveformAnalysis",
    "analyze_signal",
    "choose_fft_size",
    "color_for",
    "compute_peaks",
    "extract_segment_features",
    "forward",
    "hann_window",
    "legend",
    "magnitude_spectrum",
    "plan_segments",
    "progress_at",
    "render_peaks",
    "render_placeholder",
    "render_waveform",
    "segment_count",
    "spectrum",
]
