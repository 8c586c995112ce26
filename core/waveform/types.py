"""
core/waveform/types.py — Frozen data types for the spectral waveform pipeline.

All types are frozen dataclasses — immutable value objects that can be
safely handed from the analysis worker to the render path.

Design principles:
    - No I/O, no state, no side effects.
    - `Signal` holds a read-only numpy array; it is compared by identity
      (eq=False) because element-wise array equality is not a boolean.
    - Everything else is hashable so results can be cached or put in sets.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

SILENCE_CENTROID_HZ: float = 500.0
"""Centroid reported for segments whose spectral energy is below threshold."""


# ---------------------------------------------------------------------------
# Signal
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Signal:
    """Decoded mono PCM audio.

    Invariants:
        sample_rate > 0
        samples is 1-D and read-only
        samples are nominally in [-1, 1] (not enforced)
    """

    samples: np.ndarray
    """Mono samples as a read-only float64 array."""

    sample_rate: int
    """Sample rate in Hz."""

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        samples = np.array(self.samples, dtype=np.float64, copy=True)
        if samples.ndim != 1:
            raise ValueError(f"Signal samples must be 1-D, got shape {samples.shape}")
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    @classmethod
    def from_channels(cls, channels: np.ndarray, sample_rate: int) -> Signal:
        """Build a mono Signal from (N,) or (C, N) audio by averaging channels."""
        arr = np.asarray(channels, dtype=np.float64)
        if arr.ndim == 2:
            arr = np.mean(arr, axis=0)
        return cls(samples=arr, sample_rate=sample_rate)

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_sec(self) -> float:
        """Signal duration in seconds."""
        return len(self) / self.sample_rate

    @property
    def is_empty(self) -> bool:
        return len(self) == 0


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SegmentSpec:
    """One analysis segment.

    Invariants:
        0 <= start < stop <= signal length
        fft_size is a power of two
    """

    index: int
    """Position of the segment, 0-based, left to right."""

    start: int
    """First sample of the segment (inclusive)."""

    stop: int
    """End of the segment's covered span (exclusive)."""

    fft_size: int
    """FFT window length. The window starts at `start` and may be zero-padded."""

    @property
    def length(self) -> int:
        return self.stop - self.start


@dataclass(frozen=True)
class SegmentPlan:
    """Ordered segment layout for one signal."""

    num_segments: int
    """Requested segment count (before early termination)."""

    samples_per_segment: int
    fft_size: int
    segments: tuple[SegmentSpec, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def covered_samples(self) -> int:
        """Total samples covered by all segment spans."""
        return sum(s.length for s in self.segments)


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SegmentFeatures:
    """Spectral summary of one segment.

    Invariants:
        -1 <= amp_min <= amp_max <= 1 (for in-range input)
        centroid_hz > 0
        low_energy + mid_energy + high_energy ≈ 1 when non-silent, else all 0
    """

    amp_min: float
    amp_max: float
    centroid_hz: float
    """Magnitude-weighted mean frequency in Hz."""

    low_energy: float
    """Share of spectral energy below 1100 Hz."""

    mid_energy: float
    """Share of spectral energy in [1100, 2000) Hz."""

    high_energy: float
    """Share of spectral energy at or above 2000 Hz."""

    @classmethod
    def silence(cls) -> SegmentFeatures:
        """The sentinel emitted for segments below the energy threshold."""
        return cls(
            amp_min=0.0,
            amp_max=0.0,
            centroid_hz=SILENCE_CENTROID_HZ,
            low_energy=0.0,
            mid_energy=0.0,
            high_energy=0.0,
        )

    @property
    def peak_amplitude(self) -> float:
        """Largest absolute excursion of the raw samples."""
        return max(abs(self.amp_min), abs(self.amp_max))

    @property
    def is_silent(self) -> bool:
        return self == SILENCE_SENTINEL


SILENCE_SENTINEL = SegmentFeatures.silence()


@dataclass(frozen=True)
class WaveformAnalysis:
    """Complete analysis result for one Signal.

    Invariants:
        len(features) <= num_segments <= 2000 (default config)
        sample_rate > 0
    """

    features: tuple[SegmentFeatures, ...]
    sample_rate: int
    num_samples: int
    samples_per_segment: int
    fft_size: int

    @property
    def duration_sec(self) -> float:
        return self.num_samples / self.sample_rate

    def __len__(self) -> int:
        return len(self.features)


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RGB:
    """An 8-bit RGB color."""

    r: int
    g: int
    b: int

    @property
    def hex(self) -> str:
        """CSS hex notation, e.g. '#32a0aa'."""
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    @property
    def as_int(self) -> int:
        """Opaque ARGB packing (0xFFRRGGBB)."""
        return 0xFF000000 | (self.r << 16) | (self.g << 8) | self.b

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)


@dataclass(frozen=True)
class ColorStop:
    """An anchor of the frequency→color gradient."""

    frequency_hz: float
    color: RGB


@dataclass(frozen=True)
class LegendBand:
    """A named frequency range with a representative color, for UI legends."""

    name: str
    label: str
    min_hz: float
    max_hz: float
    color: RGB


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Paint:
    """Fill or stroke color with alpha in [0, 1]."""

    r: int
    g: int
    b: int
    a: float = 1.0

    @classmethod
    def from_rgb(cls, rgb: RGB | tuple[int, int, int], alpha: float = 1.0) -> Paint:
        r, g, b = rgb.as_tuple() if isinstance(rgb, RGB) else rgb
        return cls(r=r, g=g, b=b, a=alpha)

    @classmethod
    def from_rgba(cls, rgba: tuple[int, int, int, float]) -> Paint:
        r, g, b, a = rgba
        return cls(r=r, g=g, b=b, a=a)

    def css(self) -> str:
        """CSS color string: 'rgb(r, g, b)' when opaque, else 'rgba(r, g, b, a)'."""
        if self.a >= 1.0:
            return f"rgb({self.r}, {self.g}, {self.b})"
        return f"rgba({self.r}, {self.g}, {self.b}, {self.a:g})"


@dataclass(frozen=True)
class FillRect:
    """Axis-aligned filled rectangle; (x, y) is the top-left corner."""

    x: float
    y: float
    width: float
    height: float
    paint: Paint
    role: str = "bar"
    """What the rectangle depicts: background, bar, halo, peak, selection, mask."""


@dataclass(frozen=True)
class Line:
    """Straight stroked line."""

    x0: float
    y0: float
    x1: float
    y1: float
    paint: Paint
    stroke_width: float = 1.0
    role: str = "line"


@dataclass(frozen=True)
class Text:
    """Centered text label."""

    text: str
    x: float
    y: float
    paint: Paint
    role: str = "label"


DrawCommand = FillRect | Line | Text


@dataclass(frozen=True)
class RenderState:
    """Transient view state supplied by the caller on every draw.

    Invariants:
        width > 0, height > 0
        0 <= progress <= 1
        scale_y >= 0
        zoom >= 1
        0 <= scroll <= 1 - 1/zoom
        selection (if set) is an ordered (start, end) pair of fractions
    """

    width: float
    height: float
    progress: float = 0.0
    """Playback position as a fraction of the clip."""

    scale_y: float = 1.0
    """Amplitude multiplier (volume scaling)."""

    zoom: float = 1.0
    """Horizontal magnification; 1 shows the whole clip."""

    scroll: float = 0.0
    """Left edge of the viewport as a fraction of the content width."""

    reference_duration: float | None = 10.0
    """Clip length that fills the full width. None disables width scaling."""

    selection: tuple[float, float] | None = None
    """Selected range as (start, end) fractions of the clip."""

    playhead: bool = False
    """Draw a playhead line at the current progress."""

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Viewport must have positive size, got {self.width}x{self.height}"
            )
        if not 0.0 <= self.progress <= 1.0:
            raise ValueError(f"progress must be in [0, 1], got {self.progress}")
        if self.scale_y < 0:
            raise ValueError(f"scale_y must be non-negative, got {self.scale_y}")
        if self.zoom < 1.0:
            raise ValueError(f"zoom must be >= 1, got {self.zoom}")
        if not 0.0 <= self.scroll <= 1.0 - 1.0 / self.zoom + 1e-12:
            raise ValueError(
                f"scroll must be in [0, {1.0 - 1.0 / self.zoom:.4f}] at zoom {self.zoom}, "
                f"got {self.scroll}"
            )
        if self.reference_duration is not None and self.reference_duration <= 0:
            raise ValueError(
                f"reference_duration must be positive or None, got {self.reference_duration}"
            )
        if self.selection is not None:
            start, end = self.selection
            if not 0.0 <= start <= end <= 1.0:
                raise ValueError(f"selection must satisfy 0 <= start <= end <= 1, got {self.selection}")

    @property
    def half_height(self) -> float:
        return self.height / 2.0
