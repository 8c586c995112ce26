"""
Configuration dataclasses for the waveform analysis and rendering pipeline.

These immutable config objects decouple tuning parameters from function
signatures, so standard configurations can be defined once and shared by the
analysis session, the HTTP layer, and tests.
"""

from dataclasses import dataclass


def _is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


@dataclass(frozen=True)
class SegmenterConfig:
    """
    Configuration for partitioning a signal into analysis segments.

    Attributes:
        min_samples_per_segment: Lower bound on samples per segment. Defaults
            to 256, which keeps bar density readable on short clips.
        max_segments: Upper bound on the number of segments. Defaults to 2000
            to cap analysis cost on long files.
        min_fft_size: Smallest FFT window (power of two). Defaults to 128.
        max_fft_size: Largest FFT window (power of two). Defaults to 2048.

    Example:
        >>> config = SegmenterConfig(max_segments=500)
        >>> analysis = analyze_signal(signal, config=config)
    """

    min_samples_per_segment: int = 256
    max_segments: int = 2000
    min_fft_size: int = 128
    max_fft_size: int = 2048

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.min_samples_per_segment <= 0:
            raise ValueError(
                f"min_samples_per_segment must be positive, got {self.min_samples_per_segment}"
            )
        if self.max_segments <= 0:
            raise ValueError(f"max_segments must be positive, got {self.max_segments}")
        for name in ("min_fft_size", "max_fft_size"):
            value = getattr(self, name)
            if not _is_power_of_two(value) or value < 2:
                raise ValueError(f"{name} must be a power of two >= 2, got {value}")
        if self.min_fft_size > self.max_fft_size:
            raise ValueError(
                f"min_fft_size ({self.min_fft_size}) must not exceed "
                f"max_fft_size ({self.max_fft_size})"
            )


@dataclass(frozen=True)
class RenderPolicy:
    """
    Visual policy constants for the frequency-colored waveform.

    The thresholds are empirically tuned; changing any of them changes the
    rendered output and should be treated as a behavior change.

    Attributes:
        amplitude_threshold: Scaled peak amplitude below which a segment is
            not drawn at all.
        min_pixel_half_height: Bars shorter than this (in pixels, per half)
            are skipped.
        high_energy_threshold: High-band energy ratio above which a segment
            gets the two-layer halo treatment.
        margin: Fraction of the half-height a full-scale bar may occupy.
        inner_ratio_base: Inner bar ratio before subtracting high energy.
        inner_ratio_floor: Lower bound for the inner bar ratio.
        halo_rgb: Color of the outer halo bar.
        bar_overlap: Extra pixels added to each bar width to hide seams.
        reference_duration: Clip duration (seconds) that fills the full width.
        background_rgb: Canvas background color.
        center_line_rgb: Color of the horizontal zero line.
        progress_mask_rgba: Translucent mask over the unplayed region.
        peaks_rgba: Bar color for the amplitude-only (peaks) fallback.
        peaks_bar_gap: Gap in pixels between peaks bars.
        selection_rgba: Fill for a selected time range.
        selection_border_rgba: Border lines of a selected time range.
        playhead_rgb: Color of the playhead line.
        playhead_width: Playhead stroke width in pixels.
    """

    amplitude_threshold: float = 0.01
    min_pixel_half_height: float = 0.5
    high_energy_threshold: float = 0.08
    margin: float = 0.95
    inner_ratio_base: float = 0.55
    inner_ratio_floor: float = 0.25
    halo_rgb: tuple[int, int, int] = (240, 115, 185)
    bar_overlap: float = 0.3
    reference_duration: float = 10.0
    background_rgb: tuple[int, int, int] = (248, 248, 248)
    center_line_rgb: tuple[int, int, int] = (221, 221, 221)
    progress_mask_rgba: tuple[int, int, int, float] = (255, 255, 255, 0.3)
    peaks_rgba: tuple[int, int, int, float] = (80, 180, 160, 0.7)
    peaks_bar_gap: float = 0.5
    selection_rgba: tuple[int, int, int, float] = (100, 150, 255, 0.15)
    selection_border_rgba: tuple[int, int, int, float] = (100, 150, 255, 0.6)
    playhead_rgb: tuple[int, int, int] = (255, 80, 80)
    playhead_width: float = 2.0

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.amplitude_threshold < 0:
            raise ValueError(
                f"amplitude_threshold must be non-negative, got {self.amplitude_threshold}"
            )
        if self.min_pixel_half_height < 0:
            raise ValueError(
                f"min_pixel_half_height must be non-negative, got {self.min_pixel_half_height}"
            )
        if not 0.0 < self.margin <= 1.0:
            raise ValueError(f"margin must be in (0, 1], got {self.margin}")
        if self.inner_ratio_floor < 0:
            raise ValueError(
                f"inner_ratio_floor must be non-negative, got {self.inner_ratio_floor}"
            )
        if self.reference_duration <= 0:
            raise ValueError(
                f"reference_duration must be positive, got {self.reference_duration}"
            )


# Pre-defined configurations

DEFAULT_SEGMENTER_CONFIG = SegmenterConfig()
"""Default segmentation: 256 samples minimum, 2000 segments maximum, FFT 128–2048."""

COARSE_SEGMENTER_CONFIG = SegmenterConfig(max_segments=500)
"""Fewer, wider segments for thumbnails and list views."""

DEFAULT_RENDER_POLICY = RenderPolicy()
"""Default visual policy matching the browser and native renderers."""
