"""
core/waveform/peaks.py — Amplitude-only peaks data.

Peaks are interleaved (min, max) pairs, one pair per bar. They either come
pre-computed from an external tool (the audiowaveform-style structure
``{sample_rate, samples_per_pixel, channels, data}``) or are derived here
from a decoded Signal. Peaks skip spectral analysis entirely; the renderer
draws them as single-color bars.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from core.waveform.types import Signal

DEFAULT_MIN_SAMPLES_PER_PEAK = 32


@dataclass(frozen=True)
class Peaks:
    """Interleaved min/max amplitude pairs.

    Invariants:
        len(data) is even
        sample_rate > 0 (0 when unknown, e.g. a bare list)
    """

    data: tuple[float, ...]
    sample_rate: int = 0
    samples_per_pixel: float = 0.0
    channels: int = 1
    bits: int | None = None

    def __post_init__(self) -> None:
        if len(self.data) % 2:
            raise ValueError(f"Peaks data must hold (min, max) pairs, got {len(self.data)} values")
        if self.channels < 1:
            raise ValueError(f"channels must be >= 1, got {self.channels}")

    @property
    def num_bars(self) -> int:
        return len(self.data) // 2

    @property
    def pairs(self) -> list[tuple[float, float]]:
        return [(self.data[i], self.data[i + 1]) for i in range(0, len(self.data), 2)]

    @property
    def duration_sec(self) -> float:
        """Duration implied by the header, or 0.0 when it is missing."""
        if self.sample_rate <= 0 or self.samples_per_pixel <= 0:
            return 0.0
        return self.num_bars * self.samples_per_pixel / self.sample_rate

    def scaled(self, scale_y: float) -> Peaks:
        """Copy with every value multiplied by `scale_y` (volume scaling)."""
        return Peaks(
            data=tuple(v * scale_y for v in self.data),
            sample_rate=self.sample_rate,
            samples_per_pixel=self.samples_per_pixel,
            channels=self.channels,
            bits=self.bits,
        )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | Sequence[float]) -> Peaks:
        """Parse the external peaks structure.

        Accepts a bare list of values, ``{"peaks": [...]}``, or the full
        ``{"sample_rate", "samples_per_pixel", "channels", "data"}`` form.
        Integer data with a ``bits`` header (8 or 16) is normalized to [-1, 1].

        Raises:
            ValueError: If no data array can be found or values are not numeric.
        """
        if isinstance(payload, Sequence) and not isinstance(payload, (str, bytes)):
            return cls(data=_as_floats(payload))
        if not isinstance(payload, Mapping):
            raise ValueError(f"Unsupported peaks payload type {type(payload).__name__}")

        raw = payload.get("data", payload.get("peaks"))
        if raw is None:
            raise ValueError("Peaks payload has no 'data' or 'peaks' array")

        values = _as_floats(raw)
        bits = payload.get("bits")
        if bits in (8, 16):
            full_scale = float(2 ** (int(bits) - 1))
            values = tuple(v / full_scale for v in values)

        return cls(
            data=values,
            sample_rate=int(payload.get("sample_rate", 0)),
            samples_per_pixel=float(payload.get("samples_per_pixel", 0.0)),
            channels=int(payload.get("channels", 1)),
            bits=int(bits) if bits is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "sample_rate": self.sample_rate,
            "samples_per_pixel": self.samples_per_pixel,
            "channels": self.channels,
            "length": self.num_bars,
            "data": list(self.data),
        }
        if self.bits is not None:
            out["bits"] = self.bits
        return out


def _as_floats(raw: Any) -> tuple[float, ...]:
    try:
        return tuple(float(v) for v in raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Peaks data must be numeric: {exc}") from exc


def compute_peaks(
    signal: Signal,
    min_samples_per_peak: int = DEFAULT_MIN_SAMPLES_PER_PEAK,
) -> Peaks:
    """Min/max pairs over equal slices of a decoded signal.

    One pair per `min_samples_per_peak` samples (at least one pair for a
    non-empty signal). An empty signal yields empty peaks.

    Raises:
        ValueError: If min_samples_per_peak < 1.
    """
    if min_samples_per_peak < 1:
        raise ValueError(f"min_samples_per_peak must be >= 1, got {min_samples_per_peak}")
    n = len(signal)
    if n == 0:
        return Peaks(data=(), sample_rate=signal.sample_rate, samples_per_pixel=0.0)

    num_peaks = max(1, n // min_samples_per_peak)
    samples_per_peak = n / num_peaks
    starts = np.floor(np.arange(num_peaks) * samples_per_peak).astype(np.intp)
    mins = np.minimum.reduceat(signal.samples, starts)
    maxs = np.maximum.reduceat(signal.samples, starts)

    data = np.empty(num_peaks * 2, dtype=np.float64)
    data[0::2] = mins
    data[1::2] = maxs
    return Peaks(
        data=tuple(float(v) for v in data),
        sample_rate=signal.sample_rate,
        samples_per_pixel=samples_per_peak,
    )
