"""
core/waveform/fft.py — Radix-2 decimation-in-time FFT with magnitude output.

Iterative Cooley-Tukey: bit-reversal permutation followed by log2(N)
butterfly stages, each doubling the butterfly span. Twiddle factors come from
precomputed cosine/sine tables, built once per FFT size and cached.

Design:
    - Pure functions over numpy arrays; the only module state is the
      per-size table cache, which is immutable once built.
    - Each butterfly stage is vectorized by viewing the working arrays as
      (N / 2h, 2, h) blocks, which is exactly the in-place pairing
      (i + j, i + j + h) of the scalar algorithm.
    - Magnitudes are scaled by 2/N so a full-scale sinusoid on a bin centre
      reads ≈ 1.0 (before windowing).
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

import numpy as np


class FFTContractError(ValueError):
    """The caller passed a buffer the transform cannot accept.

    Raised when the FFT size is not a power of two or the buffer length does
    not match it. The segmenter never produces such input, so this always
    indicates a programming error.
    """


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class FFTTables:
    """Precomputed permutation and twiddle tables for one FFT size."""

    size: int
    reverse: np.ndarray
    """Bit-reversed index for every position, shape (size,)."""

    cos: np.ndarray
    """cos(2πk/N) for k in [0, N/2)."""

    sin: np.ndarray
    """sin(-2πk/N) for k in [0, N/2)."""


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def _bit_reverse_table(size: int) -> np.ndarray:
    table = np.zeros(size, dtype=np.intp)
    limit = 1
    bit = size >> 1
    while limit < size:
        table[limit : 2 * limit] = table[:limit] + bit
        limit <<= 1
        bit >>= 1
    return table


@lru_cache(maxsize=16)
def fft_tables(size: int) -> FFTTables:
    """Return the cached tables for `size`, building them on first use.

    Raises:
        FFTContractError: If size is not a power of two >= 2.
    """
    if size < 2 or not is_power_of_two(size):
        raise FFTContractError(f"FFT size must be a power of two >= 2, got {size}")
    k = np.arange(size // 2, dtype=np.float64)
    angle = 2.0 * np.pi * k / size
    reverse = _bit_reverse_table(size)
    cos = np.cos(angle)
    sin = np.sin(-angle)
    for arr in (reverse, cos, sin):
        arr.setflags(write=False)
    return FFTTables(size=size, reverse=reverse, cos=cos, sin=sin)


@lru_cache(maxsize=16)
def hann_window(size: int) -> np.ndarray:
    """Hann taper ``w[j] = 0.5 * (1 - cos(2πj / (size - 1)))``.

    Returned array is read-only and shared between callers.
    """
    if size < 2:
        raise ValueError(f"Window size must be >= 2, got {size}")
    j = np.arange(size, dtype=np.float64)
    window = 0.5 * (1.0 - np.cos((2.0 * np.pi * j) / (size - 1)))
    window.setflags(write=False)
    return window


def bin_frequencies(fft_size: int, sample_rate: int) -> np.ndarray:
    """Centre frequency in Hz of each output bin, ``k * sample_rate / fft_size``."""
    return np.arange(fft_size // 2, dtype=np.float64) * sample_rate / fft_size


# ---------------------------------------------------------------------------
# Transform
# ---------------------------------------------------------------------------


def magnitude_spectrum(buffer: np.ndarray, fft_size: int) -> np.ndarray:
    """Forward transform of a real buffer, returning ``fft_size / 2`` magnitudes.

    ``mag[k] = (2 / N) * sqrt(re[k]² + im[k]²)`` for ``k = 0 .. N/2 - 1``.

    Args:
        buffer:   Real time-domain samples, exactly `fft_size` long.
        fft_size: Transform length; a power of two.

    Returns:
        np.ndarray of shape (fft_size // 2,), float64.

    Raises:
        FFTContractError: If fft_size is not a power of two or the buffer
            length differs from it.
    """
    tables = fft_tables(fft_size)
    x = np.asarray(buffer, dtype=np.float64)
    if x.ndim != 1 or x.shape[0] != fft_size:
        raise FFTContractError(
            f"Buffer length {x.shape} does not match FFT size {fft_size}"
        )

    real = x[tables.reverse]  # fancy indexing copies
    imag = np.zeros(fft_size, dtype=np.float64)

    half = 1
    while half < fft_size:
        stride = fft_size // (2 * half)
        wr = tables.cos[::stride]
        wi = tables.sin[::stride]

        re = real.reshape(-1, 2, half)
        im = imag.reshape(-1, 2, half)

        tr = wr * re[:, 1, :] - wi * im[:, 1, :]
        ti = wr * im[:, 1, :] + wi * re[:, 1, :]
        even_re = re[:, 0, :].copy()
        even_im = im[:, 0, :].copy()

        re[:, 1, :] = even_re - tr
        im[:, 1, :] = even_im - ti
        re[:, 0, :] = even_re + tr
        im[:, 0, :] = even_im + ti

        half <<= 1

    n_bins = fft_size // 2
    return (2.0 / fft_size) * np.sqrt(real[:n_bins] ** 2 + imag[:n_bins] ** 2)


@dataclass(frozen=True, eq=False)
class Spectrum:
    """Magnitude spectrum of one buffer, with its frequency axis."""

    magnitudes: np.ndarray
    fft_size: int
    sample_rate: int

    @property
    def bin_width_hz(self) -> float:
        return self.sample_rate / self.fft_size

    @property
    def frequencies(self) -> np.ndarray:
        return bin_frequencies(self.fft_size, self.sample_rate)

    @property
    def peak_bin(self) -> int:
        """Index of the strongest bin, DC excluded."""
        return peak_bin(self.magnitudes)

    @property
    def peak_frequency_hz(self) -> float:
        return self.peak_bin * self.bin_width_hz


def forward(buffer: np.ndarray, fft_size: int, sample_rate: int) -> np.ndarray:
    """Forward transform of an already-windowed buffer, ``fft_size / 2`` magnitudes.

    Same as `magnitude_spectrum` but also checks the sample rate the
    magnitudes will be interpreted against.

    Raises:
        FFTContractError: On a non-power-of-two size or length mismatch.
        ValueError: If sample_rate <= 0.
    """
    if sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {sample_rate}")
    return magnitude_spectrum(buffer, fft_size)


def spectrum(buffer: np.ndarray, fft_size: int, sample_rate: int) -> Spectrum:
    """Transform `buffer` and attach the frequency axis for `sample_rate`."""
    mags = forward(buffer, fft_size, sample_rate)
    return Spectrum(magnitudes=mags, fft_size=fft_size, sample_rate=int(sample_rate))


def peak_bin(magnitudes: np.ndarray) -> int:
    """Index of the largest magnitude, ignoring the DC bin.

    Returns 0 when there are no non-DC bins or every non-DC bin is zero.
    """
    if magnitudes.shape[0] < 2:
        return 0
    idx = int(np.argmax(magnitudes[1:])) + 1
    return idx if magnitudes[idx] > 0 else 0
