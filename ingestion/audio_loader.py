"""
ingestion/audio_loader.py — File I/O boundary for audio and peaks loading.

This is the ONLY module in the waveform pipeline that reads files from disk.
Everything downstream (core/waveform/) takes a pre-loaded Signal or Peaks —
never file paths.

Usage:
    from ingestion.audio_loader import load_signal
    signal = load_signal("/path/to/track.wav")
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np

from core.waveform.peaks import Peaks
from core.waveform.types import Signal

logger = logging.getLogger(__name__)

# Supported audio file extensions (must be loadable by librosa / soundfile)
AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {".mp3", ".wav", ".flac", ".aiff", ".aif", ".ogg", ".m4a", ".opus"}
)

PEAKS_EXTENSIONS: frozenset[str] = frozenset({".json"})

# Default: cap loads at 10 minutes; segment count is capped anyway
DEFAULT_DURATION: float = 600.0


def _check_path(path: str | Path, allowed: frozenset[str], kind: str) -> Path:
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"{kind} file not found: {file_path}")
    if file_path.suffix.lower() not in allowed:
        raise ValueError(
            f"Unsupported {kind.lower()} format {file_path.suffix!r}. "
            f"Supported: {sorted(allowed)}"
        )
    return file_path


def load_audio(
    path: str | Path,
    *,
    duration: float | None = DEFAULT_DURATION,
    sr: int | None = None,
    mono: bool = True,
) -> tuple[np.ndarray, int]:
    """Load an audio file and return (y, sr).

    This is the I/O boundary — the only function in the pipeline that
    decodes audio. All downstream functions operate on the returned array.

    Args:
        path: Absolute or relative path to an audio file.
              Supported formats: mp3, wav, flac, aiff, ogg, m4a, opus.
        duration: Maximum seconds to load. Pass None to load the whole file.
        sr: Target sample rate in Hz. None preserves the native rate.
        mono: Mix down to mono when True (default).

    Returns:
        (y, sr) — float32 numpy array of audio samples and sample rate.

    Raises:
        FileNotFoundError: File does not exist at the given path.
        ValueError: File extension is not a supported audio format.
        RuntimeError: librosa/soundfile could not decode the file
                      (corrupted, truncated, DRM-protected, etc.).
    """
    import librosa  # deferred to allow testing without audio backend

    file_path = _check_path(path, AUDIO_EXTENSIONS, "Audio")

    try:
        y, loaded_sr = librosa.load(
            file_path,
            sr=sr,
            mono=mono,
            duration=duration,
            offset=0.0,
        )
    except Exception as exc:
        raise RuntimeError(
            f"Failed to decode audio file {file_path.name!r}: {exc}"
        ) from exc

    logger.debug("Decoded %s: %d samples @ %d Hz", file_path.name, np.shape(y)[-1], loaded_sr)
    return y, int(loaded_sr)


def load_signal(
    path: str | Path,
    *,
    duration: float | None = DEFAULT_DURATION,
    sr: int | None = None,
) -> Signal:
    """Decode an audio file into an immutable mono Signal.

    Multi-channel output (if the backend returns it) is averaged to mono.

    Raises:
        Same as load_audio().
    """
    y, loaded_sr = load_audio(path, duration=duration, sr=sr, mono=True)
    return Signal.from_channels(y, loaded_sr)


def load_peaks(path: str | Path) -> Peaks:
    """Read a pre-computed peaks JSON file.

    Accepts the ``{sample_rate, samples_per_pixel, channels, data}`` layout,
    a ``{"peaks": [...]}`` wrapper, or a bare JSON array.

    Raises:
        FileNotFoundError: File does not exist at the given path.
        ValueError: Not a .json file, invalid JSON, or no usable data array.
    """
    file_path = _check_path(path, PEAKS_EXTENSIONS, "Peaks")
    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid peaks JSON in {file_path.name!r}: {exc}") from exc
    return Peaks.from_dict(payload)
