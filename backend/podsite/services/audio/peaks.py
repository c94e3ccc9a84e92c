"""Waveform peak extraction.

A peak series is a compact amplitude envelope of an episode's audio: the
samples of the first channel are split into equal buckets and each bucket is
reduced to its largest absolute amplitude. Values are normalized against the
source bit depth so every peak lies in [0, 1].
"""
from __future__ import annotations

import io
import logging
import math
import os
import shutil
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union
from urllib.parse import urlparse

import numpy as np
from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

log = logging.getLogger("podsite.audio.peaks")

DEFAULT_PEAK_COUNT = 1200

# --- FFmpeg/FFprobe discovery ---
_ffmpeg = os.environ.get("FFMPEG_BIN") or shutil.which("ffmpeg")
_ffprobe = os.environ.get("FFPROBE_BIN") or shutil.which("ffprobe")
if _ffmpeg:
    AudioSegment.converter = _ffmpeg  # type: ignore[attr-defined]
    AudioSegment.ffmpeg = _ffmpeg  # type: ignore[attr-defined]
if _ffprobe:
    AudioSegment.ffprobe = _ffprobe  # type: ignore[attr-defined]


class DecodeError(Exception):
    """Raw audio could not be decoded into samples; nothing must be persisted."""


# pydub widens 24-bit PCM to 32-bit on load, so these are the widths it hands back
_SAMPLE_DTYPES = {1: np.int8, 2: np.int16, 4: np.int32}


@dataclass(frozen=True)
class DecodedAudio:
    """First-channel PCM as an integer view over the decoded buffer."""

    pcm: np.ndarray
    full_scale: float
    sample_rate: int
    duration_seconds: float

    @property
    def samples(self) -> np.ndarray:
        """Samples normalized to [-1, 1] (float32)."""
        scaled = self.pcm.astype(np.float32)
        scaled /= self.full_scale
        return np.clip(scaled, -1.0, 1.0, out=scaled)

    def peaks(self, target: int = DEFAULT_PEAK_COUNT) -> List[float]:
        """Same bucketing as ``extract_peaks`` without materializing float samples."""
        n = len(self.pcm)
        if n == 0:
            return []
        starts = np.arange(0, n, bucket_size_for(n, target))
        highs = np.maximum.reduceat(self.pcm, starts).astype(np.float64)
        lows = np.minimum.reduceat(self.pcm, starts).astype(np.float64)
        peaks = np.maximum(highs, -lows) / self.full_scale
        return np.minimum(peaks, 1.0).tolist()


def bucket_size_for(sample_count: int, target: int = DEFAULT_PEAK_COUNT) -> int:
    if target < 1:
        raise ValueError("target peak count must be >= 1")
    return max(1, sample_count // target)


def extract_peaks(samples: Union[Sequence[float], np.ndarray], target: int = DEFAULT_PEAK_COUNT) -> List[float]:
    """Downsample ``samples`` into at most ~``target`` max-abs peaks.

    The series has ``ceil(N / bucket)`` entries where ``bucket = max(1, N // target)``,
    so a trailing partial bucket yields one extra peak.
    """
    x = np.abs(np.asarray(samples, dtype=np.float64))
    n = len(x)
    if n == 0:
        return []
    return np.maximum.reduceat(x, np.arange(0, n, bucket_size_for(n, target))).tolist()


def expected_peak_count(sample_count: int, target: int = DEFAULT_PEAK_COUNT) -> int:
    if sample_count == 0:
        return 0
    return math.ceil(sample_count / bucket_size_for(sample_count, target))


def format_hint(name: Optional[str]) -> Optional[str]:
    """Container format from a filename or URL suffix (``episode.WAV`` -> ``wav``)."""
    path = urlparse(name or "").path
    suffix = os.path.splitext(path)[1].lstrip(".").lower()
    return suffix or None


def decode_samples(data: bytes, fmt: Optional[str] = None) -> DecodedAudio:
    """Decode an audio container into its first channel.

    Raises DecodeError for empty, corrupt or unsupported input.
    """
    if not data:
        raise DecodeError("Audio payload is empty")
    try:
        segment = AudioSegment.from_file(io.BytesIO(data), format=fmt)
    except CouldntDecodeError as exc:
        raise DecodeError(f"Could not decode audio: {exc}") from exc
    except (OSError, IndexError, KeyError, ValueError) as exc:
        # pydub surfaces ffprobe/ffmpeg failures on truncated input as these
        raise DecodeError(f"Could not decode audio: {exc}") from exc

    dtype = _SAMPLE_DTYPES.get(segment.sample_width)
    if dtype is None:
        raise DecodeError(f"Unsupported sample width: {segment.sample_width} bytes")
    interleaved = np.frombuffer(segment.raw_data, dtype=dtype)
    pcm = interleaved[::segment.channels] if segment.channels > 1 else interleaved
    full_scale = float(1 << (8 * segment.sample_width - 1))
    duration = len(segment) / 1000.0
    log.debug(
        "[peaks] decoded samples=%d rate=%d width=%d duration=%.2fs",
        len(pcm), segment.frame_rate, segment.sample_width, duration,
    )
    return DecodedAudio(pcm=pcm, full_scale=full_scale, sample_rate=segment.frame_rate, duration_seconds=duration)


def peaks_from_bytes(data: bytes, target: int = DEFAULT_PEAK_COUNT, fmt: Optional[str] = None) -> tuple[List[float], float]:
    """Decode ``data`` and return ``(peaks, duration_seconds)``."""
    decoded = decode_samples(data, fmt=fmt)
    peaks = decoded.peaks(target)
    log.info("[peaks] extracted %d peaks from %.2fs of audio", len(peaks), decoded.duration_seconds)
    return peaks, decoded.duration_seconds
