"""Waveform bars, pointer-to-time mapping and drag scrubbing."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence
from xml.sax.saxutils import quoteattr

from .state import clamp

log = logging.getLogger("podsite.player.waveform")

DEFAULT_BAR_WIDTH = 2.0
DEFAULT_BAR_GAP = 1.0
MIN_BAR_HEIGHT = 1.0
PLAYED_COLOR = "#f97316"
UNPLAYED_COLOR = "#e5e7eb"


@dataclass(frozen=True)
class Bounds:
    left: float
    width: float


@dataclass(frozen=True)
class WaveformBar:
    x: float
    y: float
    width: float
    height: float
    played: bool


def position_to_time(pointer_x: float, bounds: Bounds, duration: float) -> float:
    """Map a pointer x coordinate to a playback time in [0, duration]."""
    if bounds.width <= 0 or duration <= 0:
        return 0.0
    offset = clamp(pointer_x - bounds.left, 0.0, bounds.width)
    return (offset / bounds.width) * duration


def _fit_peaks(peaks: Sequence[float], count: int) -> List[float]:
    """Resample ``peaks`` to ``count`` bars, keeping the max of each group."""
    total = len(peaks)
    if count >= total:
        return [float(p) for p in peaks]
    fitted: List[float] = []
    for i in range(count):
        start = (i * total) // count
        end = max(start + 1, ((i + 1) * total) // count)
        fitted.append(float(max(peaks[start:end])))
    return fitted


def render(
    peaks: Optional[Sequence[float]],
    progress_fraction: float,
    width: float,
    height: float,
    *,
    bar_width: float = DEFAULT_BAR_WIDTH,
    bar_gap: float = DEFAULT_BAR_GAP,
) -> List[WaveformBar]:
    """Lay out ``peaks`` as vertically centred bars filling ``width`` x ``height``.

    Bars whose left edge sits before ``progress_fraction`` of the width are
    marked played. Missing or empty peaks give an empty list.
    """
    if not peaks or width <= 0 or height <= 0:
        return []
    step = bar_width + bar_gap
    capacity = max(1, int(width // step)) if step > 0 else len(peaks)
    values = _fit_peaks(peaks, capacity)
    progress = clamp(progress_fraction, 0.0, 1.0)
    spacing = width / len(values)
    drawn_width = min(bar_width, spacing)
    bars: List[WaveformBar] = []
    for index, value in enumerate(values):
        x = index * spacing
        bar_height = max(MIN_BAR_HEIGHT, clamp(value, 0.0, 1.0) * height)
        bars.append(WaveformBar(
            x=x,
            y=(height - bar_height) / 2.0,
            width=drawn_width,
            height=bar_height,
            played=(x / width) < progress,
        ))
    return bars


def render_svg(
    peaks: Optional[Sequence[float]],
    progress_fraction: float = 0.0,
    width: int = 600,
    height: int = 64,
    *,
    played_color: str = PLAYED_COLOR,
    unplayed_color: str = UNPLAYED_COLOR,
) -> str:
    bars = render(peaks, progress_fraction, width, height)
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}" role="img">'
    ]
    for bar in bars:
        fill = quoteattr(played_color if bar.played else unplayed_color)
        parts.append(
            f'<rect x="{bar.x:.2f}" y="{bar.y:.2f}" width="{bar.width:.2f}" '
            f'height="{bar.height:.2f}" rx="1" fill={fill}/>'
        )
    parts.append("</svg>")
    return "".join(parts)


class WaveformScrubber:
    """Turns pointer gestures on the waveform into seek requests.

    Each pointer-down and every pointer-move during a drag issues a seek, so the
    audio follows the pointer live rather than only on release. The seek
    callback returns the position actually applied (controllers clamp), which
    becomes the displayed progress.
    """

    def __init__(
        self,
        seek: Callable[[float], Optional[float]],
        duration_hint: float = 0.0,
        peaks: Optional[Sequence[float]] = None,
    ) -> None:
        self._seek = seek
        self.duration = max(0.0, float(duration_hint or 0.0))
        self.peaks: List[float] = list(peaks or [])
        self.progress_time = 0.0
        self._bounds: Optional[Bounds] = None
        self.dragging = False

    @property
    def progress_fraction(self) -> float:
        if self.duration <= 0:
            return 0.0
        return clamp(self.progress_time / self.duration, 0.0, 1.0)

    def set_duration(self, duration: float) -> None:
        if duration > 0:
            self.duration = float(duration)

    def sync(self, current_time: float) -> None:
        """Reflect the playback clock while not dragging."""
        if not self.dragging:
            self.progress_time = max(0.0, float(current_time))

    def pointer_down(self, pointer_x: float, bounds: Bounds) -> float:
        self.dragging = True
        self._bounds = bounds
        return self._seek_to(pointer_x)

    def pointer_move(self, pointer_x: float) -> Optional[float]:
        if not self.dragging or self._bounds is None:
            return None
        return self._seek_to(pointer_x)

    def pointer_up(self, pointer_x: Optional[float] = None) -> None:
        # Captured pointer: release ends the drag wherever it happens.
        if self.dragging and pointer_x is not None and self._bounds is not None:
            self._seek_to(pointer_x)
        self.dragging = False
        self._bounds = None

    def bars(self, width: float, height: float) -> List[WaveformBar]:
        return render(self.peaks, self.progress_fraction, width, height)

    def _seek_to(self, pointer_x: float) -> float:
        if self._bounds is None:
            return self.progress_time
        target = position_to_time(pointer_x, self._bounds, self.duration)
        applied = self._seek(target)
        self.progress_time = target if applied is None else float(applied)
        return self.progress_time
