from __future__ import annotations

import enum
import math
from dataclasses import dataclass, replace
from typing import Optional


class PlaybackError(Exception):
    """The audio primitive failed to load, decode or start playback."""


class PlayerPhase(str, enum.Enum):
    idle = "idle"
    loading = "loading"
    paused = "paused"  # Ready and not playing
    playing = "playing"
    ended = "ended"  # transient; immediately followed by paused at 0


@dataclass(frozen=True)
class PlaybackState:
    current_time: float = 0.0
    duration: float = 0.0
    is_playing: bool = False
    is_loading: bool = False
    phase: PlayerPhase = PlayerPhase.idle
    error: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.phase in (PlayerPhase.paused, PlayerPhase.playing, PlayerPhase.ended)

    @property
    def progress_fraction(self) -> float:
        if self.duration <= 0:
            return 0.0
        return min(1.0, max(0.0, self.current_time / self.duration))

    def evolve(self, **changes) -> "PlaybackState":
        return replace(self, **changes)


def is_usable_duration(value: Optional[float]) -> bool:
    """A reported duration counts only when it is a finite, non-NaN, positive number."""
    if value is None:
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return number > 0 and math.isfinite(number)


def clamp(value: float, low: float, high: float) -> float:
    if high < low:
        high = low
    return min(high, max(low, value))
