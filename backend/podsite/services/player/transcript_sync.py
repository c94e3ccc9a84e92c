"""Active transcript segment lookup for a playback time."""
from __future__ import annotations

import bisect
from typing import Callable, Generic, List, Optional, Protocol, Sequence, TypeVar


class TimedSegment(Protocol):
    start_time: float
    end_time: float


S = TypeVar("S", bound=TimedSegment)


def active_segment(segments: Sequence[S], current_time: float) -> Optional[S]:
    """First segment (in sequence order) with ``start <= t <= end``; None inside gaps."""
    for segment in segments:
        if segment.start_time <= current_time <= segment.end_time:
            return segment
    return None


class SegmentIndex(Generic[S]):
    """Logarithmic ``active_segment`` for segments ordered by start time.

    ``_reach[i]`` is the furthest end time among the first i+1 segments. It is
    non-decreasing, and the first index where it reaches ``t`` is exactly the
    first segment whose own end reaches ``t``; restricted to segments that have
    already started this matches the linear scan, overlaps included.
    Unordered input falls back to the linear scan.
    """

    def __init__(self, segments: Sequence[S]) -> None:
        self.segments: List[S] = list(segments)
        self._starts = [s.start_time for s in self.segments]
        self.ordered = all(a <= b for a, b in zip(self._starts, self._starts[1:]))
        self._reach: List[float] = []
        furthest = float("-inf")
        for segment in self.segments:
            furthest = max(furthest, segment.end_time)
            self._reach.append(furthest)

    def __len__(self) -> int:
        return len(self.segments)

    def lookup(self, current_time: float) -> Optional[S]:
        if not self.ordered:
            return active_segment(self.segments, current_time)
        started = bisect.bisect_right(self._starts, current_time)
        if started == 0:
            return None
        index = bisect.bisect_left(self._reach, current_time, 0, started)
        if index < started:
            return self.segments[index]
        return None


class TranscriptFollower(Generic[S]):
    """Tracks the active segment as playback time updates arrive.

    Feed it from the controller's time listener; ``on_change`` fires only when
    the active segment changes (including to None). Backward jumps after a
    seek or the end-of-episode reset are handled like any other update.
    """

    def __init__(self, segments: Sequence[S], on_change: Optional[Callable[[Optional[S]], None]] = None) -> None:
        self._index: SegmentIndex[S] = SegmentIndex(segments)
        self._on_change = on_change
        self.current: Optional[S] = None

    def update(self, current_time: float) -> Optional[S]:
        segment = self._index.lookup(current_time)
        if segment is not self.current:
            self.current = segment
            if self._on_change is not None:
                self._on_change(segment)
        return segment

    __call__ = update
