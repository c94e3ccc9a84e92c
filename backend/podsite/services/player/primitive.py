"""AudioPrimitivePort: the decode/playback primitive the controller drives.

Concrete primitives (a browser bridge, an ffplay wrapper, a test double) load a
URL, start/stop output and report progress through events. Handlers are
registered with ``on`` and removed through the returned unsubscribe callable.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List

log = logging.getLogger("podsite.player.primitive")

READY = "ready"
DURATION_CHANGE = "durationchange"
TIME_UPDATE = "timeupdate"
PLAY = "play"
PAUSE = "pause"
FINISH = "finish"
ERROR = "error"

EVENTS = (READY, DURATION_CHANGE, TIME_UPDATE, PLAY, PAUSE, FINISH, ERROR)

Handler = Callable[..., None]
Unsubscribe = Callable[[], None]


class EventEmitter:
    """Minimal synchronous event registry shared by primitive implementations."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = {}

    def on(self, event: str, handler: Handler) -> Unsubscribe:
        if event not in EVENTS:
            raise ValueError(f"Unknown audio event: {event}")
        self._handlers.setdefault(event, []).append(handler)

        def _off() -> None:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

        return _off

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._handlers.get(event, [])):
            handler(*args)

    def listener_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._handlers.get(event, []))
        return sum(len(h) for h in self._handlers.values())

    def clear(self) -> None:
        self._handlers.clear()


class AudioPrimitivePort(ABC):
    @abstractmethod
    def load(self, url: str) -> None:
        """Begin loading ``url``; READY or ERROR is emitted asynchronously."""

    @abstractmethod
    async def play(self) -> None:
        """Start or resume output. Raises if the primitive refuses to start."""

    @abstractmethod
    def pause(self) -> None:
        """Pause output."""

    @abstractmethod
    def get_current_time(self) -> float:
        """Current playback position in seconds."""

    @abstractmethod
    def get_duration(self) -> float:
        """Duration in seconds; may be NaN or infinite until metadata is known."""

    @abstractmethod
    def set_time(self, seconds: float) -> None:
        """Move the playback position."""

    @abstractmethod
    def on(self, event: str, handler: Handler) -> Unsubscribe:
        """Register ``handler`` for ``event``; returns the unsubscribe callable."""

    @abstractmethod
    def destroy(self) -> None:
        """Release decode resources and drop every handler."""
