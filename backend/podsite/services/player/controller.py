"""Playback controller: owns PlaybackState and drives one audio primitive at a time.

State machine::

    idle -> loading -> paused <-> playing -> ended -> paused (t=0)

Every source gets a fresh primitive and a new generation number. Handlers are
bound to the generation they were registered for, so notifications that a
superseded primitive delivers late are dropped instead of mutating the state
of the current source.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from . import primitive as ev
from .primitive import AudioPrimitivePort, Unsubscribe
from .state import PlaybackError, PlaybackState, PlayerPhase, clamp, is_usable_duration

log = logging.getLogger("podsite.player.controller")

DEFAULT_SKIP_SECONDS = 30.0

PrimitiveFactory = Callable[[], AudioPrimitivePort]
TimeListener = Callable[[float], None]
StateListener = Callable[[PlaybackState], None]


class PlaybackController:
    def __init__(
        self,
        primitive_factory: PrimitiveFactory,
        *,
        on_time_update: Optional[TimeListener] = None,
        on_state_change: Optional[StateListener] = None,
        skip_seconds: float = DEFAULT_SKIP_SECONDS,
    ) -> None:
        self._factory = primitive_factory
        self._time_listeners: List[TimeListener] = [on_time_update] if on_time_update else []
        self._state_listeners: List[StateListener] = [on_state_change] if on_state_change else []
        self.skip_seconds = skip_seconds
        self._state = PlaybackState()
        self._primitive: Optional[AudioPrimitivePort] = None
        self._subscriptions: List[Unsubscribe] = []
        self._generation = 0
        self._source_url: Optional[str] = None

    # --- context management ---------------------------------------------------

    def __enter__(self) -> "PlaybackController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Unregister every handler, release the primitive and return to idle."""
        self._generation += 1
        self._teardown()
        self._source_url = None
        self._set_state(PlaybackState())

    # --- observers -------------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def source_url(self) -> Optional[str]:
        return self._source_url

    @property
    def generation(self) -> int:
        return self._generation

    def add_time_listener(self, listener: TimeListener) -> Unsubscribe:
        return _register(self._time_listeners, listener)

    def add_state_listener(self, listener: StateListener) -> Unsubscribe:
        return _register(self._state_listeners, listener)

    # --- source lifecycle ------------------------------------------------------

    def load_source(self, url: str) -> None:
        """Switch to ``url``: tear down the previous primitive, then load a new one."""
        self._teardown()
        self._generation += 1
        generation = self._generation
        self._source_url = url
        self._set_state(PlaybackState(is_loading=True, phase=PlayerPhase.loading))

        primitive = self._factory()
        self._primitive = primitive
        bindings = (
            (ev.READY, self._handle_ready),
            (ev.DURATION_CHANGE, self._handle_duration_change),
            (ev.TIME_UPDATE, self._handle_time_update),
            (ev.PLAY, self._handle_play),
            (ev.PAUSE, self._handle_pause),
            (ev.FINISH, self._handle_finish),
            (ev.ERROR, self._handle_error),
        )
        for event, handler in bindings:
            self._subscriptions.append(primitive.on(event, self._bind(generation, handler)))
        log.debug("[player] loading source generation=%d", generation)
        primitive.load(url)

    def reload(self) -> None:
        """Retry the current source after an error."""
        if self._source_url is not None:
            self.load_source(self._source_url)

    def _bind(self, generation: int, handler: Callable[..., None]) -> Callable[..., None]:
        def _guarded(*args: Any) -> None:
            if generation != self._generation:
                log.debug("[player] dropped stale event from generation=%d", generation)
                return
            handler(*args)

        return _guarded

    def _teardown(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, []
        for unsubscribe in subscriptions:
            unsubscribe()
        primitive, self._primitive = self._primitive, None
        if primitive is not None:
            primitive.destroy()

    # --- commands --------------------------------------------------------------

    async def play(self) -> None:
        """Start playback. On rejection stay paused, flag the error and raise PlaybackError."""
        primitive = self._primitive
        if primitive is None or not self._state.is_ready or self._state.phase == PlayerPhase.playing:
            return
        generation = self._generation
        try:
            await primitive.play()
        except Exception as exc:
            if generation == self._generation:
                self._set_state(self._state.evolve(
                    phase=PlayerPhase.paused, is_playing=False, error=str(exc) or type(exc).__name__,
                ))
            log.warning("[player] playback start rejected: %s", exc)
            raise PlaybackError(str(exc) or "Playback could not start") from exc
        if generation != self._generation:
            return
        self._set_state(self._state.evolve(phase=PlayerPhase.playing, is_playing=True, error=None))

    async def toggle(self) -> bool:
        """Play/pause button handler. Returns False when a play attempt was rejected."""
        if self._state.phase == PlayerPhase.playing:
            self.pause()
            return True
        try:
            await self.play()
        except PlaybackError:
            return False
        return True

    def pause(self) -> None:
        if self._state.phase != PlayerPhase.playing or self._primitive is None:
            return
        self._primitive.pause()
        self._set_state(self._state.evolve(phase=PlayerPhase.paused, is_playing=False))

    def seek(self, seconds: float) -> float:
        """Move to ``seconds`` clamped into [0, duration]; ignored before the source is ready."""
        if self._primitive is None or not self._state.is_ready:
            return self._state.current_time
        target = clamp(float(seconds), 0.0, self._state.duration)
        self._primitive.set_time(target)
        self._set_time(target)
        return target

    def skip_forward(self, delta: Optional[float] = None) -> float:
        step = self.skip_seconds if delta is None else delta
        return self.seek(self._state.current_time + step)

    def skip_backward(self, delta: Optional[float] = None) -> float:
        step = self.skip_seconds if delta is None else delta
        return self.seek(self._state.current_time - step)

    # --- primitive notifications -----------------------------------------------

    def _handle_ready(self, *_: Any) -> None:
        self._accept_duration()

    def _handle_duration_change(self, *_: Any) -> None:
        self._accept_duration()

    def _accept_duration(self) -> None:
        if self._primitive is None:
            return
        duration = self._primitive.get_duration()
        if not is_usable_duration(duration):
            return
        duration = float(duration)
        if self._state.phase == PlayerPhase.loading:
            self._set_state(self._state.evolve(
                duration=duration, is_loading=False, phase=PlayerPhase.paused,
            ))
        else:
            self._set_state(self._state.evolve(
                duration=duration,
                is_loading=False,
                current_time=clamp(self._state.current_time, 0.0, duration),
            ))

    def _handle_time_update(self, seconds: Optional[float] = None, *_: Any) -> None:
        if self._primitive is None:
            return
        value = self._primitive.get_current_time() if seconds is None else seconds
        upper = self._state.duration if self._state.is_ready else max(0.0, float(value))
        self._set_time(clamp(float(value), 0.0, upper))

    def _handle_play(self, *_: Any) -> None:
        if self._state.is_ready and self._state.phase != PlayerPhase.playing:
            self._set_state(self._state.evolve(phase=PlayerPhase.playing, is_playing=True))

    def _handle_pause(self, *_: Any) -> None:
        if self._state.phase == PlayerPhase.playing:
            self._set_state(self._state.evolve(phase=PlayerPhase.paused, is_playing=False))

    def _handle_finish(self, *_: Any) -> None:
        if not self._state.is_ready or self._primitive is None:
            return
        self._set_state(self._state.evolve(phase=PlayerPhase.ended, is_playing=False))
        self._primitive.set_time(0.0)
        self._set_state(self._state.evolve(phase=PlayerPhase.paused, current_time=0.0))
        self._notify_time(0.0)

    def _handle_error(self, error: Any = None, *_: Any) -> None:
        message = str(error) if error else "Audio loading error"
        log.error("[player] audio primitive error: %s", message)
        phase = self._state.phase
        if phase == PlayerPhase.playing:
            phase = PlayerPhase.paused
        self._set_state(self._state.evolve(is_loading=False, is_playing=False, error=message, phase=phase))

    # --- state plumbing --------------------------------------------------------

    def _set_time(self, seconds: float) -> None:
        self._set_state(self._state.evolve(current_time=seconds))
        self._notify_time(seconds)

    def _notify_time(self, seconds: float) -> None:
        for listener in list(self._time_listeners):
            listener(seconds)

    def _set_state(self, state: PlaybackState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._state_listeners):
            listener(state)


def _register(listeners: list, listener: Callable) -> Unsubscribe:
    listeners.append(listener)

    def _off() -> None:
        if listener in listeners:
            listeners.remove(listener)

    return _off
