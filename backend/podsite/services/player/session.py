"""One episode's player: controller, waveform scrubber and transcript follower wired together."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from .controller import PlaybackController, PrimitiveFactory
from .primitive import Unsubscribe
from .state import PlaybackState
from .transcript_sync import S, TranscriptFollower
from .waveform import WaveformScrubber


@dataclass
class EpisodeAsset:
    audio_url: str
    duration: float = 0.0
    peaks: Optional[List[float]] = None
    image_url: Optional[str] = None
    segments: Sequence = field(default_factory=list)


class EpisodePlayerSession:
    def __init__(
        self,
        asset: EpisodeAsset,
        primitive_factory: PrimitiveFactory,
        *,
        on_time_update: Optional[Callable[[float], None]] = None,
        on_segment_change: Optional[Callable[[Optional[S]], None]] = None,
    ) -> None:
        self.asset = asset
        self.controller = PlaybackController(primitive_factory)
        self.scrubber = WaveformScrubber(self.controller.seek, asset.duration, asset.peaks)
        self.follower: TranscriptFollower = TranscriptFollower(asset.segments, on_change=on_segment_change)
        self._external_time = on_time_update
        self._unsubscribes: List[Unsubscribe] = [
            self.controller.add_time_listener(self._on_time),
            self.controller.add_state_listener(self._on_state),
        ]

    def __enter__(self) -> "EpisodePlayerSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        self.controller.load_source(self.asset.audio_url)

    def close(self) -> None:
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes = []
        self.controller.close()

    @property
    def state(self) -> PlaybackState:
        return self.controller.state

    @property
    def active_segment(self):
        return self.follower.current

    def _on_time(self, seconds: float) -> None:
        self.scrubber.sync(seconds)
        self.follower.update(seconds)
        if self._external_time is not None:
            self._external_time(seconds)

    def _on_state(self, state: PlaybackState) -> None:
        self.scrubber.set_duration(state.duration)
