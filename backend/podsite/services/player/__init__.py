"""Waveform and synchronized playback engine."""

from .controller import PlaybackController  # noqa: F401
from .primitive import AudioPrimitivePort, EventEmitter  # noqa: F401
from .state import PlaybackError, PlaybackState, PlayerPhase  # noqa: F401
from .transcript_sync import SegmentIndex, TranscriptFollower, active_segment  # noqa: F401
from .waveform import Bounds, WaveformScrubber, position_to_time, render, render_svg  # noqa: F401
