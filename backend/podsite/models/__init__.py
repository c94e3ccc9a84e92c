"""Aggregate exports for model convenience imports."""

from .comment import Comment, CommentCreate  # noqa: F401
from .episode import Episode, EpisodePublic  # noqa: F401
from .slug import EpisodeSlug  # noqa: F401
from .transcript import TranscriptSegment, TranscriptSegmentPublic  # noqa: F401
