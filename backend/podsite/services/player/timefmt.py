from __future__ import annotations

import math
from typing import Optional


def _usable(seconds: Optional[float]) -> bool:
    return bool(seconds) and not math.isnan(seconds) and math.isfinite(seconds)  # type: ignore[arg-type]


def format_clock(seconds: Optional[float]) -> str:
    """``m:ss`` or ``h:mm:ss``; unusable values render as ``0:00``."""
    if not _usable(seconds):
        return "0:00"
    total = int(seconds)  # type: ignore[arg-type]
    hours, rem = divmod(total, 3600)
    mins, secs = divmod(rem, 60)
    if hours > 0:
        return f"{hours}:{mins:02d}:{secs:02d}"
    return f"{mins}:{secs:02d}"


def format_remaining(current: float, total: Optional[float], loading: bool = False) -> str:
    if loading or not _usable(total):
        return "Loading..."
    remaining = max(0.0, float(total) - current)  # type: ignore[arg-type]
    mins, secs = divmod(int(remaining), 60)
    if mins == 0 and secs == 0:
        return "0s left"
    return f"{mins}m {secs}s left"


def format_duration_words(seconds: float) -> str:
    """Long-form duration for episode headers, e.g. ``1 hour, 5 minutes``."""
    total = int(max(0.0, seconds or 0.0))
    hours = total // 3600
    minutes = (total % 3600) // 60
    minute_part = f"{minutes} minute{'' if minutes == 1 else 's'}"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''}, {minute_part}"
    return minute_part


def format_timestamp(seconds: float) -> str:
    """Transcript line stamp ``m:ss`` (minutes are not wrapped into hours)."""
    value = max(0.0, seconds or 0.0)
    return f"{int(value // 60)}:{int(value % 60):02d}"
