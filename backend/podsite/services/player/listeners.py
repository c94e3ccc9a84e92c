"""Simulated "N listening" counter shown next to the player.

Purely cosmetic: a deterministic starting point derived from the episode id,
then a bounded random walk advanced every ``TICK_SECONDS``.
"""
from __future__ import annotations

import random
import time
from typing import Optional

MIN_LISTENERS = 581
MAX_LISTENERS = 728
MAX_STEP = 3
TICK_SECONDS = 7
WALK_WINDOW = 64


def string_hash(value: str) -> int:
    """32-bit ``h = h*31 + code`` string hash, returned as a non-negative int."""
    h = 0
    for ch in value:
        h = (h << 5) - h + ord(ch)
        h &= 0xFFFFFFFF
    if h & 0x80000000:
        h -= 1 << 32
    return abs(h)


def initial_listener_count(episode_id: str) -> int:
    span = MAX_LISTENERS - MIN_LISTENERS + 1
    return MIN_LISTENERS + (string_hash(episode_id) % span)


class ListenerWalk:
    def __init__(self, episode_id: str, rng: Optional[random.Random] = None) -> None:
        self.episode_id = episode_id
        self.count = initial_listener_count(episode_id)
        self._rng = rng or random.Random()

    def step(self) -> int:
        delta = self._rng.randint(-MAX_STEP, MAX_STEP)
        self.count = min(MAX_LISTENERS, max(MIN_LISTENERS, self.count + delta))
        return self.count


def listener_count_at(episode_id: str, now: Optional[float] = None) -> int:
    """Counter value for ``now``; stable within a tick and identical across processes."""
    ticks = int((time.time() if now is None else now) // TICK_SECONDS) % WALK_WINDOW
    walk = ListenerWalk(episode_id, rng=random.Random(string_hash(episode_id)))
    for _ in range(ticks):
        walk.step()
    return walk.count
