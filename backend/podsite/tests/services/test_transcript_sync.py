import random
from types import SimpleNamespace

import pytest

from podsite.services.player.transcript_sync import SegmentIndex, TranscriptFollower, active_segment


def seg(start, end, text=""):
    return SimpleNamespace(start_time=start, end_time=end, text=text)


SEGMENTS = [seg(0, 5, "a"), seg(10, 15, "b")]


@pytest.mark.parametrize("t,expected", [(0, "a"), (5, "a"), (7, None), (10, "b"), (12, "b"), (15, "b"), (16, None)])
def test_active_segment_gap_and_inclusive_bounds(t, expected):
    found = active_segment(SEGMENTS, t)
    assert (found.text if found else None) == expected
    indexed = SegmentIndex(SEGMENTS).lookup(t)
    assert indexed is found


def test_overlapping_segments_return_first_in_sequence():
    segments = [seg(0, 10, "long"), seg(2, 4, "inner"), seg(8, 12, "tail")]
    assert active_segment(segments, 3).text == "long"
    assert SegmentIndex(segments).lookup(3).text == "long"
    assert SegmentIndex(segments).lookup(11).text == "tail"


def test_index_matches_linear_scan_on_random_input():
    rng = random.Random(1234)
    for _ in range(50):
        segments = []
        cursor = 0.0
        for _ in range(rng.randint(0, 30)):
            start = cursor + rng.uniform(-2, 4)
            segments.append(seg(start, start + rng.uniform(0, 6)))
            cursor = max(cursor, start)
        segments.sort(key=lambda s: s.start_time)
        index = SegmentIndex(segments)
        assert index.ordered
        for _ in range(40):
            t = rng.uniform(-1, cursor + 8)
            assert index.lookup(t) is active_segment(segments, t)


def test_unordered_input_falls_back_to_linear_scan():
    segments = [seg(10, 15, "b"), seg(0, 5, "a")]
    index = SegmentIndex(segments)
    assert not index.ordered
    assert index.lookup(3).text == "a"


def test_follower_fires_only_on_change_including_backward_jumps():
    changes = []
    follower = TranscriptFollower(SEGMENTS, on_change=changes.append)
    for t in [0.5, 1.0, 4.9, 7.0, 11.0, 12.0, 0.0]:
        follower(t)
    assert [c.text if c else None for c in changes] == ["a", None, "b", "a"]


def test_empty_transcript():
    assert SegmentIndex([]).lookup(3.0) is None
    assert TranscriptFollower([]).update(3.0) is None
