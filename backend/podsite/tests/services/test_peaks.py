import math
import random

import numpy as np
import pytest

from podsite.services.audio.peaks import (
    DecodeError,
    DecodedAudio,
    bucket_size_for,
    decode_samples,
    expected_peak_count,
    extract_peaks,
    format_hint,
    peaks_from_bytes,
)


def test_scenario_12000_samples_to_1200_peaks():
    samples = [((i % 7) - 3) / 3.0 for i in range(12000)]
    assert bucket_size_for(12000, 1200) == 10
    peaks = extract_peaks(samples, 1200)
    assert len(peaks) == 1200


@pytest.mark.parametrize("n,target", [(0, 1), (1, 1), (5, 1200), (1199, 1200), (1201, 1200), (12345, 1200), (999, 7)])
def test_peak_count_matches_bucket_formula(n, target):
    rng = random.Random(n * 31 + target)
    samples = [rng.uniform(-1, 1) for _ in range(n)]
    peaks = extract_peaks(samples, target)
    if n == 0:
        assert peaks == []
        return
    bucket = max(1, n // target)
    assert len(peaks) == math.ceil(n / bucket) == expected_peak_count(n, target)


def test_each_peak_is_the_bucket_max_abs():
    rng = random.Random(7)
    samples = [rng.uniform(-1, 1) for _ in range(1003)]
    peaks = extract_peaks(samples, 100)
    bucket = bucket_size_for(len(samples), 100)
    for i, peak in enumerate(peaks):
        chunk = samples[i * bucket:(i + 1) * bucket]
        assert peak == max(abs(s) for s in chunk)
        assert all(abs(s) <= peak for s in chunk)


def test_negative_excursions_count_as_peaks():
    assert extract_peaks([0.1, -0.9, 0.2, 0.3], 2) == [0.9, 0.3]


def test_target_must_be_positive():
    with pytest.raises(ValueError):
        bucket_size_for(10, 0)


def test_decode_wav_normalizes_first_channel(wav_bytes):
    decoded = decode_samples(wav_bytes(seconds=0.5, rate=8000, amplitude=0.5, channels=2), fmt="wav")
    assert decoded.sample_rate == 8000
    assert len(decoded.samples) == 4000
    assert decoded.duration_seconds == pytest.approx(0.5, abs=0.01)
    assert all(-1.0 <= s <= 1.0 for s in decoded.samples)
    assert max(abs(s) for s in decoded.samples) == pytest.approx(0.5, abs=0.01)


def test_peaks_from_bytes_returns_duration(wav_bytes):
    peaks, duration = peaks_from_bytes(wav_bytes(seconds=1.0, rate=8000), target=100, fmt="wav")
    assert len(peaks) == 100
    assert duration == pytest.approx(1.0, abs=0.01)
    assert all(0.0 <= p <= 1.0 for p in peaks)


@pytest.mark.parametrize("payload", [b"", b"definitely not audio"])
def test_undecodable_input_raises_decode_error(payload):
    with pytest.raises(DecodeError):
        decode_samples(payload, fmt="wav")


@pytest.mark.parametrize("name,expected", [
    ("episode.WAV", "wav"),
    ("https://cdn.test/episodes/audio/1700000000000-show.mp3?x=1", "mp3"),
    ("noext", None),
    (None, None),
])
def test_format_hint(name, expected):
    assert format_hint(name) == expected


def test_extract_peaks_accepts_numpy_arrays():
    samples = np.array([0.25, -0.75, 0.5, 0.1, -0.2], dtype=np.float32)
    peaks = extract_peaks(samples, 2)
    assert peaks == pytest.approx([0.75, 0.5, 0.2])
    assert all(isinstance(p, float) for p in peaks)


def test_decoded_pcm_peaks_match_normalized_extraction(wav_bytes):
    decoded = decode_samples(wav_bytes(seconds=0.75, rate=8000, amplitude=0.9, freq=330), fmt="wav")
    assert decoded.pcm.dtype == np.int16
    assert decoded.peaks(64) == pytest.approx(extract_peaks(decoded.samples, 64))


def test_decoded_peaks_reach_full_scale_for_clipped_audio():
    pcm = np.array([0, -32768, 100, 32767] * 10, dtype=np.int16)
    decoded = DecodedAudio(pcm=pcm, full_scale=32768.0, sample_rate=8000, duration_seconds=0.005)
    peaks = decoded.peaks(10)
    assert len(peaks) == 10
    assert max(peaks) == 1.0
    assert decoded.samples.min() == -1.0


def test_first_channel_is_taken_from_interleaved_stereo(wav_bytes):
    mono = decode_samples(wav_bytes(seconds=0.25, rate=8000, amplitude=0.4, channels=1), fmt="wav")
    stereo = decode_samples(wav_bytes(seconds=0.25, rate=8000, amplitude=0.4, channels=2), fmt="wav")
    assert len(stereo.pcm) == len(mono.pcm)
    assert stereo.peaks(50) == pytest.approx(mono.peaks(50))
