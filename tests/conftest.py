"""Shared fixtures for playlist engine tests."""

import io
from typing import Dict, List, Optional, Sequence

import numpy as np
import pytest
import soundfile as sf

from playlist_engine.core.models import AudioFeatures, AudioSamples, TrackRecord
from playlist_engine.playlists.store import InMemoryTrackStore

SAMPLE_RATE = 44100

COARSE_RESPONSE = (
    '{"bpm": 98, "key": "A", "mode": 0, "danceability": 0.7, "energy": 0.6, '
    '"acousticness": 0.2, "instrumentalness": 0.1, "valence": 0.4}'
)


# ---------------------------------------------------------------------------
# Synthetic signals
# ---------------------------------------------------------------------------


def click_train(
    interval: float = 0.5,
    duration: float = 10.0,
    sample_rate: int = SAMPLE_RATE,
    offset: float = 0.1,
) -> np.ndarray:
    """Unit impulses every `interval` seconds, starting at `offset`."""
    signal = np.zeros(int(duration * sample_rate), dtype=np.float32)
    positions = (np.arange(offset, duration, interval) * sample_rate).astype(int)
    signal[positions[positions < signal.size]] = 1.0
    return signal


def kick_train(
    bpm: float,
    duration: float = 8.0,
    noise: float = 0.0,
    sample_rate: int = SAMPLE_RATE,
    offset: float = 0.1,
    seed: int = 0,
) -> np.ndarray:
    """Decaying 60 Hz kick drums at `bpm` over an optional Gaussian noise floor."""
    signal = np.zeros(int(duration * sample_rate))
    t = np.arange(int(0.3 * sample_rate)) / sample_rate
    kick = 0.8 * np.exp(-30.0 * t) * np.sin(2 * np.pi * 60.0 * t)
    for start in (np.arange(offset, duration, 60.0 / bpm) * sample_rate).astype(int):
        end = min(start + kick.size, signal.size)
        signal[start:end] += kick[:end - start]
    if noise:
        signal += np.random.default_rng(seed).normal(0.0, noise, signal.size)
    return signal.astype(np.float32)


def sine_mix(
    frequencies: Sequence[float],
    amplitudes: Optional[Sequence[float]] = None,
    duration: float = 2.0,
    sample_rate: int = SAMPLE_RATE,
) -> np.ndarray:
    """Sum of sines, normalized to peak 0.9."""
    t = np.arange(int(duration * sample_rate)) / sample_rate
    amplitudes = amplitudes if amplitudes is not None else [1.0] * len(frequencies)
    signal = sum(a * np.sin(2 * np.pi * f * t) for f, a in zip(frequencies, amplitudes))
    return (0.9 * signal / np.max(np.abs(signal))).astype(np.float32)


def wav_bytes(signal: np.ndarray, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Encode a mono signal as an in-memory WAV file."""
    buffer = io.BytesIO()
    sf.write(buffer, signal, sample_rate, format='WAV')
    return buffer.getvalue()


def make_features(**overrides) -> AudioFeatures:
    """Coarse AudioFeatures with sensible defaults."""
    values = dict(
        bpm=98.0, key='A', mode=0, danceability=0.7, energy=0.6,
        acousticness=0.2, instrumentalness=0.1, valence=0.4,
        sources={'bpm': 'coarse', 'key': 'coarse', 'mode': 'coarse'},
    )
    values.update(overrides)
    return AudioFeatures(**values)


def make_track(title: str, artist: str, **fields) -> TrackRecord:
    """TrackRecord with only the given fields set."""
    return TrackRecord(title=title, artist=artist, **fields)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class MockLLMClient:
    """Mock LLMClient that returns canned responses without API calls."""

    def __init__(self, response: str = COARSE_RESPONSE):
        self.provider = "mock"
        self.model = "mock-model"
        self._response = response
        self.call_count = 0
        self.prompts: List[str] = []

    @property
    def model_id(self) -> str:
        return "mock/mock-model"

    def chat(self, system_prompt, user_prompt, temperature=None, max_tokens=None, json_mode=False):
        self.call_count += 1
        self.prompts.append(user_prompt)
        return self._response


class FakeInference:
    """Coarse inference fake: fixed features, optional per-reference failures."""

    def __init__(self, features: Optional[AudioFeatures] = None, failures: Optional[Dict[str, Exception]] = None):
        self.features = features or make_features()
        self.failures = failures or {}
        self.calls: List[str] = []

    def infer(self, audio_ref: str) -> AudioFeatures:
        self.calls.append(audio_ref)
        if audio_ref in self.failures:
            raise self.failures[audio_ref]
        return self.features


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_client():
    """MockLLMClient instance."""
    return MockLLMClient()


@pytest.fixture
def fake_inference():
    """FakeInference returning the default coarse features."""
    return FakeInference()


@pytest.fixture
def click_samples():
    """10 s click train at 120 BPM."""
    return AudioSamples(click_train(), SAMPLE_RATE, source="clicks-120")


@pytest.fixture
def silent_samples():
    """2 s of digital silence."""
    return AudioSamples(np.zeros(2 * SAMPLE_RATE), SAMPLE_RATE, source="silence")


@pytest.fixture
def click_wav(tmp_path):
    """120 BPM click train written to a WAV file."""
    path = tmp_path / "clicks.wav"
    sf.write(str(path), click_train(), SAMPLE_RATE)
    return path


@pytest.fixture
def sample_tracks():
    """Five tracks: artist A three times, B and C once each."""
    return [
        make_track("A1", "A", bpm=100.0, key="C", genres=("rock",), year=1994, duration=200.0,
                   energy=0.8, valence=0.6, danceability=0.5, id="a1"),
        make_track("B1", "B", bpm=120.0, key="G", genres=("pop",), year=2003, duration=180.0,
                   energy=0.6, valence=0.4, danceability=0.7, id="b1"),
        make_track("A2", "A", bpm=None, key=None, genres=None, year=None, duration=210.0, id="a2"),
        make_track("C1", "C", bpm=140.0, key="D", genres=("rock", "indie"), year=1999, duration=None,
                   energy=0.4, valence=0.2, danceability=0.3, id="c1"),
        make_track("A3", "A", bpm=90.0, key="C", genres=("jazz",), year=2011, duration=240.0,
                   energy=0.2, valence=0.8, danceability=0.1, id="a3"),
    ]


@pytest.fixture
def track_store(sample_tracks):
    """In-memory store with the sample playlist and a catalog of other tracks."""
    catalog = [
        make_track("X1", "X", bpm=95.0, id="x1"),
        make_track("X2", "X", bpm=150.0, id="x2"),
        make_track("Y1", "Y", bpm=160.0, id="y1"),
        make_track("Z1", "Z", bpm=60.0, id="z1"),
    ]
    return InMemoryTrackStore({
        "mix": sample_tracks,
        "catalog": catalog,
        "empty": [],
    })
