"""Tests for ChromagramBuilder."""

import numpy as np
import pytest

from conftest import SAMPLE_RATE, sine_mix
from playlist_engine.analyzers.musical.chromagram import ChromagramBuilder
from playlist_engine.core.models import NOTE_NAMES, AudioSamples


class TestOctaves:
    def test_full_range_at_44100(self):
        assert ChromagramBuilder().octaves_for(SAMPLE_RATE) == 7

    def test_low_sample_rate_drops_top_octave(self):
        assert ChromagramBuilder().octaves_for(8000) == 6

    def test_limited_by_frame_size(self):
        # 1000 = 8 * 125 allows three hop halvings
        assert ChromagramBuilder(frame_size=1000).octaves_for(SAMPLE_RATE) == 4


class TestBuild:
    def test_shape(self):
        samples = AudioSamples(sine_mix([440.0], duration=1.0), SAMPLE_RATE)
        chroma = ChromagramBuilder(frame_size=2048).build(samples)
        assert chroma.shape == (SAMPLE_RATE // 2048, 12)

    def test_short_signal_gives_empty_chromagram(self):
        samples = AudioSamples(np.ones(100), SAMPLE_RATE)
        assert ChromagramBuilder().build(samples).shape == (0, 12)

    def test_a440_peaks_at_a(self):
        samples = AudioSamples(sine_mix([440.0]), SAMPLE_RATE)
        profile = ChromagramBuilder().build(samples).mean(axis=0)
        assert NOTE_NAMES[int(np.argmax(profile))] == 'A'

    def test_silence_has_no_energy(self, silent_samples):
        chroma = ChromagramBuilder().build(silent_samples)
        assert np.allclose(chroma, 0.0)

    @pytest.mark.parametrize("note, frequency", [
        ("G", 98.0),     # G2
        ("E", 164.81),   # E3
        ("C", 65.41),    # C2
        ("A#", 233.08),  # A#3
    ])
    def test_low_register_notes(self, note, frequency):
        samples = AudioSamples(sine_mix([frequency]), SAMPLE_RATE)
        profile = ChromagramBuilder().build(samples).mean(axis=0)
        assert NOTE_NAMES[int(np.argmax(profile))] == note
