"""Tests for report writers."""

import json

import pytest

from conftest import make_features, make_track
from playlist_engine.core.result_writer import (
    JSONReportWriter,
    TextReportWriter,
    create_result_writer,
)
from playlist_engine.playlists.stats import compute_playlist_stats


@pytest.fixture
def stats(sample_tracks):
    return compute_playlist_stats(sample_tracks)


class TestJSONReportWriter:
    def test_writes_stats(self, tmp_path, stats):
        path = tmp_path / "out" / "report.json"
        JSONReportWriter().write(stats, path, title="mix")
        data = json.loads(path.read_text())
        assert data["subject"] == "mix"
        assert data["report"]["track_count"] == 5

    def test_writes_features(self, tmp_path):
        path = tmp_path / "features.json"
        JSONReportWriter().write(make_features(), path)
        assert json.loads(path.read_text())["report"]["bpm"] == 98.0


class TestTextReportWriter:
    def test_writes_stats(self, tmp_path, stats):
        path = tmp_path / "report.txt"
        TextReportWriter(include_timestamp=False).write(stats, path, title="mix")
        text = path.read_text()
        assert "PLAYLIST ANALYSIS: mix" in text
        assert "Average BPM: 112.5" in text
        assert "END OF REPORT" in text

    def test_stats_without_bpm(self, tmp_path):
        path = tmp_path / "report.txt"
        no_bpm = compute_playlist_stats([make_track("t", "a")])
        TextReportWriter().write(no_bpm, path)
        assert "no tempo data" in path.read_text()

    def test_writes_features(self, tmp_path):
        path = tmp_path / "features.txt"
        TextReportWriter().write(make_features(), path, title="track.wav")
        text = path.read_text()
        assert "Key: A minor" in text
        assert "Tempo: 98.0 BPM" in text


class TestCreateResultWriter:
    @pytest.mark.parametrize("name, cls", [
        ("json", JSONReportWriter), ("text", TextReportWriter), ("TXT", TextReportWriter),
    ])
    def test_known_formats(self, name, cls):
        assert isinstance(create_result_writer(name), cls)

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            create_result_writer("xml")
