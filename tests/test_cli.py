"""Tests for the command line entry point."""

import json

import pytest

import main as cli
from conftest import FakeInference
from playlist_engine.core import engine as engine_module


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep the CLI from reconfiguring the root logger."""
    monkeypatch.setattr(cli, "configure_logging", lambda config, verbose=False: None)


@pytest.fixture
def store_file(tmp_path):
    path = tmp_path / "tracks.json"
    path.write_text(json.dumps({
        "playlists": {
            "mix": [
                {"id": "a1", "title": "A1", "artist": "A", "bpm": 100, "genres": ["rock"]},
                {"id": "a2", "title": "A2", "artist": "A", "bpm": 128, "genres": ["pop"]},
                {"id": "b1", "title": "B1", "artist": "B", "bpm": 90, "genres": ["rock"]},
            ],
            "catalog": [
                {"id": "x1", "title": "X1", "artist": "X", "bpm": 110},
                {"id": "y1", "title": "Y1", "artist": "Y", "bpm": 180},
            ],
            "empty": [],
        },
    }), encoding="utf-8")
    return path


@pytest.fixture
def offline_engine(monkeypatch):
    """Build engines with canned coarse inference instead of an LLM."""
    real_factory = engine_module.create_playlist_engine

    def factory(config, track_store=None):
        return real_factory(config, track_store=track_store, inference=FakeInference())

    monkeypatch.setattr(engine_module, "create_playlist_engine", factory)


def _run(capsys, *argv):
    code = cli.main(list(argv))
    captured = capsys.readouterr()
    return code, captured


class TestTrackCommands:
    def test_filter(self, capsys, store_file):
        code, captured = _run(
            capsys, "filter", "mix", "--store", str(store_file),
            "--bpm-min", "95", "--bpm-max", "130", "--genre", "rock",
        )
        assert code == 0
        payload = json.loads(captured.out)
        assert payload["count"] == 1
        assert payload["tracks"][0]["title"] == "A1"

    def test_filter_half_open_range(self, capsys, store_file):
        code, captured = _run(capsys, "filter", "mix", "--store", str(store_file), "--bpm-min", "95")
        assert code == 1
        assert "--bpm-min and --bpm-max" in captured.err

    def test_filter_inverted_range(self, capsys, store_file):
        code, _ = _run(
            capsys, "filter", "mix", "--store", str(store_file), "--bpm-min", "130", "--bpm-max", "95",
        )
        assert code == 1

    def test_diversify(self, capsys, store_file):
        code, captured = _run(capsys, "diversify", "mix", "--store", str(store_file), "--target", "1.0")
        assert code == 0
        titles = [track["title"] for track in json.loads(captured.out)["tracks"]]
        assert titles == ["B1", "A1", "A2"]

    def test_diversify_invalid_target(self, capsys, store_file):
        code, captured = _run(capsys, "diversify", "mix", "--store", str(store_file), "--target", "2")
        assert code == 1
        assert "target_diversity" in captured.err

    def test_empty_playlist(self, capsys, store_file):
        code, captured = _run(capsys, "filter", "empty", "--store", str(store_file))
        assert code == 1
        assert "no tracks" in captured.err

    def test_missing_store(self, capsys, tmp_path):
        code, captured = _run(capsys, "filter", "mix", "--store", str(tmp_path / "nope.json"))
        assert code == 1
        assert "not found" in captured.err

    def test_json_output_file(self, capsys, store_file, tmp_path):
        output = tmp_path / "out" / "filtered.json"
        code, _ = _run(
            capsys, "filter", "mix", "--store", str(store_file), "--key", "C", "--output", str(output),
        )
        assert code == 0
        assert json.loads(output.read_text(encoding="utf-8"))["count"] == 3


class TestEngineCommands:
    def test_playlist(self, capsys, store_file, offline_engine):
        code, captured = _run(capsys, "playlist", "mix", "--store", str(store_file))
        assert code == 0
        stats = json.loads(captured.out)
        assert stats["track_count"] == 3
        assert stats["bpm_range"] == {"min": 90.0, "max": 128.0}

    def test_playlist_text_report(self, capsys, store_file, offline_engine, tmp_path):
        output = tmp_path / "report.txt"
        code, _ = _run(
            capsys, "playlist", "mix", "--store", str(store_file),
            "--output", str(output), "--format", "text",
        )
        assert code == 0
        text = output.read_text(encoding="utf-8")
        assert "PLAYLIST ANALYSIS: mix" in text
        assert "END OF REPORT" in text

    def test_recommend(self, capsys, store_file, offline_engine):
        code, captured = _run(capsys, "recommend", "mix", "--store", str(store_file))
        assert code == 0
        titles = [track["title"] for track in json.loads(captured.out)["tracks"]]
        assert titles == ["X1"]

    def test_playlist_empty(self, capsys, store_file, offline_engine):
        code, _ = _run(capsys, "playlist", "empty", "--store", str(store_file))
        assert code == 1
