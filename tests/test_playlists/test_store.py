"""Tests for track stores."""

import json

import pytest

from conftest import make_track
from playlist_engine.playlists.store import InMemoryTrackStore, JSONTrackStore
from playlist_engine.utils.errors import TrackStoreError


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class TestInMemoryTrackStore:
    def test_get_tracks_returns_copy(self, track_store):
        tracks = track_store.get_tracks("mix")
        tracks.clear()
        assert len(track_store.get_tracks("mix")) == 5

    def test_unknown_playlist_is_empty(self, track_store):
        assert track_store.get_tracks("nope") == []

    def test_len(self, track_store):
        assert len(track_store) == 9

    def test_find_by_bpm_inclusive(self, track_store):
        result = track_store.find_by_bpm(95.0, 150.0)
        assert [t.title for t in result] == ["A1", "B1", "C1", "X1", "X2"]

    def test_find_by_bpm_limit(self, track_store):
        assert len(track_store.find_by_bpm(0.0, 1000.0, limit=3)) == 3

    def test_find_by_bpm_deduplicates(self):
        shared = make_track("S", "T", bpm=120.0)
        store = InMemoryTrackStore({"p1": [shared], "p2": [shared]})
        assert store.find_by_bpm(100.0, 130.0) == [shared]


# ---------------------------------------------------------------------------
# JSON store
# ---------------------------------------------------------------------------


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestJSONTrackStore:
    def test_load(self, tmp_path):
        path = _write(tmp_path / "tracks.json", {
            "playlists": {
                "road-trip": [
                    {"id": 7, "title": "Song", "artist": "Band", "bpm": 120, "year": "1999",
                     "genres": ["rock"], "duration": 215},
                    {"title": "Other", "artist": "Band"},
                ],
            },
        })
        store = JSONTrackStore(path)
        tracks = store.get_tracks("road-trip")

        assert len(tracks) == 2
        assert tracks[0].id == "7"
        assert tracks[0].bpm == 120.0
        assert tracks[0].year == 1999
        assert tracks[0].genres == ("rock",)
        assert tracks[1].bpm is None
        assert store.find_by_bpm(100, 130) == [tracks[0]]

    def test_missing_file(self, tmp_path):
        with pytest.raises(TrackStoreError, match="not found"):
            JSONTrackStore(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(TrackStoreError):
            JSONTrackStore(path)

    @pytest.mark.parametrize("data", [[], {"tracks": []}, {"playlists": []}])
    def test_missing_playlists_mapping(self, tmp_path, data):
        with pytest.raises(TrackStoreError, match="playlists"):
            JSONTrackStore(_write(tmp_path / "tracks.json", data))

    def test_malformed_row(self, tmp_path):
        path = _write(tmp_path / "tracks.json", {"playlists": {"p": [{"title": "No artist"}]}})
        with pytest.raises(TrackStoreError) as exc_info:
            JSONTrackStore(path)
        assert exc_info.value.playlist_id == "p"

    def test_non_numeric_bpm(self, tmp_path):
        path = _write(tmp_path / "tracks.json", {
            "playlists": {"p": [{"title": "S", "artist": "T", "bpm": "fast"}]},
        })
        with pytest.raises(TrackStoreError):
            JSONTrackStore(path)

    def test_single_genre_string(self, tmp_path):
        path = _write(tmp_path / "tracks.json", {
            "playlists": {"p": [{"title": "S", "artist": "T", "genres": "rock"}]},
        })
        track = JSONTrackStore(path).get_tracks("p")[0]
        assert track.genres == ("rock",)
