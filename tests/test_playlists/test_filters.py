"""Tests for the track filter."""

import pytest

from conftest import make_track
from playlist_engine.core.models import FilterCriteria
from playlist_engine.playlists.filters import filter_tracks


def _titles(tracks):
    return [track.title for track in tracks]


class TestFilterTracks:
    def test_no_criteria_keeps_everything(self, sample_tracks):
        assert filter_tracks(sample_tracks, FilterCriteria()) == sample_tracks

    def test_bpm_range_rejects_missing_bpm(self, sample_tracks):
        result = filter_tracks(sample_tracks, FilterCriteria(bpm_range=(0, 1000)))
        assert "A2" not in _titles(result)
        assert len(result) == 4

    def test_duration_range_rejects_missing_duration(self, sample_tracks):
        result = filter_tracks(sample_tracks, FilterCriteria(duration_range=(0, 10_000)))
        assert _titles(result) == ["A1", "B1", "A2", "A3"]

    def test_genres_pass_when_missing(self, sample_tracks):
        result = filter_tracks(sample_tracks, FilterCriteria(genres={"rock"}))
        assert _titles(result) == ["A1", "A2", "C1"]

    def test_excluded_genres(self, sample_tracks):
        result = filter_tracks(sample_tracks, FilterCriteria(excluded_genres={"rock"}))
        assert _titles(result) == ["B1", "A2", "A3"]

    def test_keys_pass_when_missing(self, sample_tracks):
        result = filter_tracks(sample_tracks, FilterCriteria(keys={"C"}))
        assert _titles(result) == ["A1", "A2", "A3"]

    def test_year_range_passes_when_missing(self, sample_tracks):
        result = filter_tracks(sample_tracks, FilterCriteria(year_range=(1990, 1999)))
        assert _titles(result) == ["A1", "A2", "C1"]

    def test_empty_sets_do_not_constrain(self, sample_tracks):
        result = filter_tracks(sample_tracks, FilterCriteria(genres=set(), keys=[]))
        assert result == sample_tracks

    def test_conjunction(self, sample_tracks):
        criteria = FilterCriteria(bpm_range=(95, 150), genres={"rock", "pop"}, keys={"C", "D"})
        assert _titles(filter_tracks(sample_tracks, criteria)) == ["A1", "C1"]

    def test_artist_frequency(self, sample_tracks):
        result = filter_tracks(sample_tracks, FilterCriteria(artist_frequency=(1, 1)))
        assert _titles(result) == ["B1", "C1"]

    def test_artist_frequency_counts_survivors(self, sample_tracks):
        # After the bpm filter artist A has two tracks left
        criteria = FilterCriteria(bpm_range=(85, 150), artist_frequency=(2, 2))
        assert _titles(filter_tracks(sample_tracks, criteria)) == ["A1", "A3"]

    def test_order_preserved(self):
        tracks = [make_track(str(i), "A", bpm=float(100 + (i % 3))) for i in range(9)]
        result = filter_tracks(tracks, FilterCriteria(bpm_range=(100, 101)))
        assert _titles(result) == ["0", "1", "3", "4", "6", "7"]

    def test_single_genre_string(self):
        tracks = [make_track("R", "A", genres=["rock"]), make_track("P", "B", genres=["pop"])]
        assert _titles(filter_tracks(tracks, FilterCriteria(genres="rock"))) == ["R"]
        assert _titles(filter_tracks(tracks, FilterCriteria(excluded_genres="rock"))) == ["P"]

    @pytest.mark.parametrize("criteria", [
        FilterCriteria(bpm_range=(95, 150)),
        FilterCriteria(genres={"rock"}, excluded_genres={"indie"}),
        FilterCriteria(artist_frequency=(2, 3)),
        FilterCriteria(bpm_range=(85, 150), artist_frequency=(2, 2)),
        FilterCriteria(keys={"C", "G"}, duration_range=(150, 250), artist_frequency=(1, 1)),
    ])
    def test_idempotent(self, sample_tracks, criteria):
        once = filter_tracks(sample_tracks, criteria)
        assert filter_tracks(once, criteria) == once
