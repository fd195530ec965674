"""
Playlist-level operations: statistics, filtering, diversity and
recommendations over track records.
"""

from playlist_engine.playlists.diversity import optimize_artist_diversity
from playlist_engine.playlists.filters import filter_tracks
from playlist_engine.playlists.recommendations import get_recommendations
from playlist_engine.playlists.stats import compute_playlist_stats
from playlist_engine.playlists.store import InMemoryTrackStore, JSONTrackStore, TrackStore

__all__ = [
    "compute_playlist_stats",
    "filter_tracks",
    "optimize_artist_diversity",
    "get_recommendations",
    "TrackStore",
    "InMemoryTrackStore",
    "JSONTrackStore",
]
