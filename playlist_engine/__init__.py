"""
Playlist Analytics Engine

Audio feature extraction for individual tracks (local tempo and key
estimation fused with a coarse model estimate) and analytics over
playlists of tracks.
"""

__version__ = "1.0.0"

from playlist_engine.playlists.diversity import optimize_artist_diversity
from playlist_engine.playlists.filters import filter_tracks


def __getattr__(name: str):
    """Lazy load engine-bound calls (pull in librosa)."""
    if name in ("analyze_audio", "analyze_playlist", "create_playlist_engine", "PlaylistAnalysisEngine"):
        from playlist_engine.core import engine
        return getattr(engine, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "__version__",
    "analyze_audio",
    "analyze_playlist",
    "filter_tracks",
    "optimize_artist_diversity",
    "create_playlist_engine",
    "PlaylistAnalysisEngine",
]
