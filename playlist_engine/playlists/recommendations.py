"""
Tempo-based track recommendations for a playlist.
"""

import logging
from typing import List, Optional, Set, Tuple

from playlist_engine.core.models import PlaylistStats, TrackRecord
from playlist_engine.playlists.stats import compute_playlist_stats
from playlist_engine.playlists.store import TrackStore
from playlist_engine.utils.errors import EmptyPlaylistError

DEFAULT_LIMIT = 50
DEFAULT_BPM_MARGIN = 0.1

logger = logging.getLogger("playlists.recommendations")


def track_identity(track: TrackRecord) -> Tuple[str, ...]:
    """Identity used to recognise the same track across enrichment."""
    if track.id is not None:
        return ('id', track.id)
    return ('title', track.title, track.artist)


def get_recommendations(
    store: TrackStore,
    playlist_id: str,
    stats: Optional[PlaylistStats] = None,
    limit: int = DEFAULT_LIMIT,
    bpm_margin: float = DEFAULT_BPM_MARGIN,
) -> List[TrackRecord]:
    """
    Recommend store tracks whose tempo fits the playlist.

    Queries the store for tracks with bpm in
    [min * (1 - margin), max * (1 + margin)] of the playlist's bpm range
    and drops tracks already in the playlist.

    Args:
        store: Track store to query
        playlist_id: Playlist to recommend for
        stats: Precomputed (e.g. enriched) stats; computed from the stored
            tracks when omitted
        limit: Maximum number of tracks requested from the store
        bpm_margin: Fractional widening of the bpm range on each side

    Returns:
        List[TrackRecord]: Recommendations (empty when the playlist has no
        bpm data)

    Raises:
        EmptyPlaylistError: If the playlist has no tracks
        TrackStoreError: If the store query fails
    """
    playlist_tracks = store.get_tracks(playlist_id)
    if not playlist_tracks:
        raise EmptyPlaylistError(playlist_id)

    if stats is None:
        stats = compute_playlist_stats(playlist_tracks)

    if stats.bpm_range is None:
        logger.info(f"Playlist {playlist_id} has no bpm data; no recommendations")
        return []

    low = stats.bpm_range.min * (1.0 - bpm_margin)
    high = stats.bpm_range.max * (1.0 + bpm_margin)

    existing: Set[Tuple[str, ...]] = {track_identity(track) for track in playlist_tracks}
    candidates = store.find_by_bpm(low, high, limit=limit)
    recommendations = [track for track in candidates if track_identity(track) not in existing]

    logger.info(
        f"{len(recommendations)} recommendations for playlist {playlist_id} "
        f"(bpm {low:.1f}-{high:.1f})"
    )
    return recommendations
