"""
Artist diversity optimizer.

Single-pass heuristic that surfaces rare artists early. It does not
minimize repeats globally.
"""

import logging
import math
from collections import Counter
from typing import List, Sequence, Set

from playlist_engine.core.models import TrackRecord
from playlist_engine.utils.errors import InvalidInputError

logger = logging.getLogger("playlists.diversity")


def optimize_artist_diversity(
    tracks: Sequence[TrackRecord],
    target_diversity: float,
) -> List[TrackRecord]:
    """
    Reorder tracks toward a target ratio of unique artists.

    Tracks are stably sorted by how often their artist appears (rarest
    first). Walking that order, a track is admitted when its artist was
    already admitted or fewer than ceil(n * target_diversity) distinct
    artists have been admitted so far. Tracks the walk passes over are
    appended afterwards in the same sorted order, so the output is always
    a permutation of the input.

    Args:
        tracks: Tracks to reorder
        target_diversity: Desired unique-artist ratio in [0, 1]

    Returns:
        List[TrackRecord]: Same tracks, same length, new order

    Raises:
        InvalidInputError: If target_diversity is outside [0, 1]
    """
    if not 0.0 <= target_diversity <= 1.0:
        raise InvalidInputError(
            f"target_diversity must be in [0, 1], got {target_diversity}",
            parameter="target_diversity",
        )

    frequency = Counter(track.artist for track in tracks)
    ordered = sorted(tracks, key=lambda track: frequency[track.artist])
    target_unique_artists = math.ceil(len(tracks) * target_diversity)

    admitted: List[TrackRecord] = []
    deferred: List[TrackRecord] = []
    selected_artists: Set[str] = set()

    for track in ordered:
        if track.artist in selected_artists or len(selected_artists) < target_unique_artists:
            admitted.append(track)
            selected_artists.add(track.artist)
        else:
            deferred.append(track)

    if deferred:
        logger.debug(
            f"Unique-artist budget {target_unique_artists} reached; "
            f"appending {len(deferred)} deferred tracks"
        )

    return admitted + deferred
