"""
Playlist statistics aggregation.
"""

import logging
import math
from collections import Counter
from typing import Dict, List, Sequence, Tuple

from playlist_engine.core.models import MoodPoint, MoodProfile, PlaylistStats, TrackRecord, ValueRange
from playlist_engine.utils.errors import EmptyPlaylistError

# Upper bounds (inclusive) of the tempo buckets, in order
TEMPO_BUCKETS: Tuple[Tuple[float, str], ...] = (
    (60.0, 'Very Slow'),
    (90.0, 'Slow'),
    (120.0, 'Moderate'),
    (150.0, 'Fast'),
    (math.inf, 'Very Fast'),
)

logger = logging.getLogger("playlists.stats")


def tempo_bucket(bpm: float) -> str:
    """Label a tempo; a missing tempo should be passed as 0."""
    for upper, label in TEMPO_BUCKETS:
        if bpm <= upper:
            return label
    return TEMPO_BUCKETS[-1][1]


def decade(year: int) -> int:
    """Decade a year falls in, e.g. 1994 -> 1990."""
    return (year // 10) * 10


def artist_diversity(tracks: Sequence[TrackRecord]) -> float:
    """
    1 - (largest single-artist share).

    0.0 when one artist made every track; 1 - 1/n when no artist repeats.
    """
    if not tracks:
        return 0.0
    counts = Counter(track.artist for track in tracks)
    return 1.0 - max(counts.values()) / len(tracks)


def compute_playlist_stats(tracks: Sequence[TrackRecord]) -> PlaylistStats:
    """
    Aggregate statistics over a playlist.

    Tracks without a bpm are excluded from the bpm mean and range (not
    counted as zero) but are bucketed as tempo 0 in the tempo
    distribution. Mood scores default to 0 when absent.

    Args:
        tracks: Tracks in playlist order

    Returns:
        PlaylistStats: Aggregate report

    Raises:
        EmptyPlaylistError: If there are no tracks
    """
    if not tracks:
        raise EmptyPlaylistError()

    n = len(tracks)
    bpms: List[float] = [track.bpm for track in tracks if track.bpm is not None]

    key_distribution: Dict[str, int] = Counter()
    genre_distribution: Dict[str, int] = Counter()
    tempo_distribution: Dict[str, int] = Counter()
    year_distribution: Dict[int, int] = Counter()

    for track in tracks:
        if track.key:
            key_distribution[track.key] += 1
        for genre in track.genres or ():
            genre_distribution[genre] += 1
        tempo_distribution[tempo_bucket(track.bpm if track.bpm is not None else 0.0)] += 1
        if track.year is not None:
            year_distribution[decade(track.year)] += 1

    mood_profile = MoodProfile(
        energy=sum(track.energy or 0.0 for track in tracks) / n,
        danceability=sum(track.danceability or 0.0 for track in tracks) / n,
        valence=sum(track.valence or 0.0 for track in tracks) / n,
    )
    mood_progression = [
        MoodPoint(position=position, energy=track.energy or 0.0, valence=track.valence or 0.0)
        for position, track in enumerate(tracks)
    ]

    stats = PlaylistStats(
        track_count=n,
        total_duration=sum(track.duration or 0.0 for track in tracks),
        average_bpm=sum(bpms) / len(bpms) if bpms else 0.0,
        bpm_range=ValueRange(min(bpms), max(bpms)) if bpms else None,
        key_distribution=dict(key_distribution),
        genre_distribution=dict(genre_distribution),
        tempo_distribution=dict(tempo_distribution),
        year_distribution=dict(sorted(year_distribution.items())),
        artist_diversity=artist_diversity(tracks),
        mood_profile=mood_profile,
        mood_progression=mood_progression,
    )

    logger.debug(f"Computed stats for {n} tracks ({len(bpms)} with bpm)")
    return stats
