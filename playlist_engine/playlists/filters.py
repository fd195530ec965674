"""
Track filter: a conjunction of independent range/set predicates.

Missing-data policy:
- bpm range, duration range: a track lacking the value is rejected
  (it cannot be verified, and callers rely on untempo'd tracks never
  slipping into a tempo-filtered selection).
- genres, excluded genres, keys, release years: a track lacking the
  value passes that criterion.
"""

import logging
from collections import Counter
from typing import Callable, List, Optional, Sequence

from playlist_engine.core.models import FilterCriteria, TrackRecord, ValueRange

TrackPredicate = Callable[[TrackRecord], bool]

logger = logging.getLogger("playlists.filters")


def _within(range_: ValueRange, value: Optional[float], missing_passes: bool) -> bool:
    if value is None:
        return missing_passes
    return range_.contains(value)


def track_predicates(criteria: FilterCriteria) -> List[TrackPredicate]:
    """Build the per-track predicates for every constraint that is set."""
    predicates: List[TrackPredicate] = []

    if criteria.bpm_range is not None:
        bpm_range = criteria.bpm_range
        predicates.append(lambda t: _within(bpm_range, t.bpm, missing_passes=False))

    if criteria.duration_range is not None:
        duration_range = criteria.duration_range
        predicates.append(lambda t: _within(duration_range, t.duration, missing_passes=False))

    if criteria.year_range is not None:
        year_range = criteria.year_range
        predicates.append(lambda t: _within(year_range, t.year, missing_passes=True))

    if criteria.genres:
        wanted = criteria.genres
        predicates.append(lambda t: not t.genres or any(g in wanted for g in t.genres))

    if criteria.excluded_genres:
        excluded = criteria.excluded_genres
        predicates.append(lambda t: not t.genres or not any(g in excluded for g in t.genres))

    if criteria.keys:
        keys = criteria.keys
        predicates.append(lambda t: t.key is None or t.key in keys)

    return predicates


def filter_tracks(tracks: Sequence[TrackRecord], criteria: FilterCriteria) -> List[TrackRecord]:
    """
    Keep the tracks that satisfy every criterion, preserving order.

    Per-track predicates run first; the artist-frequency range is then
    applied to counts taken over the survivors. Because that last step
    keeps or drops whole artists, filtering a result again with the same
    criteria returns it unchanged.

    Args:
        tracks: Candidate tracks
        criteria: Constraints; unset fields do not constrain

    Returns:
        List[TrackRecord]: Filtered subset in input order
    """
    predicates = track_predicates(criteria)
    selected = [track for track in tracks if all(predicate(track) for predicate in predicates)]

    if criteria.artist_frequency is not None:
        counts = Counter(track.artist for track in selected)
        frequency = criteria.artist_frequency
        selected = [track for track in selected if frequency.contains(counts[track.artist])]

    logger.debug(f"Filter kept {len(selected)} of {len(tracks)} tracks")
    return selected
