"""
Read-only track store contract and implementations.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from playlist_engine.core.models import TrackRecord
from playlist_engine.utils.errors import TrackStoreError


class TrackStore(Protocol):
    """
    Read-only track store.

    The engine never writes back.
    """

    def get_tracks(self, playlist_id: str) -> List[TrackRecord]:
        """Return every track of a playlist in playlist order (empty if unknown)."""
        ...

    def find_by_bpm(self, min_bpm: float, max_bpm: float, limit: int = 50) -> List[TrackRecord]:
        """Return up to `limit` tracks whose bpm lies in [min_bpm, max_bpm]."""
        ...


class InMemoryTrackStore:
    """Track store over an in-memory {playlist_id: [TrackRecord, ...]} mapping."""

    def __init__(self, playlists: Optional[Mapping[str, Sequence[TrackRecord]]] = None):
        self._playlists: Dict[str, List[TrackRecord]] = {
            str(playlist_id): list(tracks) for playlist_id, tracks in (playlists or {}).items()
        }

    def get_tracks(self, playlist_id: str) -> List[TrackRecord]:
        return list(self._playlists.get(str(playlist_id), []))

    def find_by_bpm(self, min_bpm: float, max_bpm: float, limit: int = 50) -> List[TrackRecord]:
        matches: List[TrackRecord] = []
        seen = set()
        for tracks in self._playlists.values():
            for track in tracks:
                if track.bpm is None or not (min_bpm <= track.bpm <= max_bpm):
                    continue
                if track in seen:
                    continue
                seen.add(track)
                matches.append(track)
                if len(matches) >= limit:
                    return matches
        return matches

    def __len__(self) -> int:
        return sum(len(tracks) for tracks in self._playlists.values())


class JSONTrackStore(InMemoryTrackStore):
    """
    Track store backed by a JSON file.

    File layout:
        {"playlists": {"<playlist_id>": [{"title": ..., "artist": ..., ...}, ...]}}
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.logger = logging.getLogger("playlists.store")
        super().__init__(self._read())
        self.logger.info(f"Loaded {len(self)} tracks from {self.path}")

    def _read(self) -> Dict[str, List[TrackRecord]]:
        """Parse the store file into track records."""
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data: Any = json.load(f)
        except FileNotFoundError as e:
            raise TrackStoreError(f"Track store not found: {self.path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise TrackStoreError(f"Failed to read track store {self.path}: {e}") from e

        playlists = data.get('playlists') if isinstance(data, dict) else None
        if not isinstance(playlists, dict):
            raise TrackStoreError(f"Track store {self.path} has no 'playlists' mapping")

        parsed: Dict[str, List[TrackRecord]] = {}
        for playlist_id, rows in playlists.items():
            try:
                parsed[str(playlist_id)] = [TrackRecord.from_dict(row) for row in rows]
            except (TypeError, ValueError, AttributeError) as e:
                raise TrackStoreError(
                    f"Malformed track row in playlist {playlist_id}: {e}", playlist_id=str(playlist_id)
                ) from e
        return parsed
