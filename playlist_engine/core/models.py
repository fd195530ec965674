"""
Core data models for the playlist analytics engine.

Audio buffers, per-estimator results, fused per-track features, track
records and the aggregate playlist report.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

import numpy as np

# Pitch-class names, index 0 = C
NOTE_NAMES: Tuple[str, ...] = ('C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B')

MODE_MINOR = 0
MODE_MAJOR = 1

DEFAULT_SAMPLE_RATE = 44100
DEFAULT_FRAME_SIZE = 2048

SCORE_FIELDS: Tuple[str, ...] = (
    'danceability', 'energy', 'acousticness', 'instrumentalness', 'valence'
)


@dataclass(frozen=True)
class AudioSamples:
    """
    Immutable decoded mono audio.

    The sample buffer is copied to float32 and marked read-only on
    construction; estimators share it without copying.
    """

    samples: np.ndarray  # Shape: (n_samples,)
    sample_rate: int = DEFAULT_SAMPLE_RATE
    source: Optional[str] = None  # Path or URL the audio came from

    def __post_init__(self) -> None:
        data = np.array(self.samples, dtype=np.float32).reshape(-1)
        data.setflags(write=False)
        object.__setattr__(self, 'samples', data)
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return len(self) / self.sample_rate

    @property
    def is_empty(self) -> bool:
        return len(self) == 0


@dataclass(frozen=True)
class Beat:
    """A single detected beat event."""

    start: float  # seconds
    duration: float  # seconds
    confidence: float

    def to_dict(self) -> Dict[str, float]:
        return {'start': self.start, 'duration': self.duration, 'confidence': self.confidence}


@dataclass(frozen=True)
class TempoEstimate:
    """Locally computed tempo."""

    bpm: float
    confidence: float  # [0.0, 1.0]
    beats: Tuple[Beat, ...] = ()

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_bpm(self.bpm)
        validate_confidence(self.confidence)
        object.__setattr__(self, 'beats', tuple(self.beats))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'bpm': self.bpm,
            'confidence': self.confidence,
            'beats': [beat.to_dict() for beat in self.beats],
        }


@dataclass(frozen=True)
class KeyEstimate:
    """Locally computed key and mode."""

    key: str  # One of NOTE_NAMES
    mode: int  # 0 = minor, 1 = major
    confidence: float  # [0.0, 1.0]

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_key(self.key)
        validate_mode(self.mode)
        validate_confidence(self.confidence)

    @property
    def label(self) -> str:
        """Human-readable key, e.g. "A minor"."""
        return f"{self.key} {'major' if self.mode == MODE_MAJOR else 'minor'}"

    def to_dict(self) -> Dict[str, Any]:
        return {'key': self.key, 'mode': self.mode, 'confidence': self.confidence}


@dataclass
class AudioFeatures:
    """
    Fused per-track descriptor record.

    bpm/key/mode may come from local estimation or from the coarse
    inference collaborator; `sources` records which. The score fields
    always come from the coarse estimate.
    """

    bpm: float
    key: str
    mode: int
    danceability: float
    energy: float
    acousticness: float
    instrumentalness: float
    valence: float
    confidence: Dict[str, float] = field(default_factory=dict)
    sources: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_bpm(self.bpm)
        validate_key(self.key)
        validate_mode(self.mode)
        for name in SCORE_FIELDS:
            validate_score(name, getattr(self, name))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'bpm': self.bpm,
            'key': self.key,
            'mode': self.mode,
            'danceability': self.danceability,
            'energy': self.energy,
            'acousticness': self.acousticness,
            'instrumentalness': self.instrumentalness,
            'valence': self.valence,
            'confidence': dict(self.confidence),
            'sources': dict(self.sources),
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


@dataclass(frozen=True)
class ValueRange:
    """Closed numeric interval [min, max]."""

    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError(f"Range minimum {self.min} exceeds maximum {self.max}")

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def to_dict(self) -> Dict[str, float]:
        return {'min': self.min, 'max': self.max}

    @classmethod
    def from_value(cls, value: Any) -> Optional["ValueRange"]:
        """Build from a {"min", "max"} / {"start", "end"} mapping or a pair."""
        if value is None or isinstance(value, ValueRange):
            return value
        if isinstance(value, Mapping):
            low = value.get('min', value.get('start'))
            high = value.get('max', value.get('end'))
            return cls(float(low), float(high))
        low, high = value
        return cls(float(low), float(high))


@dataclass(frozen=True)
class TrackRecord:
    """
    A playlist entry as returned by the track store.

    Read-only: enrichment produces a new record via with_features().
    """

    title: str
    artist: str
    album: Optional[str] = None
    duration: Optional[float] = None  # seconds
    year: Optional[int] = None
    bpm: Optional[float] = None
    key: Optional[str] = None
    mode: Optional[int] = None
    genres: Optional[Tuple[str, ...]] = None
    energy: Optional[float] = None
    danceability: Optional[float] = None
    valence: Optional[float] = None
    preview_url: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.genres is not None:
            object.__setattr__(self, 'genres', _as_names(self.genres))

    def with_features(self, features: AudioFeatures) -> "TrackRecord":
        """Return a copy carrying the fused audio features."""
        return replace(
            self,
            bpm=features.bpm,
            key=features.key,
            mode=features.mode,
            energy=features.energy,
            danceability=features.danceability,
            valence=features.valence,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'title': self.title,
            'artist': self.artist,
            'album': self.album,
            'duration': self.duration,
            'year': self.year,
            'bpm': self.bpm,
            'key': self.key,
            'mode': self.mode,
            'genres': list(self.genres) if self.genres is not None else None,
            'energy': self.energy,
            'danceability': self.danceability,
            'valence': self.valence,
            'preview_url': self.preview_url,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TrackRecord":
        """
        Build a record from a store row.

        Raises:
            ValueError: If title or artist is missing
        """
        if not data.get('title') or not data.get('artist'):
            raise ValueError(f"Track row needs title and artist: {dict(data)}")

        def _float(name: str) -> Optional[float]:
            value = data.get(name)
            return float(value) if value is not None else None

        year = data.get('year')
        mode = data.get('mode')
        genres = data.get('genres')
        return cls(
            id=str(data['id']) if data.get('id') is not None else None,
            title=str(data['title']),
            artist=str(data['artist']),
            album=data.get('album'),
            duration=_float('duration'),
            year=int(year) if year is not None else None,
            bpm=_float('bpm'),
            key=data.get('key'),
            mode=int(mode) if mode is not None else None,
            genres=genres,
            energy=_float('energy'),
            danceability=_float('danceability'),
            valence=_float('valence'),
            preview_url=data.get('preview_url'),
        )


@dataclass(frozen=True)
class FilterCriteria:
    """
    Optional constraints for the track filter.

    A field left as None means "no constraint". Empty genre/key sets are
    treated the same as None.
    """

    bpm_range: Optional[ValueRange] = None
    genres: Optional[FrozenSet[str]] = None
    excluded_genres: Optional[FrozenSet[str]] = None
    keys: Optional[FrozenSet[str]] = None
    duration_range: Optional[ValueRange] = None
    year_range: Optional[ValueRange] = None
    artist_frequency: Optional[ValueRange] = None

    def __post_init__(self) -> None:
        for name in ('genres', 'excluded_genres', 'keys'):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, frozenset(_as_names(value)))
        for name in ('bpm_range', 'duration_range', 'year_range', 'artist_frequency'):
            object.__setattr__(self, name, ValueRange.from_value(getattr(self, name)))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FilterCriteria":
        """Build criteria from a plain mapping (config file or CLI)."""
        return cls(
            bpm_range=data.get('bpm_range'),
            genres=data.get('genres'),
            excluded_genres=data.get('excluded_genres'),
            keys=data.get('keys'),
            duration_range=data.get('duration_range'),
            year_range=data.get('year_range'),
            artist_frequency=data.get('artist_frequency'),
        )


@dataclass(frozen=True)
class MoodProfile:
    """Average mood scores across a playlist."""

    energy: float
    danceability: float
    valence: float

    def to_dict(self) -> Dict[str, float]:
        return {'energy': self.energy, 'danceability': self.danceability, 'valence': self.valence}


@dataclass(frozen=True)
class MoodPoint:
    """Mood of a single track at its playlist position."""

    position: int
    energy: float
    valence: float

    def to_dict(self) -> Dict[str, Any]:
        return {'position': self.position, 'energy': self.energy, 'valence': self.valence}


@dataclass
class PlaylistStats:
    """Aggregate playlist report. Recomputed on demand, never persisted."""

    track_count: int
    total_duration: float
    average_bpm: float
    bpm_range: Optional[ValueRange]
    key_distribution: Dict[str, int]
    genre_distribution: Dict[str, int]
    tempo_distribution: Dict[str, int]
    year_distribution: Dict[int, int]
    artist_diversity: float  # [0.0, 1.0]
    mood_profile: MoodProfile
    mood_progression: List[MoodPoint]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'track_count': self.track_count,
            'total_duration': self.total_duration,
            'average_bpm': self.average_bpm,
            'bpm_range': self.bpm_range.to_dict() if self.bpm_range else None,
            'key_distribution': dict(self.key_distribution),
            'genre_distribution': dict(self.genre_distribution),
            'tempo_distribution': dict(self.tempo_distribution),
            'year_distribution': {str(decade): count for decade, count in self.year_distribution.items()},
            'artist_diversity': self.artist_diversity,
            'mood_profile': self.mood_profile.to_dict(),
            'mood_progression': [point.to_dict() for point in self.mood_progression],
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def get_summary(self) -> str:
        """Get human-readable one-line summary."""
        parts = [f"Tracks: {self.track_count}", f"Duration: {self.total_duration / 60:.1f} min"]
        if self.bpm_range:
            parts.append(
                f"BPM: {self.average_bpm:.1f} avg ({self.bpm_range.min:.0f}-{self.bpm_range.max:.0f})"
            )
        if self.key_distribution:
            top_key = max(self.key_distribution.items(), key=lambda item: item[1])[0]
            parts.append(f"Top key: {top_key}")
        parts.append(f"Artist diversity: {self.artist_diversity:.2f}")
        return " | ".join(parts)


# Validation helpers

def validate_bpm(bpm: float) -> None:
    """Validate BPM is a finite positive number."""
    if not (math.isfinite(bpm) and bpm > 0):
        raise ValueError(f"BPM must be positive and finite, got {bpm}")


def validate_confidence(confidence: float) -> None:
    """Validate confidence score is in valid range."""
    if not (0.0 <= confidence <= 1.0):
        raise ValueError(f"Confidence must be in [0.0, 1.0], got {confidence}")


def validate_score(name: str, value: float) -> None:
    """Validate a normalized feature score."""
    if not (0.0 <= value <= 1.0):
        raise ValueError(f"{name} must be in [0.0, 1.0], got {value}")


def validate_key(key: str) -> None:
    """Validate key is one of the 12 pitch-class names."""
    if key not in NOTE_NAMES:
        raise ValueError(f"Invalid key: {key}. Must be one of {NOTE_NAMES}")


def validate_mode(mode: int) -> None:
    """Validate mode is 0 (minor) or 1 (major)."""
    if mode not in (MODE_MINOR, MODE_MAJOR):
        raise ValueError(f"Mode must be 0 (minor) or 1 (major), got {mode}")


def _as_names(value: Any) -> Tuple[str, ...]:
    """Genre/key collection as a tuple; a bare string is one name."""
    if isinstance(value, str):
        return (value,)
    return tuple(value)
