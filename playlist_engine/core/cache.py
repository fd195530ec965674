"""
In-memory cache of fused audio features.

Entries are keyed by loader.audio_ref_key(), expire after a fixed
lifetime (one hour by default) and are evicted least-recently-used first
once the cache is full. One instance is shared by every worker of a
playlist fan-out, so all access goes through a lock.
"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from playlist_engine.core.models import AudioFeatures

DEFAULT_MAX_SIZE = 1000
DEFAULT_TTL = 3600.0


@dataclass(frozen=True)
class _Entry:
    features: AudioFeatures
    expires_at: float  # time.monotonic() deadline


class CacheManager:
    """Thread-safe LRU + TTL cache for AudioFeatures."""

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE, ttl: float = DEFAULT_TTL):
        """
        Args:
            max_size: Entries kept before LRU eviction
            ttl: Entry lifetime in seconds
        """
        if max_size < 1:
            raise ValueError(f"Cache max_size must be at least 1, got {max_size}")
        self.max_size = max_size
        self.ttl = ttl
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self.logger = logging.getLogger("cache")

    def get(self, key: str) -> Optional[AudioFeatures]:
        """
        Fresh features for `key`, or None (expired entries are dropped).

        Each hit returns a fresh copy; callers may modify it freely.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._expired(entry, time.monotonic()):
                if entry is not None:
                    del self._entries[key]
                    self.logger.debug(f"Expired: {key[:40]}")
                self._misses += 1
                return None

            self._entries.move_to_end(key)
            self._hits += 1
            return _copy(entry.features)

    def set(self, key: str, features: AudioFeatures) -> None:
        """Store features, evicting least-recently-used entries if full."""
        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self.logger.debug(f"Evicted: {evicted[:40]}")
            self._entries[key] = _Entry(_copy(features), time.monotonic() + self.ttl)

    def delete(self, key: str) -> bool:
        """Drop one entry; True if it was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        self.logger.info("Cache cleared")

    def cleanup_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = time.monotonic()
        with self._lock:
            stale: List[str] = [key for key, entry in self._entries.items() if self._expired(entry, now)]
            for key in stale:
                del self._entries[key]

        if stale:
            self.logger.info(f"Removed {len(stale)} expired entries")
        return len(stale)

    def get_stats(self) -> Dict[str, Any]:
        """Hit/miss counters, occupancy and hit ratio."""
        with self._lock:
            lookups = self._hits + self._misses
            return {
                'hits': self._hits,
                'misses': self._misses,
                'size': len(self._entries),
                'max_size': self.max_size,
                'hit_ratio': self._hits / lookups if lookups else 0.0,
                'ttl': self.ttl,
            }

    @staticmethod
    def _expired(entry: _Entry, now: float) -> bool:
        return now > entry.expires_at

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        """Fresh-entry check that leaves LRU order and counters alone."""
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._expired(entry, time.monotonic())


def _copy(features: AudioFeatures) -> AudioFeatures:
    return replace(features, confidence=dict(features.confidence), sources=dict(features.sources))


def create_cache_manager(config: Optional[Dict[str, Any]] = None) -> CacheManager:
    """Build a CacheManager from the "cache" config section (max_size, ttl)."""
    config = config or {}
    return CacheManager(
        max_size=config.get('max_size', DEFAULT_MAX_SIZE),
        ttl=config.get('ttl', DEFAULT_TTL),
    )
