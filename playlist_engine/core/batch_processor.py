"""
Batch processor for enriching playlist tracks with audio features.

Runs per-track analysis with bounded concurrency. A failing track keeps
its stored record; the batch never aborts because of one track.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from playlist_engine.core.models import AudioFeatures, TrackRecord


@dataclass
class BatchResult:
    """Result of enriching a playlist's tracks."""
    tracks: List[TrackRecord] = field(default_factory=list)  # Input order
    enriched: Dict[int, AudioFeatures] = field(default_factory=dict)  # position -> features
    failed: Dict[int, str] = field(default_factory=dict)  # position -> error message
    skipped: int = 0  # Tracks without a preview reference
    total_time: float = 0.0

    @property
    def success_count(self) -> int:
        """Number of successfully enriched tracks."""
        return len(self.enriched)

    @property
    def failure_count(self) -> int:
        """Number of tracks whose analysis failed."""
        return len(self.failed)

    @property
    def success_rate(self) -> float:
        """Success rate over attempted tracks, as a percentage."""
        attempted = self.success_count + self.failure_count
        if attempted == 0:
            return 0.0
        return (self.success_count / attempted) * 100


class BatchProcessor:
    """
    Enriches tracks using an injected per-reference analysis callable.

    Only orchestrates; the analysis itself is delegated (typically
    PlaylistAnalysisEngine.analyze_audio).
    """

    def __init__(
        self,
        analyze: Callable[[str], AudioFeatures],
        max_workers: int = 4,
        progress_callback: Optional[Callable[[int, int, TrackRecord], None]] = None
    ):
        """
        Initialize batch processor.

        Args:
            analyze: Callable mapping a preview reference to AudioFeatures
            max_workers: Maximum tracks analyzed in parallel
            progress_callback: Optional callback(completed, total, track)
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.analyze = analyze
        self.max_workers = max_workers
        self.progress_callback = progress_callback
        self.logger = logging.getLogger("batch_processor")

    def enrich(self, tracks: Sequence[TrackRecord]) -> BatchResult:
        """
        Analyze every track that has a preview reference.

        Args:
            tracks: Tracks in playlist order

        Returns:
            BatchResult with tracks in the same order; enriched tracks
            carry fused features, the rest are unchanged
        """
        start_time = time.time()
        result = BatchResult(tracks=list(tracks))

        pending = [(i, track) for i, track in enumerate(tracks) if track.preview_url]
        result.skipped = len(tracks) - len(pending)

        if not pending:
            self.logger.info("No tracks with preview audio; nothing to enrich")
            return result

        self.logger.info(
            f"Enriching {len(pending)} of {len(tracks)} tracks with {self.max_workers} workers"
        )

        completed = 0
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self.analyze, track.preview_url): (position, track)
                for position, track in pending
            }

            for future in as_completed(futures):
                position, track = futures[future]
                completed += 1

                try:
                    features = future.result()
                    result.enriched[position] = features
                    result.tracks[position] = track.with_features(features)
                    self.logger.debug(f"Enriched track {position}: {track.title}")
                except Exception as e:
                    result.failed[position] = str(e)
                    self.logger.error(
                        f"Failed to analyze track {position} ({track.artist} - {track.title}): {e}"
                    )

                if self.progress_callback:
                    self.progress_callback(completed, len(pending), track)

        result.total_time = time.time() - start_time
        self.logger.info(
            f"Enrichment complete: {result.success_count}/{len(pending)} succeeded "
            f"in {result.total_time:.2f}s"
        )
        return result
