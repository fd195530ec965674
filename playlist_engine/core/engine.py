"""
Analysis engine for the playlist analytics engine.

Orchestrates per-track feature analysis (coarse inference + local tempo
and key estimation + fusion) and playlist-level aggregation.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dotenv import load_dotenv

from playlist_engine.analyzers.llm.client import create_llm_client
from playlist_engine.analyzers.llm.feature_inference import FeatureInference, LLMFeatureInference
from playlist_engine.analyzers.musical.key import KeyEstimator, create_key_estimator
from playlist_engine.analyzers.rhythmic.tempo import TempoEstimator, create_tempo_estimator
from playlist_engine.core.batch_processor import BatchProcessor, BatchResult
from playlist_engine.core.cache import CacheManager, create_cache_manager
from playlist_engine.core.fusion import DEFAULT_CONFIDENCE_THRESHOLD, fuse_features
from playlist_engine.core.loader import (
    AudioLoader,
    AudioRef,
    audio_ref_key,
    create_audio_loader,
    describe_ref,
)
from playlist_engine.core.models import (
    AudioFeatures,
    AudioSamples,
    FilterCriteria,
    KeyEstimate,
    PlaylistStats,
    TempoEstimate,
    TrackRecord,
)
from playlist_engine.playlists.diversity import optimize_artist_diversity
from playlist_engine.playlists.filters import filter_tracks
from playlist_engine.playlists.recommendations import (
    DEFAULT_BPM_MARGIN,
    DEFAULT_LIMIT,
    get_recommendations,
)
from playlist_engine.playlists.stats import compute_playlist_stats
from playlist_engine.playlists.store import TrackStore
from playlist_engine.utils.errors import (
    AudioLoadError,
    ConfigurationError,
    EmptyPlaylistError,
)
from playlist_engine.utils.logging import create_logger_with_context

# Load .env from project root
env_path = Path(__file__).parent.parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)


class PlaylistAnalysisEngine:
    """
    Main analysis engine - orchestrates all components.

    Design:
    - Dependency Injection: loader, inference, estimators and store are
      injected (testable with fakes)
    - Parallel Execution: tempo and key run concurrently per track;
      playlist tracks are enriched with bounded concurrency
    - Caching: fused features cached by audio reference
    - Error Handling: estimation shortfalls fall back, inference and
      store errors propagate, per-track failures are isolated
    """

    def __init__(
        self,
        loader: AudioLoader,
        inference: FeatureInference,
        tempo_estimator: TempoEstimator,
        key_estimator: KeyEstimator,
        track_store: Optional[TrackStore] = None,
        cache: Optional[CacheManager] = None,
        max_workers: int = 4,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        recommendation_limit: int = DEFAULT_LIMIT,
        bpm_margin: float = DEFAULT_BPM_MARGIN,
    ):
        """
        Initialize analysis engine.

        Args:
            loader: AudioLoader instance
            inference: Coarse feature inference collaborator
            tempo_estimator: Local tempo estimator
            key_estimator: Local key estimator
            track_store: Optional read-only track store (needed for
                playlist calls)
            cache: Optional cache manager for fused features
            max_workers: Max tracks analyzed in parallel
            confidence_threshold: Local confidence needed to override the
                coarse estimate
            recommendation_limit: Max tracks requested for recommendations
            bpm_margin: Fractional bpm widening for recommendations
        """
        self.loader = loader
        self.inference = inference
        self.tempo_estimator = tempo_estimator
        self.key_estimator = key_estimator
        self.track_store = track_store
        self.cache = cache
        self.max_workers = max_workers
        self.confidence_threshold = confidence_threshold
        self.recommendation_limit = recommendation_limit
        self.bpm_margin = bpm_margin
        # Two slots: tempo and key run side by side for one track
        self.executor = ThreadPoolExecutor(max_workers=2)
        self.logger = logging.getLogger('engine')

    def analyze_audio(self, audio_ref: AudioRef) -> AudioFeatures:
        """
        Analyze one audio reference completely.

        Args:
            audio_ref: Path, URL, raw bytes or decoded AudioSamples

        Returns:
            AudioFeatures: Coarse estimate fused with local tempo/key

        Raises:
            InferenceError: If the coarse inference collaborator fails
        """
        start_time = time.time()
        cache_key = audio_ref_key(audio_ref)
        label = describe_ref(audio_ref)

        # Step 1: Check cache
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                self.logger.info(f"Cache hit: {label}")
                return cached

        # Step 2: Coarse estimate (errors propagate)
        coarse = self.inference.infer(label)

        # Step 3: Decode once, estimate locally
        samples = self._decode(audio_ref)
        if samples is None:
            tempo, key = self.tempo_estimator.fallback(), self.key_estimator.fallback()
        else:
            tempo, key = self._estimate_local(samples)

        # Step 4: Fuse
        features = fuse_features(coarse, tempo, key, threshold=self.confidence_threshold)

        # Step 5: Cache result
        if self.cache is not None:
            self.cache.set(cache_key, features)

        self.logger.info(
            f"Analysis of {label} complete in {time.time() - start_time:.3f}s: "
            f"{features.bpm:.1f} BPM ({features.sources['bpm']}), "
            f"{features.key} mode {features.mode} ({features.sources['key']})"
        )
        return features

    def _decode(self, audio_ref: AudioRef) -> Optional[AudioSamples]:
        """Decode audio; None means both local estimates must fall back."""
        try:
            return self.loader.load(audio_ref)
        except AudioLoadError as e:
            self.logger.warning(f"Decode failed, local estimates fall back: {e}")
            return None

    def _estimate_local(self, samples: AudioSamples) -> Tuple[TempoEstimate, KeyEstimate]:
        """Run tempo and key estimation in parallel on the same buffer."""
        tempo_future = self.executor.submit(self.tempo_estimator.estimate, samples)
        key_future = self.executor.submit(self.key_estimator.estimate, samples)
        return tempo_future.result(), key_future.result()

    def enrich_tracks(self, tracks: Sequence[TrackRecord]) -> BatchResult:
        """
        Enrich tracks that carry a preview reference.

        Args:
            tracks: Tracks in playlist order

        Returns:
            BatchResult: Tracks in input order, failed ones un-enriched
        """
        processor = BatchProcessor(self.analyze_audio, max_workers=self.max_workers)
        return processor.enrich(tracks)

    def analyze_playlist(self, playlist_id: str) -> PlaylistStats:
        """
        Analyze a stored playlist.

        Args:
            playlist_id: Playlist identifier in the track store

        Returns:
            PlaylistStats: Aggregate report over enriched tracks

        Raises:
            EmptyPlaylistError: If the playlist has no tracks
            TrackStoreError: If the store query fails
        """
        logger = create_logger_with_context('engine', {'playlist_id': playlist_id})
        tracks = self._require_store().get_tracks(playlist_id)
        if not tracks:
            raise EmptyPlaylistError(playlist_id)

        logger.info(f"Analyzing playlist with {len(tracks)} tracks")
        batch = self.enrich_tracks(tracks)
        if batch.failed:
            logger.warning(f"{batch.failure_count} tracks kept un-enriched after failures")

        stats = compute_playlist_stats(batch.tracks)
        logger.info(stats.get_summary())
        return stats

    def filter_tracks(
        self, tracks: Sequence[TrackRecord], criteria: FilterCriteria
    ) -> List[TrackRecord]:
        """Filter tracks; see playlists.filters.filter_tracks."""
        return filter_tracks(tracks, criteria)

    def optimize_artist_diversity(
        self, tracks: Sequence[TrackRecord], target_diversity: float
    ) -> List[TrackRecord]:
        """Reorder tracks; see playlists.diversity.optimize_artist_diversity."""
        return optimize_artist_diversity(tracks, target_diversity)

    def get_recommendations(self, playlist_id: str) -> List[TrackRecord]:
        """
        Recommend stored tracks matching the enriched playlist's tempo.

        Raises:
            EmptyPlaylistError: If the playlist has no tracks
        """
        stats = self.analyze_playlist(playlist_id)
        return get_recommendations(
            self._require_store(),
            playlist_id,
            stats=stats,
            limit=self.recommendation_limit,
            bpm_margin=self.bpm_margin,
        )

    def _require_store(self) -> TrackStore:
        if self.track_store is None:
            raise ConfigurationError("No track store configured", config_key="track_store")
        return self.track_store

    def shutdown(self) -> None:
        """Shutdown thread pool gracefully."""
        self.logger.info("Shutting down analysis engine")
        self.executor.shutdown(wait=True)

    def __enter__(self) -> "PlaylistAnalysisEngine":
        """Context manager support."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Cleanup on context exit."""
        self.shutdown()


def create_playlist_engine(
    config: Dict[str, Any],
    track_store: Optional[TrackStore] = None,
    inference: Optional[FeatureInference] = None,
) -> PlaylistAnalysisEngine:
    """
    Factory function to create fully configured analysis engine.

    Args:
        config: Configuration dict
        track_store: Optional track store for playlist calls
        inference: Optional coarse inference collaborator; defaults to an
            LLM client built from config["inference"]

    Returns:
        PlaylistAnalysisEngine: Configured engine
    """
    loader = create_audio_loader(config.get('audio', {}))

    if inference is None:
        inference = LLMFeatureInference(create_llm_client(config.get('inference', {})))

    cache = None
    cache_config = config.get('cache', {})
    if cache_config.get('enabled', True):
        cache = create_cache_manager(cache_config)

    analysis_config = config.get('analysis', {})
    recommendations_config = config.get('recommendations', {})

    return PlaylistAnalysisEngine(
        loader=loader,
        inference=inference,
        tempo_estimator=create_tempo_estimator(config),
        key_estimator=create_key_estimator(config),
        track_store=track_store,
        cache=cache,
        max_workers=config.get('performance', {}).get('max_workers', 4),
        confidence_threshold=analysis_config.get('confidence_threshold', DEFAULT_CONFIDENCE_THRESHOLD),
        recommendation_limit=recommendations_config.get('limit', DEFAULT_LIMIT),
        bpm_margin=recommendations_config.get('bpm_margin', DEFAULT_BPM_MARGIN),
    )


def analyze_audio(engine: PlaylistAnalysisEngine, audio_ref: AudioRef) -> AudioFeatures:
    """Analyze one audio reference with the given engine."""
    return engine.analyze_audio(audio_ref)


def analyze_playlist(engine: PlaylistAnalysisEngine, playlist_id: str) -> PlaylistStats:
    """Analyze a stored playlist with the given engine."""
    return engine.analyze_playlist(playlist_id)
