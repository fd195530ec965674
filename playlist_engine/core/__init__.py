"""
Core module containing data models, audio loading, fusion and the
analysis engine.

Uses lazy imports for modules with heavy dependencies (librosa).
"""

# Models are lightweight - import directly
from playlist_engine.core.models import (
    AudioSamples,
    Beat,
    TempoEstimate,
    KeyEstimate,
    AudioFeatures,
    ValueRange,
    TrackRecord,
    FilterCriteria,
    MoodProfile,
    MoodPoint,
    PlaylistStats,
    validate_confidence,
)
from playlist_engine.core.fusion import fuse_features

__all__ = [
    # Models (always available)
    "AudioSamples",
    "Beat",
    "TempoEstimate",
    "KeyEstimate",
    "AudioFeatures",
    "ValueRange",
    "TrackRecord",
    "FilterCriteria",
    "MoodProfile",
    "MoodPoint",
    "PlaylistStats",
    "validate_confidence",
    "fuse_features",
    # Heavy modules (lazy loaded)
    "AudioLoader",
    "create_audio_loader",
    "Estimator",
    "BaseEstimator",
    "PlaylistAnalysisEngine",
    "create_playlist_engine",
    "CacheManager",
    "create_cache_manager",
    "BatchProcessor",
    "BatchResult",
    "ReportWriter",
    "TextReportWriter",
    "JSONReportWriter",
    "create_result_writer",
]


def __getattr__(name: str):
    """Lazy load modules with heavy dependencies."""
    if name in ("AudioLoader", "create_audio_loader"):
        from playlist_engine.core import loader
        return getattr(loader, name)
    elif name in ("Estimator", "BaseEstimator"):
        from playlist_engine.core import analyzer_base
        return getattr(analyzer_base, name)
    elif name in ("PlaylistAnalysisEngine", "create_playlist_engine"):
        from playlist_engine.core import engine
        return getattr(engine, name)
    elif name in ("CacheManager", "create_cache_manager"):
        from playlist_engine.core import cache
        return getattr(cache, name)
    elif name in ("BatchProcessor", "BatchResult"):
        from playlist_engine.core import batch_processor
        return getattr(batch_processor, name)
    elif name in ("ReportWriter", "TextReportWriter", "JSONReportWriter", "create_result_writer"):
        from playlist_engine.core import result_writer
        return getattr(result_writer, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
