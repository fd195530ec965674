"""
Utility modules for configuration, logging, and error handling.
"""

from playlist_engine.utils.errors import (
    PlaylistEngineError,
    InvalidInputError,
    EmptyPlaylistError,
    AudioLoadError,
    EmptyAudioError,
    UnsupportedFormatError,
    FileTooLargeError,
    AnalysisError,
    InsufficientDataError,
    InferenceError,
    TrackStoreError,
    ConfigurationError,
    ModelLoadError,
)
from playlist_engine.utils.logging import configure_logging, get_logger, setup_logging, JSONFormatter
from playlist_engine.utils.config import ConfigManager, load_config, get_default_config

__all__ = [
    "PlaylistEngineError",
    "InvalidInputError",
    "EmptyPlaylistError",
    "AudioLoadError",
    "EmptyAudioError",
    "UnsupportedFormatError",
    "FileTooLargeError",
    "AnalysisError",
    "InsufficientDataError",
    "InferenceError",
    "TrackStoreError",
    "ConfigurationError",
    "ModelLoadError",
    "configure_logging",
    "get_logger",
    "setup_logging",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
    "get_default_config",
]
