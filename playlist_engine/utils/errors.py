"""
Custom exceptions for the playlist analytics engine.

This module defines a hierarchy of exceptions for handling input errors,
external-dependency failures and estimation shortfalls throughout the
application.
"""

from typing import Optional, Any


class PlaylistEngineError(Exception):
    """Base exception for all playlist engine errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class InvalidInputError(PlaylistEngineError):
    """Raised when a caller passes an argument outside its valid domain."""

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message, details={"parameter": parameter})
        self.parameter = parameter


class EmptyPlaylistError(InvalidInputError):
    """Raised when a playlist has no tracks to analyze."""

    def __init__(self, playlist_id: Optional[str] = None):
        super().__init__("No tracks to analyze", parameter="playlist_id")
        self.playlist_id = playlist_id
        self.details = {"playlist_id": playlist_id}


class AudioLoadError(PlaylistEngineError):
    """Raised when audio cannot be fetched or decoded."""

    def __init__(self, message: str, audio_ref: Optional[str] = None):
        super().__init__(message, details={"audio_ref": audio_ref})
        self.audio_ref = audio_ref


class EmptyAudioError(AudioLoadError):
    """Raised when decoding succeeds but yields zero samples."""

    def __init__(self, audio_ref: Optional[str] = None):
        super().__init__("Decoded audio contains no samples", audio_ref=audio_ref)


class UnsupportedFormatError(AudioLoadError):
    """Raised when audio format is not supported."""

    def __init__(self, message: str, format: Optional[str] = None):
        super().__init__(message)
        self.format = format
        self.details = {"format": format}


class FileTooLargeError(AudioLoadError):
    """Raised when an audio file or payload exceeds the size limit."""

    def __init__(
        self,
        message: str,
        file_size: Optional[int] = None,
        max_size: Optional[int] = None,
    ):
        super().__init__(message)
        self.file_size = file_size
        self.max_size = max_size
        self.details = {"file_size": file_size, "max_size": max_size}


class AnalysisError(PlaylistEngineError):
    """Raised when a local estimator cannot produce a result."""

    def __init__(
        self,
        message: str,
        analyzer_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.analyzer_name = analyzer_name
        self.original_error = original_error
        self.details = {
            "analyzer_name": analyzer_name,
            "original_error": str(original_error) if original_error else None,
        }


class InsufficientDataError(AnalysisError):
    """Raised when there is not enough signal for an estimate (too few onsets, empty chromagram)."""

    def __init__(self, message: str, analyzer_name: Optional[str] = None):
        super().__init__(message, analyzer_name=analyzer_name)


class InferenceError(PlaylistEngineError):
    """Raised when the coarse feature inference collaborator fails."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.original_error = original_error
        self.details = {
            "provider": provider,
            "original_error": str(original_error) if original_error else None,
        }


class TrackStoreError(PlaylistEngineError):
    """Raised when the track store cannot be read."""

    def __init__(self, message: str, playlist_id: Optional[str] = None):
        super().__init__(message, details={"playlist_id": playlist_id})
        self.playlist_id = playlist_id


class ConfigurationError(PlaylistEngineError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}


class ModelLoadError(PlaylistEngineError):
    """Raised when the inference model client cannot be created."""

    def __init__(self, message: str, model_name: Optional[str] = None):
        super().__init__(message)
        self.model_name = model_name
        self.details = {"model_name": model_name}
