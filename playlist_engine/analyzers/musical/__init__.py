"""Key estimation from pitch-class profiles."""

from playlist_engine.analyzers.musical.chromagram import ChromagramBuilder
from playlist_engine.analyzers.musical.key import KeyEstimator, create_key_estimator

__all__ = ["ChromagramBuilder", "KeyEstimator", "create_key_estimator"]
