"""
Estimator implementations for local audio analysis and coarse inference.
"""

from playlist_engine.analyzers.musical.key import KeyEstimator
from playlist_engine.analyzers.rhythmic.tempo import TempoEstimator

__all__ = [
    "KeyEstimator",
    "TempoEstimator",
]
