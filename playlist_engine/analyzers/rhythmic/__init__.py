"""Tempo estimation: onset detection, interval autocorrelation, BPM."""

from playlist_engine.analyzers.rhythmic.autocorrelation import autocorrelate, find_dominant_lag
from playlist_engine.analyzers.rhythmic.onsets import OnsetDetector
from playlist_engine.analyzers.rhythmic.tempo import TempoEstimator, create_tempo_estimator, fold_bpm

__all__ = [
    "autocorrelate",
    "find_dominant_lag",
    "OnsetDetector",
    "TempoEstimator",
    "create_tempo_estimator",
    "fold_bpm",
]
