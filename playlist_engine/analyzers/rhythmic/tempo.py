"""
Tempo estimator for the playlist analytics engine.

Onset detection, inter-onset interval autocorrelation, octave folding.
"""

from typing import Any, Dict, Optional, Tuple

import numpy as np

from playlist_engine.analyzers.rhythmic.autocorrelation import autocorrelate, find_dominant_lag
from playlist_engine.analyzers.rhythmic.onsets import OnsetDetector
from playlist_engine.core.analyzer_base import BaseEstimator
from playlist_engine.core.models import AudioSamples, Beat, TempoEstimate
from playlist_engine.utils.errors import InsufficientDataError

FALLBACK_BPM: float = 120.0
FALLBACK_CONFIDENCE: float = 0.5

MIN_BPM: float = 40.0
MAX_BPM: float = 220.0


def fold_bpm(bpm: float, bpm_range: Tuple[float, float] = (MIN_BPM, MAX_BPM)) -> float:
    """
    Bring a tempo into range by octave doubling/halving.

    Requires max >= 2 * min so that every positive tempo has an octave
    inside the range.
    """
    low, high = bpm_range
    if bpm <= 0:
        raise ValueError(f"BPM must be positive, got {bpm}")
    while bpm < low:
        bpm *= 2
    while bpm > high:
        bpm /= 2
    return bpm


class TempoEstimator(BaseEstimator[TempoEstimate]):
    """
    Estimates BPM, confidence and a beat list.

    Estimation shortfalls (empty signal, fewer than 2 onsets, no usable
    periodicity) yield the fallback {120 BPM, 0.5 confidence, no beats}.
    """

    def __init__(
        self,
        onset_detector: Optional[OnsetDetector] = None,
        tempo_range: Tuple[float, float] = (MIN_BPM, MAX_BPM),
        fallback_bpm: float = FALLBACK_BPM,
        fallback_confidence: float = FALLBACK_CONFIDENCE,
    ):
        """
        Args:
            onset_detector: Detector to use (default frame size 2048)
            tempo_range: Inclusive (min_bpm, max_bpm) output range
            fallback_bpm: BPM reported when estimation is not possible
            fallback_confidence: Confidence reported with the fallback
        """
        super().__init__("tempo", "1.0.0")
        if tempo_range[1] < 2 * tempo_range[0]:
            raise ValueError(f"Tempo range {tempo_range} must span at least one octave")
        self.onset_detector = onset_detector or OnsetDetector()
        self.tempo_range = tempo_range
        self.fallback_bpm = fallback_bpm
        self.fallback_confidence = fallback_confidence

    def fallback(self) -> TempoEstimate:
        return TempoEstimate(bpm=self.fallback_bpm, confidence=self.fallback_confidence, beats=())

    def _estimate_impl(self, samples: AudioSamples) -> TempoEstimate:
        """
        Estimate tempo of audio.

        Args:
            samples: Decoded mono audio

        Returns:
            TempoEstimate: Estimated tempo with beats at each onset
        """
        onsets = self.onset_detector.detect(samples)
        if onsets.size < 2:
            raise InsufficientDataError(
                f"Not enough onsets detected ({onsets.size})", analyzer_name=self.name
            )

        return self.estimate_from_onsets(onsets, samples.sample_rate)

    def estimate_from_onsets(self, onsets: np.ndarray, sample_rate: int) -> TempoEstimate:
        """
        Estimate tempo from onset timestamps.

        Intervals are expressed in samples; the dominant lag (in onset
        units) is scaled by the mean interval to give a period in samples,
        then converted with 60 / (period / sample_rate).

        Raises:
            InsufficientDataError: If fewer than 2 onsets or no periodicity
        """
        onsets = np.asarray(onsets, dtype=np.float64)
        if onsets.size < 2:
            raise InsufficientDataError(
                f"Not enough onsets detected ({onsets.size})", analyzer_name=self.name
            )

        intervals = np.diff(onsets) * sample_rate
        correlation = autocorrelate(intervals)
        lag, confidence = find_dominant_lag(correlation)

        period = lag * float(np.mean(intervals))
        raw_bpm = 60.0 / (period / sample_rate)
        bpm = round(fold_bpm(raw_bpm, self.tempo_range), 1)

        self.logger.debug(
            f"Dominant lag {lag} of {correlation.size}, raw {raw_bpm:.1f} BPM, "
            f"folded {bpm:.1f} BPM, confidence {confidence:.3f}"
        )

        beat_duration = 60.0 / bpm
        beats = tuple(
            Beat(start=float(start), duration=beat_duration, confidence=confidence)
            for start in onsets
        )
        return TempoEstimate(bpm=bpm, confidence=confidence, beats=beats)


def create_tempo_estimator(config: Optional[Dict[str, Any]] = None) -> TempoEstimator:
    """
    Factory function to create TempoEstimator from configuration.

    Args:
        config: Full configuration dict (uses "audio" and "analysis")

    Returns:
        TempoEstimator: Configured estimator
    """
    config = config or {}
    audio_config = config.get('audio', {})
    analysis_config = config.get('analysis', {})
    tempo_config = analysis_config.get('tempo', {})
    fallback_config = analysis_config.get('fallback_tempo', {})

    detector = OnsetDetector(
        frame_size=audio_config.get('frame_size', 2048),
        threshold_window=tempo_config.get('threshold_window', 16),
        threshold_margin=tempo_config.get('threshold_margin', 1.5),
    )
    return TempoEstimator(
        onset_detector=detector,
        tempo_range=(tempo_config.get('min_bpm', MIN_BPM), tempo_config.get('max_bpm', MAX_BPM)),
        fallback_bpm=fallback_config.get('bpm', FALLBACK_BPM),
        fallback_confidence=fallback_config.get('confidence', FALLBACK_CONFIDENCE),
    )
