"""
Key estimator for the playlist analytics engine.

Krumhansl-Kessler template matching over an averaged chromagram.
"""

from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from playlist_engine.analyzers.musical.chromagram import ChromagramBuilder
from playlist_engine.core.analyzer_base import BaseEstimator
from playlist_engine.core.models import (
    MODE_MAJOR,
    MODE_MINOR,
    NOTE_NAMES,
    AudioSamples,
    KeyEstimate,
)
from playlist_engine.utils.errors import InsufficientDataError

# Key profiles (Krumhansl-Kessler), index 0 = tonic
MAJOR_PROFILE = np.array([6.35, 2.23, 3.48, 2.33, 4.38, 4.09, 2.52, 5.19, 2.39, 3.66, 2.29, 2.88])
MINOR_PROFILE = np.array([6.33, 2.68, 3.52, 5.38, 2.60, 3.53, 2.54, 4.75, 3.98, 2.69, 3.34, 3.17])

FALLBACK_KEY: str = 'C'
FALLBACK_MODE: int = MODE_MAJOR
FALLBACK_CONFIDENCE: float = 0.5

# Confidence never reported below this for a real estimate
MIN_CONFIDENCE: float = 0.5


class KeyEstimator(BaseEstimator[KeyEstimate]):
    """
    Estimates key, mode and confidence.

    Decoding failures and empty or silent chromagrams yield the fallback
    {C, major, 0.5}.
    """

    def __init__(
        self,
        chromagram_builder: Optional[ChromagramBuilder] = None,
        fallback_key: str = FALLBACK_KEY,
        fallback_mode: int = FALLBACK_MODE,
        fallback_confidence: float = FALLBACK_CONFIDENCE,
    ):
        super().__init__("key", "1.0.0")
        self.chromagram_builder = chromagram_builder or ChromagramBuilder()
        self.fallback_key = fallback_key
        self.fallback_mode = fallback_mode
        self.fallback_confidence = fallback_confidence

    def fallback(self) -> KeyEstimate:
        return KeyEstimate(
            key=self.fallback_key, mode=self.fallback_mode, confidence=self.fallback_confidence
        )

    def _estimate_impl(self, samples: AudioSamples) -> KeyEstimate:
        chromagram = self.chromagram_builder.build(samples)
        return self.estimate_from_chromagram(chromagram)

    def estimate_from_chromagram(self, chromagram: np.ndarray) -> KeyEstimate:
        """
        Estimate key from a (n_frames, 12) chromagram.

        The frames are averaged and normalized so the strongest pitch
        class is 1.0. Each of the 24 rotated templates is scored with the
        Pearson correlation (a centered, normalized weighted dot product);
        the best score is the confidence, floored at 0.5 and capped at 1.0.

        Raises:
            InsufficientDataError: If the chromagram is empty or silent
        """
        chromagram = np.asarray(chromagram, dtype=np.float64)
        if chromagram.size == 0:
            raise InsufficientDataError("Chromagram is empty", analyzer_name=self.name)

        profile = chromagram.reshape(-1, 12).mean(axis=0)
        peak_energy = float(profile.max())
        if peak_energy <= 0.0:
            raise InsufficientDataError("Chromagram has no tonal energy", analyzer_name=self.name)
        profile = profile / peak_energy

        scores = self.score_keys(profile)
        (tonic, mode), best = max(scores, key=lambda item: item[1])

        confidence = float(min(1.0, max(MIN_CONFIDENCE, best / profile.max())))
        self.logger.debug(f"Best key {NOTE_NAMES[tonic]} mode {mode} (correlation {best:.3f})")

        return KeyEstimate(key=NOTE_NAMES[tonic], mode=mode, confidence=confidence)

    @staticmethod
    def score_keys(profile: np.ndarray) -> List[Tuple[Tuple[int, int], float]]:
        """
        Correlate a 12-bin profile with every major and minor template.

        Returns:
            List of ((tonic_index, mode), correlation), majors first, so
            ties resolve to the lower tonic and to major.
        """
        scores: List[Tuple[Tuple[int, int], float]] = []
        for mode, template in ((MODE_MAJOR, MAJOR_PROFILE), (MODE_MINOR, MINOR_PROFILE)):
            for tonic in range(12):
                rotated = np.roll(template, tonic)
                with np.errstate(invalid='ignore', divide='ignore'):
                    corr = np.corrcoef(profile, rotated)[0, 1]
                scores.append(((tonic, mode), float(np.nan_to_num(corr))))
        return scores


def create_key_estimator(config: Optional[Dict[str, Any]] = None) -> KeyEstimator:
    """
    Factory function to create KeyEstimator from configuration.

    Args:
        config: Full configuration dict (uses "audio" and "analysis")

    Returns:
        KeyEstimator: Configured estimator
    """
    config = config or {}
    fallback_config = config.get('analysis', {}).get('fallback_key', {})
    builder = ChromagramBuilder(frame_size=config.get('audio', {}).get('frame_size', 2048))
    return KeyEstimator(
        chromagram_builder=builder,
        fallback_key=fallback_config.get('key', FALLBACK_KEY),
        fallback_mode=fallback_config.get('mode', FALLBACK_MODE),
        fallback_confidence=fallback_config.get('confidence', FALLBACK_CONFIDENCE),
    )
