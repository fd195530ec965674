"""
Feature fusion: combine a coarse feature estimate with local estimates.

Follows the confidence-threshold pattern: a local result replaces the
coarse value only when its confidence clears the threshold.
"""

import logging
from dataclasses import replace

from playlist_engine.core.models import AudioFeatures, KeyEstimate, TempoEstimate

DEFAULT_CONFIDENCE_THRESHOLD: float = 0.8

logger = logging.getLogger("fusion")


def fuse_features(
    coarse: AudioFeatures,
    tempo: TempoEstimate,
    key: KeyEstimate,
    threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
) -> AudioFeatures:
    """
    Fuse locally computed tempo/key into a coarse feature estimate.

    bpm and the (key, mode) pair are decided independently; each is
    replaced only if the local confidence is strictly greater than the
    threshold. Score fields pass through from the coarse estimate.

    Args:
        coarse: Estimate from the inference collaborator
        tempo: Local tempo estimate for the same audio
        key: Local key estimate for the same audio
        threshold: Minimum (exclusive) local confidence to override

    Returns:
        AudioFeatures: New record; the inputs are not modified
    """
    use_tempo = tempo.confidence > threshold
    use_key = key.confidence > threshold

    logger.debug(
        f"Fusing: tempo {tempo.bpm:.1f} @ {tempo.confidence:.2f} "
        f"({'local' if use_tempo else 'coarse'}), key {key.label} @ {key.confidence:.2f} "
        f"({'local' if use_key else 'coarse'})"
    )

    return replace(
        coarse,
        bpm=tempo.bpm if use_tempo else coarse.bpm,
        key=key.key if use_key else coarse.key,
        mode=key.mode if use_key else coarse.mode,
        confidence={'bpm': tempo.confidence, 'key': key.confidence, 'mode': key.confidence},
        sources={
            'bpm': 'local' if use_tempo else 'coarse',
            'key': 'local' if use_key else 'coarse',
            'mode': 'local' if use_key else 'coarse',
        },
    )
