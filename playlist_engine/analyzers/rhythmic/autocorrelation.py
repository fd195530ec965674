"""
Autocorrelation of inter-onset interval sequences.
"""

from typing import Sequence, Tuple, Union

import numpy as np

from playlist_engine.utils.errors import InsufficientDataError


def autocorrelate(intervals: Union[Sequence[float], np.ndarray]) -> np.ndarray:
    """
    Compute the (unnormalized) autocorrelation of a sequence.

    Entry L is the dot product of the sequence with itself shifted by L;
    entry 0 is the self-energy (sum of squares).

    Args:
        intervals: Inter-onset gaps

    Returns:
        np.ndarray: Same length as the input

    Raises:
        InsufficientDataError: If the sequence has fewer than 2 entries
    """
    x = np.asarray(intervals, dtype=np.float64).reshape(-1)
    if x.size <= 1:
        raise InsufficientDataError(
            f"Autocorrelation needs at least 2 intervals, got {x.size}",
            analyzer_name="autocorrelation",
        )

    full = np.correlate(x, x, mode='full')
    return full[x.size - 1:]


def find_dominant_lag(correlation: np.ndarray) -> Tuple[int, float]:
    """
    Find the strongest periodicity.

    Searches lags 1 .. ceil(n/2) - 1; the upper half is skipped because
    it is built from too few products and aliases the lower lags.

    Args:
        correlation: Output of autocorrelate()

    Returns:
        Tuple[int, float]: (lag, peak correlation / lag-0 correlation,
            clamped to [0, 1])

    Raises:
        InsufficientDataError: If no lag can be searched or the sequence
            has no energy
    """
    n = correlation.size
    upper = int(np.ceil(n / 2))
    if upper <= 1:
        raise InsufficientDataError(
            f"Too few intervals ({n}) to search for a periodicity",
            analyzer_name="autocorrelation",
        )

    energy = float(correlation[0])
    if energy <= 0.0:
        raise InsufficientDataError("Interval sequence has no energy", analyzer_name="autocorrelation")

    lag = 1 + int(np.argmax(correlation[1:upper]))
    strength = float(correlation[lag]) / energy
    return lag, float(min(1.0, max(0.0, strength)))
