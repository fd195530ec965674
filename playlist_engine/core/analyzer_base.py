"""
Estimator base interface for the playlist analytics engine.

Defines the contract for local estimators using Protocol (structural
subtyping) and a base class that enforces the never-raise fallback
policy.
"""

import logging
import time
from abc import abstractmethod
from typing import Generic, Protocol, TypeVar

from playlist_engine.core.models import AudioSamples
from playlist_engine.utils.errors import InsufficientDataError

# Type variable for result types
T = TypeVar('T')


class Estimator(Protocol[T]):
    """
    Base protocol for all local estimators.

    All estimators must implement:
    - estimate(samples) -> T, which never raises
    - fallback() -> T
    - name and version properties
    """

    @property
    def name(self) -> str:
        """Estimator name (e.g., 'tempo', 'key')."""
        ...

    @property
    def version(self) -> str:
        """Estimator version for result tracking."""
        ...

    def estimate(self, samples: AudioSamples) -> T:
        """Estimate a descriptor, returning fallback() on any failure."""
        ...

    def fallback(self) -> T:
        """Documented default result used when estimation is not possible."""
        ...


class BaseEstimator(Generic[T]):
    """
    Base class providing timing, logging and fallback handling.

    Uses Template Method pattern - estimate() provides the template,
    subclasses implement _estimate_impl() and fallback().
    """

    def __init__(self, name: str, version: str):
        """
        Initialize estimator with name and version.

        Args:
            name: Unique estimator name
            version: Version string for tracking
        """
        self._name = name
        self._version = version
        self.logger = logging.getLogger(f"estimator.{name}")

    @property
    def name(self) -> str:
        """Return estimator name."""
        return self._name

    @property
    def version(self) -> str:
        """Return estimator version."""
        return self._version

    def estimate(self, samples: AudioSamples) -> T:
        """
        Template method with timing and fallback handling.

        Tempo and key shortfalls must never block playlist creation, so
        every failure is logged and converted to fallback().

        Args:
            samples: Decoded mono audio

        Returns:
            T: Estimate, or fallback() if estimation failed
        """
        start_time = time.time()

        try:
            self.logger.debug(f"Starting estimation: {samples.source or '<buffer>'}")

            if samples.is_empty:
                raise InsufficientDataError("No audio data available", analyzer_name=self.name)

            result = self._estimate_impl(samples)

            elapsed = time.time() - start_time
            self.logger.info(f"Estimation complete in {elapsed:.3f}s")

            return result

        except InsufficientDataError as e:
            self.logger.warning(f"Using fallback: {e.message}")
            return self.fallback()

        except Exception as e:
            self.logger.warning(f"{self.name} estimation failed, using fallback: {e}")
            return self.fallback()

    @abstractmethod
    def _estimate_impl(self, samples: AudioSamples) -> T:
        """Subclasses implement actual estimation logic."""
        raise NotImplementedError

    @abstractmethod
    def fallback(self) -> T:
        """Subclasses return their documented default result."""
        raise NotImplementedError
