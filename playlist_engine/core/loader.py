"""
Audio loader for the playlist analytics engine.

Fetches and decodes audio references (paths, URLs, raw bytes) into mono
AudioSamples at the analysis sample rate.
"""

import hashlib
import io
import logging
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any, Dict, Optional, Set, Union
from urllib.parse import urlparse

import librosa
import numpy as np
import soundfile as sf

from playlist_engine.core.models import DEFAULT_SAMPLE_RATE, AudioSamples
from playlist_engine.utils.errors import (
    AudioLoadError,
    EmptyAudioError,
    FileTooLargeError,
    UnsupportedFormatError,
)

AudioRef = Union[str, Path, bytes, AudioSamples]

SUPPORTED_FORMATS: Set[str] = {'.wav', '.aif', '.aiff', '.mp3', '.flac', '.ogg', '.m4a'}

MAX_FILE_SIZE: int = 52428800  # 50 MB; previews are 30 s clips
FETCH_TIMEOUT: float = 30.0  # seconds

logger = logging.getLogger(__name__)


def is_url(audio_ref: Any) -> bool:
    """True for http(s) URL strings."""
    return isinstance(audio_ref, str) and urlparse(audio_ref).scheme in ('http', 'https')


def audio_ref_key(audio_ref: AudioRef) -> str:
    """
    Stable cache key for an audio reference.

    Paths and URLs key by their string form; raw bytes and decoded
    buffers key by SHA-256 of their content.
    """
    if isinstance(audio_ref, AudioSamples):
        sha256 = hashlib.sha256(audio_ref.samples.tobytes())
        sha256.update(str(audio_ref.sample_rate).encode())
        return f"sha256:{sha256.hexdigest()}"
    if isinstance(audio_ref, (bytes, bytearray)):
        return f"sha256:{hashlib.sha256(audio_ref).hexdigest()}"
    return str(audio_ref)


def describe_ref(audio_ref: AudioRef) -> str:
    """Short printable form of a reference for logs and error details."""
    if isinstance(audio_ref, AudioSamples):
        return audio_ref.source or f"<{len(audio_ref)} samples>"
    if isinstance(audio_ref, (bytes, bytearray)):
        return f"<{len(audio_ref)} bytes>"
    return str(audio_ref)


class AudioLoader:
    """
    Loads audio references and creates AudioSamples.

    Thread-safe and stateless - can be used concurrently.
    """

    def __init__(
        self,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        max_file_size: int = MAX_FILE_SIZE,
        fetch_timeout: float = FETCH_TIMEOUT,
        supported_formats: Optional[Set[str]] = None,
    ):
        """
        Initialize loader with configuration.

        Args:
            sample_rate: Target sample rate for resampling
            max_file_size: Maximum file or download size in bytes
            fetch_timeout: Network timeout for URL references in seconds
            supported_formats: Accepted file suffixes for path references
        """
        self.sample_rate = sample_rate
        self.max_file_size = max_file_size
        self.fetch_timeout = fetch_timeout
        self.supported_suffixes: Set[str] = set(supported_formats or SUPPORTED_FORMATS)

    def load(self, audio_ref: AudioRef) -> AudioSamples:
        """
        Load and decode audio.

        Args:
            audio_ref: File path, http(s) URL, raw encoded bytes, or
                already-decoded AudioSamples (returned unchanged)

        Returns:
            AudioSamples: Mono audio at the loader's sample rate

        Raises:
            UnsupportedFormatError: File format not supported
            FileTooLargeError: File or download exceeds size limit
            AudioLoadError: Fetch or decode failed
            EmptyAudioError: Audio decoded to zero samples
        """
        if isinstance(audio_ref, AudioSamples):
            return audio_ref

        if isinstance(audio_ref, (bytes, bytearray)):
            samples = self._decode_bytes(bytes(audio_ref), describe_ref(audio_ref))
        elif is_url(audio_ref):
            payload = self._fetch(str(audio_ref))
            samples = self._decode_bytes(payload, str(audio_ref))
        else:
            samples = self._decode_file(Path(audio_ref))

        if samples.is_empty:
            raise EmptyAudioError(audio_ref=describe_ref(audio_ref))

        logger.info(
            f"Decoded {describe_ref(audio_ref)}: {samples.duration:.2f}s at {samples.sample_rate} Hz"
        )
        return samples

    def _validate_file(self, file_path: Path) -> None:
        """Validate file exists, has supported format, and is within size limit."""
        if not file_path.exists():
            raise AudioLoadError(f"Audio file not found: {file_path}", audio_ref=str(file_path))

        suffix = file_path.suffix.lower()
        if suffix not in self.supported_suffixes:
            raise UnsupportedFormatError(
                f"Format {suffix} not supported. "
                f"Supported formats: {', '.join(sorted(self.supported_suffixes))}",
                format=suffix
            )

        file_size = file_path.stat().st_size
        if file_size > self.max_file_size:
            raise FileTooLargeError(
                f"File too large: {file_size / 1024 / 1024:.1f} MB. "
                f"Maximum: {self.max_file_size / 1024 / 1024:.1f} MB",
                file_size=file_size,
                max_size=self.max_file_size
            )

    def _decode_file(self, file_path: Path) -> AudioSamples:
        """Decode a file with librosa, resampling and downmixing."""
        self._validate_file(file_path)

        try:
            audio_data, sample_rate = librosa.load(
                str(file_path),
                sr=self.sample_rate,
                mono=True,
                dtype=np.float32
            )
        except Exception as e:
            raise AudioLoadError(
                f"Failed to decode audio from {file_path}: {e}", audio_ref=str(file_path)
            ) from e

        return AudioSamples(samples=audio_data, sample_rate=int(sample_rate), source=str(file_path))

    def _decode_bytes(self, payload: bytes, source: str) -> AudioSamples:
        """Decode an in-memory encoded buffer with soundfile."""
        if len(payload) > self.max_file_size:
            raise FileTooLargeError(
                f"Audio payload too large: {len(payload)} bytes",
                file_size=len(payload),
                max_size=self.max_file_size
            )

        try:
            audio_data, sample_rate = sf.read(io.BytesIO(payload), dtype='float32', always_2d=True)
        except Exception as e:
            raise AudioLoadError(f"Failed to decode audio from {source}: {e}", audio_ref=source) from e

        # soundfile returns (frames, channels)
        mono = audio_data.mean(axis=1)
        if sample_rate != self.sample_rate and mono.size > 0:
            mono = librosa.resample(mono, orig_sr=sample_rate, target_sr=self.sample_rate)

        return AudioSamples(samples=mono, sample_rate=self.sample_rate, source=source)

    def _fetch(self, url: str) -> bytes:
        """Download a URL reference, enforcing the size limit."""
        logger.debug(f"Fetching audio: {url}")
        try:
            with urllib.request.urlopen(url, timeout=self.fetch_timeout) as response:
                payload = response.read(self.max_file_size + 1)
        except (urllib.error.URLError, OSError, ValueError) as e:
            raise AudioLoadError(f"Failed to fetch audio from {url}: {e}", audio_ref=url) from e

        if len(payload) > self.max_file_size:
            raise FileTooLargeError(
                f"Download exceeds {self.max_file_size} bytes: {url}",
                max_size=self.max_file_size
            )
        return payload


def create_audio_loader(config: Optional[Dict[str, Any]] = None) -> AudioLoader:
    """
    Factory function to create AudioLoader with configuration.

    Args:
        config: Optional "audio" configuration section

    Returns:
        AudioLoader: Configured loader instance
    """
    if config is None:
        config = {}

    formats = config.get('supported_formats')
    return AudioLoader(
        sample_rate=config.get('sample_rate', DEFAULT_SAMPLE_RATE),
        max_file_size=config.get('max_file_size', MAX_FILE_SIZE),
        fetch_timeout=config.get('fetch_timeout', FETCH_TIMEOUT),
        supported_formats=set(formats) if formats else None,
    )
