"""
Coarse audio feature inference through an LLM.

Produces a best-effort AudioFeatures estimate for an audio reference.
Failures are raised as InferenceError; there is no silent fallback.
"""

import json
import logging
import math
from typing import Any, Dict, Mapping, Protocol

from playlist_engine.analyzers.llm.client import LLMClient
from playlist_engine.core.models import NOTE_NAMES, SCORE_FIELDS, AudioFeatures
from playlist_engine.utils.errors import InferenceError

SYSTEM_PROMPT = (
    "You are an expert music analyst AI. Analyze audio features and return "
    "them in a consistent JSON format."
)

USER_PROMPT_TEMPLATE = """Analyze the audio features of this song: {audio_ref}
Please provide the following features in JSON format:
{{
  "bpm": number (tempo in beats per minute),
  "key": string (musical key, e.g., "C", "F#"),
  "mode": number (0 for minor, 1 for major),
  "danceability": number (0-1 scale),
  "energy": number (0-1 scale),
  "acousticness": number (0-1 scale),
  "instrumentalness": number (0-1 scale),
  "valence": number (0-1 scale)
}}
Respond with the JSON object only."""

# Flat spellings the model may return
ENHARMONIC_KEYS: Dict[str, str] = {
    'DB': 'C#', 'EB': 'D#', 'GB': 'F#', 'AB': 'G#', 'BB': 'A#',
    'CB': 'B', 'FB': 'E', 'E#': 'F', 'B#': 'C',
}


class FeatureInference(Protocol):
    """Coarse feature inference collaborator."""

    def infer(self, audio_ref: str) -> AudioFeatures:
        """Return a best-effort estimate or raise InferenceError."""
        ...


class LLMFeatureInference:
    """Coarse feature inference backed by a chat-completion model."""

    def __init__(self, client: LLMClient):
        self.client = client
        self.logger = logging.getLogger("inference.llm")

    def infer(self, audio_ref: str) -> AudioFeatures:
        """
        Ask the model for the eight coarse features.

        Args:
            audio_ref: URL or path identifying the audio

        Returns:
            AudioFeatures: Coarse estimate with every source marked "coarse"

        Raises:
            InferenceError: If the call fails or the reply is unusable
        """
        self.logger.debug(f"Requesting coarse features for {audio_ref}")
        response = self.client.chat(
            SYSTEM_PROMPT, USER_PROMPT_TEMPLATE.format(audio_ref=audio_ref), json_mode=True
        )
        features = parse_features(response, provider=self.client.provider)
        self.logger.info(
            f"Coarse features from {self.client.model_id}: "
            f"{features.bpm:.0f} BPM, {features.key} mode {features.mode}"
        )
        return features


def parse_features(response: str, provider: str = "llm") -> AudioFeatures:
    """
    Parse and validate a model reply into AudioFeatures.

    Markdown code fences are stripped. Scores are clamped to [0, 1];
    flat key spellings are normalized to sharps.

    Raises:
        InferenceError: If the reply is not JSON or a field is invalid
    """
    cleaned = response.strip()
    if cleaned.startswith('```'):
        lines = cleaned.split('\n')
        if lines[0].startswith('```'):
            lines = lines[1:]
        if lines and lines[-1].strip() == '```':
            lines = lines[:-1]
        cleaned = '\n'.join(lines)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise InferenceError(
            "Failed to parse feature response as JSON", provider=provider, original_error=e
        ) from e

    if not isinstance(data, Mapping):
        raise InferenceError("Feature response is not a JSON object", provider=provider)

    try:
        return AudioFeatures(
            bpm=_positive(data, 'bpm'),
            key=normalize_key(data['key']),
            mode=int(data['mode']),
            sources={'bpm': 'coarse', 'key': 'coarse', 'mode': 'coarse'},
            **{name: _clamped(data, name) for name in SCORE_FIELDS},
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InferenceError(
            f"Invalid feature response: {e}", provider=provider, original_error=e
        ) from e


def normalize_key(value: Any) -> str:
    """Normalize a key name such as "Bb", "f#" or "A minor" to NOTE_NAMES."""
    text = str(value).strip().split()[0] if str(value).strip() else ''
    candidate = text[:1].upper() + text[1:].replace('♯', '#').replace('♭', 'b')
    if candidate in NOTE_NAMES:
        return candidate
    enharmonic = ENHARMONIC_KEYS.get(candidate.upper())
    if enharmonic:
        return enharmonic
    raise ValueError(f"Unrecognized key: {value!r}")


def _finite(data: Mapping[str, Any], name: str) -> float:
    # json.loads accepts NaN and Infinity literals
    value = float(data[name])
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")
    return value


def _positive(data: Mapping[str, Any], name: str) -> float:
    value = _finite(data, name)
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _clamped(data: Mapping[str, Any], name: str) -> float:
    return min(1.0, max(0.0, _finite(data, name)))
