"""Coarse feature inference through an OpenAI-compatible chat model."""

from playlist_engine.analyzers.llm.client import LLMClient, create_llm_client
from playlist_engine.analyzers.llm.feature_inference import (
    FeatureInference,
    LLMFeatureInference,
    parse_features,
)

__all__ = [
    "LLMClient",
    "create_llm_client",
    "FeatureInference",
    "LLMFeatureInference",
    "parse_features",
]
