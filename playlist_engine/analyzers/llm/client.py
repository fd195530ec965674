"""
OpenAI-compatible chat client used by the coarse feature inference.

Groq (default), TogetherAI and OpenAI all speak the OpenAI chat
completions API; only the base URL, default model and key variables
differ. The SDK client is created on first use and shared by every
worker of a playlist fan-out.
"""

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from playlist_engine.utils.errors import InferenceError, ModelLoadError


@dataclass(frozen=True)
class ProviderSpec:
    """Connection details of one OpenAI-compatible provider."""

    default_model: str
    base_url: Optional[str]  # None: SDK default endpoint
    env_vars: Tuple[str, ...]  # searched in order


PROVIDERS: Dict[str, ProviderSpec] = {
    "groq": ProviderSpec(
        default_model="llama-3.3-70b-versatile",
        base_url="https://api.groq.com/openai/v1",
        env_vars=("GROQ_API_KEY",),
    ),
    "togetherai": ProviderSpec(
        default_model="meta-llama/Llama-3.3-70B-Instruct-Turbo",
        base_url="https://api.together.xyz/v1",
        env_vars=("TOGETHER_API_KEY", "TOGETHERAI_API_KEY"),
    ),
    "openai": ProviderSpec(
        default_model="gpt-4o-mini",
        base_url=None,
        env_vars=("OPENAI_API_KEY",),
    ),
}

DEFAULT_MODELS: Dict[str, str] = {name: spec.default_model for name, spec in PROVIDERS.items()}


class LLMClient:
    """
    Lazily-connected chat client for one provider/model.

    The API key is resolved at construction (explicit value, `${VAR}`
    template, then the provider's environment variables); a missing key
    only fails on the first chat() call.
    """

    def __init__(
        self,
        provider: str = "groq",
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 200,
        timeout: Optional[float] = 30.0,
    ):
        self.provider = provider.lower()
        spec = PROVIDERS.get(self.provider)
        if spec is None:
            raise ModelLoadError(
                f"Unknown inference provider: {provider}. Choose one of {', '.join(sorted(PROVIDERS))}",
                model_name=provider,
            )
        self.spec = spec
        self.model = model or spec.default_model
        self.default_temperature = temperature
        self.default_max_tokens = max_tokens
        self.timeout = timeout
        self._api_key = self._resolve_api_key(api_key)
        self._client = None
        self._lock = threading.Lock()
        self.logger = logging.getLogger("inference.client")

    @property
    def model_id(self) -> str:
        """Label "provider/model" used in logs."""
        return f"{self.provider}/{self.model}"

    @property
    def client(self):
        """The SDK client, created once under a lock."""
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = self._connect()
        return self._client

    def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> str:
        """
        Run one chat completion and return the reply text.

        Args:
            system_prompt: System role message
            user_prompt: User role message
            temperature: Override of the default temperature
            max_tokens: Override of the default completion budget
            json_mode: Ask the provider for a JSON object reply

        Raises:
            ModelLoadError: If no API key is configured or the SDK is missing
            InferenceError: If the request fails or the reply is empty
        """
        request = self._build_request(system_prompt, user_prompt, temperature, max_tokens, json_mode)
        client = self.client

        start_time = time.time()
        try:
            response = client.chat.completions.create(**request)
        except Exception as e:
            raise InferenceError(
                f"LLM API call failed: {e}",
                provider=self.provider,
                original_error=e,
            ) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise InferenceError(f"{self.model_id} returned an empty reply", provider=self.provider)

        self.logger.debug(f"{self.model_id} replied in {time.time() - start_time:.2f}s")
        return content

    def _build_request(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float],
        max_tokens: Optional[int],
        json_mode: bool,
    ) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.default_temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.default_max_tokens,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}
        return request

    def _resolve_api_key(self, api_key: Optional[str]) -> Optional[str]:
        if api_key and api_key.startswith("${") and api_key.endswith("}"):
            return os.environ.get(api_key[2:-1])
        if api_key:
            return api_key
        return next((os.environ[var] for var in self.spec.env_vars if os.environ.get(var)), None)

    def _connect(self):
        if not self._api_key:
            raise ModelLoadError(
                f"No API key for {self.provider}; set {' or '.join(self.spec.env_vars)}",
                model_name=self.provider,
            )

        try:
            from openai import OpenAI
        except ImportError as e:
            raise ModelLoadError(
                "openai package required. Install with: pip install openai",
                model_name=self.provider,
            ) from e

        kwargs: Dict[str, Any] = {"api_key": self._api_key, "timeout": self.timeout}
        if self.spec.base_url:
            kwargs["base_url"] = self.spec.base_url
        self.logger.info(f"Connecting to {self.model_id}")
        return OpenAI(**kwargs)


def create_llm_client(config: Mapping[str, Any]) -> LLMClient:
    """
    Build an LLMClient from the "inference" config section.

    Keys: provider (default groq), model, api_key, temperature,
    max_tokens, timeout.
    """
    return LLMClient(
        provider=config.get("provider") or "groq",
        model=config.get("model"),
        api_key=config.get("api_key"),
        temperature=config.get("temperature", 0.3),
        max_tokens=config.get("max_tokens", 200),
        timeout=config.get("timeout", 30.0),
    )
