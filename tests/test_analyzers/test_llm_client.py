"""Tests for LLMClient."""

import os
from unittest.mock import MagicMock, patch

import pytest

from playlist_engine.analyzers.llm.client import DEFAULT_MODELS, PROVIDERS, LLMClient, create_llm_client
from playlist_engine.utils.errors import InferenceError, ModelLoadError


class TestLLMClientInit:
    def test_default_provider_is_groq(self):
        client = LLMClient(api_key="test-key")
        assert client.provider == "groq"
        assert client.model == DEFAULT_MODELS["groq"]

    def test_openai_provider(self):
        client = LLMClient(provider="openai", api_key="test-key")
        assert client.model == DEFAULT_MODELS["openai"]

    def test_custom_model(self):
        client = LLMClient(model="custom/model", api_key="test-key")
        assert client.model_id == "groq/custom/model"

    def test_unknown_provider(self):
        with pytest.raises(ModelLoadError):
            LLMClient(provider="nope", api_key="test-key")

    @pytest.mark.parametrize("provider", sorted(PROVIDERS))
    def test_every_provider_has_key_variables(self, provider):
        assert PROVIDERS[provider].env_vars
        assert LLMClient(provider=provider.upper(), api_key="k").provider == provider


class TestLLMClientAPIKeyResolution:
    def test_direct_api_key(self):
        assert LLMClient(api_key="direct-key")._api_key == "direct-key"

    def test_template_api_key(self):
        with patch.dict(os.environ, {"MY_KEY": "resolved-key"}):
            assert LLMClient(api_key="${MY_KEY}")._api_key == "resolved-key"

    def test_env_groq_key(self):
        with patch.dict(os.environ, {"GROQ_API_KEY": "env-key"}, clear=False):
            assert LLMClient()._api_key == "env-key"

    def test_env_togetherai_alias(self):
        env = {"TOGETHERAI_API_KEY": "alias-key"}
        with patch.dict(os.environ, env, clear=True):
            assert LLMClient(provider="togetherai")._api_key == "alias-key"

    def test_missing_key_fails_on_first_use(self):
        with patch.dict(os.environ, {}, clear=True):
            client = LLMClient(provider="openai")
            with pytest.raises(ModelLoadError):
                client.chat("system", "user")


class TestLLMClientChat:
    def _client_with_sdk(self, sdk):
        client = LLMClient(api_key="test-key")
        client._client = sdk
        return client

    def test_returns_content(self):
        sdk = MagicMock()
        sdk.chat.completions.create.return_value.choices = [
            MagicMock(message=MagicMock(content='{"bpm": 100}'))
        ]
        client = self._client_with_sdk(sdk)
        assert client.chat("system", "user") == '{"bpm": 100}'

        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == DEFAULT_MODELS["groq"]
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 200
        assert "response_format" not in kwargs

    def test_json_mode(self):
        sdk = MagicMock()
        sdk.chat.completions.create.return_value.choices = [
            MagicMock(message=MagicMock(content="{}"))
        ]
        self._client_with_sdk(sdk).chat("system", "user", temperature=0.0, json_mode=True)

        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.0

    def test_api_failure_wrapped(self):
        sdk = MagicMock()
        sdk.chat.completions.create.side_effect = RuntimeError("rate limited")
        client = self._client_with_sdk(sdk)
        with pytest.raises(InferenceError) as exc_info:
            client.chat("system", "user")
        assert exc_info.value.provider == "groq"

    def test_empty_content(self):
        sdk = MagicMock()
        sdk.chat.completions.create.return_value.choices = []
        with pytest.raises(InferenceError):
            self._client_with_sdk(sdk).chat("system", "user")


class TestCreateLLMClient:
    def test_factory_creates_client(self):
        config = {"provider": "openai", "api_key": "factory-key", "temperature": 0.5}
        client = create_llm_client(config)
        assert isinstance(client, LLMClient)
        assert client.provider == "openai"
        assert client.default_temperature == 0.5

    def test_factory_defaults_to_groq(self):
        client = create_llm_client({"provider": None, "api_key": "k"})
        assert client.provider == "groq"
        assert client.default_max_tokens == 200
