"""Tests for provider factory."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from reverie.providers import LangChainProvider
from reverie.providers.base import ProviderError
from reverie.providers.factory import (
    PROVIDER_DEFAULTS,
    _normalize_provider,
    create_chat_model,
    create_provider,
    get_default_model,
    parse_provider_string,
)

# --- Tests for get_default_model ---


def test_get_default_model_openai() -> None:
    """OpenAI has a default model."""
    assert get_default_model("openai") == "gpt-5-mini"
    assert get_default_model("OpenAI") == "gpt-5-mini"


def test_get_default_model_ollama_returns_none() -> None:
    """Ollama requires explicit model - returns None."""
    assert get_default_model("ollama") is None


def test_get_default_model_unknown_provider() -> None:
    assert get_default_model("unknown") is None


def test_provider_defaults_dict_structure() -> None:
    assert set(PROVIDER_DEFAULTS) == {"ollama", "openai", "anthropic", "google"}


def test_normalize_provider_gemini_alias() -> None:
    assert _normalize_provider("Gemini") == "google"
    assert _normalize_provider("OpenAI") == "openai"


# --- Tests for parse_provider_string ---


def test_parse_provider_with_model() -> None:
    assert parse_provider_string("ollama/qwen3:8b") == ("ollama", "qwen3:8b")


def test_parse_provider_keeps_slashes_in_model() -> None:
    assert parse_provider_string("openai/org/model") == ("openai", "org/model")


def test_parse_provider_default_model() -> None:
    assert parse_provider_string("anthropic") == ("anthropic", "claude-sonnet-4-20250514")


def test_parse_provider_requires_model_for_ollama() -> None:
    with pytest.raises(ProviderError, match="requires explicit model"):
        parse_provider_string("ollama")


# --- Tests for create_chat_model ---


def test_create_chat_model_unknown_provider() -> None:
    with pytest.raises(ProviderError, match="Unknown provider"):
        create_chat_model("mystery", "model")


def test_create_chat_model_ollama_requires_host(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OLLAMA_HOST", raising=False)

    with pytest.raises(ProviderError, match="OLLAMA_HOST"):
        create_chat_model("ollama", "qwen3:8b")


def test_create_chat_model_openai_requires_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(ProviderError, match="OPENAI_API_KEY"):
        create_chat_model("openai", "gpt-5-mini")


def test_create_chat_model_ollama(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OLLAMA_HOST", "http://localhost:11434")
    mock_model = MagicMock()

    with patch("langchain.chat_models.init_chat_model", return_value=mock_model) as init:
        result = create_chat_model("ollama", "qwen3:8b")

    assert result is mock_model
    kwargs = init.call_args.kwargs
    assert kwargs["model_provider"] == "ollama"
    assert kwargs["base_url"] == "http://localhost:11434"
    assert kwargs["num_ctx"] == 32_768


def test_create_chat_model_google_maps_provider() -> None:
    with patch("langchain.chat_models.init_chat_model") as init:
        create_chat_model("gemini", "gemini-2.5-flash", api_key="key")

    assert init.call_args.kwargs["model_provider"] == "google_genai"
    assert init.call_args.kwargs["api_key"] == "key"


def test_create_chat_model_missing_integration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "key")

    with (
        patch("langchain.chat_models.init_chat_model", side_effect=ImportError("nope")),
        pytest.raises(ProviderError, match="langchain-anthropic not installed"),
    ):
        create_chat_model("anthropic", "claude-sonnet-4-20250514")


def test_create_provider_wraps_chat_model(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "key")

    with patch("langchain.chat_models.init_chat_model", return_value=MagicMock()):
        provider = create_provider("openai")

    assert isinstance(provider, LangChainProvider)
    assert provider.model_name == "gpt-5-mini"
    assert provider.provider_name == "openai"
