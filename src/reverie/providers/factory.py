"""Factory for creating generation providers.

Uses LangChain's init_chat_model abstraction for unified provider
instantiation. Provider-specific configuration (hosts, API keys) is resolved
from keyword arguments or the environment before the unified call.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from reverie.observability.logging import get_logger
from reverie.providers.base import ProviderError
from reverie.providers.langchain_provider import LangChainProvider

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

log = get_logger(__name__)

# Provider default models - None means model must be explicitly specified
PROVIDER_DEFAULTS: dict[str, str | None] = {
    "ollama": None,
    "openai": "gpt-5-mini",
    "anthropic": "claude-sonnet-4-20250514",
    "google": "gemini-2.5-flash",
}

_KNOWN_PROVIDERS = frozenset(PROVIDER_DEFAULTS)

_OLLAMA_DEFAULT_NUM_CTX = 32_768

_API_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_API_KEY",
}


def get_default_model(provider_name: str) -> str | None:
    """Get default model for a provider, or None if it must be explicit."""
    return PROVIDER_DEFAULTS.get(_normalize_provider(provider_name))


def parse_provider_string(provider_string: str) -> tuple[str, str]:
    """Split a ``provider/model`` string.

    A bare provider name resolves to that provider's default model.

    Raises:
        ProviderError: If the provider has no default and no model is given.
    """
    if "/" in provider_string:
        provider_name, model = provider_string.split("/", 1)
        return _normalize_provider(provider_name), model

    provider_name = _normalize_provider(provider_string)
    model = get_default_model(provider_name)
    if model is None:
        raise ProviderError(
            provider_name,
            f"Provider '{provider_name}' requires explicit model. "
            f"Use --provider {provider_name}/<model-name>",
        )
    return provider_name, model


def create_chat_model(
    provider_name: str,
    model: str,
    **kwargs: Any,
) -> BaseChatModel:
    """Create a LangChain BaseChatModel.

    Args:
        provider_name: Provider identifier (ollama, openai, anthropic, google).
        model: Model name/identifier.
        **kwargs: Additional provider-specific options (temperature, host, api_key).

    Returns:
        Configured BaseChatModel.

    Raises:
        ProviderError: If provider unavailable or misconfigured.
    """
    provider = _normalize_provider(provider_name)

    if provider not in _KNOWN_PROVIDERS:
        log.error("provider_unknown", provider=provider)
        raise ProviderError(provider, f"Unknown provider: {provider}")

    kwargs = _preprocess_provider_kwargs(provider, kwargs)
    provider_for_init = "google_genai" if provider == "google" else provider

    try:
        from langchain.chat_models import init_chat_model

        chat_model: BaseChatModel = init_chat_model(
            model=model, model_provider=provider_for_init, **kwargs
        )
    except ImportError as e:
        package = _get_package_for_provider(provider)
        log.error("provider_import_error", provider=provider, package=package)
        raise ProviderError(provider, f"{package} not installed. Run: pip install {package}") from e

    log.info("chat_model_created", provider=provider, model=model)
    return chat_model


def create_provider(provider_string: str, **kwargs: Any) -> LangChainProvider:
    """Create a generation provider from a ``provider/model`` string.

    Args:
        provider_string: e.g. ``"anthropic/claude-sonnet-4-20250514"`` or ``"openai"``.
        **kwargs: Passed to ``create_chat_model``.

    Returns:
        LangChainProvider wrapping the configured chat model.
    """
    provider_name, model = parse_provider_string(provider_string)
    chat_model = create_chat_model(provider_name, model, **kwargs)
    return LangChainProvider(chat_model, model_name=model, provider_name=provider_name)


def _preprocess_provider_kwargs(provider: str, kwargs: dict[str, Any]) -> dict[str, Any]:
    """Resolve hosts and API keys from kwargs or environment.

    Raises:
        ProviderError: If required configuration is missing.
    """
    kwargs = dict(kwargs)

    if provider == "ollama":
        host = kwargs.pop("host", None) or os.getenv("OLLAMA_HOST")
        if not host:
            log.error("provider_config_error", provider="ollama", missing="OLLAMA_HOST")
            raise ProviderError(
                "ollama",
                "OLLAMA_HOST not configured. Set OLLAMA_HOST environment variable.",
            )
        kwargs["base_url"] = host
        kwargs.setdefault("num_ctx", _OLLAMA_DEFAULT_NUM_CTX)
        return kwargs

    env_var = _API_KEY_ENV[provider]
    api_key = kwargs.get("api_key") or os.getenv(env_var)
    if not api_key:
        log.error("provider_config_error", provider=provider, missing=env_var)
        raise ProviderError(provider, f"API key required. Set {env_var} environment variable.")
    kwargs["api_key"] = api_key
    return kwargs


def _get_package_for_provider(provider: str) -> str:
    """Get the LangChain integration package name for a provider."""
    packages = {
        "ollama": "langchain-ollama",
        "openai": "langchain-openai",
        "anthropic": "langchain-anthropic",
        "google": "langchain-google-genai",
    }
    return packages.get(provider, f"langchain-{provider}")


def _normalize_provider(provider_name: str) -> str:
    """Normalize provider name, resolving aliases (e.g. gemini -> google)."""
    name = provider_name.lower()
    if name == "gemini":
        return "google"
    return name
