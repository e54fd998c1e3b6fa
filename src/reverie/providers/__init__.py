"""Generation collaborator boundary: protocol, adapters and response unwrapping."""

from reverie.providers.base import (
    GenerationProvider,
    ProviderConnectionError,
    ProviderError,
    ProviderModelError,
    ResponseFormatError,
)
from reverie.providers.factory import (
    create_chat_model,
    create_provider,
    get_default_model,
    parse_provider_string,
)
from reverie.providers.langchain_provider import LangChainProvider
from reverie.providers.logging_wrapper import LoggingProvider
from reverie.providers.response import (
    parse_json_object,
    strip_code_fence,
    unwrap_structured,
    unwrap_text,
)

__all__ = [
    "GenerationProvider",
    "LangChainProvider",
    "LoggingProvider",
    "ProviderConnectionError",
    "ProviderError",
    "ProviderModelError",
    "ResponseFormatError",
    "create_chat_model",
    "create_provider",
    "get_default_model",
    "parse_json_object",
    "parse_provider_string",
    "strip_code_fence",
    "unwrap_structured",
    "unwrap_text",
]
