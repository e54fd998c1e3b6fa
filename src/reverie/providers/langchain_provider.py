"""LangChain adapter for the Reverie generation protocol."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from langchain_core.messages import HumanMessage, SystemMessage

from reverie.observability.logging import get_logger
from reverie.providers.base import (
    ProviderConnectionError,
    ProviderError,
    ProviderModelError,
    ResponseFormatError,
)
from reverie.providers.content import extract_text

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

log = get_logger(__name__)


@dataclass(frozen=True)
class TokenLimitCapabilities:
    """How a backend accepts the per-call output token limit.

    Attributes:
        param: Name of the limit on the chat model.
        runtime_binding: Whether ``bind()`` kwargs reach the request. When
            False the limit is a model field and is set on a copy of the model.
    """

    param: str = "max_tokens"
    runtime_binding: bool = True


TOKEN_LIMIT_CAPABILITIES: dict[str, TokenLimitCapabilities] = {
    # ChatOllama forwards bound kwargs to AsyncClient.chat() as-is; the limit
    # must go through the num_predict option.
    "ollama": TokenLimitCapabilities(param="num_predict", runtime_binding=False),
    "openai": TokenLimitCapabilities(),
    "anthropic": TokenLimitCapabilities(),
    "google": TokenLimitCapabilities(param="max_output_tokens", runtime_binding=False),
}

_DEFAULT_CAPABILITIES = TokenLimitCapabilities()

# SDK exception names for transport failures (openai and anthropic clients).
_CONNECTION_ERROR_NAMES = frozenset({"APIConnectionError", "APITimeoutError"})


class LangChainProvider:
    """Adapts a LangChain chat model to the ``GenerationProvider`` protocol.

    Attributes:
        model_name: The model name this provider was configured with.
        provider_name: Provider family (ollama, openai, ...), used in errors
            and to pick how the token limit is applied.
    """

    def __init__(
        self,
        model: BaseChatModel,
        model_name: str,
        provider_name: str = "langchain",
    ) -> None:
        self._model = model
        self._model_name = model_name
        self.provider_name = provider_name

    @property
    def model_name(self) -> str:
        """Return the configured model name."""
        return self._model_name

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int = 4096,
    ) -> str:
        """Send one system/user prompt pair and return the response text.

        Raises:
            ProviderConnectionError: If the backend cannot be reached.
            ProviderModelError: If the backend does not know the model.
            ProviderError: If the model call fails otherwise.
            ResponseFormatError: If the response carries no text.
        """
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        lc_model = self._with_token_limit(max_output_tokens)

        try:
            response = await lc_model.ainvoke(messages)
        except Exception as e:
            log.warning("generation_call_failed", provider=self.provider_name, error=str(e))
            raise self._classify_error(e) from e

        content = getattr(response, "content", None)
        if content is None:
            raise ResponseFormatError(
                self.provider_name, f"Expected message response, got {type(response).__name__}"
            )
        return extract_text(content, provider=self.provider_name)

    def _with_token_limit(self, max_output_tokens: int) -> Any:
        caps = TOKEN_LIMIT_CAPABILITIES.get(self.provider_name, _DEFAULT_CAPABILITIES)
        if caps.runtime_binding:
            return self._model.bind(**{caps.param: max_output_tokens})
        return self._model.model_copy(update={caps.param: max_output_tokens})

    def _classify_error(self, error: Exception) -> ProviderError:
        if isinstance(error, (ConnectionError, TimeoutError)) or (
            type(error).__name__ in _CONNECTION_ERROR_NAMES
        ):
            return ProviderConnectionError(
                self.provider_name, f"Could not reach {self.provider_name}: {error}"
            )
        if getattr(error, "status_code", None) == 404:
            hint = f" Run 'ollama pull {self._model_name}' first." if self.provider_name == "ollama" else ""
            return ProviderModelError(
                self.provider_name, f"Model '{self._model_name}' not found.{hint}"
            )
        return ProviderError(self.provider_name, f"Generation failed: {error}")
