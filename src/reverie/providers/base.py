"""Base protocol and errors for generation providers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class GenerationProvider(Protocol):
    """Protocol for the text-generation collaborator.

    A provider answers one system/user prompt pair with one text response.
    There is no conversation state and no retry at this boundary; callers
    decide what a failure means.
    """

    @property
    def model_name(self) -> str:
        """Return the model identifier used for generation."""
        ...

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int = 4096,
    ) -> str:
        """Generate a text response.

        Args:
            system_prompt: Instructions framing the request.
            user_prompt: The request itself.
            max_output_tokens: Upper bound on generated tokens.

        Returns:
            Response text. May be plain prose or a JSON object embedded in
            text (optionally fenced); see ``reverie.providers.response``.

        Raises:
            ProviderError: If the request fails.
            ResponseFormatError: If the response carries no text.
        """
        ...


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"[{provider}] {message}")


class ProviderConnectionError(ProviderError):
    """Raised when connection to the provider fails."""

    pass


class ProviderModelError(ProviderError):
    """Raised when the requested model is unavailable."""

    pass


class ResponseFormatError(ProviderError):
    """Raised when a response is not text or its structured payload is unusable."""

    pass
