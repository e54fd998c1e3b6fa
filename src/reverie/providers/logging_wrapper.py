"""Logging wrapper for generation providers."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reverie.observability import LLMLogger
    from reverie.providers.base import GenerationProvider


class LoggingProvider:
    """Wrapper that records every generation call with the LLMLogger.

    The phase label can be switched between calls with ``set_phase`` so the
    log shows which pipeline step issued each request.
    """

    def __init__(
        self,
        provider: GenerationProvider,
        logger: LLMLogger,
        phase: str = "",
    ) -> None:
        self._provider = provider
        self._logger = logger
        self._phase = phase

    @property
    def model_name(self) -> str:
        """Return the model name of the wrapped provider."""
        return self._provider.model_name

    def set_phase(self, phase: str) -> None:
        """Label subsequent calls with a pipeline phase."""
        self._phase = phase

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int = 4096,
    ) -> str:
        """Generate a response and log the call, including failed ones."""
        start_time = time.perf_counter()

        try:
            content = await self._provider.generate(
                system_prompt, user_prompt, max_output_tokens=max_output_tokens
            )
        except Exception as e:
            entry = self._logger.create_entry(
                phase=self._phase,
                model=self.model_name,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                content="",
                duration_seconds=time.perf_counter() - start_time,
                max_output_tokens=max_output_tokens,
                error=str(e),
            )
            self._logger.log(entry)
            raise

        entry = self._logger.create_entry(
            phase=self._phase,
            model=self.model_name,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            content=content,
            duration_seconds=time.perf_counter() - start_time,
            max_output_tokens=max_output_tokens,
        )
        self._logger.log(entry)
        return content
