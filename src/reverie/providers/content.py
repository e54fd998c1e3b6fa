"""Utilities for normalizing chat model message content across providers.

Some providers (notably Google Gemini) return ``AIMessage.content`` as a list of
content-block dicts rather than a plain string. This module extracts the text
regardless of the underlying format.
"""

from __future__ import annotations

from typing import Any

from reverie.providers.base import ResponseFormatError


def extract_text(content: str | list[Any], provider: str = "langchain") -> str:
    """Extract plain text from a chat message content field.

    Handles two formats:
    - ``str``: returned as-is.
    - ``list[dict]``: content blocks (e.g. Gemini). Text is extracted from
      each block that has ``type == "text"`` and a ``text`` key, then joined
      with newlines.

    Args:
        content: The ``content`` attribute of a chat model response.
        provider: Provider name used in the error message.

    Returns:
        The response text.

    Raises:
        ResponseFormatError: If the content holds no text at all (image-only
            blocks, tool calls, unexpected types).
    """
    if isinstance(content, str):
        return content

    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text")
                if isinstance(text, str):
                    parts.append(text)
        if parts:
            return "\n".join(parts)

    raise ResponseFormatError(
        provider, f"Expected text response, got {type(content).__name__} without text blocks"
    )
