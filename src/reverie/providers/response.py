"""Response unwrapping for generation calls.

Every structured collaborator reply goes through the same three steps:
strip surrounding code-fence markup, parse the JSON object, validate it
against the expected pydantic shape. Any failure is a ``ResponseFormatError``.
"""

from __future__ import annotations

import json
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from reverie.observability.logging import get_logger
from reverie.providers.base import ResponseFormatError

log = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

_OPEN_FENCE = re.compile(r"^```[\w-]*[ \t]*\n?")
_CLOSE_FENCE = re.compile(r"\n?```\s*$")


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if any.

    Handles ```` ```json ```` and bare ```` ``` ```` openers. Text without a
    leading fence is returned stripped but otherwise unchanged.
    """
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    stripped = _OPEN_FENCE.sub("", stripped, count=1)
    stripped = _CLOSE_FENCE.sub("", stripped, count=1)
    return stripped.strip()


def parse_json_object(text: str, provider: str = "unknown") -> dict[str, Any]:
    """Parse a single JSON object embedded in response text.

    The object may be fenced or surrounded by prose; in the latter case the
    outermost ``{...}`` span is parsed.

    Raises:
        ResponseFormatError: If no JSON object can be parsed.
    """
    candidate = strip_code_fence(text)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        start = candidate.find("{")
        end = candidate.rfind("}")
        if start == -1 or end <= start:
            raise ResponseFormatError(provider, "Response contains no JSON object") from None
        try:
            data = json.loads(candidate[start : end + 1])
        except json.JSONDecodeError as e:
            raise ResponseFormatError(provider, f"Unparseable JSON payload: {e}") from e

    if not isinstance(data, dict):
        raise ResponseFormatError(
            provider, f"Expected JSON object, got {type(data).__name__}"
        )
    return data


def unwrap_structured(text: str, schema: type[T], provider: str = "unknown") -> T:
    """Parse and validate a structured response.

    Args:
        text: Raw response text.
        schema: Pydantic model describing the expected payload.
        provider: Provider name used in error messages.

    Returns:
        Validated schema instance.

    Raises:
        ResponseFormatError: If parsing or validation fails.
    """
    data = parse_json_object(text, provider)
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        log.debug("structured_response_invalid", schema=schema.__name__, errors=e.error_count())
        raise ResponseFormatError(
            provider, f"Response does not match {schema.__name__}: {e}"
        ) from e


def unwrap_text(text: str, provider: str = "unknown") -> str:
    """Return plain prose from a text response.

    Fences are stripped. An empty response is treated as malformed.

    Raises:
        ResponseFormatError: If the response is empty after stripping.
    """
    if not isinstance(text, str):
        raise ResponseFormatError(provider, f"Expected text response, got {type(text).__name__}")
    cleaned = strip_code_fence(text)
    if not cleaned:
        raise ResponseFormatError(provider, "Empty text response")
    return cleaned
