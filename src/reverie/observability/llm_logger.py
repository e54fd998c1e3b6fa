"""JSONL logger for generation calls.

Writes one structured entry per collaborator call to logs/llm_calls.jsonl.
Prompts and responses are stored in full, never truncated.

Each entry carries the run id bound by ``run_context`` so calls from
concurrent runs can be grouped. Only active when --log is passed to the CLI.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from pathlib import Path


@dataclass
class LLMLogEntry:
    """Entry for generation call logging."""

    timestamp: str
    phase: str
    model: str

    # Request
    system_prompt: str
    user_prompt: str
    max_output_tokens: int

    # Response
    content: str
    duration_seconds: float

    error: str | None = None
    run_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class LLMLogger:
    """Logger for generation calls in JSONL format.

    Attributes:
        log_path: Path to the JSONL log file.
        enabled: Whether logging is enabled.
    """

    def __init__(self, project_path: Path, enabled: bool = True) -> None:
        """Initialize the logger.

        Args:
            project_path: Working directory; entries go to ``logs/`` below it.
            enabled: Whether to actually write logs.
        """
        self.enabled = enabled
        self.log_path = project_path / "logs" / "llm_calls.jsonl"
        if enabled:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, entry: LLMLogEntry) -> None:
        """Append an entry to the JSONL log."""
        if not self.enabled:
            return

        with self.log_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(entry)) + "\n")

    @staticmethod
    def create_entry(
        phase: str,
        model: str,
        system_prompt: str,
        user_prompt: str,
        content: str,
        duration_seconds: float,
        max_output_tokens: int = 4096,
        error: str | None = None,
        **metadata: Any,
    ) -> LLMLogEntry:
        """Create a log entry stamped with the current UTC time.

        Args:
            phase: Pipeline phase (outline/draft/polish/single_stage/repair).
            model: Model identifier used.
            system_prompt: System prompt sent.
            user_prompt: User prompt sent.
            content: Response text ("" on failure).
            duration_seconds: Time taken for the call.
            max_output_tokens: Output token cap requested.
            error: Error message if the call failed.
            **metadata: Additional metadata.

        Returns:
            LLMLogEntry ready for logging.
        """
        return LLMLogEntry(
            timestamp=datetime.now(UTC).isoformat(),
            phase=phase,
            model=model,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            max_output_tokens=max_output_tokens,
            content=content,
            duration_seconds=duration_seconds,
            error=error,
            run_id=structlog.contextvars.get_contextvars().get("run_id"),
            metadata=dict(metadata),
        )
