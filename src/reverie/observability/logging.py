"""Logging setup for Reverie.

Console output goes through rich at a level picked by ``-v``. With ``--log``
every event is also appended to ``{project}/logs/debug.jsonl``. Pipeline runs
bind a run id and the current generation phase with ``run_context``; both
land in the console event dict and as top-level keys of each JSONL record, so
interleaved concurrent runs can be told apart in the file.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - Used at runtime for path operations
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from structlog.typing import Processor

DEBUG_LOG_NAME = "debug.jsonl"

# Keys lifted out of the event and written first in every JSONL record.
RUN_CONTEXT_KEYS = ("run_id", "phase")

_CONSOLE_LEVELS = {0: logging.WARNING, 1: logging.INFO}

# Provider SDKs and transports are chatty at DEBUG.
_QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "urllib3",
    "openai",
    "anthropic",
    "ollama",
    "langchain",
    "langchain_core",
    "asyncio",
)

_configured = False
_file_handler: RunLogHandler | None = None


class RunLogHandler(logging.FileHandler):
    """Append one JSON object per log record, run context first."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self.to_entry(record), default=str) + "\n"
            if self.stream is None:
                self.stream = self._open()
            self.stream.write(line)
            self.stream.flush()
        except Exception:
            self.handleError(record)

    @staticmethod
    def to_entry(record: logging.LogRecord) -> dict[str, Any]:
        event: dict[str, Any]
        if isinstance(record.msg, dict):
            event = dict(record.msg)
            message = event.pop("event", "")
        else:
            event = {}
            message = record.getMessage()
        event.pop("level", None)
        event.pop("timestamp", None)

        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        for key in RUN_CONTEXT_KEYS:
            if key in event:
                entry[key] = event.pop(key)
        entry["message"] = message
        entry.update(event)
        return entry


def _console_handler(verbosity: int) -> RichHandler:
    return RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbosity >= 2,
        show_time=verbosity >= 1,
        show_path=verbosity >= 2,
        markup=False,
        level=_CONSOLE_LEVELS.get(verbosity, logging.DEBUG),
    )


def configure_logging(
    verbosity: int = 0,
    log_to_file: bool = False,
    project_path: Path | None = None,
) -> None:
    """Configure console and (optionally) file logging.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2+=DEBUG on the console.
        log_to_file: Also write every event to ``project_path/logs/debug.jsonl``.
        project_path: Project directory. Required if ``log_to_file`` is set.

    Raises:
        ValueError: If log_to_file=True but project_path is not provided.
    """
    global _configured, _file_handler

    if log_to_file and project_path is None:
        raise ValueError("project_path is required when log_to_file=True")

    close_file_logging()
    handlers: list[logging.Handler] = [_console_handler(verbosity)]

    if log_to_file and project_path is not None:
        logs_dir = project_path / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)
        _file_handler = RunLogHandler(str(logs_dir / DEBUG_LOG_NAME), mode="a")
        _file_handler.setLevel(logging.DEBUG)
        handlers.append(_file_handler)

    root_level = logging.DEBUG if (verbosity > 0 or log_to_file) else logging.WARNING
    logging.basicConfig(level=root_level, format="%(message)s", handlers=handlers, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Return a structlog logger, configuring defaults on first use."""
    if not _configured:
        configure_logging()

    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger


@contextmanager
def run_context(**values: Any) -> Iterator[None]:
    """Bind run context (``run_id``, ``phase``) to every event in the block.

    Bindings live in context variables, so each asyncio task sees its own
    values and nested blocks restore the outer values on exit.
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield


def close_file_logging() -> None:
    """Close the JSONL file handler, if one is open."""
    global _file_handler
    if _file_handler is not None:
        _file_handler.close()
        _file_handler = None
