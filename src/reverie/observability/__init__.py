"""Observability module for Reverie.

Provides structured logging, run context binding and generation call
tracking.
"""

from reverie.observability.llm_logger import LLMLogEntry, LLMLogger
from reverie.observability.logging import (
    close_file_logging,
    configure_logging,
    get_logger,
    run_context,
)

__all__ = [
    "LLMLogEntry",
    "LLMLogger",
    "close_file_logging",
    "configure_logging",
    "get_logger",
    "run_context",
]
