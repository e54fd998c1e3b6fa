"""Tests for the generation call JSONL logger."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from reverie.observability import LLMLogger, run_context

if TYPE_CHECKING:
    from pathlib import Path


def _entry(**overrides: object) -> object:
    values: dict[str, object] = {
        "phase": "outline",
        "model": "test-model",
        "system_prompt": "system",
        "user_prompt": "user",
        "content": "response",
        "duration_seconds": 1.5,
    }
    values.update(overrides)
    return LLMLogger.create_entry(**values)  # type: ignore[arg-type]


def test_llm_logger_creates_logs_dir(tmp_path: Path) -> None:
    logger = LLMLogger(tmp_path)

    assert logger.log_path == tmp_path / "logs" / "llm_calls.jsonl"
    assert logger.log_path.parent.exists()


def test_llm_logger_disabled_does_not_create_dir(tmp_path: Path) -> None:
    logger = LLMLogger(tmp_path, enabled=False)

    logger.log(_entry())  # type: ignore[arg-type]

    assert not (tmp_path / "logs").exists()
    assert logger.enabled is False


def test_create_entry_with_timestamp() -> None:
    entry = _entry(max_output_tokens=1500, attempt=1)

    assert "T" in entry.timestamp  # type: ignore[attr-defined]
    assert entry.max_output_tokens == 1500  # type: ignore[attr-defined]
    assert entry.metadata == {"attempt": 1}  # type: ignore[attr-defined]
    assert entry.error is None  # type: ignore[attr-defined]


def test_log_appends_jsonl_lines(tmp_path: Path) -> None:
    logger = LLMLogger(tmp_path)

    logger.log(_entry(phase="outline"))  # type: ignore[arg-type]
    logger.log(_entry(phase="draft", error="boom"))  # type: ignore[arg-type]

    lines = logger.log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert json.loads(lines[1])["error"] == "boom"


def test_create_entry_takes_run_id_from_context() -> None:
    with run_context(run_id="run-42"):
        entry = _entry()

    assert entry.run_id == "run-42"  # type: ignore[attr-defined]
    assert _entry().run_id is None  # type: ignore[attr-defined]


def test_logged_entry_keeps_run_id(tmp_path: Path) -> None:
    logger = LLMLogger(tmp_path)

    with run_context(run_id="run-7"):
        logger.log(_entry(content="Rest now"))  # type: ignore[arg-type]

    data = json.loads(logger.log_path.read_text(encoding="utf-8"))
    assert data["run_id"] == "run-7"
    assert data["content"] == "Rest now"
