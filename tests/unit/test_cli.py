"""Test CLI commands."""

from __future__ import annotations

import tomllib
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from reverie import __version__
from reverie.analysis.text import word_count
from reverie.cli import DEFAULT_JOURNEY, app
from reverie.providers import ProviderError

if TYPE_CHECKING:
    from pathlib import Path

    import pytest

runner = CliRunner()

JOURNEY_YAML = """\
stages:
  - arc_id: effortlessness
    weight: 40
  - arc_id: two-tempos
    weight: 60
    transition_goal: settle into ease
"""


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert f"v{__version__}" in result.output


def test_version_matches_pyproject(project_root: Path) -> None:
    with (project_root / "pyproject.toml").open("rb") as f:
        pyproject = tomllib.load(f)

    assert pyproject["project"]["version"] == __version__
    assert all(part.isdigit() for part in __version__.split("."))


def test_no_args_shows_help() -> None:
    result = runner.invoke(app, [])

    # no_args_is_help=True returns exit code 2 (not 0 like --help)
    assert result.exit_code == 2
    assert "Reverie" in result.output


def test_default_journey_weights_sum_to_100() -> None:
    assert sum(stage["weight"] for stage in DEFAULT_JOURNEY) == 100


# --- arcs ---


def test_arcs_lists_library_by_category() -> None:
    result = runner.invoke(app, ["arcs"])

    assert result.exit_code == 0
    assert "Foundation Arcs" in result.output
    assert "Dream Arcs" in result.output
    assert "effortlessness" in result.output


def test_arcs_with_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["arcs", "--arcs", str(tmp_path / "none.yaml")])

    assert result.exit_code == 1
    assert "Error:" in result.output


# --- plan ---


def test_plan_shows_budgets(tmp_path: Path) -> None:
    journey = tmp_path / "journey.yaml"
    journey.write_text(JOURNEY_YAML, encoding="utf-8")

    result = runner.invoke(app, ["plan", str(journey), "--words", "1000"])

    assert result.exit_code == 0
    assert "Journey Plan: 1000 words" in result.output
    assert "400" in result.output
    assert "600" in result.output
    assert "ARC JOURNEY MODE: 2 stages" in result.output


def test_plan_accepts_bare_stage_list(tmp_path: Path) -> None:
    journey = tmp_path / "journey.yaml"
    journey.write_text("- {arc_id: internal-sanctuary, weight: 100}\n", encoding="utf-8")

    result = runner.invoke(app, ["plan", str(journey), "--words", "500"])

    assert result.exit_code == 0
    assert "Internal Sanctuary" in result.output


def test_plan_reports_invalid_weights(tmp_path: Path) -> None:
    journey = tmp_path / "journey.yaml"
    journey.write_text("- {arc_id: effortlessness, weight: 30}\n", encoding="utf-8")

    result = runner.invoke(app, ["plan", str(journey)])

    assert result.exit_code == 0
    assert "PRECONDITION" in result.output


def test_plan_missing_journey(tmp_path: Path) -> None:
    result = runner.invoke(app, ["plan", str(tmp_path / "none.yaml")])

    assert result.exit_code == 1
    assert "Journey file not found" in result.output


def test_plan_invalid_journey(tmp_path: Path) -> None:
    journey = tmp_path / "journey.yaml"
    journey.write_text("stages:\n  - {weight: 50}\n", encoding="utf-8")

    result = runner.invoke(app, ["plan", str(journey)])

    assert result.exit_code == 1
    assert "Invalid journey" in result.output


def test_plan_rejects_non_positive_words(tmp_path: Path) -> None:
    journey = tmp_path / "journey.yaml"
    journey.write_text(JOURNEY_YAML, encoding="utf-8")

    result = runner.invoke(app, ["plan", str(journey), "--words", "0"])

    assert result.exit_code == 1


# --- check ---


def test_check_passing_script(tmp_path: Path, passing_script: str) -> None:
    script = tmp_path / "script.txt"
    script.write_text(passing_script, encoding="utf-8")

    result = runner.invoke(
        app, ["check", str(script), "--words", str(word_count(passing_script))]
    )

    assert result.exit_code == 0
    assert "Quality Report: 100%" in result.output
    assert "Trance depth" in result.output


def test_check_failing_script_exits_nonzero(tmp_path: Path) -> None:
    script = tmp_path / "script.txt"
    script.write_text("Rest now. Think about a calm place you once knew.", encoding="utf-8")

    result = runner.invoke(app, ["check", str(script), "--words", "500"])

    assert result.exit_code == 1
    assert "Quality Report" in result.output
    assert "CRITICAL" in result.output


def test_check_rejects_unknown_emergence(tmp_path: Path) -> None:
    script = tmp_path / "script.txt"
    script.write_text("Rest.", encoding="utf-8")

    result = runner.invoke(app, ["check", str(script), "--emergence", "dawn"])

    assert result.exit_code == 1
    assert "--emergence" in result.output


# --- generate ---


def test_generate_writes_script(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, passing_script: str
) -> None:
    monkeypatch.chdir(tmp_path)
    provider = AsyncMock()
    provider.model_name = "mock-model"
    provider.generate.side_effect = ["outline", "draft", passing_script]
    output = tmp_path / "script.txt"

    with patch("reverie.providers.create_provider", return_value=provider) as create:
        result = runner.invoke(
            app,
            [
                "generate",
                "--issue",
                "work stress",
                "--outcome",
                "calm focus",
                "--words",
                str(word_count(passing_script)),
                "--provider",
                "openai/gpt-5-mini",
                "--output",
                str(output),
            ],
        )

    assert result.exit_code == 0, result.output
    create.assert_called_once_with("openai/gpt-5-mini")
    assert output.read_text(encoding="utf-8") == passing_script
    assert "3 generation calls" in result.output
    assert not (tmp_path / "logs").exists()


def test_generate_uses_project_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, passing_script: str
) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "reverie.yaml").write_text(
        f"provider: anthropic\ntarget_word_count: {word_count(passing_script)}\nsingle_stage: true\n",
        encoding="utf-8",
    )
    provider = AsyncMock()
    provider.model_name = "mock-model"
    provider.generate.return_value = passing_script

    with patch("reverie.providers.create_provider", return_value=provider) as create:
        result = runner.invoke(app, ["generate", "--issue", "stress", "--outcome", "calm"])

    assert result.exit_code == 0, result.output
    create.assert_called_once_with("anthropic")
    provider.generate.assert_awaited_once()


def test_generate_with_log_writes_call_log(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, passing_script: str
) -> None:
    monkeypatch.chdir(tmp_path)
    provider = AsyncMock()
    provider.model_name = "mock-model"
    provider.generate.return_value = passing_script

    with patch("reverie.providers.create_provider", return_value=provider):
        result = runner.invoke(
            app,
            [
                "--log",
                "generate",
                "--issue",
                "stress",
                "--outcome",
                "calm",
                "--single-stage",
                "--words",
                str(word_count(passing_script)),
            ],
        )

    assert result.exit_code == 0, result.output
    assert (tmp_path / "logs" / "llm_calls.jsonl").exists()


def test_generate_provider_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    with patch(
        "reverie.providers.create_provider",
        side_effect=ProviderError("ollama", "OLLAMA_HOST not configured"),
    ):
        result = runner.invoke(app, ["generate", "--issue", "stress", "--outcome", "calm"])

    assert result.exit_code == 1
    assert "OLLAMA_HOST" in result.output


def test_generate_invalid_level(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(
        app, ["generate", "--issue", "stress", "--outcome", "calm", "--level", "expert"]
    )

    assert result.exit_code == 1
    assert "Invalid client context" in result.output
