"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from reverie.models.context import ClientContext
from reverie.models.journey import Journey
from reverie.planning.arcs import ArcLibrary
from reverie.rules import RuleSet, load_rule_set


@pytest.fixture(autouse=True)
def clear_provider_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's REVERIE_PROVIDER out of test runs."""
    monkeypatch.delenv("REVERIE_PROVIDER", raising=False)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def rules() -> RuleSet:
    """Packaged default rule set."""
    return load_rule_set()


@pytest.fixture
def arc_library() -> ArcLibrary:
    """Packaged arc library."""
    return ArcLibrary.load()


@pytest.fixture
def context() -> ClientContext:
    return ClientContext(
        presenting_issue="work stress",
        desired_outcome="feel calm in meetings",
    )


@pytest.fixture
def journey() -> Journey:
    return Journey.model_validate(
        {
            "stages": [
                {"arc_id": "effortlessness", "weight": 40},
                {"arc_id": "two-tempos", "weight": 60},
            ]
        }
    )


_OPENERS = (
    "Now", "Here", "Slowly", "Gently", "Softly", "Quietly", "Easily", "Calmly",
    "Warmly", "Steadily", "Deeply", "Simply", "Naturally", "Freely", "Kindly", "Evenly",
)  # fmt: skip


@pytest.fixture
def passing_script() -> str:
    """A short script that passes every quality check at its own length.

    Sixteen distinct openers each carrying "you can", then a regular emergence.
    """
    body = " ".join(f"{opener} you can rest a little more." for opener in _OPENERS)
    return body + " At the end you open your eyes feeling refreshed and alert."


@pytest.fixture
def mock_provider() -> AsyncMock:
    """Generation collaborator returning a fixed response."""
    provider = AsyncMock()
    provider.model_name = "mock-model"
    provider.generate.return_value = "Mock response"
    return provider
