"""Rule set and arc library loading."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from reverie.models.journey import ArcDefinition
from reverie.observability.logging import get_logger
from reverie.rules.schema import RuleSet

log = get_logger(__name__)

RULES_DIR = Path(__file__).parent
DEFAULT_RULES_PATH = RULES_DIR / "default.yaml"
DEFAULT_ARCS_PATH = RULES_DIR / "arcs.yaml"


class RuleSetError(Exception):
    """Raised when a rule file is missing, unreadable or invalid."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid rule file {path}: {reason}")


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise RuleSetError(path, "file not found")

    yaml = YAML(typ="safe")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)
    except YAMLError as e:
        raise RuleSetError(path, f"YAML parse error: {e}") from e

    if not isinstance(data, dict):
        raise RuleSetError(path, "expected a mapping at the top level")
    return data


def _load_rule_set(path: Path) -> RuleSet:
    data = _read_yaml(path)
    try:
        rules = RuleSet.model_validate(data)
    except ValidationError as e:
        raise RuleSetError(path, str(e)) from e

    log.debug("rule_set_loaded", path=str(path), version=rules.version)
    return rules


@lru_cache(maxsize=1)
def _default_rule_set() -> RuleSet:
    return _load_rule_set(DEFAULT_RULES_PATH)


def load_rule_set(path: Path | None = None) -> RuleSet:
    """Load a rule set.

    Args:
        path: Custom rule file. If None, the packaged defaults are used
            (parsed once and shared, since rule sets are immutable).

    Returns:
        Validated, frozen RuleSet.

    Raises:
        RuleSetError: If the file is missing, not YAML, or fails validation.
    """
    if path is None:
        return _default_rule_set()
    return _load_rule_set(path)


def load_arc_library(path: Path | None = None) -> list[ArcDefinition]:
    """Load arc definitions.

    Args:
        path: Custom arc file. If None, the packaged library is used.

    Returns:
        Arc definitions in file order.

    Raises:
        RuleSetError: If the file is missing, not YAML, or an arc is invalid.
    """
    path = path or DEFAULT_ARCS_PATH
    data = _read_yaml(path)

    raw_arcs = data.get("arcs")
    if not isinstance(raw_arcs, list):
        raise RuleSetError(path, "'arcs' must be a list")

    arcs: list[ArcDefinition] = []
    for index, raw in enumerate(raw_arcs):
        try:
            arcs.append(ArcDefinition.model_validate(raw))
        except ValidationError as e:
            raise RuleSetError(path, f"arc #{index}: {e}") from e

    log.debug("arc_library_loaded", path=str(path), arcs=len(arcs))
    return arcs
