"""Project configuration loading."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any, get_args

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from reverie.models.context import EmergenceType

CONFIG_FILENAME = "reverie.yaml"
PROVIDER_ENV_VAR = "REVERIE_PROVIDER"

DEFAULT_PROVIDER = "ollama/qwen3:8b"
DEFAULT_TARGET_WORD_COUNT = 1500
DEFAULT_EMERGENCE: EmergenceType = "regular"


@dataclass
class MaxTokensConfig:
    """Per-phase output token limits.

    A None value defers to the limit declared by the phase's prompt template.
    """

    outline: int | None = None
    draft: int | None = None
    polish: int | None = None
    single_stage: int | None = None
    repair: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MaxTokensConfig:
        unknown = set(data) - {"outline", "draft", "polish", "single_stage", "repair"}
        if unknown:
            raise ValueError(f"Unknown max_output_tokens phases: {', '.join(sorted(unknown))}")
        return cls(**{phase: int(value) for phase, value in data.items() if value is not None})

    def for_phase(self, phase: str) -> int | None:
        value: int | None = getattr(self, phase, None)
        return value


@dataclass
class ProjectConfig:
    """Configuration for a script generation project.

    Attributes:
        provider: Provider string (e.g. "openai/gpt-5-mini").
        target_word_count: Default script length.
        emergence_type: Default closing mode.
        rules_path: Custom rule set file; packaged defaults when None.
        arcs_path: Custom arc library file; packaged library when None.
        max_output_tokens: Per-phase token limit overrides.
        allow_retry: Whether the quality guard may spend its repair call.
        single_stage: Use the one-call generation path.
    """

    provider: str = DEFAULT_PROVIDER
    target_word_count: int = DEFAULT_TARGET_WORD_COUNT
    emergence_type: EmergenceType = DEFAULT_EMERGENCE
    rules_path: Path | None = None
    arcs_path: Path | None = None
    max_output_tokens: MaxTokensConfig = field(default_factory=MaxTokensConfig)
    allow_retry: bool = True
    single_stage: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_path: Path | None = None) -> ProjectConfig:
        """Create config from dictionary.

        Args:
            data: Dictionary containing config fields.
            base_path: Directory that relative rule paths are resolved against.

        Returns:
            ProjectConfig instance.

        Raises:
            ValueError: If a field has an invalid value.
        """
        emergence = data.get("emergence_type", DEFAULT_EMERGENCE)
        if emergence not in get_args(EmergenceType):
            raise ValueError(f"emergence_type must be 'regular' or 'sleep', got {emergence!r}")

        target = int(data.get("target_word_count", DEFAULT_TARGET_WORD_COUNT))
        if target <= 0:
            raise ValueError(f"target_word_count must be positive, got {target}")

        def resolve(key: str) -> Path | None:
            raw = data.get(key)
            if not raw:
                return None
            path = Path(str(raw)).expanduser()
            if base_path is not None and not path.is_absolute():
                path = base_path / path
            return path

        return cls(
            provider=str(data.get("provider", DEFAULT_PROVIDER)),
            target_word_count=target,
            emergence_type=emergence,
            rules_path=resolve("rules_path"),
            arcs_path=resolve("arcs_path"),
            max_output_tokens=MaxTokensConfig.from_dict(dict(data.get("max_output_tokens") or {})),
            allow_retry=bool(data.get("allow_retry", True)),
            single_stage=bool(data.get("single_stage", False)),
        )

    def resolve_provider(self, override: str | None = None) -> str:
        """Effective provider string.

        Resolution order: explicit override (CLI flag), then the
        REVERIE_PROVIDER environment variable, then this config.
        """
        return override or os.getenv(PROVIDER_ENV_VAR) or self.provider


class ProjectConfigError(Exception):
    """Raised when project configuration cannot be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load project config at {path}: {reason}")


def load_project_config(path: Path) -> ProjectConfig:
    """Load project configuration.

    Args:
        path: A config file, or a directory containing reverie.yaml.

    Returns:
        ProjectConfig instance.

    Raises:
        ProjectConfigError: If config cannot be loaded.
    """
    config_path = path / CONFIG_FILENAME if path.is_dir() else path

    if not config_path.exists():
        raise ProjectConfigError(config_path, "File not found")

    yaml = YAML(typ="safe")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)
    except (YAMLError, OSError) as e:
        raise ProjectConfigError(config_path, str(e)) from e

    if data is None:
        raise ProjectConfigError(config_path, "Empty file")
    if not isinstance(data, dict):
        raise ProjectConfigError(config_path, "Expected a mapping")

    try:
        return ProjectConfig.from_dict(data, base_path=config_path.parent)
    except (TypeError, ValueError) as e:
        raise ProjectConfigError(config_path, str(e)) from e


def find_project_config(start: Path) -> ProjectConfig:
    """Load reverie.yaml from ``start`` if present, else the defaults."""
    candidate = start / CONFIG_FILENAME
    if candidate.exists():
        return load_project_config(candidate)
    return ProjectConfig()

