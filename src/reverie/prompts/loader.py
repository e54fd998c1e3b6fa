"""Template loading for generation prompts."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

TEMPLATES_PATH = Path(__file__).parent / "templates"
DEFAULT_MAX_OUTPUT_TOKENS = 4096

_PLACEHOLDER = re.compile(r"\{([a-z_][a-z0-9_]*)\}")


def safe_format(template: str, **values: Any) -> str:
    """Substitute ``{name}`` placeholders that have a value.

    Unlike ``str.format`` this leaves every other brace alone, so templates
    can show literal JSON such as ``{"polishedScript": "..."}``.
    """

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in values:
            return str(values[key])
        return match.group(0)

    return _PLACEHOLDER.sub(replace, template)


@dataclass
class PromptTemplate:
    """A loaded prompt template.

    Attributes:
        fragments: Named alternative snippets (e.g. per emergence type) that
            callers pick from before rendering.
    """

    name: str
    description: str
    system: str
    user: str
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    fragments: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any], name: str) -> PromptTemplate:
        """Create a template from dictionary data.

        Args:
            data: Dictionary containing template fields.
            name: Template name (usually from filename).

        Returns:
            PromptTemplate instance.
        """
        return cls(
            name=data.get("name", name),
            description=data.get("description", ""),
            system=data.get("system", ""),
            user=data.get("user", ""),
            max_output_tokens=int(data.get("max_output_tokens", DEFAULT_MAX_OUTPUT_TOKENS)),
            fragments=dict(data.get("fragments") or {}),
        )

    def render(self, **values: Any) -> tuple[str, str]:
        """Fill placeholders in both prompts.

        Returns:
            Tuple of (system_prompt, user_prompt), stripped.
        """
        return (
            safe_format(self.system, **values).strip(),
            safe_format(self.user, **values).strip(),
        )


class TemplateNotFoundError(Exception):
    """Raised when a template file cannot be found."""

    def __init__(self, template_name: str, path: Path) -> None:
        self.template_name = template_name
        self.path = path
        super().__init__(f"Template not found: {template_name} at {path}")


class TemplateParseError(Exception):
    """Raised when a template file cannot be parsed."""

    def __init__(self, template_name: str, reason: str) -> None:
        self.template_name = template_name
        self.reason = reason
        super().__init__(f"Failed to parse template '{template_name}': {reason}")


class PromptLoader:
    """Load prompt templates from disk.

    Attributes:
        templates_path: Directory holding ``<name>.yaml`` templates.
    """

    def __init__(self, templates_path: Path | None = None) -> None:
        self.templates_path = templates_path or TEMPLATES_PATH
        self._yaml = YAML(typ="safe")
        self._cache: dict[str, PromptTemplate] = {}

    def _get_template_path(self, template_name: str) -> Path:
        return self.templates_path / f"{template_name}.yaml"

    def load(self, template_name: str) -> PromptTemplate:
        """Load a template by name.

        Args:
            template_name: Name of the template (without .yaml extension).

        Returns:
            Loaded PromptTemplate.

        Raises:
            TemplateNotFoundError: If the template file doesn't exist.
            TemplateParseError: If the template cannot be parsed.
        """
        if template_name in self._cache:
            return self._cache[template_name]

        path = self._get_template_path(template_name)
        if not path.exists():
            raise TemplateNotFoundError(template_name, path)

        try:
            with path.open("r", encoding="utf-8") as f:
                data = self._yaml.load(f)
        except (YAMLError, OSError) as e:
            raise TemplateParseError(template_name, str(e)) from e

        if not isinstance(data, dict):
            raise TemplateParseError(template_name, "Empty file" if data is None else "Expected a mapping")

        try:
            template = PromptTemplate.from_dict(data, template_name)
        except (TypeError, ValueError) as e:
            raise TemplateParseError(template_name, str(e)) from e

        self._cache[template_name] = template
        return template

    def exists(self, template_name: str) -> bool:
        return self._get_template_path(template_name).exists()

    def list_templates(self) -> list[str]:
        """List available template names (without .yaml extension)."""
        if not self.templates_path.exists():
            return []

        return sorted(p.stem for p in self.templates_path.glob("*.yaml") if p.is_file())

    def clear_cache(self) -> None:
        self._cache.clear()
