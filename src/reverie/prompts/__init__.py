"""Prompt assembly: directives and generation templates."""

from reverie.prompts.directives import DirectiveBuilder
from reverie.prompts.loader import (
    PromptLoader,
    PromptTemplate,
    TemplateNotFoundError,
    TemplateParseError,
    safe_format,
)

__all__ = [
    "DirectiveBuilder",
    "PromptLoader",
    "PromptTemplate",
    "TemplateNotFoundError",
    "TemplateParseError",
    "safe_format",
]
