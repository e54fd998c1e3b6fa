"""Client context and directive models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

EmergenceType = Literal["regular", "sleep"]
ClientLevel = Literal["beginner", "intermediate", "advanced"]
TranceDepth = Literal["light", "medium", "deep"]


class ClientContext(BaseModel):
    """What the caller knows about the listener and the session.

    Attributes:
        presenting_issue: What the listener wants help with.
        desired_outcome: What the listener wants to feel or do afterwards.
        client_notes: Free-form notes; scanned alongside the issue for keywords.
        client_level: Hypnosis experience; drives the safety-language ratios.
        symbolic_level: 0-100 emphasis on metaphor and imagery.
        trance_depth: Target depth; drives sentence-length guidance.
        emergence_type: ``regular`` counts up to alertness, ``sleep`` drifts off.
    """

    presenting_issue: str = ""
    desired_outcome: str = ""
    client_notes: str | None = None
    client_level: ClientLevel = "beginner"
    symbolic_level: int = Field(default=30, ge=0, le=100)
    trance_depth: TranceDepth = "medium"
    emergence_type: EmergenceType = "regular"


class Directives(BaseModel):
    """Structured instructions assembled for the generation collaborator."""

    system_prompt: str
    instructions: list[str] = Field(default_factory=list)
    quality_reminders: list[str] = Field(default_factory=list)
    principles_summary: str = ""
