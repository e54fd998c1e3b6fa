"""Pydantic models shared across the planner, analyzers and pipeline."""

from reverie.models.context import (
    ClientContext,
    ClientLevel,
    Directives,
    EmergenceType,
    TranceDepth,
)
from reverie.models.journey import (
    ArcDefinition,
    GenerationContract,
    Journey,
    MetaphorSelection,
    Stage,
    StageBudget,
)
from reverie.models.quality import (
    GrammarIssue,
    GrammarReport,
    PatternAnalysis,
    PatternMatch,
    QualityCheck,
    QualityReport,
    RepairResponse,
)

__all__ = [
    "ArcDefinition",
    "ClientContext",
    "ClientLevel",
    "Directives",
    "EmergenceType",
    "GenerationContract",
    "GrammarIssue",
    "GrammarReport",
    "Journey",
    "MetaphorSelection",
    "PatternAnalysis",
    "PatternMatch",
    "QualityCheck",
    "QualityReport",
    "RepairResponse",
    "Stage",
    "StageBudget",
    "TranceDepth",
]
