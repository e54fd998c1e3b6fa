"""Narrative arc lookup."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from reverie.models.journey import ArcDefinition
from reverie.rules.loader import load_arc_library

CATEGORY_TITLES = {
    "foundation": "Foundation Arcs",
    "clinical": "Clinical Arcs",
    "dream": "Dream Arcs",
    "other": "Other Arcs",
}


class ArcLibrary:
    """Static arc library keyed by arc id.

    Lookup never raises: an unknown id resolves to a placeholder arc whose
    name is the id and whose metadata is empty.
    """

    def __init__(self, arcs: Iterable[ArcDefinition]) -> None:
        self._arcs: dict[str, ArcDefinition] = {}
        for arc in arcs:
            self._arcs.setdefault(arc.id, arc)

    @classmethod
    def load(cls, path: Path | None = None) -> ArcLibrary:
        """Build a library from an arc YAML file (packaged library by default)."""
        return cls(load_arc_library(path))

    def __contains__(self, arc_id: object) -> bool:
        return arc_id in self._arcs

    def __len__(self) -> int:
        return len(self._arcs)

    @property
    def arcs(self) -> list[ArcDefinition]:
        return list(self._arcs.values())

    def get(self, arc_id: str) -> ArcDefinition | None:
        return self._arcs.get(arc_id)

    def resolve(self, arc_id: str) -> ArcDefinition:
        """Return the arc for ``arc_id``, or a placeholder for unknown ids."""
        arc = self._arcs.get(arc_id)
        if arc is not None:
            return arc
        return ArcDefinition(id=arc_id, name=arc_id)

    def by_category(self) -> dict[str, list[ArcDefinition]]:
        """Group arcs by category, preserving library order."""
        grouped: dict[str, list[ArcDefinition]] = {}
        for arc in self._arcs.values():
            grouped.setdefault(arc.category or "other", []).append(arc)
        return grouped
