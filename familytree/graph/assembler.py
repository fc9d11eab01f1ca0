"""Build per-person parent/child views from a flat edge list."""

import logging
from typing import Iterable

from familytree.models import Person, PersonView, RelationshipEdge

logger = logging.getLogger(__name__)


class GraphAssembler:
    """
    Turns one owner's persons and edges into PersonViews.

    Usage:
        views = GraphAssembler().assemble(persons, edges)
        views[0].parents, views[0].children

    Edges whose endpoints are missing from `persons` are skipped; the person
    may have been deleted between the two reads.
    """

    def assemble(self, persons: Iterable[Person], edges: Iterable[RelationshipEdge]) -> list[PersonView]:
        """Return one view per person, in input order."""
        persons = list(persons)
        by_id = {p.id: p for p in persons}
        parents: dict[str, list[Person]] = {p.id: [] for p in persons}
        children: dict[str, list[Person]] = {p.id: [] for p in persons}

        for edge in edges:
            parent = by_id.get(edge.parent_id)
            child = by_id.get(edge.child_id)
            if parent is None or child is None:
                logger.debug("Skipping dangling edge %s -> %s", edge.parent_id, edge.child_id)
                continue
            parents[child.id].append(parent)
            children[parent.id].append(child)

        return [
            PersonView(
                **p.model_dump(),
                parents=list(parents[p.id]),
                children=list(children[p.id]),
            )
            for p in persons
        ]

    def index(self, views: Iterable[PersonView]) -> dict[str, PersonView]:
        """Map person id -> view."""
        return {v.id: v for v in views}


def assemble(persons: Iterable[Person], edges: Iterable[RelationshipEdge]) -> list[PersonView]:
    """Module-level shortcut for `GraphAssembler().assemble`."""
    return GraphAssembler().assemble(persons, edges)
