"""Main FamilyTree facade combining stores, assembly and reconciliation."""

import logging
from typing import Iterable, Optional

from familytree.graph.assembler import GraphAssembler
from familytree.graph.edge_store import EdgeStore, SqliteEdgeStore
from familytree.graph.operations import ReconcileResult
from familytree.graph.person_store import PersonStore
from familytree.graph.reconciler import RelationshipReconciler
from familytree.graph.session import EditSession
from familytree.models import Lineage, Person, PersonView

logger = logging.getLogger(__name__)


class FamilyTree:
    """
    Main interface for family tree operations.

    Every method takes the owner's user_id explicitly.

    Usage:
        tree = FamilyTree()
        alice, _ = tree.save_person("u1", {"first_name": "Alice", "last_name": "Smith"})
        carol, result = tree.save_person("u1", {...}, parents=[alice.id])
        views = tree.dashboard("u1")
    """

    def __init__(self, persons: Optional[PersonStore] = None, edges: Optional[EdgeStore] = None):
        self.persons = persons or PersonStore()
        self.edges = edges or SqliteEdgeStore()
        self.assembler = GraphAssembler()
        self.reconciler = RelationshipReconciler(self.edges, self.persons)

    # ─────────────────────────────────────────
    # Views
    # ─────────────────────────────────────────

    def dashboard(self, user_id: str) -> list[PersonView]:
        """All persons of the owner, newest first, with parents and children."""
        persons = self.persons.list_by_owner(user_id)
        edges = self.edges.list_by_owner(user_id)
        return self.assembler.assemble(persons, edges)

    def person_view(self, person_id: str, user_id: str) -> PersonView:
        return self.assembler.index(self._views(person_id, user_id))[person_id]

    def relationship_candidates(self, person_id: Optional[str], user_id: str) -> list[Person]:
        """Persons selectable as parent or child, by first name, excluding the person itself."""
        return [
            p for p in self.persons.list_by_owner(user_id, order_by="first_name")
            if p.id != person_id
        ]

    def search(self, name: str, user_id: str) -> list[Person]:
        """Owner's persons whose first, last or full name contains `name`."""
        return self.persons.search(user_id, name)

    def siblings(self, person_id: str, user_id: str) -> list[Person]:
        """Persons sharing at least one parent with person_id, in parent then child order."""
        index = self.assembler.index(self._views(person_id, user_id))
        found: dict[str, Person] = {}
        for parent in index[person_id].parents:
            for child in index[parent.id].children:
                if child.id != person_id:
                    found.setdefault(child.id, child)
        return list(found.values())

    def lineage(
        self,
        person_id: str,
        user_id: str,
        ancestor_depth: int = 5,
        descendant_depth: int = 5,
    ) -> Lineage:
        """
        Ancestors and descendants of a person, walked generation by generation.

        Args:
            person_id: Person at the centre
            user_id: Owner
            ancestor_depth: Generations to walk up (0 for none)
            descendant_depth: Generations to walk down (0 for none)

        Returns:
            Lineage with each relative listed once, nearest generation first.
            Cycles are allowed in the graph; visited persons are not revisited.
        """
        if ancestor_depth < 0 or descendant_depth < 0:
            raise ValueError("Lineage depth must not be negative")
        index = self.assembler.index(self._views(person_id, user_id))
        person = index[person_id]
        return Lineage(
            person_id=person.id,
            person_name=person.full_name,
            ancestors=self._walk(index, person_id, "parents", ancestor_depth),
            descendants=self._walk(index, person_id, "children", descendant_depth),
            generations_up=ancestor_depth,
            generations_down=descendant_depth,
        )

    def _views(self, person_id: str, user_id: str) -> list[PersonView]:
        self.persons.get(person_id, user_id)
        return self.dashboard(user_id)

    @staticmethod
    def _walk(index: dict[str, PersonView], start: str, direction: str, depth: int) -> list[Person]:
        """Breadth-first walk along parents or children, at most depth generations."""
        visited = {start}
        found: list[Person] = []
        frontier = [start]
        for _ in range(depth):
            next_frontier = []
            for person_id in frontier:
                for relative in getattr(index[person_id], direction):
                    if relative.id in visited:
                        continue
                    visited.add(relative.id)
                    found.append(relative)
                    next_frontier.append(relative.id)
            if not next_frontier:
                break
            frontier = next_frontier
        return found

    # ─────────────────────────────────────────
    # Edits
    # ─────────────────────────────────────────

    def open_edit(self, person_id: str, user_id: str) -> EditSession:
        self.persons.get(person_id, user_id)
        return EditSession(self.reconciler, person_id, user_id).load()

    def save_person(
        self,
        user_id: str,
        fields: dict,
        parents: Iterable[str] = (),
        children: Iterable[str] = (),
        person_id: Optional[str] = None,
    ) -> tuple[Person, ReconcileResult]:
        """Create or update a person, then sync their relationships to the selection."""
        if person_id:
            person = self.persons.update(person_id, user_id, **fields)
            session = self.open_edit(person_id, user_id)
        else:
            person = self.persons.create(Person(user_id=user_id, **fields))
            logger.info("Created person %s", person.id)
            session = EditSession(self.reconciler, person.id, user_id).load()

        session.select(parents, children)
        return person, session.submit()

    def delete_person(self, person_id: str, user_id: str) -> int:
        """
        Delete a person and every relationship touching them; returns edges removed.

        The person goes first. If the edge cleanup then raises StoreError the
        person is already gone and the leftover edges dangle; views skip them
        and a later delete_all_touching removes them. Callers should reload.
        """
        self.persons.delete(person_id, user_id)
        removed = self.edges.delete_all_touching(person_id, user_id)
        logger.info("Deleted person %s and %d relationships", person_id, removed)
        return removed
