"""Pytest fixtures for graph tests."""

import pytest

from familytree.errors import StoreError
from familytree.graph.edge_store import SqliteEdgeStore
from familytree.graph.family_tree import FamilyTree
from familytree.graph.person_store import PersonStore
from familytree.graph.reconciler import RelationshipReconciler
from familytree.models import Person, RelationshipEdge

USER = "user-1"


class FlakyEdgeStore(SqliteEdgeStore):
    """SQLite edge store that fails on chosen pairs."""

    def __init__(self, *args, fail_pairs=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_pairs = set(fail_pairs)
        self.fail_cleanup = False
        self.calls = []

    def insert(self, edge):
        self.calls.append(("insert", edge.pair))
        if edge.pair in self.fail_pairs:
            raise StoreError(f"insert {edge.pair} refused")
        return super().insert(edge)

    def delete_by_pair(self, parent_id, child_id, user_id):
        self.calls.append(("delete", (parent_id, child_id)))
        if (parent_id, child_id) in self.fail_pairs:
            raise StoreError(f"delete {(parent_id, child_id)} refused")
        return super().delete_by_pair(parent_id, child_id, user_id)

    def delete_all_touching(self, person_id, user_id):
        self.calls.append(("cleanup", person_id))
        if self.fail_cleanup:
            raise StoreError(f"cleanup of {person_id} refused")
        return super().delete_all_touching(person_id, user_id)


@pytest.fixture
def alice():
    return Person(id="1", first_name="Alice", last_name="Smith", user_id=USER)


@pytest.fixture
def bob():
    return Person(id="2", first_name="Bob", last_name="Smith", user_id=USER)


@pytest.fixture
def carol():
    return Person(id="3", first_name="Carol", last_name="Smith", user_id=USER)


@pytest.fixture
def family(alice, bob, carol):
    """Alice, Bob and Carol; Alice is Carol's parent."""
    persons = [alice, bob, carol]
    edges = [RelationshipEdge(parent_id="1", child_id="3", user_id=USER)]
    return persons, edges


@pytest.fixture
def person_store(tmp_path):
    return PersonStore(db_path=str(tmp_path / "persons.db"))


@pytest.fixture
def edge_store(tmp_path):
    return SqliteEdgeStore(db_path=str(tmp_path / "relationships.db"), atomic=False)


@pytest.fixture
def stored_family(person_store, edge_store, family):
    """The sample family written to both stores."""
    persons, edges = family
    for person in persons:
        person_store.create(person)
    for edge in edges:
        edge_store.insert(edge)
    return persons, edges


@pytest.fixture
def reconciler(edge_store, person_store):
    return RelationshipReconciler(edge_store, person_store)


@pytest.fixture
def tree(person_store, edge_store):
    return FamilyTree(persons=person_store, edges=edge_store)


@pytest.fixture
def make_flaky_store(tmp_path):
    """Factory for an edge store that refuses the given (parent, child) pairs."""
    def _make(fail_pairs=(), atomic=False):
        return FlakyEdgeStore(db_path=str(tmp_path / "flaky.db"), atomic=atomic, fail_pairs=fail_pairs)
    return _make
