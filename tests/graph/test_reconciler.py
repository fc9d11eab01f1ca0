"""Test relationship diffing (no store involved)."""

import pytest

from familytree.errors import NotFoundError, ValidationError
from familytree.graph.operations import OperationKind
from familytree.graph.reconciler import reconcile
from familytree.models import RelationshipEdge

USER = "user-1"


def _edge(parent_id, child_id, user_id=USER):
    return RelationshipEdge(parent_id=parent_id, child_id=child_id, user_id=user_id)


def _inserted(plan):
    return [e.pair for e in plan.to_insert]


class TestDiff:
    """Set differences between old and new selections."""

    def test_unchanged_selection_is_noop(self):
        plan = reconcile("3", {"1"}, {"4"}, {"1"}, {"4"}, USER, existing_edges=[_edge("1", "3"), _edge("3", "4")])
        assert plan.is_empty
        assert plan.to_insert == []
        assert plan.to_delete == []
        assert plan.rejected == []

    def test_swap_parent(self):
        """Carol's parent changes from Alice to Bob."""
        plan = reconcile("3", {"1"}, set(), {"2"}, set(), USER, existing_edges=[_edge("1", "3")])
        assert plan.to_delete == [("1", "3")]
        assert _inserted(plan) == [("2", "3")]
        assert plan.rejected == []

    def test_children_edges_point_away_from_person(self):
        plan = reconcile("1", set(), {"3"}, set(), {"2"}, USER, existing_edges=[_edge("1", "3")])
        assert plan.to_delete == [("1", "3")]
        assert _inserted(plan) == [("1", "2")]

    def test_all_four_sets(self):
        plan = reconcile("x", {"a", "b"}, {"c", "d"}, {"b", "e"}, {"d", "f"}, USER)
        assert sorted(plan.to_delete) == [("a", "x"), ("x", "c")]
        assert sorted(_inserted(plan)) == [("e", "x"), ("x", "f")]

    def test_inserted_edges_carry_owner(self):
        plan = reconcile("3", set(), set(), {"1"}, set(), USER)
        edge = plan.to_insert[0]
        assert edge.user_id == USER
        assert edge.id

    def test_new_selection_order_is_kept(self):
        plan = reconcile("x", [], [], ["c", "a", "b"], [], USER)
        assert _inserted(plan) == [("c", "x"), ("a", "x"), ("b", "x")]

    def test_operations_delete_before_insert(self):
        plan = reconcile("3", {"1"}, {"5"}, {"2"}, {"6"}, USER)
        kinds = [op.kind for op in plan.operations()]
        assert kinds == [OperationKind.DELETE, OperationKind.DELETE, OperationKind.INSERT, OperationKind.INSERT]


class TestValidation:
    """Candidate insertions that break invariants."""

    def test_self_parent_rejected(self):
        plan = reconcile("3", set(), set(), {"3"}, set(), USER)
        assert plan.is_empty
        assert len(plan.rejected) == 1
        assert isinstance(plan.rejected[0].error, ValidationError)
        assert (plan.rejected[0].parent_id, plan.rejected[0].child_id) == ("3", "3")

    def test_self_child_rejected(self):
        plan = reconcile("3", set(), set(), set(), {"3"}, USER)
        assert plan.to_insert == []
        assert isinstance(plan.rejected[0].error, ValidationError)

    def test_rejection_does_not_abort_batch(self):
        plan = reconcile("3", set(), set(), {"3", "1"}, set(), USER)
        assert _inserted(plan) == [("1", "3")]
        assert len(plan.rejected) == 1

    def test_reflexive_contradiction_rejected(self):
        """Carol cannot become Alice's parent while Alice is Carol's parent."""
        plan = reconcile("1", set(), set(), {"3"}, set(), USER, existing_edges=[_edge("1", "3")])
        assert plan.to_insert == []
        assert isinstance(plan.rejected[0].error, ValidationError)
        assert "already a parent" in str(plan.rejected[0].error)

    def test_direction_flip_in_same_batch_allowed(self):
        """Removing (1,3) and adding (3,1) in one edit is fine."""
        plan = reconcile("1", set(), {"3"}, {"3"}, set(), USER, existing_edges=[_edge("1", "3")])
        assert plan.to_delete == [("1", "3")]
        assert _inserted(plan) == [("3", "1")]
        assert plan.rejected == []

    def test_direction_flip_depends_on_delete(self):
        plan = reconcile("1", set(), {"3"}, {"3"}, {"2"}, USER, existing_edges=[_edge("1", "3")])
        assert plan.depends_on == {("3", "1"): ("1", "3")}
        requires = {op.pair: op.requires_delete for op in plan.operations() if op.kind == OperationKind.INSERT}
        assert requires == {("3", "1"): ("1", "3"), ("1", "2"): None}

    def test_same_person_as_parent_and_child_rejected(self):
        """Only the first of (a,x) and (x,a) is accepted within a batch."""
        plan = reconcile("x", set(), set(), {"a"}, {"a"}, USER)
        assert _inserted(plan) == [("a", "x")]
        assert len(plan.rejected) == 1
        assert (plan.rejected[0].parent_id, plan.rejected[0].child_id) == ("x", "a")

    def test_duplicate_of_stored_edge_rejected(self):
        """A stale old selection must not insert an edge that already exists."""
        plan = reconcile("3", set(), set(), {"1"}, set(), USER, existing_edges=[_edge("1", "3")])
        assert plan.to_insert == []
        assert "already exists" in str(plan.rejected[0].error)

    def test_other_owners_edges_ignored(self):
        plan = reconcile("3", set(), set(), {"1"}, set(), USER, existing_edges=[_edge("1", "3", user_id="other")])
        assert _inserted(plan) == [("1", "3")]

    def test_unknown_person_rejected_when_owned_ids_given(self):
        plan = reconcile("3", set(), set(), {"1", "99"}, set(), USER, owned_ids={"1", "2", "3"})
        assert _inserted(plan) == [("1", "3")]
        assert isinstance(plan.rejected[0].error, NotFoundError)

    def test_longer_cycles_not_checked(self):
        """A -> B -> C plus C -> A is accepted."""
        existing = [_edge("a", "b"), _edge("b", "c")]
        plan = reconcile("a", set(), set(), {"c"}, set(), USER, existing_edges=existing)
        assert _inserted(plan) == [("c", "a")]


@pytest.mark.parametrize("old,new", [
    (set(), {"1"}),
    ({"1"}, set()),
    ({"1", "2"}, {"2"}),
])
def test_deletions_never_validated(old, new):
    plan = reconcile("3", old, set(), new, set(), USER)
    assert plan.rejected == []
