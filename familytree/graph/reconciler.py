"""
Relationship reconciliation - diff a person's old and new parent/child
selections and sync the edge store to the new one.

`reconcile` is pure: it only computes a ReconcilePlan.
`RelationshipReconciler` reads the stored edges, plans, and hands the plan to
the edge store.
"""

import logging
from typing import Iterable, Optional

from familytree.errors import FamilyTreeError, NotFoundError, ValidationError
from familytree.graph.edge_store import EdgeStore
from familytree.graph.operations import ReconcilePlan, ReconcileResult, RejectedEdge
from familytree.graph.person_store import PersonStore
from familytree.models import RelationshipEdge

logger = logging.getLogger(__name__)

Pair = tuple[str, str]


def _minus(ids: Iterable[str], other: Iterable[str]) -> list[str]:
    """Set difference that keeps the first sequence's order."""
    other = set(other)
    return [i for i in dict.fromkeys(ids) if i not in other]


def _check_insert(
    pair: Pair,
    stored: set[Pair],
    accepted: set[Pair],
    owned_ids: Optional[set[str]],
) -> Optional[FamilyTreeError]:
    """Return the reason an insertion is not allowed, or None."""
    parent_id, child_id = pair
    if parent_id == child_id:
        return ValidationError(f"{parent_id} cannot be their own parent", parent_id, child_id)
    if owned_ids is not None:
        for person_id in pair:
            if person_id not in owned_ids:
                return NotFoundError(f"Person {person_id} not found")
    if pair in stored or pair in accepted:
        return ValidationError(f"Relationship {parent_id} -> {child_id} already exists", parent_id, child_id)
    reverse = (child_id, parent_id)
    if reverse in stored or reverse in accepted:
        return ValidationError(
            f"{child_id} is already a parent of {parent_id}; remove that relationship first",
            parent_id,
            child_id,
        )
    return None


def reconcile(
    person_id: str,
    old_parents: Iterable[str],
    old_children: Iterable[str],
    new_parents: Iterable[str],
    new_children: Iterable[str],
    user_id: str,
    existing_edges: Iterable[RelationshipEdge] = (),
    owned_ids: Optional[Iterable[str]] = None,
) -> ReconcilePlan:
    """
    Compute the edge changes that move person_id from the old selection to the new one.

    Args:
        person_id: Person being edited
        old_parents, old_children: Selection as last loaded
        new_parents, new_children: Selection as submitted
        user_id: Owner of the person and every edge
        existing_edges: Owner's stored edges, used to detect duplicates and
            reflexive contradictions
        owned_ids: Owner's person ids; when given, insertions touching any
            other id are rejected as NotFoundError

    Returns:
        ReconcilePlan whose deletions come first when applied. Invalid
        insertions land in `plan.rejected` without affecting the others.
        An insertion that flips a pair deleted in the same plan is recorded
        in `plan.depends_on` and is only applied once that delete succeeds.
    """
    old_parents, old_children = list(old_parents), list(old_children)
    new_parents, new_children = list(new_parents), list(new_children)
    owned = set(owned_ids) if owned_ids is not None else None

    plan = ReconcilePlan(person_id=person_id, user_id=user_id)
    plan.to_delete.extend((p, person_id) for p in _minus(old_parents, new_parents))
    plan.to_delete.extend((person_id, c) for c in _minus(old_children, new_children))

    deleting = set(plan.to_delete)
    stored = {e.pair for e in existing_edges if e.user_id == user_id} - deleting
    accepted: set[Pair] = set()

    candidates = [(p, person_id) for p in _minus(new_parents, old_parents)]
    candidates += [(person_id, c) for c in _minus(new_children, old_children)]

    for pair in candidates:
        error = _check_insert(pair, stored, accepted, owned)
        if error is not None:
            logger.info("Rejected relationship %s -> %s: %s", pair[0], pair[1], error)
            plan.rejected.append(RejectedEdge(pair[0], pair[1], error))
            continue
        accepted.add(pair)
        reverse = (pair[1], pair[0])
        if reverse in deleting:
            plan.depends_on[pair] = reverse
        plan.to_insert.append(RelationshipEdge(parent_id=pair[0], child_id=pair[1], user_id=user_id))

    return plan


class RelationshipReconciler:
    """
    Sync a person's relationships with the edge store.

    Usage:
        reconciler = RelationshipReconciler(edge_store, person_store)
        result = reconciler.sync("carol", {"alice"}, set(), {"bob"}, set(), user_id="u1")
        if result.state is EditState.PARTIALLY_APPLIED:
            ...reload and show result.first_error
    """

    def __init__(self, edge_store: EdgeStore, person_store: Optional[PersonStore] = None):
        self.edge_store = edge_store
        self.person_store = person_store

    def plan(
        self,
        person_id: str,
        old_parents: Iterable[str],
        old_children: Iterable[str],
        new_parents: Iterable[str],
        new_children: Iterable[str],
        user_id: str,
    ) -> ReconcilePlan:
        """Plan against the owner's currently stored edges and persons."""
        existing = self.edge_store.list_by_owner(user_id)
        owned = None
        if self.person_store is not None:
            owned = {p.id for p in self.person_store.list_by_owner(user_id)}
        return reconcile(
            person_id, old_parents, old_children, new_parents, new_children, user_id,
            existing_edges=existing, owned_ids=owned,
        )

    def sync(
        self,
        person_id: str,
        old_parents: Iterable[str],
        old_children: Iterable[str],
        new_parents: Iterable[str],
        new_children: Iterable[str],
        user_id: str,
    ) -> ReconcileResult:
        """Plan and apply. Failed operations are reported, never retried or rolled back."""
        plan = self.plan(person_id, old_parents, old_children, new_parents, new_children, user_id)
        if plan.is_empty:
            return ReconcileResult(plan)

        outcome = self.edge_store.apply(plan)
        result = ReconcileResult(plan, succeeded=outcome.succeeded, failed=outcome.failed)
        logger.info(
            "Reconciled %s: %d applied, %d failed, %d rejected",
            person_id, len(result.succeeded), len(result.failed), len(result.rejected),
        )
        return result
