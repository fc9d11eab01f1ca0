"""Plans, operations and results exchanged between the reconciler and edge stores.

These are pure data structures - no store access here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from familytree.errors import FamilyTreeError, StoreError
from familytree.models import RelationshipEdge


class OperationKind(str, Enum):
    """Kinds of edge store mutation."""
    INSERT = "insert"
    DELETE = "delete"


class EditState(str, Enum):
    """Lifecycle of one relationship edit.

    PARTIALLY_APPLIED means at least one operation failed or was rejected,
    not that something was stored. With atomic batches a rolled-back edit is
    also PARTIALLY_APPLIED with nothing applied; check `succeeded`.
    """
    LOADED = "loaded"
    PENDING = "pending"
    RECONCILING = "reconciling"
    APPLIED = "applied"
    PARTIALLY_APPLIED = "partially_applied"


@dataclass
class EdgeOperation:
    """Single insert or delete against the edge store."""
    kind: OperationKind
    parent_id: str
    child_id: str
    user_id: str
    edge: Optional[RelationshipEdge] = None  # inserts only
    # Insert only valid once this pair has been deleted in the same batch
    requires_delete: Optional[tuple[str, str]] = None

    @property
    def pair(self) -> tuple[str, str]:
        return (self.parent_id, self.child_id)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "parent_id": self.parent_id,
            "child_id": self.child_id,
        }


@dataclass
class RejectedEdge:
    """Candidate insertion refused before reaching the store."""
    parent_id: str
    child_id: str
    error: FamilyTreeError

    def to_dict(self) -> dict:
        return {
            "parent_id": self.parent_id,
            "child_id": self.child_id,
            "error": type(self.error).__name__,
            "message": str(self.error),
        }


@dataclass
class ReconcilePlan:
    """Minimal set of edge changes moving one person to a new selection."""
    person_id: str
    user_id: str
    to_insert: list[RelationshipEdge] = field(default_factory=list)
    to_delete: list[tuple[str, str]] = field(default_factory=list)
    rejected: list[RejectedEdge] = field(default_factory=list)
    # insert pair -> opposite pair deleted in this batch (direction flips)
    depends_on: dict[tuple[str, str], tuple[str, str]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.to_insert and not self.to_delete

    def operations(self) -> list[EdgeOperation]:
        """Store operations in application order: all deletes, then inserts."""
        ops = [
            EdgeOperation(OperationKind.DELETE, parent_id, child_id, self.user_id)
            for parent_id, child_id in self.to_delete
        ]
        ops.extend(
            EdgeOperation(
                OperationKind.INSERT, edge.parent_id, edge.child_id, self.user_id,
                edge=edge, requires_delete=self.depends_on.get(edge.pair),
            )
            for edge in self.to_insert
        )
        return ops


@dataclass
class FailedOperation:
    """Operation the store could not carry out."""
    operation: EdgeOperation
    error: FamilyTreeError

    def to_dict(self) -> dict:
        data = self.operation.to_dict()
        data["error"] = type(self.error).__name__
        data["message"] = str(self.error)
        return data


@dataclass
class ApplyOutcome:
    """What a store did with a plan."""
    succeeded: list[EdgeOperation] = field(default_factory=list)
    failed: list[FailedOperation] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """Combined outcome of planning and applying one edit."""
    plan: ReconcilePlan
    succeeded: list[EdgeOperation] = field(default_factory=list)
    failed: list[FailedOperation] = field(default_factory=list)

    @property
    def rejected(self) -> list[RejectedEdge]:
        return self.plan.rejected

    @property
    def state(self) -> EditState:
        if self.failed or self.rejected:
            return EditState.PARTIALLY_APPLIED
        return EditState.APPLIED

    @property
    def first_error(self) -> Optional[FamilyTreeError]:
        """First store failure, else first other failure, else first rejection."""
        for failure in self.failed:
            if isinstance(failure.error, StoreError):
                return failure.error
        if self.failed:
            return self.failed[0].error
        if self.rejected:
            return self.rejected[0].error
        return None

    def raise_for_state(self) -> None:
        """Raise `first_error` unless every operation was applied."""
        error = self.first_error
        if error is not None:
            raise error

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "applied": [op.to_dict() for op in self.succeeded],
            "failed": [f.to_dict() for f in self.failed],
            "rejected": [r.to_dict() for r in self.rejected],
        }
