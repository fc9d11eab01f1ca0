"""
Edge store - persistence for parent -> child relationships.

This is a DATA LAYER component:
- EdgeStore defines the contract the reconciler talks to
- SqliteEdgeStore keeps edges in SQLite, one row per (owner, parent, child)
- NO reconciliation logic here; the store only carries out operations

Every call is scoped to the owning user_id.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional

from familytree.config import settings
from familytree.errors import FamilyTreeError, NotFoundError, StoreError, ValidationError
from familytree.graph.operations import (
    ApplyOutcome,
    EdgeOperation,
    FailedOperation,
    OperationKind,
    ReconcilePlan,
)
from familytree.models import RelationshipEdge

logger = logging.getLogger(__name__)


class EdgeStore(ABC):
    """Contract for relationship edge persistence."""

    @abstractmethod
    def list_by_owner(self, user_id: str) -> list[RelationshipEdge]:
        """All edges of one owner in insertion order."""

    @abstractmethod
    def insert(self, edge: RelationshipEdge) -> RelationshipEdge:
        """Persist an edge and return the stored record."""

    @abstractmethod
    def delete_by_pair(self, parent_id: str, child_id: str, user_id: str) -> None:
        """Remove one edge. Raises NotFoundError when it does not exist."""

    @abstractmethod
    def delete_all_touching(self, person_id: str, user_id: str) -> int:
        """Remove every edge with person_id at either end; returns the count."""

    def apply(self, plan: ReconcilePlan) -> ApplyOutcome:
        """
        Carry out a plan one operation at a time.

        A failed operation is recorded and the remaining ones are still
        attempted. Nothing is retried or rolled back. An insert whose
        `requires_delete` pair failed to delete is failed without calling
        the store, so both directions are never stored together.
        """
        outcome = ApplyOutcome()
        failed_deletes: set[tuple[str, str]] = set()
        for op in plan.operations():
            if op.requires_delete is not None and op.requires_delete in failed_deletes:
                error = ValidationError(
                    f"{op.child_id} is still a parent of {op.parent_id}; removing that relationship failed",
                    op.parent_id,
                    op.child_id,
                )
                logger.warning("Edge insert %s -> %s skipped: %s", op.parent_id, op.child_id, error)
                outcome.failed.append(FailedOperation(op, error))
                continue
            try:
                self._apply_one(op)
            except FamilyTreeError as e:
                logger.warning("Edge %s %s -> %s failed: %s", op.kind.value, op.parent_id, op.child_id, e)
                outcome.failed.append(FailedOperation(op, e))
                if op.kind == OperationKind.DELETE:
                    failed_deletes.add(op.pair)
            else:
                logger.debug("Edge %s %s -> %s applied", op.kind.value, op.parent_id, op.child_id)
                outcome.succeeded.append(op)
        return outcome

    def _apply_one(self, op: EdgeOperation) -> None:
        if op.kind == OperationKind.DELETE:
            self.delete_by_pair(op.parent_id, op.child_id, op.user_id)
        else:
            self.insert(op.edge)


class SqliteEdgeStore(EdgeStore):
    """Store relationship edges in SQLite."""

    def __init__(self, db_path: Optional[str] = None, atomic: Optional[bool] = None):
        self.db_path = db_path or settings.database.edges_db_path
        self.atomic = settings.graph.atomic_batches if atomic is None else atomic
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS relationships (
                    id TEXT PRIMARY KEY,
                    parent_id TEXT NOT NULL,
                    child_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    UNIQUE (user_id, parent_id, child_id),
                    CHECK (parent_id <> child_id)
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_rel_user ON relationships(user_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_rel_parent ON relationships(parent_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_rel_child ON relationships(child_id)")

    def list_by_owner(self, user_id: str) -> list[RelationshipEdge]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.row_factory = sqlite3.Row
                rows = conn.execute(
                    "SELECT * FROM relationships WHERE user_id = ? ORDER BY rowid", (user_id,)
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to list relationships: {e}") from e
        return [self._row_to_edge(row) for row in rows]

    def insert(self, edge: RelationshipEdge) -> RelationshipEdge:
        try:
            with sqlite3.connect(self.db_path) as conn:
                self._insert(conn, edge)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to insert {edge.parent_id} -> {edge.child_id}: {e}") from e
        return edge

    def delete_by_pair(self, parent_id: str, child_id: str, user_id: str) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                self._delete(conn, parent_id, child_id, user_id)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to delete {parent_id} -> {child_id}: {e}") from e

    def delete_all_touching(self, person_id: str, user_id: str) -> int:
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.execute(
                    "DELETE FROM relationships WHERE user_id = ? AND (parent_id = ? OR child_id = ?)",
                    (user_id, person_id, person_id),
                )
                return cursor.rowcount
        except sqlite3.Error as e:
            raise StoreError(f"Failed to delete relationships of {person_id}: {e}") from e

    def apply(self, plan: ReconcilePlan) -> ApplyOutcome:
        """Sequential by default; one all-or-nothing transaction when atomic."""
        if not self.atomic:
            return super().apply(plan)

        ops = plan.operations()
        conn = sqlite3.connect(self.db_path)
        try:
            with conn:
                for op in ops:
                    if op.kind == OperationKind.DELETE:
                        self._delete(conn, op.parent_id, op.child_id, op.user_id)
                    else:
                        self._insert(conn, op.edge)
        except (sqlite3.Error, NotFoundError) as e:
            error = e if isinstance(e, FamilyTreeError) else StoreError(f"Batch rolled back: {e}")
            logger.warning("Atomic batch for %s rolled back: %s", plan.person_id, e)
            return ApplyOutcome(failed=[FailedOperation(op, error) for op in ops])
        finally:
            conn.close()
        return ApplyOutcome(succeeded=ops)

    def _insert(self, conn: sqlite3.Connection, edge: RelationshipEdge) -> None:
        conn.execute("""
            INSERT INTO relationships (id, parent_id, child_id, user_id, created_at)
            VALUES (?, ?, ?, ?, ?)
        """, (
            edge.id,
            edge.parent_id,
            edge.child_id,
            edge.user_id,
            edge.created_at.isoformat(),
        ))

    def _delete(self, conn: sqlite3.Connection, parent_id: str, child_id: str, user_id: str) -> None:
        cursor = conn.execute(
            "DELETE FROM relationships WHERE user_id = ? AND parent_id = ? AND child_id = ?",
            (user_id, parent_id, child_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"No relationship {parent_id} -> {child_id}")

    def _row_to_edge(self, row: sqlite3.Row) -> RelationshipEdge:
        """Convert database row to RelationshipEdge model."""
        return RelationshipEdge(
            id=row["id"],
            parent_id=row["parent_id"],
            child_id=row["child_id"],
            user_id=row["user_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
