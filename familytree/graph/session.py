"""Edit session: one user's pending change to one person's relationships."""

import logging
from typing import Iterable, Optional

from familytree.errors import FamilyTreeError
from familytree.graph.operations import EditState, ReconcileResult
from familytree.graph.reconciler import RelationshipReconciler

logger = logging.getLogger(__name__)


class EditSession:
    """
    Tracks the old and selected parent/child ids of a person being edited.

    LOADED -> (toggle/select) PENDING -> submit() -> RECONCILING
           -> APPLIED | PARTIALLY_APPLIED

    A finished session is not reused; reload the person and open a new one.
    """

    def __init__(self, reconciler: RelationshipReconciler, person_id: str, user_id: str):
        self.reconciler = reconciler
        self.person_id = person_id
        self.user_id = user_id
        self.old_parents: list[str] = []
        self.old_children: list[str] = []
        self.parents: list[str] = []
        self.children: list[str] = []
        self.state = EditState.LOADED
        self.result: Optional[ReconcileResult] = None

    def load(self) -> "EditSession":
        """Capture the stored parents and children of the person."""
        edges = self.reconciler.edge_store.list_by_owner(self.user_id)
        self.old_parents = [e.parent_id for e in edges if e.child_id == self.person_id]
        self.old_children = [e.child_id for e in edges if e.parent_id == self.person_id]
        self.parents = list(self.old_parents)
        self.children = list(self.old_children)
        self.state = EditState.LOADED
        return self

    def _ensure_editable(self) -> None:
        if self.state not in (EditState.LOADED, EditState.PENDING):
            raise RuntimeError(f"Session for {self.person_id} is {self.state.value}")

    @staticmethod
    def _toggle(selection: list[str], person_id: str) -> None:
        if person_id in selection:
            selection.remove(person_id)
        else:
            selection.append(person_id)

    def toggle_parent(self, parent_id: str) -> None:
        self._ensure_editable()
        self._toggle(self.parents, parent_id)
        self.state = EditState.PENDING

    def toggle_child(self, child_id: str) -> None:
        self._ensure_editable()
        self._toggle(self.children, child_id)
        self.state = EditState.PENDING

    def select(self, parents: Iterable[str], children: Iterable[str]) -> None:
        """Replace the whole selection."""
        self._ensure_editable()
        self.parents = list(dict.fromkeys(parents))
        self.children = list(dict.fromkeys(children))
        self.state = EditState.PENDING

    def submit(self) -> ReconcileResult:
        """Reconcile the selection against what was loaded."""
        self._ensure_editable()
        self.state = EditState.RECONCILING
        logger.debug("Submitting relationship edit for %s", self.person_id)
        try:
            self.result = self.reconciler.sync(
                self.person_id,
                self.old_parents, self.old_children,
                self.parents, self.children,
                self.user_id,
            )
        except FamilyTreeError:
            # Planning failed before anything was applied
            self.state = EditState.PENDING
            raise
        self.state = self.result.state
        return self.result
