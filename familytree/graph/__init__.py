"""Graph package - relationship graph assembly and reconciliation."""

from familytree.graph.assembler import GraphAssembler, assemble
from familytree.graph.edge_store import EdgeStore, SqliteEdgeStore
from familytree.graph.family_tree import FamilyTree
from familytree.graph.operations import EditState, ReconcilePlan, ReconcileResult
from familytree.graph.person_store import PersonStore
from familytree.graph.reconciler import RelationshipReconciler, reconcile
from familytree.graph.session import EditSession

__all__ = [
    "GraphAssembler",
    "assemble",
    "EdgeStore",
    "SqliteEdgeStore",
    "FamilyTree",
    "EditState",
    "ReconcilePlan",
    "ReconcileResult",
    "PersonStore",
    "RelationshipReconciler",
    "reconcile",
    "EditSession",
]
