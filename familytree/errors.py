"""Error kinds raised by the family tree stores and reconciler."""


class FamilyTreeError(Exception):
    """Base class for all family tree errors."""


class ValidationError(FamilyTreeError):
    """An edge would break a relationship invariant.

    Raised (or recorded) before any store call is made.
    """

    def __init__(self, message: str, parent_id: str = "", child_id: str = ""):
        super().__init__(message)
        self.parent_id = parent_id
        self.child_id = child_id


class NotFoundError(FamilyTreeError):
    """A referenced person or edge does not exist in the owner's scope."""


class StoreError(FamilyTreeError):
    """The underlying store failed to carry out an operation."""
