"""Family tree: persons, parent/child relationships and their views."""

__version__ = "0.1.0"
