"""
Error taxonomy for the diagram workspace.

Every error raised by the core and the repositories derives from
DiagramError, so callers can catch the whole family in one place.
"""

from typing import Optional


class DiagramError(Exception):
    """Base class for workspace errors."""


class ValidationError(DiagramError):
    """
    An operation was rejected because it would break a rule.

    `reason` is a short machine-readable code:
    - "empty-name": a required name is blank
    - "cycle": the edge would close a directed cycle
    - "unknown-node": an edge endpoint does not exist
    - "invalid-node": reliability or k is out of range
    """

    def __init__(self, message: str, reason: str = "invalid", node_id: Optional[str] = None):
        super().__init__(message)
        self.reason = reason
        self.node_id = node_id


class NotFoundError(DiagramError):
    """A project, diagram, node or edge id does not exist."""

    def __init__(self, kind: str, item_id: str):
        super().__init__(f"{kind.capitalize()} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id


class ImportFormatError(DiagramError):
    """An import document is malformed or structurally incomplete."""


class PersistenceError(DiagramError):
    """The backing store rejected a write (quota, permissions, I/O)."""
