"""
Reliability Diagram Core - Shared models, validation, editing and serialization.

This package holds the diagram graph model used by the repositories, the
HTTP backend and the CLI, ensuring a single source of truth for the
acyclicity rule and the export format.
"""

from .models import (
    # Enums
    NodeType,
    # Core models
    Position,
    Node,
    Edge,
    Diagram,
    Project,
    # Patch models
    ProjectPatch,
    NodePatch,
    DeletionNotice,
)

from .errors import (
    DiagramError,
    ValidationError,
    NotFoundError,
    ImportFormatError,
    PersistenceError,
)
from .validation import (
    would_create_cycle,
    check_edge,
    validate_diagram,
    validation_summary,
    ValidationIssue,
    IssueSeverity,
)
from .serializer import (
    DiagramFragment,
    export_diagram,
    dumps_export,
    export_filename,
    import_diagram,
)

__all__ = [
    # Enums
    "NodeType",
    # Models
    "Position",
    "Node",
    "Edge",
    "Diagram",
    "Project",
    # Patch models
    "ProjectPatch",
    "NodePatch",
    "DeletionNotice",
    # Errors
    "DiagramError",
    "ValidationError",
    "NotFoundError",
    "ImportFormatError",
    "PersistenceError",
    # Validation
    "would_create_cycle",
    "check_edge",
    "validate_diagram",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
    # Serialization
    "DiagramFragment",
    "export_diagram",
    "dumps_export",
    "export_filename",
    "import_diagram",
]
