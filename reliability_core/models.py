"""
Core data models for reliability diagrams.

These models define the canonical schema for the workspace:
- Projects, each owning a collection of diagrams
- Diagrams holding typed nodes and the directed edges between them
- Patch models for partial updates

Field Naming Convention:
- Python attributes are snake_case (`project_id`, `created_at`)
- Persisted JSON uses camelCase aliases (`projectId`, `createdAt`)
- Both spellings are accepted on input
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
import uuid


class NodeType(str, Enum):
    """Logical types for nodes (reliability block semantics)."""
    BASIC = "basic"
    SERIES = "series"
    PARALLEL = "parallel"
    K_OUT_OF_N = "k-out-of-n"


# Initial values given to freshly added nodes
DEFAULT_RELIABILITY = 0.95
DEFAULT_K = 2


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_project_id() -> str:
    """Generate a unique project ID."""
    return f"p{uuid.uuid4().hex}"


def generate_diagram_id() -> str:
    """Generate a unique diagram ID."""
    return f"d{uuid.uuid4().hex}"


def generate_node_id() -> str:
    """Generate a unique node ID."""
    return f"n{uuid.uuid4().hex}"


def generate_edge_id() -> str:
    """Generate a unique edge ID."""
    return f"e{uuid.uuid4().hex}"


class CamelModel(BaseModel):
    """Base model serialising to camelCase while accepting both spellings."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict with camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)


class Position(CamelModel):
    """Canvas coordinates of a node (presentation only)."""
    x: float = 0.0
    y: float = 0.0


class Node(CamelModel):
    """
    A block in a reliability diagram.

    `reliability` is meaningful for basic components and `k` for
    k-out-of-n groups; both are range-checked but otherwise passed through.
    """
    id: str = Field(default_factory=generate_node_id)
    type: NodeType = NodeType.BASIC
    label: str = ""
    position: Position = Field(default_factory=Position)
    reliability: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    k: Optional[int] = Field(default=None, ge=1)
    metadata: Optional[dict[str, Any]] = None


class Edge(CamelModel):
    """A directed connection from `source` to `target` (both node IDs)."""
    id: str = Field(default_factory=generate_edge_id)
    source: str
    target: str


class Diagram(CamelModel):
    """
    A directed graph of nodes belonging to one project.
    This is what gets stored under the project's diagram key.
    """
    id: str = Field(default_factory=generate_diagram_id)
    name: str
    project_id: str
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID (O(n))."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        """Get an edge by ID (O(n))."""
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}


class Project(CamelModel):
    """A named container for diagrams."""
    id: str = Field(default_factory=generate_project_id)
    name: str
    description: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# --- Patch Models ---

class ProjectPatch(CamelModel):
    """
    Partial update of a project.

    Shallow merge: every field left as None keeps its stored value.
    """
    name: Optional[str] = None
    description: Optional[str] = None


class NodePatch(CamelModel):
    """Partial update of a node; None fields are left unchanged."""
    label: Optional[str] = None
    position: Optional[Position] = None
    reliability: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    k: Optional[int] = Field(default=None, ge=1)
    metadata: Optional[dict[str, Any]] = None


class DeletionNotice(CamelModel):
    """
    Description of what a destructive operation would discard.

    Returned by the describe_* commands so the caller can ask for
    confirmation before running the actual delete.
    """
    target: str  # "project", "diagram" or "canvas"
    id: str
    name: str
    diagram_count: int = 0
    node_count: int = 0
    edge_count: int = 0
    message: str
