"""
Portable export/import of diagrams.

The export document is independent of how the diagram is stored:

    {
      "name": "...",
      "nodes": [{"id", "type", "label", "position": {"x", "y"}, "reliability"?, "k"?}],
      "edges": [{"id", "source", "target"}]
    }

Timestamps, project references and node metadata are not part of it.
"""

import json
import logging
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaError

from .errors import ImportFormatError
from .models import Diagram, Edge, Node, NodeType, Position

logger = logging.getLogger(__name__)


class NodeDocument(BaseModel):
    """A node as it appears in an export document."""
    model_config = ConfigDict(extra="ignore")

    id: str
    type: NodeType
    label: str = ""
    position: Position = Field(default_factory=Position)
    reliability: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    k: Optional[int] = Field(default=None, ge=1)

    def to_node(self) -> Node:
        return Node(
            id=self.id,
            type=self.type,
            label=self.label,
            position=self.position,
            reliability=self.reliability,
            k=self.k,
        )


class EdgeDocument(BaseModel):
    """An edge as it appears in an export document."""
    model_config = ConfigDict(extra="ignore")

    id: str
    source: str
    target: str


class DiagramFragment(BaseModel):
    """
    The parsed contents of an import document.

    Holds replacement nodes/edges; applying it is left to the caller so a
    failed parse never touches the diagram being edited.
    """
    name: Optional[str] = None
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    def apply_to(self, diagram: Diagram) -> Diagram:
        """Return a copy of `diagram` whose nodes and edges are replaced."""
        return diagram.model_copy(update={
            "nodes": [n.model_copy(deep=True) for n in self.nodes],
            "edges": [e.model_copy() for e in self.edges],
        })


def export_diagram(diagram: Diagram) -> dict[str, Any]:
    """Convert a diagram to its portable export document."""
    nodes = []
    for node in diagram.nodes:
        entry = {
            "id": node.id,
            "type": node.type.value,
            "label": node.label,
            "position": {"x": node.position.x, "y": node.position.y},
        }
        if node.reliability is not None:
            entry["reliability"] = node.reliability
        if node.k is not None:
            entry["k"] = node.k
        nodes.append(entry)

    return {
        "name": diagram.name,
        "nodes": nodes,
        "edges": [
            {"id": e.id, "source": e.source, "target": e.target}
            for e in diagram.edges
        ],
    }


def dumps_export(diagram: Diagram) -> str:
    """Export document as indented JSON text."""
    return json.dumps(export_diagram(diagram), indent=2)


def export_filename(diagram: Diagram) -> str:
    """File name for an exported diagram (whitespace runs become '-')."""
    stem = re.sub(r"\s+", "-", diagram.name)
    return f"{stem}.json"


def import_diagram(text: str) -> DiagramFragment:
    """
    Parse an export document.

    Raises:
        ImportFormatError: the text is not JSON, is not an object, lacks a
            `nodes` or `edges` array, or holds an entry of the wrong shape
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ImportFormatError(f"Import document is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ImportFormatError("Import document must be a JSON object")

    for key in ("nodes", "edges"):
        if key not in data:
            raise ImportFormatError(f"Import document is missing '{key}'")
        if not isinstance(data[key], list):
            raise ImportFormatError(f"'{key}' must be an array")

    name = data.get("name")
    if name is not None and not isinstance(name, str):
        raise ImportFormatError("'name' must be a string")

    try:
        nodes = [NodeDocument.model_validate(n).to_node() for n in data["nodes"]]
        edges = [Edge(**EdgeDocument.model_validate(e).model_dump()) for e in data["edges"]]
    except SchemaError as e:
        raise ImportFormatError(f"Import document has malformed entries: {e}") from e

    logger.debug("Parsed import document: %d nodes, %d edges", len(nodes), len(edges))
    return DiagramFragment(name=name, nodes=nodes, edges=edges)
