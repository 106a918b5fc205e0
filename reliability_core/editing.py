"""
Graph edits on diagram values.

Every function here is pure: it returns a new Diagram and leaves its
argument untouched, so a rejected edit never leaves a half-updated diagram
behind. Persisting the result is the caller's job.
"""

import logging
from typing import Optional, Union

from pydantic import ValidationError as SchemaError

from .errors import NotFoundError, ValidationError
from .models import (
    DEFAULT_K,
    DEFAULT_RELIABILITY,
    Diagram,
    Edge,
    Node,
    NodePatch,
    NodeType,
    Position,
)
from .validation import check_edge

logger = logging.getLogger(__name__)


def default_label(node_type: NodeType, count: int) -> str:
    """Label for the `count`-th node of a diagram, e.g. "Basic 3"."""
    value = node_type.value
    return f"{value[:1].upper()}{value[1:]} {count}"


def add_node(
    diagram: Diagram,
    node_type: Union[NodeType, str],
    position: Optional[Position] = None,
    label: Optional[str] = None,
) -> Diagram:
    """
    Append a node with type-specific defaults.

    Basic components start at reliability 0.95 and k-out-of-n groups at
    k = 2; other fields stay unset.
    """
    try:
        node_type = NodeType(node_type)
    except ValueError as e:
        raise ValidationError(f"Unknown node type: {node_type}", reason="invalid-node") from e

    node = Node(
        type=node_type,
        label=label if label is not None else default_label(node_type, len(diagram.nodes) + 1),
        position=position or Position(),
        reliability=DEFAULT_RELIABILITY if node_type == NodeType.BASIC else None,
        k=DEFAULT_K if node_type == NodeType.K_OUT_OF_N else None,
    )
    return diagram.model_copy(update={"nodes": [*diagram.nodes, node]})


def _coerce_patch(patch: Union[NodePatch, dict]) -> NodePatch:
    if isinstance(patch, NodePatch):
        return patch
    try:
        return NodePatch.model_validate(patch)
    except SchemaError as e:
        raise ValidationError(f"Invalid node update: {e}", reason="invalid-node") from e


def update_node(diagram: Diagram, node_id: str, patch: Union[NodePatch, dict]) -> Diagram:
    """
    Shallow-merge `patch` into one node.

    Fields left as None in the patch keep their current values.

    Raises:
        NotFoundError: no node has `node_id`
        ValidationError: reliability outside [0, 1] or k below 1
    """
    patch = _coerce_patch(patch)
    if diagram.get_node(node_id) is None:
        raise NotFoundError("node", node_id)

    changes = {key: value for key, value in patch if value is not None}
    nodes = [
        n.model_copy(update=changes) if n.id == node_id else n
        for n in diagram.nodes
    ]
    return diagram.model_copy(update={"nodes": nodes})


def delete_node(diagram: Diagram, node_id: str) -> Diagram:
    """
    Remove a node and every edge that starts or ends at it.

    Other nodes and edges are kept in their original order. Unknown ids
    are a no-op.
    """
    nodes = [n for n in diagram.nodes if n.id != node_id]
    edges = [e for e in diagram.edges if e.source != node_id and e.target != node_id]
    removed = len(diagram.edges) - len(edges)
    if len(nodes) != len(diagram.nodes):
        logger.debug("Deleted node %s and %d connected edges", node_id, removed)
    return diagram.model_copy(update={"nodes": nodes, "edges": edges})


def add_edge(diagram: Diagram, source: str, target: str) -> Diagram:
    """
    Connect `source` to `target`, keeping the diagram acyclic.

    An edge with the same endpoints as an existing one is not duplicated;
    the diagram comes back unchanged.

    Raises:
        ValidationError: an endpoint is missing or the edge would close a cycle
    """
    check_edge(diagram, source, target)

    for edge in diagram.edges:
        if edge.source == source and edge.target == target:
            return diagram.model_copy(update={"nodes": list(diagram.nodes), "edges": list(diagram.edges)})

    edge = Edge(source=source, target=target)
    return diagram.model_copy(update={"edges": [*diagram.edges, edge]})


def delete_edge(diagram: Diagram, edge_id: str) -> Diagram:
    """Remove one edge by id (no-op when absent)."""
    edges = [e for e in diagram.edges if e.id != edge_id]
    return diagram.model_copy(update={"edges": edges})


def clear_diagram(diagram: Diagram) -> Diagram:
    """Remove every node and edge."""
    return diagram.model_copy(update={"nodes": [], "edges": []})
