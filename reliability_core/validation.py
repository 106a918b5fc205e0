"""
Diagram validation - Keep diagrams acyclic and check them for structural issues.

Two kinds of checks live here:
- Gatekeeping checks (`would_create_cycle`, `check_edge`) that run before an
  edge is inserted and raise ValidationError on rejection
- A read-only diagnostic report (`validate_diagram`) that never raises and
  is useful for diagrams loaded from an import, which are not re-checked
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable

from .errors import ValidationError

if TYPE_CHECKING:
    from .models import Diagram, Edge


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Invalid state, breaks an invariant
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a diagram."""
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    edge_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.node_id:
            result["node_id"] = self.node_id
        if self.edge_id:
            result["edge_id"] = self.edge_id
        return result


def would_create_cycle(edges: Iterable["Edge"], source: str, target: str) -> bool:
    """
    Check whether adding `source -> target` would close a directed cycle.

    Walks forward from `target` along existing edges; reaching `source`
    means the new edge would complete a loop. A self-loop is caught on the
    first pop. The visited set keeps the walk finite even if the existing
    edges already contain a cycle.

    Args:
        edges: The diagram's current edges
        source: Source node ID of the candidate edge
        target: Target node ID of the candidate edge

    Returns:
        True if the candidate edge must be rejected
    """
    outgoing: dict[str, list[str]] = {}
    for edge in edges:
        outgoing.setdefault(edge.source, []).append(edge.target)

    stack = [target]
    visited: set[str] = set()

    while stack:
        current = stack.pop()
        if current == source:
            return True
        if current in visited:
            continue
        visited.add(current)
        stack.extend(outgoing.get(current, ()))

    return False


def check_edge(diagram: "Diagram", source: str, target: str) -> None:
    """
    Raise ValidationError unless `source -> target` can be added to the diagram.

    Must run before any mutation; it never modifies the diagram.
    """
    node_ids = diagram.node_ids()
    for endpoint in (source, target):
        if endpoint not in node_ids:
            raise ValidationError(
                f"Edge references non-existent node: {endpoint}",
                reason="unknown-node",
                node_id=endpoint,
            )

    if would_create_cycle(diagram.edges, source, target):
        raise ValidationError(
            f"Connecting {source} to {target} would create a cycle",
            reason="cycle",
        )


def find_cycle_nodes(diagram: "Diagram") -> set[str]:
    """
    Return the IDs of nodes that lie on at least one directed cycle.

    Uses Kahn's algorithm: whatever cannot be peeled off in topological
    order sits on (or downstream of only) a cycle, and is then narrowed to
    nodes that can reach themselves.
    """
    outgoing: dict[str, list[str]] = {}
    in_degree: dict[str, int] = {}
    for edge in diagram.edges:
        outgoing.setdefault(edge.source, []).append(edge.target)
        in_degree.setdefault(edge.source, 0)
        in_degree[edge.target] = in_degree.get(edge.target, 0) + 1

    ready = [n for n, d in in_degree.items() if d == 0]
    while ready:
        current = ready.pop()
        for nxt in outgoing.get(current, ()):
            in_degree[nxt] -= 1
            if in_degree[nxt] == 0:
                ready.append(nxt)

    remaining = {n for n, d in in_degree.items() if d > 0}
    on_cycle: set[str] = set()
    for node_id in remaining:
        # A node is on a cycle if some successor can walk back to it
        if any(
            would_create_cycle(diagram.edges, node_id, succ)
            for succ in outgoing.get(node_id, ())
        ):
            on_cycle.add(node_id)
    return on_cycle


def validate_diagram(diagram: "Diagram") -> list[ValidationIssue]:
    """
    Validate a diagram and return a list of issues.

    Checks for:
    - Duplicate node IDs - ERROR
    - Invalid edge references (source/target doesn't exist) - ERROR
    - Self-referencing edges - ERROR
    - Nodes on a directed cycle - ERROR
    - Duplicate edges (same source->target) - WARNING
    - Orphan nodes (no connections) - INFO
    - Empty diagram - INFO

    Args:
        diagram: The diagram to validate

    Returns:
        List of ValidationIssue objects
    """
    issues: list[ValidationIssue] = []

    nodes = diagram.nodes
    edges = diagram.edges

    if not nodes:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Diagram has no nodes"
        ))
        if not edges:
            return issues

    # Duplicate node IDs
    seen_ids: set[str] = set()
    for node in nodes:
        if node.id in seen_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Duplicate node id: {node.id}",
                node_id=node.id
            ))
        seen_ids.add(node.id)

    node_ids = seen_ids

    # Invalid edge references
    for edge in edges:
        if edge.source not in node_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge references non-existent source node: {edge.source}",
                edge_id=edge.id
            ))
        if edge.target not in node_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge references non-existent target node: {edge.target}",
                edge_id=edge.id
            ))

    # Self-referencing edges
    for edge in edges:
        if edge.source == edge.target:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message="Self-referencing edge (node points to itself)",
                edge_id=edge.id,
                node_id=edge.source
            ))

    # Nodes on a cycle (self-loop nodes included)
    for node_id in sorted(find_cycle_nodes(diagram)):
        issues.append(ValidationIssue(
            severity=IssueSeverity.ERROR,
            message="Node lies on a directed cycle",
            node_id=node_id
        ))

    # Duplicate edges (same source->target)
    seen_pairs: set[tuple[str, str]] = set()
    for edge in edges:
        pair = (edge.source, edge.target)
        if pair in seen_pairs:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Duplicate edge from {edge.source} to {edge.target}",
                edge_id=edge.id
            ))
        else:
            seen_pairs.add(pair)

    # Orphan nodes (no connections)
    connected_nodes: set[str] = set()
    for edge in edges:
        connected_nodes.add(edge.source)
        connected_nodes.add(edge.target)
    for node in nodes:
        if node.id not in connected_nodes:
            issues.append(ValidationIssue(
                severity=IssueSeverity.INFO,
                message=f"Orphan node (no connections): {node.label or node.id}",
                node_id=node.id
            ))

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    errors = len([i for i in issues if i.severity == IssueSeverity.ERROR])
    return {
        "total": len(issues),
        "errors": errors,
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": errors == 0
    }
