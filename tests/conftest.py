"""Shared test fixtures and builders."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, Optional

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from reliability_backend.commands import WorkspaceCommands
from reliability_backend.store import MemoryStore
from reliability_core.models import Diagram, Edge, Node, NodeType, Position


def make_diagram(
    node_ids: Iterable[str] = ("A", "B", "C"),
    edges: Iterable[tuple[str, str]] = (("A", "B"), ("B", "C")),
    project_id: str = "p1",
    name: str = "Pump train",
    diagram_id: Optional[str] = None,
) -> Diagram:
    """Build a diagram with basic nodes named by id and edges `src-tgt`."""
    nodes = [
        Node(id=node_id, type=NodeType.BASIC, label=f"Node {node_id}",
             position=Position(x=10.0 * i, y=5.0), reliability=0.9)
        for i, node_id in enumerate(node_ids)
    ]
    kwargs = {"id": diagram_id} if diagram_id else {}
    return Diagram(
        name=name,
        project_id=project_id,
        nodes=nodes,
        edges=[Edge(id=f"{s}-{t}", source=s, target=t) for s, t in edges],
        **kwargs,
    )


def edge_pairs(diagram: Diagram) -> list[tuple[str, str]]:
    return [(e.source, e.target) for e in diagram.edges]


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def commands(store: MemoryStore) -> WorkspaceCommands:
    return WorkspaceCommands(store)
