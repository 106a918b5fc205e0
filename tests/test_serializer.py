"""Tests for the portable export/import document."""

from __future__ import annotations

import json

import pytest

from reliability_core.errors import ImportFormatError
from reliability_core.models import Node, NodeType, Position
from reliability_core.serializer import (
    dumps_export,
    export_diagram,
    export_filename,
    import_diagram,
)
from tests.conftest import make_diagram


def test_export_document_shape() -> None:
    diagram = make_diagram(node_ids=("A", "B"), edges=(("A", "B"),))
    diagram.nodes.append(Node(id="G", type=NodeType.K_OUT_OF_N, label="2oo3", k=2,
                              metadata={"color": "orange"}))

    document = export_diagram(diagram)

    assert document["name"] == "Pump train"
    assert document["nodes"][0] == {
        "id": "A",
        "type": "basic",
        "label": "Node A",
        "position": {"x": 0.0, "y": 5.0},
        "reliability": 0.9,
    }
    assert document["nodes"][2] == {
        "id": "G",
        "type": "k-out-of-n",
        "label": "2oo3",
        "position": {"x": 0.0, "y": 0.0},
        "k": 2,
    }
    assert document["edges"] == [{"id": "A-B", "source": "A", "target": "B"}]
    assert set(document) == {"name", "nodes", "edges"}


def test_round_trip_preserves_nodes_and_edges() -> None:
    diagram = make_diagram(
        node_ids=("A", "B", "C", "D"),
        edges=(("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")),
    )
    diagram.nodes.append(Node(id="S", type=NodeType.SERIES, label="Train",
                              position=Position(x=-1.5, y=2.25)))

    fragment = import_diagram(dumps_export(diagram))

    assert fragment.name == diagram.name
    assert fragment.nodes == diagram.nodes
    assert fragment.edges == diagram.edges


def test_import_missing_edges_fails() -> None:
    with pytest.raises(ImportFormatError, match="edges"):
        import_diagram(json.dumps({"name": "x", "nodes": []}))


@pytest.mark.parametrize(
    "text",
    [
        "not json at all",
        "[1, 2, 3]",
        json.dumps({"nodes": {}, "edges": []}),
        json.dumps({"nodes": [], "edges": "A->B"}),
        json.dumps({"nodes": [{"id": "A", "type": "triangle"}], "edges": []}),
        json.dumps({"nodes": [{"id": "A", "type": "basic", "reliability": 2}], "edges": []}),
        json.dumps({"nodes": [], "edges": [{"id": "e", "source": "A"}]}),
        json.dumps({"name": 5, "nodes": [], "edges": []}),
    ],
)
def test_import_rejects_malformed_documents(text: str) -> None:
    with pytest.raises(ImportFormatError):
        import_diagram(text)


def test_apply_to_replaces_contents_on_a_copy() -> None:
    target = make_diagram(node_ids=("X",), edges=(), diagram_id="d-target")
    source = make_diagram()

    fragment = import_diagram(dumps_export(source))
    result = fragment.apply_to(target)

    assert result.id == "d-target"
    assert [n.id for n in result.nodes] == ["A", "B", "C"]
    assert [n.id for n in target.nodes] == ["X"]


def test_import_accepts_extra_presentation_fields() -> None:
    text = json.dumps({
        "name": "From editor",
        "nodes": [{"id": "A", "type": "parallel", "label": "P", "position": {"x": 1, "y": 2},
                   "selected": True}],
        "edges": [],
    })

    fragment = import_diagram(text)

    assert fragment.nodes[0].type == NodeType.PARALLEL
    assert fragment.nodes[0].position == Position(x=1, y=2)


def test_export_filename_replaces_whitespace() -> None:
    diagram = make_diagram(name="Cooling  loop\tA")
    assert export_filename(diagram) == "Cooling-loop-A.json"
