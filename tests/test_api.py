"""Tests for the HTTP adapter."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from reliability_backend.commands import WorkspaceCommands
from reliability_backend.main import create_app


@pytest.fixture
def client(commands: WorkspaceCommands) -> TestClient:
    return TestClient(create_app(commands))


@pytest.fixture
def diagram_url(client: TestClient) -> str:
    project = client.post("/api/projects", json={"name": "Plant"}).json()["project"]
    diagram = client.post(
        f"/api/projects/{project['id']}/diagrams", json={"name": "Main"}
    ).json()["diagram"]
    return f"/api/projects/{project['id']}/diagrams/{diagram['id']}"


def _add_node(client: TestClient, diagram_url: str, node_type: str = "basic") -> str:
    response = client.post(f"{diagram_url}/nodes", json={"type": node_type})
    assert response.status_code == 201
    return response.json()["node"]["id"]


def test_health(client: TestClient) -> None:
    assert client.get("/api/health").json() == {"status": "ok"}


def test_project_crud(client: TestClient) -> None:
    response = client.post("/api/projects", json={"name": "Plant", "description": "Site A"})
    assert response.status_code == 201
    project = response.json()["project"]
    assert project["createdAt"] == project["updatedAt"]

    response = client.patch(f"/api/projects/{project['id']}", json={"name": "Plant B"})
    assert response.json()["project"]["name"] == "Plant B"
    assert response.json()["project"]["description"] == "Site A"

    assert client.get("/api/projects/missing").status_code == 404


def test_blank_project_name_is_400(client: TestClient) -> None:
    response = client.post("/api/projects", json={"name": "  "})
    assert response.status_code == 400
    assert response.json()["reason"] == "empty-name"


def test_new_diagram_is_empty(client: TestClient, diagram_url: str) -> None:
    diagram = client.get(diagram_url).json()["diagram"]
    assert diagram["nodes"] == [] and diagram["edges"] == []
    assert diagram["createdAt"] == diagram["updatedAt"]
    assert diagram_url.split("/")[3] == diagram["projectId"]


def test_cycle_is_rejected(client: TestClient, diagram_url: str) -> None:
    a, b = _add_node(client, diagram_url), _add_node(client, diagram_url)

    assert client.post(f"{diagram_url}/edges", json={"source": a, "target": b}).status_code == 201
    response = client.post(f"{diagram_url}/edges", json={"source": b, "target": a})

    assert response.status_code == 400
    assert response.json()["reason"] == "cycle"
    edges = client.get(diagram_url).json()["diagram"]["edges"]
    assert [(e["source"], e["target"]) for e in edges] == [(a, b)]


def test_node_update_and_delete(client: TestClient, diagram_url: str) -> None:
    a = _add_node(client, diagram_url)
    b = _add_node(client, diagram_url, "k-out-of-n")
    client.post(f"{diagram_url}/edges", json={"source": a, "target": b})

    response = client.patch(f"{diagram_url}/nodes/{b}", json={"k": 3, "label": "2oo3"})
    assert response.json()["node"]["k"] == 3

    assert client.patch(f"{diagram_url}/nodes/{a}", json={"reliability": 1.2}).status_code == 422

    diagram = client.delete(f"{diagram_url}/nodes/{a}").json()["diagram"]
    assert [n["id"] for n in diagram["nodes"]] == [b]
    assert diagram["edges"] == []


def test_destructive_routes_need_confirmation(client: TestClient, diagram_url: str) -> None:
    _add_node(client, diagram_url)
    project_url = diagram_url.rsplit("/diagrams/", 1)[0]

    response = client.post(f"{diagram_url}/clear")
    assert response.status_code == 409
    assert response.json()["notice"]["nodeCount"] == 1

    response = client.delete(project_url)
    assert response.status_code == 409
    assert response.json()["notice"]["diagramCount"] == 1
    assert client.get(diagram_url).status_code == 200

    assert client.post(f"{diagram_url}/clear", params={"confirm": "true"}).json()["diagram"]["nodes"] == []
    assert client.delete(diagram_url, params={"confirm": "true"}).json() == {"success": True}
    assert client.get(diagram_url).status_code == 404
    assert client.delete(project_url, params={"confirm": "true"}).status_code == 200


def test_export_and_import(client: TestClient, diagram_url: str) -> None:
    a, b = _add_node(client, diagram_url), _add_node(client, diagram_url)
    client.post(f"{diagram_url}/edges", json={"source": a, "target": b})
    project_url = diagram_url.rsplit("/diagrams/", 1)[0]

    response = client.get(f"{diagram_url}/export")
    assert response.headers["content-disposition"] == 'attachment; filename="Main.json"'
    document = response.json()
    assert [n["reliability"] for n in document["nodes"]] == [0.95, 0.95]

    created = client.post(f"{project_url}/import", content=json.dumps(document))
    assert created.status_code == 201
    assert created.json()["diagram"]["edges"] == document["edges"]

    broken = client.post(
        f"{project_url}/import",
        params={"diagram_id": diagram_url.rsplit("/", 1)[1]},
        content=json.dumps({"nodes": []}),
    )
    assert broken.status_code == 400
    assert len(client.get(diagram_url).json()["diagram"]["nodes"]) == 2


def test_save_without_created_at_keeps_it(client: TestClient, diagram_url: str) -> None:
    original = client.get(diagram_url).json()["diagram"]

    response = client.put(diagram_url, json={
        "name": "Main",
        "projectId": original["projectId"],
        "nodes": [{"id": "A", "type": "basic", "label": "Pump", "position": {"x": 1, "y": 2}}],
        "edges": [],
    })

    assert response.status_code == 200
    saved = response.json()["diagram"]
    assert saved["createdAt"] == original["createdAt"]
    assert [n["id"] for n in saved["nodes"]] == ["A"]
    assert client.get(diagram_url).json()["diagram"]["createdAt"] == original["createdAt"]


def test_delete_unusual_project_id_is_idempotent(client: TestClient) -> None:
    response = client.delete("/api/projects/legacy.id", params={"confirm": "true"})
    assert response.status_code == 200
    assert response.json() == {"success": True}
