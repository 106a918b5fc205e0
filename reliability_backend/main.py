"""
Reliability Diagram Backend - FastAPI Application

Exposes the workspace commands to a presentation layer over HTTP:
- CRUD for projects and diagrams
- Node/edge edits applied to the stored diagram
- Export/import of the portable diagram document
- Two-phase deletes: destructive routes answer 409 with a description of
  what would be lost unless called with `confirm=true`
"""
import logging
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from reliability_core.errors import (
    DiagramError,
    ImportFormatError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from reliability_core.models import Diagram, DeletionNotice, NodePatch, NodeType, Position, ProjectPatch
from reliability_core.serializer import export_filename
from reliability_core.validation import validation_summary

from .commands import WorkspaceCommands
from .config import Settings, configure_logging

logger = logging.getLogger(__name__)


# --- Request Models ---

class CreateProjectRequest(BaseModel):
    name: str
    description: str = ""


class CreateDiagramRequest(BaseModel):
    name: str


class RenameDiagramRequest(BaseModel):
    name: str


class CreateNodeRequest(BaseModel):
    """Request to add a node; label and defaults follow the node type."""
    type: NodeType
    position: Optional[Position] = None
    label: Optional[str] = None


class CreateEdgeRequest(BaseModel):
    source: str
    target: str


# --- Error Mapping ---

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (ImportFormatError, 400),
    (NotFoundError, 404),
    (PersistenceError, 500),
)


async def diagram_error_handler(request: Request, exc: DiagramError) -> JSONResponse:
    status = 400
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status = code
            break
    body = {"success": False, "detail": str(exc)}
    if isinstance(exc, ValidationError):
        body["reason"] = exc.reason
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content=body)


def _confirmation_required(notice: DeletionNotice) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"success": False, "confirmation_required": True, "notice": notice.to_json_dict()},
    )


# --- Application ---

def create_app(commands: Optional[WorkspaceCommands] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI app around a WorkspaceCommands instance."""
    if commands is None:
        settings = settings or Settings()
        configure_logging(settings.log_level)
        commands = WorkspaceCommands(settings.create_store())

    app = FastAPI(
        title="Reliability Diagram API",
        description="Backend API for reliability block diagrams",
        version="1.0.0",
    )
    app.state.commands = commands
    app.add_exception_handler(DiagramError, diagram_error_handler)

    # CORS for local frontend development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Health Check ---

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    # --- Projects ---

    @app.get("/api/projects")
    async def list_projects():
        return {"success": True, "projects": [p.to_json_dict() for p in commands.list_projects()]}

    @app.post("/api/projects", status_code=201)
    async def create_project(request: CreateProjectRequest):
        project = commands.create_project(request.name, request.description)
        return {"success": True, "project": project.to_json_dict()}

    @app.get("/api/projects/{project_id}")
    async def get_project(project_id: str):
        return {"success": True, "project": commands.get_project(project_id).to_json_dict()}

    @app.patch("/api/projects/{project_id}")
    async def update_project(project_id: str, patch: ProjectPatch):
        project = commands.update_project(project_id, patch)
        return {"success": True, "project": project.to_json_dict()}

    @app.delete("/api/projects/{project_id}")
    async def delete_project(project_id: str, confirm: bool = Query(default=False)):
        """Delete a project and all of its diagrams."""
        if not confirm:
            return _confirmation_required(commands.describe_project_deletion(project_id))
        commands.delete_project(project_id)
        return {"success": True}

    # --- Diagrams ---

    @app.get("/api/projects/{project_id}/diagrams")
    async def list_diagrams(project_id: str):
        diagrams = commands.list_diagrams(project_id)
        return {"success": True, "diagrams": [d.to_json_dict() for d in diagrams]}

    @app.post("/api/projects/{project_id}/diagrams", status_code=201)
    async def create_diagram(project_id: str, request: CreateDiagramRequest):
        diagram = commands.create_diagram(project_id, request.name)
        return {"success": True, "diagram": diagram.to_json_dict()}

    @app.get("/api/projects/{project_id}/diagrams/{diagram_id}")
    async def get_diagram(project_id: str, diagram_id: str):
        diagram = commands.get_diagram(project_id, diagram_id)
        return {"success": True, "diagram": diagram.to_json_dict()}

    @app.put("/api/projects/{project_id}/diagrams/{diagram_id}")
    async def save_diagram(project_id: str, diagram_id: str, diagram: Diagram):
        """Replace a diagram's stored contents wholesale."""
        diagram = diagram.model_copy(update={"id": diagram_id, "project_id": project_id})
        saved = commands.save_diagram(diagram)
        return {"success": True, "diagram": saved.to_json_dict()}

    @app.patch("/api/projects/{project_id}/diagrams/{diagram_id}")
    async def rename_diagram(project_id: str, diagram_id: str, request: RenameDiagramRequest):
        diagram = commands.rename_diagram(project_id, diagram_id, request.name)
        return {"success": True, "diagram": diagram.to_json_dict()}

    @app.delete("/api/projects/{project_id}/diagrams/{diagram_id}")
    async def delete_diagram(project_id: str, diagram_id: str, confirm: bool = Query(default=False)):
        if not confirm:
            return _confirmation_required(commands.describe_diagram_deletion(project_id, diagram_id))
        commands.delete_diagram(project_id, diagram_id)
        return {"success": True}

    @app.get("/api/projects/{project_id}/diagrams/{diagram_id}/validate")
    async def validate_diagram(project_id: str, diagram_id: str):
        issues = commands.validate(commands.get_diagram(project_id, diagram_id))
        return {
            "success": True,
            "issues": [i.to_dict() for i in issues],
            "summary": validation_summary(issues),
        }

    # --- Graph Edits (load, edit, save) ---

    @app.post("/api/projects/{project_id}/diagrams/{diagram_id}/nodes", status_code=201)
    async def create_node(project_id: str, diagram_id: str, request: CreateNodeRequest):
        diagram = commands.get_diagram(project_id, diagram_id)
        edited = commands.add_node(diagram, request.type, position=request.position, label=request.label)
        saved = commands.save_diagram(edited)
        return {"success": True, "node": saved.nodes[-1].to_json_dict(), "diagram": saved.to_json_dict()}

    @app.patch("/api/projects/{project_id}/diagrams/{diagram_id}/nodes/{node_id}")
    async def update_node(project_id: str, diagram_id: str, node_id: str, patch: NodePatch):
        diagram = commands.get_diagram(project_id, diagram_id)
        saved = commands.save_diagram(commands.update_node(diagram, node_id, patch))
        return {"success": True, "node": saved.get_node(node_id).to_json_dict()}

    @app.delete("/api/projects/{project_id}/diagrams/{diagram_id}/nodes/{node_id}")
    async def delete_node(project_id: str, diagram_id: str, node_id: str):
        """Delete a node and its connected edges."""
        diagram = commands.get_diagram(project_id, diagram_id)
        saved = commands.save_diagram(commands.delete_node(diagram, node_id))
        return {"success": True, "diagram": saved.to_json_dict()}

    @app.post("/api/projects/{project_id}/diagrams/{diagram_id}/edges", status_code=201)
    async def create_edge(project_id: str, diagram_id: str, request: CreateEdgeRequest):
        """Connect two nodes; rejected with 400 if it would form a cycle."""
        diagram = commands.get_diagram(project_id, diagram_id)
        saved = commands.save_diagram(commands.try_add_edge(diagram, request.source, request.target))
        return {"success": True, "diagram": saved.to_json_dict()}

    @app.delete("/api/projects/{project_id}/diagrams/{diagram_id}/edges/{edge_id}")
    async def delete_edge(project_id: str, diagram_id: str, edge_id: str):
        diagram = commands.get_diagram(project_id, diagram_id)
        saved = commands.save_diagram(commands.delete_edge(diagram, edge_id))
        return {"success": True, "diagram": saved.to_json_dict()}

    @app.post("/api/projects/{project_id}/diagrams/{diagram_id}/clear")
    async def clear_diagram(project_id: str, diagram_id: str, confirm: bool = Query(default=False)):
        diagram = commands.get_diagram(project_id, diagram_id)
        if not confirm:
            return _confirmation_required(commands.describe_clear(diagram))
        saved = commands.save_diagram(commands.clear_diagram(diagram))
        return {"success": True, "diagram": saved.to_json_dict()}

    # --- Export / Import ---

    @app.get("/api/projects/{project_id}/diagrams/{diagram_id}/export")
    async def export_diagram(project_id: str, diagram_id: str):
        diagram = commands.get_diagram(project_id, diagram_id)
        return JSONResponse(
            content=commands.export_diagram(diagram),
            headers={"Content-Disposition": f'attachment; filename="{export_filename(diagram)}"'},
        )

    @app.post("/api/projects/{project_id}/import", status_code=201)
    async def import_diagram(project_id: str, request: Request, diagram_id: Optional[str] = Query(default=None)):
        """Import an export document (raw JSON body) as a new or existing diagram."""
        text = (await request.body()).decode("utf-8", "replace")
        diagram = commands.import_diagram(project_id, text, diagram_id=diagram_id)
        return {"success": True, "diagram": diagram.to_json_dict()}

    return app
