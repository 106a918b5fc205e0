"""
Workspace commands - the operations a presentation layer can invoke.

This module implements:
- Project and diagram CRUD through the repositories
- Acyclicity-checked edge insertion and cascading node deletion
- Export/import of the portable diagram document
- Two-phase destructive operations (describe first, then delete)

Edit commands take a Diagram value and return a new one; nothing is
persisted until `save_diagram` is called. All commands run synchronously
and to completion, one at a time.
"""

import logging
from typing import Any, Optional, Union

from reliability_core import editing
from reliability_core.errors import NotFoundError, ValidationError
from reliability_core.models import (
    DeletionNotice,
    Diagram,
    NodePatch,
    NodeType,
    Position,
    Project,
    ProjectPatch,
)
from reliability_core.serializer import export_diagram, import_diagram
from reliability_core.validation import ValidationIssue, validate_diagram

from .repositories import DiagramRepository, ProjectRepository
from .store import KeyedStore

logger = logging.getLogger(__name__)

IMPORTED_DIAGRAM_NAME = "Imported diagram"


class WorkspaceCommands:
    """
    Command surface over one KeyedStore.

    One ProjectRepository holds the project list; a DiagramRepository is
    created per project on demand.
    """

    def __init__(self, store: KeyedStore):
        self._store = store
        self._projects = ProjectRepository(store)

    @property
    def store(self) -> KeyedStore:
        return self._store

    def diagrams(self, project_id: str) -> DiagramRepository:
        """Diagram repository scoped to an existing project."""
        if not self._projects.exists(project_id):
            raise NotFoundError("project", project_id)
        return DiagramRepository(self._store, project_id)

    # --- Projects ---

    def list_projects(self) -> list[Project]:
        return self._projects.list()

    def get_project(self, project_id: str) -> Project:
        return self._projects.get(project_id)

    def create_project(self, name: str, description: str = "") -> Project:
        return self._projects.create(name, description)

    def update_project(self, project_id: str, patch: Union[ProjectPatch, dict[str, Any]]) -> Project:
        return self._projects.update(project_id, patch)

    def describe_project_deletion(self, project_id: str) -> DeletionNotice:
        """Describe what deleting a project would discard."""
        project = self._projects.get(project_id)
        count = len(DiagramRepository(self._store, project_id).list())
        return DeletionNotice(
            target="project",
            id=project.id,
            name=project.name,
            diagram_count=count,
            message=f'Delete project "{project.name}" and its {count} diagram(s)?',
        )

    def delete_project(self, project_id: str) -> None:
        """Delete a project and every diagram it owns (idempotent)."""
        self._projects.delete(project_id)

    # --- Diagrams ---

    def list_diagrams(self, project_id: str) -> list[Diagram]:
        return self.diagrams(project_id).list()

    def get_diagram(self, project_id: str, diagram_id: str) -> Diagram:
        return self.diagrams(project_id).get(diagram_id)

    def create_diagram(self, project_id: str, name: str) -> Diagram:
        return self.diagrams(project_id).create(name)

    def save_diagram(self, diagram: Diagram) -> Diagram:
        """Persist a diagram, replacing its stored nodes and edges wholesale."""
        return self.diagrams(diagram.project_id).update(diagram)

    def rename_diagram(self, project_id: str, diagram_id: str, name: str) -> Diagram:
        repo = self.diagrams(project_id)
        diagram = repo.get(diagram_id)
        return repo.update(diagram.model_copy(update={"name": name}))

    def describe_diagram_deletion(self, project_id: str, diagram_id: str) -> DeletionNotice:
        """Describe what deleting a diagram would discard."""
        diagram = self.get_diagram(project_id, diagram_id)
        return DeletionNotice(
            target="diagram",
            id=diagram.id,
            name=diagram.name,
            node_count=len(diagram.nodes),
            edge_count=len(diagram.edges),
            message=f'Delete diagram "{diagram.name}"?',
        )

    def delete_diagram(self, project_id: str, diagram_id: str) -> None:
        """Delete one diagram; siblings are untouched (idempotent)."""
        DiagramRepository(self._store, project_id).delete(diagram_id)

    # --- Graph Edits (pure, see reliability_core.editing) ---

    def add_node(
        self,
        diagram: Diagram,
        node_type: Union[NodeType, str],
        position: Optional[Position] = None,
        label: Optional[str] = None,
    ) -> Diagram:
        return editing.add_node(diagram, node_type, position=position, label=label)

    def update_node(self, diagram: Diagram, node_id: str, patch: Union[NodePatch, dict[str, Any]]) -> Diagram:
        return editing.update_node(diagram, node_id, patch)

    def delete_node(self, diagram: Diagram, node_id: str) -> Diagram:
        return editing.delete_node(diagram, node_id)

    def try_add_edge(self, diagram: Diagram, source: str, target: str) -> Diagram:
        """
        Add `source -> target` if it keeps the diagram acyclic.

        Raises:
            ValidationError: reason "cycle" or "unknown-node"; the given
                diagram is left as it was
        """
        try:
            return editing.add_edge(diagram, source, target)
        except ValidationError as e:
            logger.info("Rejected edge %s -> %s in diagram %s: %s", source, target, diagram.id, e)
            raise

    def delete_edge(self, diagram: Diagram, edge_id: str) -> Diagram:
        return editing.delete_edge(diagram, edge_id)

    def describe_clear(self, diagram: Diagram) -> DeletionNotice:
        """Describe what clearing a diagram's canvas would discard."""
        return DeletionNotice(
            target="canvas",
            id=diagram.id,
            name=diagram.name,
            node_count=len(diagram.nodes),
            edge_count=len(diagram.edges),
            message=f'Remove all nodes and edges from "{diagram.name}"?',
        )

    def clear_diagram(self, diagram: Diagram) -> Diagram:
        return editing.clear_diagram(diagram)

    def validate(self, diagram: Diagram) -> list[ValidationIssue]:
        return validate_diagram(diagram)

    # --- Export / Import ---

    def export_diagram(self, diagram: Diagram) -> dict[str, Any]:
        return export_diagram(diagram)

    def import_diagram(self, project_id: str, text: str, diagram_id: Optional[str] = None) -> Diagram:
        """
        Import an export document into a project.

        With `diagram_id`, the stored diagram's nodes and edges are replaced;
        otherwise a new diagram is created from the document. The document
        is parsed completely before anything is written, so a malformed one
        changes nothing. Imported edges are not re-checked for cycles.

        Raises:
            ImportFormatError: the document is malformed
            NotFoundError: the project or target diagram does not exist
        """
        fragment = import_diagram(text)
        repo = self.diagrams(project_id)

        if diagram_id is not None:
            current = repo.get(diagram_id)
            diagram = repo.update(fragment.apply_to(current))
        else:
            name = fragment.name if fragment.name and fragment.name.strip() else IMPORTED_DIAGRAM_NAME
            diagram = repo.add(Diagram(name=name, project_id=project_id, nodes=fragment.nodes, edges=fragment.edges))

        logger.info(
            "Imported %d nodes and %d edges into diagram %s",
            len(diagram.nodes), len(diagram.edges), diagram.id,
        )
        return diagram
