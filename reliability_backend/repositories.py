"""
Repositories - CRUD over projects and diagrams on top of a KeyedStore.

Each call reads the full list under its key, applies one change and writes
the full list back. Returned entities are fresh copies; mutating them has no
effect until they are passed back through `update`.
"""

import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as SchemaError

from reliability_core.errors import NotFoundError, ValidationError
from reliability_core.models import Diagram, Project, ProjectPatch, utcnow

from .store import PROJECTS_KEY, KeyedStore, diagrams_key

logger = logging.getLogger(__name__)

_projects_adapter = TypeAdapter(list[Project])
_diagrams_adapter = TypeAdapter(list[Diagram])


def _require_name(name: Optional[str], kind: str) -> str:
    if name is None or not name.strip():
        raise ValidationError(f"{kind.capitalize()} name is required", reason="empty-name")
    return name


def _load(store: KeyedStore, key: str, adapter: TypeAdapter) -> list:
    raw = store.read(key, [])
    try:
        return adapter.validate_python(raw)
    except SchemaError as e:
        logger.warning("Ignoring malformed records under %r: %s", key, e.error_count())
        return []


def _dump(store: KeyedStore, key: str, items: list[BaseModel]) -> None:
    store.write(key, [item.to_json_dict() for item in items])


class ProjectRepository:
    """Projects stored as one list under the "projects" key."""

    def __init__(self, store: KeyedStore):
        self._store = store

    def _all(self) -> list[Project]:
        return _load(self._store, PROJECTS_KEY, _projects_adapter)

    def list(self) -> list[Project]:
        return self._all()

    def get(self, project_id: str) -> Project:
        for project in self._all():
            if project.id == project_id:
                return project
        raise NotFoundError("project", project_id)

    def exists(self, project_id: str) -> bool:
        return any(p.id == project_id for p in self._all())

    def create(self, name: str, description: str = "") -> Project:
        """Create and persist a project; the name must not be blank."""
        _require_name(name, "project")
        now = utcnow()
        project = Project(name=name, description=description or "", created_at=now, updated_at=now)
        projects = self._all()
        projects.append(project)
        _dump(self._store, PROJECTS_KEY, projects)
        logger.info("Created project %s (%s)", project.id, project.name)
        return project

    def update(self, project_id: str, patch: Union[ProjectPatch, dict[str, Any]]) -> Project:
        """
        Shallow-merge `patch` into a stored project.

        Only fields set to a non-None value are copied; `updatedAt` is
        refreshed.
        """
        if not isinstance(patch, ProjectPatch):
            try:
                patch = ProjectPatch.model_validate(patch)
            except SchemaError as e:
                raise ValidationError(f"Invalid project update: {e}") from e
        changes = {key: value for key, value in patch if value is not None}
        if "name" in changes:
            _require_name(changes["name"], "project")

        projects = self._all()
        for index, project in enumerate(projects):
            if project.id == project_id:
                updated = project.model_copy(update={**changes, "updated_at": utcnow()})
                projects[index] = updated
                _dump(self._store, PROJECTS_KEY, projects)
                return updated
        raise NotFoundError("project", project_id)

    def delete(self, project_id: str) -> None:
        """Remove a project and its whole diagram collection (idempotent)."""
        projects = self._all()
        remaining = [p for p in projects if p.id != project_id]
        if len(remaining) != len(projects):
            _dump(self._store, PROJECTS_KEY, remaining)
            logger.info("Deleted project %s", project_id)
        self._store.remove(diagrams_key(project_id))


class DiagramRepository:
    """Diagrams of one project, stored as a list under "diagrams:{project_id}"."""

    def __init__(self, store: KeyedStore, project_id: str):
        self._store = store
        self._project_id = project_id
        self._key = diagrams_key(project_id)

    @property
    def project_id(self) -> str:
        return self._project_id

    def _all(self) -> list[Diagram]:
        return _load(self._store, self._key, _diagrams_adapter)

    def list(self) -> list[Diagram]:
        return self._all()

    def get(self, diagram_id: str) -> Diagram:
        for diagram in self._all():
            if diagram.id == diagram_id:
                return diagram
        raise NotFoundError("diagram", diagram_id)

    def create(self, name: str) -> Diagram:
        """Create an empty diagram in this project."""
        _require_name(name, "diagram")
        return self.add(Diagram(name=name, project_id=self._project_id))

    def add(self, diagram: Diagram) -> Diagram:
        """
        Store a new diagram built elsewhere (e.g. from an import).

        The diagram is re-scoped to this project and its timestamps are
        stamped to now, so `createdAt == updatedAt`.
        """
        _require_name(diagram.name, "diagram")
        now = utcnow()
        diagram = diagram.model_copy(
            update={"project_id": self._project_id, "created_at": now, "updated_at": now},
            deep=True,
        )
        diagrams = self._all()
        diagrams.append(diagram)
        _dump(self._store, self._key, diagrams)
        logger.info("Created diagram %s in project %s", diagram.id, self._project_id)
        return diagram

    def update(self, diagram: Diagram) -> Diagram:
        """
        Replace the stored diagram with the same id.

        Nodes and edges are overwritten wholesale; `updatedAt` is refreshed.
        `createdAt` and `projectId` always keep their stored values.
        """
        _require_name(diagram.name, "diagram")
        diagrams = self._all()
        for index, stored in enumerate(diagrams):
            if stored.id == diagram.id:
                updated = diagram.model_copy(
                    update={
                        "created_at": stored.created_at,
                        "project_id": self._project_id,
                        "updated_at": utcnow(),
                    },
                    deep=True,
                )
                diagrams[index] = updated
                _dump(self._store, self._key, diagrams)
                return updated
        raise NotFoundError("diagram", diagram.id)

    def delete(self, diagram_id: str) -> None:
        """Remove one diagram (idempotent)."""
        diagrams = self._all()
        remaining = [d for d in diagrams if d.id != diagram_id]
        if len(remaining) != len(diagrams):
            _dump(self._store, self._key, remaining)
            logger.info("Deleted diagram %s from project %s", diagram_id, self._project_id)
