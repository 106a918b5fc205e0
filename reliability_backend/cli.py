#!/usr/bin/env python3
"""Reliability diagram CLI - project, diagram, node and edge commands over the local store."""

import argparse
import json
import logging
import sys
from pathlib import Path

from reliability_core.errors import DiagramError, ValidationError
from reliability_core.models import DeletionNotice, Position
from reliability_core.serializer import dumps_export, export_filename
from reliability_core.validation import validation_summary

from .commands import WorkspaceCommands
from .config import Settings, configure_logging

logger = logging.getLogger(__name__)


def _json_out(data, code=0):
    print(json.dumps(data))
    sys.exit(code)


def _error_out(message, **extra):
    _json_out({"status": "error", "error": message, **extra}, code=1)


def _confirm(notice: DeletionNotice, assume_yes: bool) -> bool:
    """Ask on stderr/stdin; non-interactive callers must pass --yes."""
    if assume_yes:
        return True
    if not sys.stdin.isatty():
        return False
    sys.stderr.write(f"{notice.message} [y/N] ")
    sys.stderr.flush()
    return sys.stdin.readline().strip().lower() in ("y", "yes")


def _load(commands, args):
    return commands.get_diagram(args.project_id, args.diagram_id)


# ── Projects ─────────────────────────────────────────────────────────────────

def cmd_projects(commands, args):
    _json_out({"status": "ok", "projects": [p.to_json_dict() for p in commands.list_projects()]})


def cmd_project_create(commands, args):
    project = commands.create_project(args.name, args.description)
    _json_out({"status": "created", "project": project.to_json_dict()})


def cmd_project_update(commands, args):
    project = commands.update_project(args.project_id, {"name": args.name, "description": args.description})
    _json_out({"status": "updated", "project": project.to_json_dict()})


def cmd_project_delete(commands, args):
    notice = commands.describe_project_deletion(args.project_id)
    if not _confirm(notice, args.yes):
        _error_out("Confirmation required", notice=notice.to_json_dict())
    commands.delete_project(args.project_id)
    _json_out({"status": "deleted", "project_id": args.project_id})


# ── Diagrams ─────────────────────────────────────────────────────────────────

def cmd_diagrams(commands, args):
    diagrams = commands.list_diagrams(args.project_id)
    _json_out({"status": "ok", "diagrams": [
        {"id": d.id, "name": d.name, "node_count": len(d.nodes), "edge_count": len(d.edges)}
        for d in diagrams
    ]})


def cmd_diagram_create(commands, args):
    diagram = commands.create_diagram(args.project_id, args.name)
    _json_out({"status": "created", "diagram": diagram.to_json_dict()})


def cmd_diagram_show(commands, args):
    _json_out({"status": "ok", "diagram": _load(commands, args).to_json_dict()})


def cmd_diagram_delete(commands, args):
    notice = commands.describe_diagram_deletion(args.project_id, args.diagram_id)
    if not _confirm(notice, args.yes):
        _error_out("Confirmation required", notice=notice.to_json_dict())
    commands.delete_diagram(args.project_id, args.diagram_id)
    _json_out({"status": "deleted", "diagram_id": args.diagram_id})


def cmd_validate(commands, args):
    issues = commands.validate(_load(commands, args))
    _json_out({
        "status": "ok",
        "issues": [i.to_dict() for i in issues],
        "summary": validation_summary(issues),
    })


# ── Nodes & Edges ────────────────────────────────────────────────────────────

def cmd_node_add(commands, args):
    diagram = _load(commands, args)
    edited = commands.add_node(diagram, args.type, position=Position(x=args.x, y=args.y), label=args.label)
    saved = commands.save_diagram(edited)
    _json_out({"status": "created", "node": saved.nodes[-1].to_json_dict()})


def cmd_node_delete(commands, args):
    saved = commands.save_diagram(commands.delete_node(_load(commands, args), args.node_id))
    _json_out({"status": "deleted", "node_id": args.node_id, "edge_count": len(saved.edges)})


def cmd_edge_add(commands, args):
    diagram = _load(commands, args)
    try:
        edited = commands.try_add_edge(diagram, args.source, args.target)
    except ValidationError as e:
        _error_out(str(e), reason=e.reason)
    saved = commands.save_diagram(edited)
    _json_out({"status": "created", "edges": [e.to_json_dict() for e in saved.edges]})


# ── Export / Import ──────────────────────────────────────────────────────────

def cmd_export(commands, args):
    diagram = _load(commands, args)
    output = Path(args.output) if args.output else Path(export_filename(diagram))
    try:
        output.write_text(dumps_export(diagram), encoding="utf-8")
    except OSError as e:
        _error_out(f"Cannot write {output}: {e}")
    _json_out({"status": "exported", "file_path": str(output)})


def cmd_import(commands, args):
    try:
        text = Path(args.file_path).read_text(encoding="utf-8")
    except OSError as e:
        _error_out(f"Cannot read {args.file_path}: {e}")
    diagram = commands.import_diagram(args.project_id, text, diagram_id=args.diagram_id)
    _json_out({"status": "imported", "diagram": diagram.to_json_dict()})


# ── Service ──────────────────────────────────────────────────────────────────

def cmd_serve(commands, args, settings):
    import uvicorn
    from .main import create_app

    uvicorn.run(create_app(commands), host=args.host or settings.host, port=args.port or settings.port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="reliability-diagrams", description="Reliability diagram workspace")
    parser.add_argument("--data-dir", help="Directory of the JSON store (overrides RELIABILITY_DATA_DIR)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("projects", help="List projects")

    p = sub.add_parser("project-create", help="Create a project")
    p.add_argument("name")
    p.add_argument("--description", default="")

    p = sub.add_parser("project-update", help="Rename or describe a project")
    p.add_argument("project_id")
    p.add_argument("--name")
    p.add_argument("--description")

    p = sub.add_parser("project-delete", help="Delete a project and all its diagrams")
    p.add_argument("project_id")
    p.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    p = sub.add_parser("diagrams", help="List a project's diagrams")
    p.add_argument("project_id")

    p = sub.add_parser("diagram-create", help="Create an empty diagram")
    p.add_argument("project_id")
    p.add_argument("name")

    for name, help_text in (("diagram-show", "Print a diagram"), ("validate", "Report structural issues")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("project_id")
        p.add_argument("diagram_id")

    p = sub.add_parser("diagram-delete", help="Delete a diagram")
    p.add_argument("project_id")
    p.add_argument("diagram_id")
    p.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    p = sub.add_parser("node-add", help="Add a node")
    p.add_argument("project_id")
    p.add_argument("diagram_id")
    p.add_argument("type", choices=["basic", "series", "parallel", "k-out-of-n"])
    p.add_argument("--label")
    p.add_argument("--x", type=float, default=0.0)
    p.add_argument("--y", type=float, default=0.0)

    p = sub.add_parser("node-delete", help="Delete a node and its edges")
    p.add_argument("project_id")
    p.add_argument("diagram_id")
    p.add_argument("node_id")

    p = sub.add_parser("edge-add", help="Connect two nodes (rejected if it forms a cycle)")
    p.add_argument("project_id")
    p.add_argument("diagram_id")
    p.add_argument("source")
    p.add_argument("target")

    p = sub.add_parser("export", help="Write a diagram's export document")
    p.add_argument("project_id")
    p.add_argument("diagram_id")
    p.add_argument("--output", "-o")

    p = sub.add_parser("import", help="Import an export document")
    p.add_argument("project_id")
    p.add_argument("file_path")
    p.add_argument("--diagram-id", help="Replace this diagram instead of creating one")

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host")
    p.add_argument("--port", type=int)

    return parser


COMMANDS = {
    "projects": cmd_projects,
    "project-create": cmd_project_create,
    "project-update": cmd_project_update,
    "project-delete": cmd_project_delete,
    "diagrams": cmd_diagrams,
    "diagram-create": cmd_diagram_create,
    "diagram-show": cmd_diagram_show,
    "diagram-delete": cmd_diagram_delete,
    "validate": cmd_validate,
    "node-add": cmd_node_add,
    "node-delete": cmd_node_delete,
    "edge-add": cmd_edge_add,
    "export": cmd_export,
    "import": cmd_import,
}


def main(argv=None):
    args = build_parser().parse_args(argv)

    settings = Settings()
    if args.data_dir:
        settings = settings.model_copy(update={"data_dir": Path(args.data_dir)})
    configure_logging(settings.log_level)
    commands = WorkspaceCommands(settings.create_store())

    if args.command == "serve":
        cmd_serve(commands, args, settings)
        return

    try:
        COMMANDS[args.command](commands, args)
    except DiagramError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        _error_out(str(e))


if __name__ == "__main__":
    main()
