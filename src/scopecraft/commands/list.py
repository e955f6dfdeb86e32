"""Implementation for the ``scopecraft-env list`` command."""

from __future__ import annotations

import argparse
import json

from ..io import say
from ..models import WorkspaceInfo
from ..services import Services

LIST_FORMATS = ("table", "json", "minimal")

_SHORT_COMMIT = 8


def render_table(workspaces: list[WorkspaceInfo], *, verbose: bool = False) -> list[str]:
    """Render workspaces as aligned columns.

    Example:
        >>> info = WorkspaceInfo(path="/w/app.worktrees/t1", branch="task/t1", task_id="t1")
        >>> render_table([info])[0]
        'task  branch   status   path'
    """
    header = ["task", "branch", "status", "path"]
    if verbose:
        header.insert(3, "commit")
    rows = [tuple(header)]
    for item in workspaces:
        row = [item.task_id, item.branch or "(detached)", item.status.value, item.path]
        if verbose:
            row.insert(3, item.commit[:_SHORT_COMMIT])
        rows.append(tuple(row))
    widths = [max(len(row[index]) for row in rows) for index in range(len(rows[0]))]
    return [
        "  ".join(value.ljust(widths[index]) for index, value in enumerate(row)).rstrip()
        for row in rows
    ]


def list_environments(args: argparse.Namespace, services: Services) -> None:
    """List live environments for the active project.

    Example:
        $ scopecraft-env list --format minimal
    """
    workspaces = services.workspaces.list()
    output_format = args.format or "table"

    if output_format == "json":
        payload = [item.model_dump(mode="json") for item in workspaces]
        say(json.dumps(payload, indent=2))
        return

    if output_format == "minimal":
        for item in workspaces:
            say(f"{item.task_id}\t{item.path}")
        return

    if not workspaces:
        say("No active environments found.")
        say("Create one with: scopecraft-env create <task-id>")
        return

    for line in render_table(workspaces, verbose=args.verbose):
        say(line)
    if args.verbose:
        for item in workspaces:
            if item.error:
                say(f"{item.task_id}: {item.error}")
    noun = "environment" if len(workspaces) == 1 else "environments"
    say(f"Total: {len(workspaces)} active {noun}")
