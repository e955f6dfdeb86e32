"""Implementation for the ``scopecraft-env root`` command."""

from __future__ import annotations

import argparse

from ..io import die, say
from ..path_resolver import PathKind
from ..services import Services


def show_root(args: argparse.Namespace, services: Services) -> None:
    """Show the active project root and where it came from.

    Example:
        $ scopecraft-env root --project demo
    """
    config = services.config

    if args.projects:
        projects = config.get_projects()
        if not projects:
            say(f"No projects configured in {config.config_file_path}")
            return
        for project in projects:
            say(f"{project.name}\t{project.path}")
        return

    if args.project:
        result = config.set_root_from_config(args.project)
        if not result.success:
            die(f"{result.message} ({result.code})")

    root = config.get_root_config()
    say(f"Root: {root.path or '(none)'}")
    say(f"Source: {root.source.value}")
    say(f"Validated: {'yes' if root.validated else 'no'}")
    if root.project_name:
        say(f"Project: {root.project_name}")
    if not root.validated:
        return

    context = services.paths.context()
    say(f"Main repository: {context.main_repo_root}")
    if context.in_worktree:
        say(f"Worktree: {context.worktree_root}")
    say(f"Worktrees: {services.workspaces.paths.get_workspace_base_path()}")
    for kind in PathKind:
        say(f"{kind.value.capitalize()}: {services.paths.resolve(kind)}")
