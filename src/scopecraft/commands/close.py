"""Implementation for the ``scopecraft-env close`` command."""

from __future__ import annotations

import argparse

from ..errors import WorktreeNotFoundError
from ..io import confirm, say
from ..services import Services


def close_environment(args: argparse.Namespace, services: Services) -> None:
    """Remove the environment for a task; its branch is kept.

    Without ``--force`` the user is asked to confirm, since removal discards
    uncommitted changes.

    Example:
        $ scopecraft-env close auth-0612-CD --force
    """
    task_id = args.task_id
    env_id = services.environments.resolve_environment_id(task_id)
    info = services.environments.get_environment_info(env_id)
    if info is None:
        raise WorktreeNotFoundError(
            f"No environment found for task '{task_id}'",
            details={"task_id": task_id, "env_id": env_id},
        )

    if not args.force:
        say(f"About to close environment for task: {task_id}")
        say(f"  Path: {info.path}")
        say(f"  Branch: {info.branch}")
        if not confirm("Remove this worktree, discarding uncommitted changes?"):
            say("Close cancelled")
            return

    services.workspaces.remove(env_id)
    say(f"Closed environment for task: {task_id}")
    if env_id != task_id:
        say(f"  Environment ID: {env_id} (parent task)")
    say(f"  Removed path: {info.path}")
    say(f"  Branch '{info.branch}' preserved")
