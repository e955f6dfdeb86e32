"""Implementation for the ``scopecraft-env create`` command."""

from __future__ import annotations

import argparse

from ..io import say
from ..services import Services


def create_environment(args: argparse.Namespace, services: Services) -> None:
    """Create or switch to the environment for a task.

    Sub-units are routed to their parent task's environment.

    Example:
        $ scopecraft-env create auth-0612-CD --base develop
    """
    task_id = args.task_id
    env_id = services.environments.resolve_environment_id(task_id)
    existed = services.workspaces.exists(env_id)

    if args.dry_run:
        info = services.environments.ensure_environment(env_id, dry_run=True)
        state = "exists" if info.exists else "would be created"
        say(f"Environment for task {task_id} {state}")
        say(f"  Path: {info.path}")
        say(f"  Branch: {info.branch}")
        return

    if existed and not args.force:
        info = services.environments.ensure_environment(env_id)
        say(f"Switched to existing environment: {task_id}")
        path, branch = info.path, info.branch
    else:
        workspace = services.workspaces.create(env_id, force=args.force, base=args.base)
        say(f"Created environment for task: {task_id}")
        if env_id != task_id:
            say(f"  Environment ID: {env_id} (parent task)")
        path, branch = workspace.path, workspace.branch

    say(f"  Path: {path}")
    say(f"  Branch: {branch}")
    say("")
    say("Next steps:")
    say(f'  cd "{path}"')
    if env_id != task_id:
        say("")
        say(f"Note: this environment is shared by every sub-task of '{env_id}'")
