"""Implementation for the ``scopecraft-env path`` command."""

from __future__ import annotations

import argparse

from ..io import die, say
from ..services import Services


def show_path(args: argparse.Namespace, services: Services) -> None:
    """Print only the environment path, for shell integration.

    Example:
        $ cd "$(scopecraft-env path auth-0612-CD)"
    """
    env_id = services.environments.resolve_environment_id(args.task_id)
    info = services.environments.get_environment_info(env_id)
    if info is None:
        die(f"no environment found for task '{args.task_id}'")
    if not info.is_active:
        die(f"environment directory is missing: {info.path} (run 'create' to restore it)")
    say(info.path)
