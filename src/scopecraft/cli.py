"""Command-line entry point for ``scopecraft-env``."""

from __future__ import annotations

import argparse
from collections.abc import Callable
from typing import NoReturn

from . import __version__, commands
from .commands.list import LIST_FORMATS
from .errors import EnvironmentErrorCode, EnvironmentFailure
from .io import die, warn
from .log import set_level
from .services import Services, build_services

ERROR_TIPS: dict[EnvironmentErrorCode, str] = {
    "INVALID_TASK_ID": "task ids must be non-empty and cannot contain path separators",
    "TASK_NOT_FOUND": "check the task id against your task list",
    "WORKTREE_NOT_FOUND": "use 'scopecraft-env list' to see active environments",
    "WORKTREE_CONFLICT": "use --force to reuse the existing path",
    "GIT_OPERATION_FAILED": "run 'git worktree prune' in the main repository and retry",
    "CONFIGURATION_ERROR": "pass --root, set SCOPECRAFT_ROOT, or run inside a project",
    "PATH_RESOLUTION_FAILED": "rerun with --log-level debug for details",
}


def report_failure(exc: EnvironmentFailure) -> NoReturn:
    """Print ``exc`` with a code-specific tip and exit 1."""
    tip = exc.recovery_hint or ERROR_TIPS.get(exc.code)
    if tip:
        warn(f"{tip} [{exc.code}]")
    die(exc.message)


def run(args: argparse.Namespace, services: Services) -> None:
    """Run the parsed command, turning environment failures into exit 1."""
    handler: Callable[[argparse.Namespace, Services], None] = args.func
    try:
        handler(args, services)
    except EnvironmentFailure as exc:
        report_failure(exc)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scopecraft-env", description="Manage per-task git worktree environments."
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("--root", dest="root", help="project root (overrides SCOPECRAFT_ROOT)")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        help="trace, debug, info, warning or error (default: SCOPECRAFT_LOG_LEVEL)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_parser = subparsers.add_parser(
        "create", help="create or switch to the environment for a task"
    )
    create_parser.add_argument("task_id", help="task id (sub-tasks use their parent's)")
    create_parser.add_argument("--base", help="base branch for a new task branch")
    create_parser.add_argument(
        "--force", action="store_true", help="create even if the path already exists"
    )
    create_parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        help="show the environment that would be used without creating it",
    )
    create_parser.set_defaults(func=commands.create_environment)

    list_parser = subparsers.add_parser("list", help="list active environments")
    list_parser.add_argument(
        "--format", choices=LIST_FORMATS, default="table", help="output format"
    )
    list_parser.add_argument(
        "-v", "--verbose", action="store_true", help="include commits and inspection errors"
    )
    list_parser.set_defaults(func=commands.list_environments)

    close_parser = subparsers.add_parser("close", help="remove the environment for a task")
    close_parser.add_argument("task_id", help="task id")
    close_parser.add_argument(
        "-F", "--force", action="store_true", help="remove without confirmation"
    )
    close_parser.set_defaults(func=commands.close_environment)

    path_parser = subparsers.add_parser("path", help="print the environment path for a task")
    path_parser.add_argument("task_id", help="task id")
    path_parser.set_defaults(func=commands.show_path)

    root_parser = subparsers.add_parser("root", help="show the active project root")
    root_parser.add_argument("--project", help="select a project from the user config file")
    root_parser.add_argument(
        "--projects", action="store_true", help="list projects from the user config file"
    )
    root_parser.set_defaults(func=commands.show_root)
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.log_level:
        set_level(args.log_level)
    try:
        services = build_services(root=args.root)
    except EnvironmentFailure as exc:
        report_failure(exc)
    run(args, services)


if __name__ == "__main__":
    main()
