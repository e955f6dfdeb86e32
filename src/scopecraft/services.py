"""Wire the environment core together for command-line use."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .backend import GitWorkspaceBackend, WorkspaceBackend
from .config import ConfigurationManager
from .environment import EnvironmentResolver, TaskStore
from .path_resolver import PathKind, PathResolver
from .task_store import DirectoryTaskStore
from .worktrees import WorkspaceManager


@dataclass(frozen=True)
class Services:
    """Components shared by every command for one invocation."""

    config: ConfigurationManager
    backend: WorkspaceBackend
    paths: PathResolver
    workspaces: WorkspaceManager
    environments: EnvironmentResolver


def build_services(
    *,
    root: str | os.PathLike[str] | None = None,
    environ: Mapping[str, str] | None = None,
    backend: WorkspaceBackend | None = None,
    tasks: TaskStore | None = None,
    git_path: str | None = None,
) -> Services:
    """Construct the services for one invocation.

    Raises:
        ConfigurationError: ``root`` (or ``SCOPECRAFT_ROOT`` when no root
            is given) is set but is not a project root.
    """
    config = ConfigurationManager(environ=environ)
    if root is not None:
        config.set_root_from_cli(root)
    else:
        config.set_root_from_environment()
    active_backend = backend or GitWorkspaceBackend(config.get_project_root, git_path=git_path)
    resolver = PathResolver(config, backend=active_backend)
    task_store = tasks or DirectoryTaskStore(lambda: resolver.resolve(PathKind.TASKS))
    workspaces = WorkspaceManager(config, active_backend)
    return Services(
        config=config,
        backend=active_backend,
        paths=resolver,
        workspaces=workspaces,
        environments=EnvironmentResolver(config, workspaces, task_store),
    )
