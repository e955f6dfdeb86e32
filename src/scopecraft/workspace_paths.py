"""Filesystem locations for derived workspaces.

Workspaces live in a sibling directory of the active project root::

    /work/MyApp            -> /work/myapp.worktrees
    /work/MyApp (task t1)  -> /work/myapp.worktrees/t1
"""

from __future__ import annotations

import os
from pathlib import Path

from . import paths
from .backend import WorkspaceBackend
from .config import ConfigurationManager
from .errors import (
    ConfigurationError,
    EnvironmentFailure,
    InvalidTaskIdError,
    PathResolutionFailedError,
    require_task_id,
)
from .log import get_logger

_log = get_logger("workspace_paths")


def workspace_base_for(root: str | os.PathLike[str]) -> str:
    """Return the workspace base directory for a project root.

    Only the final path segment is lower-cased.

    Example:
        >>> workspace_base_for("/tmp/proj")
        '/tmp/proj.worktrees'
        >>> workspace_base_for("/Work/MyApp/")
        '/Work/myapp.worktrees'
    """
    normalized = os.path.abspath(os.fspath(root))
    leaf = os.path.basename(normalized).lower()
    return os.path.abspath(
        os.path.join(os.path.dirname(normalized), leaf + paths.WORKTREES_SUFFIX)
    )


def _check_path_segment(task_id: str) -> None:
    if task_id in {".", ".."} or "/" in task_id or "\\" in task_id or "\x00" in task_id:
        raise InvalidTaskIdError(
            f"Task ID cannot be used as a directory name: {task_id!r}",
            details={"task_id": task_id},
        )


class WorkspacePathResolver:
    """Derive workspace paths from the active project root."""

    def __init__(
        self,
        config: ConfigurationManager,
        *,
        backend: WorkspaceBackend | None = None,
    ) -> None:
        self._config = config
        self._backend = backend

    def _active_root(self) -> str:
        root = self._config.get_root_config()
        if not root.validated or not root.path:
            raise ConfigurationError(
                "No project root configured",
                source=root.source.value,
                path=root.path,
                recovery_hint="Pass --root, set SCOPECRAFT_ROOT, or run inside a project",
            )
        return root.path

    def get_workspace_base_path(self) -> str:
        root: str | None = None
        try:
            root = self._active_root()
            return workspace_base_for(root)
        except EnvironmentFailure:
            raise
        except Exception as exc:
            raise PathResolutionFailedError(
                f"Failed to derive workspace base path: {exc}",
                details={"root": root, "original_error": str(exc)},
            ) from exc

    def get_workspace_path(self, task_id: str) -> str:
        """Return ``<base>/<task_id>``; the task id is validated first."""
        task_id = require_task_id(task_id, purpose="workspace path resolution")
        _check_path_segment(task_id)
        base = self.get_workspace_base_path()
        try:
            return os.path.join(base, task_id)
        except (OSError, ValueError, TypeError) as exc:
            raise PathResolutionFailedError(
                f"Failed to derive workspace path: {exc}",
                details={"task_id": task_id, "original_error": str(exc)},
            ) from exc

    def get_project_name(self) -> str:
        """Return the lower-cased last segment of the active root."""
        return os.path.basename(self._active_root()).lower()

    def get_main_repository_root(self) -> str:
        """Return the primary repository root, even from inside a workspace."""
        root = self._active_root()
        if self._backend is None:
            return root
        try:
            common = self._backend.common_dir(Path(root))
        except OSError as exc:
            raise PathResolutionFailedError(
                f"Failed to locate main repository for {root}: {exc}",
                details={"root": root, "original_error": str(exc)},
            ) from exc
        if common is None:
            _log.trace(f"{root} is not a git checkout")
            return root
        return str(common.parent)
