"""Resolve tasks to environments and ensure their workspaces exist.

A sub-unit never gets a workspace of its own: it shares the workspace of
its parent task, so every environment is keyed by a standalone or parent
task id.
"""

from __future__ import annotations

from typing import Protocol

from .config import ConfigurationManager
from .errors import (
    ConfigurationError,
    EnvironmentFailure,
    GitOperationFailedError,
    TaskNotFoundError,
    require_task_id,
)
from .exec import CommandExecutionError
from .log import get_logger
from .models import EnvironmentInfo, TaskIdentity, WorkspaceInfo
from .worktrees import WorkspaceManager

_log = get_logger("environment")


class TaskStore(Protocol):
    """Lookup of task identities for the active project."""

    def get(self, task_id: str) -> TaskIdentity | None: ...


def _describe(env_id: str, workspace: WorkspaceInfo) -> EnvironmentInfo:
    return EnvironmentInfo(
        id=env_id,
        path=workspace.path,
        branch=workspace.branch,
        exists=True,
        is_active=workspace.error is None,
    )


class EnvironmentResolver:
    """Facade that maps task ids to environments.

    Args:
        config: Source of the active project root.
        workspaces: Workspace lifecycle manager.
        tasks: Task identity lookup.
    """

    def __init__(
        self,
        config: ConfigurationManager,
        workspaces: WorkspaceManager,
        tasks: TaskStore,
    ) -> None:
        self._config = config
        self._workspaces = workspaces
        self._tasks = tasks

    def resolve_environment_id(self, task_id: str) -> str:
        """Return the environment id for ``task_id``.

        Sub-units resolve to their parent; standalone and parent tasks
        resolve to themselves.

        Raises:
            InvalidTaskIdError: ``task_id`` is empty.
            ConfigurationError: No project root is configured.
            TaskNotFoundError: The task store has no such task.
        """
        task_id = require_task_id(task_id, purpose="environment resolution")
        if self._config.get_project_root() is None:
            raise ConfigurationError("No valid project root found")
        try:
            task = self._tasks.get(task_id)
        except EnvironmentFailure:
            raise
        except Exception as exc:
            raise TaskNotFoundError(
                f"Failed to resolve environment for task {task_id}: {exc}",
                details={"task_id": task_id, "original_error": str(exc)},
            ) from exc
        if task is None:
            raise TaskNotFoundError(
                f"Task not found: {task_id}",
                details={"task_id": task_id},
                recovery_hint="Check the task id with your task list",
            )
        if task.parent_task:
            _log.debug(f"{task_id} is a sub-unit of {task.parent_task}")
            return task.parent_task
        return task_id

    def ensure_environment(self, env_id: str, *, dry_run: bool = False) -> EnvironmentInfo:
        """Return the environment for ``env_id``, creating its workspace if needed.

        A registered worktree whose directory is gone is pruned and created
        again. With ``dry_run`` nothing is created or pruned; a missing
        environment is described with ``exists=False`` and a stale one with
        ``is_active=False``.
        """
        env_id = require_task_id(env_id, purpose="environment creation")
        try:
            if self._workspaces.exists(env_id):
                existing = self._find(env_id)
                if existing is not None and (existing.error is None or dry_run):
                    return _describe(env_id, existing)
                if existing is not None:
                    _log.warning(
                        f"environment {env_id} is stale ({existing.error}), recreating"
                    )
                    self._workspaces.prune()
            if dry_run:
                return EnvironmentInfo(
                    id=env_id,
                    path=self._workspaces.get_workspace_path(env_id),
                    branch=self._workspaces.branching.get_branch_name(env_id),
                    exists=False,
                    is_active=False,
                )
            return _describe(env_id, self._workspaces.create(env_id))
        except CommandExecutionError as exc:
            raise GitOperationFailedError(
                f"Failed to ensure environment for {env_id}: {exc}",
                details={"env_id": env_id, "original_error": str(exc)},
            ) from exc

    def get_environment_info(self, env_id: str) -> EnvironmentInfo | None:
        """Return the registered environment for ``env_id``, or ``None``.

        Never raises: an empty id, a missing workspace and an infrastructure
        failure all read as "no environment".
        """
        if not isinstance(env_id, str) or not env_id.strip():
            return None
        env_id = env_id.strip()
        try:
            if not self._workspaces.exists(env_id):
                return None
            existing = self._find(env_id)
        except Exception as exc:
            _log.debug(f"environment lookup for {env_id} failed: {exc}")
            return None
        return _describe(env_id, existing) if existing is not None else None

    def get_task_environment_info(self, task_id: str) -> EnvironmentInfo | None:
        try:
            env_id = self.resolve_environment_id(task_id)
        except Exception as exc:
            _log.debug(f"could not resolve environment for {task_id!r}: {exc}")
            return None
        return self.get_environment_info(env_id)

    def ensure_task_environment(
        self, task_id: str, *, dry_run: bool = False
    ) -> EnvironmentInfo:
        return self.ensure_environment(
            self.resolve_environment_id(task_id), dry_run=dry_run
        )

    def _find(self, env_id: str) -> WorkspaceInfo | None:
        for workspace in self._workspaces.list():
            if workspace.task_id == env_id:
                return workspace
        return None
