"""Create, list and remove git worktrees that back task environments.

The manager keeps no registry of its own: every listing is recomputed from
``git worktree list``. Only per-path status and last-commit lookups are
cached, briefly, because they cost one subprocess each.
"""

from __future__ import annotations

import os
from pathlib import Path

from .backend import WorkspaceBackend, WorktreeRecord
from .branching import BranchNamingService
from .cache import TtlCache
from .config import ConfigurationManager
from .errors import (
    ConfigurationError,
    EnvironmentFailure,
    GitOperationFailedError,
    WorktreeConflictError,
    WorktreeNotFoundError,
    require_task_id,
)
from .exec import CommandExecutionError
from .git import DEFAULT_REMOTE, CommitInfo
from .log import get_logger
from .models import WorkspaceInfo, WorkspaceStatus
from .workspace_paths import WorkspacePathResolver

STATUS_TTL_SECONDS = 30.0

_log = get_logger("worktrees")


def _real(path: str | os.PathLike[str]) -> str:
    return os.path.realpath(os.fspath(path))


class WorkspaceManager:
    """Lifecycle of derived workspaces for the active project root.

    Args:
        config: Source of the active project root.
        backend: Version-control port; every git call goes through it.
        paths: Workspace path derivation; built from ``config`` when omitted.
        branching: Branch naming; built from ``config`` and ``backend`` when
            omitted.
        status_ttl_seconds: Lifetime of cached status lookups.
    """

    def __init__(
        self,
        config: ConfigurationManager,
        backend: WorkspaceBackend,
        *,
        paths: WorkspacePathResolver | None = None,
        branching: BranchNamingService | None = None,
        status_ttl_seconds: float | None = STATUS_TTL_SECONDS,
    ) -> None:
        self._config = config
        self._backend = backend
        self._paths = paths or WorkspacePathResolver(config, backend=backend)
        self._branching = branching or BranchNamingService(config=config, backend=backend)
        self._inspections: TtlCache[object] = TtlCache(ttl_seconds=status_ttl_seconds)

    @property
    def branching(self) -> BranchNamingService:
        return self._branching

    @property
    def paths(self) -> WorkspacePathResolver:
        return self._paths

    def _require_root(self) -> str:
        root = self._config.get_project_root()
        if root is None:
            raise ConfigurationError(
                "No project root configured",
                recovery_hint="Pass --root, set SCOPECRAFT_ROOT, or run inside a project",
            )
        return root

    def _git_failure(
        self, action: str, exc: CommandExecutionError, task_id: str | None = None
    ) -> GitOperationFailedError:
        details: dict[str, object] = {"original_error": str(exc)}
        if task_id is not None:
            details["task_id"] = task_id
        return GitOperationFailedError(f"Failed to {action}: {exc}", details=details)

    # -- lifecycle -------------------------------------------------------

    def create(
        self, task_id: str, *, force: bool = False, base: str | None = None
    ) -> WorkspaceInfo:
        """Create (or reuse) the workspace for ``task_id``.

        An existing workspace at the target path is returned unchanged unless
        ``force`` is set; a path occupied by anything else is a conflict.

        Raises:
            InvalidTaskIdError: ``task_id`` is empty.
            ConfigurationError: No project root is configured.
            WorktreeConflictError: The target path is not a known worktree.
            GitOperationFailedError: A git command failed.
        """
        task_id = require_task_id(task_id, purpose="worktree creation")
        self._require_root()
        target = Path(self._paths.get_workspace_path(task_id))
        branch = self._branching.get_branch_name(task_id)

        try:
            if target.exists() and not force:
                existing = self._find_by_path(target)
                if existing is None:
                    raise WorktreeConflictError(
                        f"Path exists but is not a worktree: {target}",
                        details={"task_id": task_id, "path": str(target)},
                        recovery_hint="Move the directory aside or pass --force",
                    )
                _log.debug(f"reusing worktree {target}")
                return self._annotate(existing)

            if self._backend.branch_exists(branch):
                self._backend.add_worktree(target, branch, new_branch=False, force=force)
            elif self._backend.branch_exists(branch, remote=True):
                self._backend.add_worktree(
                    target,
                    branch,
                    new_branch=True,
                    base=f"{DEFAULT_REMOTE}/{branch}",
                    force=force,
                )
            else:
                base_branch = base or self._branching.get_default_base_branch()
                self._backend.add_worktree(
                    target, branch, new_branch=True, base=base_branch, force=force
                )
            self._forget(target)
            commit = self._backend.latest_commit(target)
        except EnvironmentFailure:
            raise
        except CommandExecutionError as exc:
            raise self._git_failure("create worktree", exc, task_id) from exc

        _log.success(f"created worktree for {task_id} at {target}")
        return WorkspaceInfo(
            path=str(target),
            branch=branch,
            task_id=task_id,
            commit=commit.hash if commit else "unknown",
            status=WorkspaceStatus.CLEAN,
            last_activity=commit.committed_at if commit else None,
        )

    def remove(self, task_id: str) -> None:
        """Force-remove the workspace for ``task_id`` and prune metadata.

        Raises:
            InvalidTaskIdError: ``task_id`` is empty.
            ConfigurationError: No project root is configured.
            WorktreeNotFoundError: No live worktree sits at the task's path.
            GitOperationFailedError: A git command failed.
        """
        task_id = require_task_id(task_id, purpose="worktree removal")
        self._require_root()
        target = Path(self._paths.get_workspace_path(task_id))
        existing = self._find_by_path(target)
        if existing is None:
            raise WorktreeNotFoundError(
                f"Worktree not found for task {task_id}",
                details={"task_id": task_id, "path": str(target)},
                recovery_hint="Run 'scopecraft-env list' to see active environments",
            )
        try:
            self._backend.remove_worktree(Path(existing.path), force=True)
            self._backend.prune()
        except CommandExecutionError as exc:
            raise self._git_failure("remove worktree", exc, task_id) from exc
        finally:
            self._forget(existing.path)
        _log.success(f"removed worktree for {task_id}")

    def prune(self) -> None:
        """Drop metadata for worktrees whose directories are gone."""
        self._require_root()
        try:
            self._backend.prune()
        except CommandExecutionError as exc:
            raise self._git_failure("prune worktrees", exc) from exc
        self._inspections.clear()

    # -- queries ---------------------------------------------------------

    def list_raw(self) -> list[WorktreeRecord]:
        """Return live derived workspaces without inspecting them.

        The primary working tree and bare entries are not workspaces.
        """
        self._require_root()
        try:
            records = self._backend.list_worktrees()
        except CommandExecutionError as exc:
            raise self._git_failure("list worktrees", exc) from exc
        return [record for record in records[1:] if not record.bare]

    def list(self) -> list[WorkspaceInfo]:
        """Return every live workspace annotated with commit and status."""
        return [self._annotate(record) for record in self.list_raw()]

    def exists(self, task_id: str) -> bool:
        """Return whether a live workspace belongs to ``task_id``."""
        if not isinstance(task_id, str) or not task_id.strip():
            return False
        task_id = task_id.strip()
        return any(self._record_task_id(record) == task_id for record in self.list_raw())

    def get_workspace_path(self, task_id: str) -> str:
        return self._paths.get_workspace_path(task_id)

    def current(self, cwd: str | os.PathLike[str] | None = None) -> WorkspaceInfo | None:
        """Return the workspace containing ``cwd`` (default: the process cwd)."""
        here = Path(_real(cwd if cwd is not None else Path.cwd()))
        for record in self.list_raw():
            root = Path(_real(record.path))
            if here == root or root in here.parents:
                return self._annotate(record)
        return None

    # -- helpers ---------------------------------------------------------

    def _find_by_path(self, target: Path) -> WorktreeRecord | None:
        wanted = _real(target)
        for record in self.list_raw():
            if _real(record.path) == wanted:
                return record
        return None

    def _record_task_id(self, record: WorktreeRecord) -> str:
        return self._branching.extract_task_id_from_branch(record.branch) or record.branch

    def _annotate(self, record: WorktreeRecord) -> WorkspaceInfo:
        info = WorkspaceInfo(
            path=record.path,
            branch=record.branch,
            task_id=self._record_task_id(record),
            commit=record.head or "unknown",
        )
        path = Path(record.path)
        if not path.is_dir():
            return info.model_copy(update={"error": "worktree directory is missing"})
        try:
            status = self._status(path)
            commit = self._last_commit(path)
        except (CommandExecutionError, OSError) as exc:
            _log.debug(f"could not inspect {record.path}: {exc}")
            return info.model_copy(update={"error": str(exc)})
        update: dict[str, object] = {"status": status}
        if commit is not None:
            update["commit"] = commit.hash
            update["last_activity"] = commit.committed_at
        return info.model_copy(update=update)

    def _status(self, path: Path) -> WorkspaceStatus:
        value = self._inspections.get_or_compute(
            ("status", _real(path)), lambda: self._backend.status(path)
        )
        return value  # type: ignore[return-value]

    def _last_commit(self, path: Path) -> CommitInfo | None:
        key = ("last_commit", _real(path))
        if key in self._inspections:
            return self._inspections.get(key)  # type: ignore[return-value]
        commit = self._backend.latest_commit(path)
        if commit is not None:
            self._inspections.set(key, commit)
        return commit

    def _forget(self, path: str | os.PathLike[str]) -> None:
        real = _real(path)
        self._inspections.invalidate(("status", real))
        self._inspections.invalidate(("last_commit", real))
