"""Workspace backend port and its git implementation.

The workspace manager talks to version control only through
:class:`WorkspaceBackend`, so it can be exercised against an in-memory fake.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from . import git
from .exec import CommandRunner
from .log import get_logger
from .models import WorkspaceStatus

_log = get_logger("backend")

_CONFLICT_CODES = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}


@dataclass(frozen=True)
class WorktreeRecord:
    """One entry from ``git worktree list --porcelain``.

    ``branch`` is the short name; it is empty for detached or bare entries.
    """

    path: str
    head: str | None = None
    branch: str = ""
    bare: bool = False
    detached: bool = False
    locked: bool = False
    prunable: bool = False


class WorkspaceBackend(Protocol):
    """Version-control operations needed to manage derived workspaces."""

    def add_worktree(
        self,
        path: Path,
        branch: str,
        *,
        new_branch: bool,
        base: str | None = None,
        force: bool = False,
    ) -> None: ...

    def remove_worktree(self, path: Path, *, force: bool = True) -> None: ...

    def prune(self) -> None: ...

    def list_worktrees(self) -> list[WorktreeRecord]: ...

    def branch_exists(self, branch: str, *, remote: bool = False) -> bool: ...

    def current_branch(self) -> str | None: ...

    def latest_commit(self, path: Path) -> git.CommitInfo | None: ...

    def status(self, path: Path) -> WorkspaceStatus: ...

    def common_dir(self, path: Path) -> Path | None: ...


def parse_worktree_porcelain(output: str) -> list[WorktreeRecord]:
    """Group ``git worktree list --porcelain`` output into records.

    Records are separated by blank lines; attributes this module does not
    know are ignored.

    Example:
        >>> records = parse_worktree_porcelain(
        ...     "worktree /repo\\nHEAD abc\\nbranch refs/heads/main\\n\\n"
        ...     "worktree /repo.worktrees/t1\\nHEAD def\\nbranch refs/heads/task/t1\\n"
        ... )
        >>> [(r.path, r.branch) for r in records]
        [('/repo', 'main'), ('/repo.worktrees/t1', 'task/t1')]
    """
    records: list[WorktreeRecord] = []
    current: dict[str, object] | None = None

    def flush() -> None:
        if current is not None and current.get("path"):
            records.append(WorktreeRecord(**current))  # type: ignore[arg-type]

    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line:
            flush()
            current = None
            continue
        key, _, value = line.partition(" ")
        if key == "worktree":
            flush()
            current = {"path": value.strip()}
            continue
        if current is None:
            continue
        if key == "HEAD":
            current["head"] = value.strip() or None
        elif key == "branch":
            current["branch"] = git.short_branch_name(value.strip())
        elif key == "bare":
            current["bare"] = True
        elif key == "detached":
            current["detached"] = True
        elif key == "locked":
            current["locked"] = True
        elif key == "prunable":
            current["prunable"] = True
    flush()
    return records


def classify_status(lines: list[str]) -> WorkspaceStatus:
    """Classify porcelain status lines; conflicts win over edits.

    Example:
        >>> classify_status([])
        <WorkspaceStatus.CLEAN: 'clean'>
        >>> classify_status(["?? notes.txt"])
        <WorkspaceStatus.UNTRACKED: 'untracked'>
        >>> classify_status(["?? notes.txt", " M app.py"])
        <WorkspaceStatus.MODIFIED: 'modified'>
        >>> classify_status(["UU app.py", " M other.py"])
        <WorkspaceStatus.CONFLICT: 'conflict'>
    """
    codes = [line[:2] for line in lines if line.strip()]
    if not codes:
        return WorkspaceStatus.CLEAN
    if any(code in _CONFLICT_CODES for code in codes):
        return WorkspaceStatus.CONFLICT
    if any(code != "??" for code in codes):
        return WorkspaceStatus.MODIFIED
    return WorkspaceStatus.UNTRACKED


class GitWorkspaceBackend:
    """``WorkspaceBackend`` backed by the ``git`` executable.

    Args:
        repo_root: Repository to operate on, or a callable returning it so
            the backend follows root changes made after construction.
        git_path: Optional git executable.
        runner: Command runner; defaults to the subprocess runner.
    """

    def __init__(
        self,
        repo_root: str | os.PathLike[str] | Callable[[], str | None],
        *,
        git_path: str | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self._repo_root = repo_root
        self._git_path = git_path
        self._runner = runner

    @property
    def repo_root(self) -> Path:
        root = self._repo_root() if callable(self._repo_root) else self._repo_root
        if not root:
            raise ValueError("no repository root configured")
        return Path(root)

    def _checked(self, args: list[str], *, cwd: Path | None = None) -> str:
        result = git.run_git_checked(
            cwd or self.repo_root, args, git_path=self._git_path, runner=self._runner
        )
        return result.stdout

    def add_worktree(
        self,
        path: Path,
        branch: str,
        *,
        new_branch: bool,
        base: str | None = None,
        force: bool = False,
    ) -> None:
        args = ["worktree", "add"]
        if force:
            args.append("--force")
        if new_branch:
            args.extend(["-b", branch, str(path)])
            if base:
                args.append(base)
        else:
            args.extend([str(path), branch])
        _log.debug(f"adding worktree {path} on {branch}")
        self._checked(args)

    def remove_worktree(self, path: Path, *, force: bool = True) -> None:
        args = ["worktree", "remove"]
        if force:
            args.append("--force")
        args.append(str(path))
        _log.debug(f"removing worktree {path}")
        self._checked(args)

    def prune(self) -> None:
        self._checked(["worktree", "prune"])

    def list_worktrees(self) -> list[WorktreeRecord]:
        return parse_worktree_porcelain(self._checked(["worktree", "list", "--porcelain"]))

    def branch_exists(self, branch: str, *, remote: bool = False) -> bool:
        ref = (
            f"refs/remotes/{git.DEFAULT_REMOTE}/{branch}"
            if remote
            else f"{git.LOCAL_REF_PREFIX}{branch}"
        )
        return git.git_ref_exists(
            self.repo_root, ref, git_path=self._git_path, runner=self._runner
        )

    def current_branch(self) -> str | None:
        return git.git_current_branch(
            self.repo_root, git_path=self._git_path, runner=self._runner
        )

    def latest_commit(self, path: Path) -> git.CommitInfo | None:
        return git.git_last_commit(path, git_path=self._git_path, runner=self._runner)

    def status(self, path: Path) -> WorkspaceStatus:
        lines = git.git_status_porcelain(path, git_path=self._git_path, runner=self._runner)
        return classify_status(lines)

    def common_dir(self, path: Path) -> Path | None:
        return git.git_common_dir(path, git_path=self._git_path, runner=self._runner)
