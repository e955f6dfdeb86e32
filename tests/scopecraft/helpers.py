# ruff: noqa: E402

from __future__ import annotations

import shutil
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from scopecraft.backend import WorktreeRecord
from scopecraft.config import ConfigurationManager
from scopecraft.exec import CommandExecutionError, CommandRequest
from scopecraft.git import CommitInfo
from scopecraft.models import TaskIdentity, WorkspaceStatus
from scopecraft.task_store import InMemoryTaskStore

MAIN_HEAD = "0" * 40
COMMIT_TIMESTAMP = 1_700_000_000


def make_project(base: Path, name: str = "proj") -> Path:
    """Create a directory that validates as a project root."""
    root = base / name
    (root / ".tasks").mkdir(parents=True)
    return root


def make_config(base: Path, root: Path | None = None) -> ConfigurationManager:
    manager = ConfigurationManager(
        environ={},
        config_file_path=base / "missing-config.json",
        cwd=lambda: base,
        home=base / "home",
    )
    if root is not None:
        manager.set_root_from_cli(root)
    return manager


def make_task_store() -> InMemoryTaskStore:
    return InMemoryTaskStore(
        [
            TaskIdentity(id="solo"),
            TaskIdentity(id="feature", is_parent_task=True),
            TaskIdentity(id="feature-01", parent_task="feature"),
            TaskIdentity(id="feature-02", parent_task="feature"),
        ]
    )


def git_error(name: str, detail: str = "fatal: simulated failure") -> CommandExecutionError:
    return CommandExecutionError(
        request=CommandRequest(argv=("git", name)), detail=f"{name}: {detail}"
    )


class FakeBackend:
    """In-memory stand-in for ``GitWorkspaceBackend``.

    Worktree directories are created on disk so path checks behave like
    they do against git.
    """

    def __init__(
        self,
        repo_root: Path,
        *,
        current_branch: str | None = "main",
        local_branches: tuple[str, ...] = ("main",),
        remote_branches: tuple[str, ...] = (),
    ) -> None:
        self.repo_root = Path(repo_root)
        self._current_branch = current_branch
        self.local_branches = set(local_branches)
        self.remote_branches = set(remote_branches)
        self.worktrees: dict[str, str] = {}
        self.statuses: dict[str, WorkspaceStatus] = {}
        self.failing: set[str] = set()
        self.calls: list[tuple[object, ...]] = []

    def _enter(self, name: str, *args: object) -> None:
        self.calls.append((name, *args))
        if name in self.failing:
            raise git_error(name)

    def call_names(self) -> list[str]:
        return [str(call[0]) for call in self.calls]

    def add_worktree(
        self,
        path: Path,
        branch: str,
        *,
        new_branch: bool,
        base: str | None = None,
        force: bool = False,
    ) -> None:
        self._enter("add_worktree", str(path), branch, new_branch, base, force)
        if new_branch and branch in self.local_branches:
            raise git_error("add_worktree", f"a branch named '{branch}' already exists")
        if str(path) in self.worktrees:
            raise git_error("add_worktree", f"'{path}' already exists")
        Path(path).mkdir(parents=True, exist_ok=True)
        self.local_branches.add(branch)
        self.worktrees[str(path)] = branch

    def remove_worktree(self, path: Path, *, force: bool = True) -> None:
        self._enter("remove_worktree", str(path), force)
        if str(path) not in self.worktrees:
            raise git_error("remove_worktree", f"'{path}' is not a working tree")
        shutil.rmtree(path, ignore_errors=True)
        del self.worktrees[str(path)]

    def prune(self) -> None:
        self._enter("prune")
        for path in [path for path in self.worktrees if not Path(path).exists()]:
            del self.worktrees[path]

    def list_worktrees(self) -> list[WorktreeRecord]:
        self._enter("list_worktrees")
        records = [
            WorktreeRecord(
                path=str(self.repo_root), head=MAIN_HEAD, branch=self._current_branch or ""
            )
        ]
        for path, branch in self.worktrees.items():
            records.append(WorktreeRecord(path=path, head="f" * 40, branch=branch))
        return records

    def branch_exists(self, branch: str, *, remote: bool = False) -> bool:
        self._enter("branch_exists", branch, remote)
        pool = self.remote_branches if remote else self.local_branches
        return branch in pool

    def current_branch(self) -> str | None:
        self._enter("current_branch")
        return self._current_branch

    def latest_commit(self, path: Path) -> CommitInfo | None:
        self._enter("latest_commit", str(path))
        branch = self.worktrees.get(str(path), "main")
        digest = (branch.replace("/", "") * 40)[:40]
        return CommitInfo(
            hash=digest,
            short_hash=digest[:7],
            timestamp=COMMIT_TIMESTAMP,
            author="Ada",
            subject=f"work on {branch}",
        )

    def status(self, path: Path) -> WorkspaceStatus:
        self._enter("status", str(path))
        return self.statuses.get(str(path), WorkspaceStatus.CLEAN)

    def common_dir(self, path: Path) -> Path | None:
        self._enter("common_dir", str(path))
        if Path(path) == self.repo_root or str(path) in self.worktrees:
            return self.repo_root / ".git"
        return None
