"""Git helper functions used by the workspace backend."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from pathlib import Path

from . import exec as exec_util
from .exec import CommandRequest, CommandResult, CommandRunner

LOCAL_REF_PREFIX = "refs/heads/"
DEFAULT_REMOTE = "origin"


@dataclass(frozen=True)
class CommitInfo:
    """Metadata for a single commit."""

    hash: str
    short_hash: str
    timestamp: int | None
    author: str
    subject: str

    @property
    def committed_at(self) -> dt.datetime | None:
        if self.timestamp is None:
            return None
        return dt.datetime.fromtimestamp(self.timestamp, tz=dt.timezone.utc)


def git_command(args: list[str], *, git_path: str | None = None) -> list[str]:
    """Build a git command using an optional executable path.

    Example:
        >>> git_command(["status"], git_path=" ")
        ['git', 'status']
    """
    resolved = git_path.strip() if isinstance(git_path, str) else ""
    if not resolved:
        resolved = "git"
    return [resolved, *args]


def _request(repo_dir: Path, args: list[str], git_path: str | None) -> CommandRequest:
    return CommandRequest(
        argv=tuple(git_command(["-C", str(repo_dir), *args], git_path=git_path))
    )


def run_git(
    repo_dir: Path,
    args: list[str],
    *,
    git_path: str | None = None,
    runner: CommandRunner | None = None,
) -> CommandResult | None:
    """Run git without raising; ``None`` means git is not installed."""
    return exec_util.run_command(_request(repo_dir, args, git_path), runner=runner)


def run_git_checked(
    repo_dir: Path,
    args: list[str],
    *,
    git_path: str | None = None,
    runner: CommandRunner | None = None,
) -> CommandResult:
    """Run git and raise ``CommandExecutionError`` unless it exits 0."""
    return exec_util.run_checked(_request(repo_dir, args, git_path), runner=runner)


def short_branch_name(ref: str) -> str:
    """Strip ``refs/heads/`` from a ref.

    Example:
        >>> short_branch_name("refs/heads/task/t1")
        'task/t1'
    """
    if ref.startswith(LOCAL_REF_PREFIX):
        return ref[len(LOCAL_REF_PREFIX) :]
    return ref


def git_current_branch(
    repo_dir: Path, *, git_path: str | None = None, runner: CommandRunner | None = None
) -> str | None:
    """Return the checked-out branch name, or ``None`` for a detached HEAD."""
    result = run_git(
        repo_dir, ["rev-parse", "--abbrev-ref", "HEAD"], git_path=git_path, runner=runner
    )
    if result is None or result.returncode != 0:
        return None
    branch = result.stdout.strip()
    if not branch or branch == "HEAD":
        return None
    return branch


def git_ref_exists(
    repo_dir: Path,
    ref: str,
    *,
    git_path: str | None = None,
    runner: CommandRunner | None = None,
) -> bool:
    """Check whether a git ref exists."""
    result = run_git(
        repo_dir,
        ["show-ref", "--verify", "--quiet", ref],
        git_path=git_path,
        runner=runner,
    )
    return result is not None and result.returncode == 0


def git_common_dir(
    repo_dir: Path, *, git_path: str | None = None, runner: CommandRunner | None = None
) -> Path | None:
    """Return the shared ``.git`` directory, even when run from a worktree."""
    result = run_git(
        repo_dir, ["rev-parse", "--git-common-dir"], git_path=git_path, runner=runner
    )
    if result is None or result.returncode != 0:
        return None
    raw = result.stdout.strip()
    if not raw:
        return None
    common = Path(raw)
    if not common.is_absolute():
        common = repo_dir / common
    return common.resolve()


def git_last_commit(
    repo_dir: Path,
    ref: str = "HEAD",
    *,
    git_path: str | None = None,
    runner: CommandRunner | None = None,
) -> CommitInfo | None:
    """Return metadata for the most recent commit at ``ref``.

    Raises:
        CommandExecutionError: git is missing or the log command failed.
    """
    result = run_git_checked(
        repo_dir,
        ["log", "-1", "--format=%H%x1f%h%x1f%ct%x1f%an%x1f%s", ref],
        git_path=git_path,
        runner=runner,
    )
    return parse_last_commit(result.stdout)


def parse_last_commit(raw: str) -> CommitInfo | None:
    """Parse ``git log -1`` output written with unit-separated fields.

    Example:
        >>> parse_last_commit("abc123\\x1fabc\\x1f1700000000\\x1fAda\\x1fInit").short_hash
        'abc'
    """
    text = raw.strip()
    if not text:
        return None
    parts = text.split("\x1f")
    if len(parts) < 5:
        return None
    full_hash, short_hash, timestamp, author, subject = parts[:5]
    try:
        parsed_timestamp: int | None = int(timestamp.strip())
    except ValueError:
        parsed_timestamp = None
    return CommitInfo(
        hash=full_hash.strip(),
        short_hash=short_hash.strip(),
        timestamp=parsed_timestamp,
        author=author.strip(),
        subject=subject.strip(),
    )


def git_status_porcelain(
    repo_dir: Path, *, git_path: str | None = None, runner: CommandRunner | None = None
) -> list[str]:
    """Return ``git status --porcelain`` lines.

    Raises:
        CommandExecutionError: git is missing or the status command failed.
    """
    result = run_git_checked(
        repo_dir, ["status", "--porcelain"], git_path=git_path, runner=runner
    )
    return [line for line in result.stdout.splitlines() if line.strip()]
