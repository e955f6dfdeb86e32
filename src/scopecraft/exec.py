"""Process runner used for every git invocation.

Runners return ``None`` when the executable cannot be found so callers can
tell "git is not installed" apart from "git refused".
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .log import format_argv, get_logger

TIMEOUT_RETURNCODE = 124

_log = get_logger("exec")


@dataclass(frozen=True)
class CommandRequest:
    argv: tuple[str, ...]
    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    timeout_seconds: float | None = None


@dataclass(frozen=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """Stripped stderr, falling back to stdout (git reports on either)."""
        return (self.stderr or self.stdout or "").strip()


class CommandRunner(Protocol):
    def run(self, request: CommandRequest) -> CommandResult | None: ...


class SubprocessCommandRunner:
    """Run requests with :func:`subprocess.run`, capturing text output."""

    def run(self, request: CommandRequest) -> CommandResult | None:
        _log.trace(f"run: {format_argv(request.argv)}")
        try:
            completed = subprocess.run(
                list(request.argv),
                cwd=request.cwd,
                env=request.env,
                check=False,
                capture_output=True,
                text=True,
                timeout=request.timeout_seconds,
            )
        except FileNotFoundError:
            return None
        except subprocess.TimeoutExpired as exc:
            _log.trace(f"timed out after {exc.timeout}s: {format_argv(request.argv)}")
            return CommandResult(
                argv=request.argv,
                returncode=TIMEOUT_RETURNCODE,
                stdout=exc.stdout if isinstance(exc.stdout, str) else "",
                stderr=exc.stderr if isinstance(exc.stderr, str) else "",
                timed_out=True,
            )
        if completed.returncode != 0:
            _log.trace(f"exit {completed.returncode}: {format_argv(request.argv)}")
        return CommandResult(
            argv=request.argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


_default_runner: CommandRunner = SubprocessCommandRunner()


@dataclass(frozen=True)
class CommandExecutionError(RuntimeError):
    """A command was missing, timed out or exited non-zero.

    ``result`` is ``None`` when the executable could not be started.
    """

    request: CommandRequest
    detail: str
    result: CommandResult | None = None

    def __str__(self) -> str:
        return self.detail


def describe_failure(request: CommandRequest, result: CommandResult | None) -> str:
    """Render a one-line summary plus any git output for a failed request.

    Example:
        >>> describe_failure(CommandRequest(argv=("git", "status")), None)
        'git: executable not found'
        >>> failed = CommandResult(("git", "fetch"), 1, "", "fatal: no remote\\n")
        >>> describe_failure(CommandRequest(argv=("git", "fetch")), failed)
        'git fetch exited with status 1\\nfatal: no remote'
    """
    command = format_argv(request.argv)
    if result is None:
        program = request.argv[0] if request.argv else "command"
        return f"{program}: executable not found"
    if result.timed_out:
        summary = f"{command} timed out after {request.timeout_seconds}s"
    else:
        summary = f"{command} exited with status {result.returncode}"
    return f"{summary}\n{result.output}" if result.output else summary


def run_command(
    request: CommandRequest, *, runner: CommandRunner | None = None
) -> CommandResult | None:
    return (runner or _default_runner).run(request)


def run_checked(
    request: CommandRequest, *, runner: CommandRunner | None = None
) -> CommandResult:
    """Run ``request`` and raise ``CommandExecutionError`` unless it succeeds."""
    result = run_command(request, runner=runner)
    if result is None or not result.ok:
        raise CommandExecutionError(
            request=request, detail=describe_failure(request, result), result=result
        )
    return result
