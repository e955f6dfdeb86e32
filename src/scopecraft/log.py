"""Leveled terminal logging for the environment core.

Components obtain a scoped logger with :func:`get_logger`; messages are
prefixed with the component name so subprocess traces from the workspace
backend can be told apart from configuration decisions.

Example:
    >>> get_logger("worktrees").name
    'worktrees'
"""

from __future__ import annotations

import os
import shlex
import sys
from collections.abc import Sequence
from enum import IntEnum

from rich.console import Console
from rich.text import Text

LOG_LEVEL_ENV = "SCOPECRAFT_LOG_LEVEL"
NO_COLOR_ENV = "SCOPECRAFT_NO_COLOR"


class LogLevel(IntEnum):
    TRACE = 10
    DEBUG = 20
    INFO = 30
    SUCCESS = 35
    WARNING = 40
    ERROR = 50


_LEVEL_BY_NAME = {
    "trace": LogLevel.TRACE,
    "debug": LogLevel.DEBUG,
    "info": LogLevel.INFO,
    "success": LogLevel.SUCCESS,
    "warning": LogLevel.WARNING,
    "warn": LogLevel.WARNING,
    "error": LogLevel.ERROR,
}
_STYLE_BY_LEVEL = {
    LogLevel.TRACE: "dim",
    LogLevel.DEBUG: "cyan",
    LogLevel.SUCCESS: "green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "bold red",
}
_DEFAULT_LEVEL = LogLevel.INFO
_configured_level: LogLevel | None = None


def parse_level(value: str | None) -> LogLevel:
    """Map a level name to a :class:`LogLevel`, defaulting to INFO.

    Example:
        >>> parse_level(" Debug ") is LogLevel.DEBUG
        True
        >>> parse_level("nonsense") is LogLevel.INFO
        True
    """
    if value is None:
        return _DEFAULT_LEVEL
    normalized = value.strip().lower()
    if not normalized:
        return _DEFAULT_LEVEL
    return _LEVEL_BY_NAME.get(normalized, _DEFAULT_LEVEL)


def configured_level() -> LogLevel:
    global _configured_level
    if _configured_level is None:
        _configured_level = parse_level(os.environ.get(LOG_LEVEL_ENV))
    return _configured_level


def set_level(value: str | None) -> None:
    """Set the active log level for every component."""
    global _configured_level
    _configured_level = parse_level(value)


def reset_level() -> None:
    """Forget any explicit level so the environment is consulted again."""
    global _configured_level
    _configured_level = None


def is_enabled(level: LogLevel) -> bool:
    return level >= configured_level()


def _console(*, stderr: bool) -> Console:
    return Console(
        file=sys.stderr if stderr else sys.stdout,
        soft_wrap=True,
        highlight=False,
        no_color=bool(os.environ.get("NO_COLOR") or os.environ.get(NO_COLOR_ENV)),
    )


def emit(
    level: LogLevel,
    message: str,
    *,
    component: str | None = None,
    style: str | None = None,
) -> None:
    if not is_enabled(level):
        return
    # Diagnostics never share stdout with command output.
    stderr = level is not LogLevel.INFO and level is not LogLevel.SUCCESS
    prefix = f"[{component}] " if component and level < LogLevel.INFO else ""
    text = Text(f"{prefix}{message}", style=style or _STYLE_BY_LEVEL.get(level, ""))
    _console(stderr=stderr).print(text)


def format_argv(argv: Sequence[str]) -> str:
    """Render a command line for trace output.

    Example:
        >>> format_argv(["git", "worktree", "add", "/tmp/my proj"])
        "git worktree add '/tmp/my proj'"
    """
    return " ".join(shlex.quote(part) for part in argv)


class ComponentLogger:
    """Logger bound to one component name."""

    def __init__(self, name: str) -> None:
        self.name = name

    def trace(self, message: str) -> None:
        emit(LogLevel.TRACE, message, component=self.name)

    def debug(self, message: str) -> None:
        emit(LogLevel.DEBUG, message, component=self.name)

    def info(self, message: str) -> None:
        emit(LogLevel.INFO, message, component=self.name)

    def success(self, message: str) -> None:
        emit(LogLevel.SUCCESS, message, component=self.name)

    def warning(self, message: str) -> None:
        emit(LogLevel.WARNING, message, component=self.name)

    def error(self, message: str) -> None:
        emit(LogLevel.ERROR, message, component=self.name)


_LOGGERS: dict[str, ComponentLogger] = {}


def get_logger(name: str) -> ComponentLogger:
    logger = _LOGGERS.get(name)
    if logger is None:
        logger = ComponentLogger(name)
        _LOGGERS[name] = logger
    return logger
