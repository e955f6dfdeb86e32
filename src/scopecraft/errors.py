"""Environment failure contracts.

Operations in the ensure/create/remove family raise ``EnvironmentFailure`` on
expected domain and runtime failures; each subclass pins one stable code so
callers can map codes to their own presentation (CLI exit messages, UI
banners). Programmer bugs raise normal exceptions. Validation failures are
raised before any subprocess or filesystem I/O happens.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

EnvironmentErrorCode = Literal[
    "INVALID_TASK_ID",
    "TASK_NOT_FOUND",
    "WORKTREE_NOT_FOUND",
    "WORKTREE_CONFLICT",
    "GIT_OPERATION_FAILED",
    "CONFIGURATION_ERROR",
    "PATH_RESOLUTION_FAILED",
]

ERROR_CODES: tuple[EnvironmentErrorCode, ...] = (
    "INVALID_TASK_ID",
    "TASK_NOT_FOUND",
    "WORKTREE_NOT_FOUND",
    "WORKTREE_CONFLICT",
    "GIT_OPERATION_FAILED",
    "CONFIGURATION_ERROR",
    "PATH_RESOLUTION_FAILED",
)


class EnvironmentFailure(Exception):
    """Expected failure raised by the environment core.

    Use ``raise EnvironmentFailure(...) from exc`` to chain a causing
    exception; it stays available as ``__cause__`` and its text is kept in
    ``details["original_error"]`` for diagnostics.

    Example:
        >>> err = WorktreeNotFoundError("gone", details={"task_id": "t1"})
        >>> (err.code, err.details["task_id"])
        ('WORKTREE_NOT_FOUND', 't1')
    """

    def __init__(
        self,
        code: EnvironmentErrorCode,
        message: str,
        *,
        details: Mapping[str, object] | None = None,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: dict[str, object] = dict(details or {})
        self.recovery_hint = recovery_hint

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class InvalidTaskIdError(EnvironmentFailure):
    """Task id was empty or malformed."""

    def __init__(
        self,
        message: str,
        *,
        details: Mapping[str, object] | None = None,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(
            "INVALID_TASK_ID", message, details=details, recovery_hint=recovery_hint
        )


class TaskNotFoundError(EnvironmentFailure):
    """Task store has no record for the id."""

    def __init__(
        self,
        message: str,
        *,
        details: Mapping[str, object] | None = None,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(
            "TASK_NOT_FOUND", message, details=details, recovery_hint=recovery_hint
        )


class WorktreeNotFoundError(EnvironmentFailure):
    """No live worktree matches the requested task."""

    def __init__(
        self,
        message: str,
        *,
        details: Mapping[str, object] | None = None,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(
            "WORKTREE_NOT_FOUND", message, details=details, recovery_hint=recovery_hint
        )


class WorktreeConflictError(EnvironmentFailure):
    """Target path is occupied by something that is not a known worktree."""

    def __init__(
        self,
        message: str,
        *,
        details: Mapping[str, object] | None = None,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(
            "WORKTREE_CONFLICT", message, details=details, recovery_hint=recovery_hint
        )


class GitOperationFailedError(EnvironmentFailure):
    """A git subprocess failed or could not be started."""

    def __init__(
        self,
        message: str,
        *,
        details: Mapping[str, object] | None = None,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(
            "GIT_OPERATION_FAILED", message, details=details, recovery_hint=recovery_hint
        )


class ConfigurationError(EnvironmentFailure):
    """No validated project root, or an explicit root failed validation.

    Attributes:
        source: Configuration source that produced the failure, when known.
        path: Offending path, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        path: str | None = None,
        details: Mapping[str, object] | None = None,
        recovery_hint: str | None = None,
    ) -> None:
        merged = dict(details or {})
        if source is not None:
            merged.setdefault("source", source)
        if path is not None:
            merged.setdefault("path", path)
        super().__init__(
            "CONFIGURATION_ERROR", message, details=merged, recovery_hint=recovery_hint
        )
        self.source = source
        self.path = path


class PathResolutionFailedError(EnvironmentFailure):
    """Path derivation broke for a reason other than bad input."""

    def __init__(
        self,
        message: str,
        *,
        details: Mapping[str, object] | None = None,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(
            "PATH_RESOLUTION_FAILED",
            message,
            details=details,
            recovery_hint=recovery_hint,
        )


def require_task_id(task_id: object, *, purpose: str) -> str:
    """Return ``task_id`` stripped, or raise ``InvalidTaskIdError``.

    Example:
        >>> require_task_id(" t1 ", purpose="lookup")
        't1'
    """
    if not isinstance(task_id, str) or not task_id.strip():
        raise InvalidTaskIdError(
            f"Task ID is required for {purpose}", details={"task_id": task_id}
        )
    return task_id.strip()
