"""Typed non-raising results for configuration lookups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar, Union

OperationFailureCode = Literal[
    "config_file_missing",
    "project_not_found",
    "no_project_selected",
    "invalid_root",
    "config_file_invalid",
]

T = TypeVar("T")


@dataclass(frozen=True)
class OperationSuccess(Generic[T]):
    """Container for successful outcomes.

    Args:
        value: Typed payload, ``None`` for operations with nothing to return.
    """

    value: T
    success: Literal[True] = True


@dataclass(frozen=True)
class OperationFailure:
    """Deterministic failure result for expected lookup errors.

    Args:
        code: Stable failure code for callers and tests.
        message: Human-readable failure summary.
    """

    code: OperationFailureCode
    message: str
    success: Literal[False] = False


OperationResult = Union[OperationSuccess[T], OperationFailure]


def operation_success(value: T) -> OperationSuccess[T]:
    """Create a successful result.

    Example:
        >>> operation_success("demo").success
        True
    """
    return OperationSuccess(value=value)


def operation_failure(*, code: OperationFailureCode, message: str) -> OperationFailure:
    """Create a failure result.

    Example:
        >>> operation_failure(code="project_not_found", message="nope").success
        False
    """
    return OperationFailure(code=code, message=message)
