"""Task identity lookups for environment resolution.

Only identities are read here: which tasks exist and which parent task a
sub-unit belongs to. Task documents are never parsed.

On-disk layout of a project's centralized tasks directory::

    tasks/
      current/
        fix-login-0612-AB.task.md        standalone task
        auth-0612-CD/                    parent task folder
          _overview.md
          01-setup.task.md               sub-unit of auth-0612-CD
      backlog/ ...
      archive/2024-05/ ...
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from .log import get_logger
from .models import TaskIdentity

TASK_SUFFIX = ".task.md"
OVERVIEW_FILENAME = "_overview.md"
WORKFLOW_FOLDERS = ("current", "backlog", "archive")

_log = get_logger("task_store")


class InMemoryTaskStore:
    """Task store backed by a dict, for tests and embedding callers.

    Example:
        >>> store = InMemoryTaskStore(
        ...     [TaskIdentity(id="p1", is_parent_task=True),
        ...      TaskIdentity(id="s1", parent_task="p1")]
        ... )
        >>> store.get("s1").parent_task
        'p1'
        >>> store.get("missing") is None
        True
    """

    def __init__(self, tasks: Iterable[TaskIdentity] = ()) -> None:
        self._tasks = {task.id: task for task in tasks}

    def add(self, task: TaskIdentity) -> None:
        self._tasks[task.id] = task

    def get(self, task_id: str) -> TaskIdentity | None:
        return self._tasks.get(task_id)


def task_id_from_filename(path: str | os.PathLike[str]) -> str:
    """Return the task id a file represents.

    Example:
        >>> task_id_from_filename("current/auth-0612-CD/_overview.md")
        'auth-0612-CD'
        >>> task_id_from_filename("current/fix-login-0612-AB.task.md")
        'fix-login-0612-AB'
    """
    candidate = Path(path)
    if candidate.name == OVERVIEW_FILENAME:
        return candidate.parent.name
    if candidate.name.endswith(TASK_SUFFIX):
        return candidate.name[: -len(TASK_SUFFIX)]
    return candidate.name


class DirectoryTaskStore:
    """Task store that reads identities from a tasks directory.

    Args:
        tasks_dir: Tasks directory, or a callable returning it so lookups
            follow the active project root.
    """

    def __init__(self, tasks_dir: str | os.PathLike[str] | Callable[[], str]) -> None:
        self._tasks_dir = tasks_dir

    @property
    def tasks_dir(self) -> Path:
        value = self._tasks_dir() if callable(self._tasks_dir) else self._tasks_dir
        return Path(value)

    def get(self, task_id: str) -> TaskIdentity | None:
        for identity in self.iter_identities():
            if identity.id == task_id:
                return identity
        return None

    def iter_identities(self) -> Iterator[TaskIdentity]:
        root = self.tasks_dir
        if not root.is_dir():
            _log.debug(f"tasks directory {root} does not exist")
            return
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(name for name in dirnames if not name.startswith("."))
            current = Path(dirpath)
            parent_folder = self._is_parent_folder(root, current, filenames)
            if parent_folder:
                yield TaskIdentity(id=current.name, is_parent_task=True)
            for filename in sorted(filenames):
                if not filename.endswith(TASK_SUFFIX):
                    continue
                yield TaskIdentity(
                    id=task_id_from_filename(filename),
                    parent_task=current.name if parent_folder else None,
                )

    @staticmethod
    def _is_parent_folder(root: Path, directory: Path, filenames: list[str]) -> bool:
        if OVERVIEW_FILENAME not in filenames:
            return False
        relative = directory.relative_to(root).parts
        # The tasks root and workflow folders are never parent tasks.
        if not relative or (len(relative) == 1 and relative[0] in WORKFLOW_FOLDERS):
            return False
        return True
