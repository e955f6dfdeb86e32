"""Helpers for task branch naming."""

from __future__ import annotations

import re

from .backend import WorkspaceBackend
from .config import ConfigurationManager
from .errors import require_task_id
from .exec import CommandExecutionError
from .log import get_logger

BRANCH_PREFIX = "task/"
DEFAULT_BASE_BRANCH = "main"

_log = get_logger("branching")


class BranchNamingService:
    """Map task ids to branch names and back.

    Example:
        >>> naming = BranchNamingService()
        >>> naming.get_branch_name("auth-05A")
        'task/auth-05A'
        >>> naming.extract_task_id_from_branch("refs/heads/task/auth-05A")
        'auth-05A'
        >>> naming.extract_task_id_from_branch("feature/login") is None
        True
    """

    def __init__(
        self,
        *,
        config: ConfigurationManager | None = None,
        backend: WorkspaceBackend | None = None,
        prefix: str = BRANCH_PREFIX,
        default_base_branch: str = DEFAULT_BASE_BRANCH,
    ) -> None:
        self._config = config
        self._backend = backend
        self.prefix = prefix
        self.default_base_branch = default_base_branch
        self._pattern = re.compile(rf"^{re.escape(prefix)}(.*)$")

    def get_branch_name(self, task_id: str) -> str:
        task_id = require_task_id(task_id, purpose="branch naming")
        return f"{self.prefix}{task_id}"

    def extract_task_id_from_branch(self, branch: str) -> str | None:
        if not branch:
            return None
        name = branch.strip()
        if name.startswith("refs/heads/"):
            name = name[len("refs/heads/") :]
        match = self._pattern.match(name)
        if match is None or not match.group(1):
            return None
        return match.group(1)

    def get_default_base_branch(self) -> str:
        """Return the main repository's current branch, else the default."""
        if self._backend is None:
            return self.default_base_branch
        if self._config is not None and self._config.get_project_root() is None:
            return self.default_base_branch
        try:
            current = self._backend.current_branch()
        except (CommandExecutionError, OSError, ValueError) as exc:
            _log.debug(f"could not read current branch: {exc}")
            return self.default_base_branch
        return current or self.default_base_branch
