"""Resolve per-kind data locations for an execution context.

Repository-local kinds (templates, modes) follow the directory the process
runs in; centralized kinds (tasks, sessions, config) follow the main
repository root, so every derived workspace of one repository reads and
writes the same centralized data.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from . import paths
from .backend import WorkspaceBackend
from .cache import TtlCache
from .config import ConfigurationManager
from .errors import ConfigurationError
from .log import get_logger

_log = get_logger("path_resolver")


class PathKind(str, Enum):
    TEMPLATES = "templates"
    MODES = "modes"
    TASKS = "tasks"
    SESSIONS = "sessions"
    CONFIG = "config"


@dataclass(frozen=True)
class PathContext:
    """Where the process runs and which repository it belongs to.

    Attributes:
        execution_root: Directory the process runs in.
        main_repo_root: Root of the primary repository.
        worktree_root: Same as ``execution_root`` inside a derived
            workspace, otherwise ``None``.
        user_home: Home directory holding the centralized store.
    """

    execution_root: str
    main_repo_root: str
    worktree_root: str | None
    user_home: str

    @property
    def in_worktree(self) -> bool:
        return self.worktree_root is not None


PathStrategy = Callable[[PathContext], str]


def _repo_templates(context: PathContext) -> str:
    return os.path.join(
        context.execution_root, paths.REPO_TASKS_DIRNAME, paths.REPO_TEMPLATES_DIRNAME
    )


def _global_templates(context: PathContext) -> str:
    return str(paths.global_templates_dir(context.user_home))


def _repo_modes(context: PathContext) -> str:
    return os.path.join(
        context.execution_root, paths.REPO_TASKS_DIRNAME, paths.REPO_MODES_DIRNAME
    )


def _central_tasks(context: PathContext) -> str:
    return str(paths.task_storage_root(context.main_repo_root, context.user_home))


def _central_sessions(context: PathContext) -> str:
    return str(paths.session_storage_root(context.main_repo_root, context.user_home))


def _central_config(context: PathContext) -> str:
    return str(paths.config_storage_root(context.main_repo_root, context.user_home))


def _legacy_config(context: PathContext) -> str:
    return os.path.join(context.execution_root, paths.REPO_TASKS_DIRNAME)


PATH_STRATEGIES: dict[PathKind, tuple[PathStrategy, ...]] = {
    PathKind.TEMPLATES: (_repo_templates, _global_templates),
    PathKind.MODES: (_repo_modes,),
    PathKind.TASKS: (_central_tasks,),
    PathKind.SESSIONS: (_central_sessions,),
    PathKind.CONFIG: (_central_config, _legacy_config),
}


def _same_path(left: str, right: str) -> bool:
    return os.path.realpath(left) == os.path.realpath(right)


def create_path_context(
    project_root: str | os.PathLike[str],
    *,
    override: bool = False,
    backend: WorkspaceBackend | None = None,
    home: str | os.PathLike[str] | None = None,
) -> PathContext:
    """Build a context for ``project_root``.

    With ``override=True`` (or without a backend) the root is treated as a
    standalone repository and git is never consulted.

    Example:
        >>> ctx = create_path_context("/work/app", override=True, home="/home/bob")
        >>> (ctx.main_repo_root, ctx.worktree_root)
        ('/work/app', None)
    """
    execution_root = os.path.abspath(os.fspath(project_root))
    user_home = os.fspath(home) if home is not None else str(paths.user_home())
    main_root = execution_root

    if not override and backend is not None:
        common = backend.common_dir(Path(execution_root))
        if common is not None:
            main_root = str(common.parent)
        else:
            _log.trace(f"{execution_root} is not a git checkout; treating as standalone")

    if _same_path(execution_root, main_root):
        main_root = execution_root
        worktree_root = None
    else:
        worktree_root = execution_root
    return PathContext(
        execution_root=execution_root,
        main_repo_root=main_root,
        worktree_root=worktree_root,
        user_home=user_home,
    )


def resolve_path_with_precedence(kind: PathKind, context: PathContext) -> list[str]:
    """Return every candidate location for ``kind`` in precedence order.

    Example:
        >>> ctx = PathContext("/work/app", "/work/app", None, "/home/bob")
        >>> resolve_path_with_precedence(PathKind.TEMPLATES, ctx)
        ['/work/app/.tasks/.templates', '/home/bob/.scopecraft/templates']
    """
    return [strategy(context) for strategy in PATH_STRATEGIES[PathKind(kind)]]


def resolve_path(kind: PathKind, context: PathContext) -> str:
    """Return the primary location for ``kind``.

    Example:
        >>> ctx = PathContext("/w/app.worktrees/t1", "/w/app", "/w/app.worktrees/t1", "/h")
        >>> resolve_path(PathKind.TASKS, ctx)
        '/h/.scopecraft/projects/w-app/tasks'
    """
    return resolve_path_with_precedence(kind, context)[0]


def resolve_existing_path(kind: PathKind, context: PathContext) -> str:
    """Return the first candidate that exists on disk, else the primary one."""
    candidates = resolve_path_with_precedence(kind, context)
    for candidate in candidates:
        if os.path.exists(candidate):
            return candidate
    return candidates[0]


def get_templates_path(context: PathContext) -> str:
    return resolve_path(PathKind.TEMPLATES, context)


def get_modes_path(context: PathContext) -> str:
    return resolve_path(PathKind.MODES, context)


def get_tasks_path(context: PathContext) -> str:
    return resolve_path(PathKind.TASKS, context)


def get_sessions_path(context: PathContext) -> str:
    return resolve_path(PathKind.SESSIONS, context)


def get_config_path(context: PathContext) -> str:
    return resolve_path(PathKind.CONFIG, context)


def find_mode_files(context: PathContext, mode_name: str) -> list[str]:
    """Find ``<mode_name>.md`` files under the modes directory.

    Returns paths relative to the modes directory. Files not named
    ``base.md`` come first so specialised guidance outranks the base file.
    """
    modes_dir = Path(get_modes_path(context))
    if not modes_dir.is_dir():
        return []
    target = f"{mode_name}.md"
    matches = sorted(
        path.relative_to(modes_dir).as_posix()
        for path in modes_dir.rglob(target)
        if path.is_file()
    )
    return sorted(matches, key=lambda rel: Path(rel).name == "base.md")


class PathResolver:
    """Path resolution bound to a configuration manager.

    Contexts are cached per project root; the cache is dropped whenever the
    configuration changes.
    """

    def __init__(
        self,
        config: ConfigurationManager,
        *,
        backend: WorkspaceBackend | None = None,
        home: str | os.PathLike[str] | None = None,
    ) -> None:
        self._config = config
        self._backend = backend
        self._home = home
        self._contexts: TtlCache[PathContext] = TtlCache(ttl_seconds=None)
        config.add_invalidation_listener(self._contexts.clear)

    def context(self, project_root: str | os.PathLike[str] | None = None) -> PathContext:
        root = os.fspath(project_root) if project_root is not None else None
        if root is None:
            root = self._config.get_project_root()
        if root is None:
            raise ConfigurationError(
                "No project root configured",
                recovery_hint="Pass --root or set SCOPECRAFT_ROOT",
            )
        root = os.path.abspath(root)
        return self._contexts.get_or_compute(
            ("context", root),
            lambda: create_path_context(root, backend=self._backend, home=self._home),
        )

    def resolve(
        self, kind: PathKind, project_root: str | os.PathLike[str] | None = None
    ) -> str:
        return resolve_path(kind, self.context(project_root))

    def resolve_with_precedence(
        self, kind: PathKind, project_root: str | os.PathLike[str] | None = None
    ) -> list[str]:
        return resolve_path_with_precedence(kind, self.context(project_root))

    def resolve_existing(
        self, kind: PathKind, project_root: str | os.PathLike[str] | None = None
    ) -> str:
        return resolve_existing_path(kind, self.context(project_root))

    def clear_cache(self) -> None:
        self._contexts.clear()
