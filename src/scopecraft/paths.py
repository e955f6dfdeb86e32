"""Path helpers for locating Scopecraft data directories and files.

Centralized, per-user data lives under ``<home>/.scopecraft``; each project
gets a flat directory named by :func:`encode_project_path` so every worktree
of one repository shares the same task database.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

STORE_DIRNAME = ".scopecraft"
PROJECTS_DIRNAME = "projects"
TASKS_DIRNAME = "tasks"
SESSIONS_DIRNAME = "sessions"
CONFIG_DIRNAME = "config"
TEMPLATES_DIRNAME = "templates"
USER_CONFIG_FILENAME = "config.json"

REPO_TASKS_DIRNAME = ".tasks"
REPO_TEMPLATES_DIRNAME = ".templates"
REPO_MODES_DIRNAME = ".modes"
LEGACY_MARKER_DIRNAME = ".ruru"
PROJECT_MARKERS = (REPO_TASKS_DIRNAME, LEGACY_MARKER_DIRNAME)

WORKTREES_SUFFIX = ".worktrees"

STORE_DIR_MODE = 0o700

_UNSAFE_CHAR_RE = re.compile(r"[^a-zA-Z0-9-]")
_ENCODED_RE = re.compile(r"^[a-z0-9_-]+$")


def user_home() -> Path:
    """Return the current user's home directory (honors ``HOME``)."""
    return Path.home()


def store_root(home: Path | str | None = None) -> Path:
    """Return the per-user Scopecraft store root.

    Example:
        >>> store_root("/home/alice").as_posix()
        '/home/alice/.scopecraft'
    """
    base = Path(home) if home is not None else user_home()
    return base / STORE_DIRNAME


def user_config_path(home: Path | str | None = None) -> Path:
    """Return the user-level project registry file path."""
    return store_root(home) / USER_CONFIG_FILENAME


def global_templates_dir(home: Path | str | None = None) -> Path:
    """Return the user-wide templates directory."""
    return store_root(home) / TEMPLATES_DIRNAME


def encode_project_path(project_path: str | os.PathLike[str]) -> str:
    """Encode an absolute project path into a flat, readable directory name.

    Every path segment has characters outside ``[A-Za-z0-9-]`` replaced
    with ``_``; segments are joined with ``-`` and the result lower-cased.

    Example:
        >>> encode_project_path("/Users/alice/Projects/myapp")
        'users-alice-projects-myapp'
        >>> encode_project_path("/srv/my.app v2")
        'srv-my_app_v2'
    """
    resolved = os.path.abspath(os.fspath(project_path))
    parts = [part for part in resolved.split(os.sep) if part]
    return "-".join(_UNSAFE_CHAR_RE.sub("_", part) for part in parts).lower()


def decode_project_path(encoded: str) -> str:
    """Best-effort inverse of :func:`encode_project_path`.

    Hyphens inside the original segments cannot be told apart from
    separators, so the result is only a hint.

    Example:
        >>> decode_project_path("users-alice-myapp") == os.sep + os.path.join("users", "alice", "myapp")
        True
    """
    reconstructed = encoded.replace("-", os.sep)
    if os.name != "nt":
        return os.sep + reconstructed
    return reconstructed


def is_valid_encoded(encoded: str) -> bool:
    """Return whether ``encoded`` looks like an encoded project name.

    Example:
        >>> is_valid_encoded("users-alice-myapp")
        True
        >>> is_valid_encoded("Users/alice")
        False
    """
    return bool(_ENCODED_RE.match(encoded))


def project_storage_root(
    project_path: str | os.PathLike[str], home: Path | str | None = None
) -> Path:
    """Return the centralized storage directory for a project.

    Example:
        >>> project_storage_root("/work/app", "/home/bob").as_posix()
        '/home/bob/.scopecraft/projects/work-app'
    """
    return store_root(home) / PROJECTS_DIRNAME / encode_project_path(project_path)


def task_storage_root(
    project_path: str | os.PathLike[str], home: Path | str | None = None
) -> Path:
    """Return the centralized tasks directory for a project."""
    return project_storage_root(project_path, home) / TASKS_DIRNAME


def session_storage_root(
    project_path: str | os.PathLike[str], home: Path | str | None = None
) -> Path:
    """Return the centralized sessions directory for a project."""
    return project_storage_root(project_path, home) / SESSIONS_DIRNAME


def config_storage_root(
    project_path: str | os.PathLike[str], home: Path | str | None = None
) -> Path:
    """Return the centralized config directory for a project."""
    return project_storage_root(project_path, home) / CONFIG_DIRNAME


def validate_store_path(target: str | os.PathLike[str], home: Path | str | None = None) -> Path:
    """Return ``target`` resolved, or raise if it escapes the store root.

    Example:
        >>> validate_store_path("/home/bob/.scopecraft/projects/x", "/home/bob").name
        'x'
    """
    root = Path(os.path.abspath(store_root(home)))
    resolved = Path(os.path.abspath(os.fspath(target)))
    try:
        resolved.relative_to(root)
    except ValueError:
        raise ValueError(f"path {target} is outside {root}") from None
    return resolved


def has_project_marker(path: str | os.PathLike[str]) -> bool:
    """Return whether ``path`` is a directory holding a project marker."""
    candidate = Path(path)
    if not candidate.is_dir():
        return False
    return any((candidate / marker).exists() for marker in PROJECT_MARKERS)


def ensure_private_dir(path: Path) -> None:
    """Create a user-only directory (``0o700``) if it does not exist."""
    path.mkdir(mode=STORE_DIR_MODE, parents=True, exist_ok=True)
