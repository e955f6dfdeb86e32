"""Pydantic models for root configuration and environment data."""

from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ConfigSource(str, Enum):
    """Configuration sources, highest precedence first."""

    RUNTIME = "runtime"
    CLI = "cli"
    ENVIRONMENT = "environment"
    SESSION = "session"
    CONFIG_FILE = "config_file"
    AUTO_DETECT = "auto_detect"


class RootConfig(BaseModel):
    """The resolved project root and where it came from.

    Attributes:
        path: Absolute project root, or ``None`` when nothing could be found.
        source: Source that produced ``path``.
        validated: Whether ``path`` exists and holds a project marker.
        project_name: Named project from the user config file, if any.

    Example:
        >>> RootConfig(path="/repo", source=ConfigSource.CLI, validated=True).source.value
        'cli'
    """

    model_config = ConfigDict(frozen=True)

    path: str | None
    source: ConfigSource
    validated: bool
    project_name: str | None = None


class RuntimeOverrides(BaseModel):
    """Per-call overrides that outrank every configured source."""

    model_config = ConfigDict(frozen=True)

    root_path: str | None = None

    @field_validator("root_path", mode="before")
    @classmethod
    def normalize_root_path(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip()
            return normalized or None
        return value


class ProjectDirectories(BaseModel):
    """Optional per-project directory overrides kept for file compatibility."""

    model_config = ConfigDict(extra="allow")

    tasks: str | None = None
    phases: str | None = None
    config: str | None = None
    templates: str | None = None


class ProjectDefinition(BaseModel):
    """A named project entry in the user config file.

    Example:
        >>> ProjectDefinition(name="demo", path="/work/demo").tags
        []
    """

    model_config = ConfigDict(extra="allow")

    name: str
    path: str
    directories: ProjectDirectories | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("name", "path", mode="before")
    @classmethod
    def require_text(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip()
            if not normalized:
                raise ValueError("must not be empty")
            return normalized
        return value


class UserConfig(BaseModel):
    """User-level config file listing known projects.

    Example:
        >>> UserConfig.model_validate(
        ...     {"version": "1.0.0", "defaultProject": "demo", "projects": []}
        ... ).default_project
        'demo'
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    version: str
    default_project: str | None = Field(default=None, alias="defaultProject")
    projects: list[ProjectDefinition]

    def find_project(self, name: str) -> ProjectDefinition | None:
        for project in self.projects:
            if project.name == name:
                return project
        return None


class WorkspaceStatus(str, Enum):
    """Working-tree state of a live workspace."""

    CLEAN = "clean"
    MODIFIED = "modified"
    UNTRACKED = "untracked"
    CONFLICT = "conflict"
    UNKNOWN = "unknown"


class WorkspaceInfo(BaseModel):
    """One live git worktree, recomputed from git on every listing.

    Attributes:
        path: Absolute worktree path.
        branch: Short branch name (empty for a detached HEAD).
        task_id: Task id extracted from the branch, else the raw branch.
        commit: Latest commit hash, ``"unknown"`` when it cannot be read.
        status: Working-tree state; ``UNKNOWN`` when inspection failed.
        last_activity: Committer time of the latest commit.
        error: Inspection failure detail, if any.
    """

    path: str
    branch: str
    task_id: str
    commit: str = "unknown"
    status: WorkspaceStatus = WorkspaceStatus.UNKNOWN
    last_activity: dt.datetime | None = None
    error: str | None = None


class EnvironmentInfo(BaseModel):
    """Resolver answer for an environment identity.

    ``id`` is always an environment identity, never a sub-unit id.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    path: str
    branch: str
    exists: bool
    is_active: bool


class TaskIdentity(BaseModel):
    """The slice of a task record the environment core consumes."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    is_parent_task: bool = Field(default=False, alias="isParentTask")
    parent_task: str | None = Field(default=None, alias="parentTask")

    @field_validator("parent_task", mode="before")
    @classmethod
    def normalize_parent(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip()
            return normalized or None
        return value
