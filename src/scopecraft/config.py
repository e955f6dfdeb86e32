"""Project root configuration with ranked sources.

``ConfigurationManager`` answers "which project root is active" by walking
its sources from highest to lowest precedence:

1. a runtime override passed to :meth:`ConfigurationManager.get_root_config`
2. a root set from the command line
3. the ``SCOPECRAFT_ROOT`` environment variable
4. a root set for the current session
5. a named project from the user config file (``~/.scopecraft/config.json``)
6. auto-detection, walking up from the working directory

The first source that yields a validated root wins. Instances are plain
objects passed to the components that need them; there is no process-wide
singleton.

Example:
    >>> manager = ConfigurationManager(
    ...     environ={},
    ...     config_file_path="/nonexistent/config.json",
    ...     cwd=lambda: Path("/nonexistent"),
    ... )
    >>> manager.get_root_config().source.value
    'auto_detect'
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Mapping
from pathlib import Path

from pydantic import ValidationError

from . import paths
from .errors import ConfigurationError
from .log import get_logger
from .models import (
    ConfigSource,
    ProjectDefinition,
    RootConfig,
    RuntimeOverrides,
    UserConfig,
)
from .result import OperationResult, operation_failure, operation_success

ROOT_ENV_VAR = "SCOPECRAFT_ROOT"

_log = get_logger("config")


class UserConfigError(ValueError):
    """Raised when the user config file exists but cannot be used."""


def load_json(path: Path) -> dict | None:
    """Load a JSON object from disk, or ``None`` when the file is missing."""
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, dict):
        raise UserConfigError(f"expected a JSON object in {path}")
    return payload


def load_user_config(path: Path) -> UserConfig | None:
    """Load and validate the user config file.

    Returns:
        Parsed config, or ``None`` when the file does not exist.

    Raises:
        UserConfigError: The file is not valid JSON or fails validation.
    """
    try:
        payload = load_json(path)
    except json.JSONDecodeError as exc:
        raise UserConfigError(f"invalid JSON in {path}: {exc}") from exc
    if payload is None:
        return None
    try:
        return UserConfig.model_validate(payload)
    except ValidationError as exc:
        raise UserConfigError(f"invalid user config at {path}:\n{exc}") from exc


def _normalize(path: str | os.PathLike[str]) -> str:
    return os.path.abspath(os.path.expanduser(os.fspath(path)))


class ConfigurationManager:
    """Resolve and cache the active project root.

    Args:
        environ: Mapping consulted for ``SCOPECRAFT_ROOT`` (defaults to the
            live ``os.environ``).
        config_file_path: User config file; defaults to
            ``<home>/.scopecraft/config.json``.
        cwd: Callable returning the working directory for auto-detection.
        home: Home directory used to locate the default config file.
    """

    def __init__(
        self,
        *,
        environ: Mapping[str, str] | None = None,
        config_file_path: Path | str | None = None,
        cwd: Callable[[], Path] | None = None,
        home: Path | str | None = None,
    ) -> None:
        self._environ = environ if environ is not None else os.environ
        self._home = Path(home) if home is not None else None
        self._cwd = cwd or Path.cwd
        self._custom_config_path = (
            Path(config_file_path) if config_file_path is not None else None
        )
        self._cli_root: str | None = None
        self._session_config: RootConfig | None = None
        self._selected_project: str | None = None
        self._cache: dict[tuple[object, ...], RootConfig] = {}
        self._listeners: list[Callable[[], None]] = []

    # -- public contract -------------------------------------------------

    @property
    def config_file_path(self) -> Path:
        if self._custom_config_path is not None:
            return self._custom_config_path
        return paths.user_config_path(self._home)

    def get_root_config(
        self, overrides: RuntimeOverrides | None = None
    ) -> RootConfig:
        """Return the active root, consulting the cache for configured sources."""
        runtime = self._runtime_root(overrides)
        if runtime is not None:
            return runtime
        key = self._cache_key()
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        resolved = self.resolve_root()
        self._cache.clear()
        self._cache[key] = resolved
        _log.debug(
            f"root resolved from {resolved.source.value}: {resolved.path}"
            f" (validated={resolved.validated})"
        )
        return resolved

    def resolve_root(self, overrides: RuntimeOverrides | None = None) -> RootConfig:
        """Walk every source in precedence order without using the cache."""
        runtime = self._runtime_root(overrides)
        if runtime is not None:
            return runtime

        if self._cli_root and self.validate_root(self._cli_root):
            return RootConfig(path=self._cli_root, source=ConfigSource.CLI, validated=True)

        env_root = self._environment_root()
        if env_root is not None:
            return env_root

        session = self._session_config
        if session is not None and session.path and self.validate_root(session.path):
            return session

        config_root = self._config_file_root()
        if config_root is not None:
            return config_root

        return self._auto_detect()

    def set_root_from_cli(self, path: str | os.PathLike[str]) -> None:
        """Pin the root given on the command line; invalid roots fail fast."""
        normalized = _normalize(path)
        if not self.validate_root(normalized):
            raise ConfigurationError(
                f"Invalid project root: {normalized} does not contain "
                f"{' or '.join(paths.PROJECT_MARKERS)} directory",
                source=ConfigSource.CLI.value,
                path=normalized,
            )
        self._cli_root = normalized
        self._invalidate()

    def set_root_from_environment(self) -> None:
        """Validate ``SCOPECRAFT_ROOT`` eagerly when it is set."""
        env_path = (self._environ.get(ROOT_ENV_VAR) or "").strip()
        if not env_path:
            return
        if not self.validate_root(_normalize(env_path)):
            raise ConfigurationError(
                f"Invalid project root from environment: {env_path}",
                source=ConfigSource.ENVIRONMENT.value,
                path=env_path,
            )
        self._invalidate()

    def set_root_from_session(self, path: str | os.PathLike[str]) -> None:
        """Pin a root for the current session; invalid roots fail fast."""
        normalized = _normalize(path)
        if not self.validate_root(normalized):
            raise ConfigurationError(
                f"Invalid project root: {normalized} does not contain "
                f"{' or '.join(paths.PROJECT_MARKERS)} directory",
                source=ConfigSource.SESSION.value,
                path=normalized,
            )
        self._session_config = RootConfig(
            path=normalized, source=ConfigSource.SESSION, validated=True
        )
        self._invalidate()

    def set_root_from_config(
        self, project_name: str | None = None
    ) -> OperationResult[ProjectDefinition]:
        """Select a named project from the user config file.

        Without a name the file's default project is used. Failures are
        returned, never raised.
        """
        try:
            user_config = load_user_config(self.config_file_path)
        except (OSError, UserConfigError) as exc:
            return operation_failure(
                code="config_file_invalid",
                message=f"Error loading configuration file: {exc}",
            )
        if user_config is None:
            return operation_failure(
                code="config_file_missing", message="Configuration file not found"
            )

        if project_name:
            project = user_config.find_project(project_name)
            if project is None:
                return operation_failure(
                    code="project_not_found",
                    message=f"Project '{project_name}' not found in configuration",
                )
        elif user_config.default_project:
            project = user_config.find_project(user_config.default_project)
        else:
            project = None

        if project is None:
            return operation_failure(
                code="no_project_selected",
                message="No project specified and no default project configured",
            )
        if not self.validate_root(_normalize(project.path)):
            return operation_failure(
                code="invalid_root", message=f"Invalid project root: {project.path}"
            )

        self._selected_project = project.name
        self._invalidate()
        return operation_success(project)

    def validate_root(self, root_path: str | os.PathLike[str] | None) -> bool:
        """Return whether ``root_path`` exists and holds a project marker."""
        if not root_path:
            return False
        try:
            return paths.has_project_marker(root_path)
        except OSError:
            return False

    def get_projects(self) -> list[ProjectDefinition]:
        """Return projects listed in the user config file (empty on error)."""
        try:
            user_config = load_user_config(self.config_file_path)
        except (OSError, UserConfigError) as exc:
            _log.warning(f"ignoring user config: {exc}")
            return []
        return list(user_config.projects) if user_config else []

    def get_project_root(self) -> str | None:
        """Return the active root path, or ``None`` when none can be resolved."""
        root = self.get_root_config()
        return root.path if root.validated else None

    def clear_session_config(self) -> None:
        self._session_config = None
        self._invalidate()

    def set_config_file_path(self, path: Path | str) -> None:
        self._custom_config_path = Path(path)
        self._invalidate()

    def add_invalidation_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback run whenever a setter changes the configuration."""
        self._listeners.append(callback)

    def reset(self) -> None:
        """Forget every explicit setting (CLI, session, selected project)."""
        self._cli_root = None
        self._session_config = None
        self._selected_project = None
        self._custom_config_path = None
        self._invalidate()

    def with_overrides(
        self,
        *,
        root_path: str | os.PathLike[str] | None = None,
        environ: Mapping[str, str] | None = None,
        config_file_path: Path | str | None = None,
        cwd: Callable[[], Path] | None = None,
    ) -> ConfigurationManager:
        """Return an independent manager seeded from this one.

        ``root_path`` is applied as a command-line root on the copy.
        """
        clone = ConfigurationManager(
            environ=environ if environ is not None else self._environ,
            config_file_path=(
                config_file_path
                if config_file_path is not None
                else self._custom_config_path
            ),
            cwd=cwd or self._cwd,
            home=self._home,
        )
        clone._cli_root = self._cli_root
        clone._session_config = self._session_config
        clone._selected_project = self._selected_project
        if root_path is not None:
            clone.set_root_from_cli(root_path)
        return clone

    # -- sources ---------------------------------------------------------

    def _runtime_root(self, overrides: RuntimeOverrides | None) -> RootConfig | None:
        if overrides is None or not overrides.root_path:
            return None
        normalized = _normalize(overrides.root_path)
        return RootConfig(
            path=normalized,
            source=ConfigSource.RUNTIME,
            validated=self.validate_root(normalized),
        )

    def _environment_root(self) -> RootConfig | None:
        env_path = (self._environ.get(ROOT_ENV_VAR) or "").strip()
        if not env_path:
            return None
        normalized = _normalize(env_path)
        if not self.validate_root(normalized):
            _log.debug(f"{ROOT_ENV_VAR} ignored, not a project root: {env_path}")
            return None
        return RootConfig(path=normalized, source=ConfigSource.ENVIRONMENT, validated=True)

    def _config_file_root(self) -> RootConfig | None:
        try:
            user_config = load_user_config(self.config_file_path)
        except (OSError, UserConfigError) as exc:
            _log.warning(f"ignoring user config: {exc}")
            return None
        if user_config is None:
            return None

        wanted = self._selected_project or user_config.default_project
        if wanted:
            project = user_config.find_project(wanted)
            if project is not None and self.validate_root(_normalize(project.path)):
                return RootConfig(
                    path=_normalize(project.path),
                    source=ConfigSource.CONFIG_FILE,
                    validated=True,
                    project_name=project.name,
                )

        cwd = _normalize(self._cwd())
        for project in user_config.projects:
            if _normalize(project.path) == cwd and self.validate_root(cwd):
                return RootConfig(
                    path=cwd,
                    source=ConfigSource.CONFIG_FILE,
                    validated=True,
                    project_name=project.name,
                )
        return None

    def _auto_detect(self) -> RootConfig:
        cwd = Path(_normalize(self._cwd()))
        for candidate in (cwd, *cwd.parents):
            if self.validate_root(candidate):
                return RootConfig(
                    path=str(candidate), source=ConfigSource.AUTO_DETECT, validated=True
                )
        return RootConfig(path=str(cwd), source=ConfigSource.AUTO_DETECT, validated=False)

    # -- cache -----------------------------------------------------------

    def _cache_key(self) -> tuple[object, ...]:
        session_path = self._session_config.path if self._session_config else None
        key: tuple[object, ...] = (
            "root",
            self._cli_root,
            (self._environ.get(ROOT_ENV_VAR) or "").strip(),
            session_path,
            self._selected_project,
            str(self.config_file_path),
        )
        if self._has_pinned_root():
            return key
        return (*key, _normalize(self._cwd()))

    def _has_pinned_root(self) -> bool:
        """Return whether a CLI, environment or session root wins without the cwd."""
        if self._cli_root and self.validate_root(self._cli_root):
            return True
        if self._environment_root() is not None:
            return True
        session = self._session_config
        return session is not None and self.validate_root(session.path)

    def _invalidate(self) -> None:
        self._cache.clear()
        for callback in list(self._listeners):
            callback()
