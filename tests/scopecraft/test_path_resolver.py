from pathlib import Path

import pytest

from scopecraft.errors import ConfigurationError
from scopecraft.path_resolver import (
    PathContext,
    PathKind,
    PathResolver,
    create_path_context,
    find_mode_files,
    get_config_path,
    get_modes_path,
    get_sessions_path,
    get_tasks_path,
    get_templates_path,
    resolve_existing_path,
    resolve_path,
    resolve_path_with_precedence,
)
from tests.scopecraft.helpers import FakeBackend, make_config, make_project

HOME = "/home/alice"
MAIN = "/work/app"
WORKTREE = "/work/app.worktrees/t1"


def _main_context() -> PathContext:
    return PathContext(
        execution_root=MAIN, main_repo_root=MAIN, worktree_root=None, user_home=HOME
    )


def _worktree_context() -> PathContext:
    return PathContext(
        execution_root=WORKTREE, main_repo_root=MAIN, worktree_root=WORKTREE, user_home=HOME
    )


@pytest.mark.parametrize("kind", [PathKind.TASKS, PathKind.SESSIONS, PathKind.CONFIG])
def test_centralized_kinds_ignore_execution_root(kind: PathKind) -> None:
    main_path = resolve_path(kind, _main_context())
    worktree_path = resolve_path(kind, _worktree_context())
    assert main_path == worktree_path
    assert main_path == f"{HOME}/.scopecraft/projects/work-app/{kind.value}"


@pytest.mark.parametrize("kind", [PathKind.TEMPLATES, PathKind.MODES])
def test_repo_local_kinds_follow_execution_root(kind: PathKind) -> None:
    main_path = resolve_path(kind, _main_context())
    worktree_path = resolve_path(kind, _worktree_context())
    assert main_path != worktree_path
    assert main_path.startswith(f"{MAIN}/.tasks/")
    assert worktree_path.startswith(f"{WORKTREE}/.tasks/")


def test_precedence_lists() -> None:
    context = _worktree_context()
    assert resolve_path_with_precedence(PathKind.TEMPLATES, context) == [
        f"{WORKTREE}/.tasks/.templates",
        f"{HOME}/.scopecraft/templates",
    ]
    assert resolve_path_with_precedence(PathKind.MODES, context) == [
        f"{WORKTREE}/.tasks/.modes"
    ]
    assert resolve_path_with_precedence(PathKind.CONFIG, context) == [
        f"{HOME}/.scopecraft/projects/work-app/config",
        f"{WORKTREE}/.tasks",
    ]


def test_wrappers_match_resolve_path() -> None:
    context = _main_context()
    assert get_templates_path(context) == resolve_path(PathKind.TEMPLATES, context)
    assert get_modes_path(context) == resolve_path(PathKind.MODES, context)
    assert get_tasks_path(context) == resolve_path(PathKind.TASKS, context)
    assert get_sessions_path(context) == resolve_path(PathKind.SESSIONS, context)
    assert get_config_path(context) == resolve_path(PathKind.CONFIG, context)


def test_resolve_existing_path_prefers_existing_candidate(tmp_path: Path) -> None:
    home = tmp_path / "home"
    project = tmp_path / "app"
    project.mkdir()
    context = create_path_context(project, override=True, home=home)

    assert resolve_existing_path(PathKind.TEMPLATES, context) == str(
        project / ".tasks" / ".templates"
    )

    (home / ".scopecraft" / "templates").mkdir(parents=True)
    assert resolve_existing_path(PathKind.TEMPLATES, context) == str(
        home / ".scopecraft" / "templates"
    )

    (project / ".tasks" / ".templates").mkdir(parents=True)
    assert resolve_existing_path(PathKind.TEMPLATES, context) == str(
        project / ".tasks" / ".templates"
    )


def test_create_path_context_detects_worktrees(tmp_path: Path) -> None:
    repo = tmp_path / "app"
    repo.mkdir()
    worktree = tmp_path / "app.worktrees" / "t1"
    backend = FakeBackend(repo)
    backend.worktrees[str(worktree)] = "task/t1"

    main_context = create_path_context(repo, backend=backend, home=tmp_path / "home")
    worktree_context = create_path_context(worktree, backend=backend, home=tmp_path / "home")

    assert main_context.worktree_root is None
    assert main_context.in_worktree is False
    assert worktree_context.main_repo_root == str(repo)
    assert worktree_context.worktree_root == str(worktree)
    assert get_tasks_path(main_context) == get_tasks_path(worktree_context)


def test_create_path_context_without_git_is_standalone(tmp_path: Path) -> None:
    loose = tmp_path / "loose"
    loose.mkdir()
    backend = FakeBackend(tmp_path / "elsewhere")

    context = create_path_context(loose, backend=backend)

    assert context.main_repo_root == str(loose)
    assert context.worktree_root is None
    assert context.user_home == str(tmp_path / "home")


def test_override_never_consults_backend(tmp_path: Path) -> None:
    backend = FakeBackend(tmp_path)
    create_path_context(tmp_path, override=True, backend=backend)
    assert backend.calls == []


def test_find_mode_files_orders_base_last(tmp_path: Path) -> None:
    modes = tmp_path / "app" / ".tasks" / ".modes"
    (modes / "implement").mkdir(parents=True)
    (modes / "base").mkdir()
    (modes / "implement" / "base.md").write_text("base", encoding="utf-8")
    (modes / "implement" / "implement.md").write_text("impl", encoding="utf-8")
    (modes / "base" / "implement.md").write_text("shared", encoding="utf-8")
    context = create_path_context(tmp_path / "app", override=True)

    assert find_mode_files(context, "implement") == [
        "base/implement.md",
        "implement/implement.md",
    ]
    assert find_mode_files(context, "base") == ["implement/base.md"]
    assert find_mode_files(create_path_context(tmp_path, override=True), "x") == []


def test_path_resolver_caches_contexts_until_config_changes(tmp_path: Path) -> None:
    project = make_project(tmp_path, "proj")
    other = make_project(tmp_path, "other")
    config = make_config(tmp_path, project)
    backend = FakeBackend(project)
    resolver = PathResolver(config, backend=backend, home=tmp_path / "home")

    first = resolver.context()
    assert resolver.context() is first
    assert backend.call_names().count("common_dir") == 1

    config.set_root_from_cli(other)
    second = resolver.context()
    assert second.execution_root == str(other)
    assert resolver.resolve(PathKind.TASKS) == get_tasks_path(second)
    assert resolver.resolve_with_precedence(PathKind.MODES) == [
        str(other / ".tasks" / ".modes")
    ]
    assert resolver.resolve_existing(PathKind.CONFIG) == str(other / ".tasks")


def test_path_resolver_requires_a_root(tmp_path: Path) -> None:
    resolver = PathResolver(make_config(tmp_path))
    with pytest.raises(ConfigurationError):
        resolver.context()
