import os
import stat
from pathlib import Path

import pytest

import scopecraft.paths as paths


@pytest.mark.parametrize(
    ("project_path", "expected"),
    [
        ("/Users/alice/Projects/myapp", "users-alice-projects-myapp"),
        ("/home/bob/work/client-app", "home-bob-work-client-app"),
        ("/srv/My App (2024)/v1.0", "srv-my_app__2024_-v1_0"),
        ("/tmp/proj/", "tmp-proj"),
    ],
)
def test_encode_project_path(project_path: str, expected: str) -> None:
    assert paths.encode_project_path(project_path) == expected


def test_encode_project_path_resolves_relative_paths(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    assert paths.encode_project_path("repo") == paths.encode_project_path(tmp_path / "repo")


def test_encoded_names_are_valid() -> None:
    encoded = paths.encode_project_path("/Some/Odd Path/with.dots")
    assert paths.is_valid_encoded(encoded)
    assert not paths.is_valid_encoded("Has/Slash")
    assert not paths.is_valid_encoded("")


def test_decode_is_a_hint_only() -> None:
    decoded = paths.decode_project_path("home-bob-client-app")
    assert decoded.endswith(os.path.join("bob", "client", "app"))


def test_storage_roots_share_project_directory(tmp_path: Path) -> None:
    home = tmp_path / "home"
    project = "/work/app"
    base = home / ".scopecraft" / "projects" / "work-app"
    assert paths.project_storage_root(project, home) == base
    assert paths.task_storage_root(project, home) == base / "tasks"
    assert paths.session_storage_root(project, home) == base / "sessions"
    assert paths.config_storage_root(project, home) == base / "config"


def test_store_root_defaults_to_home(tmp_path: Path) -> None:
    assert paths.store_root() == tmp_path / "home" / ".scopecraft"
    assert paths.user_config_path() == tmp_path / "home" / ".scopecraft" / "config.json"


def test_validate_store_path_rejects_escapes(tmp_path: Path) -> None:
    home = tmp_path / "home"
    inside = home / ".scopecraft" / "projects" / "x"
    assert paths.validate_store_path(inside, home) == inside
    with pytest.raises(ValueError):
        paths.validate_store_path(home / ".scopecraft" / ".." / "elsewhere", home)
    with pytest.raises(ValueError):
        paths.validate_store_path("/etc/passwd", home)


def test_has_project_marker(tmp_path: Path) -> None:
    assert not paths.has_project_marker(tmp_path)
    (tmp_path / ".ruru").mkdir()
    assert paths.has_project_marker(tmp_path)
    assert not paths.has_project_marker(tmp_path / "missing")


def test_ensure_private_dir_uses_owner_only_mode(tmp_path: Path) -> None:
    target = tmp_path / "store" / "projects"
    old_umask = os.umask(0)
    try:
        paths.ensure_private_dir(target)
    finally:
        os.umask(old_umask)
    assert target.is_dir()
    assert stat.S_IMODE(target.stat().st_mode) == paths.STORE_DIR_MODE
