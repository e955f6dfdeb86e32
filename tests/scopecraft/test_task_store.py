from pathlib import Path

from scopecraft.models import TaskIdentity
from scopecraft.task_store import DirectoryTaskStore


def _write(path: Path, text: str = "# task\n") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _tasks_tree(root: Path) -> Path:
    tasks = root / "tasks"
    _write(tasks / "current" / "_overview.md")
    _write(tasks / "current" / "fix-login-0612-AB.task.md")
    _write(tasks / "current" / "auth-0612-CD" / "_overview.md")
    _write(tasks / "current" / "auth-0612-CD" / "01-setup.task.md")
    _write(tasks / "current" / "auth-0612-CD" / "02-tokens.task.md")
    _write(tasks / "backlog" / "later-0701-EF.task.md")
    _write(tasks / "archive" / "2024-05" / "old-0501-GH.task.md")
    _write(tasks / ".drafts" / "hidden-0101-ZZ.task.md")
    _write(tasks / "current" / "notes.md")
    return tasks


def test_iter_identities_reads_layout(tmp_path: Path) -> None:
    store = DirectoryTaskStore(_tasks_tree(tmp_path))

    identities = {identity.id: identity for identity in store.iter_identities()}

    assert set(identities) == {
        "fix-login-0612-AB",
        "auth-0612-CD",
        "01-setup",
        "02-tokens",
        "later-0701-EF",
        "old-0501-GH",
    }
    assert identities["auth-0612-CD"] == TaskIdentity(id="auth-0612-CD", is_parent_task=True)
    assert identities["01-setup"].parent_task == "auth-0612-CD"
    assert identities["fix-login-0612-AB"].parent_task is None
    assert identities["old-0501-GH"].parent_task is None


def test_get_returns_none_for_unknown_ids(tmp_path: Path) -> None:
    store = DirectoryTaskStore(_tasks_tree(tmp_path))

    assert store.get("02-tokens") == TaskIdentity(id="02-tokens", parent_task="auth-0612-CD")
    assert store.get("hidden-0101-ZZ") is None
    assert store.get("current") is None


def test_missing_directory_has_no_tasks(tmp_path: Path) -> None:
    store = DirectoryTaskStore(tmp_path / "nowhere")

    assert list(store.iter_identities()) == []
    assert store.get("anything") is None


def test_tasks_dir_can_follow_a_callable(tmp_path: Path) -> None:
    first = tmp_path / "a"
    second = tmp_path / "b"
    _write(first / "current" / "one.task.md")
    _write(second / "current" / "two.task.md")
    active = {"dir": str(first)}
    store = DirectoryTaskStore(lambda: active["dir"])

    assert store.get("one") is not None
    active["dir"] = str(second)
    assert store.get("one") is None
    assert store.get("two") is not None
