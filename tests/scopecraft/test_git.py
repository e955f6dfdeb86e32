import datetime as dt
from pathlib import Path
from unittest.mock import patch

import pytest

import scopecraft.git as git
from scopecraft.exec import CommandExecutionError, CommandRequest, CommandResult


def _result(returncode: int = 0, stdout: str = "") -> CommandResult:
    return CommandResult(argv=("git",), returncode=returncode, stdout=stdout, stderr="")


class StaticRunner:
    def __init__(self, result: CommandResult) -> None:
        self.result = result
        self.requests: list[CommandRequest] = []

    def run(self, request: CommandRequest) -> CommandResult:
        self.requests.append(request)
        return self.result


def test_git_command_uses_custom_executable() -> None:
    assert git.git_command(["status"], git_path="/opt/git/bin/git") == [
        "/opt/git/bin/git",
        "status",
    ]
    assert git.git_command(["status"]) == ["git", "status"]


def test_git_current_branch_treats_detached_head_as_none() -> None:
    with patch("scopecraft.git.run_git", return_value=_result(stdout="HEAD\n")):
        assert git.git_current_branch(Path("/repo")) is None
    with patch("scopecraft.git.run_git", return_value=_result(stdout="main\n")):
        assert git.git_current_branch(Path("/repo")) == "main"
    with patch("scopecraft.git.run_git", return_value=None):
        assert git.git_current_branch(Path("/repo")) is None


def test_git_common_dir_resolves_relative_output(tmp_path: Path) -> None:
    with patch("scopecraft.git.run_git", return_value=_result(stdout=".git\n")):
        assert git.git_common_dir(tmp_path) == (tmp_path / ".git").resolve()
    with patch("scopecraft.git.run_git", return_value=_result(stdout="/srv/repo/.git\n")):
        assert git.git_common_dir(tmp_path) == Path("/srv/repo/.git").resolve()
    with patch("scopecraft.git.run_git", return_value=_result(returncode=128)):
        assert git.git_common_dir(tmp_path) is None


def test_git_last_commit_parses_fields() -> None:
    stdout = "abcdef1234\x1fabcdef1\x1f1700000000\x1fAda Lovelace\x1fAdd engine\n"
    runner = StaticRunner(_result(stdout=stdout))
    commit = git.git_last_commit(Path("/repo"), runner=runner)
    assert runner.requests[0].argv[:4] == ("git", "-C", "/repo", "log")
    assert commit is not None
    assert commit.hash == "abcdef1234"
    assert commit.author == "Ada Lovelace"
    assert commit.committed_at == dt.datetime(2023, 11, 14, 22, 13, 20, tzinfo=dt.timezone.utc)


def test_parse_last_commit_tolerates_bad_timestamps() -> None:
    commit = git.parse_last_commit("a\x1fb\x1fnot-a-number\x1fauthor\x1fsubject")
    assert commit is not None
    assert commit.timestamp is None
    assert commit.committed_at is None
    assert git.parse_last_commit("") is None
    assert git.parse_last_commit("only\x1ftwo") is None


def test_git_status_porcelain_propagates_failures() -> None:
    error = CommandExecutionError(
        request=CommandRequest(argv=("git", "status")), detail="not a git repository"
    )
    with patch("scopecraft.git.run_git_checked", side_effect=error):
        with pytest.raises(CommandExecutionError):
            git.git_status_porcelain(Path("/repo"))
