"""Unit tests for the blocking Repository facade with git mocked out."""

from pathlib import Path
from unittest.mock import patch

import pytest

from gitpilot.errors import NothingToCommit, NotARepository, ValidationError
from gitpilot.models import FileStatus
from gitpilot.parsers import FIELD_SEP, RECORD_SEP
from gitpilot.process import ProcessResult
from gitpilot.repository import Repository
from gitpilot.types import BranchName

HASH = "0123456789abcdef0123456789abcdef01234567"


def _result(stdout: str = "", stderr: str = "", exit_code: int = 0) -> ProcessResult:
    return ProcessResult(("git",), exit_code, stdout.encode(), stderr.encode())


def _commit_output(message: str) -> str:
    fields = [HASH, HASH[:7], "Test", "test@example.com", "2024-01-02T03:04:05+00:00", "", message + "\n"]
    return RECORD_SEP + FIELD_SEP.join(fields) + "\n"


@pytest.fixture
def repo(tmp_path):
    return Repository(tmp_path)


def test_handle_only_stores_path(tmp_path):
    with patch("gitpilot.repository.run_git") as run:
        repo = Repository(tmp_path / "missing")
    run.assert_not_called()
    assert repo.path == Path(tmp_path / "missing")


def test_open_checks_work_tree(tmp_path):
    with patch("gitpilot.repository.run_git", return_value=_result(f"{tmp_path}\n")) as run:
        Repository.open(tmp_path)
    assert run.call_args.args[:2] == ("rev-parse", ("--show-toplevel",))
    assert run.call_args.kwargs["cwd"] == tmp_path


def test_open_not_a_repository(tmp_path):
    failure = _result(stderr="fatal: not a git repository (or any of the parent directories): .git", exit_code=128)
    with patch("gitpilot.repository.run_git", return_value=failure):
        with pytest.raises(NotARepository) as exc_info:
            Repository.open(tmp_path)
    assert exc_info.value.exit_code == 128


def test_clone_runs_unscoped_with_network_timeout(tmp_path):
    with patch("gitpilot.repository.run_git", return_value=_result()) as run:
        repo = Repository.clone("https://github.com/user/project.git", tmp_path / "dest")
    assert run.call_args.kwargs["cwd"] is None
    assert run.call_args.kwargs["timeout_seconds"] == 600
    assert repo.path == tmp_path / "dest"


def test_clone_rejects_invalid_url_without_running_git(tmp_path):
    with patch("gitpilot.repository.run_git") as run:
        with pytest.raises(ValidationError):
            Repository.clone("/not/a/url", tmp_path / "dest")
    run.assert_not_called()


def test_list_branches(repo):
    with patch("gitpilot.repository.run_git", return_value=_result("feature/x\nmain\n")):
        assert repo.list_branches() == [BranchName("feature/x"), BranchName("main")]


def test_status_routes_through_parser(repo):
    out = "# branch.head main\x001 .M N... 100644 100644 100644 aaa bbb a.txt\x00"
    with patch("gitpilot.repository.run_git", return_value=_result(out)):
        status = repo.status()
    assert status.branch == BranchName("main")
    assert status.entries[0].status is FileStatus.MODIFIED
    assert status.entries[0].unstaged


def test_commit_staged_returns_new_head(repo):
    results = [_result("[main 0123456] Add file\n"), _result(_commit_output("Add file"))]
    with patch("gitpilot.repository.run_git", side_effect=results) as run:
        commit = repo.commit_staged("Add file")
    assert commit.hash.value == HASH
    assert commit.summary == "Add file"
    assert run.call_args_list[0].args[:2] == ("commit", ("-m", "Add file"))
    assert run.call_args_list[1].args[0] == "log"


def test_commit_staged_nothing_to_commit(repo):
    failure = _result(stdout="On branch main\nnothing to commit, working tree clean\n", exit_code=1)
    with patch("gitpilot.repository.run_git", return_value=failure):
        with pytest.raises(NothingToCommit):
            repo.commit_staged("Empty")


def test_blank_message_never_reaches_git(repo):
    with patch("gitpilot.repository.run_git") as run:
        with pytest.raises(ValidationError):
            repo.commit_staged("")
    run.assert_not_called()


def test_config_controls_binary_and_timeout(tmp_path, monkeypatch):
    from gitpilot.config import ConfigManager

    monkeypatch.setenv("GITPILOT_GIT_BINARY", "/opt/git/bin/git")
    monkeypatch.setenv("GITPILOT_GIT_OPERATION_TIMEOUT_SECONDS", "15")
    config = ConfigManager(config_file=tmp_path / "none.toml", env_file=tmp_path / "none.env")
    config.load()

    repo = Repository(tmp_path, config=config)
    with patch("gitpilot.repository.run_git", return_value=_result()) as run:
        repo.add("a.txt")
    assert run.call_args.kwargs["git_binary"] == "/opt/git/bin/git"
    assert run.call_args.kwargs["timeout_seconds"] == 15


def test_run_returns_raw_stdout(repo):
    with patch("gitpilot.repository.run_git", return_value=_result("3\n")):
        assert repo.run("rev-list", "--count", "HEAD") == "3\n"
