"""Unit tests for command plans and failure classification."""

import pytest

from gitpilot import commands
from gitpilot.commands import ErrorPattern, classify_failure, interpret
from gitpilot.errors import (
    AuthenticationFailed,
    BranchAlreadyExists,
    CommandFailed,
    DestinationExists,
    GitOperationError,
    IndexLocked,
    MergeConflict,
    NetworkError,
    NothingToCommit,
    NotARepository,
    NoUpstream,
    PushRejected,
    ReferenceNotFound,
    RemoteNotFound,
    ValidationError,
)
from gitpilot.process import ProcessResult
from gitpilot.types import BranchName


def _failed(stderr: str = "", stdout: str = "", exit_code: int = 1) -> ProcessResult:
    return ProcessResult(("git", "x"), exit_code, stdout.encode(), stderr.encode())


@pytest.mark.parametrize(
    "stderr,expected",
    [
        ("fatal: not a git repository (or any of the parent directories): .git", NotARepository),
        ("fatal: cannot change to '/missing': No such file or directory", NotARepository),
        ("fatal: Authentication failed for 'https://example.com/r.git/'", AuthenticationFailed),
        ("fatal: could not read Username for 'https://github.com': terminal prompts disabled", AuthenticationFailed),
        ("git@github.com: Permission denied (publickey).", AuthenticationFailed),
        ("error: No such remote 'upstream'", RemoteNotFound),
        ("fatal: 'origin' does not appear to be a git repository", RemoteNotFound),
        ("CONFLICT (content): Merge conflict in a.txt", MergeConflict),
        ("error: could not apply 1234567... change", MergeConflict),
        ("fatal: a branch named 'feature/x' already exists", BranchAlreadyExists),
        ("fatal: destination path 'repo' already exists and is not an empty directory.", DestinationExists),
        ("fatal: The current branch topic has no upstream branch.", NoUpstream),
        (" ! [rejected]        main -> main (non-fast-forward)", PushRejected),
        ("error: pathspec 'nope' did not match any file(s) known to git", ReferenceNotFound),
        ("fatal: invalid reference: nope", ReferenceNotFound),
        ("fatal: 'nope' is not a commit and a branch 'x' cannot be created from it", ReferenceNotFound),
        ("fatal: unable to access 'https://nohost.invalid/r.git/': Could not resolve host: nohost.invalid", NetworkError),
        ("fatal: Unable to create '/repo/.git/index.lock': File exists.", IndexLocked),
    ],
)
def test_classify_stderr(stderr, expected):
    error = classify_failure(_failed(stderr, exit_code=128), "op")
    assert type(error) is expected
    assert error.exit_code == 128
    assert error.stderr == stderr.strip()
    assert error.details["operation"] == "op"


def test_nothing_to_commit_on_stdout():
    error = classify_failure(_failed(stdout="On branch main\nnothing to commit, working tree clean\n"), "commit")
    assert isinstance(error, NothingToCommit)
    assert error.code == "nothing_to_commit"


def test_unclassified_falls_back_to_command_failed():
    error = classify_failure(_failed("fatal: something new and strange", exit_code=3), "frobnicate")
    assert type(error) is CommandFailed
    assert error.code == "git_command_failed"
    assert error.exit_code == 3
    assert error.to_dict()["stderr"] == "fatal: something new and strange"
    assert error.to_dict()["command"] == ["git", "x"]


def test_caller_patterns_take_precedence():
    custom = ErrorPattern.compile(r"hook declined", PushRejected, "Server hook declined the push")
    error = classify_failure(_failed("remote: hook declined\nfatal: not a git repository"), "push", [custom])
    assert isinstance(error, PushRejected)
    assert error.message == "Server hook declined the push"


def test_interpret_raises_classified_error():
    with pytest.raises(GitOperationError) as exc_info:
        interpret(commands.status(), _failed("fatal: not a git repository", exit_code=128))
    assert exc_info.value.code == "not_a_git_repo"


def test_interpret_parses_success():
    ok = ProcessResult(("git", "for-each-ref"), 0, b"main\ndev\n", b"")
    assert interpret(commands.list_branches(), ok) == [BranchName("main"), BranchName("dev")]


def test_interpret_without_parser_returns_none():
    ok = ProcessResult(("git", "add"), 0, b"", b"")
    assert interpret(commands.add("a.txt"), ok) is None


class TestPlans:

    def test_clone_is_unscoped_network(self):
        plan = commands.clone("https://github.com/user/project.git", "/tmp/dest")
        assert plan.args == ("--", "https://github.com/user/project.git", "/tmp/dest")
        assert plan.network and not plan.scoped
        assert plan.timeout_key == "git.network_timeout_seconds"

    def test_clone_validates_url_first(self):
        with pytest.raises(ValidationError):
            commands.clone("file:///srv/repo.git", "/tmp/dest")

    def test_local_plans_use_operation_timeout(self):
        assert commands.status().timeout_key == "git.operation_timeout_seconds"

    def test_status_requests_nul_terminated_records(self):
        assert commands.status().args == ("--porcelain=v2", "--branch", "--untracked-files=all", "-z")

    def test_init_with_initial_branch(self):
        assert commands.init("/tmp/r", "main").args == ("--initial-branch=main", "--", "/tmp/r")

    def test_create_local_branch(self):
        assert commands.create_local_branch("feature/x").args == ("-b", "feature/x")
        assert commands.create_local_branch("feature/x", "HEAD~1").args == ("-b", "feature/x", "HEAD~1")

    def test_create_local_branch_rejects_invalid_name(self):
        with pytest.raises(ValidationError):
            commands.create_local_branch("bad..name")

    def test_add_separates_paths_from_options(self):
        assert commands.add(["-weird.txt", "b.txt"]).args == ("--", "-weird.txt", "b.txt")

    def test_add_rejects_empty_list(self):
        with pytest.raises(ValidationError):
            commands.add([])

    def test_remove_flags(self):
        assert commands.remove("a.txt", force=True, cached=True).args == ("-f", "--cached", "--", "a.txt")

    def test_commit_rejects_blank_message(self):
        with pytest.raises(ValidationError):
            commands.commit("   ")

    def test_commit_all(self):
        assert commands.commit("msg", all_tracked=True).args == ("-a", "-m", "msg")

    def test_push_arguments(self):
        assert commands.push().args == ()
        assert commands.push("origin", "main", set_upstream=True).args == ("-u", "origin", "main")

    def test_push_branch_without_remote(self):
        with pytest.raises(ValidationError):
            commands.push(branch="main")

    def test_pull_rebase_flag(self):
        assert commands.pull().args == ("--no-rebase",)
        assert commands.pull("origin", "main", rebase=True).args == ("--rebase", "origin", "main")

    def test_revision_cannot_look_like_option(self):
        with pytest.raises(ValidationError):
            commands.get_commit("--all")

    def test_log_max_count(self):
        assert "--max-count=5" in commands.log(5).args
        with pytest.raises(ValidationError):
            commands.log(0)

    def test_head_hash_short(self):
        assert commands.head_hash(short=True).args == ("--verify", "--short", "HEAD")

    def test_cherry_pick_many(self):
        assert commands.cherry_pick(["abc1234", "def5678"]).args == ("abc1234", "def5678")

    def test_raw_requires_subcommand(self):
        assert commands.raw(["rev-list", "--count", "HEAD"]).subcommand == "rev-list"
        with pytest.raises(ValidationError):
            commands.raw(["--version"])
