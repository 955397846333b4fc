"""Command plans and failure classification shared by both facades.

A GitCommand is a pure description of one invocation: the argv to run, whether
it touches the network, and the parser for its stdout. Repository and
AsyncRepository only differ in how they execute it.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Optional, Sequence, TypeVar, Union

import structlog

from . import parsers
from .errors import (
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
from .models import Branch, Commit, RepositoryStatus
from .process import PathLike, ProcessResult
from .types import BranchName, CommitHash, GitUrl, RemoteName

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ErrorPattern:
    """Maps stderr wording to a GitOperationError subclass."""

    pattern: re.Pattern
    error_type: type[GitOperationError]
    message: str

    @classmethod
    def compile(cls, regex: str, error_type: type[GitOperationError], message: str) -> ErrorPattern:
        return cls(re.compile(regex, re.IGNORECASE | re.MULTILINE), error_type, message)


# Ordered: the first match wins. Wording varies across git releases, so this is
# a best-effort table; callers can prepend their own entries.
ERROR_PATTERNS: tuple[ErrorPattern, ...] = (
    ErrorPattern.compile(
        r"index\.lock",
        IndexLocked,
        "Another git process holds the repository index lock",
    ),
    ErrorPattern.compile(
        r"not a git repository|cannot change to '",
        NotARepository,
        "Path is not a git repository",
    ),
    ErrorPattern.compile(
        r"authentication failed|could not read (username|password)|terminal prompts disabled"
        r"|permission denied \(publickey|invalid username or password|returned error: 40[13]",
        AuthenticationFailed,
        "Authentication with the remote failed",
    ),
    ErrorPattern.compile(
        r"no such remote|does not appear to be a git repository|repository '.*' not found"
        r"|no configured push destination",
        RemoteNotFound,
        "Remote repository not found",
    ),
    ErrorPattern.compile(
        r"^CONFLICT \(|merge conflict|automatic merge failed|fix conflicts|could not apply"
        r"|you have unmerged paths|unmerged files|needs merge",
        MergeConflict,
        "Operation stopped on a merge conflict",
    ),
    ErrorPattern.compile(
        r"nothing to commit|nothing added to commit|no changes added to commit",
        NothingToCommit,
        "No changes to commit",
    ),
    ErrorPattern.compile(
        r"a branch named '.*' already exists",
        BranchAlreadyExists,
        "Branch already exists",
    ),
    ErrorPattern.compile(
        r"destination path '.*' already exists",
        DestinationExists,
        "Destination path already exists and is not empty",
    ),
    ErrorPattern.compile(
        r"has no upstream branch|no tracking information|no upstream configured",
        NoUpstream,
        "Current branch has no upstream branch",
    ),
    ErrorPattern.compile(
        r"\[rejected\]|\[remote rejected\]|non-fast-forward|failed to push some refs|updates were rejected",
        PushRejected,
        "Push was rejected by the remote",
    ),
    ErrorPattern.compile(
        r"pathspec '.*' did not match|invalid reference|not a valid object name|unknown revision"
        r"|bad revision|not a valid ref|does not have any commits yet|ambiguous argument"
        r"|is not a commit and a branch",
        ReferenceNotFound,
        "Reference or path not found",
    ),
    ErrorPattern.compile(
        r"could not resolve host|unable to access|connection (refused|timed out|reset)"
        r"|network is unreachable|could not read from remote repository",
        NetworkError,
        "Network error while contacting the remote",
    ),
)


def classify_failure(
    result: ProcessResult,
    operation: str,
    extra_patterns: Sequence[ErrorPattern] = (),
) -> GitOperationError:
    """Turn a non-zero exit into the most specific GitOperationError."""
    stderr = result.stderr_text
    stdout = result.stdout_text.strip()
    # `git commit` reports "nothing to commit" on stdout.
    haystack = "\n".join(part for part in (stderr, stdout) if part)

    error_type: type[GitOperationError] = CommandFailed
    message = f"git {operation} failed with exit code {result.exit_code}"
    for entry in (*extra_patterns, *ERROR_PATTERNS):
        if entry.pattern.search(haystack):
            error_type = entry.error_type
            message = entry.message
            break

    return error_type(
        message=message,
        details={"operation": operation, "exit_code": result.exit_code, "stderr": stderr},
        command=list(result.command),
        exit_code=result.exit_code,
        stderr=stderr,
        stdout=stdout,
    )


@dataclass(frozen=True)
class GitCommand(Generic[T]):
    """One git invocation and the parser for its successful stdout."""

    subcommand: str
    args: tuple[str, ...] = ()
    parse: Optional[Callable[[str], T]] = None
    network: bool = False
    scoped: bool = True  # run as `git -C <repository path>`

    @property
    def timeout_key(self) -> str:
        if self.network:
            return "git.network_timeout_seconds"
        return "git.operation_timeout_seconds"


def interpret(
    command: GitCommand[T],
    result: ProcessResult,
    extra_patterns: Sequence[ErrorPattern] = (),
) -> Optional[T]:
    """Classify a failed result or parse a successful one."""
    if not result.ok:
        error = classify_failure(result, command.subcommand, extra_patterns)
        logger.warning(
            "git_command_failed",
            operation=command.subcommand,
            code=error.code,
            exit_code=result.exit_code,
            stderr=error.stderr,
        )
        raise error
    if command.parse is None:
        return None
    return command.parse(result.stdout_text)


# ---------------------------------------------------------------------------
# Input coercion
# ---------------------------------------------------------------------------

BranchLike = Union[BranchName, str]
RemoteLike = Union[RemoteName, str]
UrlLike = Union[GitUrl, str]
Revision = Union[BranchName, CommitHash, str]


def _branch(value: BranchLike) -> BranchName:
    return value if isinstance(value, BranchName) else BranchName.parse(value)


def _remote(value: RemoteLike) -> RemoteName:
    return value if isinstance(value, RemoteName) else RemoteName.parse(value)


def _url(value: UrlLike) -> GitUrl:
    return value if isinstance(value, GitUrl) else GitUrl.parse(value)


def _revision(value: Revision) -> str:
    """Accept any revision expression that cannot be mistaken for an option."""
    text = str(value) if isinstance(value, (BranchName, CommitHash)) else value
    if not isinstance(text, str) or not text:
        raise ValidationError(
            message="Revision cannot be empty",
            details={"type": "Revision", "value": value, "rule": "empty"},
        )
    if text.startswith("-"):
        raise ValidationError(
            message="Revision cannot start with '-'",
            details={"type": "Revision", "value": text, "rule": "leading_character"},
        )
    if any(char.isspace() for char in text):
        raise ValidationError(
            message="Revision cannot contain whitespace",
            details={"type": "Revision", "value": text, "rule": "whitespace"},
        )
    return text


def _paths(paths: Union[PathLike, Iterable[PathLike]]) -> list[str]:
    if isinstance(paths, (str, os.PathLike)):
        paths = [paths]
    normalized = [os.fspath(path) for path in paths]
    if not normalized:
        raise ValidationError(
            message="At least one path is required",
            details={"type": "Paths", "value": [], "rule": "empty"},
        )
    for path in normalized:
        if not path:
            raise ValidationError(
                message="Path cannot be empty",
                details={"type": "Paths", "value": normalized, "rule": "empty"},
            )
    return normalized


def _commit_message(message: str) -> str:
    if not isinstance(message, str) or not message.strip():
        raise ValidationError(
            message="Commit message cannot be empty",
            details={"type": "CommitMessage", "value": message, "rule": "empty"},
        )
    return message


# ---------------------------------------------------------------------------
# Command plans
# ---------------------------------------------------------------------------


def toplevel() -> GitCommand[str]:
    return GitCommand("rev-parse", ("--show-toplevel",), parsers.parse_toplevel)


def clone(url: UrlLike, destination: PathLike) -> GitCommand[None]:
    return GitCommand(
        "clone",
        ("--", str(_url(url)), os.fspath(destination)),
        network=True,
        scoped=False,
    )


def init(path: PathLike, initial_branch: Optional[BranchLike] = None) -> GitCommand[None]:
    args: list[str] = []
    if initial_branch is not None:
        args.append(f"--initial-branch={_branch(initial_branch)}")
    args.extend(["--", os.fspath(path)])
    return GitCommand("init", tuple(args), scoped=False)


def list_branches() -> GitCommand[list[BranchName]]:
    return GitCommand(
        "for-each-ref",
        ("--format=%(refname:short)", "refs/heads/"),
        parsers.parse_branch_names,
    )


def branches() -> GitCommand[list[Branch]]:
    return GitCommand("for-each-ref", (parsers.BRANCH_FORMAT_ARG, "refs/heads/"), parsers.parse_branches)


def create_local_branch(name: BranchLike, start_point: Optional[Revision] = None) -> GitCommand[None]:
    args = ["-b", str(_branch(name))]
    if start_point is not None:
        args.append(_revision(start_point))
    return GitCommand("checkout", tuple(args))


def switch_branch(name: BranchLike) -> GitCommand[None]:
    return GitCommand("checkout", (str(_branch(name)), "--"))


def status() -> GitCommand[RepositoryStatus]:
    return GitCommand(
        "status",
        ("--porcelain=v2", "--branch", "--untracked-files=all", "-z"),
        parsers.parse_status,
    )


def add(paths: Union[PathLike, Iterable[PathLike]]) -> GitCommand[None]:
    return GitCommand("add", ("--", *_paths(paths)))


def remove(
    paths: Union[PathLike, Iterable[PathLike]],
    force: bool = False,
    cached: bool = False,
) -> GitCommand[None]:
    flags = []
    if force:
        flags.append("-f")
    if cached:
        flags.append("--cached")
    return GitCommand("rm", (*flags, "--", *_paths(paths)))


def commit(message: str, all_tracked: bool = False) -> GitCommand[None]:
    args = ["-a"] if all_tracked else []
    args.extend(["-m", _commit_message(message)])
    return GitCommand("commit", tuple(args))


def push(
    remote: Optional[RemoteLike] = None,
    branch: Optional[BranchLike] = None,
    set_upstream: bool = False,
) -> GitCommand[None]:
    if branch is not None and remote is None:
        raise ValidationError(
            message="A remote is required when pushing a specific branch",
            details={"type": "Push", "value": str(branch), "rule": "missing_remote"},
        )
    args = ["-u"] if set_upstream else []
    if remote is not None:
        args.append(str(_remote(remote)))
    if branch is not None:
        args.append(str(_branch(branch)))
    return GitCommand("push", tuple(args), network=True)


def pull(
    remote: Optional[RemoteLike] = None,
    branch: Optional[BranchLike] = None,
    rebase: bool = False,
) -> GitCommand[None]:
    if branch is not None and remote is None:
        raise ValidationError(
            message="A remote is required when pulling a specific branch",
            details={"type": "Pull", "value": str(branch), "rule": "missing_remote"},
        )
    args = ["--rebase" if rebase else "--no-rebase"]
    if remote is not None:
        args.append(str(_remote(remote)))
    if branch is not None:
        args.append(str(_branch(branch)))
    return GitCommand("pull", tuple(args), network=True)


def fetch(remote: Optional[RemoteLike] = None) -> GitCommand[None]:
    args = (str(_remote(remote)),) if remote is not None else ()
    return GitCommand("fetch", args, network=True)


def add_remote(name: RemoteLike, url: UrlLike) -> GitCommand[None]:
    return GitCommand("remote", ("add", str(_remote(name)), str(_url(url))))


def list_remotes() -> GitCommand[list[RemoteName]]:
    return GitCommand("remote", (), parsers.parse_remote_names)


def remote_url(name: RemoteLike) -> GitCommand[GitUrl]:
    return GitCommand("remote", ("get-url", str(_remote(name))), parsers.parse_url)


def get_commit(ref: Revision = "HEAD") -> GitCommand[Commit]:
    return GitCommand("log", ("-1", parsers.COMMIT_FORMAT_ARG, _revision(ref), "--"), parsers.parse_commit)


def log(max_count: Optional[int] = None, ref: Revision = "HEAD") -> GitCommand[list[Commit]]:
    args = [parsers.COMMIT_FORMAT_ARG]
    if max_count is not None:
        if isinstance(max_count, bool) or not isinstance(max_count, int) or max_count < 1:
            raise ValidationError(
                message="max_count must be a positive integer",
                details={"type": "MaxCount", "value": max_count, "rule": "not_positive"},
            )
        args.append(f"--max-count={max_count}")
    args.extend([_revision(ref), "--"])
    return GitCommand("log", tuple(args), parsers.parse_log)


def head_hash(short: bool = False) -> GitCommand[CommitHash]:
    args = ("--verify", "--short", "HEAD") if short else ("--verify", "HEAD")
    return GitCommand("rev-parse", args, parsers.parse_commit_hash)


def list_tracked() -> GitCommand[list[str]]:
    return GitCommand("ls-files", ("-z",), parsers.parse_paths)


def rebase(upstream: Revision) -> GitCommand[None]:
    return GitCommand("rebase", (_revision(upstream),))


def rebase_continue() -> GitCommand[None]:
    return GitCommand("rebase", ("--continue",))


def rebase_abort() -> GitCommand[None]:
    return GitCommand("rebase", ("--abort",))


def cherry_pick(commits: Union[Revision, Iterable[Revision]]) -> GitCommand[None]:
    if isinstance(commits, (str, BranchName, CommitHash)):
        commits = [commits]
    revisions = [_revision(item) for item in commits]
    if not revisions:
        raise ValidationError(
            message="At least one commit is required",
            details={"type": "Revision", "value": [], "rule": "empty"},
        )
    return GitCommand("cherry-pick", tuple(revisions))


def cherry_pick_continue() -> GitCommand[None]:
    return GitCommand("cherry-pick", ("--continue",))


def cherry_pick_abort() -> GitCommand[None]:
    return GitCommand("cherry-pick", ("--abort",))


def raw(args: Sequence[str]) -> GitCommand[str]:
    """Arbitrary subcommand; stdout is returned unparsed."""
    if not args or not args[0] or args[0].startswith("-"):
        raise ValidationError(
            message="A git subcommand is required",
            details={"type": "Command", "value": list(args), "rule": "missing_subcommand"},
        )
    return GitCommand(args[0], tuple(args[1:]), lambda text: text)
