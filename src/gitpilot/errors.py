"""Error taxonomy shared by every GitPilot layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass(eq=False)
class GitPilotError(Exception):
    """Structured error for git wrapper operations."""

    code: ClassVar[str] = "gitpilot_error"

    message: str
    details: dict[str, Any] | None = None
    retryable: bool = False

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details or {},
            "retryable": self.retryable,
        }


@dataclass(eq=False)
class ValidationError(GitPilotError):
    """Malformed typed input. Raised before any subprocess is started."""

    code: ClassVar[str] = "invalid_input"


@dataclass(eq=False)
class ProcessError(GitPilotError):
    """The git executable could not be launched."""

    code: ClassVar[str] = "git_launch_failed"


@dataclass(eq=False)
class GitNotFound(ProcessError):
    code: ClassVar[str] = "git_not_found"


@dataclass(eq=False)
class GitTimeoutError(GitPilotError):
    """The git process exceeded its timeout and was killed."""

    code: ClassVar[str] = "git_timeout"

    retryable: bool = True


@dataclass(eq=False)
class ParseError(GitPilotError):
    """Git succeeded but its output did not have the expected structure.

    Usually means the installed git emits a format this library does not know.
    """

    code: ClassVar[str] = "parse_failed"


@dataclass(eq=False)
class GitOperationError(GitPilotError):
    """Git ran and exited non-zero."""

    code: ClassVar[str] = "git_operation_failed"

    command: list[str] = field(default_factory=list)
    exit_code: int | None = None
    stderr: str = ""
    stdout: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "command": list(self.command),
                "exit_code": self.exit_code,
                "stderr": self.stderr,
            }
        )
        return data


@dataclass(eq=False)
class NotARepository(GitOperationError):
    code: ClassVar[str] = "not_a_git_repo"


@dataclass(eq=False)
class MergeConflict(GitOperationError):
    code: ClassVar[str] = "merge_conflict"


@dataclass(eq=False)
class AuthenticationFailed(GitOperationError):
    code: ClassVar[str] = "authentication_failed"


@dataclass(eq=False)
class NothingToCommit(GitOperationError):
    code: ClassVar[str] = "nothing_to_commit"


@dataclass(eq=False)
class BranchAlreadyExists(GitOperationError):
    code: ClassVar[str] = "branch_exists"


@dataclass(eq=False)
class ReferenceNotFound(GitOperationError):
    code: ClassVar[str] = "reference_not_found"


@dataclass(eq=False)
class RemoteNotFound(GitOperationError):
    code: ClassVar[str] = "remote_not_found"


@dataclass(eq=False)
class NoUpstream(GitOperationError):
    code: ClassVar[str] = "no_upstream"


@dataclass(eq=False)
class PushRejected(GitOperationError):
    code: ClassVar[str] = "push_rejected"


@dataclass(eq=False)
class IndexLocked(GitOperationError):
    """Another git process holds the index lock for this repository."""

    code: ClassVar[str] = "index_locked"


@dataclass(eq=False)
class DestinationExists(GitOperationError):
    code: ClassVar[str] = "destination_exists"


@dataclass(eq=False)
class NetworkError(GitOperationError):
    code: ClassVar[str] = "network_error"


@dataclass(eq=False)
class CommandFailed(GitOperationError):
    """Non-zero exit that matched no known stderr pattern."""

    code: ClassVar[str] = "git_command_failed"
