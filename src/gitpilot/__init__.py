"""GitPilot: typed access to the git command line.

Requires the `git` executable on PATH (or configured via `git.binary`).
"""

from .async_repository import AsyncRepository
from .commands import ERROR_PATTERNS, ErrorPattern
from .config import ConfigManager, load_config
from .errors import (
    AuthenticationFailed,
    BranchAlreadyExists,
    CommandFailed,
    DestinationExists,
    GitNotFound,
    GitOperationError,
    GitPilotError,
    GitTimeoutError,
    IndexLocked,
    MergeConflict,
    NetworkError,
    NothingToCommit,
    NotARepository,
    NoUpstream,
    ParseError,
    ProcessError,
    PushRejected,
    ReferenceNotFound,
    RemoteNotFound,
    ValidationError,
)
from .models import Branch, Commit, FileStatus, RepositoryStatus, StatusEntry
from .process import ProcessResult
from .repository import Repository
from .types import BranchName, CommitHash, GitUrl, RemoteName

__version__ = "0.2.0"

__all__ = [
    "AsyncRepository",
    "AuthenticationFailed",
    "Branch",
    "BranchAlreadyExists",
    "BranchName",
    "CommandFailed",
    "Commit",
    "CommitHash",
    "ConfigManager",
    "DestinationExists",
    "ERROR_PATTERNS",
    "ErrorPattern",
    "FileStatus",
    "GitNotFound",
    "GitOperationError",
    "GitPilotError",
    "GitTimeoutError",
    "GitUrl",
    "IndexLocked",
    "MergeConflict",
    "NetworkError",
    "NoUpstream",
    "NotARepository",
    "NothingToCommit",
    "ParseError",
    "ProcessError",
    "ProcessResult",
    "PushRejected",
    "ReferenceNotFound",
    "RemoteName",
    "RemoteNotFound",
    "Repository",
    "RepositoryStatus",
    "StatusEntry",
    "ValidationError",
    "load_config",
]
