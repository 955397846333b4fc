"""Structured results produced by parsing git output."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .types import BranchName, CommitHash


class FileStatus(str, Enum):
    """Classification of one path in `git status` output."""

    MODIFIED = "modified"
    TYPE_CHANGED = "type_changed"
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    UNTRACKED = "untracked"
    IGNORED = "ignored"
    CONFLICTED = "conflicted"


@dataclass(frozen=True)
class StatusEntry:
    """A single path with its status classification."""

    path: str
    status: FileStatus
    staged: bool = False
    unstaged: bool = False
    original_path: Optional[str] = None
    code: str = ""  # Raw XY code, porcelain v1 spelling ("M ", "??")

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "status": self.status.value,
            "staged": self.staged,
            "unstaged": self.unstaged,
            "original_path": self.original_path,
            "code": self.code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StatusEntry:
        return cls(
            path=data["path"],
            status=FileStatus(data["status"]),
            staged=bool(data.get("staged", False)),
            unstaged=bool(data.get("unstaged", False)),
            original_path=data.get("original_path"),
            code=data.get("code", ""),
        )


@dataclass(frozen=True)
class RepositoryStatus:
    """Parsed result of `git status --porcelain=v2 --branch`."""

    entries: tuple[StatusEntry, ...] = ()
    branch: Optional[BranchName] = None  # None when HEAD is detached
    upstream: Optional[str] = None
    ahead: int = 0
    behind: int = 0

    @property
    def is_clean(self) -> bool:
        return not self.entries

    @property
    def staged(self) -> list[StatusEntry]:
        return [entry for entry in self.entries if entry.staged]

    @property
    def unstaged(self) -> list[StatusEntry]:
        return [entry for entry in self.entries if entry.unstaged]

    @property
    def untracked(self) -> list[StatusEntry]:
        return [entry for entry in self.entries if entry.status is FileStatus.UNTRACKED]

    @property
    def conflicted(self) -> list[StatusEntry]:
        return [entry for entry in self.entries if entry.status is FileStatus.CONFLICTED]

    def to_dict(self) -> dict[str, Any]:
        return {
            "branch": self.branch.to_dict() if self.branch else None,
            "upstream": self.upstream,
            "ahead": self.ahead,
            "behind": self.behind,
            "is_clean": self.is_clean,
            "entries": [entry.to_dict() for entry in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RepositoryStatus:
        branch = data.get("branch")
        return cls(
            entries=tuple(StatusEntry.from_dict(item) for item in data.get("entries", [])),
            branch=BranchName.from_dict(branch) if branch else None,
            upstream=data.get("upstream"),
            ahead=int(data.get("ahead", 0)),
            behind=int(data.get("behind", 0)),
        )


@dataclass(frozen=True)
class Commit:
    """Commit metadata read from `git show` / `git log`."""

    hash: CommitHash
    short_hash: CommitHash
    author_name: str
    author_email: str
    authored_at: datetime
    message: str
    parents: tuple[CommitHash, ...] = field(default_factory=tuple)

    @property
    def summary(self) -> str:
        return self.message.split("\n", 1)[0]

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash.to_dict(),
            "short_hash": self.short_hash.to_dict(),
            "author_name": self.author_name,
            "author_email": self.author_email,
            "authored_at": self.authored_at.isoformat(),
            "message": self.message,
            "parents": [parent.to_dict() for parent in self.parents],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Commit:
        return cls(
            hash=CommitHash.from_dict(data["hash"]),
            short_hash=CommitHash.from_dict(data["short_hash"]),
            author_name=data["author_name"],
            author_email=data["author_email"],
            authored_at=datetime.fromisoformat(data["authored_at"]),
            message=data["message"],
            parents=tuple(CommitHash.from_dict(p) for p in data.get("parents", [])),
        )


@dataclass(frozen=True)
class Branch:
    """Local branch with the commit it points to."""

    name: BranchName
    commit: CommitHash
    is_head: bool = False
    upstream: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name.to_dict(),
            "commit": self.commit.to_dict(),
            "is_head": self.is_head,
            "upstream": self.upstream,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Branch:
        return cls(
            name=BranchName.from_dict(data["name"]),
            commit=CommitHash.from_dict(data["commit"]),
            is_head=bool(data.get("is_head", False)),
            upstream=data.get("upstream"),
        )
