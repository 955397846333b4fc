"""Validated value types used to build git command lines."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from .errors import ValidationError

# Pattern from https://github.com/jonschlinkert/is-git-url, anchored at the start.
GIT_URL_PATTERN = re.compile(
    r"^(?:git|ssh|https?|git@[-\w.]+):(//)?(.*?)(\.git)(/?|#[-\d\w._]+?)$"
)

INVALID_REF_CHARS = frozenset(" ~^:\\?*[]")
INVALID_REF_SEQUENCES = ("..", "//", "/.", "@{")
COMMIT_HASH_PATTERN = re.compile(r"^[0-9a-f]{4,64}$")


def _reject(kind: str, value: Any, rule: str, message: str) -> ValidationError:
    return ValidationError(
        message=message,
        details={"type": kind, "value": value, "rule": rule},
    )


def _require_text(kind: str, value: Any) -> str:
    if not isinstance(value, str):
        raise _reject(kind, value, "not_a_string", f"{kind} must be a string")
    if not value:
        raise _reject(kind, value, "empty", f"{kind} cannot be empty")
    return value


def _check_ref_name(kind: str, name: str) -> None:
    """Approximation of `git check-ref-format` rules for a single ref name."""
    for char in name:
        if char in INVALID_REF_CHARS or ord(char) < 0x20 or ord(char) == 0x7F:
            raise _reject(kind, name, "illegal_character", f"{kind} contains illegal character {char!r}")
    for sequence in INVALID_REF_SEQUENCES:
        if sequence in name:
            raise _reject(kind, name, "illegal_sequence", f"{kind} cannot contain {sequence!r}")
    if name == "@":
        raise _reject(kind, name, "reserved_name", f"{kind} cannot be '@'")
    if name.startswith(("-", ".", "/")):
        raise _reject(kind, name, "leading_character", f"{kind} cannot start with {name[0]!r}")
    if name.endswith((".", "/")):
        raise _reject(kind, name, "trailing_character", f"{kind} cannot end with {name[-1]!r}")
    if name.endswith(".lock") or "/.lock" in name or ".lock/" in name:
        raise _reject(kind, name, "lock_suffix", f"{kind} components cannot end with '.lock'")


@dataclass(frozen=True)
class GitUrl:
    """Remote repository location accepted by `git clone` and `git remote add`."""

    value: str

    @classmethod
    def parse(cls, text: str) -> GitUrl:
        value = _require_text("GitUrl", text)
        if any(char.isspace() for char in value):
            raise _reject("GitUrl", value, "whitespace", "Git URL cannot contain whitespace")
        if not GIT_URL_PATTERN.match(value):
            raise _reject(
                "GitUrl",
                value,
                "bad_scheme",
                "Git URL must use git://, ssh://, http(s):// or git@host: and end in .git",
            )
        return cls(value)

    def __str__(self) -> str:
        return self.value

    def to_dict(self) -> str:
        return self.value

    @classmethod
    def from_dict(cls, data: str) -> GitUrl:
        return cls.parse(data)


@dataclass(frozen=True)
class BranchName:
    """Local branch (or general ref) name."""

    value: str

    @classmethod
    def parse(cls, text: str) -> BranchName:
        value = _require_text("BranchName", text)
        _check_ref_name("BranchName", value)
        return cls(value)

    def __str__(self) -> str:
        return self.value

    def to_dict(self) -> str:
        return self.value

    @classmethod
    def from_dict(cls, data: str) -> BranchName:
        return cls.parse(data)


@dataclass(frozen=True)
class RemoteName:
    value: str

    @classmethod
    def parse(cls, text: str) -> RemoteName:
        value = _require_text("RemoteName", text)
        _check_ref_name("RemoteName", value)
        if "/" in value:
            raise _reject("RemoteName", value, "illegal_character", "Remote name cannot contain '/'")
        return cls(value)

    def __str__(self) -> str:
        return self.value

    def to_dict(self) -> str:
        return self.value

    @classmethod
    def from_dict(cls, data: str) -> RemoteName:
        return cls.parse(data)


@dataclass(frozen=True)
class CommitHash:
    """Full or abbreviated object name, normalised to lower case."""

    value: str

    @classmethod
    def parse(cls, text: str) -> CommitHash:
        value = _require_text("CommitHash", text).lower()
        if not COMMIT_HASH_PATTERN.match(value):
            raise _reject(
                "CommitHash",
                text,
                "not_hex",
                "Commit hash must be 4-64 hexadecimal characters",
            )
        return cls(value)

    def __str__(self) -> str:
        return self.value

    def to_dict(self) -> str:
        return self.value

    @classmethod
    def from_dict(cls, data: str) -> CommitHash:
        return cls.parse(data)
