"""Pure parsers turning captured git stdout into typed values.

Every parser takes the complete decoded stdout of one invocation. Blank trailing
lines and empty trailing records are tolerated; anything else that does not fit
the expected record layout raises ParseError instead of being dropped.

Line-oriented output is split on line feeds only. Path output comes from `-z` modes and
is used verbatim, because file names may contain any other character.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from .errors import ParseError, ValidationError
from .models import Branch, Commit, FileStatus, RepositoryStatus, StatusEntry
from .types import BranchName, CommitHash, GitUrl, RemoteName

FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"

# Fields: full hash, short hash, author name, author email, ISO author date,
# parent hashes, raw body.
COMMIT_FORMAT_ARG = "--format=%x1e" + "%x1f".join(["%H", "%h", "%an", "%ae", "%aI", "%P", "%B"])

BRANCH_FORMAT_ARG = "--format=%(refname:short)%09%(objectname)%09%(HEAD)%09%(upstream:short)"

_AHEAD_BEHIND = re.compile(r"^\+(\d+) -(\d+)$")

_WORKTREE_KINDS = {
    "M": FileStatus.MODIFIED,
    "T": FileStatus.TYPE_CHANGED,
    "D": FileStatus.DELETED,
    "A": FileStatus.ADDED,
    "R": FileStatus.RENAMED,
    "C": FileStatus.COPIED,
}
_INDEX_KINDS = {
    "A": FileStatus.ADDED,
    "R": FileStatus.RENAMED,
    "C": FileStatus.COPIED,
}
_UNMERGED_CODES = ("DD", "AU", "UD", "UA", "DU", "AA", "UU")


def _build_status_table() -> dict[str, tuple[FileStatus, bool, bool]]:
    """Every XY pair listed in git-status(1), mapped to (status, staged, unstaged)."""
    table: dict[str, tuple[FileStatus, bool, bool]] = {}

    for y, kind in _WORKTREE_KINDS.items():
        table[" " + y] = (kind, False, True)

    for x in "MTARC":
        for y in " MTD":
            if x in _INDEX_KINDS:
                kind = _INDEX_KINDS[x]
            elif y == "D":
                kind = FileStatus.DELETED
            elif "T" in (x, y):
                kind = FileStatus.TYPE_CHANGED
            else:
                kind = FileStatus.MODIFIED
            table[x + y] = (kind, True, y != " ")

    table["D "] = (FileStatus.DELETED, True, False)

    for code in _UNMERGED_CODES:
        table[code] = (FileStatus.CONFLICTED, False, True)

    table["??"] = (FileStatus.UNTRACKED, False, False)
    table["!!"] = (FileStatus.IGNORED, False, False)
    return table


STATUS_CODES = _build_status_table()


def _parse_error(message: str, **details) -> ParseError:
    return ParseError(message=message, details=details)


def classify_status_code(code: str) -> tuple[FileStatus, bool, bool]:
    """Map a two-character XY code to (status, staged, unstaged).

    Accepts porcelain v1 (space) and v2 (dot) spellings of "unchanged".
    """
    normalized = code.replace(".", " ")
    if len(normalized) != 2 or normalized not in STATUS_CODES:
        raise _parse_error(f"Unrecognized status code {code!r}", code=code)
    return STATUS_CODES[normalized]


def _split_record(record: str, field_count: int, record_number: int) -> list[str]:
    fields = record.split(" ", field_count - 1)
    if len(fields) != field_count or not fields[-1]:
        raise _parse_error(
            f"Expected {field_count} fields in status record",
            record=record,
            record_number=record_number,
        )
    return fields


def _status_entry(
    code: str,
    path: str,
    record: str,
    record_number: int,
    original_path: Optional[str] = None,
) -> StatusEntry:
    try:
        status, staged, unstaged = classify_status_code(code)
    except ParseError as exc:
        exc.details = {**(exc.details or {}), "record": record, "record_number": record_number}
        raise
    return StatusEntry(
        path=path,
        status=status,
        staged=staged,
        unstaged=unstaged,
        original_path=original_path,
        code=code.replace(".", " "),
    )


def parse_status(text: str) -> RepositoryStatus:
    """Parse `git status --porcelain=v2 --branch -z` output.

    Records are NUL-terminated and paths are never quoted in this mode, so a
    path is taken verbatim, including leading or trailing whitespace. A rename
    or copy record is followed by one extra field holding the original path.
    """
    branch: Optional[BranchName] = None
    upstream: Optional[str] = None
    ahead = 0
    behind = 0
    entries: list[StatusEntry] = []

    records = text.split("\0")
    # Only the terminator after the last record (and a stray newline) is slack.
    while records and records[-1] in ("", "\n"):
        records.pop()

    index = 0
    while index < len(records):
        record = records[index]
        record_number = index + 1
        index += 1

        if record.startswith("# "):
            if record.startswith("# branch.head "):
                head = record[len("# branch.head "):]
                if head != "(detached)":
                    branch = parse_branch_name(head)
            elif record.startswith("# branch.upstream "):
                upstream = record[len("# branch.upstream "):]
            elif record.startswith("# branch.ab "):
                match = _AHEAD_BEHIND.match(record[len("# branch.ab "):])
                if not match:
                    raise _parse_error("Malformed ahead/behind header", record=record, record_number=record_number)
                ahead, behind = int(match.group(1)), int(match.group(2))
            # Other headers (branch.oid, stash) carry nothing we expose.
            continue

        kind = record[:2]
        if kind == "1 ":
            fields = _split_record(record, 9, record_number)
            entries.append(_status_entry(fields[1], fields[8], record, record_number))
        elif kind == "2 ":
            fields = _split_record(record, 10, record_number)
            if index >= len(records) or not records[index]:
                raise _parse_error(
                    "Rename record is missing its original path",
                    record=record,
                    record_number=record_number,
                )
            original_path = records[index]
            index += 1
            entries.append(
                _status_entry(fields[1], fields[9], record, record_number, original_path=original_path)
            )
        elif kind == "u ":
            fields = _split_record(record, 11, record_number)
            entries.append(_status_entry(fields[1], fields[10], record, record_number))
        elif kind == "? " and len(record) > 2:
            entries.append(_status_entry("??", record[2:], record, record_number))
        elif kind == "! " and len(record) > 2:
            entries.append(_status_entry("!!", record[2:], record, record_number))
        else:
            raise _parse_error("Unrecognized status record", record=record, record_number=record_number)

    return RepositoryStatus(
        entries=tuple(entries),
        branch=branch,
        upstream=upstream,
        ahead=ahead,
        behind=behind,
    )


def parse_branch_name(text: str) -> BranchName:
    try:
        return BranchName.parse(text.strip())
    except ValidationError as exc:
        raise _parse_error("git reported an invalid branch name", value=text, rule=(exc.details or {}).get("rule")) from exc


def parse_branch_names(text: str) -> list[BranchName]:
    return [parse_branch_name(line) for line in text.split("\n") if line.strip()]


def parse_branches(text: str) -> list[Branch]:
    """Parse for-each-ref lines produced with BRANCH_FORMAT_ARG."""
    branches: list[Branch] = []
    for line_number, line in enumerate(text.split("\n"), start=1):
        if not line.strip():
            continue
        fields = [part.strip() for part in line.split("\t")]
        if len(fields) not in (3, 4) or not fields[0] or not fields[1]:
            raise _parse_error("Malformed branch record", line=line, line_number=line_number)
        upstream = fields[3] if len(fields) == 4 and fields[3] else None
        branches.append(
            Branch(
                name=parse_branch_name(fields[0]),
                commit=parse_commit_hash(fields[1]),
                is_head=fields[2] == "*",
                upstream=upstream,
            )
        )
    return branches


def parse_remote_names(text: str) -> list[RemoteName]:
    remotes: list[RemoteName] = []
    for line in text.split("\n"):
        if not line.strip():
            continue
        try:
            remotes.append(RemoteName.parse(line.strip()))
        except ValidationError as exc:
            raise _parse_error("git reported an invalid remote name", value=line) from exc
    return remotes


def parse_commit_hash(text: str) -> CommitHash:
    value = text.strip()
    try:
        return CommitHash.parse(value)
    except ValidationError as exc:
        raise _parse_error("Expected a commit hash", value=value) from exc


def parse_url(text: str) -> GitUrl:
    value = text.strip()
    try:
        return GitUrl.parse(value)
    except ValidationError as exc:
        raise _parse_error("Remote URL is not a recognized git URL", value=value) from exc


def parse_paths(text: str) -> list[str]:
    """Split NUL-terminated path output (`-z`)."""
    return [path for path in text.split("\0") if path]


def parse_toplevel(text: str) -> str:
    value = text.strip()
    if not value or "\n" in value:
        raise _parse_error("Expected a single repository path", value=text)
    return value


def _parse_commit_record(record: str) -> Commit:
    fields = record.split(FIELD_SEP, 6)
    if len(fields) != 7:
        raise _parse_error(
            f"Commit record has {len(fields)} fields, expected 7",
            record=record,
        )
    full_hash, short_hash, author_name, author_email, authored_at, parents, message = fields
    try:
        timestamp = datetime.fromisoformat(authored_at.strip())
    except ValueError as exc:
        raise _parse_error("Invalid commit timestamp", field="authored_at", value=authored_at) from exc

    return Commit(
        hash=parse_commit_hash(full_hash),
        short_hash=parse_commit_hash(short_hash),
        author_name=author_name,
        author_email=author_email,
        authored_at=timestamp,
        message=message.rstrip(),
        parents=tuple(parse_commit_hash(p) for p in parents.split()),
    )


def parse_log(text: str) -> list[Commit]:
    """Parse output produced with COMMIT_FORMAT_ARG, one record per commit."""
    records = text.split(RECORD_SEP)
    if records[0].strip():
        raise _parse_error("Unexpected output before first commit record", output=records[0])
    return [_parse_commit_record(record) for record in records[1:]]


def parse_commit(text: str) -> Commit:
    commits = parse_log(text)
    if len(commits) != 1:
        raise _parse_error(f"Expected exactly one commit, got {len(commits)}", output=text)
    return commits[0]
