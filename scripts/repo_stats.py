#!/usr/bin/env python3
"""
Print commit statistics for a git repository.

Usage:
    python scripts/repo_stats.py <repository_path> [--clone <repo_url>] [--max-count N]

Opens (or clones) the repository, summarises commits per author over the most
recent history and prints the current working tree status.
"""

import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from gitpilot import Commit, GitPilotError, ParseError, Repository, RepositoryStatus
from gitpilot.observability import configure_logging


@dataclass
class AuthorStats:
    author: str
    commits: int
    first_commit: datetime
    last_commit: datetime


def collect_author_stats(commits: Iterable[Commit]) -> List[AuthorStats]:
    """
    Aggregate commits by author name.

    Returns:
        One entry per author, most active first
    """
    by_author: dict[str, AuthorStats] = {}
    for commit in commits:
        stats = by_author.get(commit.author_name)
        if stats is None:
            by_author[commit.author_name] = AuthorStats(
                author=commit.author_name,
                commits=1,
                first_commit=commit.authored_at,
                last_commit=commit.authored_at,
            )
            continue
        stats.commits += 1
        stats.first_commit = min(stats.first_commit, commit.authored_at)
        stats.last_commit = max(stats.last_commit, commit.authored_at)
    return sorted(by_author.values(), key=lambda s: (-s.commits, s.author))


def commits_per_day(commits: List[Commit]) -> Optional[float]:
    """Average commit rate over the span of `commits`, None for a zero-length span."""
    if not commits:
        return None
    timestamps = [c.authored_at for c in commits]
    days = (max(timestamps) - min(timestamps)).total_seconds() / 86400
    if days <= 0:
        return None
    return len(commits) / days


def format_status(status: RepositoryStatus) -> str:
    if status.is_clean:
        return "Working tree clean"
    lines = []
    for entry in status.entries:
        marker = "S" if entry.staged else " "
        marker += "W" if entry.unstaged else " "
        path = entry.path
        if entry.original_path:
            path = f"{entry.original_path} -> {entry.path}"
        lines.append(f"  [{marker}] {entry.status.value:<12} {path}")
    return "\n".join(lines)


def _parse_args(argv: List[str]) -> tuple[Path, Optional[str], int]:
    if not argv:
        raise ValueError("Usage: repo_stats.py <repository_path> [--clone <repo_url>] [--max-count N]")
    path = Path(argv[0])
    clone_url = None
    max_count = 100
    rest = argv[1:]
    while rest:
        flag = rest.pop(0)
        if flag == "--clone" and rest:
            clone_url = rest.pop(0)
        elif flag == "--max-count" and rest:
            max_count = int(rest.pop(0))
        else:
            raise ValueError(f"Unknown or incomplete option: {flag}")
    return path, clone_url, max_count


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the statistics script.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    configure_logging(level="WARNING")

    try:
        repo_path, clone_url, max_count = _parse_args(sys.argv[1:] if argv is None else argv)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1

    try:
        if clone_url:
            print(f"Cloning {clone_url} into {repo_path}...")
            repo = Repository.clone(clone_url, repo_path)
        elif repo_path.exists():
            repo = Repository.open(repo_path)
        else:
            print("Error: Directory does not exist. Use --clone to clone a repository.", file=sys.stderr)
            return 1

        print("Repository Analysis")
        print("===================")

        head = next((b for b in repo.branches() if b.is_head), None)
        if head is not None:
            print(f"Current branch: {head.name}")
        else:
            print("Not on any branch (detached HEAD)")

        print("\nRemotes:")
        for remote in repo.list_remotes():
            try:
                url = str(repo.remote_url(remote))
            except ParseError:
                # local paths and file:// remotes are not GitUrl values
                url = repo.run("remote", "get-url", str(remote)).strip()
            print(f"  {remote} -> {url}")

        commits = repo.log(max_count=max_count)
        print(f"\nFound {len(commits)} commits")

        print("\nAuthor Statistics:")
        print(f"{'Author':<20} {'Commits':<10} {'First Commit':<15} {'Last Commit':<15}")
        print("-" * 60)
        for stats in collect_author_stats(commits):
            print(
                f"{stats.author:<20} {stats.commits:<10} "
                f"{stats.first_commit:%Y-%m-%d}{'':<5} {stats.last_commit:%Y-%m-%d}"
            )

        rate = commits_per_day(commits)
        if rate is not None:
            print(f"\nCommit frequency: {rate:.2f} commits per day")

        print("\nCurrent Repository Status:")
        print(format_status(repo.status()))
        return 0
    except GitPilotError as e:
        print(f"Error [{e.code}]: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
