#!/usr/bin/env python3
"""
Clone a repository with the asyncio API and print a short summary of it.

Usage:
    python scripts/async_clone.py <repo_url> <target_directory>

Example:
    python scripts/async_clone.py https://github.com/psf/requests.git ./requests

Refuses to touch an existing non-empty target directory.
"""

import asyncio
import sys
import time
from pathlib import Path
from typing import List, Optional

from gitpilot import (
    AsyncRepository,
    BranchAlreadyExists,
    BranchName,
    DestinationExists,
    GitPilotError,
    GitUrl,
    ValidationError,
)
from gitpilot.observability import configure_logging

EXAMPLE_BRANCH = BranchName.parse("pilot-git-example-branch")


def _parse_args(argv: List[str]) -> tuple[GitUrl, Path]:
    if len(argv) < 2:
        raise ValueError(
            "Usage: async_clone.py <repo_url> <target_directory>\n"
            "Example: async_clone.py https://github.com/psf/requests.git ./requests"
        )
    return GitUrl.parse(argv[0]), Path(argv[1])


def destination_in_use(target: Path) -> bool:
    """True when `git clone` would refuse `target`: a file, or a non-empty directory."""
    if not target.exists():
        return False
    if not target.is_dir():
        return True
    return any(target.iterdir())


async def clone_and_inspect(url: GitUrl, target: Path) -> int:
    print(f"Cloning {url} into {target}")
    started = time.monotonic()
    try:
        repo = await AsyncRepository.clone(url, target)
    except DestinationExists:
        print(f"Error: Target directory already exists: {target}", file=sys.stderr)
        return 1
    except GitPilotError as e:
        print(f"Failed to clone repository [{e.code}]: {e}", file=sys.stderr)
        return 1
    print(f"Clone completed successfully in {time.monotonic() - started:.2f} seconds")

    print("\nRepository information:")
    print("=====================")

    try:
        branches = await repo.list_branches()
        print("Branches:")
        if not branches:
            print("  (No local branches found, the remote may be empty)")
        for branch in branches:
            print(f"  {branch}")
    except GitPilotError as e:
        print(f"Failed to list branches: {e}", file=sys.stderr)

    try:
        commit = await repo.get_commit()
        print("\nCurrent commit (HEAD):")
        print(f"  Hash: {commit.hash}")
        print(f"  Short hash: {commit.short_hash}")
        print(f"  Author: {commit.author_name} <{commit.author_email}>")
        print(f"  Message: {commit.summary}")
    except GitPilotError as e:
        print(f"Failed to get current commit: {e}", file=sys.stderr)

    try:
        status = await repo.status()
        print("\nStatus:")
        print(f"  Current Branch: {status.branch or '(Detached HEAD or unknown)'}")
        print(f"  Is Clean: {status.is_clean}")
        print(f"  Changed Files: {len(status.entries)}")
    except GitPilotError as e:
        print(f"Failed to get status: {e}", file=sys.stderr)

    print(f"\nAttempting to create new branch: {EXAMPLE_BRANCH}")
    try:
        await repo.create_local_branch(EXAMPLE_BRANCH)
        print(f"  Branch '{EXAMPLE_BRANCH}' created successfully")
    except BranchAlreadyExists:
        print(f"  Branch '{EXAMPLE_BRANCH}' already exists, switching to it.")
        try:
            await repo.switch_branch(EXAMPLE_BRANCH)
            print(f"  Switched to branch '{EXAMPLE_BRANCH}'")
        except GitPilotError as e:
            print(f"  Failed to switch to existing branch '{EXAMPLE_BRANCH}': {e}", file=sys.stderr)
    except GitPilotError as e:
        print(f"  Failed to create branch '{EXAMPLE_BRANCH}': {e}", file=sys.stderr)

    print("\nAsync example operations completed!")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the clone script.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    configure_logging(level="WARNING")

    try:
        url, target = _parse_args(sys.argv[1:] if argv is None else argv)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"Error parsing Git URL: {e}", file=sys.stderr)
        return 1

    if destination_in_use(target):
        print(f"Error: Target directory already exists: {target}", file=sys.stderr)
        return 1
    target.parent.mkdir(parents=True, exist_ok=True)

    return asyncio.run(clone_and_inspect(url, target))


if __name__ == "__main__":
    sys.exit(main())
