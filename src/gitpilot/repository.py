"""Blocking facade over the git command line."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence, TypeVar, Union

import structlog

from . import commands
from .commands import BranchLike, ErrorPattern, GitCommand, RemoteLike, Revision, UrlLike
from .config import ConfigManager
from .models import Branch, Commit, RepositoryStatus
from .process import PathLike, run_git
from .types import BranchName, CommitHash, GitUrl, RemoteName

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class Repository:
    """A git working directory.

    The handle only stores the path; each method runs a new git process scoped
    to it and blocks until that process exits. Calls are not serialized. Git
    takes a lock on the index for writing operations, so concurrent writers on
    one working directory can fail with IndexLocked; callers that share a
    repository between threads must serialize those calls themselves.
    """

    def __init__(
        self,
        path: PathLike,
        config: Optional[ConfigManager] = None,
        error_patterns: Sequence[ErrorPattern] = (),
    ):
        self.path = Path(path)
        self.config = config or ConfigManager()
        self.error_patterns = tuple(error_patterns)

    def __repr__(self) -> str:
        return f"Repository({str(self.path)!r})"

    def _execute(self, command: GitCommand[T]) -> Optional[T]:
        result = run_git(
            command.subcommand,
            command.args,
            cwd=self.path if command.scoped else None,
            git_binary=self.config.get("git.binary"),
            timeout_seconds=self.config.get(command.timeout_key),
        )
        return commands.interpret(command, result, self.error_patterns)

    # --- Construction ---

    @classmethod
    def open(
        cls,
        path: PathLike,
        config: Optional[ConfigManager] = None,
        error_patterns: Sequence[ErrorPattern] = (),
    ) -> Repository:
        """Return a handle after checking that `path` is inside a work tree.

        Raises:
            NotARepository: If git does not recognise the path
        """
        repo = cls(path, config, error_patterns)
        toplevel = repo._execute(commands.toplevel())
        logger.debug("repository_opened", path=str(repo.path), toplevel=toplevel)
        return repo

    @classmethod
    def clone(
        cls,
        url: UrlLike,
        destination: PathLike,
        config: Optional[ConfigManager] = None,
        error_patterns: Sequence[ErrorPattern] = (),
    ) -> Repository:
        """Clone `url` into `destination` (`git clone -- <url> <destination>`)."""
        repo = cls(destination, config, error_patterns)
        repo._execute(commands.clone(url, destination))
        logger.info("repository_cloned", url=str(url), path=str(repo.path))
        return repo

    @classmethod
    def init(
        cls,
        path: PathLike,
        initial_branch: Optional[BranchLike] = None,
        config: Optional[ConfigManager] = None,
        error_patterns: Sequence[ErrorPattern] = (),
    ) -> Repository:
        """Create (or reinitialise) a repository at `path`."""
        repo = cls(path, config, error_patterns)
        repo._execute(commands.init(path, initial_branch))
        logger.info("repository_initialized", path=str(repo.path))
        return repo

    # --- Branches ---

    def list_branches(self) -> list[BranchName]:
        return self._execute(commands.list_branches())

    def branches(self) -> list[Branch]:
        """Local branches with their tip commit, HEAD marker and upstream."""
        return self._execute(commands.branches())

    def create_local_branch(self, name: BranchLike, start_point: Optional[Revision] = None) -> None:
        """Create a branch and check it out (`git checkout -b`)."""
        self._execute(commands.create_local_branch(name, start_point))

    def switch_branch(self, name: BranchLike) -> None:
        self._execute(commands.switch_branch(name))

    # --- Working tree ---

    def status(self) -> RepositoryStatus:
        return self._execute(commands.status())

    def add(self, paths: Union[PathLike, Iterable[PathLike]]) -> None:
        self._execute(commands.add(paths))

    def remove(
        self,
        paths: Union[PathLike, Iterable[PathLike]],
        force: bool = False,
        cached: bool = False,
    ) -> None:
        self._execute(commands.remove(paths, force=force, cached=cached))

    def list_tracked(self) -> list[str]:
        return self._execute(commands.list_tracked())

    # --- Commits ---

    def commit_staged(self, message: str) -> Commit:
        """Commit the index and return the new HEAD commit.

        Raises:
            NothingToCommit: If nothing is staged
        """
        self._execute(commands.commit(message))
        return self.get_commit("HEAD")

    def commit_all(self, message: str) -> Commit:
        """Stage every modified tracked file and commit (`git commit -a`)."""
        self._execute(commands.commit(message, all_tracked=True))
        return self.get_commit("HEAD")

    def get_commit(self, ref: Revision = "HEAD") -> Commit:
        return self._execute(commands.get_commit(ref))

    def log(self, max_count: Optional[int] = None, ref: Revision = "HEAD") -> list[Commit]:
        return self._execute(commands.log(max_count, ref))

    def head_hash(self, short: bool = False) -> CommitHash:
        return self._execute(commands.head_hash(short))

    # --- Remotes ---

    def push(
        self,
        remote: Optional[RemoteLike] = None,
        branch: Optional[BranchLike] = None,
        set_upstream: bool = False,
    ) -> None:
        self._execute(commands.push(remote, branch, set_upstream))

    def pull(
        self,
        remote: Optional[RemoteLike] = None,
        branch: Optional[BranchLike] = None,
        rebase: bool = False,
    ) -> None:
        self._execute(commands.pull(remote, branch, rebase))

    def fetch(self, remote: Optional[RemoteLike] = None) -> None:
        self._execute(commands.fetch(remote))

    def add_remote(self, name: RemoteLike, url: UrlLike) -> None:
        self._execute(commands.add_remote(name, url))

    def list_remotes(self) -> list[RemoteName]:
        return self._execute(commands.list_remotes())

    def remote_url(self, name: RemoteLike) -> GitUrl:
        return self._execute(commands.remote_url(name))

    # --- History rewriting ---

    def rebase(self, upstream: Revision) -> None:
        self._execute(commands.rebase(upstream))

    def rebase_continue(self) -> None:
        self._execute(commands.rebase_continue())

    def rebase_abort(self) -> None:
        self._execute(commands.rebase_abort())

    def cherry_pick(self, commits: Union[Revision, Iterable[Revision]]) -> None:
        self._execute(commands.cherry_pick(commits))

    def cherry_pick_continue(self) -> None:
        self._execute(commands.cherry_pick_continue())

    def cherry_pick_abort(self) -> None:
        self._execute(commands.cherry_pick_abort())

    # --- Escape hatch ---

    def run(self, *args: str) -> str:
        """Run an arbitrary git subcommand in this repository and return stdout."""
        return self._execute(commands.raw(args))
