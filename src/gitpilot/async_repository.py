"""asyncio facade over the git command line.

Mirrors Repository method for method. The calling task is suspended while git
runs; cancelling it kills the git process.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence, TypeVar, Union

import structlog

from . import commands
from .commands import BranchLike, ErrorPattern, GitCommand, RemoteLike, Revision, UrlLike
from .config import ConfigManager
from .models import Branch, Commit, RepositoryStatus
from .process import PathLike, run_git_async
from .types import BranchName, CommitHash, GitUrl, RemoteName

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class AsyncRepository:
    """A git working directory driven from asyncio.

    Same contract as Repository, including the lack of serialization between
    concurrent calls on one working directory.
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
        return f"AsyncRepository({str(self.path)!r})"

    async def _execute(self, command: GitCommand[T]) -> Optional[T]:
        result = await run_git_async(
            command.subcommand,
            command.args,
            cwd=self.path if command.scoped else None,
            git_binary=self.config.get("git.binary"),
            timeout_seconds=self.config.get(command.timeout_key),
        )
        return commands.interpret(command, result, self.error_patterns)

    @classmethod
    async def open(
        cls,
        path: PathLike,
        config: Optional[ConfigManager] = None,
        error_patterns: Sequence[ErrorPattern] = (),
    ) -> AsyncRepository:
        repo = cls(path, config, error_patterns)
        toplevel = await repo._execute(commands.toplevel())
        logger.debug("repository_opened", path=str(repo.path), toplevel=toplevel)
        return repo

    @classmethod
    async def clone(
        cls,
        url: UrlLike,
        destination: PathLike,
        config: Optional[ConfigManager] = None,
        error_patterns: Sequence[ErrorPattern] = (),
    ) -> AsyncRepository:
        repo = cls(destination, config, error_patterns)
        await repo._execute(commands.clone(url, destination))
        logger.info("repository_cloned", url=str(url), path=str(repo.path))
        return repo

    @classmethod
    async def init(
        cls,
        path: PathLike,
        initial_branch: Optional[BranchLike] = None,
        config: Optional[ConfigManager] = None,
        error_patterns: Sequence[ErrorPattern] = (),
    ) -> AsyncRepository:
        repo = cls(path, config, error_patterns)
        await repo._execute(commands.init(path, initial_branch))
        logger.info("repository_initialized", path=str(repo.path))
        return repo

    async def list_branches(self) -> list[BranchName]:
        return await self._execute(commands.list_branches())

    async def branches(self) -> list[Branch]:
        return await self._execute(commands.branches())

    async def create_local_branch(self, name: BranchLike, start_point: Optional[Revision] = None) -> None:
        await self._execute(commands.create_local_branch(name, start_point))

    async def switch_branch(self, name: BranchLike) -> None:
        await self._execute(commands.switch_branch(name))

    async def status(self) -> RepositoryStatus:
        return await self._execute(commands.status())

    async def add(self, paths: Union[PathLike, Iterable[PathLike]]) -> None:
        await self._execute(commands.add(paths))

    async def remove(
        self,
        paths: Union[PathLike, Iterable[PathLike]],
        force: bool = False,
        cached: bool = False,
    ) -> None:
        await self._execute(commands.remove(paths, force=force, cached=cached))

    async def list_tracked(self) -> list[str]:
        return await self._execute(commands.list_tracked())

    async def commit_staged(self, message: str) -> Commit:
        await self._execute(commands.commit(message))
        return await self.get_commit("HEAD")

    async def commit_all(self, message: str) -> Commit:
        await self._execute(commands.commit(message, all_tracked=True))
        return await self.get_commit("HEAD")

    async def get_commit(self, ref: Revision = "HEAD") -> Commit:
        return await self._execute(commands.get_commit(ref))

    async def log(self, max_count: Optional[int] = None, ref: Revision = "HEAD") -> list[Commit]:
        return await self._execute(commands.log(max_count, ref))

    async def head_hash(self, short: bool = False) -> CommitHash:
        return await self._execute(commands.head_hash(short))

    async def push(
        self,
        remote: Optional[RemoteLike] = None,
        branch: Optional[BranchLike] = None,
        set_upstream: bool = False,
    ) -> None:
        await self._execute(commands.push(remote, branch, set_upstream))

    async def pull(
        self,
        remote: Optional[RemoteLike] = None,
        branch: Optional[BranchLike] = None,
        rebase: bool = False,
    ) -> None:
        await self._execute(commands.pull(remote, branch, rebase))

    async def fetch(self, remote: Optional[RemoteLike] = None) -> None:
        await self._execute(commands.fetch(remote))

    async def add_remote(self, name: RemoteLike, url: UrlLike) -> None:
        await self._execute(commands.add_remote(name, url))

    async def list_remotes(self) -> list[RemoteName]:
        return await self._execute(commands.list_remotes())

    async def remote_url(self, name: RemoteLike) -> GitUrl:
        return await self._execute(commands.remote_url(name))

    async def rebase(self, upstream: Revision) -> None:
        await self._execute(commands.rebase(upstream))

    async def rebase_continue(self) -> None:
        await self._execute(commands.rebase_continue())

    async def rebase_abort(self) -> None:
        await self._execute(commands.rebase_abort())

    async def cherry_pick(self, commits: Union[Revision, Iterable[Revision]]) -> None:
        await self._execute(commands.cherry_pick(commits))

    async def cherry_pick_continue(self) -> None:
        await self._execute(commands.cherry_pick_continue())

    async def cherry_pick_abort(self) -> None:
        await self._execute(commands.cherry_pick_abort())

    async def run(self, *args: str) -> str:
        return await self._execute(commands.raw(args))
