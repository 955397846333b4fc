"""Launch the git executable and capture its output.

Non-zero exit codes are returned in the result, not raised: git uses them for
routine conditions whose meaning depends on the subcommand, so classification
belongs to the caller.
"""

from __future__ import annotations

import asyncio
import os
import subprocess
import time
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Union

import structlog

from .errors import GitNotFound, GitTimeoutError, ProcessError

logger = structlog.get_logger(__name__)

PathLike = Union[str, os.PathLike]

# Never block on a prompt, and keep messages in the untranslated wording the
# error classifier matches against.
NONINTERACTIVE_ENV = {
    "GIT_TERMINAL_PROMPT": "0",
    "GIT_EDITOR": "true",
    "GIT_MERGE_AUTOEDIT": "no",
    "LC_ALL": "C",
}


@dataclass(frozen=True)
class ProcessResult:
    """Captured outcome of one git invocation."""

    command: tuple[str, ...]
    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace").strip()


def build_command(
    subcommand: str,
    args: Sequence[PathLike] = (),
    cwd: Optional[PathLike] = None,
    git_binary: str = "git",
) -> list[str]:
    """Assemble argv. Repository-scoped calls use `git -C <cwd>`."""
    cmd = [git_binary]
    if cwd is not None:
        cmd.extend(["-C", os.fspath(cwd)])
    cmd.extend(["-c", "core.quotePath=false", subcommand])
    cmd.extend(os.fspath(arg) for arg in args)
    return cmd


def git_environment(extra: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    env = dict(os.environ)
    env.update(NONINTERACTIVE_ENV)
    if extra:
        env.update(extra)
    return env


def _launch_error(exc: OSError, cmd: list[str]) -> ProcessError:
    if isinstance(exc, FileNotFoundError):
        return GitNotFound(
            message=(
                f"git executable {cmd[0]!r} was not found. "
                "Install git and make sure it is on PATH."
            ),
            details={"command": cmd, "git_binary": cmd[0]},
            retryable=False,
        )
    return ProcessError(
        message=f"Unable to launch git: {exc}",
        details={"command": cmd, "error": str(exc)},
        retryable=False,
    )


def _timeout_error(cmd: list[str], timeout_seconds: Optional[float]) -> GitTimeoutError:
    return GitTimeoutError(
        message=f"Git command timed out after {timeout_seconds}s",
        details={"command": cmd, "timeout_seconds": timeout_seconds},
    )


def run_git(
    subcommand: str,
    args: Sequence[PathLike] = (),
    *,
    cwd: Optional[PathLike] = None,
    git_binary: str = "git",
    timeout_seconds: Optional[float] = 60,
    env: Optional[Mapping[str, str]] = None,
) -> ProcessResult:
    """Run git and block until it exits."""
    cmd = build_command(subcommand, args, cwd=cwd, git_binary=git_binary)
    started = time.monotonic()
    logger.debug("git_command_started", command=cmd)

    try:
        completed = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            timeout=timeout_seconds,
            env=git_environment(env),
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        # subprocess.run has already killed and reaped the child here.
        logger.warning("git_command_timeout", command=cmd, timeout_seconds=timeout_seconds)
        raise _timeout_error(cmd, timeout_seconds) from exc
    except OSError as exc:
        logger.error("git_launch_failed", command=cmd, error=str(exc))
        raise _launch_error(exc, cmd) from exc

    result = ProcessResult(
        command=tuple(cmd),
        exit_code=completed.returncode,
        stdout=completed.stdout or b"",
        stderr=completed.stderr or b"",
    )
    logger.debug(
        "git_command_finished",
        command=cmd,
        exit_code=result.exit_code,
        duration_ms=int((time.monotonic() - started) * 1000),
    )
    return result


async def _kill(process: asyncio.subprocess.Process) -> None:
    try:
        process.kill()
    except ProcessLookupError:
        pass
    await process.wait()


async def run_git_async(
    subcommand: str,
    args: Sequence[PathLike] = (),
    *,
    cwd: Optional[PathLike] = None,
    git_binary: str = "git",
    timeout_seconds: Optional[float] = 60,
    env: Optional[Mapping[str, str]] = None,
) -> ProcessResult:
    """Run git without blocking the event loop.

    If the awaiting task is cancelled, or the timeout expires, the child is
    killed and reaped before the exception propagates.
    """
    cmd = build_command(subcommand, args, cwd=cwd, git_binary=git_binary)
    started = time.monotonic()
    logger.debug("git_command_started", command=cmd)

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=git_environment(env),
        )
    except OSError as exc:
        logger.error("git_launch_failed", command=cmd, error=str(exc))
        raise _launch_error(exc, cmd) from exc

    try:
        stdout_b, stderr_b = await asyncio.wait_for(
            process.communicate(),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError as exc:
        await _kill(process)
        logger.warning("git_command_timeout", command=cmd, timeout_seconds=timeout_seconds)
        raise _timeout_error(cmd, timeout_seconds) from exc
    except asyncio.CancelledError:
        await _kill(process)
        logger.info("git_command_cancelled", command=cmd)
        raise

    result = ProcessResult(
        command=tuple(cmd),
        exit_code=process.returncode if process.returncode is not None else -1,
        stdout=stdout_b or b"",
        stderr=stderr_b or b"",
    )
    logger.debug(
        "git_command_finished",
        command=cmd,
        exit_code=result.exit_code,
        duration_ms=int((time.monotonic() - started) * 1000),
    )
    return result
