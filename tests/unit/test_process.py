"""Unit tests for the git process invoker."""

import asyncio
import subprocess
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from gitpilot.errors import GitNotFound, GitTimeoutError, ProcessError
from gitpilot.process import (
    NONINTERACTIVE_ENV,
    ProcessResult,
    build_command,
    git_environment,
    run_git,
    run_git_async,
)


class _FakeProcess:
    def __init__(self, returncode: int, stdout: bytes, stderr: bytes):
        self.returncode = None
        self._final_returncode = returncode
        self._stdout = stdout
        self._stderr = stderr
        self.kill = MagicMock()
        self.wait = AsyncMock()

    async def communicate(self):
        self.returncode = self._final_returncode
        return self._stdout, self._stderr


def test_build_command_scoped():
    cmd = build_command("status", ["--porcelain=v2"], cwd="/repo")
    assert cmd == ["git", "-C", "/repo", "-c", "core.quotePath=false", "status", "--porcelain=v2"]


def test_build_command_unscoped_custom_binary():
    cmd = build_command("clone", ["--", "url", "dest"], git_binary="/usr/local/bin/git")
    assert cmd[:4] == ["/usr/local/bin/git", "-c", "core.quotePath=false", "clone"]
    assert "-C" not in cmd


def test_environment_is_noninteractive(monkeypatch):
    monkeypatch.setenv("GITPILOT_TEST_MARKER", "kept")
    env = git_environment({"GIT_AUTHOR_NAME": "Ada"})
    for key, value in NONINTERACTIVE_ENV.items():
        assert env[key] == value
    assert env["GITPILOT_TEST_MARKER"] == "kept"
    assert env["GIT_AUTHOR_NAME"] == "Ada"


def test_process_result_text_helpers():
    result = ProcessResult(("git", "status"), 1, b"out\n", b"  fatal: boom\n")
    assert not result.ok
    assert result.stdout_text == "out\n"
    assert result.stderr_text == "fatal: boom"


class TestRunGitSync:

    def test_success_returns_result(self):
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=b"ok\n", stderr=b"")
        with patch("gitpilot.process.subprocess.run", return_value=completed) as run:
            result = run_git("status", ["--short"], cwd="/repo", timeout_seconds=5)
        assert result.ok
        assert result.stdout == b"ok\n"
        assert run.call_args.kwargs["timeout"] == 5
        assert run.call_args.kwargs["stdin"] is subprocess.DEVNULL
        assert run.call_args.args[0][:3] == ["git", "-C", "/repo"]

    def test_non_zero_exit_is_not_raised(self):
        completed = subprocess.CompletedProcess(args=[], returncode=128, stdout=b"", stderr=b"fatal: x")
        with patch("gitpilot.process.subprocess.run", return_value=completed):
            result = run_git("status")
        assert result.exit_code == 128
        assert result.stderr_text == "fatal: x"

    def test_timeout(self):
        with patch(
            "gitpilot.process.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="git", timeout=1),
        ):
            with pytest.raises(GitTimeoutError) as exc_info:
                run_git("fetch", timeout_seconds=1)
        assert exc_info.value.code == "git_timeout"
        assert exc_info.value.retryable is True

    def test_binary_not_found(self):
        with patch("gitpilot.process.subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(GitNotFound) as exc_info:
                run_git("status", git_binary="no-such-git")
        assert exc_info.value.code == "git_not_found"
        assert exc_info.value.retryable is False

    def test_permission_denied_is_launch_failure(self):
        with patch("gitpilot.process.subprocess.run", side_effect=PermissionError("denied")):
            with pytest.raises(ProcessError) as exc_info:
                run_git("status")
        assert exc_info.value.code == "git_launch_failed"


class TestRunGitAsync:

    @pytest.mark.asyncio
    async def test_success(self):
        proc = _FakeProcess(0, b"main\n", b"")
        with patch("gitpilot.process.asyncio.create_subprocess_exec", AsyncMock(return_value=proc)) as create:
            result = await run_git_async("branch", cwd="/repo")
        assert result.exit_code == 0
        assert result.stdout_text == "main\n"
        assert create.call_args.args[:3] == ("git", "-C", "/repo")
        proc.kill.assert_not_called()

    @pytest.mark.asyncio
    async def test_git_binary_not_found(self):
        with patch(
            "gitpilot.process.asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError()),
        ):
            with pytest.raises(GitNotFound):
                await run_git_async("status")

    @pytest.mark.asyncio
    async def test_timeout_kills_child(self):
        proc = _FakeProcess(0, b"", b"")

        async def _slow_communicate():
            await asyncio.sleep(0.05)
            return b"", b""

        proc.communicate = _slow_communicate
        with patch("gitpilot.process.asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(GitTimeoutError):
                await run_git_async("status", timeout_seconds=0.001)
        proc.kill.assert_called_once()
        proc.wait.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancellation_kills_child(self):
        proc = _FakeProcess(0, b"", b"")
        started = asyncio.Event()

        async def _hanging_communicate():
            started.set()
            await asyncio.sleep(10)
            return b"", b""

        proc.communicate = _hanging_communicate
        with patch("gitpilot.process.asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            task = asyncio.create_task(run_git_async("fetch", timeout_seconds=30))
            await started.wait()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
        proc.kill.assert_called_once()
        proc.wait.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_kill_after_exit_is_tolerated(self):
        proc = _FakeProcess(0, b"", b"")
        proc.kill.side_effect = ProcessLookupError()

        async def _slow_communicate():
            await asyncio.sleep(0.05)
            return b"", b""

        proc.communicate = _slow_communicate
        with patch("gitpilot.process.asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(GitTimeoutError):
                await run_git_async("status", timeout_seconds=0.001)
        proc.wait.assert_awaited_once()
