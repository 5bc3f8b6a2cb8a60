"""Tests for the bounded subprocess runner (real /bin/sh)."""

from __future__ import annotations

import asyncio
import time
from unittest.mock import patch

import pytest

from cmdgate.endpoint.runner import (
    DEFAULT_MAX_OUTPUT_BYTES,
    DEFAULT_TIMEOUT,
    ProcessRunner,
    _describe_returncode,
)


class TestProcessRunnerInit:
    def test_defaults(self) -> None:
        runner = ProcessRunner()
        assert runner.timeout == DEFAULT_TIMEOUT == 5.0
        assert runner.max_output_bytes == DEFAULT_MAX_OUTPUT_BYTES == 1024 * 1024


class TestProcessRunnerSuccess:
    @pytest.mark.asyncio
    async def test_captures_stdout(self) -> None:
        result = await ProcessRunner().run("echo hello")
        assert result.ok
        assert result.exit_code == 0
        assert result.signal is None
        assert result.stdout == "hello\n"
        assert result.stderr == ""

    @pytest.mark.asyncio
    async def test_captures_stderr(self) -> None:
        result = await ProcessRunner().run("echo out; echo err >&2")
        assert result.ok
        assert result.stdout == "out\n"
        assert result.stderr == "err\n"

    @pytest.mark.asyncio
    async def test_runs_through_shell(self) -> None:
        result = await ProcessRunner().run("printf 'a\\nb\\nc\\n' | wc -l")
        assert result.stdout.strip() == "3"

    @pytest.mark.asyncio
    async def test_stdin_is_closed(self) -> None:
        result = await ProcessRunner(timeout=2).run("cat")
        assert result.ok
        assert result.stdout == ""


class TestProcessRunnerFailure:
    @pytest.mark.asyncio
    async def test_nonzero_exit(self) -> None:
        result = await ProcessRunner().run("echo nope >&2; exit 3")
        assert not result.ok
        assert result.exit_code == 3
        assert result.signal is None
        assert result.error == "Command failed: echo nope >&2; exit 3\nnope\n"
        assert result.stderr == "nope\n"

    @pytest.mark.asyncio
    async def test_missing_binary(self) -> None:
        result = await ProcessRunner().run("cmdgate-no-such-binary-xyz")
        assert not result.ok
        assert result.exit_code == 127
        assert result.stderr

    @pytest.mark.asyncio
    async def test_killed_by_signal(self) -> None:
        result = await ProcessRunner().run("kill -KILL $$")
        assert not result.ok
        assert result.exit_code is None
        assert result.signal == "SIGKILL"

    @pytest.mark.asyncio
    async def test_spawn_failure(self) -> None:
        with patch(
            "asyncio.create_subprocess_shell", side_effect=OSError("no /bin/sh")
        ):
            result = await ProcessRunner().run("echo hi")
        assert not result.ok
        assert result.error == "Failed to start command: no /bin/sh"
        assert result.exit_code is None
        assert result.signal is None


class TestProcessRunnerBounds:
    @pytest.mark.asyncio
    async def test_timeout_terminates(self) -> None:
        start = time.monotonic()
        result = await ProcessRunner(timeout=0.2).run("sleep 5")
        assert time.monotonic() - start < 4
        assert not result.ok
        assert result.error == "Command timed out after 200 ms: sleep 5"
        assert result.exit_code is None
        assert result.signal == "SIGTERM"

    @pytest.mark.asyncio
    async def test_timeout_keeps_partial_output(self) -> None:
        result = await ProcessRunner(timeout=0.5).run("echo started; sleep 5")
        assert not result.ok
        assert result.stdout == "started\n"

    @pytest.mark.asyncio
    async def test_escalates_to_sigkill(self) -> None:
        runner = ProcessRunner(timeout=0.2, kill_grace=0.2)
        start = time.monotonic()
        result = await runner.run("trap '' TERM; sleep 5")
        assert time.monotonic() - start < 4
        assert not result.ok
        assert result.signal == "SIGKILL"

    @pytest.mark.asyncio
    async def test_stdout_overflow(self) -> None:
        result = await ProcessRunner(max_output_bytes=100).run("yes | head -c 10000")
        assert not result.ok
        assert result.error == "Output exceeded 100 bytes: yes | head -c 10000"
        assert len(result.stdout) == 100

    @pytest.mark.asyncio
    async def test_overflow_leaves_no_pending_readers(self) -> None:
        result = await ProcessRunner(max_output_bytes=100).run("yes | head -c 10000")
        assert not result.ok
        leftover = [t for t in asyncio.all_tasks() if "drain" in repr(t.get_coro())]
        assert leftover == []

    @pytest.mark.asyncio
    async def test_cap_is_combined(self) -> None:
        result = await ProcessRunner(max_output_bytes=6).run("echo aaaa; echo bbbb >&2")
        assert not result.ok
        assert "Output exceeded" in (result.error or "")
        assert len(result.stdout) + len(result.stderr) <= 6

    @pytest.mark.asyncio
    async def test_output_at_limit_is_fine(self) -> None:
        result = await ProcessRunner(max_output_bytes=6).run("echo abcde")
        assert result.ok
        assert result.stdout == "abcde\n"


class TestDescribeReturncode:
    def test_exit_code(self) -> None:
        assert _describe_returncode(0) == (0, None)
        assert _describe_returncode(2) == (2, None)

    def test_signal(self) -> None:
        assert _describe_returncode(-15) == (None, "SIGTERM")
        assert _describe_returncode(-9) == (None, "SIGKILL")

    def test_unknown(self) -> None:
        assert _describe_returncode(None) == (None, None)
