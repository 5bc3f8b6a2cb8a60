"""Bounded subprocess runner for the command endpoint.

Runs a shell command string with a wall-clock timeout and a cap on the
combined size of stdout and stderr. Command failures never raise: they
come back as a ``ProcessResult`` with ``error`` set.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from contextlib import suppress

from cmdgate.domain.models import ProcessResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024
DEFAULT_KILL_GRACE = 1.0
READ_CHUNK_SIZE = 4096


class ProcessRunner:
    """Spawns shell commands and collects their output within bounds.

    Each command runs in its own process group so that a timeout or an
    output overflow terminates the shell and everything it started.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
        kill_grace: float = DEFAULT_KILL_GRACE,
    ) -> None:
        self._timeout = timeout
        self._max_output_bytes = max_output_bytes
        self._kill_grace = kill_grace

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def max_output_bytes(self) -> int:
        return self._max_output_bytes

    async def run(self, command: str) -> ProcessResult:
        """Run ``command`` through ``/bin/sh -c`` and capture its output."""
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            logger.warning("Failed to start %r: %s", command, e)
            return ProcessResult(error=f"Failed to start command: {e}")

        collector = _OutputCollector(self._max_output_bytes)
        try:
            returncode = await asyncio.wait_for(
                self._communicate(process, collector), self._timeout
            )
        except asyncio.TimeoutError:
            returncode = await self._terminate(process)
            logger.warning("Command %r timed out after %.1fs", command, self._timeout)
            return collector.result(
                returncode,
                error=f"Command timed out after {int(self._timeout * 1000)} ms: {command}",
            )
        except OutputLimitExceeded:
            returncode = await self._terminate(process)
            logger.warning(
                "Command %r exceeded output limit of %d bytes", command, self._max_output_bytes
            )
            return collector.result(
                returncode,
                error=f"Output exceeded {self._max_output_bytes} bytes: {command}",
            )

        if returncode != 0:
            stderr = collector.stderr.decode("utf-8", errors="replace")
            return collector.result(returncode, error=f"Command failed: {command}\n{stderr}")

        logger.debug("Command %r finished (%d bytes of output)", command, collector.size)
        return collector.result(returncode)

    async def _communicate(
        self, process: asyncio.subprocess.Process, collector: _OutputCollector
    ) -> int:
        readers = [
            asyncio.create_task(collector.drain(process.stdout, collector.stdout)),
            asyncio.create_task(collector.drain(process.stderr, collector.stderr)),
        ]
        try:
            await asyncio.gather(*readers)
        finally:
            for task in readers:
                task.cancel()
            await asyncio.gather(*readers, return_exceptions=True)
        return await process.wait()

    async def _terminate(self, process: asyncio.subprocess.Process) -> int:
        """SIGTERM the process group, escalating to SIGKILL after the grace period."""
        if process.returncode is not None:
            return process.returncode
        with suppress(ProcessLookupError):
            os.killpg(process.pid, signal.SIGTERM)
        try:
            return await asyncio.wait_for(process.wait(), self._kill_grace)
        except asyncio.TimeoutError:
            logger.debug("Process group %d ignored SIGTERM, sending SIGKILL", process.pid)
            with suppress(ProcessLookupError):
                os.killpg(process.pid, signal.SIGKILL)
            return await process.wait()


class _OutputCollector:
    """Accumulates stdout/stderr against a shared byte budget."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.size = 0
        self.stdout = bytearray()
        self.stderr = bytearray()

    async def drain(self, stream: asyncio.StreamReader | None, sink: bytearray) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                return
            room = self.limit - self.size
            self.size += len(chunk)
            if len(chunk) > room:
                sink.extend(chunk[:max(room, 0)])
                raise OutputLimitExceeded(self.limit)
            sink.extend(chunk)

    def result(self, returncode: int | None, error: str | None = None) -> ProcessResult:
        exit_code, signal_name = _describe_returncode(returncode)
        return ProcessResult(
            exit_code=exit_code,
            signal=signal_name,
            stdout=self.stdout.decode("utf-8", errors="replace"),
            stderr=self.stderr.decode("utf-8", errors="replace"),
            error=error,
        )


def _describe_returncode(returncode: int | None) -> tuple[int | None, str | None]:
    """Split an asyncio returncode into (exit code, signal name)."""
    if returncode is None:
        return None, None
    if returncode < 0:
        try:
            return None, signal.Signals(-returncode).name
        except ValueError:
            return None, f"SIG{-returncode}"
    return returncode, None


class OutputLimitExceeded(Exception):
    """Raised when a command writes more than the allowed number of bytes."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Output exceeded {limit} bytes")
        self.limit = limit
