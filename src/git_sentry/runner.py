"""Run one shell command as a child process."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .console import Stream

logger = logging.getLogger(__name__)

_READ_SIZE = 4096


class OutputSink(Protocol):
    def command_output(self, command: str, line: str, stream: Stream) -> None: ...


@dataclass(frozen=True)
class ProcessOutcome:
    ok: bool
    duration_ms: int
    exit_code: int | None = None
    error: str | None = None


class LineBuffer:
    """Split a byte stream into lines, holding back an unterminated tail."""

    def __init__(self):
        self._pending = ""

    def feed(self, text: str) -> list[str]:
        self._pending += text
        parts = self._pending.split("\n")
        self._pending = parts.pop()
        return [part.removesuffix("\r") for part in parts]

    def flush(self) -> list[str]:
        tail, self._pending = self._pending, ""
        return [tail.removesuffix("\r")] if tail else []


async def _pump(
    reader: asyncio.StreamReader,
    command: str,
    stream: Stream,
    sink: OutputSink | None,
) -> None:
    buffer = LineBuffer()
    while True:
        chunk = await reader.read(_READ_SIZE)
        if not chunk:
            break
        if sink is None:
            continue
        for line in buffer.feed(chunk.decode("utf-8", errors="replace")):
            sink.command_output(command, line, stream)
    if sink is not None:
        for line in buffer.flush():
            sink.command_output(command, line, stream)


def _terminate(proc: asyncio.subprocess.Process) -> None:
    try:
        if hasattr(os, "killpg"):
            # the shell runs in its own session, take its children down too
            os.killpg(proc.pid, signal.SIGTERM)
        else:
            proc.terminate()
    except ProcessLookupError:
        pass


async def run_command(
    command: str,
    cwd: str | Path | None = None,
    timeout_ms: int | None = None,
    stream_output: bool = False,
    sink: OutputSink | None = None,
) -> ProcessOutcome:
    """Run `command` through the system shell and wait for it.

    Args:
        command: Shell command line
        cwd: Working directory (default: current directory)
        timeout_ms: Kill the command with SIGTERM after this many milliseconds
        stream_output: Forward complete stdout/stderr lines to `sink`
        sink: Receiver of streamed lines

    Returns:
        ProcessOutcome; failures (nonzero exit, timeout, spawn error) are
        reported in it and never raised.
    """
    start = time.monotonic()
    try:
        proc = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd is not None else None,
            start_new_session=hasattr(os, "killpg"),
        )
    except OSError as e:
        logger.debug("failed to spawn %r: %s", command, e)
        return ProcessOutcome(False, _elapsed_ms(start), error=f"Command could not start ({e}): {command}")

    target = sink if stream_output else None
    pumps = asyncio.gather(
        _pump(proc.stdout, command, Stream.STDOUT, target),
        _pump(proc.stderr, command, Stream.STDERR, target),
    )
    timeout = timeout_ms / 1000 if timeout_ms else None

    try:
        try:
            code = await asyncio.wait_for(proc.wait(), timeout)
        except asyncio.TimeoutError:
            logger.debug("timeout after %sms, terminating %r", timeout_ms, command)
            _terminate(proc)
            pumps.cancel()
            try:
                await pumps
            except asyncio.CancelledError:
                pass
            await proc.wait()
            return ProcessOutcome(
                False, timeout_ms, error=f"Command timed out after {timeout_ms}ms: {command}"
            )
        await pumps
    finally:
        _close(proc)

    duration = _elapsed_ms(start)
    if code == 0:
        return ProcessOutcome(True, duration, exit_code=0)
    return ProcessOutcome(False, duration, exit_code=code, error=f"Command Failed ({code}): {command}")


def _close(proc: asyncio.subprocess.Process) -> None:
    # release the pipes while the loop is still running, not at garbage collection
    transport = getattr(proc, "_transport", None)
    if transport is not None:
        transport.close()


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
