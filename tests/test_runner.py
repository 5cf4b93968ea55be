"""
Test cases for running a single shell command.
"""

import asyncio
import time
from pathlib import Path
from unittest.mock import patch

from git_sentry.console import Stream
from git_sentry.runner import LineBuffer, run_command


class CollectingSink:
    def __init__(self):
        self.lines = []

    def command_output(self, command, line, stream):
        self.lines.append((command, line, stream))


def run(coro):
    return asyncio.run(coro)


class TestLineBuffer:
    def test_holds_partial_line(self):
        buffer = LineBuffer()
        assert buffer.feed("one\ntw") == ["one"]
        assert buffer.feed("o\r\nthree") == ["two"]
        assert buffer.flush() == ["three"]
        assert buffer.flush() == []


class TestRunCommand:
    def test_success(self):
        outcome = run(run_command("true"))
        assert outcome.ok is True
        assert outcome.exit_code == 0
        assert outcome.error is None

    def test_nonzero_exit(self):
        outcome = run(run_command("exit 3"))
        assert outcome.ok is False
        assert outcome.exit_code == 3
        assert outcome.error == "Command Failed (3): exit 3"

    def test_timeout_terminates_process(self):
        start = time.monotonic()
        outcome = run(run_command("sleep 5", timeout_ms=200))
        elapsed = time.monotonic() - start

        assert outcome.ok is False
        assert outcome.error == "Command timed out after 200ms: sleep 5"
        assert outcome.duration_ms == 200
        assert elapsed < 4

    def test_streams_lines_per_stream(self):
        sink = CollectingSink()
        command = "printf 'a\\nb\\npartial'; echo oops 1>&2"

        outcome = run(run_command(command, stream_output=True, sink=sink))

        assert outcome.ok is True
        stdout = [line for _, line, stream in sink.lines if stream is Stream.STDOUT]
        stderr = [line for _, line, stream in sink.lines if stream is Stream.STDERR]
        assert stdout == ["a", "b", "partial"]
        assert stderr == ["oops"]
        assert all(cmd == command for cmd, _, _ in sink.lines)

    def test_output_not_streamed_by_default(self):
        sink = CollectingSink()
        run(run_command("echo hidden", sink=sink))
        assert sink.lines == []

    def test_cwd(self, tmp_path):
        sink = CollectingSink()
        run(run_command("pwd", cwd=tmp_path, stream_output=True, sink=sink))
        assert Path(sink.lines[0][1]).resolve() == tmp_path.resolve()

    def test_spawn_error_is_an_outcome(self, tmp_path):
        outcome = run(run_command("true", cwd=tmp_path / "does-not-exist"))
        assert outcome.ok is False
        assert "could not start" in outcome.error

    def test_transport_closed_on_every_path(self):
        spawned = []
        real_spawn = asyncio.create_subprocess_shell

        async def spawn(*args, **kwargs):
            proc = await real_spawn(*args, **kwargs)
            spawned.append(proc)
            return proc

        with patch("asyncio.create_subprocess_shell", new=spawn):
            run(run_command("true"))
            run(run_command("exit 2"))
            run(run_command("sleep 5", timeout_ms=100))

        assert len(spawned) == 3
        assert all(proc._transport.is_closing() for proc in spawned)
