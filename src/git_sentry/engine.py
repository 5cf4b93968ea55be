from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from .config import ExecutionPolicy
from .console import Channel, Reporter, Spinner
from .runner import run_command
from .utils import format_duration

logger = logging.getLogger(__name__)

SUMMARY_TITLE = "═══════ Hook Execution Summary ═══════"
SUMMARY_RULE = "══════════════════════════════════════"


class GitState(Protocol):
    def current_branch(self) -> str: ...

    def commit_message(self) -> str | None: ...


class CommandStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


_GLYPHS = {
    CommandStatus.SUCCESS: ("[✔]", Channel.SUCCESS),
    CommandStatus.SKIPPED: ("[⚠︎]", Channel.WARN),
    CommandStatus.FAILED: ("[✗]", Channel.ERROR),
}


@dataclass(frozen=True)
class CommandResult:
    command: str
    status: CommandStatus
    duration_ms: int
    error: str | None = None


@dataclass
class BatchOutcome:
    """Everything one batch run produced.

    `failed` tells the caller to exit nonzero. `skipped` names the gate
    ("branch" or "message") that stopped the batch before any command ran.
    """

    results: list[CommandResult] = field(default_factory=list)
    failed: bool = False
    skipped: str | None = None
    fault: str | None = None

    @property
    def total_ms(self) -> int:
        # sum of per-command durations, not wall clock; parallel runs overlap
        return sum(r.duration_ms for r in self.results)

    @property
    def succeeded_count(self) -> int:
        return sum(1 for r in self.results if r.status is CommandStatus.SUCCESS)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.status is CommandStatus.FAILED)


class ExecutionEngine:
    """Run a hook's commands under an ExecutionPolicy and report the result."""

    def __init__(self, reporter: Reporter, git: GitState):
        self.reporter = reporter
        self.git = git

    def _gate(self, policy: ExecutionPolicy) -> str | None:
        if policy.branches:
            branch = self.git.current_branch()
            if branch not in policy.branches:
                self.reporter.info(f"Skipping all commands on branch: {branch}")
                return "branch"

        if policy.skip_if_message_contains is not None:
            message = self.git.commit_message()
            if message is not None and policy.skip_if_message_contains in message:
                self.reporter.info("Skipping all commands due to commit message")
                return "message"
        return None

    async def _execute(self, command: str, policy: ExecutionPolicy) -> CommandResult:
        outcome = await run_command(
            command,
            cwd=policy.cwd,
            timeout_ms=policy.timeout_ms,
            stream_output=policy.verbose,
            sink=self.reporter,
        )
        if outcome.ok:
            return CommandResult(command, CommandStatus.SUCCESS, outcome.duration_ms)
        status = CommandStatus.SUCCESS if policy.ignore_errors else CommandStatus.FAILED
        return CommandResult(command, status, outcome.duration_ms, outcome.error)

    async def _dispatch(
        self, commands: list[str], policy: ExecutionPolicy, results: list[CommandResult]
    ) -> None:
        if policy.parallel:
            if policy.fail_fast:
                self.reporter.warn("failFast is ignored in parallel mode; all commands will run")
            results.extend(await asyncio.gather(*(self._execute(cmd, policy) for cmd in commands)))
            return

        for cmd in commands:
            result = await self._execute(cmd, policy)
            results.append(result)
            if result.status is CommandStatus.FAILED and policy.fail_fast and not policy.ignore_errors:
                logger.debug("fail-fast: stopping after %r", cmd)
                break

    async def run_batch(self, commands: list[str], policy: ExecutionPolicy | None = None) -> BatchOutcome:
        """Run `commands` and print the execution summary.

        Per-command failures end up in the results, never as exceptions. An
        error raised by the dispatch itself is reported and fails the batch
        unless `ignore_errors` is set.
        """
        policy = policy or ExecutionPolicy()
        outcome = BatchOutcome()

        outcome.skipped = self._gate(policy)
        if outcome.skipped:
            return outcome

        spinner = Spinner(self.reporter.console)
        try:
            if not policy.verbose:
                spinner.start()
            else:
                self.reporter.blank()
            await self._dispatch(commands, policy, outcome.results)
        except Exception as e:
            logger.exception("hook execution failed")
            outcome.fault = str(e)
        finally:
            spinner.stop()

        if outcome.fault is not None:
            if policy.ignore_errors:
                self.reporter.warn(f"Hook execution failed (ignored): {outcome.fault}")
            else:
                self.reporter.error(f"Hook execution failed: {outcome.fault}")

        render_summary(self.reporter, outcome)

        failed = outcome.failed_count > 0 or outcome.fault is not None
        outcome.failed = failed and not policy.ignore_errors
        return outcome


def render_summary(reporter: Reporter, outcome: BatchOutcome) -> None:
    reporter.blank()
    reporter.segments((SUMMARY_TITLE, Channel.INFO))
    for res in outcome.results:
        glyph, channel = _GLYPHS[res.status]
        reporter.segments(
            (glyph, channel),
            (f" {res.command} — {format_duration(res.duration_ms)}", Channel.INFO),
        )
        # ignore_errors keeps the error text on a success result; show it as-is
        if res.error is not None:
            reporter.segments((f"⤷ Error: {res.error}", Channel.ERROR))
    reporter.blank()
    reporter.segments((f"Total: {len(outcome.results)} commands executed", Channel.INFO))
    reporter.segments(
        ("⤷ ", Channel.INFO),
        (f"{outcome.succeeded_count} succeeded", Channel.SUCCESS),
        (" / ", Channel.INFO),
        (f"{outcome.failed_count} failed", Channel.ERROR),
    )
    reporter.segments((f"⤷ Time: {format_duration(outcome.total_ms)}", Channel.INFO))
    reporter.segments((SUMMARY_RULE, Channel.INFO))
    reporter.blank()


def run_commands(
    commands: list[str],
    policy: ExecutionPolicy | None = None,
    *,
    reporter: Reporter,
    git: GitState,
) -> BatchOutcome:
    """Synchronous entry point: run one batch on a fresh event loop."""
    return asyncio.run(ExecutionEngine(reporter, git).run_batch(commands, policy))
