from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ..console import Channel, Reporter
from ..repository import GitRepository
from .base import HOOKS, HookInstallResult, InstallStatus
from .block import BLOCK_VERSION, remove_block, upsert_block

logger = logging.getLogger(__name__)

_ICONS = {
    InstallStatus.CREATED: ("[✔]", Channel.SUCCESS),
    InstallStatus.APPENDED: ("[✎]", Channel.INFO),
    InstallStatus.UPDATED: ("[✎]", Channel.INFO),
    InstallStatus.EXISTS: ("[⚠]", Channel.WARN),
    InstallStatus.REMOVED: ("[✔]", Channel.SUCCESS),
    InstallStatus.ABSENT: ("[⚠]", Channel.WARN),
    InstallStatus.FAILED: ("[✗]", Channel.ERROR),
}


def hook_command(hook: str) -> str:
    """Command the managed block runs for `hook`."""
    return f"git-sentry run {hook}"


@dataclass
class Orchestrator:
    """Apply the block manager to every supported hook of one repository."""

    repository: GitRepository = field(default_factory=GitRepository)
    version: str = BLOCK_VERSION

    def hook_path(self, hook: str) -> Path:
        return self.repository.hooks_dir / hook

    def install_all(self) -> list[HookInstallResult]:
        """Upsert the managed block into each hook, in declared order.

        Raises:
            RepositoryError: the root is not a git repository; nothing is touched
        """
        self.repository.require()
        results: list[HookInstallResult] = []
        for hook in HOOKS:
            result = upsert_block(self.hook_path(hook), hook_command(hook), self.version, hook=hook)
            if result.status is InstallStatus.FAILED:
                logger.warning("hook %s failed to install: %s", hook, result.message)
            results.append(result)
        return results

    def uninstall_all(self) -> list[HookInstallResult]:
        self.repository.require()
        return [remove_block(self.hook_path(hook), hook=hook) for hook in HOOKS]


def render_install_report(
    reporter: Reporter, results: list[HookInstallResult], title: str = "Git Hooks Update Summary"
) -> None:
    reporter.info(f"=== {title} ===")
    for res in results:
        icon, channel = _ICONS[res.status]
        reporter.segments((f"  {icon}", channel), (f" {res.hook} — {res.message}", Channel.INFO))
    reporter.info("=" * (len(title) + 8))
