"""git_sentry.hooks package - the managed block inside git hook scripts.

This package provides:
- base: supported hook names and install result types
- block: line-scanning upsert/removal of the versioned managed block
- orchestrator: applies the block to every supported hook of a repository
"""

from .base import HOOKS, HookInstallResult, InstallStatus, check_hook
from .block import BLOCK_VERSION, remove_block, upsert_block
from .orchestrator import Orchestrator, render_install_report

__all__ = [
    "HOOKS",
    "HookInstallResult",
    "InstallStatus",
    "check_hook",
    "BLOCK_VERSION",
    "remove_block",
    "upsert_block",
    "Orchestrator",
    "render_install_report",
]
