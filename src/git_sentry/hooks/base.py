from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import UnknownHookError

# Git hooks git-sentry manages, in install order.
HOOKS: tuple[str, ...] = (
    "pre-commit",
    "prepare-commit-msg",
    "commit-msg",
    "post-commit",
    "post-rewrite",
    "pre-rebase",
    "post-checkout",
    "post-merge",
    "pre-push",
    "pre-applypatch",
    "post-applypatch",
    "applypatch-msg",
    "pre-auto-gc",
)


class InstallStatus(str, Enum):
    """What the block manager did to one hook file."""

    CREATED = "created"
    APPENDED = "appended"
    UPDATED = "updated"
    EXISTS = "exists"
    REMOVED = "removed"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass(frozen=True)
class HookInstallResult:
    hook: str
    status: InstallStatus
    message: str


def check_hook(hook: str) -> str:
    """Return `hook` unchanged if supported, raise UnknownHookError otherwise."""
    if hook not in HOOKS:
        raise UnknownHookError(hook)
    return hook
