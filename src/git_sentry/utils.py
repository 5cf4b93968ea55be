"""Utility functions for git-sentry."""

from __future__ import annotations

import os
from collections.abc import Mapping


def is_ci(environ: Mapping[str, str] | None = None) -> bool:
    """Return True when the environment marks a CI run.

    Args:
        environ: Environment to inspect (default: os.environ)

    Returns:
        True for CI=1 or CI=true (any case), False otherwise
    """
    value = (os.environ if environ is None else environ).get("CI")
    if value is None:
        return False
    return value == "1" or value.lower() == "true"


def format_duration(ms: int) -> str:
    """Format milliseconds as `850ms` below one second, `1.25s` above."""
    if ms < 1000:
        return f"{ms}ms"
    return f"{ms / 1000:.2f}s"
