"""Exceptions raised by git-sentry before any command or hook write happens."""

from __future__ import annotations


class GitSentryError(Exception):
    """Base class for errors the CLI reports and turns into an exit status."""


class RepositoryError(GitSentryError):
    """Raised when the working directory is not a git repository."""


class UnknownHookError(GitSentryError):
    """Raised for a hook name outside the supported set."""

    def __init__(self, hook: str):
        super().__init__(
            f"Hook Error: The specified Git hook '{hook}' is not supported by git-sentry."
        )
        self.hook = hook


class ConfigMissingError(GitSentryError):
    """Raised when no configuration can be found for a hook run."""


class ConfigError(GitSentryError):
    """Raised when the configuration exists but cannot be parsed or validated."""
