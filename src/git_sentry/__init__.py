"""
Git-Sentry: config-driven git hook runner

Provides:
- Versioned, idempotent installation of a managed block into git hook scripts
- Policy-driven execution of the commands configured for each hook
- Branch and commit-message gating, timeouts, fail-fast and ignore-errors
"""

__version__ = "1.0.0"
