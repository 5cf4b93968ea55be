"""
Git-Sentry configuration

Loads `.gitsentryrc` (JSON) from the repository root, falling back to a
`[tool.git-sentry]` table in pyproject.toml. Both have the same shape::

    {"hooks": {"pre-commit": {"commands": ["pytest"], "options": {"parallel": true}}}}
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError, ConfigMissingError
from .hooks.base import HOOKS

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError as e:
        raise ImportError(
            "git-sentry requires Python 3.11+ or the 'tomli' package "
            "to parse pyproject.toml on Python 3.10. "
            "Install tomli: pip install tomli"
        ) from e

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".gitsentryrc"
PYPROJECT_TABLE = "git-sentry"


class ExecutionPolicy(BaseModel):
    """How one hook's commands are run. Immutable once loaded."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    parallel: bool = False
    fail_fast: bool = Field(False, alias="failFast")
    ignore_errors: bool = Field(False, alias="ignoreErrors")
    branches: tuple[str, ...] | None = None
    skip_if_message_contains: str | None = Field(None, alias="skipIfMessageContains")
    cwd: Path | None = None
    timeout_ms: int | None = Field(None, alias="timeout", gt=0)
    verbose: bool = False

    @field_validator("branches")
    @classmethod
    def _dedupe_branches(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        return tuple(dict.fromkeys(value))

    @classmethod
    def from_options(cls, options: dict[str, Any] | None) -> "ExecutionPolicy":
        options = dict(options or {})
        # "timeoutMs" is accepted as a spelling of "timeout"
        if "timeoutMs" in options and "timeout" not in options:
            options["timeout"] = options.pop("timeoutMs")
        return cls.model_validate(options)


class HookConfig(BaseModel):
    """Commands configured for one git hook."""

    model_config = ConfigDict(frozen=True)

    commands: list[str] = Field(default_factory=list)
    options: ExecutionPolicy = Field(default_factory=ExecutionPolicy)

    @field_validator("options", mode="before")
    @classmethod
    def _parse_options(cls, value: Any) -> Any:
        if value is None or isinstance(value, dict):
            return ExecutionPolicy.from_options(value)
        return value


class GitSentryConfig(BaseModel):
    hooks: dict[str, HookConfig] = Field(default_factory=dict)

    @field_validator("hooks")
    @classmethod
    def _known_hooks(cls, value: dict[str, HookConfig]) -> dict[str, HookConfig]:
        unknown = [name for name in value if name not in HOOKS]
        if unknown:
            raise ValueError(f"unsupported hook name(s): {', '.join(unknown)}")
        return value

    def for_hook(self, hook: str) -> HookConfig | None:
        return self.hooks.get(hook)


def _parse(data: Any, source: Path) -> GitSentryConfig:
    try:
        return GitSentryConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Configuration Error: invalid '{source.name}': {e}") from e


def load_config(root: Path | None = None) -> GitSentryConfig:
    """Load the git-sentry configuration for the repository at `root`.

    Raises:
        ConfigMissingError: neither `.gitsentryrc` nor a pyproject table exists
        ConfigError: the file exists but is not valid
    """
    root = Path(root) if root is not None else Path.cwd()
    rc_path = root / CONFIG_FILE_NAME
    if rc_path.exists():
        try:
            data = json.loads(rc_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Configuration Error: cannot read '{CONFIG_FILE_NAME}': {e}") from e
        logger.debug("loaded config from %s", rc_path)
        return _parse(data, rc_path)

    pyproject = root / "pyproject.toml"
    if pyproject.exists():
        try:
            with open(pyproject, "rb") as f:
                table = tomllib.load(f).get("tool", {}).get(PYPROJECT_TABLE)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Configuration Error: cannot read 'pyproject.toml': {e}") from e
        if table is not None:
            logger.debug("loaded config from %s [tool.%s]", pyproject, PYPROJECT_TABLE)
            return _parse(table, pyproject)

    raise ConfigMissingError(
        f"Configuration Error: '{CONFIG_FILE_NAME}' not found in the current directory. "
        "Please ensure the project is initialized with a valid configuration file."
    )


def get_default_config() -> dict[str, Any]:
    """Sample configuration written by `git-sentry init`."""
    return {
        "hooks": {
            "pre-commit": {
                "commands": ["python -m pytest", "python -m ruff check ."],
                "options": {
                    "parallel": True,
                    "failFast": False,
                    "timeout": 60000,
                    "branches": ["master"],
                    "verbose": True,
                },
            },
            "pre-push": {
                "commands": ["python -m ruff check ."],
                "options": {
                    "parallel": False,
                    "failFast": False,
                    "timeout": 60000,
                    "branches": ["master"],
                    "verbose": True,
                },
            },
            "commit-msg": {"commands": [], "options": {}},
        }
    }


def create_default_config(root: Path | None = None) -> bool:
    """Write the sample `.gitsentryrc` unless one exists. Returns True if written."""
    root = Path(root) if root is not None else Path.cwd()
    config_path = root / CONFIG_FILE_NAME
    if config_path.exists():
        return False
    config_path.write_text(json.dumps(get_default_config(), indent=2) + "\n", encoding="utf-8")
    return True
