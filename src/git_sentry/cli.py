#!/usr/bin/env python3
"""
Git-Sentry CLI

Command-line interface for installing the git-sentry hook blocks and running
the commands configured for a hook.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from . import __version__
from .config import CONFIG_FILE_NAME, create_default_config, load_config
from .console import Reporter
from .engine import run_commands
from .errors import GitSentryError, RepositoryError
from .hooks import HOOKS, InstallStatus, Orchestrator, check_hook, render_install_report
from .repository import GitRepository
from .utils import is_ci

logger = logging.getLogger(__name__)


def _project_root(args) -> Path:
    return Path(args.project_root) if args.project_root else Path.cwd()


def execute_command(args, reporter: Reporter) -> int:
    """Run the commands configured for one hook."""
    hook = check_hook(args.hook)

    if is_ci():
        reporter.warn(f"Skipping hooks because CI={os.environ.get('CI')}")
        return 0

    root = _project_root(args)
    repo = GitRepository(root)
    repo.require()

    hook_config = load_config(root).for_hook(hook)
    if hook_config is None or not hook_config.commands:
        logger.debug("no commands configured for %s", hook)
        return 0

    outcome = run_commands(hook_config.commands, hook_config.options, reporter=reporter, git=repo)
    return 1 if outcome.failed else 0


def init_command(args, reporter: Reporter) -> int:
    """Install the managed block into every hook and create a sample config."""
    root = _project_root(args)
    orchestrator = Orchestrator(GitRepository(root))

    results = orchestrator.install_all()
    render_install_report(reporter, results)

    if create_default_config(root):
        reporter.success(f"Created default '{CONFIG_FILE_NAME}' with sample hooks.")
    else:
        reporter.info(f"'{CONFIG_FILE_NAME}' already exists, skipping creation.")

    return 1 if any(r.status is InstallStatus.FAILED for r in results) else 0


def uninstall_command(args, reporter: Reporter) -> int:
    """Remove the managed block from every hook, keeping user content."""
    orchestrator = Orchestrator(GitRepository(_project_root(args)))
    results = orchestrator.uninstall_all()
    render_install_report(reporter, results, title="Git Hooks Removal Summary")
    return 1 if any(r.status is InstallStatus.FAILED for r in results) else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-sentry",
        description="Config-driven git hook runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Log internal diagnostics")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Run the commands configured for a hook")
    run_parser.add_argument("hook", help=f"Git hook name ({', '.join(HOOKS)})")
    run_parser.add_argument("--project-root", help="Repository root (default: current directory)")
    run_parser.set_defaults(func=execute_command)

    # Init command
    init_parser = subparsers.add_parser("init", help="Install git-sentry into the repository hooks")
    init_parser.add_argument(
        "project_root", nargs="?", help="Repository root (default: current directory)"
    )
    init_parser.set_defaults(func=init_command)

    # Uninstall command
    uninstall_parser = subparsers.add_parser(
        "uninstall", help="Remove git-sentry blocks from the repository hooks"
    )
    uninstall_parser.add_argument(
        "project_root", nargs="?", help="Repository root (default: current directory)"
    )
    uninstall_parser.set_defaults(func=uninstall_command)

    return parser


def main(argv=None, reporter: Reporter | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    reporter = reporter or Reporter()

    try:
        return args.func(args, reporter)
    except RepositoryError as e:
        # not a repository: nothing to do, not a failure
        reporter.error(str(e))
        return 0
    except GitSentryError as e:
        reporter.error(str(e))
        return 1
    except OSError as e:
        logger.debug("filesystem error", exc_info=True)
        reporter.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
