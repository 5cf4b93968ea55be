"""Read-only access to the parts of a git repository git-sentry needs."""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import RepositoryError

logger = logging.getLogger(__name__)


class GitRepository:
    """A working tree rooted at `root` (default: current directory)."""

    def __init__(self, root: Path | None = None):
        self.root = Path(root) if root is not None else Path.cwd()

    @property
    def git_dir(self) -> Path:
        dot_git = self.root / ".git"
        if dot_git.is_file():
            # linked worktrees and submodules: ".git" holds "gitdir: <path>"
            try:
                text = dot_git.read_text(encoding="utf-8").strip()
            except OSError:
                return dot_git
            if text.startswith("gitdir:"):
                target = Path(text[len("gitdir:") :].strip())
                return target if target.is_absolute() else (self.root / target).resolve()
        return dot_git

    @property
    def common_dir(self) -> Path:
        """Directory shared by all worktrees; hooks live here.

        A linked worktree's git dir names it in a `commondir` file, usually
        `../..`. Without that file the git dir is its own common dir.
        """
        git_dir = self.git_dir
        try:
            common = (git_dir / "commondir").read_text(encoding="utf-8").strip()
        except OSError:
            return git_dir
        if not common:
            return git_dir
        target = Path(common)
        return target if target.is_absolute() else (git_dir / target).resolve()

    @property
    def hooks_dir(self) -> Path:
        return self.common_dir / "hooks"

    def is_repository(self) -> bool:
        return self.git_dir.is_dir()

    def require(self) -> None:
        """Raise RepositoryError unless `root` is a git working tree."""
        if not self.is_repository():
            raise RepositoryError(
                "Repository Error: No '.git' directory found. "
                "Please make sure you are inside a valid Git repository."
            )

    def current_branch(self) -> str:
        """Branch checked out in HEAD, or the abbreviated commit when detached."""
        head = (self.git_dir / "HEAD").read_text(encoding="utf-8").strip()
        if head.startswith("ref: "):
            return head[len("ref: ") :].removeprefix("refs/heads/")
        return head[:7]

    def commit_message(self) -> str | None:
        """Pending commit message from COMMIT_EDITMSG, None when unreadable."""
        try:
            return (self.git_dir / "COMMIT_EDITMSG").read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(
                "Commit Message Warning: Unable to read the current commit message (%s). "
                "Hooks relying on commit messages may not execute as expected.",
                e,
            )
            return None
