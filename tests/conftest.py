import io
import shutil
import tempfile
from pathlib import Path

import pytest
from rich.console import Console

from git_sentry.console import Reporter


class FakeGit:
    """Stand-in for GitRepository in engine tests."""

    def __init__(self, branch="master", message=None):
        self.branch = branch
        self.message = message

    def current_branch(self):
        return self.branch

    def commit_message(self):
        return self.message


@pytest.fixture
def temp_repo():
    """Create a temporary git working tree (just enough of .git for git-sentry)."""
    temp_dir = Path(tempfile.mkdtemp())
    git_dir = temp_dir / ".git"
    (git_dir / "hooks").mkdir(parents=True)
    (git_dir / "HEAD").write_text("ref: refs/heads/master\n")

    yield temp_dir

    # Cleanup
    shutil.rmtree(temp_dir)


@pytest.fixture
def output():
    """Buffer capturing everything a Reporter prints, without colors."""
    return io.StringIO()


@pytest.fixture
def reporter(output):
    console = Console(file=output, color_system=None, width=200, highlight=False)
    return Reporter(console)
