"""
Test cases for installing git-sentry into every hook of a repository.
"""

import pytest

from git_sentry.errors import RepositoryError
from git_sentry.hooks import HOOKS, InstallStatus, Orchestrator, render_install_report
from git_sentry.repository import GitRepository


@pytest.fixture
def orchestrator(temp_repo):
    return Orchestrator(GitRepository(temp_repo))


class TestInstallAll:
    def test_creates_every_hook_in_order(self, orchestrator, temp_repo):
        results = orchestrator.install_all()

        assert [r.hook for r in results] == list(HOOKS)
        assert all(r.status is InstallStatus.CREATED for r in results)
        for hook in HOOKS:
            content = (temp_repo / ".git" / "hooks" / hook).read_text()
            assert f"git-sentry run {hook}" in content

    def test_second_install_reports_exists(self, orchestrator):
        orchestrator.install_all()
        results = orchestrator.install_all()
        assert all(r.status is InstallStatus.EXISTS for r in results)

    def test_newer_version_updates(self, temp_repo):
        Orchestrator(GitRepository(temp_repo), version="0.9.0").install_all()
        results = Orchestrator(GitRepository(temp_repo), version="1.0.0").install_all()

        assert all(r.status is InstallStatus.UPDATED for r in results)
        assert "0.9.0" not in (temp_repo / ".git" / "hooks" / "pre-commit").read_text()

    def test_one_failure_does_not_block_the_rest(self, orchestrator, temp_repo):
        # a directory where the hook file should be cannot be read as a file
        (temp_repo / ".git" / "hooks" / "post-merge").mkdir()

        results = orchestrator.install_all()

        by_hook = {r.hook: r for r in results}
        assert len(results) == len(HOOKS)
        assert by_hook["post-merge"].status is InstallStatus.FAILED
        assert by_hook["post-merge"].message
        assert by_hook["pre-push"].status is InstallStatus.CREATED

    def test_not_a_repository(self, tmp_path):
        with pytest.raises(RepositoryError):
            Orchestrator(GitRepository(tmp_path)).install_all()
        assert not (tmp_path / ".git").exists()


class TestUninstallAll:
    def test_round_trip_keeps_user_hook(self, orchestrator, temp_repo):
        user_hook = temp_repo / ".git" / "hooks" / "pre-push"
        user_hook.write_text("#!/bin/sh\necho mine\n")

        orchestrator.install_all()
        results = orchestrator.uninstall_all()

        assert all(r.status is InstallStatus.REMOVED for r in results)
        assert user_hook.read_text() == "#!/bin/sh\necho mine\n"
        assert not (temp_repo / ".git" / "hooks" / "pre-commit").exists()


class TestWorktree:
    def test_install_from_linked_worktree_targets_common_hooks(self, temp_repo, tmp_path):
        wt_git = temp_repo / ".git" / "worktrees" / "wt"
        wt_git.mkdir(parents=True)
        (wt_git / "commondir").write_text("../..\n")
        (wt_git / "HEAD").write_text("ref: refs/heads/side\n")
        worktree = tmp_path / "wt"
        worktree.mkdir()
        (worktree / ".git").write_text(f"gitdir: {wt_git}\n")

        results = Orchestrator(GitRepository(worktree)).install_all()

        assert all(r.status is InstallStatus.CREATED for r in results)
        assert (temp_repo / ".git" / "hooks" / "pre-commit").exists()
        assert not (wt_git / "hooks").exists()


class TestReport:
    def test_one_line_per_hook(self, orchestrator, reporter, output):
        results = orchestrator.install_all()

        render_install_report(reporter, results)

        text = output.getvalue()
        assert "=== Git Hooks Update Summary ===" in text
        for hook in HOOKS:
            assert f"[✔] {hook} — Created new git-sentry hook with version 1.0.0." in text
