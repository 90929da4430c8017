"""Tests for the git commit collaborator."""

import subprocess
from pathlib import Path

import pytest
from git import Repo

from changegate.engine import WorkflowEngine
from changegate.errors import CommitFailed
from changegate.git.committer import GitCommitter, capture_change, open_repo
from changegate.state import CommitMessage, WorkflowState
from tests.conftest import ScriptedRunner


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository for testing."""
    repo = tmp_path / "test_repo"
    repo.mkdir()

    subprocess.run(["git", "init"], cwd=repo, check=True, capture_output=True)
    subprocess.run(
        ["git", "config", "user.email", "test@example.com"],
        cwd=repo,
        check=True,
        capture_output=True,
    )
    subprocess.run(
        ["git", "config", "user.name", "Test User"],
        cwd=repo,
        check=True,
        capture_output=True,
    )

    (repo / "README.md").write_text("# Test Repo\n")
    subprocess.run(["git", "add", "README.md"], cwd=repo, check=True, capture_output=True)
    subprocess.run(
        ["git", "commit", "-m", "Initial commit"],
        cwd=repo,
        check=True,
        capture_output=True,
    )

    return repo


class TestCaptureChange:
    def test_modified_and_untracked_files(self, git_repo: Path):
        (git_repo / "README.md").write_text("# Test Repo\n\nMore.\n")
        (git_repo / "module.py").write_text("print('hello')\n")

        change = capture_change(str(git_repo), change_id="c-1", description="docs")

        assert change.change_id == "c-1"
        assert change.description == "docs"
        assert "README.md" in change.diff
        assert "module.py" in change.diff
        assert "+print('hello')" in change.diff

    def test_generated_change_id(self, git_repo: Path):
        change = capture_change(str(git_repo))
        assert change.change_id.startswith("change-")
        assert change.diff == ""

    def test_not_a_repository(self, tmp_path: Path):
        with pytest.raises(RuntimeError, match="Not a git repository"):
            open_repo(str(tmp_path))


class TestGitCommitter:
    def test_commits_working_tree(self, git_repo: Path):
        (git_repo / "module.py").write_text("print('hello')\n")
        change = capture_change(str(git_repo), change_id="c-1")

        sha = GitCommitter(str(git_repo)).commit(change, "feat: add module\n\nBody text")

        repo = Repo(git_repo)
        assert repo.head.commit.hexsha == sha
        assert repo.head.commit.message == "feat: add module\n\nBody text"
        assert "module.py" in repo.head.commit.stats.files
        assert not repo.is_dirty(untracked_files=True)

    def test_nothing_to_commit(self, git_repo: Path):
        change = capture_change(str(git_repo), change_id="c-1")
        with pytest.raises(RuntimeError, match="Nothing to commit"):
            GitCommitter(str(git_repo)).commit(change, "chore: nothing")

    def test_full_workflow(self, git_repo: Path):
        """Verify, approve and commit a real working tree change."""
        (git_repo / "module.py").write_text("print('hello')\n")
        head_before = Repo(git_repo).head.commit.hexsha

        engine = WorkflowEngine(
            runner=ScriptedRunner([1, 0]),
            committer=GitCommitter(str(git_repo)),
        )
        engine.submit(capture_change(str(git_repo), change_id="c-1"))

        engine.verify()
        assert Repo(git_repo).head.commit.hexsha == head_before

        engine.submit(capture_change(str(git_repo), change_id="c-1"))
        engine.verify()
        assert Repo(git_repo).head.commit.hexsha == head_before

        engine.approve()
        assert Repo(git_repo).head.commit.hexsha == head_before

        outcome = engine.request_commit(CommitMessage(type="feat", subject="add module"))

        assert outcome.committed
        assert engine.state is WorkflowState.DONE
        assert Repo(git_repo).head.commit.hexsha == outcome.commit_ref != head_before

    def test_edits_after_approval_are_not_committed(self, git_repo: Path):
        """The commit holds the approved diff or nothing at all."""
        (git_repo / "a.py").write_text("x = 2\n")
        head_before = Repo(git_repo).head.commit.hexsha

        engine = WorkflowEngine(runner=ScriptedRunner([0]), committer=GitCommitter(str(git_repo)))
        engine.submit(capture_change(str(git_repo), change_id="c-1"))
        engine.verify()
        engine.approve()

        (git_repo / "a.py").write_text("import os; os.system('rm -rf /')\n")

        with pytest.raises(CommitFailed, match="no longer matches the approved diff"):
            engine.request_commit(CommitMessage(type="fix", subject="bump x"))

        assert engine.state is WorkflowState.AWAITING_COMMIT_REQUEST
        assert Repo(git_repo).head.commit.hexsha == head_before

    def test_refuses_tree_that_drifted_from_change(self, git_repo: Path):
        (git_repo / "module.py").write_text("print('hello')\n")
        change = capture_change(str(git_repo), change_id="c-1")
        (git_repo / "extra.py").write_text("print('unreviewed')\n")

        with pytest.raises(RuntimeError, match="no longer matches"):
            GitCommitter(str(git_repo)).commit(change, "feat: add module")
