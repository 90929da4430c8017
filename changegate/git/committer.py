"""
Git commit collaborator for ChangeGate.

Captures the working tree as a ChangeSet and creates the commit once the
engine allows it. The engine decides whether to commit; this module
only knows how.
"""

import uuid
from typing import Optional

from git import InvalidGitRepositoryError, NoSuchPathError, Repo
from git.exc import GitCommandError
from rich.console import Console
from rich.markup import escape

from changegate.state import ChangeSet

console = Console()


def open_repo(repo_path: str) -> Repo:
    """
    Open a git repository.

    Raises:
        RuntimeError: If the path is not a git repository
    """
    try:
        return Repo(repo_path)
    except (InvalidGitRepositoryError, NoSuchPathError) as e:
        raise RuntimeError(f"Not a git repository: {repo_path}") from e


def working_tree_diff(repo: Repo) -> str:
    """
    Diff of all uncommitted changes, untracked files included.

    Untracked files are marked intent-to-add so they show up in the diff
    without being staged.
    """
    untracked = repo.untracked_files
    if untracked:
        repo.git.add("--intent-to-add", "--", *untracked)

    if repo.head.is_valid():
        return repo.git.diff("HEAD")
    return repo.git.diff()


def capture_change(
    repo_path: str,
    change_id: Optional[str] = None,
    description: str = "",
) -> ChangeSet:
    """
    Build a ChangeSet from the current working tree.

    Args:
        repo_path: Path to the repository
        change_id: Identifier to reuse when amending; a new one is
            generated if omitted
        description: Free text shown to the reviewer

    Returns:
        ChangeSet holding the working tree diff
    """
    repo = open_repo(repo_path)
    return ChangeSet(
        change_id=change_id or f"change-{uuid.uuid4().hex[:8]}",
        diff=working_tree_diff(repo),
        description=description,
    )


class GitCommitter:
    """Stage everything in the working tree and commit it."""

    def __init__(self, repo_path: str, verbose: bool = False):
        self.repo_path = repo_path
        self.verbose = verbose

    def commit(self, change: ChangeSet, message: str) -> Optional[str]:
        """
        Create the commit for an approved change.

        Args:
            change: The approved ChangeSet
            message: Validated commit message

        Returns:
            Hex SHA of the new commit

        Raises:
            RuntimeError: If the working tree changed after approval,
                nothing is staged or git fails
        """
        repo = open_repo(self.repo_path)

        try:
            if working_tree_diff(repo) != change.diff:
                raise RuntimeError(
                    f"Working tree no longer matches the approved diff of {change.change_id}"
                )

            repo.git.add(all=True)
            if repo.head.is_valid() and not repo.index.diff("HEAD"):
                raise RuntimeError(f"Nothing to commit for {change.change_id}")

            commit = repo.index.commit(message)
        except GitCommandError as e:
            raise RuntimeError(f"Git command failed: {e}") from e

        if self.verbose:
            console.print(f"[blue]Committed {commit.hexsha[:8]}: {escape(message.splitlines()[0])}[/blue]")

        return commit.hexsha
