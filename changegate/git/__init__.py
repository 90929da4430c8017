"""
Git integration for ChangeGate.

Handles:
- Capturing the working tree as a ChangeSet
- Creating the commit once every gate has passed
"""

from changegate.git.committer import GitCommitter, capture_change, open_repo, working_tree_diff

__all__ = ["GitCommitter", "capture_change", "open_repo", "working_tree_diff"]
