"""
Diff statistics for ChangeGate.

Summarises the unified diff of a ChangeSet so a reviewer sees its size
before reading it.
"""

from unidiff import PatchSet, UnidiffParseError


def extract_patch_stats(diff_text: str) -> dict:
    """
    Extract statistics from a patch for review.

    Args:
        diff_text: Unified diff string

    Returns:
        Dictionary with patch statistics. An empty diff yields zero
        counts; an unparseable one yields an ``error`` entry.
    """
    stats = {
        "files_changed": 0,
        "additions": 0,
        "deletions": 0,
        "files": [],
    }

    if not diff_text or not diff_text.strip():
        return stats

    try:
        patch = PatchSet(diff_text)
    except UnidiffParseError as e:
        return {**stats, "error": f"Invalid diff format: {e}"}

    stats["files_changed"] = len(patch)

    for patched_file in patch:
        if patched_file.is_added_file:
            change = "added"
        elif patched_file.is_removed_file:
            change = "deleted"
        else:
            change = "modified"

        stats["files"].append({
            "path": patched_file.path,
            "change": change,
            "additions": patched_file.added,
            "deletions": patched_file.removed,
        })
        stats["additions"] += patched_file.added
        stats["deletions"] += patched_file.removed

    return stats


def format_patch_stats(stats: dict) -> str:
    """Render patch statistics as a one-line summary."""
    if "error" in stats:
        return stats["error"]

    files = stats["files_changed"]
    noun = "file" if files == 1 else "files"
    return f"{files} {noun} changed, +{stats['additions']} -{stats['deletions']}"
