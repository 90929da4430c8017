"""
Policy Engine for ChangeGate.

Enforces the commit message rules that keep history reviewable:
- Conventional ``type: subject`` headers
- Subject length limit
- No attribution or promotional phrasing

The policy engine is deterministic and has no I/O.
"""

from changegate.policy.commit_guard import (
    ValidationResult,
    ViolationKind,
    is_message_valid,
    parse_and_validate,
    validate,
)
from changegate.policy.diff_guard import extract_patch_stats, format_patch_stats
from changegate.policy.rules import (
    ALLOWED_TYPES,
    BANNED_PHRASES,
    DEFAULT_POLICY,
    CommitPolicy,
    load_banned_phrases,
)

__all__ = [
    "validate",
    "parse_and_validate",
    "is_message_valid",
    "ValidationResult",
    "ViolationKind",
    "extract_patch_stats",
    "format_patch_stats",
    "ALLOWED_TYPES",
    "BANNED_PHRASES",
    "DEFAULT_POLICY",
    "CommitPolicy",
    "load_banned_phrases",
]
