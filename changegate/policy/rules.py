"""
Commit Policy Rules for ChangeGate.

These rules keep commit history clean:
- Conventional ``type: subject`` headers from a fixed set of types
- Short subjects
- No tool attribution or marketing language
"""

import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Union

from changegate.state import CommitType


# Commit types accepted in the header
ALLOWED_TYPES = tuple(t.value for t in CommitType)

MAX_SUBJECT_LENGTH = 80

# Attribution to code-generation tools and assistants
ATTRIBUTION_PHRASES = (
    r"\bgenerated (?:with|by)\b",
    r"co-authored-by:[^\n]*\b(?:claude|chatgpt|gpt-?\d*|copilot|gemini|assistant|ai|bot)\b",
    r"noreply@anthropic\.com",
    r"\bai[- ]generated\b",
    r"\bwritten (?:with|by) (?:an? )?ai\b",
    r"\bas an ai\b",
    "\U0001F916",  # robot face
)

# Promotional wording that does not describe a change
PROMOTIONAL_PHRASES = (
    r"\brevolutionary\b",
    r"\bgame[- ]chang(?:er|ing)\b",
    r"\bworld[- ]class\b",
    r"\bbest[- ]in[- ]class\b",
    r"\bcutting[- ]edge\b",
    r"\bblazing(?:ly)? fast\b",
    r"\bnext[- ]level\b",
    r"\bsuper[- ]charged?\b",
    r"\bamazing\b",
    r"\bawesome\b",
    r"\bmagical\b",
    r"\bcheck (?:it )?out\b",
    r"\bpowered by\b",
)

BANNED_PHRASES = ATTRIBUTION_PHRASES + PROMOTIONAL_PHRASES


@dataclass(frozen=True)
class CommitPolicy:
    """
    Configurable commit message policy.

    The banned phrases are case-insensitive regular expressions. Extend
    them with ``with_extra_phrases`` or a phrases file rather than by
    editing this module.
    """

    allowed_types: tuple[str, ...] = ALLOWED_TYPES
    max_subject_length: int = MAX_SUBJECT_LENGTH
    banned_phrases: tuple[str, ...] = BANNED_PHRASES
    _compiled: tuple = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self):
        compiled = tuple(re.compile(p, re.IGNORECASE) for p in self.banned_phrases)
        object.__setattr__(self, "_compiled", compiled)

    @property
    def patterns(self) -> tuple[re.Pattern, ...]:
        return self._compiled

    def with_extra_phrases(self, phrases) -> "CommitPolicy":
        """Return a copy of this policy with additional banned patterns."""
        extra = tuple(p for p in phrases if p not in self.banned_phrases)
        return replace(self, banned_phrases=self.banned_phrases + extra)


def load_banned_phrases(path: Union[str, Path]) -> tuple[str, ...]:
    """
    Read banned phrase patterns from a file.

    One pattern per line. Blank lines and lines starting with ``#`` are
    ignored.

    Args:
        path: Path to the phrases file

    Returns:
        Tuple of pattern strings

    Raises:
        ValueError: If a line is not a valid regular expression
    """
    phrases = []
    text = Path(path).read_text(encoding="utf-8")

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        try:
            re.compile(line)
        except re.error as e:
            raise ValueError(f"{path}:{lineno}: invalid pattern {line!r}: {e}") from e
        phrases.append(line)

    return tuple(phrases)


# Default policy instance
DEFAULT_POLICY = CommitPolicy()
