"""
Commit Message Guard for ChangeGate.

Validates candidate commit messages against the commit policy before any
commit is created. Every rule is checked so that all violations are
reported together.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from changegate.policy.rules import CommitPolicy, DEFAULT_POLICY
from changegate.state import CommitMessage


class ViolationKind(str, Enum):
    INVALID_TYPE = "INVALID_TYPE"
    SUBJECT_TOO_LONG = "SUBJECT_TOO_LONG"
    PROHIBITED_CONTENT = "PROHIBITED_CONTENT"
    MALFORMED_HEADER = "MALFORMED_HEADER"


# type, exactly one ": ", subject without surrounding whitespace
HEADER_RE = re.compile(r"(?P<type>[^\s:()!\[\]]+): (?P<subject>\S(?:.*\S)?)")


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating one commit message.

    ``violations`` lists the broken rules in rule order, ``messages``
    holds one human-readable explanation per violation.
    """

    ok: bool
    violations: tuple[ViolationKind, ...] = ()
    messages: tuple[str, ...] = ()
    matched_phrases: tuple[str, ...] = ()


def find_prohibited_phrases(text: str, policy: CommitPolicy) -> list[str]:
    """Return every banned phrase occurrence in ``text``, in pattern order."""
    matches = []
    for pattern in policy.patterns:
        for match in pattern.finditer(text):
            phrase = match.group(0).strip()
            if phrase and phrase not in matches:
                matches.append(phrase)
    return matches


def validate(
    msg: CommitMessage,
    policy: Optional[CommitPolicy] = None,
) -> ValidationResult:
    """
    Validate a commit message against the commit policy.

    Args:
        msg: Candidate commit message
        policy: Commit policy (uses default if not provided)

    Returns:
        ValidationResult with all violations found
    """
    if policy is None:
        policy = DEFAULT_POLICY

    violations = []
    messages = []

    # Rule 1: known type
    if msg.type not in policy.allowed_types:
        violations.append(ViolationKind.INVALID_TYPE)
        messages.append(
            f"Invalid type {msg.type!r}: expected one of {', '.join(policy.allowed_types)}"
        )

    # Rule 2: subject length
    if len(msg.subject) > policy.max_subject_length:
        violations.append(ViolationKind.SUBJECT_TOO_LONG)
        messages.append(
            f"Subject too long: {len(msg.subject)} > {policy.max_subject_length} characters"
        )

    # Rule 3: banned phrases anywhere in the message
    matched = find_prohibited_phrases(msg.subject, policy)
    for text in (msg.header, msg.body):
        if not text:
            continue
        for phrase in find_prohibited_phrases(text, policy):
            if phrase not in matched:
                matched.append(phrase)

    if matched:
        violations.append(ViolationKind.PROHIBITED_CONTENT)
        quoted = ", ".join(f"'{p}'" for p in matched)
        messages.append(f"Prohibited content: {quoted}")

    # Rule 4: header shape; a raw header must be exactly what gets committed
    header = msg.header if msg.header is not None else msg.render_header()
    if HEADER_RE.fullmatch(header) is None or header != msg.render_header():
        violations.append(ViolationKind.MALFORMED_HEADER)
        messages.append(f"Malformed header {header!r}: expected 'type: subject'")

    return ValidationResult(
        ok=not violations,
        violations=tuple(violations),
        messages=tuple(messages),
        matched_phrases=tuple(matched),
    )


def parse_and_validate(
    text: str,
    policy: Optional[CommitPolicy] = None,
) -> tuple[CommitMessage, ValidationResult]:
    """
    Parse a raw commit message and validate it.

    Args:
        text: Raw commit message, as written to COMMIT_EDITMSG
        policy: Commit policy

    Returns:
        Tuple of (parsed message, validation result)
    """
    msg = CommitMessage.parse(text)
    return msg, validate(msg, policy)


def is_message_valid(
    msg: CommitMessage,
    policy: Optional[CommitPolicy] = None,
) -> bool:
    """Quick check if a commit message passes all policy rules."""
    return validate(msg, policy).ok
