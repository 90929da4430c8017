"""
Workflow data model for ChangeGate.

Everything the engine tracks for a single change:
- The ChangeSet under review
- One VerificationResult per verification attempt
- The human review decision
- The candidate commit message
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class WorkflowState(str, Enum):
    """States of the change-gate workflow."""

    EDITING = "editing"
    VERIFYING = "verifying"
    AWAITING_REVIEW = "awaiting_review"
    AWAITING_COMMIT_REQUEST = "awaiting_commit_request"
    COMMITTING = "committing"
    DONE = "done"
    REJECTED = "rejected"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({
    WorkflowState.DONE,
    WorkflowState.REJECTED,
    WorkflowState.ABANDONED,
})


class VerificationStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"


class ReviewState(str, Enum):
    """Human review state. Only an explicit decision moves it off PENDING."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CommitType(str, Enum):
    FEAT = "feat"
    FIX = "fix"
    TEST = "test"
    DOCS = "docs"
    REFACTOR = "refactor"
    CHORE = "chore"


class EventKind(str, Enum):
    VERIFICATION_STARTED = "verification_started"
    VERIFICATION_PASSED = "verification_passed"
    VERIFICATION_FAILED = "verification_failed"
    VERIFICATION_CANCELLED = "verification_cancelled"
    REVIEW_REQUESTED = "review_requested"
    REVIEW_APPROVED = "review_approved"
    REVIEW_REJECTED = "review_rejected"
    VALIDATION_FAILED = "validation_failed"
    COMMITTED = "committed"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class ChangeSet:
    """
    A unit of proposed work and the diff it produced.

    Created by the change-making actor. Amending a change means handing
    the engine a new ChangeSet carrying the same ``change_id``.
    """

    change_id: str
    diff: str
    description: str = ""


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a single verification attempt."""

    status: VerificationStatus
    output: str
    exit_code: Optional[int] = None
    attempt: int = 0
    duration_seconds: float = 0.0

    @property
    def passed(self) -> bool:
        return self.status is VerificationStatus.PASS

    @classmethod
    def from_exit_code(
        cls,
        exit_code: int,
        output: str,
        duration_seconds: float = 0.0,
    ) -> "VerificationResult":
        """Zero exit is PASS, anything else is FAIL."""
        status = VerificationStatus.PASS if exit_code == 0 else VerificationStatus.FAIL
        return cls(
            status=status,
            output=output,
            exit_code=exit_code,
            duration_seconds=duration_seconds,
        )


@dataclass(frozen=True)
class ReviewDecision:
    state: ReviewState
    comment: Optional[str] = None


@dataclass(frozen=True)
class CommitMessage:
    """
    Candidate commit message.

    ``type`` is kept as raw text so an unknown type can still be
    represented and reported by the validator. ``header`` holds the raw
    first line when the message was parsed from text; it is only checked
    for shape and never committed.
    """

    type: str
    subject: str
    body: Optional[str] = None
    header: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "type", getattr(self.type, "value", self.type))

    @classmethod
    def parse(cls, text: str) -> "CommitMessage":
        """
        Split a raw commit message into its parts.

        The header is the first line, the body is everything after the
        first blank line. Lines starting with ``#`` are dropped, the way
        git strips them from an edited message.

        Args:
            text: Raw commit message text

        Returns:
            CommitMessage with ``header`` set to the raw first line
        """
        lines = [line for line in text.splitlines() if not line.startswith("#")]
        while lines and not lines[-1].strip():
            lines.pop()

        header = lines[0] if lines else ""
        body_text = "\n".join(lines[1:]).strip("\n")
        body = body_text or None

        if ":" in header:
            type_, _, rest = header.partition(":")
            subject = rest[1:] if rest.startswith(" ") else rest
        else:
            type_, subject = header, ""

        return cls(type=type_, subject=subject, body=body, header=header)

    def render_header(self) -> str:
        return f"{self.type}: {self.subject}"

    def render(self) -> str:
        header = self.render_header()
        if self.body:
            return f"{header}\n\n{self.body}"
        return header


@dataclass
class CommitOutcome:
    """Result of a commit request."""

    committed: bool
    message: CommitMessage
    violations: tuple = ()
    violation_messages: tuple = ()
    commit_ref: Optional[str] = None


@dataclass(frozen=True)
class WorkflowEvent:
    kind: EventKind
    change_id: Optional[str]
    state: WorkflowState
    payload: dict[str, Any] = field(default_factory=dict)
