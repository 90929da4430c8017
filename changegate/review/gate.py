"""
Review Gate for ChangeGate.

Holds a verified ChangeSet until a human explicitly approves or rejects
it. The gate never advances on its own.
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol

from changegate.errors import ProtocolViolation
from changegate.policy.diff_guard import extract_patch_stats
from changegate.state import ChangeSet, ReviewDecision, ReviewState


@dataclass(frozen=True)
class ReviewRequest:
    """Payload shown to the reviewer."""

    change_id: str
    diff: str
    description: str = ""
    stats: dict = field(default_factory=dict)


class ReviewChannel(Protocol):
    """Where review requests are surfaced to a human."""

    def publish(self, request: ReviewRequest) -> None:
        ...


class ReviewGate:
    """Tracks the review state of one ChangeSet."""

    def __init__(self):
        self._pending: Optional[ChangeSet] = None
        self._decision: Optional[ReviewDecision] = None

    @property
    def pending(self) -> Optional[ChangeSet]:
        return self._pending

    @property
    def decision(self) -> Optional[ReviewDecision]:
        return self._decision

    @property
    def state(self) -> Optional[ReviewState]:
        """None until a change is submitted, then PENDING until decided."""
        if self._decision is not None:
            return self._decision.state
        if self._pending is not None:
            return ReviewState.PENDING
        return None

    def submit(self, change: ChangeSet) -> ReviewRequest:
        """
        Put a change up for review.

        Args:
            change: The verified ChangeSet

        Returns:
            ReviewRequest to publish to the reviewer

        Raises:
            ProtocolViolation: If a decision was already recorded
        """
        if self._decision is not None:
            raise ProtocolViolation(
                "review already decided; a new review needs a new gate",
                self._decision.state,
            )

        self._pending = change
        return ReviewRequest(
            change_id=change.change_id,
            diff=change.diff,
            description=change.description,
            stats=extract_patch_stats(change.diff),
        )

    def approve(self, comment: Optional[str] = None) -> ReviewDecision:
        return self._decide(ReviewState.APPROVED, comment)

    def reject(self, comment: Optional[str] = None) -> ReviewDecision:
        return self._decide(ReviewState.REJECTED, comment)

    def _decide(self, state: ReviewState, comment: Optional[str]) -> ReviewDecision:
        if self._pending is None:
            raise ProtocolViolation("no change is awaiting review")
        if self._decision is not None:
            raise ProtocolViolation(
                f"review already decided as {self._decision.state.name}",
                self._decision.state,
            )

        self._decision = ReviewDecision(state=state, comment=comment)
        return self._decision
