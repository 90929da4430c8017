"""
Human review for ChangeGate.

Nothing is committed until a person has seen the diff and approved it.
"""

from changegate.review.gate import ReviewChannel, ReviewGate, ReviewRequest
from changegate.review.console import ConsoleReviewChannel

__all__ = ["ReviewChannel", "ReviewGate", "ReviewRequest", "ConsoleReviewChannel"]
