"""
ChangeGate

Change-gate workflow engine: verify until green, wait for human review,
commit only on explicit request with a policy-checked message.
"""

__version__ = "0.1.0"

from changegate.state import ChangeSet, CommitMessage, VerificationResult, WorkflowState
from changegate.engine import WorkflowEngine

__all__ = [
    "ChangeSet",
    "CommitMessage",
    "VerificationResult",
    "WorkflowEngine",
    "WorkflowState",
    "__version__",
]
