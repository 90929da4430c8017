"""
Exceptions raised by ChangeGate.

Verification failures and rejected commit messages are ordinary outcomes
and are returned as values. The exceptions here mark caller bugs and
environment problems.
"""

from typing import Optional


class ChangeGateError(RuntimeError):
    """Base class for ChangeGate errors."""


class ProtocolViolation(ChangeGateError):
    """
    An operation was attempted that the workflow does not allow.

    Carries the rule that was broken and the state the engine was in,
    which is left unchanged.
    """

    def __init__(self, rule: str, state: Optional[object] = None):
        self.rule = rule
        self.state = state
        if state is not None:
            state_name = getattr(state, "name", str(state))
            super().__init__(f"{rule} (state: {state_name})")
        else:
            super().__init__(rule)


class VerificationCancelled(ChangeGateError):
    """The running verification was aborted by a cancellation signal."""


class SandboxUnavailable(ChangeGateError):
    """The Docker daemon cannot be reached."""


class CommitFailed(ChangeGateError):
    """The commit collaborator could not create the commit."""
