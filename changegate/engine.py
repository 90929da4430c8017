"""
Workflow Engine for ChangeGate.

Implements the change gate as a finite state machine with:
- An unbounded verify/fix loop that only the actor can leave
- A human review gate that never opens by itself
- Commit message validation before any commit is created

Nothing is committed unless the latest verification passed, the review
was approved and the message is valid. The three gates are checked
independently.
"""

import threading
from typing import Callable, Optional, Protocol

from rich.console import Console
from rich.markup import escape

from changegate.errors import CommitFailed, ProtocolViolation, VerificationCancelled
from changegate.policy.commit_guard import validate
from changegate.policy.rules import CommitPolicy, DEFAULT_POLICY
from changegate.review.gate import ReviewChannel, ReviewGate
from changegate.sandbox.runner import VerificationRunner
from changegate.state import (
    ChangeSet,
    CommitMessage,
    CommitOutcome,
    EventKind,
    ReviewState,
    VerificationResult,
    WorkflowEvent,
    WorkflowState,
)

console = Console()

EventListener = Callable[[WorkflowEvent], None]


class Committer(Protocol):
    """Creates the commit once every gate has passed."""

    def commit(self, change: ChangeSet, message: str) -> Optional[str]:
        ...


class WorkflowEngine:
    """
    Gate a single ChangeSet from editing to commit.

    The engine is driven by the actor calling its operations; it never
    advances on its own. Only ``cancel`` may be called from another
    thread while ``verify`` is running.
    """

    def __init__(
        self,
        runner: VerificationRunner,
        committer: Committer,
        review_channel: Optional[ReviewChannel] = None,
        policy: Optional[CommitPolicy] = None,
        verbose: bool = False,
    ):
        self.runner = runner
        self.committer = committer
        self.review_channel = review_channel
        self.policy = policy or DEFAULT_POLICY
        self.verbose = verbose

        self._state = WorkflowState.EDITING
        self._change: Optional[ChangeSet] = None
        self._change_id: Optional[str] = None
        self._review = ReviewGate()
        self._cancel = threading.Event()

        self.verifications: list[VerificationResult] = []
        self.history: list[tuple[WorkflowState, WorkflowState]] = []
        self.events: list[WorkflowEvent] = []
        self.commit_ref: Optional[str] = None
        self._listeners: list[EventListener] = []

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def change(self) -> Optional[ChangeSet]:
        return self._change

    @property
    def change_id(self) -> Optional[str]:
        return self._change_id

    @property
    def latest_verification(self) -> Optional[VerificationResult]:
        return self.verifications[-1] if self.verifications else None

    @property
    def review_state(self) -> Optional[ReviewState]:
        return self._review.state

    @property
    def review_comment(self) -> Optional[str]:
        decision = self._review.decision
        return decision.comment if decision else None

    @property
    def is_terminal(self) -> bool:
        return self._state.is_terminal

    def subscribe(self, listener: EventListener) -> None:
        """Register a callable that receives every WorkflowEvent."""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Editing and verification
    # ------------------------------------------------------------------

    def submit(self, change: ChangeSet) -> None:
        """
        Attach the change, or replace it with an amended version.

        Raises:
            ProtocolViolation: Outside EDITING, or if the change id differs
                from the one already being gated
        """
        self._require(WorkflowState.EDITING, "changes can only be submitted while editing")

        if self._change_id is not None and change.change_id != self._change_id:
            raise ProtocolViolation(
                f"engine is gating change {self._change_id!r}, got {change.change_id!r}",
                self._state,
            )

        self._change = change
        self._change_id = change.change_id

    def verify(self) -> Optional[VerificationResult]:
        """
        Run the verification runner against the current change.

        On FAIL the engine returns to EDITING so the actor can amend the
        change and verify again. There is no limit on attempts. On PASS
        the change goes to review.

        Returns:
            The VerificationResult, or None if the run was cancelled

        Raises:
            ProtocolViolation: Outside EDITING or with no change attached
        """
        self._require(WorkflowState.EDITING, "verification starts from editing")
        if self._change is None:
            raise ProtocolViolation("no change submitted for verification", self._state)

        attempt = len(self.verifications) + 1
        self._cancel.clear()
        self._transition(WorkflowState.VERIFYING)
        self._emit(EventKind.VERIFICATION_STARTED, attempt=attempt)

        if self.verbose:
            console.print(f"[bold blue]🧪 Verifying (attempt {attempt})...[/bold blue]")

        try:
            result = self.runner.run(self._cancel)
        except VerificationCancelled as e:
            self._transition(WorkflowState.EDITING)
            self._emit(EventKind.VERIFICATION_CANCELLED, attempt=attempt, reason=str(e))
            if self.verbose:
                console.print("[yellow]Verification cancelled[/yellow]")
            return None
        except BaseException:
            self._transition(WorkflowState.EDITING)
            raise
        finally:
            self._cancel.clear()

        result = VerificationResult(
            status=result.status,
            output=result.output,
            exit_code=result.exit_code,
            attempt=attempt,
            duration_seconds=result.duration_seconds,
        )
        self.verifications.append(result)

        if result.passed:
            if self.verbose:
                console.print("[green]✅ Verification passed[/green]")
            self._emit(EventKind.VERIFICATION_PASSED, attempt=attempt)
            self._request_review()
        else:
            if self.verbose:
                console.print("[red]❌ Verification failed[/red]")
            self._transition(WorkflowState.EDITING)
            self._emit(
                EventKind.VERIFICATION_FAILED,
                attempt=attempt,
                exit_code=result.exit_code,
            )

        return result

    def cancel(self) -> bool:
        """
        Abort a running verification.

        Returns:
            True if a verification was running and has been signalled
        """
        if self._state is not WorkflowState.VERIFYING:
            return False
        self._cancel.set()
        return True

    def abandon(self) -> Optional[ChangeSet]:
        """Give up on the change while editing. Returns the released change."""
        self._require(WorkflowState.EDITING, "a change can only be abandoned while editing")

        change = self._release()
        self._transition(WorkflowState.ABANDONED)
        self._emit(EventKind.ABANDONED)
        return change

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    def _request_review(self) -> None:
        request = self._review.submit(self._change)
        self._transition(WorkflowState.AWAITING_REVIEW)
        self._emit(EventKind.REVIEW_REQUESTED, stats=request.stats)

        if self.review_channel is not None:
            self.review_channel.publish(request)

    def approve(self, comment: Optional[str] = None) -> None:
        """Record an explicit human approval."""
        self._require(WorkflowState.AWAITING_REVIEW, "approval is only accepted during review")

        self._review.approve(comment)
        self._transition(WorkflowState.AWAITING_COMMIT_REQUEST)
        self._emit(EventKind.REVIEW_APPROVED, comment=comment)

    def reject(self, comment: Optional[str] = None) -> Optional[ChangeSet]:
        """
        Record an explicit human rejection.

        The workflow ends here. The change is handed back so the actor
        can discard it or start a new workflow for it.
        """
        self._require(WorkflowState.AWAITING_REVIEW, "rejection is only accepted during review")

        self._review.reject(comment)
        change = self._release()
        self._transition(WorkflowState.REJECTED)
        self._emit(EventKind.REVIEW_REJECTED, comment=comment)
        return change

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def _check_commit_gates(self) -> None:
        """Each gate is checked on its own; none implies another."""
        self._require(
            WorkflowState.AWAITING_COMMIT_REQUEST,
            "commit requested before the change was verified and approved",
        )

        latest = self.latest_verification
        if latest is None or not latest.passed:
            raise ProtocolViolation("commit requires the latest verification to PASS", self._state)

        if self._review.state is not ReviewState.APPROVED:
            raise ProtocolViolation("commit requires an APPROVED review", self._state)

        if self._change is None:
            raise ProtocolViolation("no change to commit", self._state)

    def request_commit(self, message: CommitMessage) -> CommitOutcome:
        """
        Validate the message and, if valid, create the commit.

        An invalid message is a recoverable outcome: the engine returns
        to AWAITING_COMMIT_REQUEST and reports every violated rule.

        Args:
            message: Candidate commit message

        Returns:
            CommitOutcome describing what happened

        Raises:
            ProtocolViolation: If a gate is not satisfied
            CommitFailed: If the committer raised
        """
        self._check_commit_gates()
        self._transition(WorkflowState.COMMITTING)

        result = validate(message, self.policy)
        if not result.ok:
            self._transition(WorkflowState.AWAITING_COMMIT_REQUEST)
            self._emit(
                EventKind.VALIDATION_FAILED,
                violations=[v.value for v in result.violations],
                messages=list(result.messages),
                matched_phrases=list(result.matched_phrases),
            )
            if self.verbose:
                console.print(f"[yellow]Commit message rejected: {len(result.violations)} violation(s)[/yellow]")
                for text in result.messages:
                    console.print(f"  [dim]- {escape(text)}[/dim]")
            return CommitOutcome(
                committed=False,
                message=message,
                violations=result.violations,
                violation_messages=result.messages,
            )

        rendered = message.render()
        try:
            commit_ref = self.committer.commit(self._change, rendered)
        except Exception as e:
            self._transition(WorkflowState.AWAITING_COMMIT_REQUEST)
            raise CommitFailed(f"Failed to create commit: {e}") from e

        self.commit_ref = commit_ref
        self._release()
        self._transition(WorkflowState.DONE)
        self._emit(EventKind.COMMITTED, message=rendered, commit_ref=commit_ref)

        if self.verbose:
            console.print(f"[green]✅ Committed: {escape(message.render_header())}[/green]")

        return CommitOutcome(committed=True, message=message, commit_ref=commit_ref)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, expected: WorkflowState, rule: str) -> None:
        if self._state is not expected:
            raise ProtocolViolation(rule, self._state)

    def _transition(self, new_state: WorkflowState) -> None:
        self.history.append((self._state, new_state))
        self._state = new_state

    def _release(self) -> Optional[ChangeSet]:
        change, self._change = self._change, None
        return change

    def _emit(self, kind: EventKind, **payload) -> None:
        event = WorkflowEvent(
            kind=kind,
            change_id=self._change_id,
            state=self._state,
            payload=payload,
        )
        self.events.append(event)
        for listener in self._listeners:
            listener(event)
