"""
Tests for the Review Gate and the console review surface.
"""

import io

import pytest
from rich.console import Console

from changegate.errors import ProtocolViolation
from changegate.review.console import ConsoleReviewChannel
from changegate.review.gate import ReviewGate
from changegate.state import ChangeSet, ReviewState


class TestReviewGate:
    def test_new_gate_has_no_state(self):
        gate = ReviewGate()
        assert gate.state is None
        assert gate.pending is None

    def test_submit_sets_pending(self, change):
        gate = ReviewGate()
        request = gate.submit(change)
        assert gate.state is ReviewState.PENDING
        assert request.change_id == "change-1"
        assert request.stats["additions"] == 3

    def test_approve(self, change):
        gate = ReviewGate()
        gate.submit(change)
        decision = gate.approve("looks good")
        assert gate.state is ReviewState.APPROVED
        assert decision.comment == "looks good"

    def test_reject(self, change):
        gate = ReviewGate()
        gate.submit(change)
        gate.reject()
        assert gate.state is ReviewState.REJECTED

    def test_decision_without_submission(self):
        with pytest.raises(ProtocolViolation, match="no change is awaiting review"):
            ReviewGate().approve()

    def test_second_decision_is_refused(self, change):
        gate = ReviewGate()
        gate.submit(change)
        gate.reject()
        with pytest.raises(ProtocolViolation, match="already decided"):
            gate.approve()
        assert gate.state is ReviewState.REJECTED

    def test_resubmit_after_decision_is_refused(self, change):
        gate = ReviewGate()
        gate.submit(change)
        gate.approve()
        with pytest.raises(ProtocolViolation):
            gate.submit(change)


class TestConsoleReviewChannel:
    def _channel(self):
        buffer = io.StringIO()
        console = Console(file=buffer, force_terminal=False, width=120)
        return ConsoleReviewChannel(console=console, max_diff_lines=3), buffer

    def test_publish_shows_summary_and_diff(self, change):
        channel, buffer = self._channel()
        channel.publish(ReviewGate().submit(change))

        text = buffer.getvalue()
        assert "change-1" in text
        assert "1 file changed, +3 -1" in text
        assert "more lines not shown" in text
        assert len(channel.published) == 1

    def test_publish_empty_diff(self):
        channel, buffer = self._channel()
        channel.publish(ReviewGate().submit(ChangeSet(change_id="c", diff="")))
        assert "empty diff" in buffer.getvalue()

    @pytest.mark.parametrize("answer,expected", [
        ("approve", ReviewState.APPROVED),
        ("reject", ReviewState.REJECTED),
    ])
    def test_prompt_decision(self, monkeypatch, answer, expected):
        channel, _ = self._channel()
        answers = iter([answer, "ship it"])
        monkeypatch.setattr(
            "changegate.review.console.Prompt.ask",
            lambda *args, **kwargs: next(answers),
        )
        assert channel.prompt_decision() == (expected, "ship it")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
