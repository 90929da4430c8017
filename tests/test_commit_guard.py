"""
Tests for the ChangeGate commit message guard.

These tests verify that the validator correctly:
- Accepts well-formed conventional messages
- Rejects unknown types and long subjects
- Detects attribution and promotional phrasing
- Reports every violation at once, in rule order
"""

import pytest

from changegate.policy.commit_guard import (
    ViolationKind,
    is_message_valid,
    parse_and_validate,
    validate,
)
from changegate.policy.rules import CommitPolicy, load_banned_phrases
from changegate.state import CommitMessage, CommitType


class TestCommitGuard:
    """Core validation rules."""

    def test_valid_message_passes(self):
        """A short conventional message passes all checks."""
        msg = CommitMessage(type="feat", subject="add retry loop to verifier")
        result = validate(msg)
        assert result.ok
        assert result.violations == ()
        assert is_message_valid(msg)

    def test_invalid_type(self):
        result = validate(CommitMessage(type="oops", subject="fix bug"))
        assert not result.ok
        assert result.violations == (ViolationKind.INVALID_TYPE,)
        assert "oops" in result.messages[0]

    @pytest.mark.parametrize("commit_type", ["feat", "fix", "test", "docs", "refactor", "chore"])
    def test_all_six_types_accepted(self, commit_type):
        assert validate(CommitMessage(type=commit_type, subject="tidy up")).ok

    def test_subject_of_80_chars_passes(self):
        msg = CommitMessage(type="fix", subject="a" * 80)
        assert validate(msg).ok

    def test_subject_of_81_chars_fails(self):
        result = validate(CommitMessage(type="fix", subject="a" * 81))
        assert result.violations == (ViolationKind.SUBJECT_TOO_LONG,)
        assert "81 > 80" in result.messages[0]

    def test_generated_with_in_body(self):
        """Tool attribution in the body is prohibited."""
        msg = CommitMessage(
            type="fix",
            subject="handle empty diff",
            body="Generated with SomeTool\n\nMore details.",
        )
        result = validate(msg)
        assert result.violations == (ViolationKind.PROHIBITED_CONTENT,)
        assert "Generated with" in result.matched_phrases

    def test_assistant_co_author_trailer(self):
        msg = CommitMessage(
            type="fix",
            subject="handle empty diff",
            body="Co-Authored-By: Claude <noreply@anthropic.com>",
        )
        result = validate(msg)
        assert result.violations == (ViolationKind.PROHIBITED_CONTENT,)

    def test_human_co_author_allowed(self):
        msg = CommitMessage(
            type="fix",
            subject="handle empty diff",
            body="Co-Authored-By: Jane Doe <jane@example.com>",
        )
        assert validate(msg).ok

    def test_promotional_subject(self):
        result = validate(CommitMessage(type="feat", subject="revolutionary blazing fast parser"))
        assert result.violations == (ViolationKind.PROHIBITED_CONTENT,)
        assert set(result.matched_phrases) == {"revolutionary", "blazing fast"}

    @pytest.mark.parametrize("commit_type,subject", [
        ("feat(api)", "add endpoint"),
        ("feat!", "drop python 3.8"),
    ])
    def test_scoped_types_are_malformed(self, commit_type, subject):
        result = validate(CommitMessage(type=commit_type, subject=subject))
        assert result.violations == (ViolationKind.INVALID_TYPE, ViolationKind.MALFORMED_HEADER)

    @pytest.mark.parametrize("subject", ["", " leading space", "trailing space ", "two\nlines"])
    def test_bad_subject_shape_is_malformed(self, subject):
        result = validate(CommitMessage(type="fix", subject=subject))
        assert ViolationKind.MALFORMED_HEADER in result.violations

    def test_all_violations_reported_in_rule_order(self):
        msg = CommitMessage(type="wip", subject="awesome " + "x" * 80 + " ")
        result = validate(msg)
        assert result.violations == (
            ViolationKind.INVALID_TYPE,
            ViolationKind.SUBJECT_TOO_LONG,
            ViolationKind.PROHIBITED_CONTENT,
            ViolationKind.MALFORMED_HEADER,
        )
        assert len(result.messages) == 4

    def test_header_disagreeing_with_fields_is_malformed(self):
        msg = CommitMessage(type="fix", subject="short", header="fix: " + "x" * 90)
        result = validate(msg)
        assert result.violations == (ViolationKind.MALFORMED_HEADER,)

    def test_banned_phrase_in_header_is_reported(self):
        msg = CommitMessage(type="feat", subject="ok", header="feat: revolutionary")
        result = validate(msg)
        assert ViolationKind.PROHIBITED_CONTENT in result.violations
        assert result.matched_phrases == ("revolutionary",)

    def test_enum_type_renders_as_text(self):
        msg = CommitMessage(type=CommitType.FEAT, subject="add stats command")
        assert msg.type == "feat"
        assert msg.render() == "feat: add stats command"
        assert validate(msg).ok

    def test_validation_is_deterministic(self):
        msg = CommitMessage(type="oops", subject="game-changing " * 10, body="generated by bot")
        results = {validate(msg) for _ in range(5)}
        assert len(results) == 1


class TestParsedMessages:
    """Validation of raw message text, as a commit-msg hook sees it."""

    def test_parse_header_and_body(self):
        msg, result = parse_and_validate("docs: explain review gate\n\nLonger text.\n")
        assert result.ok
        assert msg.type == "docs"
        assert msg.subject == "explain review gate"
        assert msg.body == "Longer text."

    def test_comment_lines_are_ignored(self):
        msg, result = parse_and_validate("fix: guard divide\n# Please enter the commit message\n")
        assert result.ok
        assert msg.body is None

    @pytest.mark.parametrize("text", ["fix:guard divide", "fix :guard", "fix:  guard", "guard divide"])
    def test_bad_separator_is_malformed(self, text):
        _, result = parse_and_validate(text)
        assert ViolationKind.MALFORMED_HEADER in result.violations

    def test_render_round_trip(self):
        msg = CommitMessage(type="chore", subject="bump version", body="Release 0.1.1")
        assert msg.render() == "chore: bump version\n\nRelease 0.1.1"


class TestPolicyConfiguration:
    """The banned phrase set is injectable."""

    def test_extra_phrases(self):
        policy = CommitPolicy().with_extra_phrases([r"\bsynergy\b"])
        msg = CommitMessage(type="feat", subject="add synergy between modules")
        assert validate(msg).ok
        assert validate(msg, policy=policy).violations == (ViolationKind.PROHIBITED_CONTENT,)

    def test_empty_phrase_set_allows_anything(self):
        policy = CommitPolicy(banned_phrases=())
        msg = CommitMessage(type="feat", subject="awesome change")
        assert validate(msg, policy=policy).ok

    def test_load_banned_phrases(self, tmp_path):
        path = tmp_path / "phrases.txt"
        path.write_text("# marketing\n\\bsynergy\\b\n\nleverag(?:e|ing)\n")
        assert load_banned_phrases(path) == (r"\bsynergy\b", "leverag(?:e|ing)")

    def test_load_banned_phrases_rejects_bad_regex(self, tmp_path):
        path = tmp_path / "phrases.txt"
        path.write_text("(unclosed\n")
        with pytest.raises(ValueError, match="phrases.txt:1"):
            load_banned_phrases(path)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
