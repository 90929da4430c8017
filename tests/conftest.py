"""Shared fakes for ChangeGate tests."""

import pytest

from changegate.errors import VerificationCancelled
from changegate.state import ChangeSet, VerificationResult


class ScriptedRunner:
    """Returns exit codes from a script, one per run."""

    def __init__(self, exit_codes):
        self.exit_codes = list(exit_codes)
        self.calls = 0

    def run(self, cancel_event=None):
        code = self.exit_codes[min(self.calls, len(self.exit_codes) - 1)]
        self.calls += 1
        if cancel_event is not None and cancel_event.is_set():
            raise VerificationCancelled("cancelled")
        return VerificationResult.from_exit_code(code, f"run {self.calls}: exit {code}")


class RecordingCommitter:
    def __init__(self, fail: bool = False):
        self.commits = []
        self.fail = fail

    def commit(self, change, message):
        if self.fail:
            raise RuntimeError("disk full")
        self.commits.append((change, message))
        return f"sha{len(self.commits)}"


class RecordingChannel:
    def __init__(self):
        self.published = []

    def publish(self, request):
        self.published.append(request)


SAMPLE_DIFF = """--- a/src/calculator.py
+++ b/src/calculator.py
@@ -10,1 +10,3 @@ def divide(a, b):
-    return a / b
+    if b == 0:
+        raise ValueError("Cannot divide by zero")
+    return a / b
"""


@pytest.fixture
def change() -> ChangeSet:
    return ChangeSet(change_id="change-1", diff=SAMPLE_DIFF, description="guard divide")


@pytest.fixture
def committer() -> RecordingCommitter:
    return RecordingCommitter()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()
