"""
Run Journal for ChangeGate.

Stores one JSON line per gated change so the team can see how changes
move through the gate.
"""

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from changegate.engine import WorkflowEngine
from changegate.state import EventKind, WorkflowState


@dataclass
class WorkflowMetrics:
    """Metrics for a single gated change."""

    timestamp: str
    change_id: Optional[str]
    final_state: str

    # Verification
    verification_attempts: int
    failed_attempts: int

    # Review
    review_state: Optional[str]

    # Commit
    committed: bool
    commit_ref: Optional[str]
    validation_failures: int

    duration_seconds: Optional[float] = None


class MetricsLogger:
    """
    Persistent run journal.

    Writes JSON lines to a file for later analysis.
    """

    def __init__(self, path: str = "changegate_runs.jsonl"):
        self.path = Path(path)

    def log(self, metrics: WorkflowMetrics) -> None:
        """Append metrics to the journal file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(metrics)) + "\n")

    def read_all(self) -> list[WorkflowMetrics]:
        if not self.path.exists():
            return []

        metrics = []
        with open(self.path, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    metrics.append(WorkflowMetrics(**json.loads(line)))

        return metrics

    def summary(self) -> dict:
        """
        Generate summary statistics.

        Returns:
            Dictionary of summary stats
        """
        all_metrics = self.read_all()

        if not all_metrics:
            return {"total_runs": 0}

        total = len(all_metrics)
        committed = sum(1 for m in all_metrics if m.committed)

        def count(state: WorkflowState) -> int:
            return sum(1 for m in all_metrics if m.final_state == state.value)

        return {
            "total_runs": total,
            "committed": committed,
            "commit_rate": committed / total,
            "rejected": count(WorkflowState.REJECTED),
            "abandoned": count(WorkflowState.ABANDONED),
            "awaiting_commit_request": count(WorkflowState.AWAITING_COMMIT_REQUEST),
            "avg_attempts": sum(m.verification_attempts for m in all_metrics) / total,
            "validation_failures": sum(m.validation_failures for m in all_metrics),
        }


def build_metrics(
    engine: WorkflowEngine,
    duration_seconds: Optional[float] = None,
) -> WorkflowMetrics:
    """Collect metrics from an engine in its current state."""
    review_state = engine.review_state

    return WorkflowMetrics(
        timestamp=datetime.now(timezone.utc).isoformat(),
        change_id=engine.change_id,
        final_state=engine.state.value,
        verification_attempts=len(engine.verifications),
        failed_attempts=sum(1 for r in engine.verifications if not r.passed),
        review_state=review_state.value if review_state else None,
        committed=engine.state is WorkflowState.DONE,
        commit_ref=engine.commit_ref,
        validation_failures=sum(
            1 for e in engine.events if e.kind is EventKind.VALIDATION_FAILED
        ),
        duration_seconds=duration_seconds,
    )


def log_run(
    engine: WorkflowEngine,
    duration_seconds: Optional[float] = None,
    path: Optional[str] = None,
) -> WorkflowMetrics:
    """
    Log metrics from a finished or suspended workflow.

    Args:
        engine: The workflow engine
        duration_seconds: Optional run duration
        path: Journal file (default journal if omitted)

    Returns:
        The metrics that were written
    """
    metrics = build_metrics(engine, duration_seconds)
    logger = MetricsLogger(path) if path else MetricsLogger()
    logger.log(metrics)
    return metrics
