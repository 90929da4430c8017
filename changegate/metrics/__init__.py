"""
Run journal for ChangeGate.

Tracks how changes move through the gate:
- Verification attempts per change
- Review outcomes
- Commit rate and rejected commit messages
"""

from changegate.metrics.logger import MetricsLogger, WorkflowMetrics, build_metrics, log_run

__all__ = ["MetricsLogger", "WorkflowMetrics", "build_metrics", "log_run"]
