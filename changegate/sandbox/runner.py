"""
Local Verification Runner for ChangeGate.

Runs the verification command on the host and turns its exit status into
a VerificationResult. The command may run for a long time, so the runner
polls for completion and honours a cancellation event in between.
"""

import os
import signal
import subprocess
import threading
import time
from typing import Optional, Protocol

from rich.console import Console

from changegate.errors import VerificationCancelled
from changegate.state import VerificationResult

console = Console()

# Exit code reported when the command cannot be started at all
EXIT_NOT_STARTED = 127


class VerificationRunner(Protocol):
    """Anything that can check a change and report PASS or FAIL."""

    def run(self, cancel_event: Optional[threading.Event] = None) -> VerificationResult:
        ...


class CommandRunner:
    """
    Run a shell command as the verification check.

    Zero exit status is PASS, anything else is FAIL. Output is stdout and
    stderr combined.
    """

    def __init__(
        self,
        command: str,
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
        poll_interval: float = 0.1,
        verbose: bool = False,
    ):
        self.command = command
        self.cwd = cwd
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.verbose = verbose

    def run(self, cancel_event: Optional[threading.Event] = None) -> VerificationResult:
        """
        Execute the command once.

        Args:
            cancel_event: When set while the command runs, the command is
                killed and VerificationCancelled is raised

        Returns:
            VerificationResult for this attempt

        Raises:
            VerificationCancelled: If cancel_event was set
        """
        if self.verbose:
            console.print(f"[dim]Running: {self.command}[/dim]")

        start = time.monotonic()

        try:
            proc = subprocess.Popen(
                self.command,
                shell=True,
                cwd=self.cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                start_new_session=hasattr(os, "killpg"),
            )
        except OSError as e:
            return VerificationResult.from_exit_code(
                EXIT_NOT_STARTED,
                f"Could not start verification command: {e}",
            )

        while True:
            try:
                output, _ = proc.communicate(timeout=self.poll_interval)
                break
            except subprocess.TimeoutExpired:
                if cancel_event is not None and cancel_event.is_set():
                    _terminate(proc)
                    raise VerificationCancelled(
                        f"Verification cancelled: {self.command}"
                    )

                if self.timeout is not None and time.monotonic() - start > self.timeout:
                    partial = _terminate(proc)
                    return VerificationResult.from_exit_code(
                        proc.returncode if proc.returncode else 1,
                        f"{partial}\nVerification timed out after {self.timeout}s",
                        duration_seconds=time.monotonic() - start,
                    )

        return VerificationResult.from_exit_code(
            proc.returncode,
            output or "",
            duration_seconds=time.monotonic() - start,
        )


def _terminate(proc: subprocess.Popen) -> str:
    """Kill the command and everything it started, return collected output."""
    try:
        if hasattr(os, "killpg"):
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass
    output, _ = proc.communicate()
    return output or ""
