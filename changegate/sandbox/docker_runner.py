"""
Docker Sandbox Runner for ChangeGate.

Executes the verification command in a disposable Docker container to:
- Keep the host untouched
- Ensure reproducibility
- Allow a long-running check to be cancelled cleanly
"""

import os
import threading
import time
from pathlib import Path
from typing import Optional

import docker
from docker.errors import DockerException, ImageNotFound, NotFound
from rich.console import Console

from changegate.errors import SandboxUnavailable, VerificationCancelled
from changegate.state import VerificationResult

console = Console()

# Default Docker image for Python projects
DEFAULT_IMAGE = "python:3.11-slim"

INSTALL_PREFIX = (
    "if [ -f requirements.txt ]; then pip install -q -r requirements.txt 2>/dev/null; fi && "
    "if [ -f pyproject.toml ]; then pip install -q -e . 2>/dev/null; fi && "
)


def is_docker_available() -> bool:
    """Check if Docker daemon is accessible."""
    try:
        client = docker.from_env()
        client.ping()
        return True
    except DockerException:
        return False


class DockerRunner:
    """
    Run the verification command inside a container.

    The repository is mounted at ``/workspace``. The container is removed
    after every attempt, whether it passed, failed or was cancelled.
    """

    def __init__(
        self,
        repo_path: str,
        command: str,
        image: str = DEFAULT_IMAGE,
        network_disabled: bool = True,
        install_deps: bool = True,
        mem_limit: str = "512m",
        poll_interval: float = 0.5,
        verbose: bool = False,
    ):
        self.repo_path = os.path.abspath(repo_path)
        self.command = command
        self.image = image
        self.network_disabled = network_disabled
        self.install_deps = install_deps
        self.mem_limit = mem_limit
        self.poll_interval = poll_interval
        self.verbose = verbose

    def _client(self):
        try:
            client = docker.from_env()
            client.ping()
        except DockerException as e:
            raise SandboxUnavailable(
                f"Docker is not available. Please ensure Docker is running. ({e})"
            ) from e
        return client

    def _ensure_image(self, client) -> None:
        try:
            client.images.get(self.image)
        except ImageNotFound:
            if self.verbose:
                console.print(f"[yellow]Pulling image: {self.image}[/yellow]")
            client.images.pull(self.image)

    def build_command(self) -> str:
        if self.install_deps:
            return f"cd /workspace && {INSTALL_PREFIX}{self.command}"
        return f"cd /workspace && {self.command}"

    def run(self, cancel_event: Optional[threading.Event] = None) -> VerificationResult:
        """
        Execute the command once in a fresh container.

        Args:
            cancel_event: When set while the container runs, the
                container is killed and VerificationCancelled is raised

        Returns:
            VerificationResult for this attempt

        Raises:
            SandboxUnavailable: If Docker cannot be reached
            VerificationCancelled: If cancel_event was set
        """
        if not Path(self.repo_path).exists():
            raise SandboxUnavailable(f"Repository path does not exist: {self.repo_path}")

        client = self._client()
        self._ensure_image(client)

        if self.verbose:
            console.print(f"[dim]Running in sandbox: {self.command}[/dim]")

        start = time.monotonic()
        container = client.containers.run(
            image=self.image,
            command=["bash", "-c", self.build_command()],
            volumes={self.repo_path: {"bind": "/workspace", "mode": "rw"}},
            working_dir="/workspace",
            network_disabled=self.network_disabled,
            detach=True,
            mem_limit=self.mem_limit,
            cpu_period=100000,
            cpu_quota=50000,  # 50% CPU limit
        )

        try:
            while True:
                container.reload()
                if container.status in ("exited", "dead"):
                    break
                if cancel_event is not None and cancel_event.wait(self.poll_interval):
                    container.kill()
                    raise VerificationCancelled(
                        f"Sandbox verification cancelled: {self.command}"
                    )
                if cancel_event is None:
                    time.sleep(self.poll_interval)

            exit_code = container.wait().get("StatusCode", 1)
            output = container.logs(stdout=True, stderr=True).decode("utf-8", errors="replace")
        finally:
            try:
                container.remove(force=True)
            except NotFound:
                pass

        return VerificationResult.from_exit_code(
            exit_code,
            output,
            duration_seconds=time.monotonic() - start,
        )
