"""
Verification runners for ChangeGate.

A runner executes the project's check command and reports PASS or FAIL:
- CommandRunner runs it on the host
- DockerRunner runs it in a throwaway container
"""

from changegate.sandbox.runner import CommandRunner, VerificationRunner
from changegate.sandbox.docker_runner import DockerRunner, is_docker_available

__all__ = ["CommandRunner", "DockerRunner", "VerificationRunner", "is_docker_available"]
