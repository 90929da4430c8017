"""
Configuration for ChangeGate.

Settings come from the environment, with a ``.env`` file loaded first if
present.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from changegate.policy.rules import DEFAULT_POLICY, CommitPolicy, load_banned_phrases
from changegate.sandbox.docker_runner import DEFAULT_IMAGE


@dataclass
class Settings:
    verify_command: str = "pytest -q"
    sandbox_image: str = DEFAULT_IMAGE
    verify_timeout: Optional[float] = None
    metrics_path: str = "changegate_runs.jsonl"
    banned_phrases_file: Optional[str] = None

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """
        Build settings from CHANGEGATE_* environment variables.

        Raises:
            ValueError: If CHANGEGATE_VERIFY_TIMEOUT is not a number
        """
        if load_env_file:
            load_dotenv()

        timeout = os.getenv("CHANGEGATE_VERIFY_TIMEOUT")
        try:
            verify_timeout = float(timeout) if timeout else None
        except ValueError as e:
            raise ValueError(f"CHANGEGATE_VERIFY_TIMEOUT must be a number, got {timeout!r}") from e

        return cls(
            verify_command=os.getenv("CHANGEGATE_VERIFY_CMD", cls.verify_command),
            sandbox_image=os.getenv("CHANGEGATE_SANDBOX_IMAGE", cls.sandbox_image),
            verify_timeout=verify_timeout,
            metrics_path=os.getenv("CHANGEGATE_METRICS_PATH", cls.metrics_path),
            banned_phrases_file=os.getenv("CHANGEGATE_BANNED_PHRASES_FILE") or None,
        )

    def build_policy(self) -> CommitPolicy:
        """Default commit policy, extended with the phrases file if set."""
        if not self.banned_phrases_file:
            return DEFAULT_POLICY
        return DEFAULT_POLICY.with_extra_phrases(load_banned_phrases(self.banned_phrases_file))
