"""Commit processed archives with git."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from zipwatch.errors import ProcessSpawnError

LOGGER = logging.getLogger(__name__)

COMMIT_MESSAGE_TEMPLATE = "added new workflow {base_name} {timestamp}"


@dataclass(slots=True)
class GitStep:
    """Captured execution of one git invocation."""

    args: list[str]
    returncode: int
    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True when the process exited successfully."""
        return self.returncode == 0

    def to_payload(self) -> dict[str, Any]:
        return {
            "args": list(self.args),
            "returncode": self.returncode,
            "stdout": list(self.stdout),
            "stderr": list(self.stderr),
        }


@dataclass(slots=True)
class CommitResult:
    """Outcome of staging and committing one processed archive.

    Attributes:
        message: Commit message passed to git.
        stage: Result of ``git add``.
        commit: Result of ``git commit``; None when staging failed.
    """

    message: str
    stage: GitStep
    commit: Optional[GitStep] = None

    @property
    def committed(self) -> bool:
        """Return True when both steps exited successfully."""
        return self.stage.ok and self.commit is not None and self.commit.ok

    def to_payload(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "committed": self.committed,
            "stage": self.stage.to_payload(),
            "commit": self.commit.to_payload() if self.commit else None,
        }


class GitCommitter:
    """Stage the working tree and commit it after every processed archive."""

    def __init__(
        self,
        repo_root: Path,
        *,
        executable: str = "git",
        timeout_seconds: float | None = 60.0,
    ) -> None:
        self._repo_root = repo_root
        self._executable = executable
        self._timeout = timeout_seconds if timeout_seconds and timeout_seconds > 0 else None

    def commit(self, base_name: str, timestamp: str) -> CommitResult:
        """Run ``git add .`` to completion, then ``git commit``.

        Non-zero exit codes are logged as warnings and reported in the result;
        they never raise.

        Args:
            base_name: Base name embedded in the commit message.
            timestamp: Detection timestamp embedded in the commit message.

        Returns:
            CommitResult: Captured output and exit codes of both steps.

        Raises:
            ProcessSpawnError: If git cannot be launched or exceeds the timeout.
        """
        message = COMMIT_MESSAGE_TEMPLATE.format(base_name=base_name, timestamp=timestamp)
        stage = self._run(["add", "."])
        result = CommitResult(message=message, stage=stage)
        if not stage.ok:
            LOGGER.warning("git add exited with code %s; skipping commit", stage.returncode)
            return result

        result.commit = self._run(["commit", "-a", "-m", message])
        if not result.commit.ok:
            LOGGER.warning("git commit exited with code %s", result.commit.returncode)
        return result

    def _run(self, args: list[str]) -> GitStep:
        command = [self._executable, *args]
        try:
            completed = subprocess.run(
                command,
                cwd=self._repo_root,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ProcessSpawnError(
                f"{' '.join(command)} did not finish within {self._timeout} seconds"
            ) from exc
        except OSError as exc:
            raise ProcessSpawnError(f"Could not launch {self._executable}: {exc}") from exc

        step = GitStep(
            args=command,
            returncode=completed.returncode,
            stdout=(completed.stdout or "").splitlines(),
            stderr=(completed.stderr or "").splitlines(),
        )
        for line in step.stdout:
            LOGGER.info("git stdout: %s", line)
        for line in step.stderr:
            LOGGER.warning("git stderr: %s", line)
        LOGGER.info("git %s exited with code %s", args[0], step.returncode)
        return step


__all__ = ["COMMIT_MESSAGE_TEMPLATE", "CommitResult", "GitCommitter", "GitStep"]
