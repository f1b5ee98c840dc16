"""Tests for the git committer."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Any

import pytest

from zipwatch.errors import ProcessSpawnError
from zipwatch.vcs import GitCommitter


class _FakeRun:
    """Record subprocess invocations and replay scripted exit codes."""

    def __init__(self, returncodes: list[int]) -> None:
        self.calls: list[dict[str, Any]] = []
        self._returncodes = list(returncodes)

    def __call__(self, command: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        self.calls.append({"command": command, **kwargs})
        code = self._returncodes.pop(0)
        return subprocess.CompletedProcess(command, code, stdout="line one\nline two\n", stderr="")


def test_commit_stages_before_committing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeRun([0, 0])
    monkeypatch.setattr("zipwatch.vcs.subprocess.run", fake)

    result = GitCommitter(tmp_path, executable="git").commit("report", "14070503")

    assert [call["command"] for call in fake.calls] == [
        ["git", "add", "."],
        ["git", "commit", "-a", "-m", "added new workflow report 14070503"],
    ]
    assert all(call["cwd"] == tmp_path for call in fake.calls)
    assert result.committed is True
    assert result.message == "added new workflow report 14070503"
    assert result.stage.stdout == ["line one", "line two"]


def test_failed_staging_skips_commit(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeRun([128])
    monkeypatch.setattr("zipwatch.vcs.subprocess.run", fake)

    result = GitCommitter(tmp_path).commit("report", "14070503")

    assert len(fake.calls) == 1
    assert result.commit is None
    assert result.committed is False


def test_non_zero_commit_is_reported_not_raised(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake = _FakeRun([0, 1])
    monkeypatch.setattr("zipwatch.vcs.subprocess.run", fake)

    result = GitCommitter(tmp_path).commit("report", "14070503")

    assert result.commit is not None
    assert result.commit.returncode == 1
    assert result.committed is False
    assert result.to_payload()["commit"]["returncode"] == 1


def test_missing_executable_raises_process_spawn_error(tmp_path: Path) -> None:
    committer = GitCommitter(tmp_path, executable=str(tmp_path / "no-such-git"))

    with pytest.raises(ProcessSpawnError):
        committer.commit("report", "14070503")


def test_timeout_raises_process_spawn_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _hang(command: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    monkeypatch.setattr("zipwatch.vcs.subprocess.run", _hang)

    with pytest.raises(ProcessSpawnError):
        GitCommitter(tmp_path, timeout_seconds=1).commit("report", "14070503")


@pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")
def test_commit_with_real_repository(tmp_path: Path) -> None:
    for args in (
        ["init", "-q"],
        ["config", "user.email", "zipwatch@example.com"],
        ["config", "user.name", "zipwatch"],
        ["config", "commit.gpgsign", "false"],
    ):
        subprocess.run(["git", *args], cwd=tmp_path, check=True)
    (tmp_path / "README.md").write_text("Folder: report\n", encoding="utf-8")

    result = GitCommitter(tmp_path).commit("report", "14070503")

    assert result.committed is True
    log = subprocess.run(
        ["git", "log", "--format=%s"], cwd=tmp_path, capture_output=True, text=True, check=True
    )
    assert log.stdout.strip() == "added new workflow report 14070503"
