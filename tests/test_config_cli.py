"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from zipwatch.cli import cli
from zipwatch.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".zipwatch" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["config", "view"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0
    assert "git:" in result.output
    assert _config_path(tmp_path).exists()


def test_config_set_updates_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "reconcile.on_collision", "--value", "append_number"], env=env
    )

    assert result.exit_code == 0, result.output
    assert "Updated reconcile.on_collision" in result.output
    config = ConfigManager(_config_path(tmp_path)).load(include_env=False)
    assert config.reconcile.on_collision == "append_number"


def test_config_set_reports_unchanged_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "set", "git.enabled", "--value", "true"], env=env)

    assert result.exit_code == 0
    assert "No changes applied" in result.output


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "reconcile.on_collision", "--value", "overwrite"], env=env
    )

    assert result.exit_code != 0
    assert "Invalid configuration values" in result.output
    config = ConfigManager(_config_path(tmp_path)).load(include_env=False)
    assert config.reconcile.on_collision == "fail"


def test_config_set_rejects_unknown_setting(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "set", "git.colour", "--value", "blue"], env=env)

    assert result.exit_code != 0
    assert "Unknown setting 'git.colour'" in result.output
