"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from zipwatch.config import ConfigError, ConfigManager, ZipwatchConfig
from zipwatch.config.resolver import (
    env_overrides,
    layer_settings,
    split_key,
    with_setting,
)


def _fresh_manager(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, env: dict[str, str] | None = None
) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager(env=env or {})


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".zipwatch" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "zipwatch configuration file" in text
    assert "Last updated:" in text
    assert all(not line.startswith("# Last updated:") for line in manager.read_lines())

    config = manager.load(include_env=False)
    assert isinstance(config, ZipwatchConfig)
    assert config.paths.workflows_dir == "workflows"
    assert config.reconcile.on_collision == "fail"


def test_load_applies_file_then_environment_then_cli(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env = {"ZIPWATCH__GIT__TIMEOUT_SECONDS": "15", "ZIPWATCH__WATCH__SETTLE_SECONDS": "2"}
    manager = _fresh_manager(tmp_path, monkeypatch, env)
    manager.save({"git": {"executable": "/usr/local/bin/git", "timeout_seconds": 5}})

    config = manager.load(cli_overrides={"git.timeout_seconds": 30})

    assert config.git.executable == "/usr/local/bin/git"
    assert config.git.enabled is True
    assert config.watch.settle_seconds == pytest.approx(2.0)
    assert config.git.timeout_seconds == pytest.approx(30.0)


def test_include_env_false_skips_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch, {"ZIPWATCH__GIT__ENABLED": "false"})

    assert manager.load(include_env=False).git.enabled is True
    assert manager.load().git.enabled is False


def test_environment_ignores_unrelated_variables() -> None:
    overrides = env_overrides({"PATH": "/bin", "ZIPWATCH__PATHS__ZIP_ARCHIVE_DIR": "consumed"})

    assert overrides == {"paths": {"zip_archive_dir": "consumed"}}


def test_environment_string_values_are_converted_by_field_type() -> None:
    config = layer_settings(
        env_overrides({"ZIPWATCH__GIT__ENABLED": "false", "ZIPWATCH__PATHS__FAILED_DIR": "2024"})
    )

    assert config.git.enabled is False
    assert config.paths.failed_dir == "2024"


def test_unknown_environment_setting_raises() -> None:
    with pytest.raises(ConfigError, match="git.colour"):
        env_overrides({"ZIPWATCH__GIT__COLOUR": "blue"})


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_unknown_file_keys_are_rejected() -> None:
    with pytest.raises(ConfigError):
        layer_settings({"git": {"colour": 1}})


def test_non_mapping_section_is_rejected() -> None:
    with pytest.raises(ConfigError, match="must be a mapping"):
        layer_settings({"git": "enabled"})


@pytest.mark.parametrize("key", ["git", "git.enabled.extra", ".enabled", "vcs.enabled"])
def test_split_key_rejects_malformed_keys(key: str) -> None:
    with pytest.raises(ConfigError):
        split_key(key)


def test_invalid_collision_policy_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    with pytest.raises(ConfigError, match="Invalid configuration values"):
        manager.load(cli_overrides={"reconcile.on_collision": "overwrite"})


def test_with_setting_keeps_other_fields() -> None:
    data = {"git": {"executable": "git", "enabled": True}, "logging": {"level": "INFO"}}

    updated = with_setting(data, "git.enabled", False)

    assert updated == {
        "git": {"executable": "git", "enabled": False},
        "logging": {"level": "INFO"},
    }
    assert data["git"]["enabled"] is True


def test_set_value_leaves_file_untouched_when_invalid(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()
    before = manager.config_path.read_text(encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.set_value("watch.settle_seconds", "soon")

    assert manager.config_path.read_text(encoding="utf-8") == before
