"""Configuration management for zipwatch."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import ZipwatchConfig
from .resolver import dotted_overrides, env_overrides, layer_settings, with_setting

DEFAULT_CONFIG_PATH = Path("~/.zipwatch/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # zipwatch configuration file
    # Generated automatically; update values with `zipwatch config set KEY --value VALUE`.
    """
)
_STAMP_PREFIX = "# Last updated:"


class ConfigManager:
    """Read and write the YAML settings file and resolve the effective settings."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
    ) -> ZipwatchConfig:
        """Resolve settings from the file, the environment, and ``section.field`` CLI overrides.

        Args:
            cli_overrides: Dotted keys supplied by command-line options.
            include_env: Whether ``ZIPWATCH__SECTION__FIELD`` variables apply.

        Returns:
            ZipwatchConfig: Validated settings.

        Raises:
            ConfigError: If any source is malformed or a value is invalid.
        """
        return layer_settings(
            self.load_file_overrides(),
            env_overrides(self._env) if include_env else None,
            dotted_overrides(cli_overrides) if cli_overrides else None,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored in the settings file, or an empty one."""
        if not self._config_path.exists():
            return {}
        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def set_value(self, key: str, value: Any) -> ZipwatchConfig:
        """Validate and persist a single ``section.field`` value.

        The file is left untouched when the new value does not validate.
        """
        updated = with_setting(self.load_file_overrides(), key, value)
        config = layer_settings(updated)
        self.save(updated)
        return config

    def save(self, data: Mapping[str, Any]) -> None:
        """Write ``data`` to the settings file with a header and update stamp."""
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        self._config_path.write_text(
            _CONFIG_HEADER + f"{_STAMP_PREFIX} {stamp}\n" + serialized, encoding="utf-8"
        )

    def ensure_exists(self) -> Path:
        """Create a settings file holding the defaults if none exists."""
        if not self._config_path.exists():
            self.save(ZipwatchConfig().model_dump(mode="python"))
        return self._config_path

    def read_lines(self) -> list[str]:
        """Return the settings file lines, without the update stamp."""
        if not self._config_path.exists():
            return []
        text = self._config_path.read_text(encoding="utf-8")
        return [line for line in text.splitlines() if not line.startswith(_STAMP_PREFIX)]


__all__ = [
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ZipwatchConfig",
]
