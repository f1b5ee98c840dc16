"""Layering of zipwatch settings: defaults, config file, environment, command line.

Every setting lives exactly one level deep (``section.field``), so each source is
reduced to a ``{section: {field: value}}`` mapping and later sources replace
earlier ones field by field before a single pydantic validation pass.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import ValidationError

from .exceptions import ConfigError
from .models import ZipwatchConfig

ENV_PREFIX = "ZIPWATCH__"

Overrides = dict[str, dict[str, Any]]

_KNOWN_FIELDS: dict[str, frozenset[str]] = {
    section: frozenset(type(settings).model_fields) for section, settings in ZipwatchConfig()
}


def split_key(key: str) -> tuple[str, str]:
    """Split a ``section.field`` key, rejecting names zipwatch does not define.

    Raises:
        ConfigError: If the key is malformed or names an unknown setting.
    """
    section, sep, name = key.strip().partition(".")
    if not sep or not section or not name or "." in name:
        raise ConfigError(f"Setting keys take the form 'section.field', got '{key}'.")
    fields = _KNOWN_FIELDS.get(section)
    if fields is None:
        raise ConfigError(
            f"Unknown settings section '{section}'; expected one of {', '.join(_KNOWN_FIELDS)}."
        )
    if name not in fields:
        raise ConfigError(f"Unknown setting '{section}.{name}'.")
    return section, name


def dotted_overrides(values: Mapping[str, Any]) -> Overrides:
    """Group ``{"section.field": value}`` pairs by section."""
    grouped: Overrides = {}
    for key, value in values.items():
        section, name = split_key(key)
        grouped.setdefault(section, {})[name] = value
    return grouped


def env_overrides(env: Mapping[str, str]) -> Overrides:
    """Collect ``ZIPWATCH__SECTION__FIELD`` variables.

    Values stay strings; pydantic converts them to the field types during validation.
    """
    dotted: dict[str, str] = {}
    for variable, raw in env.items():
        if not variable.startswith(ENV_PREFIX):
            continue
        dotted[variable[len(ENV_PREFIX) :].lower().replace("__", ".")] = raw
    return dotted_overrides(dotted)


def with_setting(data: Mapping[str, Any], key: str, value: Any) -> dict[str, Any]:
    """Return a copy of config file ``data`` with ``key`` set to ``value``."""
    section, name = split_key(key)
    current = data.get(section) or {}
    if not isinstance(current, Mapping):
        raise ConfigError(f"Section '{section}' in the config file is not a mapping.")
    updated = dict(data)
    updated[section] = {**current, name: value}
    return updated


def layer_settings(*layers: Optional[Mapping[str, Any]]) -> ZipwatchConfig:
    """Apply ``layers`` in order over the defaults and validate the result.

    Raises:
        ConfigError: If a section is not a mapping or a value fails validation.
    """
    merged: Overrides = {}
    for layer in layers:
        if not layer:
            continue
        for section, values in layer.items():
            if not isinstance(values, Mapping):
                raise ConfigError(f"Settings section '{section}' must be a mapping.")
            merged.setdefault(str(section), {}).update(values)
    try:
        return ZipwatchConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


__all__ = [
    "ENV_PREFIX",
    "Overrides",
    "dotted_overrides",
    "env_overrides",
    "layer_settings",
    "split_key",
    "with_setting",
]
