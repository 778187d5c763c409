"""Rule configuration file: enable/disable rules and set their configuration values."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import yaml

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from sourceloupe.engine.rule import ScanRule

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a configuration file does not follow the expected schema."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleSettings:
    """Settings for one rule, matched by rule name."""

    name: str
    enabled: bool = True
    config: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LoupeConfig:
    """Parsed configuration file."""

    version: int = 1
    rules: dict[str, RuleSettings] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# YAML parsing
# ---------------------------------------------------------------------------


def _parse_rule_settings(idx: int, data: object, source: str) -> RuleSettings:
    if not isinstance(data, dict):
        msg = f"{source}: rule at index {idx} must be a mapping"
        raise ConfigError(msg)

    name = data.get("name")
    if name is None or not isinstance(name, str) or not name.strip():
        msg = f"{source}: rule at index {idx} missing required 'name' field"
        raise ConfigError(msg)

    enabled = data.get("enabled", True)
    if not isinstance(enabled, bool):
        msg = f"{source}: rule '{name}' field 'enabled' must be true or false"
        raise ConfigError(msg)

    config_raw = data.get("config", {})
    if config_raw is None:
        config_raw = {}
    if not isinstance(config_raw, dict):
        msg = f"{source}: rule '{name}' field 'config' must be a mapping"
        raise ConfigError(msg)

    # Rule configuration is string -> string; YAML scalars are stringified.
    config = {str(key): "" if value is None else str(value) for key, value in config_raw.items()}
    return RuleSettings(name=name, enabled=enabled, config=config)


def parse_config(data: object, *, source: str = "config") -> LoupeConfig:
    """Validate an already-loaded YAML document and build a :class:`LoupeConfig`.

    Raises :class:`ConfigError` on schema errors.
    """
    if data is None:
        return LoupeConfig()
    if not isinstance(data, dict):
        msg = f"{source}: must be a YAML mapping"
        raise ConfigError(msg)

    version = data.get("version")
    if version is None:
        msg = f"{source}: missing required 'version' field"
        raise ConfigError(msg)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        expected = sorted(SUPPORTED_SCHEMA_VERSIONS)
        msg = f"{source}: unsupported version {version}, expected one of {expected}"
        raise ConfigError(msg)

    rules_data = data.get("rules", [])
    if rules_data is None:
        rules_data = []
    if not isinstance(rules_data, list):
        msg = f"{source}: 'rules' must be a list"
        raise ConfigError(msg)

    rules: dict[str, RuleSettings] = {}
    for idx, rule_data in enumerate(rules_data):
        settings = _parse_rule_settings(idx, rule_data, source)
        if settings.name in rules:
            msg = f"{source}: Duplicate rule name '{settings.name}'"
            raise ConfigError(msg)
        rules[settings.name] = settings

    return LoupeConfig(version=int(version), rules=rules)


def load_config(config_path: Path) -> LoupeConfig:
    """Read a configuration file.  A missing file yields an empty configuration."""
    if not config_path.is_file():
        logger.debug("No configuration at %s, using defaults", config_path)
        return LoupeConfig()

    with config_path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            msg = f"{config_path.name}: invalid YAML: {exc}"
            raise ConfigError(msg) from exc

    return parse_config(data, source=config_path.name)


def apply_config(rules: Iterable[ScanRule], config: LoupeConfig) -> list[ScanRule]:
    """Drop disabled rules and push configured values into the remaining ones.

    Rules the configuration does not mention are returned unchanged.
    """
    selected: list[ScanRule] = []
    seen: set[str] = set()

    for rule in rules:
        settings = config.rules.get(rule.name)
        if settings is None:
            selected.append(rule)
            continue
        seen.add(rule.name)
        if not settings.enabled:
            logger.debug("Rule '%s' disabled by configuration", rule.name)
            continue
        for key, value in settings.config.items():
            rule.set_configuration_value(key, value)
        selected.append(rule)

    for name in sorted(set(config.rules) - seen):
        logger.warning("Configuration mentions unknown rule '%s'", name)

    return selected
