"""Configuration management for swab."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .detection import AllOf, AnyOf, Detection, Not, Pattern, all_of, any_of
from .rules import Command, Remove, Rule, builtin_rules, merge_rules
from .rules.base import Action

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised when the configuration file is invalid."""


def parse_bool(value: Any, default: bool) -> bool:
    """Interpret a YAML scalar as a boolean.

    Strings ``true``/``yes``/``on``/``1`` (any case) are True, other strings
    False; None yields ``default``.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    return str(value).strip().lower() in {"true", "yes", "on", "1"}


def parse_detection(data: Any) -> Detection:
    """Build a detection from its YAML form.

    Accepts a bare pattern string, ``{pattern: ...}``, ``{all: [...]}``,
    ``{any: [...]}`` or ``{not: ...}``.
    """
    if isinstance(data, str):
        return Pattern(data)

    if isinstance(data, dict) and len(data) == 1:
        ((key, value),) = data.items()
        if key == "pattern" and isinstance(value, str):
            return Pattern(value)
        if key in ("all", "any") and isinstance(value, list):
            fold = all_of if key == "all" else any_of
            return fold(*(parse_detection(item) for item in value))
        if key == "not":
            return Not(parse_detection(value))

    raise ConfigError(f"unrecognized detection: {data!r}")


def parse_action(data: Any) -> Action:
    """Build an action from ``{remove: <glob>}`` or ``{command: <shell>}``."""
    if isinstance(data, dict) and len(data) == 1:
        ((key, value),) = data.items()
        if key == "remove" and isinstance(value, str):
            return Remove(value)
        if key == "command" and isinstance(value, str):
            return Command(value)

    raise ConfigError(f"unrecognized action: {data!r}")


def parse_rule(data: Any) -> Rule:
    """Build a user-defined rule from its YAML mapping.

    Raises:
        ConfigError: If any part of the rule is invalid.

    """
    if not isinstance(data, dict):
        raise ConfigError(f"rule must be a mapping, got {data!r}")

    rule_id = str(data.get("id") or "")
    try:
        if not rule_id.strip():
            raise ValueError("rule id cannot be empty")
        if "detection" not in data:
            raise ValueError("rule detection is required")
        actions = data.get("actions") or []
        if not isinstance(actions, list) or not actions:
            raise ValueError("rule actions cannot be empty")

        return Rule(
            id=rule_id,
            name=str(data.get("name") or rule_id),
            detection=parse_detection(data["detection"]),
            actions=tuple(parse_action(action) for action in actions),
        )
    except ValueError as e:
        raise ConfigError(f"rule `{rule_id}`: {e}") from e


def detection_to_data(detection: Detection) -> Any:
    """Inverse of parse_detection; chained binary nodes become one list."""
    if isinstance(detection, Pattern):
        return detection.glob
    if isinstance(detection, Not):
        return {"not": detection_to_data(detection.inner)}

    key = "all" if isinstance(detection, AllOf) else "any"
    node_type = type(detection)
    items: list[Any] = []
    node: Detection = detection
    while isinstance(node, (AllOf, AnyOf)) and type(node) is node_type:
        items.insert(0, detection_to_data(node.right))
        node = node.left
    items.insert(0, detection_to_data(node))
    return {key: items}


def rule_to_data(rule: Rule) -> dict[str, Any]:
    return {
        "id": rule.id,
        "name": rule.name,
        "detection": detection_to_data(rule.detection),
        "actions": [
            {"remove": action.pattern} if isinstance(action, Remove) else {"command": action.command}
            for action in rule.actions
        ],
    }


@dataclass
class SwabConfig:
    """Configuration for swab."""

    # Treat symlinks as their targets while scanning
    follow_symlinks: bool = False

    # Skip roots that cannot be read instead of aborting the run
    skip_unreadable: bool = False

    # Built-in rule ids to drop from the active set
    disabled_rules: list[str] = field(default_factory=list)

    # User-defined rules, overriding built-ins with the same id
    rules: list[Rule] = field(default_factory=list)

    # Logging
    log_level: str = "WARNING"
    log_file: Path | None = None

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the default configuration file path."""
        base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
        return Path(base) / "swab" / "config.yaml"

    @classmethod
    def load(cls, config_path: Path | None = None) -> SwabConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to config file. Uses default if None.

        Returns:
            Loaded configuration, or defaults if the file does not exist.

        Raises:
            ConfigError: If the file is malformed.

        """
        if config_path is None:
            config_path = cls.get_config_path()

        if not config_path.exists():
            return cls()

        try:
            with config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"cannot parse {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{config_path}: top level must be a mapping")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> SwabConfig:
        """Create config from dictionary."""
        config = cls()

        config.follow_symlinks = parse_bool(data.get("follow_symlinks"), config.follow_symlinks)
        config.skip_unreadable = parse_bool(data.get("skip_unreadable"), config.skip_unreadable)

        # "default" is accepted as a shorter spelling
        default_rules = data.get("default_rules", data.get("default")) or {}
        if not isinstance(default_rules, dict):
            raise ConfigError("default_rules must be a mapping")
        disabled = default_rules.get("disabled") or []
        if not isinstance(disabled, list):
            raise ConfigError("default_rules.disabled must be a list")
        config.disabled_rules = [str(rule_id) for rule_id in disabled]

        rules = data.get("rules") or []
        if not isinstance(rules, list):
            raise ConfigError("rules must be a list")
        config.rules = [parse_rule(rule) for rule in rules]

        seen: set[str] = set()
        for rule in config.rules:
            if rule.id in seen:
                raise ConfigError(f"duplicate rule id `{rule.id}` in config")
            seen.add(rule.id)

        if "logging" in data:
            logging_cfg = data["logging"] or {}
            if not isinstance(logging_cfg, dict):
                raise ConfigError("logging must be a mapping")
            if "level" in logging_cfg:
                config.log_level = str(logging_cfg["level"]).upper()
            if logging_cfg.get("file"):
                config.log_file = Path(os.path.expanduser(str(logging_cfg["file"])))

        config.validate()
        return config

    def validate(self) -> None:
        """Raise ConfigError for settings that cannot be used."""
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Invalid log_level: {self.log_level}")

    def active_rules(self) -> list[Rule]:
        """Merge the built-in catalog with this configuration's rules."""
        try:
            return merge_rules(builtin_rules(), self.rules, self.disabled_rules)
        except ValueError as e:
            raise ConfigError(str(e)) from e

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path to save config. Uses default if None.

        """
        if config_path is None:
            config_path = self.get_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data: dict[str, Any] = {
            "follow_symlinks": self.follow_symlinks,
            "skip_unreadable": self.skip_unreadable,
            "default_rules": {"disabled": list(self.disabled_rules)},
            "rules": [rule_to_data(rule) for rule in self.rules],
            "logging": {"level": self.log_level},
        }
        if self.log_file is not None:
            data["logging"]["file"] = str(self.log_file)

        with config_path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

