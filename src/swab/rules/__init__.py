"""Built-in rule catalog and merging with user-defined rules."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from .base import Action, Command, Remove, Rule
from .catalog import BUILTIN_RULES

__all__ = ["BUILTIN_RULES", "Action", "Command", "Remove", "Rule", "builtin_rules", "merge_rules"]

logger = logging.getLogger(__name__)


def builtin_rules() -> list[Rule]:
    """Return the built-in rules in catalog order."""
    return list(BUILTIN_RULES)


def merge_rules(
    builtins: Sequence[Rule],
    custom: Sequence[Rule],
    disabled: Iterable[str] = (),
) -> list[Rule]:
    """Build the active rule set, one rule per id.

    A custom rule whose id matches a built-in replaces it in place, even if
    that id is disabled. Disabled built-ins are dropped. Remaining custom
    rules are appended in their given order.

    Raises:
        ValueError: If two custom rules share an id.

    """
    overrides: dict[str, Rule] = {}
    for rule in custom:
        if rule.id in overrides:
            raise ValueError(f"duplicate rule id `{rule.id}` in config")
        overrides[rule.id] = rule

    disabled_ids = set(disabled)
    known_ids = {rule.id for rule in builtins}
    for rule_id in sorted(disabled_ids - known_ids):
        logger.warning("Cannot disable unknown built-in rule: %s", rule_id)

    active: list[Rule] = []
    for rule in builtins:
        if rule.id in overrides:
            logger.debug("Rule overridden by config: %s", rule.id)
            active.append(overrides.pop(rule.id))
        elif rule.id in disabled_ids:
            logger.info("Rule disabled by config: %s", rule.id)
        else:
            active.append(rule)

    active.extend(overrides.values())
    return active
