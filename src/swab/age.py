"""Parse inactivity thresholds such as ``30d`` or ``12h ago``."""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta

UNIT_SECONDS: dict[str, int] = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 60 * 60 * 24,
    "w": 60 * 60 * 24 * 7,
    "mo": 60 * 60 * 24 * 30,
    "y": 60 * 60 * 24 * 365,
}

_AGE_PATTERN = re.compile(r"^(\d*)(\D*)$")


def parse_age(value: str) -> timedelta:
    """Parse ``<amount><unit>[ ago]`` into a timedelta.

    Args:
        value: Age expression, e.g. ``30d``, ``2w``, ``1mo ago``.

    Returns:
        The parsed duration.

    Raises:
        ValueError: If the expression is malformed.

    """
    text = value.strip()

    if text.endswith(" ago"):
        text = text[: -len(" ago")]
    elif text.endswith("ago"):
        raise ValueError("invalid age: expected a space before `ago`")

    if not text or any(char.isspace() for char in text):
        raise ValueError("invalid age: expected <amount><unit>[ ago] with no interior spaces")

    match = _AGE_PATTERN.match(text)
    if match is None:
        raise ValueError("invalid age: amount must be an integer")

    amount, unit = match.groups()
    if not unit:
        raise ValueError("invalid age: missing unit")
    if not amount:
        raise ValueError("invalid age: missing amount")
    if unit not in UNIT_SECONDS:
        raise ValueError(f"invalid age: unit must be one of {', '.join(UNIT_SECONDS)}")

    try:
        return timedelta(seconds=int(amount) * UNIT_SECONDS[unit])
    except OverflowError as e:
        raise ValueError("invalid age: value is too large") from e


def older_than(age: timedelta, modified: datetime, now: datetime | None = None) -> bool:
    """Return True if more than ``age`` has elapsed since ``modified``."""
    now = now or datetime.now(UTC)
    elapsed = now - modified
    if elapsed < timedelta(0):
        return False
    return elapsed > age
