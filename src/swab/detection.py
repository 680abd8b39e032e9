"""Boolean detection expressions evaluated against a Context."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .patterns import validate_glob

if TYPE_CHECKING:
    from .context import Context


@dataclass(frozen=True)
class Pattern:
    """True when any path in the context matches ``glob``."""

    glob: str

    def __post_init__(self) -> None:
        validate_glob(self.glob)

    def matches(self, context: Context) -> bool:
        return context.contains(self.glob)

    def __str__(self) -> str:
        return self.glob


@dataclass(frozen=True)
class AllOf:
    """Conjunction of two detections, evaluated left to right."""

    left: Detection
    right: Detection

    def matches(self, context: Context) -> bool:
        return self.left.matches(context) and self.right.matches(context)

    def __str__(self) -> str:
        return f"({self.left} AND {self.right})"


@dataclass(frozen=True)
class AnyOf:
    """Disjunction of two detections, evaluated left to right."""

    left: Detection
    right: Detection

    def matches(self, context: Context) -> bool:
        return self.left.matches(context) or self.right.matches(context)

    def __str__(self) -> str:
        return f"({self.left} OR {self.right})"


@dataclass(frozen=True)
class Not:
    """Negation of a detection."""

    inner: Detection

    def matches(self, context: Context) -> bool:
        return not self.inner.matches(context)

    def __str__(self) -> str:
        return f"NOT {self.inner}"


Detection = Pattern | AllOf | AnyOf | Not


def _fold(items: Iterable[Detection | str], combine: type[AllOf] | type[AnyOf], label: str) -> Detection:
    detections = [Pattern(item) if isinstance(item, str) else item for item in items]
    if not detections:
        raise ValueError(f"`{label}` detection must contain at least one entry")

    result = detections[0]
    for detection in detections[1:]:
        result = combine(result, detection)
    return result


def all_of(*items: Detection | str) -> Detection:
    """Fold detections (strings become patterns) into a left-associative AND."""
    return _fold(items, AllOf, "all")


def any_of(*items: Detection | str) -> Detection:
    """Fold detections (strings become patterns) into a left-associative OR."""
    return _fold(items, AnyOf, "any")
