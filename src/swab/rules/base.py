"""Rule and action value types."""

from __future__ import annotations

from dataclasses import dataclass

from ..detection import Detection
from ..patterns import validate_glob


@dataclass(frozen=True)
class Remove:
    """Remove every path matching ``pattern``."""

    pattern: str

    def __post_init__(self) -> None:
        validate_glob(self.pattern)

    def __str__(self) -> str:
        return f"remove {self.pattern}"


@dataclass(frozen=True)
class Command:
    """Run ``command`` through the shell in the project root."""

    command: str

    def __post_init__(self) -> None:
        if not self.command.strip():
            raise ValueError("command action cannot be empty")

    def __str__(self) -> str:
        return f"run `{self.command}`"


Action = Remove | Command


@dataclass(frozen=True)
class Rule:
    """Immutable record describing one kind of project and how to clean it.

    Attributes:
        id: Unique identifier, used for configuration overrides.
        name: Human-readable name shown in reports.
        detection: Decides whether a context is this kind of project.
        actions: What to do, in order. Never empty.

    """

    id: str
    name: str
    detection: Detection
    actions: tuple[Action, ...]

    def __post_init__(self) -> None:
        if not self.id.strip():
            raise ValueError("rule id cannot be empty")
        if not self.actions:
            raise ValueError(f"rule `{self.id}` actions cannot be empty")

    @property
    def remove_patterns(self) -> list[str]:
        return [action.pattern for action in self.actions if isinstance(action, Remove)]

    @property
    def commands(self) -> list[str]:
        return [action.command for action in self.actions if isinstance(action, Command)]
