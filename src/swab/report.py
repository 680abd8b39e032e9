"""Per-project, per-rule summary of the work a rule would perform."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from rich.text import Text
from rich.tree import Tree

from . import path_metrics
from .resolver import resolve
from .task import CommandTask, RemoveTask, Task

if TYPE_CHECKING:
    from .context import Context
    from .rules import Rule

_BYTE_UNITS = ("KiB", "MiB", "GiB", "TiB", "PiB")


def format_bytes(value: int) -> str:
    """Format a byte count with binary units (``1.46 KiB``)."""
    if value < 1024:
        return f"{value} B"

    amount = float(value)
    unit = _BYTE_UNITS[0]
    for unit in _BYTE_UNITS:
        amount /= 1024
        if amount < 1024:
            break
    return f"{amount:.2f} {unit}"


def format_age(modified: datetime, now: datetime | None = None) -> str:
    """Describe how long ago ``modified`` was (``3 hours ago``)."""
    now = now or datetime.now(UTC)
    seconds = max(int((now - modified).total_seconds()), 0)

    for size, unit in ((86400, "day"), (3600, "hour"), (60, "minute")):
        if seconds >= size:
            amount = seconds // size
            break
    else:
        amount, unit = seconds, "second"

    return f"{amount} {unit}{'' if amount == 1 else 's'} ago"


def _describe(task: Task) -> str:
    if isinstance(task, CommandTask):
        return f"run `{task.command}`"
    return f"{task.path.as_posix()} ({format_bytes(task.size)})"


@dataclass
class Report:
    """Tasks one rule produces for one context.

    Command tasks come first, followed by removals in sorted path order.
    """

    root: Path
    rule_name: str
    modified: datetime
    tasks: list[Task] = field(default_factory=list)

    @classmethod
    def build(cls, context: Context, rule: Rule) -> Report:
        """Resolve and measure everything ``rule`` would do in ``context``.

        Raises:
            OSError: If a matched path disappears before it can be measured.

        """
        tasks: list[Task] = [CommandTask(command) for command in rule.commands]

        for relative in resolve(rule, context):
            size = path_metrics.size(context.root / relative, follow_symlinks=context.follow_symlinks)
            tasks.append(RemoveTask(path=relative, size=size))

        return cls(
            root=context.root,
            rule_name=rule.name,
            modified=context.modified_time(),
            tasks=tasks,
        )

    def __str__(self) -> str:
        lines = [f"{self.root} {self.rule_name} project ({format_age(self.modified)})"]
        lines.extend(f"  └─ {_describe(task)}" for task in self.tasks)
        return "\n".join(lines) + "\n"

    def __rich__(self) -> Tree:
        label = Text.assemble(
            (str(self.root), "bold"),
            " ",
            (f"{self.rule_name} project", "cyan"),
            (f" ({format_age(self.modified)})", "dim"),
        )
        tree = Tree(label, guide_style="dim")
        for task in self.tasks:
            if isinstance(task, CommandTask):
                tree.add(Text.assemble("run ", (task.command, "yellow")))
            else:
                tree.add(
                    Text.assemble(
                        (task.path.as_posix(), "cyan"),
                        " (",
                        (format_bytes(task.size), "green"),
                        ")",
                    )
                )
        return tree
