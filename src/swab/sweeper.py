"""Top-level driver: scan candidate roots, report and execute rule tasks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.prompt import Confirm
from rich.text import Text

from . import path_metrics
from .age import older_than
from .context import Context
from .report import Report, format_bytes
from .task import RemoveTask, Task

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .rules import Rule

logger = logging.getLogger(__name__)


class SweepError(RuntimeError):
    """Raised when a sweep cannot start or continue."""


@dataclass
class SweepOptions:
    """How a sweep treats matches."""

    dry_run: bool = False
    interactive: bool = False
    quiet: bool = False
    follow_symlinks: bool = False
    skip_unreadable: bool = False
    # Only projects inactive for longer than this are processed
    age: timedelta | None = None
    # Use the activity scan instead of the root's mtime for the age check
    activity: bool = False


@dataclass
class SweepStats:
    """Totals accumulated over one invocation."""

    projects: int = 0
    bytes: int = 0


class Sweeper:
    """Applies a rule set to candidate project roots."""

    def __init__(
        self,
        rules: Sequence[Rule],
        options: SweepOptions,
        console: Console | None = None,
    ) -> None:
        """Initialize the sweeper.

        Args:
            rules: Active rules, unique by id.
            options: Dry-run, prompting and filtering behaviour.
            console: Where reports and the summary are printed.

        """
        self.rules = list(rules)
        self.options = options
        self.console = console or Console()
        self.stats = SweepStats()
        self._seen_removals: set[Path] = set()

    def candidate_roots(self, directories: Sequence[Path]) -> list[Path]:
        """Each directory followed by its immediate subdirectories.

        Raises:
            SweepError: If a directory does not exist or is not a directory.

        """
        for directory in directories:
            if not directory.is_dir():
                raise SweepError(f"the path `{directory}` is not a valid directory")

        roots: list[Path] = []
        for directory in directories:
            roots.append(directory)
            roots.extend(path_metrics.directories(directory, follow_symlinks=self.options.follow_symlinks))
        return roots

    def is_stale(self, context: Context) -> bool:
        """Return True if the context passes the age filter (or none is set)."""
        if self.options.age is None:
            return True

        if self.options.activity:
            modified = context.activity_modified_time()
        else:
            modified = context.modified_time()

        return older_than(self.options.age, modified)

    def reports(self, context: Context) -> list[Report]:
        """Reports with at least one task, for every rule detected in the context."""
        reports = [Report.build(context, rule) for rule in self.rules if rule.detection.matches(context)]
        return [report for report in reports if report.tasks]

    def _confirm(self, prompt: Text) -> bool:
        if not self.options.interactive:
            return True
        return Confirm.ask(prompt, console=self.console, default=True)

    def process_task(self, task: Task, context: Context) -> tuple[int, bool]:
        """Preview or execute one task.

        Returns:
            Bytes attributed to the task and whether it was executed.

        """
        if isinstance(task, RemoveTask):
            full_path = context.root / task.path
            if full_path in self._seen_removals:
                return 0, False
            self._seen_removals.add(full_path)

            if self.options.dry_run:
                return task.size, False

            prompt = Text.assemble(
                "Remove ",
                (task.path.as_posix(), "cyan"),
                " (",
                (format_bytes(task.size), "green"),
                ") in ",
                (str(context.root), "dim"),
                "?",
            )
            if not self._confirm(prompt):
                return 0, False

            task.execute(context)
            return task.size, True

        if self.options.dry_run:
            return 0, False

        prompt = Text.assemble(
            "Run ",
            (task.command, "yellow"),
            " in ",
            (str(context.root), "cyan"),
            "?",
        )
        if not self._confirm(prompt):
            return 0, False

        task.execute(context)
        return 0, True

    def _is_claimed(self, task: Task, context: Context) -> bool:
        """Return True if a removal's path was already handled in this run."""
        return isinstance(task, RemoveTask) and context.root / task.path in self._seen_removals

    def process_context(self, context: Context) -> tuple[int, bool]:
        """Report and process every matching rule for one context.

        Removals already claimed earlier in the run are left out, so a dry run
        reports what a live run would still find. A report with nothing left
        is neither printed nor counted. Any task failure propagates and stops
        the remaining tasks.

        Returns:
            Bytes attributed to the context and whether it should be counted.

        """
        total = 0
        executed = False
        reported = False
        for report in self.reports(context):
            # A live run has already deleted claimed paths by now
            tasks = [task for task in report.tasks if not self._is_claimed(task, context)]
            if not tasks:
                continue

            report = replace(report, tasks=tasks)
            reported = True
            if not self.options.quiet:
                self.console.print(report)

            for task in report.tasks:
                task_bytes, task_executed = self.process_task(task, context)
                total += task_bytes
                executed = executed or task_executed

        should_count = reported if self.options.dry_run else executed
        return total, should_count

    def _build_context(self, root: Path) -> Context | None:
        try:
            return Context.build(root, follow_symlinks=self.options.follow_symlinks)
        except OSError as e:
            if not self.options.skip_unreadable:
                raise
            logger.warning("Skipping unreadable directory %s: %s", root, e)
            return None

    def run(self, directories: Sequence[Path]) -> SweepStats:
        """Sweep every candidate root below ``directories``.

        Returns:
            Project and byte totals for this invocation.

        """
        self.stats = SweepStats()
        self._seen_removals = set()

        for root in self.candidate_roots(directories):
            context = self._build_context(root)
            if context is None:
                continue

            if not self.is_stale(context):
                logger.debug("Skipping recently modified project: %s", root)
                continue

            total, should_count = self.process_context(context)
            if should_count:
                self.stats.projects += 1
                self.stats.bytes += total

        self.print_summary()
        return self.stats

    def print_summary(self) -> None:
        """Print project and byte totals unless quiet."""
        if self.options.quiet:
            return

        if self.options.dry_run:
            projects_label, bytes_label = "Projects matched", "Bytes matched"
        else:
            projects_label, bytes_label = "Projects cleaned", "Bytes deleted"

        self.console.print(
            Text.assemble(
                (projects_label, "bold"),
                ": ",
                (str(self.stats.projects), "cyan"),
                ", ",
                (bytes_label, "bold"),
                ": ",
                (format_bytes(self.stats.bytes), "green"),
            )
        )
