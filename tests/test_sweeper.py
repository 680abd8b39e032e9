"""Tests for the sweeper driver."""

from __future__ import annotations

import os
import sys
import time
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from swab.detection import Pattern
from swab.rules import Command, Remove, Rule
from swab.rules.catalog import CARGO, PYTHON
from swab.sweeper import SweepError, Sweeper, SweepOptions
from swab.task import TaskError

DAY = 24 * 60 * 60


def _write(root: Path, relative: str, content: str = "") -> Path:
    """Create a file (and its parents) below root."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def _make_cargo_project(root: Path, name: str = "proj", size: int = 100) -> Path:
    project = root / name
    _write(project, "Cargo.toml")
    _write(project, "target/debug/app", "x" * size)
    return project


def _age_path(path: Path, days: int) -> None:
    """Set both access and modification time ``days`` into the past."""
    stamp = time.time() - days * DAY
    os.utime(path, (stamp, stamp))


def _sweeper(rules: list[Rule], **options: object) -> tuple[Sweeper, Console]:
    console = Console(record=True, width=200, color_system=None)
    return Sweeper(rules, SweepOptions(**options), console), console


class TestCandidateRoots:
    """Tests for Sweeper.candidate_roots()."""

    def test_directory_and_immediate_children(self, tmp_path: Path) -> None:
        """Each directory is followed by its sorted subdirectories, one level deep."""
        (tmp_path / "b" / "deep").mkdir(parents=True)
        (tmp_path / "a").mkdir()
        _write(tmp_path, "file.txt")
        sweeper, _ = _sweeper([CARGO])

        assert sweeper.candidate_roots([tmp_path]) == [tmp_path, tmp_path / "a", tmp_path / "b"]

    def test_invalid_directory_rejected(self, tmp_path: Path) -> None:
        """A file or missing path aborts before anything is scanned."""
        file_path = _write(tmp_path, "file.txt")
        sweeper, _ = _sweeper([CARGO])

        with pytest.raises(SweepError, match="is not a valid directory"):
            sweeper.candidate_roots([tmp_path, file_path])
        with pytest.raises(SweepError):
            sweeper.run([tmp_path / "missing"])

    def test_grandchildren_are_not_candidates(self, tmp_path: Path) -> None:
        """Projects two levels down are not found."""
        _make_cargo_project(tmp_path / "group")
        sweeper, _ = _sweeper([CARGO], dry_run=True, quiet=True)

        stats = sweeper.run([tmp_path])

        assert stats.projects == 0
        assert stats.bytes == 0


class TestRun:
    """Tests for Sweeper.run()."""

    def test_dry_run_reports_without_deleting(self, tmp_path: Path) -> None:
        """A dry run counts projects and bytes but touches nothing."""
        project = _make_cargo_project(tmp_path)
        sweeper, _ = _sweeper([CARGO], dry_run=True, quiet=True)

        stats = sweeper.run([tmp_path])

        assert (stats.projects, stats.bytes) == (1, 100)
        assert (project / "target" / "debug" / "app").exists()

    def test_live_run_deletes(self, tmp_path: Path) -> None:
        """A live run removes the matched paths and reports the same totals."""
        project = _make_cargo_project(tmp_path)
        dry, _ = _sweeper([CARGO], dry_run=True, quiet=True)
        live, _ = _sweeper([CARGO], quiet=True)

        dry_stats = dry.run([tmp_path])
        live_stats = live.run([tmp_path])

        assert live_stats == dry_stats
        assert not (project / "target").exists()
        assert (project / "Cargo.toml").exists()

    def test_same_path_counted_once(self, tmp_path: Path) -> None:
        """Two rules removing the same path do not double-count it."""
        _make_cargo_project(tmp_path)
        other = Rule(id="other", name="Other", detection=Pattern("Cargo.toml"), actions=(Remove("target"),))
        sweeper, _ = _sweeper([CARGO, other], dry_run=True, quiet=True)

        stats = sweeper.run([tmp_path])

        assert (stats.projects, stats.bytes) == (1, 100)

    def test_same_name_in_different_roots_counted_separately(self, tmp_path: Path) -> None:
        """Removal bookkeeping is per absolute path."""
        _make_cargo_project(tmp_path, "one", size=10)
        _make_cargo_project(tmp_path, "two", size=20)
        sweeper, _ = _sweeper([CARGO], dry_run=True, quiet=True)

        stats = sweeper.run([tmp_path])

        assert (stats.projects, stats.bytes) == (2, 30)

    def test_dry_run_does_not_run_commands(self, tmp_path: Path) -> None:
        """Commands are listed, not executed, in a dry run; the project still counts."""
        _write(tmp_path, "proj/Makefile")
        command = f'"{sys.executable}" -c "open(\'marker\', \'w\').close()"'
        rule = Rule(id="make", name="Make", detection=Pattern("Makefile"), actions=(Command(command),))
        sweeper, _ = _sweeper([rule], dry_run=True, quiet=True)

        stats = sweeper.run([tmp_path])

        assert not (tmp_path / "proj" / "marker").exists()
        assert (stats.projects, stats.bytes) == (1, 0)

    def test_live_run_executes_commands(self, tmp_path: Path) -> None:
        """Commands run in the project root during a live run."""
        _write(tmp_path, "proj/Makefile")
        command = f'"{sys.executable}" -c "open(\'marker\', \'w\').close()"'
        rule = Rule(id="make", name="Make", detection=Pattern("Makefile"), actions=(Command(command),))
        sweeper, _ = _sweeper([rule], quiet=True)

        stats = sweeper.run([tmp_path])

        assert (tmp_path / "proj" / "marker").exists()
        assert stats.projects == 1

    def test_task_failure_aborts(self, tmp_path: Path) -> None:
        """A failing command stops the run before later removals."""
        project = _make_cargo_project(tmp_path)
        command = f'"{sys.executable}" -c "raise SystemExit(1)"'
        rule = Rule(
            id="cargo",
            name="Cargo",
            detection=Pattern("Cargo.toml"),
            actions=(Command(command), Remove("target")),
        )
        sweeper, _ = _sweeper([rule], quiet=True)

        with pytest.raises(TaskError):
            sweeper.run([tmp_path])

        assert (project / "target").exists()

    def test_detected_rule_without_matches_is_not_counted(self, tmp_path: Path) -> None:
        """A project with nothing to remove produces no report."""
        _write(tmp_path, "proj/Cargo.toml")
        sweeper, console = _sweeper([CARGO], dry_run=True)

        stats = sweeper.run([tmp_path])

        assert stats.projects == 0
        assert "Cargo project" not in console.export_text()


class TestNestedRoots:
    """Tests for a project nested inside another scanned project."""

    def _make_tree(self, root: Path) -> Path:
        outer = root / "outer"
        _write(outer, "pyproject.toml")
        _write(outer, "proj/pyproject.toml")
        _write(outer, "proj/pkg/__pycache__/a.pyc", "x" * 100)
        return outer

    def test_dry_run_matches_live_run(self, tmp_path: Path) -> None:
        """A path claimed by the outer project is not reported again for the inner one."""
        outer = self._make_tree(tmp_path)
        dry, dry_console = _sweeper([PYTHON], dry_run=True)
        live, live_console = _sweeper([PYTHON])

        dry_stats = dry.run([outer])
        live_stats = live.run([outer])

        assert dry_stats == live_stats
        assert (live_stats.projects, live_stats.bytes) == (1, 100)
        assert not (outer / "proj" / "pkg" / "__pycache__").exists()
        for output in (dry_console.export_text(), live_console.export_text()):
            assert output.count("Python project") == 1
            assert output.count("proj/pkg/__pycache__ (100 B)") == 1

    def test_claimed_removal_keeps_command(self, tmp_path: Path) -> None:
        """An inner project with a command still reports it after its removals are claimed."""
        outer = self._make_tree(tmp_path)
        rule = Rule(
            id="python",
            name="Python",
            detection=Pattern("pyproject.toml"),
            actions=(Command("make clean"), Remove("**/__pycache__")),
        )
        sweeper, console = _sweeper([rule], dry_run=True)

        stats = sweeper.run([outer])
        output = console.export_text()

        assert (stats.projects, stats.bytes) == (2, 100)
        assert output.count("run make clean") == 2
        assert output.count("__pycache__ (100 B)") == 1


class TestAgeFilter:
    """Tests for the inactivity filter."""

    def test_fresh_projects_skipped(self, tmp_path: Path) -> None:
        """Only projects older than the threshold are processed."""
        old = _make_cargo_project(tmp_path, "old", size=10)
        _make_cargo_project(tmp_path, "fresh", size=20)
        _age_path(old, days=10)
        sweeper, _ = _sweeper([CARGO], dry_run=True, quiet=True, age=timedelta(days=1))

        stats = sweeper.run([tmp_path])

        assert (stats.projects, stats.bytes) == (1, 10)

    def test_activity_uses_newest_source_file(self, tmp_path: Path) -> None:
        """A recent source edit keeps an otherwise old project."""
        project = _make_cargo_project(tmp_path)
        _age_path(project, days=10)

        by_mtime, _ = _sweeper([CARGO], dry_run=True, quiet=True, age=timedelta(days=1))
        by_activity, _ = _sweeper([CARGO], dry_run=True, quiet=True, age=timedelta(days=1), activity=True)

        assert by_mtime.run([tmp_path]).projects == 1
        assert by_activity.run([tmp_path]).projects == 0

    def test_activity_ignores_build_output(self, tmp_path: Path) -> None:
        """Fresh files under build directories do not count as activity."""
        project = _make_cargo_project(tmp_path)
        _age_path(project / "Cargo.toml", days=10)
        _age_path(project, days=10)
        sweeper, _ = _sweeper([CARGO], dry_run=True, quiet=True, age=timedelta(days=1), activity=True)

        assert sweeper.run([tmp_path]).projects == 1


class TestOutput:
    """Tests for reports, prompts and the summary."""

    def test_summary_dry_run(self, tmp_path: Path) -> None:
        """A dry run prints the report and matched totals."""
        _make_cargo_project(tmp_path)
        sweeper, console = _sweeper([CARGO], dry_run=True)

        sweeper.run([tmp_path])
        output = console.export_text()

        assert "Cargo project" in output
        assert "target (100 B)" in output
        assert "Projects matched: 1, Bytes matched: 100 B" in output

    def test_summary_live(self, tmp_path: Path) -> None:
        """A live run prints cleaned totals."""
        _make_cargo_project(tmp_path)
        sweeper, console = _sweeper([CARGO])

        sweeper.run([tmp_path])

        assert "Projects cleaned: 1, Bytes deleted: 100 B" in console.export_text()

    def test_quiet_prints_nothing(self, tmp_path: Path) -> None:
        """Quiet mode suppresses reports and the summary."""
        _make_cargo_project(tmp_path)
        sweeper, console = _sweeper([CARGO], dry_run=True, quiet=True)

        sweeper.run([tmp_path])

        assert console.export_text() == ""

    def test_interactive_decline_keeps_files(self, tmp_path: Path) -> None:
        """Declining a prompt skips the task and the project is not counted."""
        project = _make_cargo_project(tmp_path)
        sweeper, _ = _sweeper([CARGO], interactive=True)

        with patch("swab.sweeper.Confirm.ask", return_value=False) as ask:
            stats = sweeper.run([tmp_path])

        ask.assert_called_once()
        assert (project / "target").exists()
        assert (stats.projects, stats.bytes) == (0, 0)

    def test_interactive_accept_deletes(self, tmp_path: Path) -> None:
        """Accepting a prompt executes the task."""
        project = _make_cargo_project(tmp_path)
        sweeper, _ = _sweeper([CARGO], interactive=True)

        with patch("swab.sweeper.Confirm.ask", return_value=True):
            stats = sweeper.run([tmp_path])

        assert not (project / "target").exists()
        assert (stats.projects, stats.bytes) == (1, 100)


class TestUnreadable:
    """Tests for roots that cannot be read."""

    def test_unreadable_root_aborts_by_default(self, tmp_path: Path) -> None:
        """Without skip_unreadable the error propagates."""
        sweeper, _ = _sweeper([CARGO], quiet=True)

        with patch("swab.sweeper.Context.build", side_effect=PermissionError("denied")):
            with pytest.raises(PermissionError):
                sweeper.run([tmp_path])

    def test_unreadable_root_skipped(self, tmp_path: Path) -> None:
        """With skip_unreadable the root is logged and skipped."""
        sweeper, _ = _sweeper([CARGO], quiet=True, skip_unreadable=True)

        with patch("swab.sweeper.Context.build", side_effect=PermissionError("denied")):
            stats = sweeper.run([tmp_path])

        assert (stats.projects, stats.bytes) == (0, 0)
