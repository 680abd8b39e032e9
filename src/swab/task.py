"""Executable units of work derived from a rule applied to a context."""

from __future__ import annotations

import logging
import os
import shutil
import stat
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .context import Context

logger = logging.getLogger(__name__)


class TaskError(RuntimeError):
    """Raised when a command task exits unsuccessfully."""

    def __init__(self, command: str, root: Path, returncode: int | None = None) -> None:
        super().__init__(f"command `{command}` failed in `{root}`")
        self.command = command
        self.root = root
        self.returncode = returncode


@dataclass(frozen=True)
class CommandTask:
    """Run a shell command in the context root."""

    command: str

    def execute(self, context: Context) -> None:
        """Run the command through the platform shell.

        Raises:
            ValueError: If the command is blank.
            TaskError: If the command exits with a non-zero status.

        """
        text = self.command.strip()
        if not text:
            raise ValueError("command action cannot be empty")

        logger.info("Running `%s` in %s", text, context.root)
        result = subprocess.run(text, shell=True, cwd=context.root, check=False)

        if result.returncode != 0:
            raise TaskError(text, context.root, result.returncode)


@dataclass(frozen=True)
class RemoveTask:
    """Remove a path (relative to the context root) measured at ``size`` bytes."""

    path: Path
    size: int

    def execute(self, context: Context) -> None:
        """Delete the path. A path that is already gone counts as removed.

        Without link following, a symlink is unlinked and its target left alone.

        Raises:
            OSError: For any failure other than the path not existing.

        """
        full_path = context.root / self.path

        try:
            st = os.stat(full_path, follow_symlinks=context.follow_symlinks)
        except FileNotFoundError:
            logger.debug("Already removed: %s", full_path)
            return

        if stat.S_ISDIR(st.st_mode) and not full_path.is_symlink():
            try:
                shutil.rmtree(full_path)
            except FileNotFoundError:
                return
        else:
            full_path.unlink(missing_ok=True)

        logger.info("Removed %s", full_path)


Task = CommandTask | RemoveTask
