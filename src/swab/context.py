"""Point-in-time snapshot of a candidate project directory."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from .path_metrics import walk
from .patterns import PatternError, compile_glob

logger = logging.getLogger(__name__)

# Build and cache directories skipped when looking for the last human edit.
ACTIVITY_IGNORED_DIRECTORIES: frozenset[str] = frozenset({
    ".angular",
    ".build",
    ".dart_tool",
    ".elixir-tools",
    ".elixir_ls",
    ".git",
    ".godot",
    ".gradle",
    ".ipynb_checkpoints",
    ".lexical",
    ".mypy_cache",
    ".nox",
    ".pixi",
    ".pytest_cache",
    ".ruff_cache",
    ".stack-work",
    ".swiftpm",
    ".tox",
    ".turbo",
    ".venv",
    ".zig-cache",
    "__pycache__",
    "__pypackages__",
    "_build",
    "Binaries",
    "Build",
    "Builds",
    "DerivedDataCache",
    "Intermediate",
    "Library",
    "Logs",
    "MemoryCaptures",
    "Obj",
    "Saved",
    "Temp",
    "bin",
    "build",
    "cmake-build-debug",
    "cmake-build-release",
    "dist-newstyle",
    "node_modules",
    "obj",
    "target",
    "vendor",
    "zig-cache",
    "zig-out",
})


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=UTC)


@dataclass(frozen=True)
class Context:
    """Immutable listing of every directory and file below ``root``.

    Paths in ``directories`` and ``files`` are relative to ``root``. Without
    ``follow_symlinks`` a symlink is always recorded as a file.
    """

    root: Path
    directories: frozenset[Path]
    files: frozenset[Path]
    follow_symlinks: bool = False

    @classmethod
    def build(cls, root: Path, *, follow_symlinks: bool = False) -> Context:
        """Walk ``root`` once and capture its contents.

        Unreadable subdirectories are logged and skipped.

        Raises:
            OSError: If the root itself cannot be read.

        """
        directories: set[Path] = set()
        files: set[Path] = set()

        def _warn(error: OSError) -> None:
            logger.warning("Cannot read %s: %s", error.filename, error.strerror)

        for entry in walk(root, follow_symlinks=follow_symlinks, on_error=_warn):
            relative = Path(entry.path).relative_to(root)
            try:
                is_dir = entry.is_dir(follow_symlinks=follow_symlinks)
            except OSError:
                is_dir = False

            if is_dir:
                directories.add(relative)
            else:
                files.add(relative)

        logger.debug(
            "Snapshot of %s: %d directories, %d files",
            root,
            len(directories),
            len(files),
        )
        return cls(
            root=root,
            directories=frozenset(directories),
            files=frozenset(files),
            follow_symlinks=follow_symlinks,
        )

    def contains(self, pattern: str) -> bool:
        """Return True if any captured path matches the glob.

        A malformed pattern matches nothing.
        """
        try:
            glob = compile_glob(pattern)
        except PatternError:
            logger.debug("Ignoring malformed detection pattern: %s", pattern)
            return False

        return any(glob.is_match(path) for path in self.directories) or any(
            glob.is_match(path) for path in self.files
        )

    def modified_time(self) -> datetime:
        """Modification time of the root directory, read now."""
        return _timestamp(self.root.stat().st_mtime)

    def activity_modified_time(self) -> datetime:
        """Newest modification time of a regular file outside build directories.

        Walks the tree again, skipping every directory named in
        ACTIVITY_IGNORED_DIRECTORIES. Falls back to the root's own
        modification time when no such file exists.
        """

        def _ignored(entry: os.DirEntry[str]) -> bool:
            return entry.name in ACTIVITY_IGNORED_DIRECTORIES

        def _skip(error: OSError) -> None:
            logger.debug("Activity scan cannot read %s: %s", error.filename, error.strerror)

        newest: float | None = None

        for entry in walk(self.root, follow_symlinks=self.follow_symlinks, prune=_ignored, on_error=_skip):
            try:
                if not entry.is_file(follow_symlinks=self.follow_symlinks):
                    continue
                modified = entry.stat(follow_symlinks=self.follow_symlinks).st_mtime
            except OSError:
                continue

            if newest is None or modified > newest:
                newest = modified

        if newest is None:
            return self.modified_time()

        return _timestamp(newest)
