"""Filesystem traversal and size measurement."""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Callable, Iterator
from pathlib import Path

logger = logging.getLogger(__name__)


def walk(
    root: Path,
    *,
    follow_symlinks: bool = False,
    prune: Callable[[os.DirEntry[str]], bool] | None = None,
    on_error: Callable[[OSError], None] | None = None,
) -> Iterator[os.DirEntry[str]]:
    """Yield every entry below ``root`` (the root itself excluded).

    Directories are descended into when they are directories under the
    requested symlink policy; with ``follow_symlinks`` a directory reached
    twice (a link cycle) is yielded but not descended again.

    Args:
        root: Directory to traverse.
        follow_symlinks: Treat symlinks as their targets.
        prune: Directories for which this returns True are yielded but not
            descended into.
        on_error: Called with errors raised while reading directories below
            the root. When None, those errors propagate. Errors reading the
            root itself always propagate.

    """
    visited: set[tuple[int, int]] = set()
    if follow_symlinks:
        root_stat = root.stat()
        visited.add((root_stat.st_dev, root_stat.st_ino))

    pending: list[Path] = [root]

    while pending:
        directory = pending.pop()
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            if directory == root or on_error is None:
                raise
            on_error(e)
            continue

        descend: list[Path] = []
        for entry in entries:
            yield entry

            try:
                is_dir = entry.is_dir(follow_symlinks=follow_symlinks)
            except OSError:
                is_dir = False
            if not is_dir or (prune is not None and prune(entry)):
                continue

            if follow_symlinks:
                try:
                    entry_stat = entry.stat()
                except OSError as e:
                    if on_error is None:
                        raise
                    on_error(e)
                    continue
                key = (entry_stat.st_dev, entry_stat.st_ino)
                if key in visited:
                    logger.debug("Not descending into already visited directory: %s", entry.path)
                    continue
                visited.add(key)

            descend.append(Path(entry.path))

        pending.extend(reversed(descend))


def size(path: Path, *, follow_symlinks: bool = False) -> int:
    """Return the number of bytes occupied by ``path``.

    Regular files report their length. Without ``follow_symlinks`` a symlink
    reports the size of the link itself. Directories are summed recursively;
    anything else counts as zero.

    Raises:
        OSError: If the path (or anything below it) cannot be read.

    """
    st = os.stat(path, follow_symlinks=follow_symlinks)

    if stat.S_ISREG(st.st_mode) or stat.S_ISLNK(st.st_mode):
        return st.st_size

    if not stat.S_ISDIR(st.st_mode):
        return 0

    total = 0
    for entry in walk(path, follow_symlinks=follow_symlinks):
        if entry.is_file(follow_symlinks=follow_symlinks):
            total += entry.stat(follow_symlinks=follow_symlinks).st_size
        elif not follow_symlinks and entry.is_symlink():
            total += entry.stat(follow_symlinks=False).st_size
    return total


def directories(path: Path, *, follow_symlinks: bool = False) -> list[Path]:
    """Return the immediate subdirectories of ``path``, sorted."""
    found: list[Path] = []
    with os.scandir(path) as it:
        for entry in it:
            try:
                is_dir = entry.is_dir(follow_symlinks=follow_symlinks)
            except OSError:
                continue
            if is_dir:
                found.append(Path(entry.path))
    return sorted(found)
