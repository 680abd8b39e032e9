"""Resolve a rule's remove patterns to a minimal set of paths in a context."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import TYPE_CHECKING

from .patterns import Glob, PatternError, compile_glob

if TYPE_CHECKING:
    from .context import Context
    from .rules import Rule

logger = logging.getLogger(__name__)


def _compile_all(patterns: list[str]) -> list[Glob]:
    globs: list[Glob] = []
    for pattern in patterns:
        try:
            globs.append(compile_glob(pattern))
        except PatternError:
            logger.warning("Ignoring malformed remove pattern: %s", pattern)
    return globs


def resolve(rule: Rule, context: Context) -> list[Path]:
    """Return the sorted relative paths the rule would remove.

    Matches from every remove pattern are unioned and sorted, then pruned in
    one pass: a path that no longer exists is dropped, as is any path below
    a directory that was already kept. The result therefore holds at most
    one path per independent subtree.
    """
    globs = _compile_all(rule.remove_patterns)

    matched: set[Path] = set()
    for glob in globs:
        matched.update(path for path in context.directories if glob.is_match(path))
        matched.update(path for path in context.files if glob.is_match(path))

    kept: list[Path] = []
    kept_directories: list[Path] = []

    for relative in sorted(matched):
        try:
            st = os.stat(context.root / relative, follow_symlinks=context.follow_symlinks)
        except OSError:
            logger.debug("Matched path vanished before pruning: %s", relative)
            continue

        if any(relative.is_relative_to(directory) for directory in kept_directories):
            continue

        if stat.S_ISDIR(st.st_mode):
            kept_directories.append(relative)

        kept.append(relative)

    return kept
