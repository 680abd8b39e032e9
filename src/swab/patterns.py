"""Glob compilation for detection and removal patterns.

Patterns are matched against the POSIX form of a path relative to a project
root. ``*`` and ``?`` also match ``/``; ``**`` is only meaningful as a whole
path component (``**/target``, ``node_modules/**``, ``a/**/b``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import PurePath


class PatternError(ValueError):
    """Raised when a glob pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"invalid glob `{pattern}`: {reason}")
        self.pattern = pattern
        self.reason = reason


@dataclass(frozen=True)
class Glob:
    """A compiled glob pattern."""

    pattern: str
    regex: re.Pattern[str] = field(repr=False, compare=False)

    def is_match(self, path: str | PurePath) -> bool:
        """Return True if the relative path matches the whole pattern."""
        text = path.as_posix() if isinstance(path, PurePath) else path
        return self.regex.fullmatch(text) is not None


def _translate_class(pattern: str, start: int) -> tuple[str, int]:
    """Translate a ``[...]`` class beginning at ``start``; return (regex, next index)."""
    i = start + 1
    negate = False
    if i < len(pattern) and pattern[i] in "!^":
        negate = True
        i += 1

    members: list[str] = []
    first = True
    while i < len(pattern):
        char = pattern[i]
        if char == "]" and not first:
            body = "".join(members)
            return (f"[^{body}]" if negate else f"[{body}]"), i + 1
        if char in "\\^[]":
            members.append("\\" + char)
        else:
            members.append(char)
        first = False
        i += 1

    raise PatternError(pattern, "unclosed character class")


def translate(pattern: str) -> str:
    """Translate a glob into an anchored-by-caller regular expression."""
    if not pattern:
        raise PatternError(pattern, "pattern is empty")

    out: list[str] = []
    in_group = False
    i = 0
    n = len(pattern)

    while i < n:
        char = pattern[i]

        if char == "*":
            j = i
            while j < n and pattern[j] == "*":
                j += 1
            if j - i == 1:
                out.append(".*")
                i = j
                continue

            at_start = i == 0 or pattern[i - 1] == "/"
            at_end = j == n or pattern[j] == "/"
            if not (at_start and at_end):
                raise PatternError(pattern, "`**` must be a whole path component")

            if j == n:
                out.append(".*")
                i = j
            else:
                out.append("(?:.*/)?")
                i = j + 1
            continue

        if char == "?":
            out.append(".")
        elif char == "[":
            regex, i = _translate_class(pattern, i)
            out.append(regex)
            continue
        elif char == "{":
            if in_group:
                raise PatternError(pattern, "nested alternation groups are not supported")
            in_group = True
            out.append("(?:")
        elif char == "}" and in_group:
            in_group = False
            out.append(")")
        elif char == "," and in_group:
            out.append("|")
        elif char == "\\":
            if i + 1 >= n:
                raise PatternError(pattern, "dangling escape")
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        else:
            out.append(re.escape(char))
        i += 1

    if in_group:
        raise PatternError(pattern, "unclosed alternation group")

    return "".join(out)


@lru_cache(maxsize=512)
def compile_glob(pattern: str) -> Glob:
    """Compile a glob, raising PatternError when it is malformed."""
    source = translate(pattern)
    try:
        regex = re.compile(source, re.DOTALL)
    except re.error as e:
        raise PatternError(pattern, str(e)) from e
    return Glob(pattern=pattern, regex=regex)


def validate_glob(pattern: str) -> str:
    """Return the pattern unchanged if it compiles."""
    compile_glob(pattern)
    return pattern
