"""
Glob-style ownership matching for intent scopes.

Patterns and paths are compared segment by segment after splitting on "/":

- a literal segment must be equal (case-sensitive)
- "*" as a whole segment matches any single segment
- "*" inside a segment matches zero or more characters within that segment
- "**" as a whole segment matches zero or more whole segments (backtracking)

A match requires both the pattern and the path to be fully consumed, so
"src/*.py" never matches "src/pkg/mod.py".
"""

from __future__ import annotations

import posixpath
import re
from functools import lru_cache
from typing import Iterable, Sequence


def normalize_path(path: str) -> str:
    """Normalize a relative path to forward slashes with "." and ".." collapsed."""
    cleaned = path.strip().replace("\\", "/")
    if not cleaned:
        return ""
    normalized = posixpath.normpath(cleaned)
    return "" if normalized == "." else normalized


@lru_cache(maxsize=256)
def _segment_regex(segment: str) -> re.Pattern[str]:
    pieces = [re.escape(piece) for piece in segment.split("*")]
    return re.compile("^" + ".*".join(pieces) + "$")


def _match_segment(pattern: str, segment: str) -> bool:
    if pattern == "*" or pattern == segment:
        return True
    if "*" not in pattern:
        return False
    return _segment_regex(pattern).match(segment) is not None


def _match_from(pattern: Sequence[str], p: int, parts: Sequence[str], q: int) -> bool:
    while p < len(pattern) and q < len(parts):
        if pattern[p] == "**":
            p += 1
            if p == len(pattern):
                return True
            while q < len(parts):
                if _match_from(pattern, p, parts, q):
                    return True
                q += 1
            return False
        if not _match_segment(pattern[p], parts[q]):
            return False
        p += 1
        q += 1

    # Path exhausted: any trailing "**" segments match zero segments.
    while p < len(pattern) and pattern[p] == "**":
        p += 1
    return p == len(pattern) and q == len(parts)


def matches(pattern: str, path: str) -> bool:
    """Return True if `path` falls under the ownership `pattern`."""
    pattern_parts = pattern.replace("\\", "/").split("/")
    path_parts = path.replace("\\", "/").split("/")
    return _match_from(pattern_parts, 0, path_parts, 0)


def in_scope(path: str, owned_scope: Iterable[str]) -> bool:
    """A path is in scope if ANY pattern matches it."""
    normalized = normalize_path(path)
    return any(matches(pattern, normalized) for pattern in owned_scope)


def first_out_of_scope(paths: Iterable[str], owned_scope: Sequence[str]) -> str | None:
    """
    Return the first path not covered by `owned_scope`, or None.

    An empty scope means "no restriction".
    """
    if not owned_scope:
        return None
    for path in paths:
        if not in_scope(path, owned_scope):
            return path
    return None
