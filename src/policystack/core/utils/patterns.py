"""Glob matching for file-pattern applicability.

Supported forms:
- ``*.py`` - bare filename globs match at any depth
- ``src/*.py`` - anchored at the identifier root
- ``**/*.tsx`` - ``**`` spans any number of directories (including none)
- ``*.{ts,tsx}`` - single-level brace alternatives
- ``*`` - matches everything
"""
from __future__ import annotations

import re
from functools import lru_cache
from pathlib import PurePosixPath
from typing import Iterable


def matches_any_pattern(file_path: str, patterns: Iterable[str]) -> bool:
    """Check whether ``file_path`` matches at least one glob in ``patterns``."""
    pats = list(patterns or [])
    if not pats:
        return False
    if "*" in pats:
        return True
    return any(matches_pattern(file_path, pat) for pat in pats)


def matches_pattern(file_path: str, pattern: str) -> bool:
    """Check whether ``file_path`` matches a single glob ``pattern``."""
    path = str(PurePosixPath(file_path.replace("\\", "/"))).lstrip("/")
    for pat in _expand_braces(pattern.strip().replace("\\", "/").lstrip("/")):
        if _compile(pat).fullmatch(path):
            return True
        # Bare filename globs match anywhere in the tree.
        if "/" not in pat and _compile(pat).fullmatch(PurePosixPath(path).name):
            return True
    return False


def _expand_braces(pattern: str) -> list[str]:
    """Expand ``foo.{a,b}`` into ``['foo.a', 'foo.b']`` (recursively for several groups)."""
    start = pattern.find("{")
    if start == -1:
        return [pattern]
    end = pattern.find("}", start + 1)
    if end == -1:
        return [pattern]
    parts = [p.strip() for p in pattern[start + 1 : end].split(",") if p.strip()]
    if len(parts) <= 1:
        return [pattern]
    expanded: list[str] = []
    for part in parts:
        expanded.extend(_expand_braces(pattern[:start] + part + pattern[end + 1 :]))
    return expanded


@lru_cache(maxsize=256)
def _compile(pattern: str) -> "re.Pattern[str]":
    out: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out))


__all__ = ["matches_any_pattern", "matches_pattern"]
