"""Deep merge for layered configuration.

Lists replace by default; a list whose first element is the string "+"
appends to the lower layer, and "=" makes the replacement explicit.
"""
from __future__ import annotations

from typing import Any, Dict, List


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` onto ``base`` without mutating either.

    Example:
        >>> deep_merge({"policies": {"pattern": "*.md"}}, {"policies": {"directories": ["x"]}})
        {'policies': {'pattern': '*.md', 'directories': ['x']}}
    """
    result: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            result[key] = merge_arrays(current, value)
        elif isinstance(value, list):
            result[key] = merge_arrays([], value)
        else:
            result[key] = value
    return result


def merge_arrays(base: List[Any], override: List[Any]) -> List[Any]:
    """Merge two lists honouring the "+" (append) and "=" (replace) markers.

    Example:
        >>> merge_arrays(["a"], ["+", "b"])
        ['a', 'b']
        >>> merge_arrays(["a"], ["b"])
        ['b']
    """
    if not override:
        return list(override)
    head = override[0]
    if head == "+":
        return [*base, *override[1:]]
    if head == "=":
        return list(override[1:])
    return list(override)


__all__ = ["deep_merge", "merge_arrays"]
