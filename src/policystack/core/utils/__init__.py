"""Utility helpers for policystack core.

- frontmatter: YAML frontmatter parsing for policy sources
- io: YAML file reading
- merge: deep merge used by the configuration layer
- patterns: glob matching for file-pattern applicability
"""
from __future__ import annotations

from .frontmatter import ParsedDocument, parse_frontmatter, has_frontmatter
from .io import read_yaml, read_text
from .merge import deep_merge, merge_arrays
from .patterns import matches_any_pattern, matches_pattern

__all__ = [
    "ParsedDocument",
    "parse_frontmatter",
    "has_frontmatter",
    "read_yaml",
    "read_text",
    "deep_merge",
    "merge_arrays",
    "matches_any_pattern",
    "matches_pattern",
]
