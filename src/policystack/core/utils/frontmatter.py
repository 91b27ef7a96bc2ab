"""YAML frontmatter parsing for policy sources.

A policy source starts with a metadata block delimited by '---' markers,
followed by the Markdown body:

    ---
    name: python
    description: Python coding patterns
    relation: {kind: extends, target: base}
    ---

    ## error-handling
    Only catch exceptions with a recovery path.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict

import yaml


FRONTMATTER_PATTERN = re.compile(
    r"\A\ufeff?---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL,
)


@dataclass(frozen=True)
class ParsedDocument:
    """Result of splitting a source into metadata and body.

    Attributes:
        frontmatter: Parsed YAML mapping (empty when the source has none)
        content: The Markdown body after the frontmatter
        raw_frontmatter: The raw YAML text (for diagnostics)
    """

    frontmatter: Dict[str, Any]
    content: str
    raw_frontmatter: str


def parse_frontmatter(content: str) -> ParsedDocument:
    """Split ``content`` into YAML frontmatter and body.

    Sources without a leading '---' block yield an empty mapping and the full
    content as body.

    Raises:
        ValueError: If the frontmatter is not valid YAML or not a mapping

    Example:
        >>> doc = parse_frontmatter("---\\nname: base\\n---\\n## errors\\nCrash fast.\\n")
        >>> doc.frontmatter["name"]
        'base'
    """
    match = FRONTMATTER_PATTERN.match(content)
    if not match:
        return ParsedDocument(frontmatter={}, content=content, raw_frontmatter="")

    raw_yaml = match.group(1)
    try:
        parsed = yaml.safe_load(raw_yaml)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in frontmatter: {e}") from e
    if parsed is None:
        parsed = {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Frontmatter must be a YAML mapping, got {type(parsed).__name__}")

    return ParsedDocument(
        frontmatter=parsed,
        content=content[match.end():],
        raw_frontmatter=raw_yaml,
    )


def has_frontmatter(content: str) -> bool:
    """Return True if ``content`` starts with a '---' metadata block."""
    return bool(FRONTMATTER_PATTERN.match(content))


__all__ = ["ParsedDocument", "parse_frontmatter", "has_frontmatter", "FRONTMATTER_PATTERN"]
