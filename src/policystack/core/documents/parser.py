"""Policy source parsing.

A source is YAML frontmatter followed by a Markdown body. Each ``## <topic>``
heading opens a topic section; the section's prose yields its directives.

Section markers:
- <!-- MODE: augment -->   accumulate alongside lower-tier directives
- <!-- MODE: override -->  replace lower-tier directives (the usual default)

Subsections ``### Examples`` and ``### Anti-patterns`` attach examples to every
directive of their section.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from policystack.core.exceptions import SchemaError
from policystack.core.models import (
    Applicability,
    Directive,
    MergeMode,
    PolicyDocument,
    Relation,
    RelationKind,
    normalize_tag,
    normalize_topic,
)
from policystack.core.schemas.validation import schema_errors
from policystack.core.utils.frontmatter import parse_frontmatter


@dataclass(frozen=True)
class PolicySource:
    """Raw source text of one policy document plus where it came from."""

    origin: str
    text: str


MODE_MARKER = re.compile(r"<!--\s*MODE:\s*([\w-]+)\s*-->", re.IGNORECASE)
HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
TOPIC_HEADING = re.compile(r"^##(?!#)\s*(.*?)\s*#*\s*$")
SUBSECTION_HEADING = re.compile(r"^###(?!#)\s*(.*?)\s*#*\s*$")
BULLET = re.compile(r"^[-*+]\s+(.*)$")
FENCE = re.compile(r"^\s*(```|~~~)")

EXAMPLE_HEADINGS = {"examples", "example", "good", "do"}
ANTI_PATTERN_HEADINGS = {"anti-patterns", "anti-pattern", "antipatterns", "bad", "don't", "dont", "avoid"}


@dataclass
class _Section:
    heading: str
    prose: List[str] = field(default_factory=list)
    examples: List[str] = field(default_factory=list)
    anti_patterns: List[str] = field(default_factory=list)


def _split_sections(body: str) -> List[_Section]:
    """Split the Markdown body into topic sections (text before the first ``##`` is ignored)."""
    sections: List[_Section] = []
    current: Optional[_Section] = None
    target = "prose"
    in_fence = False

    for line in body.splitlines():
        if FENCE.match(line):
            in_fence = not in_fence
        elif not in_fence:
            heading = TOPIC_HEADING.match(line)
            if heading:
                current = _Section(heading=heading.group(1))
                sections.append(current)
                target = "prose"
                continue
            sub = SUBSECTION_HEADING.match(line)
            if sub and current is not None:
                label = normalize_topic(sub.group(1))
                if label in EXAMPLE_HEADINGS:
                    target = "examples"
                    continue
                if label in ANTI_PATTERN_HEADINGS:
                    target = "anti_patterns"
                    continue
                target = "prose"
        if current is not None:
            getattr(current, target).append(line)
    return sections


def _blocks(lines: List[str]) -> List[str]:
    """Split example lines into items: fenced blocks, bullets, or paragraphs."""
    items: List[str] = []
    buf: List[str] = []
    fence: List[str] = []
    in_fence = False

    def flush() -> None:
        text = "\n".join(buf).strip()
        if text:
            items.append(text)
        buf.clear()

    for line in lines:
        if FENCE.match(line):
            if in_fence:
                items.append("\n".join(fence).rstrip())
                fence.clear()
                in_fence = False
            else:
                flush()
                in_fence = True
            continue
        if in_fence:
            fence.append(line)
            continue
        bullet = BULLET.match(line)
        if bullet:
            flush()
            buf.append(bullet.group(1))
        elif not line.strip():
            flush()
        else:
            buf.append(line.strip())
    if in_fence and fence:
        items.append("\n".join(fence).rstrip())
    flush()
    return [i for i in items if i]


def _statements(prose: str) -> List[str]:
    """One statement per top-level bullet when the prose is a pure bullet list, else one."""
    lines = [ln.rstrip() for ln in prose.splitlines()]
    content = [ln for ln in lines if ln.strip()]
    if not content:
        return []
    if BULLET.match(content[0]) and all(BULLET.match(ln) or ln[:1].isspace() for ln in content):
        statements: List[str] = []
        for ln in content:
            bullet = BULLET.match(ln)
            if bullet:
                statements.append(bullet.group(1).strip())
            else:
                statements[-1] = f"{statements[-1]} {ln.strip()}"
        return statements
    return ["\n".join(lines).strip()]


def _section_mode(section: _Section, default_mode: MergeMode, *, name: str, origin: str) -> MergeMode:
    text = "\n".join(section.prose)
    found = {m.group(1).lower() for m in MODE_MARKER.finditer(text)}
    if not found:
        return default_mode
    if len(found) > 1:
        raise SchemaError(
            f"Section '{section.heading}' in '{name}' declares conflicting merge modes: {sorted(found)}",
            document=name,
            origin=origin,
        )
    try:
        return MergeMode.parse(found.pop())
    except ValueError as exc:
        raise SchemaError(f"{exc} in section '{section.heading}'", document=name, origin=origin) from exc


def parse_body(body: str, *, name: str, origin: str, default_mode: MergeMode = MergeMode.OVERRIDE) -> List[Directive]:
    """Parse the Markdown body of document ``name`` into directives (document order)."""
    directives: List[Directive] = []
    for section in _split_sections(body):
        topic = normalize_topic(section.heading)
        if not topic:
            raise SchemaError(f"Empty topic heading in '{name}'", document=name, origin=origin)
        mode = _section_mode(section, default_mode, name=name, origin=origin)
        prose = HTML_COMMENT.sub("", "\n".join(section.prose))
        examples = tuple(_blocks(section.examples))
        anti_patterns = tuple(_blocks(section.anti_patterns))
        for statement in _statements(prose):
            directives.append(
                Directive(
                    topic=topic,
                    statement=statement,
                    mode=mode,
                    examples=examples,
                    anti_patterns=anti_patterns,
                )
            )
    return directives


def _parse_relations(meta: Mapping[str, Any], *, name: str, origin: str) -> Tuple[Relation, ...]:
    raw: List[Mapping[str, Any]] = []
    if meta.get("relation") is not None:
        raw.append(meta["relation"])
    raw.extend(meta.get("relations") or [])

    relations: List[Relation] = []
    seen: Dict[str, RelationKind] = {}
    for item in raw:
        target = str(item.get("target") or "").strip()
        try:
            kind = RelationKind.parse(item.get("kind"))
        except ValueError as exc:
            raise SchemaError(str(exc), document=name, origin=origin) from exc
        if target in seen:
            raise SchemaError(
                f"Document '{name}' declares more than one relation to '{target}'",
                document=name,
                origin=origin,
            )
        seen[target] = kind
        relations.append(Relation(kind=kind, target=target))
    return tuple(relations)


def _parse_applicability(meta: Mapping[str, Any]) -> Applicability:
    raw = meta.get("appliesTo") or {}
    return Applicability(
        languages=frozenset(normalize_tag(v) for v in raw.get("languages") or []),
        frameworks=frozenset(normalize_tag(v) for v in raw.get("frameworks") or []),
        file_patterns=tuple(str(v).strip() for v in raw.get("filePatterns") or []),
    )


def parse_source(source: PolicySource, *, default_mode: MergeMode = MergeMode.OVERRIDE) -> PolicyDocument:
    """Parse one policy source into a PolicyDocument.

    Raises:
        SchemaError: On malformed frontmatter, metadata or body. The error
            carries the document name when it is known, else the origin.
    """
    try:
        parsed = parse_frontmatter(source.text)
    except ValueError as exc:
        raise SchemaError(f"{source.origin}: {exc}", origin=source.origin) from exc

    meta = parsed.frontmatter
    raw_name = meta.get("name")
    name = raw_name.strip() if isinstance(raw_name, str) else ""

    errors = schema_errors(meta, "policy-document")
    if errors:
        label = name or source.origin
        raise SchemaError(
            f"Invalid metadata in policy document '{label}':\n" + "\n".join(f"- {e}" for e in errors),
            document=name or None,
            origin=source.origin,
            context={"errors": errors},
        )
    if not name:
        raise SchemaError(f"{source.origin}: policy document is missing a name", origin=source.origin)

    return PolicyDocument(
        name=name,
        description=str(meta.get("description") or "").strip(),
        directives=tuple(parse_body(parsed.content, name=name, origin=source.origin, default_mode=default_mode)),
        relations=_parse_relations(meta, name=name, origin=source.origin),
        applies_to=_parse_applicability(meta),
        origin=source.origin,
    )


__all__ = ["PolicySource", "parse_source", "parse_body", "MODE_MARKER"]
