"""
Data models for policystack.

Everything here is immutable: documents are frozen once loaded, contexts are
supplied per query and composition results are never mutated after
construction.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from policystack.core.utils.patterns import matches_any_pattern

_TOPIC_WS = re.compile(r"[\s_]+")


def normalize_topic(raw: str) -> str:
    """Normalize a topic tag: trimmed, lower-cased, whitespace collapsed to '-'.

    >>> normalize_topic("  Error Handling ")
    'error-handling'
    """
    return _TOPIC_WS.sub("-", str(raw or "").strip().lower()).strip("-")


def normalize_tag(raw: Any) -> str:
    """Normalize a language/framework tag for equality tests."""
    return str(raw or "").strip().lower()


class MergeMode(str, Enum):
    """How a directive combines with a lower-tier directive on the same topic."""

    OVERRIDE = "override"
    AUGMENT = "augment"

    @classmethod
    def parse(cls, raw: Any) -> "MergeMode":
        value = normalize_tag(raw)
        for mode in cls:
            if mode.value == value:
                return mode
        raise ValueError(f"Unknown merge mode: {raw!r} (expected 'override' or 'augment')")


class RelationKind(str, Enum):
    SUPPLEMENTS = "supplements"
    EXTENDS = "extends"

    @classmethod
    def parse(cls, raw: Any) -> "RelationKind":
        value = normalize_tag(raw)
        for kind in cls:
            if kind.value == value:
                return kind
        raise ValueError(f"Unknown relation kind: {raw!r} (expected 'supplements' or 'extends')")


@dataclass(frozen=True)
class Relation:
    """A declared relationship from one document to the document it builds on."""

    kind: RelationKind
    target: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "target": self.target}


@dataclass(frozen=True)
class Directive:
    """One atomic, topic-tagged rule statement within a policy document."""

    topic: str
    statement: str
    mode: MergeMode = MergeMode.OVERRIDE
    examples: Tuple[str, ...] = ()
    anti_patterns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Context:
    """Descriptor of the working situation a query resolves policies for.

    Attributes:
        identifier: File or component identifier (matched by file patterns)
        language: Language/runtime tag (e.g. "python")
        framework_signals: Detected framework signals (e.g. "react", "marimo")
        documents: Explicitly declared extension documents (must exist)
    """

    identifier: str = ""
    language: str = ""
    framework_signals: FrozenSet[str] = frozenset()
    documents: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "identifier", str(self.identifier or ""))
        object.__setattr__(self, "language", normalize_tag(self.language))
        object.__setattr__(
            self,
            "framework_signals",
            frozenset(normalize_tag(s) for s in (self.framework_signals or ()) if normalize_tag(s)),
        )
        object.__setattr__(
            self,
            "documents",
            tuple(dict.fromkeys(str(d).strip() for d in (self.documents or ()) if str(d).strip())),
        )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Context":
        """Build a Context from the serialized query record.

        Accepts ``{identifier, language, frameworkSignals, documents}``.
        """
        signals = payload.get("frameworkSignals", payload.get("framework_signals")) or ()
        if isinstance(signals, str):
            signals = [signals]
        documents = payload.get("documents") or ()
        if isinstance(documents, str):
            documents = [documents]
        return cls(
            identifier=str(payload.get("identifier") or ""),
            language=str(payload.get("language") or ""),
            framework_signals=frozenset(signals),
            documents=tuple(documents),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "language": self.language,
            "frameworkSignals": sorted(self.framework_signals),
            "documents": list(self.documents),
        }


@dataclass(frozen=True)
class Applicability:
    """Applicability predicate a document declares over a Context.

    Each declared criterion must hold; values within a criterion are
    alternatives. A predicate with no criteria is always satisfied.
    """

    languages: FrozenSet[str] = frozenset()
    frameworks: FrozenSet[str] = frozenset()
    file_patterns: Tuple[str, ...] = ()

    @property
    def is_universal(self) -> bool:
        return not (self.languages or self.frameworks or self.file_patterns)

    def matches(self, context: Context) -> bool:
        if self.languages and context.language not in self.languages:
            return False
        if self.frameworks and not (self.frameworks & context.framework_signals):
            return False
        if self.file_patterns:
            if not context.identifier:
                return False
            if not matches_any_pattern(context.identifier, self.file_patterns):
                return False
        return True

    def to_dict(self) -> Dict[str, List[str]]:
        out: Dict[str, List[str]] = {}
        if self.languages:
            out["languages"] = sorted(self.languages)
        if self.frameworks:
            out["frameworks"] = sorted(self.frameworks)
        if self.file_patterns:
            out["filePatterns"] = list(self.file_patterns)
        return out


@dataclass(frozen=True)
class PolicyDocument:
    """A loaded policy document. Immutable once loaded."""

    name: str
    description: str = ""
    directives: Tuple[Directive, ...] = ()
    relations: Tuple[Relation, ...] = ()
    applies_to: Applicability = field(default_factory=Applicability)
    origin: Optional[str] = None

    @property
    def targets(self) -> Tuple[str, ...]:
        return tuple(r.target for r in self.relations)

    def topics(self) -> List[str]:
        return list(dict.fromkeys(d.topic for d in self.directives))

    def directives_for(self, topic: str) -> List[Directive]:
        key = normalize_topic(topic)
        return [d for d in self.directives if d.topic == key]

    def applies(self, context: Context) -> bool:
        return self.applies_to.matches(context)


@dataclass(frozen=True)
class EffectiveDirective:
    """A directive as it appears in a composition result, tagged with its source."""

    topic: str
    statement: str
    source: str
    tier: int
    mode: MergeMode = MergeMode.OVERRIDE
    examples: Tuple[str, ...] = ()
    anti_patterns: Tuple[str, ...] = ()

    @classmethod
    def from_directive(cls, directive: Directive, *, source: str, tier: int) -> "EffectiveDirective":
        return cls(
            topic=directive.topic,
            statement=directive.statement,
            source=source,
            tier=tier,
            mode=directive.mode,
            examples=directive.examples,
            anti_patterns=directive.anti_patterns,
        )

    def to_dict(self) -> Dict[str, str]:
        return {"statement": self.statement, "source": self.source}


@dataclass(frozen=True)
class Replacement:
    """Record of a cross-tier override (observability only, not a conflict)."""

    topic: str
    replaced: Tuple[str, ...]
    by: str

    def to_dict(self) -> Dict[str, Any]:
        return {"topic": self.topic, "replaced": list(self.replaced), "by": self.by}


@dataclass(frozen=True)
class ConflictReport:
    """Incompatible directives on one topic from documents the precedence order cannot rank.

    Not an error: a normal composition output surfaced to the caller.
    """

    topic: str
    candidates: Tuple[EffectiveDirective, ...]

    @property
    def sources(self) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(c.source for c in self.candidates))

    def to_dict(self) -> Dict[str, Any]:
        return {"topic": self.topic, "candidates": [c.to_dict() for c in self.candidates]}


@dataclass(frozen=True)
class CompositionResult:
    """Outcome of composing the applicable documents for one context."""

    applied_documents: Tuple[str, ...]
    directives: Mapping[str, Tuple[EffectiveDirective, ...]]
    conflicts: Tuple[ConflictReport, ...] = ()
    replacements: Tuple[Replacement, ...] = ()

    def __post_init__(self) -> None:
        frozen = {topic: tuple(entries) for topic, entries in dict(self.directives).items()}
        object.__setattr__(self, "directives", MappingProxyType(frozen))
        object.__setattr__(self, "applied_documents", tuple(self.applied_documents))
        object.__setattr__(self, "conflicts", tuple(self.conflicts))
        object.__setattr__(self, "replacements", tuple(self.replacements))

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def statements(self, topic: str) -> List[str]:
        """Effective statements for ``topic`` in merge order (empty if absent)."""
        return [d.statement for d in self.directives.get(normalize_topic(topic), ())]

    def conflict_for(self, topic: str) -> Optional[ConflictReport]:
        key = normalize_topic(topic)
        for report in self.conflicts:
            if report.topic == key:
                return report
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "appliedDocuments": list(self.applied_documents),
            "directives": {
                topic: [d.to_dict() for d in entries] for topic, entries in self.directives.items()
            },
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


__all__ = [
    "normalize_topic",
    "normalize_tag",
    "MergeMode",
    "RelationKind",
    "Relation",
    "Directive",
    "Context",
    "Applicability",
    "PolicyDocument",
    "EffectiveDirective",
    "Replacement",
    "ConflictReport",
    "CompositionResult",
]
