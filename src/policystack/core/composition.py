"""Composition Engine.

Merges the directives of the applicable documents, in precedence order, into
one effective ruleset keyed by topic.

For each incoming directive on topic T:
- T not yet present: insert it.
- Existing entries from documents the incoming one builds on (strictly lower
  in the precedence order): ``override`` replaces them, ``augment`` appends.
  Replacements are recorded for observability; they are not conflicts.
- Existing entries from documents the order cannot rank against the incoming
  one (same tier, or unrelated overlays): handed to the Conflict Resolver.
  On conflict T is dropped from the effective directives and reported,
  until an ``override`` from a document building on every candidate
  replaces them all.
- Entries from the same document accumulate in document order.

"Strictly lower" means "is an ancestor through relations" by default. With
``strict_partial_order=False`` it is plain tier comparison.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence

from policystack.core.conflicts import resolve
from policystack.core.graph import PrecedenceGraph
from policystack.core.models import (
    CompositionResult,
    ConflictReport,
    EffectiveDirective,
    MergeMode,
    PolicyDocument,
    Replacement,
)

logger = logging.getLogger(__name__)


class Composer:
    """Composes matched documents against one precedence graph."""

    def __init__(self, graph: PrecedenceGraph, *, strict_partial_order: bool = True) -> None:
        self.graph = graph
        self.strict_partial_order = strict_partial_order

    def dominates(self, lower: str, upper: str) -> bool:
        """Whether ``upper`` may override directives from ``lower``."""
        if lower == upper:
            return False
        if self.strict_partial_order:
            return self.graph.is_ancestor(lower, upper)
        return self.graph.tier(lower) < self.graph.tier(upper)

    def compose(self, documents: Iterable[PolicyDocument]) -> CompositionResult:
        ordered: List[PolicyDocument] = []
        seen = set()
        for doc in sorted(documents, key=lambda d: (self.graph.tier(d.name), d.name)):
            if doc.name not in seen:
                seen.add(doc.name)
                ordered.append(doc)

        merged: Dict[str, List[EffectiveDirective]] = {}
        conflicts: Dict[str, List[EffectiveDirective]] = {}
        replacements: List[Replacement] = []

        for doc in ordered:
            tier = self.graph.tier(doc.name)
            for directive in doc.directives:
                incoming = EffectiveDirective.from_directive(directive, source=doc.name, tier=tier)
                self._apply(incoming, merged, conflicts, replacements)

        return CompositionResult(
            applied_documents=tuple(d.name for d in ordered),
            directives={topic: tuple(entries) for topic, entries in merged.items()},
            conflicts=tuple(ConflictReport(topic=t, candidates=tuple(c)) for t, c in conflicts.items()),
            replacements=tuple(replacements),
        )

    def _apply(
        self,
        incoming: EffectiveDirective,
        merged: Dict[str, List[EffectiveDirective]],
        conflicts: Dict[str, List[EffectiveDirective]],
        replacements: List[Replacement],
    ) -> None:
        topic = incoming.topic

        # A conflicted topic stays out of the ruleset until an override from a
        # document building on every candidate settles it.
        if topic in conflicts:
            candidates = conflicts[topic]
            if incoming.mode is MergeMode.OVERRIDE and all(
                self.dominates(c.source, incoming.source) for c in candidates
            ):
                del conflicts[topic]
                merged[topic] = [incoming]
                replaced = tuple(dict.fromkeys(c.source for c in candidates))
                replacements.append(Replacement(topic=topic, replaced=replaced, by=incoming.source))
                logger.debug("Topic '%s': %s resolves conflict between %s", topic, incoming.source, ", ".join(replaced))
                return
            candidates.append(incoming)
            return

        entries = merged.get(topic)
        if not entries:
            merged[topic] = [incoming]
            return

        dominated = [e for e in entries if self.dominates(e.source, incoming.source)]
        rivals = [e for e in entries if e.source != incoming.source and not self.dominates(e.source, incoming.source)]

        keep_incoming = True
        if rivals:
            outcome = resolve([*rivals, incoming])
            if isinstance(outcome, ConflictReport):
                del merged[topic]
                conflicts[topic] = list(outcome.candidates)
                return
            keep_incoming = any(d is incoming for d in outcome)

        if incoming.mode is MergeMode.OVERRIDE and dominated:
            entries = [e for e in entries if not any(e is d for d in dominated)]
            replaced = tuple(dict.fromkeys(e.source for e in dominated))
            replacements.append(Replacement(topic=topic, replaced=replaced, by=incoming.source))
            logger.debug("Topic '%s': %s overrides %s", topic, incoming.source, ", ".join(replaced))

        if keep_incoming:
            entries.append(incoming)
        merged[topic] = entries


def compose(
    graph: PrecedenceGraph,
    documents: Sequence[PolicyDocument],
    *,
    strict_partial_order: bool = True,
) -> CompositionResult:
    """Compose ``documents`` (typically the output of ``match``) into one ruleset."""
    return Composer(graph, strict_partial_order=strict_partial_order).compose(documents)


__all__ = ["Composer", "compose"]
