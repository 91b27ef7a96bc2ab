"""Conflict Resolver.

Handles directives on one topic that come from documents the precedence
order cannot rank against each other (same tier, or unrelated overlays).
Two such directives are compatible when their statements are textually
identical or either is ``augment``; anything else is reported, never
arbitrated.
"""
from __future__ import annotations

import logging
from itertools import combinations
from typing import Sequence, Tuple, Union

from policystack.core.models import ConflictReport, EffectiveDirective, MergeMode

logger = logging.getLogger(__name__)

Resolution = Union[Tuple[EffectiveDirective, ...], ConflictReport]


def compatible(a: EffectiveDirective, b: EffectiveDirective) -> bool:
    """Whether ``a`` and ``b`` can stand together on the same topic."""
    if a.source == b.source:
        return True
    if a.mode is MergeMode.AUGMENT or b.mode is MergeMode.AUGMENT:
        return True
    return a.statement.strip() == b.statement.strip()


def resolve(group: Sequence[EffectiveDirective]) -> Resolution:
    """Reconcile an unranked group of same-topic directives.

    Returns the reconciled directives (identical statements collapsed to their
    first occurrence, order otherwise preserved) or a ConflictReport listing
    every candidate when any pair from different documents is incompatible.
    """
    directives = tuple(group)
    if not directives:
        return ()
    topics = {d.topic for d in directives}
    if len(topics) != 1:
        raise ValueError(f"resolve() expects a single topic, got {sorted(topics)}")

    if not all(compatible(a, b) for a, b in combinations(directives, 2)):
        report = ConflictReport(topic=directives[0].topic, candidates=directives)
        logger.info(
            "Conflict on topic '%s' between %s",
            report.topic,
            ", ".join(report.sources),
        )
        return report

    seen = set()
    kept = []
    for directive in directives:
        key = directive.statement.strip()
        if key in seen:
            continue
        seen.add(key)
        kept.append(directive)
    return tuple(kept)


__all__ = ["Resolution", "compatible", "resolve"]
