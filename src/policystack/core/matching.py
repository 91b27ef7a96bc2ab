"""Match Engine: decides which documents apply to a context.

A document applies when its applicability predicate holds for the context
(no predicate = always applicable) or when the context explicitly declares
it. The selection is returned in precedence order: tier ascending, ties
broken by document name, so repeated queries over an unchanged snapshot
always agree.
"""
from __future__ import annotations

import logging
from typing import List

from policystack.core.graph import PrecedenceGraph
from policystack.core.models import Context, PolicyDocument

logger = logging.getLogger(__name__)


def match(graph: PrecedenceGraph, context: Context) -> List[PolicyDocument]:
    """Return the documents applicable to ``context`` in precedence order.

    Raises:
        NotFoundError: If the context declares a document the graph does not hold.
    """
    declared = set()
    for name in context.documents:
        graph.document(name)
        declared.add(name)

    selected: List[PolicyDocument] = []
    for name in graph.order:
        doc = graph.documents[name]
        if name in declared or doc.applies(context):
            selected.append(doc)

    selected.sort(key=lambda d: (graph.tiers[d.name], d.name))
    logger.debug(
        "Matched %s for context identifier=%r language=%r",
        [d.name for d in selected],
        context.identifier,
        context.language,
    )
    return selected


__all__ = ["match"]
