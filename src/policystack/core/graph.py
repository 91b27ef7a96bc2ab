"""Precedence graph construction.

Each declared relation ("python extends base") becomes an edge from the
target to the document that builds on it. The graph must be acyclic; tiers
are derived from it rather than declared:

    tier(doc) = 0                              if doc declares no relation
    tier(doc) = max(tier(t) for t in targets) + 1  otherwise

Documents with no relation path between them are unordered (a partial
order), which is what the composition step relies on to detect conflicts.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Tuple

from policystack.core.exceptions import CycleError, NotFoundError, SchemaError
from policystack.core.models import PolicyDocument

logger = logging.getLogger(__name__)

_WHITE, _GRAY, _BLACK = 0, 1, 2


@dataclass(frozen=True)
class PrecedenceGraph:
    """Acyclic relation graph over policy documents with derived tiers.

    Attributes:
        documents: Documents by name
        tiers: Tier of each document (0 = base)
        order: Topological order: tier ascending, then name
    """

    documents: Mapping[str, PolicyDocument]
    tiers: Mapping[str, int]
    order: Tuple[str, ...]
    _targets: Mapping[str, Tuple[str, ...]]
    _dependents: Mapping[str, Tuple[str, ...]]
    _ancestors: Mapping[str, FrozenSet[str]]

    def _require(self, name: str) -> None:
        if name not in self.documents:
            raise NotFoundError(f"Policy document not found: '{name}'", name=name)

    def document(self, name: str) -> PolicyDocument:
        self._require(name)
        return self.documents[name]

    def tier(self, name: str) -> int:
        self._require(name)
        return self.tiers[name]

    def targets(self, name: str) -> Tuple[str, ...]:
        """Documents ``name`` directly extends or supplements."""
        self._require(name)
        return self._targets[name]

    def dependents(self, name: str) -> Tuple[str, ...]:
        """Documents that directly extend or supplement ``name``."""
        self._require(name)
        return self._dependents[name]

    def ancestors(self, name: str) -> FrozenSet[str]:
        """All documents ``name`` transitively builds on."""
        self._require(name)
        return self._ancestors[name]

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return ancestor in self.ancestors(descendant)

    def comparable(self, a: str, b: str) -> bool:
        """True when a relation path orders ``a`` and ``b`` (or they are the same document)."""
        return a == b or self.is_ancestor(a, b) or self.is_ancestor(b, a)

    def edges(self) -> List[Tuple[str, str, str]]:
        """``(target, dependent, kind)`` triples in topological order."""
        out: List[Tuple[str, str, str]] = []
        for name in self.order:
            for relation in sorted(self.documents[name].relations, key=lambda r: r.target):
                out.append((relation.target, name, relation.kind.value))
        return out

    def by_tier(self) -> Dict[int, List[str]]:
        grouped: Dict[int, List[str]] = {}
        for name in self.order:
            grouped.setdefault(self.tiers[name], []).append(name)
        return grouped

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order": list(self.order),
            "tiers": {name: self.tiers[name] for name in self.order},
            "edges": [{"from": t, "to": d, "kind": k} for t, d, k in self.edges()],
        }


def build(documents: Iterable[PolicyDocument]) -> PrecedenceGraph:
    """Build the precedence graph and assign tiers.

    Raises:
        SchemaError: If two documents share a name
        NotFoundError: If a relation names a document not in ``documents``
        CycleError: If the relations contain a cycle (with the exact path)
    """
    docs: Dict[str, PolicyDocument] = {}
    for doc in documents:
        if doc.name in docs:
            raise SchemaError(f"Duplicate policy document name: '{doc.name}'", document=doc.name)
        docs[doc.name] = doc

    targets: Dict[str, Tuple[str, ...]] = {}
    dependents: Dict[str, List[str]] = {name: [] for name in docs}
    for name in sorted(docs):
        tgts = tuple(sorted({r.target for r in docs[name].relations}))
        for target in tgts:
            if target not in docs:
                raise NotFoundError(
                    f"Policy document '{name}' references unknown document '{target}'",
                    name=target,
                    context={"document": name},
                )
            dependents[target].append(name)
        targets[name] = tgts

    color: Dict[str, int] = {name: _WHITE for name in docs}
    tiers: Dict[str, int] = {}
    ancestors: Dict[str, FrozenSet[str]] = {}

    def finish(name: str) -> None:
        color[name] = _BLACK
        tiers[name] = max((tiers[t] + 1 for t in targets[name]), default=0)
        acc = set(targets[name])
        for target in targets[name]:
            acc |= ancestors[target]
        ancestors[name] = frozenset(acc)

    # Iterative DFS: ``stack`` is the current path, ``pending`` the unvisited
    # targets of each node on it.
    for root in sorted(docs):
        if color[root] != _WHITE:
            continue
        color[root] = _GRAY
        stack: List[str] = [root]
        pending: List[Iterator[str]] = [iter(targets[root])]
        while stack:
            for target in pending[-1]:
                if color[target] == _GRAY:
                    raise CycleError(stack[stack.index(target):] + [target])
                if color[target] == _WHITE:
                    color[target] = _GRAY
                    stack.append(target)
                    pending.append(iter(targets[target]))
                    break
            else:
                pending.pop()
                finish(stack.pop())

    order = tuple(sorted(docs, key=lambda n: (tiers[n], n)))
    logger.debug("Precedence order: %s", ", ".join(f"{n}@{tiers[n]}" for n in order))

    return PrecedenceGraph(
        documents=MappingProxyType({n: docs[n] for n in order}),
        tiers=MappingProxyType({n: tiers[n] for n in order}),
        order=order,
        _targets=MappingProxyType(targets),
        _dependents=MappingProxyType({n: tuple(v) for n, v in dependents.items()}),
        _ancestors=MappingProxyType(ancestors),
    )


__all__ = ["PrecedenceGraph", "build"]
