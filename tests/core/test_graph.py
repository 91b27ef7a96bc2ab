"""Tests for precedence graph construction, tier derivation and cycle detection."""
from __future__ import annotations

import pytest

from policystack.core.exceptions import CycleError, NotFoundError, SchemaError
from policystack.core.graph import build
from policystack.core.models import PolicyDocument, Relation, RelationKind


def doc(name: str, *targets: str, kind: RelationKind = RelationKind.EXTENDS) -> PolicyDocument:
    return PolicyDocument(name=name, relations=tuple(Relation(kind=kind, target=t) for t in targets))


def _assert_real_cycle(graph_docs, path) -> None:
    by_name = {d.name: d for d in graph_docs}
    assert path[0] == path[-1]
    for current, nxt in zip(path, path[1:]):
        assert nxt in by_name[current].targets


def test_tiers_are_derived_from_relations() -> None:
    graph = build(
        [
            doc("marimo", "python"),
            doc("python", "base", kind=RelationKind.SUPPLEMENTS),
            doc("react", "base", kind=RelationKind.SUPPLEMENTS),
            doc("base"),
        ]
    )
    assert dict(graph.tiers) == {"base": 0, "python": 1, "react": 1, "marimo": 2}
    assert graph.order == ("base", "python", "react", "marimo")
    assert graph.by_tier() == {0: ["base"], 1: ["python", "react"], 2: ["marimo"]}


def test_tier_is_longest_chain_over_multiple_targets() -> None:
    graph = build([doc("base"), doc("mid", "base"), doc("top", "mid"), doc("mixed", "base", "top")])
    assert graph.tier("mixed") == 3
    assert graph.ancestors("mixed") == frozenset({"base", "mid", "top"})


def test_ancestry_and_comparability() -> None:
    graph = build([doc("base"), doc("python", "base"), doc("react", "base"), doc("marimo", "python")])
    assert graph.is_ancestor("base", "marimo")
    assert not graph.is_ancestor("marimo", "base")
    assert graph.comparable("python", "marimo")
    assert not graph.comparable("react", "marimo")
    assert graph.dependents("base") == ("python", "react")
    assert graph.targets("marimo") == ("python",)


def test_two_document_cycle_reports_path() -> None:
    docs = [doc("a", "b"), doc("b", "a")]
    with pytest.raises(CycleError) as exc:
        build(docs)
    assert exc.value.path == ["a", "b", "a"]
    assert "a -> b -> a" in str(exc.value)


def test_self_cycle() -> None:
    with pytest.raises(CycleError) as exc:
        build([doc("a", "a")])
    assert exc.value.path == ["a", "a"]


def test_cycle_path_excludes_acyclic_prefix() -> None:
    docs = [doc("base"), doc("entry", "x"), doc("x", "y"), doc("y", "z"), doc("z", "x", "base")]
    with pytest.raises(CycleError) as exc:
        build(docs)
    path = exc.value.path
    _assert_real_cycle(docs, path)
    assert "entry" not in path
    assert set(path) == {"x", "y", "z"}


def test_unknown_target_and_duplicate_names() -> None:
    with pytest.raises(NotFoundError):
        build([doc("python", "base")])
    with pytest.raises(SchemaError):
        build([doc("base"), doc("base")])


def test_unknown_lookup_raises_not_found() -> None:
    graph = build([doc("base")])
    with pytest.raises(NotFoundError):
        graph.tier("python")


def test_to_dict_lists_edges_from_target_to_dependent() -> None:
    graph = build([doc("base"), doc("python", "base", kind=RelationKind.SUPPLEMENTS)])
    assert graph.to_dict() == {
        "order": ["base", "python"],
        "tiers": {"base": 0, "python": 1},
        "edges": [{"from": "base", "to": "python", "kind": "supplements"}],
    }


def test_long_relation_chain_builds_without_recursion_limit() -> None:
    depth = 1500
    docs = [doc("n0")] + [doc(f"n{i}", f"n{i - 1}") for i in range(1, depth)]
    graph = build(docs)
    assert graph.tier(f"n{depth - 1}") == depth - 1
    assert graph.is_ancestor("n0", f"n{depth - 1}")


def test_long_cycle_is_reported_without_recursion_limit() -> None:
    depth = 1500
    docs = [doc(f"n{i}", f"n{(i + 1) % depth}") for i in range(depth)]
    with pytest.raises(CycleError) as exc:
        build(docs)
    _assert_real_cycle(docs, exc.value.path)
    assert len(exc.value.path) == depth + 1
