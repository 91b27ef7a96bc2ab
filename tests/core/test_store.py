from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import pytest

from helpers.policies import policy_source, write_policy
from policystack.core.documents import DocumentStore, load_directories, read_sources
from policystack.core.documents.store import fingerprint_sources
from policystack.core.exceptions import NotFoundError, SchemaError


def _corpus():
    return [
        policy_source("python", "## errors\nRecover or re-raise.\n", relation=("extends", "base")),
        policy_source("base", "## errors\nCrash fast.\n"),
    ]


def test_load_builds_read_only_store_sorted_by_name() -> None:
    store = DocumentStore.load(_corpus())
    assert store.names() == ["base", "python"]
    assert len(store) == 2
    assert "python" in store
    assert store.get("python").targets == ("base",)
    with pytest.raises(dataclasses.FrozenInstanceError):
        store.get("base").name = "renamed"  # type: ignore[misc]


def test_get_unknown_document_raises_not_found() -> None:
    store = DocumentStore.load(_corpus())
    with pytest.raises(NotFoundError) as exc:
        store.get("rust")
    assert exc.value.name == "rust"
    assert exc.value.context["available"] == ["base", "python"]


def test_duplicate_names_abort_the_load() -> None:
    sources = [policy_source("base", "## a\nx\n"), policy_source("base", "## a\ny\n")]
    with pytest.raises(SchemaError, match="Duplicate policy document name 'base'"):
        DocumentStore.load(sources)


def test_relation_to_unknown_document_aborts_the_load() -> None:
    with pytest.raises(SchemaError) as exc:
        DocumentStore.load([policy_source("python", relation=("extends", "base"))])
    assert exc.value.document == "python"
    assert exc.value.context["target"] == "base"


def test_one_malformed_source_builds_no_store() -> None:
    sources = _corpus() + [policy_source("bad", relation=("inherits", "base"))]
    with pytest.raises(SchemaError):
        DocumentStore.load(sources)


def test_fingerprint_is_order_insensitive_and_content_sensitive() -> None:
    a = fingerprint_sources(_corpus())
    b = fingerprint_sources(list(reversed(_corpus())))
    changed = _corpus()
    changed[1] = policy_source("base", "## errors\nCrash slowly.\n")
    assert a == b
    assert a != fingerprint_sources(changed)
    assert DocumentStore.load(_corpus()).fingerprint() == a


def test_read_sources_skips_missing_directories(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    first = tmp_path / "first"
    first.mkdir()
    write_policy(first, "base", "## errors\nCrash fast.\n")
    (first / "notes.txt").write_text("ignored", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="policystack"):
        sources = read_sources([first, tmp_path / "missing"])

    assert [Path(s.origin).name for s in sources] == ["base.md"]
    assert "does not exist" in caplog.text


def test_load_directories_layers_directories(tmp_path: Path) -> None:
    low, high = tmp_path / "low", tmp_path / "high"
    low.mkdir()
    high.mkdir()
    write_policy(low, "base", "## errors\nCrash fast.\n")
    write_policy(high, "python", "## errors\nRecover.\n", relation=("supplements", "base"))

    store = load_directories([low, high])
    assert store.names() == ["base", "python"]
    assert store.get("python").origin == str(high / "python.md")


def test_undecodable_source_is_a_schema_error(tmp_path: Path) -> None:
    bad = tmp_path / "latin.md"
    bad.write_bytes(b"---\nname: latin\n---\n## naming\ncaf\xff\n")
    with pytest.raises(SchemaError) as exc:
        load_directories([tmp_path])
    assert exc.value.origin == str(bad)
    assert "latin.md" in str(exc.value)
