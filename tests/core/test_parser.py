"""Tests for policy source parsing (frontmatter metadata + topic sections)."""
from __future__ import annotations

import pytest

from helpers.policies import policy_source
from policystack.core.documents import PolicySource, parse_body, parse_source
from policystack.core.exceptions import SchemaError
from policystack.core.models import MergeMode, RelationKind


def test_bullet_list_yields_one_directive_per_bullet() -> None:
    doc = parse_source(
        policy_source(
            "base",
            """
            # Heading ignored
            Intro text before any topic is ignored.

            ## Error Handling
            - Crash fast.
            - Never swallow exceptions
              without logging them.
            """,
        )
    )
    assert [d.topic for d in doc.directives] == ["error-handling", "error-handling"]
    assert [d.statement for d in doc.directives] == [
        "Crash fast.",
        "Never swallow exceptions without logging them.",
    ]
    assert all(d.mode is MergeMode.OVERRIDE for d in doc.directives)


def test_paragraph_prose_is_a_single_directive() -> None:
    doc = parse_source(
        policy_source(
            "base",
            """
            ## naming
            Name things by what they do.
            Not by how they work.
            """,
        )
    )
    assert len(doc.directives) == 1
    assert doc.directives[0].statement == "Name things by what they do.\nNot by how they work."


def test_mode_marker_sets_merge_mode_and_is_stripped() -> None:
    doc = parse_source(
        policy_source(
            "base",
            """
            ## testing
            <!-- MODE: augment -->
            - Ship a failing test first.
            """,
        )
    )
    (directive,) = doc.directives
    assert directive.mode is MergeMode.AUGMENT
    assert directive.statement == "Ship a failing test first."


def test_default_mode_applies_when_no_marker() -> None:
    directives = parse_body("## typing\nAnnotate.\n", name="x", origin="x.md", default_mode=MergeMode.AUGMENT)
    assert directives[0].mode is MergeMode.AUGMENT


def test_conflicting_mode_markers_are_rejected() -> None:
    with pytest.raises(SchemaError, match="conflicting merge modes"):
        parse_body(
            "## t\n<!-- MODE: augment -->\n<!-- MODE: override -->\nText.\n",
            name="x",
            origin="x.md",
        )


def test_unknown_mode_marker_is_rejected() -> None:
    with pytest.raises(SchemaError, match="Unknown merge mode"):
        parse_body("## t\n<!-- MODE: merge -->\nText.\n", name="x", origin="x.md")


def test_examples_and_anti_patterns_attach_to_section_directives() -> None:
    doc = parse_source(
        policy_source(
            "python",
            """
            ## error-handling
            - Only catch exceptions with a recovery path.

            ### Examples
            ```python
            except KeyError:
                value = compute(key)
            ```

            ### Anti-patterns
            - `except Exception: pass`

            ## typing
            Annotate public functions.
            """,
        )
    )
    handling, typing = doc.directives
    assert handling.examples == ("except KeyError:\n    value = compute(key)",)
    assert handling.anti_patterns == ("`except Exception: pass`",)
    assert typing.examples == ()


def test_headings_inside_code_fences_are_not_topics() -> None:
    doc = parse_source(
        policy_source(
            "base",
            """
            ## comments
            Explain constraints.

            ### Examples
            ```markdown
            ## not-a-topic
            ```
            """,
        )
    )
    assert doc.topics() == ["comments"]


def test_document_without_sections_has_no_directives() -> None:
    doc = parse_source(policy_source("empty", "Just prose, no topics.\n"))
    assert doc.directives == ()


def test_relations_and_applicability_are_parsed() -> None:
    doc = parse_source(
        policy_source(
            "marimo",
            "## ui\nUse mo.ui.\n",
            relation=("extends", "python"),
            relations=[("supplements", "base")],
            applies_to={"languages": ["Python"], "frameworks": ["marimo"], "filePatterns": ["*.py"]},
            description="Reactive notebooks",
        )
    )
    assert [(r.kind, r.target) for r in doc.relations] == [
        (RelationKind.EXTENDS, "python"),
        (RelationKind.SUPPLEMENTS, "base"),
    ]
    assert doc.applies_to.languages == frozenset({"python"})
    assert doc.applies_to.file_patterns == ("*.py",)
    assert doc.description == "Reactive notebooks"


def test_duplicate_relation_target_is_rejected() -> None:
    with pytest.raises(SchemaError, match="more than one relation"):
        parse_source(
            policy_source("python", relation=("extends", "base"), relations=[("supplements", "base")])
        )


def test_unknown_relation_kind_is_a_schema_error() -> None:
    source = PolicySource(
        origin="bad.md",
        text="---\nname: bad\nrelation: {kind: inherits, target: base}\n---\n",
    )
    with pytest.raises(SchemaError) as exc:
        parse_source(source)
    assert exc.value.document == "bad"
    assert "relation/kind" in str(exc.value)


def test_unknown_applicability_key_is_a_schema_error() -> None:
    source = PolicySource(origin="bad.md", text="---\nname: bad\nappliesTo: {runtime: [node]}\n---\n")
    with pytest.raises(SchemaError, match="appliesTo"):
        parse_source(source)


def test_missing_name_reports_origin() -> None:
    source = PolicySource(origin="policies/anon.md", text="---\ndescription: nameless\n---\n## t\nx\n")
    with pytest.raises(SchemaError) as exc:
        parse_source(source)
    assert "policies/anon.md" in str(exc.value)
    assert exc.value.origin == "policies/anon.md"


def test_malformed_frontmatter_is_a_schema_error() -> None:
    source = PolicySource(origin="broken.md", text="---\nname: [oops\n---\n")
    with pytest.raises(SchemaError, match="broken.md"):
        parse_source(source)
