"""End-to-end tests for the ``policystack policy`` commands."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from helpers.policies import write_policy
from policystack.cli._dispatcher import build_parser, discover_commands, main


def run(capsys: pytest.CaptureFixture, *argv: str):
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


@pytest.fixture
def overlays(policy_dir: Path) -> Path:
    write_policy(policy_dir, "base", "## state\nAvoid globals.\n## naming\nBe descriptive.\n")
    write_policy(
        policy_dir,
        "react",
        "## state\nKeep state local.\n",
        relation=("supplements", "base"),
        applies_to={"frameworks": ["react"]},
    )
    write_policy(
        policy_dir,
        "vue",
        "## state\nUse a global store.\n",
        relation=("supplements", "base"),
        applies_to={"frameworks": ["vue"]},
    )
    return policy_dir


def test_policy_domain_commands_are_discovered() -> None:
    assert set(discover_commands("policy")) == {"list", "show", "graph", "validate", "query"}
    help_text = build_parser().format_help()
    assert "policy" in help_text


def test_no_domain_prints_help(capsys) -> None:
    code, out, _ = run(capsys)
    assert code == 0
    assert "policystack" in out


def test_query_bundled_corpus_json(project_root: Path, capsys) -> None:
    code, out, _ = run(capsys, "policy", "query", "--language", "python", "--json", "--repo-root", str(project_root))
    assert code == 0
    data = json.loads(out)
    assert data["appliedDocuments"] == ["base", "python"]
    assert data["conflicts"] == []
    assert {d["source"] for d in data["directives"]["error-handling"]} == {"python"}


def test_query_text_output(project_root: Path, capsys) -> None:
    code, out, _ = run(capsys, "policy", "query", "--language", "go", "--repo-root", str(project_root))
    assert code == 0
    assert out.startswith("Applied: base")
    assert "## error-handling" in out


def test_query_conflict_exit_code(overlays: Path, project_root: Path, capsys) -> None:
    code, out, _ = run(
        capsys,
        "policy", "query", "-f", "react", "-f", "vue", "--json", "--repo-root", str(project_root),
    )
    assert code == 2
    data = json.loads(out)
    assert "state" not in data["directives"]
    assert data["conflicts"][0]["topic"] == "state"
    assert {c["source"] for c in data["conflicts"][0]["candidates"]} == {"react", "vue"}


def test_query_declared_policy_and_unknown_policy(overlays: Path, project_root: Path, capsys) -> None:
    code, out, _ = run(capsys, "policy", "query", "--policy", "react", "--json", "--repo-root", str(project_root))
    assert code == 0
    assert json.loads(out)["appliedDocuments"] == ["base", "react"]

    code, out, err = run(capsys, "policy", "query", "--policy", "rust", "--json", "--repo-root", str(project_root))
    assert code == 1
    assert out == ""
    payload = json.loads(err)
    assert payload["error"] == "NotFoundError"
    assert payload["context"]["name"] == "rust"


def test_list_and_show(overlays: Path, project_root: Path, capsys) -> None:
    code, out, _ = run(capsys, "policy", "list", "--json", "--repo-root", str(project_root))
    assert code == 0
    docs = json.loads(out)["documents"]
    assert [(d["name"], d["tier"]) for d in docs] == [("base", 0), ("react", 1), ("vue", 1)]
    assert docs[1]["relations"] == [{"kind": "supplements", "target": "base"}]

    code, out, _ = run(capsys, "policy", "show", "base", "--topic", "naming", "--json", "--repo-root", str(project_root))
    assert code == 0
    shown = json.loads(out)
    assert [d["statement"] for d in shown["directives"]] == ["Be descriptive."]

    code, _, err = run(capsys, "policy", "show", "missing", "--repo-root", str(project_root))
    assert code == 1
    assert "not found" in err


def test_graph_json(overlays: Path, project_root: Path, capsys) -> None:
    code, out, _ = run(capsys, "policy", "graph", "--json", "--repo-root", str(project_root))
    assert code == 0
    data = json.loads(out)
    assert data["tiers"] == {"base": 0, "react": 1, "vue": 1}
    assert {"from": "base", "to": "vue", "kind": "supplements"} in data["edges"]


def test_validate_reports_cycle(policy_dir: Path, project_root: Path, capsys) -> None:
    write_policy(policy_dir, "a", relation=("extends", "b"))
    write_policy(policy_dir, "b", relation=("extends", "a"))
    code, out, err = run(capsys, "policy", "validate", "--json", "--repo-root", str(project_root))
    assert code == 1
    payload = json.loads(err)
    assert payload["error"] == "CycleError"
    assert payload["context"]["path"] == ["a", "b", "a"]


def test_validate_ok(project_root: Path, capsys) -> None:
    code, out, _ = run(capsys, "policy", "validate", "--repo-root", str(project_root))
    assert code == 0
    assert out.startswith("OK: 4 documents across 3 tiers")


def test_config_error_is_reported(project_root: Path, write_config, capsys) -> None:
    write_config({"composition": {"defaultMergeMode": "merge"}})
    code, _, err = run(capsys, "policy", "list", "--json", "--repo-root", str(project_root))
    assert code == 1
    assert json.loads(err)["error"] == "ConfigError"


def test_validate_reports_undecodable_source(policy_dir: Path, project_root: Path, capsys) -> None:
    (policy_dir / "latin.md").write_bytes(b"---\nname: latin\n---\n## naming\ncaf\xff\n")
    code, _, err = run(capsys, "policy", "validate", "--json", "--repo-root", str(project_root))
    assert code == 1
    payload = json.loads(err)
    assert payload["error"] == "SchemaError"
    assert payload["context"]["origin"].endswith("latin.md")
