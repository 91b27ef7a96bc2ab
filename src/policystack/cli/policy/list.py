"""
policystack policy list command.

SUMMARY: List loaded policy documents with tier, relations and applicability
"""

from __future__ import annotations

import argparse
import sys

from policystack.cli import OutputFormatter, add_standard_flags, get_settings, load_snapshot
from policystack.core.exceptions import PolicyStackError

SUMMARY = "List loaded policy documents with tier, relations and applicability"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        snapshot = load_snapshot(get_settings(args))
    except PolicyStackError as e:
        formatter.error(e)
        return 1

    graph = snapshot.graph
    rows = []
    for name in graph.order:
        doc = graph.document(name)
        rows.append(
            {
                "name": name,
                "tier": graph.tier(name),
                "description": doc.description,
                "relations": [r.to_dict() for r in doc.relations],
                "appliesTo": doc.applies_to.to_dict(),
                "directives": len(doc.directives),
                "origin": doc.origin,
            }
        )

    if formatter.json_mode:
        formatter.json_output({"documents": rows})
        return 0

    for row in rows:
        rel = ", ".join(f"{r['kind']} {r['target']}" for r in row["relations"])
        applies = row["appliesTo"] or "always"
        formatter.text(f"[{row['tier']}] {row['name']}" + (f" ({rel})" if rel else ""))
        formatter.text_kv("applies", applies)
        formatter.text_kv("directives", row["directives"])
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
