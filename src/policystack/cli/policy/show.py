"""
policystack policy show command.

SUMMARY: Show one policy document's directives
"""

from __future__ import annotations

import argparse
import sys

from policystack.cli import OutputFormatter, add_standard_flags, get_settings, load_snapshot
from policystack.core.exceptions import PolicyStackError

SUMMARY = "Show one policy document's directives"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", help="Policy document name")
    parser.add_argument(
        "--topic",
        "-t",
        help="Only show directives on this topic",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        snapshot = load_snapshot(get_settings(args))
        doc = snapshot.store.get(args.name)
    except PolicyStackError as e:
        formatter.error(e)
        return 1

    directives = doc.directives_for(args.topic) if args.topic else list(doc.directives)

    if formatter.json_mode:
        formatter.json_output(
            {
                "name": doc.name,
                "description": doc.description,
                "tier": snapshot.graph.tier(doc.name),
                "relations": [r.to_dict() for r in doc.relations],
                "appliesTo": doc.applies_to.to_dict(),
                "directives": [
                    {
                        "topic": d.topic,
                        "statement": d.statement,
                        "mode": d.mode.value,
                        "examples": list(d.examples),
                        "antiPatterns": list(d.anti_patterns),
                    }
                    for d in directives
                ],
            }
        )
        return 0

    formatter.text(f"{doc.name} (tier {snapshot.graph.tier(doc.name)})")
    if doc.description:
        formatter.text(f"  {doc.description}")
    current = None
    for d in directives:
        if d.topic != current:
            current = d.topic
            formatter.text(f"\n## {d.topic}")
        suffix = " [augment]" if d.mode.value == "augment" else ""
        formatter.text(f"- {d.statement}{suffix}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
