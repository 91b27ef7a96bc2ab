"""
policystack policy query command.

SUMMARY: Compose the effective ruleset for a working context
"""

from __future__ import annotations

import argparse
import sys

from policystack.cli import OutputFormatter, add_standard_flags, get_settings, load_snapshot
from policystack.core.exceptions import PolicyStackError
from policystack.core.models import Context
from policystack.core.query import query

SUMMARY = "Compose the effective ruleset for a working context"

EXIT_CONFLICTS = 2


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--language", "-l", default="", help="Language/runtime tag (e.g. python)")
    parser.add_argument(
        "--framework",
        "-f",
        action="append",
        dest="frameworks",
        default=[],
        help="Detected framework signal (repeatable)",
    )
    parser.add_argument("--file", dest="identifier", default="", help="File or component identifier")
    parser.add_argument(
        "--policy",
        "-p",
        action="append",
        dest="documents",
        default=[],
        help="Explicitly declared policy document (repeatable)",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    context = Context(
        identifier=args.identifier,
        language=args.language,
        framework_signals=frozenset(args.frameworks),
        documents=tuple(args.documents),
    )

    try:
        result = query(load_snapshot(get_settings(args)), context)
    except PolicyStackError as e:
        formatter.error(e)
        return 1

    if formatter.json_mode:
        formatter.json_output(result.to_dict())
    else:
        formatter.text("Applied: " + (", ".join(result.applied_documents) or "(none)"))
        for topic, entries in result.directives.items():
            formatter.text(f"\n## {topic}")
            for entry in entries:
                formatter.text(f"- {entry.statement}  ({entry.source})")
        for conflict in result.conflicts:
            formatter.text(f"\nCONFLICT on '{conflict.topic}':")
            for candidate in conflict.candidates:
                formatter.text(f"  - {candidate.source}: {candidate.statement}")

    return EXIT_CONFLICTS if result.has_conflicts else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
