"""
policystack policy graph command.

SUMMARY: Show the precedence graph (tiers and relation edges)
"""

from __future__ import annotations

import argparse
import sys

from policystack.cli import OutputFormatter, add_standard_flags, get_settings, load_snapshot
from policystack.core.exceptions import PolicyStackError

SUMMARY = "Show the precedence graph (tiers and relation edges)"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        graph = load_snapshot(get_settings(args)).graph
    except PolicyStackError as e:
        formatter.error(e)
        return 1

    if formatter.json_mode:
        formatter.json_output(graph.to_dict())
        return 0

    for tier, names in graph.by_tier().items():
        formatter.text(f"tier {tier}: {', '.join(names)}")
    for target, dependent, kind in graph.edges():
        formatter.text(f"  {dependent} {kind} {target}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
