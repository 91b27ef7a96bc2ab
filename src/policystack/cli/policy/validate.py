"""
policystack policy validate command.

SUMMARY: Load all policy documents and check relations for cycles
"""

from __future__ import annotations

import argparse
import sys

from policystack.cli import OutputFormatter, add_standard_flags, get_settings, load_snapshot
from policystack.core.exceptions import PolicyStackError

SUMMARY = "Load all policy documents and check relations for cycles"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        settings = get_settings(args)
        snapshot = load_snapshot(settings)
    except PolicyStackError as e:
        formatter.error(e)
        return 1

    data = {
        "status": "ok",
        "documents": len(snapshot.store),
        "tiers": max(snapshot.graph.tiers.values(), default=-1) + 1,
        "fingerprint": snapshot.fingerprint,
        "directories": [str(d) for d in settings.policy_directories()],
    }
    if formatter.json_mode:
        formatter.json_output(data)
    else:
        formatter.text(f"OK: {data['documents']} documents across {data['tiers']} tiers")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
