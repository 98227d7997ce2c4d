#!/usr/bin/env python3
"""Add or remove a source id on the evidence policy blacklist.

Usage:
    python scripts/policy_blacklist.py add-blacklist <source_id>
    python scripts/policy_blacklist.py remove-blacklist <source_id>
    python scripts/policy_blacklist.py --data-dir data/sources add-blacklist splc

Idempotent: adding an id already present (or removing an absent one) changes nothing.
Exits 0 on success, 1 on failure, 2 on usage errors.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sourcegate.config import get_settings
from sourcegate.errors import SourceGateError
from sourcegate.registry import Repository


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage the evidence policy blacklist.")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding policy.json (default: DATA_DIR setting)",
    )
    parser.add_argument("action", choices=["add-blacklist", "remove-blacklist"])
    parser.add_argument("source_id")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    repository = Repository(args.data_dir or get_settings().data_dir)
    source_id = args.source_id.strip()
    if not source_id:
        print("ERROR: source_id must not be empty", file=sys.stderr)
        return 2
    try:
        if args.action == "add-blacklist":
            changed = repository.policy.add_to_blacklist(source_id)
            verb = "added to blacklist" if changed else "already blacklisted"
        else:
            changed = repository.policy.remove_from_blacklist(source_id)
            verb = "removed from blacklist" if changed else "not blacklisted"
    except SourceGateError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    print(f"{verb}: {source_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
