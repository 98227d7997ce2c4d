#!/usr/bin/env python3
"""Ensure every registry source has owner_donations and note the seed run.

Usage:
    python scripts/seed_funding_signals.py

Exits 0 on success, 1 on failure.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sourcegate.config import get_settings
from sourcegate.errors import SourceGateError
from sourcegate.funding import seed_funding_signals
from sourcegate.registry import Repository


def main() -> int:
    settings = get_settings()
    try:
        sources = seed_funding_signals(Repository.from_settings(settings), settings)
    except SourceGateError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    print(f"status=completed sources_seeded={len(sources)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
