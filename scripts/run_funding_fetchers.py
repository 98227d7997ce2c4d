#!/usr/bin/env python3
"""Fetch funding signals for every registry source and write funding proposals.

Usage:
    python scripts/run_funding_fetchers.py
    AVAILABLE_PROVIDERS=fec,form990 python scripts/run_funding_fetchers.py
    DEV_STUBS=1 python scripts/run_funding_fetchers.py   # deterministic synthetic data

Proposals land in <DATA_DIR>/funding_proposals.json unapproved; a reviewer must
approve them. Exits 0 on success, 1 on failure.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sourcegate.audit import AuditLogger
from sourcegate.config import get_settings
from sourcegate.errors import SourceGateError
from sourcegate.funding import run_funding_fetchers
from sourcegate.registry import Repository


def main() -> int:
    settings = get_settings()
    repository = Repository.from_settings(settings)
    audit_logger = AuditLogger.from_settings(settings)
    try:
        proposals = run_funding_fetchers(repository, settings, audit_logger=audit_logger)
        print(
            f"status=completed proposals={len(proposals)} "
            f"path={repository.funding_proposals.document.path}"
        )
        return 0
    except SourceGateError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    finally:
        audit_logger.close()


if __name__ == "__main__":
    sys.exit(main())
