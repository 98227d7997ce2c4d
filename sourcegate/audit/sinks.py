"""Newline-delimited JSON audit sinks.

Each append holds an exclusive ``fcntl.flock`` on the log file itself, never the
registry writer lock, so audit writes cannot stall registry mutations.
"""

from __future__ import annotations

import fcntl
import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel


class JsonlFileSink:
    """Append-only JSONL file. Raises OSError/TypeError/ValueError on failure."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def append(self, record: BaseModel | dict[str, Any]) -> None:
        payload = record.model_dump(mode="json") if isinstance(record, BaseModel) else record
        # Serialize before touching the file
        line = json.dumps(payload, ensure_ascii=False) + "\n"
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(line)
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def read_records(self) -> list[dict[str, Any]]:
        """Return every record in file order. Blank lines are skipped."""
        if not self.path.exists():
            return []
        records = []
        with open(self.path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    records.append(json.loads(line))
        return records
