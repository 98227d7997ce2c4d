"""JSON document storage with a single-writer lock.

Writers are serialised in-process with an RLock and across processes (e.g. several
gunicorn workers) with an exclusive ``fcntl.flock`` on a sidecar lock file. Documents
are replaced atomically (temp file + os.replace) so lock-free readers always see a
complete document. A document's version is the SHA-256 of its bytes.
"""

from __future__ import annotations

import fcntl
import hashlib
import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sourcegate.errors import ConfigurationError, RegistryConflictError, RegistryWriteError

logger = logging.getLogger(__name__)

# Version reported for a document that does not exist yet
MISSING_VERSION = "missing"


class _LockState:
    """Process-wide state for one lock file. depth/fh are only touched by the RLock owner."""

    def __init__(self) -> None:
        self.rlock = threading.RLock()
        self.depth = 0
        self.fh = None


# One state per lock file, shared by every WriterLock on the same path
_lock_states: dict[str, _LockState] = {}
_lock_states_guard = threading.Lock()


def _lock_state_for(path: Path) -> _LockState:
    key = str(path.resolve())
    with _lock_states_guard:
        state = _lock_states.get(key)
        if state is None:
            state = _LockState()
            _lock_states[key] = state
        return state


class WriterLock:
    """Re-entrant exclusive lock held for every registry/policy/proposal mutation."""

    def __init__(self, lock_path: Path) -> None:
        self.lock_path = lock_path
        self._state = _lock_state_for(lock_path)

    def __enter__(self) -> WriterLock:
        state = self._state
        state.rlock.acquire()
        if state.depth == 0:
            try:
                self.lock_path.parent.mkdir(parents=True, exist_ok=True)
                fh = open(self.lock_path, "a")
                try:
                    fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
                except OSError:
                    fh.close()
                    raise
            except OSError as exc:
                state.rlock.release()
                raise RegistryWriteError(
                    f"failed to acquire writer lock {self.lock_path}: {exc}"
                ) from exc
            state.fh = fh
        state.depth += 1
        return self

    def __exit__(self, *exc_info: object) -> None:
        state = self._state
        state.depth -= 1
        try:
            if state.depth == 0:
                fh, state.fh = state.fh, None
                try:
                    fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
                finally:
                    fh.close()
        finally:
            state.rlock.release()


def _version_of(raw: bytes) -> str:
    return hashlib.sha256(raw).hexdigest()


class JsonDocument:
    """One JSON document on disk. Mutations must go through the shared WriterLock."""

    def __init__(self, path: Path, lock: WriterLock) -> None:
        self.path = path
        self.lock = lock

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> tuple[Any, str]:
        """Return (data, version). Raises ConfigurationError if missing or invalid."""
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError as exc:
            raise ConfigurationError(f"document not found: {self.path}") from exc
        except OSError as exc:
            raise ConfigurationError(f"failed to read {self.path}: {exc}") from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"invalid JSON in {self.path}: {exc}") from exc
        return data, _version_of(raw)

    def read_or_default(self, default: Any) -> tuple[Any, str]:
        """Like read(), but a missing file yields (default, MISSING_VERSION)."""
        if not self.path.exists():
            return default, MISSING_VERSION
        return self.read()

    def current_version(self) -> str:
        try:
            return _version_of(self.path.read_bytes())
        except FileNotFoundError:
            return MISSING_VERSION

    def _write(self, data: Any) -> str:
        raw = (json.dumps(data, indent=2, ensure_ascii=False) + "\n").encode("utf-8")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(raw)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise RegistryWriteError(f"failed to write {self.path}: {exc}") from exc
        return _version_of(raw)

    def compare_and_swap(self, expected_version: str, data: Any) -> str:
        """Write ``data`` only if the document is still at ``expected_version``.

        Returns the new version. Raises RegistryConflictError on a stale version.
        """
        with self.lock:
            current = self.current_version()
            if current != expected_version:
                logger.warning(
                    "Rejected stale write to %s",
                    self.path.name,
                    extra={"expected_version": expected_version, "current_version": current},
                )
                raise RegistryConflictError(
                    f"{self.path.name} changed since it was read "
                    f"(expected {expected_version[:12]}, found {current[:12]})"
                )
            return self._write(data)

    @contextmanager
    def transaction(self, default: Any = None) -> Iterator[list[Any]]:
        """Read-modify-write under the writer lock.

        Yields a one-element list holding the current data; mutate it in place or
        replace ``box[0]``. The document is written when the block exits cleanly.
        """
        with self.lock:
            if default is None:
                data, version = self.read()
            else:
                data, version = self.read_or_default(default)
            box = [data]
            yield box
            self.compare_and_swap(version, box[0])
