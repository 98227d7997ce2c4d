"""
Repository over the registry, policy and proposal documents.

All mutations share one WriterLock (``<data_dir>/.registry.lock``), so a score
approval and a leaning recompute can never interleave their read-modify-write
sequences. Reads are lock-free snapshots of the last complete document.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from sourcegate.errors import ConfigurationError, NotFoundError
from sourcegate.registry.store import JsonDocument, WriterLock
from sourcegate.schemas import Policy, Proposal, Source

if TYPE_CHECKING:
    from sourcegate.config import Settings

logger = logging.getLogger(__name__)

LOCK_FILE_NAME = ".registry.lock"


def _dump_all(models: list[Any]) -> list[dict[str, Any]]:
    return [m.model_dump(mode="json") for m in models]


class SourceRegistry:
    """Ordered collection of Source records (registry.json, a JSON array)."""

    def __init__(self, document: JsonDocument) -> None:
        self.document = document

    def _parse(self, data: Any) -> list[Source]:
        if not isinstance(data, list):
            raise ConfigurationError(f"{self.document.path} must contain a JSON array")
        try:
            return [Source.model_validate(item) for item in data]
        except ValidationError as exc:
            raise ConfigurationError(f"invalid source record in {self.document.path}: {exc}") from exc

    def snapshot(self) -> tuple[list[Source], str]:
        """Return (sources, version). Raises ConfigurationError if unreadable."""
        data, version = self.document.read()
        return self._parse(data), version

    def load(self) -> list[Source]:
        return self.snapshot()[0]

    def get(self, source_id: str) -> Source:
        for source in self.load():
            if source.id == source_id:
                return source
        raise NotFoundError(f"source not found: {source_id}")

    def compare_and_swap(self, expected_version: str, sources: list[Source]) -> str:
        return self.document.compare_and_swap(expected_version, _dump_all(sources))

    def update_all(self, mutate: Callable[[list[Source]], None]) -> list[Source]:
        """Apply ``mutate`` to the full source list under the writer lock and persist it."""
        with self.document.lock:
            sources, version = self.snapshot()
            mutate(sources)
            self.compare_and_swap(version, sources)
        return sources

    def update_source(self, source_id: str, mutate: Callable[[Source], None]) -> Source:
        """Apply ``mutate`` to one source under the writer lock and persist the registry.

        Raises:
            NotFoundError: If no source has ``source_id``.
        """
        with self.document.lock:
            sources, version = self.snapshot()
            target = next((s for s in sources if s.id == source_id), None)
            if target is None:
                raise NotFoundError(f"source not found: {source_id}")
            mutate(target)
            self.compare_and_swap(version, sources)
        return target


class PolicyStore:
    """The single Policy record (policy.json)."""

    def __init__(self, document: JsonDocument) -> None:
        self.document = document

    def load(self) -> Policy:
        """Raises ConfigurationError if the policy is missing or invalid."""
        data, _ = self.document.read()
        if not isinstance(data, dict):
            raise ConfigurationError(f"{self.document.path} must contain a JSON object")
        try:
            return Policy.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid policy in {self.document.path}: {exc}") from exc

    def _edit_blacklist(self, source_id: str, add: bool) -> bool:
        with self.document.lock:
            data, version = self.document.read()
            if not isinstance(data, dict):
                raise ConfigurationError(f"{self.document.path} must contain a JSON object")
            blacklist = [str(x) for x in data.get("blacklist") or []]
            present = source_id in blacklist
            if present == add:
                return False
            if add:
                blacklist.append(source_id)
            else:
                blacklist = [x for x in blacklist if x != source_id]
            # Other keys are written back untouched
            data["blacklist"] = blacklist
            self.document.compare_and_swap(version, data)
        logger.info("Policy blacklist %s: %s", "added" if add else "removed", source_id)
        return True

    def add_to_blacklist(self, source_id: str) -> bool:
        """Add ``source_id`` to the blacklist. Returns False if it was already present."""
        return self._edit_blacklist(source_id, add=True)

    def remove_from_blacklist(self, source_id: str) -> bool:
        """Remove ``source_id`` from the blacklist. Returns False if it was absent."""
        return self._edit_blacklist(source_id, add=False)


class ProposalStore:
    """Ordered Proposal records (proposals.json or funding_proposals.json)."""

    def __init__(self, document: JsonDocument) -> None:
        self.document = document

    def snapshot(self) -> tuple[list[Proposal], str]:
        """Return (proposals, version). A missing document is an empty list."""
        data, version = self.document.read_or_default([])
        if not isinstance(data, list):
            raise ConfigurationError(f"{self.document.path} must contain a JSON array")
        try:
            return [Proposal.model_validate(item) for item in data], version
        except ValidationError as exc:
            raise ConfigurationError(f"invalid proposal in {self.document.path}: {exc}") from exc

    def load(self) -> list[Proposal]:
        return self.snapshot()[0]

    def compare_and_swap(self, expected_version: str, proposals: list[Proposal]) -> str:
        return self.document.compare_and_swap(expected_version, _dump_all(proposals))

    def append(self, proposal: Proposal) -> None:
        with self.document.lock:
            proposals, version = self.snapshot()
            proposals.append(proposal)
            self.compare_and_swap(version, proposals)

    def replace(self, proposals: list[Proposal]) -> None:
        """Overwrite the whole document (used for the generated funding proposals)."""
        with self.document.lock:
            self.compare_and_swap(self.document.current_version(), proposals)


class Repository:
    """Entry point for every document under ``data_dir``."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)
        self.lock = WriterLock(self.data_dir / LOCK_FILE_NAME)
        self.sources = SourceRegistry(JsonDocument(self.data_dir / "registry.json", self.lock))
        self.policy = PolicyStore(JsonDocument(self.data_dir / "policy.json", self.lock))
        self.proposals = ProposalStore(JsonDocument(self.data_dir / "proposals.json", self.lock))
        self.funding_proposals = ProposalStore(
            JsonDocument(self.data_dir / "funding_proposals.json", self.lock)
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> Repository:
        return cls(settings.data_dir)
