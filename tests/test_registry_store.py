"""Tests for the JSON document store, writer lock and repository."""

from __future__ import annotations

import multiprocessing
import threading
from pathlib import Path

import pytest

from sourcegate.errors import (
    ConfigurationError,
    NotFoundError,
    RegistryConflictError,
    RegistryWriteError,
)
from sourcegate.registry import MISSING_VERSION, JsonDocument, Repository, WriterLock
from sourcegate.schemas import AuditEntry, Proposal, Source
from tests.helpers import read_json, write_json


def _append_audit_entries(data_dir: str, worker: int, count: int) -> None:
    for i in range(count):
        Repository(Path(data_dir)).sources.update_source(
            "ap",
            lambda s, i=i: s.audit_log.append(
                AuditEntry(time="2026-01-01T00:00:00Z", actor=f"p{worker}", action=f"a{i}")
            ),
        )


def _doc(tmp_path: Path, name: str = "doc.json") -> JsonDocument:
    return JsonDocument(tmp_path / name, WriterLock(tmp_path / ".lock"))


class TestJsonDocument:
    def test_read_missing_is_configuration_error(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="document not found"):
            _doc(tmp_path).read()

    def test_read_invalid_json(self, tmp_path: Path):
        (tmp_path / "doc.json").write_text("[1,", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="invalid JSON"):
            _doc(tmp_path).read()

    def test_read_or_default(self, tmp_path: Path):
        assert _doc(tmp_path).read_or_default([]) == ([], MISSING_VERSION)

    def test_compare_and_swap(self, tmp_path: Path):
        doc = _doc(tmp_path)
        v1 = doc.compare_and_swap(MISSING_VERSION, {"n": 1})
        v2 = doc.compare_and_swap(v1, {"n": 2})
        assert v1 != v2
        assert doc.read() == ({"n": 2}, v2)

    def test_stale_version_rejected(self, tmp_path: Path):
        doc = _doc(tmp_path)
        v1 = doc.compare_and_swap(MISSING_VERSION, {"n": 1})
        doc.compare_and_swap(v1, {"n": 2})
        with pytest.raises(RegistryConflictError):
            doc.compare_and_swap(v1, {"n": 3})
        assert doc.read()[0] == {"n": 2}

    def test_conflict_is_a_write_error(self):
        assert issubclass(RegistryConflictError, RegistryWriteError)

    def test_transaction(self, tmp_path: Path):
        doc = _doc(tmp_path)
        with doc.transaction(default=[]) as box:
            box[0].append("a")
        with doc.transaction() as box:
            box[0].append("b")
        assert doc.read()[0] == ["a", "b"]

    def test_failed_transaction_writes_nothing(self, tmp_path: Path):
        doc = _doc(tmp_path)
        doc.compare_and_swap(MISSING_VERSION, ["a"])
        with pytest.raises(RuntimeError):
            with doc.transaction() as box:
                box[0].append("b")
                raise RuntimeError("abort")
        assert doc.read()[0] == ["a"]

    def test_no_temp_files_left(self, tmp_path: Path):
        doc = _doc(tmp_path)
        doc.compare_and_swap(MISSING_VERSION, {"n": 1})
        assert sorted(p.name for p in tmp_path.iterdir()) == [".lock", "doc.json"]


class TestWriterLock:
    def test_reentrant_across_instances(self, tmp_path: Path):
        outer = WriterLock(tmp_path / ".lock")
        inner = WriterLock(tmp_path / ".lock")
        with outer:
            with inner:
                pass
            with outer:
                pass

    def test_excludes_other_threads(self, tmp_path: Path):
        lock = WriterLock(tmp_path / ".lock")
        entered = threading.Event()

        def _other() -> None:
            with WriterLock(tmp_path / ".lock"):
                entered.set()

        with lock:
            t = threading.Thread(target=_other)
            t.start()
            assert not entered.wait(timeout=0.2)
        t.join(timeout=5)
        assert entered.is_set()

    def test_worker_processes_lose_no_updates(self, repository: Repository, data_dir: Path):
        # Several server worker processes sharing one data directory
        processes, per_process = 4, 10
        ctx = multiprocessing.get_context("fork")
        procs = [
            ctx.Process(target=_append_audit_entries, args=(str(data_dir), n, per_process))
            for n in range(processes)
        ]
        for p in procs:
            p.start()
        for p in procs:
            p.join(timeout=60)
        assert [p.exitcode for p in procs] == [0] * processes
        assert len(repository.sources.get("ap").audit_log) == processes * per_process


class TestSourceRegistry:
    def test_load_preserves_order(self, repository: Repository):
        assert [s.id for s in repository.sources.load()] == ["ap", "reuters", "bbc", "splc"]

    def test_get_unknown(self, repository: Repository):
        with pytest.raises(NotFoundError):
            repository.sources.get("nope")

    def test_registry_must_be_array(self, data_dir: Path):
        write_json(data_dir / "registry.json", {"ap": {}})
        with pytest.raises(ConfigurationError):
            Repository(data_dir).sources.load()

    def test_invalid_record(self, data_dir: Path):
        write_json(data_dir / "registry.json", [{"id": "x", "trust_score": 7}])
        with pytest.raises(ConfigurationError):
            Repository(data_dir).sources.load()

    def test_update_source_persists(self, repository: Repository, data_dir: Path):
        def _set(source: Source) -> None:
            source.leaning_score = -0.25

        repository.sources.update_source("bbc", _set)
        raw = read_json(data_dir / "registry.json")
        assert [s["leaning_score"] for s in raw if s["id"] == "bbc"] == [-0.25]

    def test_update_unknown_source(self, repository: Repository):
        with pytest.raises(NotFoundError):
            repository.sources.update_source("nope", lambda s: None)

    def test_concurrent_updates_lose_nothing(self, repository: Repository, data_dir: Path):
        workers, per_worker = 8, 10

        def _append(n: int) -> None:
            for i in range(per_worker):
                # A fresh Repository per call, as each HTTP request gets one
                Repository(data_dir).sources.update_source(
                    "ap",
                    lambda s, n=n, i=i: s.audit_log.append(
                        AuditEntry(time="2026-01-01T00:00:00Z", actor=f"w{n}", action=f"a{i}")
                    ),
                )

        threads = [threading.Thread(target=_append, args=(n,)) for n in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)
        assert len(repository.sources.get("ap").audit_log) == workers * per_worker


class TestPolicyStore:
    def test_add_is_idempotent(self, repository: Repository, data_dir: Path):
        assert repository.policy.add_to_blacklist("reuters") is True
        assert repository.policy.add_to_blacklist("reuters") is False
        assert read_json(data_dir / "policy.json")["blacklist"] == ["splc", "bbc", "reuters"]

    def test_remove_is_idempotent(self, repository: Repository, data_dir: Path):
        assert repository.policy.remove_from_blacklist("splc") is True
        assert repository.policy.remove_from_blacklist("splc") is False
        assert read_json(data_dir / "policy.json")["blacklist"] == ["bbc"]

    def test_other_keys_preserved(self, repository: Repository, data_dir: Path):
        repository.policy.add_to_blacklist("x")
        policy = read_json(data_dir / "policy.json")
        assert policy["whitelist"] == ["ap"]
        assert policy["min_trust_score"] == 0.75

    def test_missing_policy(self, data_dir: Path):
        (data_dir / "policy.json").unlink()
        with pytest.raises(ConfigurationError):
            Repository(data_dir).policy.add_to_blacklist("x")


class TestProposalStore:
    def test_missing_file_is_empty(self, repository: Repository):
        assert repository.proposals.load() == []

    def test_append(self, repository: Repository):
        repository.proposals.append(Proposal(id="ap", new_score=0.5))
        repository.proposals.append(Proposal(id="bbc", new_score=0.6))
        assert [p.id for p in repository.proposals.load()] == ["ap", "bbc"]

    def test_replace(self, repository: Repository):
        repository.funding_proposals.append(Proposal(id="old"))
        repository.funding_proposals.replace([Proposal(id="new")])
        assert [p.id for p in repository.funding_proposals.load()] == ["new"]
