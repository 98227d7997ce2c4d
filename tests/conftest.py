"""
Pytest configuration and fixtures.

Every test gets its own data directory seeded with a small registry and policy;
nothing touches data/sources in the working tree.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Don't inherit provider keys or stub mode from a developer .env
for _var in ("DEV_STUBS", "FAKE_LLM", "FEC_API_KEY", "OPENCORPORATES_API_KEY", "FORM990_DATA_PATH"):
    os.environ.pop(_var, None)

from sourcegate.config import Settings, get_settings
from sourcegate.llm import clear_provider_cache
from sourcegate.registry import Repository
from tests.helpers import POLICY, REGISTRY, make_settings, write_json


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Data directory seeded with registry.json and policy.json."""
    root = tmp_path / "sources"
    write_json(root / "registry.json", REGISTRY)
    write_json(root / "policy.json", POLICY)
    return root


@pytest.fixture
def settings(data_dir: Path) -> Settings:
    return make_settings(data_dir)


@pytest.fixture
def repository(data_dir: Path) -> Repository:
    return Repository(data_dir)


@pytest.fixture
def client(settings: Settings) -> TestClient:
    """FastAPI test client on a fresh app wired to the test data directory."""
    from sourcegate.main import create_app

    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    c = TestClient(app)
    yield c
    audit_logger = getattr(app.state, "audit_logger", None)
    if audit_logger is not None:
        audit_logger.close()
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _clear_caches() -> None:
    """Clear the provider and settings caches before and after each test."""
    clear_provider_cache()
    get_settings.cache_clear()
    yield
    clear_provider_cache()
    get_settings.cache_clear()
