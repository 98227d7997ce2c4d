"""
Application configuration. Loads from environment variables.
Secrets and sensitive config must never be hardcoded.
"""

import os

from dotenv import load_dotenv

load_dotenv()
from functools import lru_cache
from pathlib import Path
from typing import Optional


@lru_cache(maxsize=1)
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()


def _env_flag(name: str) -> bool:
    """True when the variable is set to 1/true/yes (case-insensitive)."""
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes")


class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "SourceGate"
    debug: bool = False
    log_level: str = "INFO"

    # Documents (registry.json, policy.json, proposals.json) and audit logs
    data_dir: Path = Path("data/sources")

    # LLM (any OpenAI-compatible endpoint; default is a local Ollama server)
    llm_provider: str = "openai"
    llm_api_key: Optional[str] = None
    llm_base_url: Optional[str] = "http://localhost:11434/v1"
    llm_model: str = "llama2"
    llm_timeout: float = 60.0
    # Provider-internal backoff retries; guardrail retries live in the orchestrator
    llm_max_retries: int = 1
    query_max_attempts: int = 3
    fake_llm: bool = False

    # Funding-signal providers
    dev_stubs: bool = False  # deterministic synthetic provider data (tests/dev only)
    available_providers: list[str] = ("fec", "opencorporates", "form990", "metaads")
    fec_api_key: Optional[str] = None
    opencorporates_api_key: Optional[str] = None
    form990_data_path: Optional[str] = None
    meta_ads_api_key: Optional[str] = None
    google_ads_api_key: Optional[str] = None

    def __init__(self) -> None:
        self.app_name = os.getenv("APP_NAME", self.app_name)
        self.debug = os.getenv("DEBUG", "false").lower() == "true"
        self.log_level = os.getenv("LOG_LEVEL", self.log_level).upper()

        self.data_dir = Path(os.getenv("DATA_DIR", str(self.data_dir)))

        self.llm_provider = os.getenv("LLM_PROVIDER", self.llm_provider)
        self.llm_api_key = os.getenv("LLM_API_KEY")
        self.llm_base_url = os.getenv("LLM_BASE_URL", self.llm_base_url) or None
        self.llm_model = os.getenv("LLM_MODEL", self.llm_model)
        self.llm_timeout = float(os.getenv("LLM_TIMEOUT", str(self.llm_timeout)))
        self.llm_max_retries = int(os.getenv("LLM_MAX_RETRIES", str(self.llm_max_retries)))
        self.query_max_attempts = int(
            os.getenv("QUERY_MAX_ATTEMPTS", str(self.query_max_attempts))
        )
        self.fake_llm = _env_flag("FAKE_LLM")

        self.dev_stubs = _env_flag("DEV_STUBS")
        # Comma-separated provider names; empty = default set
        _providers = os.getenv("AVAILABLE_PROVIDERS", "").strip()
        if _providers:
            self.available_providers = [
                p.strip().lower() for p in _providers.split(",") if p.strip()
            ]
        else:
            self.available_providers = list(type(self).available_providers)
        self.fec_api_key = os.getenv("FEC_API_KEY") or None
        self.opencorporates_api_key = os.getenv("OPENCORPORATES_API_KEY") or None
        self.form990_data_path = os.getenv("FORM990_DATA_PATH") or None
        self.meta_ads_api_key = os.getenv("META_ADS_API_KEY") or None
        self.google_ads_api_key = os.getenv("GOOGLE_ADS_API_KEY") or None

    # Document paths
    @property
    def registry_path(self) -> Path:
        return self.data_dir / "registry.json"

    @property
    def policy_path(self) -> Path:
        return self.data_dir / "policy.json"

    @property
    def proposals_path(self) -> Path:
        return self.data_dir / "proposals.json"

    @property
    def funding_proposals_path(self) -> Path:
        return self.data_dir / "funding_proposals.json"

    # Audit log paths (newline-delimited JSON)
    @property
    def policy_audit_log_path(self) -> Path:
        return self.data_dir / "policy_audit.log"

    @property
    def llm_requests_log_path(self) -> Path:
        return self.data_dir / "llm_requests.log"

    @property
    def llm_responses_log_path(self) -> Path:
        return self.data_dir / "llm_responses.log"

    @property
    def funding_runs_log_path(self) -> Path:
        return self.data_dir / "funding_runs.log"
