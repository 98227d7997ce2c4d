"""Shared test data and doubles (imported by conftest and test modules)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from sourcegate.config import Settings
from sourcegate.llm import LLMProvider

VALID_RESPONSE = json.dumps(
    [
        {
            "claim": "The city council approved the budget by a 5-2 vote.",
            "sources": ["https://example.org/council/minutes"],
            "timestamp": "2026-01-01T12:00:00Z",
        }
    ]
)

# Fails the guardrails: no sources
INVALID_RESPONSE = json.dumps([{"claim": "The budget passed.", "sources": []}])

REGISTRY = [
    {
        "id": "ap",
        "name": "Associated Press",
        "url": "https://apnews.com",
        "trust_score": 0.9,
        "political_leaning": "center",
        "indicators": {"primary_links": 8, "correction_rate": 0.02, "concordance_score": 0.92},
        "external_ratings": [{"source": "allsides", "rating": "center"}],
        "editorial_notes": ["Wire service; prefer for breaking news attribution."],
    },
    {
        "id": "reuters",
        "name": "Reuters",
        "url": "https://www.reuters.com",
        "trust_score": 0.88,
        "political_leaning": "center",
        "indicators": {"primary_links": 7, "correction_rate": 0.03, "concordance_score": 0.9},
    },
    {
        "id": "bbc",
        "name": "BBC News",
        "url": "https://www.bbc.com/news",
        "trust_score": 0.8,
        "political_leaning": "center-left",
        "indicators": {"primary_links": 5, "correction_rate": 0.05, "concordance_score": 0.85},
        "external_ratings": [{"source": "allsides", "rating": "lean left"}],
    },
    {
        "id": "splc",
        "name": "Southern Poverty Law Center",
        "url": "https://www.splcenter.org",
        "trust_score": 0.6,
        "political_leaning": "left",
        "indicators": {"primary_links": 3, "correction_rate": 0.1, "concordance_score": 0.6},
        "editorial_notes": ["Advocacy organization; not a news source."],
    },
]

POLICY = {
    "min_trust_score": 0.75,
    "min_concordance_score": 0.8,
    "min_primary_links": 3,
    "whitelist": ["ap"],
    "blacklist": ["splc", "bbc"],
}


def make_settings(data_dir: Path, **overrides: Any) -> Settings:
    """Create a Settings instance rooted at ``data_dir``, without reading env."""
    s = object.__new__(Settings)  # skip __init__ (avoids env reads)
    s.app_name = "SourceGate"
    s.debug = False
    s.log_level = "INFO"
    s.data_dir = Path(data_dir)
    s.llm_provider = "openai"
    s.llm_api_key = "test-key-123"
    s.llm_base_url = None
    s.llm_model = "gpt-4o-mini"
    s.llm_timeout = 5.0
    s.llm_max_retries = 1
    s.query_max_attempts = 3
    s.fake_llm = False
    s.dev_stubs = False
    s.available_providers = ["fec", "opencorporates", "form990", "metaads"]
    s.fec_api_key = None
    s.opencorporates_api_key = None
    s.form990_data_path = None
    s.meta_ads_api_key = None
    s.google_ads_api_key = None
    for k, v in overrides.items():
        setattr(s, k, v)
    return s


def write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


class FakeProvider(LLMProvider):
    """Scripted provider: returns (or raises) the queued items in order.

    The last item repeats once the script runs out.
    """

    def __init__(self, *script: str | Exception) -> None:
        self.script = list(script) or [VALID_RESPONSE]
        self.prompts: list[str] = []
        self.kwargs: list[dict[str, Any]] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def complete(self, prompt: str, system_prompt: str | None = None, **kwargs: Any) -> str:
        self.prompts.append(prompt)
        self.kwargs.append({"system_prompt": system_prompt, **kwargs})
        item = self.script[min(len(self.prompts), len(self.script)) - 1]
        if isinstance(item, Exception):
            raise item
        return item
