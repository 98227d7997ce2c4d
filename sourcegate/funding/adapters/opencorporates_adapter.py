"""OpenCorporates company search. Requires OPENCORPORATES_API_KEY."""

from __future__ import annotations

import httpx

from sourcegate.funding.base import FundingFetchResult, FundingOutcome, FundingProvider
from sourcegate.schemas import EvidenceLink

_OPENCORPORATES_API_BASE = "https://api.opencorporates.com/v0.4/companies/search"


class OpenCorporatesProvider(FundingProvider):
    """Ownership lookups; donations are not mapped yet so totals stay zero."""

    name = "opencorporates"

    def is_configured(self) -> bool:
        return bool(self.settings.opencorporates_api_key)

    def synthetic(self, query: str) -> FundingFetchResult:
        return self.synthetic_donations(query, d=(50.0, 2.0), r=(25.0, 1.0))

    def fetch_live(self, query: str) -> FundingFetchResult:
        data = self.get_json(
            _OPENCORPORATES_API_BASE,
            {"q": query, "api_token": self.settings.opencorporates_api_key},
        )
        companies = []
        if isinstance(data, dict):
            companies = (data.get("results") or {}).get("companies") or []
        return FundingFetchResult(
            provider=self.name,
            outcome=FundingOutcome.LIVE,
            donations={"D": 0.0, "R": 0.0},
            evidence=EvidenceLink(
                url=str(httpx.URL(_OPENCORPORATES_API_BASE, params={"q": query})),
                type="opencorporates_api",
                excerpt=f"company search matched {len(companies)} companies",
            ),
        )
