"""FEC (Federal Election Commission) committee search.

Requires FEC_API_KEY. The key travels as a query parameter and is never copied
into evidence URLs.
"""

from __future__ import annotations

import logging

import httpx

from sourcegate.funding.base import FundingFetchResult, FundingOutcome, FundingProvider
from sourcegate.schemas import EvidenceLink

logger = logging.getLogger(__name__)

_FEC_API_BASE = "https://api.open.fec.gov/v1/committees/"


class FECProvider(FundingProvider):
    """Committee search on api.open.fec.gov."""

    name = "fec"

    def is_configured(self) -> bool:
        return bool(self.settings.fec_api_key)

    def synthetic(self, query: str) -> FundingFetchResult:
        return self.synthetic_donations(query, d=(1000.0, 10.0), r=(500.0, 5.0))

    def fetch_live(self, query: str) -> FundingFetchResult:
        data = self.get_json(_FEC_API_BASE, {"q": query, "api_key": self.settings.fec_api_key})
        results = (data.get("results") or []) if isinstance(data, dict) else []
        # Committee matches only; party totals need a contribution lookup per committee
        return FundingFetchResult(
            provider=self.name,
            outcome=FundingOutcome.LIVE,
            donations={"D": 0.0, "R": 0.0},
            evidence=EvidenceLink(
                url=str(httpx.URL(_FEC_API_BASE, params={"q": query})),
                type="fec_api",
                excerpt=f"committee search matched {len(results)} committees",
            ),
        )
