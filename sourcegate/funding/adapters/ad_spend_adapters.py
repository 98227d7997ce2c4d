"""Ad-spend providers (Meta Ad Library, Google Ads Transparency).

These report estimated political ad spend, not donations; the runner attaches
the figure to the proposal evidence.
"""

from __future__ import annotations

import httpx

from sourcegate.funding.base import (
    SYNTHETIC_EVIDENCE_TYPE,
    FundingFetchResult,
    FundingOutcome,
    FundingProvider,
)
from sourcegate.schemas import EvidenceLink

_META_ADS_API_BASE = "https://graph.facebook.com/v16.0/ads_archive"
_GOOGLE_ADS_API_BASE = "https://ads.google.com/transparency/api/search"


class _AdSpendProvider(FundingProvider):
    api_base: str = ""
    query_param: str = "q"
    key_param: str = "key"
    synthetic_base: float = 0.0
    synthetic_step: float = 0.0
    # Evidence excerpt key, e.g. estimated_meta_ad_spend
    spend_label: str = ""

    def _api_key(self) -> str | None:
        raise NotImplementedError

    def is_configured(self) -> bool:
        return bool(self._api_key())

    def synthetic(self, query: str) -> FundingFetchResult:
        spend = self.synthetic_base + len(query) * self.synthetic_step
        return FundingFetchResult(
            provider=self.name,
            outcome=FundingOutcome.SYNTHETIC,
            ad_spend=spend,
            evidence=EvidenceLink(
                url="",
                type=SYNTHETIC_EVIDENCE_TYPE,
                excerpt=f"DEV_STUBS: {self.spend_label}={spend:.2f}",
            ),
        )

    def fetch_live(self, query: str) -> FundingFetchResult:
        data = self.get_json(
            self.api_base, {self.query_param: query, self.key_param: self._api_key() or ""}
        )
        ads = (data.get("data") or []) if isinstance(data, dict) else []
        return FundingFetchResult(
            provider=self.name,
            outcome=FundingOutcome.LIVE,
            ad_spend=0.0,
            evidence=EvidenceLink(
                url=str(httpx.URL(self.api_base, params={self.query_param: query})),
                type=f"{self.name}_api",
                excerpt=f"ad library search matched {len(ads)} ads",
            ),
        )


class MetaAdsProvider(_AdSpendProvider):
    name = "metaads"
    api_base = _META_ADS_API_BASE
    query_param = "search_terms"
    key_param = "access_token"
    synthetic_base = 250.0
    synthetic_step = 6.0
    spend_label = "estimated_meta_ad_spend"

    def _api_key(self) -> str | None:
        return self.settings.meta_ads_api_key


class GoogleAdsProvider(_AdSpendProvider):
    name = "googleads"
    api_base = _GOOGLE_ADS_API_BASE
    synthetic_base = 180.0
    synthetic_step = 5.0
    spend_label = "estimated_google_ad_spend"

    def _api_key(self) -> str | None:
        return self.settings.google_ads_api_key
