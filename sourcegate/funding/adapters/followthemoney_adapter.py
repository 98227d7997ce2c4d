"""FollowTheMoney (merged into OpenSecrets; public API retired).

Always reports ``deprecated`` outside DEV_STUBS.
"""

from __future__ import annotations

from sourcegate.funding.base import FundingFetchResult, FundingOutcome, FundingProvider
from sourcegate.schemas import EvidenceLink

_DEPRECATION_NOTE = (
    "FollowTheMoney merged into OpenSecrets; public API access is limited or commercial"
)


class FollowTheMoneyProvider(FundingProvider):
    name = "followthemoney"

    def is_configured(self) -> bool:
        return False

    def synthetic(self, query: str) -> FundingFetchResult:
        return self.synthetic_donations(query, d=(200.0, 8.0), r=(100.0, 4.0))

    def fetch(self, query: str) -> FundingFetchResult:
        if self.settings.dev_stubs:
            return self.synthetic(query)
        return self.fetch_live(query)

    def fetch_live(self, query: str) -> FundingFetchResult:
        return FundingFetchResult(
            provider=self.name,
            outcome=FundingOutcome.DEPRECATED,
            evidence=EvidenceLink(url="", type="deprecated", excerpt=_DEPRECATION_NOTE),
        )
