"""Funding-signal providers and the registry-wide funding runs."""

from sourcegate.funding.base import FundingFetchResult, FundingOutcome, FundingProvider
from sourcegate.funding.runner import (
    get_providers,
    run_funding_fetchers,
    seed_funding_signals,
)

__all__ = [
    "FundingFetchResult",
    "FundingOutcome",
    "FundingProvider",
    "get_providers",
    "run_funding_fetchers",
    "seed_funding_signals",
]
