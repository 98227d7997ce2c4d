"""Funding-signal provider interface.

A provider answers one question: which party donations (or ad spend) can be tied
to an organization. Every fetch reports an explicit outcome:

- ``live``: data came from the configured upstream,
- ``unconfigured``: credentials or data path absent (not an error),
- ``synthetic``: deterministic fake data, only when DEV_STUBS=1,
- ``deprecated``: the upstream is retired; nothing fetched,
- ``error``: the upstream failed; the error is carried, never raised.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx

from sourcegate.schemas import EvidenceLink

if TYPE_CHECKING:
    from sourcegate.config import Settings

logger = logging.getLogger(__name__)

HTTP_TIMEOUT = 15.0

STUB_EVIDENCE_TYPE = "stub"
SYNTHETIC_EVIDENCE_TYPE = "dev_stub"
SYNTHETIC_EXCERPT = "DEV_STUBS enabled: synthetic funding data"


class FundingOutcome(str, Enum):
    LIVE = "live"
    UNCONFIGURED = "unconfigured"
    SYNTHETIC = "synthetic"
    DEPRECATED = "deprecated"
    ERROR = "error"


@dataclass
class FundingFetchResult:
    """What one provider returned for one query."""

    provider: str
    outcome: FundingOutcome
    donations: dict[str, float] = field(default_factory=dict)
    evidence: EvidenceLink | None = None
    ad_spend: float | None = None
    error: str | None = None

    @property
    def is_stub(self) -> bool:
        """True when no real or synthetic data backs this result."""
        return self.outcome not in (FundingOutcome.LIVE, FundingOutcome.SYNTHETIC)


class FundingProvider(ABC):
    """Pluggable funding-signal provider.

    Subclasses implement ``is_configured``, ``fetch_live`` and ``synthetic``;
    ``fetch`` picks between them and converts upstream failures to an ``error``
    outcome.
    """

    name: str = ""

    def __init__(self, settings: Settings, client: httpx.Client | None = None) -> None:
        self.settings = settings
        self._client = client

    def fetch(self, query: str) -> FundingFetchResult:
        if self.settings.dev_stubs:
            return self.synthetic(query)
        if not self.is_configured():
            logger.debug("%s not configured - returning stub for %s", self.name, query)
            return self.unconfigured()
        try:
            return self.fetch_live(query)
        except (httpx.HTTPError, OSError, ValueError) as exc:
            logger.warning("%s fetch failed for %s: %s", self.name, query, exc)
            return FundingFetchResult(
                provider=self.name,
                outcome=FundingOutcome.ERROR,
                error=f"{type(exc).__name__}: {exc}",
            )

    @abstractmethod
    def is_configured(self) -> bool:
        ...

    @abstractmethod
    def fetch_live(self, query: str) -> FundingFetchResult:
        """Query the upstream. May raise httpx.HTTPError, OSError or ValueError."""
        ...

    @abstractmethod
    def synthetic(self, query: str) -> FundingFetchResult:
        """Deterministic fake data derived from the query length."""
        ...

    def unconfigured(self, excerpt: str | None = None) -> FundingFetchResult:
        return FundingFetchResult(
            provider=self.name,
            outcome=FundingOutcome.UNCONFIGURED,
            donations={"D": 0.0, "R": 0.0},
            evidence=EvidenceLink(
                url="",
                type=STUB_EVIDENCE_TYPE,
                excerpt=excerpt or f"{self.name} not configured; stubbed result",
            ),
        )

    def synthetic_donations(
        self, query: str, d: tuple[float, float], r: tuple[float, float]
    ) -> FundingFetchResult:
        """Synthetic party totals as ``base + len(query) * step`` for D and R."""
        n = len(query)
        return FundingFetchResult(
            provider=self.name,
            outcome=FundingOutcome.SYNTHETIC,
            donations={"D": d[0] + n * d[1], "R": r[0] + n * r[1]},
            evidence=EvidenceLink(url="", type=SYNTHETIC_EVIDENCE_TYPE, excerpt=SYNTHETIC_EXCERPT),
        )

    def get_json(self, url: str, params: dict[str, str]) -> Any:
        """GET ``url`` and decode JSON. Raises httpx.HTTPStatusError on non-2xx."""
        if self._client is not None:
            response = self._client.get(url, params=params, timeout=HTTP_TIMEOUT)
        else:
            with httpx.Client(timeout=HTTP_TIMEOUT) as client:
                response = client.get(url, params=params)
        response.raise_for_status()
        return response.json()
