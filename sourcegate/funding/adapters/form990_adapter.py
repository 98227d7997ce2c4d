"""Form-990 donations from local JSON files.

FORM990_DATA_PATH is a directory of ``*.json`` files. The first file whose name
contains the organization id (case-insensitive) is read; its shape is
``{"donations": [{"party": "D", "amount": 123.45}, ...]}``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from sourcegate.funding.base import FundingFetchResult, FundingOutcome, FundingProvider
from sourcegate.schemas import EvidenceLink

logger = logging.getLogger(__name__)

_PARTIES = ("D", "R")


class Form990Provider(FundingProvider):
    name = "form990"

    def is_configured(self) -> bool:
        return bool(self.settings.form990_data_path)

    def synthetic(self, query: str) -> FundingFetchResult:
        return self.synthetic_donations(query, d=(300.0, 7.0), r=(150.0, 3.0))

    def _find_file(self, query: str) -> Path | None:
        data_dir = Path(self.settings.form990_data_path or "")
        needle = query.lower()
        for path in sorted(data_dir.iterdir()):
            if path.is_file() and path.suffix == ".json" and needle in path.name.lower():
                return path
        return None

    def fetch_live(self, query: str) -> FundingFetchResult:
        path = self._find_file(query)
        if path is None:
            return self.unconfigured("no Form-990 file found for org; stubbed result")
        doc = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(doc, dict):
            raise ValueError(f"{path.name}: expected a JSON object")
        totals = {party: 0.0 for party in _PARTIES}
        for donation in doc.get("donations") or []:
            if not isinstance(donation, dict):
                continue
            party = donation.get("party")
            if party in totals:
                totals[party] += float(donation.get("amount") or 0.0)
        logger.debug("Form-990 %s: %s", path.name, totals)
        return FundingFetchResult(
            provider=self.name,
            outcome=FundingOutcome.LIVE,
            donations=totals,
            evidence=EvidenceLink(
                url=str(path),
                type="form990",
                excerpt="parsed local Form-990 donations",
            ),
        )
