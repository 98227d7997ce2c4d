"""Funding-signal provider adapters."""

from sourcegate.funding.adapters.ad_spend_adapters import GoogleAdsProvider, MetaAdsProvider
from sourcegate.funding.adapters.fec_adapter import FECProvider
from sourcegate.funding.adapters.followthemoney_adapter import FollowTheMoneyProvider
from sourcegate.funding.adapters.form990_adapter import Form990Provider
from sourcegate.funding.adapters.opencorporates_adapter import OpenCorporatesProvider

__all__ = [
    "FECProvider",
    "FollowTheMoneyProvider",
    "Form990Provider",
    "GoogleAdsProvider",
    "MetaAdsProvider",
    "OpenCorporatesProvider",
]
