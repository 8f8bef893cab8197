"""
Google Ads API access: REST client and per-channel row sources.
"""

from brandsplit.ads.client import AccountInfo, ApiError, GoogleAdsClient, get_access_token
from brandsplit.ads.queries import AdsRowSource

__all__ = ["AccountInfo", "AdsRowSource", "ApiError", "GoogleAdsClient", "get_access_token"]
