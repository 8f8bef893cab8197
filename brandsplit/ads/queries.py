"""
GAQL queries and the Ads-backed row source.

The classifiers only need iterables of rows. AdsRowSource is the live
implementation; tests substitute any object with the same three methods.
"""

import logging
from typing import Iterable, Iterator, List

import requests

from brandsplit.ads.client import ApiError, GoogleAdsClient
from brandsplit.config import DateRange
from brandsplit.periods import SEGMENT_FIELDS, PeriodWindow

logger = logging.getLogger(__name__)

SEARCH = "SEARCH"
SHOPPING = "SHOPPING"
PERFORMANCE_MAX = "PERFORMANCE_MAX"


def date_clause(start, end) -> str:
    return f"segments.date BETWEEN '{start.isoformat()}' AND '{end.isoformat()}'"


def search_term_query(channel_type: str, granularity: str, date_range: DateRange) -> str:
    return "\n".join([
        "SELECT",
        "  search_term_view.search_term,",
        f"  segments.{SEGMENT_FIELDS[granularity]},",
        "  metrics.impressions,",
        "  metrics.clicks,",
        "  metrics.cost_micros,",
        "  metrics.conversions,",
        "  metrics.conversions_value",
        "FROM search_term_view",
        f"WHERE {date_range.gaql_clause()}",
        f"  AND campaign.advertising_channel_type = '{channel_type}'",
    ])


def pmax_search_term_query(granularity: str, date_range: DateRange) -> str:
    # Targeting status must be selected so excluded terms can be dropped in code
    return "\n".join([
        "SELECT",
        "  campaign_search_term_view.search_term,",
        "  segments.search_term_targeting_status,",
        f"  segments.{SEGMENT_FIELDS[granularity]},",
        "  metrics.impressions,",
        "  metrics.clicks,",
        "  metrics.cost_micros,",
        "  metrics.conversions,",
        "  metrics.conversions_value",
        "FROM campaign_search_term_view",
        f"WHERE {date_range.gaql_clause()}",
        f"  AND campaign.advertising_channel_type = '{PERFORMANCE_MAX}'",
    ])


def pmax_campaigns_query() -> str:
    return "\n".join([
        "SELECT campaign.id, campaign.name",
        "FROM campaign",
        f"WHERE campaign.advertising_channel_type = '{PERFORMANCE_MAX}'",
        "  AND campaign.status != 'REMOVED'",
    ])


def category_insight_query(campaign_id: str, window: PeriodWindow) -> str:
    # campaign_search_term_insight cannot be segmented by month/week when
    # filtered by campaign, so each period is its own query
    return "\n".join([
        "SELECT",
        "  campaign_search_term_insight.category_label,",
        "  metrics.impressions,",
        "  metrics.clicks,",
        "  metrics.conversions,",
        "  metrics.conversions_value",
        "FROM campaign_search_term_insight",
        f"WHERE {date_clause(window.start, window.end)}",
        f"  AND campaign_search_term_insight.campaign_id = {campaign_id}",
    ])


class AdsRowSource:
    """Row streams for each channel, read live from the Google Ads API."""

    def __init__(self, client: GoogleAdsClient, granularity: str, date_range: DateRange):
        self.client = client
        self.granularity = granularity
        self.date_range = date_range

    def search_term_rows(self, channel_type: str) -> Iterator[dict]:
        return self.client.iter_search(search_term_query(channel_type, self.granularity, self.date_range))

    def pmax_search_term_rows(self) -> Iterator[dict]:
        return self.client.iter_search(pmax_search_term_query(self.granularity, self.date_range))

    def pmax_campaign_ids(self) -> List[str]:
        campaign_ids = []
        for row in self.client.iter_search(pmax_campaigns_query()):
            campaign_id = (row.get("campaign") or {}).get("id")
            if campaign_id:
                campaign_ids.append(str(campaign_id))
        return campaign_ids

    def category_rows(self, windows: Iterable[PeriodWindow]) -> Iterator[dict]:
        """
        Category insight rows for every (period, Performance Max campaign).

        Each yielded row carries its window key under segments.<month|week> so
        it buckets like the other sources. A failing sub-query is logged and
        skipped; the remaining campaigns and periods still run.
        """
        campaign_ids = self.pmax_campaign_ids()
        if not campaign_ids:
            logger.info("[Pmax Categories] No Pmax campaigns found.")
            return
        windows = list(windows)
        logger.info("[Pmax Categories] Found %d Pmax campaign(s), %d period(s).", len(campaign_ids), len(windows))

        segment_field = SEGMENT_FIELDS[self.granularity]
        for window in windows:
            for campaign_id in campaign_ids:
                try:
                    rows = self.client.search(category_insight_query(campaign_id, window))
                except (ApiError, requests.RequestException) as e:
                    logger.warning(
                        "[Pmax Categories] Error querying campaign %s for period %s: %s",
                        campaign_id, window.key, e,
                    )
                    continue
                for row in rows:
                    yield with_period(row, segment_field, window.key)


def with_period(row, segment_field: str, period_key: str):
    """Copy of an API row with the period attached under segments."""
    if not isinstance(row, dict):
        return row
    segments = row.get("segments") or {}
    if not isinstance(segments, dict):
        return row
    return {**row, "segments": {**segments, segment_field: period_key}}
