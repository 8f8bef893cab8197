"""
Run orchestration: fetch -> classify -> merge -> publish.

collect() is the pure part: it takes any row source and returns per-channel,
combined and category results. run() wires it to the live Google Ads and
Sheets clients.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from brandsplit.ads.client import AccountInfo, GoogleAdsClient, get_access_token
from brandsplit.ads.queries import SEARCH, SHOPPING, AdsRowSource
from brandsplit.aggregate import ChannelResult, combine
from brandsplit.classifiers import CategoryClassifier, ExclusionAwareClassifier, StandardClassifier
from brandsplit.config import DateRange, Settings
from brandsplit.matcher import BrandMatcher, compile_tokens
from brandsplit.periods import PeriodWindow, enumerate_periods
from brandsplit.report.publish import publish
from brandsplit.report.sheets import SheetsClient

logger = logging.getLogger(__name__)


class RowSource(Protocol):
    """Anything that can produce the three row streams."""

    def search_term_rows(self, channel_type: str) -> Iterable[dict]:
        ...

    def pmax_search_term_rows(self) -> Iterable[dict]:
        ...

    def category_rows(self, windows: Iterable[PeriodWindow]) -> Iterable[dict]:
        ...


@dataclass
class RunResult:
    channels: Dict[str, ChannelResult]
    combined: ChannelResult
    categories: Optional[ChannelResult] = None
    published_tabs: list = field(default_factory=list)


def collect(settings: Settings, source: RowSource, matcher: BrandMatcher, date_range: DateRange) -> RunResult:
    """Classify every channel and merge Search + Shopping + Pmax into the combined view."""
    granularity = settings.granularity

    search = StandardClassifier(matcher, granularity).fold(source.search_term_rows(SEARCH))
    shopping = StandardClassifier(matcher, granularity).fold(source.search_term_rows(SHOPPING))
    pmax = ExclusionAwareClassifier(
        matcher, granularity, all_non_branded=settings.pmax_all_non_branded
    ).fold(source.pmax_search_term_rows())

    channels = {"Search": search, "Pmax": pmax, "Shopping": shopping}
    combined = combine([search, shopping, pmax])

    categories = None
    if settings.include_pmax_categories:
        windows = enumerate_periods(granularity, date_range.start, date_range.end)
        categories = CategoryClassifier(matcher, granularity).fold(source.category_rows(windows))

    return RunResult(channels=channels, combined=combined, categories=categories)


def now_in(time_zone: str) -> datetime:
    """Current time in the account time zone (UTC if the zone is unknown)."""
    try:
        return datetime.now(ZoneInfo(time_zone))
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown account time zone %r (is the tzdata package installed?), using UTC", time_zone)
        return datetime.now(timezone.utc)


def run(settings: Settings, credentials: dict, dry_run: bool = False, session=None):
    """
    Full run against the live APIs.

    Returns (RunResult, AccountInfo, DateRange). Any failure is logged with
    its traceback and re-raised; nothing is retried.
    """
    try:
        matcher = compile_tokens(settings.brand_tokens)

        access_token = get_access_token(credentials, session=session)
        ads = GoogleAdsClient.from_credentials(credentials, access_token, session=session)
        account: AccountInfo = ads.fetch_account_info()

        now = now_in(account.time_zone)
        date_range = settings.date_range(now.date())
        logger.info(
            "Account %s (%s), %s, granularity=%s",
            account.customer_id, account.currency, date_range.description, settings.granularity,
        )

        source = AdsRowSource(ads, settings.granularity, date_range)
        result = collect(settings, source, matcher, date_range)

        if not dry_run:
            sheets = SheetsClient(settings.sheet_id, access_token, session=session)
            result.published_tabs = publish(
                sheets,
                result,
                settings,
                account,
                date_range.description,
                now.strftime("%Y-%m-%d %H:%M:%S"),
            )

        logger.info("Run completed successfully.")
        return result, account, date_range
    except Exception:
        logger.exception("Run failed")
        raise
