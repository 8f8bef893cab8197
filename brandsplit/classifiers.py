"""
Row classifiers: decode one Google Ads row, decide its segment, file it.

Three row shapes come out of the Ads API:

    search_term_view             Search / Shopping search terms
    campaign_search_term_view    Performance Max search terms (+ targeting status)
    campaign_search_term_insight Performance Max search categories (no cost)

Each classifier exposes extract(row) -> ExtractedRow so the folding loop,
the period bucketer and the aggregator never look at API field names.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from brandsplit.aggregate import ChannelResult
from brandsplit.matcher import BrandMatcher
from brandsplit.metrics import (
    BRAND_SEGMENTS,
    CATEGORY_SEGMENTS,
    MetricVector,
    Segment,
    micros_to_units,
)
from brandsplit.periods import SEGMENT_FIELDS, check_granularity, key_for

logger = logging.getLogger(__name__)

# Targeting statuses that mean "excluded in the UI"; such rows are not volume
EXCLUDED_STATUSES = frozenset({"EXCLUDED", "ADDED_EXCLUDED"})

# Errors that mean a row had an unexpected shape
ROW_DECODE_ERRORS = (AttributeError, KeyError, TypeError, ValueError)


@dataclass(frozen=True)
class ExtractedRow:
    text: str
    metrics: MetricVector
    period: Optional[str]
    targeting_status: Optional[str] = None


def _section(row, key: str) -> dict:
    """Nested object of an API row; {} when absent, TypeError when malformed."""
    if not isinstance(row, dict):
        raise TypeError(f"row is {type(row).__name__}, expected object")
    value = row.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"row.{key} is {type(value).__name__}, expected object")
    return value


def decode_metrics(metrics: dict, include_cost: bool = True) -> MetricVector:
    """API metrics object -> MetricVector. costMicros is converted to currency units."""
    return MetricVector.from_raw({
        "impressions": metrics.get("impressions"),
        "clicks": metrics.get("clicks"),
        "cost": micros_to_units(metrics.get("costMicros")) if include_cost else 0,
        "conversions": metrics.get("conversions"),
        "conversions_value": metrics.get("conversionsValue"),
    })


@dataclass
class FoldStats:
    rows: int = 0
    counted: int = 0
    excluded: int = 0
    no_period: int = 0
    errors: int = 0


class StandardClassifier:
    """Search / Shopping search terms: branded if the term matches, else non-branded."""

    name = "search_term_view"
    view = "searchTermView"
    text_field = "searchTerm"
    segments = BRAND_SEGMENTS

    def __init__(self, matcher: BrandMatcher, granularity: str):
        self.matcher = matcher
        self.granularity = check_granularity(granularity)
        self.stats = FoldStats()

    def extract(self, row) -> ExtractedRow:
        view = _section(row, self.view)
        segments = _section(row, "segments")
        text = view.get(self.text_field)
        if not isinstance(text, str):
            # a missing or non-text term is still volume; it can never be branded
            text = ""
        return ExtractedRow(
            text=text,
            metrics=decode_metrics(_section(row, "metrics")),
            period=segments.get(SEGMENT_FIELDS[self.granularity]),
        )

    def classify(self, row: ExtractedRow) -> Optional[Segment]:
        """Segment for an extracted row, or None to discard it."""
        return Segment.BRANDED if self.matcher.matches(row.text) else Segment.NON_BRANDED

    def new_result(self) -> ChannelResult:
        return ChannelResult(segments=self.segments)

    def fold(self, rows: Iterable, result: Optional[ChannelResult] = None) -> ChannelResult:
        """
        Consume a row stream into a ChannelResult.

        Malformed rows are logged and skipped. Discarded rows and rows without
        a period contribute nothing.
        """
        if result is None:
            result = self.new_result()

        for row in rows:
            self.stats.rows += 1
            try:
                extracted = self.extract(row)
            except ROW_DECODE_ERRORS as e:
                self.stats.errors += 1
                logger.warning("[%s] Error processing row %d: %s", self.name, self.stats.rows, e)
                continue

            segment = self.classify(extracted)
            if segment is None:
                self.stats.excluded += 1
                continue

            period_key = key_for(self.granularity, extracted.period)
            if period_key is None:
                self.stats.no_period += 1
                continue

            result.add(period_key, segment, extracted.metrics)
            self.stats.counted += 1

        logger.info(
            "[%s] rows=%d counted=%d excluded=%d no_period=%d errors=%d",
            self.name, self.stats.rows, self.stats.counted,
            self.stats.excluded, self.stats.no_period, self.stats.errors,
        )
        return result


class ExclusionAwareClassifier(StandardClassifier):
    """
    Performance Max search terms.

    Rows excluded in the UI (EXCLUDED / ADDED_EXCLUDED) are dropped before
    anything else. With all_non_branded set, every remaining row is reported
    as non-branded regardless of the brand match.
    """

    name = "campaign_search_term_view"
    view = "campaignSearchTermView"

    def __init__(self, matcher: BrandMatcher, granularity: str, all_non_branded: bool = False):
        super().__init__(matcher, granularity)
        self.all_non_branded = all_non_branded

    def extract(self, row) -> ExtractedRow:
        extracted = super().extract(row)
        segments = _section(row, "segments")
        status = segments.get("searchTermTargetingStatus")
        if status is None:
            status = segments.get("search_term_targeting_status")
        return ExtractedRow(
            text=extracted.text,
            metrics=extracted.metrics,
            period=extracted.period,
            targeting_status=None if status is None else str(status),
        )

    @staticmethod
    def is_excluded(status: Optional[str]) -> bool:
        if status is None:
            return False
        return status.strip().upper() in EXCLUDED_STATUSES

    def classify(self, row: ExtractedRow) -> Optional[Segment]:
        if self.is_excluded(row.targeting_status):
            return None
        if self.all_non_branded:
            return Segment.NON_BRANDED
        return super().classify(row)


class CategoryClassifier(StandardClassifier):
    """
    Performance Max search categories (campaign_search_term_insight).

    The resource has no cost metric, so cost is always 0. A missing or blank
    category label is its own Blank segment.
    """

    name = "campaign_search_term_insight"
    view = "campaignSearchTermInsight"
    text_field = "categoryLabel"
    segments = CATEGORY_SEGMENTS

    def extract(self, row) -> ExtractedRow:
        view = _section(row, self.view)
        segments = _section(row, "segments")
        label = view.get(self.text_field) or ""
        if not isinstance(label, str):
            raise TypeError(f"{self.view}.{self.text_field} is {type(label).__name__}")
        return ExtractedRow(
            text=label,
            metrics=decode_metrics(_section(row, "metrics"), include_cost=False),
            period=segments.get(SEGMENT_FIELDS[self.granularity]),
        )

    def classify(self, row: ExtractedRow) -> Optional[Segment]:
        if not row.text.strip():
            return Segment.BLANK
        return super().classify(row)
