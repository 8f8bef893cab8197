"""
Tables and chart series from channel results.

Pure formatting: rows are sorted by period key then the result's segment
order (Branded, Non-branded[, Blank]). Accumulated values pass through
unchanged; CPA, ROAS and % branded are computed here at render time.
"""

from dataclasses import dataclass
from typing import List

from brandsplit.aggregate import ChannelResult, branded_ratio, cpa, metric_value, roas
from brandsplit.metrics import Segment
from brandsplit.periods import format_label

# =============================================================================
# TAB NAMES
# =============================================================================

INFO_TAB = "Info"
COMBINED = "Combined"
CATEGORIES = "Pmax Categories"
CHANNELS = ("Search", "Pmax", "Shopping")

TAB_ORDER = [
    "Info",
    "Raw - Combined",
    "Raw - Search",
    "Raw - Pmax",
    "Raw - Pmax Categories",
    "Raw - Shopping",
    "Charts - Combined",
    "Charts - Search",
    "Charts - Pmax",
    "Charts - Pmax Categories",
    "Charts - Shopping",
]


def raw_tab(view: str) -> str:
    return f"Raw - {view}"


def charts_tab(view: str) -> str:
    return f"Charts - {view}"


# =============================================================================
# RAW TABLES
# =============================================================================

RAW_HEADER = ["Period", "Segment", "Impressions", "Clicks", "Cost", "Conversions", "Conversion Value", "CPA", "ROAS"]
RAW_HEADER_NO_COST = ["Period", "Segment", "Impressions", "Clicks", "Conversions", "Conversion Value"]


def build_raw_rows(result: ChannelResult, granularity: str) -> List[list]:
    """Header plus one row per (period, segment), with CPA and ROAS."""
    rows = [list(RAW_HEADER)]
    for period_key in result.periods():
        bucket = result.period_data[period_key]
        label = format_label(granularity, period_key)
        for segment in result.segments:
            m = bucket[segment]
            rows.append([
                label, segment.label,
                m.impressions, m.clicks, m.cost, m.conversions, m.conversions_value,
                cpa(m), roas(m),
            ])
    return rows


def build_raw_rows_no_cost(result: ChannelResult, granularity: str) -> List[list]:
    """Raw rows for sources without cost (categories); includes Blank when tracked."""
    rows = [list(RAW_HEADER_NO_COST)]
    for period_key in result.periods():
        bucket = result.period_data[period_key]
        label = format_label(granularity, period_key)
        for segment in result.segments:
            m = bucket[segment]
            rows.append([label, segment.label, m.impressions, m.clicks, m.conversions, m.conversions_value])
    return rows


# =============================================================================
# CHART SERIES
# =============================================================================

INTEGER_FORMAT = "#,##0"
DECIMAL_FORMAT = "#,##0.00"
PERCENT_FORMAT = "0.0%"


def currency_format(currency: str) -> str:
    return f'"{currency}" #,##0.00'


@dataclass(frozen=True)
class ChartMetric:
    value_type: str
    title: str
    number_format: str


def chart_metrics(currency: str) -> List[ChartMetric]:
    """Metrics charted for views with cost."""
    return [
        ChartMetric("impressions", "Impressions", INTEGER_FORMAT),
        ChartMetric("clicks", "Clicks", INTEGER_FORMAT),
        ChartMetric("cost", f"Cost ({currency})", currency_format(currency)),
        ChartMetric("conversions", "Conversions", DECIMAL_FORMAT),
        ChartMetric("conversions_value", f"Conversion Value ({currency})", currency_format(currency)),
        ChartMetric("cpa", f"Cost per Conversion ({currency})", currency_format(currency)),
        ChartMetric("roas", "ROAS", DECIMAL_FORMAT),
    ]


def category_chart_metrics(currency: str) -> List[ChartMetric]:
    """Category insight has no cost, so no cost, CPA or ROAS charts."""
    return [
        ChartMetric("impressions", "Impressions", INTEGER_FORMAT),
        ChartMetric("clicks", "Clicks", INTEGER_FORMAT),
        ChartMetric("conversions", "Conversions", DECIMAL_FORMAT),
        ChartMetric("conversions_value", f"Conversion Value ({currency})", currency_format(currency)),
    ]


@dataclass(frozen=True)
class ChartSeries:
    metric: ChartMetric
    header: list
    rows: List[list]
    ratio_header: list
    ratio_rows: List[list]


def build_chart_rows(result: ChannelResult, metric: str, granularity: str) -> List[list]:
    """[label, value per segment...] for each period."""
    rows = []
    for period_key in result.periods():
        bucket = result.period_data[period_key]
        row = [format_label(granularity, period_key)]
        row.extend(metric_value(bucket[segment], metric) for segment in result.segments)
        rows.append(row)
    return rows


def build_ratio_rows(result: ChannelResult, metric: str, granularity: str) -> List[list]:
    """[label, % branded] for each period. Blank counts in the denominator when tracked."""
    include_blank = Segment.BLANK in result.segments
    return [
        [format_label(granularity, period_key), branded_ratio(result.period_data[period_key], metric, include_blank)]
        for period_key in result.periods()
    ]


def build_chart_series(result: ChannelResult, metric: ChartMetric, granularity: str) -> ChartSeries:
    return ChartSeries(
        metric=metric,
        header=["Period"] + [segment.label for segment in result.segments],
        rows=build_chart_rows(result, metric.value_type, granularity),
        ratio_header=["Period", "% Branded"],
        ratio_rows=build_ratio_rows(result, metric.value_type, granularity),
    )


# =============================================================================
# INFO BLOCK
# =============================================================================


def build_info_rows(account, settings, date_range_description: str, run_timestamp: str) -> List[list]:
    return [
        ["Account Name", account.name],
        ["Account ID", account.customer_id],
        ["Currency", account.currency],
        ["Date Range", date_range_description],
        ["Time Granularity", settings.granularity],
        ["Brand Tokens", ", ".join(settings.brand_tokens)],
        ["Pmax All Non-branded", "Yes" if settings.pmax_all_non_branded else "No"],
        ["Run Timestamp", run_timestamp],
    ]
