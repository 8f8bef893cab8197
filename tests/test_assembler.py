"""
tests/test_assembler.py

Raw tables, chart series and the Info block.
"""

import pytest

from brandsplit.ads.client import AccountInfo
from brandsplit.aggregate import ChannelResult
from brandsplit.config import Settings
from brandsplit.metrics import CATEGORY_SEGMENTS, MetricVector, Segment
from brandsplit.report.assembler import (
    RAW_HEADER,
    RAW_HEADER_NO_COST,
    TAB_ORDER,
    build_chart_series,
    build_info_rows,
    build_raw_rows,
    build_raw_rows_no_cost,
    category_chart_metrics,
    chart_metrics,
    charts_tab,
    raw_tab,
)

B, N, BLANK = Segment.BRANDED, Segment.NON_BRANDED, Segment.BLANK


@pytest.fixture()
def result():
    result = ChannelResult()
    result.add("2024-02", B, MetricVector(50, 5, 2.5, 0, 0))
    result.add("2024-01", B, MetricVector(100, 10, 5.0, 1, 20))
    result.add("2024-01", N, MetricVector(200, 20, 10.0, 2, 40))
    return result


class TestRawRows:
    def test_header_and_order(self, result):
        rows = build_raw_rows(result, "month")
        assert rows[0] == RAW_HEADER
        assert [r[:2] for r in rows[1:]] == [
            ["Jan 2024", "Branded"],
            ["Jan 2024", "Non-branded"],
            ["Feb 2024", "Branded"],
            ["Feb 2024", "Non-branded"],
        ]

    def test_values_and_derived_columns(self, result):
        rows = build_raw_rows(result, "month")
        assert rows[1] == ["Jan 2024", "Branded", 100, 10, 5.0, 1, 20, 5.0, 4.0]
        # zero bucket for a segment with no rows that period
        assert rows[4] == ["Feb 2024", "Non-branded", 0, 0, 0, 0, 0, 0, 0]

    def test_weekly_labels(self):
        result = ChannelResult()
        result.add("2024-01-08", N, MetricVector(1))
        rows = build_raw_rows(result, "week")
        assert rows[1][0] == "w/c 2024-01-08"

    def test_empty_result_is_header_only(self):
        assert build_raw_rows(ChannelResult(), "month") == [RAW_HEADER]

    def test_no_cost_rows_include_blank(self):
        result = ChannelResult(segments=CATEGORY_SEGMENTS)
        result.add("2024-01", BLANK, MetricVector(3, 1, 0, 0, 0))
        rows = build_raw_rows_no_cost(result, "month")
        assert rows[0] == RAW_HEADER_NO_COST
        assert [r[1] for r in rows[1:]] == ["Branded", "Non-branded", "Blank"]
        assert rows[3] == ["Jan 2024", "Blank", 3, 1, 0, 0]


class TestChartSeries:
    def test_metric_sets(self):
        assert [m.value_type for m in chart_metrics("GBP")] == [
            "impressions", "clicks", "cost", "conversions", "conversions_value", "cpa", "roas",
        ]
        assert [m.value_type for m in category_chart_metrics("GBP")] == [
            "impressions", "clicks", "conversions", "conversions_value",
        ]
        assert chart_metrics("GBP")[2].title == "Cost (GBP)"

    def test_series_rows_and_ratio(self, result):
        impressions = chart_metrics("USD")[0]
        series = build_chart_series(result, impressions, "month")
        assert series.header == ["Period", "Branded", "Non-branded"]
        assert series.rows == [["Jan 2024", 100, 200], ["Feb 2024", 50, 0]]
        assert series.ratio_header == ["Period", "% Branded"]
        assert series.ratio_rows[0][1] == pytest.approx(100 / 300)
        assert series.ratio_rows[1][1] == pytest.approx(1.0)

    def test_cpa_series_is_derived(self, result):
        cpa_metric = chart_metrics("USD")[5]
        series = build_chart_series(result, cpa_metric, "month")
        assert series.rows[0] == ["Jan 2024", 5.0, 5.0]
        assert series.rows[1] == ["Feb 2024", 0, 0]

    def test_category_ratio_counts_blank(self):
        result = ChannelResult(segments=CATEGORY_SEGMENTS)
        result.add("2024-01", B, MetricVector(10))
        result.add("2024-01", N, MetricVector(10))
        result.add("2024-01", BLANK, MetricVector(20))
        series = build_chart_series(result, category_chart_metrics("USD")[0], "month")
        assert series.header == ["Period", "Branded", "Non-branded", "Blank"]
        assert series.ratio_rows == [["Jan 2024", pytest.approx(0.25)]]


class TestTabsAndInfo:
    def test_tab_names(self):
        assert raw_tab("Combined") == "Raw - Combined"
        assert charts_tab("Pmax Categories") == "Charts - Pmax Categories"
        assert TAB_ORDER[0] == "Info"
        assert TAB_ORDER.index("Raw - Shopping") < TAB_ORDER.index("Charts - Combined")

    def test_info_rows(self):
        account = AccountInfo(customer_id="1234567890", name="Food Sisters", currency="GBP", time_zone="Europe/London")
        settings = Settings(brand_tokens=("foodsisters", "foodsister"), sheet_id="abc", granularity="week")
        rows = build_info_rows(account, settings, "Last 90 days", "2024-03-01 09:00:00")
        info = dict(rows)
        assert info["Account Name"] == "Food Sisters"
        assert info["Currency"] == "GBP"
        assert info["Date Range"] == "Last 90 days"
        assert info["Time Granularity"] == "week"
        assert info["Brand Tokens"] == "foodsisters, foodsister"
        assert info["Pmax All Non-branded"] == "No"
        assert rows[-1] == ["Run Timestamp", "2024-03-01 09:00:00"]
