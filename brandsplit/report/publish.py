"""
Write a finished run to the Google Sheet.

Layout per chart tab, repeated for each metric down the sheet:

    A..   Period | Branded | Non-branded [| Blank]     (stacked column chart below)
    gap
    ..    Period | % Branded                         (line chart to the right)
"""

import logging
import math

from brandsplit.metrics import Segment
from brandsplit.periods import axis_title
from brandsplit.report.assembler import (
    CATEGORIES,
    CHANNELS,
    COMBINED,
    INFO_TAB,
    PERCENT_FORMAT,
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
from brandsplit.report.sheets import column_chart_request, line_chart_request, number_format_request

logger = logging.getLogger(__name__)

SEGMENT_COLORS = {
    Segment.BRANDED: "#4285F4",
    Segment.NON_BRANDED: "#FBBC05",
    Segment.BLANK: "#BEBEBE",
}
RATIO_COLOR = "#34A853"

CHART_WIDTH = 500
RATIO_CHART_WIDTH = 400
CHART_HEIGHT = 300
ROW_HEIGHT = 25


def write_raw_tab(sheets, title: str, rows: list) -> None:
    sheets.get_or_create_tab(title)
    if len(rows) > 1:
        sheets.write_blocks(title, [(1, 1, rows)])


def write_charts_for_view(sheets, result, title: str, metrics, granularity: str, title_suffix: str = "") -> None:
    """One stacked column chart and one % branded line chart per metric."""
    sheet_id = sheets.get_or_create_tab(title)
    period_label = axis_title(granularity)
    segment_count = len(result.segments)
    ratio_column = segment_count + 3
    colors = [SEGMENT_COLORS[segment] for segment in result.segments]

    blocks = []
    update_requests = []
    start_row = 1
    for metric in metrics:
        series = build_chart_series(result, metric, granularity)
        if not series.rows:
            continue

        num_rows = len(series.rows) + 1
        num_data_rows = len(series.rows)
        blocks.append((start_row, 1, [series.header] + series.rows))
        blocks.append((start_row, ratio_column, [series.ratio_header] + series.ratio_rows))

        update_requests.append(number_format_request(sheet_id, start_row + 1, 2, num_data_rows, segment_count, metric.number_format))
        update_requests.append(number_format_request(sheet_id, start_row + 1, ratio_column + 1, num_data_rows, 1, PERCENT_FORMAT))

        update_requests.append(column_chart_request(
            sheet_id,
            title=f"{metric.title} by {period_label} (Branded vs Non-branded){title_suffix}",
            row=start_row,
            num_rows=num_rows,
            domain_column=1,
            series_labels=series.header[1:],
            colors=colors,
            x_title=period_label,
            y_title=metric.title,
            anchor=(start_row + num_rows, 1),
            width=CHART_WIDTH,
            height=CHART_HEIGHT,
        ))
        update_requests.append(line_chart_request(
            sheet_id,
            title=f"Branded Dependency Ratio - {metric.title}",
            row=start_row,
            num_rows=num_rows,
            domain_column=ratio_column,
            color=RATIO_COLOR,
            x_title=period_label,
            y_title="% Branded",
            anchor=(start_row + num_rows, ratio_column + 2),
            width=RATIO_CHART_WIDTH,
            height=CHART_HEIGHT,
        ))

        start_row += num_rows + math.ceil(CHART_HEIGHT / ROW_HEIGHT) + 2

    sheets.write_blocks(title, blocks)
    sheets.batch_update(update_requests)


def publish(sheets, run, settings, account, date_range_description: str, run_timestamp: str) -> list:
    """Write Info, raw and chart tabs for a RunResult; returns the tab names written."""
    granularity = settings.granularity
    written = []

    sheets.get_or_create_tab(INFO_TAB)
    sheets.write_blocks(INFO_TAB, [(1, 1, build_info_rows(account, settings, date_range_description, run_timestamp))])
    written.append(INFO_TAB)

    views = [(COMBINED, run.combined)]
    if settings.include_by_channel:
        views.extend((channel, run.channels[channel]) for channel in CHANNELS if channel in run.channels)

    for view, result in views:
        write_raw_tab(sheets, raw_tab(view), build_raw_rows(result, granularity))
        written.append(raw_tab(view))

    if settings.include_pmax_categories and run.categories is not None:
        write_raw_tab(sheets, raw_tab(CATEGORIES), build_raw_rows_no_cost(run.categories, granularity))
        written.append(raw_tab(CATEGORIES))

    for view, result in views:
        write_charts_for_view(sheets, result, charts_tab(view), chart_metrics(account.currency), granularity)
        written.append(charts_tab(view))

    if settings.include_pmax_categories and run.categories is not None:
        write_charts_for_view(
            sheets,
            run.categories,
            charts_tab(CATEGORIES),
            category_chart_metrics(account.currency),
            granularity,
            title_suffix=" - Consumer Spotlight",
        )
        written.append(charts_tab(CATEGORIES))

    sheets.reorder_tabs(TAB_ORDER)
    logger.info("Wrote %d tab(s) to spreadsheet %s", len(written), sheets.spreadsheet_id)
    return written
