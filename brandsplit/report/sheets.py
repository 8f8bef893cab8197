"""
Minimal Google Sheets v4 REST client.

Only what the report needs: find/create/clear tabs, write value blocks,
number formats, embedded column/line charts, and tab ordering.
"""

import logging
from typing import Dict, List, Optional
from urllib.parse import quote

import requests

from brandsplit.ads.client import REQUEST_TIMEOUT, ApiError, error_message

logger = logging.getLogger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"


def column_letter(column: int) -> str:
    """1-based column number -> A1 letters (1 -> A, 27 -> AA)."""
    letters = ""
    while column > 0:
        column, remainder = divmod(column - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


def a1_range(tab: str, row: int, column: int, num_rows: int, num_columns: int) -> str:
    """A1 range for a block starting at 1-based (row, column)."""
    start = f"{column_letter(column)}{row}"
    end = f"{column_letter(column + num_columns - 1)}{row + num_rows - 1}"
    escaped = tab.replace("'", "''")
    return f"'{escaped}'!{start}:{end}"


def grid_range(sheet_id: int, row: int, column: int, num_rows: int, num_columns: int) -> dict:
    """GridRange (0-based, end exclusive) for a block starting at 1-based (row, column)."""
    return {
        "sheetId": sheet_id,
        "startRowIndex": row - 1,
        "endRowIndex": row - 1 + num_rows,
        "startColumnIndex": column - 1,
        "endColumnIndex": column - 1 + num_columns,
    }


def hex_color(value: str) -> dict:
    value = value.lstrip("#")
    return {
        "red": int(value[0:2], 16) / 255,
        "green": int(value[2:4], 16) / 255,
        "blue": int(value[4:6], 16) / 255,
    }


# =============================================================================
# REQUEST BUILDERS
# =============================================================================


def number_format_request(sheet_id: int, row: int, column: int, num_rows: int, num_columns: int, pattern: str) -> dict:
    number_type = "PERCENT" if pattern.endswith("%") else "NUMBER"
    return {
        "repeatCell": {
            "range": grid_range(sheet_id, row, column, num_rows, num_columns),
            "cell": {"userEnteredFormat": {"numberFormat": {"type": number_type, "pattern": pattern}}},
            "fields": "userEnteredFormat.numberFormat",
        }
    }


def overlay_position(sheet_id: int, row: int, column: int, width: int, height: int) -> dict:
    return {
        "overlayPosition": {
            "anchorCell": {"sheetId": sheet_id, "rowIndex": row - 1, "columnIndex": column - 1},
            "widthPixels": width,
            "heightPixels": height,
        }
    }


def column_chart_request(
    sheet_id: int,
    title: str,
    row: int,
    num_rows: int,
    domain_column: int,
    series_labels: List[str],
    colors: List[str],
    x_title: str,
    y_title: str,
    anchor: tuple,
    width: int,
    height: int,
) -> dict:
    """Stacked column chart: domain in domain_column, one series per following column."""
    series = []
    for offset, (label, color) in enumerate(zip(series_labels, colors), start=1):
        series.append({
            "series": {"sourceRange": {"sources": [grid_range(sheet_id, row, domain_column + offset, num_rows, 1)]}},
            "targetAxis": "LEFT_AXIS",
            "colorStyle": {"rgbColor": hex_color(color)},
        })
    return {
        "addChart": {
            "chart": {
                "spec": {
                    "title": title,
                    "basicChart": {
                        "chartType": "COLUMN",
                        "stackedType": "STACKED",
                        "legendPosition": "BOTTOM_LEGEND",
                        "headerCount": 1,
                        "axis": [
                            {"position": "BOTTOM_AXIS", "title": x_title},
                            {"position": "LEFT_AXIS", "title": y_title},
                        ],
                        "domains": [{"domain": {"sourceRange": {"sources": [grid_range(sheet_id, row, domain_column, num_rows, 1)]}}}],
                        "series": series,
                    },
                },
                "position": overlay_position(sheet_id, anchor[0], anchor[1], width, height),
            }
        }
    }


def line_chart_request(
    sheet_id: int,
    title: str,
    row: int,
    num_rows: int,
    domain_column: int,
    color: str,
    x_title: str,
    y_title: str,
    anchor: tuple,
    width: int,
    height: int,
) -> dict:
    """Single-series line chart (domain_column, domain_column + 1)."""
    return {
        "addChart": {
            "chart": {
                "spec": {
                    "title": title,
                    "basicChart": {
                        "chartType": "LINE",
                        "legendPosition": "NO_LEGEND",
                        "headerCount": 1,
                        "axis": [
                            {"position": "BOTTOM_AXIS", "title": x_title},
                            {"position": "LEFT_AXIS", "title": y_title},
                        ],
                        "domains": [{"domain": {"sourceRange": {"sources": [grid_range(sheet_id, row, domain_column, num_rows, 1)]}}}],
                        "series": [{
                            "series": {"sourceRange": {"sources": [grid_range(sheet_id, row, domain_column + 1, num_rows, 1)]}},
                            "targetAxis": "LEFT_AXIS",
                            "colorStyle": {"rgbColor": hex_color(color)},
                            "pointStyle": {"shape": "CIRCLE", "size": 5},
                        }],
                    },
                },
                "position": overlay_position(sheet_id, anchor[0], anchor[1], width, height),
            }
        }
    }


# =============================================================================
# CLIENT
# =============================================================================


class SheetsClient:
    """One spreadsheet, addressed by id."""

    def __init__(self, spreadsheet_id: str, access_token: str, session=None):
        self.spreadsheet_id = spreadsheet_id
        self.access_token = access_token
        self.session = session or requests.Session()
        self.base_url = f"{SHEETS_API_URL}/{spreadsheet_id}"
        self._tabs: Optional[Dict[str, dict]] = None

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, url: str, **kwargs) -> dict:
        response = self.session.request(method, url, headers=self._headers(), timeout=REQUEST_TIMEOUT, **kwargs)
        if response.status_code != 200:
            raise ApiError(response.status_code, error_message(response), api="Sheets")
        return response.json() if response.content else {}

    def tabs(self) -> Dict[str, dict]:
        """Tab title -> {"sheet_id", "index", "chart_ids"}; fetched once, then kept in sync."""
        if self._tabs is None:
            data = self._request(
                "GET",
                self.base_url,
                params={"fields": "sheets(properties(sheetId,title,index),charts(chartId))"},
            )
            self._tabs = {}
            for sheet in data.get("sheets", []):
                props = sheet.get("properties", {})
                self._tabs[props.get("title")] = {
                    "sheet_id": props.get("sheetId"),
                    "index": props.get("index"),
                    "chart_ids": [c.get("chartId") for c in sheet.get("charts", [])],
                }
        return self._tabs

    def batch_update(self, update_requests: List[dict]) -> dict:
        if not update_requests:
            return {}
        return self._request("POST", f"{self.base_url}:batchUpdate", json={"requests": update_requests})

    def get_or_create_tab(self, title: str) -> int:
        """Sheet id of an emptied tab: existing tabs are cleared (values, formats and charts), missing ones added."""
        tabs = self.tabs()
        if title in tabs:
            tab = tabs[title]
            self._request("POST", f"{self.base_url}/values/{quote(a1_tab(title), safe='')}:clear", json={})
            update_requests = [{"updateCells": {"range": {"sheetId": tab["sheet_id"]}, "fields": "userEnteredFormat"}}]
            update_requests.extend({"deleteEmbeddedObject": {"objectId": chart_id}} for chart_id in tab["chart_ids"])
            self.batch_update(update_requests)
            tab["chart_ids"] = []
            return tab["sheet_id"]

        reply = self.batch_update([{"addSheet": {"properties": {"title": title}}}])
        props = reply["replies"][0]["addSheet"]["properties"]
        tabs[title] = {"sheet_id": props["sheetId"], "index": props.get("index"), "chart_ids": []}
        logger.debug("Created tab %s (sheetId=%s)", title, props["sheetId"])
        return props["sheetId"]

    def write_blocks(self, title: str, blocks: List[tuple]) -> None:
        """Write several (row, column, values) blocks to one tab in a single call."""
        data = []
        for row, column, values in blocks:
            if not values:
                continue
            width = max(len(r) for r in values)
            data.append({
                "range": a1_range(title, row, column, len(values), width),
                "values": values,
            })
        if not data:
            return
        self._request(
            "POST",
            f"{self.base_url}/values:batchUpdate",
            json={"valueInputOption": "RAW", "data": data},
        )

    def reorder_tabs(self, order: List[str]) -> None:
        """Move tabs to follow `order`; names not present in the spreadsheet are skipped."""
        tabs = self.tabs()
        update_requests = []
        index = 0
        for title in order:
            if title not in tabs:
                continue
            update_requests.append({
                "updateSheetProperties": {
                    "properties": {"sheetId": tabs[title]["sheet_id"], "index": index},
                    "fields": "index",
                }
            })
            tabs[title]["index"] = index
            index += 1
        self.batch_update(update_requests)


def a1_tab(title: str) -> str:
    """A1 reference to a whole tab."""
    escaped = title.replace("'", "''")
    return f"'{escaped}'"
