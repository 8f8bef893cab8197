"""
Row builders and fakes shared by the test modules.

Rows mirror the Google Ads REST JSON shape (camelCase, int64 as strings).
"""

from brandsplit.ads.queries import SEARCH, SHOPPING, with_period
from brandsplit.periods import SEGMENT_FIELDS


def _metrics(impressions, clicks, cost, conversions, value, with_cost=True):
    metrics = {
        "impressions": str(impressions),
        "clicks": str(clicks),
        "conversions": conversions,
        "conversionsValue": value,
    }
    if with_cost:
        metrics["costMicros"] = str(int(round(cost * 1_000_000)))
    return metrics


def search_row(term, period, impressions=0, clicks=0, cost=0.0, conversions=0, value=0, granularity="month"):
    segments = {} if period is None else {SEGMENT_FIELDS[granularity]: period}
    return {
        "searchTermView": {"searchTerm": term},
        "segments": segments,
        "metrics": _metrics(impressions, clicks, cost, conversions, value),
    }


def pmax_row(term, period, status="ADDED", impressions=0, clicks=0, cost=0.0, conversions=0, value=0, granularity="month"):
    segments = {SEGMENT_FIELDS[granularity]: period}
    if status is not None:
        segments["searchTermTargetingStatus"] = status
    return {
        "campaignSearchTermView": {"searchTerm": term},
        "segments": segments,
        "metrics": _metrics(impressions, clicks, cost, conversions, value),
    }


def category_row(label, period, impressions=0, clicks=0, conversions=0, value=0, granularity="month", cost=0.0):
    row = {
        "campaignSearchTermInsight": {} if label is None else {"categoryLabel": label},
        "metrics": _metrics(impressions, clicks, cost, conversions, value, with_cost=bool(cost)),
    }
    if period is not None:
        row["segments"] = {SEGMENT_FIELDS[granularity]: period}
    return row


class FakeRowSource:
    """In-memory row source; category rows are handed out per window like the live fan-out."""

    def __init__(self, search=(), shopping=(), pmax=(), categories=None, granularity="month"):
        self.rows = {SEARCH: list(search), SHOPPING: list(shopping)}
        self.pmax = list(pmax)
        self.categories = categories or {}
        self.granularity = granularity
        self.windows = None

    def search_term_rows(self, channel_type):
        return iter(self.rows[channel_type])

    def pmax_search_term_rows(self):
        return iter(self.pmax)

    def category_rows(self, windows):
        self.windows = list(windows)
        for window in self.windows:
            for row in self.categories.get(window.key, []):
                yield with_period(row, SEGMENT_FIELDS[self.granularity], window.key)


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text or ("" if body is None else str(body))
        self.content = b"" if body is None else b"{}"

    def json(self):
        if self._body is None:
            raise ValueError("no json body")
        return self._body


class FakeSession:
    """Replays queued responses and records every call."""

    def __init__(self, responses=()):
        self.responses = list(responses)
        self.calls = []

    def _next(self, method, url, kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        return self.responses.pop(0)

    def post(self, url, **kwargs):
        return self._next("POST", url, kwargs)

    def request(self, method, url, **kwargs):
        return self._next(method, url, kwargs)
