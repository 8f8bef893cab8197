"""
tests/test_ads.py

Google Ads REST client, GAQL text and the live row source (with fake HTTP).
"""

import logging
from datetime import date

import pytest
import requests

from brandsplit.ads.client import ApiError, GoogleAdsClient, get_access_token
from brandsplit.ads.queries import (
    SEARCH,
    AdsRowSource,
    category_insight_query,
    pmax_search_term_query,
    search_term_query,
    with_period,
)
from brandsplit.config import DateRange
from brandsplit.periods import PeriodWindow, enumerate_periods
from tests.helpers import FakeResponse, FakeSession

DATE_RANGE = DateRange(date(2024, 1, 1), date(2024, 2, 29), "2024-01-01 to 2024-02-29")


def make_client(session, login_customer_id=None):
    return GoogleAdsClient("123-456-7890", "token", "dev", login_customer_id=login_customer_id, session=session)


class TestAccessToken:
    def test_refresh(self):
        session = FakeSession([FakeResponse(200, {"access_token": "abc"})])
        credentials = {"client_id": "id", "client_secret": "secret", "refresh_token": "refresh"}
        assert get_access_token(credentials, session=session) == "abc"
        assert session.calls[0]["data"]["grant_type"] == "refresh_token"

    def test_refresh_failure(self):
        session = FakeSession([FakeResponse(400, None, text="invalid_grant")])
        credentials = {"client_id": "id", "client_secret": "secret", "refresh_token": "refresh"}
        with pytest.raises(ApiError) as excinfo:
            get_access_token(credentials, session=session)
        assert excinfo.value.status_code == 400
        assert "invalid_grant" in str(excinfo.value)


class TestGoogleAdsClient:
    def test_search_follows_page_tokens(self):
        session = FakeSession([
            FakeResponse(200, {"results": [{"n": 1}, {"n": 2}], "nextPageToken": "p2"}),
            FakeResponse(200, {"results": [{"n": 3}]}),
        ])
        client = make_client(session)
        assert client.search("SELECT x FROM y") == [{"n": 1}, {"n": 2}, {"n": 3}]
        assert "pageToken" not in session.calls[0]["json"]
        assert session.calls[1]["json"]["pageToken"] == "p2"
        assert session.calls[0]["url"].endswith("/customers/1234567890/googleAds:search")

    def test_headers(self):
        session = FakeSession([FakeResponse(200, {"results": []})])
        make_client(session, login_customer_id="111-222-3333").search("q")
        headers = session.calls[0]["headers"]
        assert headers["developer-token"] == "dev"
        assert headers["login-customer-id"] == "1112223333"
        assert headers["Authorization"] == "Bearer token"

    def test_error_message_from_body(self):
        session = FakeSession([FakeResponse(400, [{"error": {"message": "bad query"}}])])
        with pytest.raises(ApiError, match="bad query"):
            make_client(session).search("q")

    def test_account_info(self):
        customer = {"id": "1234567890", "descriptiveName": "Food Sisters", "currencyCode": "GBP", "timeZone": "Europe/London"}
        session = FakeSession([FakeResponse(200, {"results": [{"customer": customer}]})])
        account = make_client(session).fetch_account_info()
        assert (account.name, account.currency, account.time_zone) == ("Food Sisters", "GBP", "Europe/London")


class TestQueries:
    def test_search_term_query(self):
        query = search_term_query(SEARCH, "week", DATE_RANGE)
        assert "FROM search_term_view" in query
        assert "segments.week" in query
        assert "metrics.cost_micros" in query
        assert "campaign.advertising_channel_type = 'SEARCH'" in query
        assert "BETWEEN '2024-01-01' AND '2024-02-29'" in query

    def test_pmax_query_selects_targeting_status(self):
        query = pmax_search_term_query("month", DATE_RANGE)
        assert "segments.search_term_targeting_status" in query
        assert "FROM campaign_search_term_view" in query

    def test_category_query_has_no_cost_and_no_period_segment(self):
        window = PeriodWindow("2024-01", date(2024, 1, 1), date(2024, 1, 31))
        query = category_insight_query("42", window)
        assert "cost_micros" not in query
        assert "segments.month" not in query
        assert "campaign_search_term_insight.campaign_id = 42" in query
        assert "BETWEEN '2024-01-01' AND '2024-01-31'" in query


class FakeAdsClient:
    """Stands in for GoogleAdsClient; category queries can be made to fail per campaign."""

    def __init__(self, campaign_ids, fail_for=()):
        self.campaign_ids = campaign_ids
        self.fail_for = set(fail_for)
        self.queries = []

    def iter_search(self, query):
        self.queries.append(query)
        if "FROM campaign\n" in query:
            return iter([{"campaign": {"id": cid}} for cid in self.campaign_ids])
        return iter([])

    def search(self, query):
        self.queries.append(query)
        for cid in self.fail_for:
            if f"campaign_id = {cid}" in query:
                raise ApiError(500, "internal")
        return [{"campaignSearchTermInsight": {"categoryLabel": "shoes"}, "metrics": {"impressions": "1"}}]


class TestCategoryFanOut:
    def test_one_query_per_period_and_campaign(self):
        client = FakeAdsClient(["1", "2"])
        source = AdsRowSource(client, "month", DATE_RANGE)
        windows = enumerate_periods("month", DATE_RANGE.start, DATE_RANGE.end)

        rows = list(source.category_rows(windows))

        assert len(rows) == 4
        assert [r["segments"]["month"] for r in rows] == ["2024-01", "2024-01", "2024-02", "2024-02"]

    def test_failing_sub_query_is_skipped(self, caplog):
        client = FakeAdsClient(["1", "2"], fail_for=["1"])
        source = AdsRowSource(client, "week", DATE_RANGE)
        windows = [PeriodWindow("2024-01-08", date(2024, 1, 8), date(2024, 1, 14))]

        with caplog.at_level(logging.WARNING, logger="brandsplit.ads.queries"):
            rows = list(source.category_rows(windows))

        assert len(rows) == 1
        assert rows[0]["segments"]["week"] == "2024-01-08"
        assert "Error querying campaign 1" in caplog.text

    def test_network_errors_are_skipped_too(self):
        class Flaky(FakeAdsClient):
            def search(self, query):
                raise requests.ConnectionError("reset")

        source = AdsRowSource(Flaky(["1"]), "month", DATE_RANGE)
        windows = enumerate_periods("month", DATE_RANGE.start, DATE_RANGE.end)
        assert list(source.category_rows(windows)) == []

    def test_no_pmax_campaigns(self):
        client = FakeAdsClient([])
        source = AdsRowSource(client, "month", DATE_RANGE)
        assert list(source.category_rows(enumerate_periods("month", DATE_RANGE.start, DATE_RANGE.end))) == []
        assert len(client.queries) == 1


class TestWithPeriod:
    def test_existing_segments_are_kept(self):
        row = {"segments": {"other": 1}, "metrics": {}}
        tagged = with_period(row, "month", "2024-01")
        assert tagged["segments"] == {"other": 1, "month": "2024-01"}
        assert row["segments"] == {"other": 1}

    def test_non_dict_rows_pass_through(self):
        assert with_period("junk", "month", "2024-01") == "junk"
