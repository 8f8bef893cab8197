"""
Minimal Google Ads REST client (read-only).

OAuth access tokens come from the refresh token in the environment. The same
token is used for the Sheets API, so the refresh token must be granted both
the AdWords and the spreadsheets scopes.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

GOOGLE_ADS_API_VERSION = "v19"
TOKEN_URL = "https://oauth2.googleapis.com/token"
REQUEST_TIMEOUT = 120


class ApiError(Exception):
    """Non-200 response from a Google API."""

    def __init__(self, status_code: int, message: str, api: str = "Google Ads"):
        self.status_code = status_code
        self.message = message
        self.api = api
        super().__init__(f"{api} API error {status_code}: {message}")


def error_message(response) -> str:
    """Best-effort error message from a Google API error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, list) and body:
        body = body[0]
    if isinstance(body, dict):
        return body.get("error", {}).get("message", response.text)
    return response.text


def get_access_token(credentials: dict, session=None) -> str:
    """Exchange the refresh token for an access token."""
    http = session or requests
    response = http.post(
        TOKEN_URL,
        data={
            "client_id": credentials["client_id"],
            "client_secret": credentials["client_secret"],
            "refresh_token": credentials["refresh_token"],
            "grant_type": "refresh_token",
        },
        timeout=REQUEST_TIMEOUT,
    )
    if response.status_code != 200:
        raise ApiError(response.status_code, f"Token refresh failed: {response.text}", api="OAuth")
    return response.json()["access_token"]


@dataclass(frozen=True)
class AccountInfo:
    customer_id: str
    name: str
    currency: str
    time_zone: str


class GoogleAdsClient:
    """GAQL search against one customer account."""

    def __init__(
        self,
        customer_id: str,
        access_token: str,
        developer_token: str,
        login_customer_id: Optional[str] = None,
        session=None,
    ):
        self.customer_id = customer_id.replace("-", "")
        self.access_token = access_token
        self.developer_token = developer_token
        self.login_customer_id = login_customer_id.replace("-", "") if login_customer_id else None
        self.base_url = f"https://googleads.googleapis.com/{GOOGLE_ADS_API_VERSION}"
        self.session = session or requests.Session()

    @classmethod
    def from_credentials(cls, credentials: dict, access_token: str, session=None) -> "GoogleAdsClient":
        return cls(
            customer_id=credentials["customer_id"],
            access_token=access_token,
            developer_token=credentials["developer_token"],
            login_customer_id=credentials.get("login_customer_id"),
            session=session,
        )

    def _headers(self) -> dict:
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "developer-token": self.developer_token,
            "Content-Type": "application/json",
        }
        if self.login_customer_id:
            headers["login-customer-id"] = self.login_customer_id
        return headers

    def iter_search(self, query: str):
        """Execute a GAQL query, yielding result rows page by page."""
        url = f"{self.base_url}/customers/{self.customer_id}/googleAds:search"
        page_token = None

        while True:
            payload = {"query": query}
            if page_token:
                payload["pageToken"] = page_token

            response = self.session.post(url, headers=self._headers(), json=payload, timeout=REQUEST_TIMEOUT)
            if response.status_code != 200:
                raise ApiError(response.status_code, error_message(response))

            data = response.json()
            for row in data.get("results", []):
                yield row

            page_token = data.get("nextPageToken")
            if not page_token:
                break

    def search(self, query: str) -> list:
        """Execute a GAQL query and return all rows (handles pagination)."""
        return list(self.iter_search(query))

    def fetch_account_info(self) -> AccountInfo:
        query = """
            SELECT
                customer.id,
                customer.descriptive_name,
                customer.currency_code,
                customer.time_zone
            FROM customer
            LIMIT 1
        """
        results = self.search(query)
        customer = results[0].get("customer", {}) if results else {}
        return AccountInfo(
            customer_id=str(customer.get("id", self.customer_id)),
            name=customer.get("descriptiveName", ""),
            currency=customer.get("currencyCode", ""),
            time_zone=customer.get("timeZone", "UTC"),
        )
