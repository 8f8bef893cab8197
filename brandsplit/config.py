"""
Run configuration.

Credentials and defaults come from the environment (a .env file is loaded
from the first candidate path that exists); CLI flags override. Anything
invalid raises ConfigError before a single API call is made.

Environment:
    GOOGLE_ADS_DEVELOPER_TOKEN, GOOGLE_ADS_CLIENT_ID, GOOGLE_ADS_CLIENT_SECRET,
    GOOGLE_ADS_REFRESH_TOKEN, GOOGLE_ADS_CUSTOMER_ID   (required)
    GOOGLE_ADS_LOGIN_CUSTOMER_ID                       (optional, MCC)
    BRAND_SPLIT_SHEET          Google Sheet URL or id
    BRAND_SPLIT_TOKENS         comma-separated brand tokens
    BRAND_SPLIT_GRANULARITY    month | week
    BRAND_SPLIT_LOOKBACK_DAYS  default 90
    BRAND_SPLIT_START_DATE / BRAND_SPLIT_END_DATE   yyyy-mm-dd (both or neither)
    BRAND_SPLIT_BY_CHANNEL             default true
    BRAND_SPLIT_PMAX_ALL_NON_BRANDED   default false
    BRAND_SPLIT_PMAX_CATEGORIES        default true
"""

import os
import re
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from brandsplit.periods import GRANULARITIES, MONTH, parse_date

# =============================================================================
# DEFAULTS
# =============================================================================

PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_LOOKBACK_DAYS = 90
DEFAULT_GRANULARITY = MONTH

REQUIRED_CREDENTIALS = [
    "GOOGLE_ADS_DEVELOPER_TOKEN",
    "GOOGLE_ADS_CLIENT_ID",
    "GOOGLE_ADS_CLIENT_SECRET",
    "GOOGLE_ADS_REFRESH_TOKEN",
    "GOOGLE_ADS_CUSTOMER_ID",
]

SHEET_ID_PATTERN = re.compile(r"/d/([a-zA-Z0-9-_]+)")

TRUE_VALUES = {"1", "true", "yes", "y", "on"}
FALSE_VALUES = {"0", "false", "no", "n", "off"}


class ConfigError(ValueError):
    """Invalid or missing configuration. Fatal, raised before any fetch."""


# =============================================================================
# ENVIRONMENT
# =============================================================================


def load_env() -> Optional[Path]:
    """Load .env from the working directory or project root. Returns the path used."""
    env_paths = [
        Path.cwd() / ".env",
        PROJECT_ROOT / ".env",
        Path.home() / "brand-split" / ".env",
    ]
    for env_path in env_paths:
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


def get_credentials() -> dict:
    """Google Ads credentials from the environment."""
    missing = [var for var in REQUIRED_CREDENTIALS if not os.getenv(var)]
    if missing:
        raise ConfigError(f"Missing environment variables: {', '.join(missing)}")

    return {
        "developer_token": os.getenv("GOOGLE_ADS_DEVELOPER_TOKEN"),
        "client_id": os.getenv("GOOGLE_ADS_CLIENT_ID"),
        "client_secret": os.getenv("GOOGLE_ADS_CLIENT_SECRET"),
        "refresh_token": os.getenv("GOOGLE_ADS_REFRESH_TOKEN"),
        "customer_id": os.getenv("GOOGLE_ADS_CUSTOMER_ID").replace("-", ""),
        "login_customer_id": os.getenv("GOOGLE_ADS_LOGIN_CUSTOMER_ID", "").replace("-", "") or None,
    }


def parse_bool(value, default: bool) -> bool:
    if value is None or str(value).strip() == "":
        return default
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigError(f"Not a boolean: {value!r}")


def parse_tokens(value) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(t.strip() for t in value if t and t.strip())


def get_sheet_id(sheet_identifier: Optional[str]) -> Optional[str]:
    """Sheet id from a bare id or a docs.google.com URL."""
    if not sheet_identifier or "/" not in sheet_identifier:
        return sheet_identifier
    match = SHEET_ID_PATTERN.search(sheet_identifier)
    if not match:
        raise ConfigError("Invalid Google Sheet URL or ID format")
    return match.group(1)


# =============================================================================
# SETTINGS
# =============================================================================


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date
    description: str

    def gaql_clause(self) -> str:
        return f"segments.date BETWEEN '{self.start.isoformat()}' AND '{self.end.isoformat()}'"


@dataclass(frozen=True)
class Settings:
    brand_tokens: Tuple[str, ...]
    sheet_id: Optional[str] = None
    granularity: str = DEFAULT_GRANULARITY
    lookback_days: int = DEFAULT_LOOKBACK_DAYS
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    include_by_channel: bool = True
    pmax_all_non_branded: bool = False
    include_pmax_categories: bool = True

    def date_range(self, today: date) -> DateRange:
        """Explicit start/end when both are set, otherwise the lookback ending today."""
        if self.start_date and self.end_date:
            return DateRange(
                start=self.start_date,
                end=self.end_date,
                description=f"{self.start_date.isoformat()} to {self.end_date.isoformat()}",
            )
        return DateRange(
            start=today - timedelta(days=self.lookback_days),
            end=today,
            description=f"Last {self.lookback_days} days",
        )


def build_settings(
    sheet=None,
    tokens=None,
    granularity=None,
    lookback_days=None,
    start_date=None,
    end_date=None,
    by_channel=None,
    pmax_all_non_branded=None,
    pmax_categories=None,
    require_sheet: bool = True,
    env=None,
) -> Settings:
    """
    Merge explicit values over BRAND_SPLIT_* environment values and validate.

    Explicit arguments left as None fall back to the environment, then to the
    module defaults.
    """
    env = os.environ if env is None else env

    def pick(value, name):
        return value if value is not None else env.get(name)

    brand_tokens = parse_tokens(pick(tokens, "BRAND_SPLIT_TOKENS"))
    if not brand_tokens:
        raise ConfigError("No brand tokens configured (BRAND_SPLIT_TOKENS or --tokens)")

    granularity = (pick(granularity, "BRAND_SPLIT_GRANULARITY") or DEFAULT_GRANULARITY).strip().lower()
    if granularity not in GRANULARITIES:
        raise ConfigError(f"Time granularity must be 'month' or 'week', got {granularity!r}")

    raw_lookback = pick(lookback_days, "BRAND_SPLIT_LOOKBACK_DAYS")
    try:
        lookback = DEFAULT_LOOKBACK_DAYS if raw_lookback in (None, "") else int(raw_lookback)
    except (TypeError, ValueError):
        raise ConfigError(f"Lookback days must be an integer, got {raw_lookback!r}")
    if lookback < 0:
        raise ConfigError("Lookback days must not be negative")

    raw_start = pick(start_date, "BRAND_SPLIT_START_DATE") or None
    raw_end = pick(end_date, "BRAND_SPLIT_END_DATE") or None
    start = parse_date(raw_start) if raw_start else None
    end = parse_date(raw_end) if raw_end else None
    if raw_start and start is None:
        raise ConfigError(f"Invalid start date (expected yyyy-mm-dd): {raw_start!r}")
    if raw_end and end is None:
        raise ConfigError(f"Invalid end date (expected yyyy-mm-dd): {raw_end!r}")
    if bool(start) != bool(end):
        raise ConfigError("Start and end date must be given together")
    if start and end and start > end:
        raise ConfigError(f"Start date {start} is after end date {end}")

    sheet_id = get_sheet_id(pick(sheet, "BRAND_SPLIT_SHEET"))
    if require_sheet and not sheet_id:
        raise ConfigError("No Google Sheet configured (BRAND_SPLIT_SHEET or --sheet)")

    return Settings(
        brand_tokens=brand_tokens,
        sheet_id=sheet_id,
        granularity=granularity,
        lookback_days=lookback,
        start_date=start,
        end_date=end,
        include_by_channel=parse_bool(pick(by_channel, "BRAND_SPLIT_BY_CHANNEL"), True),
        pmax_all_non_branded=parse_bool(pick(pmax_all_non_branded, "BRAND_SPLIT_PMAX_ALL_NON_BRANDED"), False),
        include_pmax_categories=parse_bool(pick(pmax_categories, "BRAND_SPLIT_PMAX_CATEGORIES"), True),
    )
