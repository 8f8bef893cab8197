#!/usr/bin/env python3
"""
Brand vs Non-Brand Google Ads Report

Classifies Search, Performance Max and Shopping search terms as branded or
non-branded, buckets them by month or week, and writes raw tabs plus charts
(impressions, clicks, cost, conversions, conversion value, CPA, ROAS) to a
Google Sheet.

Pmax: rows with targeting status EXCLUDED / ADDED_EXCLUDED are skipped. The
API often still returns branded terms as ADDED/NONE after they are excluded in
the UI; use --pmax-all-non-branded to report all Pmax volume as non-branded.

Usage:
    brand-split --sheet <url-or-id> --tokens foodsisters,foodsister
    brand-split --granularity week --lookback-days 180
    brand-split --start 2024-01-01 --end 2024-12-31
    brand-split --dry-run                 # classify and print totals, no sheet writes

Settings not given on the command line come from BRAND_SPLIT_* variables in
the environment or .env (see brandsplit/config.py).
"""

import argparse
import logging
import sys

from brandsplit.aggregate import cpa, roas
from brandsplit.config import ConfigError, build_settings, get_credentials, load_env
from brandsplit.metrics import Segment
from brandsplit.pipeline import run


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Branded vs non-branded search volume report (Search, Pmax, Shopping) to Google Sheets"
    )
    parser.add_argument("--sheet", help="Google Sheet URL or id")
    parser.add_argument("--tokens", help="Comma-separated brand tokens (brand-specific phrases only)")
    parser.add_argument("--granularity", choices=["month", "week"], help="Time bucket (default: month)")
    parser.add_argument("--lookback-days", type=int, help="Days back from today (default: 90)")
    parser.add_argument("--start", help="Start date yyyy-mm-dd (with --end)")
    parser.add_argument("--end", help="End date yyyy-mm-dd (with --start)")
    parser.add_argument(
        "--no-by-channel",
        action="store_true",
        help="Only write the combined view (skip Search/Pmax/Shopping tabs)",
    )
    parser.add_argument(
        "--pmax-all-non-branded",
        action="store_true",
        help="Report all Pmax search-term volume as non-branded",
    )
    parser.add_argument(
        "--no-pmax-categories",
        action="store_true",
        help="Skip the Pmax search category (Consumer Spotlight) tabs",
    )
    parser.add_argument("--dry-run", action="store_true", help="Fetch and classify, print totals, do not write the sheet")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def print_totals(name: str, result) -> None:
    print(f"  {name}")
    for segment in result.segments:
        m = result.totals[segment]
        print(
            f"    {segment.label:<12} impr={m.impressions:>10,}  clicks={m.clicks:>8,}  "
            f"cost={m.cost:>12,.2f}  conv={m.conversions:>9,.2f}  "
            f"value={m.conversions_value:>12,.2f}  cpa={cpa(m):>8,.2f}  roas={roas(m):>6,.2f}"
        )


def branded_share(result) -> float:
    branded = result.totals[Segment.BRANDED].impressions
    total = result.grand_total().impressions
    return branded / total * 100 if total else 0


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=" * 70)
    print("BRAND VS NON-BRAND REPORT")
    print("=" * 70)
    print()

    env_path = load_env()
    if env_path:
        print(f"Loaded credentials from: {env_path}")
    else:
        print("WARNING: No .env file found")

    try:
        settings = build_settings(
            sheet=args.sheet,
            tokens=args.tokens,
            granularity=args.granularity,
            lookback_days=args.lookback_days,
            start_date=args.start,
            end_date=args.end,
            by_channel=False if args.no_by_channel else None,
            pmax_all_non_branded=True if args.pmax_all_non_branded else None,
            pmax_categories=False if args.no_pmax_categories else None,
            require_sheet=not args.dry_run,
        )
        credentials = get_credentials()
    except ConfigError as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Customer ID: {credentials['customer_id']}")
    print(f"Brand tokens: {', '.join(settings.brand_tokens)}")
    print(f"Granularity: {settings.granularity}")
    if settings.pmax_all_non_branded:
        print("Pmax: all search-term volume reported as non-branded")
    print()

    result, account, date_range = run(settings, credentials, dry_run=args.dry_run)

    print()
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"Account: {account.name} ({account.customer_id}), currency {account.currency}")
    print(f"Date range: {date_range.description} ({date_range.start} to {date_range.end})")
    print()
    print_totals("Combined", result.combined)
    for name, channel in result.channels.items():
        print_totals(name, channel)
    if result.categories is not None:
        print_totals("Pmax Categories (no cost)", result.categories)
    print()
    print(f"Branded share of impressions (combined): {branded_share(result.combined):.1f}%")
    print(f"Periods: {', '.join(result.combined.periods()) or '(none)'}")

    if args.dry_run:
        print()
        print("DRY RUN - sheet not written")
    else:
        print()
        print(f"Tabs written: {len(result.published_tabs)} (spreadsheet {settings.sheet_id})")

    print("=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
