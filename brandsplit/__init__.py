"""
brand-split: branded vs non-branded search volume for Google Ads.

Search, Performance Max and Shopping search terms are classified against a
brand token list, bucketed by month or week, and published to Google Sheets.
"""

__version__ = "0.1.0"
