"""
Report rendering: tables/series assembly and the Google Sheets sink.
"""
