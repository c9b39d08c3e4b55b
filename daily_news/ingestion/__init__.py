"""
Ingestion Pipeline

Fetch-once-per-day, dedup-by-URL, categorize-on-write access to articles.
"""
from daily_news.ingestion.pipeline import (
    NewsPipeline,
    day_bounds,
    parse_date,
    utc_today,
)

__all__ = [
    "NewsPipeline",
    "day_bounds",
    "parse_date",
    "utc_today",
]
