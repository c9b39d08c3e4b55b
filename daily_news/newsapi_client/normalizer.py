"""
NewsAPI Data Normalizer

Transforms raw NewsAPI article payloads into internal Article records.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Optional

from daily_news.core.types import ValidationError
from daily_news.models.news import Article, Category

logger = logging.getLogger(__name__)


def parse_timestamp(ts: Optional[str]) -> datetime:
    """
    Parse ISO 8601 timestamp to UTC datetime.

    Args:
        ts: Timestamp string in format "2025-07-24T17:06:15Z"

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        ValidationError: If timestamp format is invalid
    """
    if not ts:
        raise ValidationError("Timestamp is empty", field="publishedAt")

    try:
        # Handle 'Z' suffix (Zulu time = UTC)
        if ts.endswith("Z"):
            ts = ts[:-1] + "+00:00"

        dt = datetime.fromisoformat(ts)

        # Ensure timezone-aware
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)

        return dt.astimezone(timezone.utc)

    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"Invalid timestamp format: {ts}",
            field="publishedAt",
            value=ts,
        ) from e


def _clean(value: Any) -> Optional[str]:
    """Strip strings; empty or non-string values become None."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def normalize_article(
    raw: dict[str, Any],
    fetch_date: date,
    category: Category = Category.GENERAL,
) -> Article:
    """
    Normalize one NewsAPI article payload.

    Args:
        raw: Article object from the NewsAPI "articles" array
        fetch_date: Logical day the article was fetched for
        category: Category assigned by the classifier

    Returns:
        Article ready to persist

    Raises:
        ValidationError: If title, url or publishedAt is missing or invalid
    """
    if not isinstance(raw, dict):
        raise ValidationError("Article payload must be an object", value=raw)

    title = _clean(raw.get("title"))
    if not title:
        raise ValidationError("Article has no title", field="title")

    url = _clean(raw.get("url"))
    if not url:
        raise ValidationError("Article has no url", field="url", context={"title": title[:80]})

    published_at = parse_timestamp(raw.get("publishedAt"))

    source = raw.get("source") or {}
    if not isinstance(source, dict):
        source = {}

    return Article(
        title=title,
        url=url,
        published_at=published_at,
        fetch_date=fetch_date,
        source_id=_clean(source.get("id")),
        source_name=_clean(source.get("name")),
        author=_clean(raw.get("author")),
        description=_clean(raw.get("description")),
        image_url=_clean(raw.get("urlToImage")),
        content=_clean(raw.get("content")),
        category=category,
    )
