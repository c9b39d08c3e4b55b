"""
Article Serializer

Converts between Article objects, the camelCase dicts sent to clients, and
the JSON documents kept in the article store. The store and the websocket
wire format share one field layout so both sides see the same names.

Wire format:
  {
    "source": {"id": ..., "name": ...},
    "author": ..., "title": ..., "description": ..., "url": ...,
    "urlToImage": ..., "publishedAt": "2025-07-24T17:06:15+00:00",
    "content": ..., "fetchDate": "2025-07-24", "category": "Politics"
  }
"""
from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any

from daily_news.models.news import Article, Category


class SerializationError(Exception):
    """Raised when serialization or deserialization fails."""


def article_to_dict(article: Article) -> dict[str, Any]:
    """Serialize an Article to a JSON-serializable dict."""
    return {
        "source": {
            "id": article.source_id,
            "name": article.source_name,
        },
        "author": article.author,
        "title": article.title,
        "description": article.description,
        "url": article.url,
        "urlToImage": article.image_url,
        "publishedAt": article.published_at.isoformat(),
        "content": article.content,
        "fetchDate": article.fetch_date.isoformat(),
        "category": article.category.value,
    }


def article_from_dict(data: dict[str, Any]) -> Article:
    """
    Rebuild an Article from its dict form.

    Raises SerializationError if required fields are missing or malformed.
    """
    try:
        source = data.get("source") or {}
        published_at = datetime.fromisoformat(data["publishedAt"])
        if published_at.tzinfo is None:
            published_at = published_at.replace(tzinfo=timezone.utc)

        return Article(
            title=data["title"],
            url=data["url"],
            published_at=published_at,
            fetch_date=date.fromisoformat(data["fetchDate"]),
            source_id=source.get("id"),
            source_name=source.get("name"),
            author=data.get("author"),
            description=data.get("description"),
            image_url=data.get("urlToImage"),
            content=data.get("content"),
            category=Category.from_string(data.get("category")) or Category.GENERAL,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise SerializationError(f"Malformed article document: {exc}") from exc


def dumps(article: Article) -> str:
    """Encode an Article as a JSON string for storage."""
    try:
        return json.dumps(article_to_dict(article), default=str)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Failed to serialize article: {exc}") from exc


def loads(raw: str | bytes) -> Article:
    """
    Decode a stored JSON string into an Article.

    Raises SerializationError if decoding fails or the document is malformed.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SerializationError(f"Failed to deserialize article: {exc}") from exc

    if not isinstance(data, dict):
        raise SerializationError(
            f"Malformed article document: expected object, got {type(data).__name__}"
        )

    return article_from_dict(data)
