"""
Article Store

Durable article collection on Redis, keyed by article URL.

Layout:
  news:article:{url}              JSON document, written with SET NX
  news:index:published            sorted set, score = publishedAt epoch, member = url
  news:index:category:{Category}  same, one per category

SET NX is the uniqueness constraint: when two writers race on the same
URL, exactly one creates the document and the other sees a duplicate.
If indexing fails after the document is created, the document is deleted
again so the URL can be retried.

Usage:
    store = ArticleStore(redis_url="redis://localhost:6379/0")
    await store.connect()
    outcome = await store.insert(article)
    articles = await store.find(start, end, category=Category.SPORTS)
    await store.close()
"""
from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from daily_news.core.types import PersistenceError, StoreError
from daily_news.models.news import Article, Category
from daily_news.serializer import SerializationError, dumps, loads

logger = logging.getLogger(__name__)

ARTICLE_PREFIX = "news:article:"
PUBLISHED_INDEX = "news:index:published"
CATEGORY_INDEX_PREFIX = "news:index:category:"


def article_key(url: str) -> str:
    return f"{ARTICLE_PREFIX}{url}"


def category_index(category: Category) -> str:
    return f"{CATEGORY_INDEX_PREFIX}{category.value}"


class InsertOutcome(str, Enum):
    """Result of a single insert."""

    INSERTED = "inserted"
    DUPLICATE = "duplicate"


class ArticleStore:
    """
    Redis-backed article store with time-range and category queries.

    Time ranges are half-open: [start, end) on published_at.
    """

    def __init__(self, redis_url: str) -> None:
        self._redis_url = redis_url
        self._redis: Redis | None = None

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Open the Redis connection."""
        self._redis = Redis.from_url(self._redis_url, decode_responses=True)
        try:
            await self._redis.ping()
            logger.info("ArticleStore connected to Redis at %s", self._redis_url)
        except RedisError as exc:
            raise StoreError(f"Cannot connect to Redis: {exc}", operation="connect") from exc

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("ArticleStore disconnected from Redis")

    async def __aenter__(self) -> ArticleStore:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    def _client(self, operation: str) -> Redis:
        if self._redis is None:
            raise StoreError(
                "ArticleStore is not connected; call connect() first",
                operation=operation,
            )
        return self._redis

    # ── Writes ────────────────────────────────────────────────────────────────

    async def insert(self, article: Article) -> InsertOutcome:
        """
        Persist an article unless its URL is already stored.

        Returns:
            INSERTED when this call created the record, DUPLICATE otherwise.

        Raises:
            PersistenceError: If the write fails for any other reason.
        """
        redis = self._client("insert")
        score = article.published_at.timestamp()

        try:
            payload = dumps(article)
            created = await redis.set(article_key(article.url), payload, nx=True)
            if not created:
                return InsertOutcome.DUPLICATE

            try:
                async with redis.pipeline(transaction=True) as pipe:
                    pipe.zadd(PUBLISHED_INDEX, {article.url: score})
                    pipe.zadd(category_index(article.category), {article.url: score})
                    await pipe.execute()
            except RedisError:
                # Unindexed documents are invisible to find(); release the URL
                await redis.delete(article_key(article.url))
                raise
        except (RedisError, SerializationError) as exc:
            raise PersistenceError(f"Failed to save article: {exc}", url=article.url) from exc

        return InsertOutcome.INSERTED

    # ── Reads ─────────────────────────────────────────────────────────────────

    async def find(
        self,
        start: datetime,
        end: datetime,
        category: Optional[Category] = None,
    ) -> list[Article]:
        """Articles published in [start, end), oldest first, optionally of one category."""
        redis = self._client("find")
        index = category_index(category) if category else PUBLISHED_INDEX

        try:
            urls = await redis.zrangebyscore(index, start.timestamp(), f"({end.timestamp()}")
            if not urls:
                return []
            documents = await redis.mget([article_key(url) for url in urls])
        except RedisError as exc:
            raise StoreError(f"Article query failed: {exc}", operation="find") from exc

        articles: list[Article] = []
        for url, raw in zip(urls, documents):
            if raw is None:
                # Index entry without a document; skip rather than fail the read
                logger.warning("Dangling index entry", extra={"url": url})
                continue
            try:
                articles.append(loads(raw))
            except SerializationError as exc:
                raise StoreError(
                    f"Stored article is unreadable: {exc}",
                    operation="find",
                    context={"url": url},
                ) from exc
        return articles

    async def count(
        self,
        start: datetime,
        end: datetime,
        category: Optional[Category] = None,
    ) -> int:
        """Number of articles published in [start, end)."""
        redis = self._client("count")
        index = category_index(category) if category else PUBLISHED_INDEX
        try:
            return await redis.zcount(index, start.timestamp(), f"({end.timestamp()}")
        except RedisError as exc:
            raise StoreError(f"Article count failed: {exc}", operation="count") from exc

    async def aggregate_counts_by_category(
        self, start: datetime, end: datetime
    ) -> list[tuple[Category, int]]:
        """
        Per-category article counts for [start, end).

        Sorted by descending count; empty categories are omitted and ties keep
        enumeration order.
        """
        redis = self._client("aggregate")
        lo, hi = start.timestamp(), f"({end.timestamp()}"

        try:
            async with redis.pipeline(transaction=False) as pipe:
                for category in Category:
                    pipe.zcount(category_index(category), lo, hi)
                counts = await pipe.execute()
        except RedisError as exc:
            raise StoreError(f"Category aggregation failed: {exc}", operation="aggregate") from exc

        result = [(c, int(n)) for c, n in zip(Category, counts) if n]
        result.sort(key=lambda item: item[1], reverse=True)
        return result
