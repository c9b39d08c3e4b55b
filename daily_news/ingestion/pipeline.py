"""
Ingestion Pipeline

Cache-aside access to a day's articles:

    store hit   -> return stored articles
    store miss  -> fetch upstream -> classify -> persist (dedup-safe) -> re-query

A day counts as ingested as soon as any article exists for it, so a
category filter with no matches on an ingested day returns nothing instead
of triggering another fetch.

Each day's ingestion runs as one pipeline-owned task. Callers await it
through asyncio.shield, so a cancelled caller (a client disconnecting)
never cuts a batch short, and concurrent first requests for the same day
share a single fetch and see the complete day.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Optional, Protocol, Union

from daily_news.classifier import CategoryClassifier
from daily_news.core.types import PersistenceError, ValidationError
from daily_news.models.news import Article, Category, IngestionReport
from daily_news.newsapi_client.normalizer import normalize_article
from daily_news.store.redis_store import ArticleStore, InsertOutcome

logger = logging.getLogger(__name__)

# Progress log cadence while saving a batch
PROGRESS_EVERY = 50


class ArticleSource(Protocol):
    """Upstream provider: one call per day, raises FetchError on failure."""

    async def fetch(self, day: date) -> list[dict[str, Any]]:
        ...


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open UTC range [start of day, start of next day)."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse YYYY-MM-DD (or a full ISO timestamp); None if absent or unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


class NewsPipeline:
    """
    Orchestrates store lookups and upstream ingestion.

    Args:
        store: Connected ArticleStore
        source: Upstream provider (NewsApiClient or anything with fetch(day))
        classifier: Title classifier, default keyword table if omitted
        today: Clock returning the current UTC date
    """

    def __init__(
        self,
        store: ArticleStore,
        source: ArticleSource,
        classifier: Optional[CategoryClassifier] = None,
        *,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self._store = store
        self._source = source
        self._classifier = classifier or CategoryClassifier()
        self._today = today
        self._ingestions: dict[date, asyncio.Task[IngestionReport]] = {}

    @property
    def classifier(self) -> CategoryClassifier:
        return self._classifier

    @property
    def ingesting(self) -> list[date]:
        """Days with an ingestion currently in flight."""
        return sorted(self._ingestions)

    def yesterday(self) -> date:
        return self._today() - timedelta(days=1)

    def resolve_date(self, value: Union[str, date, None] = None) -> date:
        """
        Effective day for a request.

        Absent, unparseable, today or future dates become yesterday; a strictly
        past date is used as given.
        """
        day = parse_date(value)
        if day is None or day >= self._today():
            return self.yesterday()
        return day

    async def get_articles(
        self,
        day: Union[str, date, None] = None,
        category: Optional[Category] = None,
    ) -> list[Article]:
        """Articles for the resolved day (yesterday by default), oldest first."""
        return await self.filter_articles(self.resolve_date(day), category)

    async def filter_articles(
        self,
        day: date,
        category: Optional[Category] = None,
    ) -> list[Article]:
        """
        Articles for exactly *day*, ingesting it first if the store has none.

        The caller owns any policy on which days may be requested.

        Raises:
            FetchError: Upstream provider failed during ingestion
            StoreError: Article store unavailable
        """
        start, end = day_bounds(day)

        pending = self._ingestions.get(day)
        if pending is not None:
            # Half-written day; wait for the batch to land
            await asyncio.shield(pending)

        articles = await self._store.find(start, end, category)
        if articles:
            logger.info(
                f"Found {len(articles)} articles in database for {day.isoformat()}",
                extra={"category": category.value if category else None},
            )
            return articles

        if category is not None and await self._store.count(start, end) > 0:
            logger.info(
                f"No {category.value} articles for {day.isoformat()}; day already ingested",
            )
            return []

        logger.info(f"No articles in database for {day.isoformat()} - fetching from API...")
        await self.ingest_once(day)
        return await self._store.find(start, end, category)

    async def ingest_once(self, day: date) -> IngestionReport:
        """
        Ingest *day* in a shared background task.

        Concurrent callers for the same day await the same task. Cancelling
        a caller leaves the task running to completion.
        """
        task = self._ingestions.get(day)
        if task is None:
            task = asyncio.create_task(self.ingest(day), name=f"ingest-{day.isoformat()}")
            self._ingestions[day] = task
            task.add_done_callback(lambda t: self._ingestion_done(day, t))
        return await asyncio.shield(task)

    def _ingestion_done(self, day: date, task: asyncio.Task[IngestionReport]) -> None:
        if self._ingestions.get(day) is task:
            del self._ingestions[day]
        if task.cancelled():
            logger.warning(f"Ingestion for {day.isoformat()} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Ingestion for {day.isoformat()} failed: {exc}",
                extra={"day": day.isoformat()},
            )

    async def ingest(self, day: date) -> IngestionReport:
        """
        Fetch *day* from upstream, classify and persist every article.

        Duplicate URLs are skipped silently; any other per-article failure
        is logged and counted without aborting the batch.

        Raises:
            FetchError: Upstream provider failed
        """
        raw_articles = await self._source.fetch(day)
        report = IngestionReport(day=day, fetched=len(raw_articles))
        start, end = day_bounds(day)

        logger.info(f"Starting to save {len(raw_articles)} articles to database...")

        for i, raw in enumerate(raw_articles, start=1):
            try:
                title = raw.get("title") if isinstance(raw, dict) else None
                article = normalize_article(raw, day, self._classifier.classify(title))
                outcome = await self._store.insert(article)
            except ValidationError as e:
                report.errors += 1
                logger.warning(
                    f"Skipping malformed article {i}: {e}",
                    extra={"field": e.field},
                )
                continue
            except PersistenceError as e:
                report.errors += 1
                logger.error(
                    f"Error saving article {i}: {e}",
                    extra={"url": e.url},
                )
                continue

            if outcome is InsertOutcome.DUPLICATE:
                report.duplicates += 1
            else:
                report.saved += 1

            if not start <= article.published_at < end:
                logger.warning(
                    f"Article {i} published outside {day.isoformat()}; "
                    f"it will not be returned for that day",
                    extra={"url": article.url, "published_at": article.published_at.isoformat()},
                )

            if i % PROGRESS_EVERY == 0:
                logger.info(f"Saved {i}/{len(raw_articles)} articles...")

        logger.info(
            f"Database save complete: {report.saved} saved, "
            f"{report.duplicates} duplicates skipped, {report.errors} errors",
            extra={"day": day.isoformat()},
        )
        return report

    async def category_counts(self, day: date) -> list[tuple[Category, int]]:
        """Per-category counts for a stored day, largest first. Reporting only."""
        start, end = day_bounds(day)
        return await self._store.aggregate_counts_by_category(start, end)
