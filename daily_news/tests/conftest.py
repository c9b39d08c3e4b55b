"""
Shared fixtures for the daily_news test suite.

Redis is replaced by fakeredis: ArticleStore's Redis.from_url() hands out
FakeAsyncRedis clients that all share one in-process FakeServer.
"""
from datetime import date, datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fakeredis import FakeAsyncRedis, FakeServer

from daily_news.models.news import Article, Category
from daily_news.store.redis_store import ArticleStore

DAY = date(2025, 7, 24)


@pytest.fixture
def fake_server():
    return FakeServer()


@pytest.fixture
def fake_redis_cls(fake_server):
    """Patch daily_news.store.redis_store.Redis with a fakeredis factory."""
    with patch("daily_news.store.redis_store.Redis") as mock_cls:
        mock_cls.from_url.side_effect = lambda url, **kwargs: FakeAsyncRedis(
            server=fake_server, **kwargs
        )
        yield mock_cls


@pytest.fixture
async def store(fake_redis_cls):
    """A connected ArticleStore on fakeredis."""
    article_store = ArticleStore(redis_url="redis://localhost:6379/0")
    await article_store.connect()
    yield article_store
    await article_store.close()


@pytest.fixture
def make_article():
    """Factory: make_article(n, day=..., category=...) -> Article published n minutes into day."""

    def _make(
        n: int,
        *,
        day: date = DAY,
        category: Category = Category.GENERAL,
        title: str | None = None,
    ) -> Article:
        start = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
        return Article(
            title=title or f"Headline number {n}",
            url=f"https://news.example.com/{day.isoformat()}/{n}",
            published_at=start + timedelta(minutes=n),
            fetch_date=day,
            source_id="example",
            source_name="Example News",
            author="Desk",
            description=f"Description {n}",
            category=category,
        )

    return _make


@pytest.fixture
def make_raw():
    """Factory: make_raw(n, title=..., day=...) -> NewsAPI article payload."""

    def _make(n: int, *, title: str | None = None, day: date = DAY) -> dict:
        return {
            "source": {"id": None, "name": "Example News"},
            "author": "Desk",
            "title": title if title is not None else f"Headline number {n}",
            "description": f"Description {n}",
            "url": f"https://news.example.com/{day.isoformat()}/{n}",
            "urlToImage": None,
            "publishedAt": f"{day.isoformat()}T{n // 60:02d}:{n % 60:02d}:00Z",
            "content": "Body text",
        }

    return _make
