"""
Tests for daily_news.session.manager

The pipeline is a MagicMock with an AsyncMock filter_articles, so these
tests exercise only filter parsing and session wiring.
"""
import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs

import pytest

from daily_news.core.types import FetchError, StoreError, ValidationError
from daily_news.models.news import Category
from daily_news.session.manager import (
    FETCH_FAILED_MESSAGE,
    SessionFilters,
    SessionManager,
    parse_filters,
)
from daily_news.session.stream_session import SessionState

YESTERDAY = date(2025, 7, 24)


# ── Helpers ───────────────────────────────────────────────────────────────────

class RecordingSink:
    def __init__(self) -> None:
        self.events: list[dict] = []
        self.closed = False

    async def send(self, event: dict) -> bool:
        if self.closed:
            return False
        self.events.append(event)
        return True

    async def close(self) -> None:
        self.closed = True

    def types(self) -> list[str]:
        return [e["type"] for e in self.events]


async def no_sleep(seconds: float) -> None:
    await asyncio.sleep(0)


@pytest.fixture
def pipeline(make_article):
    mock = MagicMock()
    mock.resolve_date.side_effect = lambda day: day or YESTERDAY
    mock.filter_articles = AsyncMock(
        return_value=[make_article(n) for n in range(12)]
    )
    return mock


@pytest.fixture
def manager(pipeline):
    return SessionManager(pipeline, interval_seconds=1.0, sleep=no_sleep)


@pytest.fixture
def sink():
    return RecordingSink()


# ── parse_filters() ───────────────────────────────────────────────────────────

class TestParseFilters:
    def test_empty_query_uses_defaults(self):
        assert parse_filters({}) == SessionFilters()

    def test_all_parameters(self):
        filters = parse_filters(
            {"date": "2025-07-01", "category": "sports", "resumeIndex": "12"}
        )

        assert filters == SessionFilters(
            day=date(2025, 7, 1), category=Category.SPORTS, resume_offset=12
        )

    def test_accepts_parse_qs_output(self):
        filters = parse_filters(parse_qs("date=2025-07-01&resumeIndex=3"))
        assert filters.day == date(2025, 7, 1)
        assert filters.resume_offset == 3

    def test_offset_alias(self):
        assert parse_filters({"offset": "4"}).resume_offset == 4

    def test_unparseable_date_is_dropped(self):
        assert parse_filters({"date": "last tuesday"}).day is None

    def test_unknown_category_raises(self):
        with pytest.raises(ValidationError, match="Unknown category"):
            parse_filters({"category": "Astrology"})

    @pytest.mark.parametrize("value", ["abc", "1.5"])
    def test_non_integer_offset_raises(self, value):
        with pytest.raises(ValidationError, match="Invalid resume index"):
            parse_filters({"resumeIndex": value})

    def test_negative_offset_raises(self):
        with pytest.raises(ValidationError, match="must not be negative"):
            parse_filters({"resumeIndex": "-2"})


# ── open_session() / serve() ──────────────────────────────────────────────────

async def test_open_session_resolves_filters_through_pipeline(manager, pipeline, sink):
    filters = SessionFilters(category=Category.SPORTS, resume_offset=3)

    session = await manager.open_session(filters, sink)

    pipeline.filter_articles.assert_awaited_once_with(YESTERDAY, Category.SPORTS)
    assert session.total == 12
    assert session.cursor == 3
    assert session.state is SessionState.INIT


async def test_serve_fresh_session(manager, sink):
    state = await manager.serve({}, sink)

    assert state is SessionState.COMPLETE
    assert sink.types() == ["batch", "stream", "stream", "complete"]
    assert manager.sessions_completed == 1
    assert manager.active_sessions == 0


async def test_serve_resumed_session(manager, sink):
    state = await manager.serve({"resumeIndex": "10"}, sink)

    assert state is SessionState.COMPLETE
    assert [e["index"] for e in sink.events] == [11, 12]
    assert sink.closed


async def test_serve_invalid_filters_reports_error(manager, pipeline, sink):
    state = await manager.serve({"category": "Astrology"}, sink)

    assert state is SessionState.CLOSED
    assert sink.events == [{"type": "error", "message": "Unknown category: Astrology"}]
    assert sink.closed
    pipeline.filter_articles.assert_not_awaited()


@pytest.mark.parametrize(
    "error",
    [
        FetchError("API Error: down", service="newsapi"),
        StoreError("Cannot connect to Redis", operation="find"),
    ],
)
async def test_serve_pipeline_failure_reports_error(manager, pipeline, sink, error):
    pipeline.filter_articles.side_effect = error

    state = await manager.serve({}, sink)

    assert state is SessionState.CLOSED
    assert sink.events == [{"type": "error", "message": FETCH_FAILED_MESSAGE}]
    assert sink.closed
    assert manager.sessions_completed == 0


async def test_cancel_all_closes_live_sessions(pipeline, sink):
    gate: asyncio.Queue = asyncio.Queue()

    async def gated_sleep(seconds: float) -> None:
        await gate.get()

    manager = SessionManager(pipeline, sleep=gated_sleep)
    task = asyncio.create_task(manager.serve({}, sink))
    for _ in range(200):
        if manager.active_sessions:
            break
        await asyncio.sleep(0)
    assert manager.active_sessions == 1

    manager.cancel_all()
    state = await task

    assert state is SessionState.CLOSED
    assert manager.active_sessions == 0
    assert "complete" not in sink.types()
