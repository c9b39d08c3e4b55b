"""
Tests for daily_news.ws_server.server

Runs the real websocket server on an ephemeral port against a stub
pipeline, with a websockets client for streaming and aiohttp for the plain
HTTP endpoints.
"""
import asyncio
import json
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from websockets.asyncio.client import connect

from daily_news.core.types import FetchError
from daily_news.models.news import Category
from daily_news.session.manager import SessionManager
from daily_news.ws_server.server import NewsStreamServer

YESTERDAY = date(2025, 7, 24)


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def pipeline(make_article):
    mock = MagicMock()
    mock.yesterday.return_value = YESTERDAY
    mock.resolve_date.side_effect = lambda day: day or YESTERDAY
    mock.filter_articles = AsyncMock(
        return_value=[make_article(n, category=Category.SPORTS) for n in range(3)]
    )
    mock.category_counts = AsyncMock(return_value=[(Category.SPORTS, 3)])
    return mock


@pytest.fixture
def interval():
    return 0.01


@pytest.fixture
async def server(pipeline, interval):
    manager = SessionManager(pipeline, interval_seconds=interval)
    ws_server = NewsStreamServer(manager, pipeline, host="127.0.0.1", port=0)
    await ws_server.start()
    yield ws_server
    await ws_server.stop()


async def receive_all(url: str, timeout: float = 5.0) -> list[dict]:
    async def _collect():
        async with connect(url) as websocket:
            return [json.loads(message) async for message in websocket]

    return await asyncio.wait_for(_collect(), timeout)


async def http_get(server, path: str) -> tuple[int, dict]:
    async with aiohttp.ClientSession() as session:
        async with session.get(f"http://127.0.0.1:{server.port}{path}") as resp:
            return resp.status, await resp.json(content_type=None)


# ── Streaming ─────────────────────────────────────────────────────────────────

async def test_small_set_streams_batch_then_complete(server):
    events = await receive_all(f"ws://127.0.0.1:{server.port}/")

    assert [e["type"] for e in events] == ["batch", "complete"]
    assert events[0]["total"] == 3
    assert events[0]["articles"][0]["category"] == "Sports"


async def test_filters_come_from_query_string(server, pipeline):
    events = await receive_all(
        f"ws://127.0.0.1:{server.port}/?date=2025-07-01&category=sports&resumeIndex=1"
    )

    pipeline.filter_articles.assert_awaited_once_with(date(2025, 7, 1), Category.SPORTS)
    assert [(e["type"], e["index"]) for e in events] == [("stream", 2), ("stream", 3)]


async def test_bad_offset_is_reported_to_client(server):
    events = await receive_all(f"ws://127.0.0.1:{server.port}/?resumeIndex=7")

    assert [e["type"] for e in events] == ["error"]
    assert "out of range" in events[0]["message"]


async def test_fetch_failure_is_reported_to_client(server, pipeline):
    pipeline.filter_articles.side_effect = FetchError("down", service="newsapi")

    events = await receive_all(f"ws://127.0.0.1:{server.port}/")

    assert events == [{"type": "error", "message": "Error fetching news articles"}]


@pytest.mark.parametrize("interval", [60.0])
async def test_disconnect_cancels_trickling_session(server, pipeline, make_article):
    pipeline.filter_articles.return_value = [make_article(n) for n in range(15)]

    async with connect(f"ws://127.0.0.1:{server.port}/") as websocket:
        batch = json.loads(await asyncio.wait_for(websocket.recv(), 5))
        assert batch["type"] == "batch"

    for _ in range(200):
        if server.client_count == 0:
            break
        await asyncio.sleep(0.01)

    stats = server.get_stats()
    assert stats.connected_clients == 0
    assert stats.total_connections == 1
    assert stats.sessions_completed == 0
    assert stats.events_sent == 1


@pytest.mark.parametrize("interval", [0.3])
async def test_ping_is_answered(server, pipeline, make_article):
    pipeline.filter_articles.return_value = [make_article(n) for n in range(15)]

    async with connect(f"ws://127.0.0.1:{server.port}/?resumeIndex=14") as websocket:
        await websocket.send(json.dumps({"type": "ping"}))
        replies = [json.loads(m) async for m in websocket]

    assert {"type": "pong"} in replies


# ── HTTP surface ──────────────────────────────────────────────────────────────

async def test_health(server):
    status, body = await http_get(server, "/api/health")

    assert status == 200
    assert body["status"] == "OK"
    assert "timestamp" in body


async def test_articles_requires_date(server):
    status, body = await http_get(server, "/api/articles")
    assert status == 400
    assert "date" in body["error"]


@pytest.mark.parametrize("day", ["2025-07-24", "2025-07-25", "2030-01-01"])
async def test_articles_rejects_recent_dates(server, pipeline, day):
    status, _ = await http_get(server, f"/api/articles?date={day}")

    assert status == 400
    pipeline.filter_articles.assert_not_awaited()


async def test_articles_for_past_date(server, pipeline):
    status, body = await http_get(server, "/api/articles?date=2025-07-01&category=Sports")

    assert status == 200
    assert body["count"] == 3
    assert body["category"] == "Sports"
    pipeline.filter_articles.assert_awaited_once_with(date(2025, 7, 1), Category.SPORTS)


async def test_articles_degrade_to_empty_on_fetch_error(server, pipeline):
    pipeline.filter_articles.side_effect = FetchError("down", service="newsapi")

    status, body = await http_get(server, "/api/articles?date=2025-07-01")

    assert status == 200
    assert body["articles"] == []


async def test_category_report(server):
    status, body = await http_get(server, "/api/categories")

    assert status == 200
    assert body == {
        "date": "2025-07-24",
        "categories": [{"category": "Sports", "count": 3}],
    }


async def test_unknown_api_path(server):
    status, _ = await http_get(server, "/api/nope")
    assert status == 404
