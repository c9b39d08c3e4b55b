"""
WebSocket Server for Daily News Streaming

Each client connection gets its own stream session. Session filters come
from the connection URL query string:

    ws://host:port/?date=2025-07-24&category=Sports&resumeIndex=12

Plain HTTP requests under /api/ are answered from the request hook before
any websocket handshake:

    GET /api/health
    GET /api/articles?date=YYYY-MM-DD[&category=X]
    GET /api/categories[?date=YYYY-MM-DD]
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Optional
from urllib.parse import parse_qs, urlsplit

import websockets
from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.http11 import Request, Response

from daily_news.core.types import NewsStreamError
from daily_news.ingestion.pipeline import NewsPipeline, parse_date
from daily_news.models.news import Category
from daily_news.serializer import article_to_dict
from daily_news.session.manager import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class ServerStats:
    """WebSocket server statistics."""

    connected_clients: int
    total_connections: int
    sessions_completed: int
    events_sent: int
    start_time: datetime


class WebSocketEventSink:
    """EventSink over one websocket connection."""

    def __init__(self, websocket: ServerConnection) -> None:
        self._websocket = websocket
        self.events_sent = 0

    async def send(self, event: dict[str, Any]) -> bool:
        try:
            await self._websocket.send(json.dumps(event, default=str))
        except websockets.ConnectionClosed:
            return False
        self.events_sent += 1
        return True

    async def close(self) -> None:
        await self._websocket.close()


def _json_response(
    connection: ServerConnection, status: HTTPStatus, payload: dict[str, Any]
) -> Response:
    response = connection.respond(status, json.dumps(payload, default=str))
    del response.headers["Content-Type"]
    response.headers["Content-Type"] = "application/json"
    return response


def _query(path: str) -> dict[str, list[str]]:
    return parse_qs(urlsplit(path).query)


class NewsStreamServer:
    """
    WebSocket server that streams a day's articles to each client.

    Disconnects cancel the client's session; sessions that finish close
    the connection themselves.
    """

    def __init__(
        self,
        manager: SessionManager,
        pipeline: NewsPipeline,
        host: str = "0.0.0.0",
        port: int = 3000,
    ) -> None:
        self._manager = manager
        self._pipeline = pipeline
        self._host = host
        self._port = port
        self._clients: set[ServerConnection] = set()
        self._server: Optional[Server] = None
        self._total_connections = 0
        self._events_sent = 0
        self._start_time: Optional[datetime] = None

    @property
    def port(self) -> int:
        """Bound port (resolves port 0 after start)."""
        if self._server is not None:
            for sock in self._server.sockets:
                return sock.getsockname()[1]
        return self._port

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def start(self) -> None:
        """Start the WebSocket server."""
        self._start_time = datetime.now(timezone.utc)
        self._server = await serve(
            self._handle_client,
            self._host,
            self._port,
            process_request=self._process_request,
            ping_interval=30,
            ping_timeout=10,
        )
        logger.info(f"WebSocket server started on ws://{self._host}:{self.port}")

    async def stop(self) -> None:
        """Stop the server, closing every live session."""
        self._manager.cancel_all()
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("WebSocket server stopped")

    # ── Plain HTTP surface ────────────────────────────────────────────────────

    async def _process_request(
        self, connection: ServerConnection, request: Request
    ) -> Optional[Response]:
        """Answer /api/ requests directly; anything else continues to the handshake."""
        path = urlsplit(request.path).path
        if not path.startswith("/api/"):
            return None

        if path == "/api/health":
            return _json_response(
                connection,
                HTTPStatus.OK,
                {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()},
            )
        if path == "/api/articles":
            return await self._articles_response(connection, _query(request.path))
        if path == "/api/categories":
            return await self._categories_response(connection, _query(request.path))

        return _json_response(connection, HTTPStatus.NOT_FOUND, {"error": "Not Found"})

    async def _articles_response(
        self, connection: ServerConnection, query: dict[str, list[str]]
    ) -> Response:
        raw_date = (query.get("date") or [None])[0]
        day = parse_date(raw_date)
        if day is None:
            return _json_response(
                connection,
                HTTPStatus.BAD_REQUEST,
                {"error": "A date parameter in YYYY-MM-DD format is required"},
            )
        if day >= self._pipeline.yesterday():
            return _json_response(
                connection,
                HTTPStatus.BAD_REQUEST,
                {"error": f"Date must be before {self._pipeline.yesterday().isoformat()}"},
            )

        category = None
        raw_category = (query.get("category") or [None])[0]
        if raw_category:
            category = Category.from_string(raw_category)
            if category is None:
                return _json_response(
                    connection,
                    HTTPStatus.BAD_REQUEST,
                    {"error": f"Unknown category: {raw_category}"},
                )

        try:
            articles = await self._pipeline.filter_articles(day, category)
        except NewsStreamError as e:
            logger.error(f"Filter query failed: {e}", extra={"date": day.isoformat()})
            articles = []

        return _json_response(
            connection,
            HTTPStatus.OK,
            {
                "date": day.isoformat(),
                "category": category.value if category else None,
                "count": len(articles),
                "articles": [article_to_dict(a) for a in articles],
            },
        )

    async def _categories_response(
        self, connection: ServerConnection, query: dict[str, list[str]]
    ) -> Response:
        day = self._pipeline.resolve_date((query.get("date") or [None])[0])
        try:
            counts = await self._pipeline.category_counts(day)
        except NewsStreamError as e:
            logger.error(f"Category report failed: {e}", extra={"date": day.isoformat()})
            counts = []

        return _json_response(
            connection,
            HTTPStatus.OK,
            {
                "date": day.isoformat(),
                "categories": [{"category": c.value, "count": n} for c, n in counts],
            },
        )

    # ── Streaming ─────────────────────────────────────────────────────────────

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """Handle a new client connection."""
        client_id = f"{websocket.remote_address}"
        self._clients.add(websocket)
        self._total_connections += 1
        logger.info(f"Client connected: {client_id} (total: {len(self._clients)})")

        sink = WebSocketEventSink(websocket)
        query = _query(websocket.request.path) if websocket.request else {}
        stream_task = asyncio.create_task(self._manager.serve(query, sink))
        reader_task = asyncio.create_task(self._read_messages(websocket))

        try:
            await asyncio.wait(
                {stream_task, reader_task}, return_when=asyncio.FIRST_COMPLETED
            )
            if not stream_task.done():
                # Connection dropped while the session was still delivering
                stream_task.cancel()
            try:
                await stream_task
            except asyncio.CancelledError:
                pass
            await websocket.close()
            await reader_task
        finally:
            for task in (stream_task, reader_task):
                if not task.done():
                    task.cancel()
            self._clients.discard(websocket)
            self._events_sent += sink.events_sent
            logger.info(
                f"Client disconnected: {client_id} (total: {len(self._clients)})"
            )

    async def _read_messages(self, websocket: ServerConnection) -> None:
        """Answer pings and ignore everything else until the connection closes."""
        try:
            async for message in websocket:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError:
                    logger.debug(f"Received message: {str(message)[:200]}")
                    continue
                if isinstance(data, dict) and data.get("type") == "ping":
                    await websocket.send(json.dumps({"type": "pong"}))
        except websockets.ConnectionClosed:
            pass

    def get_stats(self) -> ServerStats:
        """Get current server statistics."""
        return ServerStats(
            connected_clients=len(self._clients),
            total_connections=self._total_connections,
            sessions_completed=self._manager.sessions_completed,
            events_sent=self._events_sent,
            start_time=self._start_time or datetime.now(timezone.utc),
        )
