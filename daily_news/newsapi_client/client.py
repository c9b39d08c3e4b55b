"""
NewsAPI Client

HTTP client for the upstream news provider (newsapi.org "everything"
endpoint). One call fetches every article published on a given day.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Optional

import aiohttp

from daily_news.core.types import FetchError

logger = logging.getLogger(__name__)

SERVICE_NAME = "newsapi"


class NewsApiClient:
    """
    Upstream news provider client.

    Use as an async context manager to share one HTTP session across calls;
    outside a context each fetch opens and closes its own session.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://newsapi.org/v2",
        *,
        query: str = "India",
        language: str = "en",
        page_size: int = 100,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._query = query
        self._language = language
        self._page_size = page_size
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> NewsApiClient:
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, *_: object) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    def _params(self, day: date) -> dict[str, Any]:
        return {
            "q": self._query,
            "from": day.isoformat(),
            "to": day.isoformat(),
            "sortBy": "publishedAt",
            "language": self._language,
            "pageSize": self._page_size,
            "apiKey": self._api_key,
        }

    async def fetch(self, day: date) -> list[dict[str, Any]]:
        """
        Fetch raw article payloads published on *day*.

        Raises:
            FetchError: If the provider is unreachable, answers with a
                non-success HTTP status, or reports status != "ok".
        """
        logger.info(f"Fetching news from API for date: {day.isoformat()}")

        if self._session is not None:
            return await self._fetch(self._session, day)

        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            return await self._fetch(session, day)

    async def _fetch(
        self, session: aiohttp.ClientSession, day: date
    ) -> list[dict[str, Any]]:
        url = f"{self._base_url}/everything"

        try:
            async with session.get(url, params=self._params(day)) as resp:
                try:
                    data = await resp.json(content_type=None)
                except ValueError:
                    data = {}
                if resp.status >= 400:
                    message = data.get("message") if isinstance(data, dict) else None
                    raise FetchError(
                        f"API Error: {message or resp.reason}",
                        service=SERVICE_NAME,
                        status=resp.status,
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(
                f"Failed to reach news provider: {e}",
                service=SERVICE_NAME,
            ) from e

        if not isinstance(data, dict) or data.get("status") != "ok":
            message = data.get("message") if isinstance(data, dict) else None
            raise FetchError(
                f"API Error: {message or 'unexpected response'}",
                service=SERVICE_NAME,
            )

        articles = data.get("articles") or []
        logger.info(
            f"Successfully fetched {len(articles)} articles from API "
            f"(Total available: {data.get('totalResults', len(articles))})"
        )
        return articles
