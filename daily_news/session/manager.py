"""
Session Manager

Turns a connection's query parameters into a running StreamSession:
parse filters, resolve the article set through the pipeline, then drive
the session. Transport code only supplies an EventSink and cancels the
serving task when the connection drops.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional, Sequence, Union

from daily_news.core.types import NewsStreamError, ValidationError
from daily_news.ingestion.pipeline import NewsPipeline, parse_date
from daily_news.models.news import Category
from daily_news.session.events import error_event
from daily_news.session.stream_session import (
    DEFAULT_BATCH_WINDOW,
    DEFAULT_INTERVAL_SECONDS,
    EventSink,
    SessionState,
    SleepFunc,
    StreamSession,
)

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Error fetching news articles"

# Query parameter names accepted for the resume offset, in priority order
RESUME_PARAMS = ("resumeIndex", "offset")

QueryValue = Union[str, Sequence[str]]


@dataclass(frozen=True)
class SessionFilters:
    """Client-selected filters for one streaming session."""

    day: Optional[date] = None
    category: Optional[Category] = None
    resume_offset: int = 0


def _first(query: Mapping[str, QueryValue], name: str) -> Optional[str]:
    value = query.get(name)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return value[0] if value else None


def parse_filters(query: Mapping[str, QueryValue]) -> SessionFilters:
    """
    Build SessionFilters from URL query parameters.

    Accepts both plain mappings and parse_qs output. Unparseable dates are
    dropped (the pipeline falls back to yesterday).

    Raises:
        ValidationError: Unknown category, or a resume offset that is not a
            non-negative integer.
    """
    day = parse_date(_first(query, "date"))

    category = None
    category_name = _first(query, "category")
    if category_name:
        category = Category.from_string(category_name)
        if category is None:
            raise ValidationError(
                f"Unknown category: {category_name}",
                field="category",
                value=category_name,
            )

    offset = 0
    for name in RESUME_PARAMS:
        raw = _first(query, name)
        if raw is None or raw == "":
            continue
        try:
            offset = int(raw)
        except ValueError:
            raise ValidationError(
                f"Invalid resume index: {raw}", field=name, value=raw
            ) from None
        if offset < 0:
            raise ValidationError(
                f"Resume index must not be negative: {offset}", field=name, value=raw
            )
        break

    return SessionFilters(day=day, category=category, resume_offset=offset)


class SessionManager:
    """
    Opens and runs stream sessions against one pipeline.

    Sessions share nothing but read access to the store; the manager only
    keeps the set of live sessions for shutdown and stats.
    """

    def __init__(
        self,
        pipeline: NewsPipeline,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        batch_window: int = DEFAULT_BATCH_WINDOW,
        announce_resume: bool = False,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._pipeline = pipeline
        self._interval = interval_seconds
        self._batch_window = batch_window
        self._announce_resume = announce_resume
        self._sleep = sleep
        self._sessions: set[StreamSession] = set()
        self._sessions_completed = 0

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    @property
    def sessions_completed(self) -> int:
        return self._sessions_completed

    async def open_session(
        self, filters: SessionFilters, sink: EventSink
    ) -> StreamSession:
        """
        Resolve the article set for *filters* and build a session around it.

        Raises:
            FetchError: Upstream provider failed during ingestion
            StoreError: Article store unavailable
        """
        day = self._pipeline.resolve_date(filters.day)
        articles = await self._pipeline.filter_articles(day, filters.category)

        return StreamSession(
            articles,
            sink,
            resume_offset=filters.resume_offset,
            interval_seconds=self._interval,
            batch_window=self._batch_window,
            announce_resume=self._announce_resume,
            day=day,
            category=filters.category,
            sleep=self._sleep,
        )

    async def serve(
        self, query: Mapping[str, QueryValue], sink: EventSink
    ) -> SessionState:
        """
        Run one client's session end to end.

        Bad input and pipeline failures become an error event followed by
        close; they never propagate to the transport.
        """
        try:
            filters = parse_filters(query)
            session = await self.open_session(filters, sink)
        except ValidationError as e:
            logger.info(f"Rejected session parameters: {e}")
            await sink.send(error_event(e.message))
            await sink.close()
            return SessionState.CLOSED
        except NewsStreamError as e:
            logger.error(f"Error streaming news: {e}", extra={"error": str(e)})
            await sink.send(error_event(FETCH_FAILED_MESSAGE))
            await sink.close()
            return SessionState.CLOSED

        self._sessions.add(session)
        try:
            state = await session.run()
        finally:
            self._sessions.discard(session)

        if state is SessionState.COMPLETE:
            self._sessions_completed += 1
        return state

    def cancel_all(self) -> None:
        """Close every live session (server shutdown)."""
        for session in list(self._sessions):
            session.cancel()
