"""
Stream Session

Per-connection delivery of an ordered article set.

States:
    INIT -> BATCHED -> TRICKLING -> COMPLETE
    CLOSED is reachable from any non-terminal state on disconnect.

A fresh session (resume offset 0) sends the first batch_window articles in
one batch event, then trickles the rest one per interval and ends with a
complete event. A resumed session skips the batch, trickles from the offset
and closes without a complete event.

Trickling runs in a single task owned by the session. cancel() marks the
session CLOSED before cancelling that task, and every emission re-checks the
state, so nothing is sent once the session is closed.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence

from daily_news.models.news import Article, Category
from daily_news.session.events import (
    batch_event,
    complete_event,
    empty_result_message,
    error_event,
    info_event,
    out_of_range_message,
    stream_event,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_WINDOW = 10
DEFAULT_INTERVAL_SECONDS = 120.0

SleepFunc = Callable[[float], Awaitable[Any]]


class SessionState(str, Enum):
    INIT = "init"
    BATCHED = "batched"
    TRICKLING = "trickling"
    COMPLETE = "complete"
    CLOSED = "closed"


class EventSink(Protocol):
    """Where a session's events go; one per connection."""

    async def send(self, event: dict[str, Any]) -> bool:
        """Deliver one event. Returns False if the peer is gone."""
        ...

    async def close(self) -> None:
        """Close the underlying connection."""
        ...


class StreamSession:
    """
    Windowed, resumable, cancellable delivery of one article set.

    Args:
        articles: Articles ordered by ascending published_at
        sink: Event destination
        resume_offset: 0-based index of the first article to deliver
        interval_seconds: Spacing between trickled articles
        batch_window: Size of the initial batch on a fresh session
        announce_resume: Emit an info event before trickling a resumed session
        day: Day the set was built for (used in error messages)
        category: Category filter the set was built with (used in error messages)
        sleep: Timer used between ticks
    """

    def __init__(
        self,
        articles: Sequence[Article],
        sink: EventSink,
        *,
        resume_offset: int = 0,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        batch_window: int = DEFAULT_BATCH_WINDOW,
        announce_resume: bool = False,
        day: Optional[date] = None,
        category: Optional[Category] = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        if batch_window < 1:
            raise ValueError("batch_window must be at least 1")

        self._articles: tuple[Article, ...] = tuple(articles)
        self._sink = sink
        self._resume_offset = resume_offset
        self._interval = interval_seconds
        self._batch_window = batch_window
        self._announce_resume = announce_resume
        self._day = day
        self._category = category
        self._sleep = sleep

        self._state = SessionState.INIT
        self._cursor = resume_offset
        self._events_sent = 0
        self._ticker: Optional[asyncio.Task[None]] = None

    # ── Introspection ─────────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def cursor(self) -> int:
        """Index of the next article to send."""
        return self._cursor

    @property
    def total(self) -> int:
        return len(self._articles)

    @property
    def resumed(self) -> bool:
        return self._resume_offset > 0

    @property
    def events_sent(self) -> int:
        return self._events_sent

    @property
    def closed(self) -> bool:
        return self._state in (SessionState.COMPLETE, SessionState.CLOSED)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def run(self) -> SessionState:
        """
        Drive the session to COMPLETE or CLOSED and return the final state.

        Cancelling the task running this coroutine closes the session.
        """
        if self._state is not SessionState.INIT:
            raise RuntimeError(f"Session already started (state={self._state.value})")

        try:
            if not await self._validate():
                return self._state

            if self.resumed:
                await self._run_resumed()
            else:
                await self._run_fresh()

        except asyncio.CancelledError:
            self.cancel()
            raise

        return self._state

    def cancel(self) -> None:
        """Close the session on disconnect. No event is emitted after this returns."""
        if self.closed:
            return

        previous = self._state
        self._state = SessionState.CLOSED
        if self._ticker is not None and not self._ticker.done():
            self._ticker.cancel()

        logger.info(
            "Stream session closed",
            extra={"previous_state": previous.value, "cursor": self._cursor, "total": self.total},
        )

    # ── Phases ────────────────────────────────────────────────────────────────

    async def _validate(self) -> bool:
        if not self._articles:
            await self._fail(empty_result_message(self._day, self._category))
            return False

        if self._resume_offset < 0 or self._resume_offset >= len(self._articles):
            await self._fail(out_of_range_message(self._resume_offset, len(self._articles)))
            return False

        return True

    async def _run_fresh(self) -> None:
        batch = self._articles[: self._batch_window]
        self._cursor = len(batch)

        if not await self._emit(batch_event(batch, self.total)):
            return
        self._state = SessionState.BATCHED

        if self._cursor < self.total:
            logger.info(
                f"Streaming remaining {self.total - self._cursor} articles "
                f"every {self._interval} second(s)"
            )
            await self._trickle()

        if self._state is SessionState.CLOSED:
            return

        self._state = SessionState.COMPLETE
        await self._emit(complete_event(), allow_complete=True)
        await self._release()

    async def _run_resumed(self) -> None:
        logger.info(
            f"Resuming stream at article {self._resume_offset + 1} of {self.total}",
            extra={"resume_offset": self._resume_offset},
        )

        if self._announce_resume:
            if not await self._emit(info_event(self._resume_offset, self.total)):
                return

        await self._trickle()
        if self._state is SessionState.CLOSED:
            return

        # Resumed sessions end by closing the connection, without a complete event
        self._state = SessionState.COMPLETE
        await self._release()

    async def _trickle(self) -> None:
        self._state = SessionState.TRICKLING
        self._ticker = asyncio.create_task(self._tick_loop())
        try:
            await self._ticker
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if self._state is not SessionState.CLOSED or (
                current is not None and current.cancelling()
            ):
                raise
        finally:
            self._ticker = None

    async def _tick_loop(self) -> None:
        while self._cursor < self.total:
            await self._sleep(self._interval)
            if self._state is not SessionState.TRICKLING:
                return

            index = self._cursor
            self._cursor += 1
            if not await self._emit(stream_event(self._articles[index], index + 1, self.total)):
                return

            logger.debug(
                f"Streamed article {index + 1} of {self.total}",
                extra={"url": self._articles[index].url},
            )

    # ── Emission ──────────────────────────────────────────────────────────────

    async def _emit(self, event: dict[str, Any], *, allow_complete: bool = False) -> bool:
        """Send one event unless the session is closed. Returns False once closed."""
        if self._state is SessionState.CLOSED:
            return False
        if self._state is SessionState.COMPLETE and not allow_complete:
            return False

        delivered = await self._sink.send(event)
        if not delivered:
            # Peer went away mid-send
            self.cancel()
            return False

        self._events_sent += 1
        return True

    async def _fail(self, message: str) -> None:
        logger.info(f"Stream session rejected: {message}")
        await self._emit(error_event(message))
        self._state = SessionState.CLOSED
        await self._sink.close()

    async def _release(self) -> None:
        logger.info(
            "Stream session complete",
            extra={"total": self.total, "resumed": self.resumed, "events_sent": self._events_sent},
        )
        self._ticker = None
        await self._sink.close()
