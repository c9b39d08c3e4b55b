"""
Daily News Service Entry Point

Serves yesterday's news to websocket clients: the first window at once,
the rest one article per interval. Articles are ingested from NewsAPI into
Redis on the first request for a day.
"""
from __future__ import annotations

import asyncio
import logging
import signal

from dotenv import load_dotenv

# Load environment variables from .env file before config is imported
load_dotenv()

# Configure logging before importing config (which may fail)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def main() -> None:
    """
    Main entry point.

    1. Connects to the Redis article store
    2. Opens the NewsAPI client used for cache misses
    3. Starts the websocket server; each client gets its own session
    """
    from daily_news.config import settings
    from daily_news.ingestion import NewsPipeline
    from daily_news.newsapi_client import NewsApiClient
    from daily_news.session import SessionManager
    from daily_news.store import ArticleStore
    from daily_news.ws_server import NewsStreamServer

    if not settings.news_api.api_key:
        logger.warning("NEWS_API_KEY is not set; days missing from the store cannot be fetched")

    logger.info("Starting daily news streamer")

    store = ArticleStore(settings.redis.url)
    await store.connect()

    client = NewsApiClient(
        settings.news_api.api_key,
        settings.news_api.base_url,
        query=settings.news_api.query,
        language=settings.news_api.language,
        page_size=settings.news_api.page_size,
    )

    async with client:
        pipeline = NewsPipeline(store, client)
        manager = SessionManager(
            pipeline,
            interval_seconds=settings.stream.interval_seconds,
            batch_window=settings.stream.batch_window,
        )
        ws_server = NewsStreamServer(
            manager,
            pipeline,
            host=settings.websocket_server.host,
            port=settings.websocket_server.port,
        )

        await ws_server.start()
        logger.info(
            f"Streaming every {settings.stream.interval_seconds} second(s) "
            f"after an initial batch of {settings.stream.batch_window}"
        )

        # Keep running until interrupted
        shutdown_event = asyncio.Event()

        def signal_handler() -> None:
            logger.info("Shutdown signal received")
            shutdown_event.set()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)

        try:
            await shutdown_event.wait()
        finally:
            logger.info("Shutting down...")

            await ws_server.stop()
            await store.close()

            stats = ws_server.get_stats()
            logger.info(
                "Final stats",
                extra={
                    "clients_served": stats.total_connections,
                    "sessions_completed": stats.sessions_completed,
                    "events_sent": stats.events_sent,
                },
            )


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
