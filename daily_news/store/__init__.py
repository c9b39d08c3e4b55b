"""
Article Store

Redis-backed persistence for ingested articles.
"""
from daily_news.store.redis_store import ArticleStore, InsertOutcome

__all__ = [
    "ArticleStore",
    "InsertOutcome",
]
