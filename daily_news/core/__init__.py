"""
Daily News Core Utilities

Service-wide exception types.
"""
from daily_news.core.types import (
    FetchError,
    NewsStreamError,
    PersistenceError,
    StoreError,
    ValidationError,
)

__all__ = [
    "FetchError",
    "NewsStreamError",
    "PersistenceError",
    "StoreError",
    "ValidationError",
]
