"""
Daily News Data Models

Frozen dataclasses with validation.
"""
from daily_news.models.news import Article, Category, IngestionReport

__all__ = [
    "Article",
    "Category",
    "IngestionReport",
]
