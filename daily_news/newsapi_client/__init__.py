"""
NewsAPI Client Module

HTTP client and payload normalizer for the upstream news provider.
"""
from daily_news.newsapi_client.client import NewsApiClient
from daily_news.newsapi_client.normalizer import normalize_article, parse_timestamp

__all__ = [
    "NewsApiClient",
    "normalize_article",
    "parse_timestamp",
]
