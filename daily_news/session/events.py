"""
Session Event Payloads

Builders for the JSON events a streaming client receives. Shapes are a
stable client contract:

  batch     {articles, total, startIndex, endIndex, message}
  stream    {article, index, total, category, message}
  info      {message, resumeIndex, total}
  error     {message}
  complete  {message}

Indices shown to clients are 1-based.
"""
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Optional, Sequence

from daily_news.models.news import Article, Category
from daily_news.serializer import article_to_dict


class EventType(str, Enum):
    BATCH = "batch"
    STREAM = "stream"
    INFO = "info"
    ERROR = "error"
    COMPLETE = "complete"


COMPLETE_MESSAGE = "All articles have been streamed"


def batch_event(
    articles: Sequence[Article], total: int, start_index: int = 1
) -> dict[str, Any]:
    """Initial window of a fresh session, covering positions start_index..endIndex."""
    count = len(articles)
    end_index = start_index + count - 1
    remaining = total - end_index
    if remaining > 0:
        message = f"First {count} articles sent. {remaining} more to follow."
    else:
        message = "All articles sent"

    return {
        "type": EventType.BATCH.value,
        "articles": [article_to_dict(a) for a in articles],
        "total": total,
        "startIndex": start_index,
        "endIndex": end_index,
        "message": message,
    }


def stream_event(article: Article, index: int, total: int) -> dict[str, Any]:
    return {
        "type": EventType.STREAM.value,
        "article": article_to_dict(article),
        "index": index,
        "total": total,
        "category": article.category.value,
        "message": f"Article {index} of {total}",
    }


def info_event(resume_index: int, total: int) -> dict[str, Any]:
    return {
        "type": EventType.INFO.value,
        "message": f"Resuming from article {resume_index + 1} of {total}",
        "resumeIndex": resume_index,
        "total": total,
    }


def error_event(message: str) -> dict[str, Any]:
    return {"type": EventType.ERROR.value, "message": message}


def complete_event(message: str = COMPLETE_MESSAGE) -> dict[str, Any]:
    return {"type": EventType.COMPLETE.value, "message": message}


def empty_result_message(
    day: Optional[date] = None, category: Optional[Category] = None
) -> str:
    """Explain an empty record set in terms of the filters that produced it."""
    message = "No news articles available"
    message += f" for {day.isoformat()}" if day else " for yesterday"
    if category is not None:
        message += f" in category {category.value}"
    return message


def out_of_range_message(offset: int, total: int) -> str:
    return f"Resume index {offset} is out of range (total articles: {total})"
