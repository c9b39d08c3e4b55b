"""
News Data Models

Core data structures for articles at different pipeline stages.
Articles are frozen dataclasses with __post_init__ validation.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class Category(str, Enum):
    """Closed set of article categories, in classification priority order."""

    POLITICS = "Politics"
    BUSINESS = "Business"
    TECHNOLOGY = "Technology"
    SPORTS = "Sports"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    SCIENCE = "Science"
    EDUCATION = "Education"
    CRIME = "Crime"
    INTERNATIONAL = "International"
    ENVIRONMENT = "Environment"
    ECONOMY = "Economy"
    DEFENSE = "Defense"
    GENERAL = "General"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["Category"]:
        """Convert string to Category (case-insensitive), returning None if not found."""
        if not value:
            return None
        v = value.strip().lower()
        for member in cls:
            if member.value.lower() == v or member.name.lower() == v:
                return member
        return None


@dataclass(frozen=True)
class Article:
    """
    A news article as persisted in the store.

    Created once by the ingestion pipeline and never mutated afterwards.
    The url is the identity key.
    """

    # Required fields
    title: str
    url: str
    published_at: datetime
    fetch_date: date

    # Source information
    source_id: Optional[str] = None
    source_name: Optional[str] = None

    # Optional content
    author: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    content: Optional[str] = None

    # Assigned once at ingestion
    category: Category = Category.GENERAL

    def __post_init__(self) -> None:
        """Validate required fields."""
        if not self.title:
            raise ValueError("title must be non-empty string")
        if not self.url:
            raise ValueError("url must be non-empty string")
        if self.published_at.tzinfo is None:
            raise ValueError("published_at must be timezone-aware")


@dataclass
class IngestionReport:
    """Outcome of one ingestion run for a single day."""

    day: date
    fetched: int = 0
    saved: int = 0
    duplicates: int = 0
    errors: int = 0

    @property
    def skipped(self) -> int:
        return self.duplicates + self.errors
