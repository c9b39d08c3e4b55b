"""
Core Type Definitions and Exceptions

Service-specific exceptions. Every failure the core raises derives from
NewsStreamError so callers can catch the whole family at one seam.
"""
from __future__ import annotations

from typing import Any, Optional


class NewsStreamError(Exception):
    """Base exception for all daily news errors."""

    def __init__(
        self,
        message: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class ValidationError(NewsStreamError):
    """Raised when upstream data or client input fails validation."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        if field:
            ctx["field"] = field
        if value is not None:
            ctx["value"] = repr(value)[:100]  # Truncate long values
        super().__init__(message, ctx)
        self.field = field
        self.value = value


class FetchError(NewsStreamError):
    """Raised when the upstream news provider is unreachable or refuses a request."""

    def __init__(
        self,
        message: str,
        service: str,
        status: Optional[int] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        ctx["service"] = service
        if status is not None:
            ctx["status"] = status
        super().__init__(message, ctx)
        self.service = service
        self.status = status


class StoreError(NewsStreamError):
    """Raised when the article store is unavailable or a read fails."""

    def __init__(
        self,
        message: str,
        operation: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        ctx["operation"] = operation
        super().__init__(message, ctx)
        self.operation = operation


class PersistenceError(StoreError):
    """Raised when a single article write fails for a reason other than a duplicate."""

    def __init__(
        self,
        message: str,
        url: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        ctx["url"] = url
        super().__init__(message, operation="insert", context=ctx)
        self.url = url
