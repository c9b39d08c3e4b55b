"""
Streaming Sessions

Per-connection windowed delivery and the manager that opens sessions.
"""
from daily_news.session.events import EventType
from daily_news.session.manager import SessionFilters, SessionManager, parse_filters
from daily_news.session.stream_session import EventSink, SessionState, StreamSession

__all__ = [
    "EventSink",
    "EventType",
    "SessionFilters",
    "SessionManager",
    "SessionState",
    "StreamSession",
    "parse_filters",
]
