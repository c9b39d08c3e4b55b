"""
WebSocket Server for Daily News

Streams each connected client its own paced article session.
"""
from daily_news.ws_server.server import NewsStreamServer, WebSocketEventSink

__all__ = ["NewsStreamServer", "WebSocketEventSink"]
