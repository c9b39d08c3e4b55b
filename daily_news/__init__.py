"""
Daily News Streamer

Delivers one day's news articles to each connected websocket client: the
first window immediately, the remainder one article per interval, with
resume-at-offset and category/date filters.

Architecture:
    NewsAPI (external) -> newsapi_client -> classifier -> store (Redis)
    store -> ingestion -> session -> ws_server -> clients

Components:
    - classifier: keyword title classification into fixed categories
    - newsapi_client: upstream fetch and payload normalization
    - store: Redis article store keyed by URL
    - ingestion: cache-aside pipeline, fetch once per day
    - session: per-connection stream state machine and manager
    - ws_server: websocket transport plus a small HTTP query surface
"""
