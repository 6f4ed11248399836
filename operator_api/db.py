from __future__ import annotations

import logging
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from operator_api.settings import get_settings

logger = logging.getLogger(__name__)

ASYNC_DRIVER = "postgresql+asyncpg://"
SYNC_PREFIXES = ("postgres://", "postgresql://", "postgresql+psycopg2://")
# libpq-only query options asyncpg rejects
DROPPED_QUERY_KEYS = {"channel_binding", "ssl"}
LOCAL_HOSTS = {"localhost", "127.0.0.1"}


def _normalize_database_url(database_url: str) -> str:
    """Rewrite a hosted Postgres URL for asyncpg; ``sslmode`` becomes ``ssl=true``."""
    url = str(database_url or "").strip()
    for prefix in SYNC_PREFIXES:
        if url.startswith(prefix):
            url = ASYNC_DRIVER + url[len(prefix):]
            break
    if not url:
        return url
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    options = parse_qsl(parsed.query, keep_blank_values=True)
    wants_ssl = any(key == "sslmode" for key, _ in options)
    kept = [(key, value) for key, value in options if key != "sslmode" and key not in DROPPED_QUERY_KEYS]
    if wants_ssl:
        kept.append(("ssl", "true"))
    return urlunparse(parsed._replace(query=urlencode(kept)))


def _connect_args(db_url: str) -> dict:
    host = urlparse(db_url).hostname or ""
    if host and host not in LOCAL_HOSTS:
        return {"ssl": True}
    return {}


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL not configured")
        db_url = _normalize_database_url(settings.database_url)
        logger.info("Creating database engine for %s", urlparse(db_url).hostname or "local database")
        _engine = create_async_engine(
            db_url,
            connect_args=_connect_args(db_url),
            pool_pre_ping=True,
            pool_size=20,
            max_overflow=10,
        )
    return _engine


def get_sessionmaker() -> async_sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory
