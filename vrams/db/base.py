"""SQLAlchemy engine management.

SQLite (in-memory by default) serves local runs and tests; any SQLAlchemy
URL can be configured. No declarative models are defined; repositories use
plain SQL text.
"""

from __future__ import annotations

import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def _db_url() -> str:
    return os.getenv("VRAMS_DATABASE_URL") or "sqlite+pysqlite:///:memory:"


_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def get_engine(url: str | None = None) -> Engine:
    """Return a singleton Engine for the given URL.

    In-memory SQLite uses a StaticPool so every session and worker thread
    sees the same database.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or _ENGINE_URL or _db_url()

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"future": True, "pool_pre_ping": True}
        if resolved_url.startswith("sqlite") and ":memory:" in resolved_url:
            kwargs.update({
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            })
        elif resolved_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
        _ENGINE = create_engine(resolved_url, **kwargs)
        _ENGINE_URL = resolved_url
        logger.info("db_engine_created dialect=%s", _ENGINE.dialect.name)

    return _ENGINE


def reset_engine() -> None:
    """Dispose the cached engine; the next get_engine() call builds a new one."""
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None


__all__ = ["get_engine", "reset_engine"]
