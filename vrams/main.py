from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from vrams.config import AppConfig, load_config
from vrams.db.base import get_engine
from vrams.db.migrations_runner import apply_migrations
from vrams.http.problem import (
    handle_application_error,
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from vrams.http.request_id import RequestIdMiddleware
from vrams.logging_setup import configure_logging
from vrams.logic.backend import ApplicationBackend
from vrams.logic.draft_store import KeyValueStore, SqlKeyValueStore
from vrams.logic.errors import ApplicationError
from vrams.logic.repository_applications import SqlApplicationBackend
from vrams.logic.uploads import LocalBucketUploader, Uploader
from vrams.routes import api_router

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    backend: Optional[ApplicationBackend] = None,
    kv_store: Optional[KeyValueStore] = None,
    uploader: Optional[Uploader] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Collaborators default to the SQL implementations on the configured
    database and a local upload directory; tests pass in-memory ones.
    """
    configure_logging()
    cfg = config or load_config()
    engine = get_engine(cfg.database.dsn)

    app = FastAPI(title="VRAMS Application Service")
    app.state.config = cfg
    app.state.backend = backend or SqlApplicationBackend(engine)
    app.state.kv_store = kv_store or SqlKeyValueStore(engine)
    app.state.uploader = uploader or LocalBucketUploader(cfg.uploads.root_dir, cfg.uploads.base_url)

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(ApplicationError, handle_application_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)

    @app.on_event("startup")
    def _apply_migrations() -> None:
        if not cfg.database.auto_apply_migrations:
            logger.info("auto_apply_migrations disabled; skipping migrations at startup")
            return
        try:
            applied = apply_migrations(engine)
            logger.info("startup_migrations_applied count=%s", len(applied))
        except SQLAlchemyError:
            logger.error("Failed to apply migrations at startup", exc_info=True)
            raise

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    def health():
        try:
            with engine.connect() as conn:
                conn.execute(sql_text("SELECT 1"))
            return {"status": "ok", "db": True}
        except SQLAlchemyError as e:
            logger.error("Health DB check failed", exc_info=True)
            return {"status": "degraded", "db": False, "reason": str(e)}

    return app


__all__ = ["create_app"]
