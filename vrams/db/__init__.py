"""Database bootstrap utilities.

Exposes engine construction and the migrations runner. Repositories use
plain SQL; no ORM models leak into route handlers.
"""

from vrams.db.base import get_engine, reset_engine
from vrams.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "reset_engine",
    "apply_migrations",
]
