"""Lightweight SQL migrations runner.

Applies .sql files in lexical order from the package's `migrations/`
directory and journals each applied filename in the `schema_migrations`
table so a file is never applied twice.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

_JOURNAL_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    filename TEXT PRIMARY KEY,
    applied_at TEXT NOT NULL
)
"""


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        if "rollback" in p.name.lower():
            continue
        yield p


def _split_statements(sql: str) -> list[str]:
    statements = []
    for chunk in sql.split(";"):
        lines = [line for line in chunk.splitlines() if not line.strip().startswith("--")]
        stmt = "\n".join(lines).strip()
        if stmt:
            statements.append(stmt)
    return statements


def _exec_sql(conn: Connection, sql: str) -> None:
    """Execute a migration file one statement at a time.

    pysqlite refuses several statements in one execute() call, so files are
    split on ';'. Migration files must not contain ';' inside literals.
    """
    for stmt in _split_statements(sql):
        conn.exec_driver_sql(stmt)


def applied_migrations(engine: Engine) -> list[str]:
    with engine.begin() as conn:
        conn.exec_driver_sql(_JOURNAL_DDL)
        rows = conn.execute(sql_text("SELECT filename FROM schema_migrations ORDER BY filename")).fetchall()
    return [str(r[0]) for r in rows]


def apply_migrations(engine: Engine, migrations_dir: str | os.PathLike[str] | None = None) -> list[str]:
    """Apply pending migrations and return the filenames applied by this call."""
    root = Path(migrations_dir) if migrations_dir is not None else MIGRATIONS_DIR
    if not root.exists():
        logger.warning("migrations_dir_missing path=%s", root)
        return []

    done = set(applied_migrations(engine))
    newly_applied: list[str] = []
    for sql_path in _iter_sql_files(root):
        fname = sql_path.name
        if fname in done:
            continue
        sql = sql_path.read_text(encoding="utf-8")
        with engine.begin() as conn:
            _exec_sql(conn, sql)
            conn.execute(
                sql_text("INSERT INTO schema_migrations (filename, applied_at) VALUES (:f, :at)"),
                {
                    "f": fname,
                    "at": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
                },
            )
        logger.info("migration_applied file=%s", fname)
        newly_applied.append(fname)
    return newly_applied


__all__ = ["MIGRATIONS_DIR", "apply_migrations", "applied_migrations"]
