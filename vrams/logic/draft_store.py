"""Durable draft and fingerprint storage.

A draft slot holds two keys: the serialised record and the fingerprint of
the last submitted record. Slots are keyed by actor so two applicants never
share a draft. The key-value layer has a SQL implementation backed by the
``draft_slot`` table and an in-memory one for tests and local runs.
"""

from __future__ import annotations

from datetime import datetime, timezone
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional, Protocol, Tuple
import json
import logging

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from vrams.db.base import get_engine
from vrams.logic.record_canonical import normalize_draft_dates

logger = logging.getLogger(__name__)

DEFAULT_DRAFT_KEY = "vrams_application_draft_v2"
DEFAULT_FINGERPRINT_KEY = "vrams_last_submitted_fingerprint_v1"


class DraftStoreError(Exception):
    """The draft slot storage could not be read or written."""


class KeyValueStore(Protocol):
    def get(self, slot_id: str, key: str) -> Optional[str]: ...

    def put(self, slot_id: str, key: str, value: str) -> None: ...

    def delete(self, slot_id: str, key: str) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self) -> None:
        self._data: Dict[Tuple[str, str], str] = {}

    def get(self, slot_id: str, key: str) -> Optional[str]:
        return self._data.get((slot_id, key))

    def put(self, slot_id: str, key: str, value: str) -> None:
        self._data[(slot_id, key)] = value

    def delete(self, slot_id: str, key: str) -> None:
        self._data.pop((slot_id, key), None)


class SqlKeyValueStore:
    """Key-value slots stored in the ``draft_slot`` table."""

    def __init__(self, engine: Optional[Engine] = None) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine or get_engine()

    @contextmanager
    def _errors(self, op: str, slot_id: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error("draft_store_failed op=%s slot=%s", op, slot_id, exc_info=True)
            raise DraftStoreError(f"draft {op} failed for slot {slot_id}") from exc

    def get(self, slot_id: str, key: str) -> Optional[str]:
        with self._errors("get", slot_id), self.engine.connect() as conn:
            row = conn.execute(
                sql_text("SELECT payload FROM draft_slot WHERE slot_id = :sid AND slot_key = :key"),
                {"sid": slot_id, "key": key},
            ).fetchone()
        return None if row is None else str(row[0])

    def put(self, slot_id: str, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
        with self._errors("put", slot_id), self.engine.begin() as conn:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO draft_slot (slot_id, slot_key, payload, updated_at)
                    VALUES (:sid, :key, :payload, :updated_at)
                    ON CONFLICT (slot_id, slot_key)
                    DO UPDATE SET payload = excluded.payload, updated_at = excluded.updated_at
                    """
                ),
                {"sid": slot_id, "key": key, "payload": value, "updated_at": now},
            )

    def delete(self, slot_id: str, key: str) -> None:
        with self._errors("delete", slot_id), self.engine.begin() as conn:
            conn.execute(
                sql_text("DELETE FROM draft_slot WHERE slot_id = :sid AND slot_key = :key"),
                {"sid": slot_id, "key": key},
            )


class DraftStore:
    """Draft record and last-submitted fingerprint for one slot."""

    def __init__(
        self,
        kv: KeyValueStore,
        slot_id: str,
        draft_key: str = DEFAULT_DRAFT_KEY,
        fingerprint_key: str = DEFAULT_FINGERPRINT_KEY,
    ) -> None:
        self.kv = kv
        self.slot_id = slot_id
        self.draft_key = draft_key
        self.fingerprint_key = fingerprint_key

    def save(self, record: Mapping[str, Any]) -> None:
        self.kv.put(self.slot_id, self.draft_key, json.dumps(dict(record), sort_keys=True, default=str))

    def load(self) -> Optional[dict[str, Any]]:
        """Return the stored draft, or None when there is none.

        An unreadable draft is discarded together with the stored
        fingerprint. Date fields come back as ``YYYY-MM-DD``.
        """
        raw = self.kv.get(self.slot_id, self.draft_key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            data = None
        if not isinstance(data, dict):
            logger.warning("draft_corrupt_discarded slot=%s", self.slot_id)
            self.clear()
            self.clear_fingerprint()
            return None
        return normalize_draft_dates(data)

    def clear(self) -> None:
        self.kv.delete(self.slot_id, self.draft_key)

    def get_fingerprint(self) -> Optional[str]:
        return self.kv.get(self.slot_id, self.fingerprint_key)

    def set_fingerprint(self, value: str) -> None:
        self.kv.put(self.slot_id, self.fingerprint_key, value)

    def clear_fingerprint(self) -> None:
        self.kv.delete(self.slot_id, self.fingerprint_key)


__all__ = [
    "DEFAULT_DRAFT_KEY",
    "DEFAULT_FINGERPRINT_KEY",
    "DraftStoreError",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "SqlKeyValueStore",
    "DraftStore",
]
