"""Applicant, application and voter-record data access.

Implements the backend collaborator on top of the shared SQLAlchemy engine.
Blocking database work runs in a worker thread so the orchestrator's event
loop is never held by a query.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar
import json
import logging
import uuid

import anyio
from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError

from vrams.db.base import get_engine
from vrams.logic.backend import BackendError, IdentityConflict, new_application_number, utc_now
from vrams.models.enums import ApplicationStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _to_backend_error(exc: SQLAlchemyError) -> BackendError:
    transient = isinstance(exc, OperationalError) or (
        isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)
    )
    if isinstance(exc, IntegrityError):
        transient = False
    return BackendError(str(exc.orig if isinstance(exc, DBAPIError) else exc), transient=transient)


def _row_to_application(row: Any) -> Dict[str, Any]:
    return {
        "application_number": row.application_number,
        "applicant_id": row.applicant_id,
        "actor_id": row.actor_id,
        "application_type": row.application_type,
        "status": row.status,
        "status_reason": row.status_reason,
        "created_at": row.created_at,
    }


_APPLICATION_COLUMNS = (
    "application_number, applicant_id, actor_id, application_type, status, status_reason, created_at"
)


class SqlApplicationBackend:
    def __init__(self, engine: Optional[Engine] = None) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine or get_engine()

    async def _run(self, op: str, fn: Callable[[Connection], T], write: bool = False) -> T:
        def _work() -> T:
            try:
                ctx = self.engine.begin() if write else self.engine.connect()
                with ctx as conn:
                    return fn(conn)
            except SQLAlchemyError as exc:
                logger.error("backend_query_failed op=%s", op, exc_info=True)
                raise _to_backend_error(exc) from exc

        return await anyio.to_thread.run_sync(_work)

    # Identity -----------------------------------------------------------

    async def find_identity(self, actor_id: str) -> Optional[Dict[str, Any]]:
        def _q(conn: Connection) -> Optional[Dict[str, Any]]:
            row = conn.execute(
                sql_text("SELECT applicant_id, payload FROM applicant WHERE actor_id = :aid"),
                {"aid": actor_id},
            ).fetchone()
            if row is None:
                return None
            return {"applicant_id": row.applicant_id, "actor_id": actor_id, **json.loads(row.payload)}

        return await self._run("find_identity", _q)

    async def create_identity(self, actor_id: str, payload: Mapping[str, Any]) -> str:
        applicant_id = str(uuid.uuid4())

        def _q(conn: Connection) -> str:
            try:
                conn.execute(
                    sql_text(
                        """
                        INSERT INTO applicant (applicant_id, actor_id, payload, created_at)
                        VALUES (:pid, :aid, :payload, :created_at)
                        """
                    ),
                    {"pid": applicant_id, "aid": actor_id, "payload": json.dumps(dict(payload)), "created_at": utc_now()},
                )
            except IntegrityError as exc:
                # applicant.actor_id is the only unique column a fresh uuid can collide on
                logger.info("identity_conflict actor=%s", actor_id)
                raise IdentityConflict(actor_id) from exc
            return applicant_id

        return await self._run("create_identity", _q, write=True)

    # Applications -------------------------------------------------------

    async def create_application(self, applicant_id: str, actor_id: str, application_type: str) -> str:
        def _q(conn: Connection) -> str:
            seq = int(conn.execute(sql_text("SELECT COALESCE(MAX(seq), 0) FROM application")).scalar_one()) + 1
            number = new_application_number(seq)
            conn.execute(
                sql_text(
                    """
                    INSERT INTO application
                        (application_number, seq, applicant_id, actor_id, application_type, status, created_at)
                    VALUES (:num, :seq, :pid, :aid, :atype, :status, :created_at)
                    """
                ),
                {
                    "num": number,
                    "seq": seq,
                    "pid": applicant_id,
                    "aid": actor_id,
                    "atype": application_type,
                    "status": ApplicationStatus.PENDING,
                    "created_at": utc_now(),
                },
            )
            return number

        return await self._run("create_application", _q, write=True)

    async def create_branch_record(self, application_number: str, branch: str, payload: Mapping[str, Any]) -> None:
        def _q(conn: Connection) -> None:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO application_branch (application_number, branch, payload, created_at)
                    VALUES (:num, :branch, :payload, :created_at)
                    """
                ),
                {"num": application_number, "branch": branch, "payload": json.dumps(dict(payload)), "created_at": utc_now()},
            )

        await self._run("create_branch_record", _q, write=True)

    async def get_application(self, application_number: str) -> Optional[Dict[str, Any]]:
        def _q(conn: Connection) -> Optional[Dict[str, Any]]:
            row = conn.execute(
                sql_text(f"SELECT {_APPLICATION_COLUMNS} FROM application WHERE application_number = :num"),
                {"num": application_number},
            ).fetchone()
            return None if row is None else _row_to_application(row)

        return await self._run("get_application", _q)

    async def set_application_status(
        self, application_number: str, status: str, reason: Optional[str] = None
    ) -> None:
        def _q(conn: Connection) -> None:
            result = conn.execute(
                sql_text(
                    """
                    UPDATE application
                    SET status = :status, status_reason = :reason, updated_at = :updated_at
                    WHERE application_number = :num
                    """
                ),
                {"status": status, "reason": reason, "updated_at": utc_now(), "num": application_number},
            )
            if result.rowcount == 0:
                raise BackendError(f"unknown application {application_number}")

        await self._run("set_application_status", _q, write=True)

    async def create_voter_record(
        self, application_number: str, applicant_id: str, precinct_number: str, voter_id: str
    ) -> None:
        def _q(conn: Connection) -> None:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO voter_record (voter_id, application_number, applicant_id, precinct_number, created_at)
                    VALUES (:vid, :num, :pid, :precinct, :created_at)
                    """
                ),
                {
                    "vid": voter_id,
                    "num": application_number,
                    "pid": applicant_id,
                    "precinct": precinct_number,
                    "created_at": utc_now(),
                },
            )

        await self._run("create_voter_record", _q, write=True)

    async def get_voter_record(self, application_number: str) -> Optional[Dict[str, Any]]:
        def _q(conn: Connection) -> Optional[Dict[str, Any]]:
            row = conn.execute(
                sql_text(
                    "SELECT voter_id, application_number, applicant_id, precinct_number, created_at "
                    "FROM voter_record WHERE application_number = :num"
                ),
                {"num": application_number},
            ).fetchone()
            return None if row is None else dict(row._mapping)

        return await self._run("get_voter_record", _q)

    async def list_applications(self, actor_id: str) -> List[Dict[str, Any]]:
        def _q(conn: Connection) -> List[Dict[str, Any]]:
            rows = conn.execute(
                sql_text(
                    f"SELECT {_APPLICATION_COLUMNS} FROM application WHERE actor_id = :aid ORDER BY seq DESC"
                ),
                {"aid": actor_id},
            ).fetchall()
            return [_row_to_application(r) for r in rows]

        return await self._run("list_applications", _q)


__all__ = ["SqlApplicationBackend"]
