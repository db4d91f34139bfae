"""Backend collaborator contract and an in-memory implementation.

The submission orchestrator and the approval flow only talk to this
protocol. ``SqlApplicationBackend`` in ``repository_applications`` is the
database-backed implementation; ``InMemoryApplicationBackend`` serves tests
and local runs without a database.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol
import itertools
import uuid

from vrams.models.enums import ApplicationStatus


class BackendError(Exception):
    """Failure reported by the backend collaborator.

    ``transient`` marks outages worth retrying later, as opposed to rejected
    writes.
    """

    def __init__(self, message: str, transient: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.transient = transient


class IdentityConflict(BackendError):
    """An identity already exists for the actor, for example after a concurrent create."""

    def __init__(self, actor_id: str) -> None:
        super().__init__(f"applicant already exists for {actor_id}")
        self.actor_id = actor_id


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def new_application_number(sequence: int) -> str:
    return f"{datetime.now(timezone.utc):%Y}-{sequence:06d}-{uuid.uuid4().hex[:4].upper()}"


class ApplicationBackend(Protocol):
    async def find_identity(self, actor_id: str) -> Optional[Dict[str, Any]]: ...

    async def create_identity(self, actor_id: str, payload: Mapping[str, Any]) -> str: ...

    async def create_application(self, applicant_id: str, actor_id: str, application_type: str) -> str: ...

    async def create_branch_record(self, application_number: str, branch: str, payload: Mapping[str, Any]) -> None: ...

    async def get_application(self, application_number: str) -> Optional[Dict[str, Any]]: ...

    async def set_application_status(
        self, application_number: str, status: str, reason: Optional[str] = None
    ) -> None: ...

    async def create_voter_record(
        self, application_number: str, applicant_id: str, precinct_number: str, voter_id: str
    ) -> None: ...

    async def get_voter_record(self, application_number: str) -> Optional[Dict[str, Any]]: ...

    async def list_applications(self, actor_id: str) -> List[Dict[str, Any]]: ...


class InMemoryApplicationBackend:
    def __init__(self) -> None:
        self.identities: Dict[str, Dict[str, Any]] = {}
        self.applications: Dict[str, Dict[str, Any]] = {}
        self.branches: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.voter_records: Dict[str, Dict[str, Any]] = {}
        self._sequence = itertools.count(1)

    async def find_identity(self, actor_id: str) -> Optional[Dict[str, Any]]:
        found = self.identities.get(actor_id)
        return dict(found) if found else None

    async def create_identity(self, actor_id: str, payload: Mapping[str, Any]) -> str:
        if actor_id in self.identities:
            raise IdentityConflict(actor_id)
        applicant_id = str(uuid.uuid4())
        self.identities[actor_id] = {"applicant_id": applicant_id, "actor_id": actor_id, **payload}
        return applicant_id

    async def create_application(self, applicant_id: str, actor_id: str, application_type: str) -> str:
        number = new_application_number(next(self._sequence))
        self.applications[number] = {
            "application_number": number,
            "applicant_id": applicant_id,
            "actor_id": actor_id,
            "application_type": application_type,
            "status": ApplicationStatus.PENDING,
            "status_reason": None,
            "created_at": utc_now(),
        }
        return number

    async def create_branch_record(self, application_number: str, branch: str, payload: Mapping[str, Any]) -> None:
        if application_number not in self.applications:
            raise BackendError(f"unknown application {application_number}")
        self.branches.setdefault(application_number, {})[branch] = dict(payload)

    async def get_application(self, application_number: str) -> Optional[Dict[str, Any]]:
        found = self.applications.get(application_number)
        return dict(found) if found else None

    async def set_application_status(
        self, application_number: str, status: str, reason: Optional[str] = None
    ) -> None:
        if application_number not in self.applications:
            raise BackendError(f"unknown application {application_number}")
        self.applications[application_number].update({"status": status, "status_reason": reason})

    async def create_voter_record(
        self, application_number: str, applicant_id: str, precinct_number: str, voter_id: str
    ) -> None:
        if voter_id in self.voter_records:
            raise BackendError(f"voter id {voter_id} already issued")
        self.voter_records[voter_id] = {
            "voter_id": voter_id,
            "application_number": application_number,
            "applicant_id": applicant_id,
            "precinct_number": precinct_number,
        }

    async def get_voter_record(self, application_number: str) -> Optional[Dict[str, Any]]:
        for record in self.voter_records.values():
            if record["application_number"] == application_number:
                return dict(record)
        return None

    async def list_applications(self, actor_id: str) -> List[Dict[str, Any]]:
        # insertion order is creation order
        return [dict(a) for a in reversed(list(self.applications.values())) if a["actor_id"] == actor_id]


__all__ = [
    "BackendError",
    "IdentityConflict",
    "ApplicationBackend",
    "InMemoryApplicationBackend",
    "new_application_number",
    "utc_now",
]
