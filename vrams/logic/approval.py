"""Officer status transitions and the applicant's pending view.

Allowed moves::

    pending -> verified
    verified -> approved | disapproved | pending
    disapproved -> pending

Approval issues a voter record. If that write fails the status is put back
to ``verified`` before the error is raised.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
import logging

from vrams.logic.backend import ApplicationBackend, BackendError
from vrams.logic.errors import (
    ApplicationNotFound,
    ApprovalRollback,
    BackendUnavailable,
    InvalidStatusTransition,
)
from vrams.logic.events import APPLICATION_STATUS_CHANGED, publish
from vrams.logic.record_canonical import is_blank
from vrams.models.enums import ApplicationStatus, ApplicationType

logger = logging.getLogger(__name__)

TRANSITIONS: dict[str, frozenset[str]] = {
    ApplicationStatus.PENDING: frozenset({ApplicationStatus.VERIFIED}),
    ApplicationStatus.VERIFIED: frozenset(
        {ApplicationStatus.APPROVED, ApplicationStatus.DISAPPROVED, ApplicationStatus.PENDING}
    ),
    ApplicationStatus.DISAPPROVED: frozenset({ApplicationStatus.PENDING}),
    ApplicationStatus.APPROVED: frozenset(),
}


def can_transition(current: Optional[str], target: str) -> bool:
    return target in TRANSITIONS.get(current or "", frozenset())


async def _load(backend: ApplicationBackend, application_number: str) -> Dict[str, Any]:
    try:
        application = await backend.get_application(application_number)
    except BackendError as exc:
        raise BackendUnavailable(f"get_application failed: {exc.message}") from exc
    if application is None:
        raise ApplicationNotFound(application_number)
    return application


async def change_status(
    backend: ApplicationBackend,
    application_number: str,
    target: str,
    reason: Optional[str] = None,
    precinct_number: Optional[str] = None,
    voter_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Move an application to ``target`` and return the updated application."""
    application = await _load(backend, application_number)
    current = application.get("status")
    if not can_transition(current, target):
        raise InvalidStatusTransition(current, target)
    if target == ApplicationStatus.DISAPPROVED and is_blank(reason):
        raise InvalidStatusTransition(current, target, "A reason is required to disapprove an application")
    if target == ApplicationStatus.APPROVED and (is_blank(precinct_number) or is_blank(voter_id)):
        raise InvalidStatusTransition(current, target, "Approval requires a precinct number and a voter id")

    try:
        await backend.set_application_status(application_number, target, reason)
    except BackendError as exc:
        logger.error("status_update_failed application_number=%s target=%s", application_number, target, exc_info=True)
        raise BackendUnavailable(f"set_application_status failed: {exc.message}") from exc

    if target == ApplicationStatus.APPROVED:
        try:
            await backend.create_voter_record(
                application_number, application["applicant_id"], str(precinct_number), str(voter_id)
            )
        except BackendError as exc:
            logger.error("approval_voter_record_failed application_number=%s", application_number, exc_info=True)
            status_after = ApplicationStatus.VERIFIED
            try:
                await backend.set_application_status(application_number, ApplicationStatus.VERIFIED, None)
            except BackendError:
                logger.error("approval_rollback_failed application_number=%s", application_number, exc_info=True)
                status_after = ApplicationStatus.APPROVED
            raise ApprovalRollback(application_number, exc.message, status_after) from exc

    logger.info("status_changed application_number=%s from=%s to=%s", application_number, current, target)
    publish(
        APPLICATION_STATUS_CHANGED,
        {"application_number": application_number, "from": current, "to": target},
    )
    return {**application, "status": target, "status_reason": reason}


async def application_detail(backend: ApplicationBackend, application_number: str) -> Dict[str, Any]:
    """Return one application for status tracking.

    ``voter_record`` carries the precinct number and voter id once the
    application is approved, and is None otherwise.
    """
    application = await _load(backend, application_number)
    voter_record = None
    if application.get("status") == ApplicationStatus.APPROVED:
        try:
            found = await backend.get_voter_record(application_number)
        except BackendError as exc:
            raise BackendUnavailable(f"get_voter_record failed: {exc.message}") from exc
        if found is not None:
            voter_record = {"voter_id": found["voter_id"], "precinct_number": found["precinct_number"]}
    return {**application, "voter_record": voter_record}


async def pending_applications(backend: ApplicationBackend, actor_id: str) -> Dict[str, Any]:
    """List the actor's open applications, newest first."""
    try:
        rows = await backend.list_applications(actor_id)
    except BackendError as exc:
        raise BackendUnavailable(f"list_applications failed: {exc.message}") from exc
    open_rows = [r for r in rows if r.get("status") in ApplicationStatus.OPEN]
    return {
        "applications": open_rows,
        "has_pending_registration": any(
            r.get("application_type") == ApplicationType.REGISTER for r in open_rows
        ),
    }


__all__ = ["TRANSITIONS", "can_transition", "change_status", "application_detail", "pending_applications"]
