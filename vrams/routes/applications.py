"""Application routes: validation preview, submission and officer review.

Domain errors raised by the logic layer propagate to the problem+json
handler registered in ``create_app``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
import json
import logging

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from vrams.logic.approval import application_detail, change_status, pending_applications
from vrams.logic.backend import ApplicationBackend
from vrams.logic.dependency_resolver import compute_active_groups
from vrams.logic.draft_guard import DraftGuard
from vrams.logic.problem_factory import problem_invalid_record_part
from vrams.logic.record_canonical import normalize_for_submission
from vrams.logic.submission import Attachment, SubmissionOrchestrator
from vrams.logic.validation import validate
from vrams.models.requests import StatusChangeRequest
from vrams.routes.dependencies import get_backend, get_draft_guard, get_orchestrator, require_actor

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/applications/validate", summary="Validate a record without submitting it")
def validate_application(record: Dict[str, Any] = Body(...)):
    normalized = normalize_for_submission(record)
    errors = validate(normalized)
    return {
        "valid": not errors,
        "errors": [e.as_dict() for e in errors],
        "active_groups": sorted(compute_active_groups(normalized)),
    }


async def _attachment(upload: Optional[UploadFile]) -> Optional[Attachment]:
    if upload is None or not upload.filename:
        return None
    return Attachment(filename=upload.filename, content=await upload.read())


@router.post("/applications", status_code=201, summary="Submit an application")
async def submit_application(
    record: str = Form(...),
    id_front_photo: Optional[UploadFile] = File(default=None),
    id_back_photo: Optional[UploadFile] = File(default=None),
    id_selfie_url: Optional[UploadFile] = File(default=None),
    actor_id: str = Depends(require_actor),
    guard: DraftGuard = Depends(get_draft_guard),
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
):
    try:
        parsed = json.loads(record)
    except json.JSONDecodeError:
        parsed = None
    if not isinstance(parsed, dict):
        raise HTTPException(status_code=422, detail=problem_invalid_record_part())

    attachments: Dict[str, Attachment] = {}
    for name, upload in (
        ("id_front_photo", id_front_photo),
        ("id_back_photo", id_back_photo),
        ("id_selfie_url", id_selfie_url),
    ):
        found = await _attachment(upload)
        if found is not None:
            attachments[name] = found

    application_number = await orchestrator.submit(parsed, actor_id, attachments, guard=guard)
    return JSONResponse({"application_number": application_number}, status_code=201)


@router.get("/applications/pending", summary="List the caller's open applications")
async def list_pending_applications(
    actor_id: str = Depends(require_actor),
    backend: ApplicationBackend = Depends(get_backend),
):
    return await pending_applications(backend, actor_id)


@router.get("/applications/{application_number}", summary="Look up an application by number")
async def get_application(
    application_number: str,
    actor_id: str = Depends(require_actor),
    backend: ApplicationBackend = Depends(get_backend),
):
    logger.info("application_lookup application_number=%s actor=%s", application_number, actor_id)
    return await application_detail(backend, application_number)


@router.post("/applications/{application_number}/status", summary="Change an application's status")
async def post_application_status(
    application_number: str,
    payload: StatusChangeRequest,
    actor_id: str = Depends(require_actor),
    backend: ApplicationBackend = Depends(get_backend),
):
    logger.info(
        "status_change_requested application_number=%s target=%s officer=%s",
        application_number,
        payload.status,
        actor_id,
    )
    return await change_status(
        backend,
        application_number,
        payload.status,
        reason=payload.reason,
        precinct_number=payload.precinct_number,
        voter_id=payload.voter_id,
    )


__all__ = ["router"]
