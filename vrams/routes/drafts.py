"""Draft routes: restore, autosave, single-field edits and reset."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import Response
import logging

from vrams.logic.dependency_resolver import ResolverError
from vrams.logic.draft_guard import DraftGuard
from vrams.logic.problem_factory import problem_field_change_rejected
from vrams.models.requests import FieldChangeRequest
from vrams.routes.dependencies import get_draft_guard

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/drafts/current", summary="Restore the caller's draft")
def get_current_draft(guard: DraftGuard = Depends(get_draft_guard)):
    return guard.mount().as_dict()


@router.put("/drafts/current", summary="Autosave the whole draft record")
def put_current_draft(record: Dict[str, Any] = Body(...), guard: DraftGuard = Depends(get_draft_guard)):
    saved = guard.autosave(record)
    return {"saved": True, "record": saved}


@router.patch("/drafts/current/fields/{field_name}", summary="Change one field of the draft")
def patch_draft_field(
    field_name: str,
    payload: FieldChangeRequest,
    guard: DraftGuard = Depends(get_draft_guard),
):
    try:
        record, delta = guard.apply_change(field_name, payload.value)
    except ResolverError as exc:
        logger.info("draft_field_rejected field=%s code=%s", field_name, exc.code)
        raise HTTPException(status_code=409, detail=problem_field_change_rejected(exc.code, field_name)) from exc
    return {"saved": True, "record": record, "delta": asdict(delta)}


@router.delete("/drafts/current", status_code=204, summary="Discard the draft and the submission marker")
def delete_current_draft(guard: DraftGuard = Depends(get_draft_guard)) -> Response:
    guard.reset()
    return Response(status_code=204)


__all__ = ["router"]
