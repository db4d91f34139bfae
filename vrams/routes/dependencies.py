"""FastAPI dependencies shared by the route modules.

Collaborators live on ``app.state`` and are wired by ``create_app``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from vrams.logic.backend import ApplicationBackend
from vrams.logic.draft_guard import DraftGuard
from vrams.logic.draft_store import DraftStore
from vrams.logic.problem_factory import problem_actor_required
from vrams.logic.record_canonical import is_blank
from vrams.logic.submission import SubmissionOrchestrator


def require_actor(x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id")) -> str:
    if x_actor_id is None or is_blank(x_actor_id):
        raise HTTPException(status_code=401, detail=problem_actor_required())
    return x_actor_id.strip()


def get_draft_guard(request: Request, actor_id: str = Depends(require_actor)) -> DraftGuard:
    cfg = request.app.state.config
    store = DraftStore(
        request.app.state.kv_store,
        actor_id,
        draft_key=cfg.drafts.draft_key,
        fingerprint_key=cfg.drafts.fingerprint_key,
    )
    return DraftGuard(store)


def get_backend(request: Request) -> ApplicationBackend:
    return request.app.state.backend


def get_orchestrator(request: Request) -> SubmissionOrchestrator:
    return SubmissionOrchestrator(request.app.state.backend, request.app.state.uploader)


__all__ = ["require_actor", "get_draft_guard", "get_backend", "get_orchestrator"]
