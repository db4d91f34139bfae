"""APIRouter registration for the application service."""

from __future__ import annotations

from fastapi import APIRouter

from vrams.routes.applications import router as applications_router
from vrams.routes.drafts import router as drafts_router

api_router = APIRouter()
api_router.include_router(drafts_router, tags=["Drafts"])
api_router.include_router(applications_router, tags=["Applications"])

__all__ = ["api_router"]
