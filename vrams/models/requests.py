"""Request bodies for the draft and application routes."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel

from vrams.models.enums import ApplicationStatus


class FieldChangeRequest(BaseModel):
    value: Any = None


class StatusChangeRequest(BaseModel):
    status: Literal[ApplicationStatus.ALL]
    reason: Optional[str] = None
    precinct_number: Optional[str] = None
    voter_id: Optional[str] = None


__all__ = ["FieldChangeRequest", "StatusChangeRequest"]
