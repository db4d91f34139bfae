"""Centralised construction of problem+json payloads.

Keeps error codes and titles out of route modules.
"""

from __future__ import annotations

from typing import Dict
import logging

from vrams.logic.errors import ApplicationError


logger = logging.getLogger(__name__)


def problem_from_error(exc: ApplicationError) -> Dict[str, object]:
    """Return the problem body for a domain error."""
    problem: Dict[str, object] = {
        "title": exc.title,
        "status": exc.status,
        "detail": exc.message,
        "code": exc.code,
    }
    problem.update(exc.extras())
    logger.info("error_handler.handle code=%s status=%s", exc.code, exc.status)
    return problem


def problem_actor_required() -> Dict[str, object]:
    """Return a 401 problem for requests without an actor header."""
    problem = {
        "title": "Unauthorized",
        "status": 401,
        "detail": "X-Actor-Id header is required",
        "code": "ACTOR_REQUIRED",
    }
    logger.info("error_handler.handle code=%s status=%s", problem["code"], problem["status"])
    return problem


def problem_field_change_rejected(code: str, field_name: str) -> Dict[str, object]:
    """Return a 409 problem for a field edit the resolver refused."""
    detail = (
        f"Unknown field {field_name}"
        if code == "unknown_field"
        else f"Field {field_name} does not apply to the current selections"
    )
    problem = {
        "title": "Conflict",
        "status": 409,
        "detail": detail,
        "code": "FIELD_UNKNOWN" if code == "unknown_field" else "FIELD_INACTIVE",
        "field": field_name,
    }
    logger.info("error_handler.handle code=%s status=%s", problem["code"], problem["status"])
    return problem


def problem_invalid_record_part() -> Dict[str, object]:
    """Return a 422 problem for a multipart ``record`` part that is not a JSON object."""
    problem = {
        "title": "Invalid Request",
        "status": 422,
        "detail": "record must be a JSON object",
        "code": "RECORD_INVALID",
    }
    logger.info("error_handler.handle code=%s status=%s", problem["code"], problem["status"])
    return problem


__all__ = [
    "problem_from_error",
    "problem_actor_required",
    "problem_field_change_rejected",
    "problem_invalid_record_part",
]
