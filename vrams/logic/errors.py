"""Failure taxonomy for submission and approval.

Every error carries a stable ``code`` and the HTTP status it maps to; the
problem handlers render them as problem+json.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional


class ApplicationError(Exception):
    code = "APPLICATION_ERROR"
    status = 500
    title = "Application Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def extras(self) -> dict[str, Any]:
        return {}


class ValidationFailed(ApplicationError):
    code = "VALIDATION_FAILED"
    status = 422
    title = "Validation Failed"

    def __init__(self, errors: Iterable[Any]) -> None:
        self.errors = list(errors)
        super().__init__(f"{len(self.errors)} field(s) failed validation")

    def extras(self) -> dict[str, Any]:
        return {"errors": [e.as_dict() for e in self.errors]}


class DuplicateIdentity(ApplicationError):
    code = "DUPLICATE_IDENTITY"
    status = 409
    title = "Duplicate Identity"

    def __init__(self, actor_id: str) -> None:
        super().__init__("An applicant record already exists for this account")
        self.actor_id = actor_id


class UploadFailed(ApplicationError):
    code = "UPLOAD_FAILED"
    status = 502
    title = "Upload Failed"

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Upload of {field} failed: {reason}")
        self.field = field

    def extras(self) -> dict[str, Any]:
        return {"field": self.field}


class PartialSubmissionFailure(ApplicationError):
    code = "PARTIAL_SUBMISSION_FAILURE"
    status = 502
    title = "Partial Submission Failure"

    def __init__(self, branch: str, application_number: str, reason: str) -> None:
        super().__init__(f"Application {application_number} was created but the {branch} record failed: {reason}")
        self.branch = branch
        self.application_number = application_number

    def extras(self) -> dict[str, Any]:
        return {"branch": self.branch, "application_number": self.application_number}


class BackendUnavailable(ApplicationError):
    code = "BACKEND_UNAVAILABLE"
    status = 503
    title = "Service Unavailable"


class ApprovalRollback(ApplicationError):
    code = "APPROVAL_ROLLBACK"
    status = 500
    title = "Approval Rolled Back"

    def __init__(self, application_number: str, reason: str, status_after: str) -> None:
        super().__init__(f"Approval of {application_number} failed and was reverted: {reason}")
        self.application_number = application_number
        self.status_after = status_after

    def extras(self) -> dict[str, Any]:
        return {"application_number": self.application_number, "status": self.status_after}


class InvalidStatusTransition(ApplicationError):
    code = "INVALID_STATUS_TRANSITION"
    status = 409
    title = "Invalid Status Transition"

    def __init__(self, current: Optional[str], target: str, reason: Optional[str] = None) -> None:
        super().__init__(reason or f"Cannot move an application from {current} to {target}")
        self.current = current
        self.target = target

    def extras(self) -> dict[str, Any]:
        return {"current_status": self.current, "target_status": self.target}


class ApplicationNotFound(ApplicationError):
    code = "APPLICATION_NOT_FOUND"
    status = 404
    title = "Not Found"

    def __init__(self, application_number: str) -> None:
        super().__init__(f"Application {application_number} not found")
        self.application_number = application_number


__all__ = [
    "ApplicationError",
    "ValidationFailed",
    "DuplicateIdentity",
    "UploadFailed",
    "PartialSubmissionFailure",
    "BackendUnavailable",
    "ApprovalRollback",
    "InvalidStatusTransition",
    "ApplicationNotFound",
]
