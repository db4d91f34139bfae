"""Submission orchestrator.

Turns a draft record into persisted applicant, application and branch
records. Steps run strictly one after another:

1. normalise and validate; field errors never reach the backend
2. look up the actor's identity; a second registration is rejected
3. upload attachments (registration only)
4. create the identity when missing, then the application (status pending)
5. write one branch record per active branch in fixed order

Once the application row exists, a failed write is reported as a partial
submission naming the branch; earlier writes are kept.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Mapping, Optional, TypeVar
import logging

import anyio
from pydantic import ValidationError as PydanticValidationError

from vrams.logic.backend import ApplicationBackend, BackendError, IdentityConflict
from vrams.logic.draft_guard import DraftGuard
from vrams.logic.draft_store import DraftStoreError
from vrams.logic.errors import (
    BackendUnavailable,
    DuplicateIdentity,
    PartialSubmissionFailure,
    UploadFailed,
    ValidationFailed,
)
from vrams.logic.events import APPLICATION_SUBMITTED, publish
from vrams.logic.record_canonical import is_blank, normalize_for_submission
from vrams.logic.uploads import GOVERNMENT_ID_BUCKET, SELFIE_BUCKET, UploadError, Uploader, safe_name
from vrams.logic.validation import FieldError, validate
from vrams.models.application import ApplicantCore, branch_records, freeze_variant, identity_payload
from vrams.models.enums import ApplicationType

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes


# (record field, bucket, object name suffix)
UPLOAD_SLOTS = (
    ("id_front_photo", GOVERNMENT_ID_BUCKET, "front"),
    ("id_back_photo", GOVERNMENT_ID_BUCKET, "back"),
    ("id_selfie_url", SELFIE_BUCKET, "selfie"),
)


def _is_stored_url(value: object) -> bool:
    return isinstance(value, str) and value.startswith(("http://", "https://"))


def _freeze(record: Mapping[str, Any]) -> ApplicantCore:
    try:
        return freeze_variant(record)
    except PydanticValidationError as exc:
        errors = []
        for err in exc.errors():
            names = [part for part in err.get("loc", ()) if isinstance(part, str) and part in record]
            errors.append(FieldError(names[-1] if names else "application_type", str(err.get("msg", "Invalid value"))))
        raise ValidationFailed(errors) from exc


class SubmissionOrchestrator:
    def __init__(self, backend: ApplicationBackend, uploader: Uploader) -> None:
        self.backend = backend
        self.uploader = uploader

    async def _before_application(self, op: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except BackendError as exc:
            logger.error("submission_backend_failed op=%s transient=%s", op, exc.transient, exc_info=True)
            raise BackendUnavailable(f"{op} failed: {exc.message}") from exc

    async def _create_identity(self, actor_id: str, variant: ApplicantCore) -> str:
        """Create the actor's identity; a concurrent create is resolved here.

        A registration that loses the race is a duplicate. Any other type
        reuses the identity the winning request created.
        """
        try:
            return await self.backend.create_identity(actor_id, identity_payload(variant))
        except IdentityConflict as exc:
            if variant.application_type == ApplicationType.REGISTER:
                logger.info("submission_duplicate_identity actor=%s concurrent=true", actor_id)
                raise DuplicateIdentity(actor_id) from exc
            existing = await self._before_application("find_identity", self.backend.find_identity(actor_id))
            if existing is None:
                raise BackendUnavailable(f"create_identity failed: {exc.message}") from exc
            return existing["applicant_id"]
        except BackendError as exc:
            logger.error("submission_backend_failed op=create_identity transient=%s", exc.transient, exc_info=True)
            raise BackendUnavailable(f"create_identity failed: {exc.message}") from exc

    async def _upload_attachments(
        self, record: dict[str, Any], actor_id: str, attachments: Mapping[str, Attachment]
    ) -> None:
        for field_name, bucket, suffix in UPLOAD_SLOTS:
            attachment = attachments.get(field_name)
            if attachment is None:
                if is_blank(record.get(field_name)) or _is_stored_url(record.get(field_name)):
                    continue
                raise UploadFailed(field_name, "no file content was supplied")
            object_name = f"{actor_id}-{safe_name(attachment.filename)}-{suffix}"
            try:
                record[field_name] = await self.uploader.upload(attachment.content, object_name, bucket)
            except UploadError as exc:
                logger.error("submission_upload_failed field=%s bucket=%s", field_name, bucket, exc_info=True)
                raise UploadFailed(field_name, str(exc)) from exc

    async def submit(
        self,
        record: Mapping[str, Any],
        actor_id: str,
        attachments: Optional[Mapping[str, Attachment]] = None,
        guard: Optional[DraftGuard] = None,
    ) -> str:
        """Submit a record for ``actor_id`` and return the application number.

        When ``guard`` is given, a successful submission records the
        fingerprint and clears the actor's draft.
        """
        attachments = dict(attachments or {})
        normalized = normalize_for_submission(record)
        for field_name, _bucket, _suffix in UPLOAD_SLOTS:
            if field_name in attachments and is_blank(normalized.get(field_name)):
                normalized[field_name] = attachments[field_name].filename

        errors = validate(normalized)
        if errors:
            logger.info("submission_rejected actor=%s errors=%s", actor_id, [e.field for e in errors])
            raise ValidationFailed(errors)
        variant = _freeze(normalized)
        application_type = variant.application_type

        identity = await self._before_application("find_identity", self.backend.find_identity(actor_id))
        if identity is not None and application_type == ApplicationType.REGISTER:
            logger.info("submission_duplicate_identity actor=%s", actor_id)
            raise DuplicateIdentity(actor_id)

        if application_type == ApplicationType.REGISTER:
            await self._upload_attachments(normalized, actor_id, attachments)
            variant = variant.model_copy(update={name: normalized[name] for name, _b, _s in UPLOAD_SLOTS})

        if identity is not None:
            applicant_id = identity["applicant_id"]
        else:
            applicant_id = await self._create_identity(actor_id, variant)

        application_number = await self._before_application(
            "create_application",
            self.backend.create_application(applicant_id, actor_id, application_type),
        )

        for branch, payload in branch_records(variant):
            try:
                await self.backend.create_branch_record(application_number, branch, payload)
            except BackendError as exc:
                logger.error(
                    "submission_branch_failed branch=%s application_number=%s",
                    branch,
                    application_number,
                    exc_info=True,
                )
                raise PartialSubmissionFailure(branch, application_number, exc.message) from exc

        logger.info(
            "submission_completed actor=%s application_number=%s type=%s",
            actor_id,
            application_number,
            application_type,
        )
        publish(
            APPLICATION_SUBMITTED,
            {"application_number": application_number, "actor_id": actor_id, "application_type": application_type},
        )
        if guard is not None:
            try:
                await anyio.to_thread.run_sync(guard.record_submission, normalized)
            except DraftStoreError:
                logger.error(
                    "submission_draft_bookkeeping_failed actor=%s application_number=%s",
                    actor_id,
                    application_number,
                    exc_info=True,
                )
        return application_number


__all__ = ["Attachment", "UPLOAD_SLOTS", "SubmissionOrchestrator"]
