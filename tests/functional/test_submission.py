"""Functional tests for the submission orchestrator.

Async calls are driven with ``anyio.run``; collaborator failures are
injected with pytest-mock.
"""

from __future__ import annotations

from functools import partial

import anyio
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from vrams.db.migrations_runner import apply_migrations
from vrams.logic.backend import BackendError, IdentityConflict, InMemoryApplicationBackend
from vrams.logic.draft_guard import DraftGuard
from vrams.logic.draft_store import DraftStore, DraftStoreError, InMemoryKeyValueStore
from vrams.logic.errors import (
    BackendUnavailable,
    DuplicateIdentity,
    PartialSubmissionFailure,
    UploadFailed,
    ValidationFailed,
)
from vrams.logic.events import APPLICATION_SUBMITTED, get_buffered_events
from vrams.logic.fingerprint import fingerprint
from vrams.logic.repository_applications import SqlApplicationBackend
from vrams.logic.submission import Attachment, SubmissionOrchestrator
from vrams.logic.uploads import LocalBucketUploader, UploadError


@pytest.fixture
def uploader(tmp_path):
    return LocalBucketUploader(str(tmp_path), "http://files.test/uploads")


@pytest.fixture
def orchestrator(backend, uploader):
    return SubmissionOrchestrator(backend, uploader)


@pytest.fixture
def attachments():
    return {
        "id_front_photo": Attachment("front.jpg", b"\xff\xd8front"),
        "id_selfie_url": Attachment("selfie.jpg", b"\xff\xd8selfie"),
    }


def _submit(orchestrator, record, actor, attachments=None, guard=None):
    return anyio.run(partial(orchestrator.submit, record, actor, attachments, guard=guard))


def test_register_submission_writes_identity_application_and_branches(
    orchestrator, backend, make_record, attachments, tmp_path
):
    number = _submit(orchestrator, make_record("register"), "actor-1", attachments)

    application = backend.applications[number]
    assert application["status"] == "pending"
    assert application["application_type"] == "register"
    assert list(backend.branches[number]) == ["registration", "address"]
    registration = backend.branches[number]["registration"]
    assert registration["government_id_front_url"] == (
        "http://files.test/uploads/government-ids/public/actor-1-front.jpg-front"
    )
    assert registration["id_selfie_url"].startswith("http://files.test/uploads/id-selfie/")
    assert registration["government_id_back_url"] is None
    assert (tmp_path / "government-ids" / "public" / "actor-1-front.jpg-front").read_bytes() == b"\xff\xd8front"
    assert backend.identities["actor-1"]["first_name"] == "Juan"
    assert get_buffered_events()[-1]["type"] == APPLICATION_SUBMITTED


def test_branches_are_written_in_fixed_order(orchestrator, backend, make_record):
    number = _submit(orchestrator, make_record("transfer_with_reactivation", is_senior_citizen=True), "actor-1")
    assert list(backend.branches[number]) == ["transfer", "reactivation", "address", "special_sector"]
    assert backend.branches[number]["special_sector"]["is_senior_citizen"] is True


def test_inactive_branch_fields_never_reach_the_backend(orchestrator, backend, make_record):
    number = _submit(orchestrator, make_record("reactivation"), "actor-1")
    assert list(backend.branches[number]) == ["reactivation"]
    assert "street" not in backend.identities["actor-1"]


def test_validation_failure_carries_all_errors_and_skips_backend(orchestrator, backend, make_record, mocker):
    spy = mocker.spy(backend, "find_identity")
    record = make_record("register", citizenship_type="naturalized", spouse_name=None, civil_status="married")
    with pytest.raises(ValidationFailed) as excinfo:
        _submit(orchestrator, record, "actor-1")
    assert {e.field for e in excinfo.value.errors} == {"naturalization_date", "naturalization_cert_no", "spouse_name"}
    assert spy.call_count == 0
    assert backend.applications == {}


def test_second_registration_for_same_actor_is_rejected(orchestrator, backend, make_record, attachments):
    _submit(orchestrator, make_record("register"), "actor-1", attachments)
    with pytest.raises(DuplicateIdentity):
        _submit(orchestrator, make_record("register"), "actor-1", attachments)
    assert len(backend.applications) == 1


def test_later_applications_reuse_existing_identity(orchestrator, backend, make_record, attachments):
    _submit(orchestrator, make_record("register"), "actor-1", attachments)
    _submit(orchestrator, make_record("correction_of_entry"), "actor-1")
    assert len(backend.identities) == 1
    assert len(backend.applications) == 2


def test_upload_failure_names_field_and_writes_nothing(orchestrator, backend, uploader, make_record, attachments, mocker):
    mocker.patch.object(uploader, "upload", side_effect=UploadError("bucket unavailable"))
    with pytest.raises(UploadFailed) as excinfo:
        _submit(orchestrator, make_record("register"), "actor-1", attachments)
    assert excinfo.value.field == "id_front_photo"
    assert backend.applications == {}
    assert backend.identities == {}


def test_file_marker_without_content_is_an_upload_failure(orchestrator, backend, make_record):
    with pytest.raises(UploadFailed) as excinfo:
        _submit(orchestrator, make_record("register"), "actor-1")
    assert excinfo.value.field == "id_front_photo"


def test_already_uploaded_urls_are_kept(orchestrator, backend, make_record):
    record = make_record(
        "register",
        id_front_photo="https://files.test/government-ids/public/a-front",
        id_selfie_url="https://files.test/id-selfie/public/a-selfie",
    )
    number = _submit(orchestrator, record, "actor-1")
    assert backend.branches[number]["registration"]["government_id_front_url"] == (
        "https://files.test/government-ids/public/a-front"
    )


def test_branch_failure_is_partial_and_keeps_earlier_writes(orchestrator, backend, make_record, attachments, mocker):
    original = backend.create_branch_record

    async def flaky(application_number, branch, payload):
        if branch == "address":
            raise BackendError("insert into address failed")
        await original(application_number, branch, payload)

    mocker.patch.object(backend, "create_branch_record", side_effect=flaky)
    with pytest.raises(PartialSubmissionFailure) as excinfo:
        _submit(orchestrator, make_record("register"), "actor-1", attachments)

    assert excinfo.value.branch == "address"
    number = excinfo.value.application_number
    assert number in backend.applications
    assert list(backend.branches[number]) == ["registration"]


def test_transient_outage_before_application_is_backend_unavailable(orchestrator, backend, make_record, mocker):
    mocker.patch.object(backend, "find_identity", side_effect=BackendError("timeout", transient=True))
    with pytest.raises(BackendUnavailable):
        _submit(orchestrator, make_record("reactivation"), "actor-1")
    assert backend.applications == {}


def test_success_records_fingerprint_and_clears_draft(orchestrator, make_record):
    store = DraftStore(InMemoryKeyValueStore(), "actor-1")
    guard = DraftGuard(store)
    record = make_record("reinstatement")
    guard.autosave(record)

    _submit(orchestrator, record, "actor-1", guard=guard)

    assert store.load() is None
    assert store.get_fingerprint() == fingerprint(record)


def test_failed_submission_keeps_the_draft(orchestrator, make_record):
    store = DraftStore(InMemoryKeyValueStore(), "actor-1")
    guard = DraftGuard(store)
    record = make_record("reinstatement", reinstatement_type=None)
    guard.autosave(record)

    with pytest.raises(ValidationFailed):
        _submit(orchestrator, record, "actor-1", guard=guard)

    assert store.load() is not None
    assert store.get_fingerprint() is None


def test_in_memory_backend_numbers_are_unique():
    backend = InMemoryApplicationBackend()

    async def _create():
        return [await backend.create_application("p-1", "actor-1", "reactivation") for _ in range(3)]

    numbers = anyio.run(_create)
    assert len(set(numbers)) == 3


def test_concurrent_registrations_yield_one_application_and_one_duplicate(orchestrator, backend, make_record, attachments):
    outcomes = []

    async def _one():
        try:
            outcomes.append(await orchestrator.submit(make_record("register"), "actor-1", attachments))
        except DuplicateIdentity:
            outcomes.append("duplicate")

    async def _race():
        async with anyio.create_task_group() as tg:
            tg.start_soon(_one)
            tg.start_soon(_one)

    anyio.run(_race)

    assert outcomes.count("duplicate") == 1
    assert len(backend.applications) == 1
    assert len(backend.identities) == 1


def test_identity_created_concurrently_is_reused_for_other_types(orchestrator, backend, make_record, mocker):
    applicant_id = anyio.run(backend.create_identity, "actor-1", {"first_name": "Juan"})
    existing = anyio.run(backend.find_identity, "actor-1")
    # the first lookup runs before the other request committed its identity
    mocker.patch.object(backend, "find_identity", side_effect=[None, existing])

    number = _submit(orchestrator, make_record("reactivation"), "actor-1")

    assert backend.applications[number]["applicant_id"] == applicant_id
    assert len(backend.identities) == 1


def test_draft_bookkeeping_failure_still_returns_the_number(orchestrator, backend, make_record, mocker):
    guard = DraftGuard(DraftStore(InMemoryKeyValueStore(), "actor-1"))
    mocker.patch.object(guard, "record_submission", side_effect=DraftStoreError("draft put failed"))

    number = _submit(orchestrator, make_record("reinstatement"), "actor-1", guard=guard)

    assert number in backend.applications


def test_filenames_with_path_separators_keep_the_actor_prefix(orchestrator, backend, make_record, tmp_path):
    def _files(content):
        return {
            "id_front_photo": Attachment("../shared/front.jpg", content),
            "id_selfie_url": Attachment("selfie.jpg", content),
        }

    first = _submit(orchestrator, make_record("register"), "actor-1", _files(b"one"))
    second = _submit(orchestrator, make_record("register"), "actor-2", _files(b"two"))

    url_1 = backend.branches[first]["registration"]["government_id_front_url"]
    url_2 = backend.branches[second]["registration"]["government_id_front_url"]
    assert url_1 == "http://files.test/uploads/government-ids/public/actor-1-shared_front.jpg-front"
    assert url_1 != url_2
    stored = tmp_path / "government-ids" / "public"
    assert (stored / "actor-1-shared_front.jpg-front").read_bytes() == b"one"
    assert (stored / "actor-2-shared_front.jpg-front").read_bytes() == b"two"


def test_unicode_digit_residency_is_a_validation_failure(orchestrator, backend, make_record):
    with pytest.raises(ValidationFailed) as excinfo:
        _submit(orchestrator, make_record("transfer", years_in_country="²"), "actor-1")
    assert [e.field for e in excinfo.value.errors] == ["years_in_country"]
    assert backend.applications == {}


def test_sql_backend_reports_identity_conflict():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    apply_migrations(engine)
    sql_backend = SqlApplicationBackend(engine)
    anyio.run(sql_backend.create_identity, "actor-1", {"first_name": "Juan"})
    with pytest.raises(IdentityConflict):
        anyio.run(sql_backend.create_identity, "actor-1", {"first_name": "Juan"})
    engine.dispose()
