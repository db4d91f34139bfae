"""Functional test bootstrap.

Provides complete, valid application records for every application type and
FastAPI clients wired either to in-memory collaborators or to a fresh
in-memory SQLite database with migrations applied.
"""

from __future__ import annotations

import os
import uuid
from typing import Any, Callable, Dict

import pytest

# Point the service at a private in-memory database before vrams is imported
os.environ["VRAMS_DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["VRAMS_AUTO_APPLY_MIGRATIONS"] = "0"

from fastapi.testclient import TestClient  # noqa: E402

from vrams.config import AppConfig, DatabaseConfig, DraftConfig, UploadConfig  # noqa: E402
from vrams.db.base import reset_engine  # noqa: E402
from vrams.logic.backend import InMemoryApplicationBackend  # noqa: E402
from vrams.logic.draft_store import InMemoryKeyValueStore  # noqa: E402
from vrams.logic.events import get_buffered_events  # noqa: E402
from vrams.logic.uploads import LocalBucketUploader  # noqa: E402
from vrams.main import create_app  # noqa: E402


BASE_RECORD: Dict[str, Any] = {
    "declaration_accepted": True,
    "first_name": "Juan",
    "last_name": "Dela Cruz",
    "middle_name": "Santos",
    "sex": "M",
    "date_of_birth": "1990-01-15",
    "place_of_birth_municipality": "Quezon City",
    "place_of_birth_province": "Metro Manila",
    "citizenship_type": "by_birth",
    "contact_number": "09171234567",
    "email_address": "juan.delacruz@example.com",
    "profession_occupation": "Teacher",
    "civil_status": "single",
    "father_first_name": "Pedro",
    "father_last_name": "Dela Cruz",
    "mother_first_name": "Maria",
    "mother_maiden_last_name": "Santos",
}

ADDRESS: Dict[str, Any] = {
    "house_number": "12",
    "street": "Rizal Street",
    "barangay": "San Roque",
    "city_municipality": "Marikina",
    "province": "Metro Manila",
    "years_of_residence_address": 5,
    "months_of_residence_address": 2,
    "years_of_residence_municipality": 10,
    "months_of_residence_municipality": 0,
    "years_in_country": 36,
}

_TYPE_FIELDS: Dict[str, Dict[str, Any]] = {
    "register": {
        **ADDRESS,
        "registration_type": "regular",
        "regular_registration_type": "registration",
        "regular_voter_status": "not_registered",
        "regular_oath_accepted": True,
        "id_front_photo": "front.jpg",
        "id_selfie_url": "selfie.jpg",
    },
    "transfer": {
        **ADDRESS,
        "transfer_type": "within_city",
        "previous_precinct_number": "0012A",
        "previous_barangay": "Malanday",
    },
    "reactivation": {"reason_for_deactivation": "failed_to_vote_twice"},
    "transfer_with_reactivation": {
        **ADDRESS,
        "transfer_type": "from_another_city",
        "previous_precinct_number": "0450B",
        "previous_barangay": "Poblacion",
        "previous_city_municipality": "Antipolo",
        "previous_province": "Rizal",
        "reason_for_deactivation": "failed_to_vote_twice",
    },
    "correction_of_entry": {
        "target_field": "name",
        "current_value": "Jaun Dela Cruz",
        "requested_value": "Juan Dela Cruz",
    },
    "reinstatement": {"reinstatement_type": "omitted_name_reinstatement"},
}


@pytest.fixture
def base_record() -> Dict[str, Any]:
    """Identity, civil and declaration fields shared by every type."""
    return dict(BASE_RECORD)


@pytest.fixture
def make_record() -> Callable[..., Dict[str, Any]]:
    """Return a builder for complete, valid records of a given type."""

    def _make(application_type: str = "register", **overrides: Any) -> Dict[str, Any]:
        record = {"application_type": application_type, **BASE_RECORD, **_TYPE_FIELDS[application_type]}
        record.update(overrides)
        return record

    return _make


@pytest.fixture(autouse=True)
def clear_event_buffer():
    get_buffered_events(clear=True)
    yield
    get_buffered_events(clear=True)


@pytest.fixture
def actor_id() -> str:
    return f"actor-{uuid.uuid4()}"


def _config(tmp_path, auto_apply: bool) -> AppConfig:
    return AppConfig(
        database=DatabaseConfig(dsn="sqlite+pysqlite:///:memory:", auto_apply_migrations=auto_apply),
        uploads=UploadConfig(root_dir=str(tmp_path / "uploads"), base_url="http://files.test/uploads"),
        drafts=DraftConfig(),
    )


@pytest.fixture
def backend() -> InMemoryApplicationBackend:
    return InMemoryApplicationBackend()


@pytest.fixture
def client(tmp_path, backend):
    """TestClient over in-memory collaborators."""
    app = create_app(
        config=_config(tmp_path, auto_apply=False),
        backend=backend,
        kv_store=InMemoryKeyValueStore(),
        uploader=LocalBucketUploader(str(tmp_path / "uploads"), "http://files.test/uploads"),
    )
    return TestClient(app)


@pytest.fixture
def sql_client(tmp_path):
    """TestClient over the SQL collaborators on a fresh in-memory database."""
    reset_engine()
    app = create_app(config=_config(tmp_path, auto_apply=True))
    with TestClient(app) as c:
        yield c
    reset_engine()
