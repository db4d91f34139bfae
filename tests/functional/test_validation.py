"""Functional tests for the validation rule engine.

Each application type's required set is exercised by holding the type fixed
and blanking or enumerating its sub-discriminants.
"""

from __future__ import annotations

import copy
from datetime import date

import pytest

from vrams.logic.validation import REQUIRED_MESSAGE, validate
from vrams.models.fields import fields_in_group

ALL_TYPES = [
    "register",
    "transfer",
    "reactivation",
    "transfer_with_reactivation",
    "correction_of_entry",
    "reinstatement",
]


def _fields(errors):
    return {e.field for e in errors}


def _age_years_ago(years: int) -> str:
    today = date.today()
    return date(today.year - years, 1, 1).isoformat()


@pytest.mark.parametrize("application_type", ALL_TYPES)
def test_complete_record_of_each_type_is_valid(make_record, application_type):
    assert validate(make_record(application_type)) == []


def test_naturalized_register_without_certificate_fails_on_both_fields(make_record):
    errors = validate(make_record("register", citizenship_type="naturalized"))
    assert _fields(errors) == {"naturalization_date", "naturalization_cert_no"}
    assert all(e.message == "Required for naturalized/reacquired status" for e in errors)


def test_married_without_spouse_fails_only_on_spouse(make_record):
    errors = validate(make_record("register", civil_status="married", spouse_name=""))
    assert [e.as_dict() for e in errors] == [
        {"field": "spouse_name", "message": "Spouse name is required if married"}
    ]


def test_missing_application_type_is_reported(make_record):
    record = make_record("reactivation")
    record["application_type"] = None
    record["reason_for_deactivation"] = None
    errors = validate(record)
    assert _fields(errors) == {"application_type"}
    assert errors[0].message == "Please select an application type"


@pytest.mark.parametrize(
    "application_type, expected",
    [
        ("register", set(fields_in_group("address")) | {"registration_type", "id_front_photo", "id_selfie_url"}),
        ("transfer", set(fields_in_group("address")) | {"transfer_type"}),
        ("reactivation", {"reason_for_deactivation"}),
        ("transfer_with_reactivation", set(fields_in_group("address")) | {"transfer_type", "reason_for_deactivation"}),
        ("correction_of_entry", {"target_field", "current_value", "requested_value"}),
        ("reinstatement", {"reinstatement_type"}),
    ],
)
def test_required_set_per_application_type(base_record, application_type, expected):
    record = {"application_type": application_type, **base_record}
    assert _fields(validate(record)) == expected


@pytest.mark.parametrize(
    "transfer_type, expected",
    [
        ("within_city", {"previous_precinct_number", "previous_barangay"}),
        ("from_another_city", {"previous_precinct_number", "previous_barangay", "previous_city_municipality"}),
        ("from_foreign_post", {"previous_foreign_post", "previous_country"}),
    ],
)
def test_transfer_sub_type_required_fields(make_record, transfer_type, expected):
    record = make_record(
        "transfer",
        transfer_type=transfer_type,
        previous_precinct_number=None,
        previous_barangay=None,
    )
    assert _fields(validate(record)) == expected


def test_regular_registration_requires_type_and_status(make_record):
    record = make_record("register", regular_registration_type=None, regular_voter_status=None)
    assert _fields(validate(record)) == {"regular_registration_type", "regular_voter_status"}


def _katipunan(make_record, **overrides):
    fields = dict(
        registration_type="katipunan",
        regular_registration_type=None,
        regular_voter_status=None,
        regular_oath_accepted=None,
        oath_accepted=True,
        adult_registration_consent=False,
        date_of_birth=_age_years_ago(16),
    )
    fields.update(overrides)
    return make_record("register", **fields)


def test_katipunan_consent_may_be_withheld_but_not_left_unanswered(make_record):
    assert validate(_katipunan(make_record)) == []
    assert validate(_katipunan(make_record, adult_registration_consent=True)) == []
    # adult_registration_consent must be an explicit answer
    record = _katipunan(make_record)
    record["adult_registration_consent"] = None
    assert _fields(validate(record)) == {"adult_registration_consent"}


def test_katipunan_age_window(make_record):
    record = _katipunan(make_record)
    record["date_of_birth"] = _age_years_ago(20)
    assert _fields(validate(record)) == {"date_of_birth"}


def test_regular_registration_requires_adult(make_record):
    errors = validate(make_record("register", date_of_birth=_age_years_ago(17)))
    assert _fields(errors) == {"date_of_birth"}


def test_oath_and_declaration_must_be_true(make_record):
    errors = validate(make_record("register", declaration_accepted=False, regular_oath_accepted=False))
    assert _fields(errors) == {"declaration_accepted", "regular_oath_accepted"}


def test_katipunan_oath_is_checked(make_record):
    record = _katipunan(make_record)
    record["oath_accepted"] = None
    assert _fields(validate(record)) == {"oath_accepted"}


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"months_of_residence_address": 12}, "months_of_residence_address"),
        ({"months_of_residence_municipality": -1}, "months_of_residence_municipality"),
        ({"years_in_country": -3}, "years_in_country"),
        ({"years_of_residence_address": "many"}, "years_of_residence_address"),
    ],
)
def test_residency_counts_are_bounded(make_record, overrides, field):
    assert _fields(validate(make_record("transfer", **overrides))) == {field}


def test_months_boundary_values_are_accepted(make_record):
    record = make_record("transfer", months_of_residence_address=11, months_of_residence_municipality=0)
    assert validate(record) == []


def test_inactive_field_with_value_is_flagged(make_record):
    errors = validate(make_record("register", reason_for_deactivation="failed_to_vote_twice"))
    assert _fields(errors) == {"reason_for_deactivation"}


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"email_address": "not-an-email"}, "email_address"),
        ({"contact_number": "call me"}, "contact_number"),
        ({"date_of_birth": "15/01/1990"}, "date_of_birth"),
        ({"sex": "X"}, "sex"),
        ({"first_name": "   "}, "first_name"),
    ],
)
def test_base_rules(make_record, overrides, field):
    assert _fields(validate(make_record("reactivation", **overrides))) == {field}


def test_future_birth_date_is_rejected(make_record):
    errors = validate(make_record("reactivation", date_of_birth=date(date.today().year + 1, 1, 1).isoformat()))
    assert _fields(errors) == {"date_of_birth"}


def test_optional_contact_details_may_be_absent(make_record):
    record = make_record("reinstatement", contact_number=None, email_address="", middle_name=None)
    assert validate(record) == []


def test_conditional_personal_fields(make_record):
    record = make_record(
        "reactivation",
        is_indigenous_person=True,
        is_pwd=True,
        assistor_name="Rosa Dela Cruz",
    )
    assert _fields(validate(record)) == {"tribe", "disability_type", "assistor_relationship"}


def test_correction_requires_a_different_value(make_record):
    errors = validate(make_record("correction_of_entry", requested_value=" jaun dela cruz "))
    assert _fields(errors) == {"requested_value"}


def test_only_first_error_per_field_is_reported(make_record):
    errors = validate(make_record("register", declaration_accepted="yes"))
    matching = [e for e in errors if e.field == "declaration_accepted"]
    assert len(matching) == 1
    assert matching[0].message == "Must be true or false"


def test_missing_required_field_reports_generic_message(make_record):
    errors = validate(make_record("reinstatement", last_name=None))
    assert [e.as_dict() for e in errors] == [{"field": "last_name", "message": REQUIRED_MESSAGE}]


def test_validate_does_not_mutate_record(make_record):
    record = make_record("transfer", transfer_type="from_foreign_post", previous_precinct_number="001A")
    snapshot = copy.deepcopy(record)
    validate(record)
    assert record == snapshot


def test_assistor_address_alone_requires_relationship(make_record):
    errors = validate(make_record("reactivation", assistor_address="12 Mabini Street"))
    assert [e.as_dict() for e in errors] == [
        {
            "field": "assistor_relationship",
            "message": "Assistor relationship is required if assistor details are provided",
        }
    ]


@pytest.mark.parametrize("value", ["²", "1.5", "twelve", [3], True])
def test_non_numeric_residency_is_a_field_error(make_record, value):
    errors = validate(make_record("transfer", years_in_country=value))
    assert [e.as_dict() for e in errors] == [{"field": "years_in_country", "message": "Must be a whole number"}]


def test_very_large_residency_integer_is_accepted(make_record):
    assert validate(make_record("transfer", years_in_country=10**400)) == []


def test_residency_digit_string_range_is_checked(make_record):
    errors = validate(make_record("transfer", months_of_residence_address="12"))
    assert _fields(errors) == {"months_of_residence_address"}


@pytest.mark.parametrize("value", [["transfer"], {"type": "transfer"}, 7])
def test_malformed_application_type_is_reported_not_raised(make_record, value):
    record = make_record("reactivation")
    record["application_type"] = value
    errors = validate(record)
    by_field = {e.field: e.message for e in errors}
    assert by_field["application_type"] == "Select a valid application type"
