"""Validation rule engine for application records.

Two layers run over the flat record:

1. Base rules, driven by the static field registry: type, enum membership,
   date and contact formats, and the fields required for every application.
2. Cross-field rules, evaluated in declaration order. The first rules cover
   the record-wide invariants (type selected, inactive fields absent,
   residency ranges, declaration and oath); the personal conditionals follow;
   the last step dispatches to one validator per application type.

All failures are collected. When several rules fail on the same field only
the first one is reported. Validation never mutates the record.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional
import logging
import re

from vrams.logic.dependency_resolver import compute_active_groups, inactive_fields_with_values
from vrams.logic.record_canonical import as_whole_number, is_blank, normalize_date
from vrams.models.enums import (
    ApplicationType,
    CitizenshipType,
    CivilStatus,
    RegistrationType,
    TransferType,
)
from vrams.models.fields import FIELDS, FieldKind, FieldSpec, fields_in_group

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "This field is required"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^\+?[0-9][0-9\s-]{6,19}$")


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


Rule = Callable[[Mapping[str, Any], date], Iterable[FieldError]]


def _age_on(dob: date, today: date) -> int:
    return today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))


def _parse_date(value: object) -> Optional[date]:
    norm = normalize_date(value)
    if not isinstance(norm, str):
        return None
    try:
        return date.fromisoformat(norm)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Base rules
# ---------------------------------------------------------------------------


def check_base_field(spec: FieldSpec, value: object) -> Optional[str]:
    """Return an error message for a single field value, or None when valid."""
    if is_blank(value):
        return REQUIRED_MESSAGE if spec.always_required else None

    kind = spec.kind
    if kind in (FieldKind.TEXT, FieldKind.FILE):
        if not isinstance(value, str):
            return "Must be text"
        return None
    if kind == FieldKind.BOOLEAN:
        return None if isinstance(value, bool) else "Must be true or false"
    if kind == FieldKind.INTEGER:
        return None if as_whole_number(value) is not None else "Must be a whole number"
    if kind == FieldKind.DATE:
        return None if _parse_date(value) is not None else f"Invalid {spec.display.lower()}"
    if kind == FieldKind.ENUM:
        if value not in spec.choices:
            return f"Select a valid {spec.display.lower()}"
        return None
    if kind == FieldKind.EMAIL:
        return None if isinstance(value, str) and _EMAIL_RE.match(value.strip()) else "Invalid email address"
    if kind == FieldKind.PHONE:
        return None if isinstance(value, str) and _PHONE_RE.match(value.strip()) else "Invalid contact number"
    return None


def base_rule_errors(record: Mapping[str, Any]) -> list[FieldError]:
    errors: list[FieldError] = []
    for name, spec in FIELDS.items():
        message = check_base_field(spec, record.get(name))
        if message:
            errors.append(FieldError(name, message))
    return errors


# ---------------------------------------------------------------------------
# Cross-field helpers
# ---------------------------------------------------------------------------


def _require(record: Mapping[str, Any], name: str, context: str = "") -> Iterator[FieldError]:
    if is_blank(record.get(name)):
        label = FIELDS[name].display
        suffix = f" for {context}" if context else ""
        yield FieldError(name, f"{label} is required{suffix}")


def _require_all(record: Mapping[str, Any], names: Iterable[str], context: str = "") -> Iterator[FieldError]:
    for name in names:
        yield from _require(record, name, context)


# ---------------------------------------------------------------------------
# Record-wide invariants
# ---------------------------------------------------------------------------


def rule_application_type_selected(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    if is_blank(record.get("application_type")):
        yield FieldError("application_type", "Please select an application type")


def rule_inactive_fields_absent(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    for name in inactive_fields_with_values(record):
        yield FieldError(name, "Not applicable to the current selections; clear this field")


def rule_residency_ranges(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    for name in fields_in_group("address"):
        spec = FIELDS[name]
        value = record.get(name)
        number = as_whole_number(value) if spec.kind == FieldKind.INTEGER else None
        if number is None:
            continue
        if spec.minimum is not None and number < spec.minimum:
            yield FieldError(name, f"{spec.display} cannot be negative")
        elif spec.maximum is not None and number > spec.maximum:
            yield FieldError(name, f"{spec.display} must be between {spec.minimum} and {spec.maximum}")


def rule_declaration_and_oath(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    if record.get("declaration_accepted") is not True:
        yield FieldError("declaration_accepted", "You must accept the declaration before submitting")
    if record.get("application_type") != ApplicationType.REGISTER:
        return
    registration_type = record.get("registration_type")
    if registration_type == RegistrationType.REGULAR and record.get("regular_oath_accepted") is not True:
        yield FieldError("regular_oath_accepted", "You must take the oath before submitting")
    if registration_type == RegistrationType.KATIPUNAN and record.get("oath_accepted") is not True:
        yield FieldError("oath_accepted", "You must take the oath before submitting")


# ---------------------------------------------------------------------------
# Personal conditionals
# ---------------------------------------------------------------------------


def rule_naturalization(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    if record.get("citizenship_type") in CitizenshipType.REQUIRES_CERTIFICATE:
        for name in ("naturalization_date", "naturalization_cert_no"):
            if is_blank(record.get(name)):
                yield FieldError(name, "Required for naturalized/reacquired status")


def rule_spouse(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    if record.get("civil_status") == CivilStatus.MARRIED and is_blank(record.get("spouse_name")):
        yield FieldError("spouse_name", "Spouse name is required if married")


def rule_indigenous(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    if record.get("is_indigenous_person") is True and is_blank(record.get("tribe")):
        yield FieldError("tribe", "Tribe is required for indigenous persons")


def rule_disability(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    if record.get("is_pwd") is True and is_blank(record.get("disability_type")):
        yield FieldError("disability_type", "Disability type is required if PWD")


def rule_assistor(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    has_assistor = not is_blank(record.get("assistor_name")) or not is_blank(record.get("assistor_address"))
    if has_assistor and is_blank(record.get("assistor_relationship")):
        yield FieldError(
            "assistor_relationship",
            "Assistor relationship is required if assistor details are provided",
        )


def rule_birth_date_not_future(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    dob = _parse_date(record.get("date_of_birth"))
    if dob is not None and dob > today:
        yield FieldError("date_of_birth", "Date of birth cannot be in the future")


# ---------------------------------------------------------------------------
# Per-type validators
# ---------------------------------------------------------------------------

_ADDRESS_CONTEXT = "the declared address"


def _address_errors(record: Mapping[str, Any]) -> Iterator[FieldError]:
    yield from _require_all(record, fields_in_group("address"), _ADDRESS_CONTEXT)


def _transfer_errors(record: Mapping[str, Any]) -> Iterator[FieldError]:
    transfer_type = record.get("transfer_type")
    if is_blank(transfer_type):
        yield FieldError("transfer_type", "Select a transfer type")
        return
    if transfer_type in TransferType.DOMESTIC:
        yield from _require_all(record, ("previous_precinct_number", "previous_barangay"), "transfer")
    if transfer_type == TransferType.FROM_ANOTHER_CITY:
        yield from _require(record, "previous_city_municipality", "transfer from another city")
    if transfer_type == TransferType.FROM_FOREIGN_POST:
        yield from _require_all(record, ("previous_foreign_post", "previous_country"), "transfer from a foreign post")


def _reactivation_errors(record: Mapping[str, Any]) -> Iterator[FieldError]:
    if is_blank(record.get("reason_for_deactivation")):
        yield FieldError("reason_for_deactivation", "Select the reason your registration was deactivated")


def validate_register(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    yield from _address_errors(record)
    registration_type = record.get("registration_type")
    if is_blank(registration_type):
        yield FieldError("registration_type", "Select a registration type")
    elif registration_type == RegistrationType.REGULAR:
        yield from _require_all(record, ("regular_registration_type", "regular_voter_status"), "regular registration")
    elif registration_type == RegistrationType.KATIPUNAN:
        if not isinstance(record.get("adult_registration_consent"), bool):
            yield FieldError(
                "adult_registration_consent",
                "Choose whether you give or withhold consent",
            )

    dob = _parse_date(record.get("date_of_birth"))
    if dob is not None and dob <= today:
        age = _age_on(dob, today)
        if registration_type == RegistrationType.REGULAR and age < 18:
            yield FieldError("date_of_birth", "Regular registration requires an age of at least 18")
        if registration_type == RegistrationType.KATIPUNAN and not 15 <= age <= 17:
            yield FieldError("date_of_birth", "Katipunan ng Kabataan registration is for ages 15 to 17")

    yield from _require_all(record, ("id_front_photo", "id_selfie_url"), "registration")


def validate_transfer(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    yield from _address_errors(record)
    yield from _transfer_errors(record)


def validate_reactivation(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    yield from _reactivation_errors(record)


def validate_transfer_with_reactivation(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    yield from _address_errors(record)
    yield from _transfer_errors(record)
    yield from _reactivation_errors(record)


def validate_correction_of_entry(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    yield from _require_all(record, ("target_field", "current_value", "requested_value"), "correction of entry")
    current, requested = record.get("current_value"), record.get("requested_value")
    if (
        isinstance(current, str)
        and isinstance(requested, str)
        and not is_blank(current)
        and current.strip().lower() == requested.strip().lower()
    ):
        yield FieldError("requested_value", "Requested value must differ from the current value")


def validate_reinstatement(record: Mapping[str, Any], today: date) -> Iterator[FieldError]:
    if is_blank(record.get("reinstatement_type")):
        yield FieldError("reinstatement_type", "Select the type of reinstatement")


VARIANT_VALIDATORS: dict[str, Rule] = {
    ApplicationType.REGISTER: validate_register,
    ApplicationType.TRANSFER: validate_transfer,
    ApplicationType.REACTIVATION: validate_reactivation,
    ApplicationType.TRANSFER_WITH_REACTIVATION: validate_transfer_with_reactivation,
    ApplicationType.CORRECTION_OF_ENTRY: validate_correction_of_entry,
    ApplicationType.REINSTATEMENT: validate_reinstatement,
}


def rule_application_branch(record: Mapping[str, Any], today: date) -> Iterable[FieldError]:
    application_type = record.get("application_type")
    validator = VARIANT_VALIDATORS.get(application_type) if isinstance(application_type, str) else None
    if validator is None:
        return ()
    return validator(record, today)


CROSS_FIELD_RULES: tuple[tuple[str, Rule], ...] = (
    ("application_type_selected", rule_application_type_selected),
    ("inactive_fields_absent", rule_inactive_fields_absent),
    ("residency_ranges", rule_residency_ranges),
    ("declaration_and_oath", rule_declaration_and_oath),
    ("naturalization", rule_naturalization),
    ("spouse", rule_spouse),
    ("indigenous", rule_indigenous),
    ("disability", rule_disability),
    ("assistor", rule_assistor),
    ("birth_date_not_future", rule_birth_date_not_future),
    ("application_branch", rule_application_branch),
)


def _first_per_field(errors: Iterable[FieldError]) -> list[FieldError]:
    seen: set[str] = set()
    out: list[FieldError] = []
    for err in errors:
        if err.field in seen:
            continue
        seen.add(err.field)
        out.append(err)
    return out


def validate(record: Mapping[str, Any], today: Optional[date] = None) -> list[FieldError]:
    """Validate a record and return its field errors.

    An empty list means the record may be submitted. ``today`` fixes the
    reference date for age rules.
    """
    today = today or date.today()
    collected: list[FieldError] = base_rule_errors(record)
    for _name, rule in CROSS_FIELD_RULES:
        collected.extend(rule(record, today))
    errors = _first_per_field(collected)
    logger.debug(
        "validation_completed application_type=%s errors=%s active_groups=%s",
        record.get("application_type"),
        len(errors),
        sorted(compute_active_groups(record)),
    )
    return errors


__all__ = [
    "FieldError",
    "REQUIRED_MESSAGE",
    "check_base_field",
    "base_rule_errors",
    "CROSS_FIELD_RULES",
    "VARIANT_VALIDATORS",
    "validate",
]
