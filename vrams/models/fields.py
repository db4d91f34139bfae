"""Static field registry for the flat application record.

Every field of the record is declared here exactly once, together with the
group that owns it, its value kind and whether it is required regardless of
the discriminants. Group activation rules live alongside so the resolver and
the validators read a single source of truth.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from vrams.models.enums import (
    ApplicationType,
    CitizenshipType,
    CivilStatus,
    CorrectionTarget,
    DeactivationReason,
    RegistrationType,
    RegularRegistrationType,
    RegularVoterStatus,
    ReinstatementType,
    Sex,
    TransferType,
)


class FieldKind:
    TEXT = "text"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    DATE = "date"
    ENUM = "enum"
    EMAIL = "email"
    PHONE = "phone"
    FILE = "file"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    group: str
    kind: str = FieldKind.TEXT
    choices: Tuple[str, ...] = ()
    always_required: bool = False
    minimum: Optional[int] = None
    maximum: Optional[int] = None
    label: str = ""

    @property
    def display(self) -> str:
        return self.label or self.name.replace("_", " ").capitalize()


@dataclass(frozen=True)
class GroupRule:
    """Activation rule for a field group.

    A group is active when its parent group is active (or it has none) and the
    canonical value of ``discriminant`` is one of ``active_if``. Groups without
    a discriminant are always active.
    """

    parent: Optional[str] = None
    discriminant: Optional[str] = None
    active_if: Tuple[object, ...] = ()


_ADDRESS_TYPES = (
    ApplicationType.REGISTER,
    ApplicationType.TRANSFER,
    ApplicationType.TRANSFER_WITH_REACTIVATION,
)

GROUP_RULES: dict[str, GroupRule] = {
    # Common groups
    "application": GroupRule(),
    "identity": GroupRule(),
    "citizenship": GroupRule(),
    "contact": GroupRule(),
    "civil": GroupRule(),
    "special_sector": GroupRule(),
    # Personal conditionals
    "naturalization": GroupRule(None, "citizenship_type", CitizenshipType.REQUIRES_CERTIFICATE),
    "spouse": GroupRule(None, "civil_status", (CivilStatus.MARRIED,)),
    "indigenous": GroupRule(None, "is_indigenous_person", (True,)),
    "disability": GroupRule(None, "is_pwd", (True,)),
    # Application branches
    "address": GroupRule(None, "application_type", _ADDRESS_TYPES),
    "registration": GroupRule(None, "application_type", (ApplicationType.REGISTER,)),
    "registration_regular": GroupRule("registration", "registration_type", (RegistrationType.REGULAR,)),
    "registration_katipunan": GroupRule("registration", "registration_type", (RegistrationType.KATIPUNAN,)),
    "transfer": GroupRule(
        None,
        "application_type",
        (ApplicationType.TRANSFER, ApplicationType.TRANSFER_WITH_REACTIVATION),
    ),
    "transfer_domestic": GroupRule("transfer", "transfer_type", TransferType.DOMESTIC),
    "transfer_another_city": GroupRule("transfer", "transfer_type", (TransferType.FROM_ANOTHER_CITY,)),
    "transfer_foreign": GroupRule("transfer", "transfer_type", (TransferType.FROM_FOREIGN_POST,)),
    "reactivation": GroupRule(
        None,
        "application_type",
        (ApplicationType.REACTIVATION, ApplicationType.TRANSFER_WITH_REACTIVATION),
    ),
    "correction": GroupRule(None, "application_type", (ApplicationType.CORRECTION_OF_ENTRY,)),
    "reinstatement": GroupRule(None, "application_type", (ApplicationType.REINSTATEMENT,)),
}


def _f(name: str, group: str, kind: str = FieldKind.TEXT, **kw) -> FieldSpec:
    return FieldSpec(name=name, group=group, kind=kind, **kw)


_FIELD_LIST: tuple[FieldSpec, ...] = (
    # Discriminant and declaration
    _f("application_type", "application", FieldKind.ENUM, choices=ApplicationType.ALL, label="Application type"),
    _f("declaration_accepted", "application", FieldKind.BOOLEAN, label="Declaration"),
    # Identity
    _f("first_name", "identity", always_required=True, label="First name"),
    _f("last_name", "identity", always_required=True, label="Last name"),
    _f("middle_name", "identity", label="Middle name"),
    _f("suffix", "identity"),
    _f("sex", "identity", FieldKind.ENUM, choices=Sex.ALL, always_required=True, label="Sex"),
    _f("date_of_birth", "identity", FieldKind.DATE, always_required=True, label="Date of birth"),
    _f("place_of_birth_municipality", "identity", always_required=True, label="Place of birth (city/municipality)"),
    _f("place_of_birth_province", "identity", always_required=True, label="Place of birth (province)"),
    # Citizenship
    _f("citizenship_type", "citizenship", FieldKind.ENUM, choices=CitizenshipType.ALL, always_required=True,
       label="Citizenship basis"),
    _f("naturalization_date", "naturalization", FieldKind.DATE, label="Date of naturalization"),
    _f("naturalization_cert_no", "naturalization", label="Certificate number"),
    # Contact
    _f("contact_number", "contact", FieldKind.PHONE, label="Contact number"),
    _f("email_address", "contact", FieldKind.EMAIL, label="Email address"),
    _f("profession_occupation", "contact", label="Profession/occupation"),
    # Civil
    _f("civil_status", "civil", FieldKind.ENUM, choices=CivilStatus.ALL, always_required=True, label="Civil status"),
    _f("spouse_name", "spouse", label="Spouse name"),
    _f("father_first_name", "civil", always_required=True, label="Father's first name"),
    _f("father_last_name", "civil", always_required=True, label="Father's last name"),
    _f("mother_first_name", "civil", always_required=True, label="Mother's first name"),
    _f("mother_maiden_last_name", "civil", always_required=True, label="Mother's maiden last name"),
    # Special sector
    _f("is_illiterate", "special_sector", FieldKind.BOOLEAN),
    _f("is_senior_citizen", "special_sector", FieldKind.BOOLEAN),
    _f("is_indigenous_person", "special_sector", FieldKind.BOOLEAN),
    _f("tribe", "indigenous", label="Tribe"),
    _f("is_pwd", "special_sector", FieldKind.BOOLEAN),
    _f("disability_type", "disability", label="Type of disability"),
    _f("assistance_needed", "special_sector"),
    _f("assistor_name", "special_sector", label="Assistor name"),
    _f("assistor_relationship", "special_sector", label="Assistor relationship"),
    _f("assistor_address", "special_sector"),
    _f("vote_on_ground_floor", "special_sector", FieldKind.BOOLEAN),
    # Address and residency
    _f("house_number", "address", label="House number"),
    _f("street", "address", label="Street"),
    _f("barangay", "address", label="Barangay"),
    _f("city_municipality", "address", label="City/municipality"),
    _f("province", "address", label="Province"),
    _f("years_of_residence_address", "address", FieldKind.INTEGER, minimum=0, label="Years at address"),
    _f("months_of_residence_address", "address", FieldKind.INTEGER, minimum=0, maximum=11, label="Months at address"),
    _f("years_of_residence_municipality", "address", FieldKind.INTEGER, minimum=0,
       label="Years in city/municipality"),
    _f("months_of_residence_municipality", "address", FieldKind.INTEGER, minimum=0, maximum=11,
       label="Months in city/municipality"),
    _f("years_in_country", "address", FieldKind.INTEGER, minimum=0, label="Years in the Philippines"),
    # Registration
    _f("registration_type", "registration", FieldKind.ENUM, choices=RegistrationType.ALL, label="Registration type"),
    _f("id_front_photo", "registration", FieldKind.FILE, label="Government ID (front)"),
    _f("id_back_photo", "registration", FieldKind.FILE, label="Government ID (back)"),
    _f("id_selfie_url", "registration", FieldKind.FILE, label="Selfie with ID"),
    _f("regular_oath_accepted", "registration_regular", FieldKind.BOOLEAN, label="Oath"),
    _f("regular_registration_type", "registration_regular", FieldKind.ENUM, choices=RegularRegistrationType.ALL,
       label="Regular registration type"),
    _f("regular_voter_status", "registration_regular", FieldKind.ENUM, choices=RegularVoterStatus.ALL,
       label="Voter status"),
    _f("oath_accepted", "registration_katipunan", FieldKind.BOOLEAN, label="Oath"),
    _f("adult_registration_consent", "registration_katipunan", FieldKind.BOOLEAN,
       label="Adult registration consent"),
    # Transfer
    _f("transfer_type", "transfer", FieldKind.ENUM, choices=TransferType.ALL, label="Transfer type"),
    _f("previous_precinct_number", "transfer_domestic", label="Previous precinct number"),
    _f("previous_barangay", "transfer_domestic", label="Previous barangay"),
    _f("previous_city_municipality", "transfer_another_city", label="Previous city/municipality"),
    _f("previous_province", "transfer_another_city", label="Previous province"),
    _f("previous_foreign_post", "transfer_foreign", label="Previous foreign post"),
    _f("previous_country", "transfer_foreign", label="Previous country"),
    # Reactivation
    _f("reason_for_deactivation", "reactivation", FieldKind.ENUM, choices=DeactivationReason.ALL,
       label="Reason for deactivation"),
    # Correction of entry
    _f("target_field", "correction", FieldKind.ENUM, choices=CorrectionTarget.ALL, label="Field to correct"),
    _f("current_value", "correction", label="Current value"),
    _f("requested_value", "correction", label="Requested value"),
    # Reinstatement
    _f("reinstatement_type", "reinstatement", FieldKind.ENUM, choices=ReinstatementType.ALL,
       label="Reinstatement type"),
)

FIELDS: dict[str, FieldSpec] = {spec.name: spec for spec in _FIELD_LIST}

DISCRIMINANTS: tuple[str, ...] = (
    "application_type",
    "transfer_type",
    "citizenship_type",
    "registration_type",
    "civil_status",
    "is_pwd",
    "is_indigenous_person",
)

# Fields whose values are ISO dates and get normalised when a draft is loaded
DATE_FIELDS: tuple[str, ...] = tuple(s.name for s in _FIELD_LIST if s.kind == FieldKind.DATE)

# Attachment slots uploaded by the submission flow
FILE_FIELDS: tuple[str, ...] = tuple(s.name for s in _FIELD_LIST if s.kind == FieldKind.FILE)


def fields_in_group(group: str) -> tuple[str, ...]:
    return tuple(s.name for s in _FIELD_LIST if s.group == group)


__all__ = [
    "FieldKind",
    "FieldSpec",
    "GroupRule",
    "GROUP_RULES",
    "FIELDS",
    "DISCRIMINANTS",
    "DATE_FIELDS",
    "FILE_FIELDS",
    "fields_in_group",
]
