"""Frozen, per-type views of a validated application record.

The flat draft record is the editing and wire shape. Once a record has been
resolved and validated it is frozen into exactly one of the variants below,
discriminated on ``application_type``. Each variant declares only the fields
of the groups that can be active for its type, so fields of other branches
cannot be carried into persistence.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

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


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class ApplicantCore(_Frozen):
    application_type: str
    declaration_accepted: bool

    first_name: str
    last_name: str
    middle_name: Optional[str] = None
    suffix: Optional[str] = None
    sex: Literal[Sex.ALL]
    date_of_birth: date
    place_of_birth_municipality: str
    place_of_birth_province: str

    citizenship_type: Literal[CitizenshipType.ALL]
    naturalization_date: Optional[date] = None
    naturalization_cert_no: Optional[str] = None

    contact_number: Optional[str] = None
    email_address: Optional[str] = None
    profession_occupation: Optional[str] = None

    civil_status: Literal[CivilStatus.ALL]
    spouse_name: Optional[str] = None
    father_first_name: str
    father_last_name: str
    mother_first_name: str
    mother_maiden_last_name: str

    is_illiterate: bool = False
    is_senior_citizen: bool = False
    is_indigenous_person: bool = False
    tribe: Optional[str] = None
    is_pwd: bool = False
    disability_type: Optional[str] = None
    assistance_needed: Optional[str] = None
    assistor_name: Optional[str] = None
    assistor_relationship: Optional[str] = None
    assistor_address: Optional[str] = None
    vote_on_ground_floor: bool = False


class AddressDetails(_Frozen):
    house_number: str
    street: str
    barangay: str
    city_municipality: str
    province: str
    years_of_residence_address: int = Field(ge=0)
    months_of_residence_address: int = Field(ge=0, le=11)
    years_of_residence_municipality: int = Field(ge=0)
    months_of_residence_municipality: int = Field(ge=0, le=11)
    years_in_country: int = Field(ge=0)


class TransferDetails(_Frozen):
    transfer_type: Literal[TransferType.ALL]
    previous_precinct_number: Optional[str] = None
    previous_barangay: Optional[str] = None
    previous_city_municipality: Optional[str] = None
    previous_province: Optional[str] = None
    previous_foreign_post: Optional[str] = None
    previous_country: Optional[str] = None


class RegisterApplication(ApplicantCore, AddressDetails):
    application_type: Literal[ApplicationType.REGISTER]
    registration_type: Literal[RegistrationType.ALL]
    id_front_photo: str
    id_back_photo: Optional[str] = None
    id_selfie_url: str
    regular_oath_accepted: Optional[bool] = None
    regular_registration_type: Optional[Literal[RegularRegistrationType.ALL]] = None
    regular_voter_status: Optional[Literal[RegularVoterStatus.ALL]] = None
    oath_accepted: Optional[bool] = None
    adult_registration_consent: Optional[bool] = None


class TransferApplication(ApplicantCore, AddressDetails, TransferDetails):
    application_type: Literal[ApplicationType.TRANSFER]


class ReactivationApplication(ApplicantCore):
    application_type: Literal[ApplicationType.REACTIVATION]
    reason_for_deactivation: Literal[DeactivationReason.ALL]


class TransferWithReactivationApplication(ApplicantCore, AddressDetails, TransferDetails):
    application_type: Literal[ApplicationType.TRANSFER_WITH_REACTIVATION]
    reason_for_deactivation: Literal[DeactivationReason.ALL]


class CorrectionOfEntryApplication(ApplicantCore):
    application_type: Literal[ApplicationType.CORRECTION_OF_ENTRY]
    target_field: Literal[CorrectionTarget.ALL]
    current_value: str
    requested_value: str


class ReinstatementApplication(ApplicantCore):
    application_type: Literal[ApplicationType.REINSTATEMENT]
    reinstatement_type: Literal[ReinstatementType.ALL]


ApplicationVariant = Annotated[
    Union[
        RegisterApplication,
        TransferApplication,
        ReactivationApplication,
        TransferWithReactivationApplication,
        CorrectionOfEntryApplication,
        ReinstatementApplication,
    ],
    Field(discriminator="application_type"),
]

_VARIANT_ADAPTER: TypeAdapter = TypeAdapter(ApplicationVariant)


def freeze_variant(payload: Mapping[str, Any]) -> ApplicantCore:
    """Build the immutable variant for a normalised, validated record.

    Raises pydantic.ValidationError when the payload does not satisfy the
    variant; callers are expected to have run the rule engine first. Absent
    values fall back to the variant's defaults.
    """
    return _VARIANT_ADAPTER.validate_python({k: v for k, v in payload.items() if v is not None})


_IDENTITY_FIELDS = (
    "first_name",
    "last_name",
    "middle_name",
    "suffix",
    "sex",
    "date_of_birth",
    "place_of_birth_municipality",
    "place_of_birth_province",
    "citizenship_type",
    "naturalization_date",
    "naturalization_cert_no",
    "contact_number",
    "email_address",
    "profession_occupation",
    "civil_status",
    "spouse_name",
    "father_first_name",
    "father_last_name",
    "mother_first_name",
    "mother_maiden_last_name",
)

_SPECIAL_SECTOR_FIELDS = (
    "is_illiterate",
    "is_senior_citizen",
    "is_indigenous_person",
    "tribe",
    "is_pwd",
    "disability_type",
    "assistance_needed",
    "assistor_name",
    "assistor_relationship",
    "assistor_address",
    "vote_on_ground_floor",
)

_TRANSFER_FIELDS = tuple(TransferDetails.model_fields)
_ADDRESS_FIELDS = tuple(AddressDetails.model_fields)

# Fixed order in which branch records are written
BRANCH_ORDER = (
    "registration",
    "transfer",
    "reactivation",
    "correction",
    "reinstatement",
    "address",
    "special_sector",
)


def _pick(variant: BaseModel, names: tuple[str, ...]) -> dict[str, Any]:
    data = variant.model_dump(mode="json")
    return {name: data.get(name) for name in names}


def identity_payload(variant: ApplicantCore) -> dict[str, Any]:
    return _pick(variant, _IDENTITY_FIELDS)


def branch_records(variant: ApplicantCore) -> list[tuple[str, dict[str, Any]]]:
    """Return ``(branch, payload)`` pairs for every branch the variant carries.

    Pairs are ordered by BRANCH_ORDER. The special-sector record is only
    produced when at least one sector flag is set.
    """
    records: dict[str, dict[str, Any]] = {}
    if isinstance(variant, RegisterApplication):
        records["registration"] = {
            "registration_type": variant.registration_type,
            "regular_registration_type": variant.regular_registration_type,
            "regular_voter_status": variant.regular_voter_status,
            "adult_registration_consent": variant.adult_registration_consent,
            "government_id_front_url": variant.id_front_photo,
            "government_id_back_url": variant.id_back_photo,
            "id_selfie_url": variant.id_selfie_url,
        }
    if isinstance(variant, TransferDetails):
        records["transfer"] = _pick(variant, _TRANSFER_FIELDS)
    if isinstance(variant, (ReactivationApplication, TransferWithReactivationApplication)):
        records["reactivation"] = {"reason_for_deactivation": variant.reason_for_deactivation}
    if isinstance(variant, CorrectionOfEntryApplication):
        records["correction"] = {
            "target_field": variant.target_field,
            "current_value": variant.current_value,
            "requested_value": variant.requested_value,
        }
    if isinstance(variant, ReinstatementApplication):
        records["reinstatement"] = {"reinstatement_type": variant.reinstatement_type}
    if isinstance(variant, AddressDetails):
        records["address"] = _pick(variant, _ADDRESS_FIELDS)
    if any(
        (
            variant.is_illiterate,
            variant.is_senior_citizen,
            variant.is_indigenous_person,
            variant.is_pwd,
            variant.vote_on_ground_floor,
        )
    ):
        records["special_sector"] = _pick(variant, _SPECIAL_SECTOR_FIELDS)
    return [(branch, records[branch]) for branch in BRANCH_ORDER if branch in records]


__all__ = [
    "ApplicantCore",
    "AddressDetails",
    "TransferDetails",
    "RegisterApplication",
    "TransferApplication",
    "ReactivationApplication",
    "TransferWithReactivationApplication",
    "CorrectionOfEntryApplication",
    "ReinstatementApplication",
    "ApplicationVariant",
    "BRANCH_ORDER",
    "freeze_variant",
    "identity_payload",
    "branch_records",
]
