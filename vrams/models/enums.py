"""Enumerated values accepted by the application record.

Plain constants containers rather than Enum classes so the values stay
JSON-native in drafts and wire payloads.
"""

from __future__ import annotations


class ApplicationType:
    REGISTER = "register"
    TRANSFER = "transfer"
    REACTIVATION = "reactivation"
    TRANSFER_WITH_REACTIVATION = "transfer_with_reactivation"
    CORRECTION_OF_ENTRY = "correction_of_entry"
    REINSTATEMENT = "reinstatement"

    ALL = (
        REGISTER,
        TRANSFER,
        REACTIVATION,
        TRANSFER_WITH_REACTIVATION,
        CORRECTION_OF_ENTRY,
        REINSTATEMENT,
    )


class RegistrationType:
    REGULAR = "regular"
    KATIPUNAN = "katipunan"

    ALL = (REGULAR, KATIPUNAN)


class RegularRegistrationType:
    REGISTRATION = "registration"
    TRANSFER = "transfer"

    ALL = (REGISTRATION, TRANSFER)


class RegularVoterStatus:
    NOT_REGISTERED = "not_registered"
    REGISTERED_ELSEWHERE = "registered_elsewhere"

    ALL = (NOT_REGISTERED, REGISTERED_ELSEWHERE)


class TransferType:
    WITHIN_CITY = "within_city"
    FROM_ANOTHER_CITY = "from_another_city"
    FROM_FOREIGN_POST = "from_foreign_post"

    ALL = (WITHIN_CITY, FROM_ANOTHER_CITY, FROM_FOREIGN_POST)
    DOMESTIC = (WITHIN_CITY, FROM_ANOTHER_CITY)


class CitizenshipType:
    BY_BIRTH = "by_birth"
    NATURALIZED = "naturalized"
    REACQUIRED = "reacquired"

    ALL = (BY_BIRTH, NATURALIZED, REACQUIRED)
    REQUIRES_CERTIFICATE = (NATURALIZED, REACQUIRED)


class CivilStatus:
    SINGLE = "single"
    MARRIED = "married"
    WIDOWED = "widowed"
    LEGALLY_SEPARATED = "legally_separated"

    ALL = (SINGLE, MARRIED, WIDOWED, LEGALLY_SEPARATED)


class Sex:
    MALE = "M"
    FEMALE = "F"

    ALL = (MALE, FEMALE)


class DeactivationReason:
    """Legal grounds under which a registration may have been deactivated."""

    IMPRISONMENT = "sentenced_to_imprisonment"
    DISLOYALTY = "convicted_of_disloyalty"
    INCOMPETENCE = "declared_insane_or_incompetent"
    FAILED_TO_VOTE = "failed_to_vote_twice"
    LOST_CITIZENSHIP = "loss_of_citizenship"
    COURT_EXCLUSION = "excluded_by_court_order"
    FAILED_TO_VALIDATE = "failure_to_validate"

    ALL = (
        IMPRISONMENT,
        DISLOYALTY,
        INCOMPETENCE,
        FAILED_TO_VOTE,
        LOST_CITIZENSHIP,
        COURT_EXCLUSION,
        FAILED_TO_VALIDATE,
    )


class ReinstatementType:
    FOREIGN_POST_TO_LOCAL = "foreign_post_to_same_locality"
    INCLUSION_IN_PRECINCT_BOOK = "inclusion_in_precinct_book"
    OMITTED_NAME = "omitted_name_reinstatement"

    ALL = (FOREIGN_POST_TO_LOCAL, INCLUSION_IN_PRECINCT_BOOK, OMITTED_NAME)


class CorrectionTarget:
    NAME = "name"
    CONTACT_NUMBER = "contact_number"
    EMAIL_ADDRESS = "email_address"
    SPOUSE_NAME = "spouse_name"
    DATE_OF_BIRTH = "date_of_birth"
    PLACE_OF_BIRTH = "place_of_birth"
    FATHER_NAME = "father_name"
    MOTHER_MAIDEN_NAME = "mother_maiden_name"
    OTHER = "other"

    ALL = (
        NAME,
        CONTACT_NUMBER,
        EMAIL_ADDRESS,
        SPOUSE_NAME,
        DATE_OF_BIRTH,
        PLACE_OF_BIRTH,
        FATHER_NAME,
        MOTHER_MAIDEN_NAME,
        OTHER,
    )


class ApplicationStatus:
    PENDING = "pending"
    VERIFIED = "verified"
    APPROVED = "approved"
    DISAPPROVED = "disapproved"

    ALL = (PENDING, VERIFIED, APPROVED, DISAPPROVED)
    OPEN = (PENDING, VERIFIED)


__all__ = [
    "ApplicationType",
    "RegistrationType",
    "RegularRegistrationType",
    "RegularVoterStatus",
    "TransferType",
    "CitizenshipType",
    "CivilStatus",
    "Sex",
    "DeactivationReason",
    "ReinstatementType",
    "CorrectionTarget",
    "ApplicationStatus",
]
