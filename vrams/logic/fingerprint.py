"""Identity fingerprint used to tell a resumable draft from a submitted one."""

from __future__ import annotations

import hashlib
from typing import Any, Mapping

from vrams.logic.record_canonical import normalize_date

FINGERPRINT_FIELDS = ("first_name", "last_name", "date_of_birth", "application_type")


def _part(record: Mapping[str, Any], name: str) -> str:
    value = record.get(name)
    if value is None:
        return ""
    if name == "date_of_birth":
        value = normalize_date(value)
    return str(value).strip().lower()


def fingerprint(record: Mapping[str, Any]) -> str:
    """Return a stable hex digest over the applicant's identity and type.

    Values are trimmed and lower-cased, so casing or stray whitespace in the
    name does not change the result; a different ``application_type`` does.
    """
    joined = "-".join(_part(record, name) for name in FINGERPRINT_FIELDS)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


__all__ = ["FINGERPRINT_FIELDS", "fingerprint"]
