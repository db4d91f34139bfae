"""Canonicalization helpers for application record values.

Provides the small set of normalisations shared by the resolver, the
validators and the draft store so that an empty string, a missing key and an
explicit ``None`` are all read as "not filled".
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional

from vrams.models.fields import DATE_FIELDS, FIELDS, FieldKind


def is_blank(value: object) -> bool:
    """Return True for None and whitespace-only strings.

    ``False`` and ``0`` are answers, not blanks.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def canonical_token(value: object) -> Optional[str]:
    """Return a stable string form used for discriminant comparisons.

    - Booleans -> "true" / "false"
    - Numbers  -> integer form when integral
    - Text     -> stripped string
    - Blank    -> None
    """
    if is_blank(value):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    s = str(value).strip()
    return s.lower() if s.lower() in {"true", "false"} else s


def as_whole_number(value: object) -> Optional[int]:
    """Return the integer a value spells, or None when it is not a whole number.

    Strings must be ASCII digits with an optional leading minus sign.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        digits = text[1:] if text.startswith("-") else text
        if digits.isascii() and digits.isdigit():
            try:
                return int(text)
            except ValueError:
                # longer than the interpreter's int string limit
                return None
    return None


def normalize_date(value: object) -> object:
    """Coerce a date-like value to ``YYYY-MM-DD`` when it can be read.

    Longer ISO timestamps are truncated to their date part. Values that cannot
    be read are returned unchanged so validation can report them.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str) and len(value.strip()) >= 10:
        head = value.strip()[:10]
        try:
            return date.fromisoformat(head).isoformat()
        except ValueError:
            return value
    return value


def normalize_draft_dates(record: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(record)
    for name in DATE_FIELDS:
        if not is_blank(out.get(name)):
            out[name] = normalize_date(out[name])
    return out


def normalize_for_submission(record: Mapping[str, Any]) -> dict[str, Any]:
    """Return a trimmed copy of the record ready to be frozen.

    Strings are stripped and blanks become None; integer fields supplied as
    digit strings are converted; dates are normalised. Unknown keys are
    dropped.
    """
    out: dict[str, Any] = {}
    for name, spec in FIELDS.items():
        value = record.get(name)
        if is_blank(value):
            out[name] = None
            continue
        if isinstance(value, str):
            value = value.strip()
        if spec.kind == FieldKind.INTEGER and isinstance(value, str):
            parsed = as_whole_number(value)
            value = value if parsed is None else parsed
        elif spec.kind == FieldKind.DATE:
            value = normalize_date(value)
        out[name] = value
    return out


__all__ = [
    "is_blank",
    "canonical_token",
    "as_whole_number",
    "normalize_date",
    "normalize_draft_dates",
    "normalize_for_submission",
]
