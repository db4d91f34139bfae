"""Field dependency resolution for the application record.

Computes which field groups are active for the current discriminant values
and clears every field owned by an inactive group. Activation is
equality-based: a group is active only when its parent is active and the
canonical value of its discriminant is one of the configured values.

All functions here are pure; callers own the record and decide when to
persist the result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional
import logging

from vrams.logic.record_canonical import canonical_token, is_blank
from vrams.models.fields import DISCRIMINANTS, FIELDS, GROUP_RULES

logger = logging.getLogger(__name__)


class ResolverError(ValueError):
    """Raised for field edits the resolver cannot accept."""

    def __init__(self, code: str, field_name: str) -> None:
        super().__init__(f"{code}: {field_name}")
        self.code = code
        self.field = field_name


@dataclass(frozen=True)
class ResolutionDelta:
    now_active: list[str] = field(default_factory=list)
    now_inactive: list[str] = field(default_factory=list)
    cleared_fields: list[str] = field(default_factory=list)


def is_value_active(value: object, active_if: Iterable[object] | None) -> bool:
    """Return True if a discriminant value selects a group.

    Booleans and boolean-like strings are compared in their canonical
    'true'/'false' form. Blank values never activate a group.
    """
    token = canonical_token(value)
    if token is None or not active_if:
        return False
    return token in {canonical_token(v) for v in active_if}


def compute_active_groups(record: Mapping[str, Any]) -> set[str]:
    """Compute the set of active group names for a record."""
    memo: dict[str, bool] = {}

    def _active(name: str) -> bool:
        if name in memo:
            return memo[name]
        rule = GROUP_RULES[name]
        ok = True
        if rule.parent is not None:
            ok = _active(rule.parent)
        if ok and rule.discriminant is not None:
            ok = is_value_active(record.get(rule.discriminant), rule.active_if)
        memo[name] = ok
        return ok

    return {name for name in GROUP_RULES if _active(name)}


def inactive_fields_with_values(record: Mapping[str, Any]) -> list[str]:
    """Return fields holding a value although their group is inactive."""
    active = compute_active_groups(record)
    return [
        name
        for name, spec in FIELDS.items()
        if spec.group not in active and not is_blank(record.get(name))
    ]


def resolve(record: Mapping[str, Any], changed_discriminant: Optional[str] = None) -> dict[str, Any]:
    """Return a copy of the record with inactive-group fields set to None.

    The result depends only on the record's discriminant values, so running
    resolve again on its own output is a no-op. ``changed_discriminant`` names
    the field that triggered resolution and must be a discriminant when given.
    """
    if changed_discriminant is not None and changed_discriminant not in DISCRIMINANTS:
        raise ResolverError("not_a_discriminant", changed_discriminant)
    active = compute_active_groups(record)
    out = dict(record)
    cleared: list[str] = []
    for name, spec in FIELDS.items():
        if spec.group in active:
            continue
        if name in out and out[name] is not None:
            out[name] = None
            cleared.append(name)
    if cleared:
        logger.info(
            "resolver_cleared discriminant=%s fields=%s",
            changed_discriminant,
            cleared,
        )
    return out


def compute_group_delta(
    pre_active: Iterable[str],
    post_active: Iterable[str],
    before: Mapping[str, Any],
    after: Mapping[str, Any],
) -> ResolutionDelta:
    """Compute activation changes and the fields whose values were cleared.

    - now_active: groups newly active (in post but not in pre)
    - now_inactive: groups newly inactive (in pre but not in post)
    - cleared_fields: fields that held a value before and are None after
    """
    pre_set = set(pre_active)
    post_set = set(post_active)
    cleared = [
        name
        for name in FIELDS
        if not is_blank(before.get(name)) and name in after and after[name] is None
    ]
    return ResolutionDelta(
        now_active=sorted(post_set - pre_set),
        now_inactive=sorted(pre_set - post_set),
        cleared_fields=cleared,
    )


def apply_field_change(
    record: Mapping[str, Any],
    field_name: str,
    value: Any,
) -> tuple[dict[str, Any], ResolutionDelta]:
    """Set one field and resolve dependants when it is a discriminant.

    Raises ResolverError for unknown fields and for edits to a field whose
    group is inactive under the current discriminants.
    """
    spec = FIELDS.get(field_name)
    if spec is None:
        raise ResolverError("unknown_field", field_name)
    pre_active = compute_active_groups(record)
    if spec.group not in pre_active and not is_blank(value):
        raise ResolverError("field_inactive", field_name)

    updated = dict(record)
    updated[field_name] = value
    if field_name in DISCRIMINANTS:
        updated = resolve(updated, field_name)
    post_active = compute_active_groups(updated)
    delta = compute_group_delta(pre_active, post_active, record, updated)
    cleared = [name for name in delta.cleared_fields if name != field_name]
    return updated, ResolutionDelta(delta.now_active, delta.now_inactive, cleared)


__all__ = [
    "ResolverError",
    "ResolutionDelta",
    "is_value_active",
    "compute_active_groups",
    "inactive_fields_with_values",
    "resolve",
    "compute_group_delta",
    "apply_field_change",
]
