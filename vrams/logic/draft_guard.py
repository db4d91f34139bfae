"""Draft lifecycle: restore on mount, autosave, submission bookkeeping and reset.

On mount the stored draft is compared against the fingerprint of the last
submitted record:

- ``no_draft``: nothing stored, an empty record is returned.
- ``stale``: the draft matches the last submission; draft and fingerprint are
  discarded and an empty record is returned.
- ``resumable``: the draft is returned as-is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
import logging

from vrams.logic.dependency_resolver import ResolutionDelta, apply_field_change, resolve
from vrams.logic.draft_store import DraftStore
from vrams.logic.events import DRAFT_CLEARED, publish
from vrams.logic.fingerprint import fingerprint
from vrams.models.fields import FIELDS

logger = logging.getLogger(__name__)


class MountState:
    NO_DRAFT = "no_draft"
    STALE = "stale"
    RESUMABLE = "resumable"


NOTICE_SUBMISSION_CLEARED = "Previous submission cleared"
NOTICE_DRAFT_RESTORED = "Draft restored"


@dataclass(frozen=True)
class MountResult:
    state: str
    record: dict[str, Any] = field(default_factory=dict)
    notice: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return {"state": self.state, "record": dict(self.record), "notice": self.notice}


def _known_fields(record: Mapping[str, Any]) -> dict[str, Any]:
    return {name: record[name] for name in FIELDS if name in record}


class DraftGuard:
    def __init__(self, store: DraftStore) -> None:
        self.store = store

    def mount(self) -> MountResult:
        draft = self.store.load()
        if draft is None:
            logger.info("draft_restore state=%s slot=%s", MountState.NO_DRAFT, self.store.slot_id)
            return MountResult(MountState.NO_DRAFT)
        last_submitted = self.store.get_fingerprint()
        if last_submitted is not None and fingerprint(draft) == last_submitted:
            self.store.clear()
            self.store.clear_fingerprint()
            logger.info("draft_restore state=%s slot=%s", MountState.STALE, self.store.slot_id)
            publish(DRAFT_CLEARED, {"slot_id": self.store.slot_id, "reason": "stale"})
            return MountResult(MountState.STALE, {}, NOTICE_SUBMISSION_CLEARED)
        logger.info("draft_restore state=%s slot=%s", MountState.RESUMABLE, self.store.slot_id)
        return MountResult(MountState.RESUMABLE, draft, NOTICE_DRAFT_RESTORED)

    def autosave(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """Resolve and persist a whole record; return what was stored."""
        resolved = resolve(_known_fields(record))
        self.store.save(resolved)
        return resolved

    def apply_change(self, field_name: str, value: Any) -> tuple[dict[str, Any], ResolutionDelta]:
        """Apply one field edit to the stored draft and persist the result."""
        current = self.store.load() or {}
        updated, delta = apply_field_change(current, field_name, value)
        self.store.save(updated)
        return updated, delta

    def record_submission(self, record: Mapping[str, Any]) -> None:
        self.store.set_fingerprint(fingerprint(record))
        self.store.clear()
        publish(DRAFT_CLEARED, {"slot_id": self.store.slot_id, "reason": "submitted"})

    def reset(self) -> None:
        self.store.clear()
        self.store.clear_fingerprint()
        publish(DRAFT_CLEARED, {"slot_id": self.store.slot_id, "reason": "reset"})


__all__ = [
    "MountState",
    "MountResult",
    "NOTICE_SUBMISSION_CLEARED",
    "NOTICE_DRAFT_RESTORED",
    "DraftGuard",
]
