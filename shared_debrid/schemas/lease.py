from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared_debrid.services.lease_policy import (
    DEFAULT_HOLDER,
    DEFAULT_SESSION_MINUTES,
    EPOCH_START,
    add_minutes,
    coerce_holder,
    coerce_instant,
    coerce_session_minutes,
    ensure_utc,
    format_instant,
    utc_now,
)

_CANONICAL_KEYS = ("holder", "endedAt")
_LEGACY_KEYS = ("username", "accessedAt")


def migrate_legacy(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a legacy ``username``/``accessedAt`` document to the canonical shape.

    Documents carrying any canonical key are treated as canonical and their
    legacy keys are ignored. Legacy expiry is ``accessedAt + sessionMinutes``
    (180 when absent or malformed); an unparsable ``accessedAt`` means the
    lease is already over.
    """
    if any(key in raw for key in _CANONICAL_KEYS):
        return dict(raw)
    if not any(key in raw for key in _LEGACY_KEYS):
        return dict(raw)

    accessed_at = coerce_instant(raw.get("accessedAt"))
    if accessed_at == EPOCH_START:
        ended_at = EPOCH_START
    else:
        minutes = coerce_session_minutes(raw.get("sessionMinutes"))
        ended_at = add_minutes(accessed_at, minutes)

    print(
        f"[LEASE][legacy_migrated] holder={raw.get('username')} ended_at={format_instant(ended_at)}",
        flush=True,
    )
    return {"holder": raw.get("username"), "endedAt": format_instant(ended_at)}


class LeaseState(BaseModel):
    """Who holds the shared account and when their session runs out.

    ACTIVE while ``ended_at`` is in the future: only ``holder`` gets in.
    EXPIRED once ``ended_at <= now``: anyone gets in. Time alone moves a lease
    from ACTIVE to EXPIRED; ``access_for`` plus a new ``holder`` moves it back.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    holder: str = DEFAULT_HOLDER
    ended_at: datetime = Field(default=EPOCH_START, alias="endedAt")

    @field_validator("holder", mode="before")
    @classmethod
    def normalize_holder(cls, value: Any) -> str:
        return coerce_holder(value)

    @field_validator("ended_at", mode="before")
    @classmethod
    def normalize_ended_at(cls, value: Any) -> datetime:
        return coerce_instant(value)

    def is_expired(self, now: datetime | None = None) -> bool:
        current = ensure_utc(now) if now is not None else utc_now()
        return self.ended_at < current

    def can_access(self, requester: Any, now: datetime | None = None) -> bool:
        # the holder is never locked out of their own session
        if requester == self.holder:
            return True
        return self.is_expired(now)

    def access_for(
        self,
        session_minutes: Any = None,
        started_at: datetime | None = None,
        *,
        default_minutes: float = DEFAULT_SESSION_MINUTES,
    ) -> None:
        minutes = coerce_session_minutes(session_minutes, default=default_minutes)
        start = started_at if started_at is not None else utc_now()
        self.ended_at = add_minutes(start, minutes)

    def serialize(self) -> dict[str, str]:
        return {"holder": self.holder, "endedAt": format_instant(self.ended_at)}

    @classmethod
    def parse(cls, raw: Mapping[str, Any]) -> "LeaseState":
        data = migrate_legacy(raw)
        return cls(holder=data.get("holder"), ended_at=data.get("endedAt"))


class LeaseDecision(BaseModel):
    granted: bool
    holder: str
    ended_at: datetime

    def to_document(self) -> dict[str, Any]:
        return {
            "granted": self.granted,
            "holder": self.holder,
            "endedAt": format_instant(self.ended_at),
        }
