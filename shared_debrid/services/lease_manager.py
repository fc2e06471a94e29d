from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable

from shared_debrid.errors import LeaseStoreError, StorageCorruptError, StorageUnavailableError
from shared_debrid.schemas.lease import LeaseDecision, LeaseState
from shared_debrid.services.lease_policy import (
    DEFAULT_FILE_NAME,
    DEFAULT_SESSION_MINUTES,
    format_instant,
    utc_now,
)


class LeaseManager:
    """One fetch-decide-write cycle against the remote lease document.

    Build one per request; the remote document is the only shared state.
    Writes are unconditional unless the store offers versioned reads and
    conditional writes, in which case a lost race raises ``ConflictError``.
    """

    def __init__(
        self,
        store,
        file_name: str = DEFAULT_FILE_NAME,
        *,
        clock: Callable[[], datetime] | None = None,
        default_session_minutes: float = DEFAULT_SESSION_MINUTES,
    ) -> None:
        self.store = store
        self.file_name = file_name
        self.clock = clock or utc_now
        self.default_session_minutes = default_session_minutes
        self._state: LeaseState | None = None
        self._version: Any = None

    @property
    def state(self) -> LeaseState | None:
        return self._state

    @property
    def supports_conditional_writes(self) -> bool:
        return getattr(self.store, "supports_conditional_writes", False) is True

    def _read(self) -> str:
        try:
            if self.supports_conditional_writes:
                content, self._version = self.store.get_versioned_content(self.file_name)
                return content
            return self.store.get_content(self.file_name)
        except LeaseStoreError:
            raise
        except Exception as exc:
            print(f"[LEASE][store_error] op=read file={self.file_name} error={exc}", flush=True)
            raise StorageUnavailableError(f"failed to read {self.file_name}: {exc}") from exc

    def _write(self, content: str) -> Any:
        try:
            if self.supports_conditional_writes:
                ack = self.store.update_content_if_match(self.file_name, content, self._version)
                if isinstance(ack, dict) and "version" in ack:
                    self._version = ack["version"]
                return ack
            return self.store.update_content(self.file_name, content)
        except LeaseStoreError:
            raise
        except Exception as exc:
            print(f"[LEASE][store_error] op=write file={self.file_name} error={exc}", flush=True)
            raise StorageUnavailableError(f"failed to update {self.file_name}: {exc}") from exc

    def get(self) -> LeaseState:
        content = self._read()

        if not content or not content.strip():
            print(f"[LEASE][lease_default] file={self.file_name}", flush=True)
            self._state = LeaseState()
            return self._state

        try:
            raw = json.loads(content)
        except json.JSONDecodeError as exc:
            print(f"[LEASE][store_corrupt] file={self.file_name} error={exc}", flush=True)
            raise StorageCorruptError(f"{self.file_name} is not valid JSON: {exc}") from exc
        if not isinstance(raw, dict):
            print(f"[LEASE][store_corrupt] file={self.file_name} error=not-an-object", flush=True)
            raise StorageCorruptError(f"{self.file_name} must hold a JSON object")

        self._state = LeaseState.parse(raw)
        print(
            f"[LEASE][lease_load] file={self.file_name} holder={self._state.holder} "
            f"ended_at={format_instant(self._state.ended_at)}",
            flush=True,
        )
        return self._state

    def update(self, new_holder: str | None = None, session_minutes: Any = None) -> Any:
        """Hand the lease to ``new_holder`` (if given) and restart its clock.

        The cached state is changed before the write, so after a failed write
        it already shows the intended holder and expiry.
        """
        if self._state is None:
            self.get()
        state = self._state

        state.access_for(
            session_minutes,
            started_at=self.clock(),
            default_minutes=self.default_session_minutes,
        )
        if new_holder is not None:
            state.holder = new_holder

        content = json.dumps(state.serialize(), indent=2, ensure_ascii=False)
        ack = self._write(content)
        print(
            f"[LEASE][lease_write] file={self.file_name} holder={state.holder} "
            f"ended_at={format_instant(state.ended_at)}",
            flush=True,
        )
        return ack

    def claim(self, requester: str, session_minutes: Any = None) -> LeaseDecision:
        state = self.get()
        if not state.can_access(requester, now=self.clock()):
            print(
                f"[LEASE][lease_deny] requester={requester} holder={state.holder} "
                f"ended_at={format_instant(state.ended_at)}",
                flush=True,
            )
            return LeaseDecision(granted=False, holder=state.holder, ended_at=state.ended_at)

        self.update(requester, session_minutes)
        print(
            f"[LEASE][lease_grant] requester={requester} ended_at={format_instant(state.ended_at)}",
            flush=True,
        )
        return LeaseDecision(granted=True, holder=state.holder, ended_at=state.ended_at)
