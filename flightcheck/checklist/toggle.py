"""
Completion toggle workflow: optimistic update with explicit rollback.

Why:
    An instructor flipping an item should see the new status immediately, and
    a failed write must leave the page exactly as it was before the click.
    Modelling the toggle as a small state machine (pending → confirmed |
    rolled_back) over an immutable `CompletionState` makes both guarantees
    checkable: the snapshot is taken before anything changes, and rollback
    returns that very snapshot.

Behavior:
    - `begin_toggle` builds the optimistic record (actor = caller, timestamp =
      now) and returns a pending toggle whose `state` already shows it.
    - `confirm` replaces the optimistic record with the server's row.
    - `roll_back` restores the snapshot and keeps the error message.
    - No retries; failures surface to the caller.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional, Protocol

from .models import CompletionRecord
from .repo_supabase import RemoteDataError


class ToggleStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


class InvalidTransition(Exception):
    """A finished toggle was confirmed or rolled back a second time."""


class CompletionState:
    """Immutable item id → CompletionRecord mapping for one student."""

    __slots__ = ("_records",)

    def __init__(self, records: Iterable[CompletionRecord] = ()) -> None:
        self._records: Mapping[str, CompletionRecord] = MappingProxyType({r.item_id: r for r in records})

    def get(self, item_id: str) -> Optional[CompletionRecord]:
        return self._records.get(item_id)

    def is_cleared(self, item_id: str) -> bool:
        rec = self._records.get(item_id)
        return bool(rec and rec.is_cleared)

    def records(self) -> list[CompletionRecord]:
        return list(self._records.values())

    def with_record(self, record: CompletionRecord) -> "CompletionState":
        merged = dict(self._records)
        merged[record.item_id] = record
        return CompletionState(merged.values())

    def __len__(self) -> int:
        return len(self._records)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompletionState):
            return NotImplemented
        return dict(self._records) == dict(other._records)

    def __repr__(self) -> str:
        return f"CompletionState({len(self._records)} records)"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class PendingToggle:
    snapshot: CompletionState
    optimistic: CompletionRecord
    state: CompletionState
    status: ToggleStatus = ToggleStatus.PENDING
    error: Optional[str] = None
    server_record: Optional[CompletionRecord] = field(default=None)

    def _require_pending(self) -> None:
        if self.status is not ToggleStatus.PENDING:
            raise InvalidTransition(f"toggle already {self.status.value}")

    def confirm(self, server_record: Optional[CompletionRecord]) -> CompletionState:
        """Settle on the server's row; keep the optimistic one if none came back."""
        self._require_pending()
        self.server_record = server_record
        if server_record is not None:
            self.state = self.snapshot.with_record(server_record)
        self.status = ToggleStatus.CONFIRMED
        return self.state

    def roll_back(self, error: str) -> CompletionState:
        self._require_pending()
        self.state = self.snapshot
        self.error = error
        self.status = ToggleStatus.ROLLED_BACK
        return self.state


def begin_toggle(
    state: CompletionState,
    *,
    student_id: str,
    item_id: str,
    cleared: bool,
    actor_id: str,
    now: Optional[str] = None,
) -> PendingToggle:
    optimistic = CompletionRecord(
        user_id=student_id,
        item_id=item_id,
        is_cleared=bool(cleared),
        cleared_at=now or _utc_now_iso(),
        cleared_by=actor_id,
    )
    return PendingToggle(snapshot=state, optimistic=optimistic, state=state.with_record(optimistic))


class CompletionWriterProtocol(Protocol):
    def upsert_completion(self, record: CompletionRecord) -> Optional[CompletionRecord]:
        ...


@dataclass
class ToggleInput:
    student_id: str
    item_id: str
    cleared: bool
    actor_id: str
    state: CompletionState


class ToggleCompletionUseCase:
    def __init__(self, repo: CompletionWriterProtocol, clock: Callable[[], str] = _utc_now_iso) -> None:
        self._repo = repo
        self._clock = clock

    def execute(
        self,
        req: ToggleInput,
        on_pending: Optional[Callable[[PendingToggle], None]] = None,
    ) -> PendingToggle:
        """Apply one toggle and settle it against the store.

        Behavior:
            - `on_pending` observes the optimistic state before the write.
            - A `RemoteDataError` from the write rolls back; other exceptions
              propagate unchanged.

        Permissions:
            Caller must be an instructor or admin; row-level security rejects
            writes from anyone else, which surfaces here as a rollback.
        """
        toggle = begin_toggle(
            req.state,
            student_id=req.student_id,
            item_id=req.item_id,
            cleared=req.cleared,
            actor_id=req.actor_id,
            now=self._clock(),
        )
        if on_pending is not None:
            on_pending(toggle)
        try:
            server_record = self._repo.upsert_completion(toggle.optimistic)
        except RemoteDataError as exc:
            toggle.roll_back(exc.message)
            return toggle
        toggle.confirm(server_record)
        return toggle
