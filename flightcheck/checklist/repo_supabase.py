"""
Supabase-backed data store adapter for the checklist.

The adapter is duck-typed over a supabase client (`create_client(...)`) so
tests can pass an in-memory fake. The client is expected to expose
`.table(name)` returning the PostgREST query builder:

- select(columns).eq(col, value).in_(col, values).order(col, desc=False)
- upsert(row, on_conflict="user_id,item_id"), update(values), insert(row)
- maybe_single(), limit(n), execute() -> response with `.data`

Security:
- The client must be scoped to the signed-in user's access token. Row-level
  security in the hosted backend decides what each role may read and write;
  this adapter never uses the service role key.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Optional
import logging

from .models import Category, CheckItem, CompletionRecord, Profile, Step


logger = logging.getLogger("flightcheck.checklist")

STEPS_TABLE = "steps"
CATEGORIES_TABLE = "categories"
ITEMS_TABLE = "check_items"
COMPLETIONS_TABLE = "user_item_checks"
PROFILES_TABLE = "profiles"

COMPLETION_CONFLICT_TARGET = "user_id,item_id"
PROFILE_COLUMNS = "user_id,role,name_romaji,username"


class RemoteDataError(RuntimeError):
    """A read or write against the hosted data store failed."""

    def __init__(self, message: str, *, table: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.table = table


def _rows(resp: Any) -> List[dict]:
    if resp is None:
        return []
    data = resp.get("data") if isinstance(resp, dict) else getattr(resp, "data", None)
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return [row for row in data if isinstance(row, dict)]


def _first(resp: Any) -> Optional[dict]:
    rows = _rows(resp)
    return rows[0] if rows else None


class ChecklistRepo:
    """Read/write access to the checklist tables through a supabase client."""

    def __init__(self, client: Any):
        self._client = client

    def _run(self, table: str, build) -> Any:
        """Execute a query built by `build(table_proxy)`; wrap library errors."""
        try:
            return build(self._client.table(table)).execute()
        except RemoteDataError:
            raise
        except Exception as exc:
            message = str(getattr(exc, "message", None) or exc) or exc.__class__.__name__
            logger.warning("Supabase query on %s failed: %s", table, exc.__class__.__name__)
            raise RemoteDataError(message, table=table) from exc

    # --- Structure ------------------------------------------------------------------

    def list_steps(self) -> List[Step]:
        resp = self._run(STEPS_TABLE, lambda t: t.select("id,name,sort_order").order("sort_order"))
        return [Step.from_row(r) for r in _rows(resp)]

    def list_categories(self) -> List[Category]:
        resp = self._run(CATEGORIES_TABLE, lambda t: t.select("id,step_id,name,sort_order").order("sort_order"))
        return [Category.from_row(r) for r in _rows(resp)]

    def list_items(self) -> List[CheckItem]:
        resp = self._run(
            ITEMS_TABLE, lambda t: t.select("id,category_id,title,sort_order,video_url").order("sort_order")
        )
        return [CheckItem.from_row(r) for r in _rows(resp)]

    # --- Completions ----------------------------------------------------------------

    def list_completions(self, user_id: str) -> List[CompletionRecord]:
        resp = self._run(
            COMPLETIONS_TABLE,
            lambda t: t.select("user_id,item_id,is_cleared,cleared_at,cleared_by").eq("user_id", user_id),
        )
        return [CompletionRecord.from_row(r) for r in _rows(resp)]

    def upsert_completion(self, record: CompletionRecord) -> Optional[CompletionRecord]:
        """Write one completion row keyed by (user_id, item_id).

        Returns the row as stored by the server (its timestamp and actor are
        authoritative), or None when the server returned no representation.
        """
        resp = self._run(
            COMPLETIONS_TABLE,
            lambda t: t.upsert(record.to_row(), on_conflict=COMPLETION_CONFLICT_TARGET),
        )
        row = _first(resp)
        return CompletionRecord.from_row(row) if row else None

    # --- Profiles -------------------------------------------------------------------

    def get_profile(self, user_id: str) -> Optional[Profile]:
        resp = self._run(PROFILES_TABLE, lambda t: t.select(PROFILE_COLUMNS).eq("user_id", user_id).maybe_single())
        row = _first(resp)
        return Profile.from_row(row) if row else None

    def list_profiles(self, user_ids: Iterable[str]) -> List[Profile]:
        ids = sorted({str(u) for u in user_ids if u})
        if not ids:
            return []
        resp = self._run(PROFILES_TABLE, lambda t: t.select(PROFILE_COLUMNS).in_("user_id", ids))
        return [Profile.from_row(r) for r in _rows(resp)]

    def ensure_display_name(self, user_id: str, name: str) -> None:
        """Copy the signup display name into the profile row.

        Behavior:
            Updates the existing row; when no row matched, inserts one so the
            name is visible to instructors on first login.
        """
        resp = self._run(
            PROFILES_TABLE, lambda t: t.update({"name_romaji": name}).eq("user_id", user_id)
        )
        if _rows(resp):
            return
        self._run(PROFILES_TABLE, lambda t: t.insert({"user_id": user_id, "name_romaji": name}))
