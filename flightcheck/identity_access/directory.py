"""
Student directory search (hosted `profiles` table).

Why:
    Instructors find a student by display name or username before opening the
    student's checklist. The query runs with the instructor's access token, so
    row-level security still applies.

Behavior:
    - Case-insensitive substring match on `name_romaji` or `username`.
    - Only `role = student` rows; filtered in the query and again on the result
      so a misconfigured policy cannot leak staff profiles into the list.
    - Ordered by display name, capped at `MAX_RESULTS`.
"""
from __future__ import annotations

from typing import Any, List
import re

from flightcheck.checklist.models import Profile
from flightcheck.checklist.repo_supabase import PROFILE_COLUMNS, PROFILES_TABLE, RemoteDataError


MAX_RESULTS = 30

# Characters with meaning in the PostgREST `or=(...)` filter grammar.
_FILTER_META = re.compile(r'[,()"\\]')


def sanitize_keyword(q: str | None) -> str:
    return _FILTER_META.sub("", (q or "").strip()).strip()


def _clamp_limit(limit: int) -> int:
    try:
        value = int(limit)
    except (TypeError, ValueError):
        value = MAX_RESULTS
    return max(1, min(MAX_RESULTS, value))


def search_students(client: Any, q: str | None, *, limit: int = MAX_RESULTS) -> List[Profile]:
    """Return student profiles whose display name or username contains `q`.

    An empty keyword (after trimming) returns [] without a remote call.
    Store errors raise `RemoteDataError`.
    """
    keyword = sanitize_keyword(q)
    if not keyword:
        return []
    pattern = f"%{keyword}%"
    try:
        resp = (
            client.table(PROFILES_TABLE)
            .select(PROFILE_COLUMNS)
            .eq("role", "student")
            .or_(f"name_romaji.ilike.{pattern},username.ilike.{pattern}")
            .order("name_romaji")
            .limit(_clamp_limit(limit))
            .execute()
        )
    except Exception as exc:
        message = str(getattr(exc, "message", None) or exc) or exc.__class__.__name__
        raise RemoteDataError(message, table=PROFILES_TABLE) from exc
    rows = getattr(resp, "data", None) or []
    return [Profile.from_row(r) for r in rows if isinstance(r, dict) and r.get("role") == "student"]
