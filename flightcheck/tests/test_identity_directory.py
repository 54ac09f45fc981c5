"""
Student directory search: students only, case-insensitive, capped at 30.
"""
from __future__ import annotations

import pytest

from flightcheck.checklist.repo_supabase import RemoteDataError
from flightcheck.identity_access.directory import MAX_RESULTS, sanitize_keyword, search_students


def test_ryo_matches_students_only(fake_supabase):
    results = search_students(fake_supabase, "ryo")
    assert [p.user_id for p in results] == ["student-1", "student-2"]
    assert all(p.role == "student" for p in results)


def test_match_is_case_insensitive_and_covers_username(fake_supabase):
    assert [p.user_id for p in search_students(fake_supabase, "RSATO")] == ["student-2"]


def test_query_shape(fake_supabase):
    search_students(fake_supabase, " ryo ")
    call = fake_supabase.calls_for("profiles", "select")[-1]
    assert ("eq", "role", "student") in call["filters"]
    or_filter = [f for f in call["filters"] if f[0] == "or"][0]
    assert or_filter[2] == "name_romaji.ilike.%ryo%,username.ilike.%ryo%"
    assert call["order"] == ("name_romaji", False)
    assert call["limit"] == MAX_RESULTS


def test_results_capped_at_30(fake_supabase):
    fake_supabase.tables["profiles"] = [
        {"user_id": f"s{i:02d}", "role": "student", "name_romaji": f"Ryo {i:02d}", "username": None} for i in range(45)
    ]
    results = search_students(fake_supabase, "ryo", limit=500)
    assert len(results) == 30
    assert results[0].display_name == "Ryo 00"


def test_staff_rows_are_filtered_even_if_returned(fake_supabase):
    class _Leaky:
        """Simulates a store that ignores the role filter."""

        def __init__(self, fake):
            self._fake = fake

        def table(self, name):
            query = self._fake.table(name)
            query.eq = lambda column, value: query
            return query

    results = search_students(_Leaky(fake_supabase), "ryo")
    assert "instr-ryo" not in [p.user_id for p in results]
    assert len(results) == 2


@pytest.mark.parametrize("q", [None, "", "   ", ",()"])
def test_empty_keyword_makes_no_call(fake_supabase, q):
    assert search_students(fake_supabase, q) == []
    assert fake_supabase.calls == []


def test_filter_grammar_characters_are_stripped():
    assert sanitize_keyword(' ry,o(") ') == "ryo"


def test_store_error_is_wrapped(fake_supabase):
    fake_supabase.fail("profiles", "select", "timeout")
    with pytest.raises(RemoteDataError):
        search_students(fake_supabase, "ryo")
