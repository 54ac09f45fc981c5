"""
Role resolver: defaults, lookup errors and token refresh.
"""
from __future__ import annotations

import pytest

from flightcheck.identity_access.roles import RoleLookupError, RoleResolver, Unauthenticated
from flightcheck.identity_access.stores import SessionStore
from flightcheck.tests.utils.fake_supabase import FakeClients
from flightcheck.tests.utils.seed import INSTRUCTOR_EMAIL, STUDENT_EMAIL


def _record(fake, email):
    access, refresh = fake.auth.issue_token(email)
    store = SessionStore()
    user = fake.auth.users[email]
    return store, store.create(user_id=user["id"], email=email, access_token=access, refresh_token=refresh)


def test_no_session_is_unauthenticated(fake_supabase):
    with pytest.raises(Unauthenticated):
        RoleResolver(FakeClients(fake_supabase)).resolve(None)


def test_role_from_profile(fake_supabase):
    _, rec = _record(fake_supabase, INSTRUCTOR_EMAIL)
    ctx = RoleResolver(FakeClients(fake_supabase)).resolve(rec)
    assert ctx.role == "instructor"
    assert ctx.display_name == "Ken Mori"
    assert ctx.as_state() == {"id": "instr-1", "email": INSTRUCTOR_EMAIL, "role": "instructor", "name": "Ken Mori"}
    # The profile query runs with the user's own token.
    assert rec.access_token in fake_supabase.scoped_tokens


def test_missing_profile_defaults_to_student(fake_supabase):
    fake_supabase.tables["profiles"] = []
    _, rec = _record(fake_supabase, INSTRUCTOR_EMAIL)
    assert RoleResolver(FakeClients(fake_supabase)).resolve(rec).role == "student"


def test_unknown_role_defaults_to_student(fake_supabase):
    fake_supabase.tables["profiles"] = [{"user_id": "instr-1", "role": "pilot", "name_romaji": "X", "username": None}]
    _, rec = _record(fake_supabase, INSTRUCTOR_EMAIL)
    assert RoleResolver(FakeClients(fake_supabase)).resolve(rec).role == "student"


def test_profile_lookup_error_propagates(fake_supabase):
    _, rec = _record(fake_supabase, STUDENT_EMAIL)
    fake_supabase.fail("profiles", "select", "connection reset")
    with pytest.raises(RoleLookupError) as exc:
        RoleResolver(FakeClients(fake_supabase)).resolve(rec)
    assert exc.value.message == "connection reset"


def test_expired_token_is_refreshed_once(fake_supabase):
    store, rec = _record(fake_supabase, STUDENT_EMAIL)
    fake_supabase.auth.expire(rec.access_token)
    refreshed = []

    def on_refresh(session):
        refreshed.append(session)
        store.update_tokens(rec.session_id, access_token=session.access_token, refresh_token=session.refresh_token)

    ctx = RoleResolver(FakeClients(fake_supabase)).resolve(rec, on_refresh=on_refresh)
    assert ctx.role == "student"
    assert len(refreshed) == 1
    assert store.get(rec.session_id).access_token == ctx.access_token == refreshed[0].access_token


def test_expired_token_without_valid_refresh_is_unauthenticated(fake_supabase):
    _, rec = _record(fake_supabase, STUDENT_EMAIL)
    fake_supabase.auth.expire(rec.access_token)
    fake_supabase.auth.refresh_tokens.clear()
    with pytest.raises(Unauthenticated):
        RoleResolver(FakeClients(fake_supabase)).resolve(rec)
