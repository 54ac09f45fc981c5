"""
Pytest configuration for FlightCheck tests.

Why: Force AnyIO to use the asyncio backend, and give route tests a fresh
in-memory Supabase fake plus session store per test.
"""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from flightcheck.identity_access.stores import SessionStore
from flightcheck.tests.utils.fake_supabase import FakeClients, FakeSupabase
from flightcheck.tests.utils.seed import seed_tables, seed_users


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    fake = FakeSupabase(seed_tables())
    seed_users(fake)
    return fake


@pytest.fixture
def backend(monkeypatch, fake_supabase):
    """Wire the app to the fake backend and a fresh session store."""
    from flightcheck.web import main

    store = SessionStore()
    monkeypatch.setattr(main.app.state, "clients", FakeClients(fake_supabase))
    monkeypatch.setattr(main.app.state, "session_store", store)
    monkeypatch.delenv("APP_BASE_URL", raising=False)
    return SimpleNamespace(app=main.app, fake=fake_supabase, store=store)
