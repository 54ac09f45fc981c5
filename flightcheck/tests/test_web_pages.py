"""
Student dashboard, instructor pages, completion toggle and QR entry points.
"""
from __future__ import annotations

import pytest

from flightcheck.checklist.repo_supabase import RemoteDataError
from flightcheck.tests.utils.seed import ADMIN_EMAIL, INSTRUCTOR_EMAIL, STUDENT_EMAIL
from flightcheck.tests.utils.web import client_for, login_as, with_session


pytestmark = pytest.mark.anyio("asyncio")


async def _get(backend, email, path, **kwargs):
    sid = login_as(backend, email) if email else None
    client = client_for(backend.app)
    if sid:
        with_session(client, sid)
    async with client as c:
        return await c.get(path, **kwargs)


def _checks(backend, user_id, item_id):
    return [r for r in backend.fake.tables["user_item_checks"] if r["user_id"] == user_id and r["item_id"] == item_id]


# --- Student dashboard -------------------------------------------------------------


async def test_dashboard_shows_progress_and_status(backend):
    r = await _get(backend, STUDENT_EMAIL, "/dashboard")
    assert r.status_code == 200
    assert r.headers.get("Cache-Control") == "private, no-store"
    html = r.text
    assert "Name: Ryo Tanaka" in html
    assert "Role: Student" in html
    assert html.index("Preflight") < html.index("Flight<")
    assert html.index("Documents") < html.index("Walkaround")
    assert '<span class="progress-badge">33%</span>' in html
    assert "1/3" in html
    assert "Last update: 2024-05-01 10:00 UTC" in html
    assert "Last update: -" in html
    assert "No items in this category yet." in html
    # Read-only view: no toggle buttons for students.
    assert "toggle-form" not in html


async def test_dashboard_embeds_youtube_and_hints_otherwise(backend):
    html = (await _get(backend, STUDENT_EMAIL, "/dashboard")).text
    assert 'src="https://www.youtube-nocookie.com/embed/abc123"' in html
    assert "Only YouTube links are supported" in html
    assert "No video is set for this item." in html


async def test_dashboard_qr_panel(backend):
    html = (await _get(backend, STUDENT_EMAIL, "/dashboard")).text
    assert 'src="data:image/png;base64,' in html
    assert 'value="http://test/instructor/student/student-1"' in html
    assert 'data-copy-target="student-url"' in html
    assert "/static/js/copy.js" in html


async def test_dashboard_qr_uses_configured_base_url(backend, monkeypatch):
    monkeypatch.setenv("APP_BASE_URL", "https://flightcheck.example.org/")
    html = (await _get(backend, STUDENT_EMAIL, "/dashboard")).text
    assert 'value="https://flightcheck.example.org/instructor/student/student-1"' in html


async def test_dashboard_read_error_is_inline(backend):
    backend.fake.fail("categories", "select", "permission denied")
    r = await _get(backend, STUDENT_EMAIL, "/dashboard")
    assert r.status_code == 200
    assert "Could not load your checklist: permission denied" in r.text
    assert 'class="checklist"' not in r.text


async def test_dashboard_without_steps(backend):
    for table in ("steps", "categories", "check_items"):
        backend.fake.tables[table] = []
    html = (await _get(backend, STUDENT_EMAIL, "/dashboard")).text
    assert "No steps have been set up yet." in html


# --- Instructor home and search ------------------------------------------------------


async def test_instructor_home(backend):
    r = await _get(backend, INSTRUCTOR_EMAIL, "/instructor")
    assert r.status_code == 200
    assert f"Signed in as {INSTRUCTOR_EMAIL}" in r.text
    assert 'href="/instructor/search"' in r.text
    assert 'href="/instructor/scan"' in r.text


async def test_search_lists_matching_students_only(backend):
    r = await _get(backend, INSTRUCTOR_EMAIL, "/instructor/search", params={"q": "ryo"})
    assert r.status_code == 200
    assert "Ryo Tanaka" in r.text
    assert "Ryoko Sato" in r.text
    assert "Ryo Instructor" not in r.text
    assert 'href="/instructor/student/student-1"' in r.text


async def test_search_without_query_shows_form_only(backend):
    r = await _get(backend, INSTRUCTOR_EMAIL, "/instructor/search")
    assert 'name="q"' in r.text
    assert "Enter part of a name or username." not in r.text
    assert not any(f[0] == "or" for call in backend.fake.calls_for("profiles") for f in call["filters"])


async def test_blank_search_shows_hint_without_query(backend):
    r = await _get(backend, INSTRUCTOR_EMAIL, "/instructor/search", params={"q": "   "})
    assert "Enter part of a name or username." in r.text
    assert not any(f[0] == "or" for call in backend.fake.calls_for("profiles") for f in call["filters"])


async def test_search_without_matches(backend):
    r = await _get(backend, INSTRUCTOR_EMAIL, "/instructor/search", params={"q": "zzz"})
    assert "No matching students." in r.text


async def test_search_error_is_inline(backend, monkeypatch):
    from flightcheck.web.routes import instructor

    def failing_search(client, q, *, limit):
        raise RemoteDataError("timeout", table="profiles")

    monkeypatch.setattr(instructor, "search_students", failing_search)
    r = await _get(backend, INSTRUCTOR_EMAIL, "/instructor/search", params={"q": "ryo"})
    assert r.status_code == 200
    assert "Search failed: timeout" in r.text


# --- Scan ----------------------------------------------------------------------------


async def test_scan_page_loads_camera_script(backend):
    r = await _get(backend, INSTRUCTOR_EMAIL, "/instructor/scan")
    assert r.status_code == 200
    assert "/static/js/scan.js" in r.text
    assert 'id="scan-form"' in r.text


@pytest.mark.parametrize(
    "text,target",
    [
        ("https://flightcheck.example.org/instructor/student/abc", "/instructor/student/abc"),
        ("abc", "/instructor/student/abc"),
        ("/instructor/student/a%20b?x=1", "/instructor/student/a%20b"),
    ],
)
async def test_scan_submit_opens_student(backend, text, target):
    sid = login_as(backend, INSTRUCTOR_EMAIL)
    async with with_session(client_for(backend.app), sid) as c:
        r = await c.post("/instructor/scan", data={"text": text})
    assert r.status_code == 303
    assert r.headers["location"] == target


async def test_scan_get_with_text_redirects(backend):
    r = await _get(backend, INSTRUCTOR_EMAIL, "/instructor/scan", params={"text": "student-3"})
    assert r.status_code == 303
    assert r.headers["location"] == "/instructor/student/student-3"


@pytest.mark.parametrize("text", ["   ", "https://flightcheck.example.org/dashboard"])
async def test_undecodable_scan_shows_hint(backend, text):
    sid = login_as(backend, INSTRUCTOR_EMAIL)
    async with with_session(client_for(backend.app), sid) as c:
        r = await c.post("/instructor/scan", data={"text": text})
    assert r.status_code == 200
    assert "Enter a URL or student id." in r.text


# --- Student checklist and toggle ----------------------------------------------------


async def test_student_page_shows_actor_and_toggles(backend):
    r = await _get(backend, INSTRUCTOR_EMAIL, "/instructor/student/student-1")
    assert r.status_code == 200
    html = r.text
    assert "<h1>Ryo Tanaka</h1>" in html
    assert "Last update: Ken Mori / 2024-05-01 10:00 UTC" in html
    assert 'action="/instructor/student/student-1/items/i1/toggle"' in html
    assert "Mark not cleared" in html
    assert "Mark cleared" in html


async def test_student_page_unknown_student(backend):
    r = await _get(backend, INSTRUCTOR_EMAIL, "/instructor/student/nobody")
    assert r.status_code == 200
    assert "<h1>-</h1>" in r.text
    assert "Last update:" not in r.text


async def test_student_page_unknown_actor(backend):
    backend.fake.tables["user_item_checks"][0]["cleared_by"] = "gone-user"
    html = (await _get(backend, INSTRUCTOR_EMAIL, "/instructor/student/student-1")).text
    assert "Last update: Unknown / 2024-05-01 10:00 UTC" in html


async def test_student_page_read_error(backend):
    backend.fake.fail("check_items", "select", "permission denied")
    r = await _get(backend, INSTRUCTOR_EMAIL, "/instructor/student/student-1")
    assert "Could not load the checklist: permission denied" in r.text
    assert 'href="/instructor"' in r.text


async def test_toggle_sets_item_cleared(backend):
    sid = login_as(backend, INSTRUCTOR_EMAIL)
    async with with_session(client_for(backend.app), sid) as c:
        r = await c.post(
            "/instructor/student/student-1/items/i2/toggle",
            data={"cleared": "1"},
            headers={"Origin": "http://test"},
        )
    assert r.status_code == 303
    assert r.headers["location"] == "/instructor/student/student-1#item-i2"
    (row,) = _checks(backend, "student-1", "i2")
    assert row["is_cleared"] is True
    assert row["cleared_by"] == "instr-1"
    assert row["cleared_at"]
    assert backend.fake.calls_for("user_item_checks", "upsert")[0]["on_conflict"] == "user_id,item_id"


async def test_toggle_clears_item_as_admin(backend):
    sid = login_as(backend, ADMIN_EMAIL)
    async with with_session(client_for(backend.app), sid) as c:
        r = await c.post("/instructor/student/student-1/items/i1/toggle", data={"cleared": "0"})
    assert r.status_code == 303
    (row,) = _checks(backend, "student-1", "i1")
    assert row["is_cleared"] is False
    assert row["cleared_by"] == "admin-1"


async def test_toggle_failure_rolls_back_and_shows_error(backend):
    backend.fake.fail("user_item_checks", "upsert", "permission denied")
    sid = login_as(backend, INSTRUCTOR_EMAIL)
    async with with_session(client_for(backend.app), sid) as c:
        r = await c.post("/instructor/student/student-1/items/i2/toggle", data={"cleared": "1"})
    assert r.status_code == 200
    assert "Could not update the item: permission denied" in r.text
    assert '<li class="check-item" id="item-i2">' in r.text
    assert '<li class="check-item cleared" id="item-i1">' in r.text
    assert _checks(backend, "student-1", "i2") == []


async def test_toggle_rejects_cross_origin(backend):
    sid = login_as(backend, INSTRUCTOR_EMAIL)
    async with with_session(client_for(backend.app), sid) as c:
        r = await c.post(
            "/instructor/student/student-1/items/i2/toggle",
            data={"cleared": "1"},
            headers={"Origin": "https://evil.example"},
        )
    assert r.status_code == 403
    assert r.json() == {"error": "csrf_violation"}
    assert backend.fake.calls_for("user_item_checks", "upsert") == []


@pytest.mark.parametrize("trust,status", [("1", 303), ("false", 403)])
async def test_toggle_origin_behind_trusted_proxy(backend, monkeypatch, trust, status):
    monkeypatch.setenv("FLIGHTCHECK_TRUST_PROXY", trust)
    sid = login_as(backend, INSTRUCTOR_EMAIL)
    async with with_session(client_for(backend.app), sid) as c:
        r = await c.post(
            "/instructor/student/student-1/items/i2/toggle",
            data={"cleared": "1"},
            headers={
                "Origin": "https://flightcheck.example.org",
                "X-Forwarded-Proto": "https",
                "X-Forwarded-Host": "flightcheck.example.org",
            },
        )
    assert r.status_code == status


async def test_toggle_rejects_invalid_value(backend):
    sid = login_as(backend, INSTRUCTOR_EMAIL)
    async with with_session(client_for(backend.app), sid) as c:
        r = await c.post("/instructor/student/student-1/items/i2/toggle", data={"cleared": "maybe"})
    assert r.status_code == 400
    assert r.json() == {"error": "invalid_cleared"}


# --- QR entry points -----------------------------------------------------------------


async def test_qr_without_id_goes_to_login(backend):
    r = await _get(backend, None, "/qr")
    assert r.status_code == 302
    assert r.headers["location"] == "/login"


async def test_qr_anonymous_goes_to_login_with_student_page(backend):
    r = await _get(backend, None, "/qr", params={"studentId": "abc"})
    assert r.headers["location"] == "/login?next=%2Finstructor%2Fstudent%2Fabc"


async def test_qr_staff_opens_student_page(backend):
    r = await _get(backend, INSTRUCTOR_EMAIL, "/qr", params={"studentId": "abc"})
    assert r.headers["location"] == "/instructor/student/abc"


async def test_qr_student_goes_to_dashboard(backend):
    r = await _get(backend, STUDENT_EMAIL, "/qr", params={"studentId": "student-2"})
    assert r.headers["location"] == "/dashboard"


async def test_admin_qr_generator(backend):
    r = await _get(backend, ADMIN_EMAIL, "/admin/qr", params={"student_id": "abc"})
    assert r.status_code == 200
    assert "<code>http://test/instructor/student/abc</code>" in r.text
    assert 'src="data:image/png;base64,' in r.text


async def test_admin_qr_blank_id(backend):
    r = await _get(backend, ADMIN_EMAIL, "/admin/qr", params={"student_id": " "})
    assert "Enter a student id." in r.text
    assert "data:image/png" not in r.text
