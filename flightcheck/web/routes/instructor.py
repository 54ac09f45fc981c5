"""
Instructor pages: home, student search, QR scan, student checklist and the
completion toggle.

Permissions: instructors and admins (page access policy). Row-level security
in the hosted store is the second line: writes by anyone else fail there.
"""
from __future__ import annotations

from typing import Optional
import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse

from flightcheck.checklist.qr import encode_component, extract_student_id, student_path
from flightcheck.checklist.repo_supabase import RemoteDataError
from flightcheck.checklist.toggle import CompletionState, ToggleCompletionUseCase, ToggleInput, ToggleStatus
from flightcheck.checklist.usecases import LoadChecklistInput, LoadChecklistUseCase
from flightcheck.identity_access.directory import MAX_RESULTS, search_students
from ..components import ChecklistView, Component
from ..responses import PRIVATE_NO_STORE, alert, current_user, page, redirect, user_client, user_repo
from .security import _is_same_origin


instructor_router = APIRouter(tags=["Instructor"])
logger = logging.getLogger("flightcheck.web.instructor")

SCAN_HINT = "Enter a URL or student id."
SEARCH_HINT = "Enter part of a name or username."
ROLE_LABELS = {"instructor": "Instructor", "admin": "Admin"}


@instructor_router.get("/instructor", response_class=HTMLResponse)
async def instructor_home(request: Request):
    user = current_user(request) or {}
    content = f"""
        <div class="container">
            <h1>Instructor</h1>
            <p class="text-muted">
                <span>Signed in as {Component.escape(user.get("email") or "")}</span>
                <span>Role: {Component.escape(ROLE_LABELS.get(user.get("role") or "", ""))}</span>
            </p>
            <div class="action-grid">
                <a href="/instructor/search" class="card action-card"><h2>Find student</h2><p>Search by name or username.</p></a>
                <a href="/instructor/scan" class="card action-card"><h2>Scan QR code</h2><p>Open a student's checklist from their QR code.</p></a>
            </div>
        </div>"""
    return page(request, "Instructor", content)


# --- Search ------------------------------------------------------------------------


def _search_form(q: str) -> str:
    return f"""
            <form method="get" action="/instructor/search" class="search-form" role="search">
                <label for="q" class="sr-only">Name or username</label>
                <input id="q" name="q" type="search" value="{Component.escape(q)}" placeholder="Name or username" autofocus>
                <button type="submit" class="btn btn-primary">Search</button>
            </form>"""


def _search_results(profiles) -> str:
    if not profiles:
        return '<p class="empty-state">No matching students.</p>'
    rows = []
    for p in profiles:
        href = student_path(p.user_id)
        rows.append(
            f"""
                <li class="result-row">
                    <div>
                        <strong>{Component.escape(p.display_name or "(no name)")}</strong>
                        <span class="text-muted">{Component.escape(p.username or "")}</span>
                        <code class="text-muted">{Component.escape(p.user_id)}</code>
                    </div>
                    <a href="{Component.escape(href)}" class="btn btn-secondary btn-small">Open</a>
                </li>"""
        )
    return f'<ul class="result-list">{"".join(rows)}</ul>'


@instructor_router.get("/instructor/search", response_class=HTMLResponse)
async def instructor_search(request: Request, q: Optional[str] = None):
    """Search students by display name or username (max 30 results).

    Behavior:
        - No `q` → form only; blank `q` → inline hint, no remote call.
        - Store errors are shown inline.
    """
    keyword = (q or "").strip()
    if q is None:
        body = ""
    elif not keyword:
        body = alert(SEARCH_HINT, kind="info")
    else:
        try:
            profiles = await asyncio.to_thread(search_students, user_client(request), keyword, limit=MAX_RESULTS)
            body = _search_results(profiles)
        except RemoteDataError as exc:
            logger.warning("Student search failed: %s", exc.__class__.__name__)
            body = alert(f"Search failed: {exc.message}")
    content = f"""
        <div class="container">
            <h1>Find student</h1>
            {_search_form(q or "")}
            {body}
        </div>"""
    return page(request, "Find student", content)


# --- Scan ----------------------------------------------------------------------------


def _scan_page(request: Request, *, text: str = "", hint: str = "") -> HTMLResponse:
    content = f"""
        <div class="container">
            <h1>Scan QR code</h1>
            <section class="card scan-panel" data-scan-panel>
                <video id="scan-video" playsinline muted hidden></video>
                <p id="scan-status" class="text-muted" role="status" aria-live="polite"></p>
                <div class="button-row">
                    <button type="button" class="btn btn-primary" data-scan-start>Start camera</button>
                    <button type="button" class="btn btn-secondary" data-scan-stop hidden>Stop camera</button>
                </div>
            </section>
            <section class="card">
                <h2>Manual entry</h2>
                {alert(hint, kind="info") if hint else ""}
                <form method="post" action="/instructor/scan" id="scan-form" class="form-stack">
                    <label for="scan-text">Student link or id</label>
                    <input id="scan-text" name="text" type="text" value="{Component.escape(text)}" placeholder="{Component.escape(SCAN_HINT)}" autocomplete="off">
                    <button type="submit" class="btn btn-primary">Open</button>
                </form>
            </section>
        </div>"""
    return page(request, "Scan QR code", content, scripts=("/static/js/scan.js",))


def _scan_result(request: Request, text: Optional[str]):
    if text is None:
        return _scan_page(request)
    student_id = extract_student_id(text)
    if not student_id:
        return _scan_page(request, text=text, hint=SCAN_HINT)
    return redirect(student_path(student_id), status_code=303)


@instructor_router.get("/instructor/scan", response_class=HTMLResponse)
async def instructor_scan(request: Request, text: Optional[str] = None):
    return _scan_result(request, text)


@instructor_router.post("/instructor/scan", response_class=HTMLResponse)
async def instructor_scan_submit(request: Request):
    """Decode a scanned or typed value and open that student's checklist."""
    form = await request.form()
    raw = form.get("text")
    return _scan_result(request, raw if isinstance(raw, str) else "")


# --- Student checklist -------------------------------------------------------------


async def _student_name(request: Request, student_id: str) -> str:
    try:
        profile = await asyncio.to_thread(user_repo(request).get_profile, student_id)
    except RemoteDataError as exc:
        logger.info("Student name lookup failed: %s", exc.__class__.__name__)
        return "-"
    return (profile.display_name if profile else None) or "-"


async def _render_student_page(
    request: Request,
    student_id: str,
    *,
    state: Optional[CompletionState] = None,
    error: str = "",
) -> HTMLResponse:
    name, loaded = await asyncio.gather(
        _student_name(request, student_id),
        _load_student_checklist(request, student_id, state),
    )
    if isinstance(loaded, RemoteDataError):
        body = alert(f"Could not load the checklist: {loaded.message}") + '<p><a href="/instructor">Back to instructor home</a></p>'
    else:
        body = ChecklistView(loaded.steps, student_id=student_id, editable=True, show_actor=True).render()
    content = f"""
        <div class="container">
            <div class="page-header">
                <h1>{Component.escape(name)}</h1>
                <p class="text-muted">Student id: <code>{Component.escape(student_id)}</code></p>
            </div>
            {alert(error) if error else ""}
            {body}
        </div>"""
    return page(request, "Student checklist", content)


async def _load_student_checklist(request: Request, student_id: str, state: Optional[CompletionState]):
    try:
        return await LoadChecklistUseCase(user_repo(request)).execute(
            LoadChecklistInput(user_id=student_id, with_actor_names=True, state=state)
        )
    except RemoteDataError as exc:
        logger.warning("Student checklist read failed: %s", exc.table or "unknown")
        return exc


@instructor_router.get("/instructor/student/{student_id}", response_class=HTMLResponse)
async def instructor_student(request: Request, student_id: str):
    """Render a student's checklist with last-update actor and toggle buttons."""
    return await _render_student_page(request, student_id)


def _parse_cleared(value: object) -> Optional[bool]:
    text = str(value or "").strip().lower()
    if text in ("1", "true", "on", "yes"):
        return True
    if text in ("0", "false", "off", "no"):
        return False
    return None


@instructor_router.post("/instructor/student/{student_id}/items/{item_id}/toggle")
async def instructor_toggle(request: Request, student_id: str, item_id: str):
    """Set one item's completion for a student on the instructor's authority.

    Behavior:
        - Cross-origin posts are rejected (403).
        - The write is an upsert keyed by (student, item) recording the
          instructor as actor and now as the timestamp.
        - Success → 303 back to the student page at the item.
        - Failure → the page is rendered from the pre-toggle state with the
          error inline; nothing is retried.
    Permissions:
        Instructor or admin (page access policy).
    """
    if not _is_same_origin(request):
        return JSONResponse({"error": "csrf_violation"}, status_code=403, headers=dict(PRIVATE_NO_STORE))
    form = await request.form()
    cleared = _parse_cleared(form.get("cleared"))
    if cleared is None:
        return JSONResponse({"error": "invalid_cleared"}, status_code=400, headers=dict(PRIVATE_NO_STORE))

    actor_id = (current_user(request) or {}).get("id") or ""
    repo = user_repo(request)
    try:
        current = await asyncio.to_thread(repo.list_completions, student_id)
    except RemoteDataError as exc:
        return await _render_student_page(request, student_id, error=f"Could not update the item: {exc.message}")

    toggle = await asyncio.to_thread(
        ToggleCompletionUseCase(repo).execute,
        ToggleInput(
            student_id=student_id,
            item_id=item_id,
            cleared=cleared,
            actor_id=actor_id,
            state=CompletionState(current),
        ),
    )
    if toggle.status is ToggleStatus.ROLLED_BACK:
        logger.warning("Completion toggle rolled back")
        return await _render_student_page(
            request, student_id, state=toggle.state, error=f"Could not update the item: {toggle.error}"
        )
    return redirect(f"{student_path(student_id)}#item-{encode_component(item_id)}", status_code=303)
