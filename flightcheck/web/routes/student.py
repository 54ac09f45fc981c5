"""
Student pages: the personal checklist dashboard.

Permissions: students only (page access policy); staff are redirected to
/instructor before this router runs.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from flightcheck.checklist.qr import build_student_url, render_qr_data_uri
from flightcheck.checklist.repo_supabase import RemoteDataError
from flightcheck.checklist.usecases import LoadChecklistInput, LoadChecklistUseCase
from ..components import ChecklistView, Component
from ..responses import alert, app_base, current_user, page, user_repo


student_router = APIRouter(tags=["Student"])
logger = logging.getLogger("flightcheck.web.student")

ROLE_LABELS = {"student": "Student", "instructor": "Instructor", "admin": "Admin"}


def _qr_panel(student_url: str) -> str:
    data_uri = render_qr_data_uri(student_url)
    url = Component.escape(student_url)
    return f"""
        <details class="card qr-panel">
            <summary>Show my QR code</summary>
            <p class="text-muted">Show this code to your instructor to open your checklist.</p>
            <img src="{data_uri}" alt="QR code linking to your checklist" class="qr-image" width="240" height="240">
            <div class="copy-row">
                <input type="text" id="student-url" value="{url}" readonly aria-label="Checklist link">
                <button type="button" class="btn btn-secondary btn-small" data-copy-target="student-url">Copy link</button>
            </div>
        </details>"""


@student_router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request):
    """Render the student's own checklist with progress, videos and QR code.

    Behavior:
        - Reads steps, categories, items and the student's completions
          concurrently; any read error replaces the checklist with an inline
          message (the rest of the page stays usable).
    """
    user = current_user(request) or {}
    user_id = user.get("id") or ""
    header = f"""
        <div class="page-header">
            <h1>My checklist</h1>
            <p class="text-muted">
                <span>Role: {Component.escape(ROLE_LABELS.get(user.get("role") or "", ""))}</span>
                <span>Name: {Component.escape(user.get("name") or "-")}</span>
            </p>
        </div>"""

    try:
        result = await LoadChecklistUseCase(user_repo(request)).execute(LoadChecklistInput(user_id=user_id))
        body = ChecklistView(result.steps, show_videos=True).render()
    except RemoteDataError as exc:
        logger.warning("Dashboard read failed: %s", exc.table or "unknown")
        body = alert(f"Could not load your checklist: {exc.message}")

    content = f"""
        <div class="container">
            {header}
            {_qr_panel(build_student_url(user_id, app_base(request)))}
            {body}
        </div>"""
    return page(request, "My checklist", content, scripts=("/static/js/copy.js",))
