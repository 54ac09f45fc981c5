"""
QR entry points: the `/qr` landing URL and the admin QR generator.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from flightcheck.checklist.qr import build_student_url, render_qr_data_uri, student_path
from flightcheck.identity_access.domain import is_staff
from ..access import login_url
from ..components import Component
from ..responses import alert, app_base, current_user, page, redirect


qr_router = APIRouter(tags=["QR"])


@qr_router.get("/qr")
async def qr_landing(request: Request, studentId: Optional[str] = None):
    """Route a scanned `/qr?studentId=` link according to who opened it.

    Behavior:
        - No id → /login.
        - Anonymous → /login with `next` pointing at the student page.
        - Instructor/admin → the student page.
        - Student → their own dashboard.
    """
    student_id = (studentId or "").strip()
    if not student_id:
        return redirect("/login")
    target = student_path(student_id)
    user = current_user(request)
    if not user:
        return redirect(login_url(target))
    if is_staff(user.get("role")):
        return redirect(target)
    return redirect("/dashboard")


@qr_router.get("/admin/qr", response_class=HTMLResponse)
async def admin_qr(request: Request, student_id: Optional[str] = None):
    """Generate a printable QR code for any student id.

    Permissions: admin (page access policy).
    """
    sid = (student_id or "").strip()
    if sid:
        url = build_student_url(sid, app_base(request))
        result = f"""
            <section class="card qr-result">
                <img src="{render_qr_data_uri(url)}" alt="QR code for student {Component.escape(sid)}" class="qr-image" width="240" height="240">
                <p><code>{Component.escape(url)}</code></p>
            </section>"""
    elif student_id is not None:
        result = alert("Enter a student id.", kind="info")
    else:
        result = ""
    content = f"""
        <div class="container">
            <h1>QR generator</h1>
            <form method="get" action="/admin/qr" class="search-form">
                <label for="student_id" class="sr-only">Student id</label>
                <input id="student_id" name="student_id" type="text" value="{Component.escape(sid)}" placeholder="Student id">
                <button type="submit" class="btn btn-primary">Generate</button>
            </form>
            {result}
        </div>"""
    return page(request, "QR generator", content)
