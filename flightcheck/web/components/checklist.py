"""
Checklist rendering: Step → collapsible Category (with progress) → Item rows.

Used by the student dashboard (read-only, with videos) and the instructor's
student page (toggle buttons, last-update actor).
"""

from datetime import datetime, timezone
from typing import List, Optional

from flightcheck.checklist.qr import encode_component
from flightcheck.checklist.video import to_embed_url, video_hint
from flightcheck.checklist.view import UNKNOWN_ACTOR, ViewCategory, ViewItem, ViewStep
from .base import Component


def format_timestamp(value: Optional[str]) -> str:
    """ISO timestamp → "YYYY-MM-DD HH:MM UTC"; unparseable values pass through."""
    if not value:
        return ""
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%d %H:%M UTC")


def toggle_action(student_id: str, item_id: str) -> str:
    return f"/instructor/student/{encode_component(student_id)}/items/{encode_component(item_id)}/toggle"


class ChecklistView(Component):
    """Nested checklist for one student."""

    def __init__(
        self,
        steps: List[ViewStep],
        *,
        student_id: Optional[str] = None,
        editable: bool = False,
        show_videos: bool = False,
        show_actor: bool = False,
    ):
        self.steps = steps
        self.student_id = student_id
        self.editable = editable and bool(student_id)
        self.show_videos = show_videos
        self.show_actor = show_actor

    def render(self) -> str:
        if not self.steps:
            return '<p class="empty-state">No steps have been set up yet.</p>'
        return f'<div class="checklist">{"".join(self._render_step(s) for s in self.steps)}</div>'

    def _render_step(self, vstep: ViewStep) -> str:
        if vstep.categories:
            body = "".join(self._render_category(c) for c in vstep.categories)
        else:
            body = '<p class="empty-state">No categories in this step yet.</p>'
        return f"""
        <section class="step card" id="step-{self.escape(vstep.step.id)}">
            <h2>{self.escape(vstep.step.name)}</h2>
            {body}
        </section>"""

    def _render_category(self, vcat: ViewCategory) -> str:
        total = len(vcat.items)
        if vcat.items:
            rows = f'<ul class="item-list">{"".join(self._render_item(i) for i in vcat.items)}</ul>'
        else:
            rows = '<p class="empty-state">No items in this category yet.</p>'
        badge_cls = self.classes("progress-badge", complete=vcat.progress_pct == 100)
        return f"""
            <details {self.attributes(class_="category", id=f"category-{vcat.category.id}")}>
                <summary>
                    <span class="category-name">{self.escape(vcat.category.name)}</span>
                    <span class="{badge_cls}">{vcat.progress_pct}%</span>
                    <span class="text-muted">{vcat.cleared_count}/{total}</span>
                </summary>
                <progress max="100" value="{vcat.progress_pct}" aria-label="Progress">{vcat.progress_pct}%</progress>
                {rows}
            </details>"""

    def _render_item(self, vitem: ViewItem) -> str:
        item = vitem.item
        cleared = vitem.is_cleared
        status = "Cleared" if cleared else "Not cleared"
        status_html = f'<span class="{self.classes("status", cleared=cleared)}">{status}</span>'
        meta = self._render_meta(vitem)
        toggle = self._render_toggle(vitem) if self.editable else ""
        video = self._render_video(item.video_url) if self.show_videos else ""
        return f"""
                    <li {self.attributes(class_=self.classes("check-item", cleared=cleared), id=f"item-{item.id}")}>
                        <div class="item-main">
                            {status_html}
                            <span class="item-title">{self.escape(item.title)}</span>
                            {meta}
                        </div>
                        {toggle}
                        {video}
                    </li>"""

    def _render_meta(self, vitem: ViewItem) -> str:
        rec = vitem.record
        when = format_timestamp(rec.cleared_at) if rec is not None else ""
        if not self.show_actor:
            # Read-only view: the last write time, whether it cleared or un-cleared the item.
            return f'<span class="item-meta">Last update: {self.escape(when or "-")}</span>'
        if rec is None:
            return ""
        actor = vitem.actor_name or UNKNOWN_ACTOR
        return f'<span class="item-meta">Last update: {self.escape(actor)} / {self.escape(when)}</span>'

    def _render_toggle(self, vitem: ViewItem) -> str:
        next_value = "0" if vitem.is_cleared else "1"
        label = "Mark not cleared" if vitem.is_cleared else "Mark cleared"
        btn_cls = self.classes("btn", "btn-small", btn_secondary=vitem.is_cleared, btn_primary=not vitem.is_cleared)
        action = toggle_action(self.student_id or "", vitem.item.id)
        return f"""
                        <form method="post" action="{self.escape(action)}" class="toggle-form">
                            <input type="hidden" name="cleared" value="{next_value}">
                            <button type="submit" class="{btn_cls}">{label}</button>
                        </form>"""

    def _render_video(self, raw: Optional[str]) -> str:
        embed = to_embed_url(raw)
        if embed is None:
            return f'<p class="video-hint text-muted">{self.escape(video_hint(raw))}</p>'
        return f"""
                        <details class="video">
                            <summary>Watch video</summary>
                            <div class="video-frame">
                                <iframe src="{self.escape(embed)}" title="Training video" loading="lazy"
                                    allow="encrypted-media; picture-in-picture" allowfullscreen></iframe>
                            </div>
                        </details>"""
