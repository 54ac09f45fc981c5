"""
Navigation Component for FlightCheck

Role-based navigation that adapts to the user type (student/instructor/admin).
"""

from typing import Optional, Dict, Any, List, Tuple
from .base import Component


NavLink = Tuple[str, str]  # (href, label)

STUDENT_LINKS: List[NavLink] = [("/dashboard", "My checklist")]
INSTRUCTOR_LINKS: List[NavLink] = [
    ("/instructor", "Instructor home"),
    ("/instructor/search", "Find student"),
    ("/instructor/scan", "Scan QR"),
]
ADMIN_LINKS: List[NavLink] = INSTRUCTOR_LINKS + [("/admin/qr", "QR generator")]

ROLE_LABELS = {"student": "Student", "instructor": "Instructor", "admin": "Admin"}


class Navigation(Component):
    """Top navigation bar with role-based links"""

    def __init__(self, user: Optional[Dict[str, Any]] = None, current_path: str = "/"):
        """
        Args:
            user: User dict with 'role' and 'name' keys (optional)
            current_path: The current URL path for active link highlighting
        """
        self.user = user
        self.current_path = current_path

    def _links(self) -> List[NavLink]:
        role = (self.user or {}).get("role")
        if role == "admin":
            return ADMIN_LINKS
        if role == "instructor":
            return INSTRUCTOR_LINKS
        return STUDENT_LINKS

    def _active_href(self, links: List[NavLink]) -> Optional[str]:
        # Best prefix match so /instructor/search does not also light up /instructor
        best = None
        for href, _ in links:
            if self.current_path == href or self.current_path.startswith(href.rstrip("/") + "/"):
                if best is None or len(href) > len(best):
                    best = href
        return best

    def render(self) -> str:
        if not self.user:
            return self._render_public_nav()

        links = self._links()
        active = self._active_href(links)
        items = []
        for href, label in links:
            current = ' aria-current="page"' if href == active else ""
            items.append(
                f'<li><a href="{self.escape(href)}" class="{self.classes("nav-link", active=href == active)}"{current}>'
                f"{self.escape(label)}</a></li>"
            )
        name = self.user.get("name") or self.user.get("email") or ""
        role_label = ROLE_LABELS.get(self.user.get("role") or "", "")
        return f"""
    <header class="topbar" role="banner">
        <a href="/" class="brand">FlightCheck</a>
        <nav aria-label="Main navigation">
            <ul class="nav-list">{''.join(items)}</ul>
        </nav>
        <div class="user-info">
            <span class="user-name">{self.escape(name)}</span>
            <span class="user-role">{self.escape(role_label)}</span>
            <a href="/logout" class="btn btn-secondary btn-small">Log out</a>
        </div>
    </header>"""

    def _render_public_nav(self) -> str:
        return """
    <header class="topbar" role="banner">
        <a href="/" class="brand">FlightCheck</a>
        <nav aria-label="Main navigation">
            <ul class="nav-list"><li><a href="/login" class="nav-link">Log in</a></li></ul>
        </nav>
    </header>"""
