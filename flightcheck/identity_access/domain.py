"""
Identity domain constants and simple helpers.

Why:
- Centralize allowed roles to avoid drift between the role resolver, the page
  access policy and the navigation.
- A profile row without a role (or with an unknown one) is a student.
"""

from __future__ import annotations

# Keep roles minimal and explicit. Immutable to prevent accidental mutation.
ALLOWED_ROLES = frozenset({"student", "instructor", "admin"})
STAFF_ROLES = frozenset({"instructor", "admin"})
DEFAULT_ROLE = "student"


def normalize_role(value: object) -> str:
    role = str(value or "").strip().lower()
    return role if role in ALLOWED_ROLES else DEFAULT_ROLE


def is_staff(role: str | None) -> bool:
    return (role or "") in STAFF_ROLES


def home_path_for(role: str | None) -> str:
    """Landing page for a role: staff work from /instructor, students from /dashboard."""
    return "/instructor" if is_staff(role) else "/dashboard"


__all__ = ["ALLOWED_ROLES", "STAFF_ROLES", "DEFAULT_ROLE", "normalize_role", "is_staff", "home_path_for"]
