"""Shared checklist fixture data: two steps, three categories, four items."""
from __future__ import annotations

import copy


STUDENT_ID = "student-1"
INSTRUCTOR_ID = "instr-1"
ADMIN_ID = "admin-1"

STUDENT_EMAIL = "student@example.com"
INSTRUCTOR_EMAIL = "instructor@example.com"
ADMIN_EMAIL = "admin@example.com"

_TABLES = {
    "steps": [
        {"id": "s1", "name": "Preflight", "sort_order": 1},
        {"id": "s2", "name": "Flight", "sort_order": 2},
    ],
    "categories": [
        {"id": "c1", "step_id": "s1", "name": "Documents", "sort_order": 1},
        {"id": "c2", "step_id": "s1", "name": "Walkaround", "sort_order": 2},
        {"id": "c3", "step_id": "s2", "name": "Takeoff", "sort_order": 1},
    ],
    "check_items": [
        {"id": "i1", "category_id": "c1", "title": "Pilot license", "sort_order": 1, "video_url": "https://youtu.be/abc123"},
        {"id": "i2", "category_id": "c1", "title": "Medical certificate", "sort_order": 2, "video_url": None},
        {"id": "i3", "category_id": "c1", "title": "Logbook", "sort_order": 3, "video_url": "https://vimeo.com/1"},
        {"id": "i4", "category_id": "c2", "title": "Fuel check", "sort_order": 1, "video_url": None},
    ],
    "user_item_checks": [
        {
            "user_id": STUDENT_ID,
            "item_id": "i1",
            "is_cleared": True,
            "cleared_at": "2024-05-01T10:00:00+00:00",
            "cleared_by": INSTRUCTOR_ID,
        },
    ],
    "profiles": [
        {"user_id": STUDENT_ID, "role": "student", "name_romaji": "Ryo Tanaka", "username": "ryo"},
        {"user_id": "student-2", "role": "student", "name_romaji": "Ryoko Sato", "username": "rsato"},
        {"user_id": "student-3", "role": "student", "name_romaji": "Mika Ito", "username": "mika"},
        {"user_id": INSTRUCTOR_ID, "role": "instructor", "name_romaji": "Ken Mori", "username": "ken"},
        {"user_id": "instr-ryo", "role": "instructor", "name_romaji": "Ryo Instructor", "username": "ryoi"},
        {"user_id": ADMIN_ID, "role": "admin", "name_romaji": "Aya Admin", "username": "aya"},
    ],
}


def seed_tables() -> dict:
    return copy.deepcopy(_TABLES)


def seed_users(fake) -> None:
    fake.auth.add_user(STUDENT_ID, STUDENT_EMAIL, "student-pw", {"name_romaji": "Ryo Tanaka"})
    fake.auth.add_user(INSTRUCTOR_ID, INSTRUCTOR_EMAIL, "instructor-pw")
    fake.auth.add_user(ADMIN_ID, ADMIN_EMAIL, "admin-pw")
