"""
Checklist domain records.

Rows come from the hosted tables `steps`, `categories`, `check_items`,
`user_item_checks` and `profiles`. Each dataclass parses its own row so the
adapter stays a thin query layer.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from flightcheck.identity_access.domain import normalize_role


def _opt_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


@dataclass(frozen=True)
class Step:
    id: str
    name: str
    sort_order: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Step":
        return cls(id=str(row["id"]), name=str(row.get("name") or ""), sort_order=_opt_int(row.get("sort_order")))


@dataclass(frozen=True)
class Category:
    id: str
    step_id: str
    name: str
    sort_order: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Category":
        return cls(
            id=str(row["id"]),
            step_id=str(row["step_id"]),
            name=str(row.get("name") or ""),
            sort_order=_opt_int(row.get("sort_order")),
        )


@dataclass(frozen=True)
class CheckItem:
    id: str
    category_id: str
    title: str
    sort_order: Optional[int] = None
    video_url: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CheckItem":
        return cls(
            id=str(row["id"]),
            category_id=str(row["category_id"]),
            title=str(row.get("title") or ""),
            sort_order=_opt_int(row.get("sort_order")),
            video_url=_opt_str(row.get("video_url")),
        )


@dataclass(frozen=True)
class CompletionRecord:
    """Completion status of one item for one student.

    `cleared_at` stays the ISO-8601 string the store returns; `cleared_by` is
    the user id of the instructor/admin who last wrote the row.
    """

    user_id: str
    item_id: str
    is_cleared: bool
    cleared_at: Optional[str] = None
    cleared_by: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CompletionRecord":
        return cls(
            user_id=str(row["user_id"]),
            item_id=str(row["item_id"]),
            is_cleared=bool(row.get("is_cleared")),
            cleared_at=_opt_str(row.get("cleared_at")),
            cleared_by=_opt_str(row.get("cleared_by")),
        )

    def to_row(self) -> dict:
        return {
            "user_id": self.user_id,
            "item_id": self.item_id,
            "is_cleared": self.is_cleared,
            "cleared_at": self.cleared_at,
            "cleared_by": self.cleared_by,
        }


@dataclass(frozen=True)
class Profile:
    user_id: str
    role: str = "student"
    display_name: Optional[str] = None
    username: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Profile":
        return cls(
            user_id=str(row["user_id"]),
            role=normalize_role(row.get("role")),
            display_name=_opt_str(row.get("name_romaji")),
            username=_opt_str(row.get("username")),
        )
