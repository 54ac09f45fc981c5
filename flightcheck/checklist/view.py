"""
View aggregator: flat checklist rows → nested Step → Category → Item tree.

Why:
    Both the student dashboard and the instructor's student page render the
    same nested view. Keeping the aggregation pure makes it trivial to test and
    keeps the page handlers free of grouping logic.

Behavior:
    - Input order is preserved at every level (the store already sorted by
      `sort_order`; ties keep the store's order). Nothing is re-sorted here.
    - A category's progress is round(cleared / total * 100), clamped to
      [0, 100]; an empty category reports 0.
    - Items without a completion record count as not cleared.
    - Categories whose step, or items whose category, is not in the input are
      dropped.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
import math

from .models import Category, CheckItem, CompletionRecord, Step


UNKNOWN_ACTOR = "Unknown"


@dataclass(frozen=True)
class ViewItem:
    item: CheckItem
    record: Optional[CompletionRecord] = None
    actor_name: Optional[str] = None

    @property
    def is_cleared(self) -> bool:
        return bool(self.record and self.record.is_cleared)


@dataclass(frozen=True)
class ViewCategory:
    category: Category
    items: List[ViewItem] = field(default_factory=list)
    progress_pct: int = 0

    @property
    def cleared_count(self) -> int:
        return sum(1 for i in self.items if i.is_cleared)


@dataclass(frozen=True)
class ViewStep:
    step: Step
    categories: List[ViewCategory] = field(default_factory=list)


def clamp_pct(value: float) -> int:
    """Round half up and clamp to [0, 100]; NaN counts as 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number):
        return 0
    number = max(0.0, min(100.0, number))
    return int(Decimal(str(number)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def category_progress(items: Sequence[ViewItem]) -> int:
    total = len(items)
    if total == 0:
        return 0
    cleared = sum(1 for i in items if i.is_cleared)
    return clamp_pct(cleared / total * 100)


def build_checklist_view(
    steps: Iterable[Step],
    categories: Iterable[Category],
    items: Iterable[CheckItem],
    records: Iterable[CompletionRecord],
    actor_names: Optional[Mapping[str, str]] = None,
) -> List[ViewStep]:
    """Assemble the nested checklist view for one student.

    `records` are that student's completion rows; the last row per item wins.
    When `actor_names` is given, each cleared-by id is mapped to a display
    name (falling back to "Unknown"); otherwise `actor_name` stays None.
    """
    by_item: Dict[str, CompletionRecord] = {r.item_id: r for r in records}

    items_by_category: Dict[str, List[ViewItem]] = {}
    for item in items:
        record = by_item.get(item.id)
        actor = None
        if actor_names is not None and record is not None and record.cleared_by:
            actor = actor_names.get(record.cleared_by) or UNKNOWN_ACTOR
        items_by_category.setdefault(item.category_id, []).append(
            ViewItem(item=item, record=record, actor_name=actor)
        )

    categories_by_step: Dict[str, List[ViewCategory]] = {}
    for cat in categories:
        cat_items = items_by_category.get(cat.id, [])
        categories_by_step.setdefault(cat.step_id, []).append(
            ViewCategory(category=cat, items=cat_items, progress_pct=category_progress(cat_items))
        )

    return [ViewStep(step=s, categories=categories_by_step.get(s.id, [])) for s in steps]
