# FlightCheck Component System
# Pure Python Components for HTML generation

from .base import Component
from .layout import Layout
from .navigation import Navigation
from .checklist import ChecklistView, format_timestamp, toggle_action

__all__ = [
    "Component",
    "Layout",
    "Navigation",
    "ChecklistView",
    "format_timestamp",
    "toggle_action",
]
