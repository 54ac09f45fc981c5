"""
Base Component Class for FlightCheck UI Components

Pure Python HTML generation: every component renders a string and escapes
untrusted values itself, so no template engine is involved.
"""

from typing import Optional, Any
import html


class Component:
    """Base class for all UI components

    Benefits:
    - Easy testing with unit tests (render() is a pure function of state)
    - Automatic HTML escaping via `escape()` and `attributes()`
    """

    def render(self) -> str:
        """Render the component as an HTML string"""
        raise NotImplementedError("Subclasses must implement render()")

    @staticmethod
    def escape(text: Optional[Any]) -> str:
        """Escape HTML entities; None becomes an empty string."""
        return html.escape(str(text)) if text is not None else ""

    @staticmethod
    def classes(*args: str, **conditionals: bool) -> str:
        """Build a CSS class string with conditional classes

        Example:
            >>> Component.classes("badge", cleared=True, pending=False)
            "badge cleared"
        """
        classes = [a for a in args if a]
        classes.extend(key.replace("_", "-") for key, value in conditionals.items() if value)
        return " ".join(classes)

    @staticmethod
    def attributes(**attrs: Any) -> str:
        """Build HTML attributes from keyword arguments

        Example:
            >>> Component.attributes(id="item-1", data_item_id="1", open=True)
            'id="item-1" data-item-id="1" open'
        """
        result = []
        for key, value in attrs.items():
            # Trailing underscore for reserved names: class_ -> class, for_ -> for
            if key.endswith("_"):
                key = key[:-1]
            else:
                key = key.replace("_", "-")

            if value is True:
                result.append(key)
            elif value is not False and value is not None:
                result.append(f'{key}="{html.escape(str(value))}"')

        return " ".join(result)
