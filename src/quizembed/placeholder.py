"""Construction of ``<quiz-placeholder>`` elements.

The placeholder carries everything the client-side quiz renderer needs
as ``quiz-*`` attributes. Values are HTML-escaped so they always stay
inside their double-quoted attribute.
"""

from bs4 import BeautifulSoup

from .config import PreprocessorConfig

PLACEHOLDER_TAG = "quiz-placeholder"


def escape_attribute(s: str) -> str:
    """Escape a string for a double-quoted HTML attribute value."""
    return (
        s.replace("&", "&amp;")
        .replace('"', "&quot;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )


class PlaceholderElement:
    """Accumulates attributes and renders the placeholder markup."""

    def __init__(self, tag: str = PLACEHOLDER_TAG):
        self.tag = tag
        self.attrs: dict[str, str] = {}

    def set(self, name: str, value: str) -> "PlaceholderElement":
        self.attrs[name] = value
        return self

    def render(self) -> str:
        """Render as a single-line element with escaped attribute values."""
        parts = [self.tag]
        parts.extend(
            f'{name}="{escape_attribute(value)}"' for name, value in self.attrs.items()
        )
        return f"<{' '.join(parts)}></{self.tag}>"

    def __str__(self) -> str:
        return self.render()


def build_placeholder(
    name: str,
    metadata: str,
    config: PreprocessorConfig | None = None,
) -> PlaceholderElement:
    """Build the placeholder for one quiz.

    Args:
        name: Logical quiz name.
        metadata: JSON-encoded quiz definition.
        config: Run configuration supplying the optional attributes.

    Returns:
        The placeholder element, ready to render.
    """
    config = config or PreprocessorConfig()

    element = PlaceholderElement()
    element.set("quiz-name", name)
    element.set("quiz-questions", metadata)
    if config.log_endpoint is not None:
        element.set("quiz-log-endpoint", config.log_endpoint)
    # Presence of the option enables fullscreen, whatever its value
    if config.fullscreen is not None:
        element.set("quiz-fullscreen", "")
    return element


def has_placeholders(markup: str) -> bool:
    """Quick check if markup contains placeholder elements."""
    return f"<{PLACEHOLDER_TAG}" in markup.lower()


def extract_placeholders(markup: str) -> list[dict[str, str]]:
    """Find placeholder elements in markup and return their attributes.

    Attribute values are returned unescaped.

    Args:
        markup: HTML or Markdown containing placeholder elements.

    Returns:
        One attribute dict per placeholder, in document order.
    """
    if not has_placeholders(markup):
        return []

    soup = BeautifulSoup(markup, "html.parser")
    return [dict(tag.attrs) for tag in soup.find_all(PLACEHOLDER_TAG)]
