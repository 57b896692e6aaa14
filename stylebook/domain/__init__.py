"""Domain layer for book representation."""

from .blocks import BLOCK_TEMPLATES, insert_style_block
from .book import Book, Chapter
from .fragment import (
    Element,
    Markup,
    RichFragment,
    SpanExtent,
    StyledSpan,
    TextRun,
    equivalent,
    normalize,
    parse,
    serialize,
)
from .styles import (
    DEFAULT_STYLE_KEYS,
    DEFAULT_STYLES,
    StyleRegistry,
    StyleRule,
    validate_style_key,
)
from .toggle import Selection, toggle, toggle_selection

__all__ = [
    "BLOCK_TEMPLATES",
    "insert_style_block",
    "Book",
    "Chapter",
    "Element",
    "Markup",
    "RichFragment",
    "SpanExtent",
    "StyledSpan",
    "TextRun",
    "equivalent",
    "normalize",
    "parse",
    "serialize",
    "DEFAULT_STYLE_KEYS",
    "DEFAULT_STYLES",
    "StyleRegistry",
    "StyleRule",
    "validate_style_key",
    "Selection",
    "toggle",
    "toggle_selection",
]
