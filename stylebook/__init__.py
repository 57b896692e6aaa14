"""stylebook - compose books from styled rich-text chapters and export them."""

from .domain import Book, Chapter, RichFragment, StyleRegistry, StyleRule, parse, serialize, toggle
from .errors import (
    BookError,
    ChapterNotFound,
    EmptySelection,
    InvalidBook,
    MalformedMarkup,
    RangeOutOfBounds,
    StyleKeyInvalid,
)
from .services import BookService, EditResult, ExportProfile, RenderService

__all__ = [
    "Book",
    "Chapter",
    "RichFragment",
    "StyleRegistry",
    "StyleRule",
    "parse",
    "serialize",
    "toggle",
    "BookError",
    "ChapterNotFound",
    "EmptySelection",
    "InvalidBook",
    "MalformedMarkup",
    "RangeOutOfBounds",
    "StyleKeyInvalid",
    "BookService",
    "EditResult",
    "ExportProfile",
    "RenderService",
]
