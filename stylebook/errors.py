"""Error kinds raised by the book model.

Each error also derives from the builtin exception it specializes, so callers
that already handle ``KeyError``/``ValueError``/``IndexError`` keep working.
"""


class BookError(Exception):
    """Base class for recoverable book editing errors."""


class EmptySelection(BookError, ValueError):
    """A style toggle was requested with a zero-length selection."""


class RangeOutOfBounds(BookError, IndexError):
    """A selection extends outside the fragment's text."""


class ChapterNotFound(BookError, KeyError):
    """No chapter with the requested id exists in the book."""

    def __init__(self, chapter_id: int) -> None:
        super().__init__(chapter_id)
        self.chapter_id = chapter_id

    def __str__(self) -> str:
        return f"Chapter {self.chapter_id} not found in book"


class StyleKeyInvalid(BookError, ValueError):
    """A style key does not match ``[a-z][a-z0-9-]*``."""


class MalformedMarkup(BookError, ValueError):
    """A selection cannot be resolved against the fragment's structure."""


class InvalidBook(BookError, ValueError):
    """Book data breaks the book's structure rules or cannot be read."""
