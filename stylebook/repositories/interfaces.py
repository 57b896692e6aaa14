"""Repository interfaces for book persistence."""

from typing import Optional, Protocol

from ..domain import Book


class IBookRepository(Protocol):
    """Loads and saves a whole Book value."""

    def load_book(self) -> Optional[Book]:
        """Return the stored book, or None if nothing has been saved yet."""
        ...

    def save_book(self, book: Book) -> None:
        """Persist the book, replacing any previous value."""
        ...
