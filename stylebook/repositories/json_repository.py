"""JSON file repository for books.

Stores the book's structural JSON image in a single file. Older files
without styles, or with ``{name, css, preview}`` style records, load as well.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from ..domain import Book

logger = logging.getLogger(__name__)


class JsonBookRepository:
    """Book repository backed by one JSON file."""

    def __init__(self, path: Path) -> None:
        """Initialize the repository.

        Args:
            path: Location of the book's JSON file.
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load_book(self) -> Optional[Book]:
        """Load the book from disk.

        Returns:
            The stored Book, or None if the file doesn't exist.

        Raises:
            json.JSONDecodeError: If the file is not valid JSON.
            BookError: If the data does not describe a valid book.
        """
        if not self._path.exists():
            logger.debug("No book file at %s", self._path)
            return None

        with open(self._path, encoding="utf-8") as f:
            data = json.load(f)
        book = Book.from_dict(data)
        logger.info("Loaded %r from %s", book.title, self._path)
        return book

    def save_book(self, book: Book) -> None:
        """Write the book to disk, creating parent directories as needed."""
        self._path.parent.mkdir(parents=True, exist_ok=True)

        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(book.to_dict(), f, indent=2, ensure_ascii=False)
            f.write("\n")  # Add trailing newline
        logger.info("Saved %r to %s", book.title, self._path)
