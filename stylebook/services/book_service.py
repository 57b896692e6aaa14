"""Book editing service.

Owns the current Book value and the active chapter for one editing session.
Each edit builds a new Book and swaps it in only when the edit succeeds, so
failed edits leave the session untouched. Recoverable errors come back as
EditResult values instead of exceptions.
"""

import difflib
import logging
from typing import Callable, Optional

from ..domain import Book, Chapter, insert_style_block, parse
from ..errors import BookError, StyleKeyInvalid
from ..repositories.interfaces import IBookRepository
from .import_service import ImportService
from .render_service import ExportProfile, RenderService

logger = logging.getLogger(__name__)


class EditResult:
    """Result of an editing operation with optional diff preview."""

    def __init__(
        self,
        success: bool,
        message: str,
        chapter_id: int | None = None,
        diff: str | None = None,
        dry_run: bool = False,
    ):
        self.success = success
        self.message = message
        self.chapter_id = chapter_id
        self.diff = diff
        self.dry_run = dry_run

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {"success": self.success, "message": self.message}
        if self.chapter_id is not None:
            result["chapter_id"] = self.chapter_id
        if self.diff:
            result["diff"] = self.diff
        if self.dry_run:
            result["dry_run"] = True
        return result


class BookService:
    """Service for editing one book in a session.

    Uses constructor injection for the repository and the render/import
    services, enabling easy testing.
    """

    def __init__(
        self,
        repository: IBookRepository,
        render_service: Optional[RenderService] = None,
        import_service: Optional[ImportService] = None,
    ) -> None:
        """Initialize the book service with required dependencies.

        Args:
            repository: Persistence collaborator for the book.
            render_service: Service for exporting documents.
            import_service: Service for converting Markdown.
        """
        self._repository = repository
        self._render_service = render_service or RenderService()
        self._import_service = import_service or ImportService()
        self._book = Book()
        self._active_chapter_id = self._book.first_chapter_id

    @property
    def book(self) -> Book:
        return self._book

    @property
    def active_chapter_id(self) -> int:
        return self._active_chapter_id

    @property
    def active_chapter(self) -> Chapter:
        return self._book.chapter(self._active_chapter_id)

    def load(self) -> Book:
        """Load the stored book, starting a new one if nothing is stored."""
        stored = self._repository.load_book()
        self._book = stored if stored is not None else Book()
        self._active_chapter_id = self._book.first_chapter_id
        return self._book

    def save(self) -> None:
        self._repository.save_book(self._book)

    def select_chapter(self, chapter_id: int) -> EditResult:
        if not self._book.has_chapter(chapter_id):
            return EditResult(False, f"Chapter {chapter_id} not found in book")
        self._active_chapter_id = chapter_id
        return EditResult(True, f"Selected chapter {chapter_id}", chapter_id)

    def retitle_book(self, title: str) -> EditResult:
        return self._apply(lambda book: book.retitle(title), f"Renamed book to {title}")

    def add_chapter(self, title: Optional[str] = None) -> EditResult:
        """Append a chapter and make it the active one."""
        book, chapter_id = self._book.add_chapter(title)
        self._book = book
        self._active_chapter_id = chapter_id
        chapter = book.chapter(chapter_id)
        logger.info("Added chapter %d: %s", chapter_id, chapter.title)
        return EditResult(True, f"Created chapter {chapter_id}: {chapter.title}", chapter_id)

    def delete_chapter(self, chapter_id: int) -> EditResult:
        """Delete a chapter, re-selecting the first one if it was active."""
        if len(self._book.chapters) == 1:
            return EditResult(False, "Cannot delete the only chapter", chapter_id)
        result = self._apply(
            lambda book: book.delete_chapter(chapter_id),
            f"Deleted chapter {chapter_id}",
            chapter_id,
        )
        if result and self._active_chapter_id == chapter_id:
            self._active_chapter_id = self._book.first_chapter_id
        return result

    def rename_chapter(self, chapter_id: int, title: str) -> EditResult:
        return self._apply(
            lambda book: book.rename_chapter(chapter_id, title),
            f"Renamed chapter {chapter_id} to {title}",
            chapter_id,
        )

    def update_chapter_content(
        self, chapter_id: int, markup: str, dry_run: bool = False
    ) -> EditResult:
        """Replace a chapter's content with new markup from the editing surface."""
        return self._edit_content(
            chapter_id,
            lambda book: book.set_chapter_content(
                chapter_id, parse(markup, book.style_keys)
            ),
            f"Updated chapter {chapter_id}",
            dry_run,
        )

    def toggle_style(
        self,
        chapter_id: int,
        start: int,
        length: int,
        style_key: str,
        dry_run: bool = False,
    ) -> EditResult:
        """Toggle a style over a selection in a chapter.

        Args:
            chapter_id: The chapter to edit.
            start: Offset of the selection in the chapter's text.
            length: Length of the selection.
            style_key: The style to apply or remove.
            dry_run: If True, return the diff without keeping the change.

        Returns:
            EditResult with success status, message, and diff of the markup.
        """
        return self._edit_content(
            chapter_id,
            lambda book: book.toggle_style(chapter_id, start, length, style_key),
            f"Toggled {style_key} on chapter {chapter_id} ({start}+{length})",
            dry_run,
        )

    def insert_style_block(self, chapter_id: int, style_key: str) -> EditResult:
        """Append a sample block for a style to a chapter."""

        def insert(book: Book) -> Book:
            if style_key not in book.styles:
                raise StyleKeyInvalid(f"Unknown style key: {style_key!r}")
            content = insert_style_block(book.chapter(chapter_id).content, style_key)
            return book.set_chapter_content(chapter_id, content)

        return self._edit_content(
            chapter_id, insert, f"Inserted {style_key} block into chapter {chapter_id}"
        )

    def set_style(
        self,
        key: str,
        declarations: str,
        label: Optional[str] = None,
        preview_markup: Optional[str] = None,
    ) -> EditResult:
        return self._apply(
            lambda book: book.set_style(key, declarations, label, preview_markup),
            f"Updated style {key}",
        )

    def reset_style(self, key: str) -> EditResult:
        return self._apply(lambda book: book.reset_style(key), f"Reset style {key}")

    def import_markdown(
        self,
        text: str,
        chapter_id: Optional[int] = None,
        title: Optional[str] = None,
    ) -> EditResult:
        """Import Markdown into a chapter.

        With no ``chapter_id`` a new chapter is appended; its title comes
        from ``title`` or the document's leading ``# Heading``.
        """
        heading, body = self._import_service.split_title(text)
        if chapter_id is None:
            fragment = self._import_service.markdown_to_fragment(
                body, self._book.style_keys
            )
            book, new_id = self._book.add_chapter(title or heading, fragment)
            self._book = book
            self._active_chapter_id = new_id
            logger.info("Imported markdown as chapter %d", new_id)
            return EditResult(
                True, f"Imported chapter {new_id}: {book.chapter(new_id).title}", new_id
            )

        fragment = self._import_service.markdown_to_fragment(text, self._book.style_keys)
        return self._edit_content(
            chapter_id,
            lambda book: book.set_chapter_content(chapter_id, fragment),
            f"Imported markdown into chapter {chapter_id}",
        )

    def export(self, profile: ExportProfile) -> str:
        return self._render_service.render(self._book, profile)

    def export_css(self) -> str:
        return self._render_service.render_css(self._book)

    def export_filename(self, profile: ExportProfile) -> str:
        return self._render_service.suggested_filename(self._book, profile)

    def _apply(
        self,
        operation: Callable[[Book], Book],
        message: str,
        chapter_id: int | None = None,
    ) -> EditResult:
        try:
            book = operation(self._book)
        except BookError as e:
            logger.warning("%s", e)
            return EditResult(False, str(e), chapter_id)
        self._book = book
        logger.info(message)
        return EditResult(True, message, chapter_id)

    def _edit_content(
        self,
        chapter_id: int,
        operation: Callable[[Book], Book],
        message: str,
        dry_run: bool = False,
    ) -> EditResult:
        try:
            original = self._book.chapter(chapter_id).content.serialize() + "\n"
            book = operation(self._book)
        except BookError as e:
            logger.warning("%s", e)
            return EditResult(False, str(e), chapter_id)

        modified = book.chapter(chapter_id).content.serialize() + "\n"
        diff = self._generate_diff(original, modified, f"chapter-{chapter_id}.html")
        if dry_run:
            return EditResult(
                True, "Dry run - no changes kept", chapter_id, diff, dry_run=True
            )

        self._book = book
        logger.info(message)
        return EditResult(True, message, chapter_id, diff)

    def _generate_diff(
        self, original: str, modified: str, file_name: str = "chapter.html"
    ) -> str:
        """Generate a unified diff between original and modified content.

        Args:
            original: Original content.
            modified: Modified content.
            file_name: Name to show in diff header.

        Returns:
            Unified diff as string.
        """
        original_lines = original.splitlines(keepends=True)
        modified_lines = modified.splitlines(keepends=True)

        diff = difflib.unified_diff(
            original_lines,
            modified_lines,
            fromfile=f"a/{file_name}",
            tofile=f"b/{file_name}",
        )
        return "".join(diff)
