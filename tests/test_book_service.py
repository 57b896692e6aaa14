"""Tests for the book editing service.

Tests edit results, diffs, dry runs, active chapter tracking and the
delegation to repository, render and import collaborators.
"""

import pytest
from unittest.mock import Mock

from stylebook.domain import Book, Chapter, StyledSpan, parse
from stylebook.services import BookService, EditResult, ExportProfile


@pytest.fixture
def mock_repo():
    """Create a mock book repository with nothing stored."""
    repo = Mock()
    repo.load_book.return_value = None
    return repo


@pytest.fixture
def service(mock_repo):
    """Create a BookService with a loaded default book."""
    service = BookService(mock_repo)
    service.load()
    return service


@pytest.fixture
def stored_book():
    """Create a three-chapter book."""
    return Book(
        title="Stored",
        chapters=(
            Chapter(1, "One", parse("<p>Hello world</p>")),
            Chapter(2, "Two", parse("<p>Second</p>")),
            Chapter(3, "Three", parse("<p>Third</p>")),
        ),
    )


class TestEditResult:
    """Tests for EditResult class."""

    def test_to_dict_minimal(self):
        """Test EditResult to_dict with minimal fields."""
        d = EditResult(success=True, message="Done").to_dict()

        assert d == {"success": True, "message": "Done"}

    def test_to_dict_full(self):
        """Test EditResult to_dict with all fields."""
        d = EditResult(True, "Done", chapter_id=2, diff="-old\n+new").to_dict()

        assert d["chapter_id"] == 2
        assert d["diff"] == "-old\n+new"

    def test_truthiness(self):
        """Test an EditResult is truthy only on success."""
        assert EditResult(True, "ok")
        assert not EditResult(False, "failed")

    def test_dry_run_flag(self):
        """Test a dry run is flagged explicitly, not by its message."""
        assert not EditResult(True, "Dry run of sorts").dry_run
        assert EditResult(True, "Kept", dry_run=True).to_dict()["dry_run"] is True
        assert "dry_run" not in EditResult(True, "Kept").to_dict()


class TestLoadSave:
    """Tests for loading and saving through the repository."""

    def test_load_without_stored_book(self, mock_repo):
        """Test a new book is started when nothing is stored."""
        service = BookService(mock_repo)

        book = service.load()

        assert book == Book()
        assert service.active_chapter_id == 1

    def test_load_stored_book(self, mock_repo, stored_book):
        """Test the stored book is loaded and its first chapter selected."""
        mock_repo.load_book.return_value = stored_book
        service = BookService(mock_repo)

        service.load()

        assert service.book is stored_book
        assert service.active_chapter.title == "One"

    def test_save(self, service, mock_repo):
        """Test saving hands the current book to the repository."""
        service.retitle_book("Saved")
        service.save()

        mock_repo.save_book.assert_called_once_with(service.book)
        assert mock_repo.save_book.call_args[0][0].title == "Saved"


class TestChapterManagement:
    """Tests for chapter operations and the active chapter."""

    def test_add_chapter_selects_it(self, service):
        """Test a new chapter becomes the active chapter."""
        result = service.add_chapter()

        assert result.success
        assert result.chapter_id == 2
        assert result.message == "Created chapter 2: Chapter 2"
        assert service.active_chapter_id == 2

    def test_delete_only_chapter_fails(self, service):
        """Test the last chapter cannot be deleted."""
        result = service.delete_chapter(1)

        assert not result.success
        assert "only chapter" in result.message
        assert service.book.chapter_ids == [1]

    def test_delete_active_reselects_first(self, mock_repo, stored_book):
        """Test deleting the active chapter selects the first remaining one."""
        mock_repo.load_book.return_value = stored_book
        service = BookService(mock_repo)
        service.load()
        service.select_chapter(1)

        result = service.delete_chapter(1)

        assert result.success
        assert service.active_chapter_id == 2

    def test_delete_inactive_keeps_selection(self, mock_repo, stored_book):
        """Test deleting another chapter leaves the selection alone."""
        mock_repo.load_book.return_value = stored_book
        service = BookService(mock_repo)
        service.load()
        service.select_chapter(3)

        service.delete_chapter(2)

        assert service.active_chapter_id == 3

    def test_delete_missing_chapter(self, mock_repo, stored_book):
        """Test deleting an unknown chapter fails with a message."""
        mock_repo.load_book.return_value = stored_book
        service = BookService(mock_repo)
        service.load()

        result = service.delete_chapter(9)

        assert not result.success
        assert result.message == "Chapter 9 not found in book"

    def test_select_missing_chapter(self, service):
        """Test selecting an unknown chapter fails."""
        result = service.select_chapter(5)

        assert not result.success
        assert service.active_chapter_id == 1

    def test_rename_chapter(self, service):
        """Test renaming a chapter."""
        result = service.rename_chapter(1, "Prologue")

        assert result.success
        assert service.book.chapter(1).title == "Prologue"

    def test_retitle_book(self, service):
        """Test renaming the book."""
        assert service.retitle_book("New Title").success
        assert service.book.title == "New Title"


class TestContentEditing:
    """Tests for toggling styles and replacing content."""

    def test_toggle_returns_diff(self, service):
        """Test a toggle keeps the change and reports a diff."""
        result = service.toggle_style(1, 0, 5, "highlight-box")

        assert result.success
        assert not result.dry_run
        assert "-<p>Start writing your book here...</p>" in result.diff
        assert '+<p><span class="highlight-box">Start</span> writing' in result.diff
        assert result.diff.startswith("--- a/chapter-1.html")
        assert service.book.chapter(1).content.spans()[0].style_key == "highlight-box"

    def test_toggle_dry_run(self, service):
        """Test a dry run reports the diff but keeps the book."""
        before = service.book

        result = service.toggle_style(1, 0, 5, "quote", dry_run=True)

        assert result.success
        assert result.message == "Dry run - no changes kept"
        assert result.diff
        assert result.dry_run
        assert service.book is before

    def test_toggle_empty_selection(self, service):
        """Test an empty selection is reported, not raised."""
        before = service.book

        result = service.toggle_style(1, 3, 0, "quote")

        assert not result.success
        assert result.message == "Please select some text first to apply the style."
        assert service.book is before

    @pytest.mark.parametrize(
        "chapter_id,start,length,key",
        [
            (1, 0, 500, "quote"),
            (1, 0, 5, "pull-quote"),
            (1, 0, 5, "Bad Key"),
            (7, 0, 5, "quote"),
        ],
    )
    def test_toggle_errors_reported(self, service, chapter_id, start, length, key):
        """Test toggle errors come back as failed results."""
        before = service.book

        result = service.toggle_style(chapter_id, start, length, key)

        assert not result.success
        assert result.diff is None
        assert service.book is before

    def test_update_content_uses_book_styles(self, service):
        """Test new markup is parsed against the book's style keys."""
        service.set_style("pull-quote", "color: red;")

        result = service.update_chapter_content(1, '<span class="pull-quote">x</span>')

        assert result.success
        node = service.book.chapter(1).content.nodes[0]
        assert isinstance(node, StyledSpan)
        assert node.style_key == "pull-quote"

    def test_update_content_dry_run(self, service):
        """Test a content dry run leaves the chapter unchanged."""
        result = service.update_chapter_content(1, "<p>Other</p>", dry_run=True)

        assert result.dry_run
        assert "+<p>Other</p>" in result.diff
        assert service.book.chapter(1).content.text == "Start writing your book here..."

    def test_insert_style_block(self, service):
        """Test a sample block is appended to the chapter."""
        result = service.insert_style_block(1, "quote")

        assert result.success
        assert service.book.chapter(1).content.serialize().endswith(
            '<blockquote class="quote">Your inspirational quote goes here.</blockquote>'
        )

    def test_insert_unknown_style_block(self, service):
        """Test inserting a block for an unknown style fails."""
        result = service.insert_style_block(1, "pull-quote")

        assert not result.success


class TestStyles:
    """Tests for style overrides through the service."""

    def test_set_and_reset_style(self, service):
        """Test overriding and resetting a style."""
        assert service.set_style("quote", "color: blue;", label="Epigraph").success
        assert service.book.styles.get("quote").label == "Epigraph"

        assert service.reset_style("quote").success
        assert not service.book.styles.is_overridden("quote")

    def test_set_invalid_style(self, service):
        """Test a malformed key is reported."""
        result = service.set_style("Bad Key", "color: red;")

        assert not result.success


class TestImportAndExport:
    """Tests for markdown import and document export."""

    def test_import_markdown_as_new_chapter(self, service):
        """Test importing adds a chapter titled after the heading."""
        result = service.import_markdown("# The Voyage\n\nSome *text* here.")

        assert result.success
        chapter = service.book.chapter(result.chapter_id)
        assert chapter.title == "The Voyage"
        assert "<em>text</em>" in chapter.content.serialize()
        assert service.active_chapter_id == result.chapter_id

    def test_import_markdown_explicit_title(self, service):
        """Test an explicit title wins over the heading."""
        result = service.import_markdown("# Heading\n\nBody", title="Chosen")

        assert service.book.chapter(result.chapter_id).title == "Chosen"

    def test_import_markdown_into_chapter(self, service):
        """Test importing into an existing chapter replaces its content."""
        result = service.import_markdown("Plain paragraph.", chapter_id=1)

        assert result.success
        assert service.book.chapter(1).content.serialize() == "<p>Plain paragraph.</p>"
        assert service.book.chapter_ids == [1]

    def test_export_delegates_to_render_service(self, mock_repo):
        """Test exports are produced by the injected render service."""
        render_service = Mock()
        render_service.render.return_value = "<html></html>"
        service = BookService(mock_repo, render_service=render_service)
        service.load()

        document = service.export(ExportProfile.PRINT_PDF)

        assert document == "<html></html>"
        render_service.render.assert_called_once_with(service.book, ExportProfile.PRINT_PDF)

    def test_export_real_document(self, service):
        """Test the default render service produces a document."""
        document = service.export(ExportProfile.SCREEN_HTML)

        assert "<h1>Untitled Book</h1>" in document
        assert service.export_filename(ExportProfile.SCREEN_HTML) == "Untitled Book.html"
        assert ".quote {" in service.export_css()
