"""Tests for the stylebook command line."""

import json

import pytest
from click.testing import CliRunner
from unittest.mock import Mock

from stylebook.cli import BOOK_SERVICE_KEY, _report, cli
from stylebook.repositories import JsonBookRepository
from stylebook.services import EditResult


@pytest.fixture
def runner():
    """Create a click test runner."""
    return CliRunner()


@pytest.fixture
def book_file(tmp_path):
    """Path of the book file used by the commands."""
    return tmp_path / "book.json"


@pytest.fixture
def invoke(runner, book_file):
    """Invoke the CLI against the temporary book file."""

    def _invoke(*args, input=None):
        return runner.invoke(cli, ["--book", str(book_file), *args], input=input)

    return _invoke


@pytest.fixture
def initialized(invoke):
    """Create a book titled "My Book"."""
    result = invoke("init", "--title", "My Book")
    assert result.exit_code == 0
    return invoke


def _load(book_file):
    return JsonBookRepository(book_file).load_book()


class TestInit:
    """Tests for the init command."""

    def test_creates_book(self, invoke, book_file):
        """Test init writes a new book file."""
        result = invoke("init", "--title", "My Book")

        assert result.exit_code == 0
        assert "Created new book: My Book" in result.output
        assert _load(book_file).title == "My Book"

    def test_refuses_to_overwrite(self, initialized):
        """Test init without --force keeps an existing book."""
        result = initialized("init", "--title", "Other")

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_force_overwrites(self, initialized, book_file):
        """Test init --force replaces an existing book."""
        result = initialized("init", "--title", "Other", "--force")

        assert result.exit_code == 0
        assert _load(book_file).title == "Other"


class TestChapterCommands:
    """Tests for chapter management commands."""

    def test_add_chapter(self, initialized, book_file):
        """Test adding a titled chapter."""
        result = initialized("add-chapter", "--title", "Intro")

        assert result.exit_code == 0
        assert "Created chapter 2: Intro" in result.output
        assert _load(book_file).chapter(2).title == "Intro"

    def test_delete_only_chapter(self, initialized):
        """Test deleting the only chapter fails."""
        result = initialized("delete-chapter", "1")

        assert result.exit_code == 1
        assert "Cannot delete the only chapter" in result.output

    def test_delete_chapter(self, initialized, book_file):
        """Test deleting one of several chapters."""
        initialized("add-chapter")

        result = initialized("delete-chapter", "1")

        assert result.exit_code == 0
        assert _load(book_file).chapter_ids == [2]

    def test_rename_chapter(self, initialized, book_file):
        """Test renaming a chapter."""
        result = initialized("rename-chapter", "1", "Prologue")

        assert result.exit_code == 0
        assert _load(book_file).chapter(1).title == "Prologue"

    def test_title(self, initialized, book_file):
        """Test changing the book title."""
        assert initialized("title", "Renamed").exit_code == 0
        assert _load(book_file).title == "Renamed"

    def test_info(self, initialized):
        """Test info lists the chapters."""
        initialized("add-chapter", "--title", "Intro")

        result = initialized("info")

        assert result.exit_code == 0
        assert "My Book" in result.output
        assert "Intro" in result.output

    def test_show_chapter_text(self, initialized):
        """Test show-chapter --text prints the character stream."""
        result = initialized("show-chapter", "1", "--text")

        assert result.exit_code == 0
        assert "Start writing your book here..." in result.output
        assert "(31 characters)" in result.output

    def test_show_missing_chapter(self, initialized):
        """Test showing an unknown chapter fails."""
        result = initialized("show-chapter", "9")

        assert result.exit_code == 1
        assert "Chapter 9 not found in book" in result.output

    def test_set_content_from_stdin(self, initialized, book_file):
        """Test replacing content from standard input."""
        result = initialized("set-content", "1", input="<p>Fresh text</p>")

        assert result.exit_code == 0
        assert _load(book_file).chapter(1).content.text == "Fresh text"


class TestToggle:
    """Tests for the toggle command."""

    def test_toggle_saves(self, initialized, book_file):
        """Test a toggle is saved and its diff printed."""
        result = initialized("toggle", "1", "0", "5", "highlight-box")

        assert result.exit_code == 0
        assert '<span class="highlight-box">Start</span>' in result.output
        content = _load(book_file).chapter(1).content.serialize()
        assert content == (
            '<p><span class="highlight-box">Start</span> writing your book here...</p>'
        )

    def test_toggle_dry_run(self, initialized, book_file):
        """Test a dry run leaves the file untouched."""
        before = book_file.read_text(encoding="utf-8")

        result = initialized("toggle", "1", "0", "5", "quote", "--dry-run")

        assert result.exit_code == 0
        assert "Dry run" in result.output
        assert book_file.read_text(encoding="utf-8") == before

    def test_toggle_empty_selection(self, initialized):
        """Test an empty selection exits with an error."""
        result = initialized("toggle", "1", "0", "0", "quote")

        assert result.exit_code == 1
        assert "Please select some text first" in result.output

    def test_insert_block(self, initialized, book_file):
        """Test inserting a style block."""
        result = initialized("insert-block", "1", "section-title")

        assert result.exit_code == 0
        content = _load(book_file).chapter(1).content.serialize()
        assert content.endswith('<h2 class="section-title">Your Section Title</h2>')


class TestStyleCommands:
    """Tests for style listing and overrides."""

    def test_styles_lists_defaults(self, initialized):
        """Test the built-in styles are listed."""
        result = initialized("styles")

        assert result.exit_code == 0
        assert "highlight-box" in result.output
        assert "default" in result.output

    def test_set_style_from_stdin(self, initialized, book_file):
        """Test adding a style from standard input."""
        result = initialized("set-style", "pull-quote", "--label", "Pull", input="color: red;\n")

        assert result.exit_code == 0
        rule = _load(book_file).styles.get("pull-quote")
        assert rule.label == "Pull"
        assert rule.declarations == "color: red;\n"
        assert "pull-quote" in initialized("styles").output

    def test_reset_style(self, initialized, book_file):
        """Test resetting a style override."""
        initialized("set-style", "quote", input="color: red;")

        result = initialized("reset-style", "quote")

        assert result.exit_code == 0
        assert not _load(book_file).styles.is_overridden("quote")

    def test_invalid_style_key(self, initialized):
        """Test a malformed key is rejected."""
        result = initialized("set-style", "Bad Key", input="color: red;")

        assert result.exit_code == 1


class TestExport:
    """Tests for export commands."""

    def test_export_screen(self, initialized, tmp_path):
        """Test exporting the screen document."""
        output = tmp_path / "out" / "book.html"

        result = initialized("export", "--output", str(output))

        assert result.exit_code == 0
        document = output.read_text(encoding="utf-8")
        assert document.count("<h1>My Book</h1>") == 1

    def test_export_print(self, initialized, tmp_path):
        """Test exporting the print document."""
        output = tmp_path / "book.print.html"

        result = initialized("export", "--profile", "print-pdf", "-o", str(output))

        assert result.exit_code == 0
        assert "@page" in output.read_text(encoding="utf-8")

    def test_export_default_location(self, initialized, tmp_path, monkeypatch):
        """Test exports default to the export directory and title."""
        monkeypatch.setenv("STYLEBOOK_EXPORT_DIR", str(tmp_path / "exports"))

        result = initialized("export")

        assert result.exit_code == 0
        assert (tmp_path / "exports" / "My Book.html").exists()

    def test_export_css_stdout(self, initialized):
        """Test the stylesheet is printed to standard output."""
        result = initialized("export-css")

        assert result.exit_code == 0
        assert ".quote {" in result.output


class TestImportMarkdown:
    """Tests for the import-markdown command."""

    def test_import_new_chapter(self, initialized, book_file, tmp_path):
        """Test a markdown file becomes a new chapter."""
        source = tmp_path / "voyage.md"
        source.write_text("# The Voyage\n\n> Onward.\n", encoding="utf-8")

        result = initialized("import-markdown", str(source))

        assert result.exit_code == 0
        assert "Imported chapter 2: The Voyage" in result.output
        content = _load(book_file).chapter(2).content.serialize()
        assert '<blockquote class="quote">' in content


class TestGroup:
    """Tests for group-level options."""

    def test_version(self, runner):
        """Test --version prints the program name."""
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "stylebook" in result.output

    def test_invalid_book_file(self, invoke, book_file):
        """Test a corrupt book file is reported."""
        book_file.write_text("{not json", encoding="utf-8")

        result = invoke("info")

        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    @pytest.mark.parametrize(
        "data",
        [
            {"styles": {"Bad Key": {"declarations": "color: red;"}}},
            {"chapters": [{"id": 1, "title": "A"}, {"id": 1, "title": "B"}]},
            {"chapters": [{"title": "No id"}]},
        ],
    )
    def test_invalid_book_data(self, invoke, book_file, data):
        """Test a well-formed JSON file holding a broken book is reported."""
        book_file.write_text(json.dumps(data), encoding="utf-8")

        result = invoke("info")

        assert result.exit_code == 1
        assert "Invalid book in" in result.output
        assert "Traceback" not in result.output

    def test_book_file_from_environment(self, runner, tmp_path, monkeypatch):
        """Test the book path can come from STYLEBOOK_FILE."""
        path = tmp_path / "env-book.json"
        monkeypatch.setenv("STYLEBOOK_FILE", str(path))

        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 0
        assert json.loads(path.read_text(encoding="utf-8"))["title"] == "Untitled Book"


class TestReport:
    """Tests for reporting edit results."""

    @pytest.fixture
    def ctx(self):
        """Create a click context stand-in holding a mock service."""
        ctx = Mock()
        ctx.obj = {BOOK_SERVICE_KEY: Mock()}
        return ctx

    def test_dry_run_not_saved(self, ctx):
        """Test a dry-run result is printed but not saved."""
        _report(ctx, EditResult(True, "Preview only", dry_run=True))

        ctx.obj[BOOK_SERVICE_KEY].save.assert_not_called()

    def test_message_does_not_decide_dry_run(self, ctx):
        """Test a kept edit is saved even if its message mentions a dry run."""
        _report(ctx, EditResult(True, "Dry run chapter renamed"))

        ctx.obj[BOOK_SERVICE_KEY].save.assert_called_once_with()
