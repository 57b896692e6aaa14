"""Command-line interface for stylebook.

Provides a Click-based CLI for composing styled books and exporting them.
This is the single entry point for all command-line operations.
"""

import json
import logging
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import StyleBookConfig
from .errors import BookError
from .repositories import JsonBookRepository
from .services import BookService, EditResult, ExportProfile

# Get version from package metadata
try:
    __version__ = get_version("stylebook")
except PackageNotFoundError:
    __version__ = "0.0.0"  # Fallback version

logger = logging.getLogger(__name__)

console = Console()

# Context keys
BOOK_SERVICE_KEY = "book_service"
BOOK_FILE_KEY = "book_file"


def configure_logging(verbose: bool, quiet: bool) -> None:
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = StyleBookConfig.get_log_level()
    logging.basicConfig(
        level=level,
        format=StyleBookConfig.LOG_FORMAT,
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def get_book_service(ctx: click.Context) -> BookService:
    """Get the book service from click context.

    Args:
        ctx: The click context.

    Returns:
        The BookService with the book already loaded.
    """
    return ctx.obj[BOOK_SERVICE_KEY]


def _report(ctx: click.Context, result: EditResult, show_diff: bool = False) -> None:
    """Echo an edit result, saving the book on success and exiting on failure."""
    if not result.success:
        click.echo(f"Error: {result.message}", err=True)
        sys.exit(1)
    if show_diff and result.diff:
        click.echo(result.diff)
    if result.dry_run:
        click.echo(result.message)
        return
    get_book_service(ctx).save()
    click.echo(result.message)


@click.group()
@click.option(
    "--book",
    "-b",
    type=click.Path(dir_okay=False),
    help="Path to the book file (default: $STYLEBOOK_FILE or book.json).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--quiet", "-q", is_flag=True, help="Only log warnings and errors.")
@click.version_option(version=__version__, prog_name="stylebook")
@click.pass_context
def cli(ctx: click.Context, book: str | None, verbose: bool, quiet: bool) -> None:
    """stylebook - Compose books with semantic styles and export them.

    Chapters are stored as HTML fragments in a single JSON book file.
    Select text by character offsets and toggle named styles on it, then
    export the book as static HTML or as a print-ready document.
    """
    configure_logging(verbose, quiet)
    ctx.ensure_object(dict)
    book_file = Path(book) if book else StyleBookConfig.get_book_file()
    service = BookService(JsonBookRepository(book_file))
    try:
        service.load()
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {book_file}: {e}")
    except BookError as e:
        raise click.ClickException(f"Invalid book in {book_file}: {e}")
    ctx.obj[BOOK_SERVICE_KEY] = service
    ctx.obj[BOOK_FILE_KEY] = book_file


@cli.command()
@click.option("--title", "-t", default=StyleBookConfig.DEFAULT_BOOK_TITLE, help="The book title.")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing book file.")
@click.pass_context
def init(ctx: click.Context, title: str, force: bool) -> None:
    """Initialize a new book file with one empty chapter."""
    book_file = ctx.obj[BOOK_FILE_KEY]
    if book_file.exists() and not force:
        click.echo(f"Error: A book already exists at {book_file}", err=True)
        sys.exit(1)

    service = BookService(JsonBookRepository(book_file))
    service.retitle_book(title)
    try:
        service.save()
    except PermissionError as e:
        click.echo(f"Error: Permission denied - {e}", err=True)
        sys.exit(1)
    ctx.obj[BOOK_SERVICE_KEY] = service
    click.echo(f"Created new book: {title}")
    click.echo(f"  Location: {book_file}")
    click.echo("\nNext steps:")
    click.echo("  stylebook add-chapter -t 'Introduction'")


@cli.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Show book information.

    Displays the book title and the chapter list with word counts.
    """
    book = get_book_service(ctx).book
    colors = StyleBookConfig.COLORS

    console.print(f"\n[{colors['header']}]{book.title}[/]")
    console.print(f"Location: {ctx.obj[BOOK_FILE_KEY]}")

    table = Table(title=f"Chapters ({len(book.chapters)})")
    table.add_column("Id", justify="right")
    table.add_column("Title", style=colors["chapter_title"])
    table.add_column("Words", justify="right")
    for chapter in book.chapters:
        table.add_row(str(chapter.id), chapter.title, str(chapter.word_count))
    console.print(table)


@cli.command()
@click.argument("title")
@click.pass_context
def title(ctx: click.Context, title: str) -> None:
    """Set the book title."""
    _report(ctx, get_book_service(ctx).retitle_book(title))


@cli.command("add-chapter")
@click.option("--title", "-t", default=None, help="The chapter title (default: 'Chapter N').")
@click.pass_context
def add_chapter(ctx: click.Context, title: str | None) -> None:
    """Append a new chapter to the book."""
    _report(ctx, get_book_service(ctx).add_chapter(title))


@cli.command("delete-chapter")
@click.argument("chapter_id", type=int)
@click.pass_context
def delete_chapter(ctx: click.Context, chapter_id: int) -> None:
    """Delete a chapter. The last remaining chapter cannot be deleted."""
    _report(ctx, get_book_service(ctx).delete_chapter(chapter_id))


@cli.command("rename-chapter")
@click.argument("chapter_id", type=int)
@click.argument("title")
@click.pass_context
def rename_chapter(ctx: click.Context, chapter_id: int, title: str) -> None:
    """Rename a chapter."""
    _report(ctx, get_book_service(ctx).rename_chapter(chapter_id, title))


@cli.command("set-content")
@click.argument("chapter_id", type=int)
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--dry-run", is_flag=True, help="Show the diff without saving.")
@click.pass_context
def set_content(ctx: click.Context, chapter_id: int, source, dry_run: bool) -> None:
    """Replace a chapter's HTML content.

    SOURCE is a file holding the new markup (default: stdin).
    """
    result = get_book_service(ctx).update_chapter_content(
        chapter_id, source.read(), dry_run=dry_run
    )
    _report(ctx, result, show_diff=dry_run)


@cli.command("show-chapter")
@click.argument("chapter_id", type=int)
@click.option("--text", "plain", is_flag=True, help="Print the plain text with offsets ruler.")
@click.pass_context
def show_chapter(ctx: click.Context, chapter_id: int, plain: bool) -> None:
    """Print a chapter's content.

    Use --text to see the character stream that toggle offsets refer to.
    """
    service = get_book_service(ctx)
    if not service.book.has_chapter(chapter_id):
        click.echo(f"Error: Chapter {chapter_id} not found in book", err=True)
        sys.exit(1)
    chapter = service.book.chapter(chapter_id)
    click.echo(f"--- Chapter {chapter.id}: {chapter.title} ---")
    if plain:
        click.echo(chapter.content.text)
        click.echo(f"\n({chapter.content.length} characters)")
    else:
        click.echo(chapter.content.serialize())


@cli.command()
@click.argument("chapter_id", type=int)
@click.argument("start", type=int)
@click.argument("length", type=int)
@click.argument("style")
@click.option("--dry-run", is_flag=True, help="Show the diff without saving.")
@click.pass_context
def toggle(
    ctx: click.Context,
    chapter_id: int,
    start: int,
    length: int,
    style: str,
    dry_run: bool,
) -> None:
    """Toggle STYLE on a text selection.

    The selection is LENGTH characters starting at offset START of the
    chapter's text (see `show-chapter --text`). Applies the style, or removes
    it when the selection is already inside a span of that style.
    """
    result = get_book_service(ctx).toggle_style(
        chapter_id, start, length, style, dry_run=dry_run
    )
    _report(ctx, result, show_diff=True)


@cli.command("insert-block")
@click.argument("chapter_id", type=int)
@click.argument("style")
@click.pass_context
def insert_block(ctx: click.Context, chapter_id: int, style: str) -> None:
    """Append a sample block styled with STYLE to a chapter."""
    _report(ctx, get_book_service(ctx).insert_style_block(chapter_id, style))


@cli.command()
@click.pass_context
def styles(ctx: click.Context) -> None:
    """List the book's effective styles."""
    registry = get_book_service(ctx).book.styles
    colors = StyleBookConfig.COLORS

    table = Table(title="Styles")
    table.add_column("Key", style=colors["style_key"])
    table.add_column("Label")
    table.add_column("Source")
    for rule in registry.rules():
        if registry.is_overridden(rule.key):
            source = f"[{colors['overridden']}]custom[/]"
        else:
            source = "default"
        table.add_row(rule.key, rule.label, source)
    console.print(table)


@cli.command("set-style")
@click.argument("key")
@click.argument("declarations", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--label", "-l", default=None, help="Human-readable style name.")
@click.pass_context
def set_style(ctx: click.Context, key: str, declarations, label: str | None) -> None:
    """Override the CSS declarations of style KEY.

    DECLARATIONS is a file with one `property: value;` per line (default: stdin).
    """
    _report(ctx, get_book_service(ctx).set_style(key, declarations.read(), label))


@cli.command("reset-style")
@click.argument("key")
@click.pass_context
def reset_style(ctx: click.Context, key: str) -> None:
    """Drop the override of style KEY so the default applies again."""
    _report(ctx, get_book_service(ctx).reset_style(key))


@cli.command()
@click.option(
    "--profile",
    "-p",
    type=click.Choice([p.value for p in ExportProfile]),
    default=ExportProfile.SCREEN_HTML.value,
    show_default=True,
    help="Export target.",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Output file.")
@click.pass_context
def export(ctx: click.Context, profile: str, output: str | None) -> None:
    """Export the book as a self-contained HTML document.

    The print-pdf profile includes page rules and the book's styles; open
    the file in a browser and print it to PDF.
    """
    service = get_book_service(ctx)
    export_profile = ExportProfile(profile)
    document = service.export(export_profile)
    if output is None:
        output_path = StyleBookConfig.get_export_dir() / service.export_filename(export_profile)
    else:
        output_path = Path(output)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(document, encoding="utf-8")
    except OSError as e:
        click.echo(f"Error writing {output_path}: {e}", err=True)
        sys.exit(1)
    click.echo(f"Exported {export_profile.value} to {output_path}")


@cli.command("export-css")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Output file (default: stdout).")
@click.pass_context
def export_css(ctx: click.Context, output: str | None) -> None:
    """Export the book's effective styles as a CSS file."""
    css = get_book_service(ctx).export_css()
    if output is None:
        click.echo(css, nl=False)
        return
    Path(output).write_text(css, encoding="utf-8")
    click.echo(f"Wrote styles to {output}")


@cli.command("import-markdown")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--chapter", "-c", "chapter_id", type=int, default=None, help="Replace this chapter's content instead of adding a chapter.")
@click.option("--title", "-t", default=None, help="Title for the new chapter.")
@click.pass_context
def import_markdown(ctx: click.Context, source, chapter_id: int | None, title: str | None) -> None:
    """Import a Markdown file as chapter content.

    By default the file becomes a new chapter titled after its leading
    `# Heading`.
    """
    result = get_book_service(ctx).import_markdown(source.read(), chapter_id, title)
    _report(ctx, result)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
