"""Render service implementation.

Assembles a Book into a complete, self-contained HTML document. The
screen profile uses a fixed typographic stylesheet; the print profile adds
page rules and the book's own style registry so a host print engine can
produce a PDF.
"""

import html
import logging
from enum import Enum

from ..config import StyleBookConfig
from ..domain import Book, Chapter

logger = logging.getLogger(__name__)


class ExportProfile(str, Enum):
    """Export target variants."""

    SCREEN_HTML = "screen-html"
    PRINT_PDF = "print-pdf"


# Document shell shared by both profiles
HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="{lang}">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
{stylesheet}
    </style>
</head>
<body>
    <h1>{title}</h1>
{chapters}
</body>
</html>
"""

CHAPTER_TEMPLATE = """    <div class="chapter">
        <h2>{title}</h2>
        {content}
    </div>"""

SCREEN_STYLESHEET = """        body { font-family: 'Georgia', serif; max-width: 800px; margin: 0 auto; padding: 20px; line-height: 1.6; }
        h1 { text-align: center; border-bottom: 2px solid #333; padding-bottom: 10px; }
        .chapter { margin: 40px 0; }
        .chapter h2 { color: #333; border-left: 4px solid #007acc; padding-left: 10px; }"""

# Classes that render as boxes and must not be split across pages
PRINT_BOX_CLASSES = (
    "highlight-box",
    "example-box",
    "warning-box",
    "exercise-box",
    "code-block",
    "quote",
)

PRINT_BASE_STYLESHEET = """        @page {{
            size: A4;
            margin: 0.5in;
        }}

        body {{
            font-family: 'Georgia', 'Times New Roman', serif;
            line-height: 1.7;
            color: #2c3e50;
            background: white;
            -webkit-print-color-adjust: exact;
            print-color-adjust: exact;
        }}

        h1 {{
            text-align: center;
            page-break-after: avoid;
        }}

        .chapter {{
            margin-bottom: 2.5rem;
            page-break-inside: avoid;
        }}

        .chapter h2,
        .section-title,
        .chapter-title {{
            page-break-after: avoid;
        }}

        .section {{
            margin-bottom: 2.5rem;
            page-break-inside: avoid;
        }}

        p {{
            margin-bottom: 1.2rem;
            text-align: justify;
        }}

        {box_spans} {{
            display: inline-block;
        }}

        @media print {{
            .chapter,
            .section,
            {box_selectors} {{ page-break-inside: avoid; }}
            .section-title {{ page-break-after: avoid; }}
        }}"""


class RenderService:
    """Service for rendering books to complete HTML documents.

    Titles and chapter content are interpolated verbatim: authors may type
    markup into titles and it is rendered as such. Pass ``escape_titles`` to
    treat titles as plain text instead.
    """

    def __init__(
        self,
        language: str = StyleBookConfig.DEFAULT_LANGUAGE,
        escape_titles: bool = False,
    ) -> None:
        """Initialize the render service.

        Args:
            language: Value of the document's ``lang`` attribute.
            escape_titles: Escape book and chapter titles before insertion.
        """
        self._language = language
        self._escape_titles = escape_titles

    def render(self, book: Book, profile: ExportProfile) -> str:
        """Render a book as a complete document.

        Args:
            book: The book to render.
            profile: Which export target to produce.

        Returns:
            The document string.
        """
        profile = ExportProfile(profile)
        if profile is ExportProfile.PRINT_PDF:
            stylesheet = self._print_stylesheet(book)
        else:
            stylesheet = SCREEN_STYLESHEET

        chapters = "\n".join(self._render_chapter(ch) for ch in book.chapters)
        document = HTML_TEMPLATE.format(
            lang=self._language,
            title=self._title(book.title),
            stylesheet=stylesheet,
            chapters=chapters,
        )
        logger.info(
            "Rendered %s export of %r (%d chapters)",
            profile.value,
            book.title,
            len(book.chapters),
        )
        return document

    def render_css(self, book: Book) -> str:
        """Render the book's effective style registry as a stylesheet."""
        return book.styles.to_css() + "\n"

    def suggested_filename(self, book: Book, profile: ExportProfile) -> str:
        """Name the export target collaborator should write the document to."""
        name = book.title.strip() or StyleBookConfig.DEFAULT_BOOK_TITLE
        name = name.replace("/", "-").replace("\\", "-")
        if ExportProfile(profile) is ExportProfile.PRINT_PDF:
            return f"{name}.print.html"
        return f"{name}.html"

    def _render_chapter(self, chapter: Chapter) -> str:
        return CHAPTER_TEMPLATE.format(
            title=self._title(chapter.title),
            content=chapter.content.serialize(),
        )

    def _title(self, title: str) -> str:
        if self._escape_titles:
            return html.escape(title)
        return title

    def _print_stylesheet(self, book: Book) -> str:
        """Fixed print base followed by the effective registry rules."""
        base = PRINT_BASE_STYLESHEET.format(
            box_spans=",\n        ".join(f"span.{cls}" for cls in PRINT_BOX_CLASSES),
            box_selectors=",\n            ".join(f".{cls}" for cls in PRINT_BOX_CLASSES),
        )
        rules = [_indent(rule.to_css(), 8) for rule in book.styles.rules()]
        return "\n\n".join([base] + rules)


def _indent(text: str, width: int) -> str:
    pad = " " * width
    return "\n".join(pad + line for line in text.split("\n"))
