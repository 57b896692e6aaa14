"""Markdown import service.

Converts Markdown drafts into chapter fragments using the markdown library
with pymdown-extensions, tagging block elements with the book's semantic
classes so they pick up the registry styles on print export.
"""

import logging
import re
from typing import Iterable, Optional
from xml.etree.ElementTree import Element

import markdown
from markdown.extensions import Extension
from markdown.extensions.fenced_code import FencedCodeExtension
from markdown.extensions.tables import TableExtension
from markdown.postprocessors import Postprocessor
from markdown.treeprocessors import Treeprocessor

from ..domain import RichFragment, parse

logger = logging.getLogger(__name__)

# Markdown block tag -> semantic style class
SEMANTIC_CLASSES = {
    "pre": "code-block",
    "blockquote": "quote",
}

# Bare opening tags left in raw HTML (fenced code is stashed, not parsed)
BARE_SEMANTIC_TAG = re.compile(r"<(pre|blockquote)>")


class SemanticClassProcessor(Treeprocessor):
    """Add semantic style classes to rendered block elements."""

    def run(self, root: Element) -> None:
        for element in root.iter():
            style_class = SEMANTIC_CLASSES.get(element.tag)
            if style_class is None:
                continue
            classes = element.get("class", "").split()
            if style_class not in classes:
                element.set("class", " ".join(classes + [style_class]))


class SemanticClassPostprocessor(Postprocessor):
    """Tag blocks that reached the output as raw HTML, such as fenced code."""

    def run(self, text: str) -> str:
        return BARE_SEMANTIC_TAG.sub(
            lambda m: f'<{m.group(1)} class="{SEMANTIC_CLASSES[m.group(1)]}">', text
        )


class SemanticClassExtension(Extension):
    def extendMarkdown(self, md: markdown.Markdown) -> None:
        md.treeprocessors.register(
            SemanticClassProcessor(md), "stylebook_semantic_classes", 5
        )
        # Must run after raw HTML placeholders are restored (priority 30)
        md.postprocessors.register(
            SemanticClassPostprocessor(md), "stylebook_semantic_raw", 5
        )


class ImportService:
    """Service for turning Markdown text into chapter content."""

    def __init__(self) -> None:
        self._md = self._create_markdown_processor()

    def _create_markdown_processor(self) -> markdown.Markdown:
        """Create configured markdown processor with extensions."""
        extensions = [
            TableExtension(),
            FencedCodeExtension(),
            "footnotes",
            "pymdownx.tasklist",
            SemanticClassExtension(),
        ]
        extension_configs = {
            "pymdownx.tasklist": {"custom_checkbox": True},
        }
        return markdown.Markdown(
            extensions=extensions,
            extension_configs=extension_configs,
            output_format="html5",
        )

    def markdown_to_html(self, text: str) -> str:
        """Render Markdown to an HTML fragment."""
        # Reset markdown processor state
        self._md.reset()
        return self._md.convert(text)

    def markdown_to_fragment(
        self, text: str, style_keys: Optional[Iterable[str]] = None
    ) -> RichFragment:
        """Convert Markdown into a chapter fragment.

        Args:
            text: The Markdown source.
            style_keys: Style keys recognized as style spans in inline HTML.

        Returns:
            The parsed RichFragment.
        """
        fragment = parse(self.markdown_to_html(text), style_keys)
        logger.debug("Imported %d words of markdown", fragment.word_count)
        return fragment

    def split_title(self, text: str) -> tuple[Optional[str], str]:
        """Pull a leading ``# Heading`` off a Markdown document.

        Returns:
            The heading text (or None) and the remaining Markdown.
        """
        lines = text.lstrip("\ufeff").split("\n")
        for index, line in enumerate(lines):
            if not line.strip():
                continue
            if line.startswith("# "):
                return line[2:].strip(), "\n".join(lines[index + 1 :]).lstrip("\n")
            break
        return None, text
