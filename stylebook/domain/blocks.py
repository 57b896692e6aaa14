"""Ready-made styled blocks the author can drop into a chapter."""

from dataclasses import dataclass

from .fragment import Element, RichFragment, TextRun
from .styles import validate_style_key


@dataclass(frozen=True)
class BlockTemplate:
    """The element and sample text used when inserting a style block."""

    tag: str
    sample_text: str


BLOCK_TEMPLATES = {
    "chapter-title": BlockTemplate("h1", "Chapter 1: Your Chapter Title"),
    "section-title": BlockTemplate("h2", "Your Section Title"),
    "paragraph": BlockTemplate(
        "p",
        "Your paragraph text goes here. You can edit this text and it will "
        "maintain the styling.",
    ),
    "highlight-box": BlockTemplate(
        "div", "This is an important highlight that stands out from regular text."
    ),
    "code-block": BlockTemplate(
        "pre", 'function example() {\n  console.log("Your code here");\n  return true;\n}'
    ),
    "quote": BlockTemplate("blockquote", "Your inspirational quote goes here."),
}

DEFAULT_BLOCK = BlockTemplate("div", "Sample text")


def style_block(style_key: str) -> Element:
    """Build the block element for a style key."""
    validate_style_key(style_key)
    template = BLOCK_TEMPLATES.get(style_key, DEFAULT_BLOCK)
    return Element(
        tag=template.tag,
        start_tag=f'<{template.tag} class="{style_key}">',
        children=(TextRun(template.sample_text),),
    )


def insert_style_block(fragment: RichFragment, style_key: str) -> RichFragment:
    """Append a sample block carrying ``style_key`` to the end of a fragment."""
    return RichFragment(fragment.nodes + (style_block(style_key),))
