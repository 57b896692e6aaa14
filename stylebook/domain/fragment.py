"""Rich-text fragment model for chapter content.

A fragment is a tree of text runs and style spans. Markup the style system
does not recognize is kept as opaque elements so that content written in
raw-HTML mode survives a parse/serialize round trip.
"""

import html
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from ..errors import MalformedMarkup
from .styles import DEFAULT_STYLE_KEYS

# Elements that may be cut in two at a selection boundary.
INLINE_TAGS = frozenset(
    {
        "a",
        "abbr",
        "b",
        "bdi",
        "bdo",
        "cite",
        "code",
        "del",
        "dfn",
        "em",
        "font",
        "i",
        "ins",
        "kbd",
        "mark",
        "q",
        "s",
        "samp",
        "small",
        "span",
        "strike",
        "strong",
        "sub",
        "sup",
        "time",
        "tt",
        "u",
        "var",
    }
)

# Elements whose body is not text (kept whole, zero-length).
RAW_TEXT_TAGS = frozenset({"script", "style", "textarea", "template"})


@dataclass(frozen=True)
class TextRun:
    """Plain text with no style."""

    text: str

    @property
    def length(self) -> int:
        return len(self.text)


@dataclass(frozen=True)
class StyledSpan:
    """A run of content tagged with one style key."""

    style_key: str
    children: tuple["Node", ...] = ()

    @property
    def length(self) -> int:
        return sum(child.length for child in self.children)


@dataclass(frozen=True)
class Element:
    """Unrecognized container markup whose text still belongs to the fragment."""

    tag: str
    start_tag: str
    children: tuple["Node", ...] = ()

    @property
    def length(self) -> int:
        return sum(child.length for child in self.children)

    @property
    def end_tag(self) -> str:
        return f"</{self.tag}>"

    @property
    def inline(self) -> bool:
        return self.tag in INLINE_TAGS


@dataclass(frozen=True)
class Markup:
    """Opaque zero-length content: void elements, comments, scripts."""

    markup: str

    @property
    def length(self) -> int:
        return 0


Node = Union[TextRun, StyledSpan, Element, Markup]
Container = (StyledSpan, Element)


@dataclass(frozen=True)
class SpanExtent:
    """Absolute character extent of a style span, for inspection and tests."""

    style_key: str
    start: int
    end: int
    depth: int


def _merge_pair(left: Node, right: Node, enclosing: frozenset) -> Optional[Node]:
    """Combine two adjacent siblings, or return None if they stay apart."""
    if isinstance(left, TextRun) and isinstance(right, TextRun):
        return TextRun(left.text + right.text)
    if (
        isinstance(left, StyledSpan)
        and isinstance(right, StyledSpan)
        and left.style_key == right.style_key
    ):
        children = normalize(left.children + right.children, enclosing | {left.style_key})
        return StyledSpan(left.style_key, children)
    if (
        isinstance(left, Element)
        and isinstance(right, Element)
        and left.inline
        and left.start_tag == right.start_tag
    ):
        return replace(left, children=normalize(left.children + right.children, enclosing))
    return None


def normalize(
    nodes: Iterable[Node], _enclosing: frozenset = frozenset()
) -> tuple[Node, ...]:
    """Run the merge pass over a sibling list, recursively.

    Drops empty text and empty style spans, concatenates adjacent text runs
    and fuses adjacent spans with the same style key (and adjacent inline
    elements with identical start tags). A span nested inside a span of the
    same style is unwrapped, so no character carries a style twice.
    """
    result: list[Node] = []
    for node in nodes:
        if isinstance(node, TextRun) and not node.text:
            continue
        if isinstance(node, StyledSpan) and node.style_key in _enclosing:
            pieces = normalize(node.children, _enclosing)
        elif isinstance(node, Container):
            inner = _enclosing
            if isinstance(node, StyledSpan):
                inner = _enclosing | {node.style_key}
            children = normalize(node.children, inner)
            if isinstance(node, StyledSpan) and not children:
                continue
            pieces = (replace(node, children=children),)
        else:
            pieces = (node,)
        for piece in pieces:
            if result:
                merged = _merge_pair(result[-1], piece, _enclosing)
                if merged is not None:
                    result[-1] = merged
                    continue
            result.append(piece)
    return tuple(result)


@dataclass(frozen=True)
class RichFragment:
    """The rich-text body of one chapter.

    Nodes are normalized on construction, so two fragments with the same
    visible text and span boundaries compare equal.
    """

    nodes: tuple[Node, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", normalize(self.nodes))

    @classmethod
    def parse(
        cls, markup: str, style_keys: Optional[Iterable[str]] = None
    ) -> "RichFragment":
        return parse(markup, style_keys)

    def serialize(self) -> str:
        return serialize(self)

    @property
    def text(self) -> str:
        """The flattened visible character stream."""
        return "".join(_iter_text(self.nodes))

    @property
    def length(self) -> int:
        return sum(node.length for node in self.nodes)

    @property
    def word_count(self) -> int:
        return len("".join(_iter_words(self.nodes)).split())

    def spans(self) -> list[SpanExtent]:
        """List every style span with its absolute extent, in document order."""
        extents: list[SpanExtent] = []
        _collect_spans(self.nodes, 0, 0, extents)
        return extents

    def signature(self) -> tuple:
        """Describe the formatting of every character.

        Each entry is ``("text", text, style_keys, element_tags)`` for a run
        of characters sharing the same styles and enclosing elements, or
        ``("markup", markup)`` for opaque content. The nesting order of
        wrappers that cover exactly the same characters does not show up,
        so ``<b><span class="quote">x</span></b>`` and
        ``<span class="quote"><b>x</b></span>`` share a signature.
        """
        entries: list[tuple] = []
        _collect_signature(self.nodes, (), (), entries)
        return tuple(entries)


def equivalent(left: RichFragment, right: RichFragment) -> bool:
    """Check whether two fragments format every character the same way."""
    return left.signature() == right.signature()


def _iter_text(nodes: Iterable[Node]) -> Iterable[str]:
    for node in nodes:
        if isinstance(node, TextRun):
            yield node.text
        elif isinstance(node, Container):
            yield from _iter_text(node.children)


def _iter_words(nodes: Iterable[Node]) -> Iterable[str]:
    """Like _iter_text, with a space at block and opaque boundaries."""
    for node in nodes:
        if isinstance(node, TextRun):
            yield node.text
        elif isinstance(node, StyledSpan) or (
            isinstance(node, Element) and node.inline
        ):
            yield from _iter_words(node.children)
        else:
            yield " "
            if isinstance(node, Element):
                yield from _iter_words(node.children)
                yield " "


def _collect_signature(
    nodes: Iterable[Node], keys: tuple, tags: tuple, entries: list[tuple]
) -> None:
    for node in nodes:
        if isinstance(node, TextRun):
            styles = tuple(sorted(keys))
            last = entries[-1] if entries else None
            if last and last[0] == "text" and last[2:] == (styles, tags):
                entries[-1] = ("text", last[1] + node.text, styles, tags)
            else:
                entries.append(("text", node.text, styles, tags))
        elif isinstance(node, StyledSpan):
            _collect_signature(node.children, keys + (node.style_key,), tags, entries)
        elif isinstance(node, Element):
            _collect_signature(node.children, keys, tags + (node.start_tag,), entries)
        else:
            entries.append(("markup", node.markup))


def _collect_spans(
    nodes: Iterable[Node], offset: int, depth: int, extents: list[SpanExtent]
) -> None:
    for node in nodes:
        if isinstance(node, StyledSpan):
            extents.append(
                SpanExtent(node.style_key, offset, offset + node.length, depth)
            )
            _collect_spans(node.children, offset, depth + 1, extents)
        elif isinstance(node, Element):
            _collect_spans(node.children, offset, depth, extents)
        offset += node.length


# -- parsing -----------------------------------------------------------------


def parse(markup: str, style_keys: Optional[Iterable[str]] = None) -> RichFragment:
    """Parse chapter markup into a fragment.

    Args:
        markup: HTML fragment as stored in the chapter.
        style_keys: Class names recognized as style spans (defaults to the
            built-in style keys).

    Returns:
        The normalized RichFragment.
    """
    keys = frozenset(DEFAULT_STYLE_KEYS if style_keys is None else style_keys)
    soup = BeautifulSoup(markup or "", "html.parser")
    return RichFragment(_convert(soup.contents, keys))


def _convert(contents: Iterable, keys: frozenset) -> tuple[Node, ...]:
    nodes: list[Node] = []
    for item in contents:
        if isinstance(item, PreformattedString):
            # Comments, doctypes, CDATA and processing instructions
            nodes.append(Markup(item.output_ready()))
        elif isinstance(item, NavigableString):
            nodes.append(TextRun(str(item)))
        elif isinstance(item, Tag):
            nodes.append(_convert_tag(item, keys))
    return tuple(nodes)


def _convert_tag(tag: Tag, keys: frozenset) -> Node:
    style_key = _style_key(tag, keys)
    if style_key is not None:
        return StyledSpan(style_key, _convert(tag.contents, keys))
    if tag.is_empty_element or tag.name in RAW_TEXT_TAGS:
        return Markup(str(tag))
    return Element(tag.name, _start_tag(tag), _convert(tag.contents, keys))


def _style_key(tag: Tag, keys: frozenset) -> Optional[str]:
    """Return the style key if the tag is a bare ``<span class="key">``."""
    if tag.name != "span" or list(tag.attrs) != ["class"]:
        return None
    classes = tag.get("class") or []
    if len(classes) == 1 and classes[0] in keys:
        return classes[0]
    return None


def _start_tag(tag: Tag) -> str:
    attrs = []
    for name, value in tag.attrs.items():
        if isinstance(value, (list, tuple)):
            value = " ".join(value)
        attrs.append(f' {name}="{html.escape(value)}"')
    return f"<{tag.name}{''.join(attrs)}>"


# -- serialization -----------------------------------------------------------


def serialize(fragment: RichFragment) -> str:
    """Serialize a fragment back to chapter markup."""
    return _serialize_nodes(fragment.nodes)


def _serialize_nodes(nodes: Iterable[Node]) -> str:
    return "".join(_serialize_node(node) for node in nodes)


def _serialize_node(node: Node) -> str:
    if isinstance(node, TextRun):
        return html.escape(node.text, quote=False)
    if isinstance(node, StyledSpan):
        return f'<span class="{node.style_key}">{_serialize_nodes(node.children)}</span>'
    if isinstance(node, Element):
        return f"{node.start_tag}{_serialize_nodes(node.children)}{node.end_tag}"
    return node.markup


# -- splitting ---------------------------------------------------------------


def split_nodes(
    nodes: tuple[Node, ...], pos: int, zero_length_left: bool
) -> tuple[tuple[Node, ...], tuple[Node, ...]]:
    """Split a sibling list at a character offset.

    Nodes straddling ``pos`` are cut in two. Zero-length nodes sitting exactly
    at ``pos`` go to the left side when ``zero_length_left`` is set, otherwise
    to the right.

    Raises:
        MalformedMarkup: If ``pos`` falls inside a block-level element.
    """
    left: list[Node] = []
    right: list[Node] = []
    offset = 0
    for node in nodes:
        start, end = offset, offset + node.length
        offset = end
        if start == end == pos:
            (left if zero_length_left else right).append(node)
        elif end <= pos:
            left.append(node)
        elif start >= pos:
            right.append(node)
        else:
            head, tail = _split_node(node, pos - start, zero_length_left)
            left.append(head)
            right.append(tail)
    return tuple(left), tuple(right)


def _split_node(node: Node, pos: int, zero_length_left: bool) -> tuple[Node, Node]:
    if isinstance(node, TextRun):
        return TextRun(node.text[:pos]), TextRun(node.text[pos:])
    if isinstance(node, Element) and not node.inline:
        raise MalformedMarkup(
            f"Selection boundary falls inside a <{node.tag}> element"
        )
    head, tail = split_nodes(node.children, pos, zero_length_left)
    return replace(node, children=head), replace(node, children=tail)
