"""Selection-scoped style toggling.

``toggle`` flips a style over a selection: characters that carry it lose it
and the rest gain it. A selection inside one span of the style therefore
removes it, and a selection with none of it applies it. Spans of one style
never nest, so toggling the same selection twice restores the original
formatting. It never mutates its input: the caller swaps in the returned
fragment.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from ..errors import EmptySelection, RangeOutOfBounds
from .fragment import Container, Element, Node, RichFragment, StyledSpan, split_nodes
from .styles import validate_style_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    """A user selection as character offsets into a fragment's text."""

    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length


def toggle(
    fragment: RichFragment, start: int, length: int, style_key: str
) -> RichFragment:
    """Toggle ``style_key`` over ``[start, start + length)``.

    When only part of the selection carries the style, each character is
    flipped, so the styled part is cleared and the rest is styled.

    Args:
        fragment: The chapter content to edit.
        start: Offset of the first selected character.
        length: Number of selected characters.
        style_key: The style to toggle.

    Returns:
        A new, normalized fragment.

    Raises:
        StyleKeyInvalid: If the style key is malformed.
        EmptySelection: If ``length`` is zero.
        RangeOutOfBounds: If the selection leaves the fragment's text.
        MalformedMarkup: If a boundary falls inside a block element.
    """
    validate_style_key(style_key)
    if length == 0:
        raise EmptySelection("Please select some text first to apply the style.")
    end = start + length
    if start < 0 or length < 0 or end > fragment.length:
        raise RangeOutOfBounds(
            f"Selection {start}..{end} is outside the text (length {fragment.length})"
        )

    covered = _covered_ranges(fragment, start, end, style_key)
    if covered == [(start, end)]:
        logger.debug("Removing %s from %d..%d", style_key, start, end)
    elif not covered:
        logger.debug("Applying %s to %d..%d", style_key, start, end)
    else:
        logger.debug("Flipping %s over %d..%d", style_key, start, end)

    nodes = fragment.nodes
    if covered:
        nodes = _strip(nodes, start, end, style_key)
    for gap_start, gap_end in _gaps(covered, start, end):
        nodes = _wrap(nodes, gap_start, gap_end, style_key)
    return RichFragment(nodes)


def toggle_selection(
    fragment: RichFragment, selection: Selection, style_key: str
) -> RichFragment:
    """Toggle a style over a Selection value."""
    return toggle(fragment, selection.start, selection.length, style_key)


def _covered_ranges(
    fragment: RichFragment, start: int, end: int, style_key: str
) -> list[tuple[int, int]]:
    """Parts of ``[start, end)`` already carrying ``style_key``, in order.

    Spans of one style never nest, so the ranges do not overlap.
    """
    return [
        (max(extent.start, start), min(extent.end, end))
        for extent in fragment.spans()
        if extent.style_key == style_key and extent.start < end and extent.end > start
    ]


def _gaps(
    covered: list[tuple[int, int]], start: int, end: int
) -> list[tuple[int, int]]:
    gaps = []
    for covered_start, covered_end in covered:
        if covered_start > start:
            gaps.append((start, covered_start))
        start = covered_end
    if start < end:
        gaps.append((start, end))
    return gaps


def _containing_child(
    nodes: tuple[Node, ...], start: int, end: int
) -> Optional[tuple[int, int]]:
    """Find the container child that strictly holds ``[start, end)``.

    Spans and inline elements whose range is exactly the selection are
    skipped, so a new span wraps them instead of nesting inside. Block
    elements are always entered.

    Returns:
        ``(index, offset)`` of that child, or None when the new span belongs
        at this level.
    """
    offset = 0
    for index, node in enumerate(nodes):
        node_end = offset + node.length
        if (
            isinstance(node, Container)
            and node_end > offset
            and offset <= start
            and end <= node_end
        ):
            if offset == start and node_end == end and not _is_block(node):
                return None
            return index, offset
        offset = node_end
    return None


def _is_block(node: Node) -> bool:
    return isinstance(node, Element) and not node.inline


def _wrap(
    nodes: tuple[Node, ...], start: int, end: int, style_key: str
) -> tuple[Node, ...]:
    found = _containing_child(nodes, start, end)
    if found is not None:
        index, offset = found
        node = nodes[index]
        children = _wrap(node.children, start - offset, end - offset, style_key)
        return nodes[:index] + (replace(node, children=children),) + nodes[index + 1 :]

    before, rest = split_nodes(nodes, start, zero_length_left=True)
    selected, after = split_nodes(rest, end - start, zero_length_left=False)
    return before + (StyledSpan(style_key, selected),) + after


def _strip(
    nodes: tuple[Node, ...], start: int, end: int, style_key: str
) -> tuple[Node, ...]:
    """Remove ``style_key`` from every character in ``[start, end)``.

    Each span of that style crossing the range is split at the range
    bounds and its middle piece unwrapped, at any depth.
    """
    result: list[Node] = []
    offset = 0
    for node in nodes:
        node_start, node_end = offset, offset + node.length
        offset = node_end
        if not isinstance(node, Container) or node_end <= start or node_start >= end:
            result.append(node)
            continue

        local_start = max(start, node_start) - node_start
        local_end = min(end, node_end) - node_start
        if isinstance(node, StyledSpan) and node.style_key == style_key:
            before, rest = split_nodes(node.children, local_start, zero_length_left=True)
            selected, after = split_nodes(
                rest, local_end - local_start, zero_length_left=False
            )
            if before:
                result.append(replace(node, children=before))
            result.extend(selected)
            if after:
                result.append(replace(node, children=after))
        else:
            children = _strip(node.children, start - node_start, end - node_start, style_key)
            result.append(replace(node, children=children))
    return tuple(result)
