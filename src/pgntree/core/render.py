"""Renderable items handed to a move-list view.

The tree builder emits these while parsing; :func:`render_tree` rebuilds
them from an edited tree. Each context (the game line or one variation) is
an ordered list of items, variations nest through :class:`VariationItem`.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import IntEnum, auto

from pgntree.core.figurine import to_figurine
from pgntree.core.tree import MoveTree, Node


@dataclass(frozen=True, slots=True)
class MoveNumberItem:
    text: str


@dataclass(frozen=True, slots=True)
class MoveItem:
    """A clickable move label.

    ``is_mainline`` is true for moves of the game line itself, false for any
    move inside a parenthesised variation.
    """

    node_id: int
    san: str
    fen: str
    is_mainline: bool
    text: str


@dataclass(frozen=True, slots=True)
class CommentItem:
    text: str


@dataclass(frozen=True, slots=True)
class AnnotationItem:
    glyph: str


@dataclass(frozen=True, slots=True)
class TextItem:
    """Source text that did not become part of the tree, shown verbatim."""

    text: str


@dataclass(frozen=True, slots=True)
class ResultItem:
    text: str


@dataclass(slots=True)
class VariationItem:
    items: list[RenderItem] = field(default_factory=list)


RenderItem = (
    MoveNumberItem
    | MoveItem
    | CommentItem
    | AnnotationItem
    | TextItem
    | ResultItem
    | VariationItem
)


def move_label(san: str, figurine: bool) -> str:
    return to_figurine(san) if figurine else san


def move_number_label(number: int, is_white: bool) -> str:
    return f"{number}." if is_white else f"{number}..."


# ── Tree walk in PGN reading order ───────────────────────────────────────────


class LineEvent(IntEnum):
    """Steps of a PGN-order walk over a :class:`MoveTree`."""

    MOVE = auto()
    OPEN = auto()
    CLOSE = auto()


@dataclass(slots=True)
class _Line:
    node_id: int | None
    is_variation: bool
    opened: bool = False
    needs_number: bool = True


def walk_lines(tree: MoveTree) -> Iterator[tuple[LineEvent, Node | None, bool]]:
    """Yield ``(event, node, needs_number)`` in the order PGN writes moves.

    Variations of a position are written right after the mainline move they
    replace. ``needs_number`` is set for black moves that open a line or
    follow a comment or a closed variation. The walk keeps its own stack so
    deeply nested input cannot exhaust the interpreter's recursion limit.
    """
    stack = [_Line(node_id=tree.root.next_id, is_variation=False)]
    while stack:
        line = stack[-1]
        if line.is_variation and not line.opened:
            line.opened = True
            yield LineEvent.OPEN, None, False
        if line.node_id is None:
            stack.pop()
            if line.is_variation:
                yield LineEvent.CLOSE, None, False
                if stack:
                    stack[-1].needs_number = True
            continue

        node = tree.node(line.node_id)
        yield LineEvent.MOVE, node, line.needs_number

        parent = tree.parent(node)
        siblings: list[Node] = []
        if parent is not None and parent.next_id == node.id:
            siblings = tree.variations(parent)

        line.node_id = node.next_id
        line.needs_number = bool(node.comment)
        for sibling in reversed(siblings):
            stack.append(_Line(node_id=sibling.id, is_variation=True))


def render_tree(
    tree: MoveTree,
    *,
    result: str | None = None,
    figurine: bool = False,
) -> list[RenderItem]:
    """Build the item list for *tree* as it stands now."""
    items: list[RenderItem] = []
    containers = [items]
    depth = 0

    for event, node, needs_number in walk_lines(tree):
        if event == LineEvent.OPEN:
            variation = VariationItem()
            containers[-1].append(variation)
            containers.append(variation.items)
            depth += 1
            continue
        if event == LineEvent.CLOSE:
            containers.pop()
            depth -= 1
            continue

        assert node is not None and node.san is not None
        target = containers[-1]
        number, is_white = tree.move_number(node)
        if is_white or needs_number:
            target.append(MoveNumberItem(move_number_label(number, is_white)))
        target.append(
            MoveItem(
                node_id=node.id,
                san=node.san,
                fen=node.fen,
                is_mainline=depth == 0,
                text=move_label(node.san, figurine),
            )
        )
        target.extend(AnnotationItem(glyph) for glyph in node.annotations)
        if node.comment:
            target.append(CommentItem(node.comment))

    if result:
        items.append(ResultItem(result))
    return items


def items_to_text(items: list[RenderItem]) -> str:
    """Flatten items into the plain text a reader would see."""
    parts: list[str] = []
    stack: list[Iterator[RenderItem]] = [iter(items)]
    while stack:
        item = next(stack[-1], None)
        if item is None:
            stack.pop()
            if stack:
                parts.append(")")
            continue
        if isinstance(item, VariationItem):
            parts.append("(")
            stack.append(iter(item.items))
        elif isinstance(item, MoveNumberItem | MoveItem | TextItem | ResultItem):
            parts.append(item.text)
        elif isinstance(item, CommentItem):
            parts.append("{" + item.text + "}")
        elif isinstance(item, AnnotationItem):
            parts.append(item.glyph)

    text = " ".join(parts)
    return text.replace("( ", "(").replace(" )", ")")
