"""Tests for render items and the PGN-order tree walk."""

from pgntree.core.parser import parse_movetext
from pgntree.core.render import (
    CommentItem,
    LineEvent,
    MoveItem,
    MoveNumberItem,
    ResultItem,
    VariationItem,
    items_to_text,
    render_tree,
    walk_lines,
)
from pgntree.core.rules import STARTING_FEN
from pgntree.core.tree import MoveTree


def _render_text(movetext: str, **options) -> str:
    parsed = parse_movetext(movetext)
    return items_to_text(render_tree(parsed.tree, result=parsed.result, **options))


class TestWalkLines:
    def test_variation_follows_replaced_move(self) -> None:
        parsed = parse_movetext("1. e4 e5 (1... c5) 2. Nf3")
        events = [
            (event, node.san if node is not None else None)
            for event, node, _needs_number in walk_lines(parsed.tree)
        ]
        assert events == [
            (LineEvent.MOVE, "e4"),
            (LineEvent.MOVE, "e5"),
            (LineEvent.OPEN, None),
            (LineEvent.MOVE, "c5"),
            (LineEvent.CLOSE, None),
            (LineEvent.MOVE, "Nf3"),
        ]

    def test_empty_tree_yields_nothing(self) -> None:
        assert list(walk_lines(MoveTree(STARTING_FEN))) == []

    def test_deep_nesting(self) -> None:
        tree = MoveTree(STARTING_FEN)
        node = tree.root
        depth = 2000
        for _ in range(depth):
            tree.add_child(node, "a", "fen")
            node = tree.add_child(node, "b", "fen")
        opens = sum(1 for event, _n, _f in walk_lines(tree) if event == LineEvent.OPEN)
        assert opens == depth


class TestRenderTree:
    def test_matches_parser_items(self) -> None:
        parsed = parse_movetext("1. e4 {good} e5 (1... c5 2. Nf3) 2. Nf3 Nc6 *")
        assert render_tree(parsed.tree, result=parsed.result) == parsed.items

    def test_black_number_after_variation(self) -> None:
        assert _render_text("1. e4 (1. d4) e5") == "1. e4 (1. d4) 1... e5"

    def test_black_number_after_comment(self) -> None:
        assert _render_text("1. e4 {best} e5 2. Nf3") == "1. e4 {best} 1... e5 2. Nf3"

    def test_annotations_and_result(self) -> None:
        assert _render_text("1. e4! e5?? 1-0") == "1. e4 ! e5 ?? 1-0"

    def test_render_after_promotion(self) -> None:
        parsed = parse_movetext("1. e4 (1. d4 d5) e5")
        tree = parsed.tree
        tree.promote(tree.variations(tree.root)[0])
        items = render_tree(tree)
        assert items_to_text(items) == "1. d4 (1. e4 e5) 1... d5"
        top_moves = [item.san for item in items if isinstance(item, MoveItem)]
        assert top_moves == ["d4", "d5"]
        assert all(item.is_mainline for item in items if isinstance(item, MoveItem))
        variation = next(item for item in items if isinstance(item, VariationItem))
        assert not any(
            item.is_mainline for item in variation.items if isinstance(item, MoveItem)
        )

    def test_figurine_labels(self) -> None:
        parsed = parse_movetext("1. Nf3 Nf6")
        items = render_tree(parsed.tree, figurine=True)
        labels = [item.text for item in items if isinstance(item, MoveItem)]
        assert labels == ["♘f3", "♘f6"]

    def test_non_standard_start(self) -> None:
        fen = "4k3/8/8/8/8/8/4P3/4K3 b - - 0 12"
        parsed = parse_movetext("12... Kd7 13. e4", start_fen=fen)
        items = render_tree(parsed.tree)
        assert items[0] == MoveNumberItem("12...")
        assert items_to_text(items) == "12... Kd7 13. e4"


def test_items_to_text_nesting() -> None:
    items = [
        MoveNumberItem("1."),
        VariationItem([CommentItem("x"), VariationItem([ResultItem("*")])]),
    ]
    assert items_to_text(items) == "1. ({x} (*))"
