"""TreeSession: cursor navigation and interactive editing of a move tree.

The session owns one tree and one cursor. Navigation never changes the
tree; every navigation and mutation call returns (or leaves behind) the
authoritative FEN of the cursor, which a renderer should always prefer over
wherever its last animation happened to end.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from pgntree.core.parser import ParseResult
from pgntree.core.pgn import build_pgn, export_movetext, load_game, load_puzzle
from pgntree.core.render import RenderItem, render_tree
from pgntree.core.rules import ChessRulesEngine, MoveSpec, RulesEngine
from pgntree.core.tree import MoveTree, Node
from pgntree.session.settings import ViewerSettings

_LOGGER = logging.getLogger(__name__)

# ── Event definitions ────────────────────────────────────────────────────────

PositionCallback = Callable[[str], None]  # fen
TreeCallback = Callable[[], None]


@dataclass
class SessionEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_position_changed: list[PositionCallback] = field(default_factory=list)
    on_tree_changed: list[TreeCallback] = field(default_factory=list)


# ── Session ──────────────────────────────────────────────────────────────────


class TreeSession:
    """One editing session over one :class:`MoveTree`.

    Thread-safety: none. Calls must come from a single thread (the UI
    thread); a host with several callers has to serialise them itself.
    """

    __slots__ = (
        "_tree",
        "_rules",
        "_settings",
        "_cursor_id",
        "_result",
        "_headers",
        "events",
    )

    def __init__(
        self,
        tree: MoveTree | None = None,
        rules: RulesEngine | None = None,
        settings: ViewerSettings | None = None,
        *,
        result: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._rules = rules if rules is not None else ChessRulesEngine()
        self._tree = tree if tree is not None else MoveTree(self._rules.starting_fen())
        self._settings = settings if settings is not None else ViewerSettings()
        self._cursor_id = self._tree.root.id
        self._result = result
        self._headers = dict(headers or {})
        self.events = SessionEvents()

    # ── Construction ─────────────────────────────────────────────────────

    @classmethod
    def from_parse(
        cls,
        parsed: ParseResult,
        rules: RulesEngine | None = None,
        settings: ViewerSettings | None = None,
    ) -> TreeSession:
        return cls(
            parsed.tree,
            rules,
            settings,
            result=parsed.result,
            headers=parsed.headers,
        )

    @classmethod
    def from_pgn(
        cls,
        pgn_text: str,
        rules: RulesEngine | None = None,
        settings: ViewerSettings | None = None,
    ) -> TreeSession:
        s = settings if settings is not None else ViewerSettings()
        parsed = load_game(
            pgn_text,
            rules,
            figurine=s.use_figurine_notation,
            echo_illegal=s.echo_illegal_moves,
        )
        return cls.from_parse(parsed, rules, s)

    @classmethod
    def from_fen(
        cls,
        fen: str,
        rules: RulesEngine | None = None,
        settings: ViewerSettings | None = None,
    ) -> TreeSession:
        """Start an empty tree at *fen*; raises ``ValueError`` for a bad FEN."""
        engine = rules if rules is not None else ChessRulesEngine()
        return cls(MoveTree(engine.validate_fen(fen)), engine, settings)

    @classmethod
    def from_puzzle(
        cls,
        text: str,
        rules: RulesEngine | None = None,
        settings: ViewerSettings | None = None,
    ) -> TreeSession:
        return cls.from_parse(load_puzzle(text, rules), rules, settings)

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def tree(self) -> MoveTree:
        return self._tree

    @property
    def settings(self) -> ViewerSettings:
        return self._settings

    @property
    def cursor(self) -> Node:
        return self._tree.node(self._cursor_id)

    @property
    def fen(self) -> str:
        return self.cursor.fen

    @property
    def turn(self) -> str:
        return self._rules.turn(self.fen)

    @property
    def result(self) -> str | None:
        return self._result

    @property
    def headers(self) -> dict[str, str]:
        return self._headers

    # ── Navigation ───────────────────────────────────────────────────────

    def to_root(self) -> str:
        return self._move_cursor(self._tree.root)

    def to_end(self) -> str:
        """Follow the mainline from the root to its last move."""
        node = self._tree.root
        while node.next_id is not None:
            node = self._tree.node(node.next_id)
        return self._move_cursor(node)

    def to_parent(self) -> str:
        parent = self._tree.parent(self.cursor)
        if parent is None:
            return self.fen
        return self._move_cursor(parent)

    def to_child(self) -> str:
        child = self._tree.next(self.cursor)
        if child is None:
            return self.fen
        return self._move_cursor(child)

    def to_node(self, node: Node | int) -> str:
        """Jump to an arbitrary node (click-to-navigate).

        Unknown nodes leave the cursor where it is.
        """
        node_id = node if isinstance(node, int) else node.id
        if not self._tree.contains(node_id):
            return self.fen
        return self._move_cursor(self._tree.node(node_id))

    def to_next_variation(self) -> str:
        return self._to_sibling(+1)

    def to_previous_variation(self) -> str:
        return self._to_sibling(-1)

    def _to_sibling(self, step: int) -> str:
        parent = self._tree.parent(self.cursor)
        if parent is None:
            return self.fen
        siblings = self._tree.children(parent)
        idx = next(i for i, sib in enumerate(siblings) if sib.id == self._cursor_id)
        return self._move_cursor(siblings[(idx + step) % len(siblings)])

    # ── Mutation ─────────────────────────────────────────────────────────

    def append_user_move(self, move: str | MoveSpec) -> str | None:
        """Play *move* from the cursor and advance onto the resulting node.

        Replaying a move that already exists as a continuation reuses that
        node. Returns the new FEN, or ``None`` when the move is illegal.
        """
        cursor = self.cursor
        outcome = self._rules.apply_move(
            cursor.fen, move, sloppy=self._settings.sloppy_moves
        )
        if not outcome.ok:
            _LOGGER.debug("Rejected move %r at node %d", move, cursor.id)
            return None

        for child in self._tree.children(cursor):
            if child.san == outcome.san:
                return self._move_cursor(child)

        node = self._tree.add_child(cursor, outcome.san, outcome.fen)
        _LOGGER.debug(
            "Added %s as %s of node %d",
            node.san,
            "mainline" if node.is_mainline else "variation",
            cursor.id,
        )
        self._emit_tree_changed()
        return self._move_cursor(node)

    def promote_variation(self, node: Node | int | None = None) -> bool:
        """Make a variation (the cursor by default) the mainline of its parent."""
        target = self._resolve(node)
        if target is None or not self._tree.promote(target):
            return False
        _LOGGER.debug("Promoted node %d", target.id)
        self._emit_tree_changed()
        return True

    def delete_variation(self, node: Node | int | None = None) -> bool:
        """Remove a variation (the cursor by default) with its whole subtree."""
        target = self._resolve(node)
        if target is None or not self._tree.is_variation(target):
            return False

        parent = self._tree.parent(target)
        assert parent is not None
        doomed = {n.id for n in self._tree.iter_subtree(target)}
        relocate = self._cursor_id in doomed
        if relocate:
            self._cursor_id = parent.id

        self._tree.detach(target)
        _LOGGER.debug("Deleted variation %d (%d nodes)", target.id, len(doomed))
        self._emit_tree_changed()
        if relocate:
            self._emit_position_changed()
        return True

    def set_comment(self, node: Node | int | None, text: str) -> bool:
        """Replace the comment of a move; the root cannot carry one."""
        target = self._resolve(node)
        if target is None or target.is_root:
            return False
        target.comment = " ".join(text.split())
        self._emit_tree_changed()
        return True

    def add_annotation(self, node: Node | int | None, glyph: str) -> bool:
        target = self._resolve(node)
        if target is None or target.is_root or not glyph:
            return False
        target.annotations.append(glyph)
        self._emit_tree_changed()
        return True

    # ── Output ───────────────────────────────────────────────────────────

    def render_items(self) -> list[RenderItem]:
        return render_tree(
            self._tree,
            result=self._result,
            figurine=self._settings.use_figurine_notation,
        )

    def export_movetext(self) -> str:
        return export_movetext(self._tree, self._result)

    def export_pgn(self) -> str:
        return build_pgn(self._headers, self._tree, self._result)

    # ── Internals ────────────────────────────────────────────────────────

    def _resolve(self, node: Node | int | None) -> Node | None:
        if node is None:
            return self.cursor
        node_id = node if isinstance(node, int) else node.id
        if not self._tree.contains(node_id):
            return None
        return self._tree.node(node_id)

    def _move_cursor(self, node: Node) -> str:
        self._cursor_id = node.id
        self._emit_position_changed()
        return node.fen

    def _emit_position_changed(self) -> None:
        fen = self.fen
        for cb in self.events.on_position_changed:
            cb(fen)

    def _emit_tree_changed(self) -> None:
        for cb in self.events.on_tree_changed:
            cb()
