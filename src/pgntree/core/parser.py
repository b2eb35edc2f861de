"""Tree builder: turns PGN movetext into a :class:`MoveTree`.

Variations are tracked with an explicit stack of :class:`ParseContext`
records rather than recursion, so nesting depth is only bounded by memory
and a parse can be advanced in chunks with :meth:`TreeBuilder.feed`. The
complete resumable state between two chunks is the context stack plus the
tokenizer offset.

Parsing never fails on bad movetext: illegal or unknown tokens are echoed
as text, unbalanced parentheses are repaired, duplicate results dropped.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import IntEnum, auto

from pgntree.core.figurine import normalize_castling, to_ascii
from pgntree.core.nags import glyph_for
from pgntree.core.render import (
    AnnotationItem,
    CommentItem,
    MoveItem,
    MoveNumberItem,
    RenderItem,
    ResultItem,
    TextItem,
    VariationItem,
    move_label,
    move_number_label,
)
from pgntree.core.rules import ChessRulesEngine, RulesEngine
from pgntree.core.tokenizer import Token, TokenKind, Tokenizer
from pgntree.core.tree import MoveTree, Node

_LOGGER = logging.getLogger(__name__)

_COMMAND_TAG_RE = re.compile(r"\[%[^\]]*\]")
_RESULT_ALIASES = {"½-½": "1/2-1/2"}


class ContextKind(IntEnum):
    MAIN = auto()
    VARIATION = auto()


@dataclass(slots=True)
class ParseContext:
    """State of the line currently being read (the game or one variation)."""

    kind: ContextKind
    fen: str
    attach_id: int
    base_history_len: int
    last_node_id: int | None = None
    last_was_interrupt: bool = False
    pending_comments: list[str] = field(default_factory=list)
    pending_annotations: list[str] = field(default_factory=list)
    items: list[RenderItem] = field(default_factory=list)


@dataclass(slots=True)
class ParseDiagnostics:
    """Counters describing what the parser had to skip or repair."""

    tokens_skipped: int = 0
    illegal_moves: int = 0
    unknown_tokens: int = 0
    duplicate_results: int = 0
    unbalanced_closes: int = 0
    implicitly_closed: int = 0


@dataclass(slots=True)
class ParseResult:
    tree: MoveTree
    result: str | None
    items: list[RenderItem]
    diagnostics: ParseDiagnostics
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class BuilderSnapshot:
    """Resumable state of a builder between two chunks.

    A snapshot is a detached copy: it does not follow the builder as parsing
    continues, and :meth:`TreeBuilder.resume` can restart from it any number
    of times.
    """

    contexts: tuple[ParseContext, ...]
    offset: int
    tree: MoveTree
    result: str | None
    diagnostics: ParseDiagnostics


def clean_comment(text: str) -> str:
    """Drop embedded ``[%...]`` commands and collapse whitespace."""
    return " ".join(_COMMAND_TAG_RE.sub("", text).split())


def normalize_result(token: str) -> str:
    return _RESULT_ALIASES.get(token, token)


def _copy_contexts(contexts: Sequence[ParseContext]) -> list[ParseContext]:
    """Copy a context stack together with the item lists it writes into.

    Each variation context appends to the ``items`` of a ``VariationItem``
    that lives in its enclosing context, so the copies must keep that
    sharing. The item tree is walked with an explicit stack.
    """
    if not contexts:
        return []
    root_items = contexts[0].items
    copies: dict[int, list[RenderItem]] = {id(root_items): []}
    pending = [(root_items, copies[id(root_items)])]
    while pending:
        source, target = pending.pop()
        for item in source:
            if isinstance(item, VariationItem):
                clone = VariationItem()
                copies[id(item.items)] = clone.items
                pending.append((item.items, clone.items))
                target.append(clone)
            else:
                target.append(item)
    return [
        replace(
            ctx,
            pending_comments=list(ctx.pending_comments),
            pending_annotations=list(ctx.pending_annotations),
            items=copies[id(ctx.items)],
        )
        for ctx in contexts
    ]



class TreeBuilder:
    """Incremental PGN movetext parser.

    Args:
        movetext: Movetext without header lines.
        rules: Rules engine used to validate each candidate move.
        start_fen: Starting position; defaults to the standard one.
        figurine: Render move labels with figurine glyphs.
        echo_illegal: Keep unplayable move tokens as literal text items.
    """

    __slots__ = (
        "_rules",
        "_tokenizer",
        "_tree",
        "_stack",
        "_result",
        "_items",
        "_diagnostics",
        "_figurine",
        "_echo_illegal",
        "_finished",
        "_running",
    )

    def __init__(
        self,
        movetext: str,
        rules: RulesEngine | None = None,
        start_fen: str | None = None,
        *,
        figurine: bool = False,
        echo_illegal: bool = True,
    ) -> None:
        self._rules = rules if rules is not None else ChessRulesEngine()
        fen = self._rules.validate_fen(start_fen) if start_fen else self._rules.starting_fen()
        self._tokenizer = Tokenizer(to_ascii(movetext))
        self._tree = MoveTree(fen)
        self._items: list[RenderItem] = []
        self._stack = [
            ParseContext(
                kind=ContextKind.MAIN,
                fen=fen,
                attach_id=self._tree.root.id,
                base_history_len=0,
                items=self._items,
            )
        ]
        self._result: str | None = None
        self._diagnostics = ParseDiagnostics()
        self._figurine = figurine
        self._echo_illegal = echo_illegal
        self._finished = False
        self._running = False

    # ── Public API ───────────────────────────────────────────────────────

    @property
    def tree(self) -> MoveTree:
        return self._tree

    @property
    def offset(self) -> int:
        return self._tokenizer.offset

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def diagnostics(self) -> ParseDiagnostics:
        return self._diagnostics

    def snapshot(self) -> BuilderSnapshot:
        return BuilderSnapshot(
            contexts=tuple(_copy_contexts(self._stack)),
            offset=self.offset,
            tree=self._tree.copy(),
            result=self._result,
            diagnostics=replace(self._diagnostics),
        )

    @classmethod
    def resume(
        cls,
        movetext: str,
        snapshot: BuilderSnapshot,
        rules: RulesEngine | None = None,
        *,
        figurine: bool = False,
        echo_illegal: bool = True,
    ) -> TreeBuilder:
        """Rebuild a builder that continues *movetext* from *snapshot*.

        *movetext* must be the text the snapshot was taken from.
        """
        builder = cls(
            movetext,
            rules,
            snapshot.tree.start_fen,
            figurine=figurine,
            echo_illegal=echo_illegal,
        )
        builder._tokenizer = Tokenizer(to_ascii(movetext), snapshot.offset)
        builder._tree = snapshot.tree.copy()
        builder._stack = _copy_contexts(snapshot.contexts)
        builder._items = builder._stack[0].items
        builder._result = snapshot.result
        builder._diagnostics = replace(snapshot.diagnostics)
        return builder

    def build(self) -> ParseResult:
        """Parse everything that is left and return the result."""
        self.feed()
        return self.result()

    def feed(self, max_tokens: int | None = None) -> bool:
        """Consume up to *max_tokens* tokens (all of them when ``None``).

        Returns ``True`` once the whole input has been parsed.
        """
        if self._running:
            raise RuntimeError("TreeBuilder.feed() is already running")
        if self._finished:
            return True

        self._running = True
        try:
            consumed = 0
            while max_tokens is None or consumed < max_tokens:
                token = next(self._tokenizer, None)
                if token is None:
                    self._finish()
                    break
                self._handle(token)
                consumed += 1
        finally:
            self._running = False
        return self._finished

    def result(self) -> ParseResult:
        if not self._finished:
            raise RuntimeError("Parse is not finished yet")
        return ParseResult(
            tree=self._tree,
            result=self._result,
            items=self._items,
            diagnostics=self._diagnostics,
        )

    # ── Token dispatch ───────────────────────────────────────────────────

    def _handle(self, token: Token) -> None:
        kind = token.kind
        if kind == TokenKind.SAN:
            self._on_san(token)
        elif kind == TokenKind.VARIATION_OPEN:
            self._on_variation_open()
        elif kind == TokenKind.VARIATION_CLOSE:
            self._on_variation_close()
        elif kind == TokenKind.COMMENT:
            self._on_comment(token.text)
        elif kind == TokenKind.NAG:
            self._on_nag(token.text)
        elif kind == TokenKind.RESULT:
            self._on_result(token.text)
        elif kind == TokenKind.DIAGRAM_MARKER:
            self._ctx.last_was_interrupt = True
        elif kind == TokenKind.MOVE_NUMBER:
            pass
        else:
            self._diagnostics.unknown_tokens += 1
            self._diagnostics.tokens_skipped += 1
            _LOGGER.debug("Skipping unknown token %r at %d", token.text, token.offset)
            self._ctx.items.append(TextItem(token.text))

    @property
    def _ctx(self) -> ParseContext:
        return self._stack[-1]

    def _on_san(self, token: Token) -> None:
        ctx = self._ctx
        outcome = self._rules.apply_move(
            ctx.fen, normalize_castling(token.text), sloppy=True
        )
        if not outcome.ok:
            self._diagnostics.illegal_moves += 1
            self._diagnostics.tokens_skipped += 1
            _LOGGER.debug("Illegal move %r at %d", token.text, token.offset)
            if self._echo_illegal:
                ctx.items.append(TextItem(token.text))
            return

        parent = self._tree.node(ctx.attach_id)
        node = self._tree.add_child(parent, outcome.san, outcome.fen)

        number, is_white = self._tree.move_number(node)
        first_in_context = node.ply == ctx.base_history_len + 1
        if is_white or ctx.last_was_interrupt or first_in_context:
            ctx.items.append(MoveNumberItem(move_number_label(number, is_white)))
        ctx.items.append(
            MoveItem(
                node_id=node.id,
                san=node.san or "",
                fen=node.fen,
                is_mainline=ctx.kind == ContextKind.MAIN,
                text=move_label(outcome.san, self._figurine),
            )
        )

        ctx.fen = outcome.fen
        ctx.attach_id = node.id
        ctx.last_node_id = node.id
        ctx.last_was_interrupt = False

        if ctx.pending_annotations:
            node.annotations.extend(ctx.pending_annotations)
            ctx.pending_annotations.clear()
        if ctx.pending_comments:
            self._append_comment(node, " ".join(ctx.pending_comments))
            ctx.pending_comments.clear()

    def _on_variation_open(self) -> None:
        outer = self._ctx
        if outer.last_node_id is not None:
            varied = self._tree.node(outer.last_node_id)
            anchor = self._tree.parent(varied)
            assert anchor is not None
        else:
            # Nothing to be an alternative to yet: read the line from the
            # current position instead.
            _LOGGER.debug("Variation opened before any move in its context")
            anchor = self._tree.node(outer.attach_id)

        variation = VariationItem()
        outer.items.append(variation)
        self._stack.append(
            ParseContext(
                kind=ContextKind.VARIATION,
                fen=anchor.fen,
                attach_id=anchor.id,
                base_history_len=anchor.ply,
                items=variation.items,
            )
        )

    def _on_variation_close(self) -> None:
        if len(self._stack) == 1:
            self._diagnostics.unbalanced_closes += 1
            self._diagnostics.tokens_skipped += 1
            _LOGGER.debug("Ignoring unmatched variation close")
            return
        self._close_context()

    def _close_context(self) -> None:
        closed = self._stack.pop()
        if closed.pending_comments:
            # A comment with no move after it stays visible as text only.
            _LOGGER.debug("Dropping %d dangling comment(s)", len(closed.pending_comments))
        self._ctx.last_was_interrupt = True

    def _on_comment(self, raw: str) -> None:
        text = clean_comment(raw)
        if not text:
            return
        ctx = self._ctx
        ctx.items.append(CommentItem(text))
        ctx.last_was_interrupt = True
        if ctx.last_node_id is None:
            ctx.pending_comments.append(text)
            return
        self._append_comment(self._tree.node(ctx.last_node_id), text)

    def _on_nag(self, text: str) -> None:
        glyph = glyph_for(text)
        ctx = self._ctx
        ctx.items.append(AnnotationItem(glyph))
        if ctx.last_node_id is None:
            ctx.pending_annotations.append(glyph)
            return
        self._tree.node(ctx.last_node_id).annotations.append(glyph)

    def _on_result(self, text: str) -> None:
        if self._result is not None:
            self._diagnostics.duplicate_results += 1
            self._diagnostics.tokens_skipped += 1
            _LOGGER.debug("Ignoring duplicate result %r", text)
            return
        self._result = normalize_result(text)
        self._ctx.items.append(ResultItem(self._result))

    def _finish(self) -> None:
        while len(self._stack) > 1:
            self._diagnostics.implicitly_closed += 1
            self._close_context()
        self._finished = True
        diag = self._diagnostics
        _LOGGER.info(
            "Parsed %d nodes (illegal=%d, unknown=%d, implicitly closed=%d)",
            len(self._tree) - 1,
            diag.illegal_moves,
            diag.unknown_tokens,
            diag.implicitly_closed,
        )

    @staticmethod
    def _append_comment(node: Node, text: str) -> None:
        if node.comment:
            node.comment = f"{node.comment} {text}"
        else:
            node.comment = text


def parse_movetext(
    movetext: str,
    rules: RulesEngine | None = None,
    start_fen: str | None = None,
    **options: bool,
) -> ParseResult:
    """Parse *movetext* in one go."""
    return TreeBuilder(movetext, rules, start_fen, **options).build()
