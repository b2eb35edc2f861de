"""Rules-engine seam: move validation and FEN computation.

The tree builder and the editing session only talk to :class:`RulesEngine`.
:class:`ChessRulesEngine` implements it on top of python-chess.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

import chess

STARTING_FEN = chess.STARTING_FEN

_ANNOTATION_SUFFIX_RE = re.compile(r"[!?]+$")
_LONG_ALGEBRAIC_RE = re.compile(
    r"^[KQRBN]?([a-h][1-8])[-x]?([a-h][1-8])=?([QRBNqrbn])?[+#]?$"
)
# A from-square with no piece letter: "e2e4", "e1g1", "e7-e8q".
_COORDINATE_RE = re.compile(r"^[a-h][1-8][-x]?[a-h][1-8]")


@dataclass(frozen=True, slots=True)
class MoveSpec:
    """A move given by squares, as produced by board drag-and-drop."""

    from_square: str
    to_square: str
    promotion: str | None = None

    def uci(self) -> str:
        promo = (self.promotion or "").lower()
        return f"{self.from_square}{self.to_square}{promo}"


@dataclass(frozen=True, slots=True)
class MoveResult:
    """Outcome of applying one move to one position."""

    ok: bool
    san: str = ""
    fen: str = ""
    from_square: str = ""
    to_square: str = ""
    promotion: str | None = None
    flags: str = ""

    @classmethod
    def illegal(cls) -> MoveResult:
        return cls(ok=False)


class RulesEngine(Protocol):
    """What the parser and the session need from a chess rules implementation."""

    def apply_move(
        self, fen: str, move: str | MoveSpec, *, sloppy: bool = False
    ) -> MoveResult: ...

    def starting_fen(self) -> str: ...

    def turn(self, fen: str) -> str: ...

    def validate_fen(self, fen: str) -> str: ...


class ChessRulesEngine:
    """:class:`RulesEngine` backed by python-chess."""

    __slots__ = ()

    def starting_fen(self) -> str:
        return STARTING_FEN

    def turn(self, fen: str) -> str:
        return "w" if chess.Board(fen).turn == chess.WHITE else "b"

    def validate_fen(self, fen: str) -> str:
        """Return the normalised *fen* or raise ``ValueError``."""
        try:
            board = chess.Board(fen)
        except ValueError as exc:
            raise ValueError(f"Invalid FEN: {fen!r}") from exc
        return board.fen()

    def apply_move(
        self, fen: str, move: str | MoveSpec, *, sloppy: bool = False
    ) -> MoveResult:
        try:
            board = chess.Board(fen)
        except ValueError:
            return MoveResult.illegal()

        parsed = self._parse(board, move, sloppy=sloppy)
        if parsed is None:
            return MoveResult.illegal()

        san = board.san(parsed)
        flags = self._flags(board, parsed)
        board.push(parsed)
        return MoveResult(
            ok=True,
            san=san,
            fen=board.fen(),
            from_square=chess.square_name(parsed.from_square),
            to_square=chess.square_name(parsed.to_square),
            promotion=(
                chess.piece_symbol(parsed.promotion)
                if parsed.promotion is not None
                else None
            ),
            flags=flags,
        )

    # ── Internals ────────────────────────────────────────────────────────

    def _parse(
        self, board: chess.Board, move: str | MoveSpec, *, sloppy: bool
    ) -> chess.Move | None:
        if isinstance(move, MoveSpec):
            parsed = self._parse_uci(board, move.uci())
            if parsed is None and move.promotion is None:
                # Dropped pawns on the last rank promote to a queen.
                parsed = self._parse_uci(board, move.uci() + "q")
            return parsed

        text = _ANNOTATION_SUFFIX_RE.sub("", move.strip())
        if not text:
            return None
        if not sloppy and _COORDINATE_RE.match(text):
            # parse_san accepts fully specified squares; strict mode does not.
            return None
        try:
            return board.parse_san(text)
        except ValueError:
            if not sloppy:
                return None

        # Sloppy input: coordinates ("e2e4"), long algebraic ("Ng1-f3").
        candidate = self._parse_uci(board, text)
        if candidate is not None:
            return candidate
        match = _LONG_ALGEBRAIC_RE.match(text)
        if match is None:
            return None
        from_sq, to_sq, promo = match.groups()
        return self._parse_uci(board, f"{from_sq}{to_sq}{(promo or '').lower()}")

    @staticmethod
    def _parse_uci(board: chess.Board, text: str) -> chess.Move | None:
        try:
            candidate = chess.Move.from_uci(text)
        except ValueError:
            return None
        if candidate in board.legal_moves:
            return candidate
        return None

    @staticmethod
    def _flags(board: chess.Board, move: chess.Move) -> str:
        flags = ""
        if board.is_en_passant(move):
            flags += "e"
        elif board.is_capture(move):
            flags += "c"
        if board.is_kingside_castling(move):
            flags += "k"
        elif board.is_queenside_castling(move):
            flags += "q"
        if move.promotion is not None:
            flags += "p"
        piece = board.piece_at(move.from_square)
        if (
            piece is not None
            and piece.piece_type == chess.PAWN
            and abs(move.to_square - move.from_square) == 16
        ):
            flags += "b"
        return flags or "n"
