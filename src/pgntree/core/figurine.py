"""Conversion between figurine glyphs and ASCII piece letters in SAN text."""

from __future__ import annotations

import re

# Unicode figurine symbols: white = outline, black = filled
_WHITE_FIGURINE: dict[str, str] = {"K": "♔", "Q": "♕", "R": "♖", "B": "♗", "N": "♘"}
_BLACK_FIGURINE: dict[str, str] = {"K": "♚", "Q": "♛", "R": "♜", "B": "♝", "N": "♞"}

_TO_LETTER: dict[str, str] = {
    **{glyph: letter for letter, glyph in _WHITE_FIGURINE.items()},
    **{glyph: letter for letter, glyph in _BLACK_FIGURINE.items()},
    # SAN never writes a pawn letter, so pawn glyphs simply disappear.
    "♙": "",
    "♟": "",
}
_GLYPH_RE = re.compile("[" + "".join(_TO_LETTER) + "]")
_ZERO_CASTLING_RE = re.compile(r"\b0-0(-0)?(?![-\d])")


def to_ascii(text: str) -> str:
    """Replace every chess-piece glyph in *text* with its ASCII SAN letter."""
    return _GLYPH_RE.sub(lambda match: _TO_LETTER[match.group()], text)


def to_figurine(token: str, *, black: bool = False) -> str:
    """Replace the piece letters of a SAN *token* with figurine glyphs.

    Only the leading piece letter (``Nf3``, ``Qxd5``) and the promotion piece
    (``e8=Q``) are replaced; pawn moves and castling come back unchanged.
    """
    table = _BLACK_FIGURINE if black else _WHITE_FIGURINE

    if token and token[0] in table:
        token = table[token[0]] + token[1:]

    if "=" in token:
        prefix, _, promo = token.partition("=")
        if promo:
            token = prefix + "=" + table.get(promo[0], promo[0]) + promo[1:]

    return token


def normalize_castling(token: str) -> str:
    """Rewrite legacy zero castling (``0-0``, ``0-0-0``) as ``O-O`` / ``O-O-O``."""
    return _ZERO_CASTLING_RE.sub(
        lambda match: "O-O-O" if match.group(1) else "O-O", token
    )
