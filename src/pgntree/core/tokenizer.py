"""Lexer for PGN movetext.

The tokenizer is a plain iterator over the text whose only state is a
character offset, so a parse can stop after any token and resume later from
``Tokenizer(text, offset)``. Words that glue several lexemes together
(``12.e4!?``) are consumed one lexeme at a time for the same reason.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum, auto

from pgntree.core.nags import HUMAN_GLYPHS


class TokenKind(IntEnum):
    """Lexical categories of movetext."""

    MOVE_NUMBER = auto()
    SAN = auto()
    COMMENT = auto()
    NAG = auto()
    VARIATION_OPEN = auto()
    VARIATION_CLOSE = auto()
    RESULT = auto()
    DIAGRAM_MARKER = auto()
    UNKNOWN = auto()


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexeme with its start offset in the source text."""

    kind: TokenKind
    text: str
    offset: int


# ── Lexeme patterns ──────────────────────────────────────────────────────────

_WORD_BREAKS = frozenset("{}();[")

_RESULT_RE = re.compile(r"(?:1-0|0-1|1/2-1/2|½-½|\*)$")
_MOVE_NUMBER_RE = re.compile(r"\d+(?:\.+|…)?|\.{2,}|…")
_NUMERIC_NAG_RE = re.compile(r"\$\d+")
_HUMAN_NAG_RE = re.compile(
    "|".join(re.escape(glyph) for glyph in sorted(HUMAN_GLYPHS, key=len, reverse=True))
)
_CHECK = r"(?:\+(?![-/=])|#)?"
_SAN_RE = re.compile(
    r"(?:"
    r"[O0]-[O0]-[O0]"
    r"|[O0]-[O0]"
    r"|[KQRBN]?[a-h][1-8][-x][a-h][1-8](?:=?[QRBNqrbn])?"
    r"|[a-h][1-8][a-h][1-8][qrbn]?"
    r"|[KQRBN][a-h]?[1-8]?x?[a-h][1-8]"
    r"|[a-h](?:x[a-h])?[1-8](?:=?[QRBNqrbn])?"
    r")" + _CHECK
)


class Tokenizer:
    """Restartable iterator producing :class:`Token` objects from movetext."""

    __slots__ = ("_text", "_offset")

    def __init__(self, text: str, offset: int = 0) -> None:
        self._text = text
        self._offset = max(0, min(offset, len(text)))

    @property
    def offset(self) -> int:
        """Character offset of the next unread input."""
        return self._offset

    @property
    def exhausted(self) -> bool:
        return self._skip_space(self._offset) >= len(self._text)

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        text = self._text
        total = len(text)

        while True:
            idx = self._skip_space(self._offset)
            if idx >= total:
                self._offset = total
                raise StopIteration

            ch = text[idx]

            if ch == "{":
                end = text.find("}", idx + 1)
                if end < 0:
                    # Unterminated comment swallows the rest of the input.
                    self._offset = total
                    return Token(TokenKind.COMMENT, text[idx + 1 :], idx)
                self._offset = end + 1
                return Token(TokenKind.COMMENT, text[idx + 1 : end], idx)

            if ch == ";":
                end = text.find("\n", idx + 1)
                if end < 0:
                    end = total
                self._offset = end
                return Token(TokenKind.COMMENT, text[idx + 1 : end], idx)

            if ch == "(":
                self._offset = idx + 1
                return Token(TokenKind.VARIATION_OPEN, ch, idx)

            if ch == ")":
                self._offset = idx + 1
                return Token(TokenKind.VARIATION_CLOSE, ch, idx)

            if ch == "[":
                if text.startswith("[D]", idx):
                    self._offset = idx + 3
                    return Token(TokenKind.DIAGRAM_MARKER, "[D]", idx)
                end = text.find("]", idx + 1)
                end = total if end < 0 else end + 1
                self._offset = end
                if text.startswith("[%", idx):
                    # Embedded commands ([%clk ...], [%eval ...]) carry no movetext.
                    continue
                return Token(TokenKind.UNKNOWN, text[idx:end], idx)

            if ch == "}":
                self._offset = idx + 1
                return Token(TokenKind.UNKNOWN, ch, idx)

            return self._lex_word(idx)

    def _skip_space(self, idx: int) -> int:
        text = self._text
        total = len(text)
        while idx < total and text[idx].isspace():
            idx += 1
        return idx

    def _lex_word(self, idx: int) -> Token:
        text = self._text
        end = idx
        while end < len(text) and not text[end].isspace() and text[end] not in _WORD_BREAKS:
            end += 1
        word = text[idx:end]

        if _RESULT_RE.match(word):
            self._offset = end
            return Token(TokenKind.RESULT, word, idx)

        # SAN goes first so that zero castling is not read as move number 0.
        for kind, pattern in (
            (TokenKind.SAN, _SAN_RE),
            (TokenKind.MOVE_NUMBER, _MOVE_NUMBER_RE),
            (TokenKind.NAG, _NUMERIC_NAG_RE),
            (TokenKind.NAG, _HUMAN_NAG_RE),
        ):
            match = pattern.match(word)
            if match is None:
                continue
            lexeme = match.group()
            if kind == TokenKind.SAN and not self._san_ends_cleanly(word, lexeme):
                continue
            self._offset = idx + len(lexeme)
            return Token(kind, lexeme, idx)

        self._offset = end
        return Token(TokenKind.UNKNOWN, word, idx)

    @staticmethod
    def _san_ends_cleanly(word: str, lexeme: str) -> bool:
        # "Nf3!?" splits into SAN + NAG, but "e4xyz" is a single unknown word.
        rest = word[len(lexeme) :]
        return not rest or _HUMAN_NAG_RE.fullmatch(rest) is not None or rest[0] == "$"


def tokenize(text: str, offset: int = 0) -> Iterator[Token]:
    """Lazily yield the tokens of *text* starting at *offset*."""
    yield from Tokenizer(text, offset)
