"""Numeric Annotation Glyphs and the human shorthand that maps onto them."""

from __future__ import annotations

NAG_GLYPHS: dict[int, str] = {
    1: "!",
    2: "?",
    3: "!!",
    4: "??",
    5: "!?",
    6: "?!",
    7: "□",
    8: "□",
    10: "=",
    11: "=",
    12: "=",
    13: "∞",
    14: "⩲",
    15: "⩱",
    16: "±",
    17: "∓",
    18: "+−",
    19: "−+",
    22: "⨀",
    23: "⨀",
    32: "⟳",
    33: "⟳",
    36: "→",
    37: "→",
    40: "↑",
    41: "↑",
    132: "⇆",
    133: "⇆",
    138: "⊕",
    139: "⊕",
    140: "∆",
    142: "⌓",
    146: "N",
}

# Annotators typed by hand in books and databases, keyed by source text.
HUMAN_GLYPHS: dict[str, str] = {
    "!!": "!!",
    "??": "??",
    "!?": "!?",
    "?!": "?!",
    "!": "!",
    "?": "?",
    "+-": "+−",
    "-+": "−+",
    "+/-": "±",
    "-/+": "∓",
    "+=": "⩲",
    "=+": "⩱",
    "=/+": "⩱",
    "+/=": "⩲",
    "=": "=",
    "∞": "∞",
    "=/∞": "=/∞",
    "±": "±",
    "∓": "∓",
    "⩲": "⩲",
    "⩱": "⩱",
    "□": "□",
    "→": "→",
    "↑": "↑",
    "⇆": "⇆",
    "⟳": "⟳",
    "∆": "∆",
}

_GLYPH_TO_NAG: dict[str, int] = {}
for _nag, _glyph in sorted(NAG_GLYPHS.items()):
    _GLYPH_TO_NAG.setdefault(_glyph, _nag)
del _nag, _glyph


def glyph_for(token: str) -> str:
    """Map a ``$n`` code or a human annotator to its display glyph.

    Unknown numeric codes keep their ``$n`` spelling so nothing is lost.
    """
    if token.startswith("$"):
        digits = token[1:]
        if digits.isdigit():
            return NAG_GLYPHS.get(int(digits), token)
        return token
    return HUMAN_GLYPHS.get(token, token)


def nag_for(glyph: str) -> str:
    """Return the PGN spelling (``$n``) for a display glyph, if one exists."""
    if glyph.startswith("$"):
        return glyph
    nag = _GLYPH_TO_NAG.get(glyph)
    if nag is None:
        return glyph
    return f"${nag}"
