"""PGN document helpers: headers, game loading and serialization."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from pgntree.core.figurine import to_ascii
from pgntree.core.nags import nag_for
from pgntree.core.parser import ParseResult, TreeBuilder, normalize_result
from pgntree.core.render import LineEvent, move_number_label, walk_lines
from pgntree.core.rules import STARTING_FEN, RulesEngine
from pgntree.core.tree import MoveTree

_LOGGER = logging.getLogger(__name__)

_PGN_HEADER_RE = re.compile(r'^\[(\w+)\s+"((?:[^"\\]|\\.)*)"\]\s*$')
_PGN_RESULT_TOKENS = {"1-0", "0-1", "1/2-1/2", "*"}
_PUZZLE_FEN_RE = re.compile(r"FEN:\s*(.*?)(?=\s+(?:Moves:|PGN:)|$)", re.IGNORECASE)
_PUZZLE_MOVES_RE = re.compile(r"Moves:\s*(.*?)(?=\s+(?:FEN:|PGN:)|$)", re.IGNORECASE)
_PUZZLE_URL_RE = re.compile(r"PGN:\s*(https?://\S+)", re.IGNORECASE)


@dataclass(slots=True)
class PuzzleSpec:
    """A puzzle block: start position plus the solution moves.

    ``pgn_url`` is only carried through for a host that fetches remote
    puzzle packs; nothing here downloads it.
    """

    fen: str
    moves: list[str] = field(default_factory=list)
    pgn_url: str = ""


# ── Headers ──────────────────────────────────────────────────────────────────


def _is_header_line(line: str) -> bool:
    return line.startswith("[") and not line.startswith(("[%", "[D]"))


def split_games(pgn_text: str) -> list[str]:
    """Split a PGN file into one text per game.

    A header line that follows movetext starts the next game. Blocks without
    any content are dropped.
    """
    games: list[list[str]] = []
    current: list[str] = []
    seen_moves = False

    for raw_line in pgn_text.splitlines():
        line = raw_line.strip()
        if _is_header_line(line):
            if seen_moves:
                games.append(current)
                current = []
                seen_moves = False
        elif line:
            seen_moves = True
        current.append(raw_line)
    games.append(current)

    texts = ["\n".join(lines).strip() for lines in games]
    return [text for text in texts if text]


def split_pgn(pgn_text: str) -> tuple[dict[str, str], str]:
    """Split a single PGN game into its header tags and its movetext.

    Only the first game is read; a later header block ends the movetext
    (see :func:`split_games` for files with several games).
    """
    headers: dict[str, str] = {}
    move_lines: list[str] = []

    for raw_line in pgn_text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        if _is_header_line(line):
            if move_lines:
                _LOGGER.debug("Ignoring text after the first game")
                break
            match = _PGN_HEADER_RE.match(line)
            if match is None:
                raise ValueError(f"Invalid PGN header line: {line}")
            key, raw_value = match.groups()
            value = raw_value.replace('\\"', '"').replace("\\\\", "\\")
            headers[key] = value
            continue

        if line.startswith("%"):
            continue
        move_lines.append(line)

    return headers, "\n".join(move_lines)


def starting_fen_from_headers(headers: dict[str, str]) -> str | None:
    fen = headers.get("FEN")
    if fen and headers.get("SetUp", "1") == "1":
        return fen
    return None


def format_player(name: str | None, elo: str | None = None, title: str | None = None) -> str:
    """Format a player as ``"GM Name (2700)"``, skipping missing parts."""
    text = (name or "").strip()
    if title:
        text = f"{title.strip()} {text}".strip()
    if elo and elo.strip() not in {"", "-", "?"}:
        text = f"{text} ({elo.strip()})".strip()
    return text


def extract_year(date: str | None) -> str:
    """Year part of a PGN date (``"1999.??.??"`` → ``"1999"``)."""
    year = (date or "").split(".")[0].strip()
    return year if year.isdigit() else ""


def game_title(headers: dict[str, str]) -> tuple[str, str]:
    """Return ``(players line, event line)`` for a game header block."""
    white = format_player(headers.get("White"), headers.get("WhiteElo"), headers.get("WhiteTitle"))
    black = format_player(headers.get("Black"), headers.get("BlackElo"), headers.get("BlackTitle"))
    year = extract_year(headers.get("Date"))
    event = headers.get("Event", "")
    if event in {"?", "-"}:
        event = ""
    meta = event + (", " + year if event and year else year)
    return f"{white} – {black}", meta


# ── Loading ──────────────────────────────────────────────────────────────────


def load_game(
    pgn_text: str,
    rules: RulesEngine | None = None,
    *,
    figurine: bool = False,
    echo_illegal: bool = True,
) -> ParseResult:
    """Parse a full PGN game (headers and movetext) into a tree."""
    headers, movetext = split_pgn(pgn_text)
    builder = TreeBuilder(
        movetext,
        rules,
        starting_fen_from_headers(headers),
        figurine=figurine,
        echo_illegal=echo_illegal,
    )
    return attach_headers(builder.build(), headers)


def load_games(
    pgn_text: str,
    rules: RulesEngine | None = None,
    *,
    figurine: bool = False,
    echo_illegal: bool = True,
) -> list[ParseResult]:
    """Parse every game of a multi-game PGN file, in file order."""
    return [
        load_game(game, rules, figurine=figurine, echo_illegal=echo_illegal)
        for game in split_games(pgn_text)
    ]


def attach_headers(parsed: ParseResult, headers: dict[str, str]) -> ParseResult:
    """Store *headers* on *parsed*; the Result tag fills in a missing result."""
    parsed.headers = headers
    header_result = normalize_result(headers.get("Result", ""))
    if parsed.result is None and header_result in _PGN_RESULT_TOKENS:
        parsed.result = header_result
    return parsed


def parse_puzzle_spec(text: str) -> PuzzleSpec:
    """Extract ``FEN: ...`` / ``Moves: ...`` / ``PGN: <url>`` from a puzzle block.

    Works even when the newlines of the block have been flattened to spaces.
    """
    flat = " ".join(to_ascii(text).split())
    fen_match = _PUZZLE_FEN_RE.search(flat)
    moves_match = _PUZZLE_MOVES_RE.search(flat)
    url_match = _PUZZLE_URL_RE.search(flat)
    moves = moves_match.group(1).split() if moves_match else []
    return PuzzleSpec(
        fen=fen_match.group(1).strip() if fen_match else "",
        moves=moves,
        pgn_url=url_match.group(1) if url_match else "",
    )


def load_puzzle(text: str, rules: RulesEngine | None = None) -> ParseResult:
    """Build a tree whose mainline is the solution of a puzzle block."""
    spec = parse_puzzle_spec(text)
    return TreeBuilder(" ".join(spec.moves), rules, spec.fen or None).build()


# ── Serialization ────────────────────────────────────────────────────────────


def export_movetext(tree: MoveTree, result: str | None = None) -> str:
    """Serialize *tree* back to movetext with variations, NAGs and comments."""
    parts: list[str] = []
    for event, node, needs_number in walk_lines(tree):
        if event == LineEvent.OPEN:
            parts.append("(")
            continue
        if event == LineEvent.CLOSE:
            parts.append(")")
            continue

        assert node is not None and node.san is not None
        number, is_white = tree.move_number(node)
        if is_white or needs_number:
            parts.append(move_number_label(number, is_white))
        parts.append(node.san)
        parts.extend(nag_for(glyph) for glyph in node.annotations)
        if node.comment:
            # PGN comments cannot contain a closing brace.
            safe_comment = node.comment.replace("}", "]")
            parts.append(f"{{{safe_comment}}}")

    parts.append(result or "*")
    text = " ".join(parts)
    return text.replace("( ", "(").replace(" )", ")")


def build_pgn(
    headers: dict[str, str],
    tree: MoveTree,
    result: str | None = None,
) -> str:
    """Build a single-game PGN document from *headers* and *tree*."""
    result_token = result or headers.get("Result") or "*"
    headers = dict(headers)
    if tree.start_fen != STARTING_FEN:
        headers["SetUp"] = "1"
        headers["FEN"] = tree.start_fen
    lines: list[str] = []
    for key, value in headers.items():
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        lines.append(f'[{key} "{escaped}"]')
    lines.append("")
    lines.append(export_movetext(tree, result_token))
    lines.append("")
    return "\n".join(lines)
