"""Tests for PGN document helpers."""

import pytest

from pgntree.core.pgn import (
    build_pgn,
    export_movetext,
    extract_year,
    format_player,
    game_title,
    load_game,
    load_games,
    load_puzzle,
    parse_puzzle_spec,
    split_games,
    split_pgn,
    starting_fen_from_headers,
)
from pgntree.core.parser import parse_movetext

SAMPLE_PGN = """[Event "Casual"]
[Site "?"]
[White "Alice"]
[Black "Bob"]
[Result "1-0"]

1. e4 e5 2. Nf3 {developing} Nc6 (2... d6) 3. Bb5
"""

TWO_GAMES = """[Event "A"]

1. e4 e5 1-0

[Event "B"]

1. d4 d5 0-1
"""


class TestSplitPgn:
    def test_headers_and_movetext(self) -> None:
        headers, movetext = split_pgn(SAMPLE_PGN)
        assert headers["White"] == "Alice"
        assert headers["Result"] == "1-0"
        assert movetext.startswith("1. e4 e5")

    def test_escaped_quotes(self) -> None:
        headers, _ = split_pgn('[Event "The \\"Big\\" One"]\n\n1. e4')
        assert headers["Event"] == 'The "Big" One'

    def test_invalid_header_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid PGN header"):
            split_pgn('[Event "unterminated\n\n1. e4')

    def test_movetext_only(self) -> None:
        headers, movetext = split_pgn("1. e4 e5\n2. Nf3")
        assert headers == {}
        assert movetext == "1. e4 e5\n2. Nf3"

    def test_command_and_diagram_lines_are_movetext(self) -> None:
        _headers, movetext = split_pgn("[%clk 0:01:00] 1. e4\n[D] e5")
        assert "1. e4" in movetext
        assert "[D] e5" in movetext

    def test_escape_lines_dropped(self) -> None:
        _headers, movetext = split_pgn("1. e4\n% engine output\ne5")
        assert movetext == "1. e4\ne5"

    def test_stops_at_next_game(self) -> None:
        headers, movetext = split_pgn(TWO_GAMES)
        assert headers == {"Event": "A"}
        assert movetext == "1. e4 e5 1-0"


class TestSplitGames:
    def test_two_games(self) -> None:
        games = split_games(TWO_GAMES)
        assert len(games) == 2
        assert games[0].startswith('[Event "A"]')
        assert games[1].startswith('[Event "B"]')
        assert games[1].endswith("1. d4 d5 0-1")

    def test_blank_text(self) -> None:
        assert split_games("\n\n  \n") == []

    def test_movetext_only_games(self) -> None:
        assert split_games("1. e4 e5 *") == ["1. e4 e5 *"]


class TestHeaders:
    def test_starting_fen(self) -> None:
        fen = "4k3/8/8/8/8/8/4P3/4K3 w - - 0 1"
        assert starting_fen_from_headers({"SetUp": "1", "FEN": fen}) == fen
        assert starting_fen_from_headers({"FEN": fen}) == fen
        assert starting_fen_from_headers({"SetUp": "0", "FEN": fen}) is None
        assert starting_fen_from_headers({}) is None

    def test_format_player(self) -> None:
        assert format_player("Carlsen", "2850", "GM") == "GM Carlsen (2850)"
        assert format_player("Anon", "?") == "Anon"
        assert format_player(None) == ""

    def test_extract_year(self) -> None:
        assert extract_year("1999.??.??") == "1999"
        assert extract_year("????.??.??") == ""
        assert extract_year(None) == ""

    def test_game_title(self) -> None:
        players, meta = game_title(
            {"White": "Alice", "Black": "Bob", "Event": "Club Cup", "Date": "2021.05.01"}
        )
        assert players == "Alice – Bob"
        assert meta == "Club Cup, 2021"

    def test_game_title_without_event(self) -> None:
        _players, meta = game_title({"White": "A", "Black": "B", "Event": "?", "Date": "2001.??.??"})
        assert meta == "2001"


class TestLoadGame:
    def test_result_comes_from_header(self) -> None:
        parsed = load_game(SAMPLE_PGN)
        assert parsed.result == "1-0"
        assert parsed.headers["Black"] == "Bob"
        assert [n.san for n in parsed.tree.mainline()] == ["e4", "e5", "Nf3", "Nc6", "Bb5"]

    def test_movetext_result_wins(self) -> None:
        parsed = load_game('[Result "1-0"]\n\n1. e4 e5 0-1')
        assert parsed.result == "0-1"

    def test_fen_header_sets_start(self) -> None:
        fen = "4k3/8/8/8/8/8/4P3/4K3 w - - 0 1"
        parsed = load_game(f'[SetUp "1"]\n[FEN "{fen}"]\n\n1. e4 Kd7')
        assert parsed.tree.start_fen == fen
        assert len(parsed.tree.mainline()) == 2

    def test_invalid_fen_header_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid FEN"):
            load_game('[SetUp "1"]\n[FEN "not a fen"]\n\n1. e4')

    def test_reads_first_game_only(self) -> None:
        parsed = load_game(TWO_GAMES)
        assert parsed.headers == {"Event": "A"}
        assert [n.san for n in parsed.tree.mainline()] == ["e4", "e5"]

    def test_load_games(self) -> None:
        games = load_games(TWO_GAMES)
        assert [g.headers["Event"] for g in games] == ["A", "B"]
        assert [[n.san for n in g.tree.mainline()] for g in games] == [
            ["e4", "e5"],
            ["d4", "d5"],
        ]
        assert [g.result for g in games] == ["1-0", "0-1"]
        assert all(g.diagnostics.unknown_tokens == 0 for g in games)


class TestPuzzle:
    def test_parse_block(self) -> None:
        spec = parse_puzzle_spec(
            "FEN: 6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1\nMoves: Ra8#\nPGN: https://example.org/p.pgn"
        )
        assert spec.fen == "6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1"
        assert spec.moves == ["Ra8#"]
        assert spec.pgn_url == "https://example.org/p.pgn"

    def test_flattened_block(self) -> None:
        spec = parse_puzzle_spec("FEN: 6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1 Moves: ♖a8#")
        assert spec.moves == ["Ra8#"]

    def test_missing_parts(self) -> None:
        spec = parse_puzzle_spec("nothing here")
        assert spec.fen == ""
        assert spec.moves == []

    def test_load_puzzle(self) -> None:
        parsed = load_puzzle("FEN: 6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1 Moves: Ra8#")
        assert parsed.tree.start_fen.startswith("6k1/")
        assert [n.san for n in parsed.tree.mainline()] == ["Ra8#"]


class TestExport:
    def test_export_movetext(self) -> None:
        parsed = parse_movetext("1. e4 $1 {good} (1. d4 d5) e5 1-0")
        assert export_movetext(parsed.tree, parsed.result) == (
            "1. e4 $1 {good} (1. d4 d5) 1... e5 1-0"
        )

    def test_export_reparses_to_same_tree(self) -> None:
        parsed = load_game(SAMPLE_PGN)
        again = parse_movetext(export_movetext(parsed.tree, parsed.result))
        assert [(n.san, n.comment) for n in again.tree.iter_subtree(again.tree.root)] == [
            (n.san, n.comment) for n in parsed.tree.iter_subtree(parsed.tree.root)
        ]

    def test_closing_brace_in_comment_is_escaped(self) -> None:
        parsed = parse_movetext("1. e4")
        parsed.tree.mainline()[0].comment = "a } b"
        assert export_movetext(parsed.tree) == "1. e4 {a ] b} *"

    def test_build_pgn_adds_setup_for_custom_start(self) -> None:
        fen = "4k3/8/8/8/8/8/4P3/4K3 w - - 0 1"
        parsed = parse_movetext("1. e4", start_fen=fen)
        text = build_pgn({"Event": "Study"}, parsed.tree)
        assert text.splitlines()[:4] == [
            '[Event "Study"]',
            '[SetUp "1"]',
            f'[FEN "{fen}"]',
            "",
        ]
        assert "1. e4 *" in text

    def test_build_pgn_round_trip(self) -> None:
        parsed = load_game(SAMPLE_PGN)
        text = build_pgn(parsed.headers, parsed.tree, parsed.result)
        again = load_game(text)
        assert again.headers == parsed.headers
        assert again.result == "1-0"
        assert len(again.tree) == len(parsed.tree)
