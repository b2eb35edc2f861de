"""Core domain layer: movetext lexing, the move tree and its builder.

Quick start::

    from pgntree.core import parse_movetext

    parsed = parse_movetext("1. e4 (1. d4 d5) e5 *")
    root = parsed.tree.root
    print(parsed.tree.next(root).san)  # e4
"""

from pgntree.core.figurine import normalize_castling, to_ascii, to_figurine
from pgntree.core.nags import glyph_for, nag_for
from pgntree.core.parser import (
    BuilderSnapshot,
    ContextKind,
    ParseContext,
    ParseDiagnostics,
    ParseResult,
    TreeBuilder,
    parse_movetext,
)
from pgntree.core.pgn import (
    PuzzleSpec,
    build_pgn,
    export_movetext,
    game_title,
    load_game,
    load_games,
    load_puzzle,
    parse_puzzle_spec,
    split_games,
    split_pgn,
)
from pgntree.core.render import (
    AnnotationItem,
    CommentItem,
    MoveItem,
    MoveNumberItem,
    RenderItem,
    ResultItem,
    TextItem,
    VariationItem,
    items_to_text,
    render_tree,
)
from pgntree.core.rules import (
    STARTING_FEN,
    ChessRulesEngine,
    MoveResult,
    MoveSpec,
    RulesEngine,
)
from pgntree.core.tokenizer import Token, TokenKind, Tokenizer, tokenize
from pgntree.core.tree import MoveTree, Node

__all__ = [
    # Normalizer
    "normalize_castling",
    "to_ascii",
    "to_figurine",
    "glyph_for",
    "nag_for",
    # Lexing
    "Token",
    "TokenKind",
    "Tokenizer",
    "tokenize",
    # Rules
    "STARTING_FEN",
    "ChessRulesEngine",
    "MoveResult",
    "MoveSpec",
    "RulesEngine",
    # Tree
    "MoveTree",
    "Node",
    # Builder
    "BuilderSnapshot",
    "ContextKind",
    "ParseContext",
    "ParseDiagnostics",
    "ParseResult",
    "TreeBuilder",
    "parse_movetext",
    # Rendering
    "AnnotationItem",
    "CommentItem",
    "MoveItem",
    "MoveNumberItem",
    "RenderItem",
    "ResultItem",
    "TextItem",
    "VariationItem",
    "items_to_text",
    "render_tree",
    # PGN documents
    "PuzzleSpec",
    "build_pgn",
    "export_movetext",
    "game_title",
    "load_game",
    "load_games",
    "load_puzzle",
    "parse_puzzle_spec",
    "split_games",
    "split_pgn",
]
