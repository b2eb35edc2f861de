"""Tests for guess-the-move training over a tree's mainline."""

import chess
import pytest

from pgntree.core.rules import STARTING_FEN, MoveSpec
from pgntree.session.training import TrainingSession

GAME = "1. e4 e5 2. Nf3 Nc6 *"
MATE_IN_ONE = "FEN: 6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1\nMoves: Ra8#"


def _fen_after(*sans: str) -> str:
    board = chess.Board()
    for san in sans:
        board.push_san(san)
    return board.fen()


class TestPuzzle:
    def test_wrong_then_right(self) -> None:
        session = TrainingSession.from_puzzle(MATE_IN_ONE)
        feedback: list[bool] = []
        solved: list[bool] = []
        session.events.on_feedback.append(feedback.append)
        session.events.on_solved.append(lambda: solved.append(True))

        assert session.solver == "w"
        assert not session.try_move("Ra7")
        assert session.cursor.is_root
        assert not session.solved

        assert session.try_move("Ra8#")
        assert session.solved
        assert feedback == [False, True]
        assert solved == [True]

    def test_no_moves_after_solving(self) -> None:
        session = TrainingSession.from_puzzle(MATE_IN_ONE)
        session.try_move(MoveSpec("a1", "a8"))
        assert session.solved
        assert not session.try_move("Kf1")
        assert not session.is_solver_turn

    def test_invalid_fen_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid FEN"):
            TrainingSession.from_puzzle("FEN: not a fen Moves: e4")


class TestGameDrill:
    def test_opponent_moves_are_replayed(self) -> None:
        session = TrainingSession.from_pgn(GAME, solver="b")
        assert session.fen == _fen_after("e4")
        assert session.is_solver_turn

        assert not session.try_move("c5")
        assert session.fen == _fen_after("e4")

        assert session.try_move("e5")
        assert session.fen == _fen_after("e4", "e5", "Nf3")
        assert session.try_move("Nc6")
        assert session.solved
        assert session.progress == (4, 4)

    def test_white_solver_with_square_moves(self) -> None:
        session = TrainingSession.from_pgn(GAME)
        assert session.cursor.is_root
        assert session.try_move(MoveSpec("e2", "e4"))
        assert session.fen == _fen_after("e4", "e5")
        assert session.progress == (2, 4)

    def test_tree_is_never_modified(self) -> None:
        session = TrainingSession.from_pgn(GAME)
        size = len(session.tree)
        session.try_move("d4")
        session.try_move("Ke2")
        session.try_move("e4")
        assert len(session.tree) == size
        assert session.tree.root.fen == STARTING_FEN

    def test_manual_replies(self) -> None:
        session = TrainingSession.from_pgn(GAME, solver="b", auto_reply=False)
        assert session.cursor.is_root
        assert not session.is_solver_turn
        feedback: list[bool] = []
        session.events.on_feedback.append(feedback.append)

        assert not session.try_move("e4")
        assert feedback == []
        assert session.play_opponent_moves() == 1
        assert session.try_move("e5")
        assert session.fen == _fen_after("e4", "e5")

    def test_position_events(self) -> None:
        session = TrainingSession.from_pgn(GAME)
        seen: list[str] = []
        session.events.on_position_changed.append(seen.append)
        session.try_move("e4")
        assert seen == [_fen_after("e4"), _fen_after("e4", "e5")]

    def test_restart(self) -> None:
        session = TrainingSession.from_pgn(GAME, solver="b")
        session.try_move("e5")
        session.try_move("Nc6")
        assert session.solved

        assert session.restart() == _fen_after("e4")
        assert not session.solved
        assert session.expected is not None and session.expected.san == "e5"

    def test_empty_line_is_solved(self) -> None:
        session = TrainingSession.from_pgn("*")
        assert session.solved
        assert not session.try_move("e4")

    def test_bad_solver(self) -> None:
        with pytest.raises(ValueError, match="Solver"):
            TrainingSession.from_pgn(GAME, solver="white")
