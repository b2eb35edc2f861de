"""TrainingSession: guess-the-move drills over the mainline of a tree.

The learner plays one side (the solver) and has to find each mainline move
of that side; the other side's moves are replayed automatically. Wrong
guesses leave the position unchanged. The tree is never modified, so a
loaded game or puzzle can be drilled any number of times.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from pgntree.core.parser import ParseResult
from pgntree.core.pgn import load_game, load_puzzle
from pgntree.core.rules import ChessRulesEngine, MoveSpec, RulesEngine
from pgntree.core.tree import MoveTree, Node

_LOGGER = logging.getLogger(__name__)

PositionCallback = Callable[[str], None]  # fen
FeedbackCallback = Callable[[bool], None]  # correct
SolvedCallback = Callable[[], None]


@dataclass
class TrainingEvents:
    on_position_changed: list[PositionCallback] = field(default_factory=list)
    on_feedback: list[FeedbackCallback] = field(default_factory=list)
    on_solved: list[SolvedCallback] = field(default_factory=list)


class TrainingSession:
    """Walks the mainline of *tree*, checking the solver's moves.

    Args:
        tree: Tree whose mainline is the expected line.
        rules: Rules engine used to play the guesses.
        solver: ``"w"`` or ``"b"``; defaults to the side to move at the root.
        auto_reply: Replay the opponent's moves as soon as it is their turn.
    """

    __slots__ = (
        "_tree",
        "_rules",
        "_solver",
        "_auto_reply",
        "_cursor_id",
        "_solved",
        "events",
    )

    def __init__(
        self,
        tree: MoveTree,
        rules: RulesEngine | None = None,
        *,
        solver: str | None = None,
        auto_reply: bool = True,
    ) -> None:
        self._rules = rules if rules is not None else ChessRulesEngine()
        self._tree = tree
        side = solver if solver is not None else self._rules.turn(tree.start_fen)
        if side not in ("w", "b"):
            raise ValueError(f"Solver must be 'w' or 'b', got {side!r}")
        self._solver = side
        self._auto_reply = auto_reply
        self._cursor_id = tree.root.id
        self._solved = False
        self.events = TrainingEvents()
        self._start()

    # ── Construction ─────────────────────────────────────────────────────

    @classmethod
    def from_parse(
        cls,
        parsed: ParseResult,
        rules: RulesEngine | None = None,
        *,
        solver: str | None = None,
        auto_reply: bool = True,
    ) -> TrainingSession:
        return cls(parsed.tree, rules, solver=solver, auto_reply=auto_reply)

    @classmethod
    def from_pgn(
        cls,
        pgn_text: str,
        rules: RulesEngine | None = None,
        *,
        solver: str | None = None,
        auto_reply: bool = True,
    ) -> TrainingSession:
        return cls.from_parse(
            load_game(pgn_text, rules), rules, solver=solver, auto_reply=auto_reply
        )

    @classmethod
    def from_puzzle(
        cls, text: str, rules: RulesEngine | None = None
    ) -> TrainingSession:
        """Puzzle blocks are solved by the side to move in their FEN."""
        return cls.from_parse(load_puzzle(text, rules), rules)

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def tree(self) -> MoveTree:
        return self._tree

    @property
    def solver(self) -> str:
        return self._solver

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
    def solved(self) -> bool:
        return self._solved

    @property
    def is_solver_turn(self) -> bool:
        return not self._solved and self.turn == self._solver

    @property
    def expected(self) -> Node | None:
        """The mainline move that has to be played next, if any."""
        return self._tree.next(self.cursor)

    @property
    def progress(self) -> tuple[int, int]:
        """``(plies played, plies in the line)``."""
        return self.cursor.ply, len(self._tree.mainline())

    # ── Drill ────────────────────────────────────────────────────────────

    def try_move(self, move: str | MoveSpec) -> bool:
        """Check a solver move against the expected one.

        A correct move advances the cursor (and replays the opponent's answer
        when ``auto_reply`` is on). Moves outside the solver's turn or after
        the line is finished are refused without feedback.
        """
        expected = self.expected
        if expected is None or not self.is_solver_turn:
            return False

        outcome = self._rules.apply_move(self.fen, move, sloppy=True)
        correct = outcome.ok and outcome.fen == expected.fen
        self._emit_feedback(correct)
        if not correct:
            _LOGGER.debug("Wrong guess %r, expected %s", move, expected.san)
            return False

        self._advance(expected)
        if not self._finish_if_done() and self._auto_reply:
            self.play_opponent_moves()
        return True

    def play_opponent_moves(self) -> int:
        """Replay mainline moves until it is the solver's turn again."""
        played = 0
        while not self._solved and self.turn != self._solver:
            nxt = self.expected
            if nxt is None:
                break
            self._advance(nxt)
            played += 1
        self._finish_if_done()
        return played

    def restart(self) -> str:
        """Go back to the start of the line and drill it again."""
        self._solved = False
        self._cursor_id = self._tree.root.id
        self._emit_position_changed()
        self._start()
        return self.fen

    # ── Internals ────────────────────────────────────────────────────────

    def _start(self) -> None:
        if self._auto_reply:
            self.play_opponent_moves()
        else:
            self._finish_if_done()

    def _advance(self, node: Node) -> None:
        self._cursor_id = node.id
        self._emit_position_changed()

    def _finish_if_done(self) -> bool:
        if self._solved:
            return True
        if self.expected is not None:
            return False
        self._solved = True
        _LOGGER.info("Line solved after %d plies", self.cursor.ply)
        for cb in self.events.on_solved:
            cb()
        return True

    def _emit_position_changed(self) -> None:
        fen = self.fen
        for cb in self.events.on_position_changed:
            cb(fen)

    def _emit_feedback(self, correct: bool) -> None:
        for cb in self.events.on_feedback:
            cb(correct)
