"""Session layer: cursor navigation and interactive editing of a move tree.

Quick start::

    from pgntree.session import TreeSession

    session = TreeSession.from_pgn("1. e4 (1. d4 d5) e5 *")
    session.to_end()
    session.append_user_move("Nf3")
"""

from pgntree.session.session import SessionEvents, TreeSession
from pgntree.session.settings import ViewerSettings
from pgntree.session.training import TrainingEvents, TrainingSession

__all__ = [
    "SessionEvents",
    "TrainingEvents",
    "TrainingSession",
    "TreeSession",
    "ViewerSettings",
]
