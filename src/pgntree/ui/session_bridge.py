"""Qt signals for a :class:`TreeSession`.

Board widgets animate moves asynchronously. Whatever an animation ends on,
the widget should redraw from the FEN carried by the latest
``position_changed`` emission, which is always the session's current one.
"""

from __future__ import annotations

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from pgntree.core.parser import ParseResult
from pgntree.session.session import TreeSession


class SessionBridge(QObject):
    """Re-emits session callbacks as Qt signals and exposes navigation slots."""

    position_changed = pyqtSignal(str)  # fen
    tree_changed = pyqtSignal()
    session_replaced = pyqtSignal()

    __slots__ = ("_session",)

    def __init__(self, session: TreeSession, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._session = session
        self._connect(session)

    @property
    def session(self) -> TreeSession:
        return self._session

    def set_session(self, session: TreeSession) -> None:
        """Swap in a freshly loaded session and announce its start position."""
        self._disconnect(self._session)
        self._session = session
        self._connect(session)
        self.session_replaced.emit()
        self.tree_changed.emit()
        self.position_changed.emit(session.fen)

    @pyqtSlot(object)
    def load_parsed(self, parsed: object) -> None:
        """Slot for ``ChunkedParseWorker.finished``."""
        if not isinstance(parsed, ParseResult):
            return
        self.set_session(
            TreeSession.from_parse(parsed, settings=self._session.settings)
        )

    @pyqtSlot()
    def resync(self) -> None:
        """Re-announce the authoritative FEN (e.g. after an animation settles)."""
        self.position_changed.emit(self._session.fen)

    # ── Navigation slots ─────────────────────────────────────────────────

    @pyqtSlot()
    def to_root(self) -> None:
        self._session.to_root()

    @pyqtSlot()
    def to_end(self) -> None:
        self._session.to_end()

    @pyqtSlot()
    def to_parent(self) -> None:
        self._session.to_parent()

    @pyqtSlot()
    def to_child(self) -> None:
        self._session.to_child()

    @pyqtSlot(int)
    def to_node(self, node_id: int) -> None:
        self._session.to_node(node_id)

    # ── Internals ────────────────────────────────────────────────────────

    def _forward_position(self, fen: str) -> None:
        self.position_changed.emit(fen)

    def _forward_tree(self) -> None:
        self.tree_changed.emit()

    def _connect(self, session: TreeSession) -> None:
        session.events.on_position_changed.append(self._forward_position)
        session.events.on_tree_changed.append(self._forward_tree)

    def _disconnect(self, session: TreeSession) -> None:
        events = session.events
        if self._forward_position in events.on_position_changed:
            events.on_position_changed.remove(self._forward_position)
        if self._forward_tree in events.on_tree_changed:
            events.on_tree_changed.remove(self._forward_tree)
