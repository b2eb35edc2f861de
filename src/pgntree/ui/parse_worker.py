"""Qt driver that parses large movetext in chunks on the GUI event loop."""

from __future__ import annotations

import logging

from PyQt6.QtCore import QObject, QTimer, pyqtSignal, pyqtSlot

from pgntree.core.parser import TreeBuilder
from pgntree.core.pgn import attach_headers, split_pgn, starting_fen_from_headers
from pgntree.core.rules import ChessRulesEngine, RulesEngine
from pgntree.session.settings import ViewerSettings

_LOGGER = logging.getLogger(__name__)


class ChunkedParseWorker(QObject):
    """Advances a :class:`TreeBuilder` a few hundred tokens per event-loop turn.

    Only one parse is active at a time: starting a new one drops the previous
    builder, so chunks of two parses never interleave.
    """

    progress = pyqtSignal(int, int)  # offset, total
    finished = pyqtSignal(object)  # ParseResult
    failed = pyqtSignal(str)

    __slots__ = ("_builder", "_headers", "_rules", "_settings", "_timer", "_total")

    def __init__(
        self,
        rules: RulesEngine | None = None,
        settings: ViewerSettings | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._rules = rules if rules is not None else ChessRulesEngine()
        self._settings = settings if settings is not None else ViewerSettings()
        self._builder: TreeBuilder | None = None
        self._headers: dict[str, str] = {}
        self._total = 0
        self._timer = QTimer(self)
        self._timer.setInterval(0)
        self._timer.timeout.connect(self.step)

    @property
    def is_running(self) -> bool:
        return self._builder is not None

    def start(self, pgn_text: str) -> None:
        """Begin parsing *pgn_text* (headers optional)."""
        self.cancel()
        try:
            headers, movetext = split_pgn(pgn_text)
            builder = TreeBuilder(
                movetext,
                self._rules,
                starting_fen_from_headers(headers),
                figurine=self._settings.use_figurine_notation,
                echo_illegal=self._settings.echo_illegal_moves,
            )
        except ValueError as exc:
            self.failed.emit(str(exc))
            return

        self._headers = headers
        self._total = len(movetext)
        self._builder = builder
        self._timer.start()

    @pyqtSlot()
    def cancel(self) -> None:
        """Abandon the parse in progress, if any."""
        self._timer.stop()
        if self._builder is not None:
            _LOGGER.debug("Cancelled parse at offset %d", self._builder.offset)
        self._builder = None

    @pyqtSlot()
    def step(self) -> None:
        """Parse one chunk; emits ``finished`` after the last one."""
        builder = self._builder
        if builder is None:
            self._timer.stop()
            return

        try:
            done = builder.feed(max(1, self._settings.chunk_tokens))
        except Exception as exc:
            self.cancel()
            self.failed.emit(str(exc))
            return

        self.progress.emit(builder.offset, self._total)
        if not done:
            return

        self._timer.stop()
        self._builder = None
        self.finished.emit(attach_headers(builder.result(), self._headers))
