"""Viewer settings shared by the session, the renderer and the Qt bridge."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ViewerSettings:
    """All user-configurable settings."""

    # Notation
    use_figurine_notation: bool = True

    # Parsing
    sloppy_moves: bool = True
    echo_illegal_moves: bool = True
    chunk_tokens: int = 400  # tokens parsed per event-loop turn
