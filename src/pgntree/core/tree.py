"""Move tree: an arena of positions linked by integer ids.

Every node except the root is owned by exactly one parent, either as the
parent's mainline continuation (``next_id``) or as one entry of its ordered
``variation_ids``. Parents are plain id lookups, never owning references.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace


@dataclass(slots=True)
class Node:
    """One position reached by one move (the root holds the start position)."""

    id: int
    san: str | None
    fen: str
    parent_id: int | None = None
    next_id: int | None = None
    variation_ids: list[int] = field(default_factory=list)
    comment: str = ""
    annotations: list[str] = field(default_factory=list)
    is_mainline: bool = True
    ply: int = 0

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


class MoveTree:
    """Single-owner tree of :class:`Node` objects keyed by stable id."""

    __slots__ = ("_nodes", "_root_id", "_next_id")

    def __init__(self, start_fen: str) -> None:
        self._nodes: dict[int, Node] = {}
        self._next_id = 0
        root = self._new_node(san=None, fen=start_fen, parent=None, is_mainline=True)
        self._root_id = root.id

    # ── Lookup ───────────────────────────────────────────────────────────

    @property
    def root(self) -> Node:
        return self._nodes[self._root_id]

    @property
    def start_fen(self) -> str:
        return self.root.fen

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node: object) -> bool:
        return isinstance(node, Node) and self._nodes.get(node.id) is node

    def contains(self, node_id: int) -> bool:
        return node_id in self._nodes

    def node(self, node_id: int) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise ValueError(f"Unknown node id: {node_id}") from None

    def parent(self, node: Node) -> Node | None:
        if node.parent_id is None:
            return None
        return self._nodes[node.parent_id]

    def next(self, node: Node) -> Node | None:
        if node.next_id is None:
            return None
        return self._nodes[node.next_id]

    def variations(self, node: Node) -> list[Node]:
        return [self._nodes[child_id] for child_id in node.variation_ids]

    def children(self, node: Node) -> list[Node]:
        """Mainline child first, then variations in their recorded order."""
        kids = self.variations(node)
        nxt = self.next(node)
        if nxt is not None:
            kids.insert(0, nxt)
        return kids

    def is_variation(self, node: Node) -> bool:
        parent = self.parent(node)
        return parent is not None and parent.next_id != node.id

    def mainline(self) -> list[Node]:
        """Nodes reached from the root by following ``next`` only (root excluded)."""
        line: list[Node] = []
        node = self.next(self.root)
        while node is not None:
            line.append(node)
            node = self.next(node)
        return line

    def path_to(self, node: Node) -> list[Node]:
        """Moves leading from the root to *node*, root excluded."""
        path: list[Node] = []
        current: Node | None = node
        while current is not None and current.parent_id is not None:
            path.append(current)
            current = self.parent(current)
        path.reverse()
        return path

    def iter_subtree(self, node: Node) -> Iterator[Node]:
        """Depth-first walk of *node* and everything below it."""
        stack = [node]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.children(current)))

    def move_number(self, node: Node) -> tuple[int, bool]:
        """Return ``(move number, is white move)`` for the move that made *node*.

        Numbers are derived from the ply count and the start position, never
        from the source text.
        """
        fields = self.start_fen.split()
        fullmove = 1
        if len(fields) > 5 and fields[5].isdigit():
            fullmove = max(1, int(fields[5]))
        black_starts = len(fields) > 1 and fields[1] == "b"
        abs_ply = (fullmove - 1) * 2 + int(black_starts) + max(node.ply - 1, 0)
        return abs_ply // 2 + 1, abs_ply % 2 == 0

    def copy(self) -> MoveTree:
        """Independent copy with the same ids; later edits do not leak across."""
        clone = MoveTree.__new__(MoveTree)
        clone._nodes = {
            node_id: replace(
                node,
                variation_ids=list(node.variation_ids),
                annotations=list(node.annotations),
            )
            for node_id, node in self._nodes.items()
        }
        clone._root_id = self._root_id
        clone._next_id = self._next_id
        return clone

    # ── Structural edits ─────────────────────────────────────────────────

    def add_child(self, parent: Node, san: str, fen: str) -> Node:
        """Link a new node under *parent*.

        The first child becomes the mainline continuation, later ones are
        appended to ``variation_ids`` in discovery order.
        """
        is_mainline = parent.next_id is None
        child = self._new_node(san=san, fen=fen, parent=parent, is_mainline=is_mainline)
        if is_mainline:
            parent.next_id = child.id
        else:
            parent.variation_ids.append(child.id)
        return child

    def promote(self, node: Node) -> bool:
        """Make variation *node* its parent's mainline; the old mainline becomes
        the first variation. Returns ``False`` when *node* is not a variation."""
        if node not in self or not self.is_variation(node):
            return False
        parent = self._nodes[node.parent_id]  # type: ignore[index]
        parent.variation_ids.remove(node.id)
        if parent.next_id is not None:
            demoted = self._nodes[parent.next_id]
            demoted.is_mainline = False
            parent.variation_ids.insert(0, demoted.id)
        parent.next_id = node.id
        node.is_mainline = True
        return True

    def detach(self, node: Node) -> list[int]:
        """Remove variation *node* with its whole subtree.

        Returns the ids that were dropped (empty when *node* is not a variation).
        """
        if node not in self or not self.is_variation(node):
            return []
        parent = self._nodes[node.parent_id]  # type: ignore[index]
        dropped = [child.id for child in self.iter_subtree(node)]
        parent.variation_ids.remove(node.id)
        for node_id in dropped:
            del self._nodes[node_id]
        return dropped

    def _new_node(
        self, *, san: str | None, fen: str, parent: Node | None, is_mainline: bool
    ) -> Node:
        node = Node(
            id=self._next_id,
            san=san,
            fen=fen,
            parent_id=None if parent is None else parent.id,
            is_mainline=is_mainline,
            ply=0 if parent is None else parent.ply + 1,
        )
        self._nodes[node.id] = node
        self._next_id += 1
        return node
