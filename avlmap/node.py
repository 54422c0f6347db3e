from typing import Any, Optional


class Node:
    """A tree vertex storing a key/value pair and the height of its subtree."""
    __slots__ = '_key', '_value', '_height', '_left', '_right'

    def __init__(self, key, value, left=None, right=None):
        self._key = key
        self._value = value
        self._height = 1
        self._left = left
        self._right = right

    def get_key(self): return self._key
    def get_value(self): return self._value
    def get_height(self) -> int: return self._height
    def get_left(self) -> Optional['Node']: return self._left
    def get_right(self) -> Optional['Node']: return self._right
    def set_value(self, value: Any): self._value = value
    def set_height(self, height: int): self._height = height
    def set_left(self, left: Optional['Node']): self._left = left
    def set_right(self, right: Optional['Node']): self._right = right

    @staticmethod
    def node_height(node: Optional['Node']) -> int:
        """Return the cached height of node (or 0 if None)."""
        if node is None: return 0
        return node.get_height()

    def fix_height(self) -> None:
        """Recompute the cached height from the current children."""
        self._height = 1 + max(Node.node_height(self._left), Node.node_height(self._right))

    def balance_factor(self, force_height_fix: bool = False) -> int:
        """
        Return height(right) - height(left).

        With force_height_fix the cached height of this node is recomputed first,
        so callers walking the tree bottom-up repair stale heights as they go.
        """
        if force_height_fix:
            self.fix_height()
        return Node.node_height(self._right) - Node.node_height(self._left)

    def __repr__(self):
        return f"Node({self._key!r}, h={self._height})"
