import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

from avlmap.errors import InvariantError
from avlmap.node import Node

_LOGGER = logging.getLogger(__name__)


class Tree(ABC):
    """Abstract base class representing a rooted tree of key/value nodes."""

    @abstractmethod
    def __len__(self) -> int:
        """Return the total number of elements in the tree."""
        pass

    @abstractmethod
    def root(self) -> Optional[Node]:
        """Return the root node of the tree (or None if tree is empty)."""
        pass

    def is_empty(self) -> bool:
        """Return True if the tree is empty."""
        return len(self) == 0

    @property
    def height(self) -> int:
        """Return the height of the tree (0 if empty)."""
        return Node.node_height(self.root())


class AVLTree(Tree):
    """
    Self-balancing binary search tree.

    Every mutation walks from the root down to the affected node and rebuilds
    the links on the way back up, rebalancing each ancestor in turn. Each
    recursive step returns the new root of the subtree it was given and the
    caller reattaches it.
    """

    def __init__(self):
        self._root: Optional[Node] = None
        self._size = 0

    def __len__(self) -> int: return self._size
    def root(self) -> Optional[Node]: return self._root

    # ------------------ Public operations ------------------
    def insert(self, key: Any, value: Any) -> None:
        """Insert (key, value), overwriting the value if key is already present."""
        self._root = self._append_to(self._root, key, value)

    def remove(self, key: Any) -> None:
        """Remove key from the tree; does nothing if key is absent."""
        self._root = self._remove(self._root, key)

    def find(self, key: Any) -> Optional[Node]:
        """Return the node holding key, or None."""
        return self._search(self._root, key)

    def clear(self) -> None:
        """Drop every node."""
        self._root = None
        self._size = 0

    def is_balanced(self) -> bool:
        """
        Return True if every node has a balance factor in {-1, 0, 1}.

        Heights are recomputed bottom-up while checking, so stale cached
        heights met along the way are repaired. The walk stops at the first
        unbalanced subtree.
        """
        return self._is_balanced(self._root)

    def check_invariants(self) -> None:
        """
        Verify ordering, cached heights, balance and size without touching the tree.

        Raises InvariantError describing the first violation found.
        """
        _, count = self._check_subtree(self._root, None, None)
        if count != self._size:
            raise self._violation(None, f"size is {self._size} but {count} nodes are reachable")

    # ------------------ Rotations ------------------
    def _rotate_left(self, node: Node) -> Node:
        """Promote the right child of node and return it."""
        q = node.get_right()
        node.set_right(q.get_left())
        q.set_left(node)
        node.fix_height()
        q.fix_height()
        _LOGGER.debug("Rotated left at %r, new subtree root %r", node.get_key(), q.get_key())
        return q

    def _rotate_right(self, node: Node) -> Node:
        """Promote the left child of node and return it."""
        q = node.get_left()
        node.set_left(q.get_right())
        q.set_right(node)
        node.fix_height()
        q.fix_height()
        _LOGGER.debug("Rotated right at %r, new subtree root %r", node.get_key(), q.get_key())
        return q

    def _balance(self, node: Node) -> Node:
        """Refresh node's height and rotate if it is off by two."""
        node.fix_height()
        factor = node.balance_factor()
        if factor == 2:
            if node.get_right().balance_factor() < 0:
                node.set_right(self._rotate_right(node.get_right()))
            return self._rotate_left(node)
        if factor == -2:
            if node.get_left().balance_factor() > 0:
                node.set_left(self._rotate_left(node.get_left()))
            return self._rotate_right(node)
        return node

    # ------------------ Recursive helpers ------------------
    def _append_to(self, node: Optional[Node], key: Any, value: Any) -> Node:
        if node is None:
            self._size += 1
            return Node(key, value)
        if key == node.get_key():
            node.set_value(value)
            return node
        if key < node.get_key():
            node.set_left(self._append_to(node.get_left(), key, value))
        else:
            node.set_right(self._append_to(node.get_right(), key, value))
        return self._balance(node)

    def _find_min(self, node: Node) -> Node:
        """Return the leftmost node of the subtree rooted at node."""
        walk = node
        while walk.get_left() is not None:
            walk = walk.get_left()
        return walk

    def _remove_min(self, node: Node) -> Optional[Node]:
        """Detach the leftmost node of the subtree and return the new subtree root."""
        if node.get_left() is None:
            return node.get_right()
        node.set_left(self._remove_min(node.get_left()))
        return self._balance(node)

    def _remove(self, node: Optional[Node], key: Any) -> Optional[Node]:
        if node is None:
            return None
        if key == node.get_key():
            left = node.get_left()
            right = node.get_right()
            node.set_left(None)  # removed node no longer owns anything
            node.set_right(None)
            self._size -= 1
            if right is None:
                return left
            successor = self._find_min(right)
            _LOGGER.debug("Promoting successor %r in place of %r", successor.get_key(), key)
            successor.set_right(self._remove_min(right))
            successor.set_left(left)
            return self._balance(successor)
        if key < node.get_key():
            node.set_left(self._remove(node.get_left(), key))
        else:
            node.set_right(self._remove(node.get_right(), key))
        return self._balance(node)

    def _search(self, node: Optional[Node], key: Any) -> Optional[Node]:
        if node is None:
            return None
        if key == node.get_key():
            return node
        if key < node.get_key():
            return self._search(node.get_left(), key)
        return self._search(node.get_right(), key)

    def _is_balanced(self, node: Optional[Node]) -> bool:
        if node is None:
            return True
        return (self._is_balanced(node.get_left())
                and self._is_balanced(node.get_right())
                and -1 <= node.balance_factor(force_height_fix=True) <= 1)

    def _check_subtree(self, node: Optional[Node], low: Any, high: Any) -> Tuple[int, int]:
        """Return (height, node count) of the subtree, checking keys lie strictly within (low, high)."""
        if node is None:
            return 0, 0
        key = node.get_key()
        if low is not None and not low < key:
            raise self._violation(key, f"key is not greater than ancestor key {low!r}")
        if high is not None and not key < high:
            raise self._violation(key, f"key is not less than ancestor key {high!r}")

        h_left, n_left = self._check_subtree(node.get_left(), low, key)
        h_right, n_right = self._check_subtree(node.get_right(), key, high)
        expected = 1 + max(h_left, h_right)
        if node.get_height() != expected:
            raise self._violation(key, f"cached height {node.get_height()} != {expected}")
        if abs(h_right - h_left) > 1:
            raise self._violation(key, f"balance factor {h_right - h_left}")
        return expected, 1 + n_left + n_right

    @staticmethod
    def _violation(key: Any, reason: str) -> InvariantError:
        _LOGGER.warning("AVL invariant violated at %r: %s", key, reason)
        return InvariantError(key, reason)
