from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from avlmap.indexing import AVLTree


class Map(ABC):
    """Abstract ordered map with upsert, erase and lookup."""

    class _MapEntry:
        """Lightweight composite to store key-value pairs."""
        __slots__ = '_key', '_value'

        def __init__(self, key, value):
            self._key = key
            self._value = value

        def get_key(self): return self._key
        def get_value(self): return self._value

        def __eq__(self, other):
            return (type(other) is type(self)
                    and self._key == other.get_key() and self._value == other.get_value())

        def __repr__(self): return f"({self._key!r}, {self._value!r})"

    @abstractmethod
    def __len__(self) -> int:
        """Return the number of keys in the map."""
        pass

    @abstractmethod
    def insert(self, key: Any, value: Any) -> None:
        """Insert (key, value), replacing the value of an existing key."""
        pass

    @abstractmethod
    def erase(self, key: Any) -> None:
        """Remove key if present."""
        pass

    @abstractmethod
    def find(self, key: Any) -> Any:
        """Return the value for key, or the map's default value."""
        pass

    @abstractmethod
    def is_my_tree_balanced(self) -> bool:
        """Diagnostic check of the underlying structure."""
        pass


class AVLTreeMap(Map):
    """
    Map implementation backed by an AVL tree.

    Lookups of absent keys return the result of default_factory (or None when
    no factory is given), so find() cannot tell a missing key from one stored
    with the default value. Use find_entry() or `in` when that matters.
    """

    def __init__(self, default_factory: Optional[Callable[[], Any]] = None):
        self._tree = AVLTree()
        self._default_factory = default_factory

    def __len__(self) -> int:
        return len(self._tree)

    def __contains__(self, key: Any) -> bool:
        return self.find_entry(key) is not None

    def __repr__(self):
        return f"{type(self).__name__}(size={len(self)}, height={self.height})"

    @property
    def height(self) -> int:
        """Height of the underlying tree."""
        return self._tree.height

    @property
    def root_key(self) -> Any:
        """Key at the root of the underlying tree, or None if the map is empty."""
        root = self._tree.root()
        if root is None:
            return None
        return root.get_key()

    def insert(self, key: Any, value: Any) -> None:
        self._tree.insert(key, value)

    def erase(self, key: Any) -> None:
        self._tree.remove(key)

    def find(self, key: Any) -> Any:
        node = self._tree.find(key)
        if node is None:
            return self._default()
        return node.get_value()

    def find_entry(self, key: Any) -> Optional[Map._MapEntry]:
        """Return a (key, value) entry for key, or None if key is absent."""
        node = self._tree.find(key)
        if node is None:
            return None
        return Map._MapEntry(node.get_key(), node.get_value())

    def clear(self) -> None:
        self._tree.clear()

    def is_my_tree_balanced(self) -> bool:
        """Return True if the tree is AVL-balanced. Repairs stale cached heights as it goes."""
        return self._tree.is_balanced()

    def check_invariants(self) -> None:
        """Raise InvariantError if ordering, heights, balance or size are inconsistent."""
        self._tree.check_invariants()

    def _default(self) -> Any:
        if self._default_factory is None:
            return None
        return self._default_factory()
