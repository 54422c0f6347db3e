"""Ordered key-value map backed by an AVL tree."""

from avlmap.errors import AVLMapError, InvariantError, KeyCoercionError
from avlmap.indexing import AVLTree
from avlmap.node import Node
from avlmap.treemap import AVLTreeMap, Map

__all__ = [
    "AVLMapError",
    "AVLTree",
    "AVLTreeMap",
    "InvariantError",
    "KeyCoercionError",
    "Map",
    "Node",
]
