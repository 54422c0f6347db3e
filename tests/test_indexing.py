"""Tests for the AVL balancing engine."""
import random

import pytest

from avlmap.errors import InvariantError
from avlmap.indexing import AVLTree
from avlmap.node import Node


def build(keys):
    tree = AVLTree()
    for k in keys:
        tree.insert(k, f"v{k}")
    return tree


def inorder_keys(node):
    if node is None:
        return []
    return inorder_keys(node.get_left()) + [node.get_key()] + inorder_keys(node.get_right())


class TestRotations:
    """Test the four rebalancing cases."""

    @pytest.mark.parametrize(
        "keys",
        [
            [1, 2, 3],  # right-right
            [3, 2, 1],  # left-left
            [3, 1, 2],  # left-right
            [1, 3, 2],  # right-left
        ],
    )
    def test_three_keys_end_up_balanced_on_middle(self, keys):
        """Every insertion order of three keys yields 2 at the root."""
        tree = build(keys)
        root = tree.root()
        assert root.get_key() == 2
        assert root.get_left().get_key() == 1
        assert root.get_right().get_key() == 3
        assert root.get_height() == 2
        tree.check_invariants()

    def test_sequential_inserts_stay_logarithmic(self):
        """Ascending inserts, the worst case for a plain BST, keep height minimal."""
        tree = build(range(1, 16))
        assert tree.height == 4
        assert tree.root().get_key() == 8


class TestInsert:
    """Test upsert behaviour."""

    def test_insert_into_empty(self):
        """First insert creates the root."""
        tree = AVLTree()
        tree.insert(5, "a")
        assert len(tree) == 1
        assert tree.root().get_key() == 5
        assert tree.height == 1

    def test_insert_existing_overwrites_in_place(self):
        """Re-inserting a key replaces the value without adding a node."""
        tree = build([2, 1, 3])
        root_before = tree.root()
        tree.insert(1, "new")
        assert len(tree) == 3
        assert tree.root() is root_before
        assert tree.find(1).get_value() == "new"

    def test_keys_stay_sorted(self):
        """In-order traversal returns keys in sorted order."""
        keys = random.Random(7).sample(range(1000), 300)
        tree = build(keys)
        assert inorder_keys(tree.root()) == sorted(keys)

    def test_incomparable_key_raises_type_error(self):
        """Mixed key types surface the comparison error."""
        tree = build([1])
        with pytest.raises(TypeError):
            tree.insert("a", "x")


class TestRemove:
    """Test deletion cases."""

    def test_remove_leaf(self):
        """Removing a leaf drops exactly one node."""
        tree = build([2, 1, 3])
        tree.remove(3)
        assert len(tree) == 2
        assert tree.find(3) is None
        tree.check_invariants()

    def test_remove_node_with_only_left_child(self):
        """A node without a right child is replaced by its left child."""
        tree = build([3, 2, 4, 1])
        tree.remove(2)
        assert tree.root().get_left().get_key() == 1
        tree.check_invariants()

    def test_remove_two_children_promotes_successor(self):
        """The in-order successor takes the removed node's place."""
        tree = build([10, 5, 15, 3, 7, 12, 20])
        tree.remove(10)
        root = tree.root()
        assert root.get_key() == 12
        assert root.get_left().get_key() == 5
        assert root.get_right().get_key() == 15
        assert root.get_right().get_left() is None
        assert len(tree) == 6
        tree.check_invariants()

    def test_remove_root_of_single_node_tree(self):
        """Removing the only key empties the tree."""
        tree = build([1])
        tree.remove(1)
        assert tree.root() is None
        assert tree.is_empty()
        assert tree.height == 0

    def test_remove_absent_is_noop(self):
        """Removing a missing key changes nothing."""
        tree = build([2, 1, 3])
        tree.remove(42)
        assert len(tree) == 3
        assert inorder_keys(tree.root()) == [1, 2, 3]

    def test_remove_from_empty_is_noop(self):
        """Removing from an empty tree does not fail."""
        tree = AVLTree()
        tree.remove(1)
        assert len(tree) == 0

    def test_removed_node_releases_children(self):
        """A detached node keeps no links into the tree."""
        tree = build([10, 5, 15, 3, 7, 12, 20])
        removed = tree.find(5)
        tree.remove(5)
        assert removed.get_left() is None
        assert removed.get_right() is None

    def test_removal_triggers_rebalance(self):
        """Shrinking one side rotates the heavier side up."""
        tree = build([2, 1, 3, 4])
        tree.remove(1)
        assert tree.root().get_key() == 3
        tree.check_invariants()


class TestRandomWorkload:
    """Test invariants across mixed operations."""

    def test_matches_dict_reference(self):
        """A random insert/remove sequence agrees with a dict and stays valid."""
        rng = random.Random(1234)
        tree = AVLTree()
        reference = {}
        for _ in range(3000):
            key = rng.randrange(300)
            if rng.random() < 0.6:
                tree.insert(key, key * 2)
                reference[key] = key * 2
            else:
                tree.remove(key)
                reference.pop(key, None)
            tree.check_invariants()

        assert len(tree) == len(reference)
        assert inorder_keys(tree.root()) == sorted(reference)
        for key in range(300):
            node = tree.find(key)
            if key in reference:
                assert node.get_value() == reference[key]
            else:
                assert node is None
        assert tree.is_balanced()


class TestIsBalanced:
    """Test the height-repairing validator."""

    def test_empty_tree_is_balanced(self):
        """An empty tree passes."""
        assert AVLTree().is_balanced()

    def test_repairs_stale_heights(self):
        """Validation recomputes cached heights as a side effect."""
        tree = build(range(1, 8))
        tree.root().set_height(99)
        tree.root().get_left().set_height(5)

        assert tree.is_balanced()
        assert tree.root().get_height() == 3
        assert tree.root().get_left().get_height() == 2
        tree.check_invariants()

    def test_detects_unbalanced_chain(self):
        """A hand-built right chain fails the check."""
        tree = AVLTree()
        leaf = Node(3, "c")
        mid = Node(2, "b", right=leaf)
        mid.fix_height()
        top = Node(1, "a", right=mid)
        top.fix_height()
        tree._root = top
        tree._size = 3
        assert not tree.is_balanced()


class TestCheckInvariants:
    """Test the strict read-only validator."""

    def test_stale_height_reported_and_not_repaired(self):
        """A wrong cached height raises and is left as found."""
        tree = build(range(1, 8))
        tree.root().set_height(99)
        with pytest.raises(InvariantError, match="cached height"):
            tree.check_invariants()
        assert tree.root().get_height() == 99

    def test_ordering_violation(self):
        """A key on the wrong side of its ancestor is reported."""
        tree = AVLTree()
        root = Node(2, "b", left=Node(5, "e"))
        root.fix_height()
        tree._root = root
        tree._size = 2
        with pytest.raises(InvariantError) as exc_info:
            tree.check_invariants()
        assert exc_info.value.key == 5
        assert "not less than" in exc_info.value.reason

    def test_deep_ordering_violation(self):
        """Keys are checked against every ancestor, not just the parent."""
        tree = build([10, 5, 15])
        tree.root().get_left().set_right(Node(12, "x"))
        tree.root().get_left().fix_height()
        tree.root().fix_height()
        tree._size = 4
        with pytest.raises(InvariantError) as exc_info:
            tree.check_invariants()
        assert exc_info.value.key == 12

    def test_balance_violation(self):
        """A subtree taller by two on one side is reported."""
        tree = AVLTree()
        mid = Node(2, "b", right=Node(3, "c"))
        mid.fix_height()
        top = Node(1, "a", right=mid)
        top.fix_height()
        tree._root = top
        tree._size = 3
        with pytest.raises(InvariantError, match="balance factor 2"):
            tree.check_invariants()

    def test_size_mismatch(self):
        """A size counter out of step with the nodes is reported."""
        tree = build([1, 2, 3])
        tree._size = 10
        with pytest.raises(InvariantError, match="size is 10"):
            tree.check_invariants()
