"""Tests for the B+Tree engine"""

import gc
import unittest

from trace_trees.bplus_tree import BPlusTreeEngine, iter_leaf_chain
from trace_trees.traversals import execute_traversal
from tests.test_base import TraceTreeTestCase

TENS = [5, 15, 25, 35, 45, 55, 65, 75, 85, 95]


def _leaves(root):
    return [leaf.keys for leaf in iter_leaf_chain(root)]


class TestBPlusTreeInsert(TraceTreeTestCase):
    family = "bplus_tree"
    min_degree = 3

    def test_leaf_split_copies_separator(self):
        self.root, steps = self.engine.build_with_trace([5, 15, 25, 35, 45, 55])
        self.assertMessageContains(steps, "Split complete: copied key 35 to parent, leaf nodes linked")
        self.assertEqual(self.root.keys, [35])
        # The separator is still stored as data in the right leaf
        self.assertEqual(_leaves(self.root), [[5, 15, 25], [35, 45, 55]])
        self.expected_values = [5, 15, 25, 35, 45, 55]

    def test_ten_values_leaf_order(self):
        self.build(TENS)
        self.assertEqual(self.root.keys, [35, 65])
        steps = execute_traversal("bplus_tree", self.root, "leaforder")
        visited = [s.message.split()[2] for s in steps if s.message.startswith("Visit key")]
        self.assertEqual([int(v) for v in visited], TENS)
        self.assertEqual(steps[0].message, "Starting leaf-order traversal from leftmost leaf")
        self.assertEqual(
            steps[-1].message,
            "Leaf-order traversal complete. All keys: [5, 15, 25, 35, 45, 55, 65, 75, 85, 95]",
        )
        self.expected_values = TENS

    def test_internal_split_moves_separator(self):
        engine = BPlusTreeEngine(min_degree=2)
        self.engine = engine
        self.root, steps = engine.build_with_trace(range(1, 12))
        self.assertMessageContains(steps, "Split complete: middle key")
        self.assertFalse(self.root.is_leaf)
        self.assertEqual(engine.values(self.root), list(range(1, 12)))
        self.expected_values = list(range(1, 12))

    def test_duplicate(self):
        root = self.build([1, 2, 3])
        self.root, steps = self.engine.insert_with_trace(root, 2)
        self.assertEqual(self.messages(steps), ["Value 2 already exists in tree, skipping insertion"])
        self.expected_values = [1, 2, 3]

    def test_duplicate_leaves_structure_unchanged(self):
        self.assertDuplicateInsertKeepsShape([7, 3, 18, 10, 22, 8, 11, 26], 10)

    def test_clone_rebuilds_leaf_chain(self):
        root = self.build(TENS)
        copy = root.clone()
        self.assertEqual(_leaves(copy), _leaves(root))
        copy_leaves = list(iter_leaf_chain(copy))
        original_leaves = list(iter_leaf_chain(root))
        for a, b in zip(copy_leaves, original_leaves):
            self.assertIsNot(a, b)
            self.assertEqual(a.id, b.id)
        self.root = root
        self.expected_values = TENS

    def test_snapshot_chain_survives_garbage_collection(self):
        self.root, steps = self.engine.build_with_trace(TENS)
        gc.collect()
        self.assertEqual(
            [k for leaf in iter_leaf_chain(steps[-1].snapshot) for k in leaf.keys], TENS
        )


class TestBPlusTreeSearch(TraceTreeTestCase):
    family = "bplus_tree"
    min_degree = 3

    def test_search_equal_to_routing_key_goes_right(self):
        self.build(TENS)
        steps = self.engine.search_with_trace(self.root, 35)
        self.assertEqual(self.messages(steps), [
            "Searching in node [35, 65] at level 0",
            "35 <= 35 < 65, go to child between them",
            "Searching in node [35, 45, 55] at level 1",
            "Found 35 in leaf node at level 1!",
        ])

    def test_search_rightmost_and_missing(self):
        self.build(TENS)
        steps = self.engine.search_with_trace(self.root, 100)
        self.assertEqual(steps[1].message, "100 >= 65, go to rightmost child")
        self.assertEqual(steps[-1].message, "Value 100 not found in tree")


class TestBPlusTreeDelete(TraceTreeTestCase):
    family = "bplus_tree"
    min_degree = 3

    def test_routing_key_refreshed(self):
        root = self.build(TENS)
        self.root, steps = self.engine.delete_with_trace(root, 35)
        self.assertMessageContains(steps, "Updating routing key 35 to 45")
        self.assertEqual(self.root.keys, [45, 65])
        self.expected_values = [v for v in TENS if v != 35]

    def test_borrow_from_right_leaf(self):
        root = self.build(TENS)
        root, _ = self.engine.delete_with_trace(root, 5)
        self.root, steps = self.engine.delete_with_trace(root, 15)
        self.assertMessageContains(steps, "Borrowing key from right sibling to fix underflow")
        self.assertEqual(_leaves(self.root), [[25, 35], [45, 55], [65, 75, 85, 95]])
        self.assertEqual(self.root.keys, [45, 65])
        self.expected_values = [25, 35, 45, 55, 65, 75, 85, 95]

    def test_delete_missing_is_non_mutating(self):
        root = self.build(TENS)
        self.root, steps = self.engine.delete_with_trace(root, 40)
        self.assertEqual(steps[-1].message, "Value 40 not found in tree")
        self.assertEqual(_leaves(self.root), _leaves(root))
        self.expected_values = TENS


class TestBPlusTreeDeleteSmallDegree(TraceTreeTestCase):
    family = "bplus_tree"
    min_degree = 2

    def test_borrow_and_merge_keep_chain(self):
        root = self.build(range(1, 7))
        self.assertEqual(root.keys, [3, 5])
        self.assertEqual(_leaves(root), [[1, 2], [3, 4], [5, 6]])

        root, steps = self.engine.delete_with_trace(root, 3)
        self.assertMessageContains(steps, "Updating routing key 3 to 4")
        self.assertEqual(root.keys, [4, 5])

        root, steps = self.engine.delete_with_trace(root, 4)
        self.assertMessageContains(steps, "Borrowing key from left sibling to fix underflow")
        self.assertEqual(root.keys, [2, 5])
        self.assertEqual(_leaves(root), [[1], [2], [5, 6]])

        root, steps = self.engine.delete_with_trace(root, 2)
        self.assertMessageContains(steps, "Borrowing key from right sibling to fix underflow")
        self.assertEqual(root.keys, [5, 6])

        root, steps = self.engine.delete_with_trace(root, 5)
        self.assertMessageContains(steps, "Merging nodes [5] and [6]")
        self.assertMessageContains(steps, "Updating routing key 5 to 6")
        self.assertEqual(root.keys, [6])
        self.assertEqual(_leaves(root), [[1], [6]])

        self.root = root
        self.expected_values = [1, 6]

    def test_merge_empties_root(self):
        root = self.build([1, 2, 3, 4])
        for value in (4, 1):
            root, _ = self.engine.delete_with_trace(root, value)
        self.root, steps = self.engine.delete_with_trace(root, 2)
        self.assertMessageContains(steps, "Root is empty, promoting child to new root")
        self.assertTrue(self.root.is_leaf)
        self.assertEqual(self.root.keys, [3])
        self.expected_values = [3]

    def test_delete_everything(self):
        values = list(range(1, 30))
        remaining = set(values)
        root = self.build(values)
        for value in values[::3] + values[1::3] + values[2::3]:
            root, _ = self.engine.delete_with_trace(root, value)
            remaining.discard(value)
            self.assertEqual(self.engine.values(root), sorted(remaining), f"after deleting {value}")
        self.assertIsNone(root)
        self.root = root


if __name__ == "__main__":
    unittest.main()
