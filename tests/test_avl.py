"""Tests for the AVL engine"""

import unittest

from trace_trees.avl import balance_factor, height
from tests.test_base import TraceTreeTestCase


class TestAVLHelpers(unittest.TestCase):
    def test_height_of_empty_and_leaf(self):
        from trace_trees.bst import BinaryNode
        self.assertEqual(height(None), 0)
        self.assertEqual(height(BinaryNode(0, 1)), 1)
        self.assertEqual(balance_factor(None), 0)
        self.assertEqual(balance_factor(BinaryNode(0, 2, BinaryNode(1, 1))), 1)


class TestAVLInsert(TraceTreeTestCase):
    family = "avl"

    def test_duplicate_leaves_structure_unchanged(self):
        self.assertDuplicateInsertKeepsShape([7, 3, 18, 10, 22, 8, 11, 26], 10)

    def test_right_right_case(self):
        self.root, steps = self.engine.build_with_trace([10, 20, 30])
        self.assertMessageContains(steps, "Node 10 is unbalanced (balance factor: -2)")
        self.assertMessageContains(steps, "Right-Right case detected, performing left rotation on 10")
        self.assertMessageContains(steps, "Left rotation complete, new subtree root is 20")
        self.assertEqual(self.root.value, 20)
        self.expected_values = [10, 20, 30]

    def test_left_left_case(self):
        self.root, steps = self.engine.build_with_trace([30, 20, 10])
        self.assertMessageContains(steps, "Left-Left case detected, performing right rotation on 30")
        self.assertEqual(self.root.value, 20)
        self.expected_values = [10, 20, 30]

    def test_left_right_case(self):
        self.root, steps = self.engine.build_with_trace([30, 10, 20])
        self.assertMessageContains(steps, "Left-Right case detected")
        self.assertMessageContains(steps, "Left rotation complete, new subtree root is 20")
        self.assertMessageContains(steps, "Right rotation complete, new subtree root is 20")
        self.assertEqual(self.root.value, 20)
        self.assertEqual((self.root.left.value, self.root.right.value), (10, 30))

    def test_right_left_case(self):
        self.root, steps = self.engine.build_with_trace([10, 30, 20])
        self.assertMessageContains(steps, "Right-Left case detected")
        self.assertEqual(self.root.value, 20)

    def test_sequential_build_rotates_and_stays_balanced(self):
        self.root, steps = self.engine.build_with_trace([10, 20, 30, 40, 50])
        self.assertMessageContains(steps, "rotation complete")
        self.assertLessEqual(abs(balance_factor(self.root)), 1)
        self.assertEqual(height(self.root), 3)
        self.expected_values = [10, 20, 30, 40, 50]

    def test_balanced_insert_is_narrated(self):
        root = self.build([20, 10, 30])
        self.root, steps = self.engine.insert_with_trace(root, 5)
        self.assertEqual(steps[-1].message, "Tree remains balanced after inserting 5")

    def test_rotation_snapshot_follows_narration(self):
        self.root, steps = self.engine.build_with_trace([10, 20, 30])
        unbalanced = self.assertMessageContains(steps, "is unbalanced")
        rotated = self.assertMessageContains(steps, "Left rotation complete")
        self.assertEqual(unbalanced.snapshot.value, 10)
        self.assertEqual(rotated.snapshot.value, 20)

    def test_ascending_run_keeps_logarithmic_height(self):
        self.build(range(1, 128))
        self.assertEqual(height(self.root), 7)
        self.expected_values = list(range(1, 128))


class TestAVLDelete(TraceTreeTestCase):
    family = "avl"

    def test_delete_triggers_rotation(self):
        root = self.build([20, 10, 30, 40])
        self.root, steps = self.engine.delete_with_trace(root, 10)
        self.assertMessageContains(steps, "Node 20 is unbalanced (balance factor: -2)")
        self.assertMessageContains(steps, "Right-Right case detected")
        self.assertEqual(self.root.value, 30)
        self.expected_values = [20, 30, 40]

    def test_delete_uses_child_balance_for_case(self):
        # Right child has balance 0 after deleting 10: single rotation suffices
        root = self.build([20, 10, 30, 25, 40])
        self.root, steps = self.engine.delete_with_trace(root, 10)
        self.assertMessageContains(steps, "Right-Right case detected")
        self.assertEqual(self.root.value, 30)
        self.assertEqual(self.root.left.right.value, 25)
        self.expected_values = [20, 25, 30, 40]

    def test_delete_right_left_case(self):
        root = self.build([20, 10, 30, 25])
        self.root, steps = self.engine.delete_with_trace(root, 10)
        self.assertMessageContains(steps, "Right-Left case detected")
        self.assertEqual(self.root.value, 25)
        self.expected_values = [20, 25, 30]

    def test_delete_many_stays_balanced(self):
        root = self.build(range(1, 32))
        for value in range(1, 32, 2):
            root, _ = self.engine.delete_with_trace(root, value)
        self.root = root
        self.expected_values = list(range(2, 32, 2))

    def test_delete_missing(self):
        root = self.build([2, 1, 3])
        self.root, steps = self.engine.delete_with_trace(root, 7)
        self.assertEqual(steps[-1].message, "Value 7 not found in tree")
        self.expected_values = [1, 2, 3]


if __name__ == "__main__":
    unittest.main()
