"""Tests for steps, traces, id allocation and cloning"""

import dataclasses
import unittest

from trace_trees.base import IdAllocator, Step, Trace, clone_tree, fmt_keys, iter_levels, iter_nodes
from trace_trees.bst import BinaryNode, BSTEngine
from tests.test_base import BaseTestCase


def _small_tree():
    #     2
    #    / \
    #   1   3
    return BinaryNode(5, 2, BinaryNode(6, 1), BinaryNode(7, 3))


class TestIdAllocator(unittest.TestCase):
    def test_monotonic(self):
        ids = IdAllocator()
        self.assertEqual([ids.allocate() for _ in range(3)], [0, 1, 2])

    def test_reserve_past_foreign_tree(self):
        ids = IdAllocator()
        ids.reserve_past(_small_tree())
        self.assertEqual(ids.allocate(), 8)

    def test_reserve_past_never_goes_backwards(self):
        ids = IdAllocator(start=50)
        ids.reserve_past(_small_tree())
        self.assertEqual(ids.allocate(), 50)

    def test_reserve_past_empty(self):
        ids = IdAllocator()
        ids.allocate()
        ids.reserve_past(None)
        self.assertEqual(ids.allocate(), 1)


class TestCloneAndIteration(unittest.TestCase):
    def test_clone_keeps_ids_and_is_independent(self):
        root = _small_tree()
        copy = clone_tree(root)
        self.assertEqual([n.id for n in iter_nodes(copy)], [5, 6, 7])
        copy.left.value = 99
        self.assertEqual(root.left.value, 1)
        self.assertIsNot(copy.right, root.right)

    def test_clone_none(self):
        self.assertIsNone(clone_tree(None))

    def test_iter_levels(self):
        levels = [(level, node.value) for level, node in iter_levels(_small_tree())]
        self.assertEqual(levels, [(0, 2), (1, 1), (1, 3)])

    def test_fmt_keys(self):
        self.assertEqual(fmt_keys([1, 2, 3]), "[1, 2, 3]")
        self.assertEqual(fmt_keys([]), "[]")


class TestTrace(BaseTestCase):
    def test_record_snapshots_current_tree(self):
        trace = Trace(_small_tree())
        first = trace.record("before", [5])
        trace.root.value = 20
        second = trace.record("after", [5])
        self.assertEqual(first.snapshot.value, 2)
        self.assertEqual(second.snapshot.value, 20)
        self.assertTrue(first.has_snapshot)
        self.assertEqual(first.highlight_ids, (5,))
        self.assertSnapshotsIndependent(trace.steps, trace.root)

    def test_record_without_snapshots(self):
        trace = Trace(_small_tree(), record_snapshots=False)
        step = trace.record("look")
        self.assertFalse(step.has_snapshot)
        self.assertIsNone(step.snapshot)

    def test_empty_tree_snapshot_is_recorded(self):
        step = Trace(None).record("nothing here")
        self.assertTrue(step.has_snapshot)
        self.assertIsNone(step.snapshot)

    def test_steps_are_frozen(self):
        step = Trace(None).record("x")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            step.message = "y"

    def test_current_and_remaining_values_are_stamped(self):
        trace = Trace(None)
        trace.current_value = 4
        trace.remaining_values = (5, 6)
        step = trace.record("x")
        self.assertEqual(step.current_value, 4)
        self.assertEqual(step.remaining_values, (5, 6))


class TestEngineSurface(BaseTestCase):
    def setUp(self):
        self.engine = BSTEngine()

    def test_build_with_trace_first_step_lists_values(self):
        root, steps = self.engine.build_with_trace([50, 30, 70])
        self.assertEqual(steps[0].message, "Starting with values: 50, 30, 70")
        self.assertEqual(steps[0].remaining_values, (50, 30, 70))
        self.assertEqual(steps[1].current_value, 50)
        self.assertEqual(steps[1].remaining_values, (30, 70))
        self.assertEqual(steps[-1].current_value, 70)
        self.assertEqual(steps[-1].remaining_values, ())
        self.assertEqual(self.engine.values(root), [30, 50, 70])

    def test_build_empty(self):
        root, steps = self.engine.build_with_trace([])
        self.assertIsNone(root)
        self.assertEqual(steps, [])

    def test_build_dedupes(self):
        root = self.engine.build([3, 1, 3, 2, 1])
        self.assertEqual(self.engine.values(root), [1, 2, 3])

    def test_build_records_no_snapshots(self):
        root = self.engine.build([1, 2])
        self.assertEqual(self.engine.values(root), [1, 2])

    def test_insert_does_not_touch_input_root(self):
        root = self.engine.build([50, 30, 70])
        before = self.engine.values(root)
        new_root, steps = self.engine.insert_with_trace(root, 40)
        self.assertEqual(self.engine.values(root), before)
        self.assertEqual(self.engine.values(new_root), [30, 40, 50, 70])
        self.assertIsNot(new_root, root)
        self.assertSnapshotsIndependent(steps, new_root)

    def test_ids_never_collide_with_foreign_tree(self):
        root = BSTEngine().build([5, 3, 8])
        new_root, _ = self.engine.insert_with_trace(root, 4)
        ids = [n.id for n in iter_nodes(new_root)]
        self.assertEqual(len(ids), len(set(ids)))

    def test_unexpected_parameter(self):
        with self.assertRaises(TypeError):
            self.engine.insert_with_trace(None, 1, min_degree=3)

    def test_delete_from_empty_tree(self):
        root, steps = self.engine.delete_with_trace(None, 5)
        self.assertIsNone(root)
        self.assertEqual(self.messages(steps), ["Cannot delete 5: tree is empty"])

    def test_search_on_empty_tree(self):
        steps = self.engine.search_with_trace(None, 5)
        self.assertEqual(self.messages(steps), ["Cannot search 5: tree is empty"])

    def test_from_text_validates_before_mutation(self):
        root = self.engine.build([1, 2])
        with self.assertRaises(ValueError):
            self.engine.insert_from_text(root, "3, x")
        self.assertEqual(self.engine.values(root), [1, 2])

    def test_insert_from_text_applies_in_order(self):
        root, steps = self.engine.insert_from_text(None, "[5, 2, 8]")
        self.assertEqual(self.engine.values(root), [2, 5, 8])
        self.assertEqual(steps[0].current_value, 5)
        self.assertEqual(steps[0].remaining_values, (2, 8))

    def test_delete_from_text_until_empty(self):
        root = self.engine.build([5, 2, 8])
        root, steps = self.engine.delete_from_text(root, "5, 2, 8, 1")
        self.assertIsNone(root)
        self.assertEqual(steps[-1].message, "Cannot delete 1: tree is empty")

    def test_search_from_text_concatenates(self):
        root = self.engine.build([5, 2, 8])
        steps = self.engine.search_from_text(root, "2, 9")
        self.assertMessageContains(steps, "Found 2 at level 1!")
        self.assertMessageContains(steps, "Value 9 not found in tree")

    def test_bool_value_rejected(self):
        with self.assertRaises(TypeError):
            self.engine.insert_with_trace(None, True)

    def test_step_type(self):
        _, steps = self.engine.insert_with_trace(None, 1)
        self.assertIsInstance(steps[0], Step)


if __name__ == "__main__":
    unittest.main()
