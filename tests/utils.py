"""Utility functions for testing tree invariants."""

from typing import Optional

from trace_trees.invariants import TREE_FLAGS
from trace_trees.tree_stats import Stats


def assert_tree_invariants_tc(tc, root, stats: Stats, err_msg: Optional[str] = "") -> None:
    """TestCase version: use inside unittest.TestCase methods."""
    for flag in TREE_FLAGS[stats.family]:
        tc.assertTrue(
            getattr(stats, flag),
            f"Invariant failed: {flag} is False \n\n{err_msg}"
        )

    if root is not None:
        tc.assertGreater(
            stats.node_count, 0,
            f"Invariant failed: node_count={stats.node_count} ≤ 0 for non-empty tree\n\n{err_msg}"
        )
        tc.assertGreater(
            stats.key_count, 0,
            f"Invariant failed: key_count={stats.key_count} ≤ 0 for non-empty tree\n\n{err_msg}"
        )
        tc.assertGreater(
            stats.height, 0,
            f"Invariant failed: height={stats.height} ≤ 0 for non-empty tree\n\n{err_msg}"
        )
        if stats.family != "trie":
            tc.assertIsNotNone(
                stats.least_key,
                f"Invariant failed: least_key is None for non-empty tree\n\n{err_msg}"
            )
            tc.assertIsNotNone(
                stats.greatest_key,
                f"Invariant failed: greatest_key is None for non-empty tree\n\n{err_msg}"
            )
    else:
        tc.assertEqual(stats.node_count, 0, f"Empty tree reports nodes\n\n{err_msg}")
