"""Shared invariant-checking utilities.

This module provides tree invariant validation that can be used by both
the stats script and the test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Tuple

from trace_trees.logging_config import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from trace_trees.tree_stats import Stats

_SEARCH_TREE = ("is_search_tree", "ids_unique")
_MULTIWAY = _SEARCH_TREE + ("key_counts_in_bounds", "children_count_ok", "leaves_same_depth")

TREE_FLAGS: Dict[str, Tuple[str, ...]] = {
    "bst": _SEARCH_TREE,
    "avl": _SEARCH_TREE + ("is_balanced",),
    "red_black": _SEARCH_TREE + ("root_is_black", "no_red_red", "black_height_ok", "parent_links_ok"),
    "btree": _MULTIWAY,
    "bplus_tree": _MULTIWAY + ("linked_leaf_nodes", "routing_keys_match"),
    "trie": ("ids_unique", "trie_structure_ok"),
}


class InvariantError(Exception):
    """Raised when a tree invariant is violated."""


def failed_flags(stats: Stats) -> List[str]:
    """Names of the family's invariant flags that do not hold."""
    if stats.family not in TREE_FLAGS:
        raise ValueError(f"Unknown tree family: {stats.family!r}")
    return [flag for flag in TREE_FLAGS[stats.family] if not getattr(stats, flag)]


def assert_tree_invariants_raise(root, stats: Stats) -> None:
    """Check all invariants, raising :class:`InvariantError` on the first failure."""
    for flag in failed_flags(stats):
        raise InvariantError(f"Invariant failed: {flag} is False")

    if root is not None:
        if stats.node_count <= 0:
            raise InvariantError(f"Invariant failed: node_count={stats.node_count} ≤ 0 for non-empty tree")
        if stats.key_count <= 0:
            raise InvariantError(f"Invariant failed: key_count={stats.key_count} ≤ 0 for non-empty tree")
        if stats.height <= 0:
            raise InvariantError(f"Invariant failed: height={stats.height} ≤ 0 for non-empty tree")
        if stats.family != "trie" and stats.least_key is None:
            raise InvariantError("Invariant failed: least_key is None for non-empty tree")
    elif stats.node_count != 0:
        raise InvariantError(f"Invariant failed: node_count={stats.node_count} for empty tree")
