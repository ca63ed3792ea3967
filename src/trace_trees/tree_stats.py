"""Statistics and invariant flags for every tree family."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from trace_trees.logging_config import get_logger

logger = get_logger(__name__)

BINARY_FAMILIES = ("bst", "avl", "red_black")
MULTIWAY_FAMILIES = ("btree", "bplus_tree")


@dataclass
class Stats:
    """Aggregated statistics for a tree of any family."""

    family: str
    node_count: int
    key_count: int
    leaf_count: int
    height: int
    min_leaf_depth: int
    max_leaf_depth: int
    least_key: Any | None
    greatest_key: Any | None
    is_search_tree: bool
    ids_unique: bool
    is_balanced: bool
    root_is_black: bool
    no_red_red: bool
    black_height_ok: bool
    parent_links_ok: bool
    key_counts_in_bounds: bool
    children_count_ok: bool
    leaves_same_depth: bool
    linked_leaf_nodes: bool
    routing_keys_match: bool
    trie_structure_ok: bool


def _empty_stats(family: str) -> Stats:
    return Stats(
        family=family,
        node_count=0,
        key_count=0,
        leaf_count=0,
        height=0,
        min_leaf_depth=0,
        max_leaf_depth=0,
        least_key=None,
        greatest_key=None,
        is_search_tree=True,
        ids_unique=True,
        is_balanced=True,
        root_is_black=True,
        no_red_red=True,
        black_height_ok=True,
        parent_links_ok=True,
        key_counts_in_bounds=True,
        children_count_ok=True,
        leaves_same_depth=True,
        linked_leaf_nodes=True,
        routing_keys_match=True,
        trie_structure_ok=True,
    )


def tree_stats(root, family: str, min_degree: int | None = None) -> Stats:
    """
    Returns aggregated statistics for a tree in **O(n)** time.

    Flags that do not apply to ``family`` are reported as ``True``. The
    degree bounds of multiway trees are only checked when ``min_degree`` is
    given.
    """
    stats = _empty_stats(family)
    if root is None:
        return stats
    if family in BINARY_FAMILIES:
        _binary_stats(root, stats)
    elif family in MULTIWAY_FAMILIES:
        _multiway_stats(root, stats, min_degree)
    elif family == "trie":
        _trie_stats(root, stats)
    else:
        raise ValueError(f"Unknown tree family: {family!r}")
    return stats


def _record_leaf(stats: Stats, depth: int) -> None:
    if stats.leaf_count == 0:
        stats.min_leaf_depth = stats.max_leaf_depth = depth
    else:
        stats.min_leaf_depth = min(stats.min_leaf_depth, depth)
        stats.max_leaf_depth = max(stats.max_leaf_depth, depth)
    stats.leaf_count += 1


def _binary_stats(root, stats: Stats) -> None:
    seen_ids = set()
    red_black = stats.family == "red_black"
    # (height, black_height) of every finished subtree, keyed by id(node)
    measured = {}

    def measure(node):
        return measured[id(node)] if node is not None else (0, 1)

    # Explicit stack: a degenerate chain can be deeper than the recursion limit
    stack = [(root, 1, None, None, None, False)]
    while stack:
        node, depth, low, high, parent, children_done = stack.pop()
        if children_done:
            left_h, left_bh = measure(node.left)
            right_h, right_bh = measure(node.right)
            if abs(left_h - right_h) > 1:
                stats.is_balanced = False
            if left_bh != right_bh:
                stats.black_height_ok = False
            own_black = 1 if red_black and not node.is_red else 0
            measured[id(node)] = (1 + max(left_h, right_h), left_bh + own_black)
            continue

        if node.id in seen_ids:
            stats.ids_unique = False
        seen_ids.add(node.id)
        stats.node_count += 1
        stats.key_count += 1

        if (low is not None and node.value <= low) or (high is not None and node.value >= high):
            stats.is_search_tree = False
        if node.left is None and node.right is None:
            _record_leaf(stats, depth)

        if red_black:
            if node.parent is not parent:
                stats.parent_links_ok = False
            if node.is_red and parent is not None and parent.is_red:
                stats.no_red_red = False

        stack.append((node, depth, low, high, parent, True))
        if node.right is not None:
            stack.append((node.right, depth + 1, node.value, high, node, False))
        if node.left is not None:
            stack.append((node.left, depth + 1, low, node.value, node, False))

    stats.height = measure(root)[0]

    node = root
    while node.left is not None:
        node = node.left
    stats.least_key = node.value
    node = root
    while node.right is not None:
        node = node.right
    stats.greatest_key = node.value

    if red_black:
        stats.root_is_black = not root.is_red


def _multiway_stats(root, stats: Stats, min_degree: int | None) -> None:
    seen_ids = set()
    bplus = stats.family == "bplus_tree"
    dfs_leaves = []

    def subtree_min(node):
        while not node.is_leaf:
            node = node.children[0]
        return node.keys[0] if node.keys else None

    def walk(node, depth: int, low, high) -> int:
        """Returns the height of the subtree at ``node``."""
        if node.id in seen_ids:
            stats.ids_unique = False
        seen_ids.add(node.id)
        stats.node_count += 1

        keys = node.keys
        if any(a >= b for a, b in zip(keys, keys[1:])):
            stats.is_search_tree = False
        # B+ children may hold a key equal to the routing key on their left
        for key in keys:
            if low is not None and (key < low if bplus else key <= low):
                stats.is_search_tree = False
            if high is not None and key >= high:
                stats.is_search_tree = False

        if min_degree is not None:
            upper = 2 * min_degree - 1
            lower = 1 if node is root else min_degree - 1
            if not lower <= len(keys) <= upper:
                stats.key_counts_in_bounds = False

        if node.is_leaf:
            if node.children:
                stats.children_count_ok = False
            stats.key_count += len(keys)
            dfs_leaves.append(node)
            _record_leaf(stats, depth)
            return 1

        if not bplus:
            stats.key_count += len(keys)
        if len(node.children) != len(keys) + 1:
            stats.children_count_ok = False
            return 1
        if bplus:
            for j, key in enumerate(keys):
                if subtree_min(node.children[j + 1]) != key:
                    stats.routing_keys_match = False

        heights = []
        for i, child in enumerate(node.children):
            child_low = keys[i - 1] if i > 0 else low
            child_high = keys[i] if i < len(keys) else high
            heights.append(walk(child, depth + 1, child_low, child_high))
        return 1 + max(heights)

    stats.height = walk(root, 1, None, None)
    stats.leaves_same_depth = stats.min_leaf_depth == stats.max_leaf_depth

    if bplus:
        chain = []
        leaf = dfs_leaves[0] if dfs_leaves else None
        while leaf is not None and len(chain) <= len(dfs_leaves):
            chain.append(leaf)
            leaf = leaf.next
        stats.linked_leaf_nodes = (
            len(chain) == len(dfs_leaves)
            and all(a is b for a, b in zip(chain, dfs_leaves))
        )

    node = root
    while not node.is_leaf:
        node = node.children[0]
    stats.least_key = node.keys[0] if node.keys else None
    node = root
    while not node.is_leaf:
        node = node.children[-1]
    stats.greatest_key = node.keys[-1] if node.keys else None


def _trie_stats(root, stats: Stats) -> None:
    seen_ids = set()
    if root.char != "":
        stats.trie_structure_ok = False

    def walk(node, depth: int) -> int:
        if node.id in seen_ids:
            stats.ids_unique = False
        seen_ids.add(node.id)
        stats.node_count += 1
        if node.is_end_of_word:
            stats.key_count += 1
        if not node.children:
            _record_leaf(stats, depth)
            # A childless node that ends no word is a dead branch
            if not node.is_end_of_word:
                stats.trie_structure_ok = False
            return 1
        for ch, child in node.children.items():
            if len(ch) != 1 or child.char != ch:
                stats.trie_structure_ok = False
        return 1 + max(walk(child, depth + 1) for child in node.children.values())

    stats.height = walk(root, 1)
    stats.leaves_same_depth = stats.min_leaf_depth == stats.max_leaf_depth
