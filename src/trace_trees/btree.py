"""B-Tree engine with a configurable minimum degree"""

from __future__ import annotations

from bisect import bisect_left
from typing import List, Optional

from trace_trees.base import (
    KeyHighlight,
    TreeEngineBase,
    TreeNodeBase,
    Trace,
    debug_log,
    fmt_keys,
)
from trace_trees.config import EngineConfig
from trace_trees.parsing import validate_min_degree


class BTreeNode(TreeNodeBase):
    """
    Multiway node.

    Attributes:
        keys: Sorted keys held by this node.
        children: ``len(keys) + 1`` children for internal nodes, empty for leaves.
        is_leaf: Whether this node is a leaf.
    """
    __slots__ = ("keys", "children", "is_leaf")

    def __init__(
        self,
        node_id: int,
        keys: Optional[List] = None,
        children: Optional[List[BTreeNode]] = None,
        is_leaf: bool = True,
    ) -> None:
        super().__init__(node_id)
        self.keys = keys if keys is not None else []
        self.children = children if children is not None else []
        self.is_leaf = is_leaf

    def clone(self) -> BTreeNode:
        return BTreeNode(
            self.id,
            list(self.keys),
            [child.clone() for child in self.children],
            self.is_leaf,
        )

    def child_nodes(self) -> List[BTreeNode]:
        return list(self.children)

    def label(self) -> str:
        return fmt_keys(self.keys)


class MultiwayEngineBase(TreeEngineBase):
    """Degree handling shared by the B-Tree and B+Tree engines."""

    def __init__(self, min_degree: Optional[int] = None,
                 config: Optional[EngineConfig] = None) -> None:
        super().__init__(config)
        if min_degree is None:
            min_degree = self.config.min_degree
        self.min_degree = validate_min_degree(min_degree)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(min_degree={self.min_degree})"

    def _new_trace(self, root, record_snapshots: Optional[bool] = None,
                   min_degree=None, **params) -> Trace:
        # Validated before the root is cloned so a bad degree never touches a tree
        t = self.min_degree if min_degree is None else validate_min_degree(min_degree)
        trace = super()._new_trace(root, record_snapshots=record_snapshots, **params)
        trace.min_degree = t
        return trace

    def _new_node(self, keys=None, children=None, is_leaf=True) -> BTreeNode:
        return BTreeNode(self.ids.allocate(), keys, children, is_leaf)

    @staticmethod
    def _min_key(node: BTreeNode):
        while not node.is_leaf:
            node = node.children[0]
        return node.keys[0]

    @staticmethod
    def _max_key(node: BTreeNode):
        while not node.is_leaf:
            node = node.children[-1]
        return node.keys[-1]

    def _promote_empty_root(self, trace: Trace, node: BTreeNode) -> None:
        """Replace an internal root left without keys by its only child."""
        if node is trace.root and not node.keys and not node.is_leaf:
            trace.root = node.children[0]
            trace.record("Root is empty, promoting child to new root", [trace.root.id])


class BTreeEngine(MultiwayEngineBase):
    """
    Classic B-Tree: split-ahead insertion and borrow-or-merge deletion.

    Every non-root node keeps between ``t - 1`` and ``2t - 1`` keys where
    ``t`` is the minimum degree of the call.
    """

    family = "btree"

    # Queries
    def contains(self, root: Optional[BTreeNode], key) -> bool:
        node = root
        while node is not None:
            i = bisect_left(node.keys, key)
            if i < len(node.keys) and node.keys[i] == key:
                return True
            if node.is_leaf:
                return False
            node = node.children[i]
        return False

    def values(self, root: Optional[BTreeNode]) -> list:
        out: list = []

        def collect(node: BTreeNode) -> None:
            if node.is_leaf:
                out.extend(node.keys)
                return
            for i, key in enumerate(node.keys):
                collect(node.children[i])
                out.append(key)
            collect(node.children[-1])

        if root is not None:
            collect(root)
        return out

    # Insert
    def _insert(self, trace: Trace, key) -> None:
        t = trace.min_degree
        if trace.root is not None and self.contains(trace.root, key):
            trace.record(f"Value {key} already exists in tree, skipping insertion")
            return

        trace.record(f"Inserting {key} into B-Tree")
        if trace.root is None:
            trace.root = self._new_node([key])
            trace.record(f"Insert {key} as root node", [trace.root.id],
                         [KeyHighlight(trace.root.id, 0)])
            return

        root = trace.root
        if len(root.keys) >= 2 * t - 1:
            trace.record(
                f"Root is full ({', '.join(str(k) for k in root.keys)}), splitting root",
                [root.id],
            )
            new_root = self._new_node([], [root], is_leaf=False)
            trace.root = new_root
            self._split_child(trace, new_root, 0, t)
            root = new_root
        self._insert_non_full(trace, root, key, t)

    def _split_child(self, trace: Trace, parent: BTreeNode, index: int, t: int) -> None:
        """Split the full child ``parent.children[index]`` around its median."""
        full = parent.children[index]
        trace.record(f"Splitting node {fmt_keys(full.keys)}", [full.id])

        middle = full.keys[t - 1]
        sibling = self._new_node(
            full.keys[t:],
            [] if full.is_leaf else full.children[t:],
            full.is_leaf,
        )
        del full.keys[t - 1:]
        if not full.is_leaf:
            del full.children[t:]
        parent.keys.insert(index, middle)
        parent.children.insert(index + 1, sibling)

        debug_log("Split around %s: %s | %s", middle, full.keys, sibling.keys)
        trace.record(
            f"Split complete: middle key {middle} moved to parent",
            [parent.id, full.id, sibling.id],
            [KeyHighlight(parent.id, index)],
        )

    def _insert_non_full(self, trace: Trace, node: BTreeNode, key, t: int) -> None:
        while not node.is_leaf:
            i = bisect_left(node.keys, key)
            child = node.children[i]
            trace.record(
                f"Navigating to child {i} (keys: {fmt_keys(child.keys)})", [node.id, child.id]
            )
            if len(child.keys) >= 2 * t - 1:
                self._split_child(trace, node, i, t)
                if key > node.keys[i]:
                    i += 1
            node = node.children[i]

        trace.record(f"Inserting {key} into leaf node {fmt_keys(node.keys)}", [node.id])
        i = bisect_left(node.keys, key)
        node.keys.insert(i, key)
        trace.record(
            f"Inserted {key}, node is now {fmt_keys(node.keys)}",
            [node.id],
            [KeyHighlight(node.id, i)],
        )

    # Search
    def _search(self, trace: Trace, key) -> None:
        node = trace.root
        level = 0
        while True:
            trace.record(f"Searching in node {fmt_keys(node.keys)} at level {level}", [node.id])
            i = bisect_left(node.keys, key)
            if i < len(node.keys) and node.keys[i] == key:
                trace.record(f"Found {key} at level {level}!", [node.id],
                             [KeyHighlight(node.id, i)])
                return
            if node.is_leaf:
                trace.record(f"Value {key} not found in tree", [node.id])
                return

            if i == 0:
                reason = f"{key} < {node.keys[0]}, go to leftmost child"
            elif i == len(node.keys):
                reason = f"{key} > {node.keys[-1]}, go to rightmost child"
            else:
                reason = f"{node.keys[i - 1]} < {key} < {node.keys[i]}, go to child between them"
            trace.record(reason, [node.id])
            node = node.children[i]
            level += 1

    # Delete
    def _delete(self, trace: Trace, key) -> None:
        t = trace.min_degree
        trace.record(f"Deleting {key} from B-Tree", [trace.root.id])
        if not self.contains(trace.root, key):
            trace.record(f"Value {key} not found in tree")
            return

        self._delete_from(trace, trace.root, key, t)

        root = trace.root
        if not root.keys:
            if root.is_leaf:
                trace.root = None
                trace.record("Tree is now empty")
            else:
                self._promote_empty_root(trace, root)
        trace.record(f"Deleted {key}")

    def _delete_from(self, trace: Trace, node: BTreeNode, key, t: int) -> None:
        i = bisect_left(node.keys, key)
        if i < len(node.keys) and node.keys[i] == key:
            trace.record(f"Found {key} in node {fmt_keys(node.keys)}", [node.id],
                         [KeyHighlight(node.id, i)])
            if node.is_leaf:
                node.keys.pop(i)
                trace.record(
                    f"Removed {key} from leaf, node is now {fmt_keys(node.keys)}", [node.id]
                )
            else:
                self._delete_internal(trace, node, key, i, t)
            return

        if node.is_leaf:
            trace.record(f"Value {key} not found in tree", [node.id])
            return

        child = node.children[i]
        trace.record(f"{key} not in node {fmt_keys(node.keys)}, descending to child {i}",
                     [node.id, child.id])
        if len(child.keys) < t:
            trace.record(
                f"Child {fmt_keys(child.keys)} has only {len(child.keys)} keys, "
                f"ensuring at least {t} before descending",
                [child.id],
            )
            self._fill(trace, node, i, t)
            # The child list may have shifted, look the key up again
            i = bisect_left(node.keys, key)
            if i < len(node.keys) and node.keys[i] == key:
                self._delete_internal(trace, node, key, i, t)
                return

        self._delete_from(trace, node.children[i], key, t)
        self._fix_underflow(trace, node, i, t)

    def _delete_internal(self, trace: Trace, node: BTreeNode, key, i: int, t: int) -> None:
        left, right = node.children[i], node.children[i + 1]
        if len(left.keys) >= t:
            pred = self._max_key(left)
            trace.record(f"Replacing {key} with predecessor {pred}", [node.id, left.id],
                         [KeyHighlight(node.id, i)])
            node.keys[i] = pred
            self._delete_from(trace, left, pred, t)
            self._fix_underflow(trace, node, i, t)
        elif len(right.keys) >= t:
            succ = self._min_key(right)
            trace.record(f"Replacing {key} with successor {succ}", [node.id, right.id],
                         [KeyHighlight(node.id, i)])
            node.keys[i] = succ
            self._delete_from(trace, right, succ, t)
            self._fix_underflow(trace, node, i + 1, t)
        else:
            trace.record("Both children have minimum keys, merging", [left.id, right.id])
            self._merge(trace, node, i)
            self._delete_from(trace, left, key, t)
            self._fix_underflow(trace, node, i, t)

    def _fix_underflow(self, trace: Trace, node: BTreeNode, i: int, t: int) -> None:
        """Re-check a child after a recursive delete returned from it."""
        if len(node.children) > 1 and i < len(node.children) \
                and len(node.children[i].keys) < t - 1:
            trace.record(
                f"Child {fmt_keys(node.children[i].keys)} underflowed, rebalancing",
                [node.children[i].id],
            )
            self._fill(trace, node, i, t)

    def _fill(self, trace: Trace, node: BTreeNode, i: int, t: int) -> None:
        if i > 0 and len(node.children[i - 1].keys) >= t:
            self._borrow_from_prev(trace, node, i)
        elif i < len(node.children) - 1 and len(node.children[i + 1].keys) >= t:
            self._borrow_from_next(trace, node, i)
        elif i < len(node.children) - 1:
            self._merge(trace, node, i)
        else:
            self._merge(trace, node, i - 1)

    def _borrow_from_prev(self, trace: Trace, node: BTreeNode, i: int) -> None:
        child, sibling = node.children[i], node.children[i - 1]
        trace.record("Borrowing key from left sibling to fix underflow",
                     [node.id, child.id, sibling.id])
        child.keys.insert(0, node.keys[i - 1])
        if not child.is_leaf:
            child.children.insert(0, sibling.children.pop())
        node.keys[i - 1] = sibling.keys.pop()
        debug_log("Borrowed from left sibling, separator now %s", node.keys[i - 1])
        trace.record(
            f"Borrowed: parent key is now {node.keys[i - 1]}, child is {fmt_keys(child.keys)}",
            [node.id, child.id, sibling.id],
            [KeyHighlight(node.id, i - 1)],
        )

    def _borrow_from_next(self, trace: Trace, node: BTreeNode, i: int) -> None:
        child, sibling = node.children[i], node.children[i + 1]
        trace.record("Borrowing key from right sibling to fix underflow",
                     [node.id, child.id, sibling.id])
        child.keys.append(node.keys[i])
        if not child.is_leaf:
            child.children.append(sibling.children.pop(0))
        node.keys[i] = sibling.keys.pop(0)
        debug_log("Borrowed from right sibling, separator now %s", node.keys[i])
        trace.record(
            f"Borrowed: parent key is now {node.keys[i]}, child is {fmt_keys(child.keys)}",
            [node.id, child.id, sibling.id],
            [KeyHighlight(node.id, i)],
        )

    def _merge(self, trace: Trace, node: BTreeNode, i: int) -> None:
        """Merge ``children[i + 1]`` and the separator ``keys[i]`` into ``children[i]``."""
        child, sibling = node.children[i], node.children[i + 1]
        trace.record(
            f"Merging nodes {fmt_keys(child.keys)} and {fmt_keys(sibling.keys)}",
            [node.id, child.id, sibling.id],
        )
        child.keys.append(node.keys.pop(i))
        child.keys.extend(sibling.keys)
        child.children.extend(sibling.children)
        node.children.pop(i + 1)
        trace.record(f"Merged into {fmt_keys(child.keys)}", [child.id])
        self._promote_empty_root(trace, node)
