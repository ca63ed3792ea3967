"""B+Tree engine: data in linked leaves, routing keys in internal nodes"""

from __future__ import annotations

import weakref
from bisect import bisect_left, bisect_right
from typing import Dict, Iterator, List, Optional, Tuple

from trace_trees.base import KeyHighlight, Trace, debug_log, fmt_keys
from trace_trees.btree import BTreeNode, MultiwayEngineBase


class BPlusTreeNode(BTreeNode):
    """
    B+Tree node. Leaves hold the data and point at their right neighbour.

    ``next`` is a non-owning link kept as a weak reference; the owning
    reference to every leaf is its parent's ``children`` list.
    """
    __slots__ = ("_next_ref",)

    def __init__(
        self,
        node_id: int,
        keys: Optional[List] = None,
        children: Optional[List[BPlusTreeNode]] = None,
        is_leaf: bool = True,
    ) -> None:
        super().__init__(node_id, keys, children, is_leaf)
        self._next_ref = None

    @property
    def next(self) -> Optional[BPlusTreeNode]:
        return self._next_ref() if self._next_ref is not None else None

    @next.setter
    def next(self, node: Optional[BPlusTreeNode]) -> None:
        self._next_ref = weakref.ref(node) if node is not None else None

    def clone(self) -> BPlusTreeNode:
        copies: Dict[int, Tuple[BPlusTreeNode, BPlusTreeNode]] = {}
        root = self._clone_into(copies)
        # Relink the leaf chain among the copies
        for original, copy in copies.values():
            if original.is_leaf:
                nxt = original.next
                if nxt is not None and nxt.id in copies:
                    copy.next = copies[nxt.id][1]
        return root

    def _clone_into(self, copies: Dict[int, Tuple[BPlusTreeNode, BPlusTreeNode]]) -> BPlusTreeNode:
        copy = BPlusTreeNode(
            self.id,
            list(self.keys),
            [child._clone_into(copies) for child in self.children],
            self.is_leaf,
        )
        copies[self.id] = (self, copy)
        return copy


def leftmost_leaf(root: BPlusTreeNode) -> BPlusTreeNode:
    node = root
    while not node.is_leaf:
        node = node.children[0]
    return node


def iter_leaf_chain(root: Optional[BPlusTreeNode]) -> Iterator[BPlusTreeNode]:
    """Yield the leaves by following ``next`` from the leftmost leaf."""
    if root is None:
        return
    leaf = leftmost_leaf(root)
    while leaf is not None:
        yield leaf
        leaf = leaf.next


class BPlusTreeEngine(MultiwayEngineBase):
    """
    B+Tree: every search ends in a leaf and the leaves form a sorted list.

    A routing key ``keys[i]`` of an internal node equals the smallest key in
    the subtree of ``children[i + 1]``; a key equal to a routing key is
    always found to its right.
    """

    family = "bplus_tree"

    def _new_node(self, keys=None, children=None, is_leaf=True) -> BPlusTreeNode:
        return BPlusTreeNode(self.ids.allocate(), keys, children, is_leaf)

    # Queries
    def _find_leaf(self, root: BPlusTreeNode, key) -> BPlusTreeNode:
        node = root
        while not node.is_leaf:
            node = node.children[bisect_right(node.keys, key)]
        return node

    def contains(self, root: Optional[BPlusTreeNode], key) -> bool:
        if root is None:
            return False
        leaf = self._find_leaf(root, key)
        i = bisect_left(leaf.keys, key)
        return i < len(leaf.keys) and leaf.keys[i] == key

    def values(self, root: Optional[BPlusTreeNode]) -> list:
        out: list = []
        for leaf in iter_leaf_chain(root):
            out.extend(leaf.keys)
        return out

    # Insert
    def _insert(self, trace: Trace, key) -> None:
        t = trace.min_degree
        if trace.root is not None and self.contains(trace.root, key):
            trace.record(f"Value {key} already exists in tree, skipping insertion")
            return

        trace.record(f"Inserting {key} into B+Tree")
        if trace.root is None:
            trace.root = self._new_node([key])
            trace.record(f"Insert {key} as root leaf", [trace.root.id],
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

    def _split_child(self, trace: Trace, parent: BPlusTreeNode, index: int, t: int) -> None:
        full = parent.children[index]
        trace.record(f"Splitting node {fmt_keys(full.keys)}", [full.id])

        if full.is_leaf:
            # The separator is copied: it stays in the right leaf as data
            sibling = self._new_node(full.keys[t:], is_leaf=True)
            del full.keys[t:]
            sibling.next = full.next
            full.next = sibling
            separator = sibling.keys[0]
            message = f"Split complete: copied key {separator} to parent, leaf nodes linked"
        else:
            separator = full.keys[t - 1]
            sibling = self._new_node(full.keys[t:], full.children[t:], is_leaf=False)
            del full.keys[t - 1:]
            del full.children[t:]
            message = f"Split complete: middle key {separator} moved to parent"

        parent.keys.insert(index, separator)
        parent.children.insert(index + 1, sibling)
        debug_log("B+ split around %s: %s | %s", separator, full.keys, sibling.keys)
        trace.record(message, [parent.id, full.id, sibling.id],
                     [KeyHighlight(parent.id, index)])

    def _insert_non_full(self, trace: Trace, node: BPlusTreeNode, key, t: int) -> None:
        while not node.is_leaf:
            i = bisect_right(node.keys, key)
            child = node.children[i]
            trace.record(
                f"Navigating to child {i} (keys: {fmt_keys(child.keys)})", [node.id, child.id]
            )
            if len(child.keys) >= 2 * t - 1:
                self._split_child(trace, node, i, t)
                if key >= node.keys[i]:
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
            if node.is_leaf:
                i = bisect_left(node.keys, key)
                if i < len(node.keys) and node.keys[i] == key:
                    trace.record(f"Found {key} in leaf node at level {level}!", [node.id],
                                 [KeyHighlight(node.id, i)])
                else:
                    trace.record(f"Value {key} not found in tree", [node.id])
                return

            i = bisect_right(node.keys, key)
            if i == 0:
                reason = f"{key} < {node.keys[0]}, go to leftmost child"
            elif i == len(node.keys):
                reason = f"{key} >= {node.keys[-1]}, go to rightmost child"
            else:
                reason = f"{node.keys[i - 1]} <= {key} < {node.keys[i]}, go to child between them"
            trace.record(reason, [node.id])
            node = node.children[i]
            level += 1

    # Delete
    def _delete(self, trace: Trace, key) -> None:
        t = trace.min_degree
        trace.record(f"Deleting {key} from B+Tree", [trace.root.id])
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

    def _delete_from(self, trace: Trace, node: BPlusTreeNode, key, t: int) -> None:
        if node.is_leaf:
            i = bisect_left(node.keys, key)
            trace.record(f"Deleting {key} from leaf node {fmt_keys(node.keys)}", [node.id],
                         [KeyHighlight(node.id, i)])
            node.keys.pop(i)
            trace.record(f"Deleted {key}, node is now {fmt_keys(node.keys)}", [node.id])
            return

        i = bisect_right(node.keys, key)
        child = node.children[i]
        trace.record(f"Navigating to child {i} (keys: {fmt_keys(child.keys)})",
                     [node.id, child.id])
        if len(child.keys) < t:
            trace.record(
                f"Child {fmt_keys(child.keys)} has only {len(child.keys)} keys, "
                f"ensuring at least {t} before descending",
                [child.id],
            )
            self._fill(trace, node, i, t)
            i = bisect_right(node.keys, key)

        self._delete_from(trace, node.children[i], key, t)
        self._refresh_routing_keys(trace, node)

    def _refresh_routing_keys(self, trace: Trace, node: BPlusTreeNode) -> None:
        """Reset each routing key to the smallest key of its right subtree."""
        for j in range(len(node.keys)):
            smallest = self._min_key(node.children[j + 1])
            if node.keys[j] != smallest:
                old = node.keys[j]
                node.keys[j] = smallest
                trace.record(f"Updating routing key {old} to {smallest}", [node.id],
                             [KeyHighlight(node.id, j)])

    def _fill(self, trace: Trace, node: BPlusTreeNode, i: int, t: int) -> None:
        if i > 0 and len(node.children[i - 1].keys) >= t:
            self._borrow_from_prev(trace, node, i)
        elif i < len(node.children) - 1 and len(node.children[i + 1].keys) >= t:
            self._borrow_from_next(trace, node, i)
        elif i < len(node.children) - 1:
            self._merge(trace, node, i)
        else:
            self._merge(trace, node, i - 1)

    def _borrow_from_prev(self, trace: Trace, node: BPlusTreeNode, i: int) -> None:
        child, sibling = node.children[i], node.children[i - 1]
        trace.record("Borrowing key from left sibling to fix underflow",
                     [node.id, child.id, sibling.id])
        if child.is_leaf:
            child.keys.insert(0, sibling.keys.pop())
            node.keys[i - 1] = child.keys[0]
        else:
            child.keys.insert(0, node.keys[i - 1])
            child.children.insert(0, sibling.children.pop())
            node.keys[i - 1] = sibling.keys.pop()
        trace.record(
            f"Borrowed: parent key is now {node.keys[i - 1]}, child is {fmt_keys(child.keys)}",
            [node.id, child.id, sibling.id],
            [KeyHighlight(node.id, i - 1)],
        )

    def _borrow_from_next(self, trace: Trace, node: BPlusTreeNode, i: int) -> None:
        child, sibling = node.children[i], node.children[i + 1]
        trace.record("Borrowing key from right sibling to fix underflow",
                     [node.id, child.id, sibling.id])
        if child.is_leaf:
            child.keys.append(sibling.keys.pop(0))
            node.keys[i] = sibling.keys[0]
        else:
            child.keys.append(node.keys[i])
            child.children.append(sibling.children.pop(0))
            node.keys[i] = sibling.keys.pop(0)
        trace.record(
            f"Borrowed: parent key is now {node.keys[i]}, child is {fmt_keys(child.keys)}",
            [node.id, child.id, sibling.id],
            [KeyHighlight(node.id, i)],
        )

    def _merge(self, trace: Trace, node: BPlusTreeNode, i: int) -> None:
        """Merge ``children[i + 1]`` into ``children[i]``."""
        child, sibling = node.children[i], node.children[i + 1]
        trace.record(
            f"Merging nodes {fmt_keys(child.keys)} and {fmt_keys(sibling.keys)}",
            [node.id, child.id, sibling.id],
        )
        separator = node.keys.pop(i)
        if child.is_leaf:
            child.keys.extend(sibling.keys)
            child.next = sibling.next
        else:
            child.keys.append(separator)
            child.keys.extend(sibling.keys)
            child.children.extend(sibling.children)
        node.children.pop(i + 1)
        debug_log("B+ merge, dropped separator %s", separator)
        trace.record(f"Merged into {fmt_keys(child.keys)}", [child.id])
        self._promote_empty_root(trace, node)
