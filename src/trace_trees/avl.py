"""Self-balancing AVL tree engine built on the BST descent"""

from __future__ import annotations

from typing import List, Optional

from trace_trees.base import Trace, debug_log
from trace_trees.bst import BinaryNode, BSTEngine


def height(node: Optional[BinaryNode]) -> int:
    """Height of a subtree; an empty subtree is 0 and a leaf is 1."""
    if node is None:
        return 0
    return 1 + max(height(node.left), height(node.right))


def balance_factor(node: Optional[BinaryNode]) -> int:
    if node is None:
        return 0
    return height(node.left) - height(node.right)


class AVLEngine(BSTEngine):
    """
    AVL tree: a BST whose ancestors are re-checked after every change.

    Heights are computed on demand rather than cached on the nodes, so a
    snapshot never carries stale balance information.
    """

    family = "avl"

    def _insert(self, trace: Trace, value) -> None:
        node, path = self._insert_leaf(trace, value)
        if node is None:
            return
        if not self._rebalance(trace, path, value, deleting=False):
            trace.record(f"Tree remains balanced after inserting {value}", [trace.root.id])

    def _delete(self, trace: Trace, value) -> None:
        path = self._remove(trace, value)
        if path is None:
            return
        if not self._rebalance(trace, path, value, deleting=True) and trace.root is not None:
            trace.record(f"Tree remains balanced after deleting {value}", [trace.root.id])

    def _rebalance(self, trace: Trace, path: List[BinaryNode], value, deleting: bool) -> int:
        """
        Walk ``path`` from the deepest ancestor back to the root and rotate
        every node whose balance factor left [-1, 1].

        Args:
            path: Ancestors of the changed position, root first.
            value: The inserted value, used to classify insert cases.
            deleting: Classify cases by the child's balance factor instead.

        Returns:
            The number of rebalancing cases handled.
        """
        handled = 0
        for i in range(len(path) - 1, -1, -1):
            node = path[i]
            parent = path[i - 1] if i > 0 else None
            balance = balance_factor(node)
            if -1 <= balance <= 1:
                continue

            trace.record(
                f"Node {node.value} is unbalanced (balance factor: {balance})",
                [n.id for n in path[: i + 1]],
            )
            if balance > 1:
                if deleting:
                    outer = balance_factor(node.left) >= 0
                else:
                    outer = value < node.left.value
                if outer:
                    trace.record(
                        f"Left-Left case detected, performing right rotation on {node.value}",
                        [node.id, node.left.id],
                    )
                else:
                    trace.record(
                        f"Left-Right case detected, performing left rotation on "
                        f"{node.left.value} then right rotation on {node.value}",
                        [node.id, node.left.id, node.left.right.id],
                    )
                    self._rotate_left(trace, node.left, node)
                self._rotate_right(trace, node, parent)
            else:
                if deleting:
                    outer = balance_factor(node.right) <= 0
                else:
                    outer = value > node.right.value
                if outer:
                    trace.record(
                        f"Right-Right case detected, performing left rotation on {node.value}",
                        [node.id, node.right.id],
                    )
                else:
                    trace.record(
                        f"Right-Left case detected, performing right rotation on "
                        f"{node.right.value} then left rotation on {node.value}",
                        [node.id, node.right.id, node.right.left.id],
                    )
                    self._rotate_right(trace, node.right, node)
                self._rotate_left(trace, node, parent)
            handled += 1
        return handled

    def _rotate_right(self, trace: Trace, y: BinaryNode, parent: Optional[BinaryNode]) -> BinaryNode:
        x = y.left
        y.left = x.right
        x.right = y
        self._replace_child(trace, parent, y, x)
        debug_log("AVL right rotation at %s", y.value)
        trace.record(
            f"Right rotation complete, new subtree root is {x.value}", [x.id, y.id]
        )
        return x

    def _rotate_left(self, trace: Trace, x: BinaryNode, parent: Optional[BinaryNode]) -> BinaryNode:
        y = x.right
        x.right = y.left
        y.left = x
        self._replace_child(trace, parent, x, y)
        debug_log("AVL left rotation at %s", x.value)
        trace.record(
            f"Left rotation complete, new subtree root is {y.value}", [y.id, x.id]
        )
        return y
