"""Red-Black tree engine"""

from __future__ import annotations

import weakref
from typing import List, Optional

from trace_trees.base import Trace, debug_log, iter_nodes
from trace_trees.bst import BinaryNode, BSTEngine

RED = "red"
BLACK = "black"


class RBNode(BinaryNode):
    """
    Binary node with a colour and a weak back-reference to its parent.

    ``clone()`` rebuilds the parent links inside the copied subtree; the
    copy of the node it is called on has no parent.
    """
    __slots__ = ("color", "_parent_ref")

    def __init__(
        self,
        node_id: int,
        value,
        color: str = RED,
        left: Optional[RBNode] = None,
        right: Optional[RBNode] = None,
    ) -> None:
        super().__init__(node_id, value, left, right)
        self.color = color
        self._parent_ref = None
        for child in (left, right):
            if child is not None:
                child.parent = self

    @property
    def parent(self) -> Optional[RBNode]:
        return self._parent_ref() if self._parent_ref is not None else None

    @parent.setter
    def parent(self, node: Optional[RBNode]) -> None:
        self._parent_ref = weakref.ref(node) if node is not None else None

    @property
    def is_red(self) -> bool:
        return self.color == RED

    def _copy(self) -> RBNode:
        return RBNode(self.id, self.value, self.color)

    def clone(self) -> RBNode:
        root = super().clone()
        for node in iter_nodes(root):
            for child in node.child_nodes():
                child.parent = node
        return root

    def label(self) -> str:
        return f"{self.value}{'R' if self.is_red else 'B'}"


def _is_red(node: Optional[RBNode]) -> bool:
    return node is not None and node.is_red


class RedBlackEngine(BSTEngine):
    """
    Red-Black tree with traced recolouring and rotations.

    New nodes are inserted red; the fix-up loops restore the colour rules
    and the root is forced black at the end of every call.
    """

    family = "red_black"
    NodeClass = RBNode

    def _make_node(self, value) -> RBNode:
        return RBNode(self.ids.allocate(), value, RED)

    def _attach(self, parent: RBNode, node: RBNode, left: bool) -> None:
        super()._attach(parent, node, left)
        node.parent = parent

    def _describe_new(self, node: RBNode) -> str:
        return f" ({node.color})"

    def _transplant(self, trace: Trace, old: RBNode, new: Optional[RBNode]) -> None:
        parent = old.parent
        self._replace_child(trace, parent, old, new)
        if new is not None:
            new.parent = parent

    def _rotate_left(self, trace: Trace, x: RBNode) -> RBNode:
        y = x.right
        x.right = y.left
        if y.left is not None:
            y.left.parent = x
        self._transplant(trace, x, y)
        y.left = x
        x.parent = y
        debug_log("RB left rotation at %s", x.value)
        trace.record(f"Rotated left at {x.value}, {y.value} moves up", [y.id, x.id])
        return y

    def _rotate_right(self, trace: Trace, y: RBNode) -> RBNode:
        x = y.left
        y.left = x.right
        if x.right is not None:
            x.right.parent = y
        self._transplant(trace, y, x)
        x.right = y
        y.parent = x
        debug_log("RB right rotation at %s", y.value)
        trace.record(f"Rotated right at {y.value}, {x.value} moves up", [x.id, y.id])
        return x

    def _ensure_black_root(self, trace: Trace) -> None:
        root = trace.root
        if root is None:
            return
        root.color = BLACK
        trace.record(f"Ensure root {root.value} is black", [root.id])

    # Insert
    def _insert(self, trace: Trace, value) -> None:
        node, _ = self._insert_leaf(trace, value)
        if node is None:
            return
        self._fix_insert(trace, node)
        self._ensure_black_root(trace)

    def _fix_insert(self, trace: Trace, node: RBNode) -> None:
        while node is not trace.root and node.parent.is_red:
            parent = node.parent
            grand = parent.parent
            trace.record(
                f"Red-red violation: {node.value} and its parent {parent.value} are both red",
                [node.id, parent.id],
            )
            parent_is_left = parent is grand.left
            uncle = grand.right if parent_is_left else grand.left

            if _is_red(uncle):
                trace.record(
                    f"Uncle {uncle.value} is red: recolor and move up",
                    [parent.id, uncle.id, grand.id],
                )
                parent.color = BLACK
                uncle.color = BLACK
                grand.color = RED
                trace.record(
                    f"Recolored {parent.value} and {uncle.value} black, {grand.value} red",
                    [parent.id, uncle.id, grand.id],
                )
                node = grand
                continue

            inner = node is (parent.right if parent_is_left else parent.left)
            if inner:
                direction = "left" if parent_is_left else "right"
                trace.record(
                    f"Triangle case: rotate parent {parent.value} {direction}",
                    [node.id, parent.id],
                )
                if parent_is_left:
                    self._rotate_left(trace, parent)
                else:
                    self._rotate_right(trace, parent)
                node, parent = parent, node

            direction = "right" if parent_is_left else "left"
            trace.record(
                f"Line case: rotate grandparent {grand.value} {direction} and recolor",
                [node.id, parent.id, grand.id],
            )
            parent.color = BLACK
            grand.color = RED
            if parent_is_left:
                self._rotate_right(trace, grand)
            else:
                self._rotate_left(trace, grand)

    # Delete
    def _delete(self, trace: Trace, value) -> None:
        ids: List[int] = []
        current = trace.root
        while current is not None:
            ids.append(current.id)
            if value == current.value:
                break
            go_left = value < current.value
            trace.record(
                f"Searching for {value}: go {'left' if go_left else 'right'} from {current.value}",
                ids,
            )
            current = current.left if go_left else current.right

        if current is None:
            trace.record(f"Value {value} not found in tree", ids)
            return
        trace.record(f"Found {value}, deleting node...", ids)

        target = current
        if target.left is None or target.right is None:
            removed_color = target.color
            replacement = target.left if target.left is not None else target.right
            if replacement is None:
                trace.record(f"{value} is a leaf node, removing it", [target.id])
            else:
                trace.record(
                    f"{value} has one child, replacing with {replacement.value}",
                    [target.id, replacement.id],
                )
            replacement_parent = target.parent
            self._transplant(trace, target, replacement)
        else:
            successor = target.right
            while successor.left is not None:
                successor = successor.left
            trace.record(
                f"{value} has two children, replacing with inorder successor {successor.value}",
                [target.id, successor.id],
            )
            removed_color = successor.color
            replacement = successor.right
            target.value = successor.value
            trace.record(f"Copied successor value {successor.value} into node", [target.id])
            replacement_parent = successor.parent
            self._transplant(trace, successor, replacement)

        trace.record(
            f"Removed a {removed_color} node",
            [replacement.id] if replacement is not None else [],
        )

        if removed_color == BLACK:
            if _is_red(replacement):
                replacement.color = BLACK
                trace.record(
                    f"Replacement {replacement.value} is red: recolor it black",
                    [replacement.id],
                )
            elif trace.root is not None:
                trace.record("Removed node was black: fixing double black")
                self._fix_double_black(trace, replacement, replacement_parent)

        self._ensure_black_root(trace)

    def _fix_double_black(
        self, trace: Trace, node: Optional[RBNode], parent: Optional[RBNode]
    ) -> None:
        """
        Push an extra black up the tree until it can be absorbed.

        ``node`` may be ``None`` (the removed leaf position), which is why the
        parent is passed in explicitly instead of read from the node.
        """
        while node is not trace.root and not _is_red(node):
            if parent is None:
                break
            node_is_left = node is parent.left
            sibling = parent.right if node_is_left else parent.left

            if sibling is None:
                trace.record(f"No sibling, pushing double black up to {parent.value}",
                             [parent.id])
                node, parent = parent, parent.parent
                continue

            if sibling.is_red:
                trace.record(
                    f"Sibling {sibling.value} is red: recolor and rotate parent {parent.value}",
                    [parent.id, sibling.id],
                )
                sibling.color = BLACK
                parent.color = RED
                if node_is_left:
                    self._rotate_left(trace, parent)
                else:
                    self._rotate_right(trace, parent)
                continue

            if not _is_red(sibling.left) and not _is_red(sibling.right):
                trace.record(
                    f"Sibling {sibling.value} and both its children are black: recolor sibling red",
                    [parent.id, sibling.id],
                )
                sibling.color = RED
                if parent.is_red:
                    parent.color = BLACK
                    trace.record(f"Parent {parent.value} absorbs the extra black", [parent.id])
                    return
                node, parent = parent, parent.parent
                continue

            if not node_is_left:
                if _is_red(sibling.left):
                    trace.record(
                        f"Left-Left case: red nephew {sibling.left.value}, rotate {parent.value} right",
                        [parent.id, sibling.id, sibling.left.id],
                    )
                    sibling.left.color = sibling.color
                    sibling.color = parent.color
                    parent.color = BLACK
                    self._rotate_right(trace, parent)
                else:
                    trace.record(
                        f"Left-Right case: red nephew {sibling.right.value}, "
                        f"rotate {sibling.value} left then {parent.value} right",
                        [parent.id, sibling.id, sibling.right.id],
                    )
                    sibling.right.color = parent.color
                    parent.color = BLACK
                    self._rotate_left(trace, sibling)
                    self._rotate_right(trace, parent)
            else:
                if _is_red(sibling.right):
                    trace.record(
                        f"Right-Right case: red nephew {sibling.right.value}, rotate {parent.value} left",
                        [parent.id, sibling.id, sibling.right.id],
                    )
                    sibling.right.color = sibling.color
                    sibling.color = parent.color
                    parent.color = BLACK
                    self._rotate_left(trace, parent)
                else:
                    trace.record(
                        f"Right-Left case: red nephew {sibling.left.value}, "
                        f"rotate {sibling.value} right then {parent.value} left",
                        [parent.id, sibling.id, sibling.left.id],
                    )
                    sibling.left.color = parent.color
                    parent.color = BLACK
                    self._rotate_right(trace, sibling)
                    self._rotate_left(trace, parent)
            return

        if node is not None and node.is_red:
            node.color = BLACK
            trace.record(f"Recolor {node.value} black", [node.id])
