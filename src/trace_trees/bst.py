"""Unbalanced binary search tree engine"""

from __future__ import annotations

from typing import Iterator, List, Optional, Tuple

from trace_trees.base import TreeEngineBase, TreeNodeBase, Trace, debug_log


class BinaryNode(TreeNodeBase):
    """Node of a binary search tree. Also used by the AVL engine."""
    __slots__ = ("value", "left", "right")

    def __init__(
        self,
        node_id: int,
        value,
        left: Optional[BinaryNode] = None,
        right: Optional[BinaryNode] = None,
    ) -> None:
        super().__init__(node_id)
        self.value = value
        self.left = left
        self.right = right

    def _copy(self) -> BinaryNode:
        """Copy of this node alone, without children."""
        return type(self)(self.id, self.value)

    def clone(self) -> BinaryNode:
        # Explicit stack: a degenerate chain can be deeper than the recursion limit
        root = self._copy()
        stack = [(self, root)]
        while stack:
            source, copy = stack.pop()
            if source.left is not None:
                copy.left = source.left._copy()
                stack.append((source.left, copy.left))
            if source.right is not None:
                copy.right = source.right._copy()
                stack.append((source.right, copy.right))
        return root

    def child_nodes(self) -> List[BinaryNode]:
        return [c for c in (self.left, self.right) if c is not None]

    def label(self) -> str:
        return str(self.value)


def iter_inorder(root: Optional[BinaryNode]) -> Iterator[BinaryNode]:
    """Yield the nodes of a binary tree in key order."""
    stack = []
    node = root
    while stack or node is not None:
        while node is not None:
            stack.append(node)
            node = node.left
        node = stack.pop()
        yield node
        node = node.right


class BSTEngine(TreeEngineBase):
    """
    Classic binary search tree with traced insert, delete and search.

    Every step highlights the whole path walked from the root so far, not
    just the current node.
    """

    family = "bst"
    NodeClass = BinaryNode

    # Node construction hooks
    def _make_node(self, value) -> BinaryNode:
        return self.NodeClass(self.ids.allocate(), value)

    def _attach(self, parent: BinaryNode, node: BinaryNode, left: bool) -> None:
        if left:
            parent.left = node
        else:
            parent.right = node

    def _describe_new(self, node: BinaryNode) -> str:
        return ""

    def _replace_child(
        self,
        trace: Trace,
        parent: Optional[BinaryNode],
        old: BinaryNode,
        new: Optional[BinaryNode],
    ) -> None:
        """Put ``new`` where ``old`` hangs below ``parent`` (or at the root)."""
        if parent is None:
            trace.root = new
        elif parent.left is old:
            parent.left = new
        else:
            parent.right = new

    # Queries
    def contains(self, root: Optional[BinaryNode], value) -> bool:
        node = root
        while node is not None:
            if value == node.value:
                return True
            node = node.left if value < node.value else node.right
        return False

    def values(self, root: Optional[BinaryNode]) -> list:
        return [node.value for node in iter_inorder(root)]

    # Insert
    def _insert(self, trace: Trace, value) -> None:
        self._insert_leaf(trace, value)

    def _insert_leaf(
        self, trace: Trace, value
    ) -> Tuple[Optional[BinaryNode], List[BinaryNode]]:
        """
        Descend by comparison and hang a new node below the last visited one.

        Returns:
            The new node (``None`` for a duplicate) and the list of nodes
            visited from the root down to the new node's parent.
        """
        if trace.root is None:
            node = self._make_node(value)
            trace.root = node
            trace.record(f"Insert {value} as root node{self._describe_new(node)}", [node.id])
            return node, []

        path: List[BinaryNode] = []
        ids: List[int] = []
        current = trace.root
        while True:
            path.append(current)
            ids.append(current.id)
            if value == current.value:
                trace.record(f"Value {value} already exists, skipping duplicate", ids)
                return None, path

            go_left = value < current.value
            trace.record(
                f"Comparing {value} with {current.value}: {'go left' if go_left else 'go right'}",
                ids,
            )
            child = current.left if go_left else current.right
            if child is None:
                break
            current = child

        node = self._make_node(value)
        self._attach(current, node, go_left)
        debug_log("Attached %s below %s", value, current.value)
        trace.record(
            f"Insert {value} as {'left' if go_left else 'right'} child of "
            f"{current.value}{self._describe_new(node)}",
            ids + [node.id],
        )
        return node, path

    # Search
    def _search(self, trace: Trace, value) -> None:
        trace.record(f"Searching for {value}...")
        current = trace.root
        ids: List[int] = []
        level = 0
        while current is not None:
            ids.append(current.id)
            if value == current.value:
                trace.record(f"Found {value} at level {level}!", ids)
                return
            go_left = value < current.value
            trace.record(
                f"Comparing {value} with {current.value}: {'go left' if go_left else 'go right'}",
                ids,
            )
            current = current.left if go_left else current.right
            level += 1
        trace.record(f"Value {value} not found in tree", ids)

    # Delete
    def _delete(self, trace: Trace, value) -> None:
        self._remove(trace, value)

    def _remove(self, trace: Trace, value) -> Optional[List[BinaryNode]]:
        """
        Physically remove ``value`` from the tree.

        Returns:
            The nodes from the root down to the parent of the node that was
            physically unlinked (the successor in the two-children case), or
            ``None`` when the value is not in the tree.
        """
        path: List[BinaryNode] = []
        ids: List[int] = []
        current = trace.root
        while current is not None and current.value != value:
            path.append(current)
            ids.append(current.id)
            go_left = value < current.value
            trace.record(
                f"Searching for {value}: go {'left' if go_left else 'right'} from {current.value}",
                ids,
            )
            current = current.left if go_left else current.right

        if current is None:
            trace.record(f"Value {value} not found in tree", ids)
            return None

        trace.record(f"Found {value}, deleting node...", ids + [current.id])
        parent = path[-1] if path else None

        if current.left is None and current.right is None:
            trace.record(f"{value} is a leaf node, removing it", [current.id])
            self._replace_child(trace, parent, current, None)
        elif current.left is None:
            trace.record(
                f"{value} has only right child, replacing with {current.right.value}",
                [current.id, current.right.id],
            )
            self._replace_child(trace, parent, current, current.right)
        elif current.right is None:
            trace.record(
                f"{value} has only left child, replacing with {current.left.value}",
                [current.id, current.left.id],
            )
            self._replace_child(trace, parent, current, current.left)
        else:
            # In-order successor: leftmost node of the right subtree
            path.append(current)
            successor_parent = current
            successor = current.right
            while successor.left is not None:
                path.append(successor)
                successor_parent = successor
                successor = successor.left
            trace.record(
                f"{value} has two children, replacing with inorder successor {successor.value}",
                [current.id, successor.id],
            )
            current.value = successor.value
            trace.record(f"Copied successor value {successor.value} into node", [current.id])
            self._replace_child(trace, successor_parent, successor, successor.right)

        trace.record(f"Deleted {value}", [n.id for n in path])
        return path
