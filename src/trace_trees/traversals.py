"""
Read-only traversal step producers.

Each producer walks a tree without modifying it and returns one step per
visit. Traversal steps carry no snapshot; the tree being walked is the
caller's own root.
"""

from collections import deque
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from trace_trees.base import KeyHighlight, Step, Trace, fmt_keys, iter_levels, iter_nodes
from trace_trees.bplus_tree import leftmost_leaf
from trace_trees.bst import iter_inorder
from trace_trees.logging_config import get_logger

logger = get_logger("Traversals")


def _trace(root) -> Trace:
    return Trace(root, record_snapshots=False)


# Binary trees (BST, AVL, Red-Black)
def _iter_postorder(root) -> Iterator:
    """Yield binary nodes left, right, parent, without recursion."""
    stack = [(root, False)] if root is not None else []
    while stack:
        node, children_done = stack.pop()
        if children_done:
            yield node
            continue
        stack.append((node, True))
        if node.right is not None:
            stack.append((node.right, False))
        if node.left is not None:
            stack.append((node.left, False))


def _binary_walk(root, nodes: Iterable, order: str) -> List[Step]:
    trace = _trace(root)
    sequence: list = []
    for node in nodes:
        sequence.append(node.value)
        trace.record(f"Visit node {node.value} ({order}, sequence: {fmt_keys(sequence)})",
                     [node.id])
    return trace.steps


def inorder_traversal(root) -> List[Step]:
    return _binary_walk(root, iter_inorder(root), "In-order")


def preorder_traversal(root) -> List[Step]:
    return _binary_walk(root, iter_nodes(root), "Pre-order")


def postorder_traversal(root) -> List[Step]:
    return _binary_walk(root, _iter_postorder(root), "Post-order")


def levelorder_traversal(root) -> List[Step]:
    trace = _trace(root)
    for level, node in iter_levels(root):
        trace.record(f"Visit node {node.value} at level {level} (Level-order)", [node.id])
    return trace.steps


# Multiway trees (B-Tree, B+Tree)
def multiway_inorder_traversal(root) -> List[Step]:
    """
    In-order walk of a multiway tree: ``child0, key0, child1, ..., childN``.

    One step per key, highlighting that key.
    """
    trace = _trace(root)
    sequence: list = []

    def visit_key(node, i: int) -> None:
        sequence.append(node.keys[i])
        trace.record(
            f"Visit key {node.keys[i]} (sequence: {fmt_keys(sequence)})",
            [node.id],
            [KeyHighlight(node.id, i)],
        )

    def visit(node) -> None:
        if node.is_leaf:
            for i in range(len(node.keys)):
                visit_key(node, i)
            return
        for i in range(len(node.keys)):
            visit(node.children[i])
            visit_key(node, i)
        visit(node.children[-1])

    if root is not None:
        visit(root)
    return trace.steps


def bplus_inorder_traversal(root) -> List[Step]:
    """
    In-order walk of a B+Tree.

    Routing keys of internal nodes get an ``index key`` step but stay out of
    the sequence; only leaf keys are appended, so the sequence is the sorted
    set of stored values.
    """
    trace = _trace(root)
    sequence: list = []

    def visit(node) -> None:
        if node.is_leaf:
            for i, key in enumerate(node.keys):
                sequence.append(key)
                trace.record(
                    f"Visit leaf key {key} (sequence: {fmt_keys(sequence)})",
                    [node.id],
                    [KeyHighlight(node.id, i)],
                )
            return
        for i, key in enumerate(node.keys):
            visit(node.children[i])
            trace.record(f"Visit index key {key}", [node.id], [KeyHighlight(node.id, i)])
        visit(node.children[-1])

    if root is not None:
        visit(root)
    return trace.steps


def multiway_levelorder_traversal(root) -> List[Step]:
    trace = _trace(root)
    current_level = -1
    for level, node in iter_levels(root):
        if level != current_level:
            current_level = level
            trace.record(f"--- Level {level} ---")
        trace.record(
            f"Visit node {fmt_keys(node.keys)} at level {level}",
            [node.id],
            [KeyHighlight(node.id, i) for i in range(len(node.keys))],
        )
    return trace.steps


def leaforder_traversal(root) -> List[Step]:
    """Walk the B+Tree leaf chain from the leftmost leaf via ``next``."""
    trace = _trace(root)
    if root is None:
        return trace.steps

    trace.record("Starting leaf-order traversal from leftmost leaf")
    leaf = leftmost_leaf(root)
    sequence: list = []
    while leaf is not None:
        trace.record(f"Visit leaf node {fmt_keys(leaf.keys)}", [leaf.id])
        for i, key in enumerate(leaf.keys):
            sequence.append(key)
            trace.record(
                f"Visit key {key} (sequence: {fmt_keys(sequence)})",
                [leaf.id],
                [KeyHighlight(leaf.id, i)],
            )
        if leaf.next is not None:
            trace.record("Following next pointer to next leaf", [leaf.id, leaf.next.id])
        leaf = leaf.next
    trace.record(f"Leaf-order traversal complete. All keys: {fmt_keys(sequence)}")
    return trace.steps


# Trie
def trie_levelorder_traversal(root) -> List[Step]:
    trace = _trace(root)
    if root is None:
        return trace.steps
    queue = deque([(0, root, "")])
    while queue:
        level, node, prefix = queue.popleft()
        if node is root:
            trace.record("Visit root node at level 0", [node.id])
        else:
            suffix = ", end of word" if node.is_end_of_word else ""
            trace.record(
                f"Visit node '{node.char}' (prefix \"{prefix}\") at level {level}{suffix}",
                [node.id],
            )
        for child in node.child_nodes():
            queue.append((level + 1, child, prefix + child.char))
    return trace.steps


def trie_words_traversal(root) -> List[Step]:
    """Pre-order walk listing every stored word with its full path highlighted."""
    trace = _trace(root)
    words: List[str] = []

    def visit(node, prefix: str, path: List[int]) -> None:
        if node.is_end_of_word:
            words.append(prefix)
            trace.record(f'Found word "{prefix}" (words: {", ".join(words)})', path)
        for child in node.child_nodes():
            visit(child, prefix + child.char, path + [child.id])

    if root is not None:
        visit(root, "", [root.id])
        trace.record(f"Word listing complete: {len(words)} words")
    return trace.steps


BINARY_TRAVERSALS: Dict[str, Callable] = {
    "inorder": inorder_traversal,
    "preorder": preorder_traversal,
    "postorder": postorder_traversal,
    "levelorder": levelorder_traversal,
}

MULTIWAY_TRAVERSALS: Dict[str, Callable] = {
    "inorder": multiway_inorder_traversal,
    "levelorder": multiway_levelorder_traversal,
}

TRAVERSALS: Dict[str, Dict[str, Callable]] = {
    "bst": BINARY_TRAVERSALS,
    "avl": BINARY_TRAVERSALS,
    "red_black": BINARY_TRAVERSALS,
    "btree": MULTIWAY_TRAVERSALS,
    "bplus_tree": dict(MULTIWAY_TRAVERSALS, inorder=bplus_inorder_traversal,
                       leaforder=leaforder_traversal),
    "trie": {
        "levelorder": trie_levelorder_traversal,
        "words": trie_words_traversal,
    },
}


def supported_traversals(family: str) -> List[str]:
    if family not in TRAVERSALS:
        raise ValueError(f"Unknown tree family: {family!r}")
    return list(TRAVERSALS[family])


def execute_traversal(family: str, root, kind: str) -> List[Step]:
    """
    Run the traversal ``kind`` over a tree of the given family.

    Raises:
        ValueError: For an unknown family or a traversal the family does not
            support (for example ``leaforder`` on a plain B-Tree).
    """
    producers: Optional[Dict[str, Callable]] = TRAVERSALS.get(family)
    if producers is None:
        raise ValueError(f"Unknown tree family: {family!r}")
    producer = producers.get(kind)
    if producer is None:
        raise ValueError(f"Traversal {kind!r} is not supported for {family!r} trees")
    logger.info("Running %s traversal on %s tree", kind, family)
    return producer(root)
