"""Pretty-printing and display utilities for all tree families."""

from __future__ import annotations

import collections
from typing import Optional

from trace_trees.base import TreeNodeBase, iter_levels

# ANSI colour codes
PRIMARY = '\033[31m'    # red
SECONDARY = '\033[33m'  # yellow
RESET = '\033[0m'


def _node_text(node: TreeNodeBase, colour: bool) -> str:
    text = node.label()
    if not colour:
        return text
    if getattr(node, "color", None) == "red":
        return f"{PRIMARY}{text}{RESET}"
    if getattr(node, "is_end_of_word", False):
        return f"{SECONDARY}{text}{RESET}"
    return text


def print_pretty(root: Optional[TreeNodeBase], colour: bool = False) -> str:
    """
    Render a tree level by level:
      • One line per depth, root first.
      • Within a line, nodes appear left→right in child order.
      • All columns have the same width so siblings line up.

    Red-Black nodes show their colour as a trailing ``R``/``B``; trie nodes
    that end a word carry a ``*``. With ``colour`` set, red nodes and word
    ends are highlighted with ANSI codes.
    """
    if root is None:
        return "Tree: Empty"
    if not isinstance(root, TreeNodeBase):
        raise TypeError(f"print_pretty() expects a tree node, got {type(root).__name__}")

    layers = collections.defaultdict(list)
    max_len = 0
    for level, node in iter_levels(root):
        layers[level].append(node)
        max_len = max(max_len, len(node.label()))

    width = max_len + 2
    lines = [f"{type(root).__name__} (height {len(layers)}):"]
    for level in sorted(layers):
        cells = []
        for node in layers[level]:
            # Pad on the plain label so ANSI codes do not skew the columns
            pad = width - len(node.label())
            cells.append(_node_text(node, colour) + " " * pad)
        lines.append(f"L{level}: " + "".join(cells).rstrip())
    return "\n".join(lines)
