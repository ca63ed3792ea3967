"""
trace_trees: search-tree algorithms that narrate themselves.

Quick-start imports::

    from trace_trees import create_engine, execute_traversal

    engine = create_engine("avl")
    root, steps = engine.build_with_trace([10, 20, 30])
"""

# Shared primitives
from trace_trees.base import KeyHighlight, OperationResult, Step, TreeEngineBase, clone_tree
from trace_trees.config import EngineConfig

# Engines
from trace_trees.avl import AVLEngine
from trace_trees.bplus_tree import BPlusTreeEngine, BPlusTreeNode
from trace_trees.bst import BinaryNode, BSTEngine
from trace_trees.btree import BTreeEngine, BTreeNode
from trace_trees.factory import ENGINE_CLASSES, create_engine
from trace_trees.red_black import RBNode, RedBlackEngine
from trace_trees.trie import TrieEngine, TrieNode

# Input handling
from trace_trees.parsing import (
    InputValidationError,
    parse_values,
    parse_words,
    validate_input,
    validate_min_degree,
)

# Traversals
from trace_trees.traversals import execute_traversal, supported_traversals

# Stats & invariants
from trace_trees.invariants import InvariantError, assert_tree_invariants_raise
from trace_trees.tree_stats import Stats, tree_stats

__all__ = [
    # Shared primitives
    "EngineConfig",
    "KeyHighlight",
    "OperationResult",
    "Step",
    "TreeEngineBase",
    "clone_tree",
    # Engines
    "AVLEngine",
    "BPlusTreeEngine",
    "BPlusTreeNode",
    "BSTEngine",
    "BTreeEngine",
    "BTreeNode",
    "BinaryNode",
    "ENGINE_CLASSES",
    "RBNode",
    "RedBlackEngine",
    "TrieEngine",
    "TrieNode",
    "create_engine",
    # Input handling
    "InputValidationError",
    "parse_values",
    "parse_words",
    "validate_input",
    "validate_min_degree",
    # Traversals
    "execute_traversal",
    "supported_traversals",
    # Stats & invariants
    "InvariantError",
    "Stats",
    "assert_tree_invariants_raise",
    "tree_stats",
]
