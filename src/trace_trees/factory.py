"""Engine factory module."""

from typing import Dict, Optional, Type

from trace_trees.avl import AVLEngine
from trace_trees.base import TreeEngineBase
from trace_trees.bplus_tree import BPlusTreeEngine
from trace_trees.bst import BSTEngine
from trace_trees.btree import BTreeEngine, MultiwayEngineBase
from trace_trees.config import EngineConfig
from trace_trees.red_black import RedBlackEngine
from trace_trees.trie import TrieEngine

ENGINE_CLASSES: Dict[str, Type[TreeEngineBase]] = {
    "bst": BSTEngine,
    "avl": AVLEngine,
    "btree": BTreeEngine,
    "bplus_tree": BPlusTreeEngine,
    "red_black": RedBlackEngine,
    "trie": TrieEngine,
}

FAMILY_ALIASES = {
    "b-tree": "btree",
    "b_tree": "btree",
    "b+tree": "bplus_tree",
    "bplus": "bplus_tree",
    "bplustree": "bplus_tree",
    "red-black": "red_black",
    "redblack": "red_black",
    "rbtree": "red_black",
}


def resolve_family(name: str) -> str:
    """Map a user-facing family name (``"B+Tree"``, ``"red-black"``) to its key."""
    key = name.strip().lower()
    key = FAMILY_ALIASES.get(key, key)
    if key not in ENGINE_CLASSES:
        raise ValueError(
            f"Unknown tree family: {name!r} (expected one of {', '.join(ENGINE_CLASSES)})"
        )
    return key


def create_engine(
    family: str,
    min_degree: Optional[int] = None,
    config: Optional[EngineConfig] = None,
) -> TreeEngineBase:
    """
    Create a new engine for the given tree family.

    Args:
        family: Family key or alias, e.g. ``"avl"`` or ``"b+tree"``
        min_degree: Minimum degree for B-Tree / B+Tree engines; defaults to
            the config value
        config: Engine configuration (default: ``EngineConfig()``)

    Returns:
        A fresh engine with its own node-id allocator

    Raises:
        ValueError: For an unknown family or a ``min_degree`` given to a
            binary or trie engine
    """
    cls = ENGINE_CLASSES[resolve_family(family)]
    if issubclass(cls, MultiwayEngineBase):
        return cls(min_degree=min_degree, config=config)
    if min_degree is not None:
        raise ValueError(f"{cls.__name__} does not take a minimum degree")
    return cls(config=config)
