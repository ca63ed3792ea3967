"""Prefix tree (trie) engine over lowercase words"""

from __future__ import annotations

from typing import Dict, List, Optional

from trace_trees.base import TreeEngineBase, TreeNodeBase, Trace, debug_log
from trace_trees.parsing import normalize_word, parse_words


class TrieNode(TreeNodeBase):
    """
    One character of a trie. The root carries the empty string.

    Attributes:
        char: Character on the edge leading to this node.
        children: Child nodes keyed by their character.
        is_end_of_word: Whether the path to this node spells a stored word.
    """
    __slots__ = ("char", "children", "is_end_of_word")

    def __init__(
        self,
        node_id: int,
        char: str = "",
        children: Optional[Dict[str, TrieNode]] = None,
        is_end_of_word: bool = False,
    ) -> None:
        super().__init__(node_id)
        self.char = char
        self.children = children if children is not None else {}
        self.is_end_of_word = is_end_of_word

    def clone(self) -> TrieNode:
        return TrieNode(
            self.id,
            self.char,
            {ch: child.clone() for ch, child in self.children.items()},
            self.is_end_of_word,
        )

    def child_nodes(self) -> List[TrieNode]:
        return [self.children[ch] for ch in sorted(self.children)]

    def label(self) -> str:
        text = self.char or "root"
        return text + "*" if self.is_end_of_word else text


class TrieEngine(TreeEngineBase):
    """Trie of lowercase words; every step highlights the prefix path."""

    family = "trie"
    value_noun = "words"

    def _normalize_value(self, value):
        return normalize_word(value)

    def _parse_text(self, text: str) -> list:
        return parse_words(text)

    def _after_build(self, trace: Trace) -> None:
        trace.current_value = None
        trace.remaining_values = ()
        trace.record("Build complete")

    # Queries
    def _walk(self, root: Optional[TrieNode], word: str) -> Optional[TrieNode]:
        node = root
        for ch in word:
            if node is None:
                return None
            node = node.children.get(ch)
        return node

    def contains(self, root: Optional[TrieNode], word) -> bool:
        node = self._walk(root, word)
        return node is not None and node.is_end_of_word

    def values(self, root: Optional[TrieNode]) -> list:
        """All stored words in alphabetical order."""
        words: List[str] = []

        def collect(node: TrieNode, prefix: str) -> None:
            if node.is_end_of_word:
                words.append(prefix)
            for child in node.child_nodes():
                collect(child, prefix + child.char)

        if root is not None:
            collect(root, "")
        return words

    # Insert
    def _insert(self, trace: Trace, word: str) -> None:
        if trace.root is None:
            trace.root = TrieNode(self.ids.allocate())
        node = trace.root
        path = [node.id]
        trace.record(f'Inserting word: "{word}"', path)

        for depth, ch in enumerate(word):
            prefix = word[: depth + 1]
            child = node.children.get(ch)
            if child is None:
                child = TrieNode(self.ids.allocate(), ch)
                node.children[ch] = child
                path.append(child.id)
                trace.record(f"Created new node for '{ch}' ({prefix})", path)
            else:
                path.append(child.id)
                trace.record(f"Traversed existing node '{ch}' ({prefix})", path)
            node = child

        if node.is_end_of_word:
            trace.record(f'Word "{word}" already exists, skipping', path)
            return
        node.is_end_of_word = True
        trace.record(f'Marked end of word "{word}"', path)

    # Search
    def _search(self, trace: Trace, word: str) -> None:
        node = trace.root
        path = [node.id]
        trace.record(f'Searching for word: "{word}"', path)
        for depth, ch in enumerate(word):
            child = node.children.get(ch)
            if child is None:
                trace.record(f"Character '{ch}' not found", path)
                trace.record(f'Word "{word}" not found in trie', path)
                return
            path.append(child.id)
            trace.record(f"Found '{ch}' ({word[: depth + 1]})", path)
            node = child

        if node.is_end_of_word:
            trace.record(f'Word "{word}" found!', path)
        else:
            trace.record(f'"{word}" is a prefix but not a complete word', path)

    # Delete
    def _delete(self, trace: Trace, word: str) -> None:
        node = trace.root
        path = [node.id]
        trace.record(f'Deleting word: "{word}"', path)
        for ch in word:
            node = node.children.get(ch)
            if node is None:
                trace.record(f'Word "{word}" not found in trie', path)
                return
            path.append(node.id)
        if not node.is_end_of_word:
            trace.record(f'"{word}" is a prefix but not a complete word, nothing to delete', path)
            return

        trace.record(f'Found word "{word}", removing it', path)
        self._remove_word(trace, trace.root, word, 0)
        if not trace.root.children and not trace.root.is_end_of_word:
            trace.root = None
            trace.record("Trie is now empty")
        trace.record(f'Deleted word "{word}"')

    def _remove_word(self, trace: Trace, node: TrieNode, word: str, depth: int) -> bool:
        """
        Clear the end mark of ``word`` below ``node`` and prune dead branches.

        Returns:
            Whether ``node`` itself is now useless (no children, no word end).
        """
        if depth == len(word):
            node.is_end_of_word = False
            trace.record(f'Unmarked end of word "{word}"', [node.id])
            return not node.children

        ch = word[depth]
        child = node.children[ch]
        if self._remove_word(trace, child, word, depth + 1):
            del node.children[ch]
            debug_log("Pruned trie node %r at depth %d", ch, depth + 1)
            trace.record(f"Removed unused node '{ch}' ({word[: depth + 1]})", [node.id])
            return not node.children and not node.is_end_of_word
        return False
