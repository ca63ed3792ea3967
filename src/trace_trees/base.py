"""Shared primitives: steps, traces, node ids and the engine base class."""

from __future__ import annotations

import itertools
import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

from trace_trees.config import EngineConfig
from trace_trees.logging_config import get_logger
from trace_trees.parsing import normalize_number, parse_values

logger = get_logger("TraceTrees")


@dataclass(frozen=True)
class KeyHighlight:
    """A single key inside a multiway node."""
    node_id: int
    key_index: int


@dataclass(frozen=True)
class Step:
    """
    One entry of an algorithm trace.

    Attributes:
        highlight_ids: Ids of the nodes to highlight, usually the whole path
            from the root rather than only the current node.
        message: Narration for this step.
        snapshot: Clone of the tree at the time the step was recorded
            (``None`` is a valid snapshot of an empty tree).
        has_snapshot: Whether ``snapshot`` was recorded at all.
        highlight_keys: Per-key highlights for multiway nodes.
        current_value: Value or word being processed when recorded.
        remaining_values: Values or words still queued after the current one.
    """
    highlight_ids: Tuple[int, ...]
    message: str
    snapshot: Any = None
    has_snapshot: bool = False
    highlight_keys: Tuple[KeyHighlight, ...] = ()
    current_value: Any = None
    remaining_values: Optional[Tuple[Any, ...]] = None


class OperationResult(NamedTuple):
    """Result of a mutating call: the authoritative new root and its trace."""
    root: Any
    steps: List[Step]


class TreeNodeBase(ABC):
    """Base class for all node types. ``id`` is stable across clones."""
    __slots__ = ("id", "__weakref__")

    def __init__(self, node_id: int) -> None:
        self.id = node_id

    @abstractmethod
    def clone(self) -> TreeNodeBase:
        """Deep copy of the subtree rooted here, keeping every id."""

    @abstractmethod
    def child_nodes(self) -> List[TreeNodeBase]:
        """Owned children, left to right."""

    @abstractmethod
    def label(self) -> str:
        """Short text for narration and pretty printing."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id}, {self.label()})"


def clone_tree(node: Optional[TreeNodeBase]) -> Optional[TreeNodeBase]:
    """Clone a (possibly empty) tree."""
    return None if node is None else node.clone()


def iter_nodes(root: Optional[TreeNodeBase]) -> Iterator[TreeNodeBase]:
    """Yield every node in pre-order."""
    if root is None:
        return
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.child_nodes()))


def iter_levels(root: Optional[TreeNodeBase]) -> Iterator[Tuple[int, TreeNodeBase]]:
    """Yield ``(level, node)`` pairs breadth-first."""
    if root is None:
        return
    queue = deque([(0, root)])
    while queue:
        level, node = queue.popleft()
        yield level, node
        for child in node.child_nodes():
            queue.append((level + 1, child))


class IdAllocator:
    """Monotonic node-id source owned by a single engine instance."""
    __slots__ = ("_counter",)

    def __init__(self, start: int = 0) -> None:
        self._counter = itertools.count(start)

    def allocate(self) -> int:
        return next(self._counter)

    def reserve_past(self, root: Optional[TreeNodeBase]) -> None:
        """Make sure future ids are larger than every id found in ``root``."""
        max_id = max((node.id for node in iter_nodes(root)), default=-1)
        upcoming = self.allocate()
        self._counter = itertools.count(max(upcoming, max_id + 1))


class Trace:
    """
    Append-only step recorder for one operation call.

    ``root`` always points at the live root of the tree being worked on, so
    that every recorded snapshot reflects the tree exactly as it is at the
    moment of recording. Per-call parameters (such as the minimum degree of
    a multiway tree) live here as well, never on the engine.
    """
    __slots__ = ("root", "steps", "record_snapshots", "current_value",
                 "remaining_values", "min_degree")

    def __init__(
        self,
        root: Optional[TreeNodeBase] = None,
        record_snapshots: bool = True,
        min_degree: Optional[int] = None,
    ) -> None:
        self.root = root
        self.steps: List[Step] = []
        self.record_snapshots = record_snapshots
        self.current_value: Any = None
        self.remaining_values: Optional[Tuple[Any, ...]] = None
        self.min_degree = min_degree

    def record(
        self,
        message: str,
        highlight_ids: Iterable[int] = (),
        highlight_keys: Iterable[KeyHighlight] = (),
    ) -> Step:
        if self.record_snapshots:
            snapshot, has_snapshot = clone_tree(self.root), True
        else:
            snapshot, has_snapshot = None, False
        step = Step(
            highlight_ids=tuple(highlight_ids),
            message=message,
            snapshot=snapshot,
            has_snapshot=has_snapshot,
            highlight_keys=tuple(highlight_keys),
            current_value=self.current_value,
            remaining_values=self.remaining_values,
        )
        self.steps.append(step)
        return step


def fmt_keys(keys: Sequence[Any]) -> str:
    """Format a key list the way narration shows it: ``[1, 2, 3]``."""
    return "[" + ", ".join(str(k) for k in keys) + "]"


def debug_log(message, *args, **kwargs):
    """Log a debug message only if debug logging is enabled"""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(message, *args, **kwargs)


class TreeEngineBase(ABC):
    """
    Common surface of every tree engine.

    Subclasses implement the single-value hooks ``_insert``, ``_delete`` and
    ``_search`` against a :class:`Trace`; this class turns them into the
    public build/insert/delete/search calls, including clone-on-write of the
    caller's root and the ``*_from_text`` batch variants.
    """

    family: str = ""
    value_noun: str = "values"

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config if config is not None else EngineConfig()
        self.ids = IdAllocator()

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    # Hooks
    @abstractmethod
    def _insert(self, trace: Trace, value) -> None:
        """Insert ``value`` into ``trace.root``, recording steps."""

    @abstractmethod
    def _delete(self, trace: Trace, value) -> None:
        """Delete ``value`` from ``trace.root`` (non-empty), recording steps."""

    @abstractmethod
    def _search(self, trace: Trace, value) -> None:
        """Record the steps of searching ``value`` in ``trace.root``."""

    @abstractmethod
    def contains(self, root, value) -> bool:
        """Membership test without a trace."""

    @abstractmethod
    def values(self, root) -> list:
        """All stored values in sorted order."""

    def _normalize_value(self, value):
        return normalize_number(value)

    def _parse_text(self, text: str) -> list:
        return parse_values(text)

    def _new_trace(self, root, record_snapshots: Optional[bool] = None, **params) -> Trace:
        """Clone the caller's root and open a trace on the clone."""
        if params:
            raise TypeError(
                f"{type(self).__name__} got unexpected parameters: {', '.join(sorted(params))}"
            )
        if record_snapshots is None:
            record_snapshots = self.config.record_snapshots
        self.ids.reserve_past(root)
        return Trace(clone_tree(root), record_snapshots=record_snapshots)

    # Public API
    def build(self, values: Iterable, **params):
        """Build a tree from ``values`` without recording snapshots."""
        return self.build_with_trace(values, record_snapshots=False, **params).root

    def build_with_trace(self, values: Iterable, record_snapshots: Optional[bool] = None,
                         **params) -> OperationResult:
        """
        Build a tree by inserting ``values`` one at a time into an empty tree.

        The first step lists every value; each later step carries the value
        being inserted and the values still waiting.
        """
        queue = []
        for value in values:
            value = self._normalize_value(value)
            if value not in queue:
                queue.append(value)

        trace = self._new_trace(None, record_snapshots=record_snapshots, **params)
        logger.info("Building %s tree from %d %s", self.family, len(queue), self.value_noun)
        if not queue:
            return OperationResult(None, trace.steps)

        trace.remaining_values = tuple(queue)
        trace.record(f"Starting with {self.value_noun}: {', '.join(str(v) for v in queue)}")
        for i, value in enumerate(queue):
            trace.current_value = value
            trace.remaining_values = tuple(queue[i + 1:])
            self._insert(trace, value)
        self._after_build(trace)
        return OperationResult(trace.root, trace.steps)

    def _after_build(self, trace: Trace) -> None:
        pass

    def insert_with_trace(self, root, value, **params) -> OperationResult:
        value = self._normalize_value(value)
        trace = self._new_trace(root, **params)
        trace.current_value = value
        logger.info("Inserting %s into %s tree", value, self.family)
        self._insert(trace, value)
        return OperationResult(trace.root, trace.steps)

    def delete_with_trace(self, root, value, **params) -> OperationResult:
        value = self._normalize_value(value)
        trace = self._new_trace(root, **params)
        trace.current_value = value
        logger.info("Deleting %s from %s tree", value, self.family)
        if trace.root is None:
            trace.record(f"Cannot delete {value}: tree is empty")
        else:
            self._delete(trace, value)
        return OperationResult(trace.root, trace.steps)

    def search_with_trace(self, root, value, **params) -> List[Step]:
        value = self._normalize_value(value)
        # Searching never mutates, so the caller's root is traced directly
        trace = self._new_trace(None, record_snapshots=False, **params)
        trace.root = root
        trace.current_value = value
        logger.info("Searching %s in %s tree", value, self.family)
        if root is None:
            trace.record(f"Cannot search {value}: tree is empty")
        else:
            self._search(trace, value)
        return trace.steps

    # Text batch variants
    def build_from_text(self, text: str, **params) -> OperationResult:
        return self.build_with_trace(self._parse_text(text), **params)

    def insert_from_text(self, root, text: str, **params) -> OperationResult:
        queue = self._parse_text(text)
        trace = self._new_trace(root, **params)
        for i, value in enumerate(queue):
            trace.current_value = value
            trace.remaining_values = tuple(queue[i + 1:])
            self._insert(trace, value)
        return OperationResult(trace.root, trace.steps)

    def delete_from_text(self, root, text: str, **params) -> OperationResult:
        queue = self._parse_text(text)
        trace = self._new_trace(root, **params)
        for i, value in enumerate(queue):
            trace.current_value = value
            trace.remaining_values = tuple(queue[i + 1:])
            if trace.root is None:
                trace.record(f"Cannot delete {value}: tree is empty")
            else:
                self._delete(trace, value)
        return OperationResult(trace.root, trace.steps)

    def search_from_text(self, root, text: str, **params) -> List[Step]:
        steps: List[Step] = []
        for value in self._parse_text(text):
            steps.extend(self.search_with_trace(root, value, **params))
        return steps
