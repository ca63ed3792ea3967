"""Print the narrated steps of one tree operation.

Example::

    python scripts/print_trace.py avl build "10, 20, 30"
    python scripts/print_trace.py btree build "1,2,3,4,5,6,7" --min-degree 2 --snapshots
    python scripts/print_trace.py bplus build "5,15,25,35" --then search 25
    python scripts/print_trace.py bst build "50,30,70" --traversal preorder
"""

import argparse
import sys

from trace_trees.config import EngineConfig
from trace_trees.display import print_pretty
from trace_trees.factory import create_engine
from trace_trees.logging_config import setup_logging
from trace_trees.traversals import execute_traversal


def print_steps(steps, snapshots: bool, colour: bool) -> None:
    for i, step in enumerate(steps, 1):
        print(f"{i:>4}. {step.message}")
        if snapshots and step.has_snapshot:
            for line in print_pretty(step.snapshot, colour=colour).splitlines():
                print(f"      {line}")


def run(engine, root, op: str, text: str):
    """Apply ``op`` with the values in ``text``; returns ``(root, steps)``."""
    if op == "build":
        return engine.build_from_text(text)
    if op == "insert":
        return engine.insert_from_text(root, text)
    if op == "delete":
        return engine.delete_from_text(root, text)
    if op == "search":
        return root, engine.search_from_text(root, text)
    raise ValueError(f"Unknown operation: {op!r}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Print the trace of a tree operation.")
    parser.add_argument("family", help="Tree family, e.g. bst, avl, btree, b+tree, red-black, trie")
    parser.add_argument("op", choices=["build", "insert", "delete", "search"])
    parser.add_argument("text", help='Comma separated values or words, e.g. "10, 5, 15"')
    parser.add_argument(
        "--then", nargs=2, action="append", default=[], metavar=("OP", "TEXT"),
        help="Follow-up operation on the resulting tree (repeatable)"
    )
    parser.add_argument("--traversal", default=None, help="Run a traversal on the final tree")
    parser.add_argument("--min-degree", default=None, help="Minimum degree for B-Tree and B+Tree")
    parser.add_argument("--snapshots", action="store_true", help="Print the tree after every step")
    parser.add_argument("--colour", action="store_true", help="Highlight red nodes and word ends")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level (default: TRACE_TREES_LOG_LEVEL or INFO)",
    )
    args = parser.parse_args()

    config = EngineConfig.from_env()
    setup_logging(level=args.log_level or config.log_level)

    try:
        engine = create_engine(args.family, min_degree=args.min_degree, config=config)
        root = None
        for op, text in [(args.op, args.text)] + [tuple(t) for t in args.then]:
            print(f"== {op} {text}")
            root, steps = run(engine, root, op, text)
            print_steps(steps, args.snapshots, args.colour)
        if args.traversal:
            print(f"== {args.traversal} traversal")
            print_steps(execute_traversal(engine.family, root, args.traversal), False, args.colour)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print()
    print(print_pretty(root, colour=args.colour))
    return 0


if __name__ == "__main__":
    sys.exit(main())
