"""Statistics for the traced search trees."""

import argparse
import logging
import math
import os
import time
from datetime import datetime

import numpy as np
from tqdm import tqdm

from trace_trees.factory import create_engine, resolve_family
from trace_trees.invariants import assert_tree_invariants_raise
from trace_trees.tree_stats import MULTIWAY_FAMILIES, tree_stats
from trace_trees.workloads import random_values, random_words, shuffled

logger = logging.getLogger(__name__)


def random_workload(family: str, size: int, seed: int) -> list:
    """``size`` random values, or random words for the trie."""
    if family == "trie":
        return random_words(size, seed=seed, max_len=max(4, math.ceil(math.log(size + 1, 5)) + 2))
    return random_values(size, seed=seed)


def random_tree(engine, values):
    """Build a tree from ``values``; returns the root and the number of trace steps."""
    root, steps = engine.build_with_trace(values, record_snapshots=False)
    return root, len(steps)


def random_deletes(engine, root, values, seed: int):
    """
    Delete a random half of ``values`` one by one, checking the family's
    invariants after every call.
    """
    degree = getattr(engine, "min_degree", None)
    step_count = 0
    victims = shuffled(values, seed=seed)[: len(values) // 2]
    for value in victims:
        root, steps = engine.delete_with_trace(root, value, record_snapshots=False)
        step_count += len(steps)
        assert_tree_invariants_raise(root, tree_stats(root, engine.family, min_degree=degree))
    return root, step_count, len(victims)


def repeated_experiment(family: str, size: int, repetitions: int, seed: int, min_degree=None) -> None:
    """
    Repeatedly builds random trees of one family, deletes half of their
    values again and aggregates shape statistics, trace lengths and timings.
    """
    t_all_0 = time.perf_counter()

    results = []  # List of tuples: (stats, build_steps, delete_steps_per_call)
    times_build = []
    times_stats = []
    times_delete = []

    for rep in tqdm(range(repetitions), desc=f"{family} n={size}", leave=False):
        engine = create_engine(family, min_degree=min_degree)
        values = random_workload(family, size, seed + rep)

        t0 = time.perf_counter()
        root, build_steps = random_tree(engine, values)
        times_build.append(time.perf_counter() - t0)

        t0 = time.perf_counter()
        stats = tree_stats(root, family, min_degree=getattr(engine, "min_degree", None))
        times_stats.append(time.perf_counter() - t0)
        assert_tree_invariants_raise(root, stats)

        t0 = time.perf_counter()
        _, delete_steps, deletes = random_deletes(engine, root, values, seed + rep)
        times_delete.append(time.perf_counter() - t0)

        results.append((stats, build_steps, delete_steps / deletes if deletes else 0.0))

    # Perfect height of a binary tree holding ``size`` keys
    perfect_height = math.ceil(math.log2(size + 1)) if size > 0 else 0

    heights = np.array([s.height for s, _, _ in results], dtype=float)
    node_counts = np.array([s.node_count for s, _, _ in results], dtype=float)
    leaf_counts = np.array([s.leaf_count for s, _, _ in results], dtype=float)
    leaf_spread = np.array([s.max_leaf_depth - s.min_leaf_depth for s, _, _ in results], dtype=float)
    keys_per_node = np.array([s.key_count / s.node_count for s, _, _ in results], dtype=float)
    build_steps = np.array([b for _, b, _ in results], dtype=float)
    delete_steps = np.array([d for _, _, d in results], dtype=float)

    rows = [
        ("Node count", node_counts.mean(), node_counts.var()),
        ("Leaf count", leaf_counts.mean(), leaf_counts.var()),
        ("Avg keys per node", keys_per_node.mean(), keys_per_node.var()),
        ("Height", heights.mean(), heights.var()),
        ("Leaf depth spread", leaf_spread.mean(), leaf_spread.var()),
        ("Build steps", build_steps.mean(), build_steps.var()),
        ("Build steps per key", (build_steps / size).mean(), (build_steps / size).var()),
        ("Steps per delete", delete_steps.mean(), delete_steps.var()),
    ]
    if family not in MULTIWAY_FAMILIES and family != "trie":
        rows.append(("Perfect height", perfect_height, None))
        rows.append(("Height amplification", (heights / perfect_height).mean(),
                     (heights / perfect_height).var()))

    header = f"{'Metric':<22} {'Avg':>15} {'(Var)':>15}"
    sep_line = "-" * len(header)

    logger.info(header)
    logger.info(sep_line)
    for name, avg, var in rows:
        if var is None:
            logger.info(f"{name:<22} {avg:>15}")
        else:
            var_str = f"({var:.2f})"
            avg_fmt = f"{avg:15.2f}"
            logger.info(f"{name:<22} {avg_fmt} {var_str:>15}")

    timings = [
        ("Build time (s)", np.array(times_build)),
        ("Stats time (s)", np.array(times_stats)),
        ("Delete time (s)", np.array(times_delete)),
    ]
    total_sum = sum(float(t.sum()) for _, t in timings)

    header = f"{'Metric':<22}{'Avg(s)':>13}{'Var(s)':>13}{'Total(s)':>13}{'%Total':>10}"
    sep = "-" * len(header)

    logger.info("")
    logger.info("Performance summary:")
    logger.info(header)
    logger.info(sep)
    for name, times in timings:
        total = float(times.sum())
        pct = (total / total_sum * 100) if total_sum else 0
        logger.info(f"{name:<22}{times.mean():13.6f}{times.var():13.6f}{total:13.6f}{pct:10.2f}%")

    logger.info(sep)
    logger.info("Execution time: %.3f seconds", time.perf_counter() - t_all_0)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run statistics experiments for the traced search trees.")
    parser.add_argument(
        "--families", nargs="+", default=["bst", "avl", "red_black", "btree", "bplus_tree", "trie"],
        help="Tree families to test."
    )
    parser.add_argument(
        "--sizes", type=int, nargs="+", default=[10, 100, 1000], help="List of tree sizes to test."
    )
    parser.add_argument("--repetitions", type=int, default=5, help="Number of repetitions for each experiment.")
    parser.add_argument("--seed", type=int, default=0, help="Base random seed for reproducibility.")
    parser.add_argument(
        "--min-degree", type=int, default=None, help="Minimum degree for B-Tree and B+Tree families."
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Set the logging level (default: INFO)",
    )

    args = parser.parse_args()

    log_dir = os.path.join(os.getcwd(), "stats/logs/trace_trees_logs")
    os.makedirs(log_dir, exist_ok=True)

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = os.path.join(log_dir, f"run_{ts}.log")

    log_level = getattr(logging, args.log_level)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_path, mode="w"),
            logging.StreamHandler(),
        ],
        force=True,
    )

    # Per-operation INFO records from the engines would drown the tables
    logging.getLogger("trace_trees").setLevel(max(log_level, logging.WARNING))

    families = [resolve_family(f) for f in args.families]
    for family in families:
        degree = args.min_degree if family in MULTIWAY_FAMILIES else None
        for n in args.sizes:
            logger.info("")
            logger.info("")
            logger.info(
                f"---------------- NOW RUNNING EXPERIMENT: {family}, n = {n}, "
                f"repetitions = {args.repetitions} ----------------"
            )
            t0 = time.perf_counter()
            repeated_experiment(family, n, args.repetitions, args.seed, min_degree=degree)
            logger.info(f"Total experiment time: {time.perf_counter() - t0:.3f} seconds")
