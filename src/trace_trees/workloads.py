"""Random workloads for tests and experiments."""

import string
from typing import List, Optional

import numpy as np


def random_values(n: int, seed: Optional[int] = None, low: int = 1,
                  high: Optional[int] = None) -> List[int]:
    """
    Draw ``n`` distinct integers from ``[low, high)`` in random order.

    Args:
        n: Number of values
        seed: Seed for reproducible draws
        low: Inclusive lower bound
        high: Exclusive upper bound (default: ``low + max(10 * n, 100)``)

    Returns:
        A list of Python ints
    """
    if high is None:
        high = low + max(10 * n, 100)
    if high - low < n:
        raise ValueError(f"Cannot draw {n} distinct values from [{low}, {high})")
    rng = np.random.default_rng(seed)
    return [int(v) for v in rng.choice(np.arange(low, high), size=n, replace=False)]


def random_words(n: int, seed: Optional[int] = None, alphabet: str = "abcde",
                 min_len: int = 1, max_len: int = 6) -> List[str]:
    """
    Generate ``n`` distinct lowercase words.

    A small alphabet makes the words share prefixes, which is what exercises
    a trie.
    """
    if not alphabet or any(ch not in string.ascii_lowercase for ch in alphabet):
        raise ValueError(f"alphabet must be lowercase letters, got {alphabet!r}")
    capacity = sum(len(alphabet) ** k for k in range(min_len, max_len + 1))
    if capacity < n:
        raise ValueError(f"Cannot generate {n} distinct words of length {min_len}..{max_len}")

    rng = np.random.default_rng(seed)
    letters = np.array(list(alphabet))
    words: List[str] = []
    seen = set()
    while len(words) < n:
        length = int(rng.integers(min_len, max_len + 1))
        word = "".join(rng.choice(letters, size=length))
        if word in seen:
            continue
        seen.add(word)
        words.append(word)
    return words


def shuffled(values: List, seed: Optional[int] = None) -> List:
    """Return the values in a random order, leaving the input untouched."""
    rng = np.random.default_rng(seed)
    return [values[i] for i in rng.permutation(len(values))]
