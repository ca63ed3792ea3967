"""Input normalization for the tree engines.

Free-form text is turned into a deduplicated, ordered list of values before
any engine sees it. All validation happens here so that a rejected input
never touches an existing tree.
"""

import math
import re
from typing import List, NamedTuple, Optional, Union

from trace_trees.config import MIN_DEGREE_LOWER, MIN_DEGREE_UPPER

Number = Union[int, float]

_WORD_RE = re.compile(r"^[a-z]+$")
_BRACKETS_RE = re.compile(r"^\[|\]$")


class InputValidationError(ValueError):
    """Raised when user input cannot be turned into engine values."""


class ValidationResult(NamedTuple):
    valid: bool
    error: Optional[str] = None


def _split_tokens(text: str) -> List[str]:
    if not isinstance(text, str):
        raise TypeError(f"expected str input, got {type(text).__name__}")
    if not text.strip():
        raise InputValidationError("Input cannot be empty")
    cleaned = _BRACKETS_RE.sub("", text.strip())
    return [tok.strip() for tok in cleaned.split(",") if tok.strip()]


def normalize_number(value: Number) -> Number:
    """Return ``value`` as an int when it is integral, rejecting NaN/inf."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InputValidationError(f"Invalid number: {value}")
        if value.is_integer():
            return int(value)
    return value


def parse_values(text: str) -> List[Number]:
    """
    Parse a delimited list of numbers such as ``"[10, 5, 15]"`` or ``"10,5,15"``.

    Returns:
        The values in input order with duplicates removed.

    Raises:
        InputValidationError: If the input is blank, holds no numbers or any
            token is not a finite number.
    """
    tokens = _split_tokens(text)
    if not tokens:
        raise InputValidationError("No valid numbers found")

    values: List[Number] = []
    seen = set()
    for tok in tokens:
        try:
            number = float(tok)
        except ValueError:
            raise InputValidationError(f"Invalid number: {tok}") from None
        value = normalize_number(number)
        if value in seen:
            continue
        seen.add(value)
        values.append(value)
    return values


def normalize_word(word: str) -> str:
    """Case-fold a single word and check it only holds letters a-z."""
    if not isinstance(word, str):
        raise TypeError(f"expected str word, got {type(word).__name__}")
    folded = word.strip().lower()
    if not _WORD_RE.match(folded):
        raise InputValidationError(
            f"Invalid word {word!r} (only lowercase letters allowed)"
        )
    return folded


def parse_words(text: str) -> List[str]:
    """
    Parse a comma separated list of words for the trie.

    Tokens are lowercased; anything that is not made of letters a-z is
    dropped without error. Duplicates are removed, first occurrence wins.
    """
    words: List[str] = []
    seen = set()
    for tok in _split_tokens(text):
        folded = tok.lower()
        if not _WORD_RE.match(folded) or folded in seen:
            continue
        seen.add(folded)
        words.append(folded)
    return words


def validate_min_degree(t) -> int:
    """
    Validate the B-Tree / B+Tree minimum degree.

    Accepts an int or a string holding an integer.

    Raises:
        InputValidationError: For non-integers and values outside
            ``MIN_DEGREE_LOWER..MIN_DEGREE_UPPER``.
    """
    if isinstance(t, bool):
        raise InputValidationError(f"Minimum degree must be an integer, got {t!r}")
    if isinstance(t, str):
        stripped = t.strip()
        if not re.fullmatch(r"[+-]?\d+", stripped):
            raise InputValidationError(f"Minimum degree must be an integer, got {t!r}")
        t = int(stripped)
    elif isinstance(t, float):
        if not t.is_integer():
            raise InputValidationError(f"Minimum degree must be an integer, got {t!r}")
        t = int(t)
    elif not isinstance(t, int):
        raise InputValidationError(f"Minimum degree must be an integer, got {t!r}")

    if t < MIN_DEGREE_LOWER:
        raise InputValidationError(
            f"Minimum degree must be at least {MIN_DEGREE_LOWER}, got {t}"
        )
    if t > MIN_DEGREE_UPPER:
        raise InputValidationError(
            f"Minimum degree must be at most {MIN_DEGREE_UPPER}, got {t}"
        )
    return t


def validate_input(text: str, kind: str = "numeric") -> ValidationResult:
    """Non-raising check of free-form input, for callers that only need a verdict."""
    try:
        if kind == "numeric":
            parse_values(text)
        elif kind == "words":
            if not parse_words(text):
                return ValidationResult(False, "No valid words found")
        else:
            raise ValueError(f"unknown input kind {kind!r}")
    except InputValidationError as exc:
        return ValidationResult(False, str(exc))
    return ValidationResult(True)
