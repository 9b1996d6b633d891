"""
Scoring Utilities
app/scoring/utils.py

Clamping, weighted means, half-open bucket tables and keyword matching
shared by every pillar heuristic.
"""

from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

# A bucket table is an ascending sequence of (upper_bound, score) pairs read as
# half-open ranges [prev_upper, upper). The last pair uses math.inf and acts as
# the catch-all branch.
BucketTable = Sequence[Tuple[float, float]]


def clamp(value: float, min_val: float = 0.0, max_val: float = 5.0) -> float:
    """Clamp value to range [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def weighted_mean(values: List[float], weights: List[float]) -> float:
    """
    Calculate weighted mean.

    Formula: Σ(value_i × weight_i) / Σ(weight_i)
    Returns 0.0 if all weights are zero.
    """
    if len(values) != len(weights):
        raise ValueError("values and weights must have same length")

    total_weight = sum(weights)
    if total_weight == 0:
        return 0.0

    return sum(v * w for v, w in zip(values, weights)) / total_weight


def bucket_score(value: float, table: BucketTable, inclusive: bool = False) -> float:
    """
    First bucket whose upper bound exceeds ``value`` wins. With
    ``inclusive`` the upper bounds are closed (value <= bound).

    Examples:
        >>> table = ((2, 4.5), (5, 4.0), (math.inf, 1.5))
        >>> bucket_score(1.99, table)
        4.5
        >>> bucket_score(2.0, table)
        4.0
    """
    for upper, score in table:
        if value < upper or (inclusive and value == upper):
            return score
    # Unreachable with a math.inf catch-all; tables are checked in tests.
    return table[-1][1]


def threshold_score(value: float, table: BucketTable, default: float) -> float:
    """
    Descending ">= threshold" lookup: first (minimum, score) pair with
    value >= minimum wins, otherwise ``default``.
    """
    for minimum, score in table:
        if value >= minimum:
            return score
    return default


def matches_any(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring containment against a keyword set."""
    lowered = text.lower()
    return any(k in lowered for k in keywords)


def any_matches(texts: Iterable[str], keywords: Iterable[str]) -> bool:
    keywords = tuple(keywords)
    return any(matches_any(t, keywords) for t in texts)


def count_matching(texts: Iterable[str], keywords: Iterable[str]) -> int:
    keywords = tuple(keywords)
    return sum(1 for t in texts if matches_any(t, keywords))


def first_keyword_delta(text: str, table: Sequence[Tuple[str, float]]) -> Optional[float]:
    """Delta of the first (keyword, delta) entry contained in ``text``."""
    lowered = text.lower()
    for keyword, delta in table:
        if keyword in lowered:
            return delta
    return None


def months_between(start: date, end: date) -> int:
    """Whole calendar months elapsed from ``start`` to ``end``."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return months


def days_between(start: date, end: date) -> int:
    return (end - start).days