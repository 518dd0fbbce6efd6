"""Missingness profiling: exclusive na / empty / whitespace / sentinel / valid counts."""

from typing import Iterable, Optional, Sequence

from .cleaning_utils import (
    CATEGORIES,
    EMPTY,
    NA,
    SENTINEL,
    VALID,
    WHITESPACE,
    classify_values,
    pct,
)
from .records import MissingnessResult


def profile_missingness(
    values: Sequence[Optional[str]],
    sentinel_values: Optional[Iterable[str]] = None,
) -> MissingnessResult:
    """Classify every value into exactly one missingness category.

    Precedence is NA, empty string, whitespace-only, sentinel (case-insensitive,
    trimmed), valid. ``unique_count`` is taken over valid values only.
    """
    categories = classify_values(values, sentinel_values)
    total_count = len(categories)

    counts = {cat: 0 for cat in CATEGORIES}
    distinct_valid = set()
    for value, cat in zip(values, categories):
        counts[cat] += 1
        if cat == VALID:
            distinct_valid.add(str(value))

    valid_count = counts[VALID]
    total_missing_count = counts[NA] + counts[EMPTY] + counts[WHITESPACE] + counts[SENTINEL]
    unique_count = len(distinct_valid)

    return MissingnessResult(
        total_count=total_count,
        valid_count=valid_count,
        na_count=counts[NA],
        empty_count=counts[EMPTY],
        whitespace_count=counts[WHITESPACE],
        sentinel_count=counts[SENTINEL],
        na_pct=pct(counts[NA], total_count),
        empty_pct=pct(counts[EMPTY], total_count),
        whitespace_pct=pct(counts[WHITESPACE], total_count),
        sentinel_pct=pct(counts[SENTINEL], total_count),
        total_missing_count=total_missing_count,
        total_missing_pct=pct(total_missing_count, total_count),
        valid_pct=pct(valid_count, total_count),
        unique_count=unique_count,
        unique_pct=pct(unique_count, valid_count),
    )
