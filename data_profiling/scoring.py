"""Ordinal quality scores for tables and batches."""

from __future__ import annotations

import math
from typing import Iterable, Optional

from .config import SCORE_LEVEL_NAMES, ProfilingConfig

EXCELLENT = "Excellent"
GOOD = "Good"
FAIR = "Fair"
NEEDS_REVIEW = "Needs Review"

# Best first; a higher index is a worse score.
SCORE_LEVELS = (EXCELLENT, GOOD, FAIR, NEEDS_REVIEW)

_LEVEL_LABELS = dict(zip(SCORE_LEVEL_NAMES, SCORE_LEVELS))


def _is_missing(value: Optional[float]) -> bool:
    if value is None:
        return True
    try:
        return math.isnan(value)
    except TypeError:
        return True


def calculate_quality_score(
    missing_pct: Optional[float],
    critical_issues: Optional[int],
    config: Optional[ProfilingConfig] = None,
) -> str:
    """Rate quality as Excellent, Good, Fair or Needs Review.

    Levels are tried best first; a level holds when both values are at or
    below its limits. A null input for either argument is Needs Review.
    """
    if _is_missing(missing_pct) or _is_missing(critical_issues):
        return NEEDS_REVIEW

    thresholds = (config or ProfilingConfig()).quality_score_thresholds
    for name in SCORE_LEVEL_NAMES:
        level = thresholds[name]
        if missing_pct <= level.max_missing_pct and critical_issues <= level.max_critical_issues:
            return _LEVEL_LABELS[name]
    return NEEDS_REVIEW


def score_rank(score: str) -> int:
    """Position of ``score`` in ``SCORE_LEVELS``; unknown labels rank as worst."""
    try:
        return SCORE_LEVELS.index(score)
    except ValueError:
        return len(SCORE_LEVELS) - 1


def worst_score(scores: Iterable[str]) -> str:
    """Lowest-ranked score in ``scores``, Needs Review if there are none."""
    ranks = [score_rank(s) for s in scores]
    if not ranks:
        return NEEDS_REVIEW
    return SCORE_LEVELS[max(ranks)]
