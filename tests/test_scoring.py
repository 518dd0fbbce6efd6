import pytest

from data_profiling.config import ProfilingConfig
from data_profiling.scoring import (
    EXCELLENT,
    FAIR,
    GOOD,
    NEEDS_REVIEW,
    calculate_quality_score,
    score_rank,
    worst_score,
)


@pytest.mark.parametrize(
    "missing_pct, critical, expected",
    [
        (0.0, 0, EXCELLENT),
        (5.0, 0, EXCELLENT),
        (5.01, 0, GOOD),
        (3.0, 1, GOOD),
        (10.0, 2, GOOD),
        (10.5, 0, FAIR),
        (20.0, 5, FAIR),
        (20.01, 0, NEEDS_REVIEW),
        (1.0, 6, NEEDS_REVIEW),
    ],
)
def test_score_levels(config, missing_pct, critical, expected):
    assert calculate_quality_score(missing_pct, critical, config) == expected


def test_null_inputs_need_review(config):
    assert calculate_quality_score(None, 0, config) == NEEDS_REVIEW
    assert calculate_quality_score(3.0, None, config) == NEEDS_REVIEW
    assert calculate_quality_score(float("nan"), 0, config) == NEEDS_REVIEW


def test_custom_thresholds():
    cfg = ProfilingConfig.from_dict(
        {"quality_score_thresholds": {"excellent": {"max_missing_pct": 1}}}
    )
    assert calculate_quality_score(2.0, 0, cfg) == GOOD


def test_worst_score():
    assert worst_score([EXCELLENT, FAIR, GOOD]) == FAIR
    assert worst_score([GOOD, NEEDS_REVIEW]) == NEEDS_REVIEW
    assert worst_score([EXCELLENT]) == EXCELLENT
    assert worst_score([]) == NEEDS_REVIEW


def test_score_rank_orders_best_first():
    assert score_rank(EXCELLENT) < score_rank(GOOD) < score_rank(FAIR) < score_rank(NEEDS_REVIEW)
    assert score_rank("bogus") == score_rank(NEEDS_REVIEW)
