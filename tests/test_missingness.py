import math

import pytest

from data_profiling.cleaning_utils import pct
from data_profiling.missingness import profile_missingness


def _category_sum(r):
    return r.na_count + r.empty_count + r.whitespace_count + r.sentinel_count + r.valid_count


def test_basic_counts():
    r = profile_missingness(["A", None, "B", "C", None], sentinel_values=[])

    assert r.total_count == 5
    assert r.na_count == 2
    assert r.valid_count == 3
    assert r.na_pct == 40.00
    assert r.valid_pct == 60.00
    assert r.unique_count == 3


def test_categories_are_exclusive_and_ordered():
    values = [None, float("nan"), "", " ", "\t", "999", " unknown ", "10", "10", "11"]
    r = profile_missingness(values, sentinel_values=["999", "UNKNOWN"])

    assert r.na_count == 2
    assert r.empty_count == 1
    assert r.whitespace_count == 2
    assert r.sentinel_count == 2
    assert r.valid_count == 3
    assert r.total_missing_count == 7
    assert r.total_missing_pct == 70.0
    assert _category_sum(r) == r.total_count == 10
    # Distinct among valid values only.
    assert r.unique_count == 2
    assert r.unique_pct == pytest.approx(66.67)


@pytest.mark.parametrize(
    "values",
    [
        [],
        [None],
        ["", "", ""],
        ["x", " ", None, "NA", "y", "NA"],
        ["1"] * 7 + [None] * 3,
    ],
)
def test_counts_always_sum_to_total(values):
    r = profile_missingness(values, sentinel_values=["NA"])
    assert _category_sum(r) == r.total_count == len(values)


def test_empty_input_has_zero_percentages():
    r = profile_missingness([])
    assert r.total_count == 0
    assert r.total_missing_pct == 0.0
    assert r.valid_pct == 0.0
    assert r.unique_pct == 0.0
    assert not math.isnan(r.na_pct)


def test_without_sentinels_nothing_is_a_sentinel():
    r = profile_missingness(["999", "999", "1"])
    assert r.sentinel_count == 0
    assert r.valid_count == 3


def test_percentages_are_rounded_to_two_places():
    r = profile_missingness([None, "a", "b"])
    assert r.na_pct == 33.33
    assert r.valid_pct == 66.67


@pytest.mark.parametrize(
    "count, total, expected",
    [(1, 3, 33.33), (2, 3, 66.67), (0, 5, 0.0), (3, 0, 0.0), (4, 4, 100.0)],
)
def test_pct_rounds_and_guards_zero_total(count, total, expected):
    assert pct(count, total) == expected
