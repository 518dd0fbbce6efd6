"""Value-level helpers shared by the profiling components.

Raw lake columns arrive as sequences of nullable text. Every component needs
the same answers about a single value (is it missing, and how; does it parse
as a number), so those rules live here:

  - Missingness categories (classify_value, classify_values)
  - Valid / non-missing filtering (valid_values, non_missing_values)
  - Sentinel normalization (normalize_sentinels)
  - Numeric parsing (parse_numeric)
  - Percentages (pct)
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

# -----------------------------
# Missingness categories, in precedence order
# -----------------------------
NA = "na"
EMPTY = "empty"
WHITESPACE = "whitespace"
SENTINEL = "sentinel"
VALID = "valid"

CATEGORIES = (NA, EMPTY, WHITESPACE, SENTINEL, VALID)


def is_na(value: object) -> bool:
    if value is None:
        return True
    return isinstance(value, float) and np.isnan(value)


def is_blank(value: object) -> bool:
    """True for NA, empty and whitespace-only values."""
    if is_na(value):
        return True
    text = str(value)
    return text == "" or text.isspace()


def normalize_sentinels(sentinel_values: Optional[Iterable[object]]) -> FrozenSet[str]:
    if not sentinel_values:
        return frozenset()
    return frozenset(str(s).strip().upper() for s in sentinel_values)


def classify_value(value: object, sentinels: FrozenSet[str]) -> str:
    if is_na(value):
        return NA
    text = str(value)
    if text == "":
        return EMPTY
    if text.isspace():
        return WHITESPACE
    if sentinels and text.strip().upper() in sentinels:
        return SENTINEL
    return VALID


def classify_values(
    values: Sequence[object], sentinel_values: Optional[Iterable[object]] = None
) -> List[str]:
    sentinels = normalize_sentinels(sentinel_values)
    return [classify_value(v, sentinels) for v in values]


def valid_values(
    values: Sequence[object], sentinel_values: Optional[Iterable[object]] = None
) -> List[str]:
    """Values that are neither NA, empty, whitespace-only nor a sentinel."""
    sentinels = normalize_sentinels(sentinel_values)
    return [str(v) for v in values if classify_value(v, sentinels) == VALID]


def non_missing_values(values: Sequence[object], strip: bool = False) -> List[str]:
    out = [str(v) for v in values if not is_blank(v)]
    if strip:
        out = [v.strip() for v in out]
    return out


def pct(count: int, total: int) -> float:
    """``count`` as a percentage of ``total``, rounded to 2 places; 0.0 when total is 0."""
    if total == 0:
        return 0.0
    return round(count / total * 100, 2)


def _normalize_whitespace_and_minus(series: pd.Series) -> pd.Series:
    s = series.astype(str)
    s = s.str.replace("\u2212", "-", regex=False)
    s = s.str.replace("\u00a0", " ", regex=False)
    s = s.str.replace(r"[\u2000-\u200B]", " ", regex=True)
    return s.str.strip()


def parse_numeric(values: Sequence[object]) -> pd.Series:
    """Parse text values to floats; unparseable values become NaN."""
    if len(values) == 0:
        return pd.Series([], dtype=float)
    s = pd.Series(list(values), dtype=object)
    s = _normalize_whitespace_and_minus(s.where(~s.isna(), ""))
    return pd.to_numeric(s, errors="coerce").astype(float)


def finite_numbers(values: Sequence[object]) -> np.ndarray:
    """Parsed numbers with NaN and infinities dropped."""
    parsed = parse_numeric(values).to_numpy(dtype=float)
    return parsed[np.isfinite(parsed)]


__all__ = [
    "NA",
    "EMPTY",
    "WHITESPACE",
    "SENTINEL",
    "VALID",
    "CATEGORIES",
    "is_na",
    "is_blank",
    "normalize_sentinels",
    "classify_value",
    "classify_values",
    "valid_values",
    "non_missing_values",
    "parse_numeric",
    "finite_numbers",
    "pct",
]
