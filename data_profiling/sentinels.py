"""Sentinel (placeholder value) detection.

Two passes:

1. ``config_list`` (high confidence) -- any value equal, case-insensitively,
   to a configured numeric or string sentinel literal.
2. ``frequency_analysis`` (medium confidence) -- numeric columns only, with a
   bounded number of distinct values: repeat-digit values such as ``55`` or
   ``-999`` whose share of non-missing values exceeds ``min_frequency_pct``.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

import pandas as pd

from .cleaning_utils import non_missing_values, pct
from .config import ProfilingConfig
from .records import CONFIG_LIST, FREQUENCY_ANALYSIS, HIGH, MEDIUM, SentinelRecord
from .type_inference import NUMERIC

logger = logging.getLogger(__name__)

REPEAT_DIGIT_PATTERN = re.compile(r"^-?(\d)\1+$")


def detect_sentinels(
    values: Sequence[Optional[str]],
    column_name: str,
    column_type: str,
    config: Optional[ProfilingConfig] = None,
) -> List[SentinelRecord]:
    """Find placeholder values in a column.

    Returns an empty list when nothing is detected (or every value is missing).
    """
    cfg = (config or ProfilingConfig()).sentinel_detection
    total_count = len(values)

    present = non_missing_values(values, strip=True)
    if not present:
        return []

    counts = pd.Series(present, dtype=object).value_counts(sort=False)
    upper_counts = pd.Series([v.upper() for v in present], dtype=object).value_counts(
        sort=False
    )

    results: List[SentinelRecord] = []
    reported: set = set()

    # Pass 1: configured literals, numeric list first.
    for sentinel in list(cfg.numeric_sentinels) + list(cfg.string_sentinels):
        key = sentinel.strip().upper()
        if key in reported:
            continue
        count = int(upper_counts.get(key, 0))
        if count > 0:
            results.append(
                SentinelRecord(
                    sentinel_value=sentinel,
                    sentinel_count=count,
                    sentinel_pct=pct(count, total_count),
                    detection_method=CONFIG_LIST,
                    confidence=HIGH,
                )
            )
            reported.add(key)

    # Pass 2: frequent repeat-digit values in numeric columns.
    if column_type == NUMERIC and len(counts) <= cfg.max_unique_for_detection:
        non_missing = len(present)
        for value, count in counts.items():
            if value.upper() in reported or not REPEAT_DIGIT_PATTERN.match(value):
                continue
            if count / non_missing * 100 > cfg.min_frequency_pct:
                results.append(
                    SentinelRecord(
                        sentinel_value=value,
                        sentinel_count=int(count),
                        sentinel_pct=pct(int(count), total_count),
                        detection_method=FREQUENCY_ANALYSIS,
                        confidence=MEDIUM,
                    )
                )
                reported.add(value.upper())

    if results:
        logger.debug(
            "Column %s: %d sentinel value(s) detected", column_name, len(results)
        )
    return results


def sentinel_values(records: Sequence[SentinelRecord]) -> List[str]:
    return [r.sentinel_value for r in records]
