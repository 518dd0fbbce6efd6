import json
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .cleaning_utils import finite_numbers, valid_values
from .config import ProfilingConfig
from .records import DistributionResult
from .type_inference import NUMERIC

NUMERIC_DISTRIBUTION = "numeric"
CATEGORICAL_DISTRIBUTION = "categorical"


def _round(value: Any, places: int) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    if not np.isfinite(value):
        return None
    return round(value, places)


class DistributionProfiler:
    """Distribution statistics over the valid values of a column."""

    def __init__(self, config: Optional[ProfilingConfig] = None) -> None:
        self.config = config or ProfilingConfig()

    @property
    def decimal_places(self) -> int:
        return self.config.display.decimal_places

    @property
    def top_n(self) -> int:
        return self.config.display.top_n_categories

    def profile(
        self,
        values: Sequence[Optional[str]],
        column_type: str,
        sentinel_values: Optional[Iterable[str]] = None,
    ) -> DistributionResult:
        """Numeric statistics for numeric columns, a frequency table otherwise.

        NA, empty, whitespace-only and sentinel values are excluded first; if
        nothing is left every field is null.
        """
        valid = valid_values(values, sentinel_values)
        if not valid:
            return DistributionResult()

        if column_type == NUMERIC:
            return self._get_numeric_statistics(valid)
        return self._get_categorical_statistics(valid)

    def _get_most_frequent_values(self, valid: List[str]) -> List[Tuple[str, int]]:
        """(value, count) pairs, most frequent first; ties keep first-seen order."""

        # value_counts(sort=False) keeps first-occurrence order; sorted() is stable.
        counts = pd.Series(valid, dtype=object).value_counts(sort=False)
        return sorted(
            ((str(value), int(count)) for value, count in counts.items()),
            key=lambda pair: -pair[1],
        )

    def _get_numeric_statistics(self, valid: List[str]) -> DistributionResult:
        numbers = finite_numbers(valid)
        if len(numbers) == 0:
            return DistributionResult()

        dp = self.decimal_places
        series = pd.Series(numbers)
        q25, q75 = series.quantile([0.25, 0.75]).tolist()
        sd = series.std() if len(series) > 1 else None

        mode_value, mode_count = self._get_most_frequent_values(valid)[0]

        return DistributionResult(
            distribution_type=NUMERIC_DISTRIBUTION,
            stat_min=_round(series.min(), dp),
            stat_max=_round(series.max(), dp),
            stat_mean=_round(series.mean(), dp),
            stat_median=_round(series.median(), dp),
            stat_sd=_round(sd, dp),
            stat_q25=_round(q25, dp),
            stat_q75=_round(q75, dp),
            stat_iqr=_round(q75 - q25, dp),
            top_values_json=None,
            mode_value=mode_value,
            mode_count=mode_count,
            mode_pct=round(mode_count / len(valid) * 100, dp),
        )

    def _get_categorical_statistics(self, valid: List[str]) -> DistributionResult:
        dp = self.decimal_places
        frequent = self._get_most_frequent_values(valid)

        top_values: List[Dict[str, Any]] = [
            {
                "value": value,
                "count": count,
                "pct": round(count / len(valid) * 100, dp),
            }
            for value, count in frequent[: self.top_n]
        ]
        mode_value, mode_count = frequent[0]

        return DistributionResult(
            distribution_type=CATEGORICAL_DISTRIBUTION,
            top_values_json=json.dumps(top_values),
            mode_value=mode_value,
            mode_count=mode_count,
            mode_pct=round(mode_count / len(valid) * 100, dp),
        )


def profile_distribution(
    values: Sequence[Optional[str]],
    column_type: str,
    sentinel_values: Optional[Iterable[str]] = None,
    config: Optional[ProfilingConfig] = None,
) -> DistributionResult:
    return DistributionProfiler(config).profile(values, column_type, sentinel_values)
