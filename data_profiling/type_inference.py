"""Semantic type inference for raw text columns.

Lake tables store every column as text, so the semantic type is inferred from
the column name and the values themselves. Classification is an ordered list
of rules; the first rule whose predicate holds decides the type.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cached_property
from typing import Callable, List, NamedTuple, Optional, Sequence

import pandas as pd

from .cleaning_utils import non_missing_values, parse_numeric
from .config import ProfilingConfig

IDENTIFIER = "identifier"
NUMERIC = "numeric"
DATE = "date"
CATEGORICAL = "categorical"

_SAMPLE_SEED = 42


@dataclass
class ColumnEvidence:
    """Everything a type rule may look at for one column."""

    values: Sequence[Optional[str]]
    column_name: str
    config: ProfilingConfig

    @cached_property
    def content(self) -> List[str]:
        """Non-missing values (NA, empty and whitespace-only removed)."""
        return non_missing_values(self.values)

    @cached_property
    def date_sample(self) -> List[str]:
        stripped = [v.strip() for v in self.content]
        size = self.config.type_inference.date_sample_size
        if len(stripped) <= size:
            return stripped
        return pd.Series(stripped).sample(size, random_state=_SAMPLE_SEED).tolist()


class TypeRule(NamedTuple):
    name: str
    predicate: Callable[[ColumnEvidence], bool]
    result: str


def _matches_identifier_name(col: ColumnEvidence) -> bool:
    names = {c.lower() for c in col.config.identifier_columns}
    return col.column_name.lower() in names


def _matches_identifier_pattern(col: ColumnEvidence) -> bool:
    return any(
        re.search(pattern, col.column_name, re.IGNORECASE)
        for pattern in col.config.identifier_patterns
    )


def _has_no_content(col: ColumnEvidence) -> bool:
    return len(col.content) == 0


def _is_mostly_numeric(col: ColumnEvidence) -> bool:
    parsed = parse_numeric(col.content)
    success_rate = parsed.notna().sum() / len(col.content)
    return success_rate > col.config.type_inference.numeric_threshold


def _is_mostly_dates(col: ColumnEvidence) -> bool:
    sample = col.date_sample
    threshold = col.config.type_inference.date_threshold
    for fmt in col.config.type_inference.date_formats:
        # Prefix match: "2024-01-05 10:30:00" parses with "%Y-%m-%d".
        parsed = pd.to_datetime(
            pd.Series(sample, dtype=object), format=fmt, exact=False, errors="coerce"
        )
        if parsed.notna().sum() / len(sample) > threshold:
            return True
    return False


def _always(col: ColumnEvidence) -> bool:
    return True


# Order matters: identifier checks run before any content is inspected.
TYPE_RULES = (
    TypeRule("identifier_name", _matches_identifier_name, IDENTIFIER),
    TypeRule("identifier_pattern", _matches_identifier_pattern, IDENTIFIER),
    TypeRule("no_content", _has_no_content, CATEGORICAL),
    TypeRule("numeric_content", _is_mostly_numeric, NUMERIC),
    TypeRule("date_content", _is_mostly_dates, DATE),
    TypeRule("fallback", _always, CATEGORICAL),
)


def infer_column_type(
    values: Sequence[Optional[str]],
    column_name: str,
    config: Optional[ProfilingConfig] = None,
) -> str:
    """Classify a column as identifier, numeric, date or categorical."""
    return matching_rule(values, column_name, config).result


def matching_rule(
    values: Sequence[Optional[str]],
    column_name: str,
    config: Optional[ProfilingConfig] = None,
) -> TypeRule:
    """Return the first rule that fires; useful when explaining a classification."""
    evidence = ColumnEvidence(list(values), str(column_name), config or ProfilingConfig())
    for rule in TYPE_RULES:
        if rule.predicate(evidence):
            return rule
    return TYPE_RULES[-1]
