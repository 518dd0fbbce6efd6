"""Quality issue rules for a single profiled column.

Issue types and severities:

  identifier_missing    critical  identifier column with any missing values
  high_missingness      warning   non-identifier, missing % above ``high``
  moderate_missingness  info      non-identifier, missing % in (moderate, high]
  constant_value        info      exactly one distinct valid value
  high_cardinality      info      non-identifier, large table, mostly unique

Within the missingness family at most one rule fires per column.
"""

from __future__ import annotations

from typing import List, Optional

from .config import ProfilingConfig
from .records import CRITICAL, INFO, WARNING, IssueRecord, MissingnessResult
from .type_inference import IDENTIFIER

IDENTIFIER_MISSING = "identifier_missing"
HIGH_MISSINGNESS = "high_missingness"
MODERATE_MISSINGNESS = "moderate_missingness"
CONSTANT_VALUE = "constant_value"
HIGH_CARDINALITY = "high_cardinality"


def _fmt(pct: float) -> str:
    return f"{pct:g}"


def generate_issues(
    variable_name: str,
    table_name: str,
    missingness_result: MissingnessResult,
    column_type: str,
    unique_count: int,
    total_count: int,
    config: Optional[ProfilingConfig] = None,
) -> List[IssueRecord]:
    """Evaluate the issue rules for one column; an empty list means no issues."""
    cfg = config or ProfilingConfig()
    thresholds = cfg.missingness_thresholds
    rules = cfg.issue_rules
    miss_pct = missingness_result.total_missing_pct
    is_identifier = column_type == IDENTIFIER

    issues: List[IssueRecord] = []

    def add(issue_type: str, severity: str, description: str, value: float, recommendation: str) -> None:
        issues.append(
            IssueRecord(
                variable_name=variable_name,
                table_name=table_name,
                issue_type=issue_type,
                severity=severity,
                description=description,
                value=value,
                recommendation=recommendation,
            )
        )

    if is_identifier:
        if miss_pct > thresholds.critical:
            add(
                IDENTIFIER_MISSING,
                CRITICAL,
                f"Identifier column {variable_name} has {_fmt(miss_pct)}% missing values",
                miss_pct,
                "Investigate source data -- identifier fields must be complete.",
            )
    elif miss_pct > thresholds.high:
        add(
            HIGH_MISSINGNESS,
            WARNING,
            f"{variable_name} has {_fmt(miss_pct)}% missing values "
            f"(threshold: {_fmt(thresholds.high)}%)",
            miss_pct,
            "Review data source; consider imputation or exclusion.",
        )
    elif miss_pct > thresholds.moderate:
        add(
            MODERATE_MISSINGNESS,
            INFO,
            f"{variable_name} has {_fmt(miss_pct)}% missing values",
            miss_pct,
            "Monitor; may need review before use.",
        )

    if unique_count == 1 and total_count > 0:
        add(
            CONSTANT_VALUE,
            INFO,
            f"{variable_name} has only one unique value across {total_count} rows",
            1,
            "Column provides no discriminating information.",
        )

    if (
        not is_identifier
        and total_count >= rules.high_cardinality_min_rows
        and unique_count > 0
        and unique_count / total_count > rules.high_cardinality_ratio
    ):
        card_pct = round(unique_count / total_count * 100, 2)
        add(
            HIGH_CARDINALITY,
            INFO,
            f"{variable_name} has {_fmt(card_pct)}% unique values "
            f"({unique_count} of {total_count})",
            card_pct,
            "Verify this is expected; high cardinality may indicate free-text.",
        )

    return issues
