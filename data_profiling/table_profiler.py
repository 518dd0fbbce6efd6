"""Profile every column of one lake table.

Runs the column components in order (type inference, sentinel detection,
missingness, distribution, issues) and rolls the results up into a single
table summary with a quality score. Nothing is written here; the caller owns
persistence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import ProfilingConfig
from .data_profiler import DistributionProfiler
from .issues import generate_issues
from .missingness import profile_missingness
from .records import (
    CRITICAL,
    DISTRIBUTION,
    INFO,
    ISSUE,
    PROFILE,
    SENTINEL,
    SUMMARY,
    WARNING,
    TableSummary,
    to_row,
)
from .scoring import calculate_quality_score
from .sentinels import detect_sentinels, sentinel_values
from .type_inference import infer_column_type

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


@dataclass
class TableProfileResult:
    """The five record collections produced for one table."""

    profile: List[Row] = field(default_factory=list)
    distributions: List[Row] = field(default_factory=list)
    sentinels: List[Row] = field(default_factory=list)
    issues: List[Row] = field(default_factory=list)
    summary: List[Row] = field(default_factory=list)

    def extend(self, other: "TableProfileResult") -> None:
        self.profile.extend(other.profile)
        self.distributions.extend(other.distributions)
        self.sentinels.extend(other.sentinels)
        self.issues.extend(other.issues)
        self.summary.extend(other.summary)

    def collections(self) -> Dict[str, List[Row]]:
        """Rows keyed by persisted collection name, in write order."""
        return {
            PROFILE: self.profile,
            DISTRIBUTION: self.distributions,
            SENTINEL: self.sentinels,
            ISSUE: self.issues,
            SUMMARY: self.summary,
        }

    def severity_count(self, severity: str) -> int:
        return sum(1 for row in self.issues if row["severity"] == severity)

    @property
    def quality_score(self) -> Optional[str]:
        return self.summary[0]["quality_score"] if self.summary else None


def profile_table(
    table_name: str,
    columns: Mapping[str, Sequence[Optional[str]]],
    ingest_id: str,
    schema_name: str,
    config: Optional[ProfilingConfig] = None,
) -> TableProfileResult:
    """Profile all columns of a table given as ``{column_name: values}``.

    Columns are processed in mapping order. Exactly one summary row is always
    produced; a table with no rows or no columns gets null percentages and
    therefore a Needs Review score.
    """
    cfg = config or ProfilingConfig()
    distribution_profiler = DistributionProfiler(cfg)
    profiled_at = datetime.now(timezone.utc).replace(tzinfo=None)
    keys = {"ingest_id": ingest_id, "schema_name": schema_name, "table_name": table_name}

    column_names = list(columns)
    row_count = max((len(columns[c]) for c in column_names), default=0)
    result = TableProfileResult()

    if row_count == 0:
        logger.info("%s: 0 rows -- skipping column profiling", table_name)
    else:
        logger.info("%s: %d rows, %d columns", table_name, row_count, len(column_names))
        for col_name in column_names:
            _profile_column(
                result, col_name, list(columns[col_name]), keys, profiled_at,
                distribution_profiler, cfg,
            )

    summary = _summarize(result, keys, row_count, len(column_names), cfg)
    result.summary.append(to_row(summary))

    logger.info(
        "%s: score=%s, issues=%dC/%dW/%dI",
        table_name,
        summary.quality_score,
        summary.critical_issue_count,
        summary.warning_issue_count,
        summary.info_issue_count,
    )
    return result


def _profile_column(
    result: TableProfileResult,
    col_name: str,
    values: List[Optional[str]],
    keys: Mapping[str, str],
    profiled_at: datetime,
    distribution_profiler: DistributionProfiler,
    config: ProfilingConfig,
) -> None:
    col_keys = dict(keys, variable_name=col_name)

    col_type = infer_column_type(values, col_name, config)
    found = detect_sentinels(values, col_name, col_type, config)
    found_values = sentinel_values(found)
    missingness = profile_missingness(values, found_values)
    distribution = distribution_profiler.profile(values, col_type, found_values)
    issues = generate_issues(
        col_name,
        keys["table_name"],
        missingness,
        col_type,
        missingness.unique_count,
        missingness.total_count,
        config,
    )

    profile_row = to_row(missingness, **col_keys, inferred_type=col_type)
    profile_row["profiled_at"] = profiled_at
    result.profile.append(profile_row)

    if not distribution.is_empty:
        result.distributions.append(to_row(distribution, **col_keys))
    result.sentinels.extend(to_row(s, **col_keys) for s in found)
    # IssueRecord already carries variable_name and table_name.
    result.issues.extend(
        to_row(i, ingest_id=keys["ingest_id"], schema_name=keys["schema_name"]) for i in issues
    )


def _summarize(
    result: TableProfileResult,
    keys: Mapping[str, str],
    row_count: int,
    variable_count: int,
    config: ProfilingConfig,
) -> TableSummary:
    profile = result.profile
    critical = result.severity_count(CRITICAL)

    if profile:
        valid_pcts = [row["valid_pct"] for row in profile]
        worst = max(profile, key=lambda row: row["total_missing_pct"])
        avg_valid_pct: Optional[float] = round(sum(valid_pcts) / len(valid_pcts), 2)
        min_valid_pct: Optional[float] = round(min(valid_pcts), 2)
        max_missing_pct: Optional[float] = round(worst["total_missing_pct"], 2)
        worst_variable: Optional[str] = worst["variable_name"]
    else:
        avg_valid_pct = min_valid_pct = max_missing_pct = None
        worst_variable = None

    return TableSummary(
        ingest_id=keys["ingest_id"],
        schema_name=keys["schema_name"],
        table_name=keys["table_name"],
        row_count=row_count,
        variable_count=variable_count,
        avg_valid_pct=avg_valid_pct,
        min_valid_pct=min_valid_pct,
        max_missing_pct=max_missing_pct,
        critical_issue_count=critical,
        warning_issue_count=result.severity_count(WARNING),
        info_issue_count=result.severity_count(INFO),
        quality_score=calculate_quality_score(max_missing_pct, critical, config),
        worst_variable=worst_variable,
        worst_variable_missing_pct=max_missing_pct,
    )
