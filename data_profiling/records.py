"""Result containers produced by the profiling components.

Component results are plain dataclasses. The table profiler flattens them into
row dicts (one per persisted record) keyed by ingest batch, schema, table and
column; those rows are what the storage collaborator receives.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

# Persisted collections, in write order.
PROFILE = "data_profile"
DISTRIBUTION = "data_profile_distribution"
SENTINEL = "data_profile_sentinel"
ISSUE = "data_profile_issue"
SUMMARY = "data_profile_summary"

RESULT_COLLECTIONS = (PROFILE, DISTRIBUTION, SENTINEL, ISSUE, SUMMARY)

# Sentinel detection vocabulary
CONFIG_LIST = "config_list"
FREQUENCY_ANALYSIS = "frequency_analysis"
HIGH = "high"
MEDIUM = "medium"

# Issue severities
CRITICAL = "critical"
WARNING = "warning"
INFO = "info"


@dataclass(frozen=True)
class SentinelRecord:
    sentinel_value: str
    sentinel_count: int
    sentinel_pct: float
    detection_method: str
    confidence: str


@dataclass(frozen=True)
class MissingnessResult:
    """Exclusive missingness breakdown of one column.

    ``na + empty + whitespace + sentinel + valid == total`` always holds.
    """

    total_count: int
    valid_count: int
    na_count: int
    empty_count: int
    whitespace_count: int
    sentinel_count: int
    na_pct: float
    empty_pct: float
    whitespace_pct: float
    sentinel_pct: float
    total_missing_count: int
    total_missing_pct: float
    valid_pct: float
    unique_count: int
    unique_pct: float


@dataclass(frozen=True)
class DistributionResult:
    distribution_type: Optional[str] = None
    stat_min: Optional[float] = None
    stat_max: Optional[float] = None
    stat_mean: Optional[float] = None
    stat_median: Optional[float] = None
    stat_sd: Optional[float] = None
    stat_q25: Optional[float] = None
    stat_q75: Optional[float] = None
    stat_iqr: Optional[float] = None
    top_values_json: Optional[str] = None
    mode_value: Optional[str] = None
    mode_count: Optional[int] = None
    mode_pct: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.distribution_type is None


@dataclass(frozen=True)
class IssueRecord:
    variable_name: str
    table_name: str
    issue_type: str
    severity: str
    description: str
    value: float
    recommendation: str


@dataclass(frozen=True)
class TableSummary:
    ingest_id: str
    schema_name: str
    table_name: str
    row_count: int
    variable_count: int
    avg_valid_pct: Optional[float]
    min_valid_pct: Optional[float]
    max_missing_pct: Optional[float]
    critical_issue_count: int
    warning_issue_count: int
    info_issue_count: int
    quality_score: str
    worst_variable: Optional[str]
    worst_variable_missing_pct: Optional[float]


@dataclass(frozen=True)
class BatchResult:
    """Aggregate counters for one batch profiling run."""

    ingest_id: str
    schema_name: str
    tables_profiled: int
    variables_profiled: int
    sentinels_detected: int
    critical_issues: int
    warning_issues: int
    info_issues: int
    overall_score: str

    def counters(self) -> Dict[str, Any]:
        """The audit-event payload: counters and overall score only."""
        data = asdict(self)
        del data["ingest_id"]
        del data["schema_name"]
        return data

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def to_row(record: Any, **keys: Any) -> Dict[str, Any]:
    """Flatten a result dataclass into a persisted row, key columns first."""
    row: Dict[str, Any] = dict(keys)
    row.update(asdict(record))
    return row
