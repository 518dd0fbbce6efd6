from datetime import datetime

from data_profiling.records import DISTRIBUTION, ISSUE, PROFILE, SENTINEL, SUMMARY
from data_profiling.scoring import EXCELLENT, NEEDS_REVIEW
from data_profiling.table_profiler import profile_table

INGEST = "ING_test_001"


def test_clean_table_scores_excellent(config):
    columns = {
        "visit_id": ["V1", "V2", "V3", "V4"],
        "ward": ["A", "B", "A", "C"],
        "los_days": ["3", "5", "2", "8"],
    }
    result = profile_table("visits", columns, INGEST, "raw", config)

    assert [r["variable_name"] for r in result.profile] == ["visit_id", "ward", "los_days"]
    assert [r["inferred_type"] for r in result.profile] == ["identifier", "categorical", "numeric"]
    assert len(result.distributions) == 3
    assert result.sentinels == []
    assert result.issues == []

    (summary,) = result.summary
    assert summary["quality_score"] == EXCELLENT
    assert summary["row_count"] == 4
    assert summary["variable_count"] == 3
    assert summary["avg_valid_pct"] == 100.0
    assert summary["max_missing_pct"] == 0.0


def test_rows_carry_keys_and_timestamp(config):
    result = profile_table("visits", {"ward": ["A", None]}, INGEST, "staging", config)

    row = result.profile[0]
    assert row["ingest_id"] == INGEST
    assert row["schema_name"] == "staging"
    assert row["table_name"] == "visits"
    assert row["variable_name"] == "ward"
    assert isinstance(row["profiled_at"], datetime)

    dist = result.distributions[0]
    assert (dist["ingest_id"], dist["schema_name"], dist["table_name"], dist["variable_name"]) == (
        INGEST,
        "staging",
        "visits",
        "ward",
    )


def test_summary_uses_worst_column(config):
    columns = {
        "a": ["1", "2", "3", "4", "5", "6", "7", "8", "9", "10"],
        "b": ["x", None, None, "y", "z", "x", "y", "z", "x", "y"],
    }
    result = profile_table("t", columns, INGEST, "raw", config)
    (summary,) = result.summary

    assert summary["max_missing_pct"] == 20.0
    assert summary["worst_variable"] == "b"
    assert summary["worst_variable_missing_pct"] == 20.0
    assert summary["min_valid_pct"] == 80.0
    assert summary["avg_valid_pct"] == 90.0
    # 20% missing, no critical issues: Fair.
    assert summary["quality_score"] == "Fair"
    assert summary["info_issue_count"] == 1


def test_sentinels_feed_missingness_and_issues(config):
    columns = {"age": ["34", "999", "51", "999", "27", "45", "62", "38", "70", "58"]}
    result = profile_table("patients", columns, INGEST, "raw", config)

    assert [(s["sentinel_value"], s["sentinel_count"]) for s in result.sentinels] == [("999", 2)]
    assert result.profile[0]["sentinel_count"] == 2
    assert result.profile[0]["total_missing_pct"] == 20.0
    assert result.distributions[0]["stat_max"] == 70
    assert [i["issue_type"] for i in result.issues] == ["moderate_missingness"]


def test_identifier_gap_is_critical(config):
    columns = {"trauma_no": ["T1", None, "T3", "T4"]}
    result = profile_table("vitals", columns, INGEST, "raw", config)

    assert result.severity_count("critical") == 1
    assert result.issues[0]["ingest_id"] == INGEST
    assert result.issues[0]["schema_name"] == "raw"
    assert result.summary[0]["critical_issue_count"] == 1


def test_all_missing_column_has_no_distribution(config):
    result = profile_table("t", {"a": ["1", "2"], "b": [None, ""]}, INGEST, "raw", config)
    assert [d["variable_name"] for d in result.distributions] == ["a"]
    assert len(result.profile) == 2


def test_zero_row_table_needs_review(config):
    result = profile_table("empty", {"a": [], "b": []}, INGEST, "raw", config)

    assert result.profile == []
    assert result.distributions == []
    (summary,) = result.summary
    assert summary["row_count"] == 0
    assert summary["variable_count"] == 2
    assert summary["max_missing_pct"] is None
    assert summary["quality_score"] == NEEDS_REVIEW


def test_collections_are_keyed_by_name(config):
    result = profile_table("t", {"a": ["1"]}, INGEST, "raw", config)
    assert list(result.collections()) == [PROFILE, DISTRIBUTION, SENTINEL, ISSUE, SUMMARY]
