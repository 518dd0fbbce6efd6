import json

import duckdb
import pandas as pd
import pytest

from data_profiling import profile_batch
from data_profiling.duck_store import DuckDBStore
from data_profiling.records import ISSUE, PROFILE, RESULT_COLLECTIONS, SENTINEL, SUMMARY

INGEST = "ING_cisir2026_toy_20260128_170000"


@pytest.fixture
def duck():
    store = DuckDBStore(":memory:")
    store.init_tables()
    yield store
    store.close()


@pytest.fixture
def loaded(duck):
    duck.register_batch(INGEST)
    duck.register_file_load(INGEST, "encounters")
    duck.register_file_load(INGEST, "encounters", file_name="encounters_2.csv")
    duck.register_file_load(INGEST, "labs")
    duck.register_file_load(INGEST, "rejected", load_status="error")
    duck.load_table(
        "raw",
        "encounters",
        pd.DataFrame(
            {
                "encounter_id": ["E1", "E2", "E3", "E4"],
                "age": [34, 51, None, 999],
                "unit": ["ICU", "ward", "ICU", " "],
            }
        ),
    )
    duck.load_table("raw", "labs", {"lab_no": ["L1", "L2"], "result": ["7.1", "N/A"]})
    return duck


def test_batch_exists(loaded):
    assert loaded.batch_exists(INGEST)
    assert not loaded.batch_exists("ING_other")


def test_resolve_tables_distinct_and_sorted(loaded):
    assert loaded.resolve_tables(INGEST, "raw") == ["encounters", "labs"]
    assert loaded.resolve_tables(INGEST, "staging") == ["encounters", "labs"]
    assert loaded.resolve_tables(INGEST, "validated") == []


def test_resolve_validated_from_transform_log(loaded):
    loaded.register_transform(INGEST, "encounters_h")
    loaded.register_transform(INGEST, "labs_h", status="failed")
    assert loaded.resolve_tables(INGEST, "validated") == ["encounters_h"]


def test_read_table_returns_text(loaded):
    cols = loaded.read_table("raw", "encounters")
    assert list(cols) == ["encounter_id", "age", "unit"]
    # Frame values are stored as text; missing values stay None.
    # The int column holding a null comes back without a ".0" suffix.
    assert cols["age"] == ["34", "51", None, "999"]
    assert cols["unit"][3] == " "


def _summary_rows(n):
    return [
        {
            "ingest_id": INGEST,
            "schema_name": "raw",
            "table_name": f"t{i}",
            "row_count": i,
            "variable_count": 1,
            "avg_valid_pct": None,
            "min_valid_pct": None,
            "max_missing_pct": None,
            "critical_issue_count": 0,
            "warning_issue_count": 0,
            "info_issue_count": 0,
            "quality_score": "Needs Review",
            "worst_variable": None,
            "worst_variable_missing_pct": None,
        }
        for i in range(n)
    ]


def test_write_fetch_delete_results(duck):
    rows = _summary_rows(3)
    assert duck.write_results(SUMMARY, rows) == 3
    assert duck.write_results(SUMMARY, []) == 0

    fetched = duck.fetch_results(SUMMARY, INGEST, "raw")
    assert [r["table_name"] for r in fetched] == ["t0", "t1", "t2"]
    assert "summary_id" not in fetched[0]
    assert duck.fetch_results(SUMMARY, INGEST, "staging") == []

    duck.delete_results(INGEST, "raw")
    assert duck.fetch_results(SUMMARY, INGEST, "raw") == []


def test_unknown_collection_rejected(duck):
    with pytest.raises(ValueError):
        duck.write_results("data_profile_bogus", [{"a": 1}])


def test_result_set_is_written_atomically(duck):
    bad_issue = {"ingest_id": INGEST, "schema_name": "raw", "no_such_column": 1}
    with pytest.raises(duckdb.Error):
        duck.write_result_set({SUMMARY: _summary_rows(2), ISSUE: [bad_issue]})

    # The summary rows inserted before the failure were rolled back.
    assert duck.fetch_results(SUMMARY, INGEST, "raw") == []

    written = duck.write_result_set({SUMMARY: _summary_rows(2), ISSUE: []})
    assert written == {SUMMARY: 2, ISSUE: 0}
    assert len(duck.fetch_results(SUMMARY, INGEST, "raw")) == 2


def test_audit_event(duck):
    audit_id = duck.write_audit_event(
        ingest_id=INGEST,
        event_type="data_profiling",
        object_type="schema",
        object_name="raw.*",
        details={"tables_profiled": 2},
        status="success",
    )
    (event,) = duck.audit_events(INGEST)
    assert event["audit_id"] == audit_id
    assert audit_id.startswith("AUD_")
    assert event["action"] == "data_profiling|success|schema|raw.*"
    assert json.loads(event["details"])["payload"] == {"tables_profiled": 2}


def test_profile_batch_end_to_end(loaded):
    result = profile_batch(loaded, INGEST, "raw")

    assert result.tables_profiled == 2
    assert result.variables_profiled == 5
    assert result.critical_issues == 0

    profile = loaded.fetch_results(PROFILE, INGEST, "raw")
    assert [(r["table_name"], r["variable_name"]) for r in profile] == [
        ("encounters", "encounter_id"),
        ("encounters", "age"),
        ("encounters", "unit"),
        ("labs", "lab_no"),
        ("labs", "result"),
    ]
    for r in profile:
        total = r["na_count"] + r["empty_count"] + r["whitespace_count"] + r["sentinel_count"] + r["valid_count"]
        assert total == r["total_count"]

    # 999 in the int age column is still recognised after the frame round trip.
    sentinels = loaded.fetch_results(SENTINEL, INGEST, "raw")
    assert [(s["table_name"], s["variable_name"], s["sentinel_value"]) for s in sentinels] == [
        ("encounters", "age", "999"),
        ("labs", "result", "N/A"),
    ]
    assert result.sentinels_detected == 2

    counts = {c: len(loaded.fetch_results(c, INGEST, "raw")) for c in RESULT_COLLECTIONS}
    profile_batch(loaded, INGEST, "raw")
    assert counts == {c: len(loaded.fetch_results(c, INGEST, "raw")) for c in RESULT_COLLECTIONS}
    assert len(loaded.audit_events(INGEST)) == 2


def test_context_manager_closes(tmp_path):
    with DuckDBStore(tmp_path / "lake.db") as store:
        store.init_tables()
        assert not store.closed
    assert store.closed


def test_init_tables_recreate(duck):
    duck.register_batch(INGEST)
    duck.init_tables(recreate=True)
    assert not duck.batch_exists(INGEST)
