"""
DuckDB store: ledger, lake tables and profiling results in one embedded file.

Layout mirrors the warehouse the profiler was written against:

* ``governance`` schema: ``batch_log``, ``ingest_file_log``, ``transform_log``,
  ``audit_log`` and the five ``data_profile*`` result tables.
* ``raw`` / ``staging`` / ``validated`` schemas: lake tables, read back as text.

Result rows get a surrogate id from a per-table sequence so that reads come
back in write order.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import duckdb

from .records import DISTRIBUTION, ISSUE, PROFILE, SENTINEL, SUMMARY
from .store import (
    SCHEMAS,
    SUCCESS,
    VALIDATED,
    Columns,
    ProfilingStore,
    Row,
    TableData,
    audit_action,
    audit_details,
    check_collection,
    new_audit_id,
    table_as_text,
)

__all__ = ["DuckDBStore"]

logger = logging.getLogger(__name__)

GOVERNANCE = "governance"


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_BATCH_LOG = """
CREATE TABLE IF NOT EXISTS governance.batch_log (
    ingest_id         VARCHAR PRIMARY KEY,
    status            VARCHAR NOT NULL,
    ingest_timestamp  TIMESTAMP
);
"""

_CREATE_INGEST_FILE_LOG = """
CREATE TABLE IF NOT EXISTS governance.ingest_file_log (
    ingest_id         VARCHAR NOT NULL,
    file_name         VARCHAR NOT NULL,
    lake_table_name   VARCHAR,
    load_status       VARCHAR NOT NULL  -- pending | success | error | skipped
);
"""

_CREATE_TRANSFORM_LOG = """
CREATE TABLE IF NOT EXISTS governance.transform_log (
    ingest_id         VARCHAR NOT NULL,
    source_schema     VARCHAR NOT NULL,
    source_table      VARCHAR NOT NULL,
    target_schema     VARCHAR NOT NULL,
    target_table      VARCHAR NOT NULL,
    status            VARCHAR DEFAULT 'success'  -- success | partial | failed
);
"""

_CREATE_AUDIT_LOG = """
CREATE TABLE IF NOT EXISTS governance.audit_log (
    audit_id          VARCHAR PRIMARY KEY,
    ingest_id         VARCHAR,
    action            VARCHAR NOT NULL,
    details           VARCHAR NOT NULL,   -- JSON
    executed_at_utc   TIMESTAMP NOT NULL
);
"""

_CREATE_DATA_PROFILE = """
CREATE TABLE IF NOT EXISTS governance.data_profile (
    profile_id          BIGINT DEFAULT nextval('governance.data_profile_seq'),
    ingest_id           VARCHAR NOT NULL,
    schema_name         VARCHAR NOT NULL,
    table_name          VARCHAR NOT NULL,
    variable_name       VARCHAR NOT NULL,
    inferred_type       VARCHAR,
    total_count         INTEGER,
    valid_count         INTEGER,
    na_count            INTEGER,
    empty_count         INTEGER,
    whitespace_count    INTEGER,
    sentinel_count      INTEGER,
    na_pct              DOUBLE,
    empty_pct           DOUBLE,
    whitespace_pct      DOUBLE,
    sentinel_pct        DOUBLE,
    total_missing_count INTEGER,
    total_missing_pct   DOUBLE,
    valid_pct           DOUBLE,
    unique_count        INTEGER,
    unique_pct          DOUBLE,
    profiled_at         TIMESTAMP NOT NULL
);
"""

_CREATE_DATA_PROFILE_DISTRIBUTION = """
CREATE TABLE IF NOT EXISTS governance.data_profile_distribution (
    distribution_id     BIGINT DEFAULT nextval('governance.data_profile_distribution_seq'),
    ingest_id           VARCHAR NOT NULL,
    schema_name         VARCHAR NOT NULL,
    table_name          VARCHAR NOT NULL,
    variable_name       VARCHAR NOT NULL,
    distribution_type   VARCHAR,          -- numeric | categorical
    stat_min            DOUBLE,
    stat_max            DOUBLE,
    stat_mean           DOUBLE,
    stat_median         DOUBLE,
    stat_sd             DOUBLE,
    stat_q25            DOUBLE,
    stat_q75            DOUBLE,
    stat_iqr            DOUBLE,
    top_values_json     VARCHAR,          -- NULL for numeric
    mode_value          VARCHAR,
    mode_count          INTEGER,
    mode_pct            DOUBLE
);
"""

_CREATE_DATA_PROFILE_SENTINEL = """
CREATE TABLE IF NOT EXISTS governance.data_profile_sentinel (
    sentinel_id         BIGINT DEFAULT nextval('governance.data_profile_sentinel_seq'),
    ingest_id           VARCHAR NOT NULL,
    schema_name         VARCHAR NOT NULL,
    table_name          VARCHAR NOT NULL,
    variable_name       VARCHAR NOT NULL,
    sentinel_value      VARCHAR NOT NULL,
    sentinel_count      INTEGER,
    sentinel_pct        DOUBLE,
    detection_method    VARCHAR,          -- config_list | frequency_analysis
    confidence          VARCHAR           -- high | medium
);
"""

_CREATE_DATA_PROFILE_ISSUE = """
CREATE TABLE IF NOT EXISTS governance.data_profile_issue (
    issue_id            BIGINT DEFAULT nextval('governance.data_profile_issue_seq'),
    ingest_id           VARCHAR NOT NULL,
    schema_name         VARCHAR NOT NULL,
    variable_name       VARCHAR,
    table_name          VARCHAR NOT NULL,
    issue_type          VARCHAR NOT NULL,
    severity            VARCHAR NOT NULL CHECK (severity IN ('critical', 'warning', 'info')),
    description         VARCHAR,
    value               DOUBLE,
    recommendation      VARCHAR
);
"""

_CREATE_DATA_PROFILE_SUMMARY = """
CREATE TABLE IF NOT EXISTS governance.data_profile_summary (
    summary_id                  BIGINT DEFAULT nextval('governance.data_profile_summary_seq'),
    ingest_id                   VARCHAR NOT NULL,
    schema_name                 VARCHAR NOT NULL,
    table_name                  VARCHAR NOT NULL,
    row_count                   INTEGER,
    variable_count              INTEGER,
    avg_valid_pct               DOUBLE,
    min_valid_pct               DOUBLE,
    max_missing_pct             DOUBLE,
    critical_issue_count        INTEGER DEFAULT 0,
    warning_issue_count         INTEGER DEFAULT 0,
    info_issue_count            INTEGER DEFAULT 0,
    quality_score               VARCHAR,
    worst_variable              VARCHAR,
    worst_variable_missing_pct  DOUBLE
);
"""

_LEDGER_DDL = (
    _CREATE_BATCH_LOG,
    _CREATE_INGEST_FILE_LOG,
    _CREATE_TRANSFORM_LOG,
    _CREATE_AUDIT_LOG,
)

# collection -> (DDL, surrogate id column)
_RESULT_TABLES: Dict[str, tuple] = {
    PROFILE: (_CREATE_DATA_PROFILE, "profile_id"),
    DISTRIBUTION: (_CREATE_DATA_PROFILE_DISTRIBUTION, "distribution_id"),
    SENTINEL: (_CREATE_DATA_PROFILE_SENTINEL, "sentinel_id"),
    ISSUE: (_CREATE_DATA_PROFILE_ISSUE, "issue_id"),
    SUMMARY: (_CREATE_DATA_PROFILE_SUMMARY, "summary_id"),
}

_ALL_GOVERNANCE_TABLES = (
    "batch_log",
    "ingest_file_log",
    "transform_log",
    "audit_log",
) + tuple(_RESULT_TABLES)


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


# ---------------------------------------------------------------------------
# DuckDBStore
# ---------------------------------------------------------------------------

class DuckDBStore(ProfilingStore):
    """Embedded DuckDB implementation of :class:`ProfilingStore`.

    Parameters
    ----------
    db_path : str | Path
        Path to the ``.db`` file. Use ``":memory:"`` for testing.
    read_only : bool
        Open the file read-only (the ``review`` command does this).
    """

    def __init__(self, db_path: Union[str, Path] = "profiling.db", read_only: bool = False) -> None:
        self._db_path = str(db_path)
        self._con: duckdb.DuckDBPyConnection = duckdb.connect(self._db_path, read_only=read_only)
        self._closed = False

    # ==================================================================
    # Schema management
    # ==================================================================

    def init_tables(self, *, recreate: bool = False) -> None:
        """Create the governance and lake schemas and all governance tables.

        If *recreate* is True, existing governance tables are dropped first.
        """
        if recreate:
            for table in _ALL_GOVERNANCE_TABLES:
                self._con.execute(f"DROP TABLE IF EXISTS {GOVERNANCE}.{table};")
            for collection in _RESULT_TABLES:
                self._con.execute(f"DROP SEQUENCE IF EXISTS {GOVERNANCE}.{collection}_seq;")
            logger.info("Dropped existing governance tables")

        for schema in (GOVERNANCE,) + SCHEMAS:
            self._con.execute(f"CREATE SCHEMA IF NOT EXISTS {schema};")
        for ddl in _LEDGER_DDL:
            self._con.execute(ddl)
        for collection, (ddl, _) in _RESULT_TABLES.items():
            self._con.execute(f"CREATE SEQUENCE IF NOT EXISTS {GOVERNANCE}.{collection}_seq;")
            self._con.execute(ddl)
        logger.info("DuckDB tables ready at %s", self._db_path)

    # ==================================================================
    # Loaders
    # ==================================================================

    def register_batch(self, ingest_id: str, status: str = SUCCESS) -> None:
        self._con.execute(
            "INSERT INTO governance.batch_log (ingest_id, status, ingest_timestamp) VALUES (?, ?, ?)",
            [ingest_id, status, _utc_now()],
        )

    def register_file_load(
        self,
        ingest_id: str,
        lake_table_name: str,
        load_status: str = SUCCESS,
        file_name: Optional[str] = None,
    ) -> None:
        self._con.execute(
            "INSERT INTO governance.ingest_file_log"
            " (ingest_id, file_name, lake_table_name, load_status) VALUES (?, ?, ?, ?)",
            [ingest_id, file_name or f"{lake_table_name}.csv", lake_table_name, load_status],
        )

    def register_transform(
        self,
        ingest_id: str,
        target_table: str,
        status: str = SUCCESS,
        source_table: Optional[str] = None,
    ) -> None:
        self._con.execute(
            "INSERT INTO governance.transform_log"
            " (ingest_id, source_schema, source_table, target_schema, target_table, status)"
            " VALUES (?, 'staging', ?, 'validated', ?, ?)",
            [ingest_id, source_table or target_table, target_table, status],
        )

    def load_table(self, schema_name: str, table_name: str, data: TableData) -> None:
        """(Re)create a lake table with every column stored as VARCHAR."""
        columns = table_as_text(data)
        target = f"{_quote(schema_name)}.{_quote(table_name)}"
        col_defs = ", ".join(f"{_quote(name)} VARCHAR" for name in columns)

        self._con.execute(f"CREATE SCHEMA IF NOT EXISTS {_quote(schema_name)};")
        self._con.execute(f"CREATE OR REPLACE TABLE {target} ({col_defs});")

        rows = list(zip(*columns.values()))
        if rows:
            placeholders = ", ".join("?" for _ in columns)
            self._con.executemany(f"INSERT INTO {target} VALUES ({placeholders})", rows)
        logger.debug("Loaded %d rows into %s.%s", len(rows), schema_name, table_name)

    # ==================================================================
    # ProfilingStore
    # ==================================================================

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if not self._closed:
            self._con.close()
            self._closed = True

    def batch_exists(self, ingest_id: str) -> bool:
        row = self._con.execute(
            "SELECT COUNT(*) FROM governance.batch_log WHERE ingest_id = ?",
            [ingest_id],
        ).fetchone()
        return row[0] > 0

    def resolve_tables(self, ingest_id: str, schema_name: str) -> List[str]:
        if schema_name == VALIDATED:
            sql = (
                "SELECT DISTINCT target_table FROM governance.transform_log"
                " WHERE ingest_id = ? AND target_schema = 'validated' AND status = 'success'"
                " ORDER BY target_table"
            )
        else:
            sql = (
                "SELECT DISTINCT lake_table_name FROM governance.ingest_file_log"
                " WHERE ingest_id = ? AND load_status = 'success'"
                " AND lake_table_name IS NOT NULL"
                " ORDER BY lake_table_name"
            )
        return [r[0] for r in self._con.execute(sql, [ingest_id]).fetchall()]

    def read_table(self, schema_name: str, table_name: str) -> Columns:
        cursor = self._con.execute(f"SELECT * FROM {_quote(schema_name)}.{_quote(table_name)}")
        names = [d[0] for d in cursor.description]
        rows = cursor.fetchall()
        return {
            name: [None if r[i] is None else str(r[i]) for r in rows]
            for i, name in enumerate(names)
        }

    def delete_results(self, ingest_id: str, schema_name: str) -> None:
        self._con.execute("BEGIN TRANSACTION;")
        try:
            for collection in _RESULT_TABLES:
                self._con.execute(
                    f"DELETE FROM {GOVERNANCE}.{collection} WHERE ingest_id = ? AND schema_name = ?",
                    [ingest_id, schema_name],
                )
            self._con.execute("COMMIT;")
        except Exception:
            self._con.execute("ROLLBACK;")
            raise

    def write_result_set(self, collections: Mapping[str, Sequence[Row]]) -> Dict[str, int]:
        """Insert every collection's rows inside a single transaction."""
        written: Dict[str, int] = {}
        self._con.execute("BEGIN TRANSACTION;")
        try:
            for collection, rows in collections.items():
                check_collection(collection)
                self._insert_rows(collection, rows)
                written[collection] = len(rows)
            self._con.execute("COMMIT;")
        except Exception:
            self._con.execute("ROLLBACK;")
            raise

        logger.debug("Inserted %s rows into %s", written, GOVERNANCE)
        return written

    def _insert_rows(self, collection: str, rows: Sequence[Row]) -> None:
        if not rows:
            return
        names = list(rows[0])
        col_list = ", ".join(names)
        placeholders = ", ".join("?" for _ in names)
        self._con.executemany(
            f"INSERT INTO {GOVERNANCE}.{collection} ({col_list}) VALUES ({placeholders})",
            [[row[n] for n in names] for row in rows],
        )

    def fetch_results(self, collection: str, ingest_id: str, schema_name: str) -> List[Row]:
        check_collection(collection)
        id_column = _RESULT_TABLES[collection][1]
        cursor = self._con.execute(
            f"SELECT * FROM {GOVERNANCE}.{collection}"
            f" WHERE ingest_id = ? AND schema_name = ? ORDER BY {id_column}",
            [ingest_id, schema_name],
        )
        names = [d[0] for d in cursor.description]
        out = []
        for values in cursor.fetchall():
            row = dict(zip(names, values))
            del row[id_column]
            out.append(row)
        return out

    def write_audit_event(
        self,
        ingest_id: Optional[str],
        event_type: str,
        object_type: str,
        object_name: str,
        details: Optional[Mapping[str, Any]] = None,
        status: Optional[str] = None,
    ) -> str:
        audit_id = new_audit_id()
        self._con.execute(
            "INSERT INTO governance.audit_log"
            " (audit_id, ingest_id, action, details, executed_at_utc) VALUES (?, ?, ?, ?, ?)",
            [
                audit_id,
                ingest_id,
                audit_action(event_type, status, object_type, object_name),
                audit_details(event_type, status, object_type, object_name, details),
                _utc_now(),
            ],
        )
        logger.debug("Audit event %s recorded", audit_id)
        return audit_id

    def audit_events(self, ingest_id: Optional[str] = None) -> List[Row]:
        sql = "SELECT audit_id, ingest_id, action, details, executed_at_utc FROM governance.audit_log"
        params: List[Any] = []
        if ingest_id is not None:
            sql += " WHERE ingest_id = ?"
            params.append(ingest_id)
        cursor = self._con.execute(sql + " ORDER BY executed_at_utc", params)
        names = [d[0] for d in cursor.description]
        return [dict(zip(names, values)) for values in cursor.fetchall()]


def _utc_now() -> datetime:
    # TIMESTAMP columns hold naive UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)
