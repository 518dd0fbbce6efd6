"""Storage contract used by the batch profiler, plus an in-memory implementation.

The batch profiler never talks to a database directly. It is handed a
``ProfilingStore`` that answers ledger questions (does the batch exist, which
tables did it land), reads lake tables as text, and persists the five result
collections and the audit event.
"""

from __future__ import annotations

import abc
import json
import logging
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .cleaning_utils import is_na
from .records import RESULT_COLLECTIONS

logger = logging.getLogger(__name__)

RAW = "raw"
STAGING = "staging"
VALIDATED = "validated"
SCHEMAS = (RAW, STAGING, VALIDATED)

SUCCESS = "success"

Row = Dict[str, Any]
Columns = Dict[str, List[Optional[str]]]
TableData = Union[pd.DataFrame, Mapping[str, Sequence[Any]]]


def new_audit_id() -> str:
    return f"AUD_{uuid.uuid4()}"


def audit_action(event_type: str, status: Optional[str], object_type: str, object_name: str) -> str:
    """Human readable action string, e.g. ``data_profiling|success|schema|raw.*``."""
    parts = (event_type, status, object_type, object_name)
    return "|".join(p for p in parts if p is not None)


def audit_details(
    event_type: str,
    status: Optional[str],
    object_type: str,
    object_name: str,
    details: Optional[Mapping[str, Any]],
) -> str:
    return json.dumps(
        {
            "event_type": event_type,
            "object_type": object_type,
            "object_name": object_name,
            "status": status,
            "payload": dict(details) if details is not None else None,
        }
    )


def _text(value: Any) -> Optional[str]:
    return None if is_na(value) else str(value)


def _frame_column(series: pd.Series) -> List[Any]:
    # Integer columns holding NaN arrive as float64; write 999.0 back as "999".
    if pd.api.types.is_float_dtype(series):
        present = series.dropna()
        if len(present) and np.isfinite(present).all() and (present % 1 == 0).all():
            return [None if pd.isna(v) else int(v) for v in series]
    return series.tolist()


def table_as_text(data: TableData) -> Columns:
    """Normalize a DataFrame or column mapping to ``{column: [str | None]}``."""
    if isinstance(data, pd.DataFrame):
        data = {str(c): _frame_column(data[c]) for c in data.columns}
    return {str(name): [_text(v) for v in values] for name, values in data.items()}


def check_collection(collection: str) -> None:
    if collection not in RESULT_COLLECTIONS:
        raise ValueError(f"Unknown result collection: {collection!r}")


class ProfilingStore(abc.ABC):
    """Session over the ledger, the lake and the profiling result tables.

    Usable as a context manager; the handle is closed on exit.
    """

    def __enter__(self) -> "ProfilingStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    @abc.abstractmethod
    def closed(self) -> bool: ...

    @abc.abstractmethod
    def close(self) -> None: ...

    @abc.abstractmethod
    def batch_exists(self, ingest_id: str) -> bool: ...

    @abc.abstractmethod
    def resolve_tables(self, ingest_id: str, schema_name: str) -> List[str]:
        """Distinct table names to profile, ordered by name.

        ``validated`` resolves from successful harmonization runs, every other
        schema from successful file loads.
        """

    @abc.abstractmethod
    def read_table(self, schema_name: str, table_name: str) -> Columns:
        """All columns of a lake table as text, in column order."""

    @abc.abstractmethod
    def delete_results(self, ingest_id: str, schema_name: str) -> None: ...

    def write_results(self, collection: str, rows: Sequence[Row]) -> int:
        return self.write_result_set({collection: rows})[collection]

    @abc.abstractmethod
    def write_result_set(self, collections: Mapping[str, Sequence[Row]]) -> Dict[str, int]:
        """Append rows to several result collections as one unit.

        Either every collection is written or, if any write fails, none is.
        Returns the number of rows written per collection.
        """

    @abc.abstractmethod
    def fetch_results(self, collection: str, ingest_id: str, schema_name: str) -> List[Row]: ...

    @abc.abstractmethod
    def write_audit_event(
        self,
        ingest_id: Optional[str],
        event_type: str,
        object_type: str,
        object_name: str,
        details: Optional[Mapping[str, Any]] = None,
        status: Optional[str] = None,
    ) -> str: ...


class InMemoryStore(ProfilingStore):
    """Dict-backed store, mainly for tests and notebooks."""

    def __init__(self) -> None:
        self.batches: Dict[str, str] = {}
        self.file_loads: List[Row] = []
        self.transforms: List[Row] = []
        self.tables: Dict[str, Dict[str, Columns]] = defaultdict(dict)
        self.results: Dict[str, List[Row]] = {c: [] for c in RESULT_COLLECTIONS}
        self.audit_events: List[Row] = []
        self._closed = False

    # ------------------------------------------------------------------
    # Loaders
    # ------------------------------------------------------------------

    def register_batch(self, ingest_id: str, status: str = SUCCESS) -> None:
        self.batches[ingest_id] = status

    def register_file_load(
        self,
        ingest_id: str,
        lake_table_name: str,
        load_status: str = SUCCESS,
        file_name: Optional[str] = None,
    ) -> None:
        self.file_loads.append(
            {
                "ingest_id": ingest_id,
                "file_name": file_name or f"{lake_table_name}.csv",
                "lake_table_name": lake_table_name,
                "load_status": load_status,
            }
        )

    def register_transform(
        self,
        ingest_id: str,
        target_table: str,
        status: str = SUCCESS,
        source_table: Optional[str] = None,
    ) -> None:
        self.transforms.append(
            {
                "ingest_id": ingest_id,
                "source_schema": STAGING,
                "source_table": source_table or target_table,
                "target_schema": VALIDATED,
                "target_table": target_table,
                "status": status,
            }
        )

    def load_table(self, schema_name: str, table_name: str, data: TableData) -> None:
        self.tables[schema_name][table_name] = table_as_text(data)

    # ------------------------------------------------------------------
    # ProfilingStore
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def batch_exists(self, ingest_id: str) -> bool:
        return ingest_id in self.batches

    def resolve_tables(self, ingest_id: str, schema_name: str) -> List[str]:
        if schema_name == VALIDATED:
            names: Iterable[str] = (
                t["target_table"]
                for t in self.transforms
                if t["ingest_id"] == ingest_id
                and t["target_schema"] == VALIDATED
                and t["status"] == SUCCESS
            )
        else:
            names = (
                f["lake_table_name"]
                for f in self.file_loads
                if f["ingest_id"] == ingest_id
                and f["load_status"] == SUCCESS
                and f["lake_table_name"] is not None
            )
        return sorted(set(names))

    def read_table(self, schema_name: str, table_name: str) -> Columns:
        try:
            columns = self.tables[schema_name][table_name]
        except KeyError:
            raise KeyError(f"Table {schema_name}.{table_name} does not exist") from None
        return {name: list(values) for name, values in columns.items()}

    def delete_results(self, ingest_id: str, schema_name: str) -> None:
        for collection, rows in self.results.items():
            self.results[collection] = [
                r
                for r in rows
                if not (r["ingest_id"] == ingest_id and r["schema_name"] == schema_name)
            ]

    def write_result_set(self, collections: Mapping[str, Sequence[Row]]) -> Dict[str, int]:
        # Build the new state aside and swap it in only when every collection succeeded.
        staged = {c: list(rows) for c, rows in self.results.items()}
        written: Dict[str, int] = {}
        for collection, rows in collections.items():
            check_collection(collection)
            staged[collection].extend(self._copy_rows(collection, rows))
            written[collection] = len(rows)
        self.results = staged
        return written

    def _copy_rows(self, collection: str, rows: Sequence[Row]) -> List[Row]:
        return [dict(r) for r in rows]

    def fetch_results(self, collection: str, ingest_id: str, schema_name: str) -> List[Row]:
        check_collection(collection)
        return [
            dict(r)
            for r in self.results[collection]
            if r["ingest_id"] == ingest_id and r["schema_name"] == schema_name
        ]

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
        self.audit_events.append(
            {
                "audit_id": audit_id,
                "ingest_id": ingest_id,
                "action": audit_action(event_type, status, object_type, object_name),
                "details": audit_details(event_type, status, object_type, object_name, details),
                "executed_at_utc": datetime.now(timezone.utc),
            }
        )
        logger.debug("Audit event %s recorded", audit_id)
        return audit_id
