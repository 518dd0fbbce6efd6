from pathlib import Path
import logging
from typing import Optional, Union

from .config import ProfilingConfig, load_profiling_config
from .errors import BatchNotFound, InvalidInput, NoTablesToProfile
from .records import BatchResult, CRITICAL, INFO, WARNING
from .scoring import worst_score
from .store import SCHEMAS, SUCCESS, ProfilingStore
from .table_profiler import TableProfileResult, profile_table

logger = logging.getLogger(__name__)

AUDIT_EVENT_TYPE = "data_profiling"

# ---------------------------------------------------------------------------
# Input checks (run before any ledger access)
# ---------------------------------------------------------------------------


def _check_inputs(store: ProfilingStore, ingest_id: str, schema_name: str) -> None:
    if not isinstance(store, ProfilingStore):
        raise InvalidInput("store must be a ProfilingStore")
    if store.closed:
        raise InvalidInput("store handle is closed")
    if not isinstance(ingest_id, str) or not ingest_id.strip():
        raise InvalidInput("ingest_id must be a non-empty string")
    if schema_name not in SCHEMAS:
        raise InvalidInput(
            f"schema_to_profile must be one of {', '.join(SCHEMAS)}; got {schema_name!r}"
        )


def profile_batch(
    store: ProfilingStore,
    ingest_id: str,
    schema_to_profile: str = "raw",
    config: Optional[ProfilingConfig] = None,
    config_path: Optional[Union[str, Path]] = None,
) -> BatchResult:
    """Profile every table landed by an ingest batch and persist the results.

    Steps: verify the batch, resolve its tables, clear earlier results for the
    (batch, schema) pair, profile each table in name order, take the worst
    table score as the batch score, write the five result collections and one
    audit event.

    Parameters
    ----------
    store : ProfilingStore
        Open storage session; it is not closed here.
    ingest_id : str
        Batch identifier known to the batch log.
    schema_to_profile : str
        ``raw``, ``staging`` or ``validated``.
    config : ProfilingConfig, optional
        Settings to use. When omitted they are loaded from ``config_path``.
    config_path : str or Path, optional
        YAML settings file; defaults apply if it does not exist.

    Returns
    -------
    BatchResult
        Aggregate counters and the overall score.
    """
    _check_inputs(store, ingest_id, schema_to_profile)
    cfg = config if config is not None else load_profiling_config(config_path)

    logger.info("Profiling ingest %s (schema: %s)", ingest_id, schema_to_profile)

    if not store.batch_exists(ingest_id):
        raise BatchNotFound(ingest_id)

    tables = store.resolve_tables(ingest_id, schema_to_profile)
    if not tables:
        raise NoTablesToProfile(ingest_id, schema_to_profile)
    logger.info("Found %d tables to profile", len(tables))

    logger.info("Clearing prior profiling results for %s/%s", ingest_id, schema_to_profile)
    store.delete_results(ingest_id, schema_to_profile)

    combined = TableProfileResult()
    for i, table_name in enumerate(tables, start=1):
        logger.info("[%d/%d] Profiling %s.%s", i, len(tables), schema_to_profile, table_name)
        columns = store.read_table(schema_to_profile, table_name)
        combined.extend(profile_table(table_name, columns, ingest_id, schema_to_profile, cfg))

    overall_score = worst_score(row["quality_score"] for row in combined.summary)

    written = store.write_result_set(combined.collections())
    for collection, count in written.items():
        logger.info("Wrote %d rows to %s", count, collection)

    result = BatchResult(
        ingest_id=ingest_id,
        schema_name=schema_to_profile,
        tables_profiled=len(tables),
        variables_profiled=len(combined.profile),
        sentinels_detected=len(combined.sentinels),
        critical_issues=combined.severity_count(CRITICAL),
        warning_issues=combined.severity_count(WARNING),
        info_issues=combined.severity_count(INFO),
        overall_score=overall_score,
    )

    store.write_audit_event(
        ingest_id=ingest_id,
        event_type=AUDIT_EVENT_TYPE,
        object_type="schema",
        object_name=f"{schema_to_profile}.*",
        details=result.counters(),
        status=SUCCESS,
    )

    logger.info(
        "Profiling complete: %d tables, %d variables, %d sentinels, "
        "issues %dC/%dW/%dI, overall score %s",
        result.tables_profiled,
        result.variables_profiled,
        result.sentinels_detected,
        result.critical_issues,
        result.warning_issues,
        result.info_issues,
        result.overall_score,
    )
    return result
