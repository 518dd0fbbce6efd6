"""Batch data-quality profiling for ingested lake tables.

Public entry point:
    profile_batch(store, ingest_id, schema_to_profile="raw", config=None, config_path=None)

Each column is classified (identifier, numeric, date, categorical), scanned
for sentinel placeholders, broken down by missingness category, summarized
statistically and checked against issue rules. Tables receive a quality
score; the batch score is the worst table score.
"""

from .config import ProfilingConfig, load_profiling_config
from .errors import BatchNotFound, InvalidInput, NoTablesToProfile, ProfilingError
from .pipeline import profile_batch
from .records import BatchResult
from .store import InMemoryStore, ProfilingStore
from .table_profiler import profile_table

__all__ = [
    "BatchNotFound",
    "BatchResult",
    "InMemoryStore",
    "InvalidInput",
    "NoTablesToProfile",
    "ProfilingConfig",
    "ProfilingError",
    "ProfilingStore",
    "load_profiling_config",
    "profile_batch",
    "profile_table",
]
