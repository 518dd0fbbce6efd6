"""Exceptions raised by the profiling engine."""

from typing import Optional


class ProfilingError(Exception):
    """Base class for fatal profiling failures."""


class InvalidInput(ProfilingError):
    """Raised before any work starts when a caller-supplied argument is unusable."""


class BatchNotFound(ProfilingError):
    """Raised when an ingest batch identifier is not present in the ingest ledger."""

    def __init__(self, ingest_id: str) -> None:
        self.ingest_id = ingest_id
        super().__init__(f"ingest_id '{ingest_id}' not found in the batch log")


class NoTablesToProfile(ProfilingError):
    """Raised when no tables resolve for a (batch, schema) pair."""

    def __init__(self, ingest_id: str, schema_name: str, message: Optional[str] = None) -> None:
        self.ingest_id = ingest_id
        self.schema_name = schema_name
        if message is None:
            if schema_name == "validated":
                message = (
                    f"No successful harmonization runs found for ingest_id "
                    f"'{ingest_id}' in schema 'validated'"
                )
            else:
                message = (
                    f"No successfully loaded tables found for ingest_id "
                    f"'{ingest_id}' in schema '{schema_name}'"
                )
        super().__init__(message)

    @property
    def is_validated(self) -> bool:
        return self.schema_name == "validated"
