import pytest

from data_profiling.config import ProfilingConfig
from data_profiling.store import InMemoryStore

INGEST_ID = "ING_trauma_registry_20260128_170308"


def _patients_table():
    return {
        "MEDRECNO": ["M001", "M002", "M003", "M004", "M005", "M006", "M007", "M008", "M009", "M010"],
        "age": ["34", "51", "999", "27", "45", "62", "999", "38", "", "70"],
        "gender": ["Male", "Female", "Male", "Female", "UNKNOWN", "Male", "Female", "Male", "Female", "Male"],
        "admit_date": [
            "2024-01-05",
            "2024-01-07",
            "2024-02-11",
            "2024-02-14",
            "2024-03-01",
            "2024-03-09",
            "2024-03-22",
            "2024-04-02",
            "2024-04-18",
            "2024-05-30",
        ],
    }


def _vitals_table():
    return {
        "trauma_no": ["T1", "T2", None, "T4", "T5", "T6", "T7", "T8", "T9", "T10"],
        "heart_rate": ["88", "92", "  ", None, "101", "77", None, "95", "", "84"],
        "site": ["A", "A", "A", "A", "A", "A", "A", "A", "A", "A"],
    }


@pytest.fixture
def config() -> ProfilingConfig:
    return ProfilingConfig()


@pytest.fixture
def ingest_id() -> str:
    return INGEST_ID


def _populate(store: InMemoryStore) -> InMemoryStore:
    """Two raw tables loaded by one batch, plus one harmonized table."""
    store.register_batch(INGEST_ID)
    store.register_file_load(INGEST_ID, "trauma_patients")
    store.register_file_load(INGEST_ID, "trauma_vitals")
    # A failed load and a duplicate load must not change the table list.
    store.register_file_load(INGEST_ID, "trauma_notes", load_status="error")
    store.register_file_load(INGEST_ID, "trauma_vitals", file_name="vitals_part2.csv")
    store.load_table("raw", "trauma_patients", _patients_table())
    store.load_table("raw", "trauma_vitals", _vitals_table())

    store.register_transform(INGEST_ID, "patients")
    store.load_table("validated", "patients", _patients_table())
    return store


@pytest.fixture
def populate():
    """Fill any InMemoryStore (or subclass) with the trauma batch."""
    return _populate


@pytest.fixture
def populated_store() -> InMemoryStore:
    return _populate(InMemoryStore())
