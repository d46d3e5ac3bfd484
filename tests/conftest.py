"""Shared pytest fixtures."""

import pytest

from openmrs_records.clinical_data.database import (
    Database,
    EncounterRepository,
    ObservationRepository,
    init_database,
)
from openmrs_records.tasks import shutdown_executor


@pytest.fixture
def db(tmp_path):
    """A fresh database file per test."""
    database = Database(tmp_path / "records.db")
    init_database(database)
    yield database
    database.close()


@pytest.fixture
def observation_repo(db):
    return ObservationRepository(db)


@pytest.fixture
def encounter_repo(db, observation_repo):
    return EncounterRepository(db, observation_repo)


@pytest.fixture
def make_visit(db):
    """Insert a visit row and return its id."""
    def _make_visit(patient_id: int = 1, uuid: str | None = None) -> int:
        with db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO visits (uuid, patient_id, patient_uuid) VALUES (?, ?, ?)",
                (uuid, patient_id, f"patient-{patient_id}"),
            )
        return cursor.lastrowid
    return _make_visit


@pytest.fixture(scope="session", autouse=True)
def stop_task_pool():
    """Stop the shared worker pool once the session ends."""
    yield
    shutdown_executor()
