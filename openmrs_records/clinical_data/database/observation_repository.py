"""Observation repository for encounter-bound and standalone observations."""

import logging
from dataclasses import dataclass

from .connection import Database

logger = logging.getLogger(__name__)


@dataclass
class Observation:
    id: int | None = None
    uuid: str | None = None
    encounter_id: int | None = None
    concept_uuid: str | None = None
    display: str | None = None
    value: str | None = None
    value_type: str = "text"
    obs_datetime: str | None = None
    # Standalone observations only
    patient_uuid: str | None = None
    encounter_uuid: str | None = None


class ObservationRepository:
    """Repository for observation rows."""

    def __init__(self, db: Database):
        self.db = db

    def save(self, observation: Observation, encounter_id: int) -> int:
        """Insert an observation under an encounter and return its id."""
        with self.db.transaction() as conn:
            cursor = conn.execute("""
                INSERT INTO observations (
                    uuid, encounter_id, concept_uuid, display, value, value_type, obs_datetime
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                observation.uuid, encounter_id, observation.concept_uuid,
                observation.display, observation.value, observation.value_type,
                observation.obs_datetime,
            ))
        logger.debug("Saved observation %s under encounter %s", cursor.lastrowid, encounter_id)
        return cursor.lastrowid

    def update(self, observation: Observation, encounter_id: int) -> int:
        """
        Overwrite an observation row.

        The row is matched on ``observation.id``; ``encounter_id`` is the
        owning encounter written to it. Returns the number of rows updated.
        """
        if observation.id is None:
            raise ValueError("Cannot update an observation that has no id")

        with self.db.transaction() as conn:
            cursor = conn.execute("""
                UPDATE observations SET
                    uuid = ?, encounter_id = ?, concept_uuid = ?, display = ?,
                    value = ?, value_type = ?, obs_datetime = ?
                WHERE id = ?
            """, (
                observation.uuid, encounter_id, observation.concept_uuid,
                observation.display, observation.value, observation.value_type,
                observation.obs_datetime, observation.id,
            ))
        return cursor.rowcount

    def delete(self, observation_id: int) -> int:
        """Delete one observation by id."""
        with self.db.transaction() as conn:
            cursor = conn.execute("DELETE FROM observations WHERE id = ?", (observation_id,))
        return cursor.rowcount

    def find_by_encounter_id(self, encounter_id: int) -> list[Observation]:
        """Get all observations recorded under an encounter."""
        with self.db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM observations WHERE encounter_id = ? ORDER BY id",
                (encounter_id,)
            ).fetchall()
        return [self._row_to_observation(row) for row in rows]

    # Standalone observations

    def save_standalone_batch(self, observations: list[Observation]) -> list[int]:
        """Insert standalone observations, returning ids in input order."""
        ids = []
        with self.db.transaction() as conn:
            for observation in observations:
                cursor = conn.execute("""
                    INSERT INTO standalone_observations (
                        uuid, patient_uuid, encounter_uuid, concept_uuid, display,
                        value, value_type, obs_datetime
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    observation.uuid, observation.patient_uuid, observation.encounter_uuid,
                    observation.concept_uuid, observation.display, observation.value,
                    observation.value_type, observation.obs_datetime,
                ))
                ids.append(cursor.lastrowid)
        logger.debug("Saved %d standalone observations", len(ids))
        return ids

    def find_standalone(self, patient_uuid: str) -> list[Observation]:
        """Get standalone observations captured for a patient."""
        with self.db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM standalone_observations WHERE patient_uuid = ? ORDER BY id",
                (patient_uuid,)
            ).fetchall()
        return [self._row_to_standalone_observation(row) for row in rows]

    def delete_all_standalone(self, patient_uuid: str) -> int:
        """Delete every standalone observation for a patient."""
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM standalone_observations WHERE patient_uuid = ?",
                (patient_uuid,)
            )
        logger.debug("Deleted %d standalone observations for %s", cursor.rowcount, patient_uuid)
        return cursor.rowcount

    # Private helpers

    def _row_to_observation(self, row) -> Observation:
        """Convert a database row to an Observation object."""
        return Observation(
            id=row["id"],
            uuid=row["uuid"],
            encounter_id=row["encounter_id"],
            concept_uuid=row["concept_uuid"],
            display=row["display"],
            value=row["value"],
            value_type=row["value_type"],
            obs_datetime=row["obs_datetime"],
        )

    def _row_to_standalone_observation(self, row) -> Observation:
        """Convert a standalone row to an Observation object."""
        return Observation(
            id=row["id"],
            uuid=row["uuid"],
            concept_uuid=row["concept_uuid"],
            display=row["display"],
            value=row["value"],
            value_type=row["value_type"],
            obs_datetime=row["obs_datetime"],
            patient_uuid=row["patient_uuid"],
            encounter_uuid=row["encounter_uuid"],
        )
