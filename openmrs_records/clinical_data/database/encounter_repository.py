"""Encounter repository with visit, standalone and last-vitals operations."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar

from openmrs_records.tasks import Task

from .connection import Database
from .observation_repository import Observation, ObservationRepository

logger = logging.getLogger(__name__)

# Returned by get_by_uuid when no encounter matches; row ids start at 1.
NO_ENCOUNTER_ID = 0


@dataclass
class EncounterType:
    display: str
    form_name: str | None = None
    uuid: str | None = None
    id: int | None = None

    VITALS: ClassVar[str] = "Vitals"
    ADMISSION: ClassVar[str] = "Admission"
    DISCHARGE: ClassVar[str] = "Discharge"
    VISIT_NOTE: ClassVar[str] = "Visit Note"


@dataclass
class Encounter:
    id: int | None = None
    uuid: str | None = None
    display: str | None = None
    patient_uuid: str | None = None
    visit_id: int | None = None
    encounter_type: str | None = None
    encounter_datetime: str | None = None
    form_uuid: str | None = None
    location_uuid: str | None = None
    observations: list[Observation] = field(default_factory=list)


class EncounterRepository:
    """Repository for encounter rows. Observation rows go through ObservationRepository."""

    def __init__(self, db: Database, observations: ObservationRepository | None = None):
        self.db = db
        self.observations = observations or ObservationRepository(db)

    def save(self, encounter: Encounter, visit_id: int | None) -> int:
        """Insert an encounter linked to a visit and return its id."""
        with self.db.transaction() as conn:
            cursor = conn.execute("""
                INSERT INTO encounters (
                    uuid, display, patient_uuid, visit_id, encounter_type,
                    encounter_datetime, form_uuid, location_uuid
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, self._encounter_params(encounter, visit_id))
        logger.debug("Saved encounter %s (visit %s)", cursor.lastrowid, visit_id)
        return cursor.lastrowid

    def update(self, encounter_id: int, encounter: Encounter, visit_id: int | None) -> int:
        """Overwrite every column of an encounter row. Returns rows affected."""
        with self.db.transaction() as conn:
            cursor = conn.execute("""
                UPDATE encounters SET
                    uuid = ?, display = ?, patient_uuid = ?, visit_id = ?, encounter_type = ?,
                    encounter_datetime = ?, form_uuid = ?, location_uuid = ?
                WHERE id = ?
            """, self._encounter_params(encounter, visit_id) + (encounter_id,))
        return cursor.rowcount

    def delete(self, encounter_id: int) -> int:
        """Delete an encounter row by id."""
        with self.db.transaction() as conn:
            cursor = conn.execute("DELETE FROM encounters WHERE id = ?", (encounter_id,))
        return cursor.rowcount

    def get_by_id(self, encounter_id: int) -> Encounter | None:
        """Get an encounter, with its observations, by id."""
        with self.db.connection() as conn:
            row = conn.execute("SELECT * FROM encounters WHERE id = ?", (encounter_id,)).fetchone()
            return self._row_to_encounter(row) if row else None

    def get_by_uuid(self, uuid: str) -> int:
        """Get the local id for a server uuid, or NO_ENCOUNTER_ID."""
        with self.db.connection() as conn:
            row = conn.execute("SELECT id FROM encounters WHERE uuid = ?", (uuid,)).fetchone()
        return row["id"] if row else NO_ENCOUNTER_ID

    def find_by_visit(self, visit_id: int) -> list[Encounter]:
        """Get every encounter recorded under a visit."""
        with self.db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM encounters WHERE visit_id = ? ORDER BY encounter_datetime, id",
                (visit_id,)
            ).fetchall()
            return [self._row_to_encounter(row) for row in rows]

    def find_by_type(self, patient_id: int, encounter_type: EncounterType | str) -> Task:
        """Lazily find a patient's visit encounters of one type, newest first."""
        display = encounter_type.display if isinstance(encounter_type, EncounterType) else encounter_type

        def _query() -> list[Encounter]:
            with self.db.connection() as conn:
                rows = conn.execute("""
                    SELECT e.* FROM encounters AS e
                    JOIN visits AS v ON e.visit_id = v.id
                    WHERE v.patient_id = ? AND e.encounter_type = ?
                    ORDER BY e.encounter_datetime DESC, e.id DESC
                """, (patient_id, display)).fetchall()
                return [self._row_to_encounter(row) for row in rows]

        return Task(_query, inline=self.db.held_by_current_thread)

    # Encounter types

    def get_type_by_form_name(self, form_name: str) -> EncounterType | None:
        """Look up the encounter type registered for a form."""
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM encounter_types WHERE form_name = ?", (form_name,)
            ).fetchone()
        if not row:
            return None
        return EncounterType(
            id=row["id"],
            uuid=row["uuid"],
            display=row["display"],
            form_name=row["form_name"],
        )

    def save_type(self, encounter_type: EncounterType) -> int:
        """Register an encounter type."""
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO encounter_types (uuid, display, form_name) VALUES (?, ?, ?)",
                (encounter_type.uuid, encounter_type.display, encounter_type.form_name)
            )
        return cursor.lastrowid

    # Standalone encounters

    def save_standalone(self, encounter: Encounter) -> int:
        """Insert an encounter with no visit linkage."""
        return self.save_standalone_batch([encounter])[0]

    def save_standalone_batch(self, encounters: list[Encounter]) -> list[int]:
        """Insert standalone encounters, returning ids in input order."""
        ids = []
        with self.db.transaction() as conn:
            for encounter in encounters:
                cursor = conn.execute("""
                    INSERT INTO standalone_encounters (
                        uuid, display, patient_uuid, encounter_type,
                        encounter_datetime, form_uuid, location_uuid
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    encounter.uuid, encounter.display, encounter.patient_uuid,
                    encounter.encounter_type, self._timestamp(encounter),
                    encounter.form_uuid, encounter.location_uuid,
                ))
                ids.append(cursor.lastrowid)
        logger.debug("Saved %d standalone encounters", len(ids))
        return ids

    def find_standalone(self, patient_uuid: str) -> list[Encounter]:
        """Get standalone encounters captured for a patient."""
        with self.db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM standalone_encounters WHERE patient_uuid = ? ORDER BY id",
                (patient_uuid,)
            ).fetchall()
        return [self._row_to_standalone_encounter(row) for row in rows]

    def delete_all_standalone(self, patient_uuid: str) -> Task:
        """Lazily delete a patient's standalone encounters; resolves to True."""

        def _delete() -> bool:
            with self.db.transaction() as conn:
                cursor = conn.execute(
                    "DELETE FROM standalone_encounters WHERE patient_uuid = ?", (patient_uuid,)
                )
            logger.debug("Deleted %d standalone encounters for %s", cursor.rowcount, patient_uuid)
            return True

        return Task(_delete, inline=self.db.held_by_current_thread)

    # Last vitals

    def save_last_vitals_encounter(self, encounter: Encounter | None, patient_uuid: str) -> int | None:
        """
        Replace the patient's vitals snapshot with ``encounter``.

        The previous vitals encounter and its observations are deleted, then
        the new encounter is saved without a visit together with its
        observations. Everything happens in one transaction: if any step
        fails the previous snapshot is left untouched.

        Returns the new encounter id, or None when ``encounter`` is None.
        """
        if encounter is None:
            return None

        encounter.patient_uuid = patient_uuid
        if encounter.encounter_type is None:
            encounter.encounter_type = EncounterType.VITALS

        with self.db.transaction():
            old_id = self._get_last_vitals_encounter_id(patient_uuid)
            if old_id != NO_ENCOUNTER_ID:
                for obs in self.observations.find_by_encounter_id(old_id):
                    self.observations.delete(obs.id)
                self.delete(old_id)

            encounter_id = self.save(encounter, None)
            for obs in encounter.observations:
                self.observations.save(obs, encounter_id)

        logger.info(
            "Stored vitals encounter %s for patient %s (replaced %s)",
            encounter_id, patient_uuid, old_id or "nothing",
        )
        return encounter_id

    def get_last_vitals_encounter(self, patient_uuid: str) -> Task:
        """Lazily fetch the patient's current vitals encounter, or None."""

        def _query() -> Encounter | None:
            with self.db.connection() as conn:
                row = conn.execute("""
                    SELECT * FROM encounters
                    WHERE patient_uuid = ? AND encounter_type = ?
                    ORDER BY encounter_datetime DESC, id DESC
                    LIMIT 1
                """, (patient_uuid, EncounterType.VITALS)).fetchone()
                return self._row_to_encounter(row) if row else None

        return Task(_query, inline=self.db.held_by_current_thread)

    # Private helpers

    def _get_last_vitals_encounter_id(self, patient_uuid: str) -> int:
        with self.db.connection() as conn:
            row = conn.execute("""
                SELECT id FROM encounters
                WHERE patient_uuid = ? AND encounter_type = ?
                ORDER BY encounter_datetime DESC, id DESC
                LIMIT 1
            """, (patient_uuid, EncounterType.VITALS)).fetchone()
        return row["id"] if row else NO_ENCOUNTER_ID

    def _timestamp(self, encounter: Encounter) -> str:
        """The encounter timestamp, or now when it has none. The encounter is not modified."""
        return encounter.encounter_datetime or datetime.now().isoformat()

    def _encounter_params(self, encounter: Encounter, visit_id: int | None) -> tuple:
        return (
            encounter.uuid, encounter.display, encounter.patient_uuid, visit_id,
            encounter.encounter_type, self._timestamp(encounter),
            encounter.form_uuid, encounter.location_uuid,
        )

    def _row_to_encounter(self, row) -> Encounter:
        """Convert a database row to an Encounter with its observations."""
        return Encounter(
            id=row["id"],
            uuid=row["uuid"],
            display=row["display"],
            patient_uuid=row["patient_uuid"],
            visit_id=row["visit_id"],
            encounter_type=row["encounter_type"],
            encounter_datetime=row["encounter_datetime"],
            form_uuid=row["form_uuid"],
            location_uuid=row["location_uuid"],
            observations=self.observations.find_by_encounter_id(row["id"]),
        )

    def _row_to_standalone_encounter(self, row) -> Encounter:
        """Convert a standalone row to an Encounter object."""
        return Encounter(
            id=row["id"],
            uuid=row["uuid"],
            display=row["display"],
            patient_uuid=row["patient_uuid"],
            encounter_type=row["encounter_type"],
            encounter_datetime=row["encounter_datetime"],
            form_uuid=row["form_uuid"],
            location_uuid=row["location_uuid"],
        )
