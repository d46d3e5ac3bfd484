from .connection import Database, get_connection, init_database
from .encounter_repository import NO_ENCOUNTER_ID, Encounter, EncounterRepository, EncounterType
from .errors import RecordsError, StorageError
from .observation_repository import Observation, ObservationRepository

__all__ = [
    "Database", "get_connection", "init_database",
    "Encounter", "EncounterType", "EncounterRepository", "NO_ENCOUNTER_ID",
    "Observation", "ObservationRepository",
    "RecordsError", "StorageError",
]
