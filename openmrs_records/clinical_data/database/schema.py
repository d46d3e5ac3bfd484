"""
Clinical Records Database Schema
Supports encounters, observations and their standalone (offline capture) variants.
"""

SCHEMA = """
-- =============================================================================
-- 1. ENCOUNTER_TYPES - Lookup of encounter types by form
-- =============================================================================
CREATE TABLE IF NOT EXISTS encounter_types (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid TEXT UNIQUE,
    display TEXT NOT NULL,
    form_name TEXT UNIQUE
);


-- =============================================================================
-- 2. VISITS - Minimal visit rows that encounters hang off
-- =============================================================================
CREATE TABLE IF NOT EXISTS visits (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid TEXT UNIQUE,
    patient_id INTEGER NOT NULL,
    patient_uuid TEXT,
    start_datetime TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_visits_patient ON visits(patient_id);


-- =============================================================================
-- 3. ENCOUNTERS - Visit-linked encounters (visit_id NULL only for last vitals)
-- =============================================================================
CREATE TABLE IF NOT EXISTS encounters (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid TEXT UNIQUE,
    display TEXT,
    patient_uuid TEXT,
    visit_id INTEGER,

    -- Display name of the encounter type ("Vitals", "Visit Note", ...)
    encounter_type TEXT,
    encounter_datetime TEXT NOT NULL,

    form_uuid TEXT,
    location_uuid TEXT,

    FOREIGN KEY (visit_id) REFERENCES visits(id)
);

CREATE INDEX IF NOT EXISTS idx_encounters_visit ON encounters(visit_id);
CREATE INDEX IF NOT EXISTS idx_encounters_patient_type ON encounters(patient_uuid, encounter_type);


-- =============================================================================
-- 4. OBSERVATIONS - Data points owned by an encounter
-- =============================================================================
CREATE TABLE IF NOT EXISTS observations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid TEXT,
    encounter_id INTEGER NOT NULL,
    concept_uuid TEXT NOT NULL,
    display TEXT,
    value TEXT,
    value_type TEXT NOT NULL DEFAULT 'text'
        CHECK (value_type IN ('numeric', 'text', 'coded', 'datetime', 'boolean')),
    obs_datetime TEXT,

    FOREIGN KEY (encounter_id) REFERENCES encounters(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_observations_encounter ON observations(encounter_id);


-- =============================================================================
-- 5. STANDALONE_ENCOUNTERS - Offline captures, no visit linkage
-- =============================================================================
CREATE TABLE IF NOT EXISTS standalone_encounters (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid TEXT,
    display TEXT,
    patient_uuid TEXT NOT NULL,
    encounter_type TEXT,
    encounter_datetime TEXT NOT NULL,
    form_uuid TEXT,
    location_uuid TEXT
);

CREATE INDEX IF NOT EXISTS idx_standalone_encounters_patient ON standalone_encounters(patient_uuid);


-- =============================================================================
-- 6. STANDALONE_OBSERVATIONS - Offline captures keyed by patient
-- =============================================================================
CREATE TABLE IF NOT EXISTS standalone_observations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid TEXT,
    patient_uuid TEXT NOT NULL,
    encounter_uuid TEXT,
    concept_uuid TEXT NOT NULL,
    display TEXT,
    value TEXT,
    value_type TEXT NOT NULL DEFAULT 'text'
        CHECK (value_type IN ('numeric', 'text', 'coded', 'datetime', 'boolean')),
    obs_datetime TEXT
);

CREATE INDEX IF NOT EXISTS idx_standalone_observations_patient ON standalone_observations(patient_uuid);
"""
