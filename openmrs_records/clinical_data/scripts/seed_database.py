"""Seed the database with encounter types, a demo visit and a demo vitals encounter."""

from datetime import datetime

from openmrs_records.clinical_data.database import (
    Database,
    Encounter,
    EncounterRepository,
    EncounterType,
    Observation,
    init_database,
)

DEMO_PATIENT_ID = 1
DEMO_PATIENT_UUID = "demo-patient-0001"

ENCOUNTER_TYPES = [
    EncounterType(display=EncounterType.VITALS, form_name="Vitals", uuid="67a71486-1a54-468f-ac3e-7091a9a79584"),
    EncounterType(display=EncounterType.ADMISSION, form_name="Admission", uuid="e22e39fd-7db2-45e7-80f1-60fa0d5a4378"),
    EncounterType(display=EncounterType.DISCHARGE, form_name="Discharge", uuid="181820aa-88c9-479b-9077-af92f5364329"),
    EncounterType(display=EncounterType.VISIT_NOTE, form_name="Visit Note", uuid="d7151f82-c1f3-4152-a605-2f9ea7414a79"),
]

DEMO_VITALS = [
    # (concept uuid, display, value)
    ("5089AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA", "Weight (kg)", "72.5"),
    ("5090AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA", "Height (cm)", "178"),
    ("5088AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA", "Temperature (C)", "36.8"),
    ("5087AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA", "Pulse", "68"),
]


def seed_database(db: Database) -> None:
    """Seed reference and demo rows, skipping anything already present."""
    init_database(db)
    repo = EncounterRepository(db)

    print("Creating encounter types...")
    for encounter_type in ENCOUNTER_TYPES:
        if repo.get_type_by_form_name(encounter_type.form_name):
            print(f"  Skipping {encounter_type.display} (already exists)")
        else:
            repo.save_type(encounter_type)
            print(f"  Created {encounter_type.display}")

    print("Creating demo visit...")
    with db.transaction() as conn:
        row = conn.execute("SELECT id FROM visits WHERE uuid = ?", ("demo-visit-0001",)).fetchone()
        if row:
            visit_id = row["id"]
            print(f"  Skipping visit {visit_id} (already exists)")
        else:
            cursor = conn.execute(
                "INSERT INTO visits (uuid, patient_id, patient_uuid) VALUES (?, ?, ?)",
                ("demo-visit-0001", DEMO_PATIENT_ID, DEMO_PATIENT_UUID),
            )
            visit_id = cursor.lastrowid
            print(f"  Created visit {visit_id}")

    print("Recording demo vitals...")
    now = datetime.now().isoformat()
    encounter = Encounter(
        display=f"Vitals {now[:10]}",
        encounter_datetime=now,
        observations=[
            Observation(concept_uuid=concept, display=display, value=value, value_type="numeric", obs_datetime=now)
            for concept, display, value in DEMO_VITALS
        ],
    )
    encounter_id = repo.save_last_vitals_encounter(encounter, DEMO_PATIENT_UUID)
    print(f"  Stored vitals encounter {encounter_id}")

    print("\nDatabase seeded successfully!")
    print(f"  - {len(ENCOUNTER_TYPES)} encounter types")
    print(f"  - {len(DEMO_VITALS)} vitals observations for {DEMO_PATIENT_UUID}")


if __name__ == "__main__":
    with Database() as db:
        seed_database(db)
