"""Tests for the ObservationRepository class."""

import pytest

from openmrs_records.clinical_data.database import Encounter, Observation, StorageError


@pytest.fixture
def encounter_id(encounter_repo):
    """An encounter to hang observations off."""
    return encounter_repo.save(
        Encounter(patient_uuid="patient-1", encounter_type="Vitals", encounter_datetime="2024-03-01T09:00:00"),
        None,
    )


class TestSaveAndFind:
    """Tests for encounter-bound observations."""

    def test_save_returns_id(self, observation_repo, encounter_id):
        obs_id = observation_repo.save(
            Observation(concept_uuid="weight", value="70.5", value_type="numeric"), encounter_id
        )

        found = observation_repo.find_by_encounter_id(encounter_id)

        assert obs_id > 0
        assert found == [
            Observation(id=obs_id, encounter_id=encounter_id, concept_uuid="weight", value="70.5", value_type="numeric")
        ]

    def test_find_keeps_save_order(self, observation_repo, encounter_id):
        for concept in ("weight", "height", "pulse"):
            observation_repo.save(Observation(concept_uuid=concept, value="1"), encounter_id)

        found = observation_repo.find_by_encounter_id(encounter_id)

        assert [obs.concept_uuid for obs in found] == ["weight", "height", "pulse"]

    def test_encounter_without_observations_is_empty(self, observation_repo, encounter_id):
        assert observation_repo.find_by_encounter_id(encounter_id) == []

    def test_unknown_encounter_rejected(self, observation_repo):
        with pytest.raises(StorageError):
            observation_repo.save(Observation(concept_uuid="weight", value="70"), 999)

    def test_missing_concept_rejected(self, observation_repo, encounter_id):
        with pytest.raises(StorageError):
            observation_repo.save(Observation(value="70"), encounter_id)

    def test_unknown_value_type_rejected(self, observation_repo, encounter_id):
        with pytest.raises(StorageError):
            observation_repo.save(Observation(concept_uuid="weight", value="70", value_type="blob"), encounter_id)

    def test_delete(self, observation_repo, encounter_id):
        obs_id = observation_repo.save(Observation(concept_uuid="weight", value="70"), encounter_id)

        assert observation_repo.delete(obs_id) == 1
        assert observation_repo.find_by_encounter_id(encounter_id) == []

    def test_deleting_encounter_cascades(self, encounter_repo, observation_repo, encounter_id):
        observation_repo.save(Observation(concept_uuid="weight", value="70"), encounter_id)

        encounter_repo.delete(encounter_id)

        assert observation_repo.find_by_encounter_id(encounter_id) == []


class TestUpdate:
    """Tests for observation updates."""

    def test_update_matches_observation_id(self, observation_repo, encounter_id):
        keep_id = observation_repo.save(Observation(concept_uuid="pulse", value="60"), encounter_id)
        obs_id = observation_repo.save(Observation(concept_uuid="weight", value="70"), encounter_id)

        rows = observation_repo.update(
            Observation(id=obs_id, concept_uuid="weight", value="72", value_type="numeric"), encounter_id
        )

        assert rows == 1
        values = {obs.id: obs.value for obs in observation_repo.find_by_encounter_id(encounter_id)}
        assert values == {keep_id: "60", obs_id: "72"}

    def test_update_moves_to_other_encounter(self, encounter_repo, observation_repo, encounter_id):
        other_id = encounter_repo.save(Encounter(patient_uuid="patient-1", encounter_datetime="2024-03-02"), None)
        obs_id = observation_repo.save(Observation(concept_uuid="weight", value="70"), encounter_id)

        observation_repo.update(Observation(id=obs_id, concept_uuid="weight", value="70"), other_id)

        assert observation_repo.find_by_encounter_id(encounter_id) == []
        assert [obs.id for obs in observation_repo.find_by_encounter_id(other_id)] == [obs_id]

    def test_update_unknown_id_affects_nothing(self, observation_repo, encounter_id):
        assert observation_repo.update(Observation(id=999, concept_uuid="weight"), encounter_id) == 0

    def test_update_without_id_raises(self, observation_repo, encounter_id):
        with pytest.raises(ValueError):
            observation_repo.update(Observation(concept_uuid="weight"), encounter_id)


class TestStandaloneObservations:
    """Tests for offline-captured observations."""

    def test_batch_returns_ids_in_order(self, observation_repo):
        observations = [
            Observation(patient_uuid="patient-a", encounter_uuid="enc-remote", concept_uuid=f"c{i}", value=str(i))
            for i in range(4)
        ]

        ids = observation_repo.save_standalone_batch(observations)

        found = observation_repo.find_standalone("patient-a")
        assert len(ids) == 4
        assert [obs.id for obs in found] == ids
        assert [obs.concept_uuid for obs in found] == ["c0", "c1", "c2", "c3"]
        assert all(obs.encounter_id is None for obs in found)

    def test_delete_all_standalone(self, observation_repo):
        observation_repo.save_standalone_batch([
            Observation(patient_uuid="patient-a", concept_uuid="c1", value="1"),
            Observation(patient_uuid="patient-a", concept_uuid="c2", value="2"),
            Observation(patient_uuid="patient-b", concept_uuid="c1", value="3"),
        ])

        deleted = observation_repo.delete_all_standalone("patient-a")

        assert deleted == 2
        assert observation_repo.find_standalone("patient-a") == []
        assert len(observation_repo.find_standalone("patient-b")) == 1

    def test_batch_is_all_or_nothing(self, observation_repo):
        with pytest.raises(StorageError):
            observation_repo.save_standalone_batch([
                Observation(patient_uuid="patient-a", concept_uuid="c1", value="1"),
                Observation(patient_uuid=None, concept_uuid="c2", value="2"),
            ])

        assert observation_repo.find_standalone("patient-a") == []

    def test_storage_failure_is_not_reported_as_empty(self, observation_repo, db):
        with db.transaction() as conn:
            conn.execute("DROP TABLE standalone_observations")

        with pytest.raises(StorageError):
            observation_repo.find_standalone("patient-a")
