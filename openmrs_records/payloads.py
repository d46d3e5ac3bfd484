"""Pydantic models for encounter payloads returned by an OpenMRS server."""

from pydantic import BaseModel, ConfigDict, Field

from openmrs_records.clinical_data.database.encounter_repository import Encounter, EncounterType
from openmrs_records.clinical_data.database.observation_repository import Observation


class ResourceRef(BaseModel):
    """A reference to another REST resource (patient, concept, form...)."""

    model_config = ConfigDict(extra="ignore")

    uuid: str | None = None
    display: str | None = None


class EncounterTypePayload(ResourceRef):
    def to_encounter_type(self, form_name: str | None = None) -> EncounterType:
        return EncounterType(display=self.display or "", form_name=form_name, uuid=self.uuid)


class ObservationPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    uuid: str | None = None
    display: str | None = None
    concept: ResourceRef
    value: float | int | bool | str | dict | None = None
    obs_datetime: str | None = Field(None, alias="obsDatetime")

    def value_type(self) -> str:
        """Infer how the value should be stored."""
        value = self.value
        # bool first: it is also an int
        if isinstance(value, bool):
            return "boolean"
        if isinstance(value, (int, float)):
            return "numeric"
        if isinstance(value, dict):
            return "coded"
        return "text"

    def to_observation(self, patient_uuid: str | None = None, encounter_uuid: str | None = None) -> Observation:
        value_type = self.value_type()
        if value_type == "coded":
            value = self.value.get("uuid")
        elif value_type == "boolean":
            value = "true" if self.value else "false"
        elif self.value is None:
            value = None
        else:
            value = str(self.value)

        return Observation(
            uuid=self.uuid,
            concept_uuid=self.concept.uuid,
            display=self.display,
            value=value,
            value_type=value_type,
            obs_datetime=self.obs_datetime,
            patient_uuid=patient_uuid,
            encounter_uuid=encounter_uuid,
        )


class EncounterPayload(BaseModel):
    """Encounter as serialised by the REST API (``v=full`` representation)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    uuid: str | None = None
    display: str | None = None
    encounter_datetime: str | None = Field(None, alias="encounterDatetime")
    patient: ResourceRef | None = None
    location: ResourceRef | None = None
    form: ResourceRef | None = None
    encounter_type: EncounterTypePayload | None = Field(None, alias="encounterType")
    obs: list[ObservationPayload] = Field(default_factory=list)

    def to_encounter(self) -> Encounter:
        patient_uuid = self.patient.uuid if self.patient else None
        return Encounter(
            uuid=self.uuid,
            display=self.display,
            patient_uuid=patient_uuid,
            encounter_type=self.encounter_type.display if self.encounter_type else None,
            encounter_datetime=self.encounter_datetime,
            form_uuid=self.form.uuid if self.form else None,
            location_uuid=self.location.uuid if self.location else None,
            observations=[
                obs.to_observation(patient_uuid=patient_uuid, encounter_uuid=self.uuid)
                for obs in self.obs
            ],
        )
