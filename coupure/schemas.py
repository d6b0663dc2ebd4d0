# coupure/schemas.py
from __future__ import annotations

from enum import Enum
from typing import ClassVar, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

NA = "N/A"


class OutageType(str, Enum):
    water = "water"
    electricity = "electricity"
    internet = "internet"


class IncidentType(str, Enum):
    broken_pipe = "broken_pipe"
    fallen_pole = "fallen_pole"
    cable_on_ground = "cable_on_ground"
    other = "other"


def _label_or_na(v):
    if v is None:
        return NA
    v = str(v).strip()
    return v or NA


# -----------------------------
#  Signalements (forme locale)
# -----------------------------

class Report(BaseModel):
    """
    Forme commune d'un signalement tel qu'il est gardé sur l'appareil.
    Sérialisé par alias (camelCase) dans le blob persistant.
    """
    model_config = ConfigDict(populate_by_name=True)

    # nom de l'attribut qui porte la catégorie (diffère selon le type de signalement)
    TYPE_FIELD: ClassVar[str] = "type"

    id: str
    latitude: float
    longitude: float
    quartier: str = NA
    ville: str = NA
    region: str = NA
    date: str
    confirmations: int = Field(1, ge=1)
    photo_uri: Optional[str] = Field(None, alias="photoUri")
    synced: bool = False
    resolved: bool = False
    resolution_date: Optional[str] = None

    @field_validator("quartier", "ville", "region", mode="before")
    @classmethod
    def default_labels(cls, v):
        return _label_or_na(v)

    @property
    def type_tag(self) -> str:
        tag = getattr(self, self.TYPE_FIELD)
        return getattr(tag, "value", tag)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Outage(Report):
    type: OutageType
    resolved: bool = Field(False, alias="estRetablie")
    resolution_date: Optional[str] = Field(None, alias="dateRetablissement")


class Incident(Report):
    TYPE_FIELD: ClassVar[str] = "incident_type"

    incident_type: IncidentType = Field(..., alias="incidentType")
    commentaire: str = ""
    resolved: bool = Field(False, alias="estResolue")
    resolution_date: Optional[str] = Field(None, alias="dateResolution")


# -----------------------------
#  Entrées (création)
# -----------------------------

class ReportDraft(BaseModel):
    """Champs fournis par l'appelant ; id, confirmations, synced et résolution sont attribués par le store."""
    model_config = ConfigDict(populate_by_name=True)

    TYPE_FIELD: ClassVar[str] = "type"

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    quartier: str = NA
    ville: str = NA
    region: str = NA
    photo_uri: Optional[str] = Field(None, alias="photoUri")

    @field_validator("quartier", "ville", "region", mode="before")
    @classmethod
    def default_labels(cls, v):
        return _label_or_na(v)

    @property
    def type_tag(self) -> str:
        tag = getattr(self, self.TYPE_FIELD)
        return getattr(tag, "value", tag)


class OutageDraft(ReportDraft):
    type: OutageType


class IncidentDraft(ReportDraft):
    TYPE_FIELD: ClassVar[str] = "incident_type"

    incident_type: IncidentType = Field(..., alias="incidentType")
    commentaire: str = ""


# -----------------------------
#  Statistiques
# -----------------------------

class ReportStats(BaseModel):
    period: str = "all"
    total: int
    active: int
    resolved: int
    by_type: Dict[str, int]
    by_region: Dict[str, int]
