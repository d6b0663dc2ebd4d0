# coupure/kinds.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, Type

from coupure import config
from coupure.schemas import (
    Incident, IncidentDraft, IncidentType,
    Outage, OutageDraft, OutageType,
    Report, ReportDraft,
)


@dataclass(frozen=True)
class ReportKind:
    """
    Tout ce qui distingue un type de signalement d'un autre :
    modèles, collection distante, clés de stockage local et noms de champs côté Appwrite.
    """
    name: str                      # "outage" / "incident"
    plural: str                    # préfixe HTTP, ex: "outages"
    model: Type[Report]
    draft_model: Type[ReportDraft]
    type_enum: Type[Enum]
    collection: str
    data_key: str                  # blob JSON de la collection
    ledger_key: str                # blob JSON du registre de confirmations
    remote_type_field: str
    remote_resolved_field: str
    remote_resolution_date_field: str
    extra_fields: Tuple[str, ...] = field(default_factory=tuple)


OUTAGE = ReportKind(
    name="outage",
    plural="outages",
    model=Outage,
    draft_model=OutageDraft,
    type_enum=OutageType,
    collection=config.OUTAGES_COLLECTION,
    data_key="outages_data",
    ledger_key="user_confirmations",
    remote_type_field="type",
    remote_resolved_field="estRetablie",
    remote_resolution_date_field="dateRetablissement",
)

INCIDENT = ReportKind(
    name="incident",
    plural="incidents",
    model=Incident,
    draft_model=IncidentDraft,
    type_enum=IncidentType,
    collection=config.INCIDENTS_COLLECTION,
    data_key="incidents_data",
    ledger_key="incident_confirmations",
    remote_type_field="incidentType",
    remote_resolved_field="estResolue",
    remote_resolution_date_field="dateResolution",
    extra_fields=("commentaire",),
)

KINDS = {k.plural: k for k in (OUTAGE, INCIDENT)}
