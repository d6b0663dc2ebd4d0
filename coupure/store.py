# coupure/store.py : store hors-ligne d'abord (un par type de signalement)
from __future__ import annotations

import json
import logging
import random
import string
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from coupure import config
from coupure.geo import haversine_km
from coupure.kinds import ReportKind
from coupure.ledger import ConfirmationLedger, day_string
from coupure.schemas import NA, Report, ReportDraft
from coupure.services.reconcile import reconcile
from coupure.storage import Storage

log = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


class StoreState(str, Enum):
    uninitialized = "uninitialized"
    loading = "loading"
    ready = "ready"


def local_now() -> datetime:
    return datetime.now().astimezone()


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """ISO 8601 -> datetime aware (naïf = UTC). None si illisible."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class ReportStore:
    """
    Collection locale de signalements, réconciliée au mieux avec le service distant.

    - les requêtes (by_type, by_region, recent, nearby) lisent la mémoire, sans I/O ;
    - les mutations écrivent le stockage local puis tentent l'appel distant ;
      un échec distant n'est jamais remonté à l'appelant.
    """

    def __init__(
        self,
        kind: ReportKind,
        storage: Storage,
        remote,
        *,
        clock: Callable[[], datetime] = local_now,
        ledger_retention_days: int = config.LEDGER_RETENTION_DAYS,
    ):
        self.kind = kind
        self.storage = storage
        self.remote = remote
        self._clock = clock
        self._retention_days = ledger_retention_days
        self._reports: List[Report] = []
        self._ledger = ConfirmationLedger()
        self.state = StoreState.uninitialized

    # =========================
    #  Etat
    # =========================

    @property
    def reports(self) -> List[Report]:
        return list(self._reports)

    @property
    def ledger(self) -> Dict[str, str]:
        return dict(self._ledger.entries)

    @property
    def is_loading(self) -> bool:
        return self.state is not StoreState.ready

    @property
    def regions(self) -> List[str]:
        return list(config.CAMEROON_REGIONS)

    @property
    def villes(self) -> List[str]:
        """Villes connues dans la collection (hors "N/A"), triées."""
        return sorted({r.ville for r in self._reports if r.ville and r.ville != NA})

    def now(self) -> datetime:
        return self._clock()

    def _today(self) -> str:
        return day_string(self._clock().date())

    def _now_iso(self) -> str:
        return self._clock().isoformat()

    # =========================
    #  Chargement / réconciliation
    # =========================

    async def load(self) -> None:
        """uninitialized -> loading -> ready ; ready quoi qu'il arrive côté réseau."""
        if self.state is not StoreState.uninitialized:
            return
        self.state = StoreState.loading
        try:
            try:
                reports_blob = await self.storage.get(self.kind.data_key)
                ledger_blob = await self.storage.get(self.kind.ledger_key)
            except Exception as e:
                log.error("[store] %s: lecture locale impossible: %s", self.kind.name, e)
                reports_blob, ledger_blob = None, None

            self._reports = self._decode_reports(reports_blob)
            self._ledger = ConfirmationLedger.from_json(ledger_blob)

            pruned = self._ledger.prune(self._clock().date(), self._retention_days)
            if pruned:
                log.info("[store] %s: %d confirmation(s) expirée(s) purgée(s)", self.kind.name, pruned)
                await self._persist_ledger()

            await self._reconcile()
        finally:
            self.state = StoreState.ready

    async def refresh(self) -> bool:
        """Relance seulement la passe de réconciliation. False si le distant est injoignable."""
        return await self._reconcile()

    async def _reconcile(self) -> bool:
        try:
            server = await self.remote.list()
        except Exception as e:
            log.warning("[store] %s: réconciliation ignorée (hors-ligne): %s", self.kind.name, e)
            return False
        self._reports = reconcile(self._reports, server)
        await self._persist_reports()
        log.info("[store] %s: réconcilié (%d distants, %d locaux)",
                 self.kind.name, len(server), len(self._reports))
        return True

    def _decode_reports(self, blob: Optional[str]) -> List[Report]:
        if not blob:
            return []
        try:
            raw = json.loads(blob)
        except ValueError as e:
            log.error("[store] %s: collection locale illisible, ignorée: %s", self.kind.name, e)
            return []
        if not isinstance(raw, list):
            log.error("[store] %s: collection locale inattendue (%s), ignorée",
                      self.kind.name, type(raw).__name__)
            return []
        out: List[Report] = []
        for item in raw:
            try:
                out.append(self.kind.model.model_validate(item))
            except ValidationError as e:
                log.error("[store] %s: signalement local invalide ignoré: %s", self.kind.name, e)
        return out

    # =========================
    #  Persistance
    # =========================

    async def _persist_reports(self) -> None:
        blob = json.dumps([r.to_json() for r in self._reports], ensure_ascii=False)
        try:
            await self.storage.set(self.kind.data_key, blob)
        except Exception as e:
            log.error("[store] %s: écriture locale impossible: %s", self.kind.name, e)

    async def _persist_ledger(self) -> None:
        try:
            await self.storage.set(self.kind.ledger_key, self._ledger.to_json())
        except Exception as e:
            log.error("[store] %s: écriture du registre impossible: %s", self.kind.name, e)

    # =========================
    #  Requêtes (mémoire seule)
    # =========================

    def get(self, report_id: str) -> Optional[Report]:
        return next((r for r in self._reports if r.id == report_id), None)

    def by_type(self, type: Optional[Union[str, Enum]] = None) -> List[Report]:
        if not type:
            return self.reports
        tag = getattr(type, "value", type)
        return [r for r in self._reports if r.type_tag == tag]

    def by_region(self, region: Optional[str] = None) -> List[Report]:
        if not region:
            return self.reports
        return [r for r in self._reports if r.region == region]

    def by_ville(self, ville: Optional[str] = None) -> List[Report]:
        if not ville:
            return self.reports
        return [r for r in self._reports if r.ville == ville]

    def recent(self, hours: float = config.RECENT_HOURS) -> List[Report]:
        cutoff = self._clock() - timedelta(hours=hours)
        out = []
        for r in self._reports:
            created = parse_date(r.date)
            if created is not None and created > cutoff and not r.resolved:
                out.append(r)
        return out

    def nearby(self, lat: float, lon: float, radius_km: float = config.NEARBY_RADIUS_KM) -> List[Report]:
        cutoff = self._clock() - timedelta(hours=24)
        out = []
        for r in self._reports:
            if r.resolved:
                continue
            created = parse_date(r.date)
            if created is None or created < cutoff:
                continue
            if haversine_km(lat, lon, r.latitude, r.longitude) <= radius_km:
                out.append(r)
        return out

    def can_confirm(self, report_id: str) -> bool:
        return not self._ledger.confirmed_on(report_id, self._today())

    # =========================
    #  Mutations
    # =========================

    def _temp_id(self) -> str:
        ms = int(self._clock().timestamp() * 1000)
        return f"{ms}{''.join(random.choices(_ID_ALPHABET, k=9))}"

    def _local_record(self, draft: ReportDraft) -> Report:
        data: Dict[str, Any] = draft.model_dump()
        data.update(
            id=self._temp_id(),
            date=self._now_iso(),
            confirmations=1,
            synced=False,
            resolved=False,
            resolution_date=None,
        )
        return self.kind.model.model_validate(data)

    async def add_report(self, draft: Union[ReportDraft, Dict[str, Any]], user_id: str = "") -> Report:
        """
        Création distante d'abord ; à défaut, enregistrement local avec id temporaire (synced=False).
        Le nouveau signalement est placé en tête. Ne lève pas d'erreur réseau.
        """
        if not isinstance(draft, self.kind.draft_model):
            payload = draft.model_dump() if isinstance(draft, ReportDraft) else draft
            draft = self.kind.draft_model.model_validate(payload)

        try:
            created = await self.remote.create(draft, user_id)
            record = created.model_copy(update={"synced": True})
        except Exception as e:
            log.warning("[store] %s: créé localement (hors-ligne): %s", self.kind.name, e)
            record = self._local_record(draft)

        self._reports = [record, *self._reports]
        await self._persist_reports()
        return record

    async def confirm_report(self, report_id: str) -> bool:
        """False si déjà confirmé aujourd'hui sur cet appareil, True sinon."""
        today = self._today()
        if self._ledger.confirmed_on(report_id, today):
            return False

        self._reports = [
            r.model_copy(update={"confirmations": r.confirmations + 1}) if r.id == report_id else r
            for r in self._reports
        ]
        self._ledger = self._ledger.record(report_id, today)
        await self._persist_reports()
        await self._persist_ledger()

        try:
            await self.remote.confirm(report_id)
        except Exception as e:
            log.warning("[store] %s: confirmé localement (hors-ligne): %s", self.kind.name, e)
        return True

    async def mark_resolved(self, report_id: str) -> None:
        # réécrit la date même si déjà résolu
        now = self._now_iso()
        self._reports = [
            r.model_copy(update={"resolved": True, "resolution_date": now}) if r.id == report_id else r
            for r in self._reports
        ]
        await self._persist_reports()

        try:
            await self.remote.resolve(report_id)
        except Exception as e:
            log.warning("[store] %s: résolu localement (hors-ligne): %s", self.kind.name, e)

    def remove_report(self, report_id: str) -> bool:
        """Retrait en mémoire seulement (chemin admin, la suppression distante est faite à part)."""
        before = len(self._reports)
        self._reports = [r for r in self._reports if r.id != report_id]
        return len(self._reports) != before
