# coupure/remote.py : client REST Appwrite (une instance par type de signalement)
from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from coupure import config
from coupure.kinds import ReportKind
from coupure.schemas import NA, Report, ReportDraft

log = logging.getLogger(__name__)


class RemoteServiceError(Exception):
    """Échec d'un appel distant : réseau, timeout ou réponse non 2xx (status_code=None si réseau)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# =========================
#  Requêtes Appwrite
# =========================

def q_equal(attr: str, value: Any) -> str:
    return json.dumps({"method": "equal", "attribute": attr, "values": [value]})


def q_greater_than(attr: str, value: Any) -> str:
    return json.dumps({"method": "greaterThan", "attribute": attr, "values": [value]})


def q_order_desc(attr: str) -> str:
    return json.dumps({"method": "orderDesc", "attribute": attr})


def q_limit(n: int) -> str:
    return json.dumps({"method": "limit", "values": [int(n)]})


def q_offset(n: int) -> str:
    return json.dumps({"method": "offset", "values": [int(n)]})


# =========================
#  Mapping document <-> signalement
# =========================

def doc_to_report(kind: ReportKind, doc: Dict[str, Any]) -> Report:
    """Document Appwrite -> forme locale (toujours synced=True)."""
    resolved = bool(doc.get(kind.remote_resolved_field) or False)
    resolution_date = doc.get(kind.remote_resolution_date_field) or None
    if resolved and resolution_date is None:
        # ancien document sans date : on prend la dernière modif connue
        resolution_date = doc.get("$updatedAt") or doc.get("createdAt") or doc.get("$createdAt")
    if not resolved:
        resolution_date = None

    data: Dict[str, Any] = {
        "id": doc.get("$id") or doc.get("id"),
        kind.model.TYPE_FIELD: doc.get(kind.remote_type_field),
        "latitude": doc.get("latitude"),
        "longitude": doc.get("longitude"),
        "quartier": doc.get("quartier") or NA,
        "ville": doc.get("ville") or NA,
        "region": doc.get("region") or NA,
        "date": doc.get("createdAt") or doc.get("$createdAt") or datetime.now(timezone.utc).isoformat(),
        "confirmations": doc.get("confirmations") or 1,
        "photo_uri": doc.get("photoUri") or None,
        "synced": True,
        "resolved": resolved,
        "resolution_date": resolution_date,
    }
    for f in kind.extra_fields:
        data[f] = doc.get(f) or ""
    return kind.model.model_validate(data)


def draft_to_doc(kind: ReportKind, draft: ReportDraft, user_id: str, created_at: str) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        kind.remote_type_field: draft.type_tag,
        "latitude": draft.latitude,
        "longitude": draft.longitude,
        "quartier": draft.quartier or NA,
        "ville": draft.ville or NA,
        "region": draft.region or NA,
        "confirmations": 1,
        "photoUri": draft.photo_uri or None,
        kind.remote_resolved_field: False,
        kind.remote_resolution_date_field: None,
        "createdAt": created_at,
        "userId": user_id or "",
    }
    for f in kind.extra_fields:
        doc[f] = getattr(draft, f, "") or ""
    return doc


# =========================
#  Service distant
# =========================

class RemoteReportService:
    """
    list / list_all / get / create / confirm / resolve / delete / update
    sur une collection Appwrite. Toute erreur -> RemoteServiceError.
    """

    def __init__(
        self,
        kind: ReportKind,
        *,
        endpoint: str = config.APPWRITE_ENDPOINT,
        project_id: str = config.APPWRITE_PROJECT_ID,
        api_key: str = config.APPWRITE_API_KEY,
        db_id: str = config.APPWRITE_DB_ID,
        timeout: float = config.REMOTE_TIMEOUT_S,
        page_size: int = config.REMOTE_PAGE_SIZE,
        batch_size: int = config.REMOTE_BATCH_SIZE,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.kind = kind
        self.endpoint = endpoint.rstrip("/")
        self.project_id = project_id
        self.api_key = api_key
        self.db_id = db_id
        self.timeout = timeout
        self.page_size = page_size
        self.batch_size = batch_size
        self._client = client

    @property
    def documents_url(self) -> str:
        return f"{self.endpoint}/databases/{self.db_id}/collections/{self.kind.collection}/documents"

    def _headers(self) -> Dict[str, str]:
        headers = {
            "X-Appwrite-Project": self.project_id,
            "Content-Type": "application/json",
        }
        if self.api_key:
            headers["X-Appwrite-Key"] = self.api_key
        return headers

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            if self._client is not None:
                r = await self._client.request(method, url, headers=self._headers(), **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    r = await client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.TimeoutException as e:
            raise RemoteServiceError(f"appwrite timeout: {e}") from e
        except httpx.HTTPError as e:
            raise RemoteServiceError(f"appwrite http error: {e}") from e

        if r.status_code not in (200, 201, 204):
            raise RemoteServiceError(
                f"appwrite {method} failed [{r.status_code}]: {r.text[:200]}",
                status_code=r.status_code,
            )
        if r.status_code == 204 or not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise RemoteServiceError(f"appwrite invalid json: {e}", status_code=r.status_code) from e

    def _to_reports(self, payload: Any) -> List[Report]:
        docs = (payload or {}).get("documents") or []
        out: List[Report] = []
        for d in docs:
            try:
                out.append(doc_to_report(self.kind, d))
            except ValidationError as e:
                log.error("[remote] %s document ignoré (%s): %s", self.kind.name, d.get("$id"), e)
        return out

    # ---------- lectures ----------

    async def list(
        self,
        *,
        type: Optional[str] = None,
        region: Optional[str] = None,
        ville: Optional[str] = None,
        hours: Optional[int] = None,
    ) -> List[Report]:
        """Derniers signalements (createdAt desc), plafonnés à page_size."""
        queries = [q_order_desc("createdAt"), q_limit(self.page_size)]
        if type:
            queries.append(q_equal(self.kind.remote_type_field, type))
        if region:
            queries.append(q_equal("region", region))
        if ville:
            queries.append(q_equal("ville", ville))
        if hours:
            cutoff = (datetime.now(timezone.utc) - timedelta(hours=int(hours))).isoformat()
            queries.append(q_greater_than("createdAt", cutoff))
        payload = await self._request("GET", self.documents_url, params=[("queries[]", q) for q in queries])
        return self._to_reports(payload)

    async def list_all(self) -> List[Report]:
        """Collection complète, par lots de batch_size (stats/admin)."""
        out: List[Report] = []
        offset = 0
        while True:
            queries = [q_limit(self.batch_size), q_offset(offset)]
            payload = await self._request("GET", self.documents_url, params=[("queries[]", q) for q in queries])
            out.extend(self._to_reports(payload))
            if len((payload or {}).get("documents") or []) < self.batch_size:
                break
            offset += self.batch_size
        return out

    async def get(self, report_id: str) -> Report:
        doc = await self._request("GET", f"{self.documents_url}/{report_id}")
        return doc_to_report(self.kind, doc)

    # ---------- écritures ----------

    async def create(self, draft: ReportDraft, user_id: str = "") -> Report:
        data = draft_to_doc(self.kind, draft, user_id, datetime.now(timezone.utc).isoformat())
        doc = await self._request("POST", self.documents_url, json={"documentId": "unique()", "data": data})
        return doc_to_report(self.kind, doc)

    async def confirm(self, report_id: str) -> Report:
        # lecture puis écriture : pas atomique côté Appwrite
        current = await self._request("GET", f"{self.documents_url}/{report_id}")
        count = (current or {}).get("confirmations") or 1
        return await self.update(report_id, {"confirmations": int(count) + 1})

    async def resolve(self, report_id: str) -> Report:
        return await self.update(report_id, {
            self.kind.remote_resolved_field: True,
            self.kind.remote_resolution_date_field: datetime.now(timezone.utc).isoformat(),
        })

    async def update(self, report_id: str, fields: Dict[str, Any]) -> Report:
        doc = await self._request("PATCH", f"{self.documents_url}/{report_id}", json={"data": fields})
        return doc_to_report(self.kind, doc)

    async def delete(self, report_id: str) -> None:
        await self._request("DELETE", f"{self.documents_url}/{report_id}")
