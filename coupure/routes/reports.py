# coupure/routes/reports.py : un routeur par type de signalement (/outages, /incidents)
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Body, HTTPException, Path, Query, Request, status
from pydantic import ValidationError

from coupure import config
from coupure.kinds import ReportKind
from coupure.store import ReportStore, parse_date

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def get_store(request: Request, kind: ReportKind) -> ReportStore:
    stores = getattr(request.app.state, "stores", None) or {}
    store = stores.get(kind.plural)
    if store is None:
        raise HTTPException(status_code=503, detail=f"{kind.plural} store not ready")
    return store


def _require(store: ReportStore, report_id: str):
    report = store.get(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail=f"{store.kind.name} introuvable")
    return report


def build_router(kind: ReportKind) -> APIRouter:
    router = APIRouter(prefix=f"/{kind.plural}", tags=[kind.plural])
    type_values = {t.value for t in kind.type_enum}

    @router.get("")
    async def list_reports(
        request: Request,
        type: Optional[str] = Query(None),
        region: Optional[str] = Query(None),
        ville: Optional[str] = Query(None),
        hours: Optional[float] = Query(None, gt=0),
    ):
        """Filtres combinables (type, région, ville) ; hours = fenêtre glissante des signalements non résolus."""
        if type and type not in type_values:
            raise HTTPException(status_code=422, detail=f"type inconnu: {type}")
        store = get_store(request, kind)
        items = store.by_type(type)
        if region:
            items = [r for r in items if r.region == region]
        if ville:
            items = [r for r in items if r.ville == ville]
        if hours is not None:
            keep = {r.id for r in store.recent(hours)}
            items = [r for r in items if r.id in keep]
        # plus récents d'abord, dates illisibles en fin de liste
        items.sort(key=lambda r: parse_date(r.date) or _EPOCH, reverse=True)
        return [r.to_json() for r in items]

    @router.get("/villes")
    async def list_villes(request: Request):
        return get_store(request, kind).villes

    @router.get("/nearby")
    async def nearby_reports(
        request: Request,
        lat: float = Query(..., ge=-90, le=90),
        lon: float = Query(..., ge=-180, le=180),
        radius_km: float = Query(config.NEARBY_RADIUS_KM, gt=0),
    ):
        store = get_store(request, kind)
        return [r.to_json() for r in store.nearby(lat, lon, radius_km)]

    @router.post("/refresh")
    async def refresh_reports(request: Request):
        store = get_store(request, kind)
        online = await store.refresh()
        return {"ok": True, "online": online, "count": len(store.reports)}

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_report(request: Request, payload: Any = Body(...)):
        if not isinstance(payload, dict):
            raise HTTPException(status_code=422, detail="Input should be a valid JSON object")
        user_id = str(payload.pop("userId", "") or payload.pop("user_id", "") or "")
        try:
            draft = kind.draft_model.model_validate(payload)
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=f"validation error: {e}")
        store = get_store(request, kind)
        report = await store.add_report(draft, user_id=user_id)
        return report.to_json()

    @router.get("/{report_id}")
    async def get_report(request: Request, report_id: str = Path(...)):
        store = get_store(request, kind)
        return _require(store, report_id).to_json()

    @router.get("/{report_id}/can_confirm")
    async def can_confirm(request: Request, report_id: str = Path(...)):
        store = get_store(request, kind)
        _require(store, report_id)
        return {"id": report_id, "can_confirm": store.can_confirm(report_id)}

    @router.post("/{report_id}/confirm")
    async def confirm_report(request: Request, report_id: str = Path(...)):
        store = get_store(request, kind)
        _require(store, report_id)
        ok = await store.confirm_report(report_id)
        report = store.get(report_id)
        return {
            "ok": ok,
            "id": report_id,
            "confirmations": report.confirmations if report else None,
            "reason": None if ok else "already_confirmed_today",
        }

    @router.post("/{report_id}/resolve")
    async def resolve_report(request: Request, report_id: str = Path(...)):
        store = get_store(request, kind)
        _require(store, report_id)
        await store.mark_resolved(report_id)
        return store.get(report_id).to_json()

    return router
