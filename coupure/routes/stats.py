# coupure/routes/stats.py
from fastapi import APIRouter, HTTPException, Path, Query, Request

from coupure.kinds import KINDS
from coupure.remote import RemoteServiceError
from coupure.routes.reports import get_store
from coupure.services.stats import PERIOD_DAYS, compute_stats, fetch_stats

router = APIRouter(prefix="/stats", tags=["stats"])


def _store(request: Request, plural: str):
    kind = KINDS.get(plural)
    if kind is None:
        raise HTTPException(status_code=404, detail=f"type inconnu: {plural}")
    return get_store(request, kind)


def _check_period(period: str) -> str:
    if period not in PERIOD_DAYS:
        raise HTTPException(status_code=422, detail=f"période inconnue: {period} (week|month|all)")
    return period


@router.get("/{plural}")
async def remote_stats(request: Request, plural: str = Path(...), period: str = Query("all")):
    """Stats sur toute la collection distante (paginée)."""
    store = _store(request, plural)
    _check_period(period)
    try:
        stats = await fetch_stats(store.remote, period, store.now())
    except RemoteServiceError as e:
        raise HTTPException(status_code=502, detail=f"appwrite error: {e}")
    return stats.model_dump()


@router.get("/{plural}/local")
async def local_stats(request: Request, plural: str = Path(...), period: str = Query("all")):
    """Même calcul sur la copie locale (utilisable hors-ligne)."""
    store = _store(request, plural)
    _check_period(period)
    return compute_stats(store.kind, store.reports, period, store.now()).model_dump()
