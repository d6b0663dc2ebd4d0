# coupure/routes/admin.py
import os
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Path, Request

from coupure.kinds import KINDS, ReportKind
from coupure.remote import RemoteServiceError
from coupure.routes.reports import get_store
from coupure.scheduler import refresh_all

router = APIRouter(prefix="/admin", tags=["admin"])


async def _check_token(x_token: str = Header(None)):
    """
    Simple garde : compare l'en-tête X-Token à ADMIN_TOKEN.
    """
    expected = os.getenv("ADMIN_TOKEN")
    if not expected:  # si aucun token défini, on n'exige rien (en dev)
        return True
    if not x_token or x_token.strip() != expected.strip():
        raise HTTPException(status_code=401, detail="Invalid token")
    return True


def _kind(plural: str) -> ReportKind:
    kind = KINDS.get(plural)
    if kind is None:
        raise HTTPException(status_code=404, detail=f"type inconnu: {plural}")
    return kind


def _remote_http_error(e: RemoteServiceError) -> HTTPException:
    if e.status_code == 404:
        return HTTPException(status_code=404, detail="document introuvable")
    return HTTPException(status_code=502, detail=f"appwrite error: {e}")


@router.delete("/{plural}/{report_id}")
async def delete_report(
    request: Request,
    plural: str = Path(...),
    report_id: str = Path(...),
    _=Depends(_check_token),
):
    """Suppression distante, puis retrait de la mémoire du store (pas d'écriture locale)."""
    store = get_store(request, _kind(plural))
    try:
        await store.remote.delete(report_id)
    except RemoteServiceError as e:
        raise _remote_http_error(e)
    removed = store.remove_report(report_id)
    return {"ok": True, "id": report_id, "removed_locally": removed}


@router.patch("/{plural}/{report_id}")
async def update_report(
    request: Request,
    plural: str = Path(...),
    report_id: str = Path(...),
    payload: Dict[str, Any] = Body(...),
    _=Depends(_check_token),
):
    if not payload:
        raise HTTPException(status_code=400, detail="aucun champ à modifier")
    store = get_store(request, _kind(plural))
    try:
        updated = await store.remote.update(report_id, payload)
    except RemoteServiceError as e:
        raise _remote_http_error(e)
    return updated.to_json()


@router.post("/refresh")
async def refresh_everything(request: Request, _=Depends(_check_token)):
    stores = (getattr(request.app.state, "stores", None) or {}).values()
    return {"ok": True, "online": await refresh_all(stores)}
