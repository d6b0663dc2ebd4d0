# coupure/routes/config.py
from fastapi import APIRouter

from coupure import config
from coupure.kinds import KINDS

router = APIRouter(prefix="/config", tags=["config"])


@router.get("/regions")
async def regions():
    return config.CAMEROON_REGIONS


@router.get("/types")
async def types():
    return {plural: [t.value for t in kind.type_enum] for plural, kind in KINDS.items()}
