from fastapi import APIRouter

from app.core.envelope import ok
from app.services import catalog

router = APIRouter()


@router.get("/catalog/packages")
async def list_packages() -> dict:
    return ok({"packages": [pkg.as_dict() for pkg in catalog.get_packages()]})


@router.get("/catalog/consultation-types")
async def list_consultation_types() -> dict:
    return ok({"consultation_types": [item.as_dict() for item in catalog.CONSULTATION_TYPES]})
