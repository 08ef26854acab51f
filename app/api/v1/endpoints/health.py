from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.dependencies import get_current_user
from app.models.auth import UserInfo
from app.services.employee_service import employee_service
from app.services.merge_client import merge_client
from app.services.person_service import person_service

router = APIRouter(prefix="/health", tags=["health"])


async def _cosmos_status(service) -> str:
    if not service.initialized:
        return "not_configured"
    try:
        return "ok" if await service.check_connection() else "error"
    except Exception:
        return "error"


@router.get("")
async def health_check():
    services: dict[str, str] = {
        "cosmos_employees": await _cosmos_status(employee_service),
        "cosmos_persons": await _cosmos_status(person_service),
        "merge": "ok" if merge_client.initialized else "not_configured",
    }

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "services": services,
    }


@router.get("/protected")
async def health_protected(user: UserInfo = Depends(get_current_user)):  # noqa: B008
    return {"status": "ok", "user": user.model_dump()}


@router.get("/ready")
async def readiness_probe():
    return {"ready": True}
