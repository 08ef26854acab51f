from __future__ import annotations

import asyncio
import logging
import aiohttp
from fastapi import APIRouter, Depends, HTTPException, status

from app.core.dependencies import get_organization_id, require_role
from app.models.auth import UserInfo
from app.models.hris import SyncRequest, SyncResult
from app.services.hris_sync_service import hris_sync_service
from app.services.merge_client import MergeApiError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hris", tags=["hris"])

# One sync at a time per organization; the sync service itself does not guard this.
_organization_locks: dict[str, asyncio.Lock] = {}


@router.post("/sync", response_model=SyncResult)
async def sync_employees(
    request: SyncRequest,
    user: UserInfo = Depends(require_role("admin")),  # noqa: B008
    organization_id: str = Depends(get_organization_id),  # noqa: B008
):
    lock = _organization_locks.setdefault(organization_id, asyncio.Lock())
    if lock.locked():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An HRIS sync is already running for this organization",
        )

    try:
        async with lock:
            return await hris_sync_service.sync_employees(
                request.account_token,
                organization_id,
                user.id,
            )
    except (MergeApiError, aiohttp.ClientError) as err:
        logger.exception("HRIS provider fetch failed for organization %s", organization_id)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to fetch employees from HRIS provider",
        ) from err
    except RuntimeError as err:
        logger.exception("HRIS sync unavailable")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="HRIS sync is not configured",
        ) from err
    finally:
        # Concurrent requests are rejected above, so nobody waits on a released lock.
        if not lock.locked():
            _organization_locks.pop(organization_id, None)
