from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.dependencies import get_current_user, get_organization_id
from app.models.auth import UserInfo
from app.models.person import Person, PersonUpdate, ReleaseFieldsRequest
from app.services.person_service import PersonNotFoundError, person_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/persons", tags=["persons"])


def _not_found(person_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Person with ID '{person_id}' not found",
    )


@router.get("/{person_id}", response_model=Person)
async def get_person(
    person_id: str,
    organization_id: str = Depends(get_organization_id),  # noqa: B008
):
    try:
        return await person_service.get(person_id, organization_id)
    except PersonNotFoundError as err:
        raise _not_found(person_id) from err


@router.patch("/{person_id}", response_model=Person)
async def update_person(
    person_id: str,
    changes: PersonUpdate,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
    organization_id: str = Depends(get_organization_id),  # noqa: B008
):
    try:
        return await person_service.update(person_id, changes, user.id, organization_id)
    except PersonNotFoundError as err:
        raise _not_found(person_id) from err


@router.post("/{person_id}/release", response_model=Person)
async def release_manual_edits(
    person_id: str,
    request: ReleaseFieldsRequest,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
    organization_id: str = Depends(get_organization_id),  # noqa: B008
):
    try:
        return await person_service.release_fields(person_id, request.fields, user.id, organization_id)
    except PersonNotFoundError as err:
        raise _not_found(person_id) from err
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(err),
        ) from err
