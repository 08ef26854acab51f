from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.dependencies import get_organization_id
from app.models.employee import Employee, EmployeeSummary
from app.services.employee_service import EmployeeNotFoundError, employee_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=list[EmployeeSummary])
async def list_employees(
    skip: int = 0,
    limit: int = 50,
    organization_id: str = Depends(get_organization_id),  # noqa: B008
):
    try:
        return await employee_service.list_employees(organization_id, skip=skip, limit=limit)
    except Exception as err:
        logger.exception("Failed to list employees")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve employees",
        ) from err


@router.get("/{employee_id}", response_model=Employee)
async def get_employee(
    employee_id: str,
    organization_id: str = Depends(get_organization_id),  # noqa: B008
):
    try:
        return await employee_service.get(employee_id, organization_id)
    except EmployeeNotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee with ID '{employee_id}' not found",
        ) from err
    except Exception as err:
        logger.exception("Failed to get employee %s", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve employee",
        ) from err
