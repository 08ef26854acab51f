"""Reconcile Merge employees into internal Employee records."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from app.core.config import settings
from app.models.employee import Employee, EmploymentStatus
from app.models.hris import ExternalEmployee
from app.services.employee_service import EmployeeService, employee_service

logger = logging.getLogger(__name__)

DEFAULT_JOB_TITLE = "Employee"

_STATUS_MAP: dict[str, EmploymentStatus] = {
    "ACTIVE": EmploymentStatus.ACTIVE,
    "INACTIVE": EmploymentStatus.INACTIVE,
    "PENDING": EmploymentStatus.ON_LEAVE,
}


def map_employment_status(status: str | None) -> EmploymentStatus:
    # Unknown codes must not block provisioning.
    return _STATUS_MAP.get(status or "", EmploymentStatus.ACTIVE)


@dataclass
class SyncRun:
    """State scoped to one sync invocation; discarded when the run ends."""

    organization_id: str
    batch: dict[str, ExternalEmployee]
    reconciled: dict[str, Employee] = field(default_factory=dict)

    @classmethod
    def for_batch(cls, organization_id: str, employees: list[ExternalEmployee]) -> SyncRun:
        batch: dict[str, ExternalEmployee] = {}
        for employee in employees:
            batch.setdefault(employee.id, employee)
        return cls(organization_id=organization_id, batch=batch)


class EmployeeReconciler:
    def __init__(self, employees: EmployeeService | None = None, source_system: str | None = None) -> None:
        self.employees = employees or employee_service
        self.source_system = source_system or settings.HRIS_SOURCE_SYSTEM

    async def reconcile(self, external: ExternalEmployee, run: SyncRun) -> Employee:
        """Find-or-create the Employee for ``external`` and record it on ``run``."""
        organization_id = run.organization_id
        existing = await self.employees.find_by_hris_id_or_email(
            organization_id,
            external.remote_id,
            external.work_email,
        )
        manager = await self._resolve_manager(external, run)
        now = datetime.now(timezone.utc)

        fields = {
            "hris_record_id": external.id,
            "first_name": external.first_name,
            "last_name": external.last_name,
            "email": external.work_email,
            "phone": external.mobile_phone_number,
            "department": external.team,
            "location": external.work_location,
            "manager_id": manager.id if manager else None,
            "manager_name": manager.display_name if manager else None,
            "employment_status": map_employment_status(external.employment_status),
            "synced_at": now,
            "raw_hris_data": external.model_dump(mode="json"),
        }

        if existing is None:
            employee = await self.employees.create(
                Employee(
                    id=str(uuid.uuid4()),
                    organization_id=organization_id,
                    hris_employee_id=external.remote_id,
                    job_title=external.job_title or DEFAULT_JOB_TITLE,
                    source_system=self.source_system,
                    created_at=now,
                    updated_at=now,
                    **fields,
                )
            )
            logger.debug("Created Employee %s from Merge %s", employee.id, external.id)
        else:
            employee = await self.employees.replace(
                existing.model_copy(
                    update={
                        **fields,
                        "job_title": external.job_title or existing.job_title,
                        "updated_at": now,
                    }
                )
            )
            logger.debug("Updated Employee %s from Merge %s", employee.id, external.id)

        run.reconciled[external.id] = employee
        return employee

    async def _resolve_manager(self, external: ExternalEmployee, run: SyncRun) -> Employee | None:
        if not external.manager:
            return None

        already = run.reconciled.get(external.manager)
        if already is not None:
            return already

        manager_record = run.batch.get(external.manager)
        if manager_record is not None:
            return await self.employees.find_by_hris_id(run.organization_id, manager_record.remote_id)

        # Manager not in this batch; it may have been synced by an earlier run.
        return await self.employees.find_by_hris_record_id(run.organization_id, external.manager)
