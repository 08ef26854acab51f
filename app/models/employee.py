"""Internal Employee records mirrored from the HRIS provider."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel


class EmploymentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ON_LEAVE = "ON_LEAVE"
    TERMINATED = "TERMINATED"


class EmployeeSummary(BaseModel):
    """Minimal employee info for lists."""

    id: str
    first_name: str
    last_name: str
    email: str
    job_title: str
    manager_name: str | None = None
    employment_status: EmploymentStatus = EmploymentStatus.ACTIVE


class Employee(EmployeeSummary):
    """One Employee per (organization_id, hris_employee_id)."""

    organization_id: str
    hris_employee_id: str
    hris_record_id: str | None = None
    phone: str | None = None
    department: str | None = None
    location: str | None = None
    manager_id: str | None = None
    source_system: str = "MANUAL"
    synced_at: datetime
    raw_hris_data: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
