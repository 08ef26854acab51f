"""Person records derived from Employees."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel

# Fields the HRIS sync is allowed to write, unless manually edited.
HRIS_MIRRORED_FIELDS: tuple[str, ...] = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "job_title",
    "department",
    "location",
    "manager_name",
    "employment_status",
)


class PersonType(str, Enum):
    EMPLOYEE = "EMPLOYEE"
    EXTERNAL_CONTACT = "EXTERNAL_CONTACT"
    ANONYMOUS_PLACEHOLDER = "ANONYMOUS_PLACEHOLDER"


class PersonSource(str, Enum):
    HRIS_SYNC = "HRIS_SYNC"
    MANUAL = "MANUAL"
    INTAKE_CREATED = "INTAKE_CREATED"


class PersonStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    MERGED = "MERGED"


class ManualEdit(BaseModel):
    edited_by_id: str
    edited_at: datetime


class Person(BaseModel):
    id: str
    organization_id: str
    type: PersonType = PersonType.EMPLOYEE
    source: PersonSource = PersonSource.HRIS_SYNC
    status: PersonStatus = PersonStatus.ACTIVE
    employee_id: str | None = None

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    job_title: str | None = None
    department: str | None = None
    location: str | None = None
    manager_name: str | None = None
    employment_status: str | None = None

    notes: str | None = None

    manual_edits: dict[str, ManualEdit] = {}

    created_by_id: str | None = None
    updated_by_id: str | None = None
    created_at: datetime
    updated_at: datetime

    def is_manually_edited(self, field: str) -> bool:
        return field in self.manual_edits

    @property
    def display_name(self) -> str:
        if self.first_name or self.last_name:
            return " ".join(p for p in (self.first_name, self.last_name) if p)
        if self.email:
            return self.email
        return "Unknown Person"


class PersonUpdate(BaseModel):
    """Staff-initiated edit. Only fields that are set are applied."""

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    job_title: str | None = None
    department: str | None = None
    location: str | None = None
    manager_name: str | None = None
    employment_status: str | None = None
    status: PersonStatus | None = None
    notes: str | None = None


class ReleaseFieldsRequest(BaseModel):
    fields: list[str]
