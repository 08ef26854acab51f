"""Merge.dev HRIS payloads and sync results."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ExternalEmployee(BaseModel):
    """Snapshot of one employee as returned by the Merge unified HRIS API.

    Fields the sync does not use are kept (``extra="allow"``) so the raw
    payload can be stored on the Employee record verbatim.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    remote_id: str
    first_name: str
    last_name: str
    work_email: str
    personal_email: str | None = None
    mobile_phone_number: str | None = None
    manager: str | None = None
    job_title: str | None = None
    employment_status: str | None = None
    team: str | None = None
    work_location: str | None = None


class SyncError(BaseModel):
    employee_id: str
    error: str


class SyncResult(BaseModel):
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[SyncError] = []
    duration_ms: int = 0
    cancelled: bool = False


class SyncRequest(BaseModel):
    account_token: str
