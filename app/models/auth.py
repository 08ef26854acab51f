"""Authenticated caller."""

from __future__ import annotations

from pydantic import BaseModel


class UserInfo(BaseModel):
    id: str
    name: str | None = None
    email: str | None = None
    organization_id: str | None = None
    roles: list[str] = []
