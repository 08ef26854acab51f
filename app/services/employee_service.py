"""Cosmos DB employee store."""

from __future__ import annotations

import logging
from typing import Any

from app.core.config import Settings
from app.core.cosmos import CosmosRepository, cosmos_database
from app.models.employee import Employee, EmployeeSummary

logger = logging.getLogger(__name__)


class EmployeeNotFoundError(LookupError):
    pass


class EmployeeService:
    def __init__(self, repository: CosmosRepository | None = None) -> None:
        self.repository = repository
        self.initialized: bool = repository is not None

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not cosmos_database.initialized:
            logger.warning("Cosmos DB not available — EmployeeService not initialized")
            return

        self.repository = cosmos_database.repository(settings.COSMOS_DB_EMPLOYEES_CONTAINER)
        self.initialized = True
        logger.info("EmployeeService initialized (container=%s)", settings.COSMOS_DB_EMPLOYEES_CONTAINER)

    async def close(self) -> None:
        self.repository = None
        self.initialized = False

    def _require_repository(self) -> CosmosRepository:
        if not self.initialized or self.repository is None:
            raise RuntimeError("EmployeeService not initialized")
        return self.repository

    async def find_by_hris_id_or_email(self, organization_id: str, hris_employee_id: str, email: str) -> Employee | None:
        doc = await self._require_repository().find_first(
            organization_id,
            {"hris_employee_id": hris_employee_id, "email": email},
        )
        return self._to_employee(doc)

    async def find_by_hris_id(self, organization_id: str, hris_employee_id: str) -> Employee | None:
        doc = await self._require_repository().find_first(organization_id, {"hris_employee_id": hris_employee_id})
        return self._to_employee(doc)

    async def find_by_hris_record_id(self, organization_id: str, hris_record_id: str) -> Employee | None:
        doc = await self._require_repository().find_first(organization_id, {"hris_record_id": hris_record_id})
        return self._to_employee(doc)

    async def get(self, employee_id: str, organization_id: str) -> Employee:
        doc = await self._require_repository().read(employee_id, organization_id)
        employee = self._to_employee(doc)
        if employee is None:
            raise EmployeeNotFoundError(f"Employee with ID {employee_id} not found")
        return employee

    async def list_employees(self, organization_id: str, skip: int = 0, limit: int = 50) -> list[EmployeeSummary]:
        if not self.initialized or self.repository is None:
            return []

        docs = await self.repository.find_all(organization_id, skip=skip, limit=limit)
        return [EmployeeSummary.model_validate(doc) for doc in docs]

    async def create(self, employee: Employee) -> Employee:
        doc = await self._require_repository().create(employee.model_dump(mode="json"))
        return Employee.model_validate(doc)

    async def replace(self, employee: Employee) -> Employee:
        doc = await self._require_repository().replace(employee.model_dump(mode="json"))
        return Employee.model_validate(doc)

    async def check_connection(self) -> bool:
        if not self.initialized or self.repository is None:
            return False
        try:
            await self.repository.find_all("__healthcheck__", limit=1)
            return True
        except Exception:
            logger.exception("Cosmos DB connection check failed")
            return False

    @staticmethod
    def _to_employee(doc: dict[str, Any] | None) -> Employee | None:
        if doc is None:
            return None
        return Employee.model_validate(doc)


employee_service = EmployeeService()
