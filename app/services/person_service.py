"""Person records derived from Employees.

Person is the foundation for people-based pattern detection. Employee stays
the source of truth; a Person is created from it once and then merged on
every sync, except for fields staff have edited by hand.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from app.core.config import Settings
from app.core.cosmos import CosmosRepository, cosmos_database
from app.core.events import PERSON_CREATED, PERSON_UPDATED, EventBus, PersonEvent, event_bus
from app.models.employee import Employee
from app.models.person import (
    HRIS_MIRRORED_FIELDS,
    ManualEdit,
    Person,
    PersonSource,
    PersonType,
    PersonUpdate,
)

logger = logging.getLogger(__name__)


class PersonNotFoundError(LookupError):
    pass


def _mirrored_values(employee: Employee) -> dict[str, Any]:
    return {
        "first_name": employee.first_name,
        "last_name": employee.last_name,
        "email": employee.email,
        "phone": employee.phone,
        "job_title": employee.job_title,
        "department": employee.department,
        "location": employee.location,
        "manager_name": employee.manager_name,
        "employment_status": employee.employment_status.value,
    }


class PersonService:
    def __init__(self, repository: CosmosRepository | None = None, events: EventBus | None = None) -> None:
        self.repository = repository
        self.events = events or event_bus
        self.initialized: bool = repository is not None

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not cosmos_database.initialized:
            logger.warning("Cosmos DB not available — PersonService not initialized")
            return

        self.repository = cosmos_database.repository(settings.COSMOS_DB_PERSONS_CONTAINER)
        self.initialized = True
        logger.info("PersonService initialized (container=%s)", settings.COSMOS_DB_PERSONS_CONTAINER)

    async def close(self) -> None:
        self.repository = None
        self.initialized = False

    def _require_repository(self) -> CosmosRepository:
        if not self.initialized or self.repository is None:
            raise RuntimeError("PersonService not initialized")
        return self.repository

    async def find_by_employee(self, employee_id: str, organization_id: str) -> Person | None:
        doc = await self._require_repository().find_first(organization_id, {"employee_id": employee_id})
        return Person.model_validate(doc) if doc else None

    async def get(self, person_id: str, organization_id: str) -> Person:
        doc = await self._require_repository().read(person_id, organization_id)
        if not doc:
            raise PersonNotFoundError(f"Person with ID {person_id} not found")
        return Person.model_validate(doc)

    async def create_from_employee(self, employee: Employee, user_id: str, organization_id: str) -> Person:
        now = datetime.now(timezone.utc)
        person = Person(
            id=str(uuid.uuid4()),
            organization_id=organization_id,
            type=PersonType.EMPLOYEE,
            source=PersonSource.HRIS_SYNC,
            employee_id=employee.id,
            created_by_id=user_id,
            updated_by_id=user_id,
            created_at=now,
            updated_at=now,
            **_mirrored_values(employee),
        )
        doc = await self._require_repository().create(person.model_dump(mode="json"))
        created = Person.model_validate(doc)
        logger.debug("Created Person %s from Employee %s", created.id, employee.id)

        await self.events.emit_safely(
            PERSON_CREATED,
            PersonEvent(organization_id=organization_id, actor_user_id=user_id, person_id=created.id),
        )
        return created

    async def sync_from_employee(
        self,
        person_id: str,
        employee: Employee,
        user_id: str,
        organization_id: str,
    ) -> Person:
        """Merge HRIS values into a Person, leaving manually edited fields alone."""
        person = await self.get(person_id, organization_id)

        changed: list[str] = []
        updates: dict[str, Any] = {}
        for field, value in _mirrored_values(employee).items():
            if person.is_manually_edited(field):
                continue
            updates[field] = value
            if getattr(person, field) != value:
                changed.append(field)

        merged = person.model_copy(
            update={
                **updates,
                "employee_id": employee.id,
                "updated_by_id": user_id,
                "updated_at": datetime.now(timezone.utc),
            }
        )
        doc = await self._require_repository().replace(merged.model_dump(mode="json"))
        synced = Person.model_validate(doc)

        if changed:
            await self.events.emit_safely(
                PERSON_UPDATED,
                PersonEvent(
                    organization_id=organization_id,
                    actor_user_id=user_id,
                    person_id=person_id,
                    changes=changed,
                ),
            )
        return synced

    async def update(self, person_id: str, changes: PersonUpdate, user_id: str, organization_id: str) -> Person:
        """Apply a human edit. Mirrored fields touched here are flagged as manually edited."""
        person = await self.get(person_id, organization_id)
        now = datetime.now(timezone.utc)

        values = changes.model_dump(exclude_unset=True)
        manual_edits = dict(person.manual_edits)
        for field in values:
            if field in HRIS_MIRRORED_FIELDS:
                manual_edits[field] = ManualEdit(edited_by_id=user_id, edited_at=now)

        updated = person.model_copy(
            update={
                **values,
                "manual_edits": manual_edits,
                "updated_by_id": user_id,
                "updated_at": now,
            }
        )
        doc = await self._require_repository().replace(updated.model_dump(mode="json"))
        result = Person.model_validate(doc)

        await self.events.emit_safely(
            PERSON_UPDATED,
            PersonEvent(
                organization_id=organization_id,
                actor_user_id=user_id,
                person_id=person_id,
                changes=sorted(values),
            ),
        )
        return result

    async def release_fields(self, person_id: str, fields: list[str], user_id: str, organization_id: str) -> Person:
        """Clear manual-edit markers so the next sync may overwrite these fields."""
        unknown = [f for f in fields if f not in HRIS_MIRRORED_FIELDS]
        if unknown:
            raise ValueError(f"Not HRIS-mirrored fields: {', '.join(unknown)}")

        person = await self.get(person_id, organization_id)
        manual_edits = {k: v for k, v in person.manual_edits.items() if k not in fields}
        released = person.model_copy(
            update={
                "manual_edits": manual_edits,
                "updated_by_id": user_id,
                "updated_at": datetime.now(timezone.utc),
            }
        )
        doc = await self._require_repository().replace(released.model_dump(mode="json"))
        return Person.model_validate(doc)

    async def check_connection(self) -> bool:
        if not self.initialized or self.repository is None:
            return False
        try:
            await self.repository.find_all("__healthcheck__", limit=1)
            return True
        except Exception:
            logger.exception("Cosmos DB persons connection check failed")
            return False


person_service = PersonService()
