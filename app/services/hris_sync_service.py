"""HRIS sync: Merge.dev employees -> Employee -> Person.

Flow for one organization:

1. Fetch all employees from the Merge unified API (fatal on failure) and
   validate each record; a malformed record is recorded as an error.
2. Sort them so managers come before their reports.
3. For each employee, in order and one at a time:
   a. find or create the Employee record,
   b. find or create the Person record, merging around manual edits.
4. Emit ``hris.sync.completed``.

Running it twice over the same batch creates nothing the second time. A
failing employee is recorded in the result and the run moves on.

Two runs for the same organization must not overlap; callers serialise them.
"""

from __future__ import annotations

import asyncio
import logging
import time

from pydantic import ValidationError

from app.core.events import HRIS_SYNC_COMPLETED, EventBus, HrisSyncCompletedEvent, event_bus
from app.models.hris import ExternalEmployee, SyncError, SyncResult
from app.services.employee_reconciler import EmployeeReconciler, SyncRun
from app.services.manager_sort import sort_by_manager
from app.services.merge_client import MergeClientService, merge_client
from app.services.person_service import PersonService, person_service

logger = logging.getLogger(__name__)


class HrisSyncService:
    def __init__(
        self,
        client: MergeClientService | None = None,
        reconciler: EmployeeReconciler | None = None,
        persons: PersonService | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.client = client or merge_client
        self.reconciler = reconciler or EmployeeReconciler()
        self.persons = persons or person_service
        self.events = events or event_bus

    async def sync_employees(
        self,
        account_token: str,
        organization_id: str,
        user_id: str,
        cancel_event: asyncio.Event | None = None,
    ) -> SyncResult:
        start = time.monotonic()
        result = SyncResult()

        logger.info("Starting HRIS sync for organization %s", organization_id)

        records = await self.client.get_employees(account_token)

        external_employees: list[ExternalEmployee] = []
        for record in records:
            try:
                external_employees.append(ExternalEmployee.model_validate(record))
            except ValidationError as e:
                employee_id = str(record.get("id") or "unknown")
                result.errors.append(SyncError(employee_id=employee_id, error=str(e)))
                logger.error("Skipping malformed HRIS record %s: %s", employee_id, e)

        order = sort_by_manager(external_employees)
        for cycle in order.cycles:
            logger.warning(
                "Manager cycle in HRIS data for organization %s: %s",
                organization_id,
                " -> ".join(cycle),
            )
        logger.info("Processing %d employees in manager order", len(order.employees))

        run = SyncRun.for_batch(organization_id, order.employees)

        for idx, external in enumerate(order.employees):
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                result.skipped += len(order.employees) - idx
                logger.warning(
                    "HRIS sync for organization %s cancelled with %d employees remaining",
                    organization_id,
                    result.skipped,
                )
                break

            try:
                employee = await self.reconciler.reconcile(external, run)

                person = await self.persons.find_by_employee(employee.id, organization_id)
                if person is None:
                    await self.persons.create_from_employee(employee, user_id, organization_id)
                    result.created += 1
                else:
                    await self.persons.sync_from_employee(person.id, employee, user_id, organization_id)
                    result.updated += 1
            except Exception as e:
                result.errors.append(SyncError(employee_id=external.id, error=str(e)))
                logger.error("Failed to sync employee %s: %s", external.id, e)

        result.duration_ms = int((time.monotonic() - start) * 1000)

        await self.events.emit_safely(
            HRIS_SYNC_COMPLETED,
            HrisSyncCompletedEvent(
                organization_id=organization_id,
                user_id=user_id,
                created=result.created,
                updated=result.updated,
                skipped=result.skipped,
                error_count=len(result.errors),
                duration_ms=result.duration_ms,
                cancelled=result.cancelled,
            ),
        )

        logger.info(
            "HRIS sync complete: %d created, %d updated, %d skipped, %d errors in %dms",
            result.created,
            result.updated,
            result.skipped,
            len(result.errors),
            result.duration_ms,
        )
        return result


hris_sync_service = HrisSyncService()
