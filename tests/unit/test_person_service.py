from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.core.events import PERSON_CREATED, PERSON_UPDATED
from app.models.employee import Employee, EmploymentStatus
from app.models.person import PersonSource, PersonType, PersonUpdate
from app.services.person_service import PersonNotFoundError, PersonService
from tests.conftest import TEST_ORG_ID


def _employee(**overrides) -> Employee:
    now = datetime.now(timezone.utc)
    data = {
        "id": "emp-1",
        "organization_id": TEST_ORG_ID,
        "hris_employee_id": "R1",
        "first_name": "Ann",
        "last_name": "Kay",
        "email": "a@x.com",
        "job_title": "CFO",
        "department": "Finance",
        "employment_status": EmploymentStatus.ACTIVE,
        "source_system": "MERGE_DEV",
        "synced_at": now,
        "created_at": now,
        "updated_at": now,
    }
    data.update(overrides)
    return Employee(**data)


@pytest.mark.anyio
async def test_create_from_employee_mirrors_fields(persons, events):
    seen = []
    events.subscribe(PERSON_CREATED, seen.append)

    person = await persons.create_from_employee(_employee(), "user-1", TEST_ORG_ID)

    assert person.employee_id == "emp-1"
    assert person.type == PersonType.EMPLOYEE
    assert person.source == PersonSource.HRIS_SYNC
    assert person.first_name == "Ann"
    assert person.job_title == "CFO"
    assert person.department == "Finance"
    assert person.employment_status == "ACTIVE"
    assert person.created_by_id == "user-1"
    assert person.manual_edits == {}
    assert [e.person_id for e in seen] == [person.id]


@pytest.mark.anyio
async def test_find_by_employee(persons):
    assert await persons.find_by_employee("emp-1", TEST_ORG_ID) is None

    created = await persons.create_from_employee(_employee(), "user-1", TEST_ORG_ID)

    found = await persons.find_by_employee("emp-1", TEST_ORG_ID)
    assert found is not None
    assert found.id == created.id
    assert await persons.find_by_employee("emp-1", "other-org") is None


@pytest.mark.anyio
async def test_sync_overwrites_unedited_fields(persons):
    person = await persons.create_from_employee(_employee(), "user-1", TEST_ORG_ID)

    synced = await persons.sync_from_employee(
        person.id,
        _employee(job_title="CEO", employment_status=EmploymentStatus.ON_LEAVE),
        "user-2",
        TEST_ORG_ID,
    )

    assert synced.job_title == "CEO"
    assert synced.employment_status == "ON_LEAVE"
    assert synced.updated_by_id == "user-2"


@pytest.mark.anyio
async def test_sync_preserves_manually_edited_field(persons):
    person = await persons.create_from_employee(_employee(), "user-1", TEST_ORG_ID)
    edited = await persons.update(person.id, PersonUpdate(last_name="Kay-Married"), "staff-1", TEST_ORG_ID)
    assert edited.is_manually_edited("last_name")
    assert edited.manual_edits["last_name"].edited_by_id == "staff-1"

    synced = await persons.sync_from_employee(
        person.id,
        _employee(last_name="Kay", job_title="CEO"),
        "user-1",
        TEST_ORG_ID,
    )

    assert synced.last_name == "Kay-Married"
    assert synced.job_title == "CEO"
    assert synced.is_manually_edited("last_name")


@pytest.mark.anyio
async def test_update_of_manual_only_field_does_not_flag(persons):
    person = await persons.create_from_employee(_employee(), "user-1", TEST_ORG_ID)

    edited = await persons.update(person.id, PersonUpdate(notes="Works remotely"), "staff-1", TEST_ORG_ID)

    assert edited.notes == "Works remotely"
    assert edited.manual_edits == {}


@pytest.mark.anyio
async def test_update_emits_changed_fields(persons, events):
    person = await persons.create_from_employee(_employee(), "user-1", TEST_ORG_ID)
    seen = []
    events.subscribe(PERSON_UPDATED, seen.append)

    await persons.update(person.id, PersonUpdate(phone="+1 555 0199", notes="x"), "staff-1", TEST_ORG_ID)

    assert seen[-1].changes == ["notes", "phone"]


@pytest.mark.anyio
async def test_sync_without_changes_emits_nothing(persons, events):
    person = await persons.create_from_employee(_employee(), "user-1", TEST_ORG_ID)
    seen = []
    events.subscribe(PERSON_UPDATED, seen.append)

    await persons.sync_from_employee(person.id, _employee(), "user-1", TEST_ORG_ID)

    assert seen == []


@pytest.mark.anyio
async def test_release_fields_lets_sync_overwrite_again(persons):
    person = await persons.create_from_employee(_employee(), "user-1", TEST_ORG_ID)
    await persons.update(person.id, PersonUpdate(first_name="Annie"), "staff-1", TEST_ORG_ID)

    released = await persons.release_fields(person.id, ["first_name"], "staff-1", TEST_ORG_ID)
    assert released.manual_edits == {}

    synced = await persons.sync_from_employee(person.id, _employee(), "user-1", TEST_ORG_ID)
    assert synced.first_name == "Ann"


@pytest.mark.anyio
async def test_release_rejects_unknown_fields(persons):
    person = await persons.create_from_employee(_employee(), "user-1", TEST_ORG_ID)
    with pytest.raises(ValueError):
        await persons.release_fields(person.id, ["notes"], "staff-1", TEST_ORG_ID)


@pytest.mark.anyio
async def test_get_missing_person_raises(persons):
    with pytest.raises(PersonNotFoundError):
        await persons.get("missing", TEST_ORG_ID)


@pytest.mark.anyio
async def test_failing_event_handler_does_not_break_create(persons, events):
    def broken(event):
        raise RuntimeError("subscriber down")

    events.subscribe(PERSON_CREATED, broken)

    person = await persons.create_from_employee(_employee(), "user-1", TEST_ORG_ID)
    assert person.id


@pytest.mark.anyio
async def test_not_initialized_raises():
    service = PersonService()
    with pytest.raises(RuntimeError):
        await service.find_by_employee("emp-1", TEST_ORG_ID)


@pytest.mark.anyio
async def test_check_connection_not_initialized():
    assert await PersonService().check_connection() is False
