from __future__ import annotations

import base64
import copy
import time
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from jose import jwt
from starlette.testclient import TestClient

from app.core.dependencies import get_current_user
from app.core.events import EventBus
from app.main import app
from app.models.auth import UserInfo
from app.models.hris import ExternalEmployee
from app.services.employee_reconciler import EmployeeReconciler
from app.services.employee_service import EmployeeService
from app.services.hris_sync_service import HrisSyncService
from app.services.merge_client import MergeClientService
from app.services.person_service import PersonService

TEST_TENANT_ID = "test-tenant-00000000-0000-0000-0000-000000000000"
TEST_CLIENT_ID = "test-client-00000000-0000-0000-0000-000000000000"
TEST_KID = "test-kid-1"
TEST_ORG_ID = "org-1"


def _int_to_base64url(value: int) -> str:
    byte_length = (value.bit_length() + 7) // 8
    return base64.urlsafe_b64encode(value.to_bytes(byte_length, byteorder="big")).rstrip(b"=").decode("ascii")


class InMemoryRepository:
    """Dict-backed stand-in for ``CosmosRepository``."""

    def __init__(self) -> None:
        self.docs: dict[str, dict[str, Any]] = {}
        self.fail_on_write: set[str] = set()

    async def find_first(self, organization_id: str, any_of: dict[str, Any]) -> dict[str, Any] | None:
        for doc in self.docs.values():
            if doc["organization_id"] != organization_id:
                continue
            if any(doc.get(k) == v for k, v in any_of.items()):
                return copy.deepcopy(doc)
        return None

    async def find_all(self, organization_id: str, skip: int = 0, limit: int = 50) -> list[dict[str, Any]]:
        docs = [d for d in self.docs.values() if d["organization_id"] == organization_id]
        return copy.deepcopy(docs[skip : skip + limit])

    async def read(self, item_id: str, organization_id: str) -> dict[str, Any] | None:
        doc = self.docs.get(item_id)
        if doc is None or doc["organization_id"] != organization_id:
            return None
        return copy.deepcopy(doc)

    async def create(self, body: dict[str, Any]) -> dict[str, Any]:
        self._check_write(body)
        if body["id"] in self.docs:
            raise ValueError(f"Conflict: {body['id']} already exists")
        self.docs[body["id"]] = copy.deepcopy(body)
        return copy.deepcopy(body)

    async def replace(self, body: dict[str, Any]) -> dict[str, Any]:
        self._check_write(body)
        if body["id"] not in self.docs:
            raise ValueError(f"Not found: {body['id']}")
        self.docs[body["id"]] = copy.deepcopy(body)
        return copy.deepcopy(body)

    def _check_write(self, body: dict[str, Any]) -> None:
        # Fail writes for any document with a matching email.
        if body.get("email") in self.fail_on_write:
            raise RuntimeError(f"write rejected for {body.get('email')}")


def make_external(
    id: str,
    remote_id: str,
    first_name: str,
    last_name: str,
    work_email: str,
    **extra: Any,
) -> ExternalEmployee:
    return ExternalEmployee(
        id=id,
        remote_id=remote_id,
        first_name=first_name,
        last_name=last_name,
        work_email=work_email,
        **extra,
    )


def make_record(*args: Any, **extra: Any) -> dict[str, Any]:
    """Provider row as ``MergeClientService.get_employees`` returns it."""
    return make_external(*args, **extra).model_dump()


@pytest.fixture
def employee_repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def person_repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def events() -> EventBus:
    return EventBus()


@pytest.fixture
def employee_store(employee_repository) -> EmployeeService:
    return EmployeeService(repository=employee_repository)


@pytest.fixture
def persons(person_repository, events) -> PersonService:
    return PersonService(repository=person_repository, events=events)


@pytest.fixture
def reconciler(employee_store) -> EmployeeReconciler:
    return EmployeeReconciler(employees=employee_store, source_system="MERGE_DEV")


@pytest.fixture
def provider() -> MagicMock:
    client = MagicMock(spec=MergeClientService)
    client.get_employees = AsyncMock(return_value=[])
    return client


@pytest.fixture
def sync_service(provider, reconciler, persons, events) -> HrisSyncService:
    return HrisSyncService(client=provider, reconciler=reconciler, persons=persons, events=events)


@pytest.fixture(autouse=True)
def _auth_settings():
    from app.core.config import settings

    original_tenant = settings.AZURE_AD_TENANT_ID
    original_client = settings.AZURE_AD_CLIENT_ID
    settings.AZURE_AD_TENANT_ID = TEST_TENANT_ID
    settings.AZURE_AD_CLIENT_ID = TEST_CLIENT_ID
    yield
    settings.AZURE_AD_TENANT_ID = original_tenant
    settings.AZURE_AD_CLIENT_ID = original_client


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def rsa_test_keys():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode("utf-8")

    pub = private_key.public_key().public_numbers()
    jwk_dict = {
        "kty": "RSA",
        "kid": TEST_KID,
        "use": "sig",
        "alg": "RS256",
        "n": _int_to_base64url(pub.n),
        "e": _int_to_base64url(pub.e),
    }
    return private_pem, {"keys": [jwk_dict]}


def _make_token(
    private_pem: str,
    *,
    oid: str | None = "test-oid-123",
    name: str = "Test User",
    email: str = "test@example.com",
    org_id: str | None = TEST_ORG_ID,
    roles: list[str] | None = None,
    expired: bool = False,
) -> str:
    now = int(time.time())
    claims: dict[str, Any] = {
        "name": name,
        "preferred_username": email,
        "roles": roles or [],
        "iss": f"https://login.microsoftonline.com/{TEST_TENANT_ID}/v2.0",
        "aud": TEST_CLIENT_ID,
        "exp": now - 3600 if expired else now + 3600,
        "iat": now - 60,
        "nbf": now - 60,
    }
    if oid:
        claims["oid"] = oid
    if org_id:
        claims["org_id"] = org_id
    return jwt.encode(claims, private_pem, algorithm="RS256", headers={"kid": TEST_KID})


@pytest.fixture
def mock_user_viewer():
    return UserInfo(
        id="viewer-1", name="Viewer User", email="viewer@example.com", organization_id=TEST_ORG_ID, roles=["viewer"]
    )


@pytest.fixture
def mock_user_admin():
    return UserInfo(
        id="admin-1", name="Admin User", email="admin@example.com", organization_id=TEST_ORG_ID, roles=["admin"]
    )


@pytest.fixture
def authenticated_client(mock_user_admin):
    app.dependency_overrides[get_current_user] = lambda: mock_user_admin
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def viewer_client(mock_user_viewer):
    app.dependency_overrides[get_current_user] = lambda: mock_user_viewer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
