from __future__ import annotations

import base64
import copy
import time
from collections import defaultdict
from collections.abc import AsyncIterator
from enum import Enum
from typing import Any

import anyio.lowlevel
import pytest
from azure.core.exceptions import ServiceRequestError, ServiceResponseError
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from jose import jwt
from starlette.testclient import TestClient

from asset_custody.core.auth import jwks_cache
from asset_custody.core.dependencies import (
    get_assignment_coordinator,
    get_current_actor,
    get_deletion_guard,
    get_reconciliation_sweep,
)
from asset_custody.main import app
from asset_custody.models.auth import Actor
from asset_custody.services.assignment_coordinator import AssignmentCoordinator
from asset_custody.services.deletion_guard import DeletionGuard
from asset_custody.services.reconciliation import ReconciliationSweep

TEST_TENANT_ID = "test-tenant-00000000-0000-0000-0000-000000000000"
TEST_CLIENT_ID = "test-client-00000000-0000-0000-0000-000000000000"
TEST_KID = "test-kid-1"

ALICE = "emp-alice"
BOB = "emp-bob"
CAROL = "emp-carol"


def _collection(kind: Any) -> str:
    return kind.value if isinstance(kind, Enum) else str(kind)


def _is_unset(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _matches(document: dict[str, Any], filters: dict[str, Any]) -> bool:
    for field, value in filters.items():
        actual = document.get(field)
        if value is None:
            if not _is_unset(actual):
                return False
        elif actual != value:
            return False
    return True


class InMemoryAssetStore:
    """Dict-backed stand-in for the Cosmos store with the same async surface.

    Conditional updates are atomic because nothing awaits between the match and
    the write; reads yield to the event loop so concurrent transactions interleave.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self.unreadable_ids: set[str] = set()
        self.unwritable_ids: set[str] = set()
        self.fail_scans = False
        self.write_attempts = 0
        self.writes = 0

    def add(self, kind: Any, document: dict[str, Any]) -> dict[str, Any]:
        self.collections[_collection(kind)][document["id"]] = copy.deepcopy(document)
        return document

    def get(self, kind: Any, item_id: str) -> dict[str, Any] | None:
        return self.collections[_collection(kind)].get(item_id)

    async def find_by_id(self, kind: Any, item_id: str) -> dict[str, Any] | None:
        await anyio.lowlevel.checkpoint()
        if item_id in self.unreadable_ids:
            raise ServiceRequestError("store unreachable")
        document = self.get(kind, item_id)
        return copy.deepcopy(document) if document is not None else None

    async def update_one_conditional(
        self,
        kind: Any,
        item_id: str,
        expected: dict[str, Any],
        patch: dict[str, Any],
    ) -> dict[str, Any] | None:
        self.write_attempts += 1
        if item_id in self.unwritable_ids:
            raise ServiceResponseError("write timed out")
        document = self.get(kind, item_id)
        if document is None or not _matches(document, expected):
            return None
        document.update(copy.deepcopy(patch))
        self.writes += 1
        return copy.deepcopy(document)

    async def find_all_by_kind(self, kind: Any) -> AsyncIterator[dict[str, Any]]:
        if self.fail_scans:
            raise ServiceRequestError("scan failed")
        for document in list(self.collections[_collection(kind)].values()):
            yield copy.deepcopy(document)

    async def count_by_filter(self, kind: Any, filters: dict[str, Any]) -> int:
        return len(await self.find_by_filter(kind, filters))

    async def find_by_filter(self, kind: Any, filters: dict[str, Any]) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(doc) for doc in self.collections[_collection(kind)].values() if _matches(doc, filters)
        ]


def employee_doc(employee_id: str, name: str, **extra: Any) -> dict[str, Any]:
    return {
        "id": employee_id,
        "name": name,
        "employeeId": employee_id.upper(),
        "email": f"{name.lower()}@example.com",
        "department": "IT",
        "position": "Engineer",
        "status": "active",
        **extra,
    }


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store() -> InMemoryAssetStore:
    store = InMemoryAssetStore()
    store.add("employee", employee_doc(ALICE, "Alice"))
    store.add("employee", employee_doc(BOB, "Bob", manager=ALICE))
    store.add("employee", employee_doc(CAROL, "Carol"))
    store.add(
        "device",
        {
            "id": "dev-1",
            "name": "ThinkPad T14",
            "type": "laptop",
            "serialNumber": "SN-0001",
            "manufacturer": "Lenovo",
            "model": "T14",
            "status": "available",
            "assignedTo": None,
        },
    )
    store.add(
        "component",
        {
            "id": "cmp-1",
            "name": "32GB RAM",
            "type": "memory",
            "manufacturer": "Kingston",
            "model": "KVR32",
            "status": "available",
            "installedIn": "dev-1",
        },
    )
    store.add(
        "account",
        {
            "id": "acc-1",
            "name": "GitHub",
            "type": "github",
            "username": "ci-bot",
            "password": "s3cret",
            "status": "inactive",
            "assignmentStatus": "available",
        },
    )
    return store


@pytest.fixture
def coordinator(store) -> AssignmentCoordinator:
    return AssignmentCoordinator(store)


@pytest.fixture
def sweep(store) -> ReconciliationSweep:
    return ReconciliationSweep(store)


@pytest.fixture
def guard(store) -> DeletionGuard:
    return DeletionGuard(store)


@pytest.fixture(autouse=True)
def _auth_settings():
    from asset_custody.core.config import settings

    original_tenant = settings.AZURE_AD_TENANT_ID
    original_client = settings.AZURE_AD_CLIENT_ID
    settings.AZURE_AD_TENANT_ID = TEST_TENANT_ID
    settings.AZURE_AD_CLIENT_ID = TEST_CLIENT_ID
    jwks_cache.clear()
    yield
    settings.AZURE_AD_TENANT_ID = original_tenant
    settings.AZURE_AD_CLIENT_ID = original_client
    jwks_cache.clear()


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


def _int_to_base64url(value: int) -> str:
    byte_length = (value.bit_length() + 7) // 8
    return base64.urlsafe_b64encode(value.to_bytes(byte_length, byteorder="big")).rstrip(b"=").decode("ascii")


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


@pytest.fixture
def make_token():
    def _make_token(
        private_pem: str,
        *,
        oid: str = "test-oid-123",
        name: str = "Test User",
        email: str = "test@example.com",
        roles: list[str] | None = None,
        expired: bool = False,
        audience: str = TEST_CLIENT_ID,
    ) -> str:
        now = int(time.time())
        claims = {
            "oid": oid,
            "name": name,
            "preferred_username": email,
            "roles": roles or [],
            "iss": f"https://login.microsoftonline.com/{TEST_TENANT_ID}/v2.0",
            "aud": audience,
            "exp": now - 3600 if expired else now + 3600,
            "iat": now - 60,
            "nbf": now - 60,
        }
        return jwt.encode(claims, private_pem, algorithm="RS256", headers={"kid": TEST_KID})

    return _make_token


@pytest.fixture
def mock_user_viewer():
    return Actor(id="viewer-1", name="Viewer User", email="viewer@example.com", roles=["user"])


@pytest.fixture
def mock_user_manager():
    return Actor(id="manager-1", name="Manager User", email="manager@example.com", roles=["manager"])


@pytest.fixture
def mock_user_admin():
    return Actor(id="admin-1", name="Admin User", email="admin@example.com", roles=["admin"])


def _client_as(actor: Actor, store: InMemoryAssetStore):
    app.dependency_overrides[get_current_actor] = lambda: actor
    app.dependency_overrides[get_assignment_coordinator] = lambda: AssignmentCoordinator(store)
    app.dependency_overrides[get_reconciliation_sweep] = lambda: ReconciliationSweep(store)
    app.dependency_overrides[get_deletion_guard] = lambda: DeletionGuard(store)
    return TestClient(app)


@pytest.fixture
def authenticated_client(mock_user_admin, store):
    with _client_as(mock_user_admin, store) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def manager_client(mock_user_manager, store):
    with _client_as(mock_user_manager, store) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def viewer_client(mock_user_viewer, store):
    with _client_as(mock_user_viewer, store) as c:
        yield c
    app.dependency_overrides.clear()
