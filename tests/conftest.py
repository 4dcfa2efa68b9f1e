"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- An in-memory async Mongo (mongomock-motor) standing in for the real store
- A controllable clock and a recording email service
- An httpx client wired to the app with dependency overrides
"""

import os
from datetime import timedelta

import pytest

# Set test environment variables BEFORE any app imports
os.environ["JWT_SECRET"] = "test-secret-key"
os.environ["MONGO_DB"] = "inventory_test"
os.environ["FRONTEND_URL"] = "http://admin.test"

from httpx import ASGITransport, AsyncClient  # noqa: E402
from mongomock_motor import AsyncMongoMockClient  # noqa: E402

from inventory_admin.core.clock import get_clock, utc_now  # noqa: E402
from inventory_admin.core.deps import get_email_service  # noqa: E402
from inventory_admin.core.security import create_access_token  # noqa: E402
from inventory_admin.db.mongo import ensure_indexes, get_db  # noqa: E402
from inventory_admin.main import app  # noqa: E402
from inventory_admin.services.admin_repository import AdminRepository  # noqa: E402

TEST_SECRET = "test-secret-key"
DEFAULT_PASSWORD = "password123"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or utc_now()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeEmailService:
    """Records reset emails instead of talking to SMTP."""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_password_reset_email(self, admin, token):
        if self.fail:
            raise RuntimeError("SMTP unavailable")
        self.sent.append((admin["email"], token))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def db():
    client = AsyncMongoMockClient()
    database = client["inventory_test"]
    await ensure_indexes(database)
    return database


@pytest.fixture
def repository(db, clock):
    return AdminRepository(db, clock=clock)


@pytest.fixture
def mailer():
    return FakeEmailService()


@pytest.fixture
def make_admin(repository):
    """Factory creating admins through the repository (so passwords are hashed)."""

    async def _make(email="admin@test.com", password=DEFAULT_PASSWORD, name="Test Admin", role="admin", **fields):
        admin = await repository.create(email, password, name, role)
        if fields:
            await repository.admins.update_one({"_id": admin["_id"]}, {"$set": fields})
            admin = await repository.find_by_id(admin["_id"])
        return admin

    return _make


@pytest.fixture
def auth_headers():
    def _headers(admin):
        token = create_access_token(str(admin["_id"]), admin["email"], secret=TEST_SECRET)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
async def client(db, clock, mailer):
    """
    Client bound to the app with the store, clock and mailer replaced.

    The lifespan never runs under ASGITransport, so no real Mongo is touched.
    """
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_email_service] = lambda: mailer

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
