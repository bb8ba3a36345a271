import uuid

import pytest
from beanie import init_beanie
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from main import DOCUMENT_MODELS, app
from app.models.staff import StaffProfile, StaffRole
from app.models.store import Store


@pytest.fixture
async def db():
    client = AsyncMongoMockClient()
    database = client[f"retail_ops_{uuid.uuid4().hex[:8]}"]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    yield database


@pytest.fixture
async def client(db):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


@pytest.fixture
async def store(db):
    store = Store(id="S1", brand="Saree House", name="Main Bazaar", city="Jaipur",
                  shift_start="10:00", late_grace_min=10, late_penalty=50)
    await store.insert()
    return store


@pytest.fixture
async def staff(db, store):
    members = [
        StaffProfile(email="asha@example.com", name="Asha", role=StaffRole.MANAGER, assigned_store="S1",
                     salary=30000, leave_days=2),
        StaffProfile(email="ravi@example.com", name="Ravi", assigned_store="S1",
                     salary=15000, leave_days=2, lunch_allowance=30, extra_sunday_allowance=200),
        StaffProfile(email="gone@example.com", name="Gone", assigned_store="S1",
                     salary=20000, is_active=False),
    ]
    for member in members:
        await member.insert()
    return {member.name: member for member in members}
