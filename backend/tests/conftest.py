import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from linkme.domain.identity.models import UserRecord
from linkme.domain.profiles.models import (
    PersonalDetails,
    ProfessionalDetails,
    ProfileRecord,
    ProfileVariant,
    Visibility,
)
from linkme.domain.proximity.models import LocationRecord
from linkme.infra import postgres
from linkme.infra.memory_store import MemoryStore
from linkme.infra.store import set_store
from linkme.main import app
from linkme.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
    from linkme.infra.redis import redis_client, set_redis_client
    original = redis_client.client
    client = FakeRedis(decode_responses=True)
    set_redis_client(client)
    try:
        yield client
    finally:
        set_redis_client(original)
        await client.flushall()


@pytest.fixture(autouse=True)
def memory_store():
    store = MemoryStore()
    set_store(store)
    try:
        yield store
    finally:
        set_store(None)


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
    async def _noop():
        return None

    monkeypatch.setattr(postgres, "init_pool", _noop)
    monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
    """Ensure a consistent test environment.

    API tests authenticate via the X-User-Id header, which is only accepted in dev mode.
    """
    original = (
        settings.environment,
        settings.store_backend,
        settings.connection_duplicate_policy,
        settings.nearby_per_minute,
        settings.connection_requests_per_minute,
    )
    settings.environment = "dev"
    settings.store_backend = "memory"
    settings.connection_duplicate_policy = "reject"
    settings.nearby_per_minute = 1000
    settings.connection_requests_per_minute = 1000
    try:
        yield
    finally:
        (
            settings.environment,
            settings.store_backend,
            settings.connection_duplicate_policy,
            settings.nearby_per_minute,
            settings.connection_requests_per_minute,
        ) = original


@pytest_asyncio.fixture
async def api_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def seed(memory_store):
    """Helpers to put users, profiles and locations straight into the store."""

    class _Seed:
        async def user(self, user_id, name=None):
            return await memory_store.upsert_user(
                UserRecord(id=user_id, email=f"{user_id}@example.com", name=name or user_id.title())
            )

        async def profile(self, user_id, variant, visibility, headline=""):
            variant = ProfileVariant(variant)
            details = ProfessionalDetails() if variant is ProfileVariant.PROFESSIONAL else PersonalDetails()
            return await memory_store.upsert_profile(
                ProfileRecord(
                    id=f"{user_id}-{variant.value}",
                    user_id=user_id,
                    variant=variant,
                    headline=headline or f"{user_id} {variant.value}",
                    bio="",
                    visibility=Visibility(visibility),
                    details=details,
                )
            )

        async def location(self, user_id, lat, lng):
            return await memory_store.upsert_location(
                LocationRecord(user_id=user_id, latitude=lat, longitude=lng, updated_at=datetime.now(timezone.utc))
            )

        async def person(self, user_id, lat, lng, *profiles):
            await self.user(user_id)
            for variant, visibility in profiles:
                await self.profile(user_id, variant, visibility)
            await self.location(user_id, lat, lng)

    return _Seed()
