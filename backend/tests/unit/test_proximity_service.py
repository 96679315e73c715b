import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from linkme.domain.errors import DataUnavailable, InvalidInput, RateLimited
from linkme.domain.profiles.models import ProfileVariant
from linkme.domain.proximity import service
from linkme.domain.proximity.distance import bounding_box, haversine_meters
from linkme.infra.memory_store import MemoryStore
from linkme.infra.store import set_store
from linkme.settings import settings

CENTER = (40.7128, -74.0060)


class _UnavailableStore(MemoryStore):
    def __init__(self):
        super().__init__()
        self.calls = 0

    async def list_locations_near(self, box):
        self.calls += 1
        raise DataUnavailable()


@pytest.mark.asyncio
async def test_search_returns_close_user_and_skips_far_one(seed):
    await seed.person("viewer", *CENTER, ("professional", "public"))
    await seed.person("near", 40.7160, -74.0090, ("professional", "public"))
    await seed.person("far", 40.7300, -74.0000, ("professional", "public"))

    result = await service.search_nearby("viewer", *CENTER, 1000)

    assert not result.unavailable
    assert [m.user.id for m in result.items] == ["near"]
    match = result.items[0]
    assert 430 <= match.distance_meters <= 443
    exact = haversine_meters(*CENTER, match.location.latitude, match.location.longitude)
    assert match.distance_meters == int(exact + 0.5)
    assert match.distance_meters <= 1000


@pytest.mark.asyncio
async def test_search_surfaces_best_visible_profile(seed):
    await seed.person("a", 40.7130, -74.0062, ("professional", "public"), ("personal", "private"))
    await seed.person("b", 40.7131, -74.0061, ("professional", "private"), ("personal", "nearby"))

    result = await service.search_nearby("viewer", *CENTER, 1000)

    variants = {m.user.id: m.profile.variant for m in result.items}
    assert variants == {"a": ProfileVariant.PROFESSIONAL, "b": ProfileVariant.PERSONAL}


@pytest.mark.asyncio
async def test_private_profiles_never_appear(seed):
    await seed.person("hidden", 40.7129, -74.0061, ("professional", "private"), ("personal", "private"))
    await seed.person("shown", 40.7130, -74.0061, ("personal", "public"))

    result = await service.search_nearby("viewer", *CENTER, 1000)

    assert [m.user.id for m in result.items] == ["shown"]
    assert all(m.profile.visibility.value != "private" for m in result.items)


@pytest.mark.asyncio
async def test_results_sorted_by_distance_then_user_id(seed):
    await seed.person("zed", 40.7140, -74.0060, ("professional", "public"))
    await seed.person("amy", 40.7140, -74.0060, ("professional", "public"))
    await seed.person("bob", 40.7130, -74.0060, ("professional", "public"))

    result = await service.search_nearby("viewer", *CENTER, 1000)

    assert [m.user.id for m in result.items] == ["bob", "amy", "zed"]


@pytest.mark.asyncio
async def test_larger_radius_is_a_superset(seed):
    for i in range(12):
        await seed.person(f"u{i:02d}", 40.70 + i * 0.003, -74.01 + i * 0.001, ("professional", "public"))

    small = await service.search_nearby("viewer", *CENTER, 700)
    large = await service.search_nearby("viewer", *CENTER, 3000)

    assert {m.user.id for m in small.items} <= {m.user.id for m in large.items}


@pytest.mark.asyncio
async def test_store_failure_is_reported_not_partial():
    store = _UnavailableStore()
    set_store(store)

    result = await service.search_nearby("viewer", *CENTER, 1000)

    assert result.unavailable is True
    assert result.items == []
    assert store.calls == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "lat,lng,radius",
    [
        (91.0, 0.0, 1000),
        (0.0, 181.0, 1000),
        (0.0, 0.0, 0),
        (0.0, 0.0, 10_000_000),
        (0.0, 0.0, 12.5),
    ],
)
async def test_invalid_input_rejected_before_store_access(lat, lng, radius):
    store = _UnavailableStore()
    set_store(store)

    with pytest.raises(InvalidInput):
        await service.search_nearby("viewer", lat, lng, radius)
    assert store.calls == 0


@pytest.mark.asyncio
async def test_search_is_rate_limited(monkeypatch):
    monkeypatch.setattr(settings, "nearby_per_minute", 2)

    await service.search_nearby("viewer", *CENTER, 1000)
    await service.search_nearby("viewer", *CENTER, 1000)
    with pytest.raises(RateLimited):
        await service.search_nearby("viewer", *CENTER, 1000)


@pytest.mark.asyncio
async def test_update_location_upserts_single_record(seed, memory_store):
    await seed.user("walker")

    await service.update_location("walker", 10.0, 20.0)
    await service.update_location("walker", 10.5, 20.5)

    locations = await memory_store.list_locations_near(bounding_box(10.0, 20.0, 200_000))
    assert [(loc.latitude, loc.longitude) for loc in locations] == [(10.5, 20.5)]


@pytest.mark.asyncio
async def test_update_location_rejects_bad_coordinates(seed):
    await seed.user("walker")

    with pytest.raises(InvalidInput):
        await service.update_location("walker", 100.0, 0.0)


@pytest.mark.asyncio
async def test_update_location_for_unknown_user():
    with pytest.raises(InvalidInput) as exc_info:
        await service.update_location("ghost", 1.0, 1.0)
    assert exc_info.value.reason == "unknown_user"


@pytest.mark.asyncio
async def test_search_degrades_when_rate_limiter_is_down(seed, fake_redis, monkeypatch):
    await seed.person("near", 40.7160, -74.0090, ("professional", "public"))

    def _down(*args, **kwargs):
        raise RedisConnectionError("down")

    monkeypatch.setattr(fake_redis, "pipeline", _down)

    result = await service.search_nearby("viewer", *CENTER, 1000)

    assert result.unavailable
    assert result.items == []
