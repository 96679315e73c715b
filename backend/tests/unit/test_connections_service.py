import asyncio

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError

from linkme.domain.connections import service
from linkme.domain.connections.audit import CONNECTION_STREAM
from linkme.domain.connections.models import ConnectionStatus, Decision, MeetupProposal
from linkme.domain.errors import (
    ConnectionAlreadyAccepted,
    ConnectionAlreadyPending,
    ConnectionForbidden,
    ConnectionNotFound,
    DataUnavailable,
    InvalidInput,
    InvalidTransition,
    RateLimited,
)
from linkme.domain.profiles.models import ProfileVariant
from linkme.settings import settings


@pytest_asyncio.fixture
async def pair(seed):
    await seed.user("alice")
    await seed.user("bob")
    return "alice", "bob"


async def _request(from_user="alice", to_user="bob", **kwargs):
    return await service.create_connection_request(
        from_user, to_user, ProfileVariant.PROFESSIONAL, kwargs.pop("message", "Coffee?"), **kwargs
    )


@pytest.mark.asyncio
async def test_new_request_starts_pending(pair):
    connection = await _request()

    assert connection.status is ConnectionStatus.PENDING
    assert connection.from_user == "alice"
    assert connection.to_user == "bob"
    assert connection.created_at == connection.updated_at


@pytest.mark.asyncio
async def test_request_carries_meetup(pair):
    meetup = MeetupProposal(place_name="Blue Bottle", latitude=40.7, longitude=-74.0, note="10am")

    connection = await _request(meetup=meetup)

    assert connection.proposed_meetup == meetup


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs,reason",
    [
        ({"to_user": "alice"}, "self_connection"),
        ({"message": "   "}, "empty_message"),
        ({"message": "x" * 501}, "message_too_long"),
        ({"meetup": MeetupProposal(place_name="Nowhere", latitude=95.0, longitude=0.0)}, "invalid_meetup"),
    ],
)
async def test_invalid_requests_rejected(pair, kwargs, reason):
    with pytest.raises(InvalidInput) as exc_info:
        await _request(**kwargs)
    assert exc_info.value.reason == reason


@pytest.mark.asyncio
async def test_accept_then_reject_fails(pair):
    connection = await _request()

    accepted = await service.respond_to_connection(connection.id, Decision.ACCEPT)
    assert accepted.status is ConnectionStatus.ACCEPTED
    assert accepted.updated_at >= connection.updated_at

    with pytest.raises(InvalidTransition):
        await service.respond_to_connection(connection.id, Decision.REJECT)
    with pytest.raises(InvalidTransition):
        await service.respond_to_connection(connection.id, Decision.ACCEPT)


@pytest.mark.asyncio
async def test_rejected_is_terminal(pair):
    connection = await _request()

    await service.respond_to_connection(connection.id, "reject")

    with pytest.raises(InvalidTransition):
        await service.respond_to_connection(connection.id, "accept")


@pytest.mark.asyncio
async def test_concurrent_responses_have_one_winner(pair):
    connection = await _request()

    results = await asyncio.gather(
        service.respond_to_connection(connection.id, Decision.ACCEPT),
        service.respond_to_connection(connection.id, Decision.REJECT),
        return_exceptions=True,
    )

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, InvalidTransition)]
    assert len(winners) == 1
    assert len(losers) == 1


@pytest.mark.asyncio
async def test_unknown_connection_not_found(pair):
    with pytest.raises(ConnectionNotFound):
        await service.respond_to_connection("missing", Decision.ACCEPT)
    with pytest.raises(ConnectionNotFound):
        await service.respond_to_connection("missing", Decision.ACCEPT, actor_id="bob")


@pytest.mark.asyncio
async def test_only_recipient_may_respond(pair):
    connection = await _request()

    with pytest.raises(ConnectionForbidden):
        await service.respond_to_connection(connection.id, Decision.ACCEPT, actor_id="alice")

    accepted = await service.respond_to_connection(connection.id, Decision.ACCEPT, actor_id="bob")
    assert accepted.status is ConnectionStatus.ACCEPTED


@pytest.mark.asyncio
async def test_invalid_decision(pair):
    connection = await _request()

    with pytest.raises(InvalidInput):
        await service.respond_to_connection(connection.id, "maybe")


@pytest.mark.asyncio
async def test_duplicate_pending_rejected_in_either_direction(pair):
    await _request()

    with pytest.raises(ConnectionAlreadyPending):
        await _request()
    with pytest.raises(ConnectionAlreadyPending):
        await _request(from_user="bob", to_user="alice")


@pytest.mark.asyncio
async def test_duplicate_after_accept_rejected(pair):
    connection = await _request()
    await service.respond_to_connection(connection.id, Decision.ACCEPT)

    with pytest.raises(ConnectionAlreadyAccepted):
        await _request(from_user="bob", to_user="alice")


@pytest.mark.asyncio
async def test_new_request_allowed_after_rejection(pair):
    connection = await _request()
    await service.respond_to_connection(connection.id, Decision.REJECT)

    again = await _request()

    assert again.id != connection.id
    assert again.status is ConnectionStatus.PENDING


@pytest.mark.asyncio
async def test_allow_policy_skips_duplicate_check(pair, monkeypatch):
    monkeypatch.setattr(settings, "connection_duplicate_policy", "allow")

    first = await _request()
    second = await _request()

    assert first.id != second.id


@pytest.mark.asyncio
async def test_unknown_recipient(pair):
    with pytest.raises(InvalidInput) as exc_info:
        await _request(to_user="nobody")
    assert exc_info.value.reason == "unknown_user"


@pytest.mark.asyncio
async def test_requests_are_rate_limited(seed, monkeypatch):
    monkeypatch.setattr(settings, "connection_requests_per_minute", 2)
    await seed.user("alice")
    for name in ("bob", "carol", "dave"):
        await seed.user(name)

    await _request(to_user="bob")
    await _request(to_user="carol")
    with pytest.raises(RateLimited):
        await _request(to_user="dave")


@pytest.mark.asyncio
async def test_connections_listed_newest_first_with_peer(seed):
    await seed.user("alice")
    await seed.user("bob", name="Bob")
    await seed.profile("bob", "professional", "nearby")
    await seed.user("carol")
    await seed.profile("carol", "professional", "private")

    to_bob = await _request(to_user="bob")
    to_carol = await _request(to_user="carol")
    await service.respond_to_connection(to_bob.id, Decision.ACCEPT)

    views = await service.get_connections_for_user("alice")

    assert [v.connection.id for v in views] == [to_bob.id, to_carol.id]
    bob_view, carol_view = views
    assert bob_view.peer.name == "Bob"
    assert bob_view.peer_profile.user_id == "bob"
    assert carol_view.peer.id == "carol"
    assert carol_view.peer_profile is None


@pytest.mark.asyncio
async def test_peer_profile_follows_requested_variant(seed):
    await seed.user("alice")
    await seed.profile("alice", "professional", "public")
    await seed.profile("alice", "personal", "public")
    await seed.user("bob")
    await service.create_connection_request("alice", "bob", ProfileVariant.PERSONAL, "Hi")

    (view,) = await service.get_connections_for_user("bob")

    assert view.peer.id == "alice"
    assert view.peer_profile.variant is ProfileVariant.PERSONAL


@pytest.mark.asyncio
async def test_no_connections(pair):
    assert await service.get_connections_for_user("alice") == []


@pytest.mark.asyncio
async def test_lifecycle_events_are_audited(pair, fake_redis):
    connection = await _request()
    await service.respond_to_connection(connection.id, Decision.ACCEPT)

    entries = await fake_redis.xrange(CONNECTION_STREAM)

    assert [fields["event"] for _, fields in entries] == ["connection_requested", "connection_accepted"]


@pytest.mark.asyncio
async def test_request_fails_cleanly_when_rate_limiter_is_down(pair, fake_redis, monkeypatch):
    def _down(*args, **kwargs):
        raise RedisConnectionError("down")

    monkeypatch.setattr(fake_redis, "pipeline", _down)

    with pytest.raises(DataUnavailable):
        await _request()
