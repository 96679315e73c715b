"""Guard checks and limits for connection requests."""

from __future__ import annotations

import logging
from typing import Optional

from redis.exceptions import RedisError

from linkme.domain.connections.models import Connection, MeetupProposal
from linkme.domain.errors import ConnectionForbidden, DataUnavailable, InvalidInput, RateLimited
from linkme.domain.proximity.distance import valid_coordinates
from linkme.infra.rate_limit import allow
from linkme.obs import metrics as obs_metrics
from linkme.settings import settings

logger = logging.getLogger(__name__)


def guard_not_self(from_user: str, to_user: str) -> None:
	if str(from_user) == str(to_user):
		raise InvalidInput("self_connection")


def guard_message(message: Optional[str]) -> str:
	text = (message or "").strip()
	if not text:
		raise InvalidInput("empty_message")
	if len(text) > settings.connection_message_max_length:
		raise InvalidInput("message_too_long")
	return text


def guard_meetup(meetup: Optional[MeetupProposal]) -> None:
	if meetup is None:
		return
	if not meetup.place_name.strip():
		raise InvalidInput("invalid_meetup")
	if not valid_coordinates(meetup.latitude, meetup.longitude):
		raise InvalidInput("invalid_meetup")


def guard_recipient(connection: Connection, actor_id: str) -> None:
	if connection.to_user != str(actor_id):
		raise ConnectionForbidden()


def guard_party(connection: Connection, user_id: str) -> None:
	if not connection.involves(user_id):
		raise ConnectionForbidden()


def rejects_duplicates() -> bool:
	return settings.connection_duplicate_policy == "reject"


async def enforce_request_limits(user_id: str) -> None:
	try:
		allowed = await allow("connection:send", str(user_id), limit=settings.connection_requests_per_minute)
	except RedisError as exc:
		logger.warning("connection rate limit unavailable", exc_info=True)
		raise DataUnavailable() from exc
	if not allowed:
		obs_metrics.inc_rate_limited("connection_send")
		raise RateLimited()
