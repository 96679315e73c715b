"""Connection request lifecycle: pending -> accepted | rejected."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

import ulid

from linkme.domain.connections import audit, policy
from linkme.domain.connections.models import (
	DECISION_STATUS,
	Connection,
	ConnectionStatus,
	ConnectionView,
	Decision,
	MeetupProposal,
)
from linkme.domain.errors import (
	ConnectionNotFound,
	DuplicateConnection,
	InvalidInput,
	InvalidTransition,
	NoVisibleProfile,
)
from linkme.domain.profiles.models import VISIBLE_IN, ProfileVariant, ViewContext
from linkme.domain.profiles.resolver import group_by_user, resolve
from linkme.infra.store import get_store

logger = logging.getLogger(__name__)


async def create_connection_request(
	from_user: str,
	to_user: str,
	variant: ProfileVariant,
	message: str,
	meetup: Optional[MeetupProposal] = None,
) -> Connection:
	from_user, to_user = str(from_user), str(to_user)
	policy.guard_not_self(from_user, to_user)
	text = policy.guard_message(message)
	policy.guard_meetup(meetup)
	try:
		variant = ProfileVariant(variant)
	except ValueError as exc:
		raise InvalidInput("invalid_variant") from exc
	await policy.enforce_request_limits(from_user)

	now = datetime.now(timezone.utc)
	connection = Connection(
		id=str(ulid.new()),
		from_user=from_user,
		to_user=to_user,
		profile_variant=variant,
		message=text,
		status=ConnectionStatus.PENDING,
		created_at=now,
		updated_at=now,
		proposed_meetup=meetup,
	)
	try:
		saved = await get_store().insert_connection(connection, reject_duplicates=policy.rejects_duplicates())
	except DuplicateConnection as exc:
		audit.inc_request(exc.reason)
		raise
	audit.inc_request("ok")
	await audit.log_connection_event(
		"connection_requested",
		{
			"connection_id": saved.id,
			"from_user": saved.from_user,
			"to_user": saved.to_user,
			"variant": saved.profile_variant.value,
			"with_meetup": "1" if saved.proposed_meetup else "0",
		},
	)
	return saved


async def respond_to_connection(
	connection_id: str,
	decision: Decision,
	actor_id: Optional[str] = None,
) -> Connection:
	"""Move a pending connection to accepted or rejected.

	Exactly one response can ever succeed; later or concurrent ones raise
	InvalidTransition. With ``actor_id`` only the recipient may respond.
	"""
	try:
		decision = Decision(decision)
	except ValueError as exc:
		raise InvalidInput("invalid_decision") from exc

	store = get_store()
	if actor_id is not None:
		current = await store.get_connection(str(connection_id))
		if current is None:
			audit.inc_transition(decision.value, "not_found")
			raise ConnectionNotFound()
		policy.guard_recipient(current, actor_id)

	try:
		updated = await store.update_connection_status(str(connection_id), DECISION_STATUS[decision])
	except (ConnectionNotFound, InvalidTransition) as exc:
		audit.inc_transition(decision.value, exc.reason)
		raise
	audit.inc_transition(decision.value, "ok")
	await audit.log_connection_event(
		f"connection_{updated.status.value}",
		{"connection_id": updated.id, "from_user": updated.from_user, "to_user": updated.to_user},
	)
	return updated


async def get_connection_for_party(connection_id: str, user_id: str) -> Connection:
	connection = await get_store().get_connection(str(connection_id))
	if connection is None:
		raise ConnectionNotFound()
	policy.guard_party(connection, user_id)
	return connection


async def get_connections_for_user(user_id: str) -> List[ConnectionView]:
	"""Every connection the user is part of, newest first, with the peer hydrated."""
	store = get_store()
	connections = await store.list_connections_for_user(str(user_id))
	if not connections:
		return []
	peer_ids = sorted({connection.peer_of(user_id) for connection in connections})
	users = await store.get_users(peer_ids)
	profiles = group_by_user(await store.list_profiles(peer_ids, sorted(VISIBLE_IN[ViewContext.CONNECTION])))

	views: List[ConnectionView] = []
	for connection in connections:
		peer_id = connection.peer_of(user_id)
		try:
			peer_profile = resolve(
				profiles.get(peer_id, []),
				connection.profile_variant,
				ViewContext.CONNECTION,
			)
		except NoVisibleProfile:
			peer_profile = None
		views.append(ConnectionView(connection=connection, peer=users.get(peer_id), peer_profile=peer_profile))
	return views
