"""Gate-checked messaging on accepted connections."""

from __future__ import annotations

import logging
from typing import List, Optional

from redis.exceptions import RedisError

from linkme.domain.chat.models import Message
from linkme.domain.connections import policy
from linkme.domain.errors import ConnectionNotFound, GateClosed, InvalidInput
from linkme.infra.redis import redis_client
from linkme.infra.store import get_store
from linkme.obs import metrics as obs_metrics
from linkme.settings import settings

logger = logging.getLogger(__name__)

MESSAGE_STREAM = "x:messages.events"


def _validate_text(text: Optional[str]) -> str:
	if text is None or not text.strip():
		raise InvalidInput("empty_message")
	if len(text) > settings.message_max_length:
		raise InvalidInput("message_too_long")
	return text


async def _log_message_event(message: Message) -> None:
	try:
		await redis_client.xadd(
			MESSAGE_STREAM,
			{"event": "message_sent", "connection_id": message.connection_id, "message_id": message.id},
		)
	except RedisError:
		obs_metrics.inc_audit_failure(MESSAGE_STREAM)
		logger.warning("audit append failed event=message_sent", exc_info=True)


async def send_message(connection_id: str, sender_id: str, text: str) -> Message:
	"""Append a message; only parties of an accepted connection may write."""
	text = _validate_text(text)
	store = get_store()
	connection = await store.get_connection(str(connection_id))
	if connection is None:
		raise ConnectionNotFound()
	policy.guard_party(connection, sender_id)
	try:
		# The store re-checks the gate atomically with the insert.
		message = await store.append_message(connection.id, str(sender_id), text)
	except GateClosed:
		obs_metrics.inc_message_gate_rejected()
		raise
	obs_metrics.inc_message_sent()
	await _log_message_event(message)
	return message


async def list_messages(connection_id: str, viewer_id: Optional[str] = None) -> List[Message]:
	store = get_store()
	connection = await store.get_connection(str(connection_id))
	if connection is None:
		raise ConnectionNotFound()
	if viewer_id is not None:
		policy.guard_party(connection, viewer_id)
	return await store.list_messages(connection.id)
