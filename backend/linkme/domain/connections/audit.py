"""Audit helpers for connection lifecycle events."""

from __future__ import annotations

import logging
from typing import Dict

from redis.exceptions import RedisError

from linkme.infra.redis import redis_client
from linkme.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

CONNECTION_STREAM = "x:connections.events"


async def log_connection_event(event: str, fields: Dict[str, str]) -> None:
	"""Append to the audit stream; the write it describes is already committed."""
	payload = {"event": event, **fields}
	try:
		await redis_client.xadd(CONNECTION_STREAM, payload)
	except RedisError:
		obs_metrics.inc_audit_failure(CONNECTION_STREAM)
		logger.warning("audit append failed event=%s", event, exc_info=True)


def inc_request(result: str) -> None:
	obs_metrics.inc_connection_request(result)


def inc_transition(decision: str, outcome: str) -> None:
	obs_metrics.inc_connection_transition(decision, outcome)
