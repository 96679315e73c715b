"""Health check helpers for liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Tuple

from linkme.domain.errors import DataUnavailable
from linkme.infra import postgres
from linkme.infra.redis import redis_client
from linkme.infra.store import get_store
from linkme.obs import metrics
from linkme.settings import settings

LOGGER = logging.getLogger(__name__)


async def _redis_status(timeout: float = 0.2) -> Dict[str, Any]:
	start = perf_counter()
	try:
		await asyncio.wait_for(redis_client.ping(), timeout=timeout)
	except Exception as exc:  # pragma: no cover - depends on runtime
		metrics.mark_redis(False)
		LOGGER.warning("Redis readiness check failed", exc_info=True)
		return {"ok": False, "error": str(exc)}
	latency = perf_counter() - start
	metrics.mark_redis(True, latency_seconds=latency)
	return {"ok": True, "latency_ms": round(latency * 1000, 2)}


async def _store_status() -> Dict[str, Any]:
	start = perf_counter()
	try:
		await get_store().ping()
	except DataUnavailable as exc:
		metrics.mark_store(False)
		LOGGER.warning("Store readiness check failed", exc_info=True)
		return {"ok": False, "error": exc.reason}
	latency = perf_counter() - start
	metrics.mark_store(True, latency_seconds=latency)
	return {"ok": True, "backend": settings.store_backend, "latency_ms": round(latency * 1000, 2)}


async def _migration_status(min_version: str) -> Dict[str, Any]:
	if settings.store_backend != "postgres":
		return {"ok": True, "skipped": True}
	try:
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			version = await conn.fetchval(
				"SELECT version FROM schema_migrations ORDER BY version DESC LIMIT 1"
			)
	except Exception as exc:  # pragma: no cover - optional table
		return {"ok": False, "error": str(exc)}
	if version is None:
		return {"ok": False, "error": "no_migrations"}
	current = str(version)
	return {"ok": current >= min_version, "version": current, "required": min_version}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	redis_state = await _redis_status()
	store_state = await _store_status()
	migration_state = await _migration_status(settings.health_min_migration)
	ok = redis_state.get("ok") and store_state.get("ok") and migration_state.get("ok")
	status_code = 200 if ok else 503
	return (
		status_code,
		{
			"status": "ok" if ok else "degraded",
			"checks": {
				"redis": redis_state,
				"store": store_state,
				"migrations": migration_state,
			},
		},
	)
