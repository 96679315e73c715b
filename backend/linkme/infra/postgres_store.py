"""Postgres-backed store (asyncpg)."""

from __future__ import annotations

import asyncio
import functools
import json
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import asyncpg
import ulid

from linkme.domain.chat.models import Message
from linkme.domain.connections.models import Connection, ConnectionStatus
from linkme.domain.errors import (
	ConnectionAlreadyAccepted,
	ConnectionAlreadyPending,
	ConnectionNotFound,
	DataUnavailable,
	GateClosed,
	InvalidInput,
	InvalidTransition,
	LinkMeError,
)
from linkme.domain.identity.models import UserRecord
from linkme.domain.profiles.models import ProfileRecord, Visibility, details_to_dict
from linkme.domain.proximity.distance import BoundingBox
from linkme.domain.proximity.models import LocationRecord
from linkme.infra.postgres import get_pool
from linkme.settings import settings

logger = logging.getLogger(__name__)


def _guarded(func):
	"""Bound a store call by the configured timeout and normalise driver failures."""

	@functools.wraps(func)
	async def wrapper(self, *args, **kwargs):
		try:
			return await asyncio.wait_for(func(self, *args, **kwargs), timeout=settings.store_timeout_seconds)
		except LinkMeError:
			raise
		except asyncpg.ForeignKeyViolationError as exc:
			raise InvalidInput("unknown_user") from exc
		except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as exc:
			logger.warning("store call failed op=%s error=%s", func.__name__, exc.__class__.__name__)
			raise DataUnavailable() from exc

	return wrapper


def _pair_key(user_a: str, user_b: str) -> str:
	first, second = sorted((str(user_a), str(user_b)))
	return f"connection:{first}:{second}"


class PostgresStore:
	"""Store implementation on the shared asyncpg pool."""

	@_guarded
	async def ping(self) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute("SELECT 1")

	@_guarded
	async def list_locations_near(self, box: BoundingBox) -> List[LocationRecord]:
		params: list[object] = [box.lat_min, box.lat_max]
		clauses: list[str] = []
		for lo, hi in box.longitude_ranges():
			params.extend([lo, hi])
			clauses.append(f"(lng BETWEEN ${len(params) - 1} AND ${len(params)})")
		pool = await get_pool()
		rows = await pool.fetch(
			f"""
			SELECT user_id, lat, lng, updated_at
			FROM locations
			WHERE lat BETWEEN $1 AND $2
			  AND ({' OR '.join(clauses)})
			""",
			*params,
		)
		return [LocationRecord.from_record(row) for row in rows]

	@_guarded
	async def upsert_location(self, record: LocationRecord) -> LocationRecord:
		pool = await get_pool()
		row = await pool.fetchrow(
			"""
			INSERT INTO locations (user_id, lat, lng, updated_at)
			VALUES ($1, $2, $3, $4)
			ON CONFLICT (user_id)
			DO UPDATE SET lat = EXCLUDED.lat, lng = EXCLUDED.lng, updated_at = EXCLUDED.updated_at
			RETURNING user_id, lat, lng, updated_at
			""",
			record.user_id,
			record.latitude,
			record.longitude,
			record.updated_at,
		)
		return LocationRecord.from_record(row)

	@_guarded
	async def get_users(self, user_ids: Sequence[str]) -> Dict[str, UserRecord]:
		ids = list({str(uid) for uid in user_ids})
		if not ids:
			return {}
		pool = await get_pool()
		rows = await pool.fetch(
			"SELECT id, email, name, avatar_url, last_active FROM users WHERE id = ANY($1::text[])",
			ids,
		)
		return {str(row["id"]): UserRecord.from_record(row) for row in rows}

	@_guarded
	async def upsert_user(self, record: UserRecord) -> UserRecord:
		pool = await get_pool()
		row = await pool.fetchrow(
			"""
			INSERT INTO users (id, email, name, avatar_url, last_active)
			VALUES ($1, $2, $3, $4, $5)
			ON CONFLICT (id)
			DO UPDATE SET email = EXCLUDED.email,
				name = EXCLUDED.name,
				avatar_url = EXCLUDED.avatar_url,
				last_active = EXCLUDED.last_active
			RETURNING id, email, name, avatar_url, last_active
			""",
			record.id,
			record.email,
			record.name,
			record.avatar_url,
			record.last_active,
		)
		return UserRecord.from_record(row)

	@_guarded
	async def list_profiles(
		self, user_ids: Sequence[str], visibility_in: Sequence[Visibility]
	) -> List[ProfileRecord]:
		ids = list({str(uid) for uid in user_ids})
		if not ids or not visibility_in:
			return []
		pool = await get_pool()
		rows = await pool.fetch(
			"""
			SELECT id, user_id, variant, name, headline, bio, visibility, details
			FROM profiles
			WHERE user_id = ANY($1::text[]) AND visibility = ANY($2::text[])
			""",
			ids,
			[Visibility(v).value for v in visibility_in],
		)
		return [ProfileRecord.from_record(row) for row in rows]

	@_guarded
	async def list_profiles_for_user(self, user_id: str) -> List[ProfileRecord]:
		pool = await get_pool()
		rows = await pool.fetch(
			"""
			SELECT id, user_id, variant, name, headline, bio, visibility, details
			FROM profiles
			WHERE user_id = $1
			ORDER BY variant
			""",
			str(user_id),
		)
		return [ProfileRecord.from_record(row) for row in rows]

	@_guarded
	async def upsert_profile(self, record: ProfileRecord) -> ProfileRecord:
		pool = await get_pool()
		# The (user_id, variant) pair is the identity; an existing row keeps its id.
		row = await pool.fetchrow(
			"""
			INSERT INTO profiles (id, user_id, variant, name, headline, bio, visibility, details)
			VALUES ($1, $2, $3, $4, $5, $6, $7, $8::jsonb)
			ON CONFLICT (user_id, variant)
			DO UPDATE SET name = EXCLUDED.name,
				headline = EXCLUDED.headline,
				bio = EXCLUDED.bio,
				visibility = EXCLUDED.visibility,
				details = EXCLUDED.details,
				updated_at = NOW()
			RETURNING id, user_id, variant, name, headline, bio, visibility, details
			""",
			record.id,
			record.user_id,
			record.variant.value,
			record.name,
			record.headline,
			record.bio,
			record.visibility.value,
			json.dumps(details_to_dict(record.details)),
		)
		return ProfileRecord.from_record(row)

	@_guarded
	async def get_connection(self, connection_id: str) -> Optional[Connection]:
		pool = await get_pool()
		row = await pool.fetchrow("SELECT * FROM connections WHERE id = $1", str(connection_id))
		return Connection.from_record(row) if row else None

	@_guarded
	async def insert_connection(self, connection: Connection, *, reject_duplicates: bool) -> Connection:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				if reject_duplicates:
					# Serialise check-then-insert per unordered pair.
					await conn.execute(
						"SELECT pg_advisory_xact_lock(hashtext($1))",
						_pair_key(connection.from_user, connection.to_user),
					)
					existing = await conn.fetchval(
						"""
						SELECT status FROM connections
						WHERE ((from_user = $1 AND to_user = $2) OR (from_user = $2 AND to_user = $1))
						  AND status IN ('pending', 'accepted')
						ORDER BY (status = 'accepted') DESC
						LIMIT 1
						""",
						connection.from_user,
						connection.to_user,
					)
					if existing == ConnectionStatus.ACCEPTED.value:
						raise ConnectionAlreadyAccepted()
					if existing == ConnectionStatus.PENDING.value:
						raise ConnectionAlreadyPending()
				row = await conn.fetchrow(
					"""
					INSERT INTO connections
						(id, from_user, to_user, profile_variant, message, status, proposed_meetup, created_at, updated_at)
					VALUES ($1, $2, $3, $4, $5, $6, $7::jsonb, $8, $9)
					RETURNING *
					""",
					connection.id,
					connection.from_user,
					connection.to_user,
					connection.profile_variant.value,
					connection.message,
					connection.status.value,
					json.dumps(connection.proposed_meetup.to_dict()) if connection.proposed_meetup else None,
					connection.created_at,
					connection.updated_at,
				)
		return Connection.from_record(row)

	@_guarded
	async def update_connection_status(self, connection_id: str, status: ConnectionStatus) -> Connection:
		pool = await get_pool()
		async with pool.acquire() as conn:
			# Compare-and-set: concurrent accept/reject cannot both win.
			row = await conn.fetchrow(
				"""
				UPDATE connections
				SET status = $2, updated_at = NOW()
				WHERE id = $1 AND status = 'pending'
				RETURNING *
				""",
				str(connection_id),
				status.value,
			)
			if row is not None:
				return Connection.from_record(row)
			exists = await conn.fetchval("SELECT 1 FROM connections WHERE id = $1", str(connection_id))
		if not exists:
			raise ConnectionNotFound()
		raise InvalidTransition()

	@_guarded
	async def list_connections_for_user(self, user_id: str) -> List[Connection]:
		pool = await get_pool()
		rows = await pool.fetch(
			"""
			SELECT * FROM connections
			WHERE from_user = $1 OR to_user = $1
			ORDER BY updated_at DESC, id DESC
			""",
			str(user_id),
		)
		return [Connection.from_record(row) for row in rows]

	@_guarded
	async def append_message(self, connection_id: str, sender_id: str, text: str) -> Message:
		pool = await get_pool()
		async with pool.acquire() as conn:
			# Gate check and insert in one statement.
			row = await conn.fetchrow(
				"""
				INSERT INTO messages (id, connection_id, sender_id, text, created_at)
				SELECT $1, c.id, $3, $4, $5
				FROM connections c
				WHERE c.id = $2 AND c.status = 'accepted'
				RETURNING id, connection_id, sender_id, text, created_at
				""",
				str(ulid.new()),
				str(connection_id),
				str(sender_id),
				text,
				datetime.now(timezone.utc),
			)
			if row is not None:
				return Message.from_record(row)
			exists = await conn.fetchval("SELECT 1 FROM connections WHERE id = $1", str(connection_id))
		if not exists:
			raise ConnectionNotFound()
		raise GateClosed()

	@_guarded
	async def list_messages(self, connection_id: str) -> List[Message]:
		pool = await get_pool()
		rows = await pool.fetch(
			"""
			SELECT id, connection_id, sender_id, text, created_at
			FROM messages
			WHERE connection_id = $1
			ORDER BY created_at ASC, id ASC
			""",
			str(connection_id),
		)
		return [Message.from_record(row) for row in rows]
