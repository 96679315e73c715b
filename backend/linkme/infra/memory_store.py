"""In-process store used for demos and tests."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import ulid

from linkme.domain.chat.models import Message
from linkme.domain.connections.models import Connection, ConnectionStatus, is_gate_open
from linkme.domain.errors import (
	ConnectionAlreadyAccepted,
	ConnectionAlreadyPending,
	ConnectionNotFound,
	GateClosed,
	InvalidInput,
	InvalidTransition,
)
from linkme.domain.identity.models import UserRecord
from linkme.domain.profiles.models import ProfileRecord, ProfileVariant, Visibility
from linkme.domain.proximity.distance import BoundingBox
from linkme.domain.proximity.models import LocationRecord


def _now() -> datetime:
	return datetime.now(timezone.utc)


class MemoryStore:
	"""Dict-backed store; a single lock makes every read-modify-write atomic."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._users: Dict[str, UserRecord] = {}
		self._locations: Dict[str, LocationRecord] = {}
		self._profiles: Dict[Tuple[str, ProfileVariant], ProfileRecord] = {}
		self._connections: Dict[str, Connection] = {}
		self._messages: Dict[str, List[Message]] = {}

	def _require_users(self, *user_ids: str) -> None:
		# Mirrors the foreign keys of the SQL schema.
		if any(str(uid) not in self._users for uid in user_ids):
			raise InvalidInput("unknown_user")

	async def ping(self) -> None:
		return None

	async def list_locations_near(self, box: BoundingBox) -> List[LocationRecord]:
		async with self._lock:
			return [loc for loc in self._locations.values() if box.contains(loc.latitude, loc.longitude)]

	async def upsert_location(self, record: LocationRecord) -> LocationRecord:
		async with self._lock:
			self._require_users(record.user_id)
			self._locations[record.user_id] = record
			return record

	async def get_users(self, user_ids: Sequence[str]) -> Dict[str, UserRecord]:
		async with self._lock:
			return {uid: self._users[uid] for uid in {str(u) for u in user_ids} if uid in self._users}

	async def upsert_user(self, record: UserRecord) -> UserRecord:
		async with self._lock:
			self._users[record.id] = record
			return record

	async def list_profiles(
		self, user_ids: Sequence[str], visibility_in: Sequence[Visibility]
	) -> List[ProfileRecord]:
		wanted_users = {str(uid) for uid in user_ids}
		wanted_visibility = set(visibility_in)
		async with self._lock:
			return [
				profile
				for profile in self._profiles.values()
				if profile.user_id in wanted_users and profile.visibility in wanted_visibility
			]

	async def list_profiles_for_user(self, user_id: str) -> List[ProfileRecord]:
		async with self._lock:
			return [profile for (owner, _), profile in self._profiles.items() if owner == str(user_id)]

	async def upsert_profile(self, record: ProfileRecord) -> ProfileRecord:
		async with self._lock:
			self._require_users(record.user_id)
			key = (record.user_id, record.variant)
			existing = self._profiles.get(key)
			if existing is not None and existing.id != record.id:
				record = replace(record, id=existing.id)
			self._profiles[key] = record
			return record

	async def get_connection(self, connection_id: str) -> Optional[Connection]:
		async with self._lock:
			return self._connections.get(str(connection_id))

	async def insert_connection(self, connection: Connection, *, reject_duplicates: bool) -> Connection:
		async with self._lock:
			self._require_users(connection.from_user, connection.to_user)
			if reject_duplicates:
				pair = {connection.from_user, connection.to_user}
				statuses = {c.status for c in self._connections.values() if {c.from_user, c.to_user} == pair}
				if ConnectionStatus.ACCEPTED in statuses:
					raise ConnectionAlreadyAccepted()
				if ConnectionStatus.PENDING in statuses:
					raise ConnectionAlreadyPending()
			self._connections[connection.id] = connection
			return connection

	async def update_connection_status(self, connection_id: str, status: ConnectionStatus) -> Connection:
		async with self._lock:
			current = self._connections.get(str(connection_id))
			if current is None:
				raise ConnectionNotFound()
			if current.status is not ConnectionStatus.PENDING:
				raise InvalidTransition()
			updated = current.with_status(status, _now())
			self._connections[current.id] = updated
			return updated

	async def list_connections_for_user(self, user_id: str) -> List[Connection]:
		async with self._lock:
			rows = [conn for conn in self._connections.values() if conn.involves(user_id)]
		return sorted(rows, key=lambda c: (c.updated_at, c.id), reverse=True)

	async def append_message(self, connection_id: str, sender_id: str, text: str) -> Message:
		async with self._lock:
			connection = self._connections.get(str(connection_id))
			if connection is None:
				raise ConnectionNotFound()
			if not is_gate_open(connection):
				raise GateClosed()
			message = Message(
				id=str(ulid.new()),
				connection_id=connection.id,
				sender_id=str(sender_id),
				text=text,
				created_at=_now(),
			)
			self._messages.setdefault(connection.id, []).append(message)
			return message

	async def list_messages(self, connection_id: str) -> List[Message]:
		async with self._lock:
			messages = list(self._messages.get(str(connection_id), []))
		# Stable sort keeps append order for equal timestamps.
		return sorted(messages, key=lambda m: m.created_at)
