"""Storage collaborator interface and process-wide store selection.

The core only talks to a ``Store``. ``PostgresStore`` is the production backend and
``MemoryStore`` the demo/test one; both must honour the same contract:

- ``update_connection_status`` is a compare-and-set from ``pending``.
- ``append_message`` checks the gate and inserts in one atomic step.
- Transport failures and timeouts surface as ``DataUnavailable``.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol, Sequence

from linkme.domain.chat.models import Message
from linkme.domain.connections.models import Connection, ConnectionStatus
from linkme.domain.identity.models import UserRecord
from linkme.domain.profiles.models import ProfileRecord, Visibility
from linkme.domain.proximity.distance import BoundingBox
from linkme.domain.proximity.models import LocationRecord
from linkme.settings import settings

logger = logging.getLogger(__name__)


class Store(Protocol):
	async def ping(self) -> None: ...

	async def list_locations_near(self, box: BoundingBox) -> List[LocationRecord]: ...

	async def upsert_location(self, record: LocationRecord) -> LocationRecord: ...

	async def get_users(self, user_ids: Sequence[str]) -> Dict[str, UserRecord]: ...

	async def upsert_user(self, record: UserRecord) -> UserRecord: ...

	async def list_profiles(
		self, user_ids: Sequence[str], visibility_in: Sequence[Visibility]
	) -> List[ProfileRecord]: ...

	async def list_profiles_for_user(self, user_id: str) -> List[ProfileRecord]: ...

	async def upsert_profile(self, record: ProfileRecord) -> ProfileRecord: ...

	async def get_connection(self, connection_id: str) -> Optional[Connection]: ...

	async def insert_connection(self, connection: Connection, *, reject_duplicates: bool) -> Connection: ...

	async def update_connection_status(self, connection_id: str, status: ConnectionStatus) -> Connection: ...

	async def list_connections_for_user(self, user_id: str) -> List[Connection]: ...

	async def append_message(self, connection_id: str, sender_id: str, text: str) -> Message: ...

	async def list_messages(self, connection_id: str) -> List[Message]: ...


_store: Optional[Store] = None


def _build_default_store() -> Store:
	if settings.store_backend == "memory":
		from linkme.infra.memory_store import MemoryStore

		logger.warning("using in-memory store; data is lost on restart")
		return MemoryStore()
	from linkme.infra.postgres_store import PostgresStore

	return PostgresStore()


def get_store() -> Store:
	global _store
	if _store is None:
		_store = _build_default_store()
	return _store


def set_store(store: Optional[Store]) -> None:
	global _store
	_store = store
