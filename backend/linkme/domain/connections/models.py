"""Domain models for connection requests."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from linkme.domain.identity.models import UserRecord
from linkme.domain.profiles.models import ProfileRecord, ProfileVariant


class ConnectionStatus(str, Enum):
	"""Supported connection statuses."""

	PENDING = "pending"
	ACCEPTED = "accepted"
	REJECTED = "rejected"


class Decision(str, Enum):
	ACCEPT = "accept"
	REJECT = "reject"


DECISION_STATUS = {
	Decision.ACCEPT: ConnectionStatus.ACCEPTED,
	Decision.REJECT: ConnectionStatus.REJECTED,
}

TERMINAL_STATUSES = frozenset({ConnectionStatus.ACCEPTED, ConnectionStatus.REJECTED})


@dataclass(frozen=True, slots=True)
class MeetupProposal:
	place_name: str
	latitude: float
	longitude: float
	note: str = ""

	def to_dict(self) -> dict:
		return asdict(self)

	@classmethod
	def from_dict(cls, data) -> "MeetupProposal":
		if isinstance(data, str):
			data = json.loads(data)
		return cls(
			place_name=data["place_name"],
			latitude=float(data.get("latitude", data.get("lat"))),
			longitude=float(data.get("longitude", data.get("lng"))),
			note=data.get("note") or "",
		)


@dataclass(slots=True)
class Connection:
	"""A directional connection request between two users."""

	id: str
	from_user: str
	to_user: str
	profile_variant: ProfileVariant
	message: str
	status: ConnectionStatus
	created_at: datetime
	updated_at: datetime
	proposed_meetup: Optional[MeetupProposal] = None

	def peer_of(self, user_id: str) -> str:
		return self.to_user if self.from_user == str(user_id) else self.from_user

	def involves(self, user_id: str) -> bool:
		return str(user_id) in (self.from_user, self.to_user)

	def with_status(self, status: ConnectionStatus, updated_at: datetime) -> "Connection":
		return replace(self, status=status, updated_at=updated_at)

	@classmethod
	def from_record(cls, record) -> "Connection":
		meetup = record.get("proposed_meetup")
		return cls(
			id=str(record["id"]),
			from_user=str(record["from_user"]),
			to_user=str(record["to_user"]),
			profile_variant=ProfileVariant(record["profile_variant"]),
			message=record["message"],
			status=ConnectionStatus(record["status"]),
			created_at=record["created_at"],
			updated_at=record["updated_at"],
			proposed_meetup=MeetupProposal.from_dict(meetup) if meetup else None,
		)


def is_gate_open(connection: Connection) -> bool:
	"""Messaging is allowed only on accepted connections."""
	return connection.status is ConnectionStatus.ACCEPTED


@dataclass(slots=True)
class ConnectionView:
	"""A connection as seen by one of its parties."""

	connection: Connection
	peer: Optional[UserRecord] = None
	peer_profile: Optional[ProfileRecord] = None
