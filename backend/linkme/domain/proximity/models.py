"""Domain models used by the proximity service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from linkme.domain.identity.models import UserRecord
from linkme.domain.profiles.models import ProfileRecord


@dataclass(slots=True)
class LocationRecord:
	"""Last known position of a user; one per user."""

	user_id: str
	latitude: float
	longitude: float
	updated_at: datetime

	@classmethod
	def from_record(cls, record) -> "LocationRecord":
		return cls(
			user_id=str(record["user_id"]),
			latitude=float(record["lat"]),
			longitude=float(record["lng"]),
			updated_at=record["updated_at"],
		)


@dataclass(slots=True)
class Candidate:
	"""A location that survived the box prefilter and the exact distance check."""

	user_id: str
	location: LocationRecord
	distance_m: float


@dataclass(slots=True)
class NearbyMatch:
	user: UserRecord
	profile: ProfileRecord
	location: LocationRecord
	distance_meters: int


@dataclass(slots=True)
class NearbyResult:
	"""Outcome of a search: a complete list, or an explicit unavailable flag."""

	items: List[NearbyMatch] = field(default_factory=list)
	unavailable: bool = False
