"""Pydantic schemas for proximity endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from linkme.domain.identity.schemas import UserSummary
from linkme.domain.profiles.schemas import ProfileOut
from linkme.domain.proximity.models import LocationRecord, NearbyMatch, NearbyResult


class LocationUpdate(BaseModel):
	"""Last known position reported by the client; range checks happen in the domain."""

	lat: float
	lng: float


class LocationOut(BaseModel):
	user_id: str
	latitude: float
	longitude: float
	updated_at: datetime

	@classmethod
	def from_record(cls, record: LocationRecord) -> "LocationOut":
		return cls(
			user_id=record.user_id,
			latitude=record.latitude,
			longitude=record.longitude,
			updated_at=record.updated_at,
		)


class NearbyItem(BaseModel):
	"""A nearby person: identity, the one surfaced profile, last position and rounded distance."""

	user: UserSummary
	profile: ProfileOut
	location: LocationOut
	distance_meters: int = Field(..., ge=0)

	@classmethod
	def from_match(cls, match: NearbyMatch) -> "NearbyItem":
		return cls(
			user=UserSummary.from_record(match.user),
			profile=ProfileOut.from_record(match.profile),
			location=LocationOut.from_record(match.location),
			distance_meters=match.distance_meters,
		)


class NearbyResponse(BaseModel):
	items: List[NearbyItem] = Field(default_factory=list)
	unavailable: bool = False
	error: Optional[str] = None

	@classmethod
	def from_result(cls, result: NearbyResult) -> "NearbyResponse":
		if result.unavailable:
			return cls(items=[], unavailable=True, error="data_unavailable")
		return cls(items=[NearbyItem.from_match(match) for match in result.items])
