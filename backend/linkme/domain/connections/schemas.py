"""Pydantic schemas for connection requests."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from linkme.domain.connections.models import ConnectionStatus, ConnectionView, MeetupProposal
from linkme.domain.identity.schemas import UserSummary
from linkme.domain.profiles.models import ProfileVariant
from linkme.domain.profiles.schemas import ProfileOut


class MeetupPayload(BaseModel):
	place_name: str = Field(..., max_length=200)
	latitude: float
	longitude: float
	note: str = Field(default="", max_length=500)

	def to_domain(self) -> MeetupProposal:
		return MeetupProposal(
			place_name=self.place_name,
			latitude=self.latitude,
			longitude=self.longitude,
			note=self.note,
		)


class ConnectionCreateRequest(BaseModel):
	to_user_id: str = Field(..., min_length=1, description="Recipient of the request")
	profile_variant: ProfileVariant = Field(..., description="Which of the sender's profiles the request is made with")
	message: str
	proposed_meetup: Optional[MeetupPayload] = None


class ConnectionRespondRequest(BaseModel):
	decision: Literal["accept", "reject"]


class ConnectionOut(BaseModel):
	id: str
	from_user: str
	to_user: str
	profile_variant: ProfileVariant
	message: str
	status: ConnectionStatus
	proposed_meetup: Optional[MeetupPayload] = None
	created_at: datetime
	updated_at: datetime
	peer: Optional[UserSummary] = None
	peer_profile: Optional[ProfileOut] = None

	@classmethod
	def from_view(cls, view: ConnectionView) -> "ConnectionOut":
		connection = view.connection
		meetup = connection.proposed_meetup
		return cls(
			id=connection.id,
			from_user=connection.from_user,
			to_user=connection.to_user,
			profile_variant=connection.profile_variant,
			message=connection.message,
			status=connection.status,
			proposed_meetup=MeetupPayload(**meetup.to_dict()) if meetup else None,
			created_at=connection.created_at,
			updated_at=connection.updated_at,
			peer=UserSummary.from_record(view.peer) if view.peer else None,
			peer_profile=ProfileOut.from_record(view.peer_profile) if view.peer_profile else None,
		)
