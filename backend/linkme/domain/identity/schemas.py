"""Pydantic schemas for identity sync."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from linkme.domain.identity.models import UserRecord


class UserSyncRequest(BaseModel):
	email: str = Field(..., min_length=3, max_length=320)
	name: Optional[str] = Field(default=None, max_length=120)
	avatar_url: Optional[str] = Field(default=None, max_length=2048)


class UserSummary(BaseModel):
	"""Public identity shown next to a profile; email is never exposed."""

	id: str
	name: str
	avatar_url: Optional[str] = None
	last_active: Optional[datetime] = None

	@classmethod
	def from_record(cls, user: UserRecord) -> "UserSummary":
		return cls(id=user.id, name=user.name, avatar_url=user.avatar_url, last_active=user.last_active)
