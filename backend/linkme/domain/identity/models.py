"""User identity records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class UserRecord:
	"""Identity of a person as shown next to a profile."""

	id: str
	email: str
	name: str
	avatar_url: Optional[str] = None
	last_active: Optional[datetime] = None

	@classmethod
	def from_record(cls, record) -> "UserRecord":
		return cls(
			id=str(record["id"]),
			email=record["email"],
			name=record["name"],
			avatar_url=record.get("avatar_url"),
			last_active=record.get("last_active"),
		)
