"""Domain models for connection messages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Message:
	id: str
	connection_id: str
	sender_id: str
	text: str
	created_at: datetime

	@classmethod
	def from_record(cls, record) -> "Message":
		return cls(
			id=str(record["id"]),
			connection_id=str(record["connection_id"]),
			sender_id=str(record["sender_id"]),
			text=record["text"],
			created_at=record["created_at"],
		)

	def to_dict(self) -> dict:
		return {
			"id": self.id,
			"connection_id": self.connection_id,
			"sender_id": self.sender_id,
			"text": self.text,
			"created_at": self.created_at.isoformat(),
		}
