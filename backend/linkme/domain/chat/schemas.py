"""Pydantic schemas for connection messages."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from linkme.domain.chat.models import Message


class SendMessageRequest(BaseModel):
	text: str


class MessageOut(BaseModel):
	id: str
	connection_id: str
	sender_id: str
	text: str
	created_at: datetime

	@classmethod
	def from_record(cls, message: Message) -> "MessageOut":
		return cls(
			id=message.id,
			connection_id=message.connection_id,
			sender_id=message.sender_id,
			text=message.text,
			created_at=message.created_at,
		)
