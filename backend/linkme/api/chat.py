"""REST API surface for messages on accepted connections."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from linkme.domain.chat import service
from linkme.domain.chat.schemas import MessageOut, SendMessageRequest
from linkme.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/connections", tags=["chat"])


@router.post("/{connection_id}/messages", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
async def send_message(
    connection_id: str,
    payload: SendMessageRequest,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> MessageOut:
    message = await service.send_message(connection_id, auth_user.id, payload.text)
    return MessageOut.from_record(message)


@router.get("/{connection_id}/messages", response_model=List[MessageOut])
async def list_messages(
    connection_id: str,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> List[MessageOut]:
    messages = await service.list_messages(connection_id, viewer_id=auth_user.id)
    return [MessageOut.from_record(message) for message in messages]
