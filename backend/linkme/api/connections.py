"""REST API surface for connection requests."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from linkme.domain.connections import service
from linkme.domain.connections.models import ConnectionView, Decision
from linkme.domain.connections.schemas import (
    ConnectionCreateRequest,
    ConnectionOut,
    ConnectionRespondRequest,
)
from linkme.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/connections", tags=["connections"])


@router.post("", response_model=ConnectionOut, status_code=status.HTTP_201_CREATED)
async def create_connection(
    payload: ConnectionCreateRequest,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ConnectionOut:
    connection = await service.create_connection_request(
        auth_user.id,
        payload.to_user_id,
        payload.profile_variant,
        payload.message,
        meetup=payload.proposed_meetup.to_domain() if payload.proposed_meetup else None,
    )
    return ConnectionOut.from_view(ConnectionView(connection=connection))


@router.post("/{connection_id}/respond", response_model=ConnectionOut)
async def respond(
    connection_id: str,
    payload: ConnectionRespondRequest,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ConnectionOut:
    connection = await service.respond_to_connection(
        connection_id,
        Decision(payload.decision),
        actor_id=auth_user.id,
    )
    return ConnectionOut.from_view(ConnectionView(connection=connection))


@router.get("", response_model=List[ConnectionOut])
async def list_connections(auth_user: AuthenticatedUser = Depends(get_current_user)) -> List[ConnectionOut]:
    views = await service.get_connections_for_user(auth_user.id)
    return [ConnectionOut.from_view(view) for view in views]
