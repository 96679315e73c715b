"""REST API surface for profiles and identity sync."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import BaseModel

from linkme.domain.identity import service as identity_service
from linkme.domain.identity.schemas import UserSummary, UserSyncRequest
from linkme.domain.profiles import service
from linkme.domain.profiles.models import ProfileVariant
from linkme.domain.profiles.schemas import ProfileOut, ProfileUpsert
from linkme.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["profiles"])


class UserSyncResponse(BaseModel):
    user: UserSummary
    created_profiles: List[ProfileOut]


@router.post("/users/sync", response_model=UserSyncResponse)
async def sync_user(
    payload: UserSyncRequest,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> UserSyncResponse:
    user, created = await identity_service.sync_user(
        auth_user.id,
        payload.email,
        name=payload.name or auth_user.name,
        avatar_url=payload.avatar_url,
    )
    return UserSyncResponse(
        user=UserSummary.from_record(user),
        created_profiles=[ProfileOut.from_record(profile) for profile in created],
    )


@router.get("/profiles/me", response_model=List[ProfileOut])
async def list_my_profiles(auth_user: AuthenticatedUser = Depends(get_current_user)) -> List[ProfileOut]:
    return [ProfileOut.from_record(profile) for profile in await service.list_own_profiles(auth_user.id)]


@router.get("/profiles/me/{variant}", response_model=ProfileOut)
async def get_my_profile(
    variant: ProfileVariant,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ProfileOut:
    profile = await service.get_own_profile(auth_user.id, variant)
    if profile is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="profile_not_found")
    return ProfileOut.from_record(profile)


@router.put("/profiles/me", response_model=ProfileOut)
async def put_my_profile(
    payload: ProfileUpsert = Body(...),
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ProfileOut:
    profile = await service.upsert_profile(auth_user.id, payload)
    return ProfileOut.from_record(profile)


@router.get("/profiles/{user_id}", response_model=ProfileOut)
async def get_profile(
    user_id: str,
    variant: Optional[ProfileVariant] = Query(default=None),
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ProfileOut:
    profile = await service.resolve_profile(user_id, variant, viewer_id=auth_user.id)
    return ProfileOut.from_record(profile)
