"""REST API surface for proximity features."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from linkme.domain.proximity import service
from linkme.domain.proximity.schemas import LocationOut, LocationUpdate, NearbyResponse
from linkme.infra.auth import AuthenticatedUser, get_current_user
from linkme.settings import settings

router = APIRouter(prefix="/proximity", tags=["proximity"])


@router.get("/nearby", response_model=NearbyResponse)
async def nearby(
    lat: float = Query(...),
    lng: float = Query(...),
    radius_m: Optional[int] = Query(default=None),
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> NearbyResponse:
    radius = settings.proximity_default_radius_m if radius_m is None else radius_m
    # A store outage comes back as a 200 with unavailable=true, never a partial list.
    result = await service.search_nearby(auth_user.id, lat, lng, radius)
    return NearbyResponse.from_result(result)


@router.post("/location", response_model=LocationOut)
async def update_location(
    payload: LocationUpdate,
    auth_user: AuthenticatedUser = Depends(get_current_user),
) -> LocationOut:
    record = await service.update_location(auth_user.id, payload.lat, payload.lng)
    return LocationOut.from_record(record)
