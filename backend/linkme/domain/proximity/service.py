"""Radius search and location updates."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from redis.exceptions import RedisError

from linkme.domain.errors import DataUnavailable, InvalidInput, NoVisibleProfile, RateLimited
from linkme.domain.profiles.models import VISIBLE_IN, ViewContext
from linkme.domain.profiles.resolver import group_by_user, resolve
from linkme.domain.proximity.candidates import select_candidates
from linkme.domain.proximity.distance import bounding_box, round_meters, valid_coordinates
from linkme.domain.proximity.models import LocationRecord, NearbyMatch, NearbyResult
from linkme.infra.rate_limit import allow
from linkme.infra.store import get_store
from linkme.obs import metrics as obs_metrics
from linkme.settings import settings

logger = logging.getLogger(__name__)


def validate_search(lat: float, lng: float, radius_m: int) -> None:
	if not valid_coordinates(lat, lng):
		raise InvalidInput("invalid_coordinates")
	if isinstance(radius_m, bool) or not isinstance(radius_m, int):
		raise InvalidInput("invalid_radius")
	if radius_m < 1 or radius_m > settings.proximity_max_radius_m:
		raise InvalidInput("invalid_radius")


async def search_nearby(viewer_id: str, lat: float, lng: float, radius_m: int) -> NearbyResult:
	"""Everyone within ``radius_m`` of the point who has a profile visible in search.

	Returns either the complete ranked list or ``unavailable=True`` with no items.
	"""
	validate_search(lat, lng, radius_m)
	try:
		allowed = await allow("nearby", str(viewer_id), limit=settings.nearby_per_minute)
	except RedisError:
		obs_metrics.inc_proximity_degraded()
		logger.warning("nearby degraded viewer=%s reason=rate_limit_unavailable", viewer_id, exc_info=True)
		return NearbyResult(items=[], unavailable=True)
	if not allowed:
		obs_metrics.inc_rate_limited("nearby")
		raise RateLimited()
	obs_metrics.inc_proximity_query(radius_m)

	store = get_store()
	box = bounding_box(lat, lng, radius_m)
	try:
		locations = await store.list_locations_near(box)
		candidates = select_candidates(locations, lat, lng, radius_m, exclude_user_id=viewer_id, box=box)
		user_ids = [candidate.user_id for candidate in candidates]
		profiles = await store.list_profiles(user_ids, sorted(VISIBLE_IN[ViewContext.SEARCH])) if user_ids else []
		users = await store.get_users(user_ids) if user_ids else {}
	except DataUnavailable:
		obs_metrics.inc_proximity_degraded()
		logger.warning("nearby degraded viewer=%s radius=%s", viewer_id, radius_m)
		return NearbyResult(items=[], unavailable=True)

	grouped = group_by_user(profiles)
	items: List[NearbyMatch] = []
	for candidate in candidates:
		try:
			profile = resolve(grouped.get(candidate.user_id, []), context=ViewContext.SEARCH)
		except NoVisibleProfile:
			if logger.isEnabledFor(logging.DEBUG):
				logger.debug("nearby skip uid=%s reason=no_visible_profile", candidate.user_id)
			continue
		user = users.get(candidate.user_id)
		if user is None:
			if logger.isEnabledFor(logging.DEBUG):
				logger.debug("nearby skip uid=%s reason=user_missing", candidate.user_id)
			continue
		items.append(
			NearbyMatch(
				user=user,
				profile=profile,
				location=candidate.location,
				distance_meters=round_meters(candidate.distance_m),
			)
		)
	items.sort(key=lambda match: (match.distance_meters, match.user.id))

	obs_metrics.observe_proximity_results(len(items))
	logger.info(
		"nearby query radius=%s candidates=%s returned=%s",
		radius_m,
		len(candidates),
		len(items),
	)
	return NearbyResult(items=items)


async def update_location(user_id: str, lat: float, lng: float) -> LocationRecord:
	if not valid_coordinates(lat, lng):
		raise InvalidInput("invalid_coordinates")
	record = LocationRecord(
		user_id=str(user_id),
		latitude=float(lat),
		longitude=float(lng),
		updated_at=datetime.now(timezone.utc),
	)
	saved = await get_store().upsert_location(record)
	obs_metrics.inc_location_update()
	return saved
