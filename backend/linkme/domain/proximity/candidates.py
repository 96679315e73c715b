"""Bounding-box prefilter plus exact haversine refinement."""

from __future__ import annotations

from typing import Iterable, List, Optional

from linkme.domain.proximity.distance import BoundingBox, bounding_box, haversine_meters
from linkme.domain.proximity.models import Candidate, LocationRecord


def select_candidates(
	locations: Iterable[LocationRecord],
	center_lat: float,
	center_lng: float,
	radius_m: float,
	*,
	exclude_user_id: Optional[str] = None,
	box: Optional[BoundingBox] = None,
) -> List[Candidate]:
	"""Return locations within ``radius_m`` of the center with their exact distance.

	The box is re-applied here so an over-inclusive store result is harmless.
	"""
	box = box or bounding_box(center_lat, center_lng, radius_m)
	selected: List[Candidate] = []
	for location in locations:
		if exclude_user_id is not None and location.user_id == str(exclude_user_id):
			continue
		if not box.contains(location.latitude, location.longitude):
			continue
		distance_m = haversine_meters(center_lat, center_lng, location.latitude, location.longitude)
		if distance_m > radius_m:
			continue
		selected.append(Candidate(user_id=location.user_id, location=location, distance_m=distance_m))
	return selected
