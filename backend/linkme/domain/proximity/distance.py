"""Great-circle distance and bounding-box helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

EARTH_RADIUS_M = 6_371_000
# Under the true ~111,195 m per degree, so the box edges sit outside the disk.
METERS_PER_DEGREE = 111_000
# Below this cos(lat) the longitude delta is meaningless (poles).
_MIN_COS_LAT = 1e-9


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
	"""Return the great-circle distance between two points in meters."""

	phi1, phi2 = math.radians(lat1), math.radians(lat2)
	dphi = math.radians(lat2 - lat1)
	dlambda = math.radians(lon2 - lon1)
	a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
	a = min(1.0, max(0.0, a))
	return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass(frozen=True, slots=True)
class BoundingBox:
	"""Axis-aligned lat/lng rectangle around a radius disk.

	``lng_min``/``lng_max`` may fall outside [-180, 180] when the box crosses the
	antimeridian; ``full_longitude`` disables longitude filtering entirely.
	"""

	lat_min: float
	lat_max: float
	lng_min: float
	lng_max: float
	full_longitude: bool = False

	def longitude_ranges(self) -> List[Tuple[float, float]]:
		"""Longitude intervals in [-180, 180] covered by the box."""
		if self.full_longitude:
			return [(-180.0, 180.0)]
		if self.lng_min < -180.0:
			return [(-180.0, self.lng_max), (self.lng_min + 360.0, 180.0)]
		if self.lng_max > 180.0:
			return [(self.lng_min, 180.0), (-180.0, self.lng_max - 360.0)]
		return [(self.lng_min, self.lng_max)]

	def contains(self, lat: float, lng: float) -> bool:
		if lat < self.lat_min or lat > self.lat_max:
			return False
		return any(lo <= lng <= hi for lo, hi in self.longitude_ranges())


def bounding_box(center_lat: float, center_lng: float, radius_m: float) -> BoundingBox:
	lat_delta = radius_m / METERS_PER_DEGREE
	lat_min = max(-90.0, center_lat - lat_delta)
	lat_max = min(90.0, center_lat + lat_delta)

	cos_lat = math.cos(math.radians(center_lat))
	touches_pole = center_lat - lat_delta <= -90.0 or center_lat + lat_delta >= 90.0
	if cos_lat < _MIN_COS_LAT or touches_pole:
		return BoundingBox(lat_min, lat_max, -180.0, 180.0, full_longitude=True)

	# Widest longitude of a spherical cap: asin(sin(r) / cos(lat)). The angular
	# radius is the inflated lat_delta so the margin carries over to longitude.
	ratio = math.sin(math.radians(lat_delta)) / cos_lat
	if ratio >= 1.0:
		return BoundingBox(lat_min, lat_max, -180.0, 180.0, full_longitude=True)
	lng_delta = math.degrees(math.asin(ratio))
	return BoundingBox(lat_min, lat_max, center_lng - lng_delta, center_lng + lng_delta)


def round_meters(distance_m: float) -> int:
	"""Nearest whole meter, halves rounding up."""
	return int(math.floor(distance_m + 0.5))


def valid_coordinates(lat: float, lng: float) -> bool:
	try:
		lat_f, lng_f = float(lat), float(lng)
	except (TypeError, ValueError):
		return False
	if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
		return False
	return -90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0
