"""Pick the single profile to expose for a user in a given context."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from linkme.domain.errors import NoVisibleProfile
from linkme.domain.profiles.models import (
	VARIANT_PREFERENCE,
	ProfileRecord,
	ProfileVariant,
	ViewContext,
)


def resolve(
	profiles: Iterable[ProfileRecord],
	variant: Optional[ProfileVariant] = None,
	context: ViewContext = ViewContext.SEARCH,
) -> ProfileRecord:
	"""Return the visible profile for ``variant``, or the best available one.

	Raises NoVisibleProfile when nothing qualifies; search callers drop the user.
	"""
	visible: Dict[ProfileVariant, ProfileRecord] = {}
	for profile in profiles:
		if not profile.is_visible_in(context):
			continue
		# One record per variant is a store invariant; lowest id wins if it is broken.
		existing = visible.get(profile.variant)
		if existing is None or profile.id < existing.id:
			visible[profile.variant] = profile

	if variant is not None:
		selected = visible.get(ProfileVariant(variant))
		if selected is None:
			raise NoVisibleProfile()
		return selected

	for preferred in VARIANT_PREFERENCE:
		if preferred in visible:
			return visible[preferred]
	raise NoVisibleProfile()


def group_by_user(profiles: Iterable[ProfileRecord]) -> Dict[str, list[ProfileRecord]]:
	grouped: Dict[str, list[ProfileRecord]] = {}
	for profile in profiles:
		grouped.setdefault(profile.user_id, []).append(profile)
	return grouped
