"""Profile lookups and owner writes."""

from __future__ import annotations

import logging
from typing import List, Optional, Union

import ulid

from linkme.domain.errors import InvalidInput
from linkme.domain.profiles.models import (
	VISIBLE_IN,
	ProfileRecord,
	ProfileVariant,
	ViewContext,
	details_from_dict,
)
from linkme.domain.profiles.resolver import resolve
from linkme.domain.profiles.schemas import PersonalProfileIn, ProfessionalProfileIn, details_payload
from linkme.infra.store import get_store

logger = logging.getLogger(__name__)


def _parse_variant(variant) -> Optional[ProfileVariant]:
	if variant is None:
		return None
	try:
		return ProfileVariant(variant)
	except ValueError as exc:
		raise InvalidInput("invalid_variant") from exc


async def resolve_profile(
	user_id: str,
	variant: Optional[ProfileVariant] = None,
	*,
	viewer_id: Optional[str] = None,
) -> ProfileRecord:
	"""Profile of ``user_id`` as seen by ``viewer_id`` outside a radius search.

	The owner sees every record; anyone else only public ones.
	"""
	wanted = _parse_variant(variant)
	context = ViewContext.OWNER if viewer_id is not None and str(viewer_id) == str(user_id) else ViewContext.DIRECT
	profiles = await get_store().list_profiles([str(user_id)], sorted(VISIBLE_IN[context]))
	return resolve(profiles, wanted, context)


async def get_own_profile(user_id: str, variant: ProfileVariant) -> Optional[ProfileRecord]:
	wanted = _parse_variant(variant)
	for profile in await get_store().list_profiles_for_user(str(user_id)):
		if profile.variant is wanted:
			return profile
	return None


async def list_own_profiles(user_id: str) -> List[ProfileRecord]:
	return await get_store().list_profiles_for_user(str(user_id))


async def upsert_profile(
	owner_id: str,
	payload: Union[ProfessionalProfileIn, PersonalProfileIn],
) -> ProfileRecord:
	"""Create or replace the owner's record for the payload's variant."""
	variant = ProfileVariant(payload.variant)
	record = ProfileRecord(
		id=str(ulid.new()),
		user_id=str(owner_id),
		variant=variant,
		name=payload.name,
		headline=payload.headline,
		bio=payload.bio,
		visibility=payload.visibility,
		details=details_from_dict(variant, details_payload(payload)),
	)
	saved = await get_store().upsert_profile(record)
	logger.info("profile saved variant=%s visibility=%s", saved.variant.value, saved.visibility.value)
	return saved
