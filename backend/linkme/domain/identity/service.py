"""Identity sync: mirror the identity provider's user into the store."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import ulid

from linkme.domain.errors import InvalidInput
from linkme.domain.identity.models import UserRecord
from linkme.domain.profiles.models import (
	PersonalDetails,
	ProfessionalDetails,
	ProfileRecord,
	ProfileVariant,
	Visibility,
)
from linkme.infra.store import get_store

logger = logging.getLogger(__name__)

DEFAULT_HEADLINES = {
	ProfileVariant.PROFESSIONAL: "New Professional",
	ProfileVariant.PERSONAL: "New User",
}


def _default_profiles(user: UserRecord) -> List[ProfileRecord]:
	return [
		ProfileRecord(
			id=str(ulid.new()),
			user_id=user.id,
			variant=ProfileVariant.PROFESSIONAL,
			name=user.name,
			headline=DEFAULT_HEADLINES[ProfileVariant.PROFESSIONAL],
			bio="",
			visibility=Visibility.NEARBY,
			details=ProfessionalDetails(),
		),
		ProfileRecord(
			id=str(ulid.new()),
			user_id=user.id,
			variant=ProfileVariant.PERSONAL,
			name=user.name,
			headline=DEFAULT_HEADLINES[ProfileVariant.PERSONAL],
			bio="",
			visibility=Visibility.NEARBY,
			details=PersonalDetails(),
		),
	]


async def sync_user(
	user_id: str,
	email: str,
	name: Optional[str] = None,
	avatar_url: Optional[str] = None,
) -> Tuple[UserRecord, List[ProfileRecord]]:
	"""Upsert the user and bootstrap both profile variants on first sight.

	Returns the stored user and the profiles created by this call (empty when
	the user already had profiles).
	"""
	email = (email or "").strip()
	if "@" not in email:
		raise InvalidInput("invalid_email")
	display_name = (name or "").strip() or email.split("@", 1)[0]

	store = get_store()
	user = await store.upsert_user(
		UserRecord(
			id=str(user_id),
			email=email,
			name=display_name,
			avatar_url=avatar_url,
			last_active=datetime.now(timezone.utc),
		)
	)
	if await store.list_profiles_for_user(user.id):
		return user, []

	created = [await store.upsert_profile(profile) for profile in _default_profiles(user)]
	logger.info("user bootstrapped profiles=%s", len(created))
	return user, created
