"""Pydantic schemas for profile reads and writes.

Writes are a tagged union on ``variant``: each variant carries only its own fields.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from linkme.domain.profiles.models import (
	ProfileRecord,
	ProfileVariant,
	Visibility,
	details_to_dict,
)


class ExperienceItem(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	company: str = Field(..., max_length=120)
	role: str = Field(..., max_length=120)
	from_: str = Field(default="", alias="from", max_length=32)
	to: str = Field(default="", max_length=32)


class EducationItem(BaseModel):
	institution: str = Field(..., max_length=160)
	degree: str = Field(default="", max_length=120)
	year: str = Field(default="", max_length=16)


class PromptItem(BaseModel):
	question: str = Field(..., max_length=200)
	answer: str = Field(..., max_length=500)


class _ProfileBase(BaseModel):
	name: Optional[str] = Field(default=None, max_length=120)
	headline: str = Field(default="", max_length=160)
	bio: str = Field(default="", max_length=2000)
	visibility: Visibility = Visibility.NEARBY


class ProfessionalProfileIn(_ProfileBase):
	variant: Literal["professional"]
	experience: List[ExperienceItem] = Field(default_factory=list, max_length=30)
	education: List[EducationItem] = Field(default_factory=list, max_length=20)
	skills: List[str] = Field(default_factory=list, max_length=50)
	linkedin_url: Optional[str] = Field(default=None, max_length=2048)
	github_url: Optional[str] = Field(default=None, max_length=2048)
	open_to_work: bool = False


class PersonalProfileIn(_ProfileBase):
	variant: Literal["personal"]
	hobbies: List[str] = Field(default_factory=list, max_length=30)
	instagram_handle: Optional[str] = Field(default=None, max_length=64)
	relationship_goal: Optional[Literal["friends", "networking", "dating", "chat"]] = None
	zodiac: Optional[str] = Field(default=None, max_length=32)
	prompts: List[PromptItem] = Field(default_factory=list, max_length=10)


ProfileUpsert = Annotated[Union[ProfessionalProfileIn, PersonalProfileIn], Field(discriminator="variant")]

_BASE_FIELDS = {"variant", "name", "headline", "bio", "visibility"}


def details_payload(payload: Union[ProfessionalProfileIn, PersonalProfileIn]) -> Dict[str, Any]:
	"""Variant-specific fields of a write, in stored form."""
	return payload.model_dump(by_alias=True, exclude=_BASE_FIELDS)


class ProfileOut(BaseModel):
	id: str
	user_id: str
	variant: ProfileVariant
	name: Optional[str] = None
	headline: str
	bio: str
	visibility: Visibility
	details: Dict[str, Any]

	@classmethod
	def from_record(cls, profile: ProfileRecord) -> "ProfileOut":
		return cls(
			id=profile.id,
			user_id=profile.user_id,
			variant=profile.variant,
			name=profile.name,
			headline=profile.headline,
			bio=profile.bio,
			visibility=profile.visibility,
			details=details_to_dict(profile.details),
		)
