"""Profile records: a common base with a tagged, variant-specific payload."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import FrozenSet, List, Literal, Optional, Union


class ProfileVariant(str, Enum):
	PROFESSIONAL = "professional"
	PERSONAL = "personal"


class Visibility(str, Enum):
	PUBLIC = "public"
	NEARBY = "nearby"
	PRIVATE = "private"


class ViewContext(str, Enum):
	"""Where a profile is being looked at from."""

	SEARCH = "search"
	DIRECT = "direct"
	CONNECTION = "connection"
	OWNER = "owner"


VISIBLE_IN: dict[ViewContext, FrozenSet[Visibility]] = {
	ViewContext.SEARCH: frozenset({Visibility.PUBLIC, Visibility.NEARBY}),
	ViewContext.DIRECT: frozenset({Visibility.PUBLIC}),
	ViewContext.CONNECTION: frozenset({Visibility.PUBLIC, Visibility.NEARBY}),
	ViewContext.OWNER: frozenset({Visibility.PUBLIC, Visibility.NEARBY, Visibility.PRIVATE}),
}

# Best-available order when no variant is requested.
VARIANT_PREFERENCE = (ProfileVariant.PROFESSIONAL, ProfileVariant.PERSONAL)


@dataclass(slots=True)
class Experience:
	company: str
	role: str
	from_: str = ""
	to: str = ""


@dataclass(slots=True)
class Education:
	institution: str
	degree: str = ""
	year: str = ""


@dataclass(slots=True)
class Prompt:
	question: str
	answer: str


@dataclass(slots=True)
class ProfessionalDetails:
	kind: Literal["professional"] = "professional"
	experience: List[Experience] = field(default_factory=list)
	education: List[Education] = field(default_factory=list)
	skills: List[str] = field(default_factory=list)
	linkedin_url: Optional[str] = None
	github_url: Optional[str] = None
	open_to_work: bool = False


@dataclass(slots=True)
class PersonalDetails:
	kind: Literal["personal"] = "personal"
	hobbies: List[str] = field(default_factory=list)
	instagram_handle: Optional[str] = None
	relationship_goal: Optional[Literal["friends", "networking", "dating", "chat"]] = None
	zodiac: Optional[str] = None
	prompts: List[Prompt] = field(default_factory=list)


ProfileDetails = Union[ProfessionalDetails, PersonalDetails]


def details_from_dict(variant: ProfileVariant, data: Optional[dict]) -> ProfileDetails:
	data = dict(data or {})
	data.pop("kind", None)
	if variant is ProfileVariant.PROFESSIONAL:
		return ProfessionalDetails(
			experience=[
				Experience(
					company=item.get("company", ""),
					role=item.get("role", ""),
					from_=item.get("from", item.get("from_", "")),
					to=item.get("to", ""),
				)
				for item in data.get("experience") or []
			],
			education=[Education(**item) for item in data.get("education") or []],
			skills=list(data.get("skills") or []),
			linkedin_url=data.get("linkedin_url"),
			github_url=data.get("github_url"),
			open_to_work=bool(data.get("open_to_work", False)),
		)
	return PersonalDetails(
		hobbies=list(data.get("hobbies") or []),
		instagram_handle=data.get("instagram_handle"),
		relationship_goal=data.get("relationship_goal"),
		zodiac=data.get("zodiac"),
		prompts=[Prompt(**item) for item in data.get("prompts") or []],
	)


def details_to_dict(details: ProfileDetails) -> dict:
	payload = asdict(details)
	if isinstance(details, ProfessionalDetails):
		for item in payload["experience"]:
			item["from"] = item.pop("from_")
	return payload


@dataclass(slots=True)
class ProfileRecord:
	id: str
	user_id: str
	variant: ProfileVariant
	headline: str
	bio: str
	visibility: Visibility
	details: ProfileDetails
	name: Optional[str] = None

	def __post_init__(self) -> None:
		if self.details.kind != self.variant.value:
			raise ValueError(f"details kind {self.details.kind!r} does not match variant {self.variant.value!r}")

	def is_visible_in(self, context: ViewContext) -> bool:
		return self.visibility in VISIBLE_IN[context]

	@classmethod
	def from_record(cls, record) -> "ProfileRecord":
		variant = ProfileVariant(record["variant"])
		raw_details = record.get("details")
		if isinstance(raw_details, str):
			raw_details = json.loads(raw_details)
		return cls(
			id=str(record["id"]),
			user_id=str(record["user_id"]),
			variant=variant,
			headline=record.get("headline") or "",
			bio=record.get("bio") or "",
			visibility=Visibility(record["visibility"]),
			details=details_from_dict(variant, raw_details),
			name=record.get("name"),
		)
