import pytest

from linkme.domain.errors import NoVisibleProfile
from linkme.domain.profiles.models import (
    PersonalDetails,
    ProfessionalDetails,
    ProfileRecord,
    ProfileVariant,
    ViewContext,
    Visibility,
    details_from_dict,
    details_to_dict,
)
from linkme.domain.profiles.resolver import group_by_user, resolve


def _profile(variant, visibility, *, user_id="u1", profile_id=None):
    variant = ProfileVariant(variant)
    details = ProfessionalDetails() if variant is ProfileVariant.PROFESSIONAL else PersonalDetails()
    return ProfileRecord(
        id=profile_id or f"{user_id}-{variant.value}",
        user_id=user_id,
        variant=variant,
        headline="",
        bio="",
        visibility=Visibility(visibility),
        details=details,
    )


def test_public_professional_wins_over_private_personal():
    profiles = [_profile("professional", "public"), _profile("personal", "private")]

    assert resolve(profiles).variant is ProfileVariant.PROFESSIONAL


def test_professional_preferred_when_both_visible():
    profiles = [_profile("personal", "public"), _profile("professional", "nearby")]

    assert resolve(profiles).variant is ProfileVariant.PROFESSIONAL


def test_single_visible_profile_is_used():
    profiles = [_profile("professional", "private"), _profile("personal", "nearby")]

    assert resolve(profiles).variant is ProfileVariant.PERSONAL


def test_requested_variant_must_be_visible():
    profiles = [_profile("professional", "public"), _profile("personal", "private")]

    assert resolve(profiles, ProfileVariant.PROFESSIONAL).variant is ProfileVariant.PROFESSIONAL
    with pytest.raises(NoVisibleProfile):
        resolve(profiles, ProfileVariant.PERSONAL)


def test_all_private_is_no_visible_profile():
    profiles = [_profile("professional", "private"), _profile("personal", "private")]

    with pytest.raises(NoVisibleProfile):
        resolve(profiles)
    with pytest.raises(NoVisibleProfile):
        resolve([])


def test_direct_context_hides_nearby_profiles():
    profiles = [_profile("professional", "nearby"), _profile("personal", "public")]

    assert resolve(profiles, context=ViewContext.DIRECT).variant is ProfileVariant.PERSONAL
    with pytest.raises(NoVisibleProfile):
        resolve(profiles, ProfileVariant.PROFESSIONAL, ViewContext.DIRECT)


def test_owner_sees_private_profiles():
    profiles = [_profile("professional", "private")]

    assert resolve(profiles, context=ViewContext.OWNER).visibility is Visibility.PRIVATE


def test_connection_context_includes_nearby():
    profiles = [_profile("personal", "nearby")]

    assert resolve(profiles, ProfileVariant.PERSONAL, ViewContext.CONNECTION).visibility is Visibility.NEARBY


def test_duplicate_variant_records_pick_lowest_id():
    profiles = [
        _profile("professional", "public", profile_id="b"),
        _profile("professional", "public", profile_id="a"),
    ]

    assert resolve(profiles).id == "a"


def test_group_by_user():
    profiles = [_profile("professional", "public", user_id="a"), _profile("personal", "public", user_id="b")]

    grouped = group_by_user(profiles)

    assert set(grouped) == {"a", "b"}


def test_details_must_match_variant():
    with pytest.raises(ValueError):
        ProfileRecord(
            id="x",
            user_id="u1",
            variant=ProfileVariant.PERSONAL,
            headline="",
            bio="",
            visibility=Visibility.PUBLIC,
            details=ProfessionalDetails(),
        )


def test_experience_from_field_survives_storage_form():
    details = details_from_dict(
        ProfileVariant.PROFESSIONAL,
        {"experience": [{"company": "Acme", "role": "Engineer", "from": "2020", "to": "2023"}], "skills": ["go"]},
    )

    stored = details_to_dict(details)

    assert stored["kind"] == "professional"
    assert stored["experience"][0]["from"] == "2020"
    assert "from_" not in stored["experience"][0]
