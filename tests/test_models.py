"""Tests for Pydantic model parsing with KappaBaseModel."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from pykappa.models import (
    DraftFields,
    OnboardingStatus,
    RefreshedTokens,
    RegistrationForm,
    TokenRecord,
    UserProfile,
    parse_timestamp,
)

# ------------------------------------------------------------------
# OnboardingStatus
# ------------------------------------------------------------------


class TestOnboardingStatus:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("PRE_COGNITO", OnboardingStatus.PRE_REGISTRATION),
            ("PRE_REGISTRATION", OnboardingStatus.PRE_REGISTRATION),
            ("COGNITO_CONFIRMED", OnboardingStatus.ONBOARDING_IN_PROGRESS),
            ("ONBOARDING_STARTED", OnboardingStatus.ONBOARDING_IN_PROGRESS),
            ("onboarding_finished", OnboardingStatus.FINISHED),
            ("COMPLETE", OnboardingStatus.FINISHED),
            ("FINISHED", OnboardingStatus.FINISHED),
        ],
    )
    def test_legacy_values_map(self, raw: str, expected: OnboardingStatus) -> None:
        assert OnboardingStatus(raw) is expected

    def test_unknown_value_never_finishes(self) -> None:
        assert OnboardingStatus("SOMETHING_NEW") is OnboardingStatus.ONBOARDING_IN_PROGRESS

    def test_profile_maps_legacy_status(self) -> None:
        profile = UserProfile.model_validate({"onboarding_status": "ONBOARDING_FINISHED"})
        assert profile.onboarding_status is OnboardingStatus.FINISHED

    def test_profile_blank_status_is_unset(self) -> None:
        assert UserProfile.model_validate({"onboarding_status": ""}).onboarding_status is None


# ------------------------------------------------------------------
# Timestamps
# ------------------------------------------------------------------


class TestParseTimestamp:
    def test_iso_string(self) -> None:
        assert parse_timestamp("2024-05-01T12:00:00Z") == datetime(2024, 5, 1, 12, tzinfo=UTC)

    def test_epoch_seconds_and_millis_agree(self) -> None:
        assert parse_timestamp(1_714_564_800) == parse_timestamp(1_714_564_800_000)

    def test_empty(self) -> None:
        assert parse_timestamp("") is None


# ------------------------------------------------------------------
# TokenRecord
# ------------------------------------------------------------------


def _record() -> TokenRecord:
    return TokenRecord(
        subject_id="sub-123",
        email="jane@example.com",
        access_token="a1",
        id_token="i1",
        refresh_token="r1",
        role="MEMBER",
    )


class TestTokenRecord:
    def test_is_immutable(self) -> None:
        record = _record()
        with pytest.raises(ValidationError):
            record.id_token = "i2"  # type: ignore[misc]

    def test_rejects_unknown_fields(self) -> None:
        with pytest.raises(ValidationError):
            TokenRecord.model_validate({**_record().model_dump(), "surprise": 1})

    def test_with_tokens_replaces_all_three(self) -> None:
        record = _record()
        updated = record.with_tokens(RefreshedTokens(access_token="a2", id_token="i2", refresh_token="r2"))

        assert (updated.access_token, updated.id_token, updated.refresh_token) == ("a2", "i2", "r2")
        assert updated.role == "MEMBER"
        assert record.id_token == "i1"

    def test_with_profile_keeps_email_when_profile_has_none(self) -> None:
        updated = _record().with_profile(UserProfile.model_validate({"id": 5, "role": "SELLER", "seller_id": 1}))

        assert updated.email == "jane@example.com"
        assert updated.user_id == "5"
        assert updated.seller_id == 1


# ------------------------------------------------------------------
# Drafts
# ------------------------------------------------------------------


class TestDraftFields:
    def test_blank_values_dropped_and_numbers_stringified(self) -> None:
        draft = DraftFields.model_validate({"name": " ", "initiated_year": 2010, "membership_number": 99})
        assert draft.name is None
        assert draft.initiated_year == "2010"
        assert draft.membership_number == "99"

    def test_bad_social_links_json_ignored(self) -> None:
        assert DraftFields.model_validate({"social_links": "{broken"}).social_links is None

    def test_updated_at_alias(self) -> None:
        draft = DraftFields.model_validate({"updated_at": 1_714_564_800})
        assert draft.last_saved_at == datetime(2024, 5, 1, 12, tzinfo=UTC)


class TestRegistrationForm:
    def test_set_rejects_unknown_field(self) -> None:
        with pytest.raises(KeyError):
            RegistrationForm().set("favourite_colour", "blue")

    def test_set_coerces_social_links(self) -> None:
        form = RegistrationForm()
        form.set("social_links", {"twitter": "@jane"})
        assert form.social_links.twitter == "@jane"

    def test_cacheable_excludes_secrets_and_raw_image(self) -> None:
        form = RegistrationForm(email="jane@example.com", password="pw", verification_code="1", subject_id="s")
        data = form.cacheable()
        assert "password" not in data
        assert "verification_code" not in data
        assert "headshot" not in data
        assert data["cognito_sub"] == "s"

    def test_secrets_hidden_from_repr(self) -> None:
        assert "hunter22" not in repr(RegistrationForm(password="hunter22"))

    def test_apply_draft_keeps_existing_subject(self) -> None:
        form = RegistrationForm(subject_id="sub-1")
        form.apply_draft(DraftFields.model_validate({"cognito_sub": "sub-2", "bio": "Hi"}))
        assert form.subject_id == "sub-1"
        assert form.bio == "Hi"
