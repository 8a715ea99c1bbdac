"""Authentication token models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pykappa.models._base import OnboardingStatus
from pykappa.models.user import UserProfile


class CredentialExchangeResult(BaseModel):
    """Tokens and identity returned by the identity provider on sign-in.

    Produced only by an identity-provider adapter, never built by hand in
    library code.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    id_token: str
    refresh_token: str
    subject_id: str
    email: str


class RefreshedTokens(BaseModel):
    """A new bearer token triple issued by a refresh."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    id_token: str
    refresh_token: str


class TokenRecord(BaseModel):
    """Server-side state of one login.

    Immutable: every change produces a new record, so readers never see the
    token triple half-updated.  Optional fields are left unset when the
    backend did not report them; defaults are applied by
    :func:`pykappa.projector.project_session`.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    subject_id: str
    email: str
    access_token: str
    id_token: str
    refresh_token: str
    user_id: str | None = None
    role: str | None = None
    member_id: int | None = None
    seller_id: int | None = None
    promoter_id: int | None = None
    steward_id: int | None = None
    feature_flags: dict[str, Any] = Field(default_factory=dict)
    display_name: str | None = None
    onboarding_status: OnboardingStatus | None = None

    @classmethod
    def from_exchange(
        cls,
        result: CredentialExchangeResult,
        profile: UserProfile | None = None,
    ) -> TokenRecord:
        """Build the initial record for a fresh sign-in."""
        record = cls(
            subject_id=result.subject_id,
            email=result.email,
            access_token=result.access_token,
            id_token=result.id_token,
            refresh_token=result.refresh_token,
        )
        if profile is None:
            return record
        return record.with_profile(profile)

    def with_tokens(self, tokens: RefreshedTokens) -> TokenRecord:
        """Return a copy carrying the new token triple, all three at once."""
        return self.model_copy(
            update={
                "access_token": tokens.access_token,
                "id_token": tokens.id_token,
                "refresh_token": tokens.refresh_token,
            }
        )

    def with_profile(self, profile: UserProfile) -> TokenRecord:
        """Return a copy with the role-bearing fields taken from *profile*."""
        update: dict[str, Any] = {
            "role": profile.role,
            "member_id": profile.member_id,
            "seller_id": profile.seller_id,
            "promoter_id": profile.promoter_id,
            "steward_id": profile.steward_id,
            "feature_flags": dict(profile.features),
            "display_name": profile.name,
            "onboarding_status": profile.onboarding_status,
        }
        if profile.id is not None:
            update["user_id"] = profile.id
        if profile.email:
            update["email"] = profile.email
        return self.model_copy(update=update)
