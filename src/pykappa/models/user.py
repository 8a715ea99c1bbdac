"""Backend user profile and the projected session shape."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from pykappa.models._base import KappaBaseModel, OnboardingStatus, OnboardingStatusField


def _to_str(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class UserProfile(KappaBaseModel):
    """User row returned by ``upsert-on-login`` and ``/me``."""

    id: Annotated[str | None, BeforeValidator(_to_str)] = None
    email: str | None = None
    cognito_sub: str | None = None
    role: str | None = None
    member_id: int | None = Field(default=None, alias="fraternity_member_id")
    seller_id: int | None = None
    promoter_id: int | None = None
    steward_id: int | None = None
    features: dict[str, Any] = Field(default_factory=dict)
    name: str | None = None
    onboarding_status: OnboardingStatusField = None


class UserSession(BaseModel):
    """Session view consumed by UI and API layers.

    Built only by :func:`pykappa.projector.project_session`.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    subject_id: str
    email: str
    name: str | None = None
    role: str
    member_id: int | None = None
    seller_id: int | None = None
    promoter_id: int | None = None
    steward_id: int | None = None
    features: dict[str, Any] = Field(default_factory=dict)
    onboarding_status: OnboardingStatus
    is_member: bool = False
    is_seller: bool = False
    is_promoter: bool = False
    is_steward: bool = False
    access_token: str = Field(repr=False)
    id_token: str = Field(repr=False)

    @property
    def needs_onboarding(self) -> bool:
        """Whether the registration wizard should be shown."""
        return self.onboarding_status is not OnboardingStatus.FINISHED
