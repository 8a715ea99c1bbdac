"""Data models for the identity session and registration draft."""

from pykappa.models._base import (
    KappaBaseModel,
    OnboardingStatus,
    OnboardingStatusField,
    Timestamp,
    parse_onboarding_status,
    parse_timestamp,
)
from pykappa.models.draft import (
    PRIVACY_FLAGS,
    PROFILE_TEXT_FIELDS,
    SECRET_FIELDS,
    SOCIAL_NETWORKS,
    STEP_FIELDS,
    DraftFields,
    HeadshotImage,
    RegistrationForm,
    SocialLinks,
)
from pykappa.models.token import CredentialExchangeResult, RefreshedTokens, TokenRecord
from pykappa.models.user import UserProfile, UserSession

__all__ = [
    "PRIVACY_FLAGS",
    "PROFILE_TEXT_FIELDS",
    "SECRET_FIELDS",
    "SOCIAL_NETWORKS",
    "STEP_FIELDS",
    "CredentialExchangeResult",
    "DraftFields",
    "HeadshotImage",
    "KappaBaseModel",
    "OnboardingStatus",
    "OnboardingStatusField",
    "RefreshedTokens",
    "RegistrationForm",
    "SocialLinks",
    "Timestamp",
    "TokenRecord",
    "UserProfile",
    "UserSession",
    "parse_onboarding_status",
    "parse_timestamp",
]
