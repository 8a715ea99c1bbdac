"""Project a :class:`TokenRecord` onto the session shape UI code consumes.

This is the only place where missing record fields receive defaults.
"""

from __future__ import annotations

from pykappa._constants import DEFAULT_ROLE
from pykappa.models._base import OnboardingStatus
from pykappa.models.token import TokenRecord
from pykappa.models.user import UserSession


def project_session(record: TokenRecord, *, default_role: str = DEFAULT_ROLE) -> UserSession:
    """Return the :class:`UserSession` view of *record*.

    Pure: no I/O, and equal records always project to equal sessions.
    """
    return UserSession(
        id=record.user_id or record.subject_id,
        subject_id=record.subject_id,
        email=record.email,
        name=record.display_name,
        role=record.role or default_role,
        member_id=record.member_id,
        seller_id=record.seller_id,
        promoter_id=record.promoter_id,
        steward_id=record.steward_id,
        features=dict(record.feature_flags),
        onboarding_status=record.onboarding_status or OnboardingStatus.PRE_REGISTRATION,
        is_member=record.member_id is not None,
        is_seller=record.seller_id is not None,
        is_promoter=record.promoter_id is not None,
        is_steward=record.steward_id is not None,
        access_token=record.access_token,
        id_token=record.id_token,
    )
