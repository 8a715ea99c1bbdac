from __future__ import annotations

from pykappa.models import OnboardingStatus, TokenRecord
from pykappa.projector import project_session


def _record(**overrides: object) -> TokenRecord:
    data: dict[str, object] = {
        "subject_id": "sub-123",
        "email": "jane@example.com",
        "access_token": "access",
        "id_token": "id",
        "refresh_token": "refresh",
    }
    data.update(overrides)
    return TokenRecord.model_validate(data)


def test_defaults_applied_for_minimal_record() -> None:
    session = project_session(_record())

    assert session.id == "sub-123"
    assert session.subject_id == "sub-123"
    assert session.role == "CONSUMER"
    assert session.features == {}
    assert session.onboarding_status is OnboardingStatus.PRE_REGISTRATION
    assert session.needs_onboarding is True
    assert not any((session.is_member, session.is_seller, session.is_promoter, session.is_steward))


def test_role_ids_drive_flags() -> None:
    session = project_session(
        _record(
            user_id="42",
            role="MEMBER",
            member_id=7,
            seller_id=0,
            steward_id=3,
            feature_flags={"tickets": True},
            display_name="Jane Doe",
            onboarding_status=OnboardingStatus.FINISHED,
        )
    )

    assert session.id == "42"
    assert session.name == "Jane Doe"
    assert session.is_member is True
    # Zero is a real id.
    assert session.is_seller is True
    assert session.is_promoter is False
    assert session.is_steward is True
    assert session.features == {"tickets": True}
    assert session.needs_onboarding is False


def test_projection_is_deterministic() -> None:
    record = _record(role="SELLER", seller_id=5)
    assert project_session(record) == project_session(record)


def test_default_role_override() -> None:
    assert project_session(_record(), default_role="GUEST").role == "GUEST"


def test_tokens_hidden_from_repr() -> None:
    session = project_session(_record(id_token="secret-id-token"))
    assert "secret-id-token" not in repr(session)
