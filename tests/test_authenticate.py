"""Tests for SessionManager.authenticate."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from pykappa.classifier import ErrorKind
from pykappa.exceptions import (
    IdentityProviderError,
    KappaTransportError,
    PasswordChangeRequiredError,
    UserNotConfirmedError,
)
from pykappa.models import CredentialExchangeResult, OnboardingStatus, UserProfile
from pykappa.session import SessionManager


class _FakeIdentity:
    def __init__(self, result: CredentialExchangeResult | None = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.sign_in_calls = 0

    async def sign_in(self, email: str, password: str) -> CredentialExchangeResult:
        self.sign_in_calls += 1
        if self.error is not None:
            raise self.error
        assert self.result is not None
        return self.result

    async def refresh(self, refresh_token: str, email: str):  # pragma: no cover - unused here
        raise AssertionError("refresh must not be called")


class _FakeUsers:
    def __init__(self, upserted: UserProfile | None = None, existing: UserProfile | None = None) -> None:
        self.upserted = upserted
        self.existing = existing
        self.calls: list[str] = []

    async def upsert_on_login(self, bearer: str, subject_id: str, email: str) -> UserProfile:
        self.calls.append("upsert")
        if self.upserted is None:
            raise KappaTransportError("HTTP 404 from /api/users/upsert-on-login", status_code=404)
        return self.upserted

    async def get_me(self, bearer: str) -> UserProfile:
        self.calls.append("me")
        if self.existing is None:
            raise KappaTransportError("HTTP 500 from /api/users/me", status_code=500)
        return self.existing


@pytest.fixture
def exchange(make_token: Callable[..., str]) -> CredentialExchangeResult:
    return CredentialExchangeResult(
        access_token="access-1",
        id_token=make_token(3600),
        refresh_token="refresh-1",
        subject_id="sub-123",
        email="jane@example.com",
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(("email", "password"), [("", "secret123"), ("jane@example.com", ""), ("", "")])
async def test_empty_input_returns_none_without_provider_call(email: str, password: str) -> None:
    identity = _FakeIdentity()
    manager = SessionManager(identity, _FakeUsers())

    assert await manager.authenticate(email, password) is None
    assert identity.sign_in_calls == 0


@pytest.mark.asyncio
async def test_password_change_required_is_raised() -> None:
    identity = _FakeIdentity(error=IdentityProviderError("NEW_PASSWORD_REQUIRED", code="NEW_PASSWORD_REQUIRED"))
    manager = SessionManager(identity, _FakeUsers())

    with pytest.raises(PasswordChangeRequiredError) as excinfo:
        await manager.authenticate("jane@example.com", "secret123")
    assert excinfo.value.kind is ErrorKind.PASSWORD_CHANGE_REQUIRED
    assert excinfo.value.code == "PasswordChangeRequired"


@pytest.mark.asyncio
async def test_user_not_confirmed_is_raised() -> None:
    identity = _FakeIdentity(
        error=IdentityProviderError("User is not confirmed.", code="UserNotConfirmedException")
    )
    manager = SessionManager(identity, _FakeUsers())

    with pytest.raises(UserNotConfirmedError) as excinfo:
        await manager.authenticate("jane@example.com", "secret123")
    assert excinfo.value.kind is ErrorKind.USER_NOT_CONFIRMED


@pytest.mark.asyncio
async def test_invalid_credentials_return_none() -> None:
    identity = _FakeIdentity(
        error=IdentityProviderError("Incorrect username or password.", code="NotAuthorizedException")
    )
    manager = SessionManager(identity, _FakeUsers())

    assert await manager.authenticate("jane@example.com", "wrong-pass") is None


@pytest.mark.asyncio
async def test_unclassified_failure_returns_none() -> None:
    manager = SessionManager(_FakeIdentity(error=RuntimeError("socket closed")), _FakeUsers())

    assert await manager.authenticate("jane@example.com", "secret123") is None


@pytest.mark.asyncio
async def test_upserted_profile_populates_record(exchange: CredentialExchangeResult) -> None:
    profile = UserProfile.model_validate(
        {
            "id": 42,
            "email": "jane@example.com",
            "role": "MEMBER",
            "fraternity_member_id": 7,
            "features": {"beta": True},
            "name": "Jane Doe",
            "onboarding_status": "ONBOARDING_STARTED",
        }
    )
    users = _FakeUsers(upserted=profile)
    manager = SessionManager(_FakeIdentity(exchange), users)

    record = await manager.authenticate("jane@example.com", "secret123")

    assert record is not None
    assert users.calls == ["upsert"]
    assert record.user_id == "42"
    assert record.role == "MEMBER"
    assert record.member_id == 7
    assert record.feature_flags == {"beta": True}
    assert record.display_name == "Jane Doe"
    assert record.onboarding_status is OnboardingStatus.ONBOARDING_IN_PROGRESS
    assert record.id_token == exchange.id_token


@pytest.mark.asyncio
async def test_upsert_failure_falls_back_to_existing_user(exchange: CredentialExchangeResult) -> None:
    users = _FakeUsers(existing=UserProfile.model_validate({"id": 9, "role": "STEWARD", "steward_id": 2}))
    manager = SessionManager(_FakeIdentity(exchange), users)

    record = await manager.authenticate("jane@example.com", "secret123")

    assert record is not None
    assert users.calls == ["upsert", "me"]
    assert record.user_id == "9"
    assert record.steward_id == 2


@pytest.mark.asyncio
async def test_backend_unavailable_yields_pre_registration_record(exchange: CredentialExchangeResult) -> None:
    users = _FakeUsers()
    manager = SessionManager(_FakeIdentity(exchange), users)

    record = await manager.authenticate("jane@example.com", "secret123")

    assert record is not None
    assert users.calls == ["upsert", "me"]
    assert record.user_id == "sub-123"
    assert record.role == "CONSUMER"
    assert record.onboarding_status is OnboardingStatus.PRE_REGISTRATION

    session = manager.project(record)
    assert session.id == "sub-123"
    assert session.role == "CONSUMER"
    assert session.onboarding_status is OnboardingStatus.PRE_REGISTRATION
    assert session.needs_onboarding is True
    assert session.is_member is False


@pytest.mark.asyncio
async def test_default_role_is_configurable(exchange: CredentialExchangeResult) -> None:
    manager = SessionManager(_FakeIdentity(exchange), _FakeUsers(), default_role="GUEST")

    record = await manager.authenticate("jane@example.com", "secret123")

    assert record is not None
    assert record.role == "GUEST"
