"""Session state management: sign-in and proactive token refresh.

:class:`SessionManager` holds no session state of its own.  Callers keep the
current :class:`TokenRecord` (in a cookie, a server-side store, ...) and pass
it to every operation, getting a new record back.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import StrEnum

from pykappa._constants import DEFAULT_ROLE, REFRESH_THRESHOLD_MS
from pykappa._jwt import expiry_ms
from pykappa.classifier import ErrorKind, classify_error
from pykappa.exceptions import PasswordChangeRequiredError, UserNotConfirmedError
from pykappa.interfaces import IdentityProvider, UserStore
from pykappa.models._base import OnboardingStatus
from pykappa.models.token import CredentialExchangeResult, TokenRecord
from pykappa.models.user import UserProfile, UserSession
from pykappa.projector import project_session

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class TokenState(StrEnum):
    FRESH = "fresh"
    NEAR_EXPIRY = "near_expiry"
    EXPIRED = "expired"
    INVALIDATED = "invalidated"


def evaluate_token_state(
    id_token: str,
    now_ms: int,
    threshold_ms: int = REFRESH_THRESHOLD_MS,
) -> TokenState:
    """Classify *id_token* by its remaining lifetime.

    A token whose ``exp`` cannot be read counts as expired.  ``INVALIDATED``
    is never returned here; it is the outcome of a failed refresh.
    """
    exp_ms = expiry_ms(id_token)
    if exp_ms is None:
        return TokenState.EXPIRED
    remaining = exp_ms - now_ms
    if remaining >= threshold_ms:
        return TokenState.FRESH
    if remaining > 0:
        return TokenState.NEAR_EXPIRY
    return TokenState.EXPIRED


class SessionManager:
    """Authenticate users and keep their token records fresh.

    Usage::

        manager = SessionManager(identity, users)
        record = await manager.authenticate(email, password)
        ...
        record = await manager.read_session(record)  # on every request
        if record is None:
            ...  # re-login required
    """

    def __init__(
        self,
        identity: IdentityProvider,
        users: UserStore,
        *,
        refresh_threshold_ms: int = REFRESH_THRESHOLD_MS,
        default_role: str = DEFAULT_ROLE,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._identity = identity
        self._users = users
        self._refresh_threshold_ms = refresh_threshold_ms
        self._default_role = default_role
        self._clock = clock

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def authenticate(self, email: str, password: str) -> TokenRecord | None:
        """Sign in and build the initial token record.

        Returns ``None`` for empty input and for every failure that is not
        one of the two the caller must surface distinctly.

        Raises
        ------
        PasswordChangeRequiredError
            The provider demands a new password first.
        UserNotConfirmedError
            The account's email was never verified.
        """
        if not email or not password:
            return None

        try:
            result = await self._identity.sign_in(email, password)
        except Exception as exc:
            kind = classify_error(exc)
            if kind is ErrorKind.PASSWORD_CHANGE_REQUIRED:
                raise PasswordChangeRequiredError("A new password is required") from exc
            if kind is ErrorKind.USER_NOT_CONFIRMED:
                raise UserNotConfirmedError("Email address has not been confirmed") from exc
            _logger.info("Sign-in rejected (%s)", kind)
            _logger.debug("Sign-in failure detail", exc_info=True)
            return None

        profile = await self._load_profile(result)
        if profile is None:
            _logger.info("No backend user for %s yet; using a pre-registration session", result.subject_id)
            return TokenRecord.from_exchange(result).model_copy(
                update={
                    "user_id": result.subject_id,
                    "role": self._default_role,
                    "onboarding_status": OnboardingStatus.PRE_REGISTRATION,
                }
            )

        return TokenRecord.from_exchange(result, profile)

    async def _load_profile(self, result: CredentialExchangeResult) -> UserProfile | None:
        """Upsert the backend user, falling back to a plain read."""
        try:
            return await self._users.upsert_on_login(result.id_token, result.subject_id, result.email)
        except Exception:
            _logger.debug("upsert-on-login failed for %s", result.subject_id, exc_info=True)
        try:
            return await self._users.get_me(result.id_token)
        except Exception:
            _logger.debug("Fetching existing user failed for %s", result.subject_id, exc_info=True)
        return None

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def token_state(self, record: TokenRecord) -> TokenState:
        return evaluate_token_state(record.id_token, self._clock(), self._refresh_threshold_ms)

    async def read_session(self, record: TokenRecord) -> TokenRecord | None:
        """Evaluate *record* for one session read.

        Returns the same record while it is fresh, a refreshed record when it
        was near or past expiry, or ``None`` when refresh failed and the
        session is invalidated.
        """
        state = self.token_state(record)
        if state is TokenState.FRESH:
            return record

        if not record.refresh_token or not record.email:
            # Nothing to refresh with; the backend rejects the stale token on use.
            _logger.debug("Token %s without refresh credentials; returning as-is", state)
            return record

        try:
            tokens = await self._identity.refresh(record.refresh_token, record.email)
        except Exception:
            _logger.warning("Token refresh failed for %s; invalidating session", record.subject_id, exc_info=True)
            return None

        refreshed = record.with_tokens(tokens)
        _logger.debug("Token refreshed for %s (was %s)", record.subject_id, state)

        try:
            profile = await self._users.get_me(refreshed.id_token)
        except Exception:
            _logger.warning("Profile re-fetch after refresh failed for %s", record.subject_id, exc_info=True)
            return refreshed
        return refreshed.with_profile(profile)

    async def get_session(self, record: TokenRecord) -> tuple[TokenRecord, UserSession] | None:
        """:meth:`read_session` followed by projection."""
        current = await self.read_session(record)
        if current is None:
            return None
        return current, self.project(current)

    def project(self, record: TokenRecord) -> UserSession:
        return project_session(record, default_role=self._default_role)
