"""Custom exception hierarchy for pykappa."""

from __future__ import annotations

from typing import Any

from pykappa.classifier import ErrorKind


class KappaError(Exception):
    """Base exception for all pykappa errors."""


class KappaConfigError(KappaError):
    """Invalid or missing configuration."""


class KappaTransportError(KappaError):
    """HTTP-level failure (network, non-2xx, invalid JSON).

    ``body`` carries the decoded JSON error body when the server sent one,
    so endpoint modules can map provider error payloads.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        body: Any = None,
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.body = body
        super().__init__(message)


class KappaApiError(KappaError):
    """An API answered, but with an application-level error."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class IdentityProviderError(KappaApiError):
    """The identity provider rejected a sign-in or refresh.

    ``code`` holds the provider's error type (e.g. ``NotAuthorizedException``
    or ``NEW_PASSWORD_REQUIRED``).  Callers should never show this message to
    end users; run it through :func:`pykappa.classifier.classify_error`.
    """


class KappaAuthenticationError(KappaApiError):
    """Authentication failed with a classified reason."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, *, code: str = "", endpoint: str = "") -> None:
        super().__init__(message, code=code or str(self.kind), endpoint=endpoint)


class PasswordChangeRequiredError(KappaAuthenticationError):
    """The provider requires a new password before the user can sign in."""

    kind = ErrorKind.PASSWORD_CHANGE_REQUIRED


class UserNotConfirmedError(KappaAuthenticationError):
    """The account exists but its email address was never verified."""

    kind = ErrorKind.USER_NOT_CONFIRMED


class InvalidCredentialsError(KappaAuthenticationError):
    """Generic sign-in failure.

    Deliberately carries no provider details.
    """

    kind = ErrorKind.INVALID_CREDENTIALS


class RefreshFailureError(KappaAuthenticationError):
    """Token refresh failed; the session is gone and re-login is required."""


class DraftError(KappaError):
    """Registration draft storage failure."""


class DraftSaveError(DraftError):
    """Remote draft upsert failed.  The local cache still holds the fields."""


class DraftLoadError(DraftError):
    """Remote draft could not be read back."""


class OnboardingError(KappaError):
    """Registration wizard refused an operation."""


class StepValidationError(OnboardingError):
    """A wizard step is missing required input.

    ``field`` names the offending form field so UIs can highlight it.
    """

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class InvalidImageError(OnboardingError):
    """Selected headshot has an unsupported type or is too large."""


class OnboardingFinishedError(OnboardingError):
    """The user already completed onboarding; there is nothing to resume."""
