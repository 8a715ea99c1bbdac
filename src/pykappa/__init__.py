"""pykappa - Async identity session and member onboarding engine."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pykappa")
except PackageNotFoundError:
    __version__ = "0+local"
from pykappa.classifier import ErrorKind, classify_error
from pykappa.client import KappaClient
from pykappa.config import KappaConfig
from pykappa.debounce import Debouncer, debounce
from pykappa.exceptions import (
    DraftError,
    DraftLoadError,
    DraftSaveError,
    IdentityProviderError,
    InvalidCredentialsError,
    InvalidImageError,
    KappaApiError,
    KappaAuthenticationError,
    KappaConfigError,
    KappaError,
    KappaTransportError,
    OnboardingError,
    OnboardingFinishedError,
    PasswordChangeRequiredError,
    RefreshFailureError,
    StepValidationError,
    UserNotConfirmedError,
)
from pykappa.models import (
    DraftFields,
    HeadshotImage,
    OnboardingStatus,
    RegistrationForm,
    TokenRecord,
    UserProfile,
    UserSession,
)
from pykappa.onboarding import RegistrationWizard
from pykappa.projector import project_session
from pykappa.session import SessionManager, TokenState, evaluate_token_state

__all__ = [
    "__version__",
    "Debouncer",
    "DraftError",
    "DraftFields",
    "DraftLoadError",
    "DraftSaveError",
    "ErrorKind",
    "HeadshotImage",
    "IdentityProviderError",
    "InvalidCredentialsError",
    "InvalidImageError",
    "KappaApiError",
    "KappaAuthenticationError",
    "KappaClient",
    "KappaConfig",
    "KappaConfigError",
    "KappaError",
    "KappaTransportError",
    "OnboardingError",
    "OnboardingFinishedError",
    "OnboardingStatus",
    "PasswordChangeRequiredError",
    "RefreshFailureError",
    "RegistrationForm",
    "RegistrationWizard",
    "SessionManager",
    "StepValidationError",
    "TokenRecord",
    "TokenState",
    "UserNotConfirmedError",
    "UserProfile",
    "UserSession",
    "classify_error",
    "debounce",
    "evaluate_token_state",
    "project_session",
]
