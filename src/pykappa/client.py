"""High-level async client for the marketplace identity and onboarding API."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pykappa._api import (
    BackendAssetStore,
    BackendDraftStore,
    BackendUserStore,
    CognitoIdentityProvider,
)
from pykappa._cache import FileDraftCache, MemoryDraftCache
from pykappa._transport import HttpTransport
from pykappa.config import KappaConfig
from pykappa.exceptions import InvalidCredentialsError, KappaConfigError, KappaError, RefreshFailureError
from pykappa.interfaces import DraftCache
from pykappa.models.token import TokenRecord
from pykappa.models.user import UserSession
from pykappa.onboarding import RegistrationWizard
from pykappa.session import SessionManager, TokenState

_logger = logging.getLogger(__name__)


class KappaClient:
    """Async client holding one user's session.

    Usage::

        async with KappaClient(config) as client:
            session = await client.login(email, password)
            ...
            session = await client.ensure_session()  # refreshes when needed
            if session.needs_onboarding:
                wizard = client.registration_wizard()
                await wizard.start(session)
    """

    def __init__(
        self,
        config: KappaConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        cache: DraftCache | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._cache = cache
        self._manager: SessionManager | None = None
        self._draft_store: BackendDraftStore | None = None
        self._asset_store: BackendAssetStore | None = None
        self._record: TokenRecord | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> KappaClient:
        if self._http_session is None:
            timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)
            self._http_session = aiohttp.ClientSession(timeout=timeout)

        backend = HttpTransport(self._config.api_url, self._http_session)
        cognito = HttpTransport(self._config.cognito_url, self._http_session)
        identity = CognitoIdentityProvider(
            cognito,
            self._config.cognito_client_id,
            client_secret=self._config.cognito_client_secret,
        )
        self._manager = SessionManager(
            identity,
            BackendUserStore(backend),
            refresh_threshold_ms=self._config.refresh_threshold_ms,
            default_role=self._config.default_role,
        )
        self._draft_store = BackendDraftStore(backend)
        self._asset_store = BackendAssetStore(backend)
        if self._cache is None:
            if self._config.draft_cache_dir:
                self._cache = FileDraftCache(self._config.draft_cache_dir)
            else:
                self._cache = MemoryDraftCache()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._manager = None
        self._draft_store = None
        self._asset_store = None

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @property
    def record(self) -> TokenRecord | None:
        """The current token record, for callers that persist it."""
        return self._record

    def restore(self, record: TokenRecord) -> None:
        """Adopt a previously persisted token record."""
        self._record = record

    async def login(self, email: str, password: str) -> UserSession:
        """Sign in and return the projected session.

        Raises
        ------
        InvalidCredentialsError
            Generic failure; provider details are never exposed.
        PasswordChangeRequiredError
        UserNotConfirmedError
        KappaConfigError
            If no Cognito app client id is configured.
        """
        manager = self._require_manager()
        if not self._config.cognito_client_id:
            raise KappaConfigError("cognito_client_id is not configured")
        record = await manager.authenticate(email, password)
        if record is None:
            raise InvalidCredentialsError("Invalid email or password")
        self._record = record
        _logger.debug("Signed in %s", record.subject_id)
        return manager.project(record)

    async def ensure_session(self) -> UserSession:
        """Return the current session, refreshing tokens when near expiry.

        Raises
        ------
        RefreshFailureError
            No session, or the refresh failed; the record is cleared and the
            user must sign in again.
        """
        manager = self._require_manager()
        if self._record is None:
            raise RefreshFailureError("Not signed in")
        record = await manager.read_session(self._record)
        if record is None:
            self.invalidate_session()
            raise RefreshFailureError("Session expired; please sign in again")
        self._record = record
        return manager.project(record)

    def token_state(self) -> TokenState | None:
        if self._record is None:
            return None
        return self._require_manager().token_state(self._record)

    def invalidate_session(self) -> None:
        """Forget the current token record."""
        self._record = None

    # ------------------------------------------------------------------
    # Onboarding
    # ------------------------------------------------------------------

    def registration_wizard(self) -> RegistrationWizard:
        """Create a wizard wired to the backend draft and asset stores."""
        if self._draft_store is None or self._asset_store is None or self._cache is None:
            raise KappaError("Client not initialized. Use 'async with KappaClient(...) as client:'")
        return RegistrationWizard(
            self._draft_store,
            self._asset_store,
            self._cache,
            autosave_delay=self._config.autosave_delay,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_manager(self) -> SessionManager:
        if self._manager is None:
            raise KappaError("Client not initialized. Use 'async with KappaClient(...) as client:'")
        return self._manager
