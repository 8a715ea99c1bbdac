"""Client configuration for pykappa."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pykappa._constants import (
    AUTOSAVE_DEBOUNCE_SECONDS,
    DEFAULT_API_URL,
    DEFAULT_COGNITO_REGION,
    DEFAULT_ROLE,
    REFRESH_THRESHOLD_MS,
)
from pykappa.exceptions import KappaConfigError


def _env_number(env: Mapping[str, str], key: str, cast: type[int] | type[float]) -> Any:
    raw = env.get(key)
    if raw is None:
        return None
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise KappaConfigError(f"{key} must be a number, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class KappaConfig:
    """Client configuration.

    Parameters
    ----------
    api_url : str
        Marketplace backend base URL (user store, draft store, asset store).
    cognito_region : str
        AWS region of the Cognito user pool.
    cognito_client_id : str
        Cognito app client id.
    cognito_client_secret : str or None
        App client secret.  When set, every ``InitiateAuth`` call carries a
        ``SECRET_HASH`` derived from it.
    cognito_endpoint : str or None
        Override for the Cognito endpoint URL (local emulators, tests).
        Defaults to ``https://cognito-idp.<region>.amazonaws.com/``.
    refresh_threshold_ms : int
        Tokens expiring sooner than this are refreshed on the next session
        read.  Defaults to 5 minutes.
    autosave_delay : float
        Debounce delay in seconds for registration draft autosave.
    default_role : str
        Role used when the backend has no user record yet.
    draft_cache_dir : str or None
        Directory for the local draft cache.  ``None`` keeps drafts in memory
        for the lifetime of the process.
    request_timeout : float
        Total timeout in seconds for HTTP sessions created by the client.
        Ignored when the caller passes its own ``aiohttp.ClientSession``.
    """

    api_url: str = DEFAULT_API_URL
    cognito_region: str = DEFAULT_COGNITO_REGION
    cognito_client_id: str = ""
    cognito_client_secret: str | None = None
    cognito_endpoint: str | None = None
    refresh_threshold_ms: int = REFRESH_THRESHOLD_MS
    autosave_delay: float = AUTOSAVE_DEBOUNCE_SECONDS
    default_role: str = DEFAULT_ROLE
    draft_cache_dir: str | None = None
    request_timeout: float = 30.0

    @property
    def cognito_url(self) -> str:
        if self.cognito_endpoint:
            return self.cognito_endpoint
        return f"https://cognito-idp.{self.cognito_region}.amazonaws.com/"

    @classmethod
    def from_env(cls, **overrides: Any) -> KappaConfig:
        """Create configuration from environment variables.

        Reads ``KAPPA_*`` variables.  Explicit keyword arguments override
        environment values.

        Raises
        ------
        KappaConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "KAPPA_API_URL": "api_url",
            "KAPPA_COGNITO_REGION": "cognito_region",
            "KAPPA_COGNITO_CLIENT_ID": "cognito_client_id",
            "KAPPA_COGNITO_CLIENT_SECRET": "cognito_client_secret",
            "KAPPA_COGNITO_ENDPOINT": "cognito_endpoint",
            "KAPPA_DEFAULT_ROLE": "default_role",
            "KAPPA_DRAFT_CACHE_DIR": "draft_cache_dir",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # numeric settings, handled separately
        _ENV_NUMERIC_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "KAPPA_REFRESH_THRESHOLD_MS": ("refresh_threshold_ms", int),
            "KAPPA_AUTOSAVE_DELAY": ("autosave_delay", float),
            "KAPPA_REQUEST_TIMEOUT": ("request_timeout", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            if field_name in overrides:
                continue
            value = _env_number(env, env_key, cast)
            if value is not None:
                config_kwargs[field_name] = value

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
