"""Backend user store.

Endpoints:
  - POST /api/users/upsert-on-login
  - GET  /api/users/me
"""

from __future__ import annotations

from typing import Any

from pykappa._constants import USERS_ME, USERS_UPSERT_ON_LOGIN
from pykappa._transport import Transport
from pykappa.exceptions import KappaApiError
from pykappa.models.user import UserProfile


def _parse_profile(endpoint: str, response: Any) -> UserProfile:
    if not isinstance(response, dict):
        raise KappaApiError(f"{endpoint} returned no user", endpoint=endpoint)
    return UserProfile.model_validate(response)


class BackendUserStore:
    """:class:`pykappa.interfaces.UserStore` over the marketplace REST API."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def upsert_on_login(self, bearer: str, subject_id: str, email: str) -> UserProfile:
        """Create or touch the user row for a fresh sign-in."""
        response = await self._transport.request(
            "POST",
            USERS_UPSERT_ON_LOGIN,
            json_body={"cognito_sub": subject_id, "email": email},
            bearer=bearer,
        )
        return _parse_profile(USERS_UPSERT_ON_LOGIN, response)

    async def get_me(self, bearer: str) -> UserProfile:
        response = await self._transport.request("GET", USERS_ME, bearer=bearer)
        return _parse_profile(USERS_ME, response)
