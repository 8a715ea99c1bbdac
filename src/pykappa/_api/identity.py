"""Cognito user-pool credential exchange.

Endpoint:
  - ``InitiateAuth`` on the Cognito JSON API, with ``USER_PASSWORD_AUTH`` for
    sign-in and ``REFRESH_TOKEN_AUTH`` for refresh.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from typing import Any

from pykappa._constants import COGNITO_CONTENT_TYPE, COGNITO_INITIATE_AUTH_TARGET
from pykappa._jwt import unverified_claims
from pykappa._transport import Transport
from pykappa.exceptions import IdentityProviderError, KappaTransportError
from pykappa.models.token import CredentialExchangeResult, RefreshedTokens

_logger = logging.getLogger(__name__)

_ENDPOINT = "InitiateAuth"


def compute_secret_hash(username: str, client_id: str, client_secret: str) -> str:
    """Cognito ``SECRET_HASH``: base64(HMAC-SHA256(secret, username + client_id))."""
    digest = hmac.new(
        client_secret.encode("utf-8"),
        (username + client_id).encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def build_initiate_auth_request(
    flow: str,
    client_id: str,
    parameters: dict[str, str],
    *,
    username: str,
    client_secret: str | None = None,
) -> dict[str, Any]:
    """Build the ``InitiateAuth`` request body."""
    auth_parameters = dict(parameters)
    if client_secret:
        auth_parameters["SECRET_HASH"] = compute_secret_hash(username, client_id, client_secret)
    return {
        "AuthFlow": flow,
        "ClientId": client_id,
        "AuthParameters": auth_parameters,
    }


def _provider_error(exc: KappaTransportError) -> IdentityProviderError:
    """Translate a Cognito error reply (``{"__type": ..., "message": ...}``)."""
    body = exc.body if isinstance(exc.body, dict) else {}
    error_type = str(body.get("__type", "")).rsplit("#", 1)[-1]
    message = str(body.get("message") or body.get("Message") or exc)
    return IdentityProviderError(message, code=error_type, endpoint=_ENDPOINT)


def _authentication_result(response: Any) -> dict[str, Any]:
    if not isinstance(response, dict):
        raise IdentityProviderError("InitiateAuth returned no body", endpoint=_ENDPOINT)
    challenge = response.get("ChallengeName")
    if challenge:
        raise IdentityProviderError(str(challenge), code=str(challenge), endpoint=_ENDPOINT)
    result = response.get("AuthenticationResult")
    if not isinstance(result, dict) or not result.get("AccessToken") or not result.get("IdToken"):
        raise IdentityProviderError("InitiateAuth response missing token fields", endpoint=_ENDPOINT)
    return result


def parse_sign_in_response(response: Any, email: str) -> CredentialExchangeResult:
    """Parse a ``USER_PASSWORD_AUTH`` reply.

    Raises
    ------
    IdentityProviderError
        On a pending challenge (e.g. ``NEW_PASSWORD_REQUIRED``) or a reply
        without the token triple.
    """
    result = _authentication_result(response)
    refresh_token = result.get("RefreshToken")
    if not refresh_token:
        raise IdentityProviderError("Sign-in response missing refresh token", endpoint=_ENDPOINT)

    claims = unverified_claims(str(result["IdToken"])) or {}
    subject_id = claims.get("sub")
    if not subject_id:
        raise IdentityProviderError("ID token carries no subject", endpoint=_ENDPOINT)

    return CredentialExchangeResult(
        access_token=str(result["AccessToken"]),
        id_token=str(result["IdToken"]),
        refresh_token=str(refresh_token),
        subject_id=str(subject_id),
        email=str(claims.get("email") or email),
    )


def parse_refresh_response(response: Any, refresh_token: str) -> RefreshedTokens:
    """Parse a ``REFRESH_TOKEN_AUTH`` reply.

    Cognito only returns a refresh token when rotation is enabled; otherwise
    the one used for the request stays valid and is carried forward.
    """
    result = _authentication_result(response)
    return RefreshedTokens(
        access_token=str(result["AccessToken"]),
        id_token=str(result["IdToken"]),
        refresh_token=str(result.get("RefreshToken") or refresh_token),
    )


class CognitoIdentityProvider:
    """:class:`pykappa.interfaces.IdentityProvider` backed by a Cognito user pool."""

    def __init__(
        self,
        transport: Transport,
        client_id: str,
        *,
        client_secret: str | None = None,
    ) -> None:
        self._transport = transport
        self._client_id = client_id
        self._client_secret = client_secret

    async def _initiate_auth(self, body: dict[str, Any]) -> Any:
        headers = {
            "content-type": COGNITO_CONTENT_TYPE,
            "x-amz-target": COGNITO_INITIATE_AUTH_TARGET,
        }
        try:
            return await self._transport.request("POST", "", json_body=body, headers=headers)
        except KappaTransportError as exc:
            if exc.status_code is not None and 400 <= exc.status_code < 500:
                raise _provider_error(exc) from exc
            raise

    async def sign_in(self, email: str, password: str) -> CredentialExchangeResult:
        body = build_initiate_auth_request(
            "USER_PASSWORD_AUTH",
            self._client_id,
            {"USERNAME": email, "PASSWORD": password},
            username=email,
            client_secret=self._client_secret,
        )
        response = await self._initiate_auth(body)
        return parse_sign_in_response(response, email)

    async def refresh(self, refresh_token: str, email: str) -> RefreshedTokens:
        body = build_initiate_auth_request(
            "REFRESH_TOKEN_AUTH",
            self._client_id,
            {"REFRESH_TOKEN": refresh_token},
            username=email,
            client_secret=self._client_secret,
        )
        response = await self._initiate_auth(body)
        _logger.debug("Token refresh succeeded for %s", email)
        return parse_refresh_response(response, refresh_token)
