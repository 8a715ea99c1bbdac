"""Member registration endpoints: sign-up proxy, draft store, asset store.

Endpoints:
  - POST /api/members/cognito/signup
  - POST /api/members/cognito/verify
  - GET  /api/members/draft/{cognito_sub}
  - POST /api/members/draft            (JSON upsert, or multipart with ``headshot``)
  - POST /api/members/register
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from pykappa._constants import (
    MEMBERS_COGNITO_SIGNUP,
    MEMBERS_COGNITO_VERIFY,
    MEMBERS_DRAFT,
    MEMBERS_REGISTER,
)
from pykappa._transport import Transport
from pykappa.exceptions import (
    DraftLoadError,
    DraftSaveError,
    KappaApiError,
    KappaTransportError,
)
from pykappa.models.draft import DraftFields, HeadshotImage

_logger = logging.getLogger(__name__)


def _error_message(exc: KappaTransportError, fallback: str) -> str:
    """Prefer the backend's ``{"error": ...}`` text over the raw HTTP line."""
    if isinstance(exc.body, dict):
        error = exc.body.get("error")
        if isinstance(error, str) and error:
            return error
    return fallback


def _error_code(exc: KappaTransportError) -> str:
    if isinstance(exc.body, dict) and exc.body.get("code"):
        return str(exc.body["code"])
    return str(exc.status_code or "")


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        return json.dumps(dict(value), separators=(",", ":"))
    return "" if value is None else str(value)


def build_multipart(fields: Mapping[str, Any], image: HeadshotImage | None = None) -> aiohttp.FormData:
    """Encode *fields* (and an optional image) as ``multipart/form-data``."""
    form = aiohttp.FormData()
    for key, value in fields.items():
        form.add_field(key, _form_value(value))
    if image is not None:
        form.add_field(
            "headshot",
            image.content,
            filename=image.filename,
            content_type=image.content_type,
        )
    return form


class BackendDraftStore:
    """:class:`pykappa.interfaces.DraftStore` over the marketplace REST API."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def sign_up(self, email: str, password: str) -> str:
        """Create the Cognito account through the backend proxy."""
        try:
            response = await self._transport.request(
                "POST",
                MEMBERS_COGNITO_SIGNUP,
                json_body={"email": email, "password": password},
            )
        except KappaTransportError as exc:
            raise KappaApiError(
                _error_message(exc, "Failed to create account"),
                code=_error_code(exc),
                endpoint=MEMBERS_COGNITO_SIGNUP,
            ) from exc
        subject_id = response.get("userSub") if isinstance(response, dict) else None
        if not subject_id:
            raise KappaApiError("Sign-up response missing userSub", endpoint=MEMBERS_COGNITO_SIGNUP)
        return str(subject_id)

    async def confirm_sign_up(self, email: str, code: str, subject_id: str) -> None:
        try:
            await self._transport.request(
                "POST",
                MEMBERS_COGNITO_VERIFY,
                json_body={"email": email, "code": code, "cognito_sub": subject_id},
            )
        except KappaTransportError as exc:
            raise KappaApiError(
                _error_message(exc, "Invalid verification code"),
                code=_error_code(exc),
                endpoint=MEMBERS_COGNITO_VERIFY,
            ) from exc

    async def get_draft(self, subject_id: str) -> DraftFields | None:
        endpoint = f"{MEMBERS_DRAFT}/{subject_id}"
        try:
            response = await self._transport.request("GET", endpoint)
        except KappaTransportError as exc:
            if exc.status_code == 404:
                return None
            raise DraftLoadError(f"Failed to load draft: {exc}") from exc
        if not isinstance(response, dict):
            return None
        return DraftFields.model_validate(response)

    async def upsert_draft(self, subject_id: str, email: str, fields: Mapping[str, Any]) -> DraftFields:
        body: dict[str, Any] = {**fields, "cognito_sub": subject_id, "email": email}
        if isinstance(body.get("social_links"), Mapping):
            # The draft route parses social_links from a JSON string.
            body["social_links"] = _form_value(body["social_links"])
        try:
            response = await self._transport.request("POST", MEMBERS_DRAFT, json_body=body)
        except KappaTransportError as exc:
            raise DraftSaveError(_error_message(exc, f"Failed to save draft: {exc}")) from exc
        if not isinstance(response, dict):
            return DraftFields(cognito_sub=subject_id, email=email)
        return DraftFields.model_validate(response)

    async def finalize(self, payload: Mapping[str, Any], image: HeadshotImage | None = None) -> None:
        """Submit the complete registration."""
        form = build_multipart(payload, image)
        try:
            await self._transport.request("POST", MEMBERS_REGISTER, form=form)
        except KappaTransportError as exc:
            raise KappaApiError(
                _error_message(exc, "Failed to register"),
                code=_error_code(exc),
                endpoint=MEMBERS_REGISTER,
            ) from exc


class BackendAssetStore:
    """:class:`pykappa.interfaces.AssetStore` using the draft endpoint's upload path."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def upload_image(self, subject_id: str, email: str, image: HeadshotImage) -> str:
        form = build_multipart({"cognito_sub": subject_id, "email": email}, image)
        try:
            response = await self._transport.request("POST", MEMBERS_DRAFT, form=form)
        except KappaTransportError as exc:
            raise KappaApiError(
                _error_message(exc, "Unable to upload your photo"),
                code=_error_code(exc),
                endpoint=MEMBERS_DRAFT,
            ) from exc
        url = response.get("headshot_url") if isinstance(response, dict) else None
        if not url:
            raise KappaApiError("Upload response missing headshot_url", endpoint=MEMBERS_DRAFT)
        _logger.debug("Headshot uploaded for %s", subject_id)
        return str(url)
