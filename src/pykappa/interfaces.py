"""Collaborator interfaces consumed by the session engine and the wizard.

The HTTP adapters in :mod:`pykappa._api` implement these; tests pass
in-memory doubles.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from pykappa.models.draft import DraftFields, HeadshotImage
from pykappa.models.token import CredentialExchangeResult, RefreshedTokens
from pykappa.models.user import UserProfile


class IdentityProvider(Protocol):
    async def sign_in(self, email: str, password: str) -> CredentialExchangeResult:
        ...

    async def refresh(self, refresh_token: str, email: str) -> RefreshedTokens:
        ...


class UserStore(Protocol):
    async def upsert_on_login(self, bearer: str, subject_id: str, email: str) -> UserProfile:
        ...

    async def get_me(self, bearer: str) -> UserProfile:
        ...


class DraftStore(Protocol):
    async def sign_up(self, email: str, password: str) -> str:
        """Create the provider account; return its subject id."""
        ...

    async def confirm_sign_up(self, email: str, code: str, subject_id: str) -> None:
        ...

    async def get_draft(self, subject_id: str) -> DraftFields | None:
        """Return the stored draft, or ``None`` when there is none."""
        ...

    async def upsert_draft(self, subject_id: str, email: str, fields: Mapping[str, Any]) -> DraftFields:
        ...

    async def finalize(self, payload: Mapping[str, Any], image: HeadshotImage | None = None) -> None:
        ...


class AssetStore(Protocol):
    async def upload_image(self, subject_id: str, email: str, image: HeadshotImage) -> str:
        """Store *image* and return its stable URL."""
        ...


class DraftCache(Protocol):
    """Process-local ephemeral draft storage."""

    def load(self) -> dict[str, Any] | None:
        ...

    def save(self, data: Mapping[str, Any]) -> None:
        ...

    def clear(self) -> None:
        ...
