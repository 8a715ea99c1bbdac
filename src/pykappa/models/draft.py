"""Registration draft models.

:class:`DraftFields` is what the remote draft store hands back.
:class:`RegistrationForm` is the wizard's working copy; it alone may hold the
step-1 secrets and a not-yet-uploaded image, and it alone decides what is
allowed to leave the process.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field

from pykappa.models._base import KappaBaseModel, Timestamp

#: Free-text profile fields collected in steps 2-5, in wizard order.
PROFILE_TEXT_FIELDS: tuple[str, ...] = (
    "name",
    "membership_number",
    "initiated_chapter_id",
    "initiated_season",
    "initiated_year",
    "ship_name",
    "line_name",
    "location",
    "address",
    "phone_number",
    "industry",
    "job_title",
    "bio",
)
PRIVACY_FLAGS: tuple[str, ...] = ("address_is_private", "phone_is_private")
SECRET_FIELDS: frozenset[str] = frozenset({"password", "confirm_password", "verification_code"})
SOCIAL_NETWORKS: tuple[str, ...] = ("instagram", "twitter", "linkedin", "website")

#: Form fields grouped by the wizard step that collects them.
STEP_FIELDS: dict[int, tuple[str, ...]] = {
    1: ("email", "password", "confirm_password", "verification_code"),
    2: ("name", "membership_number"),
    3: ("initiated_chapter_id", "initiated_season", "initiated_year", "ship_name", "line_name"),
    4: ("location", "address", "address_is_private", "phone_number", "phone_is_private"),
    5: ("industry", "job_title", "bio"),
    6: ("social_links",),
}


def _to_text(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _parse_social_links(value: Any) -> Any:
    # Multipart submissions store social links as a JSON string.
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return None
    return value


Text = Annotated[str | None, BeforeValidator(_to_text)]


class SocialLinks(BaseModel):
    model_config = ConfigDict(extra="ignore")

    instagram: str = ""
    twitter: str = ""
    linkedin: str = ""
    website: str = ""

    def filled(self) -> dict[str, str]:
        return {key: value for key, value in self.model_dump().items() if value and value.strip()}


class DraftFields(KappaBaseModel):
    """Partial registration as persisted by the remote draft store."""

    cognito_sub: str | None = None
    email: str | None = None
    name: Text = None
    membership_number: Text = None
    initiated_chapter_id: Text = None
    initiated_season: Text = None
    initiated_year: Text = None
    ship_name: Text = None
    line_name: Text = None
    location: Text = None
    address: Text = None
    address_is_private: bool | None = None
    phone_number: Text = None
    phone_is_private: bool | None = None
    industry: Text = None
    job_title: Text = None
    bio: Text = None
    social_links: Annotated[SocialLinks | None, BeforeValidator(_parse_social_links)] = None
    headshot_url: str | None = None
    last_saved_at: Timestamp = Field(
        default=None,
        validation_alias=AliasChoices("last_saved_at", "updated_at"),
    )


@dataclasses.dataclass(frozen=True)
class HeadshotImage:
    """A profile image selected by the user, not yet uploaded."""

    content: bytes = dataclasses.field(repr=False)
    filename: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)


@dataclasses.dataclass
class RegistrationForm:
    """Mutable wizard state."""

    email: str = ""
    password: str = dataclasses.field(default="", repr=False)
    confirm_password: str = dataclasses.field(default="", repr=False)
    verification_code: str = dataclasses.field(default="", repr=False)
    subject_id: str | None = None
    name: str = ""
    membership_number: str = ""
    initiated_chapter_id: str = ""
    initiated_season: str = ""
    initiated_year: str = ""
    ship_name: str = ""
    line_name: str = ""
    location: str = ""
    address: str = ""
    address_is_private: bool = False
    phone_number: str = ""
    phone_is_private: bool = False
    industry: str = ""
    job_title: str = ""
    bio: str = ""
    social_links: SocialLinks = dataclasses.field(default_factory=SocialLinks)
    headshot: HeadshotImage | None = None
    headshot_url: str | None = None

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in dataclasses.fields(cls))

    def set(self, name: str, value: Any) -> None:
        """Assign one form field, coercing social links from a mapping."""
        if name not in self.field_names():
            raise KeyError(name)
        if name == "social_links" and isinstance(value, Mapping):
            value = SocialLinks.model_validate(dict(value))
        elif name in PROFILE_TEXT_FIELDS and value is not None:
            value = str(value)
        setattr(self, name, value)

    def is_blank(self, name: str) -> bool:
        value = getattr(self, name)
        if value is None:
            return True
        if isinstance(value, str):
            return not value.strip()
        if isinstance(value, SocialLinks):
            return not value.filled()
        return False

    def apply_draft(self, draft: DraftFields) -> None:
        """Copy every value the draft carries into the form."""
        for name in (*PROFILE_TEXT_FIELDS, *PRIVACY_FLAGS, "email", "headshot_url"):
            value = getattr(draft, name)
            if value is not None:
                setattr(self, name, value)
        if draft.social_links is not None:
            self.social_links = draft.social_links.model_copy()
        if draft.cognito_sub and not self.subject_id:
            self.subject_id = draft.cognito_sub

    def cacheable(self) -> dict[str, Any]:
        """Fields safe for the local cache.

        Excludes the step-1 secrets and the raw image; an uploaded image is
        kept as its URL.
        """
        data: dict[str, Any] = {"cognito_sub": self.subject_id, "email": self.email}
        for name in (*PROFILE_TEXT_FIELDS, *PRIVACY_FLAGS):
            data[name] = getattr(self, name)
        data["social_links"] = self.social_links.model_dump()
        if self.headshot_url:
            data["headshot_url"] = self.headshot_url
        return data

    def draft_payload(self) -> dict[str, Any]:
        """Partial fields for a remote draft upsert: non-empty values only."""
        data: dict[str, Any] = {}
        for name in PROFILE_TEXT_FIELDS:
            if not self.is_blank(name):
                data[name] = getattr(self, name)
        for name in PRIVACY_FLAGS:
            data[name] = getattr(self, name)
        links = self.social_links.filled()
        if links:
            data["social_links"] = links
        if self.headshot_url:
            data["headshot_url"] = self.headshot_url
        return data

    def finalize_payload(self) -> dict[str, Any]:
        """The complete assembled registration for the finalize endpoint."""
        data: dict[str, Any] = {"cognito_sub": self.subject_id or "", "email": self.email}
        for name in PROFILE_TEXT_FIELDS:
            data[name] = getattr(self, name) or ""
        for name in PRIVACY_FLAGS:
            data[name] = getattr(self, name)
        data["social_links"] = self.social_links.model_dump()
        if self.headshot_url:
            data["headshot_url"] = self.headshot_url
        return data
