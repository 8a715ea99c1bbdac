"""Base model and enum for marketplace API payloads.

Every backend response model inherits from :class:`KappaBaseModel` which
provides:

* A ``model_validator(mode="before")`` that strips empty values (``None``,
  ``""``, whitespace-only strings) so the field default is used.
* A ``raw`` dict that captures the original payload.

:class:`OnboardingStatus` folds the backend's legacy status strings into
the three states the session engine reasons about.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_timestamp(value: Any) -> datetime | None:
    """Convert an ISO string or epoch number (seconds **or** ms) to a UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            value = float(value)
        else:
            return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    ts = float(value)
    if ts >= _MS_THRESHOLD:
        ts /= 1000
    return datetime.fromtimestamp(ts, tz=UTC)


Timestamp = Annotated[datetime | None, BeforeValidator(parse_timestamp)]
"""Annotated type accepting ISO strings or epoch numbers."""


class OnboardingStatus(StrEnum):
    """Where a user stands in the registration wizard."""

    PRE_REGISTRATION = "PRE_REGISTRATION"
    ONBOARDING_IN_PROGRESS = "ONBOARDING_IN_PROGRESS"
    FINISHED = "FINISHED"

    @classmethod
    def _missing_(cls, value: object) -> OnboardingStatus:
        # Unknown strings never resolve to FINISHED; an unrecognised status
        # must not let a user skip onboarding.
        if isinstance(value, str):
            mapped = _LEGACY_ONBOARDING_STATUS.get(value.strip().upper())
            if mapped is not None:
                return cls(mapped)
        return cls.ONBOARDING_IN_PROGRESS


_LEGACY_ONBOARDING_STATUS: dict[str, str] = {
    "PRE_COGNITO": "PRE_REGISTRATION",
    "PRE_REGISTRATION": "PRE_REGISTRATION",
    "COGNITO_CONFIRMED": "ONBOARDING_IN_PROGRESS",
    "ONBOARDING_STARTED": "ONBOARDING_IN_PROGRESS",
    "ONBOARDING_IN_PROGRESS": "ONBOARDING_IN_PROGRESS",
    "ONBOARDING_FINISHED": "FINISHED",
    "FINISHED": "FINISHED",
    "COMPLETE": "FINISHED",
}


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


class KappaBaseModel(BaseModel):
    """Base for backend response models.

    Handles:
    * empty values (``None``, ``""``) → dropped so the field default is used
    * Stashes the original API dict in ``raw``
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)
    """Original API response dict."""

    @model_validator(mode="before")
    @classmethod
    def _drop_empty_values(cls, values: Any) -> Any:
        """Strip empty values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned = {key: value for key, value in values.items() if not _is_empty(value)}
        # Only auto-stash raw when not explicitly provided (i.e. model_validate
        # from an API dict).
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned


def parse_onboarding_status(value: Any) -> OnboardingStatus | None:
    """Coerce a backend status string; empty means "not reported"."""
    if _is_empty(value):
        return None
    if isinstance(value, OnboardingStatus):
        return value
    return OnboardingStatus(str(value))


OnboardingStatusField = Annotated[OnboardingStatus | None, BeforeValidator(parse_onboarding_status)]
"""Annotated type that maps legacy backend status strings."""
