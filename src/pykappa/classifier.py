"""Map raw identity-provider and backend errors onto a closed taxonomy.

Every place that needs to know *why* a sign-in failed goes through
:func:`classify_error`.  Inputs are deliberately loose: a plain string, a
decoded JSON error body, or an exception object all work.

Inspection order:

1. an explicit code field (``code``),
2. an explicit name/type field (``name``, ``type``, ``__type``),
3. a case-insensitive substring match on the message.

The first match wins; nothing matching yields :attr:`ErrorKind.UNKNOWN`.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    PASSWORD_CHANGE_REQUIRED = "PasswordChangeRequired"
    USER_NOT_CONFIRMED = "UserNotConfirmed"
    INVALID_CREDENTIALS = "InvalidCredentials"
    UNKNOWN = "Unknown"


# Exact identifiers (compared lower-cased) for code and name/type fields.
_IDENTIFIERS: dict[str, ErrorKind] = {
    "new_password_required": ErrorKind.PASSWORD_CHANGE_REQUIRED,
    "passwordchangerequired": ErrorKind.PASSWORD_CHANGE_REQUIRED,
    "usernotconfirmedexception": ErrorKind.USER_NOT_CONFIRMED,
    "usernotconfirmed": ErrorKind.USER_NOT_CONFIRMED,
    "notauthorizedexception": ErrorKind.INVALID_CREDENTIALS,
    "usernotfoundexception": ErrorKind.INVALID_CREDENTIALS,
    "invalidcredentials": ErrorKind.INVALID_CREDENTIALS,
}

# Ordered: the password-change marker must be checked before anything that
# could also appear in a generic Cognito message.
_MESSAGE_MARKERS: tuple[tuple[str, ErrorKind], ...] = (
    ("new_password_required", ErrorKind.PASSWORD_CHANGE_REQUIRED),
    ("usernotconfirmedexception", ErrorKind.USER_NOT_CONFIRMED),
    ("not confirmed", ErrorKind.USER_NOT_CONFIRMED),
    ("incorrect username or password", ErrorKind.INVALID_CREDENTIALS),
    ("notauthorizedexception", ErrorKind.INVALID_CREDENTIALS),
    ("usernotfoundexception", ErrorKind.INVALID_CREDENTIALS),
    ("user does not exist", ErrorKind.INVALID_CREDENTIALS),
)

_NAME_KEYS = ("name", "type", "__type")


def _field(error: Any, key: str) -> str | None:
    if isinstance(error, Mapping):
        value = error.get(key)
    elif isinstance(error, str):
        return None
    else:
        value = getattr(error, key, None)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _message(error: Any) -> str:
    if isinstance(error, str):
        return error
    message = _field(error, "message")
    if message is not None:
        return message
    if isinstance(error, BaseException):
        return str(error)
    return ""


def _lookup(identifier: str | None) -> ErrorKind | None:
    if identifier is None:
        return None
    return _IDENTIFIERS.get(identifier.lower())


def classify_error(error: Any) -> ErrorKind:
    """Return the :class:`ErrorKind` for *error*."""
    if error is None:
        return ErrorKind.UNKNOWN

    kind = _lookup(_field(error, "code"))
    if kind is not None:
        return kind

    for key in _NAME_KEYS:
        kind = _lookup(_field(error, key))
        if kind is not None:
            return kind

    message = _message(error).lower()
    if message:
        for marker, marker_kind in _MESSAGE_MARKERS:
            if marker in message:
                return marker_kind
    return ErrorKind.UNKNOWN
