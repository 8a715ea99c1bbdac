"""Helpers for safe debug logging.

pykappa handles bearer tokens, passwords and verification codes on almost
every call.  This module redacts those fields before anything reaches a log
record.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

# Compared after lower-casing and dropping "_" so snake_case, camelCase and
# Cognito's PascalCase spellings all match.
_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "confirmpassword",
        "verificationcode",
        "code",
        "secrethash",
        "accesstoken",
        "idtoken",
        "refreshtoken",
        "token",
        "authorization",
        "cookie",
        "session",
        # Raw image payloads
        "headshot",
        "content",
    }
)


def _normalize_key(key: str) -> str:
    return key.replace("_", "").replace("-", "").lower()


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if _normalize_key(key) in _SENSITIVE_VALUE_KEYS:
                redacted[key] = "<redacted>"
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    # Fallback: represent unknown objects without dumping internals.
    return repr(value)
